from pydantic import BaseModel
import os


def build_database_url(host: str, port: int, user: str, password: str, dbname: str) -> str:
    return f"postgresql://{user}:{password}@{host}:{port}/{dbname}"


class Settings(BaseModel):
    database_url: str = os.getenv("DATABASE_URL") or build_database_url(
        host=os.getenv("DB_HOST", "localhost"),
        port=int(os.getenv("DB_PORT", "5432")),
        user=os.getenv("DB_USER", "postgres"),
        password=os.getenv("DB_PASSWORD", "yourpassword"),
        dbname=os.getenv("DB_NAME", "iot_devices"),
    )
    cors_origins: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
    log_requests: bool = os.getenv("LOG_REQUESTS", "1") == "1"
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8080"))

    mqtt_host: str | None = os.getenv("MQTT_HOST") or None
    mqtt_port: int = int(os.getenv("MQTT_PORT", "1883"))
    mqtt_username: str | None = os.getenv("MQTT_USERNAME") or None
    mqtt_password: str | None = os.getenv("MQTT_PASSWORD") or None
    mqtt_topic_base: str = os.getenv("MQTT_TOPIC_BASE", "devices")

settings = Settings()

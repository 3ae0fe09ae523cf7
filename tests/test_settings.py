from devstatus.settings import Settings, build_database_url


def test_build_database_url():
    url = build_database_url(host="db", port=5433, user="u", password="p", dbname="iot")
    assert url == "postgresql://u:p@db:5433/iot"


def test_settings_override():
    s = Settings(database_url="sqlite://", mqtt_host="broker", mqtt_port=8883)
    assert s.mqtt_host == "broker"
    assert s.mqtt_port == 8883

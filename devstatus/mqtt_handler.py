# devstatus/mqtt_handler.py
import json, time, logging
import paho.mqtt.client as mqtt

from .settings import Settings
from .store import StatusStore, StoreError

log = logging.getLogger("devstatus.mqtt")

def _rc_int(rc) -> int:
    # Handles paho v2.x ReasonCode objects or plain ints
    try:
        return int(getattr(rc, "value", rc))
    except (TypeError, ValueError):
        return -1

def status_topic(base: str) -> str:
    return f"{base}/+/status"

def ingest_message(store: StatusStore, topic: str, raw: bytes) -> int | None:
    """Store one status report published on ``<base>/<serialNo>/status``.

    The payload gets the same checks as the HTTP ingest: a JSON object with a
    non-empty string ``serialNo``. It is stored verbatim. Returns the new row
    id, or None when the message was dropped.
    """
    parts = topic.split("/")
    if len(parts) < 3 or parts[-1] != "status" or not parts[-2]:
        log.warning("ignoring message on unexpected topic %s", topic)
        return None

    try:
        payload = json.loads(raw.decode("utf-8"))
    except (ValueError, RecursionError) as e:
        log.warning("undecodable payload on %s: %s", topic, e)
        return None
    if not isinstance(payload, dict):
        log.warning("payload on %s is not a JSON object", topic)
        return None

    serial_no = payload.get("serialNo")
    if not isinstance(serial_no, str) or not serial_no:
        log.warning("payload on %s has no serialNo", topic)
        return None
    name = payload.get("name")
    if not isinstance(name, str):
        name = None

    try:
        status_id = store.insert(serial_no, name, payload)
    except StoreError as e:
        log.error("dropping status for %s: %s", serial_no, e)
        return None
    log.debug("stored status id=%s serialNo=%s", status_id, serial_no)
    return status_id

def start_mqtt(store: StatusStore, settings: Settings) -> mqtt.Client:
    client = mqtt.Client(
        client_id=f"devstatus-{int(time.time())}",
        callback_api_version=mqtt.CallbackAPIVersion.VERSION2,  # paho 2.x
    )
    client.enable_logger(log)

    if settings.mqtt_username and settings.mqtt_password:
        client.username_pw_set(settings.mqtt_username, settings.mqtt_password)

    client.reconnect_delay_set(min_delay=1, max_delay=30)
    topic = status_topic(settings.mqtt_topic_base)

    def on_connect(client, userdata, flags, reason_code, properties):
        rc = _rc_int(reason_code)
        if rc != mqtt.CONNACK_ACCEPTED:
            log.warning("connect failed rc=%s, retrying", rc)
            return
        res, mid = client.subscribe(topic, qos=0)
        log.info("connected, SUB %s res=%s mid=%s", topic, res, mid)

    def on_disconnect(client, userdata, flags, reason_code, properties):
        log.warning("disconnected rc=%s, reconnecting", _rc_int(reason_code))

    def on_message(client, userdata, msg):
        ingest_message(store, msg.topic, msg.payload)

    client.on_connect = on_connect
    client.on_disconnect = on_disconnect
    client.on_message = on_message

    log.info(
        "bootstrapping host=%s port=%s user=%s topic=%s",
        settings.mqtt_host, settings.mqtt_port,
        "<set>" if settings.mqtt_username else "<none>", topic,
    )
    client.connect(settings.mqtt_host, settings.mqtt_port, keepalive=30)
    client.loop_start()
    return client

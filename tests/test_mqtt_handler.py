import json

from devstatus.mqtt_handler import ingest_message, status_topic


def test_status_topic():
    assert status_topic("devices") == "devices/+/status"


def test_ingest_uses_payload_serial(store):
    raw = json.dumps({"serialNo": "DEV-1", "name": "meter", "kwh": 3.2}).encode()
    status_id = ingest_message(store, "devices/ignored/status", raw)
    assert status_id is not None

    latest = store.find_latest("DEV-1")
    assert latest.id == status_id
    assert latest.name == "meter"
    assert latest.data["kwh"] == 3.2
    assert store.find_latest("ignored") is None


def test_ingest_stores_payload_verbatim(store):
    payload = {"serialNo": "DEV-2", "kwh": 1, "extra": {"a": [1, None]}}
    status_id = ingest_message(store, "devices/DEV-2/status", json.dumps(payload).encode())
    latest = store.find_latest("DEV-2")
    assert latest.id == status_id
    assert latest.data == payload


def test_ingest_requires_string_serial(store):
    for body in (b'{"kwh": 1}', b'{"serialNo": 42, "v": 1}', b'{"serialNo": ""}', b'{"serialNo": null}'):
        assert ingest_message(store, "devices/DEV-5/status", body) is None, body
    assert store.find_latest("DEV-5") is None


def test_ingest_drops_deeply_nested_payload(store):
    raw = b'{"serialNo": "DEV-6", "x": ' + b"[" * 100000 + b"]" * 100000 + b"}"
    assert ingest_message(store, "devices/DEV-6/status", raw) is None
    assert store.find_latest("DEV-6") is None


def test_ingest_drops_bad_messages(store):
    assert ingest_message(store, "devices/DEV-3/status", b"not json") is None
    assert ingest_message(store, "devices/DEV-3/status", b"[1]") is None
    assert ingest_message(store, "devices/DEV-3/telemetry", b"{}") is None
    assert ingest_message(store, "status", b"{}") is None
    assert ingest_message(store, "devices/DEV-3/status", b"") is None
    assert store.find_latest("DEV-3") is None


def test_ingest_drops_on_store_failure(store):
    with store.engine.begin() as conn:
        conn.exec_driver_sql("DROP TABLE device_status")
    assert ingest_message(store, "devices/DEV-4/status", b'{"serialNo": "DEV-4", "a": 1}') is None

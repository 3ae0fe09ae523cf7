import json
import logging

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from starlette.concurrency import run_in_threadpool
import paho.mqtt.client as mqtt

from .db import make_engine
from .schemas import StatusCreated, StatusOut
from .store import StatusStore, StoreError, PayloadEncodeError, PayloadDecodeError
from .mqtt_handler import start_mqtt
from .utils import add_cors, add_request_logging, configure_logging
from .settings import Settings, settings as default_settings

log = logging.getLogger("devstatus")

router = APIRouter()

def get_store(request: Request) -> StatusStore:
    return request.app.state.store

@router.post("/api/device/status", response_model=StatusCreated)
async def create_device_status(request: Request, store: StatusStore = Depends(get_store)):
    try:
        status = json.loads(await request.body())
    except (ValueError, RecursionError):
        raise HTTPException(status_code=400, detail="Invalid request body")
    if not isinstance(status, dict):
        raise HTTPException(status_code=400, detail="Invalid request body")

    serial_no = status.get("serialNo")
    if not isinstance(serial_no, str) or not serial_no:
        raise HTTPException(status_code=400, detail="serialNo is required")
    name = status.get("name")
    if not isinstance(name, str):
        name = None

    try:
        status_id = await run_in_threadpool(store.insert, serial_no, name, status)
    except PayloadEncodeError:
        raise HTTPException(status_code=500, detail="Failed to process data")
    except StoreError:
        raise HTTPException(status_code=500, detail="Failed to insert record")
    return StatusCreated(id=status_id)

@router.get(
    "/api/device/status/{serial_no}",
    response_model=StatusOut,
    response_model_exclude_unset=True,
)
def get_latest_device_status(serial_no: str, store: StatusStore = Depends(get_store)):
    try:
        found = store.find_latest(serial_no)
    except PayloadDecodeError:
        log.exception("stored data unreadable for serialNo=%s", serial_no)
        raise HTTPException(status_code=500, detail="Failed to parse data")
    except StoreError:
        raise HTTPException(status_code=500, detail="Failed to read record")
    if found is None:
        raise HTTPException(status_code=404, detail="Device status not found")
    return found

def create_app(settings: Settings | None = None) -> FastAPI:
    if settings is None:
        settings = default_settings
    configure_logging(settings)
    store = StatusStore(make_engine(settings.database_url))

    app = FastAPI(title="Device Status API", version="0.1.0")
    app.state.store = store
    app.state.mqtt_client = None
    add_cors(app, settings)
    if settings.log_requests:
        add_request_logging(app)
    app.include_router(router)

    @app.on_event("startup")
    def on_startup():
        # init errors propagate and abort startup
        store.init()
        if settings.mqtt_host:
            try:
                app.state.mqtt_client = start_mqtt(store, settings)
            except OSError as e:
                log.error("MQTT bridge failed to start: %s", e)

    @app.on_event("shutdown")
    def on_shutdown():
        client: mqtt.Client | None = app.state.mqtt_client
        if client is not None:
            client.loop_stop()
            client.disconnect()
        store.engine.dispose()

    return app

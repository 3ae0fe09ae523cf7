import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .settings import Settings

access_log = logging.getLogger("devstatus.access")

def configure_logging(settings: Settings) -> None:
    # no-op for the root logger when the server already configured it
    logging.basicConfig(level=settings.log_level)
    logging.getLogger("devstatus").setLevel(settings.log_level)

def add_cors(app: FastAPI, settings: Settings) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.cors_origins if o.strip()],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

def add_request_logging(app: FastAPI) -> None:
    @app.middleware("http")
    async def _log_request(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        access_log.info(
            "%s %s %s %.1fms",
            request.method, request.url.path, response.status_code, elapsed_ms,
        )
        return response

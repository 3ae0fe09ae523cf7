import logging

import uvicorn

from .settings import settings
from .utils import configure_logging

log = logging.getLogger("devstatus")

if __name__ == "__main__":
    configure_logging(settings)
    log.info("Server starting at http://%s:%s", settings.api_host, settings.api_port)
    uvicorn.run("devstatus.main:create_app", factory=True, host=settings.api_host, port=settings.api_port)

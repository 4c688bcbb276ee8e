from __future__ import annotations

import uvicorn

from marketdesk.api import create_api_app
from marketdesk.core.config import settings

app = create_api_app()


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )

"""
FleetFlow Backend
=================
Entry point. Run with ``python main.py`` or ``uvicorn main:app``.
Host, port and auto-reload come from ``fleetflow.config.settings``.
"""

import uvicorn

from fleetflow.api.app import create_app
from fleetflow.config import settings

app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.lower(),
    )

"""Run script for the PDF store API"""

import uvicorn

from core.settings import get_settings


if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "services.api.main:create_app",
        factory=True,
        host=settings.server.host,
        port=settings.server.port,
        log_level=settings.logging.level.lower(),
    )

"""Entrypoint ASGI: uvicorn tracker_api.main:app"""

from __future__ import annotations

import logging

from common.config import get_settings
from .app import create_app

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()],
)

app = create_app(settings)

"""
OptiMarket ASGI entry point.

    uvicorn optimarket.main:app
    python -m optimarket.main
"""

import logging
from pathlib import Path

import uvicorn
from aquilia import AquiliaRuntime

from optimarket.settings import get_settings

settings = get_settings()

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = AquiliaRuntime.create_app(
    workspace_root=Path(__file__).parent,
    mode="dev" if settings.debug else "prod",
)


if __name__ == "__main__":
    uvicorn.run(app, host="127.0.0.1", port=8000)

"""ASGI entrypoint, served with ``uvicorn exchange_planner.api.asgi:app``."""

from exchange_planner.api.app import create_app
from exchange_planner.config import Settings
from exchange_planner.containers import build_container

settings = Settings()
app = create_app(build_container(settings))

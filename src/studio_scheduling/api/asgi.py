"""ASGI entrypoint for the studio scheduling API."""

from studio_scheduling.api.app import create_app
from studio_scheduling.containers import build_container

app = create_app(build_container())

"""ASGI entrypoint for the relay broker API."""

from relay_broker.api.app import create_app
from relay_broker.containers import build_container

app = create_app(build_container())

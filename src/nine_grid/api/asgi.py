"""ASGI entrypoint for the nine grid API."""

from nine_grid.api.app import create_app
from nine_grid.containers import build_container

app = create_app(build_container())

"""ASGI entrypoint for the hotspot editor API."""

from hotspot_editor.api.app import create_app
from hotspot_editor.containers import build_container

app = create_app(build_container())

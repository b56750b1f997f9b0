"""Helpers for reading responses from the editor's backing services."""

import httpx


def error_message(response: httpx.Response, default: str) -> str:
    """Prefer the service's own message over a generic one."""
    try:
        data = response.json()
    except ValueError:
        return default
    if isinstance(data, dict):
        message = data.get("message") or data.get("error")
        if message:
            return str(message)
    return default


def json_object(response: httpx.Response) -> dict[str, object] | None:
    """Return the JSON object body, or None when the body is not one."""
    try:
        data = response.json()
    except ValueError:
        return None
    return data if isinstance(data, dict) else None

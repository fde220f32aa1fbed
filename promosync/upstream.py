"""
Helpers shared by the upstream API clients.
"""

import httpx


def error_message(response: httpx.Response, service: str) -> str:
    """Pull a readable message out of an error response."""
    fallback = f"{service} API returned status {response.status_code}"
    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict):
        return body.get("message") or body.get("error") or fallback
    return fallback

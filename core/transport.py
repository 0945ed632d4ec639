# core/transport.py

"""
Builds the HTTP client the task gateway talks through.

Token acquisition is someone else's job; the client only attaches a token it is given.
"""

import httpx

from core.config import Settings


def build_client(settings: Settings, transport: httpx.BaseTransport | None = None) -> httpx.Client:
    headers = {"Accept": "application/json"}

    if settings.api_token:
        headers["Authorization"] = f"Bearer {settings.api_token}"

    return httpx.Client(
        base_url=settings.base_url,
        timeout=settings.timeout,
        headers=headers,
        transport=transport,
    )

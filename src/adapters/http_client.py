"""httpx wrapper.

Why a wrapper:
- Standardizes timeouts, headers and redirects for every download.
- Easy to test: the downloader takes a client factory, so a client over
  `httpx.MockTransport` can replace this one.
"""

from __future__ import annotations

import httpx

from core.config import AppSettings


def build_client(settings: AppSettings | None = None) -> httpx.Client:
    """Create an `httpx.Client` with safe defaults."""

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "*/*",
    }
    return httpx.Client(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers=headers,
    )

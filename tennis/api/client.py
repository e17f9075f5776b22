"""Async httpx wrapper for the tennis data API."""

from __future__ import annotations

from typing import Any

import httpx

BASE_URL = "https://api.tennisdata.com/v1"
USER_AGENT = "TennisPredictor/1.0"


class TennisAPIClient:
    """Async HTTP client for the tennis data API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = BASE_URL,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        kwargs: dict[str, Any] = {
            "base_url": base_url,
            "timeout": timeout,
            "headers": {"Accept": "application/json", "User-Agent": USER_AGENT},
        }
        if transport is not None:
            kwargs["transport"] = transport
        self._client = httpx.AsyncClient(**kwargs)

    async def close(self) -> None:
        await self._client.aclose()

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """Make an authenticated GET request and return JSON."""
        params = dict(params or {})
        params["api_key"] = self._api_key
        response = await self._client.get(path, params=params)
        response.raise_for_status()
        return response.json()

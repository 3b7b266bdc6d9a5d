from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Any, Optional

import aiohttp
import structlog

from floorwatch.errors import FetchError

log = structlog.get_logger("marketplace")


@dataclass(slots=True)
class ClientConfig:
    timeout_s: float = 10.0
    user_agent: str = "floorwatch/0.1"


class MarketplaceClient:
    """
    Shared aiohttp session for marketplace stats endpoints.
    No retries and no auth; every GET is bounded by cfg.timeout_s.

    Usage:
        client = MarketplaceClient(ClientConfig(timeout_s=10))
        await client.start()
        doc = await client.get_json("https://api.example/collections/foo/stats")
        await client.stop()
    """
    def __init__(self, cfg: Optional[ClientConfig] = None):
        self.cfg = cfg or ClientConfig()
        self._session: Optional[aiohttp.ClientSession] = None

    async def start(self) -> None:
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=self.cfg.timeout_s)
            self._session = aiohttp.ClientSession(
                timeout=timeout,
                headers={"Accept": "application/json", "User-Agent": self.cfg.user_agent},
            )

    async def stop(self) -> None:
        if self._session:
            await self._session.close()
            self._session = None

    async def get_json(self, url: str) -> Any:
        """GET url and decode the body as JSON. Any failure is a FetchError."""
        if self._session is None:
            raise RuntimeError("MarketplaceClient.start() was not awaited")
        try:
            async with self._session.get(url) as resp:
                body = await resp.read()
                if resp.status >= 400:
                    raise FetchError(url, f"HTTP {resp.status}: {_snippet(body)}", status=resp.status)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise FetchError(url, f"{type(e).__name__}: {e}") from e
        try:
            return json.loads(body)
        except ValueError as e:  # JSONDecodeError and UnicodeDecodeError
            raise FetchError(url, f"invalid json: {e}; body={_snippet(body)}", status=resp.status) from e


def _snippet(body: bytes, n: int = 200) -> str:
    return body[:n].decode("utf-8", errors="replace")

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from typing import Optional

import aiohttp
import structlog

from floorwatch.errors import DeliveryError

log = structlog.get_logger("telegram")

TELEGRAM_API = "https://api.telegram.org"

# --------- small rate limiter (token bucket) ----------

class RateLimiter:
    def __init__(self, rate_per_sec: float, burst: int = 1):
        self.rate = float(rate_per_sec)
        self.capacity = int(burst)
        self.tokens = float(burst)
        self.updated: Optional[float] = None
        self._lock = asyncio.Lock()

    async def acquire(self):
        async with self._lock:
            loop = asyncio.get_running_loop()
            now = loop.time()
            if self.updated is None:
                self.updated = now
            # refill
            self.tokens = min(self.capacity, self.tokens + (now - self.updated) * self.rate)
            self.updated = now
            # wait if no token
            if self.tokens < 1.0:
                needed = 1.0 - self.tokens
                await asyncio.sleep(needed / self.rate)
                self.updated = loop.time()
                self.tokens = 1.0
            self.tokens -= 1.0

# --------- config & client ----------

@dataclass(slots=True)
class TelegramNotifierConfig:
    bot_token: str
    chat_id: str                       # personal chat id or group id
    parse_mode: Optional[str] = "markdown"
    disable_web_page_preview: bool = True
    timeout_s: float = 8.0
    per_chat_rate_per_sec: float = 1.0  # Telegram allows ~1 msg/s per chat
    per_chat_burst: int = 3
    max_retries: int = 3
    initial_backoff_s: float = 0.5
    max_backoff_s: float = 8.0
    api_base: str = TELEGRAM_API


class TelegramNotifier:
    """
    Sends one text message per call to a Telegram chat through the Bot API,
    with rate limiting and a short retry w/ backoff on 429, 5xx and network errors.
    Gives up with DeliveryError; the caller logs it and moves on.
    """
    def __init__(self, cfg: TelegramNotifierConfig):
        self.cfg = cfg
        self._session: Optional[aiohttp.ClientSession] = None
        self._rl = RateLimiter(rate_per_sec=cfg.per_chat_rate_per_sec, burst=cfg.per_chat_burst)

    async def start(self):
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=self.cfg.timeout_s)
            self._session = aiohttp.ClientSession(timeout=timeout)

    async def stop(self):
        if self._session:
            await self._session.close()
            self._session = None

    def payload(self, text: str) -> dict:
        payload = {
            "chat_id": self.cfg.chat_id,
            "text": text,
            "disable_web_page_preview": self.cfg.disable_web_page_preview,
        }
        if self.cfg.parse_mode:
            payload["parse_mode"] = self.cfg.parse_mode
        return payload

    async def send(self, text: str) -> None:
        if self._session is None:
            await self.start()
        assert self._session is not None
        await self._rl.acquire()

        url = f"{self.cfg.api_base}/bot{self.cfg.bot_token}/sendMessage"
        payload = self.payload(text)
        backoff = self.cfg.initial_backoff_s
        last_status: Optional[int] = None
        for attempt in range(1, self.cfg.max_retries + 1):
            try:
                async with self._session.post(url, json=payload) as resp:
                    if resp.status == 200:
                        log.debug("telegram_sent", chars=len(text), attempt=attempt)
                        return
                    last_status = resp.status
                    detail = await _maybe_text(resp)
                    log.warning("telegram_send_failed", status=resp.status, body=detail, attempt=attempt)
                    if resp.status == 429:
                        # Telegram may include retry_after (seconds)
                        ra = await _retry_after(resp)
                        if ra and attempt < self.cfg.max_retries:
                            await asyncio.sleep(ra)
                            continue
                    if not (500 <= resp.status < 600 or resp.status == 429):
                        # other 4xx: don't retry
                        raise DeliveryError(f"telegram rejected message: HTTP {resp.status} {detail}", status=resp.status)
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_status = None
                log.warning("telegram_network_error", err=str(e), attempt=attempt)
            if attempt < self.cfg.max_retries:
                await asyncio.sleep(self._jitter(backoff))
                backoff = min(backoff * 2.0, self.cfg.max_backoff_s)
        log.error("telegram_give_up_after_retries", retries=self.cfg.max_retries)
        raise DeliveryError(f"telegram send failed after {self.cfg.max_retries} attempts", status=last_status)

    @staticmethod
    def _jitter(base: float) -> float:
        return base * (0.8 + 0.4 * random.random())


async def _maybe_text(resp: aiohttp.ClientResponse) -> str:
    try:
        return (await resp.text())[:300]
    except Exception:
        return "<no body>"

async def _retry_after(resp: aiohttp.ClientResponse) -> Optional[float]:
    try:
        data = await resp.json(content_type=None)
        ra = data.get("parameters", {}).get("retry_after")
        return float(ra) if ra else None
    except (ValueError, AttributeError, aiohttp.ClientError):
        return None


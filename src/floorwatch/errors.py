from __future__ import annotations

from typing import Any, Optional


class FloorwatchError(Exception):
    """Base class for everything floorwatch raises on purpose."""


class ConfigError(FloorwatchError):
    """Config file missing, unreadable or structurally invalid. Fatal at startup."""

    def __init__(self, message: str, *, field: Optional[str] = None):
        super().__init__(f"{field}: {message}" if field else message)
        self.field = field


class HistoryReadError(FloorwatchError):
    def __init__(self, path: str, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path


class PersistError(FloorwatchError):
    def __init__(self, path: str, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path


class FetchError(FloorwatchError):
    """Transport, HTTP status or JSON decode failure for one marketplace request."""

    def __init__(self, url: str, reason: str, *, status: Optional[int] = None):
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.status = status


class ExtractionError(FloorwatchError):
    """The configured json path did not lead to a numeric floor."""

    def __init__(
        self,
        reason: str,
        *,
        url: Optional[str] = None,
        key: Optional[str] = None,
        value: Any = None,
    ):
        prefix = f"{url}: " if url else ""
        super().__init__(f"{prefix}{reason}")
        self.url = url
        self.key = key
        self.value = value


class DeliveryError(FloorwatchError):
    def __init__(self, reason: str, *, status: Optional[int] = None):
        super().__init__(reason)
        self.status = status

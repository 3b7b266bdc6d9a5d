from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlsplit

from floorwatch.errors import ConfigError

DEFAULT_POLL_INTERVAL_S = 0.8
DEFAULT_REQUEST_TIMEOUT_S = 10.0
SLUG_PLACEHOLDER = "%s"


def fill_slug(template: str, slug: str) -> str:
    """
    Put the slug where the template says %s. Plain replacement, so
    percent-encoded characters elsewhere in the URL (%22, %7B...) survive.
    """
    return template.replace(SLUG_PLACEHOLDER, slug)


@dataclass(slots=True)
class TelegramConfig:
    bot_id: str
    recipient_id: str   # personal chat id or group id


@dataclass(slots=True)
class StoreConfig:
    slugs: list[str]
    store_url_template: str    # "%s" -> slug, used for the alert link
    stats_url_template: str    # "%s" -> slug, the JSON stats endpoint
    max: float
    min: float
    json_path: list[str]
    multiplier: float = 1.0
    name: str = ""

    def __post_init__(self):
        if not self.name:
            self.name = urlsplit(self.stats_url_template).netloc or self.stats_url_template

    def stats_url(self, slug: str) -> str:
        return fill_slug(self.stats_url_template, slug)


@dataclass(slots=True)
class Config:
    telegram: Optional[TelegramConfig]   # None only when loaded for a dry run
    stores: list[StoreConfig]
    history_path: str
    poll_interval_s: float = DEFAULT_POLL_INTERVAL_S
    request_timeout_s: float = DEFAULT_REQUEST_TIMEOUT_S


# --------- parsing helpers ----------

def _require(raw: dict, key: str, where: str) -> Any:
    if key not in raw:
        raise ConfigError("missing", field=f"{where}.{key}" if where else key)
    return raw[key]

def _number(v: Any, name: str) -> float:
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        raise ConfigError(f"expected a number, got {v!r}", field=name)
    return float(v)

def _str_list(v: Any, name: str) -> list[str]:
    if not isinstance(v, list) or not all(isinstance(x, str) for x in v):
        raise ConfigError(f"expected a list of strings, got {v!r}", field=name)
    return list(v)

def _template(v: Any, name: str) -> str:
    if not isinstance(v, str) or SLUG_PLACEHOLDER not in v:
        raise ConfigError(f"expected a string containing %s, got {v!r}", field=name)
    return v


def store_from_dict(raw: Any, where: str = "stores[0]") -> StoreConfig:
    if not isinstance(raw, dict):
        raise ConfigError("expected an object", field=where)
    slugs = _str_list(_require(raw, "collection_slugs", where), f"{where}.collection_slugs")
    json_path = _str_list(_require(raw, "json_map", where), f"{where}.json_map")
    if not json_path:
        raise ConfigError("must not be empty", field=f"{where}.json_map")
    lo = _number(_require(raw, "min", where), f"{where}.min")
    hi = _number(_require(raw, "max", where), f"{where}.max")
    if lo >= hi:
        raise ConfigError(f"min ({lo}) must be below max ({hi})", field=where)
    name = raw.get("name", "")
    if not isinstance(name, str):
        raise ConfigError(f"expected a string, got {name!r}", field=f"{where}.name")
    return StoreConfig(
        # config order, duplicates dropped
        slugs=list(dict.fromkeys(slugs)),
        store_url_template=_template(_require(raw, "store_url", where), f"{where}.store_url"),
        stats_url_template=_template(_require(raw, "stats_url", where), f"{where}.stats_url"),
        max=hi,
        min=lo,
        json_path=json_path,
        multiplier=_number(raw.get("multiplier", 1.0), f"{where}.multiplier"),
        name=name,
    )


def config_from_dict(raw: Any, *, require_telegram: bool = True) -> Config:
    """
    Validate a decoded config document. Env TELEGRAM_BOT_TOKEN / TELEGRAM_CHAT_ID
    take precedence over the file's telegram block. With require_telegram=False
    a missing telegram block yields Config.telegram = None.
    """
    if not isinstance(raw, dict):
        raise ConfigError("config root must be an object")

    tg_raw = raw.get("telegram") or {}
    if not isinstance(tg_raw, dict):
        raise ConfigError("expected an object", field="telegram")
    bot_id = os.getenv("TELEGRAM_BOT_TOKEN") or tg_raw.get("bot_id")
    recipient_id = os.getenv("TELEGRAM_CHAT_ID") or tg_raw.get("recipient_id")
    telegram: Optional[TelegramConfig] = None
    if bot_id and recipient_id:
        telegram = TelegramConfig(bot_id=str(bot_id), recipient_id=str(recipient_id))
    elif require_telegram:
        if not bot_id:
            raise ConfigError("missing (or set TELEGRAM_BOT_TOKEN)", field="telegram.bot_id")
        raise ConfigError("missing (or set TELEGRAM_CHAT_ID)", field="telegram.recipient_id")

    stores_raw = _require(raw, "stores", "")
    if not isinstance(stores_raw, list) or not stores_raw:
        raise ConfigError("expected a non-empty list", field="stores")
    stores = [store_from_dict(s, f"stores[{i}]") for i, s in enumerate(stores_raw)]

    history_path = _require(raw, "history_json_path", "")
    if not isinstance(history_path, str) or not history_path:
        raise ConfigError("expected a file path", field="history_json_path")

    interval = _number(raw.get("poll_interval_s", DEFAULT_POLL_INTERVAL_S), "poll_interval_s")
    timeout = _number(raw.get("request_timeout_s", DEFAULT_REQUEST_TIMEOUT_S), "request_timeout_s")
    if interval < 0:
        raise ConfigError("must be >= 0", field="poll_interval_s")
    if timeout <= 0:
        raise ConfigError("must be > 0", field="request_timeout_s")

    return Config(
        telegram=telegram,
        stores=stores,
        history_path=history_path,
        poll_interval_s=interval,
        request_timeout_s=timeout,
    )


def load_config(
    path: str | os.PathLike[str],
    *,
    require_telegram: bool = True,
    poll_interval_s: Optional[float] = None,
) -> Config:
    """Read and validate the JSON config file. Any failure is a ConfigError."""
    p = Path(path)
    try:
        raw = json.loads(p.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"cannot open configuration file {p}: {e}") from e
    except ValueError as e:
        raise ConfigError(f"cannot parse configuration file {p}: {e}") from e
    cfg = config_from_dict(raw, require_telegram=require_telegram)
    if poll_interval_s is not None:
        cfg.poll_interval_s = float(poll_interval_s)
    return cfg

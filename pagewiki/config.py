from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_QUEUE = "wikidb.queue"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got '{raw}'") from None


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got '{raw}'") from None
    if value < 1:
        raise ValueError(f"{name} must be at least 1, got {value}")
    return value


@dataclass
class Settings:
    db_path: str = "db/wiki.db"
    queue: str = DEFAULT_QUEUE
    sql_queries: str | None = None
    max_pool_size: int = 30
    acquire_timeout_s: float = 10.0
    reply_timeout_s: float = 30.0
    host: str = "0.0.0.0"
    port: int = 8080

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            db_path=os.getenv("WIKIDB_PATH", "db/wiki.db"),
            queue=os.getenv("WIKIDB_QUEUE", DEFAULT_QUEUE) or DEFAULT_QUEUE,
            sql_queries=os.getenv("WIKIDB_SQL_QUERIES") or None,
            max_pool_size=_env_int("WIKIDB_MAX_POOL_SIZE", 30),
            acquire_timeout_s=_env_float("WIKIDB_ACQUIRE_TIMEOUT_S", 10.0),
            reply_timeout_s=_env_float("WIKIDB_REPLY_TIMEOUT_S", 30.0),
            host=os.getenv("SERVER_HOST", "0.0.0.0"),
            port=_env_int("SERVER_PORT", 8080),
        )

"""
Service configuration.

Values are read from the environment (a `.env` file at the project root is
loaded first). Every setting has a default so the service layer works with no
configuration beyond the Supabase credentials.

Environment variables:
- SALE_COMMIT_MAX_ATTEMPTS: snapshot+commit attempts before giving up on a
  stock conflict (default 3)
- NEAR_EXPIRY_DAYS: default lookahead for near-expiry reports (default 30)
- LOW_STOCK_THRESHOLD: default threshold for low-stock reports (default 10)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from domain.analytics import DEFAULT_LOW_STOCK_THRESHOLD, DEFAULT_NEAR_EXPIRY_DAYS

env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)


def _int_setting(env: Mapping[str, str], name: str, default: int, *, minimum: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value}")
    return value


@dataclass(frozen=True, slots=True)
class ServiceConfig:
    sale_commit_max_attempts: int = 3
    near_expiry_days: int = DEFAULT_NEAR_EXPIRY_DAYS
    low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD

    @staticmethod
    def from_env(env: Optional[Mapping[str, str]] = None) -> "ServiceConfig":
        source = os.environ if env is None else env
        return ServiceConfig(
            sale_commit_max_attempts=_int_setting(source, "SALE_COMMIT_MAX_ATTEMPTS", 3, minimum=1),
            near_expiry_days=_int_setting(source, "NEAR_EXPIRY_DAYS", DEFAULT_NEAR_EXPIRY_DAYS, minimum=0),
            low_stock_threshold=_int_setting(source, "LOW_STOCK_THRESHOLD", DEFAULT_LOW_STOCK_THRESHOLD, minimum=0),
        )


def get_config() -> ServiceConfig:
    """Current configuration, read from the environment on each call."""

    return ServiceConfig.from_env()


__all__ = [
    "ServiceConfig",
    "get_config",
]

"""Runtime configuration, read from the environment (and a local .env)."""

from __future__ import annotations

import os
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# src/tms/infrastructure/config.py -> repository root
_PROJECT_ROOT = Path(__file__).resolve().parents[3]


def _decimal(name: str, default: str) -> Decimal:
    raw = os.getenv(name, default)
    try:
        value = Decimal(raw)
    except InvalidOperation as exc:
        raise ValueError(f"{name} must be a decimal amount, got {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"{name} must be greater than zero, got {raw!r}")
    return value


def _positive_int(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


class Config:
    """Settings resolved once per instance from environment variables."""

    def __init__(self) -> None:
        self.DATA_DIR = Path(os.getenv("TMS_DATA_DIR", str(_PROJECT_ROOT / "data")))
        self.LOG_LEVEL = os.getenv("TMS_LOG_LEVEL", "INFO").upper()
        self.LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        self.LOG_FILE = os.getenv("TMS_LOG_FILE") or None
        self.DEFAULT_EVALUATED_PRICE = _decimal("TMS_DEFAULT_EVALUATED_PRICE", "30.00")
        self.DEFAULT_CV_ONLY_PRICE = _decimal("TMS_DEFAULT_CV_ONLY_PRICE", "7.50")
        self.DEFAULT_PROVINCE = os.getenv("TMS_DEFAULT_PROVINCE", "QC").strip().upper()
        self.SHARE_LINK_DAYS = _positive_int("TMS_SHARE_LINK_DAYS", "30")
        self.PUBLIC_URL = os.getenv("TMS_PUBLIC_URL", "http://localhost:5173")

    @property
    def orders_file(self) -> Path:
        return self.DATA_DIR / "orders.json"

    @property
    def pricing_file(self) -> Path:
        return self.DATA_DIR / "pricing.json"

    @property
    def catalogues_file(self) -> Path:
        return self.DATA_DIR / "catalogues.json"

    @property
    def candidates_file(self) -> Path:
        return self.DATA_DIR / "candidates.json"

    @property
    def lock_dir(self) -> Path:
        return self.DATA_DIR / ".locks"


@lru_cache(maxsize=None)
def get_config() -> Config:
    return Config()

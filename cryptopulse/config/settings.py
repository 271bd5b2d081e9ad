import os
from functools import lru_cache

from pydantic import BaseModel, field_validator, model_validator

from cryptopulse.errors import ConfigurationError
from cryptopulse.services.symbols import MAX_HISTORY_LIMIT, VALID_INTERVALS, build_asset_keys

DEFAULT_SYMBOLS = ["BTCUSDT", "ETHUSDT", "DOGEUSDT", "SOLUSDT", "ADAUSDT"]


class Settings(BaseModel):
    HOST: str = "0.0.0.0"
    PORT: int = 5000
    SYMBOLS: list[str] = DEFAULT_SYMBOLS
    QUOTE_ASSET: str = "USDT"
    UPSTREAM_BASE_URL: str = "https://api.binance.com"
    UPSTREAM_TIMEOUT_SEC: float = 5.0
    HISTORY_SYMBOL: str = "BTCUSDT"
    HISTORY_INTERVAL: str = "1h"
    HISTORY_LIMIT: int = 24
    API_BASE_URL: str = "http://localhost:5000"
    POLL_INTERVAL_MS: int = 3000
    CHART_ASSET: str = "btc"

    @field_validator("SYMBOLS")
    @classmethod
    def normalize_symbols(cls, value: list[str]) -> list[str]:
        symbols = [s.strip().upper() for s in value if s.strip()]
        if not symbols:
            raise ValueError("at least one symbol is required")
        return symbols

    @field_validator("QUOTE_ASSET", "HISTORY_SYMBOL")
    @classmethod
    def upper(cls, value: str) -> str:
        return value.strip().upper()

    @field_validator("CHART_ASSET")
    @classmethod
    def lower(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("HISTORY_INTERVAL")
    @classmethod
    def validate_interval(cls, value: str) -> str:
        if value not in VALID_INTERVALS:
            raise ValueError(f"unsupported interval: {value}")
        return value

    @field_validator("HISTORY_LIMIT")
    @classmethod
    def validate_limit(cls, value: int) -> int:
        if not 1 <= value <= MAX_HISTORY_LIMIT:
            raise ValueError(f"limit must be between 1 and {MAX_HISTORY_LIMIT}")
        return value

    @field_validator("PORT", "POLL_INTERVAL_MS")
    @classmethod
    def positive_int(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be positive")
        return value

    @field_validator("UPSTREAM_TIMEOUT_SEC")
    @classmethod
    def positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeout must be positive")
        return value

    @model_validator(mode="after")
    def check_tracked_set(self) -> "Settings":
        try:
            keys = build_asset_keys(self.SYMBOLS, self.QUOTE_ASSET)
        except ConfigurationError as exc:
            raise ValueError(str(exc)) from exc
        if self.HISTORY_SYMBOL not in keys:
            raise ValueError(f"history symbol {self.HISTORY_SYMBOL} is not tracked")
        if self.CHART_ASSET not in keys.values():
            raise ValueError(f"chart asset {self.CHART_ASSET} is not tracked")
        return self

    @property
    def poll_interval_sec(self) -> float:
        return self.POLL_INTERVAL_MS / 1000.0

    @classmethod
    def from_env(cls) -> "Settings":
        raw_symbols = os.getenv("CRYPTOPULSE_SYMBOLS", ",".join(DEFAULT_SYMBOLS))
        symbols = [s.strip() for s in raw_symbols.split(",") if s.strip()]

        values = {
            "HOST": os.getenv("CRYPTOPULSE_HOST"),
            "PORT": os.getenv("CRYPTOPULSE_PORT"),
            "SYMBOLS": symbols,
            "QUOTE_ASSET": os.getenv("CRYPTOPULSE_QUOTE_ASSET"),
            "UPSTREAM_BASE_URL": os.getenv("CRYPTOPULSE_UPSTREAM_BASE_URL"),
            "UPSTREAM_TIMEOUT_SEC": os.getenv("CRYPTOPULSE_UPSTREAM_TIMEOUT_SEC"),
            "HISTORY_SYMBOL": os.getenv("CRYPTOPULSE_HISTORY_SYMBOL"),
            "HISTORY_INTERVAL": os.getenv("CRYPTOPULSE_HISTORY_INTERVAL"),
            "HISTORY_LIMIT": os.getenv("CRYPTOPULSE_HISTORY_LIMIT"),
            "API_BASE_URL": os.getenv("CRYPTOPULSE_API_BASE_URL"),
            "POLL_INTERVAL_MS": os.getenv("CRYPTOPULSE_POLL_INTERVAL_MS"),
            "CHART_ASSET": os.getenv("CRYPTOPULSE_CHART_ASSET"),
        }
        # unset variables fall back to the model defaults
        return cls.model_validate({k: v for k, v in values.items() if v is not None})


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()

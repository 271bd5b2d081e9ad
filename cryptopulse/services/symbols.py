from __future__ import annotations

from cryptopulse.errors import ConfigurationError

MAX_HISTORY_LIMIT = 1000

VALID_INTERVALS = (
    "1m", "3m", "5m", "15m", "30m",
    "1h", "2h", "4h", "6h", "8h", "12h",
    "1d", "3d", "1w", "1M",
)


def normalize_symbol(symbol: str) -> str:
    return str(symbol).strip().upper()


def asset_key(symbol: str, quote_asset: str = "USDT") -> str:
    """Strip the quote suffix from a trading pair and lowercase the base, e.g. BTCUSDT -> btc.

    Symbols are upper-cased first, so distinct symbols always yield distinct keys.
    """
    value = normalize_symbol(symbol)
    suffix = quote_asset.upper()
    if not value.endswith(suffix):
        raise ConfigurationError(f"symbol {value} is not quoted in {suffix}")
    base = value[: -len(suffix)]
    if not base:
        raise ConfigurationError(f"symbol {value} has no base asset")
    return base.lower()


def build_asset_keys(symbols: list[str], quote_asset: str = "USDT") -> dict[str, str]:
    """Ordered {symbol: asset key} for the tracked set; repeated symbols collapse to one entry."""
    keys: dict[str, str] = {}
    for symbol in symbols:
        normalized = normalize_symbol(symbol)
        keys[normalized] = asset_key(normalized, quote_asset)
    return keys

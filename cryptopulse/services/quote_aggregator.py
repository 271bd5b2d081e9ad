from __future__ import annotations

import math
from typing import Any

from cryptopulse.errors import ConfigurationError, UpstreamFetchError
from cryptopulse.schemas.quote import CandlePoint, format_time_of_day
from cryptopulse.services.symbols import MAX_HISTORY_LIMIT, VALID_INTERVALS, build_asset_keys


def normalize_candle(record: Any, *, symbol: str) -> CandlePoint:
    if not isinstance(record, (list, tuple)) or len(record) < 5:
        raise UpstreamFetchError(f"malformed candle record for {symbol}: {record!r}", symbol=symbol)
    try:
        ts = int(record[0])
        price = float(record[4])
        if not math.isfinite(price):
            raise ValueError("price is not finite")
    except (TypeError, ValueError, OverflowError) as exc:
        raise UpstreamFetchError(
            f"non-numeric candle field for {symbol}: {record!r}", symbol=symbol
        ) from exc
    return CandlePoint(time=format_time_of_day(ts), price=price, ts=ts)


class QuoteAggregatorService:
    """Fetches spot prices for the tracked symbols and hourly candle history."""

    def __init__(self, *, rest_client, symbols: list[str], quote_asset: str = "USDT") -> None:
        self.rest_client = rest_client
        self.quote_asset = quote_asset.upper()
        self.asset_keys = build_asset_keys(symbols, self.quote_asset)

        self.price_requests = 0
        self.history_requests = 0
        self.upstream_calls = 0
        self.upstream_failures = 0
        self.last_error: str | None = None

    @property
    def symbols(self) -> list[str]:
        return list(self.asset_keys)

    def resolve_symbol(self, value: str) -> str:
        """Accept either a tracked symbol (BTCUSDT) or its asset key (btc)."""
        candidate = str(value).strip()
        if candidate.upper() in self.asset_keys:
            return candidate.upper()
        for symbol, key in self.asset_keys.items():
            if key == candidate.lower():
                return symbol
        raise ConfigurationError(f"symbol {candidate} is not tracked")

    def _record_failure(self, exc: UpstreamFetchError) -> None:
        self.upstream_failures += 1
        self.last_error = str(exc)
        print(
            f"[UPSTREAM][fetch_error] symbol={exc.symbol} status={exc.status_code} error={exc}",
            flush=True,
        )

    def get_latest_prices(self) -> dict[str, float]:
        self.price_requests += 1
        prices: dict[str, float] = {}
        for symbol, key in self.asset_keys.items():
            self.upstream_calls += 1
            try:
                prices[key] = self.rest_client.get_ticker_price(symbol)
            except UpstreamFetchError as exc:
                self._record_failure(exc)
                raise
        return prices

    def get_price_history(self, symbol: str, interval: str = "1h", limit: int = 24) -> list[CandlePoint]:
        resolved = self.resolve_symbol(symbol)
        if interval not in VALID_INTERVALS:
            raise ConfigurationError(f"unsupported interval: {interval}")
        if isinstance(limit, bool) or not isinstance(limit, int) or not 1 <= limit <= MAX_HISTORY_LIMIT:
            raise ConfigurationError(f"limit must be between 1 and {MAX_HISTORY_LIMIT}")

        self.history_requests += 1
        self.upstream_calls += 1
        try:
            records = self.rest_client.get_klines(resolved, interval, limit)
            return [normalize_candle(record, symbol=resolved) for record in records]
        except UpstreamFetchError as exc:
            self._record_failure(exc)
            raise

    def metrics(self) -> dict[str, int | str | None]:
        return {
            "price_requests": self.price_requests,
            "history_requests": self.history_requests,
            "upstream_calls": self.upstream_calls,
            "upstream_failures": self.upstream_failures,
            "last_error": self.last_error,
        }

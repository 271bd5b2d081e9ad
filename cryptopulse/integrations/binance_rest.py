from __future__ import annotations

import math
from typing import Any, Optional

import requests

from cryptopulse.errors import UpstreamFetchError


class BinanceRestClient:
    """Public spot market data client: latest ticker price and klines."""

    def __init__(
        self,
        base_url: str = "https://api.binance.com",
        timeout_sec: float = 5.0,
        session: Optional[Any] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_sec = timeout_sec
        self.session = session or requests

    def _get_json(self, path: str, params: dict, *, symbol: str) -> Any:
        try:
            response = self.session.get(
                f"{self.base_url}{path}",
                params=params,
                timeout=self.timeout_sec,
            )
            response.raise_for_status()
        except requests.HTTPError as exc:
            status_code = getattr(exc.response, "status_code", None)
            raise UpstreamFetchError(
                f"upstream returned status {status_code} for {symbol}",
                symbol=symbol,
                status_code=status_code,
            ) from exc
        except requests.RequestException as exc:
            raise UpstreamFetchError(
                f"upstream request failed for {symbol}: {exc}", symbol=symbol
            ) from exc

        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamFetchError(
                f"upstream returned malformed JSON for {symbol}", symbol=symbol
            ) from exc

    @staticmethod
    def _to_price(value: Any, *, symbol: str) -> float:
        try:
            if value is None or value == "":
                raise ValueError("missing price")
            price = float(value)
            if not math.isfinite(price):
                raise ValueError("price is not finite")
            return price
        except (TypeError, ValueError) as exc:
            raise UpstreamFetchError(
                f"invalid price for {symbol}: {value!r}", symbol=symbol
            ) from exc

    def get_ticker_price(self, symbol: str) -> float:
        payload = self._get_json("/api/v3/ticker/price", {"symbol": symbol}, symbol=symbol)
        if not isinstance(payload, dict):
            raise UpstreamFetchError(f"ticker payload for {symbol} is not an object", symbol=symbol)
        return self._to_price(payload.get("price"), symbol=symbol)

    def get_klines(self, symbol: str, interval: str, limit: int) -> list[list]:
        payload = self._get_json(
            "/api/v3/klines",
            {"symbol": symbol, "interval": interval, "limit": limit},
            symbol=symbol,
        )
        if not isinstance(payload, list):
            raise UpstreamFetchError(f"klines payload for {symbol} is not an array", symbol=symbol)
        return payload

from __future__ import annotations

from typing import Any, Optional

import requests

from cryptopulse.errors import UpstreamFetchError
from cryptopulse.schemas.quote import CandlePoint


class AggregatorClient:
    """Reads /api/prices and /api/history from the quote aggregator."""

    def __init__(
        self,
        base_url: str = "http://localhost:5000",
        timeout_sec: float = 5.0,
        session: Optional[Any] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_sec = timeout_sec
        self.session = session or requests

    def _get_json(self, path: str) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.get(url, timeout=self.timeout_sec)
            response.raise_for_status()
            return response.json()
        except requests.HTTPError as exc:
            status_code = getattr(exc.response, "status_code", None)
            raise UpstreamFetchError(
                f"aggregator returned status {status_code} for {path}",
                status_code=status_code,
            ) from exc
        except requests.RequestException as exc:
            raise UpstreamFetchError(f"aggregator request failed for {path}: {exc}") from exc
        except ValueError as exc:
            raise UpstreamFetchError(f"aggregator returned malformed JSON for {path}") from exc

    def get_prices(self) -> dict[str, float]:
        payload = self._get_json("/api/prices")
        if not isinstance(payload, dict):
            raise UpstreamFetchError("price snapshot is not an object")
        try:
            return {str(key): float(value) for key, value in payload.items()}
        except (TypeError, ValueError) as exc:
            raise UpstreamFetchError(f"price snapshot has a non-numeric value: {payload!r}") from exc

    def get_history(self) -> list[CandlePoint]:
        payload = self._get_json("/api/history")
        if not isinstance(payload, list):
            raise UpstreamFetchError("history payload is not an array")
        try:
            return [CandlePoint.model_validate(row) for row in payload]
        except ValueError as exc:
            raise UpstreamFetchError(f"history payload has a malformed point: {exc}") from exc

from __future__ import annotations


class CryptoPulseError(Exception):
    """Base error for the price dashboard."""


class UpstreamFetchError(CryptoPulseError):
    def __init__(
        self,
        message: str,
        *,
        symbol: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.symbol = symbol
        self.status_code = status_code


class ConfigurationError(CryptoPulseError, ValueError):
    pass

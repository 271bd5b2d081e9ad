import unittest
from datetime import datetime

from cryptopulse.errors import ConfigurationError, UpstreamFetchError
from cryptopulse.services.quote_aggregator import QuoteAggregatorService, normalize_candle

SYMBOLS = ["BTCUSDT", "ETHUSDT", "DOGEUSDT", "SOLUSDT", "ADAUSDT"]
PRICES = {
    "BTCUSDT": 50000.12,
    "ETHUSDT": 3000.5,
    "DOGEUSDT": 0.1234,
    "SOLUSDT": 150.0,
    "ADAUSDT": 0.45,
}


def _klines(count: int, start_ms: int = 1700000000000) -> list[list]:
    return [
        [start_ms + i * 3600000, "1.0", "2.0", "0.5", f"{100 + i}.25", "10.0", start_ms + (i + 1) * 3600000 - 1]
        for i in range(count)
    ]


class StubRestClient:
    def __init__(self, prices: dict, klines: list | None = None) -> None:
        self.prices = prices
        self.klines = klines or []
        self.ticker_calls: list[str] = []
        self.kline_calls: list[tuple] = []

    def get_ticker_price(self, symbol: str) -> float:
        self.ticker_calls.append(symbol)
        return self.prices[symbol]

    def get_klines(self, symbol: str, interval: str, limit: int) -> list[list]:
        self.kline_calls.append((symbol, interval, limit))
        return self.klines


class FailingSymbolRestClient(StubRestClient):
    def __init__(self, prices: dict, failing_symbol: str) -> None:
        super().__init__(prices)
        self.failing_symbol = failing_symbol

    def get_ticker_price(self, symbol: str) -> float:
        self.ticker_calls.append(symbol)
        if symbol == self.failing_symbol:
            raise UpstreamFetchError(f"timeout:{symbol}", symbol=symbol)
        return self.prices[symbol]


class QuoteAggregatorServiceTest(unittest.TestCase):
    def test_latest_prices_has_one_entry_per_symbol_keyed_by_asset(self):
        rest_client = StubRestClient(PRICES)
        service = QuoteAggregatorService(rest_client=rest_client, symbols=SYMBOLS)

        prices = service.get_latest_prices()

        self.assertEqual(
            prices,
            {"btc": 50000.12, "eth": 3000.5, "doge": 0.1234, "sol": 150.0, "ada": 0.45},
        )
        self.assertEqual(rest_client.ticker_calls, SYMBOLS)

    def test_latest_prices_is_idempotent_under_stable_upstream(self):
        service = QuoteAggregatorService(rest_client=StubRestClient(PRICES), symbols=SYMBOLS)

        self.assertEqual(service.get_latest_prices(), service.get_latest_prices())

    def test_one_failing_symbol_fails_whole_snapshot(self):
        rest_client = FailingSymbolRestClient(PRICES, failing_symbol="DOGEUSDT")
        service = QuoteAggregatorService(rest_client=rest_client, symbols=SYMBOLS)

        with self.assertRaises(UpstreamFetchError) as ctx:
            service.get_latest_prices()

        self.assertEqual(ctx.exception.symbol, "DOGEUSDT")
        # symbols after the failure are never queried
        self.assertEqual(rest_client.ticker_calls, ["BTCUSDT", "ETHUSDT", "DOGEUSDT"])
        metrics = service.metrics()
        self.assertEqual(metrics["upstream_failures"], 1)
        self.assertIn("DOGEUSDT", metrics["last_error"])

    def test_history_returns_all_points_oldest_first(self):
        rows = _klines(24)
        rest_client = StubRestClient(PRICES, klines=rows)
        service = QuoteAggregatorService(rest_client=rest_client, symbols=SYMBOLS)

        points = service.get_price_history("BTCUSDT", "1h", 24)

        self.assertEqual(len(points), 24)
        self.assertEqual(rest_client.kline_calls, [("BTCUSDT", "1h", 24)])
        for point, row in zip(points, rows):
            self.assertEqual(point.ts, row[0])
            self.assertEqual(point.price, float(row[4]))
            self.assertEqual(point.time, datetime.fromtimestamp(row[0] / 1000).strftime("%X"))
        self.assertEqual([p.ts for p in points], sorted(p.ts for p in points))

    def test_history_with_short_upstream_returns_fewer_points(self):
        service = QuoteAggregatorService(rest_client=StubRestClient(PRICES, klines=_klines(5)), symbols=SYMBOLS)

        self.assertEqual(len(service.get_price_history("BTCUSDT", "1h", 24)), 5)

    def test_history_accepts_asset_key(self):
        rest_client = StubRestClient(PRICES, klines=_klines(1))
        service = QuoteAggregatorService(rest_client=rest_client, symbols=SYMBOLS)

        service.get_price_history("eth", "4h", 10)

        self.assertEqual(rest_client.kline_calls, [("ETHUSDT", "4h", 10)])

    def test_history_rejects_invalid_arguments_before_calling_upstream(self):
        rest_client = StubRestClient(PRICES, klines=_klines(1))
        service = QuoteAggregatorService(rest_client=rest_client, symbols=SYMBOLS)

        for args in (("XRPUSDT", "1h", 24), ("BTCUSDT", "7h", 24), ("BTCUSDT", "1h", 0), ("BTCUSDT", "1h", 1001)):
            with self.subTest(args=args):
                with self.assertRaises(ConfigurationError):
                    service.get_price_history(*args)
        self.assertEqual(rest_client.kline_calls, [])

    def test_malformed_candle_fails_history(self):
        for record in (
            [1700000000000, "1", "2"],
            [1700000000000, "1", "2", "0.5", "n/a"],
            [1700000000000, "1", "2", "0.5", "NaN"],
            [1700000000000, "1", "2", "0.5", "inf"],
            [float("inf"), "1", "2", "0.5", "1.0"],
            "oops",
            [None, 1, 1, 1, "1"],
        ):
            with self.subTest(record=record):
                with self.assertRaises(UpstreamFetchError):
                    normalize_candle(record, symbol="BTCUSDT")

    def test_malformed_record_in_history_counts_as_failure(self):
        rows = _klines(3)
        rows[1] = [rows[1][0]]
        service = QuoteAggregatorService(rest_client=StubRestClient(PRICES, klines=rows), symbols=SYMBOLS)

        with self.assertRaises(UpstreamFetchError):
            service.get_price_history("BTCUSDT", "1h", 3)
        self.assertEqual(service.metrics()["upstream_failures"], 1)


if __name__ == "__main__":
    unittest.main()

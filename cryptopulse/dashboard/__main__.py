from __future__ import annotations

import argparse
from pathlib import Path

from cryptopulse.config.settings import get_settings
from cryptopulse.dashboard.api_client import AggregatorClient
from cryptopulse.dashboard.poller import DashboardPoller
from cryptopulse.dashboard.presentation import export_csv, render_chart_summary, render_table
from cryptopulse.services.symbols import build_asset_keys


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="cryptopulse.dashboard", description="Live crypto price table")
    parser.add_argument("--favorite", action="append", default=[], help="asset key to pin, e.g. eth")
    parser.add_argument("--dark", action="store_true", help="start in dark mode")
    parser.add_argument("--export", type=Path, default=None, help="write a CSV snapshot on exit")
    args = parser.parse_args(argv)

    settings = get_settings()
    assets = list(build_asset_keys(settings.SYMBOLS, settings.QUOTE_ASSET).values())

    def render(state) -> None:
        mode = "dark" if state.dark_mode else "light"
        print(f"CryptoPulse: Live Prices [{state.status.lower()}, {mode}]", flush=True)
        print("\n".join(render_table(state, assets)), flush=True)
        print(render_chart_summary(state, settings.CHART_ASSET), flush=True)

    poller = DashboardPoller(
        AggregatorClient(base_url=settings.API_BASE_URL, timeout_sec=settings.UPSTREAM_TIMEOUT_SEC),
        chart_asset=settings.CHART_ASSET,
        window_size=settings.HISTORY_LIMIT,
        poll_interval_sec=settings.poll_interval_sec,
        on_update=render,
    )
    for asset in args.favorite:
        poller.toggle_favorite(asset.strip().lower())
    if args.dark:
        poller.toggle_dark_mode()

    poller.start()
    try:
        while not poller.stopped:
            poller.wait(1.0)
    except KeyboardInterrupt:
        pass
    finally:
        snapshot = poller.state.prices
        poller.stop()

    if args.export is not None:
        args.export.write_text(export_csv(snapshot, assets) + "\n", encoding="utf-8")
        print(f"[DASHBOARD][export] path={args.export}", flush=True)


if __name__ == "__main__":
    main()

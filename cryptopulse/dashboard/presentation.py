from __future__ import annotations

from typing import Iterable, Mapping

from cryptopulse.dashboard.state import DashboardState

CSV_HEADER = ("Crypto", "Price (USD)")
LOADING = "Loading..."
WAITING_FOR_DATA = "Waiting for data..."


def export_csv(snapshot: Mapping[str, float], assets: Iterable[str]) -> str:
    """Serialize a price snapshot as CSV rows in the given asset order."""
    lines = [",".join(CSV_HEADER)]
    for asset in assets:
        price = snapshot.get(asset)
        value = "N/A" if price is None else f"{float(price):.4f}"
        lines.append(f"{asset.upper()},{value}")
    return "\n".join(lines)


def sort_for_display(assets: Iterable[str], favorites: Iterable[str]) -> list[str]:
    """Favorites first; relative order is otherwise preserved."""
    pinned = set(favorites)
    return sorted(assets, key=lambda asset: 0 if asset in pinned else 1)


def format_price_cell(price: float | None) -> str:
    if price is None:
        return LOADING
    return f"${price:.2f}"


def render_table(state: DashboardState, assets: Iterable[str]) -> list[str]:
    rows = [f"   {CSV_HEADER[0]:<8} {CSV_HEADER[1]}"]
    for asset in sort_for_display(assets, state.favorites):
        star = "*" if asset in state.favorites else "-"
        rows.append(f"{star}  {asset.upper():<8} {format_price_cell(state.prices.get(asset))}")
    return rows


def render_chart_summary(state: DashboardState, chart_asset: str = "btc") -> str:
    if not state.history:
        return WAITING_FOR_DATA
    prices = [point.price for point in state.history]
    first, last = state.history[0], state.history[-1]
    return (
        f"{chart_asset.upper()} {len(prices)} pts "
        f"{first.time}..{last.time} "
        f"low={min(prices):.2f} high={max(prices):.2f} last={last.price:.2f}"
    )

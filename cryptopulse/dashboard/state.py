from __future__ import annotations

import time

from pydantic import BaseModel

from cryptopulse.schemas.quote import CandlePoint, format_time_of_day

INITIALIZING = "INITIALIZING"
POLLING = "POLLING"
STOPPED = "STOPPED"


class DashboardState(BaseModel):
    """Everything one dashboard session owns; replaced wholesale on every update."""

    status: str = INITIALIZING
    prices: dict[str, float] = {}
    history: list[CandlePoint] = []
    favorites: list[str] = []
    dark_mode: bool = False
    loaded: bool = False
    last_error: str | None = None
    successful_polls: int = 0
    failed_polls: int = 0


def append_to_window(
    history: list[CandlePoint], point: CandlePoint, max_len: int
) -> list[CandlePoint]:
    """Append to a count-bounded window, dropping the oldest points first."""
    if max_len < 1:
        return []
    window = [*history, point]
    return window[-max_len:]


def seed_history(state: DashboardState, points: list[CandlePoint], max_len: int) -> DashboardState:
    return state.model_copy(update={"history": list(points)[-max_len:] if max_len > 0 else []})


def apply_snapshot(
    state: DashboardState,
    snapshot: dict[str, float],
    *,
    chart_asset: str,
    max_len: int,
    now: float | None = None,
) -> DashboardState:
    history = state.history
    price = snapshot.get(chart_asset)
    if price is not None:
        ts = int((time.time() if now is None else now) * 1000)
        point = CandlePoint(time=format_time_of_day(ts), price=price, ts=ts)
        history = append_to_window(history, point, max_len)

    return state.model_copy(
        update={
            "prices": dict(snapshot),
            "history": history,
            "loaded": True,
            "last_error": None,
            "successful_polls": state.successful_polls + 1,
        }
    )


def record_failure(state: DashboardState, error: str) -> DashboardState:
    # last-known-good prices and history stay on screen
    return state.model_copy(
        update={"last_error": error, "failed_polls": state.failed_polls + 1}
    )


def with_status(state: DashboardState, status: str) -> DashboardState:
    return state.model_copy(update={"status": status})


def toggle_favorite(state: DashboardState, asset: str) -> DashboardState:
    if asset in state.favorites:
        favorites = [f for f in state.favorites if f != asset]
    else:
        favorites = [*state.favorites, asset]
    return state.model_copy(update={"favorites": favorites})


def toggle_dark_mode(state: DashboardState) -> DashboardState:
    return state.model_copy(update={"dark_mode": not state.dark_mode})

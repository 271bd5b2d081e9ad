from __future__ import annotations

import threading
import time
from typing import Callable, Optional

from cryptopulse.dashboard import state as session
from cryptopulse.dashboard.state import DashboardState
from cryptopulse.errors import UpstreamFetchError


class DashboardPoller:
    """Seeds the chart window, then polls prices on a fixed period until stopped.

    Each tick fetches, applies and only then waits for the next period, so two
    polls never overlap. State is replaced under a lock as a whole object and
    nothing is applied once ``stop()`` has been called.
    """

    def __init__(
        self,
        api_client,
        *,
        chart_asset: str = "btc",
        window_size: int = 24,
        poll_interval_sec: float = 3.0,
        clock: Callable[[], float] = time.time,
        on_update: Optional[Callable[[DashboardState], None]] = None,
    ) -> None:
        self.api_client = api_client
        self.chart_asset = chart_asset
        self.window_size = window_size
        self.poll_interval_sec = poll_interval_sec
        self._clock = clock
        self._on_update = on_update
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._state = DashboardState()
        self._thread: threading.Thread | None = None

    @property
    def state(self) -> DashboardState:
        with self._lock:
            return self._state

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def wait(self, timeout: float) -> bool:
        return self._stop_event.wait(timeout)

    def _apply(self, transition: Callable[[DashboardState], DashboardState]) -> bool:
        with self._lock:
            if self._stop_event.is_set():
                return False
            self._state = transition(self._state)
            current = self._state
        if self._on_update is not None:
            self._on_update(current)
        return True

    def seed(self) -> bool:
        try:
            points = self.api_client.get_history()
        except UpstreamFetchError as exc:
            print(f"[POLL][seed_error] error={exc}", flush=True)
            return False
        return self._apply(lambda s: session.seed_history(s, points, self.window_size))

    def poll_once(self) -> bool:
        if self._stop_event.is_set():
            return False
        try:
            snapshot = self.api_client.get_prices()
        except UpstreamFetchError as exc:
            print(f"[POLL][tick_error] error={exc}", flush=True)
            self._apply(lambda s: session.record_failure(s, str(exc)))
            return False

        now = self._clock()
        return self._apply(
            lambda s: session.apply_snapshot(
                s,
                snapshot,
                chart_asset=self.chart_asset,
                max_len=self.window_size,
                now=now,
            )
        )

    def initialize(self) -> None:
        self.seed()
        self.poll_once()
        self._apply(lambda s: session.with_status(s, session.POLLING))

    def run(self) -> None:
        self.initialize()
        while not self._stop_event.wait(self.poll_interval_sec):
            self.poll_once()

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self.run, daemon=True, name="dashboard-poller")
        print(f"[POLL][start] interval_sec={self.poll_interval_sec}", flush=True)
        self._thread.start()

    def stop(self, timeout: float = 1.0) -> None:
        with self._lock:
            self._stop_event.set()
            self._state = session.with_status(self._state, session.STOPPED)
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
        print("[POLL][stop] thread=dashboard-poller", flush=True)

    def toggle_favorite(self, asset: str) -> bool:
        return self._apply(lambda s: session.toggle_favorite(s, asset))

    def toggle_dark_mode(self) -> bool:
        return self._apply(session.toggle_dark_mode)

"""Periodic live-metrics refresh for typing screens."""

from __future__ import annotations

from typing import Optional

from PySide6.QtCore import QObject, QTimer, Signal

from typecode.core.metrics import MetricsRecord
from typecode.core.session import SessionEngine


class LiveMetricsPoller(QObject):
    """Polls a session engine on a fixed interval and emits its live metrics.

    The engine owns no timers; the UI event loop drives the refresh. Polling
    stops by itself once the session completes, after one final emission.
    """

    metrics_updated = Signal(object)

    def __init__(self, engine: SessionEngine, interval_ms: int = 100, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._engine = engine
        self._timer = QTimer(self)
        self._timer.setInterval(max(1, interval_ms))
        self._timer.timeout.connect(self.poll)
        self._last: Optional[MetricsRecord] = None

    @property
    def is_running(self) -> bool:
        return self._timer.isActive()

    @property
    def interval_ms(self) -> int:
        return self._timer.interval()

    @property
    def last_metrics(self) -> Optional[MetricsRecord]:
        return self._last

    def start(self) -> None:
        self._timer.start()

    def stop(self) -> None:
        self._timer.stop()

    def poll(self) -> MetricsRecord:
        """Read the engine's live metrics and emit them."""
        metrics = self._engine.calculate_live_metrics()
        self._last = metrics
        self.metrics_updated.emit(metrics)
        if self._engine.is_complete:
            self.stop()
        return metrics

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from typecode.core.comparator import CharState, Comparison, classify, compare
from typecode.core.metrics import MetricsRecord, compute_metrics, empty_metrics
from typecode.core.snippets import Snippet

logger = logging.getLogger(__name__)


def wall_clock_ms() -> float:
    """Current wall-clock time in epoch milliseconds."""
    return time.time() * 1000.0


class SessionStatus(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    COMPLETE = "complete"


@dataclass(frozen=True)
class SessionRecord:
    """A finished or abandoned attempt, as stored in the analytics log."""

    id: str
    timestamp: int
    language: str
    snippet_id: str
    snippet_title: str
    difficulty: str
    category: str
    metrics: MetricsRecord
    completed: bool
    restarts: int = 0


def new_session_id(timestamp: int) -> str:
    return f"{timestamp}-{uuid.uuid4().hex[:9]}"


SessionSink = Callable[[SessionRecord], None]


class SessionEngine:
    """Tracks one typing attempt against a snippet.

    Lifecycle: ``IDLE`` until the first non-empty input, ``ACTIVE`` while
    typing, ``COMPLETE`` once the input equals the snippet code exactly.
    ``reset()`` returns to ``IDLE`` from any state and archives an attempt
    that was still in progress.

    Every ``update()`` recomputes the comparison from the whole input, so
    backspacing simply yields a shorter input; the start time is kept.

    Accuracy is measured against manually typed characters when the input
    surface reports them (``manual_char_hint``), so indentation inserted by
    the editor does not count as typed volume. Without a hint the raw input
    length is used.
    """

    def __init__(
        self,
        sink: Optional[SessionSink] = None,
        clock: Callable[[], float] = wall_clock_ms,
    ) -> None:
        self._sink = sink
        self._clock = clock
        self._snippet: Optional[Snippet] = None
        self._restart_count = 0
        self._clear()

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def snippet(self) -> Optional[Snippet]:
        return self._snippet

    @property
    def target(self) -> str:
        return self._snippet.code if self._snippet is not None else ""

    @property
    def input(self) -> str:
        return self._input

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def is_active(self) -> bool:
        return self._status is SessionStatus.ACTIVE

    @property
    def is_complete(self) -> bool:
        return self._status is SessionStatus.COMPLETE

    @property
    def started_at(self) -> Optional[float]:
        return self._started_at

    @property
    def ended_at(self) -> Optional[float]:
        return self._ended_at

    @property
    def correct_count(self) -> int:
        return self._comparison.correct_chars

    @property
    def total_count(self) -> int:
        return self._comparison.total_chars

    @property
    def error_positions(self) -> List[int]:
        return list(self._comparison.error_positions)

    @property
    def manual_char_count(self) -> Optional[int]:
        """Manually typed characters reported by the input surface, if any."""
        return self._manual_char_count

    @property
    def restart_count(self) -> int:
        return self._restart_count

    @property
    def metrics(self) -> Optional[MetricsRecord]:
        """Final metrics, set once the session completes."""
        return self._metrics

    @property
    def position(self) -> int:
        return len(self._input)

    @property
    def progress(self) -> float:
        """Fraction of the target typed correctly (0.0 - 1.0)."""
        target_len = len(self.target)
        if target_len == 0:
            return 0.0
        return min(self._comparison.correct_chars, target_len) / target_len

    def character_states(self) -> List[CharState]:
        return classify(self._input, self.target)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def load(self, snippet: Snippet) -> None:
        """Set a new target snippet; an attempt in progress is archived first."""
        if self._status is SessionStatus.ACTIVE:
            self.reset()
        self._snippet = snippet
        self._restart_count = 0
        self._clear()
        logger.debug("Loaded snippet %s (%d chars)", snippet.id, len(snippet.code))

    def update(self, raw_input: str, manual_char_hint: Optional[int] = None) -> Comparison:
        """Replace the current input and re-score it against the target."""
        if self._snippet is None:
            return Comparison()
        if self._status is SessionStatus.COMPLETE:
            return self._comparison
        if self._status is SessionStatus.IDLE and not raw_input:
            return self._comparison

        if self._started_at is None:
            self._started_at = self._clock()
            logger.debug("Session started for snippet %s", self._snippet.id)

        comparison = compare(raw_input, self._snippet.code)
        self._input = raw_input
        self._comparison = comparison
        if manual_char_hint is not None:
            self._manual_char_count = max(0, manual_char_hint)

        if comparison.is_complete:
            self._ended_at = self._clock()
            self._metrics = self._compute(self._ended_at)
            self._status = SessionStatus.COMPLETE
            logger.info(
                "Completed snippet %s: %.0f cpm, %.2f%% accuracy",
                self._snippet.id,
                self._metrics.cpm,
                self._metrics.accuracy,
            )
            self._emit(self._metrics, self._ended_at, completed=True)
        else:
            self._status = SessionStatus.ACTIVE
        return comparison

    def reset(self) -> None:
        """Abandon the current attempt and return to ``IDLE``.

        An active attempt is archived with ``completed=False`` and counts as a
        restart of the current snippet.
        """
        if self._status is SessionStatus.ACTIVE and self._started_at is not None:
            now = self._clock()
            metrics = self._compute(now)
            logger.info("Abandoned snippet %s after %.2fs", self._snippet.id, metrics.time_in_seconds)
            restarts = self._restart_count
            self._restart_count += 1
            self._clear()
            self._emit(metrics, now, completed=False, restarts=restarts)
            return
        self._clear()

    def calculate_live_metrics(self) -> MetricsRecord:
        """Metrics as of now, for periodic refresh by the UI."""
        if self._started_at is None:
            return empty_metrics()
        if self._status is SessionStatus.COMPLETE and self._metrics is not None:
            return self._metrics
        return self._compute(self._clock())

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _clear(self) -> None:
        self._input = ""
        self._status = SessionStatus.IDLE
        self._started_at: Optional[float] = None
        self._ended_at: Optional[float] = None
        self._comparison = Comparison()
        self._manual_char_count: Optional[int] = None
        self._metrics: Optional[MetricsRecord] = None

    def _compute(self, until: float) -> MetricsRecord:
        comparison = self._comparison
        denominator = self._manual_char_count if self._manual_char_count is not None else comparison.total_chars
        return compute_metrics(
            self._started_at if self._started_at is not None else until,
            until,
            denominator,
            comparison.correct_chars,
            len(comparison.error_positions),
        )

    def _emit(self, metrics: MetricsRecord, at: float, completed: bool, restarts: Optional[int] = None) -> None:
        if self._sink is None or self._snippet is None:
            return
        timestamp = int(at)
        snippet = self._snippet
        record = SessionRecord(
            id=new_session_id(timestamp),
            timestamp=timestamp,
            language=snippet.language,
            snippet_id=snippet.id,
            snippet_title=snippet.title,
            difficulty=snippet.difficulty,
            category=snippet.category,
            metrics=metrics,
            completed=completed,
            restarts=self._restart_count if restarts is None else restarts,
        )
        self._sink(record)

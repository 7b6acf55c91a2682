from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Tuple, Union

from typecode.core.session import SessionRecord

logger = logging.getLogger(__name__)

DEFAULT_RETENTION = 1000

TIMEFRAMES: Dict[str, Optional[timedelta]] = {
    "1d": timedelta(days=1),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
    "6m": timedelta(days=182),
    "all": None,
}

Moment = Union[datetime, int, float]


@dataclass
class DailyStats:
    date: str
    sessions_count: int = 0
    total_time_seconds: float = 0.0
    average_cpm: float = 0.0
    average_accuracy: float = 0.0
    best_cpm: float = 0.0
    best_accuracy: float = 0.0
    languages_used: List[str] = field(default_factory=list)
    completed_sessions: int = 0


@dataclass
class LanguageStats:
    sessions: int = 0
    average_cpm: float = 0.0
    average_accuracy: float = 0.0
    best_cpm: float = 0.0
    total_time_seconds: float = 0.0


@dataclass
class DifficultyStats:
    sessions: int = 0
    average_cpm: float = 0.0
    average_accuracy: float = 0.0
    completion_rate: float = 0.0


@dataclass
class OverallStats:
    total_sessions: int = 0
    total_time_seconds: float = 0.0
    average_cpm: float = 0.0
    average_accuracy: float = 0.0
    best_cpm: float = 0.0
    best_accuracy: float = 0.0
    favorite_language: str = ""
    total_completed_sessions: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    last_session_date: str = ""
    language_stats: Dict[str, LanguageStats] = field(default_factory=dict)
    difficulty_stats: Dict[str, DifficultyStats] = field(default_factory=dict)


@dataclass
class AnalyticsData:
    """Session log plus the aggregates derived from it."""

    sessions: List[SessionRecord] = field(default_factory=list)
    daily_stats: Dict[str, DailyStats] = field(default_factory=dict)
    overall_stats: OverallStats = field(default_factory=OverallStats)
    last_updated: int = 0


def session_date(timestamp: int) -> str:
    """Local calendar date (YYYY-MM-DD) of an epoch-ms timestamp."""
    return datetime.fromtimestamp(timestamp / 1000.0).date().isoformat()


def _to_ms(moment: Moment) -> float:
    if isinstance(moment, datetime):
        return moment.timestamp() * 1000.0
    return float(moment)


def _mean(values: List[float]) -> float:
    return sum(values) / len(values) if values else 0.0


class AnalyticsStore:
    """Folds session records into running statistics.

    The store works on an in-memory :class:`AnalyticsData`; loading and saving
    it is left to the caller (see ``typecode.core.storage``). Averages are
    recomputed from the retained log on every record, while counters and
    bests accumulate over the whole history.
    """

    def __init__(self, data: Optional[AnalyticsData] = None, retention: int = DEFAULT_RETENTION) -> None:
        self._data = data if data is not None else AnalyticsData()
        self._retention = max(1, retention)

    @property
    def data(self) -> AnalyticsData:
        return self._data

    @property
    def sessions(self) -> List[SessionRecord]:
        return list(self._data.sessions)

    @property
    def daily_stats(self) -> Dict[str, DailyStats]:
        return self._data.daily_stats

    @property
    def overall_stats(self) -> OverallStats:
        return self._data.overall_stats

    def record(self, session: SessionRecord) -> None:
        """Append a session and update every aggregate in place."""
        data = self._data
        data.sessions.append(session)
        if len(data.sessions) > self._retention:
            evicted = len(data.sessions) - self._retention
            data.sessions = data.sessions[evicted:]
            logger.debug("Evicted %d old sessions", evicted)

        self._update_daily(session)
        self._update_overall(session)
        self._update_streak(session)
        data.last_updated = int(time.time() * 1000)

    def replace(self, data: AnalyticsData) -> None:
        """Swap in previously exported analytics, trimmed to the retention limit."""
        if len(data.sessions) > self._retention:
            data.sessions = data.sessions[len(data.sessions) - self._retention :]
        self._data = data
        logger.info("Analytics replaced with %d sessions", len(data.sessions))

    def clear(self) -> None:
        """Drop the whole log and every aggregate."""
        self._data = AnalyticsData()
        logger.info("Analytics cleared")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def recent_sessions(self, count: int = 10) -> List[SessionRecord]:
        """Most recent ``count`` sessions, newest first."""
        ordered = sorted(self._data.sessions, key=lambda s: s.timestamp, reverse=True)
        return ordered[: max(0, count)]

    def sessions_in_range(self, start: Moment, end: Moment) -> List[SessionRecord]:
        """Sessions whose timestamp lies within ``[start, end]``."""
        lo, hi = _to_ms(start), _to_ms(end)
        return [s for s in self._data.sessions if lo <= s.timestamp <= hi]

    def sessions_in_timeframe(self, timeframe: str, now: Optional[Moment] = None) -> List[SessionRecord]:
        """Sessions within a dashboard timeframe (``1d``, ``7d``, ``30d``, ``6m``, ``all``)."""
        if timeframe not in TIMEFRAMES:
            raise ValueError(f"Unknown timeframe: {timeframe}")
        span = TIMEFRAMES[timeframe]
        if span is None:
            return list(self._data.sessions)
        end = _to_ms(now) if now is not None else time.time() * 1000.0
        start = end - span.total_seconds() * 1000.0
        return self.sessions_in_range(start, end)

    def daily_stats_between(self, start: date, end: date) -> List[DailyStats]:
        """Day buckets within ``[start, end]``, oldest first."""
        lo, hi = start.isoformat(), end.isoformat()
        return [self._data.daily_stats[key] for key in sorted(self._data.daily_stats) if lo <= key <= hi]

    def personal_bests(self) -> Tuple[Optional[SessionRecord], Optional[SessionRecord]]:
        """Return the (fastest, most accurate) retained sessions."""
        sessions = self._data.sessions
        if not sessions:
            return (None, None)
        fastest = max(sessions, key=lambda s: s.metrics.cpm)
        most_accurate = max(sessions, key=lambda s: s.metrics.accuracy)
        return (fastest, most_accurate)

    # ------------------------------------------------------------------
    # Aggregate updates
    # ------------------------------------------------------------------

    def _update_daily(self, session: SessionRecord) -> None:
        day = session_date(session.timestamp)
        stats = self._data.daily_stats.get(day)
        if stats is None:
            stats = DailyStats(date=day)
            self._data.daily_stats[day] = stats

        metrics = session.metrics
        stats.sessions_count += 1
        stats.total_time_seconds += metrics.time_in_seconds
        stats.best_cpm = max(stats.best_cpm, metrics.cpm)
        stats.best_accuracy = max(stats.best_accuracy, metrics.accuracy)
        if session.completed:
            stats.completed_sessions += 1
        if session.language not in stats.languages_used:
            stats.languages_used.append(session.language)

        same_day = [s for s in self._data.sessions if session_date(s.timestamp) == day]
        stats.average_cpm = _mean([s.metrics.cpm for s in same_day])
        stats.average_accuracy = _mean([s.metrics.accuracy for s in same_day])

    def _update_overall(self, session: SessionRecord) -> None:
        stats = self._data.overall_stats
        sessions = self._data.sessions
        metrics = session.metrics

        stats.total_sessions += 1
        stats.total_time_seconds += metrics.time_in_seconds
        stats.best_cpm = max(stats.best_cpm, metrics.cpm)
        stats.best_accuracy = max(stats.best_accuracy, metrics.accuracy)
        if session.completed:
            stats.total_completed_sessions += 1

        lang = stats.language_stats.setdefault(session.language, LanguageStats())
        lang.sessions += 1
        lang.total_time_seconds += metrics.time_in_seconds
        lang.best_cpm = max(lang.best_cpm, metrics.cpm)

        diff = stats.difficulty_stats.setdefault(session.difficulty, DifficultyStats())
        diff.sessions += 1

        stats.average_cpm = _mean([s.metrics.cpm for s in sessions])
        stats.average_accuracy = _mean([s.metrics.accuracy for s in sessions])

        for name, lang_stats in stats.language_stats.items():
            matching = [s for s in sessions if s.language == name]
            lang_stats.average_cpm = _mean([s.metrics.cpm for s in matching])
            lang_stats.average_accuracy = _mean([s.metrics.accuracy for s in matching])

        for name, diff_stats in stats.difficulty_stats.items():
            matching = [s for s in sessions if s.difficulty == name]
            diff_stats.average_cpm = _mean([s.metrics.cpm for s in matching])
            diff_stats.average_accuracy = _mean([s.metrics.accuracy for s in matching])
            completed = sum(1 for s in matching if s.completed)
            diff_stats.completion_rate = (completed / len(matching)) * 100.0 if matching else 0.0

        # max() keeps the first of equal counts, i.e. breakdown insertion order
        stats.favorite_language = max(stats.language_stats, key=lambda k: stats.language_stats[k].sessions)

    def _update_streak(self, session: SessionRecord) -> None:
        if not session.completed:
            return
        stats = self._data.overall_stats
        day = session_date(session.timestamp)

        if not stats.last_session_date:
            stats.current_streak = 1
        else:
            gap = (date.fromisoformat(day) - date.fromisoformat(stats.last_session_date)).days
            if gap == 1:
                stats.current_streak += 1
            elif gap != 0:
                stats.current_streak = 1

        stats.longest_streak = max(stats.longest_streak, stats.current_streak)
        stats.last_session_date = day

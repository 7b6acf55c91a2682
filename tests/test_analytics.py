"""Tests for typecode.core.analytics – session log and aggregates."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from itertools import count

import pytest

from typecode.core.analytics import AnalyticsData, AnalyticsStore, session_date
from typecode.core.metrics import MetricsRecord
from typecode.core.session import SessionRecord

_ids = count()

BASE_DAY = datetime(2024, 3, 1, 12, 0, 0)


def _ts(day_offset: int = 0, hours: int = 0) -> int:
    moment = BASE_DAY + timedelta(days=day_offset, hours=hours)
    return int(moment.timestamp() * 1000)


def _session(
    cpm: float = 200.0,
    accuracy: float = 95.0,
    language: str = "java",
    difficulty: str = "easy",
    completed: bool = True,
    timestamp: int | None = None,
    seconds: float = 30.0,
) -> SessionRecord:
    ts = _ts() if timestamp is None else timestamp
    return SessionRecord(
        id=f"{ts}-{next(_ids)}",
        timestamp=ts,
        language=language,
        snippet_id="snip",
        snippet_title="Snippet",
        difficulty=difficulty,
        category="sorting",
        metrics=MetricsRecord(
            time_in_seconds=seconds,
            accuracy=accuracy,
            wpm=cpm / 5,
            cpm=cpm,
            total_characters=100,
            correct_characters=95,
            error_count=5,
        ),
        completed=completed,
    )


@pytest.fixture()
def store() -> AnalyticsStore:
    return AnalyticsStore()


# ---------------------------------------------------------------------------
# Empty store
# ---------------------------------------------------------------------------

class TestEmptyStore:
    def test_defaults(self, store: AnalyticsStore):
        assert store.sessions == []
        assert store.daily_stats == {}
        stats = store.overall_stats
        assert stats.total_sessions == 0
        assert stats.current_streak == 0
        assert stats.favorite_language == ""
        assert stats.last_session_date == ""

    def test_queries_on_empty(self, store: AnalyticsStore):
        assert store.recent_sessions() == []
        assert store.personal_bests() == (None, None)
        assert store.sessions_in_timeframe("all") == []


# ---------------------------------------------------------------------------
# record – log and retention
# ---------------------------------------------------------------------------

class TestRecordLog:
    def test_appends(self, store: AnalyticsStore):
        s = _session()
        store.record(s)
        assert store.sessions == [s]

    def test_retention_evicts_oldest(self):
        store = AnalyticsStore(retention=3)
        sessions = [_session(timestamp=_ts(hours=i)) for i in range(5)]
        for s in sessions:
            store.record(s)
        assert store.sessions == sessions[2:]
        # counters keep the full history
        assert store.overall_stats.total_sessions == 5

    def test_default_retention_is_1000(self, store: AnalyticsStore):
        for i in range(1002):
            store.record(_session(timestamp=_ts() + i))
        assert len(store.sessions) == 1000

    def test_last_updated_set(self, store: AnalyticsStore):
        store.record(_session())
        assert store.data.last_updated > 0

    def test_uses_given_data(self):
        data = AnalyticsData()
        store = AnalyticsStore(data)
        store.record(_session())
        assert len(data.sessions) == 1


# ---------------------------------------------------------------------------
# record – daily stats
# ---------------------------------------------------------------------------

class TestDailyStats:
    def test_day_bucket(self, store: AnalyticsStore):
        store.record(_session(cpm=100, accuracy=90, seconds=10))
        store.record(_session(cpm=300, accuracy=100, seconds=20, language="python", completed=False))
        day = store.daily_stats["2024-03-01"]
        assert day.sessions_count == 2
        assert day.total_time_seconds == 30
        assert day.average_cpm == 200
        assert day.average_accuracy == 95
        assert day.best_cpm == 300
        assert day.best_accuracy == 100
        assert day.languages_used == ["java", "python"]
        assert day.completed_sessions == 1

    def test_separate_days(self, store: AnalyticsStore):
        store.record(_session(timestamp=_ts(0)))
        store.record(_session(timestamp=_ts(1)))
        assert sorted(store.daily_stats) == ["2024-03-01", "2024-03-02"]

    def test_languages_not_duplicated(self, store: AnalyticsStore):
        store.record(_session())
        store.record(_session())
        assert store.daily_stats["2024-03-01"].languages_used == ["java"]

    def test_session_date_is_local(self):
        assert session_date(_ts(0, hours=11)) == "2024-03-01"


# ---------------------------------------------------------------------------
# record – overall stats
# ---------------------------------------------------------------------------

class TestOverallStats:
    def test_totals_and_bests(self, store: AnalyticsStore):
        store.record(_session(cpm=150, accuracy=99, seconds=10))
        store.record(_session(cpm=250, accuracy=80, seconds=15, completed=False))
        stats = store.overall_stats
        assert stats.total_sessions == 2
        assert stats.total_completed_sessions == 1
        assert stats.total_time_seconds == 25
        assert stats.best_cpm == 250
        assert stats.best_accuracy == 99
        assert stats.average_cpm == 200
        assert stats.average_accuracy == pytest.approx(89.5)

    def test_language_average_recomputed(self, store: AnalyticsStore):
        for cpm in (100, 200, 300):
            store.record(_session(cpm=cpm, language="java"))
        lang = store.overall_stats.language_stats["java"]
        assert lang.sessions == 3
        assert lang.average_cpm == 200
        assert lang.best_cpm == 300
        assert lang.total_time_seconds == 90

    def test_difficulty_breakdown(self, store: AnalyticsStore):
        store.record(_session(cpm=100, difficulty="hard", completed=True))
        store.record(_session(cpm=200, difficulty="hard", completed=False))
        store.record(_session(cpm=400, difficulty="easy"))
        hard = store.overall_stats.difficulty_stats["hard"]
        assert hard.sessions == 2
        assert hard.average_cpm == 150
        assert hard.completion_rate == 50.0
        assert store.overall_stats.difficulty_stats["easy"].completion_rate == 100.0

    def test_favorite_language_most_sessions(self, store: AnalyticsStore):
        store.record(_session(language="java"))
        store.record(_session(language="python"))
        store.record(_session(language="python"))
        assert store.overall_stats.favorite_language == "python"

    def test_favorite_language_tie_goes_to_first(self, store: AnalyticsStore):
        store.record(_session(language="go"))
        store.record(_session(language="rust"))
        assert store.overall_stats.favorite_language == "go"


# ---------------------------------------------------------------------------
# record – streaks
# ---------------------------------------------------------------------------

class TestStreaks:
    def test_first_completed_session(self, store: AnalyticsStore):
        store.record(_session())
        assert store.overall_stats.current_streak == 1
        assert store.overall_stats.longest_streak == 1
        assert store.overall_stats.last_session_date == "2024-03-01"

    def test_consecutive_days(self, store: AnalyticsStore):
        for day in range(3):
            store.record(_session(timestamp=_ts(day)))
        assert store.overall_stats.current_streak == 3
        assert store.overall_stats.longest_streak == 3

    def test_gap_resets(self, store: AnalyticsStore):
        for day in (0, 1, 2, 4):
            store.record(_session(timestamp=_ts(day)))
        assert store.overall_stats.current_streak == 1
        assert store.overall_stats.longest_streak == 3

    def test_same_day_unchanged(self, store: AnalyticsStore):
        store.record(_session(timestamp=_ts(0)))
        store.record(_session(timestamp=_ts(1)))
        store.record(_session(timestamp=_ts(1, hours=3)))
        assert store.overall_stats.current_streak == 2

    def test_earlier_date_resets(self, store: AnalyticsStore):
        store.record(_session(timestamp=_ts(5)))
        store.record(_session(timestamp=_ts(6)))
        store.record(_session(timestamp=_ts(2)))
        assert store.overall_stats.current_streak == 1
        assert store.overall_stats.last_session_date == "2024-03-03"

    def test_abandoned_sessions_ignored(self, store: AnalyticsStore):
        store.record(_session(timestamp=_ts(0)))
        store.record(_session(timestamp=_ts(1), completed=False))
        assert store.overall_stats.current_streak == 1
        assert store.overall_stats.last_session_date == "2024-03-01"
        store.record(_session(timestamp=_ts(2)))
        assert store.overall_stats.current_streak == 1

    def test_only_abandoned_sessions(self, store: AnalyticsStore):
        store.record(_session(completed=False))
        assert store.overall_stats.current_streak == 0
        assert store.overall_stats.last_session_date == ""


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

class TestQueries:
    def test_recent_sessions_newest_first(self, store: AnalyticsStore):
        old = _session(timestamp=_ts(0))
        new = _session(timestamp=_ts(2))
        mid = _session(timestamp=_ts(1))
        for s in (old, new, mid):
            store.record(s)
        assert store.recent_sessions(2) == [new, mid]

    def test_recent_sessions_does_not_reorder_log(self, store: AnalyticsStore):
        a, b = _session(timestamp=_ts(0)), _session(timestamp=_ts(1))
        store.record(a)
        store.record(b)
        store.recent_sessions()
        assert store.sessions == [a, b]

    def test_range_inclusive_bounds(self, store: AnalyticsStore):
        sessions = [_session(timestamp=_ts(day)) for day in range(4)]
        for s in sessions:
            store.record(s)
        assert store.sessions_in_range(_ts(1), _ts(2)) == sessions[1:3]

    def test_range_accepts_datetimes(self, store: AnalyticsStore):
        s = _session(timestamp=_ts(0))
        store.record(s)
        assert store.sessions_in_range(BASE_DAY, BASE_DAY + timedelta(minutes=1)) == [s]

    def test_timeframe(self, store: AnalyticsStore):
        old = _session(timestamp=_ts(-10))
        recent = _session(timestamp=_ts(-2))
        store.record(old)
        store.record(recent)
        now = _ts(0)
        assert store.sessions_in_timeframe("7d", now=now) == [recent]
        assert store.sessions_in_timeframe("30d", now=now) == [old, recent]
        assert store.sessions_in_timeframe("all") == [old, recent]

    def test_unknown_timeframe(self, store: AnalyticsStore):
        with pytest.raises(ValueError):
            store.sessions_in_timeframe("2y")

    def test_daily_stats_between(self, store: AnalyticsStore):
        for day in range(5):
            store.record(_session(timestamp=_ts(day)))
        days = store.daily_stats_between(date(2024, 3, 2), date(2024, 3, 4))
        assert [d.date for d in days] == ["2024-03-02", "2024-03-03", "2024-03-04"]

    def test_personal_bests(self, store: AnalyticsStore):
        fast = _session(cpm=400, accuracy=80)
        careful = _session(cpm=100, accuracy=100)
        store.record(fast)
        store.record(careful)
        assert store.personal_bests() == (fast, careful)


# ---------------------------------------------------------------------------
# clear
# ---------------------------------------------------------------------------

class TestClear:
    def test_clear_wipes_everything(self, store: AnalyticsStore):
        store.record(_session())
        store.clear()
        assert store.sessions == []
        assert store.daily_stats == {}
        assert store.overall_stats.total_sessions == 0
        assert store.overall_stats.current_streak == 0

    def test_record_after_clear(self, store: AnalyticsStore):
        store.record(_session(timestamp=_ts(0)))
        store.clear()
        store.record(_session(timestamp=_ts(5)))
        assert store.overall_stats.total_sessions == 1
        assert store.overall_stats.current_streak == 1


# ---------------------------------------------------------------------------
# replace
# ---------------------------------------------------------------------------

class TestReplace:
    def test_replace_installs_data(self, store: AnalyticsStore):
        other = AnalyticsStore()
        other.record(_session(language="python"))
        other.record(_session(language="python"))
        store.record(_session())
        store.replace(other.data)
        assert len(store.sessions) == 2
        assert store.overall_stats.favorite_language == "python"

    def test_replace_then_record_accumulates(self, store: AnalyticsStore):
        other = AnalyticsStore()
        other.record(_session())
        store.replace(other.data)
        store.record(_session())
        assert store.overall_stats.total_sessions == 2

    def test_replace_trims_to_retention(self):
        other = AnalyticsStore()
        for i in range(5):
            other.record(_session(timestamp=_ts(hours=i)))
        small = AnalyticsStore(retention=3)
        small.replace(other.data)
        assert [s.timestamp for s in small.sessions] == [_ts(hours=i) for i in range(2, 5)]

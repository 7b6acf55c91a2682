from __future__ import annotations

import json
import logging
import time
from dataclasses import asdict
from datetime import date
from pathlib import Path
from typing import Any, Dict, Optional

from typecode.core.analytics import (
    AnalyticsData,
    DailyStats,
    DifficultyStats,
    LanguageStats,
    OverallStats,
)
from typecode.core.metrics import MetricsRecord
from typecode.core.session import SessionRecord

logger = logging.getLogger(__name__)


class AnalyticsFileStore:
    """Persists analytics to a JSON file.

    Missing or unreadable files load as empty analytics; absent keys in older
    files fall back to defaults. Write failures are logged, not raised.
    """

    def __init__(self, path: Path) -> None:
        self._file_path = Path(path)

    @property
    def path(self) -> Path:
        return self._file_path

    def load(self) -> AnalyticsData:
        if not self._file_path.exists():
            return AnalyticsData()
        try:
            payload = json.loads(self._file_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Could not load analytics from %s: %s", self._file_path, e)
            return AnalyticsData()
        try:
            return analytics_from_dict(payload)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning("Ignoring malformed analytics in %s: %s", self._file_path, e)
            return AnalyticsData()

    def save(self, data: AnalyticsData) -> None:
        data.last_updated = int(time.time() * 1000)
        try:
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_path.write_text(json.dumps(analytics_to_dict(data), indent=2), encoding="utf-8")
        except OSError as e:
            logger.warning("Could not save analytics to %s: %s", self._file_path, e)

    def clear(self) -> None:
        try:
            self._file_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not remove %s: %s", self._file_path, e)

    def export_json(self, data: AnalyticsData) -> str:
        return json.dumps(analytics_to_dict(data), indent=2)

    def read_export(self, text: str) -> Optional[AnalyticsData]:
        """Parse an exported document, or return None if it is invalid."""
        try:
            return analytics_from_dict(json.loads(text))
        except (json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning("Failed to import analytics: %s", e)
            return None

    def import_json(self, text: str) -> bool:
        """Replace the stored analytics with an exported document."""
        data = self.read_export(text)
        if data is None:
            return False
        self.save(data)
        return True


def analytics_to_dict(data: AnalyticsData) -> Dict[str, Any]:
    return asdict(data)


def analytics_from_dict(payload: Any) -> AnalyticsData:
    if not isinstance(payload, dict):
        raise ValueError("analytics document must be a JSON object")

    sessions = [_session_from_dict(item) for item in payload.get("sessions", [])]
    daily = {
        key: DailyStats(
            date=str(value.get("date", key)),
            sessions_count=int(value.get("sessions_count", 0)),
            total_time_seconds=float(value.get("total_time_seconds", 0.0)),
            average_cpm=float(value.get("average_cpm", 0.0)),
            average_accuracy=float(value.get("average_accuracy", 0.0)),
            best_cpm=float(value.get("best_cpm", 0.0)),
            best_accuracy=float(value.get("best_accuracy", 0.0)),
            languages_used=[str(lang) for lang in value.get("languages_used", [])],
            completed_sessions=int(value.get("completed_sessions", 0)),
        )
        for key, value in payload.get("daily_stats", {}).items()
    }
    overall = _overall_from_dict(payload.get("overall_stats") or {})
    return AnalyticsData(
        sessions=sessions,
        daily_stats=daily,
        overall_stats=overall,
        last_updated=int(payload.get("last_updated", 0)),
    )


def _session_from_dict(item: Dict[str, Any]) -> SessionRecord:
    m = item.get("metrics") or {}
    return SessionRecord(
        id=str(item["id"]),
        timestamp=int(item["timestamp"]),
        language=str(item.get("language", "")),
        snippet_id=str(item.get("snippet_id", "")),
        snippet_title=str(item.get("snippet_title", "")),
        difficulty=str(item.get("difficulty", "")),
        category=str(item.get("category", "")),
        metrics=MetricsRecord(
            time_in_seconds=float(m.get("time_in_seconds", 0.0)),
            accuracy=float(m.get("accuracy", 0.0)),
            wpm=float(m.get("wpm", 0.0)),
            cpm=float(m.get("cpm", 0.0)),
            total_characters=int(m.get("total_characters", 0)),
            correct_characters=int(m.get("correct_characters", 0)),
            error_count=int(m.get("error_count", 0)),
        ),
        completed=item.get("completed") is True,
        restarts=int(item.get("restarts", 0)),
    )


def _overall_from_dict(value: Dict[str, Any]) -> OverallStats:
    last_date = str(value.get("last_session_date", "") or "")
    if last_date:
        # streak arithmetic needs a real date
        try:
            date.fromisoformat(last_date)
        except ValueError:
            logger.warning("Dropping invalid last_session_date %r", last_date)
            last_date = ""

    return OverallStats(
        total_sessions=int(value.get("total_sessions", 0)),
        total_time_seconds=float(value.get("total_time_seconds", 0.0)),
        average_cpm=float(value.get("average_cpm", 0.0)),
        average_accuracy=float(value.get("average_accuracy", 0.0)),
        best_cpm=float(value.get("best_cpm", 0.0)),
        best_accuracy=float(value.get("best_accuracy", 0.0)),
        favorite_language=str(value.get("favorite_language", "")),
        total_completed_sessions=int(value.get("total_completed_sessions", 0)),
        current_streak=int(value.get("current_streak", 0)),
        longest_streak=int(value.get("longest_streak", 0)),
        last_session_date=last_date,
        language_stats={
            key: LanguageStats(
                sessions=int(v.get("sessions", 0)),
                average_cpm=float(v.get("average_cpm", 0.0)),
                average_accuracy=float(v.get("average_accuracy", 0.0)),
                best_cpm=float(v.get("best_cpm", 0.0)),
                total_time_seconds=float(v.get("total_time_seconds", 0.0)),
            )
            for key, v in value.get("language_stats", {}).items()
        },
        difficulty_stats={
            key: DifficultyStats(
                sessions=int(v.get("sessions", 0)),
                average_cpm=float(v.get("average_cpm", 0.0)),
                average_accuracy=float(v.get("average_accuracy", 0.0)),
                completion_rate=float(v.get("completion_rate", 0.0)),
            )
            for key, v in value.get("difficulty_stats", {}).items()
        },
    )

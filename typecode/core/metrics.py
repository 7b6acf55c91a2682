from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class MetricsRecord:
    """Speed and accuracy figures for one typing attempt."""

    time_in_seconds: float = 0.0
    accuracy: float = 0.0
    wpm: float = 0.0
    cpm: float = 0.0
    total_characters: int = 0
    correct_characters: int = 0
    error_count: int = 0


def _round_half_up(value: float, digits: int = 0) -> float:
    scale = 10**digits
    return math.floor(value * scale + 0.5) / scale


def empty_metrics() -> MetricsRecord:
    """Zeroed record shown before the first keystroke."""
    return MetricsRecord()


def compute_metrics(
    started_at: float,
    ended_at: float,
    total_chars: int,
    correct_chars: int,
    error_count: int = 0,
) -> MetricsRecord:
    """Build a metrics record from timestamps (epoch ms) and character counts.

    Speed follows the usual conventions for code typing:
      * **CPM** – correct characters per minute, the primary figure.
      * **WPM** – CPM / 5, kept for familiarity only; symbol-heavy code makes
        word-based speed misleading.

    Correct characters are clamped to ``total_chars`` so accuracy stays within
    0..100, and a negative duration is treated as zero.
    """
    time_in_seconds = max(0.0, (ended_at - started_at) / 1000.0)
    capped_correct = max(0, min(correct_chars, total_chars))
    accuracy = (capped_correct / total_chars) * 100.0 if total_chars > 0 else 0.0

    minutes = time_in_seconds / 60.0
    wpm = (capped_correct / 5.0) / minutes if minutes > 0 else 0.0
    cpm = capped_correct / minutes if minutes > 0 else 0.0

    return MetricsRecord(
        time_in_seconds=_round_half_up(time_in_seconds, 2),
        accuracy=_round_half_up(accuracy, 2),
        wpm=_round_half_up(wpm),
        cpm=_round_half_up(cpm),
        total_characters=max(0, total_chars),
        correct_characters=capped_correct,
        error_count=error_count,
    )


def format_time(seconds: float) -> str:
    """Human readable duration, e.g. ``"42.5s"`` or ``"2m 5.0s"``."""
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes = int(seconds // 60)
    remaining = seconds - minutes * 60
    return f"{minutes}m {remaining:.1f}s"


def wpm_rating(wpm: float) -> str:
    if wpm >= 60:
        return "Excellent"
    if wpm >= 40:
        return "Good"
    if wpm >= 25:
        return "Average"
    if wpm >= 15:
        return "Below Average"
    return "Beginner"


def cpm_rating(cpm: float) -> str:
    """Rating on the CPM scale, which suits code better than WPM."""
    if cpm >= 300:
        return "Excellent"
    if cpm >= 200:
        return "Good"
    if cpm >= 125:
        return "Average"
    if cpm >= 75:
        return "Below Average"
    return "Beginner"


def accuracy_rating(accuracy: float) -> str:
    if accuracy >= 95:
        return "Perfect"
    if accuracy >= 90:
        return "Excellent"
    if accuracy >= 80:
        return "Good"
    if accuracy >= 70:
        return "Fair"
    return "Needs Improvement"

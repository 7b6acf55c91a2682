from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List


class CharState(str, Enum):
    """Display state of one character of the target text."""

    CORRECT = "correct"
    INCORRECT = "incorrect"
    PENDING = "pending"


@dataclass(frozen=True)
class Comparison:
    """Result of comparing live input against the target text."""

    correct_chars: int = 0
    total_chars: int = 0
    error_positions: List[int] = field(default_factory=list)
    is_complete: bool = False


def compare(user_input: str, target: str) -> Comparison:
    """Compare ``user_input`` with ``target`` position by position.

    Every typed index that does not match the target is an error, including
    anything typed past the end of the target. The comparison is complete only
    when the input is exactly the target.
    """
    correct = 0
    errors: List[int] = []
    target_len = len(target)
    for i, ch in enumerate(user_input):
        if i < target_len and ch == target[i]:
            correct += 1
        else:
            errors.append(i)

    return Comparison(
        correct_chars=correct,
        total_chars=len(user_input),
        error_positions=errors,
        is_complete=len(user_input) == target_len and not errors,
    )


def classify(user_input: str, target: str) -> List[CharState]:
    """Return one state per target character, plus overflow errors."""
    states: List[CharState] = []
    typed_len = len(user_input)
    for i, expected in enumerate(target):
        if i >= typed_len:
            states.append(CharState.PENDING)
        elif user_input[i] == expected:
            states.append(CharState.CORRECT)
        else:
            states.append(CharState.INCORRECT)
    # characters typed beyond the end of the target
    states.extend(CharState.INCORRECT for _ in range(max(0, typed_len - len(target))))
    return states

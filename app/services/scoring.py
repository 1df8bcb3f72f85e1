"""Scoring of a finished attempt.

Pure functions only: no database access, no clock. Positions are 1-based, so
position ``i`` is compared against ``answer_key[i - 1]``.

The correction factor ("fator de correção") N cancels one correct answer for
every N incorrect ones. Blank answers never count as incorrect.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Mapping, Optional, Sequence

from app.core.exceptions import InvalidInput
from app.schemas.score import ScoreResult


def round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def compute_penalty(incorrect: int, correction_factor: Optional[int]) -> int:
    if correction_factor is None or correction_factor == 0:
        return 0
    if correction_factor < 0:
        raise InvalidInput("The correction factor must be a positive integer.",
                           {"correction_factor": correction_factor})
    return incorrect // correction_factor


def is_correct(choice: Optional[str], expected: str) -> bool:
    return bool(choice) and choice == expected


def score_answers(
    answers: Mapping[int, Optional[str]],
    answer_key: Sequence[str],
    correction_factor: Optional[int] = None,
) -> ScoreResult:
    total = len(answer_key)
    if total == 0:
        raise InvalidInput("Cannot score an exam without questions.", {"total_questions": 0})

    correct = incorrect = blank = 0
    for position, expected in enumerate(answer_key, start=1):
        choice = answers.get(position)
        if not choice:
            blank += 1
        elif choice == expected:
            correct += 1
        else:
            incorrect += 1

    penalty_applied = compute_penalty(incorrect, correction_factor)
    final_score = max(0, correct - penalty_applied)
    percentage = round_half_up(Decimal(100 * final_score) / Decimal(total))

    return ScoreResult(
        total=total,
        correct=correct,
        incorrect=incorrect,
        blank=blank,
        final_score=final_score,
        percentage=percentage,
        penalty_applied=penalty_applied,
        has_penalty=bool(correction_factor),
    )

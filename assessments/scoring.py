from dataclasses import dataclass
from decimal import Decimal

from .grading import ZERO, quantize_points


@dataclass(frozen=True)
class ScoreSummary:
    score: Decimal
    max_score: Decimal
    percentage: Decimal
    passed: bool
    pending: int = 0

    @property
    def is_final(self):
        return self.pending == 0


def version_max_score(version):
    """Sum of every question's points in the version, answered or not."""
    return quantize_points(sum((q.points for q in version.ordered_questions()), ZERO))


def aggregate(results, max_score, passing_score):
    """
    Totals per-question results.

    `results` are objects exposing `points_earned` (None while a manual grade
    is pending, counted as zero) and optionally `is_pending`. Pure: the same
    input always yields the same summary.
    """
    score = ZERO
    pending = 0
    for result in results:
        if getattr(result, 'is_pending', False) or result.points_earned is None:
            pending += 1
            continue
        score += Decimal(result.points_earned)

    max_score = Decimal(max_score or 0)
    if max_score > 0:
        percentage = quantize_points(score / max_score * 100)
    else:
        percentage = ZERO.quantize(Decimal('0.01'))

    return ScoreSummary(
        score=quantize_points(score),
        max_score=quantize_points(max_score),
        percentage=percentage,
        passed=percentage >= Decimal(passing_score or 0),
        pending=pending,
    )

"""
Answer grading rules, one per question type.

`grade(question, value)` never raises on candidate input: a value that does
not fit the question's type is graded as incorrect with zero points.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

from exams.models import Question

logger = logging.getLogger(__name__)

ZERO = Decimal('0')
TWO_PLACES = Decimal('0.01')
QT = Question.QuestionType


def quantize_points(value) -> Decimal:
    return Decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class AnswerValue:
    """What a candidate submitted for one question."""

    text: Optional[str] = None
    option_ids: tuple = ()
    data: Any = None

    @classmethod
    def from_answer(cls, answer):
        if answer is None:
            return None
        return cls(
            text=answer.text_value,
            option_ids=tuple(option.id for option in answer.selected_options.all()),
            data=answer.json_value,
        )

    @property
    def is_empty(self):
        has_text = self.text is not None and self.text.strip() != ''
        return not has_text and not self.option_ids and self.data in (None, {}, [], '')


@dataclass(frozen=True)
class GradeResult:
    """
    Outcome of grading one answer.

    Either graded (`auto_graded=True`, points and correctness known) or
    pending manual review (`auto_graded=False`, both left as None) so callers
    can tell "zero because wrong" from "zero because nobody graded it yet".
    """

    points_earned: Optional[Decimal]
    is_correct: Optional[bool]
    auto_graded: bool
    feedback: str = field(default='')

    @classmethod
    def graded(cls, points, is_correct, feedback=''):
        return cls(quantize_points(points), is_correct, True, feedback)

    @classmethod
    def incorrect(cls, feedback=''):
        return cls(ZERO, False, True, feedback)

    @classmethod
    def pending_manual(cls, feedback='This question requires manual grading'):
        return cls(None, None, False, feedback)

    @property
    def is_pending(self):
        return not self.auto_graded


def _same(left, right):
    return str(left).strip() == str(right).strip()


def _normalize_text(value):
    """Trims, case-folds and collapses inner runs of whitespace to one space."""
    return ' '.join(str(value).split()).casefold()


def _correct_feedback(question, default):
    return question.feedback or default


def grade_single_choice(question, value):
    """RADIO / TRUE_FALSE: the one selected option must be the correct one."""
    correct = [option for option in question.options.all() if option.is_correct]
    if len(value.option_ids) != 1:
        return GradeResult.incorrect('Select exactly one option')
    if not correct:
        logger.warning("Question %s has no option marked correct", question.pk)
        return GradeResult.incorrect('No correct option is configured for this question')

    is_correct = value.option_ids[0] == correct[0].id
    if is_correct:
        return GradeResult.graded(question.points, True, _correct_feedback(question, 'Correct answer'))
    return GradeResult.incorrect(question.feedback or f"The correct answer is: {correct[0].text}")


def grade_multiple_choice(question, value):
    """CHECKBOX: the selected set must equal the correct set. No partial credit."""
    correct_ids = {option.id for option in question.options.all() if option.is_correct}
    selected_ids = set(value.option_ids)

    if selected_ids == correct_ids:
        return GradeResult.graded(question.points, True, _correct_feedback(question, 'Correct answer'))

    hits = len(selected_ids & correct_ids)
    wrong = len(selected_ids - correct_ids)
    missed = len(correct_ids - selected_ids)
    return GradeResult.incorrect(f"{hits} correct, {wrong} incorrect, {missed} not selected")


def _references(key):
    exact = key.get('exact_match')
    if exact is True:
        # Legacy keys flag exact matching and keep the references under "keywords"
        exact = key.get('keywords')
    if isinstance(exact, str):
        exact = [exact]
    if not isinstance(exact, (list, tuple)):
        return []
    return [_normalize_text(ref) for ref in exact if str(ref).strip()]


def _keywords(key):
    keywords = key.get('keywords')
    if isinstance(keywords, str):
        keywords = [keywords]
    if not isinstance(keywords, (list, tuple)):
        return []
    return [str(keyword).strip().casefold() for keyword in keywords if str(keyword).strip()]


def grade_text(question, value):
    """
    TEXT / TEXTAREA: exact reference match wins over keyword search.
    Without either key the question goes to a human grader.
    """
    key = question.correct_answer if isinstance(question.correct_answer, dict) else {}
    references = _references(key)
    keywords = [] if references or key.get('exact_match') is True else _keywords(key)

    if not references and not keywords:
        if question.points == 0:
            return GradeResult.incorrect('No points available for this question')
        return GradeResult.pending_manual()

    if not isinstance(value.text, str):
        return GradeResult.incorrect('A text answer was expected')

    if references:
        is_correct = _normalize_text(value.text) in references
    else:
        submitted = value.text.casefold()
        is_correct = any(keyword in submitted for keyword in keywords)

    if is_correct:
        return GradeResult.graded(question.points, True, _correct_feedback(question, 'Correct answer'))
    return GradeResult.incorrect(question.feedback or 'Incorrect answer')


def _structured(value, name, expected_type):
    data = value.data
    if isinstance(data, dict) and name in data:
        data = data[name]
    return data if isinstance(data, expected_type) else None


def grade_matching(question, value):
    """MATCHING: credit proportional to the number of correctly matched pairs."""
    key = question.correct_answer if isinstance(question.correct_answer, dict) else {}
    expected = key.get('matches')
    if not isinstance(expected, dict) or not expected:
        logger.warning("Question %s has no matching pairs configured", question.pk)
        return GradeResult.incorrect('No matching pairs are configured for this question')

    submitted = _structured(value, 'matches', dict)
    if submitted is None:
        return GradeResult.incorrect('Incomplete answer')
    submitted = {str(left).strip(): right for left, right in submitted.items()}

    correct_pairs = sum(
        1 for left, right in expected.items()
        if str(left).strip() in submitted and _same(submitted[str(left).strip()], right)
    )
    total_pairs = len(expected)
    points = Decimal(question.points) * correct_pairs / total_pairs
    if correct_pairs == total_pairs:
        return GradeResult.graded(points, True, _correct_feedback(question, 'All pairs are correct'))
    return GradeResult.graded(points, False, f"{correct_pairs} of {total_pairs} pairs correct")


def grade_ordering(question, value):
    """ORDERING: the full sequence must match. No partial credit."""
    key = question.correct_answer if isinstance(question.correct_answer, dict) else {}
    expected = key.get('order')
    if not isinstance(expected, (list, tuple)) or not expected:
        logger.warning("Question %s has no correct order configured", question.pk)
        return GradeResult.incorrect('No correct order is configured for this question')

    submitted = _structured(value, 'order', list)
    if submitted is None or len(submitted) != len(expected):
        return GradeResult.incorrect('Incomplete ordering')

    in_place = sum(1 for got, want in zip(submitted, expected) if _same(got, want))
    if in_place == len(expected):
        return GradeResult.graded(question.points, True, _correct_feedback(question, 'Correct order'))
    return GradeResult.incorrect(f"{in_place} of {len(expected)} items in the correct position")


GRADERS = {
    QT.RADIO: grade_single_choice,
    QT.TRUE_FALSE: grade_single_choice,
    QT.CHECKBOX: grade_multiple_choice,
    QT.TEXT: grade_text,
    QT.TEXTAREA: grade_text,
    QT.MATCHING: grade_matching,
    QT.ORDERING: grade_ordering,
}


def grade(question, value):
    """
    Grades `value` (an AnswerValue, or None when unanswered) against the
    answer key stored on `question`.
    """
    if value is None or value.is_empty:
        return GradeResult.incorrect('No answer given')

    grader = GRADERS.get(question.question_type)
    if grader is None:
        logger.warning("No grader for question type %s", question.question_type)
        return GradeResult.pending_manual('This question type is not graded automatically')

    try:
        return grader(question, value)
    except (TypeError, ValueError, AttributeError, KeyError, InvalidOperation):
        logger.warning("Malformed answer for question %s graded as incorrect", question.pk, exc_info=True)
        return GradeResult.incorrect('The answer could not be read')

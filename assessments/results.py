from dataclasses import dataclass

from django.db import transaction
from django.utils import timezone

from exams.models import Exam
from .services import lock_attempt, expire_if_overdue

ShowResults = Exam.ShowResults


@dataclass(frozen=True)
class ResultBlocked:
    """The attempt is complete (or not) but its result may not be shown yet."""

    reason: str
    message: str

    def to_dict(self):
        return {'available': False, 'reason': self.reason, 'message': self.message}


def _blocked_reason(attempt, exam, now):
    # Checked before the policy, so AFTER_DEADLINE also waits for submission
    if not attempt.is_completed:
        return ResultBlocked('not_completed', "This exam has not been submitted yet")
    if exam.show_results == ShowResults.NEVER:
        return ResultBlocked('never', "Results are not available for this exam")
    if exam.show_results == ShowResults.MANUAL and not attempt.is_fully_graded:
        return ResultBlocked('pending_grading', "Results will be available once grading is complete")
    if exam.show_results == ShowResults.AFTER_DEADLINE and exam.deadline and now < exam.deadline:
        return ResultBlocked('before_deadline', "Results will be available after the exam deadline")
    return None


def _correct_answer(question):
    if question.is_choice_type:
        return [{'id': option.id, 'text': option.text} for option in question.options.all() if option.is_correct]
    return question.correct_answer


def _question_entry(question, answer, allow_review):
    entry = {
        'id': question.id,
        'text': question.text,
        'type': question.question_type,
        'points': question.points,
        'points_earned': answer.points_earned if answer else None,
        'is_correct': answer.is_correct if answer else None,
        'grade_status': answer.grade_status if answer else None,
        'student_answer': {
            'text_value': answer.text_value if answer else None,
            'selected_options': [
                {'id': option.id, 'text': option.text} for option in answer.selected_options.all()
            ] if answer else [],
            'json_value': answer.json_value if answer else None,
        },
    }
    if allow_review:
        entry['correct_answer'] = _correct_answer(question)
        entry['feedback'] = answer.feedback if answer else ''
    return entry


def format_result(attempt, exam, now=None):
    """
    Shapes a completed attempt into the payload shown to the candidate, or
    returns ResultBlocked when the exam's show-results policy withholds it.
    """
    now = now or timezone.now()
    blocked = _blocked_reason(attempt, exam, now)
    if blocked is not None:
        return blocked

    answers = {
        answer.question_id: answer
        for answer in attempt.answers.prefetch_related('selected_options')
    }
    sections = []
    for section in attempt.exam_version.sections.prefetch_related('questions__options'):
        sections.append({
            'title': section.title,
            'description': section.description,
            'questions': [
                _question_entry(question, answers.get(question.id), exam.allow_review)
                for question in section.questions.all()
            ],
        })

    return {
        'available': True,
        'attempt_id': attempt.id,
        'attempt_number': attempt.attempt_number,
        'exam_title': exam.title,
        'student_name': attempt.student_name,
        'student_email': attempt.student_email,
        'status': attempt.status,
        'started_at': attempt.started_at,
        'completed_at': attempt.completed_at,
        'time_spent': attempt.time_spent,
        'score': attempt.score,
        'max_score': attempt.max_score,
        'percentage': attempt.percentage,
        'passed': attempt.passed,
        'passing_score': exam.passing_score,
        'auto_graded': attempt.auto_graded,
        'fully_graded': attempt.is_fully_graded,
        'pending_questions': sum(1 for answer in answers.values() if answer.is_pending),
        'exam': {
            'id': exam.id,
            'title': exam.title,
            'show_results': exam.show_results,
            'allow_review': exam.allow_review,
        },
        'sections': sections,
    }


def get_attempt_result(attempt_id, clock=timezone.now):
    """
    Reads the result under the attempt's row lock so a concurrent manual
    grade is either fully visible or not at all.
    """
    with transaction.atomic():
        attempt = lock_attempt(attempt_id)
        now = clock()
        expire_if_overdue(attempt, now)
        return attempt, format_result(attempt, attempt.exam, now)

"""
Attempt lifecycle: start, save answers, submit, manual grading.

Every operation runs in one transaction holding a row lock on the attempt
(or on the exam, for starts), so concurrent requests for the same attempt
are applied one after the other. `clock` is any callable returning an aware
datetime; it defaults to `django.utils.timezone.now`.
"""

import logging
from decimal import Decimal, InvalidOperation

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from cores.models import AuditLog
from exams.models import Exam, Question, Option
from .admission import can_start_attempt
from .exceptions import NotFound, InvalidState, Expired, Forbidden, OutOfRange
from .grading import AnswerValue, GradeResult, grade, quantize_points
from .models import ExamAttempt, ExamAnswer
from .scoring import aggregate, version_max_score

logger = logging.getLogger(__name__)

Status = ExamAttempt.Status
GradeStatus = ExamAnswer.GradeStatus
COMPLETED_STATUSES = (Status.SUBMITTED, Status.EXPIRED, Status.GRADED)


def lock_attempt(attempt_id):
    try:
        return (
            ExamAttempt.objects.select_for_update()
            .select_related('exam', 'exam_version')
            .get(pk=attempt_id)
        )
    except (ExamAttempt.DoesNotExist, ValidationError, ValueError, TypeError):
        raise NotFound("Attempt not found", attempt_id=str(attempt_id))


# --- START ---

def start_attempt(exam, candidate, clock=timezone.now, ip_address=None, user_agent=''):
    """
    Creates a new attempt, or returns the candidate's unexpired attempt in
    progress. Returns `(attempt, created)`.
    """
    with transaction.atomic():
        # Serializes concurrent starts so attempt numbers stay sequential
        exam = Exam.objects.select_for_update().get(pk=exam.pk)
        now = clock()
        if candidate.is_identified:
            # Overdue attempts are closed before they are counted
            stale = candidate.attempts_for(exam).filter(status=Status.IN_PROGRESS)
            for attempt in stale.select_for_update().select_related('exam', 'exam_version'):
                expire_if_overdue(attempt, now)

        admission = can_start_attempt(exam, candidate, now)
        if admission.resume_attempt is not None:
            logger.info("Resuming attempt %s for exam %s", admission.resume_attempt.pk, exam.pk)
            return admission.resume_attempt, False
        if not admission.allowed:
            raise Forbidden(admission.reason, reason=admission.code,
                            attempts_used=admission.attempts_used, max_attempts=admission.max_attempts)

        version = exam.current_version()
        if version is None:
            raise NotFound("This exam has no published version")

        attempt = ExamAttempt.objects.create(
            exam=exam,
            exam_version=version,
            attempt_number=admission.attempts_used + 1,
            user_id=candidate.user_id,
            student_name=candidate.name,
            student_email=candidate.email,
            ip_address=ip_address,
            user_agent=(user_agent or '')[:512],
            started_at=now,
            max_score=version_max_score(version),
        )
    logger.info("Started attempt %s (#%s) for exam %s", attempt.pk, attempt.attempt_number, exam.pk)
    return attempt, True


# --- EXPIRY ---

def expire_if_overdue(attempt, now):
    if attempt.is_overdue(now):
        logger.info("Attempt %s exceeded its time limit; submitting automatically", attempt.pk)
        _finalize(attempt, now, expired=True)
        return True
    return False


def refresh_attempt(attempt_id, clock=timezone.now):
    """Loads an attempt, submitting it first when its time limit has passed."""
    with transaction.atomic():
        attempt = lock_attempt(attempt_id)
        expire_if_overdue(attempt, clock())
    return attempt


# --- ANSWERS ---

def _clean_option_ids(question, option_ids):
    if option_ids is None:
        return None
    if not isinstance(option_ids, (list, tuple)):
        option_ids = [option_ids]
    try:
        wanted = {int(option_id) for option_id in option_ids}
    except (TypeError, ValueError):
        wanted = set()
    valid = list(Option.objects.filter(question=question, id__in=wanted))
    if len(valid) != len(wanted):
        # Options that belong to another question are dropped
        logger.warning("Ignoring %s unknown option id(s) for question %s", len(wanted) - len(valid), question.pk)
    return valid


def save_answer(attempt_id, question_id, text_value=None, selected_option_ids=None, json_value=None,
                clock=timezone.now):
    """
    Upserts the candidate's answer to one question. Nothing is graded until
    the attempt is submitted, so answers may be revised freely.
    """
    with transaction.atomic():
        attempt = lock_attempt(attempt_id)
        expired = expire_if_overdue(attempt, clock())
        if not expired:
            if attempt.status != Status.IN_PROGRESS:
                raise InvalidState("This exam has already been submitted", status=attempt.status)

            try:
                question = attempt.exam_version.ordered_questions().get(pk=question_id)
            except (Question.DoesNotExist, ValueError, TypeError):
                raise NotFound(f"Question not found: {question_id}", question_id=str(question_id))

            answer, _ = ExamAnswer.objects.update_or_create(
                attempt=attempt,
                question=question,
                defaults={
                    'text_value': text_value or None,
                    'json_value': json_value,
                },
            )
            options = _clean_option_ids(question, selected_option_ids)
            if options is not None:
                answer.selected_options.set(options)

    # Raised outside the atomic block so the automatic submission is committed
    if expired:
        raise Expired()
    return answer


# --- SUBMISSION ---

def _grade_answer(question, answer):
    try:
        return grade(question, AnswerValue.from_answer(answer))
    except Exception:
        # One broken question must not abort grading of the rest
        logger.exception("Grading failed for question %s; scoring it as incorrect", question.pk)
        return GradeResult.incorrect('This answer could not be graded automatically')


def _apply(answer, result, now):
    answer.points_earned = result.points_earned
    answer.is_correct = result.is_correct
    answer.feedback = result.feedback
    answer.grade_status = GradeStatus.PENDING_MANUAL if result.is_pending else GradeStatus.AUTO
    answer.graded_at = None if result.is_pending else now
    answer.save(update_fields=['points_earned', 'is_correct', 'feedback', 'grade_status', 'graded_at'])


def _store_summary(attempt, summary):
    attempt.score = summary.score
    attempt.max_score = summary.max_score
    attempt.percentage = summary.percentage
    attempt.passed = summary.passed


def _finalize(attempt, now, expired=False):
    """Grades every question of the attempt's version and closes the attempt."""
    if expired and attempt.deadline is not None:
        counted_until = min(now, attempt.deadline)
    else:
        counted_until = now
    attempt.completed_at = now
    attempt.time_spent = max(0, int((counted_until - attempt.started_at).total_seconds()))
    attempt.status = Status.EXPIRED if expired else Status.SUBMITTED

    answers = {
        answer.question_id: answer
        for answer in attempt.answers.prefetch_related('selected_options')
    }
    questions = attempt.exam_version.ordered_questions().prefetch_related('options')
    graded = []
    for question in questions:
        answer = answers.get(question.id)
        result = _grade_answer(question, answer)
        if answer is None:
            # Unanswered questions get a row too, so every question has a grade on record
            answer = ExamAnswer.objects.create(attempt=attempt, question=question)
        _apply(answer, result, now)
        graded.append(result)

    summary = aggregate(graded, version_max_score(attempt.exam_version), attempt.exam.passing_score)
    _store_summary(attempt, summary)
    # Nothing awaits a grader
    if summary.is_final:
        attempt.auto_graded = True
        attempt.graded_at = now
        if not expired:
            attempt.status = Status.GRADED
    attempt.save()

    AuditLog.objects.create(
        actor=attempt.user,
        action='SUBMIT',
        target_model='ExamAttempt',
        target_object_id=str(attempt.id),
        ip_address=attempt.ip_address,
        details=f"{'Expired' if expired else 'Submitted'} with {summary.score}/{summary.max_score} "
                f"({summary.pending} pending manual grading)"
    )
    logger.info("Attempt %s %s: score %s/%s, %s pending", attempt.pk, attempt.status,
                summary.score, summary.max_score, summary.pending)
    return summary


def submit_attempt(attempt_id, clock=timezone.now):
    """
    Submits and grades the attempt. Submitting a completed attempt again is a
    no-op that returns it unchanged.
    """
    with transaction.atomic():
        attempt = lock_attempt(attempt_id)
        if attempt.status in COMPLETED_STATUSES:
            return attempt
        now = clock()
        if not expire_if_overdue(attempt, now):
            _finalize(attempt, now)
    return attempt


# --- MANUAL GRADING ---

def _to_points(points):
    try:
        points = Decimal(str(points))
    except (InvalidOperation, TypeError, ValueError):
        raise OutOfRange("Points must be a number")
    if not points.is_finite():
        raise OutOfRange("Points must be a number")
    return points


def recalculate_attempt_score(attempt, now=None, grader=None):
    answers = list(attempt.answers.all())
    summary = aggregate(answers, version_max_score(attempt.exam_version), attempt.exam.passing_score)
    _store_summary(attempt, summary)
    if summary.is_final and not attempt.is_fully_graded:
        attempt.graded_at = now or timezone.now()
        attempt.graded_by = grader
        if attempt.status == Status.SUBMITTED:
            attempt.status = Status.GRADED
    attempt.save()
    return summary


def grade_manually(attempt_id, answer_id, points, feedback='', grader=None, clock=timezone.now):
    """Records a human grade for one answer and refreshes the attempt totals."""
    with transaction.atomic():
        attempt = lock_attempt(attempt_id)
        now = clock()
        expire_if_overdue(attempt, now)
        if attempt.status not in COMPLETED_STATUSES:
            raise InvalidState("Only submitted attempts can be graded", status=attempt.status)

        try:
            answer = attempt.answers.select_related('question').get(pk=answer_id)
        except (ExamAnswer.DoesNotExist, ValueError, TypeError):
            raise NotFound("Answer not found", answer_id=str(answer_id))

        points = _to_points(points)
        maximum = answer.question.points
        if points < 0 or points > maximum:
            raise OutOfRange(f"Points must be between 0 and {maximum}", max_points=str(maximum))

        answer.points_earned = quantize_points(points)
        answer.is_correct = points == maximum
        answer.feedback = feedback or ''
        answer.grade_status = GradeStatus.MANUAL
        answer.graded_by = grader
        answer.graded_at = now
        answer.save()

        summary = recalculate_attempt_score(attempt, now, grader)

        # --- AUDIT LOG: GRADE ---
        AuditLog.objects.create(
            actor=grader,
            action='GRADE',
            target_model='ExamAnswer',
            target_object_id=str(answer.id),
            details=f"Awarded {answer.points_earned}/{maximum} on attempt {attempt.id}; "
                    f"attempt now {summary.score}/{summary.max_score}"
        )
    logger.info("Manual grade on answer %s: %s/%s", answer.pk, answer.points_earned, maximum)
    return answer, summary

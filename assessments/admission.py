from dataclasses import dataclass
from typing import Optional

from django.utils import timezone

from .models import ExamAttempt


@dataclass(frozen=True)
class Candidate:
    """Who is taking the exam: a platform user, or a name/email pair for public takers."""

    user_id: Optional[int] = None
    name: str = ''
    email: str = ''

    @classmethod
    def from_request(cls, request, name='', email=''):
        user = getattr(request, 'user', None)
        if user is not None and user.is_authenticated:
            return cls(
                user_id=user.pk,
                name=name or user.get_full_name(),
                email=(email or user.email).strip().lower(),
            )
        return cls(name=name.strip(), email=email.strip().lower())

    @property
    def is_identified(self):
        return bool(self.user_id or self.email)

    def attempts_for(self, exam):
        attempts = ExamAttempt.objects.filter(exam=exam)
        if self.user_id:
            return attempts.filter(user_id=self.user_id)
        return attempts.filter(user__isnull=True, student_email__iexact=self.email)


@dataclass(frozen=True)
class Admission:
    allowed: bool
    reason: str = ''
    code: str = ''
    attempts_used: int = 0
    max_attempts: Optional[int] = None
    resume_attempt: Optional[ExamAttempt] = None

    @property
    def attempts_remaining(self):
        if self.max_attempts is None:
            return None
        return max(0, self.max_attempts - self.attempts_used)


def can_start_attempt(exam, candidate, now=None):
    """
    Decides whether `candidate` may begin (or resume) an attempt at `exam`.
    Read-only: nothing is created or expired here.
    """
    now = now or timezone.now()
    if not candidate.is_identified:
        return Admission(False, "A user account or an email address is required", 'identity_required')

    prior = list(candidate.attempts_for(exam).select_related('exam').order_by('-started_at'))
    used = len(prior)

    # An unexpired attempt in progress is always resumable, even on a deactivated exam
    for attempt in prior:
        if attempt.status == ExamAttempt.Status.IN_PROGRESS and not attempt.is_overdue(now):
            return Admission(True, attempts_used=used, max_attempts=exam.max_attempts, resume_attempt=attempt)

    if not exam.is_active or not exam.is_published:
        return Admission(False, "This exam is not available", 'unavailable', used, exam.max_attempts)
    if exam.available_from and now < exam.available_from:
        return Admission(False, "This exam has not opened yet", 'not_open', used, exam.max_attempts)
    if exam.available_until and now > exam.available_until:
        return Admission(False, "This exam has closed", 'closed', used, exam.max_attempts)
    if exam.max_attempts is not None and used >= exam.max_attempts:
        return Admission(
            False,
            f"You have reached the limit of {exam.max_attempts} attempt(s) for this exam",
            'attempt_limit',
            used,
            exam.max_attempts,
        )
    return Admission(True, attempts_used=used, max_attempts=exam.max_attempts)

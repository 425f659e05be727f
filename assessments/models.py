# assessments/models.py
import uuid
from datetime import timedelta

from django.db import models
from django.conf import settings
from exams.models import Exam, ExamVersion, Question, Option

class ExamAttempt(models.Model):
    """Tracks one candidate's run through one exam version."""

    class Status(models.TextChoices):
        IN_PROGRESS = "in_progress", "In progress"
        SUBMITTED = "submitted", "Submitted"
        EXPIRED = "expired", "Expired"
        GRADED = "graded", "Graded"

    # Public takers reach their attempt by id alone, so ids must not be guessable
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    exam = models.ForeignKey(Exam, on_delete=models.CASCADE, related_name='attempts')
    exam_version = models.ForeignKey(ExamVersion, on_delete=models.PROTECT, related_name='attempts')
    attempt_number = models.PositiveIntegerField()

    # Candidate identity: a platform user or an anonymous (name, email) pair
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='exam_attempts')
    student_name = models.CharField(max_length=255, blank=True)
    student_email = models.EmailField(blank=True, db_index=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.CharField(max_length=512, blank=True)

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.IN_PROGRESS)
    started_at = models.DateTimeField()
    completed_at = models.DateTimeField(null=True, blank=True)  # When they submitted
    time_spent = models.PositiveIntegerField(null=True, blank=True, help_text="Seconds")

    # Null until the submission has been graded; a running total while manual grades are pending
    score = models.DecimalField(max_digits=9, decimal_places=2, null=True, blank=True)
    max_score = models.DecimalField(max_digits=9, decimal_places=2)
    percentage = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    passed = models.BooleanField(null=True)

    # Status for grading workflow
    auto_graded = models.BooleanField(default=False)
    graded_at = models.DateTimeField(null=True, blank=True)  # Set once no answer awaits a grader
    graded_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='graded_exam_attempts')

    class Meta:
        ordering = ['-started_at']
        indexes = [
            models.Index(fields=['exam', 'user'], name='attempt_exam_user_idx'),
            models.Index(fields=['exam', 'student_email'], name='attempt_exam_email_idx'),
        ]

    def __str__(self):
        return f"{self.candidate_label} - {self.exam.title} #{self.attempt_number}"

    @property
    def candidate_label(self):
        if self.user_id:
            return self.user.display_name
        return self.student_email or self.student_name

    @property
    def is_completed(self):
        return self.completed_at is not None

    @property
    def is_fully_graded(self):
        return self.graded_at is not None

    @property
    def deadline(self):
        """Moment the attempt runs out of time, or None without a time limit."""
        if self.exam.time_limit_minutes:
            return self.started_at + timedelta(minutes=self.exam.time_limit_minutes)
        return None

    def is_overdue(self, now):
        deadline = self.deadline
        return self.status == self.Status.IN_PROGRESS and deadline is not None and now > deadline

    def time_remaining_seconds(self, now):
        if self.status != self.Status.IN_PROGRESS:
            return 0
        deadline = self.deadline
        if deadline is None:
            return None
        return max(0, int((deadline - now).total_seconds()))


class ExamAnswer(models.Model):
    class GradeStatus(models.TextChoices):
        UNGRADED = "ungraded", "Not graded yet"
        AUTO = "auto", "Auto graded"
        PENDING_MANUAL = "pending_manual", "Awaiting manual grading"
        MANUAL = "manual", "Manually graded"

    attempt = models.ForeignKey(ExamAttempt, related_name='answers', on_delete=models.CASCADE)
    question = models.ForeignKey(Question, on_delete=models.CASCADE, related_name='answers')

    # For TEXT / TEXTAREA
    text_value = models.TextField(null=True, blank=True)
    # For RADIO / CHECKBOX / TRUE_FALSE
    selected_options = models.ManyToManyField(Option, blank=True, related_name='answers')
    # For MATCHING ({"matches": {...}}) and ORDERING ({"order": [...]})
    json_value = models.JSONField(null=True, blank=True)

    # Grading
    grade_status = models.CharField(max_length=20, choices=GradeStatus.choices, default=GradeStatus.UNGRADED)
    points_earned = models.DecimalField(max_digits=7, decimal_places=2, null=True, blank=True)
    is_correct = models.BooleanField(null=True)
    feedback = models.TextField(blank=True)  # Grader or answer-key feedback
    graded_by = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name='graded_answers')
    graded_at = models.DateTimeField(null=True, blank=True)
    answered_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['question__section__order', 'question__order', 'id']
        constraints = [
            models.UniqueConstraint(fields=['attempt', 'question'], name='unique_attempt_question'),
        ]

    def __str__(self):
        return f"Answer to {self.question_id} in attempt {self.attempt_id}"

    @property
    def is_pending(self):
        return self.grade_status == self.GradeStatus.PENDING_MANUAL

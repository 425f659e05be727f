# formex_platform/exams/models.py
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models


def default_passing_score():
    return settings.FORMEX_DEFAULT_PASSING_SCORE


def default_max_attempts():
    return settings.FORMEX_DEFAULT_MAX_ATTEMPTS


class Exam(models.Model):
    class ShowResults(models.TextChoices):
        IMMEDIATE = "IMMEDIATE", "Immediately after submission"
        AFTER_DEADLINE = "AFTER_DEADLINE", "After the exam deadline"
        MANUAL = "MANUAL", "After grading is complete"
        NEVER = "NEVER", "Never"

    title = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, unique=True)
    description = models.TextField(blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='exams'
    )

    # Delivery configuration, read-only to the attempt engine
    time_limit_minutes = models.PositiveIntegerField(null=True, blank=True)
    max_attempts = models.PositiveIntegerField(
        null=True, blank=True, default=default_max_attempts, help_text="Empty means unlimited"
    )
    passing_score = models.PositiveIntegerField(default=default_passing_score, help_text="Pass mark percentage")
    shuffle_questions = models.BooleanField(default=False)
    shuffle_options = models.BooleanField(default=False)
    show_results = models.CharField(max_length=20, choices=ShowResults.choices, default=ShowResults.IMMEDIATE)
    allow_review = models.BooleanField(default=True)
    auto_grade = models.BooleanField(default=True)

    # Availability window; available_until doubles as the results deadline
    available_from = models.DateTimeField(null=True, blank=True)
    available_until = models.DateTimeField(null=True, blank=True)

    is_active = models.BooleanField(default=False)
    is_published = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.title

    def current_version(self):
        return self.versions.order_by('-version').first()

    @property
    def deadline(self):
        return self.available_until


class ExamVersion(models.Model):
    """Frozen snapshot of an exam's content. Attempts are graded against it."""
    exam = models.ForeignKey(Exam, related_name='versions', on_delete=models.CASCADE)
    version = models.PositiveIntegerField()
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    total_points = models.DecimalField(max_digits=9, decimal_places=2, default=Decimal('0'))
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['exam', '-version']
        constraints = [
            models.UniqueConstraint(fields=['exam', 'version'], name='unique_exam_version'),
        ]

    def __str__(self):
        return f"{self.title} v{self.version}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Exam versions cannot be modified once created.")
        super().save(*args, **kwargs)

    def ordered_questions(self):
        return Question.objects.filter(section__version=self).order_by('section__order', 'order', 'id')


class ExamSection(models.Model):
    version = models.ForeignKey(ExamVersion, related_name='sections', on_delete=models.CASCADE)
    title = models.CharField(max_length=255, blank=True)
    description = models.TextField(blank=True)
    order = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['order', 'id']

    def __str__(self):
        return self.title or f"Section {self.order + 1}"


class Question(models.Model):
    class QuestionType(models.TextChoices):
        RADIO = "RADIO", "Single choice"
        CHECKBOX = "CHECKBOX", "Multiple choice"
        TRUE_FALSE = "TRUE_FALSE", "True / False"
        TEXT = "TEXT", "Short text"
        TEXTAREA = "TEXTAREA", "Long text"
        MATCHING = "MATCHING", "Matching"
        ORDERING = "ORDERING", "Ordering"

    section = models.ForeignKey(ExamSection, related_name='questions', on_delete=models.CASCADE)
    question_type = models.CharField(max_length=20, choices=QuestionType.choices, default=QuestionType.RADIO)
    text = models.TextField()
    help_text = models.TextField(blank=True)
    points = models.DecimalField(max_digits=7, decimal_places=2, default=Decimal('1'))
    order = models.PositiveIntegerField(default=0)

    # {"exact_match": "..."} / {"keywords": [...]} for text,
    # {"matches": {left: right}} for matching, {"order": [...]} for ordering
    correct_answer = models.JSONField(null=True, blank=True)
    feedback = models.TextField(blank=True, help_text="Shown to the candidate when review is allowed")

    class Meta:
        ordering = ['order', 'id']

    def __str__(self):
        return f"{self.text[:50]}..."

    @property
    def is_choice_type(self):
        return self.question_type in (
            self.QuestionType.RADIO, self.QuestionType.CHECKBOX, self.QuestionType.TRUE_FALSE,
        )


class Option(models.Model):
    question = models.ForeignKey(Question, related_name='options', on_delete=models.CASCADE)
    text = models.CharField(max_length=255)
    order = models.PositiveIntegerField(default=0)
    is_correct = models.BooleanField(default=False)

    class Meta:
        ordering = ['order', 'id']

    def __str__(self):
        return self.text

import logging
import unicodedata
from decimal import Decimal, ROUND_HALF_UP

from django.db import transaction
from django.utils.text import slugify

from cores.models import AuditLog
from .models import Exam, ExamVersion, ExamSection, Question, Option

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal('0.01')

OBJECTIVE_TYPES = {
    Question.QuestionType.RADIO,
    Question.QuestionType.CHECKBOX,
    Question.QuestionType.TRUE_FALSE,
    Question.QuestionType.MATCHING,
    Question.QuestionType.ORDERING,
}
TEXT_TYPES = {Question.QuestionType.TEXT, Question.QuestionType.TEXTAREA}


def unique_slug(title, exclude_pk=None):
    """
    Builds a URL slug from the exam title ("Álgebra I" -> "algebra-i"),
    appending -1, -2, ... until it is free.
    """
    ascii_title = unicodedata.normalize('NFKD', title).encode('ascii', 'ignore').decode('ascii')
    base = slugify(ascii_title) or 'exam'
    slug = base
    counter = 1
    existing = Exam.objects.all()
    if exclude_pk:
        existing = existing.exclude(pk=exclude_pk)
    while existing.filter(slug=slug).exists():
        slug = f"{base}-{counter}"
        counter += 1
    return slug


def _question_points(question_data):
    points = question_data.get('points')
    return Decimal(str(points if points is not None else 1))


def calculate_total_points(sections):
    return sum(
        (_question_points(q) for section in sections for q in section.get('questions', [])),
        Decimal('0'),
    )


def has_answer_key(question_data):
    key = question_data.get('correct_answer')
    if not isinstance(key, dict):
        return False
    return bool(key.get('exact_match') or key.get('keywords'))


def is_auto_gradable(sections):
    """True when every question can be scored without a human grader."""
    for section in sections:
        for question in section.get('questions', []):
            q_type = question.get('question_type')
            if q_type in OBJECTIVE_TYPES:
                continue
            if q_type in TEXT_TYPES and has_answer_key(question):
                continue
            return False
    return True


def adjust_points_to_100(sections):
    """
    Rescales question points in place so they add up to 100.
    Questions without points are spread evenly when the total is zero.
    """
    current_total = calculate_total_points(sections)
    questions = [q for section in sections for q in section.get('questions', [])]
    if not questions:
        return sections

    if current_total == 0:
        share = (Decimal('100') / len(questions)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
        for question in questions:
            question['points'] = share
    else:
        factor = Decimal('100') / current_total
        for question in questions:
            question['points'] = (_question_points(question) * factor).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    return sections


@transaction.atomic
def create_version(exam, sections, actor=None):
    """
    Snapshots `sections` into a new ExamVersion of `exam`.

    Existing versions are never touched, so attempts already running keep
    being graded against the content they started with.
    """
    exam = Exam.objects.select_for_update().get(pk=exam.pk)
    latest = exam.versions.order_by('-version').first()
    number = latest.version + 1 if latest else 1

    version = ExamVersion.objects.create(
        exam=exam,
        version=number,
        title=exam.title,
        description=exam.description,
        total_points=calculate_total_points(sections),
    )

    for section_index, section_data in enumerate(sections):
        section = ExamSection.objects.create(
            version=version,
            title=section_data.get('title', ''),
            description=section_data.get('description', ''),
            order=section_index,
        )
        for question_index, question_data in enumerate(section_data.get('questions', [])):
            question = Question.objects.create(
                section=section,
                question_type=question_data['question_type'],
                text=question_data['text'],
                help_text=question_data.get('help_text', ''),
                points=_question_points(question_data),
                order=question_index,
                correct_answer=question_data.get('correct_answer'),
                feedback=question_data.get('feedback', ''),
            )
            for option_index, option_data in enumerate(question_data.get('options', [])):
                Option.objects.create(
                    question=question,
                    text=option_data['text'],
                    order=option_index,
                    is_correct=option_data.get('is_correct', False),
                )

    exam.auto_grade = is_auto_gradable(sections)
    exam.save(update_fields=['auto_grade', 'updated_at'])

    # --- AUDIT LOG: VERSION ---
    AuditLog.objects.create(
        actor=actor,
        action='VERSION',
        target_model='Exam',
        target_object_id=str(exam.id),
        details=f"Published version {number} of {exam.title} ({version.total_points} pts)"
    )
    logger.info("Created version %s for exam %s", number, exam.pk)
    return version

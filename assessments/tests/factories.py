"""Shared builders for the assessment test-suite."""

from datetime import datetime, timedelta, timezone as dt_timezone

from django.contrib.auth import get_user_model

from exams.models import Exam, Option
from exams.versioning import create_version, unique_slug

T0 = datetime(2026, 3, 2, 9, 0, tzinfo=dt_timezone.utc)


def at(minutes=0):
    """Fixed clock `minutes` after T0."""
    moment = T0 + timedelta(minutes=minutes)
    return lambda: moment


def radio(text, correct, wrong=('Wrong',), points=1, question_type='RADIO'):
    options = [{'text': correct, 'is_correct': True}] + [{'text': label, 'is_correct': False} for label in wrong]
    return {'question_type': question_type, 'text': text, 'points': points, 'options': options}


def checkbox(text, correct, wrong, points=1):
    options = [{'text': label, 'is_correct': True} for label in correct]
    options += [{'text': label, 'is_correct': False} for label in wrong]
    return {'question_type': 'CHECKBOX', 'text': text, 'points': points, 'options': options}


def text(text, correct_answer=None, points=1, question_type='TEXT'):
    return {'question_type': question_type, 'text': text, 'points': points, 'correct_answer': correct_answer}


def matching(text, matches, points=1):
    return {'question_type': 'MATCHING', 'text': text, 'points': points, 'correct_answer': {'matches': matches}}


def ordering(text, order, points=1):
    return {'question_type': 'ORDERING', 'text': text, 'points': points, 'correct_answer': {'order': order}}


def make_exam(questions, title='Sample Exam', **config):
    """Creates an active, published exam with one version holding `questions` in one section."""
    config.setdefault('is_active', True)
    config.setdefault('is_published', True)
    config.setdefault('max_attempts', None)
    config.setdefault('passing_score', 60)
    exam = Exam.objects.create(title=title, slug=unique_slug(title), **config)
    version = create_version(exam, [{'title': 'Part 1', 'questions': questions}])
    exam.refresh_from_db()
    return exam, version


def option_id(version, label):
    return Option.objects.get(question__section__version=version, text=label).id


def question(version, position):
    return list(version.ordered_questions())[position]


def make_user(email, role='candidate', **extra):
    return get_user_model().objects.create_user(
        username=email, email=email, password='Sup3r-secret!', role=role, **extra
    )

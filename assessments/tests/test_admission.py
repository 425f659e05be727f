from datetime import timedelta

from django.test import TestCase

from assessments import services
from assessments.admission import Candidate, can_start_attempt
from assessments.exceptions import Forbidden
from assessments.models import ExamAttempt
from .factories import T0, at, make_exam, make_user, radio


class AdmissionTests(TestCase):
    def setUp(self):
        self.exam, self.version = make_exam([radio("Pick one", "Yes")], max_attempts=2, time_limit_minutes=30)
        self.candidate = Candidate(name="Ada", email="ada@example.com")

    def test_anonymous_candidate_needs_an_email(self):
        admission = can_start_attempt(self.exam, Candidate(name="Nobody"), T0)
        self.assertFalse(admission.allowed)
        self.assertEqual(admission.code, 'identity_required')

    def test_inactive_exam_is_refused(self):
        self.exam.is_active = False
        self.exam.save()
        admission = can_start_attempt(self.exam, self.candidate, T0)
        self.assertFalse(admission.allowed)
        self.assertEqual(admission.code, 'unavailable')

    def test_unpublished_exam_is_refused(self):
        self.exam.is_published = False
        self.exam.save()
        self.assertEqual(can_start_attempt(self.exam, self.candidate, T0).code, 'unavailable')

    def test_availability_window(self):
        self.exam.available_from = T0 + timedelta(days=1)
        self.exam.available_until = T0 + timedelta(days=2)
        self.exam.save()
        self.assertEqual(can_start_attempt(self.exam, self.candidate, T0).code, 'not_open')
        self.assertTrue(can_start_attempt(self.exam, self.candidate, T0 + timedelta(days=1, hours=1)).allowed)
        self.assertEqual(can_start_attempt(self.exam, self.candidate, T0 + timedelta(days=3)).code, 'closed')

    def test_attempt_limit(self):
        for _ in range(2):
            attempt, created = services.start_attempt(self.exam, self.candidate, clock=at(0))
            self.assertTrue(created)
            services.submit_attempt(attempt.id, clock=at(5))

        admission = can_start_attempt(self.exam, self.candidate, T0 + timedelta(minutes=10))
        self.assertFalse(admission.allowed)
        self.assertEqual(admission.code, 'attempt_limit')
        self.assertEqual(admission.attempts_used, 2)
        self.assertEqual(admission.attempts_remaining, 0)

        with self.assertRaises(Forbidden) as ctx:
            services.start_attempt(self.exam, self.candidate, clock=at(10))
        self.assertEqual(ctx.exception.details['reason'], 'attempt_limit')
        self.assertEqual(ExamAttempt.objects.filter(exam=self.exam).count(), 2)

    def test_attempts_are_numbered_per_candidate(self):
        first, _ = services.start_attempt(self.exam, self.candidate, clock=at(0))
        services.submit_attempt(first.id, clock=at(1))
        second, _ = services.start_attempt(self.exam, self.candidate, clock=at(2))
        other, _ = services.start_attempt(self.exam, Candidate(email="bob@example.com"), clock=at(2))
        self.assertEqual((first.attempt_number, second.attempt_number, other.attempt_number), (1, 2, 1))

    def test_email_matching_is_case_insensitive(self):
        services.start_attempt(self.exam, self.candidate, clock=at(0))
        admission = can_start_attempt(self.exam, Candidate(email="ADA@Example.com"), T0)
        self.assertEqual(admission.attempts_used, 1)

    def test_running_attempt_is_resumed(self):
        attempt, created = services.start_attempt(self.exam, self.candidate, clock=at(0))
        again, created_again = services.start_attempt(self.exam, self.candidate, clock=at(10))
        self.assertTrue(created)
        self.assertFalse(created_again)
        self.assertEqual(again.id, attempt.id)

    def test_running_attempt_is_resumable_after_deactivation(self):
        attempt, _ = services.start_attempt(self.exam, self.candidate, clock=at(0))
        self.exam.is_active = False
        self.exam.save()
        admission = can_start_attempt(self.exam, self.candidate, T0 + timedelta(minutes=5))
        self.assertTrue(admission.allowed)
        self.assertEqual(admission.resume_attempt.id, attempt.id)

    def test_overdue_attempt_is_not_resumed(self):
        services.start_attempt(self.exam, self.candidate, clock=at(0))
        admission = can_start_attempt(self.exam, self.candidate, T0 + timedelta(minutes=45))
        self.assertIsNone(admission.resume_attempt)
        self.assertTrue(admission.allowed)

    def test_user_attempts_are_tracked_by_account(self):
        user = make_user("grace@example.com")
        candidate = Candidate(user_id=user.pk, name="Grace", email="other@example.com")
        services.start_attempt(self.exam, candidate, clock=at(0))
        admission = can_start_attempt(self.exam, Candidate(user_id=user.pk, email="grace@example.com"), T0)
        self.assertEqual(admission.attempts_used, 1)
        self.assertIsNotNone(admission.resume_attempt)

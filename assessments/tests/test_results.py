from datetime import timedelta
from decimal import Decimal

from django.test import TestCase

from assessments import services
from assessments.admission import Candidate
from assessments.models import ExamAttempt, ExamAnswer
from assessments.results import ResultBlocked, format_result, get_attempt_result
from .factories import T0, at, make_exam, radio, text, option_id, question


class ResultPolicyTests(TestCase):
    def take(self, questions=None, **config):
        questions = questions or [radio("Pick B", "B", wrong=("A",), points=2)]
        exam, version = make_exam(questions, **config)
        attempt, _ = services.start_attempt(exam, Candidate(email="ada@example.com"), clock=at(0))
        services.save_answer(attempt.id, question(version, 0).id,
                             selected_option_ids=[option_id(version, "B")], clock=at(1))
        return exam, version, attempt

    def reload(self, attempt):
        return ExamAttempt.objects.select_related('exam', 'exam_version').get(pk=attempt.id)

    def test_immediate_result_after_submission(self):
        exam, version, attempt = self.take()
        services.submit_attempt(attempt.id, clock=at(2))
        result = format_result(self.reload(attempt), exam, T0)

        self.assertTrue(result['available'])
        self.assertEqual(result['score'], Decimal('2.00'))
        self.assertEqual(result['percentage'], Decimal('100.00'))
        self.assertTrue(result['passed'])
        self.assertTrue(result['fully_graded'])
        entry = result['sections'][0]['questions'][0]
        self.assertTrue(entry['is_correct'])
        self.assertEqual(entry['correct_answer'], [{'id': option_id(version, "B"), 'text': "B"}])

    def test_unsubmitted_attempt_has_no_result(self):
        exam, version, attempt = self.take()
        result = format_result(self.reload(attempt), exam, T0)
        self.assertIsInstance(result, ResultBlocked)
        self.assertEqual(result.reason, 'not_completed')

    def test_never_policy_hides_the_score(self):
        exam, version, attempt = self.take(show_results='NEVER')
        services.submit_attempt(attempt.id, clock=at(2))
        result = format_result(self.reload(attempt), exam, T0 + timedelta(days=365))
        self.assertIsInstance(result, ResultBlocked)
        self.assertEqual(result.reason, 'never')
        self.assertNotIn('score', result.to_dict())

    def test_after_deadline_policy(self):
        deadline = T0 + timedelta(days=1)
        exam, version, attempt = self.take(show_results='AFTER_DEADLINE', available_until=deadline)
        services.submit_attempt(attempt.id, clock=at(2))

        early = format_result(self.reload(attempt), exam, T0 + timedelta(hours=1))
        self.assertEqual(early.reason, 'before_deadline')
        late = format_result(self.reload(attempt), exam, deadline + timedelta(minutes=1))
        self.assertTrue(late['available'])

    def test_manual_policy_waits_for_grading(self):
        exam, version, attempt = self.take(
            [radio("Pick B", "B", wrong=("A",)), text("Essay", points=4, question_type='TEXTAREA')],
            show_results='MANUAL',
        )
        services.save_answer(attempt.id, question(version, 1).id, text_value="Some essay", clock=at(1))
        services.submit_attempt(attempt.id, clock=at(2))
        self.assertEqual(format_result(self.reload(attempt), exam, T0).reason, 'pending_grading')

        essay = ExamAnswer.objects.get(attempt_id=attempt.id, question=question(version, 1))
        services.grade_manually(attempt.id, essay.id, 3, clock=at(30))
        result = format_result(self.reload(attempt), exam, T0)
        self.assertTrue(result['available'])
        self.assertEqual(result['score'], Decimal('4.00'))
        self.assertEqual(result['pending_questions'], 0)

    def test_running_total_is_shown_while_grading_is_pending(self):
        exam, version, attempt = self.take(
            [radio("Pick B", "B", wrong=("A",)), text("Essay", points=4, question_type='TEXTAREA')],
        )
        services.save_answer(attempt.id, question(version, 1).id, text_value="Some essay", clock=at(1))
        services.submit_attempt(attempt.id, clock=at(2))
        result = format_result(self.reload(attempt), exam, T0)
        self.assertEqual(result['score'], Decimal('1.00'))
        self.assertFalse(result['fully_graded'])
        self.assertEqual(result['pending_questions'], 1)

    def test_review_disabled_hides_answer_keys(self):
        exam, version, attempt = self.take(allow_review=False)
        services.submit_attempt(attempt.id, clock=at(2))
        entry = format_result(self.reload(attempt), exam, T0)['sections'][0]['questions'][0]
        self.assertNotIn('correct_answer', entry)
        self.assertNotIn('feedback', entry)
        self.assertEqual(entry['points_earned'], Decimal('2.00'))

    def test_reading_the_result_expires_an_overdue_attempt(self):
        exam, version, attempt = self.take(time_limit_minutes=10)
        attempt, result = get_attempt_result(attempt.id, clock=at(15))
        self.assertEqual(attempt.status, ExamAttempt.Status.EXPIRED)
        self.assertTrue(result['available'])
        self.assertEqual(result['score'], Decimal('2.00'))

    def test_manual_policy_with_blank_essay_is_released_at_once(self):
        exam, version, attempt = self.take(
            [radio("Pick B", "B", wrong=("A",)), text("Essay", points=4, question_type='TEXTAREA')],
            show_results='MANUAL',
        )
        services.submit_attempt(attempt.id, clock=at(2))
        result = format_result(self.reload(attempt), exam, T0)
        self.assertTrue(result['available'])
        self.assertTrue(result['fully_graded'])
        self.assertEqual(result['score'], Decimal('1.00'))

    def test_after_deadline_still_needs_a_submission(self):
        deadline = T0 + timedelta(days=1)
        exam, version, attempt = self.take(show_results='AFTER_DEADLINE', available_until=deadline)
        result = format_result(self.reload(attempt), exam, deadline + timedelta(days=1))
        self.assertEqual(result.reason, 'not_completed')

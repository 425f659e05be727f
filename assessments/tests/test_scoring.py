from decimal import Decimal

from django.test import SimpleTestCase

from assessments.grading import GradeResult
from assessments.scoring import aggregate


class AggregateTests(SimpleTestCase):
    def test_full_marks(self):
        summary = aggregate([GradeResult.graded(2, True), GradeResult.graded(3, True)], Decimal('5'), 60)
        self.assertEqual(summary.score, Decimal('5.00'))
        self.assertEqual(summary.max_score, Decimal('5.00'))
        self.assertEqual(summary.percentage, Decimal('100.00'))
        self.assertTrue(summary.passed)
        self.assertTrue(summary.is_final)

    def test_nothing_right_fails(self):
        summary = aggregate([GradeResult.incorrect(), GradeResult.incorrect()], Decimal('5'), 60)
        self.assertEqual(summary.score, Decimal('0.00'))
        self.assertEqual(summary.percentage, Decimal('0.00'))
        self.assertFalse(summary.passed)

    def test_pass_mark_is_inclusive(self):
        summary = aggregate([GradeResult.graded(3, True), GradeResult.incorrect()], Decimal('5'), 60)
        self.assertEqual(summary.percentage, Decimal('60.00'))
        self.assertTrue(summary.passed)

    def test_percentage_rounds_half_up(self):
        summary = aggregate([GradeResult.graded(1, True)], Decimal('3'), 50)
        self.assertEqual(summary.percentage, Decimal('33.33'))
        summary = aggregate([GradeResult.graded(Decimal('0.5'), False)], Decimal('8'), 50)
        self.assertEqual(summary.percentage, Decimal('6.25'))

    def test_pending_answers_count_as_zero(self):
        results = [GradeResult.graded(2, True), GradeResult.pending_manual()]
        summary = aggregate(results, Decimal('7'), 50)
        self.assertEqual(summary.score, Decimal('2.00'))
        self.assertEqual(summary.pending, 1)
        self.assertFalse(summary.is_final)

    def test_zero_max_score_gives_zero_percentage(self):
        summary = aggregate([], Decimal('0'), 60)
        self.assertEqual(summary.percentage, Decimal('0.00'))
        self.assertFalse(summary.passed)

    def test_aggregation_is_idempotent(self):
        results = [GradeResult.graded(1, True), GradeResult.incorrect(), GradeResult.pending_manual()]
        self.assertEqual(aggregate(results, Decimal('4'), 50), aggregate(results, Decimal('4'), 50))

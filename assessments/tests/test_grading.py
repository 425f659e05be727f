from decimal import Decimal

from django.test import TestCase

from assessments.grading import AnswerValue, GradeResult, grade
from .factories import make_exam, radio, checkbox, text, matching, ordering, option_id, question


class AnswerGradingTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.exam, cls.version = make_exam([
            radio("Capital of Italy?", "Rome", wrong=("Milan", "Turin"), points=2),
            checkbox("Prime numbers", correct=("Two", "Three"), wrong=("Four",), points=2),
            radio("The earth is round", "True", wrong=("False",), question_type='TRUE_FALSE'),
            text("Capital of France?", {'exact_match': "Paris"}),
            text("How do plants make food?", {'keywords': ["photosynthesis", "sunlight"]}),
            text("Describe your project", points=5, question_type='TEXTAREA'),
            matching("Match countries", {"France": "Paris", "Spain": "Madrid", "Peru": "Lima", "Chile": "Santiago"},
                     points=4),
            ordering("Sort ascending", ["1", "2", "3"], points=3),
            text("Free comment", points=0, question_type='TEXTAREA'),
        ])
        cls.radio_q = question(cls.version, 0)
        cls.checkbox_q = question(cls.version, 1)
        cls.true_false_q = question(cls.version, 2)
        cls.exact_q = question(cls.version, 3)
        cls.keyword_q = question(cls.version, 4)
        cls.essay_q = question(cls.version, 5)
        cls.matching_q = question(cls.version, 6)
        cls.ordering_q = question(cls.version, 7)
        cls.zero_point_q = question(cls.version, 8)

    def options(self, *labels):
        return AnswerValue(option_ids=tuple(option_id(self.version, label) for label in labels))

    def test_radio_correct_option_earns_full_points(self):
        result = grade(self.radio_q, self.options("Rome"))
        self.assertTrue(result.is_correct)
        self.assertEqual(result.points_earned, Decimal('2.00'))
        self.assertTrue(result.auto_graded)

    def test_radio_wrong_option_earns_nothing(self):
        result = grade(self.radio_q, self.options("Milan"))
        self.assertFalse(result.is_correct)
        self.assertEqual(result.points_earned, Decimal('0'))

    def test_radio_with_two_selections_is_incorrect(self):
        result = grade(self.radio_q, self.options("Rome", "Milan"))
        self.assertFalse(result.is_correct)
        self.assertEqual(result.points_earned, Decimal('0'))

    def test_true_false(self):
        self.assertTrue(grade(self.true_false_q, self.options("True")).is_correct)
        self.assertFalse(grade(self.true_false_q, self.options("False")).is_correct)

    def test_checkbox_requires_exact_set(self):
        result = grade(self.checkbox_q, self.options("Three", "Two"))
        self.assertTrue(result.is_correct)
        self.assertEqual(result.points_earned, Decimal('2.00'))

    def test_checkbox_subset_gets_no_partial_credit(self):
        result = grade(self.checkbox_q, self.options("Two"))
        self.assertFalse(result.is_correct)
        self.assertEqual(result.points_earned, Decimal('0'))

    def test_checkbox_superset_is_incorrect(self):
        result = grade(self.checkbox_q, self.options("Two", "Three", "Four"))
        self.assertFalse(result.is_correct)

    def test_exact_text_ignores_case_and_whitespace(self):
        result = grade(self.exact_q, AnswerValue(text="  pARIS "))
        self.assertTrue(result.is_correct)
        self.assertEqual(result.points_earned, Decimal('1.00'))

    def test_exact_text_mismatch(self):
        self.assertFalse(grade(self.exact_q, AnswerValue(text="Lyon")).is_correct)

    def test_keyword_match_anywhere_in_answer(self):
        result = grade(self.keyword_q, AnswerValue(text="Leaves use SUNLIGHT to make sugar"))
        self.assertTrue(result.is_correct)

    def test_keyword_missing(self):
        result = grade(self.keyword_q, AnswerValue(text="They eat soil"))
        self.assertFalse(result.is_correct)
        self.assertEqual(result.points_earned, Decimal('0'))

    def test_text_without_key_goes_to_manual_grading(self):
        result = grade(self.essay_q, AnswerValue(text="A long essay"))
        self.assertTrue(result.is_pending)
        self.assertIsNone(result.points_earned)
        self.assertIsNone(result.is_correct)

    def test_zero_point_text_is_not_left_pending(self):
        result = grade(self.zero_point_q, AnswerValue(text="Nice exam"))
        self.assertFalse(result.is_pending)
        self.assertEqual(result.points_earned, Decimal('0'))

    def test_matching_partial_credit(self):
        value = AnswerValue(data={'matches': {"France": "Paris", "Spain": "Madrid", "Peru": "Quito", "Chile": "Lima"}})
        result = grade(self.matching_q, value)
        self.assertEqual(result.points_earned, Decimal('2.00'))
        self.assertFalse(result.is_correct)

    def test_matching_all_pairs(self):
        value = AnswerValue(data={"France": "Paris", "Spain": "Madrid", "Peru": "Lima", "Chile": "Santiago"})
        result = grade(self.matching_q, value)
        self.assertEqual(result.points_earned, Decimal('4.00'))
        self.assertTrue(result.is_correct)

    def test_ordering_exact_sequence(self):
        self.assertTrue(grade(self.ordering_q, AnswerValue(data={'order': ["1", "2", "3"]})).is_correct)

    def test_ordering_wrong_sequence_earns_nothing(self):
        result = grade(self.ordering_q, AnswerValue(data={'order': ["1", "3", "2"]}))
        self.assertFalse(result.is_correct)
        self.assertEqual(result.points_earned, Decimal('0'))

    def test_unanswered_scores_zero_even_for_manual_questions(self):
        for q in (self.radio_q, self.essay_q, self.matching_q):
            with self.subTest(question=q.question_type):
                result = grade(q, None)
                self.assertEqual(result, GradeResult.incorrect('No answer given'))

    def test_blank_answer_counts_as_unanswered(self):
        result = grade(self.essay_q, AnswerValue(text="   "))
        self.assertFalse(result.is_pending)
        self.assertFalse(result.is_correct)

    def test_malformed_values_are_incorrect_not_errors(self):
        cases = [
            (self.matching_q, AnswerValue(data="not a mapping")),
            (self.ordering_q, AnswerValue(data={'order': "123"})),
            (self.ordering_q, AnswerValue(data=[1, 2])),
            (self.exact_q, AnswerValue(data={'text': 'Paris'})),
            (self.radio_q, AnswerValue(option_ids=(999999,))),
        ]
        for q, value in cases:
            with self.subTest(question=q.question_type, value=value):
                result = grade(q, value)
                self.assertFalse(result.is_correct)
                self.assertEqual(result.points_earned, Decimal('0'))

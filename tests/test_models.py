"""
Unit tests for the quiz data models.
"""
import dataclasses
import unittest

from mmartfun.models import Language, Operation, Question


class TestQuestion(unittest.TestCase):
    """Test cases for derived question values."""

    def test_multiply_answer_is_product(self):
        question = Question(3, 4, Operation.MULTIPLY)
        self.assertEqual(question.answer, 12)
        self.assertEqual(question.text(), "3 × 4 = ?")

    def test_divide_answer_is_second_operand(self):
        """Division shows (a*b) ÷ a, so the answer is b."""
        question = Question(6, 7, Operation.DIVIDE)
        self.assertEqual(question.answer, 7)
        self.assertEqual(question.dividend, 42)
        self.assertEqual(question.text(), "42 ÷ 6 = ?")

    def test_text_is_the_same_in_both_languages(self):
        question = Question(9, 8, Operation.DIVIDE)
        self.assertEqual(question.text(Language.VI), question.text(Language.EN))

    def test_question_is_immutable(self):
        question = Question(2, 5, Operation.MULTIPLY)
        with self.assertRaises(dataclasses.FrozenInstanceError):
            question.a = 3

    def test_exhaustive_operand_grid(self):
        """Every operand pair in 1..10 yields the expected answer."""
        for a in range(1, 11):
            for b in range(1, 11):
                self.assertEqual(Question(a, b, Operation.MULTIPLY).answer, a * b)
                divide = Question(a, b, Operation.DIVIDE)
                self.assertEqual(divide.answer, b)
                self.assertEqual(divide.dividend // a, divide.answer)


if __name__ == '__main__':
    unittest.main()

import unittest

from tests import _bootstrap  # noqa: F401
from cppblocks.logic import (
    FALSE,
    TRUE,
    Conjunction,
    Disjunction,
    Negation,
    Variable,
    conjoin,
    count_variable,
)


class FormulaTests(unittest.TestCase):
    def test_structural_equality(self) -> None:
        self.assertEqual(
            Conjunction(Variable("A"), Negation(Variable("B"))),
            Conjunction(Variable("A"), Negation(Variable("B"))),
        )
        self.assertNotEqual(
            Conjunction(Variable("A"), Variable("B")),
            Conjunction(Variable("B"), Variable("A")),
        )
        self.assertNotEqual(Conjunction(Variable("A"), Variable("B")), Disjunction(Variable("A"), Variable("B")))

    def test_constants_are_distinct(self) -> None:
        self.assertNotEqual(TRUE, FALSE)
        self.assertEqual(str(TRUE), "1")
        self.assertEqual(str(FALSE), "0")

    def test_str_parenthesizes_nested_operands(self) -> None:
        formula = Conjunction(
            Disjunction(Variable("A"), Variable("B")),
            Negation(Conjunction(Variable("C"), Variable("D"))),
        )
        self.assertEqual(str(formula), "(A || B) && !(C && D)")

    def test_str_of_flat_formula(self) -> None:
        self.assertEqual(str(Disjunction(Variable("A"), Negation(Variable("B")))), "A || !B")

    def test_conjoin_folds_left(self) -> None:
        formula = conjoin([Variable("A"), Variable("B"), Variable("C")])
        self.assertEqual(
            formula,
            Conjunction(Conjunction(Variable("A"), Variable("B")), Variable("C")),
        )

    def test_conjoin_single(self) -> None:
        self.assertEqual(conjoin([Variable("A")]), Variable("A"))

    def test_conjoin_empty(self) -> None:
        with self.assertRaises(ValueError):
            conjoin([])

    def test_count_variable(self) -> None:
        formula = Disjunction(
            Variable("X"),
            Conjunction(Negation(Variable("X")), Variable("Y")),
        )
        self.assertEqual(count_variable(formula, "X"), 2)
        self.assertEqual(count_variable(formula, "Y"), 1)
        self.assertEqual(count_variable(formula, "Z"), 0)
        self.assertEqual(count_variable(TRUE, "X"), 0)


if __name__ == "__main__":
    unittest.main()

from collections.abc import Iterable
from dataclasses import dataclass


class Formula:
    pass


@dataclass(frozen=True)
class TrueConstant(Formula):
    def __str__(self) -> str:
        return "1"


@dataclass(frozen=True)
class FalseConstant(Formula):
    def __str__(self) -> str:
        return "0"


TRUE = TrueConstant()
FALSE = FalseConstant()


@dataclass(frozen=True)
class Variable(Formula):
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Negation(Formula):
    operand: Formula

    def __str__(self) -> str:
        return f"!{_render_operand(self.operand)}"


@dataclass(frozen=True)
class Conjunction(Formula):
    left: Formula
    right: Formula

    def __str__(self) -> str:
        return f"{_render_operand(self.left)} && {_render_operand(self.right)}"


@dataclass(frozen=True)
class Disjunction(Formula):
    left: Formula
    right: Formula

    def __str__(self) -> str:
        return f"{_render_operand(self.left)} || {_render_operand(self.right)}"


def _render_operand(formula: Formula) -> str:
    if isinstance(formula, (Conjunction, Disjunction)):
        return f"({formula})"
    return str(formula)


def conjoin(formulas: Iterable[Formula]) -> Formula:
    """Fold ``formulas`` into a left-associated conjunction.

    Raises ``ValueError`` for an empty input.
    """
    iterator = iter(formulas)
    try:
        result = next(iterator)
    except StopIteration:
        raise ValueError("Cannot conjoin an empty sequence of formulas") from None
    for formula in iterator:
        result = Conjunction(result, formula)
    return result


def count_variable(formula: Formula, name: str) -> int:
    if isinstance(formula, Variable):
        return 1 if formula.name == name else 0
    if isinstance(formula, Negation):
        return count_variable(formula.operand, name)
    if isinstance(formula, (Conjunction, Disjunction)):
        return count_variable(formula.left, name) + count_variable(formula.right, name)
    return 0

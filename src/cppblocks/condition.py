from cppblocks.ast import (
    BinaryExpr,
    CallExpr,
    ConditionalExpr,
    Expr,
    Identifier,
    IntLiteral,
    UnaryExpr,
)
from cppblocks.diag import ExpressionFormatError
from cppblocks.logic import (
    FALSE,
    TRUE,
    Conjunction,
    Disjunction,
    Formula,
    Negation,
    Variable,
)
from cppblocks.options import ExtractorOptions, InvalidConditionHandling, normalize_options
from cppblocks.parser import DEFINED, parse

ERROR_VARIABLE_NAME = "PARSING_ERROR"
ERROR_VARIABLE = Variable(ERROR_VARIABLE_NAME)

MODULE_SUFFIX = "_MODULE"
NONZERO_SUFFIX = "_ne_0"

_COMPARISON_TAGS = {
    "==": "_eq_",
    "!=": "_ne_",
    "<": "_lt_",
    "<=": "_le_",
    ">": "_gt_",
    ">=": "_ge_",
}
# Comparator to use when the operands are swapped so the variable comes first.
_MIRRORED_COMPARISONS = {
    "==": "==",
    "!=": "!=",
    "<": ">",
    "<=": ">=",
    ">": "<",
    ">=": "<=",
}


class FormulaTranslator:
    """Translates condition expression trees into boolean formulas.

    With ``handle_linux_macros`` the kernel's ``IS_ENABLED``, ``IS_BUILTIN``
    and ``IS_MODULE`` map to the ``X`` / ``X_MODULE`` variable pair. With
    ``fuzzy_parsing`` bare identifiers and integer comparisons are encoded as
    synthetic variables such as ``X_ne_0`` or ``X_eq_2``.
    """

    def __init__(self, *, handle_linux_macros: bool = False, fuzzy_parsing: bool = False) -> None:
        self._handle_linux_macros = handle_linux_macros
        self._fuzzy_parsing = fuzzy_parsing

    def translate(self, expr: Expr) -> Formula:
        if isinstance(expr, CallExpr):
            return self._translate_call(expr)
        if isinstance(expr, Identifier):
            if self._fuzzy_parsing:
                return Variable(expr.name + NONZERO_SUFFIX)
            raise ExpressionFormatError(f"Found variable outside of defined() call: {expr.name}")
        if isinstance(expr, IntLiteral):
            return _literal_formula(expr.value)
        if isinstance(expr, UnaryExpr):
            return self._translate_unary(expr)
        if isinstance(expr, BinaryExpr):
            return self._translate_binary(expr)
        if isinstance(expr, ConditionalExpr):
            raise ExpressionFormatError("Unsupported operator: ?:")
        raise ExpressionFormatError(f"Unsupported expression: {expr!r}")

    def _translate_call(self, call: CallExpr) -> Formula:
        if call.argument is None:
            raise ExpressionFormatError(f"Can't handle function {call.function} without argument")
        if not isinstance(call.argument, Identifier):
            raise ExpressionFormatError(f"{call.function}() call without variable")
        name = call.argument.name
        if call.function == DEFINED:
            return Variable(name)
        if self._handle_linux_macros:
            if call.function == "IS_ENABLED":
                return Disjunction(Variable(name), Variable(name + MODULE_SUFFIX))
            if call.function == "IS_BUILTIN":
                return Variable(name)
            if call.function == "IS_MODULE":
                return Variable(name + MODULE_SUFFIX)
        raise ExpressionFormatError(f"Unsupported function/macro: {call.function}")

    def _translate_unary(self, expr: UnaryExpr) -> Formula:
        if expr.op == "!":
            return Negation(self.translate(expr.operand))
        if expr.op == "-" and isinstance(expr.operand, IntLiteral):
            return _literal_formula(-expr.operand.value)
        raise ExpressionFormatError(f"Unsupported operator: unary {expr.op}")

    def _translate_binary(self, expr: BinaryExpr) -> Formula:
        if expr.op == "&&":
            return Conjunction(self.translate(expr.left), self.translate(expr.right))
        if expr.op == "||":
            return Disjunction(self.translate(expr.left), self.translate(expr.right))
        if expr.op in _COMPARISON_TAGS:
            return self._fuzzy_comparison(expr)
        raise ExpressionFormatError(f"Unsupported operator: {expr.op}")

    def _fuzzy_comparison(self, expr: BinaryExpr) -> Formula:
        if not self._fuzzy_parsing:
            raise ExpressionFormatError(f"{expr.op} is only supported if fuzzy parsing is enabled")
        left, right = expr.left, expr.right
        if isinstance(left, Identifier) and isinstance(right, IntLiteral):
            variable, op, value = left.name, expr.op, str(right.value)
        elif isinstance(left, IntLiteral) and isinstance(right, Identifier):
            variable, op, value = right.name, _MIRRORED_COMPARISONS[expr.op], str(left.value)
        elif isinstance(left, Identifier) and isinstance(right, Identifier):
            variable, op, value = left.name, expr.op, right.name
        else:
            raise ExpressionFormatError(
                "Can only fuzzy-parse variables compared with integer literals or other variables"
            )
        return Variable(variable + _COMPARISON_TAGS[op] + value)


def _literal_formula(value: int) -> Formula:
    return FALSE if value == 0 else TRUE


class ConditionParser:
    """Parses the expression of one ``#if``-style directive into a formula.

    Expression errors are handled here according to the configured
    invalid-condition policy; this is the only place the policy applies.
    """

    def __init__(self, options: ExtractorOptions | None = None) -> None:
        self._options = normalize_options(options)
        self._translator = FormulaTranslator(
            handle_linux_macros=self._options.handle_linux_macros,
            fuzzy_parsing=self._options.fuzzy_parsing,
        )

    def parse(self, expression: str) -> Formula:
        try:
            return self._translate(expression)
        except ExpressionFormatError:
            handling = self._options.invalid_condition
            if handling is InvalidConditionHandling.TRUE:
                return TRUE
            if handling is InvalidConditionHandling.ERROR_VARIABLE:
                return ERROR_VARIABLE
            raise

    def _translate(self, expression: str) -> Formula:
        try:
            return self._translator.translate(parse(expression))
        except RecursionError:
            raise ExpressionFormatError("Condition nested too deeply") from None


def parse_condition(expression: str, options: ExtractorOptions | None = None) -> Formula:
    return ConditionParser(options).parse(expression)

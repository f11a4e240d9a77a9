from dataclasses import dataclass


class Expr:
    pass


@dataclass(frozen=True)
class IntLiteral(Expr):
    lexeme: str
    value: int


@dataclass(frozen=True)
class Identifier(Expr):
    name: str


@dataclass(frozen=True)
class CallExpr(Expr):
    function: str
    argument: Expr | None


@dataclass(frozen=True)
class UnaryExpr(Expr):
    op: str
    operand: Expr


@dataclass(frozen=True)
class BinaryExpr(Expr):
    op: str
    left: Expr
    right: Expr


@dataclass(frozen=True)
class ConditionalExpr(Expr):
    condition: Expr
    then_expr: Expr
    else_expr: Expr

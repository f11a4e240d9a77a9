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
from cppblocks.lexer import Token, TokenKind, lex, parse_integer_literal

DEFINED = "defined"
EQUALITY_OPERATORS = ("==", "!=")
RELATIONAL_OPERATORS = ("<", "<=", ">", ">=")
SHIFT_OPERATORS = ("<<", ">>")
ADDITIVE_OPERATORS = ("+", "-")
MULTIPLICATIVE_OPERATORS = ("*", "/", "%")
UNARY_OPERATORS = ("-", "+", "~", "!")


class ParserError(ExpressionFormatError):
    def __init__(self, message: str, token: Token) -> None:
        if token.kind == TokenKind.EOF:
            super().__init__(f"{message} at end of expression")
        else:
            super().__init__(f"{message} at column {token.column}")
        self.token = token


class Parser:
    """Recursive-descent parser for a single preprocessor condition.

    Logical negation binds looser than the comparison operators, so
    ``!A == 1`` reads as ``!(A == 1)``. Arithmetic and bitwise operators are
    parsed with their usual C precedence; whether they are meaningful is
    decided when the tree is translated into a formula.
    """

    def __init__(self, tokens: list[Token]) -> None:
        self._tokens = tokens
        self._index = 0

    def parse(self) -> Expr:
        expr = self._parse_conditional()
        if not self._match(TokenKind.EOF):
            raise ParserError("Unexpected token", self._current())
        return expr

    def _parse_conditional(self) -> Expr:
        expr = self._parse_logical_or()
        if not self._check_punct("?"):
            return expr
        self._advance()
        then_expr = self._parse_conditional()
        self._expect_punct(":")
        else_expr = self._parse_conditional()
        return ConditionalExpr(expr, then_expr, else_expr)

    def _parse_logical_or(self) -> Expr:
        expr = self._parse_logical_and()
        while self._check_punct("||"):
            op = self._advance().lexeme
            right = self._parse_logical_and()
            expr = BinaryExpr(str(op), expr, right)
        return expr

    def _parse_logical_and(self) -> Expr:
        expr = self._parse_logical_not()
        while self._check_punct("&&"):
            op = self._advance().lexeme
            right = self._parse_logical_not()
            expr = BinaryExpr(str(op), expr, right)
        return expr

    def _parse_logical_not(self) -> Expr:
        if self._check_punct("!"):
            self._advance()
            return UnaryExpr("!", self._parse_logical_not())
        return self._parse_bitwise_or()

    def _parse_bitwise_or(self) -> Expr:
        expr = self._parse_bitwise_xor()
        while self._check_punct("|"):
            op = self._advance().lexeme
            right = self._parse_bitwise_xor()
            expr = BinaryExpr(str(op), expr, right)
        return expr

    def _parse_bitwise_xor(self) -> Expr:
        expr = self._parse_bitwise_and()
        while self._check_punct("^"):
            op = self._advance().lexeme
            right = self._parse_bitwise_and()
            expr = BinaryExpr(str(op), expr, right)
        return expr

    def _parse_bitwise_and(self) -> Expr:
        expr = self._parse_equality()
        while self._check_punct("&"):
            op = self._advance().lexeme
            right = self._parse_equality()
            expr = BinaryExpr(str(op), expr, right)
        return expr

    def _parse_equality(self) -> Expr:
        expr = self._parse_relational()
        while self._check_any_punct(EQUALITY_OPERATORS):
            op = self._advance().lexeme
            right = self._parse_relational()
            expr = BinaryExpr(str(op), expr, right)
        return expr

    def _parse_relational(self) -> Expr:
        expr = self._parse_shift()
        while self._check_any_punct(RELATIONAL_OPERATORS):
            op = self._advance().lexeme
            right = self._parse_shift()
            expr = BinaryExpr(str(op), expr, right)
        return expr

    def _parse_shift(self) -> Expr:
        expr = self._parse_additive()
        while self._check_any_punct(SHIFT_OPERATORS):
            op = self._advance().lexeme
            right = self._parse_additive()
            expr = BinaryExpr(str(op), expr, right)
        return expr

    def _parse_additive(self) -> Expr:
        expr = self._parse_multiplicative()
        while self._check_any_punct(ADDITIVE_OPERATORS):
            op = self._advance().lexeme
            right = self._parse_multiplicative()
            expr = BinaryExpr(str(op), expr, right)
        return expr

    def _parse_multiplicative(self) -> Expr:
        expr = self._parse_unary()
        while self._check_any_punct(MULTIPLICATIVE_OPERATORS):
            op = self._advance().lexeme
            right = self._parse_unary()
            expr = BinaryExpr(str(op), expr, right)
        return expr

    def _parse_unary(self) -> Expr:
        if self._check_any_punct(UNARY_OPERATORS):
            op = self._advance().lexeme
            operand = self._parse_unary()
            return UnaryExpr(str(op), operand)
        return self._parse_primary()

    def _parse_primary(self) -> Expr:
        token = self._current()
        if token.kind == TokenKind.INT_CONST:
            self._advance()
            assert isinstance(token.lexeme, str)
            return IntLiteral(token.lexeme, parse_integer_literal(token.lexeme))
        if token.kind == TokenKind.IDENT:
            assert isinstance(token.lexeme, str)
            if token.lexeme == DEFINED:
                return self._parse_defined()
            self._advance()
            if self._check_punct("("):
                return self._parse_call(token.lexeme)
            return Identifier(token.lexeme)
        if self._check_punct("("):
            self._advance()
            expr = self._parse_conditional()
            self._expect_punct(")")
            return expr
        if token.kind == TokenKind.EOF:
            raise ParserError("Expected an operand", token)
        raise ParserError("Unexpected token", token)

    def _parse_defined(self) -> CallExpr:
        # Accepts defined(X), defined (X) and defined X.
        self._advance()
        parenthesized = self._check_punct("(")
        if parenthesized:
            self._advance()
        token = self._current()
        if token.kind != TokenKind.IDENT:
            raise ParserError("Expected macro name in defined", token)
        self._advance()
        if parenthesized:
            self._expect_punct(")")
        assert isinstance(token.lexeme, str)
        return CallExpr(DEFINED, Identifier(token.lexeme))

    def _parse_call(self, function: str) -> CallExpr:
        self._expect_punct("(")
        if self._check_punct(")"):
            self._advance()
            return CallExpr(function, None)
        argument = self._parse_conditional()
        self._expect_punct(")")
        return CallExpr(function, argument)

    def _current(self) -> Token:
        return self._tokens[self._index]

    def _advance(self) -> Token:
        token = self._current()
        if token.kind != TokenKind.EOF:
            self._index += 1
        return token

    def _expect_punct(self, value: str) -> None:
        token = self._current()
        if token.kind != TokenKind.PUNCTUATOR or token.lexeme != value:
            raise ParserError(f"Expected '{value}'", token)
        self._advance()

    def _check_punct(self, value: str) -> bool:
        token = self._current()
        return token.kind == TokenKind.PUNCTUATOR and token.lexeme == value

    def _check_any_punct(self, values: tuple[str, ...]) -> bool:
        token = self._current()
        return token.kind == TokenKind.PUNCTUATOR and token.lexeme in values

    def _match(self, kind: TokenKind) -> bool:
        return self._current().kind == kind


def parse(expression: str) -> Expr:
    return Parser(lex(expression)).parse()

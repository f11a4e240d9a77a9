import io
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TextIO

from cppblocks.condition import ConditionParser
from cppblocks.diag import ExpressionFormatError, StructuralFormatError
from cppblocks.logic import TRUE, Conjunction, Formula, Negation, conjoin
from cppblocks.normalizer import LogicalLine, iter_logical_lines
from cppblocks.options import ExtractorOptions, normalize_options


@dataclass(frozen=True)
class Block:
    line_start: int
    line_end: int
    source_file: str
    condition: Formula
    presence_condition: Formula
    children: tuple["Block", ...] = ()

    def __str__(self) -> str:
        return f"{self.source_file}:{self.line_start}-{self.line_end}: {self.condition}"


@dataclass
class _OpenBlock:
    line_start: int
    condition: Formula
    presence_condition: Formula
    children: list[Block] = field(default_factory=list)

    def finish(self, line_end: int, source_file: str) -> Block:
        return Block(
            self.line_start,
            line_end,
            source_file,
            self.condition,
            self.presence_condition,
            tuple(self.children),
        )


@dataclass
class _ConditionalFrame:
    """One nesting level: the open block and the conditions of its siblings.

    ``previous_conditions`` holds the conditions of the ``#if`` and every
    ``#elif`` seen so far in this chain; ``#else`` empties it, which closes
    the chain for further ``#elif``/``#else`` directives.
    """

    block: _OpenBlock
    previous_conditions: list[Formula]


class BlockParser:
    def __init__(
        self,
        source_file: str,
        options: ExtractorOptions | None = None,
    ) -> None:
        self._source_file = source_file
        self._options = normalize_options(options)
        self._condition_parser = ConditionParser(self._options)
        self._top_blocks: list[Block] = []
        self._stack: list[_ConditionalFrame] = []
        self._found_content_outside = False
        self._line = 0

    def read_blocks(self, lines: Iterable[str]) -> list[Block]:
        for logical in iter_logical_lines(lines):
            self._line = logical.number
            self._handle_line(logical)
        if self._stack:
            opening = self._stack[-1].block.line_start
            raise StructuralFormatError(
                f"Found opening at line {opening} but no closing #endif",
                opening,
                filename=self._source_file,
            )
        return self._build_result()

    def _handle_line(self, logical: LogicalLine) -> None:
        text = logical.text
        if text.startswith("#ifdef"):
            self._handle_if(f"defined({text[len('#ifdef'):].strip()})")
        elif text.startswith("#ifndef"):
            self._handle_if(f"!defined({text[len('#ifndef'):].strip()})")
        elif text.startswith("#if"):
            self._handle_if(text[len("#if") :])
        elif text.startswith("#elif"):
            self._handle_elif(text[len("#elif") :])
        elif text.startswith("#else"):
            self._handle_else()
        elif text.startswith("#endif"):
            self._handle_endif()
        elif text and not self._stack:
            self._found_content_outside = True

    def _handle_if(self, expression: str) -> None:
        condition = self._parse_condition(expression)
        self._open_block(condition, [condition])

    def _handle_elif(self, expression: str) -> None:
        frame = self._require_open_chain("#elif")
        condition = self._parse_condition(expression)
        not_previous = _negate_all(frame.previous_conditions)
        frame.previous_conditions.append(condition)
        self._finish_block()
        self._open_block(Conjunction(not_previous, condition), frame.previous_conditions)

    def _handle_else(self) -> None:
        frame = self._require_open_chain("#else")
        not_previous = _negate_all(frame.previous_conditions)
        frame.previous_conditions.clear()
        self._finish_block()
        self._open_block(not_previous, frame.previous_conditions)

    def _handle_endif(self) -> None:
        if not self._stack:
            raise StructuralFormatError(
                "Found #endif with no corresponding opening",
                self._line,
                filename=self._source_file,
            )
        self._finish_block()

    def _require_open_chain(self, directive: str) -> _ConditionalFrame:
        if not self._stack:
            raise StructuralFormatError(
                f"Found {directive} with no previous #if condition",
                self._line,
                filename=self._source_file,
            )
        frame = self._stack[-1]
        if not frame.previous_conditions:
            raise StructuralFormatError(
                f"Found {directive} after an #else condition",
                self._line,
                filename=self._source_file,
            )
        return frame

    def _parse_condition(self, expression: str) -> Formula:
        try:
            return self._condition_parser.parse(expression)
        except ExpressionFormatError as error:
            raise ExpressionFormatError(
                f"Can't parse expression '{expression.strip()}': {error}",
                self._line,
                filename=self._source_file,
            ) from error

    def _open_block(self, condition: Formula, previous_conditions: list[Formula]) -> None:
        if self._stack:
            parent = self._stack[-1].block
            presence_condition: Formula = Conjunction(parent.presence_condition, condition)
        else:
            presence_condition = condition
        block = _OpenBlock(self._line, condition, presence_condition)
        self._stack.append(_ConditionalFrame(block, previous_conditions))

    def _finish_block(self) -> None:
        frame = self._stack.pop()
        block = frame.block.finish(self._line - 1, self._source_file)
        if self._stack:
            self._stack[-1].block.children.append(block)
        else:
            self._top_blocks.append(block)

    def _build_result(self) -> list[Block]:
        if not (self._found_content_outside and self._options.add_pseudo_block):
            return list(self._top_blocks)
        # Ends one past the last logical line to account for the trailing newline.
        root = Block(1, self._line + 1, self._source_file, TRUE, TRUE, tuple(self._top_blocks))
        return [root]


def _negate_all(conditions: list[Formula]) -> Formula:
    return conjoin(Negation(condition) for condition in conditions)


def read_blocks(
    stream: TextIO | Iterable[str],
    source_file: str,
    options: ExtractorOptions | None = None,
) -> list[Block]:
    return BlockParser(source_file, options).read_blocks(stream)


def parse_source(
    source: str,
    *,
    source_file: str = "<input>",
    options: ExtractorOptions | None = None,
) -> list[Block]:
    return read_blocks(io.StringIO(source), source_file, options)

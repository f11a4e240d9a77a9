from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum, auto


class CommentState(Enum):
    CODE = auto()
    BLOCK_COMMENT = auto()


@dataclass(frozen=True)
class LogicalLine:
    """A trimmed, comment-free line; ``number`` is its first physical line."""

    number: int
    text: str

    @property
    def is_directive(self) -> bool:
        return self.text.startswith("#")


def strip_comments(line: str, state: CommentState) -> tuple[str, CommentState]:
    """Remove ``//`` and ``/* */`` comments from ``line``.

    ``state`` tells whether the line starts inside a block comment; the
    returned state is the one the next line starts in.
    """
    out: list[str] = []
    index = 0
    length = len(line)
    while index < length:
        if state is CommentState.BLOCK_COMMENT:
            end = line.find("*/", index)
            if end < 0:
                return "".join(out), state
            index = end + 2
            state = CommentState.CODE
            continue
        if line.startswith("//", index):
            break
        if line.startswith("/*", index):
            # The opening star never also closes the comment, so "/*/" stays open.
            state = CommentState.BLOCK_COMMENT
            index += 2
            continue
        out.append(line[index])
        index += 1
    return "".join(out), state


def _collapse_hash_whitespace(text: str) -> str:
    return "#" + text[1:].lstrip()


def _chomp(line: str) -> str:
    return line.rstrip("\r\n")


def iter_logical_lines(lines: Iterable[str]) -> Iterator[LogicalLine]:
    """Yield the logical lines of ``lines``.

    Directive lines ending in a backslash swallow the following physical
    lines before comments are removed; line numbers keep counting the
    physical lines that were consumed.
    """
    physical = iter(lines)
    state = CommentState.CODE
    number = 0
    for raw in physical:
        number += 1
        start = number
        text = _chomp(raw).strip()
        if text.startswith("#"):
            text = _collapse_hash_whitespace(text)
            while text.endswith("\\"):
                text = text[:-1]
                following = next(physical, None)
                if following is None:
                    break
                number += 1
                text += _chomp(following)
        cleaned, state = strip_comments(text, state)
        yield LogicalLine(start, cleaned.strip())

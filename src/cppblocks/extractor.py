import io
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

from cppblocks._logging import NoopLogger, resolve_logger
from cppblocks.blocks import Block, read_blocks
from cppblocks.diag import Diagnostic, ExtractorError, FormatError
from cppblocks.options import ExtractorOptions, normalize_options


@dataclass(frozen=True)
class SourceFile:
    path: str
    blocks: tuple[Block, ...]


def _format_diagnostic(error: FormatError, filename: str) -> Diagnostic:
    return Diagnostic("parse", filename, error.message, error.line)


def _extract_lines(
    lines: TextIO,
    path: str,
    options: ExtractorOptions,
    log: logging.Logger | NoopLogger,
) -> SourceFile:
    try:
        blocks = read_blocks(lines, path, options)
    except FormatError as error:
        log.debug("failed to parse %s: %s", path, error)
        raise ExtractorError(_format_diagnostic(error, path)) from error
    log.debug("found %d top-level blocks in %s", len(blocks), path)
    return SourceFile(path, tuple(blocks))


def extract_source(
    source: str,
    *,
    path: str = "<input>",
    options: ExtractorOptions | None = None,
    logger: logging.Logger | None = None,
    log: bool = False,
) -> SourceFile:
    lg = resolve_logger(logger=logger, enabled=log, name=__name__)
    return _extract_lines(io.StringIO(source), path, normalize_options(options), lg)


def extract_file(
    target: str | Path,
    *,
    source_tree: str | Path | None = None,
    options: ExtractorOptions | None = None,
    logger: logging.Logger | None = None,
    log: bool = False,
) -> SourceFile:
    """Extract the blocks of ``target``, resolved against ``source_tree``.

    Blocks are tagged with ``target`` as given, not with the resolved path.
    """
    lg = resolve_logger(logger=logger, enabled=log, name=__name__)
    path = str(target)
    resolved = Path(target) if source_tree is None else Path(source_tree) / target
    lg.debug("extracting blocks from %s", resolved)
    try:
        with resolved.open(encoding="utf-8") as stream:
            return _extract_lines(stream, path, normalize_options(options), lg)
    except (OSError, UnicodeError) as error:
        raise ExtractorError(Diagnostic("read", path, f"Can't read {resolved}: {error}")) from error


def extract_stdin(
    *,
    stdin: TextIO | None = None,
    options: ExtractorOptions | None = None,
    logger: logging.Logger | None = None,
    log: bool = False,
) -> SourceFile:
    stream = sys.stdin if stdin is None else stdin
    try:
        source = stream.read()
    except (OSError, UnicodeError) as error:
        raise ExtractorError(Diagnostic("read", "<stdin>", f"Can't read <stdin>: {error}")) from error
    return extract_source(source, path="<stdin>", options=options, logger=logger, log=log)

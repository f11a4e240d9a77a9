import logging
from collections.abc import Iterable
from dataclasses import dataclass

from cppblocks._logging import resolve_logger
from cppblocks.blocks import Block
from cppblocks.condition import ERROR_VARIABLE_NAME
from cppblocks.diag import ExtractorError
from cppblocks.extractor import SourceFile
from cppblocks.logic import count_variable
from cppblocks.options import ExtractorOptions, InvalidConditionHandling, normalize_options


@dataclass(frozen=True)
class ParsingStatistics:
    files: int = 0
    failed_files: int = 0
    conditions: int = 0
    error_variables: int = 0


def count_conditions(blocks: Iterable[Block]) -> tuple[int, int]:
    """Return ``(conditions, error_variables)`` over whole block trees.

    Only each block's own condition is inspected; presence conditions repeat
    their ancestors' conditions and would count them again.
    """
    conditions = 0
    errors = 0
    pending = list(blocks)
    while pending:
        block = pending.pop()
        conditions += 1
        errors += count_variable(block.condition, ERROR_VARIABLE_NAME)
        pending.extend(block.children)
    return conditions, errors


def collect_statistics(
    results: Iterable[SourceFile | ExtractorError],
    *,
    options: ExtractorOptions | None = None,
    logger: logging.Logger | None = None,
    log: bool = False,
) -> ParsingStatistics:
    lg = resolve_logger(logger=logger, enabled=log, name=__name__)
    if normalize_options(options).invalid_condition is not InvalidConditionHandling.ERROR_VARIABLE:
        lg.warning(
            "Can't find number of unparseable conditions when invalid condition handling is not %s",
            InvalidConditionHandling.ERROR_VARIABLE.value,
        )
    files = 0
    failed = 0
    conditions = 0
    errors = 0
    for result in results:
        if isinstance(result, ExtractorError):
            failed += 1
            continue
        files += 1
        file_conditions, file_errors = count_conditions(result.blocks)
        conditions += file_conditions
        errors += file_errors
    statistics = ParsingStatistics(files, failed, conditions, errors)
    for line in format_statistics(statistics):
        lg.info(line)
    return statistics


def format_statistics(statistics: ParsingStatistics) -> list[str]:
    return [
        "Parsing statistics:",
        f"\tNumber of files: {statistics.files}",
        f"\tNumber of exceptions (unparseable files): {statistics.failed_files}",
        f"\tNumber of conditions: {statistics.conditions}",
        "\tNumber of error variables in conditions (unparseable conditions): "
        f"{statistics.error_variables}",
    ]

import argparse
import json
import logging
import sys
from collections.abc import Sequence
from dataclasses import replace
from typing import Any, TextIO, cast

from cppblocks.blocks import Block
from cppblocks.diag import ExtractorError
from cppblocks.extractor import SourceFile, extract_file, extract_stdin
from cppblocks.options import (
    ExtractorOptions,
    InvalidConditionHandling,
    options_from_settings,
    parse_invalid_condition_handling,
)
from cppblocks.stats import collect_statistics, format_statistics


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Extract #if blocks and their presence conditions from C source files."
    )
    parser.add_argument("inputs", nargs="+", help="paths to C source files, or - to read from stdin")
    parser.add_argument(
        "--handle-linux-macros",
        action="store_true",
        default=None,
        help="translate IS_ENABLED, IS_BUILTIN and IS_MODULE",
    )
    parser.add_argument(
        "--fuzzy-parsing",
        action="store_true",
        default=None,
        help="encode integer comparisons and bare identifiers as variables",
    )
    parser.add_argument(
        "--invalid-condition",
        choices=tuple(handling.value for handling in InvalidConditionHandling),
        default=None,
        help="how to handle conditions that cannot be parsed",
    )
    parser.add_argument(
        "--no-pseudo-block",
        dest="add_pseudo_block",
        action="store_const",
        const=False,
        default=None,
        help="do not wrap the file in a block when code lies outside all #if blocks",
    )
    parser.add_argument(
        "--set",
        dest="settings",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="apply a configuration setting such as code.extractor.fuzzy_parsing=true",
    )
    parser.add_argument("--source-tree", help="directory the input paths are relative to")
    parser.add_argument(
        "--format",
        choices=("human", "json"),
        default="human",
        help="output format for blocks and diagnostics",
    )
    parser.add_argument("--stats", action="store_true", help="print parsing statistics")
    parser.add_argument("--verbose", action="store_true", help="log progress to stderr")
    return parser


def _parse_settings(items: Sequence[str]) -> dict[str, str]:
    settings: dict[str, str] = {}
    for item in items:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Invalid setting (expected KEY=VALUE): {item}")
        settings[key.strip()] = value.strip()
    return settings


def _build_options(args: argparse.Namespace) -> ExtractorOptions:
    options = options_from_settings(_parse_settings(args.settings))
    if args.handle_linux_macros is not None:
        options = replace(options, handle_linux_macros=True)
    if args.fuzzy_parsing is not None:
        options = replace(options, fuzzy_parsing=True)
    if args.invalid_condition is not None:
        options = replace(
            options, invalid_condition=parse_invalid_condition_handling(args.invalid_condition)
        )
    if args.add_pseudo_block is not None:
        options = replace(options, add_pseudo_block=False)
    return options


def format_block(block: Block, depth: int = 0) -> list[str]:
    line = f"{'  ' * depth}{block.line_start}-{block.line_end}: {block.condition}"
    if block.presence_condition != block.condition:
        line += f"  [pc: {block.presence_condition}]"
    lines = [line]
    for child in block.children:
        lines.extend(format_block(child, depth + 1))
    return lines


def block_to_dict(block: Block) -> dict[str, Any]:
    return {
        "start": block.line_start,
        "end": block.line_end,
        "condition": str(block.condition),
        "presence_condition": str(block.presence_condition),
        "children": [block_to_dict(child) for child in block.children],
    }


def _print_source_file(source_file: SourceFile, diag_format: str) -> None:
    if diag_format == "json":
        print(
            json.dumps(
                {
                    "path": source_file.path,
                    "blocks": [block_to_dict(block) for block in source_file.blocks],
                },
                separators=(",", ":"),
            )
        )
        return
    print(f"{source_file.path}:")
    for block in source_file.blocks:
        for line in format_block(block, 1):
            print(line)


def _print_error(error: ExtractorError, diag_format: str) -> None:
    if diag_format == "json":
        diagnostic = error.diagnostic
        print(
            json.dumps(
                {
                    "stage": diagnostic.stage,
                    "filename": diagnostic.filename,
                    "line": diagnostic.line,
                    "message": diagnostic.message,
                },
                separators=(",", ":"),
            ),
            file=sys.stderr,
        )
    else:
        print(error, file=sys.stderr)


def main(argv: Sequence[str] | None = None, *, stdin: TextIO | None = None) -> int:
    parser = _build_arg_parser()
    try:
        args = parser.parse_args(list(argv) if argv is not None else sys.argv[1:])
    except SystemExit as error:
        return cast(int, error.code)
    try:
        options = _build_options(args)
    except ValueError as error:
        print(f"cppblocks: configuration error: {error}", file=sys.stderr)
        return 2
    logger: logging.Logger | None = None
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")
        logger = logging.getLogger("cppblocks")
    results: list[SourceFile | ExtractorError] = []
    for path in args.inputs:
        try:
            if path == "-":
                result = extract_stdin(stdin=stdin, options=options, logger=logger)
            else:
                result = extract_file(
                    path, source_tree=args.source_tree, options=options, logger=logger
                )
        except ExtractorError as error:
            _print_error(error, args.format)
            results.append(error)
            continue
        _print_source_file(result, args.format)
        results.append(result)
    if args.stats:
        statistics = collect_statistics(results, options=options, logger=logger)
        for line in format_statistics(statistics):
            print(line)
    return 1 if any(isinstance(result, ExtractorError) for result in results) else 0

from collections.abc import Mapping
from dataclasses import dataclass, replace
from enum import Enum

HANDLE_LINUX_MACROS_KEY = "code.extractor.handle_linux_macros"
FUZZY_PARSING_KEY = "code.extractor.fuzzy_parsing"
INVALID_CONDITION_KEY = "code.extractor.invalid_condition"
ADD_PSEUDO_BLOCK_KEY = "code.extractor.add_pseudo_block"

_TRUE_WORDS = frozenset({"true", "1", "yes", "on"})
_FALSE_WORDS = frozenset({"false", "0", "no", "off"})


class InvalidConditionHandling(Enum):
    """What to do with a condition that cannot be parsed.

    EXCEPTION aborts the whole file, TRUE substitutes the constant true and
    ERROR_VARIABLE substitutes the ``PARSING_ERROR`` variable.
    """

    EXCEPTION = "exception"
    TRUE = "true"
    ERROR_VARIABLE = "error_variable"


@dataclass(frozen=True)
class ExtractorOptions:
    handle_linux_macros: bool = False
    fuzzy_parsing: bool = False
    invalid_condition: InvalidConditionHandling = InvalidConditionHandling.EXCEPTION
    add_pseudo_block: bool = True

    def __post_init__(self) -> None:
        if not isinstance(self.invalid_condition, InvalidConditionHandling):
            raise ValueError(f"Unsupported invalid condition handling: {self.invalid_condition}")


def normalize_options(options: ExtractorOptions | None) -> ExtractorOptions:
    return ExtractorOptions() if options is None else options


def parse_invalid_condition_handling(value: str) -> InvalidConditionHandling:
    text = value.strip().lower()
    for handling in InvalidConditionHandling:
        if text in {handling.value, handling.name.lower()}:
            return handling
    raise ValueError(f"Unsupported invalid condition handling: {value}")


def _parse_bool(key: str, value: str) -> bool:
    text = value.strip().lower()
    if text in _TRUE_WORDS:
        return True
    if text in _FALSE_WORDS:
        return False
    raise ValueError(f"Invalid boolean value for {key}: {value}")


def options_from_settings(
    settings: Mapping[str, str],
    base: ExtractorOptions | None = None,
) -> ExtractorOptions:
    options = normalize_options(base)
    for key, value in settings.items():
        if key == HANDLE_LINUX_MACROS_KEY:
            options = replace(options, handle_linux_macros=_parse_bool(key, value))
        elif key == FUZZY_PARSING_KEY:
            options = replace(options, fuzzy_parsing=_parse_bool(key, value))
        elif key == INVALID_CONDITION_KEY:
            options = replace(options, invalid_condition=parse_invalid_condition_handling(value))
        elif key == ADD_PSEUDO_BLOCK_KEY:
            options = replace(options, add_pseudo_block=_parse_bool(key, value))
        else:
            raise ValueError(f"Unknown setting: {key}")
    return options

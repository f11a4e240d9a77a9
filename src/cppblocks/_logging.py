"""Logger selection for the extraction and statistics functions.

They stay silent unless the caller hands in a ``logging.Logger`` or passes
``log=True``, in which case a logger named after the module is used.
"""

import logging


class NoopLogger:
    def debug(self, *args: object, **kwargs: object) -> None:
        pass

    info = warning = error = debug


def resolve_logger(
    logger: logging.Logger | None = None,
    *,
    enabled: bool = False,
    name: str | None = None,
    level: int = logging.INFO,
) -> logging.Logger | NoopLogger:
    if logger is not None:
        return logger
    if not enabled:
        return NoopLogger()
    named = logging.getLogger(name or "cppblocks")
    named.setLevel(level)
    return named

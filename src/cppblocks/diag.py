from dataclasses import dataclass


class FormatError(ValueError):
    def __init__(
        self,
        message: str,
        line: int | None = None,
        *,
        filename: str | None = None,
    ) -> None:
        if line is None:
            super().__init__(message)
        else:
            location = f"{filename}:{line}" if filename is not None else f"line {line}"
            super().__init__(f"{message} at {location}")
        self.message = message
        self.line = line
        self.filename = filename


class ExpressionFormatError(FormatError):
    pass


class StructuralFormatError(FormatError):
    pass


@dataclass(frozen=True)
class Diagnostic:
    stage: str
    filename: str
    message: str
    line: int | None = None

    def __str__(self) -> str:
        if self.line is None:
            return f"{self.filename}: {self.stage}: {self.message}"
        return f"{self.filename}:{self.line}: {self.stage}: {self.message}"


class ExtractorError(ValueError):
    def __init__(self, diagnostic: Diagnostic) -> None:
        super().__init__(str(diagnostic))
        self.diagnostic = diagnostic

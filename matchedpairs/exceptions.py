"""Contains exceptions raised by matched molecular pair operations."""


class MMPError(Exception):
    """Base exception for matched molecular pair errors."""


class MMPFormatError(MMPError, ValueError):
    """Persisted data set is truncated, malformed or inconsistent."""

    def __init__(self, message: str, line: int | None = None):
        if line is not None:
            message = f"{message} (line {line})"
        super().__init__(message)
        self.line = line


class InvalidMoleculeError(MMPError, ValueError):
    """Structure cannot be parsed or canonicalized."""


class UnknownDatasetError(MMPError, KeyError):
    """No data set is registered under the requested name."""

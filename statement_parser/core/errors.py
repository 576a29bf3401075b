"""
Parse failures.

Every failure reports the same message to callers; ``kind`` and ``detail`` keep
the internal reason for logs and tests.
"""

NO_TRANSACTIONS_MESSAGE = "No transactions parsed - adjust column ranges or check PDF format"


class StatementParseError(ValueError):
    """Base class for all parse failures."""
    kind = "parse_error"

    def __init__(self, detail: str = ""):
        super().__init__(NO_TRANSACTIONS_MESSAGE)
        self.detail = detail

    def __repr__(self):
        return f"{type(self).__name__}(kind={self.kind!r}, detail={self.detail!r})"


class StructureNotFound(StatementParseError):
    """No row matched the full header keyword set."""
    kind = "structure_not_found"


class NoValidRows(StatementParseError):
    """A header matched but no following row survived validation."""
    kind = "no_valid_rows"


class UnknownPattern(StatementParseError):
    """No configuration is registered for the requested pattern."""
    kind = "unknown_pattern"

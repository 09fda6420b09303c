"""Exceptions raised by age_cypher."""

from typing import Optional


class AgeError(Exception):
    """Base class for every error raised by this package."""


class InvalidIdentifierError(AgeError, ValueError):
    """A graph name, column, type name or Cypher text failed validation."""


class AgeNotInstalledError(AgeError):
    """The AGE extension (or its agtype type) is not available."""


class AgtypeDecodeError(AgeError, ValueError):
    def __init__(self, message: str, text: str, position: int) -> None:
        self.text = text
        self.position = position
        super().__init__(f"{message} at position {position}: {text[:80]!r}")


class CypherExecutionError(AgeError):
    """The database rejected a Cypher statement or failed while reading rows."""

    def __init__(
        self,
        graph: str,
        original_error: Exception,
        sqlstate: Optional[str] = None,
    ) -> None:
        self.graph = graph
        self.original_error = original_error
        self.sqlstate = sqlstate
        message = f"Cypher on graph '{graph}' failed: {original_error}"
        if sqlstate:
            message += f" (SQLSTATE {sqlstate})"
        super().__init__(message)


class ResourceReleaseError(AgeError):
    def __init__(self, failures: list) -> None:
        self.failures = failures
        super().__init__(f"{len(failures)} resource(s) failed to close: {failures[0]!r}")

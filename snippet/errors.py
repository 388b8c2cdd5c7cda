"""Exceptions raised by snippet extraction requests."""

from typing import Optional


class SnippetExtractionError(Exception):
    """Base class for request-scoped extraction failures.

    Attributes:
        message: Short failure description.
        file_path: The requested file, when known.
        pattern: The requested member pattern, when known.
    """

    def __init__(
        self,
        message: str,
        file_path: Optional[str] = None,
        pattern: Optional[str] = None,
    ):
        self.message = message
        self.file_path = file_path
        self.pattern = pattern
        super().__init__(message)

    def with_context(
        self,
        file_path: Optional[str] = None,
        pattern: Optional[str] = None,
    ) -> "SnippetExtractionError":
        """Return a copy of this error enriched with request context."""
        return type(self)(
            self.message,
            file_path=file_path if file_path is not None else self.file_path,
            pattern=pattern if pattern is not None else self.pattern,
        )

    @property
    def context(self) -> str:
        parts = [p for p in (self.file_path, self.pattern) if p]
        return " ".join(parts)

    def __str__(self) -> str:
        if self.context:
            return f"{self.message}: {self.context}"
        return self.message


class InvalidPatternError(SnippetExtractionError):
    """Raised when a member pattern cannot be tokenized or classified."""


class MemberNotFoundError(SnippetExtractionError):
    """Raised when no declaration satisfies the member pattern."""


class SnippetFileNotFoundError(SnippetExtractionError, FileNotFoundError):
    """Raised when the requested file is absent from every source root."""


class EmptySpanSetError(SnippetExtractionError):
    """Raised when a snippet is built from zero declarations."""


class ParseError(SnippetExtractionError):
    """Raised when a source file cannot be turned into a declaration tree."""

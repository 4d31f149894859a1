"""Exception hierarchy for corpus lookups, searches and storage."""

from __future__ import annotations


class CorpusError(Exception):
    """Base exception for all afs-corpus errors."""

    status_code = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(CorpusError):
    """Unknown regulation, section, appendix or reference."""

    status_code = 404

    def __init__(self, what: str, reference: str) -> None:
        self.what = what
        self.reference = reference
        super().__init__(f"{what} not found: {reference}")


class InvalidInputError(CorpusError):
    """A caller-supplied value failed validation."""

    status_code = 400

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(f"Invalid {field}: {message}")


class InvalidPatternError(InvalidInputError):
    """Regex search pattern is empty or does not compile."""

    def __init__(self, pattern: str, message: str) -> None:
        self.pattern = pattern
        super().__init__("pattern", message)


class RegexTimeoutError(CorpusError):
    """Regex search exceeded its deadline."""

    status_code = 408

    def __init__(self, pattern: str, timeout_seconds: float) -> None:
        self.pattern = pattern
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Regex search took longer than {timeout_seconds:g} seconds; simplify the pattern"
        )


class ConflictError(CorpusError):
    """A write violated a uniqueness or integrity constraint, e.g. a concurrent revision race."""

    status_code = 409


class StorageFailureError(CorpusError):
    """The underlying database is unavailable or failed mid-operation."""

    status_code = 503


class DuplicateKeyError(ConflictError):
    """A current record already exists for the key."""

    def __init__(self, what: str, key: str) -> None:
        self.what = what
        self.key = key
        super().__init__(f"A current {what} already exists for {key}")

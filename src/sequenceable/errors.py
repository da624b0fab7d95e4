import re
from abc import ABC


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the user. These errors should not contain any
    sensitive information.
    """


class NotFoundError(UserError):
    """Raised when a requested resource is not found."""

    def __init__(self, message: str = "Document not found") -> None:
        super().__init__(message)


class ValidationError(UserError):
    """Raised when user input fails validation."""


class ValidationFailure(ValidationError):
    """A sequenceable field ended up empty or invalid after generation.

    Returned (not raised) by field hooks so the record workflow can report it
    next to its other field validation errors.
    """

    DEFAULT_MESSAGE = "`{value}` is not a valid sequence value for path `{path}`."

    # {value} and {path}, in either case; any other braces are kept literally
    PLACEHOLDER = re.compile(r"\{(value|path)\}", re.IGNORECASE)

    def __init__(self, path: str, value: object, message: str | None = None) -> None:
        self.path = path
        self.value = value
        self.template = message or self.DEFAULT_MESSAGE
        super().__init__(self.render(self.template, path, value))

    @classmethod
    def render(cls, template: str, path: str, value: object) -> str:
        fields = {"value": str(value), "path": path}
        return cls.PLACEHOLDER.sub(lambda match: fields[match.group(1).lower()], template)


class SequenceError(Exception):
    """Base class for errors raised by the sequence subsystem."""


class ConflictError(SequenceError):
    """Transient write contention; the allocation did not mutate anything and may be retried."""


class StoreError(SequenceError):
    """Non-retryable failure of the counter store."""


class AllocationTimeoutError(SequenceError):
    """Allocation gave up after exhausting its retry attempts or deadline."""


class ConfigurationError(SequenceError):
    """Generation options resolved to an unusable counter key."""

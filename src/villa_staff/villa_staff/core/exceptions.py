class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid (empty selection, blank fields, unknown ids)."""


class GuardError(DomainError):
    """Raised when a role, ownership or completion-photo guard blocks an action."""


class StoreUnavailableError(DomainError):
    """Raised by a remote store when it cannot be reached.

    The persistence gateway absorbs it and falls back to the local cache.
    """

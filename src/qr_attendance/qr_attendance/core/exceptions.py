class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class StoreUnavailableError(Exception):
    """Raised by store adapters on timeouts or connectivity errors.

    Services translate it into a STORE_UNAVAILABLE failure; it is never used
    for the duplicate-key outcome of an insert-if-absent.
    """

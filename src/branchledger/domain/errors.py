"""Shared domain error messages and error types."""

from decimal import Decimal


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class NotFoundError(DomainError):
    """Requested obligation or payment does not exist (or was deleted)."""


class ForbiddenError(DomainError):
    """Actor lacks branch scope for the target obligation."""


class ConflictError(DomainError):
    """Business-rule conflict with the current state of an obligation."""


class ConcurrentModificationError(ConflictError):
    """The obligation changed between read and write.

    Retryable: the caller may re-read current state and repeat the call.
    """


class BalanceExceededError(ValidationError, ConflictError):
    """Payment amount is larger than the remaining balance."""


class StorageError(Exception):
    """Durable storage failed (connection loss, lock timeout, ...).

    Not a DomainError. Transports may retry storage failures but never
    business errors.
    """


def obligation_not_found(obligation_id: int) -> str:
    """Return message for missing obligation."""
    return f"Obligation {obligation_id} not found"


def no_branch_assigned() -> str:
    """Return message for a branch-scoped actor without a branch."""
    return "Actor has no branch assigned"


def branch_forbidden(obligation_id: int | None, branch_id: str | None) -> str:
    """Return message for a cross-branch access attempt."""
    if obligation_id is None:
        return f"Actor may not act on branch '{branch_id}'"
    return f"Actor may not access obligation {obligation_id} of branch '{branch_id}'"


def already_settled(obligation_id: int) -> str:
    """Return message for a payment on a PAID obligation."""
    return f"Obligation {obligation_id} is already settled"


def exceeds_remaining(amount: Decimal, remaining: Decimal) -> str:
    """Return message when a payment is larger than the remaining balance."""
    return f"Payment amount {amount} exceeds remaining balance {remaining}"


def delete_blocked(obligation_id: int, payment_count: int) -> str:
    """Return message when an obligation with payments is deleted."""
    return (
        f"Cannot delete obligation {obligation_id}: it has {payment_count} "
        f"payment{'s' if payment_count != 1 else ''}."
    )


def version_conflict(obligation_id: int, expected_version: int) -> str:
    """Return message for a failed compare-and-swap."""
    return (
        f"Obligation {obligation_id} was modified concurrently "
        f"(expected version {expected_version}); re-read and retry"
    )

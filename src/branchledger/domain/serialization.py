"""Plain-dict snapshots of domain entities for events and audit entries.

Decimals and dates are rendered as strings so snapshots stay JSON-safe and
amounts are never round-tripped through float.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from branchledger.domain.entities import Obligation, Payment


def _plain(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return value


def obligation_to_dict(obligation: Obligation) -> dict[str, Any]:
    return {
        "id": obligation.id,
        "direction": _plain(obligation.direction),
        "counterparty_name": obligation.counterparty_name,
        "original_amount": _plain(obligation.original_amount),
        "remaining_amount": _plain(obligation.remaining_amount),
        "status": _plain(obligation.status),
        "currency": obligation.currency,
        "issue_date": _plain(obligation.issue_date),
        "due_date": _plain(obligation.due_date),
        "branch_id": obligation.branch_id,
        "created_by": obligation.created_by,
        "created_at": _plain(obligation.created_at),
        "version": obligation.version,
        "description": obligation.description,
        "invoice_number": obligation.invoice_number,
        "notes": obligation.notes,
        "is_deleted": obligation.is_deleted,
        "deleted_at": _plain(obligation.deleted_at),
        "deleted_by": obligation.deleted_by,
    }


def payment_to_dict(payment: Payment) -> dict[str, Any]:
    return {
        "id": payment.id,
        "obligation_id": payment.obligation_id,
        "amount": _plain(payment.amount),
        "payment_date": _plain(payment.payment_date),
        "method": _plain(payment.method),
        "notes": payment.notes,
        "recorded_by": payment.recorded_by,
        "recorded_at": _plain(payment.recorded_at),
    }


def balance_snapshot(obligation: Obligation) -> dict[str, Any]:
    """The balance-bearing fields of an obligation."""
    return {
        "remaining_amount": _plain(obligation.remaining_amount),
        "status": _plain(obligation.status),
        "version": obligation.version,
    }


def plain_fields(values: dict[str, Any]) -> dict[str, Any]:
    """Render an arbitrary field mapping JSON-safe."""
    return {key: _plain(value) for key, value in values.items()}

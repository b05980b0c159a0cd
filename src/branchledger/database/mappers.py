"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so the schema can change without
touching the settlement engine.
"""

from datetime import datetime, UTC
from decimal import Decimal
from typing import Optional

from branchledger.domain import entities as domain
from branchledger.database.models import (
    Obligation as ORMObligation,
    Payment as ORMPayment,
    AuditLog as ORMAuditLog,
)

_CENTS = Decimal("0.01")


def _money(value) -> Decimal:
    # SQLite has no native decimal type; pin the scale on the way out.
    return Decimal(value).quantize(_CENTS)


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite drops tzinfo; every timestamp is written in UTC.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def obligation_to_domain(orm_obligation: ORMObligation) -> domain.Obligation:
    """Convert SQLAlchemy Obligation model to domain Obligation entity."""
    return domain.Obligation(
        id=orm_obligation.id,
        direction=domain.Direction(orm_obligation.direction),
        counterparty_name=orm_obligation.counterparty_name,
        original_amount=_money(orm_obligation.original_amount),
        remaining_amount=_money(orm_obligation.remaining_amount),
        status=domain.ObligationStatus(orm_obligation.status),
        currency=orm_obligation.currency,
        issue_date=orm_obligation.issue_date,
        due_date=orm_obligation.due_date,
        branch_id=orm_obligation.branch_id,
        created_by=orm_obligation.created_by,
        created_at=_aware(orm_obligation.created_at),
        version=orm_obligation.version,
        description=orm_obligation.description,
        invoice_number=orm_obligation.invoice_number,
        notes=orm_obligation.notes,
        is_deleted=orm_obligation.is_deleted,
        deleted_at=_aware(orm_obligation.deleted_at),
        deleted_by=orm_obligation.deleted_by,
    )


def payment_to_domain(orm_payment: ORMPayment) -> domain.Payment:
    """Convert SQLAlchemy Payment model to domain Payment entity."""
    return domain.Payment(
        id=orm_payment.id,
        obligation_id=orm_payment.obligation_id,
        amount=_money(orm_payment.amount),
        payment_date=orm_payment.payment_date,
        method=domain.PaymentMethod(orm_payment.method),
        notes=orm_payment.notes,
        recorded_by=orm_payment.recorded_by,
        recorded_at=_aware(orm_payment.recorded_at),
    )


def audit_entry_to_domain(orm_entry: ORMAuditLog) -> domain.AuditEntry:
    """Convert SQLAlchemy AuditLog model to domain AuditEntry entity."""
    return domain.AuditEntry(
        id=orm_entry.id,
        actor_id=orm_entry.actor_id,
        action=orm_entry.action,
        entity_type=orm_entry.entity_type,
        entity_id=orm_entry.entity_id,
        before=orm_entry.before,
        after=orm_entry.after,
        created_at=_aware(orm_entry.created_at),
    )

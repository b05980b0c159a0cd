"""Domain model entities for branchledger.

These are pure data classes representing business concepts, independent of
database schema. Debts and receivables share one shape: ``direction`` tells
them apart.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Any, Optional


class Direction(str, Enum):
    """Which side of the obligation the business is on."""

    OWED_BY_US = "OWED_BY_US"  # debt to a creditor
    OWED_TO_US = "OWED_TO_US"  # receivable from a customer


class ObligationStatus(str, Enum):
    """Settlement status, always derived from the balance."""

    ACTIVE = "ACTIVE"
    PARTIAL = "PARTIAL"
    PAID = "PAID"


class PaymentMethod(str, Enum):
    """How a payment was made."""

    CASH = "CASH"
    CARD = "CARD"


class Role(str, Enum):
    """Actor roles understood by the access scope resolver."""

    UNRESTRICTED = "UNRESTRICTED"
    BRANCH_SCOPED = "BRANCH_SCOPED"


def derive_status(original_amount: Decimal, remaining_amount: Decimal) -> ObligationStatus:
    """Derive obligation status from its balance.

    PAID iff nothing remains, ACTIVE iff nothing was paid, PARTIAL otherwise.
    """
    if remaining_amount == 0:
        return ObligationStatus.PAID
    if remaining_amount == original_amount:
        return ObligationStatus.ACTIVE
    return ObligationStatus.PARTIAL


@dataclass(frozen=True)
class Actor:
    """The caller of an engine operation."""

    id: str
    role: Role
    branch_id: Optional[str] = None

    @property
    def is_unrestricted(self) -> bool:
        return self.role == Role.UNRESTRICTED


@dataclass(frozen=True)
class Obligation:
    """Debt or receivable domain entity."""

    id: int
    direction: Direction
    counterparty_name: str
    original_amount: Decimal
    remaining_amount: Decimal
    status: ObligationStatus
    currency: str
    issue_date: date
    due_date: date
    branch_id: Optional[str]
    created_by: str
    created_at: datetime
    version: int
    description: Optional[str] = None
    invoice_number: Optional[str] = None
    notes: Optional[str] = None
    is_deleted: bool = False
    deleted_at: Optional[datetime] = None
    deleted_by: Optional[str] = None

    @property
    def paid_amount(self) -> Decimal:
        """Amount settled so far."""
        return self.original_amount - self.remaining_amount


@dataclass(frozen=True)
class Payment:
    """Payment domain entity. Immutable once recorded."""

    id: int
    obligation_id: int
    amount: Decimal
    payment_date: date
    method: PaymentMethod
    notes: Optional[str]
    recorded_by: str
    recorded_at: datetime


@dataclass(frozen=True)
class AuditEntry:
    """Audit trail entry domain entity."""

    id: int
    actor_id: str
    action: str
    entity_type: str
    entity_id: int
    before: Optional[dict[str, Any]]
    after: Optional[dict[str, Any]]
    created_at: datetime


@dataclass(frozen=True)
class ObligationInput:
    """Caller-supplied fields for a new obligation."""

    direction: Direction
    counterparty_name: str
    amount: Any
    issue_date: date
    due_date: date
    currency: str = "USD"
    branch_id: Optional[str] = None
    description: Optional[str] = None
    invoice_number: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class ObligationFilters:
    """Optional filters for obligation listings.

    ``start_date``/``end_date`` are inclusive bounds on ``issue_date``.
    ``branch_id`` only narrows results for unrestricted actors.
    """

    direction: Optional[Direction] = None
    status: Optional[ObligationStatus] = None
    search: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    branch_id: Optional[str] = None


@dataclass(frozen=True)
class ScopePredicate:
    """Row filter produced by the access scope resolver.

    ``branch_id`` of None means "any branch". Soft-deleted rows never match.
    """

    branch_id: Optional[str] = None


@dataclass(frozen=True)
class ObligationPage:
    """One page of an obligation listing."""

    items: tuple[Obligation, ...]
    total: int
    page: int
    limit: int
    total_pages: int


@dataclass(frozen=True)
class StatusCounts:
    active: int = 0
    partial: int = 0
    paid: int = 0


@dataclass(frozen=True)
class AmountTotals:
    total: Decimal = Decimal("0")
    remaining: Decimal = Decimal("0")
    collected: Decimal = Decimal("0")


@dataclass(frozen=True)
class ObligationSummary:
    """Aggregate statistics over a scoped set of obligations."""

    total: int
    by_status: StatusCounts = field(default_factory=StatusCounts)
    amounts: AmountTotals = field(default_factory=AmountTotals)


@dataclass(frozen=True)
class SettlementResult:
    """Outcome of a successful payment application."""

    obligation: Obligation
    payment: Payment

"""Abstract database interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

# Import entities directly to avoid circular import through domain/__init__.py
from branchledger.domain.entities import (
    AuditEntry,
    Direction,
    Obligation,
    ObligationFilters,
    ObligationStatus,
    Payment,
    PaymentMethod,
    ScopePredicate,
)


class Database(ABC):
    """Abstract database interface for branchledger.

    Covers the Obligation Store, the append-only Payment Ledger and the audit
    table. Every method may block on I/O. Failures of the underlying storage
    surface as ``StorageError``.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def atomic(self) -> AbstractContextManager[None]:
        """Group the calls made inside the block into one unit of work.

        Everything commits when the block exits normally and everything
        rolls back when it raises.
        """
        pass

    # Obligation store
    @abstractmethod
    def create_obligation(
        self,
        direction: Direction,
        counterparty_name: str,
        original_amount: Decimal,
        currency: str,
        issue_date: date,
        due_date: date,
        branch_id: Optional[str],
        created_by: str,
        created_at: datetime,
        description: Optional[str] = None,
        invoice_number: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> int:
        """Insert an ACTIVE obligation with its full balance remaining. Returns obligation ID."""
        pass

    @abstractmethod
    def get_obligation(self, obligation_id: int) -> Optional[Obligation]:
        """Get obligation by ID, including soft-deleted ones."""
        pass

    @abstractmethod
    def apply_balance_change(
        self,
        obligation_id: int,
        new_remaining: Decimal,
        new_status: ObligationStatus,
        expected_version: int,
    ) -> int:
        """Compare-and-swap the balance of an obligation.

        Returns:
            The new version

        Raises:
            ConcurrentModificationError: If the stored version is not
                ``expected_version``
        """
        pass

    @abstractmethod
    def update_obligation_details(self, obligation_id: int, changes: dict[str, Any]) -> None:
        """Update non-financial obligation columns."""
        pass

    @abstractmethod
    def soft_delete_obligation(
        self, obligation_id: int, deleted_by: str, deleted_at: datetime, expected_version: int
    ) -> None:
        """Mark an obligation deleted. Its payments stay untouched.

        Raises:
            ConcurrentModificationError: If the stored version is not
                ``expected_version`` (a payment landed in between)
        """
        pass

    @abstractmethod
    def list_obligations(
        self,
        predicate: ScopePredicate,
        filters: ObligationFilters,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> list[Obligation]:
        """List obligations matching predicate and filters, soonest due first."""
        pass

    @abstractmethod
    def count_obligations(self, predicate: ScopePredicate, filters: ObligationFilters) -> int:
        """Count obligations matching predicate and filters."""
        pass

    @abstractmethod
    def list_overdue_obligations(
        self, predicate: ScopePredicate, as_of: date, direction: Optional[Direction] = None
    ) -> list[Obligation]:
        """List unsettled obligations due strictly before ``as_of``."""
        pass

    @abstractmethod
    def get_balance_rows(
        self, predicate: ScopePredicate, direction: Optional[Direction] = None
    ) -> list[tuple[ObligationStatus, Decimal, Decimal]]:
        """Return (status, original_amount, remaining_amount) per matching obligation."""
        pass

    # Payment ledger
    @abstractmethod
    def append_payment(
        self,
        obligation_id: int,
        amount: Decimal,
        payment_date: date,
        method: PaymentMethod,
        notes: Optional[str],
        recorded_by: str,
        recorded_at: datetime,
    ) -> int:
        """Insert a payment row. Returns payment ID."""
        pass

    @abstractmethod
    def get_payment(self, payment_id: int) -> Optional[Payment]:
        """Get payment by ID."""
        pass

    @abstractmethod
    def list_payments(self, obligation_id: int) -> list[Payment]:
        """List payments of one obligation, newest payment date first."""
        pass

    @abstractmethod
    def count_payments(self, obligation_id: int) -> int:
        """Count payments of one obligation."""
        pass

    @abstractmethod
    def sum_payment_amounts(self, obligation_id: int) -> Decimal:
        """Sum payment amounts of one obligation, in creation order."""
        pass

    # Audit log
    @abstractmethod
    def create_audit_entry(
        self,
        actor_id: str,
        action: str,
        entity_type: str,
        entity_id: int,
        before: Optional[dict[str, Any]],
        after: Optional[dict[str, Any]],
        created_at: datetime,
    ) -> int:
        """Insert an audit entry. Returns entry ID."""
        pass

    @abstractmethod
    def list_audit_entries(self, entity_type: str, entity_id: int) -> list[AuditEntry]:
        """List audit entries for one entity, newest first."""
        pass

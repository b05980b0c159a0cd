"""Audit collaborator interface and its database-backed implementation."""

from typing import Any, Optional, Protocol

from branchledger.database.base import Database
from branchledger.domain.clock import Clock, SystemClock
from branchledger.domain.entities import AuditEntry

ACTION_CREATE = "CREATE"
ACTION_UPDATE = "UPDATE"
ACTION_DELETE = "DELETE"
ACTION_PAYMENT = "PAYMENT"

ENTITY_OBLIGATION = "OBLIGATION"


class AuditRecorder(Protocol):
    """Audit trail port consumed by the settlement engine."""

    def record(
        self,
        actor_id: str,
        action: str,
        entity_type: str,
        entity_id: int,
        before: Optional[dict[str, Any]],
        after: Optional[dict[str, Any]],
    ) -> None: ...


class DatabaseAuditRecorder:
    """Write audit entries to the ``audit_log`` table."""

    def __init__(self, db: Database, clock: Optional[Clock] = None):
        """Initialize audit recorder.

        Args:
            db: Database instance
            clock: Time source for entry timestamps
        """
        self.db = db
        self.clock = clock or SystemClock()

    def record(
        self,
        actor_id: str,
        action: str,
        entity_type: str,
        entity_id: int,
        before: Optional[dict[str, Any]],
        after: Optional[dict[str, Any]],
    ) -> None:
        self.db.create_audit_entry(
            actor_id=actor_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            before=before,
            after=after,
            created_at=self.clock.now(),
        )

    def entries_for(self, entity_type: str, entity_id: int) -> list[AuditEntry]:
        """Return audit entries for one entity, newest first."""
        return self.db.list_audit_entries(entity_type, entity_id)

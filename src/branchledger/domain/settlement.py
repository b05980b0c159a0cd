"""Settlement engine: creating obligations and applying payments."""

import logging
from datetime import date, datetime
from typing import Any, Optional

from branchledger.database.base import Database
from branchledger.domain.audit import (
    ACTION_CREATE,
    ACTION_DELETE,
    ACTION_PAYMENT,
    ACTION_UPDATE,
    ENTITY_OBLIGATION,
    AuditRecorder,
    DatabaseAuditRecorder,
)
from branchledger.domain.clock import Clock, SystemClock
from branchledger.domain.entities import (
    Actor,
    Obligation,
    ObligationInput,
    ObligationStatus,
    Payment,
    PaymentMethod,
    SettlementResult,
    derive_status,
)
from branchledger.domain.errors import (
    BalanceExceededError,
    ConcurrentModificationError,
    ConflictError,
    NotFoundError,
    ValidationError,
    already_settled,
    delete_blocked,
    exceeds_remaining,
    obligation_not_found,
)
from branchledger.domain.events import (
    OBLIGATION_CREATED,
    OBLIGATION_UPDATED,
    PAYMENT_RECORDED,
    EventDispatcher,
    SideEffectDispatcher,
)
from branchledger.domain.locks import KeyedLock
from branchledger.domain.money import normalize_currency, to_positive_money
from branchledger.domain.scope import AccessScopeResolver
from branchledger.domain.serialization import (
    balance_snapshot,
    obligation_to_dict,
    payment_to_dict,
    plain_fields,
)

logger = logging.getLogger(__name__)

DETAIL_FIELDS = ("due_date", "description", "invoice_number", "notes")


def _require_date(value: Any, field: str) -> date:
    if isinstance(value, datetime) or not isinstance(value, date):
        raise ValidationError(f"{field} must be a date", field=field)
    return value


def _optional_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class SettlementService:
    """Single entry point for mutating obligations.

    Owns the business rules end to end: authorization through the access
    scope resolver, input validation, the atomic balance-and-ledger update,
    and best-effort side effects once the change is committed.
    """

    def __init__(
        self,
        db: Database,
        dispatcher: Optional[SideEffectDispatcher] = None,
        audit: Optional[AuditRecorder] = None,
        clock: Optional[Clock] = None,
        scope: Optional[AccessScopeResolver] = None,
    ):
        """Initialize settlement service.

        Args:
            db: Database instance
            dispatcher: Outbound event sink; defaults to a dispatcher with no
                subscribers
            audit: Audit collaborator; defaults to the database audit table
            clock: Time source for provenance stamps
            scope: Access scope resolver
        """
        self.db = db
        self.clock = clock or SystemClock()
        self.dispatcher = dispatcher if dispatcher is not None else EventDispatcher()
        self.audit = audit if audit is not None else DatabaseAuditRecorder(db, self.clock)
        self.scope = scope or AccessScopeResolver()
        self._locks = KeyedLock()

    def create_obligation(self, actor: Actor, data: ObligationInput) -> Obligation:
        """Create a debt or receivable with its full balance outstanding.

        Args:
            actor: Calling actor
            data: Obligation fields; ``data.amount`` becomes the original
                and remaining amount

        Returns:
            The created obligation (status ACTIVE)

        Raises:
            ForbiddenError: If the actor may not create in the target branch
            ValidationError: If a field is missing or invalid
        """
        branch_id = self.scope.resolve_create_branch(actor, data.branch_id)

        counterparty = _optional_text(data.counterparty_name)
        if counterparty is None:
            raise ValidationError("counterparty_name is required", field="counterparty_name")
        amount = to_positive_money(data.amount, "amount")
        currency = normalize_currency(data.currency)
        issue_date = _require_date(data.issue_date, "issue_date")
        due_date = _require_date(data.due_date, "due_date")
        if due_date < issue_date:
            raise ValidationError("due_date must be on or after issue_date", field="due_date")

        obligation_id = self.db.create_obligation(
            direction=data.direction,
            counterparty_name=counterparty,
            original_amount=amount,
            currency=currency,
            issue_date=issue_date,
            due_date=due_date,
            branch_id=branch_id,
            created_by=actor.id,
            created_at=self.clock.now(),
            description=_optional_text(data.description),
            invoice_number=_optional_text(data.invoice_number),
            notes=_optional_text(data.notes),
        )
        obligation = self._load_live(obligation_id)
        logger.info(
            "Created obligation %s (%s, %s %s, branch=%s) by %s",
            obligation.id,
            obligation.direction.value,
            obligation.original_amount,
            obligation.currency,
            obligation.branch_id,
            actor.id,
        )

        snapshot = obligation_to_dict(obligation)
        self._audit(actor, ACTION_CREATE, obligation.id, None, snapshot)
        self._emit(OBLIGATION_CREATED, {"obligation": snapshot})
        return obligation

    def apply_payment(
        self,
        actor: Actor,
        obligation_id: int,
        amount: Any,
        payment_date: date,
        notes: Optional[str] = None,
        method: PaymentMethod = PaymentMethod.CASH,
    ) -> SettlementResult:
        """Apply one payment against an obligation's remaining balance.

        The payment row and the balance/status update commit together or not
        at all. Payments on the same obligation are serialized; payments on
        different obligations run in parallel.

        Returns:
            SettlementResult with the updated obligation and the new payment

        Raises:
            NotFoundError: If the obligation is missing or deleted
            ForbiddenError: If the obligation belongs to another branch
            ValidationError: If amount or payment date is invalid
            ConflictError: If the obligation is already PAID
            BalanceExceededError: If amount exceeds the remaining balance
            ConcurrentModificationError: If another writer changed the
                obligation first; retry after re-reading
        """
        self.scope.require_branch(actor)

        with self._locks.hold(obligation_id):
            before = self._load_live(obligation_id)
            self.scope.authorize_write(actor, before)

            value = to_positive_money(amount, "amount")
            paid_on = _require_date(payment_date, "payment_date")
            if before.status == ObligationStatus.PAID:
                raise ConflictError(already_settled(obligation_id))
            if value > before.remaining_amount:
                raise BalanceExceededError(
                    exceeds_remaining(value, before.remaining_amount), field="amount"
                )

            new_remaining = before.remaining_amount - value
            new_status = derive_status(before.original_amount, new_remaining)

            try:
                with self.db.atomic():
                    self.db.apply_balance_change(
                        obligation_id, new_remaining, new_status, expected_version=before.version
                    )
                    payment_id = self.db.append_payment(
                        obligation_id=obligation_id,
                        amount=value,
                        payment_date=paid_on,
                        method=method,
                        notes=_optional_text(notes),
                        recorded_by=actor.id,
                        recorded_at=self.clock.now(),
                    )
            except ConcurrentModificationError:
                logger.warning(
                    "Payment on obligation %s lost a version race at %s", obligation_id, before.version
                )
                raise

            after = self._load_live(obligation_id)
            payment = self.db.get_payment(payment_id)

        logger.info(
            "Applied payment %s of %s to obligation %s: remaining %s -> %s (%s)",
            payment.id,
            payment.amount,
            obligation_id,
            before.remaining_amount,
            after.remaining_amount,
            after.status.value,
        )

        payment_snapshot = payment_to_dict(payment)
        after_balance = balance_snapshot(after)
        after_balance["payment"] = payment_snapshot
        self._audit(actor, ACTION_PAYMENT, obligation_id, balance_snapshot(before), after_balance)
        self._emit(PAYMENT_RECORDED, {"obligation_id": obligation_id, "payment": payment_snapshot})
        self._emit(OBLIGATION_UPDATED, {"obligation": obligation_to_dict(after)})
        return SettlementResult(obligation=after, payment=payment)

    def update_details(self, actor: Actor, obligation_id: int, **changes: Any) -> Obligation:
        """Edit the non-financial fields of an obligation.

        Only ``due_date``, ``description``, ``invoice_number`` and ``notes``
        may change. Amounts, status, currency, counterparty and branch are
        fixed at creation.

        Raises:
            NotFoundError: If the obligation is missing or deleted
            ForbiddenError: If the obligation belongs to another branch
            ValidationError: If a fixed field is named or the due date
                precedes the issue date
        """
        fixed = sorted(key for key in changes if key not in DETAIL_FIELDS)
        if fixed:
            raise ValidationError(
                f"Cannot update {', '.join(fixed)} after creation", field=fixed[0]
            )

        before = self._load_live(obligation_id)
        self.scope.authorize_write(actor, before)

        cleaned: dict[str, Any] = {}
        for key, value in changes.items():
            if key == "due_date":
                value = _require_date(value, "due_date")
                if value < before.issue_date:
                    raise ValidationError("due_date must be on or after issue_date", field="due_date")
            else:
                value = _optional_text(value)
            if getattr(before, key) != value:
                cleaned[key] = value

        if not cleaned:
            return before

        self.db.update_obligation_details(obligation_id, cleaned)
        after = self._load_live(obligation_id)
        logger.info("Updated %s of obligation %s", ", ".join(sorted(cleaned)), obligation_id)

        self._audit(
            actor,
            ACTION_UPDATE,
            obligation_id,
            plain_fields({key: getattr(before, key) for key in cleaned}),
            plain_fields(cleaned),
        )
        self._emit(OBLIGATION_UPDATED, {"obligation": obligation_to_dict(after)})
        return after

    def soft_delete(self, actor: Actor, obligation_id: int) -> Obligation:
        """Soft delete an obligation that has no payments.

        Returns:
            The deleted obligation snapshot

        Raises:
            NotFoundError: If the obligation is missing or already deleted
            ForbiddenError: If the obligation belongs to another branch
            ConflictError: If any payment has been recorded against it
        """
        self.scope.require_branch(actor)

        with self._locks.hold(obligation_id):
            obligation = self._load_live(obligation_id)
            self.scope.authorize_write(actor, obligation)

            payment_count = self.db.count_payments(obligation_id)
            if payment_count > 0:
                raise ConflictError(delete_blocked(obligation_id, payment_count))

            self.db.soft_delete_obligation(
                obligation_id,
                deleted_by=actor.id,
                deleted_at=self.clock.now(),
                expected_version=obligation.version,
            )
            deleted = self.db.get_obligation(obligation_id)

        logger.info("Soft deleted obligation %s by %s", obligation_id, actor.id)
        self._audit(actor, ACTION_DELETE, obligation_id, obligation_to_dict(obligation), None)
        self._emit(OBLIGATION_UPDATED, {"obligation": obligation_to_dict(deleted)})
        return deleted

    def get_obligation(self, actor: Actor, obligation_id: int) -> Obligation:
        """Get an obligation visible to ``actor``.

        Raises:
            NotFoundError: If the obligation is missing or deleted
            ForbiddenError: If the obligation belongs to another branch
        """
        obligation = self._load_live(obligation_id)
        self.scope.authorize_read(actor, obligation)
        return obligation

    def list_payments(self, actor: Actor, obligation_id: int) -> list[Payment]:
        """List the payment history of an obligation, newest first."""
        self.get_obligation(actor, obligation_id)
        return self.db.list_payments(obligation_id)

    def verify_balance(self, actor: Actor, obligation_id: int) -> bool:
        """Check that the stored balance matches the payment ledger.

        Returns:
            True if remaining == original - sum(payments) and the status
            matches the balance
        """
        obligation = self.get_obligation(actor, obligation_id)
        paid = self.db.sum_payment_amounts(obligation_id)
        consistent = (
            obligation.remaining_amount == obligation.original_amount - paid
            and obligation.status == derive_status(obligation.original_amount, obligation.remaining_amount)
        )
        if not consistent:
            logger.error(
                "Obligation %s is out of balance: original %s, paid %s, remaining %s, status %s",
                obligation_id,
                obligation.original_amount,
                paid,
                obligation.remaining_amount,
                obligation.status.value,
            )
        return consistent

    def _load_live(self, obligation_id: int) -> Obligation:
        obligation = self.db.get_obligation(obligation_id)
        if obligation is None or obligation.is_deleted:
            raise NotFoundError(obligation_not_found(obligation_id))
        return obligation

    def _audit(
        self,
        actor: Actor,
        action: str,
        obligation_id: int,
        before: Optional[dict[str, Any]],
        after: Optional[dict[str, Any]],
    ) -> None:
        try:
            self.audit.record(actor.id, action, ENTITY_OBLIGATION, obligation_id, before, after)
        except Exception:
            logger.exception("Audit %s for obligation %s failed; continuing", action, obligation_id)

    def _emit(self, event_name: str, payload: dict[str, Any]) -> None:
        try:
            self.dispatcher.emit(event_name, payload)
        except Exception:
            logger.exception("Dispatch of %s failed; continuing", event_name)

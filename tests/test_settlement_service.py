"""Tests for SettlementService."""

from datetime import date
from decimal import Decimal

import pytest

from branchledger.domain.audit import ACTION_CREATE, ACTION_DELETE, ACTION_PAYMENT, ACTION_UPDATE
from branchledger.domain.entities import (
    Direction,
    ObligationInput,
    ObligationStatus,
    PaymentMethod,
)
from branchledger.domain.errors import (
    BalanceExceededError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from branchledger.domain.settlement import SettlementService


def test_create_obligation_starts_active(settlement_service, admin, clock):
    """Test that a new obligation has its full amount outstanding."""
    obligation = settlement_service.create_obligation(
        admin,
        ObligationInput(
            direction=Direction.OWED_TO_US,
            counterparty_name="  Globex  ",
            amount=Decimal("250.50"),
            issue_date=date(2024, 1, 5),
            due_date=date(2024, 2, 5),
            currency="eur",
            branch_id="A",
            invoice_number="INV-7",
        ),
    )

    assert obligation.id is not None
    assert obligation.counterparty_name == "Globex"
    assert obligation.original_amount == Decimal("250.50")
    assert obligation.remaining_amount == Decimal("250.50")
    assert obligation.status == ObligationStatus.ACTIVE
    assert obligation.currency == "EUR"
    assert obligation.branch_id == "A"
    assert obligation.invoice_number == "INV-7"
    assert obligation.created_by == "admin"
    assert obligation.created_at == clock.now()
    assert obligation.version == 1
    assert obligation.is_deleted is False


def test_create_obligation_accepts_string_and_int_amounts(make_obligation):
    """Test that exact amount types are accepted."""
    assert make_obligation(amount="99.99").original_amount == Decimal("99.99")
    assert make_obligation(amount=100).original_amount == Decimal("100.00")


@pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5.00"), 10.5, Decimal("1.005"), "abc"])
def test_create_obligation_rejects_bad_amounts(settlement_service, make_obligation, query_service, admin, amount):
    """Test that invalid amounts are rejected and nothing is stored."""
    with pytest.raises(ValidationError) as excinfo:
        make_obligation(amount=amount)

    assert excinfo.value.field == "amount"
    assert query_service.list_obligations(admin).total == 0


def test_create_obligation_rejects_due_before_issue(make_obligation):
    """Test that due date may not precede the issue date."""
    with pytest.raises(ValidationError, match="due_date"):
        make_obligation(issue_date=date(2024, 3, 1), due_date=date(2024, 2, 1))


def test_create_obligation_allows_due_on_issue_date(make_obligation):
    """Test that an obligation may be due the day it is issued."""
    obligation = make_obligation(issue_date=date(2024, 3, 1), due_date=date(2024, 3, 1))
    assert obligation.due_date == date(2024, 3, 1)


def test_create_obligation_requires_counterparty(make_obligation):
    """Test that a blank counterparty name is rejected."""
    with pytest.raises(ValidationError, match="counterparty_name"):
        make_obligation(counterparty_name="   ")


def test_create_obligation_rejects_bad_currency(make_obligation):
    """Test that currency must be a three-letter code."""
    with pytest.raises(ValidationError, match="currency"):
        make_obligation(currency="DOLLARS")


def test_partial_then_full_settlement(settlement_service, make_obligation, admin):
    """Test the balance and status across a sequence of payments."""
    obligation = make_obligation(amount=Decimal("1000.00"))

    first = settlement_service.apply_payment(admin, obligation.id, Decimal("400.00"), date(2024, 1, 15))
    assert first.obligation.remaining_amount == Decimal("600.00")
    assert first.obligation.status == ObligationStatus.PARTIAL
    assert first.payment.amount == Decimal("400.00")
    assert first.payment.obligation_id == obligation.id
    assert first.payment.method == PaymentMethod.CASH
    assert first.payment.recorded_by == "admin"

    second = settlement_service.apply_payment(
        admin, obligation.id, Decimal("600.00"), date(2024, 1, 20), method=PaymentMethod.CARD
    )
    assert second.obligation.remaining_amount == Decimal("0.00")
    assert second.obligation.status == ObligationStatus.PAID
    assert second.payment.method == PaymentMethod.CARD

    with pytest.raises(ConflictError, match="already settled"):
        settlement_service.apply_payment(admin, obligation.id, Decimal("1.00"), date(2024, 1, 21))

    payments = settlement_service.list_payments(admin, obligation.id)
    assert [p.amount for p in payments] == [Decimal("600.00"), Decimal("400.00")]


def test_payment_bumps_version(settlement_service, make_obligation, admin):
    """Test that each payment increments the obligation version."""
    obligation = make_obligation()
    result = settlement_service.apply_payment(admin, obligation.id, "10.00", date(2024, 1, 15))
    assert result.obligation.version == obligation.version + 1


def test_exact_remaining_settles(settlement_service, make_obligation, admin):
    """Test that paying exactly the remaining balance marks it PAID."""
    obligation = make_obligation(amount=Decimal("100.00"))
    result = settlement_service.apply_payment(admin, obligation.id, Decimal("100.00"), date(2024, 1, 15))

    assert result.obligation.remaining_amount == Decimal("0")
    assert result.obligation.status == ObligationStatus.PAID


def test_overpayment_leaves_state_unchanged(settlement_service, make_obligation, admin):
    """Test that a payment above the remaining balance is rejected."""
    obligation = make_obligation(amount=Decimal("100.00"))
    settlement_service.apply_payment(admin, obligation.id, Decimal("40.00"), date(2024, 1, 15))

    with pytest.raises(BalanceExceededError) as excinfo:
        settlement_service.apply_payment(admin, obligation.id, Decimal("60.01"), date(2024, 1, 16))

    assert "exceeds remaining balance" in str(excinfo.value)
    # Both a validation failure and a state conflict
    assert isinstance(excinfo.value, ValidationError)
    assert isinstance(excinfo.value, ConflictError)

    current = settlement_service.get_obligation(admin, obligation.id)
    assert current.remaining_amount == Decimal("60.00")
    assert current.status == ObligationStatus.PARTIAL
    assert len(settlement_service.list_payments(admin, obligation.id)) == 1


@pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-1.00"), 0.1, Decimal("0.001"), None])
def test_invalid_payment_amount_is_rejected(settlement_service, make_obligation, admin, amount):
    """Test that non-positive or inexact payment amounts write nothing."""
    obligation = make_obligation()

    with pytest.raises(ValidationError):
        settlement_service.apply_payment(admin, obligation.id, amount, date(2024, 1, 15))

    current = settlement_service.get_obligation(admin, obligation.id)
    assert current.remaining_amount == obligation.remaining_amount
    assert current.version == obligation.version
    assert settlement_service.list_payments(admin, obligation.id) == []


def test_payment_requires_date(settlement_service, make_obligation, admin):
    """Test that the payment date must be a calendar date."""
    obligation = make_obligation()
    with pytest.raises(ValidationError, match="payment_date"):
        settlement_service.apply_payment(admin, obligation.id, Decimal("1.00"), "2024-01-15")


def test_payment_on_missing_obligation(settlement_service, admin):
    """Test that paying an unknown obligation raises NotFoundError."""
    with pytest.raises(NotFoundError, match="Obligation 999 not found"):
        settlement_service.apply_payment(admin, 999, Decimal("1.00"), date(2024, 1, 15))


def test_soft_delete_hides_obligation(settlement_service, make_obligation, query_service, admin):
    """Test that a soft deleted obligation disappears from reads and writes."""
    obligation = make_obligation()

    deleted = settlement_service.soft_delete(admin, obligation.id)
    assert deleted.is_deleted is True
    assert deleted.deleted_by == "admin"
    assert deleted.deleted_at is not None

    with pytest.raises(NotFoundError):
        settlement_service.get_obligation(admin, obligation.id)
    with pytest.raises(NotFoundError):
        settlement_service.apply_payment(admin, obligation.id, Decimal("1.00"), date(2024, 1, 15))
    with pytest.raises(NotFoundError):
        settlement_service.soft_delete(admin, obligation.id)
    assert query_service.list_obligations(admin).total == 0


def test_soft_delete_blocked_by_payments(settlement_service, make_obligation, admin):
    """Test that an obligation with payments cannot be deleted."""
    obligation = make_obligation()
    settlement_service.apply_payment(admin, obligation.id, Decimal("1.00"), date(2024, 1, 15))

    with pytest.raises(ConflictError, match="it has 1 payment\\."):
        settlement_service.soft_delete(admin, obligation.id)

    assert settlement_service.get_obligation(admin, obligation.id).is_deleted is False


def test_update_details_changes_editable_fields(settlement_service, make_obligation, admin):
    """Test editing due date and free-text fields."""
    obligation = make_obligation()

    updated = settlement_service.update_details(
        admin,
        obligation.id,
        due_date=date(2024, 3, 1),
        description="  Office chairs ",
        notes="",
    )

    assert updated.due_date == date(2024, 3, 1)
    assert updated.description == "Office chairs"
    assert updated.notes is None
    assert updated.remaining_amount == obligation.remaining_amount


def test_update_details_without_changes_returns_current(settlement_service, make_obligation, admin, audit):
    """Test that a no-op update writes nothing."""
    obligation = make_obligation()

    same = settlement_service.update_details(admin, obligation.id, due_date=obligation.due_date)

    assert same == obligation
    actions = [entry.action for entry in audit.entries_for("OBLIGATION", obligation.id)]
    assert actions == [ACTION_CREATE]


@pytest.mark.parametrize("field", ["remaining_amount", "original_amount", "status", "branch_id", "currency"])
def test_update_details_rejects_fixed_fields(settlement_service, make_obligation, admin, field):
    """Test that financial and ownership fields are immutable."""
    obligation = make_obligation()

    with pytest.raises(ValidationError, match=f"Cannot update {field}"):
        settlement_service.update_details(admin, obligation.id, **{field: "X"})


def test_update_details_rejects_due_before_issue(settlement_service, make_obligation, admin):
    """Test that the due date stays on or after the issue date."""
    obligation = make_obligation(issue_date=date(2024, 1, 10), due_date=date(2024, 2, 1))

    with pytest.raises(ValidationError, match="due_date"):
        settlement_service.update_details(admin, obligation.id, due_date=date(2024, 1, 9))


def test_verify_balance(settlement_service, make_obligation, admin, temp_db):
    """Test ledger verification before and after tampering."""
    obligation = make_obligation(amount=Decimal("100.00"))
    settlement_service.apply_payment(admin, obligation.id, Decimal("30.00"), date(2024, 1, 15))

    assert settlement_service.verify_balance(admin, obligation.id) is True

    current = temp_db.get_obligation(obligation.id)
    temp_db.apply_balance_change(
        obligation.id, Decimal("50.00"), ObligationStatus.PARTIAL, expected_version=current.version
    )

    assert settlement_service.verify_balance(admin, obligation.id) is False


def test_audit_trail_records_every_mutation(settlement_service, make_obligation, admin, audit):
    """Test that create, update, payment and delete are audited."""
    obligation = make_obligation(amount=Decimal("100.00"))
    settlement_service.update_details(admin, obligation.id, notes="call first")
    settlement_service.apply_payment(admin, obligation.id, Decimal("25.00"), date(2024, 1, 15))
    other = make_obligation()
    settlement_service.soft_delete(admin, other.id)

    entries = audit.entries_for("OBLIGATION", obligation.id)
    assert [entry.action for entry in entries] == [ACTION_PAYMENT, ACTION_UPDATE, ACTION_CREATE]

    payment_entry = entries[0]
    assert payment_entry.actor_id == "admin"
    assert payment_entry.before["remaining_amount"] == "100.00"
    assert payment_entry.after["remaining_amount"] == "75.00"
    assert payment_entry.after["status"] == "PARTIAL"
    assert payment_entry.after["payment"]["amount"] == "25.00"

    update_entry = entries[1]
    assert update_entry.before == {"notes": None}
    assert update_entry.after == {"notes": "call first"}

    delete_entries = audit.entries_for("OBLIGATION", other.id)
    assert delete_entries[0].action == ACTION_DELETE
    assert delete_entries[0].after is None


def test_events_follow_commit_order(settlement_service, make_obligation, admin, dispatcher, events):
    """Test that a payment emits PaymentRecorded before ObligationUpdated."""
    obligation = make_obligation(amount=Decimal("100.00"))
    settlement_service.apply_payment(admin, obligation.id, Decimal("100.00"), date(2024, 1, 15))
    dispatcher.flush()

    assert [name for name, _ in events] == [
        "ObligationCreated",
        "PaymentRecorded",
        "ObligationUpdated",
    ]
    recorded = events[1][1]
    assert recorded["obligation_id"] == obligation.id
    assert recorded["payment"]["amount"] == "100.00"
    updated = events[2][1]["obligation"]
    assert updated["status"] == "PAID"
    assert updated["remaining_amount"] == "0.00"


def test_failed_payment_emits_nothing(settlement_service, make_obligation, admin, dispatcher, events):
    """Test that rejected payments produce no events."""
    obligation = make_obligation(amount=Decimal("10.00"))

    with pytest.raises(BalanceExceededError):
        settlement_service.apply_payment(admin, obligation.id, Decimal("11.00"), date(2024, 1, 15))
    dispatcher.flush()

    assert [name for name, _ in events] == ["ObligationCreated"]


class _BrokenAudit:
    def record(self, *args, **kwargs):
        raise RuntimeError("audit store offline")


class _BrokenDispatcher:
    def emit(self, event_name, payload):
        raise RuntimeError("broker offline")


def test_side_effect_failures_do_not_undo_payment(temp_db, clock, admin, caplog):
    """Test that audit and dispatch failures are logged, not raised."""
    service = SettlementService(
        temp_db, dispatcher=_BrokenDispatcher(), audit=_BrokenAudit(), clock=clock
    )
    obligation = service.create_obligation(
        admin,
        ObligationInput(
            direction=Direction.OWED_BY_US,
            counterparty_name="Initech",
            amount=Decimal("50.00"),
            issue_date=date(2024, 1, 1),
            due_date=date(2024, 1, 31),
        ),
    )

    with caplog.at_level("ERROR", logger="branchledger"):
        result = service.apply_payment(admin, obligation.id, Decimal("20.00"), date(2024, 1, 15))

    assert result.obligation.remaining_amount == Decimal("30.00")
    assert temp_db.count_payments(obligation.id) == 1
    assert "Audit PAYMENT for obligation" in caplog.text
    assert "Dispatch of PaymentRecorded failed" in caplog.text


def test_largest_amount_settles_to_the_cent(settlement_service, make_obligation, admin):
    """Test that the largest storable amount keeps an exact balance."""
    obligation = make_obligation(amount=Decimal("999999999999.99"))
    assert obligation.original_amount == Decimal("999999999999.99")

    result = settlement_service.apply_payment(admin, obligation.id, Decimal("0.01"), date(2024, 1, 15))

    assert result.obligation.remaining_amount == Decimal("999999999999.98")
    assert result.obligation.status == ObligationStatus.PARTIAL
    assert settlement_service.verify_balance(admin, obligation.id) is True


def test_amount_beyond_column_range_is_rejected(make_obligation, query_service, admin):
    """Test that oversized amounts fail instead of being rounded."""
    with pytest.raises(ValidationError, match="must be less than") as excinfo:
        make_obligation(amount=Decimal("1000000000000.00"))

    assert excinfo.value.field == "amount"
    assert query_service.list_obligations(admin).total == 0


def test_payment_with_trailing_zeros_is_accepted(settlement_service, make_obligation, admin):
    obligation = make_obligation(amount=Decimal("100.00"))

    result = settlement_service.apply_payment(admin, obligation.id, Decimal("100.000"), date(2024, 1, 15))

    assert result.payment.amount == Decimal("100.00")
    assert result.obligation.status == ObligationStatus.PAID

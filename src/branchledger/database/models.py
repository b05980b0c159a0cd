"""SQLAlchemy models for branchledger database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    JSON,
    Index,
    CheckConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


class Obligation(Base):
    """Debt or receivable model."""

    __tablename__ = "obligations"

    id = Column(Integer, primary_key=True)
    direction = Column(String(16), nullable=False)
    counterparty_name = Column(String, nullable=False)
    original_amount = Column(Numeric(14, 2), nullable=False)
    remaining_amount = Column(Numeric(14, 2), nullable=False)
    status = Column(String(16), nullable=False)
    currency = Column(String(3), nullable=False)
    issue_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    branch_id = Column(String, nullable=True)
    description = Column(String, nullable=True)
    invoice_number = Column(String, nullable=True)
    notes = Column(String, nullable=True)
    created_by = Column(String, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)
    version = Column(Integer, nullable=False, default=1)
    is_deleted = Column(Boolean, default=False, nullable=False)
    deleted_at = Column(DateTime, nullable=True)
    deleted_by = Column(String, nullable=True)

    __table_args__ = (
        CheckConstraint("original_amount > 0", name="ck_obligation_positive_amount"),
        CheckConstraint(
            "remaining_amount >= 0 AND remaining_amount <= original_amount",
            name="ck_obligation_remaining_bounds",
        ),
        CheckConstraint("due_date >= issue_date", name="ck_obligation_due_after_issue"),
        Index("ix_obligations_branch_deleted", "branch_id", "is_deleted"),
        Index("ix_obligations_due_date", "due_date"),
    )

    # Relationships
    payments = relationship("Payment", back_populates="obligation")


class Payment(Base):
    """Payment model. Rows are only ever inserted."""

    __tablename__ = "payments"

    id = Column(Integer, primary_key=True)
    obligation_id = Column(Integer, ForeignKey("obligations.id"), nullable=False, index=True)
    amount = Column(Numeric(14, 2), nullable=False)
    payment_date = Column(Date, nullable=False)
    method = Column(String(16), nullable=False)
    notes = Column(String, nullable=True)
    recorded_by = Column(String, nullable=False)
    recorded_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (CheckConstraint("amount > 0", name="ck_payment_positive_amount"),)

    # Relationships
    obligation = relationship("Obligation", back_populates="payments")


class AuditLog(Base):
    """Audit trail model."""

    __tablename__ = "audit_log"

    id = Column(Integer, primary_key=True)
    actor_id = Column(String, nullable=False)
    action = Column(String(16), nullable=False)
    entity_type = Column(String(32), nullable=False)
    entity_id = Column(Integer, nullable=False)
    before = Column(JSON, nullable=True)
    after = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (Index("ix_audit_log_entity", "entity_type", "entity_id"),)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        # Sessions are per thread, but pooled connections may move between threads.
        connect_args = {"check_same_thread": False, "timeout": 30}
    engine = create_engine(database_url, echo=False, connect_args=connect_args)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)

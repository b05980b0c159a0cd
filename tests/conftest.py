"""Shared pytest fixtures for branchledger tests."""

import logging
import tempfile
import os
from datetime import date, datetime, UTC
from decimal import Decimal
import pytest

from branchledger.database.factories import create_sqlite_database
from branchledger.domain.audit import DatabaseAuditRecorder
from branchledger.domain.clock import FixedClock
from branchledger.domain.entities import Actor, Direction, ObligationInput, Role
from branchledger.domain.events import EventDispatcher
from branchledger.domain.query import ObligationQueryService
from branchledger.domain.settlement import SettlementService


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers the CLI attaches to the package logger."""
    yield
    logger = logging.getLogger("branchledger")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def clock():
    """A clock frozen at 2024-01-10 12:00 UTC."""
    return FixedClock(datetime(2024, 1, 10, 12, 0, tzinfo=UTC))


@pytest.fixture
def events():
    """Events delivered by the dispatcher, as (name, payload) tuples."""
    return []


@pytest.fixture
def dispatcher(events):
    """An event dispatcher recording into ``events``."""
    dispatcher = EventDispatcher(name="test-events")
    dispatcher.subscribe(lambda name, payload: events.append((name, payload)))
    yield dispatcher
    dispatcher.close()


@pytest.fixture
def audit(temp_db, clock):
    """Database-backed audit recorder."""
    return DatabaseAuditRecorder(temp_db, clock)


@pytest.fixture
def settlement_service(temp_db, dispatcher, audit, clock):
    """Create a SettlementService with a temporary database."""
    return SettlementService(temp_db, dispatcher=dispatcher, audit=audit, clock=clock)


@pytest.fixture
def query_service(temp_db, clock):
    """Create an ObligationQueryService with a temporary database."""
    return ObligationQueryService(temp_db, clock=clock)


@pytest.fixture
def admin():
    """Unrestricted actor without a branch."""
    return Actor(id="admin", role=Role.UNRESTRICTED)


@pytest.fixture
def clerk_a():
    """Branch-scoped actor of branch A."""
    return Actor(id="clerk-a", role=Role.BRANCH_SCOPED, branch_id="A")


@pytest.fixture
def clerk_b():
    """Branch-scoped actor of branch B."""
    return Actor(id="clerk-b", role=Role.BRANCH_SCOPED, branch_id="B")


@pytest.fixture
def unassigned_clerk():
    """Branch-scoped actor with no branch assigned."""
    return Actor(id="clerk-none", role=Role.BRANCH_SCOPED, branch_id=None)


@pytest.fixture
def make_obligation(settlement_service, admin):
    """Factory creating obligations in branch A unless told otherwise."""

    def _make(actor=None, **overrides):
        fields = {
            "direction": Direction.OWED_BY_US,
            "counterparty_name": "Acme Supplies",
            "amount": Decimal("1000.00"),
            "issue_date": date(2024, 1, 1),
            "due_date": date(2024, 2, 1),
            "currency": "USD",
            "branch_id": "A",
        }
        fields.update(overrides)
        return settlement_service.create_obligation(actor or admin, ObligationInput(**fields))

    return _make


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()

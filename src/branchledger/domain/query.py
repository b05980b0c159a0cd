"""Obligation listings and summary statistics."""

import math
from datetime import date
from decimal import Decimal
from typing import Optional

from branchledger.database.base import Database
from branchledger.domain.clock import Clock, SystemClock
from branchledger.domain.entities import (
    Actor,
    AmountTotals,
    Direction,
    Obligation,
    ObligationFilters,
    ObligationPage,
    ObligationStatus,
    ObligationSummary,
    StatusCounts,
)
from branchledger.domain.errors import ValidationError
from branchledger.domain.scope import AccessScopeResolver

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 50


class ObligationQueryService:
    """Read-only views over obligations, always routed through the scope resolver."""

    def __init__(
        self,
        db: Database,
        scope: Optional[AccessScopeResolver] = None,
        clock: Optional[Clock] = None,
    ):
        """Initialize query service.

        Args:
            db: Database instance
            scope: Access scope resolver
            clock: Time source for the default overdue reference day
        """
        self.db = db
        self.scope = scope or AccessScopeResolver()
        self.clock = clock or SystemClock()

    def list_obligations(
        self,
        actor: Actor,
        filters: Optional[ObligationFilters] = None,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
    ) -> ObligationPage:
        """List obligations visible to ``actor``, soonest due first.

        Args:
            actor: Calling actor
            filters: Optional status/direction/search/date/branch filters; the
                branch filter is ignored for branch-scoped actors
            page: 1-based page number
            limit: Page size

        Returns:
            ObligationPage with items and pagination metadata

        Raises:
            ValidationError: If page or limit is below 1
            ForbiddenError: If a branch-scoped actor has no branch
        """
        if page < 1:
            raise ValidationError("page must be at least 1", field="page")
        if limit < 1:
            raise ValidationError("limit must be at least 1", field="limit")

        filters = filters or ObligationFilters()
        predicate = self.scope.filter_predicate(actor, filters.branch_id)

        total = self.db.count_obligations(predicate, filters)
        items = self.db.list_obligations(
            predicate, filters, offset=(page - 1) * limit, limit=limit
        )
        return ObligationPage(
            items=tuple(items),
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit),
        )

    def summary(
        self,
        actor: Actor,
        branch_filter: Optional[str] = None,
        direction: Optional[Direction] = None,
    ) -> ObligationSummary:
        """Aggregate counts and amounts over the obligations ``actor`` can see.

        ``collected`` is the total original amount minus what remains.
        """
        predicate = self.scope.filter_predicate(actor, branch_filter)
        rows = self.db.get_balance_rows(predicate, direction)

        counts = {status: 0 for status in ObligationStatus}
        total_amount = Decimal("0.00")
        remaining_amount = Decimal("0.00")
        for status, original, remaining in rows:
            counts[status] += 1
            total_amount += original
            remaining_amount += remaining

        return ObligationSummary(
            total=len(rows),
            by_status=StatusCounts(
                active=counts[ObligationStatus.ACTIVE],
                partial=counts[ObligationStatus.PARTIAL],
                paid=counts[ObligationStatus.PAID],
            ),
            amounts=AmountTotals(
                total=total_amount,
                remaining=remaining_amount,
                collected=total_amount - remaining_amount,
            ),
        )

    def list_overdue(
        self,
        actor: Actor,
        as_of: Optional[date] = None,
        direction: Optional[Direction] = None,
        branch_filter: Optional[str] = None,
    ) -> list[Obligation]:
        """List unsettled obligations whose due date has passed.

        Args:
            actor: Calling actor
            as_of: Reference day (defaults to the clock's current date);
                obligations due on it are not yet overdue
            direction: Optional direction filter
            branch_filter: Optional branch narrowing for unrestricted actors
        """
        predicate = self.scope.filter_predicate(actor, branch_filter)
        return self.db.list_overdue_obligations(predicate, as_of or self.clock.now().date(), direction)

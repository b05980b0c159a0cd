"""Access scope resolution for branch-restricted actors."""

from typing import Optional

from branchledger.domain.entities import Actor, Obligation, ScopePredicate
from branchledger.domain.errors import ForbiddenError, branch_forbidden, no_branch_assigned


class AccessScopeResolver:
    """Translate an actor into a row predicate and write checks.

    Unrestricted actors see and write every branch. Branch-scoped actors see
    and write only their own branch, and can do nothing at all without one.
    """

    def require_branch(self, actor: Actor) -> None:
        """Fail if a branch-scoped actor has no branch assigned.

        Raises:
            ForbiddenError: If the actor is branch-scoped without a branch
        """
        if not actor.is_unrestricted and actor.branch_id is None:
            raise ForbiddenError(no_branch_assigned())

    def filter_predicate(self, actor: Actor, branch_filter: Optional[str] = None) -> ScopePredicate:
        """Build the listing predicate for ``actor``.

        Args:
            actor: Calling actor
            branch_filter: Optional branch narrowing; ignored for
                branch-scoped actors, whose own branch always wins

        Returns:
            ScopePredicate excluding soft-deleted rows
        """
        self.require_branch(actor)
        if actor.is_unrestricted:
            return ScopePredicate(branch_id=branch_filter)
        return ScopePredicate(branch_id=actor.branch_id)

    def resolve_create_branch(self, actor: Actor, requested: Optional[str]) -> Optional[str]:
        """Decide the owning branch of a new obligation.

        Branch-scoped actors always create in their own branch and may not
        name another one. Unrestricted actors get what they asked for,
        including no branch at all.
        """
        self.require_branch(actor)
        if actor.is_unrestricted:
            return requested
        if requested is not None and requested != actor.branch_id:
            raise ForbiddenError(branch_forbidden(None, requested))
        return actor.branch_id

    def authorize_read(self, actor: Actor, obligation: Obligation) -> None:
        """Fail unless ``actor`` may see ``obligation``."""
        self.require_branch(actor)
        if actor.is_unrestricted:
            return
        if obligation.branch_id != actor.branch_id:
            raise ForbiddenError(branch_forbidden(obligation.id, obligation.branch_id))

    def authorize_write(self, actor: Actor, obligation: Obligation) -> None:
        """Fail unless ``actor`` may mutate ``obligation``.

        Raises:
            ForbiddenError: On a cross-branch attempt or missing branch
        """
        # Read and write scope coincide for both roles today.
        self.authorize_read(actor, obligation)

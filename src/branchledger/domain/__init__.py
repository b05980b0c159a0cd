"""Domain layer for branchledger application.

Submodules are imported directly (``branchledger.domain.settlement`` etc.);
the database layer depends on ``branchledger.domain.entities``, so this
package must not import the services eagerly.
"""

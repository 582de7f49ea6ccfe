"""This module defines the exceptions raised by the ledger core.

Every failure is recoverable by the caller; the classes only differ in what
the caller is expected to do next.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from xpensify.models.transactions import Transaction


class LedgerError(Exception):
    """Base exception for errors raised by the ledger core."""

    pass


class LedgerValidationError(LedgerError):
    """Raised when input is malformed or out of range, before any write happens."""

    pass


class NotFoundError(LedgerError):
    """Raised when an id does not exist or does not belong to the requesting user."""

    pass


class InvalidStateError(LedgerError):
    """Raised when the target entity is not in a state that allows the operation."""

    pass


class DependencyFailureError(LedgerError):
    """Raised when storage or an external collaborator is unreachable or failing."""

    pass


class FollowUpStep(StrEnum):
    """The steps that run after a transaction insert has been committed."""

    GOAL_CONTRIBUTION = "goal_contribution"
    XP_AWARD = "xp_award"


class PartialFailureError(LedgerError):
    """Raised when a transaction was committed but one of its follow-up steps failed.

    The caller must retry only the failed steps; reprocessing the whole entry
    would insert the transaction twice.

    Attributes:
        transaction: The transaction that was committed.
        failed_steps: The follow-up steps that did not complete.
        errors: The underlying error for each failed step.
    """

    transaction: Transaction
    failed_steps: list[FollowUpStep]
    errors: dict[FollowUpStep, LedgerError]

    def __init__(self, transaction: Transaction, errors: dict[FollowUpStep, LedgerError]) -> None:
        """Initializes the error with the committed transaction and step failures.

        Args:
            transaction: The transaction that was committed.
            errors: The underlying error for each failed step.
        """
        self.transaction = transaction
        self.errors = errors
        self.failed_steps = list(errors)
        steps = ", ".join(step.value for step in self.failed_steps)
        super().__init__(f"Transaction {transaction.transaction_id} was committed but these steps failed: {steps}.")

"""This module defines the TransactionLedger.

The ledger is the single source of truth for income and expense entries.
Committing an entry is a two-phase operation: the insert is validated and
written first, then the follow-up steps (goal contribution, xp award) run
against the committed row. A follow-up failure never rolls the insert back;
it is reported through `PartialFailureError` so the caller can retry only
the failed steps.
"""

from collections.abc import Mapping
from datetime import date
from typing import Any
from uuid import UUID

from pydantic import ValidationError
from xpensify.exceptions.ledger import (
    FollowUpStep,
    InvalidStateError,
    LedgerError,
    LedgerValidationError,
    NotFoundError,
    PartialFailureError,
)
from xpensify.models.categories import Category, TransactionType
from xpensify.models.goals import ContributionResult
from xpensify.models.profiles import LearningAction
from xpensify.models.transactions import (
    CategorySpending,
    CommitResult,
    LedgerTotals,
    MonthlySummary,
    NewTransaction,
    Transaction,
    TransactionFilters,
    TransactionPatch,
)
from xpensify.providers.database import translate_database_errors
from xpensify.providers.logging import Logger, LoggingProvider
from xpensify.repositories.transactions import TransactionsRepository
from xpensify.services.categories import CategoryCatalog
from xpensify.services.goals import GoalProgressTracker
from xpensify.services.progression import ProgressionEngine
from xpensify.services.suggestion import CategorySuggestionEngine


class TransactionLedger:
    """Records, edits and removes a user's income and expense entries."""

    logger: Logger
    transactions_repo: TransactionsRepository
    catalog: CategoryCatalog
    suggestion_engine: CategorySuggestionEngine
    goal_tracker: GoalProgressTracker
    progression: ProgressionEngine | None

    def __init__(
        self,
        transactions_repo: TransactionsRepository,
        catalog: CategoryCatalog,
        suggestion_engine: CategorySuggestionEngine,
        goal_tracker: GoalProgressTracker,
        progression: ProgressionEngine | None = None,
    ) -> None:
        """Initializes the ledger with its collaborators.

        Args:
            transactions_repo: The repository for transaction data.
            catalog: The category catalog used to resolve categories.
            suggestion_engine: The engine proposing a category when the entry
                does not name one.
            goal_tracker: The tracker receiving goal-linked income.
            progression: The engine awarding xp for logged entries. No xp is
                awarded when omitted.
        """
        self.logger = LoggingProvider().get_logger()
        self.transactions_repo = transactions_repo
        self.catalog = catalog
        self.suggestion_engine = suggestion_engine
        self.goal_tracker = goal_tracker
        self.progression = progression

    def commit(self, entry: NewTransaction | Mapping[str, Any], goal_id: UUID | None = None) -> CommitResult:
        """Validates and records a new entry, then runs its follow-up steps.

        Args:
            entry: The proposed entry, as a model or a raw mapping.
            goal_id: The goal an income entry contributes to, if any.

        Returns:
            The committed transaction with the updated goal and any events.

        Raises:
            LedgerValidationError: If the entry is invalid. Nothing is written.
            NotFoundError: If the linked goal does not exist for the user.
            InvalidStateError: If the linked goal is no longer active.
            PartialFailureError: If the entry was committed but a follow-up
                step failed.
            DependencyFailureError: If storage is unavailable.
        """
        new_entry = self._parse_entry(entry)
        category = self._resolve_category(new_entry)

        if goal_id is not None:
            if new_entry.type != TransactionType.INCOME:
                raise LedgerValidationError("Only income can contribute to a goal.")
            self.goal_tracker.ensure_accepts_contributions(new_entry.user_id, goal_id)

        transaction = self._insert(new_entry, category, goal_id)
        self.logger.info(
            f"Committed transaction {transaction.transaction_id} ({transaction.type.value}, {transaction.amount})."
        )

        result = CommitResult(transaction=transaction)
        errors: dict[FollowUpStep, LedgerError] = {}

        if goal_id is not None:
            try:
                contribution = self.retry_goal_contribution(transaction)
                result.goal = contribution.goal
                result.events.extend(contribution.events)
            except LedgerError as e:
                self.logger.error(f"Goal contribution failed for transaction {transaction.transaction_id}: {e}")
                errors[FollowUpStep.GOAL_CONTRIBUTION] = e

        if self.progression is not None:
            try:
                award = self.progression.award_action(transaction.user_id, LearningAction.TRANSACTION_LOGGED)
                result.events.extend(award.events)
            except LedgerError as e:
                self.logger.error(f"xp award failed for transaction {transaction.transaction_id}: {e}")
                errors[FollowUpStep.XP_AWARD] = e

        if errors:
            raise PartialFailureError(transaction, errors)
        return result

    def retry_goal_contribution(self, transaction: Transaction) -> ContributionResult:
        """Applies a goal-linked transaction's contribution.

        Safe to call repeatedly: a contribution already recorded for the
        transaction is not applied again.

        Args:
            transaction: A committed income transaction linked to a goal.

        Returns:
            The contribution result.

        Raises:
            LedgerValidationError: If the transaction is not linked to a goal.
        """
        if transaction.goal_id is None:
            raise LedgerValidationError(f"Transaction {transaction.transaction_id} is not linked to a goal.")
        return self.goal_tracker.contribute(
            transaction.user_id,
            transaction.goal_id,
            transaction.amount,
            transaction_id=transaction.transaction_id,
        )

    @translate_database_errors
    def get(self, user_id: UUID, transaction_id: UUID) -> Transaction:
        """Retrieves a transaction owned by a user.

        Raises:
            NotFoundError: If the transaction does not exist for that user.
        """
        transaction = self.transactions_repo.get(user_id, transaction_id)
        if transaction is None:
            raise NotFoundError(f"Transaction {transaction_id} does not exist.")
        return transaction

    @translate_database_errors
    def update(
        self, user_id: UUID, transaction_id: UUID, patch: TransactionPatch | Mapping[str, Any]
    ) -> Transaction:
        """Applies an explicit edit to a committed transaction.

        Every change is validated before the row is written, so a rejected
        edit leaves the stored transaction untouched.

        Args:
            user_id: The owner of the transaction.
            transaction_id: The id of the transaction.
            patch: The fields to change.

        Returns:
            The updated transaction.

        Raises:
            LedgerValidationError: If a changed value is invalid, including a
                category of a different type.
            NotFoundError: If the transaction does not exist for that user.
            InvalidStateError: If the amount of goal-linked income is changed.
        """
        try:
            changes_model = TransactionPatch.model_validate(patch)
        except ValidationError as e:
            raise LedgerValidationError(f"Invalid transaction edit: {e}") from e

        changes = changes_model.model_dump(exclude_unset=True)
        for field in ("amount", "category_id", "occurred_on"):
            if field in changes and changes[field] is None:
                raise LedgerValidationError(f"{field} cannot be cleared.")

        current = self.get(user_id, transaction_id)

        if "category_id" in changes:
            category = self._get_category(changes["category_id"])
            if category.type != current.type:
                raise LedgerValidationError(
                    f"Category '{category.name}' is a {category.type.value} category "
                    f"and cannot be used for {current.type.value}."
                )

        if current.goal_id is not None and "amount" in changes and changes["amount"] != current.amount:
            raise InvalidStateError(
                f"Transaction {transaction_id} already contributed to goal {current.goal_id}; its amount is final."
            )

        updated = self.transactions_repo.update(user_id, transaction_id, changes)
        if updated is None:
            raise NotFoundError(f"Transaction {transaction_id} does not exist.")
        self.logger.info(f"Updated transaction {transaction_id} ({', '.join(sorted(changes)) or 'no changes'}).")
        return updated

    @translate_database_errors
    def remove(self, user_id: UUID, transaction_id: UUID) -> None:
        """Deletes a transaction owned by a user.

        Args:
            user_id: The owner of the transaction.
            transaction_id: The id of the transaction.

        Raises:
            NotFoundError: If the transaction does not exist for that user.
            InvalidStateError: If the transaction is income that already
                contributed to a goal.
        """
        current = self.get(user_id, transaction_id)
        if current.goal_id is not None:
            raise InvalidStateError(
                f"Transaction {transaction_id} already contributed to goal {current.goal_id} and cannot be removed."
            )
        if not self.transactions_repo.delete(user_id, transaction_id):
            raise NotFoundError(f"Transaction {transaction_id} does not exist.")
        self.logger.info(f"Removed transaction {transaction_id}.")

    @translate_database_errors
    def list_for_user(self, user_id: UUID, filters: TransactionFilters | None = None) -> list[Transaction]:
        """Lists a user's transactions, most recent first."""
        return self.transactions_repo.list_for_user(user_id, filters)

    @translate_database_errors
    def totals(self, user_id: UUID) -> LedgerTotals:
        """Returns a user's income and expense totals."""
        return self.transactions_repo.totals(user_id)

    @translate_database_errors
    def spending_by_category(self, user_id: UUID, filters: TransactionFilters | None = None) -> list[CategorySpending]:
        """Returns a user's expense totals per category, largest first.

        Args:
            user_id: The owner of the transactions.
            filters: Optional date and category filters.

        Returns:
            The per-category totals.
        """
        return self.transactions_repo.spending_by_category(user_id, filters)

    @translate_database_errors
    def monthly_summary(self, user_id: UUID, start_date: date, end_date: date) -> list[MonthlySummary]:
        """Returns a user's income and expense totals per calendar month.

        Args:
            user_id: The owner of the transactions.
            start_date: The first day of the range.
            end_date: The last day of the range, inclusive.

        Returns:
            The monthly totals, oldest month first.

        Raises:
            LedgerValidationError: If the range starts after it ends.
        """
        if start_date > end_date:
            raise LedgerValidationError(f"Summary range starts on {start_date}, after its end on {end_date}.")
        return self.transactions_repo.monthly_summary(user_id, start_date, end_date)

    def _parse_entry(self, entry: NewTransaction | Mapping[str, Any]) -> NewTransaction:
        if isinstance(entry, NewTransaction):
            return entry
        try:
            return NewTransaction.model_validate(entry)
        except ValidationError as e:
            raise LedgerValidationError(f"Invalid transaction: {e}") from e

    def _get_category(self, category_id: UUID) -> Category:
        try:
            return self.catalog.get(category_id)
        except NotFoundError as e:
            raise LedgerValidationError(f"Category {category_id} does not exist.") from e

    def _resolve_category(self, entry: NewTransaction) -> Category:
        """Finds the category of a new entry, asking for a suggestion if needed.

        Args:
            entry: The validated entry.

        Returns:
            A category matching the entry's type.

        Raises:
            LedgerValidationError: If the category is unknown, of the wrong
                type, or cannot be suggested.
        """
        if entry.category_id is not None:
            category = self._get_category(entry.category_id)
            if category.type != entry.type:
                raise LedgerValidationError(
                    f"Category '{category.name}' is a {category.type.value} category "
                    f"and cannot be used for {entry.type.value}."
                )
            return category

        category = self.suggestion_engine.suggest(entry.description, self.catalog.list_for_type(entry.type))
        if category is None:
            raise LedgerValidationError("A category is required and none could be suggested from the description.")
        self.logger.debug(f"Suggested category '{category.name}' for '{entry.description}'.")
        return category

    @translate_database_errors
    def _insert(self, entry: NewTransaction, category: Category, goal_id: UUID | None) -> Transaction:
        return self.transactions_repo.insert(entry, category.category_id, goal_id)

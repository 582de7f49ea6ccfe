from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock
from uuid import UUID, uuid4

import pytest
from sqlalchemy.exc import OperationalError
from xpensify.exceptions.ledger import (
    DependencyFailureError,
    FollowUpStep,
    InvalidStateError,
    LedgerValidationError,
    NotFoundError,
    PartialFailureError,
)
from xpensify.models.categories import Category, TransactionType
from xpensify.models.events import EventKind, LedgerEvent
from xpensify.models.goals import ContributionResult
from xpensify.models.profiles import LearningAction
from xpensify.models.transactions import CategorySpending, MonthlySummary, TransactionFilters
from xpensify.services.ledger import TransactionLedger


@pytest.fixture
def mock_catalog() -> MagicMock:
    """Fixture for a mocked CategoryCatalog."""
    return MagicMock()


@pytest.fixture
def mock_suggestion_engine() -> MagicMock:
    """Fixture for a mocked CategorySuggestionEngine."""
    return MagicMock()


@pytest.fixture
def mock_goal_tracker() -> MagicMock:
    """Fixture for a mocked GoalProgressTracker."""
    return MagicMock()


@pytest.fixture
def mock_progression() -> MagicMock:
    """Fixture for a mocked ProgressionEngine."""
    progression = MagicMock()
    progression.award_action.return_value.events = []
    return progression


@pytest.fixture
def ledger(
    mock_transactions_repo: MagicMock,
    mock_catalog: MagicMock,
    mock_suggestion_engine: MagicMock,
    mock_goal_tracker: MagicMock,
    mock_progression: MagicMock,
) -> TransactionLedger:
    """Provides a ledger wired to mocked collaborators."""
    return TransactionLedger(
        mock_transactions_repo,
        mock_catalog,
        mock_suggestion_engine,
        mock_goal_tracker,
        progression=mock_progression,
    )


def _entry(user_id: UUID, **overrides) -> dict:
    data = {
        "user_id": user_id,
        "type": "expense",
        "amount": "250.00",
        "occurred_on": "2026-03-01",
        "description": "Dinner at Zomato tonight",
    }
    data.update(overrides)
    return data


def test_commit_with_explicit_category(
    ledger: TransactionLedger, user_id: UUID, food_category: Category, make_transaction
) -> None:
    """Tests that a valid expense is inserted and earns xp."""
    transaction = make_transaction(category_id=food_category.category_id)
    ledger.catalog.get.return_value = food_category
    ledger.transactions_repo.insert.return_value = transaction

    result = ledger.commit(_entry(user_id, category_id=str(food_category.category_id)))

    assert result.transaction == transaction
    assert result.goal is None
    entry, category_id, goal_id = ledger.transactions_repo.insert.call_args.args
    assert entry.amount == Decimal("250.00")
    assert category_id == food_category.category_id
    assert goal_id is None
    ledger.suggestion_engine.suggest.assert_not_called()
    ledger.progression.award_action.assert_called_once_with(user_id, LearningAction.TRANSACTION_LOGGED)


def test_commit_uses_suggestion_when_category_missing(
    ledger: TransactionLedger, user_id: UUID, food_category: Category, make_transaction
) -> None:
    """Tests that the suggestion engine picks a category from the description."""
    ledger.catalog.list_for_type.return_value = [food_category]
    ledger.suggestion_engine.suggest.return_value = food_category
    ledger.transactions_repo.insert.return_value = make_transaction()

    ledger.commit(_entry(user_id))

    ledger.catalog.list_for_type.assert_called_once_with(TransactionType.EXPENSE)
    ledger.suggestion_engine.suggest.assert_called_once_with("Dinner at Zomato tonight", [food_category])
    assert ledger.transactions_repo.insert.call_args.args[1] == food_category.category_id


def test_commit_without_any_category_fails(ledger: TransactionLedger, user_id: UUID) -> None:
    """Tests that an entry nobody can categorize is rejected before any write."""
    ledger.suggestion_engine.suggest.return_value = None

    with pytest.raises(LedgerValidationError):
        ledger.commit(_entry(user_id, description="xk"))

    ledger.transactions_repo.insert.assert_not_called()


@pytest.mark.parametrize(
    "overrides",
    [
        {"amount": "0"},
        {"amount": "-3"},
        {"amount": "twelve"},
        {"amount": "0.001"},
        {"amount": "12.345"},
        {"amount": "1e15"},
        {"occurred_on": "2026-13-01"},
        {"user_id": None},
    ],
)
def test_commit_rejects_invalid_entries(ledger: TransactionLedger, user_id: UUID, overrides: dict) -> None:
    """Tests that malformed entries fail validation and nothing is written.

    Args:
        ledger: The ledger under test.
        user_id: The owner of the entry.
        overrides: The fields replacing valid values.
    """
    with pytest.raises(LedgerValidationError):
        ledger.commit(_entry(user_id, **overrides))

    ledger.transactions_repo.insert.assert_not_called()


def test_commit_rejects_category_of_other_type(
    ledger: TransactionLedger, user_id: UUID, salary_category: Category
) -> None:
    """Tests that an expense cannot use an income category."""
    ledger.catalog.get.return_value = salary_category

    with pytest.raises(LedgerValidationError):
        ledger.commit(_entry(user_id, category_id=str(salary_category.category_id)))

    ledger.transactions_repo.insert.assert_not_called()


def test_commit_rejects_unknown_category(ledger: TransactionLedger, user_id: UUID) -> None:
    """Tests that an unknown category is a validation error."""
    ledger.catalog.get.side_effect = NotFoundError("missing")

    with pytest.raises(LedgerValidationError):
        ledger.commit(_entry(user_id, category_id=str(uuid4())))


def test_commit_rejects_goal_on_expense(ledger: TransactionLedger, user_id: UUID, food_category: Category) -> None:
    """Tests that only income can be linked to a goal."""
    ledger.catalog.get.return_value = food_category

    with pytest.raises(LedgerValidationError):
        ledger.commit(_entry(user_id, category_id=str(food_category.category_id)), goal_id=uuid4())

    ledger.transactions_repo.insert.assert_not_called()


def test_commit_checks_goal_before_insert(ledger: TransactionLedger, user_id: UUID, salary_category: Category) -> None:
    """Tests that a cancelled goal stops the commit before anything is written."""
    ledger.catalog.get.return_value = salary_category
    ledger.goal_tracker.ensure_accepts_contributions.side_effect = InvalidStateError("cancelled")

    with pytest.raises(InvalidStateError):
        ledger.commit(
            _entry(user_id, type="income", category_id=str(salary_category.category_id)), goal_id=uuid4()
        )

    ledger.transactions_repo.insert.assert_not_called()


def test_commit_income_contributes_to_goal(
    ledger: TransactionLedger, user_id: UUID, salary_category: Category, make_transaction, make_goal
) -> None:
    """Tests that goal-linked income is contributed with its transaction id."""
    goal = make_goal(current_amount=Decimal("26000"))
    transaction = make_transaction(
        type=TransactionType.INCOME,
        amount=Decimal("6000"),
        category_id=salary_category.category_id,
        goal_id=goal.goal_id,
    )
    achieved_event = LedgerEvent(kind=EventKind.GOAL_ACHIEVED, user_id=user_id)
    ledger.catalog.get.return_value = salary_category
    ledger.transactions_repo.insert.return_value = transaction
    ledger.goal_tracker.contribute.return_value = ContributionResult(
        goal=goal, applied=True, achieved=True, events=[achieved_event]
    )

    result = ledger.commit(
        _entry(user_id, type="income", amount="6000", category_id=str(salary_category.category_id)),
        goal_id=goal.goal_id,
    )

    assert result.goal == goal
    assert result.events == [achieved_event]
    ledger.goal_tracker.contribute.assert_called_once_with(
        user_id, goal.goal_id, Decimal("6000"), transaction_id=transaction.transaction_id
    )


def test_commit_reports_partial_failure(
    ledger: TransactionLedger, user_id: UUID, salary_category: Category, make_transaction
) -> None:
    """Tests that a failed follow-up keeps the insert and names the failed step."""
    goal_id = uuid4()
    transaction = make_transaction(
        type=TransactionType.INCOME, category_id=salary_category.category_id, goal_id=goal_id
    )
    ledger.catalog.get.return_value = salary_category
    ledger.transactions_repo.insert.return_value = transaction
    ledger.goal_tracker.contribute.side_effect = DependencyFailureError("storage down")

    with pytest.raises(PartialFailureError) as exc_info:
        ledger.commit(_entry(user_id, type="income", category_id=str(salary_category.category_id)), goal_id=goal_id)

    assert exc_info.value.transaction == transaction
    assert exc_info.value.failed_steps == [FollowUpStep.GOAL_CONTRIBUTION]
    ledger.progression.award_action.assert_called_once()


def test_commit_reports_failed_xp_award(
    ledger: TransactionLedger, user_id: UUID, food_category: Category, make_transaction
) -> None:
    """Tests that an xp award failure is reported without undoing the insert."""
    ledger.catalog.get.return_value = food_category
    ledger.transactions_repo.insert.return_value = make_transaction()
    ledger.progression.award_action.side_effect = NotFoundError("no profile")

    with pytest.raises(PartialFailureError) as exc_info:
        ledger.commit(_entry(user_id, category_id=str(food_category.category_id)))

    assert exc_info.value.failed_steps == [FollowUpStep.XP_AWARD]
    ledger.transactions_repo.delete.assert_not_called()


def test_commit_translates_storage_failure_on_insert(
    ledger: TransactionLedger, user_id: UUID, food_category: Category
) -> None:
    """Tests that an insert failure is a DependencyFailureError, not a partial failure."""
    ledger.catalog.get.return_value = food_category
    ledger.transactions_repo.insert.side_effect = OperationalError("INSERT", {}, Exception("down"))

    with pytest.raises(DependencyFailureError):
        ledger.commit(_entry(user_id, category_id=str(food_category.category_id)))

    ledger.progression.award_action.assert_not_called()


def test_retry_goal_contribution_requires_goal(ledger: TransactionLedger, make_transaction) -> None:
    """Tests that only goal-linked transactions can be retried."""
    with pytest.raises(LedgerValidationError):
        ledger.retry_goal_contribution(make_transaction())


def test_update_to_category_of_other_type_leaves_row_untouched(
    ledger: TransactionLedger, user_id: UUID, salary_category: Category, make_transaction
) -> None:
    """Tests that an edit to a category of a different type fails before the write."""
    transaction = make_transaction()
    ledger.transactions_repo.get.return_value = transaction
    ledger.catalog.get.return_value = salary_category

    with pytest.raises(LedgerValidationError):
        ledger.update(user_id, transaction.transaction_id, {"category_id": str(salary_category.category_id)})

    ledger.transactions_repo.update.assert_not_called()


def test_update_applies_valid_changes(
    ledger: TransactionLedger, user_id: UUID, shopping_category: Category, make_transaction
) -> None:
    """Tests that only the changed fields are written."""
    transaction = make_transaction()
    updated = transaction.model_copy(update={"category_id": shopping_category.category_id})
    ledger.transactions_repo.get.return_value = transaction
    ledger.transactions_repo.update.return_value = updated
    ledger.catalog.get.return_value = shopping_category

    result = ledger.update(
        user_id,
        transaction.transaction_id,
        {"category_id": str(shopping_category.category_id), "occurred_on": "2026-02-28"},
    )

    assert result == updated
    ledger.transactions_repo.update.assert_called_once_with(
        user_id,
        transaction.transaction_id,
        {"category_id": shopping_category.category_id, "occurred_on": date(2026, 2, 28)},
    )


def test_update_rejects_invalid_amount(ledger: TransactionLedger, user_id: UUID) -> None:
    """Tests that edits are validated before the stored row is read."""
    with pytest.raises(LedgerValidationError):
        ledger.update(user_id, uuid4(), {"amount": "-1"})

    ledger.transactions_repo.get.assert_not_called()


def test_update_rejects_sub_cent_amount(ledger: TransactionLedger, user_id: UUID) -> None:
    """Tests that an edit the database would round is rejected before any write."""
    with pytest.raises(LedgerValidationError):
        ledger.update(user_id, uuid4(), {"amount": "0.004"})

    ledger.transactions_repo.update.assert_not_called()


def test_update_cannot_clear_required_fields(ledger: TransactionLedger, user_id: UUID) -> None:
    """Tests that amount, category and date cannot be set to null."""
    with pytest.raises(LedgerValidationError):
        ledger.update(user_id, uuid4(), {"amount": None})


def test_update_missing_transaction(ledger: TransactionLedger, user_id: UUID) -> None:
    """Tests that editing a transaction of another user raises NotFoundError."""
    ledger.transactions_repo.get.return_value = None

    with pytest.raises(NotFoundError):
        ledger.update(user_id, uuid4(), {"description": "Lunch"})


def test_update_amount_of_goal_linked_income(ledger: TransactionLedger, user_id: UUID, make_transaction) -> None:
    """Tests that contributed income keeps its amount."""
    transaction = make_transaction(type=TransactionType.INCOME, goal_id=uuid4())
    ledger.transactions_repo.get.return_value = transaction

    with pytest.raises(InvalidStateError):
        ledger.update(user_id, transaction.transaction_id, {"amount": "1"})

    ledger.transactions_repo.update.assert_not_called()


def test_remove(ledger: TransactionLedger, user_id: UUID, make_transaction) -> None:
    """Tests that an unlinked transaction is deleted."""
    transaction = make_transaction()
    ledger.transactions_repo.get.return_value = transaction
    ledger.transactions_repo.delete.return_value = True

    ledger.remove(user_id, transaction.transaction_id)

    ledger.transactions_repo.delete.assert_called_once_with(user_id, transaction.transaction_id)


def test_remove_goal_linked_income(ledger: TransactionLedger, user_id: UUID, make_transaction) -> None:
    """Tests that contributed income cannot be removed."""
    transaction = make_transaction(type=TransactionType.INCOME, goal_id=uuid4())
    ledger.transactions_repo.get.return_value = transaction

    with pytest.raises(InvalidStateError):
        ledger.remove(user_id, transaction.transaction_id)

    ledger.transactions_repo.delete.assert_not_called()


def test_remove_missing_transaction(ledger: TransactionLedger, user_id: UUID) -> None:
    """Tests that removing an unknown transaction raises NotFoundError."""
    ledger.transactions_repo.get.return_value = None

    with pytest.raises(NotFoundError):
        ledger.remove(user_id, uuid4())


def test_list_and_totals_delegate_to_repository(ledger: TransactionLedger, user_id: UUID) -> None:
    """Tests that listings and totals come from storage."""
    ledger.list_for_user(user_id)
    ledger.totals(user_id)

    ledger.transactions_repo.list_for_user.assert_called_once_with(user_id, None)
    ledger.transactions_repo.totals.assert_called_once_with(user_id)


def test_commit_without_progression_awards_nothing(
    mock_transactions_repo: MagicMock,
    mock_catalog: MagicMock,
    mock_suggestion_engine: MagicMock,
    mock_goal_tracker: MagicMock,
    user_id: UUID,
    food_category: Category,
    make_transaction,
) -> None:
    """Tests that the xp step is skipped when no progression engine is wired."""
    ledger = TransactionLedger(mock_transactions_repo, mock_catalog, mock_suggestion_engine, mock_goal_tracker)
    mock_catalog.get.return_value = food_category
    mock_transactions_repo.insert.return_value = make_transaction()

    result = ledger.commit(_entry(user_id, category_id=str(food_category.category_id)))

    assert result.events == []


def test_spending_by_category_comes_from_storage(ledger: TransactionLedger, user_id: UUID) -> None:
    """Tests that per-category expense totals are read from the repository."""
    filters = TransactionFilters(start_date=date(2026, 3, 1))
    spending = [
        CategorySpending(category_id=uuid4(), category_name="Shopping", total=Decimal("349.00"), transaction_count=1)
    ]
    ledger.transactions_repo.spending_by_category.return_value = spending

    assert ledger.spending_by_category(user_id, filters) == spending
    ledger.transactions_repo.spending_by_category.assert_called_once_with(user_id, filters)


def test_monthly_summary_comes_from_storage(ledger: TransactionLedger, user_id: UUID) -> None:
    """Tests that monthly totals are read for the requested range."""
    months = [MonthlySummary(month=date(2026, 3, 1), income=Decimal("6000"), expense=Decimal("250"))]
    ledger.transactions_repo.monthly_summary.return_value = months

    result = ledger.monthly_summary(user_id, date(2026, 3, 1), date(2026, 3, 31))

    assert result == months
    ledger.transactions_repo.monthly_summary.assert_called_once_with(user_id, date(2026, 3, 1), date(2026, 3, 31))


def test_monthly_summary_rejects_reversed_range(ledger: TransactionLedger, user_id: UUID) -> None:
    """Tests that a range ending before it starts is a validation error."""
    with pytest.raises(LedgerValidationError):
        ledger.monthly_summary(user_id, date(2026, 3, 31), date(2026, 3, 1))

    ledger.transactions_repo.monthly_summary.assert_not_called()


def test_monthly_summary_translates_storage_failure(ledger: TransactionLedger, user_id: UUID) -> None:
    """Tests that a storage failure surfaces as DependencyFailureError."""
    ledger.transactions_repo.monthly_summary.side_effect = OperationalError("SELECT", {}, Exception("down"))

    with pytest.raises(DependencyFailureError):
        ledger.monthly_summary(user_id, date(2026, 3, 1), date(2026, 3, 31))

"""This module initializes the services package.

It re-exports the ledger core services so that callers can wire them up
without depending on the package's internal module layout.
"""

from xpensify.services.categories import CategoryCatalog
from xpensify.services.goals import GoalProgressTracker
from xpensify.services.ingestion import ReceiptExtractor, ReceiptIngestionService
from xpensify.services.ledger import TransactionLedger
from xpensify.services.progression import ProgressionEngine
from xpensify.services.suggestion import CategorySuggestionEngine

__all__ = [
    "CategoryCatalog",
    "CategorySuggestionEngine",
    "GoalProgressTracker",
    "ProgressionEngine",
    "ReceiptExtractor",
    "ReceiptIngestionService",
    "TransactionLedger",
]

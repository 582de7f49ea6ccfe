"""This module defines the receipt ingestion boundary.

An external extraction collaborator turns an uploaded document into loosely
shaped transaction records. `ReceiptIngestionService` validates every record
strictly, maps it onto the category catalog and commits it through the
ledger, reporting the records it could not use instead of guessing.
"""

from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Protocol
from uuid import UUID, uuid4

from pydantic import ValidationError
from tenacity import RetryCallState, retry, retry_if_exception_type, stop_after_attempt, wait_exponential
from xpensify.exceptions.ledger import DependencyFailureError, LedgerError, PartialFailureError
from xpensify.models.categories import Category
from xpensify.models.receipts import FailedFollowUp, IngestionReport, ReceiptCandidate, RejectedCandidate
from xpensify.providers.config import Config, ConfigProvider
from xpensify.providers.logging import Logger, LoggingProvider
from xpensify.services.categories import CategoryCatalog
from xpensify.services.ledger import TransactionLedger
from xpensify.services.suggestion import CategorySuggestionEngine


class ReceiptExtractor(Protocol):
    """The external collaborator that reads transactions out of a document."""

    def extract(self, document: bytes, mime_type: str) -> Sequence[Mapping[str, Any]]:
        """Extracts transaction records from a document.

        Args:
            document: The raw document content.
            mime_type: The MIME type of the document.

        Returns:
            The extracted records, one mapping per transaction.
        """
        ...


class ReceiptIngestionService:
    """Turns extracted receipt records into committed ledger transactions."""

    logger: Logger
    config: Config
    extractor: ReceiptExtractor
    catalog: CategoryCatalog
    suggestion_engine: CategorySuggestionEngine
    ledger: TransactionLedger

    def __init__(
        self,
        extractor: ReceiptExtractor,
        catalog: CategoryCatalog,
        suggestion_engine: CategorySuggestionEngine,
        ledger: TransactionLedger,
        config: Config | None = None,
    ) -> None:
        """Initializes the service with its collaborators.

        Args:
            extractor: The document extraction collaborator.
            catalog: The category catalog.
            suggestion_engine: The engine used when a label does not match.
            ledger: The ledger receiving the candidates.
            config: The application configuration. Loaded from the
                environment when omitted.
        """
        self.logger = LoggingProvider().get_logger()
        self.config = config or ConfigProvider.get_config()
        self.extractor = extractor
        self.catalog = catalog
        self.suggestion_engine = suggestion_engine
        self.ledger = ledger

    def parse_candidates(
        self, raw_records: Sequence[Any]
    ) -> tuple[list[tuple[int, ReceiptCandidate]], list[RejectedCandidate]]:
        """Validates raw records against the candidate schema.

        Args:
            raw_records: The records returned by the extractor.

        Returns:
            The valid candidates paired with their index, and the rejected
            records with the reason.
        """
        valid: list[tuple[int, ReceiptCandidate]] = []
        rejected: list[RejectedCandidate] = []
        for index, record in enumerate(raw_records):
            if not isinstance(record, Mapping):
                rejected.append(RejectedCandidate(index=index, reason="Record is not an object."))
                continue
            try:
                valid.append((index, ReceiptCandidate.model_validate(dict(record))))
            except ValidationError as e:
                reason = "; ".join(
                    f"{'.'.join(str(part) for part in error['loc']) or 'record'}: {error['msg']}"
                    for error in e.errors()
                )
                self.logger.warning(f"Rejected extracted record {index}: {reason}")
                rejected.append(RejectedCandidate(index=index, reason=reason, raw=dict(record)))
        return valid, rejected

    def resolve_category(self, candidate: ReceiptCandidate) -> Category | None:
        """Maps a candidate onto a catalog category of its type.

        The extractor's label is matched by name first, then the suggestion
        engine reads the description and merchant, and finally the type's
        catch-all category is used.

        Args:
            candidate: The validated candidate.

        Returns:
            The category, or None when the catalog has nothing suitable.
        """
        category = self.catalog.find_by_name(candidate.category.value, candidate.type)
        if category is not None:
            return category
        category = self.suggestion_engine.suggest(
            candidate.text_for_suggestion, self.catalog.list_for_type(candidate.type)
        )
        if category is not None:
            return category
        return self.catalog.fallback_for(candidate.type)

    def ingest_candidates(self, user_id: UUID, raw_records: Sequence[Any]) -> IngestionReport:
        """Validates extracted records and commits the valid ones.

        Args:
            user_id: The owner of the transactions.
            raw_records: The records returned by the extractor.

        Returns:
            The report of committed and rejected records. Records whose
            follow-up steps failed are committed and listed for a retry.

        Raises:
            DependencyFailureError: If storage becomes unavailable.
        """
        valid, rejected = self.parse_candidates(raw_records)
        report = IngestionReport(rejected=rejected)

        for index, candidate in valid:
            category = self.resolve_category(candidate)
            if category is None:
                report.rejected.append(
                    RejectedCandidate(
                        index=index,
                        reason=f"No {candidate.type.value} category available for '{candidate.category.value}'.",
                        raw=candidate.model_dump(mode="json"),
                    )
                )
                continue

            entry = {
                "user_id": user_id,
                "type": candidate.type,
                "amount": candidate.amount,
                "category_id": category.category_id,
                "occurred_on": candidate.date,
                "description": candidate.description or candidate.merchant,
            }
            try:
                result = self.ledger.commit(entry)
                report.committed.append(result.transaction)
            except PartialFailureError as e:
                report.committed.append(e.transaction)
                report.failed_follow_ups.append(
                    FailedFollowUp(transaction_id=e.transaction.transaction_id, failed_steps=e.failed_steps)
                )
            except DependencyFailureError:
                raise
            except LedgerError as e:
                report.rejected.append(
                    RejectedCandidate(index=index, reason=str(e), raw=candidate.model_dump(mode="json"))
                )

        self.logger.info(
            f"Ingested {len(report.committed)} transaction(s), rejected {len(report.rejected)} record(s)."
        )
        return report

    def extract(self, document: bytes, mime_type: str) -> Sequence[Mapping[str, Any]]:
        """Calls the extractor with a timeout, retrying with exponential backoff.

        Args:
            document: The raw document content.
            mime_type: The MIME type of the document.

        Returns:
            The extracted records.

        Raises:
            DependencyFailureError: If every attempt failed or timed out.
        """
        retrying = retry(
            stop=stop_after_attempt(self.config.RECEIPT_EXTRACTION_MAX_ATTEMPTS),
            wait=wait_exponential(multiplier=self.config.RECEIPT_EXTRACTION_BACKOFF_FACTOR),
            retry=retry_if_exception_type(DependencyFailureError),
            before_sleep=self._log_retry,
            reraise=True,
        )
        return retrying(self._extract_once)(document, mime_type)

    def _log_retry(self, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        self.logger.warning(
            f"Receipt extraction attempt {retry_state.attempt_number}/"
            f"{self.config.RECEIPT_EXTRACTION_MAX_ATTEMPTS} failed: {error}"
        )

    def _extract_once(self, document: bytes, mime_type: str) -> Sequence[Mapping[str, Any]]:
        timeout = self.config.RECEIPT_EXTRACTION_TIMEOUT_SECONDS
        executor = ThreadPoolExecutor(max_workers=1)
        try:
            future = executor.submit(self.extractor.extract, document, mime_type)
            records = future.result(timeout=timeout)
        except FutureTimeoutError as e:
            raise DependencyFailureError(f"Receipt extraction timed out after {timeout} seconds.") from e
        except Exception as e:
            raise DependencyFailureError(f"Receipt extraction failed: {e}") from e
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        if isinstance(records, (str, bytes)) or not isinstance(records, Sequence):
            raise DependencyFailureError("Receipt extractor returned a malformed response.")
        return records

    def ingest_document(self, user_id: UUID, document: bytes, mime_type: str) -> IngestionReport:
        """Extracts transactions from a document and commits them.

        Args:
            user_id: The owner of the transactions.
            document: The raw document content.
            mime_type: The MIME type of the document.

        Returns:
            The ingestion report.

        Raises:
            DependencyFailureError: If extraction or storage failed.
        """
        with LoggingProvider().set_correlation_id(str(uuid4()), user_id=user_id):
            self.logger.info(f"Ingesting {mime_type} document of {len(document)} bytes for user {user_id}.")
            records = self.extract(document, mime_type)
            return self.ingest_candidates(user_id, records)

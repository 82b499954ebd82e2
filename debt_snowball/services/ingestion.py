"""Document ingestion - validate an uploaded document, extract a statement and persist it"""

import logging
import os
import random
import string
import time
from dataclasses import replace
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import List, Optional

from debt_snowball.config import Settings, settings
from debt_snowball.domain.csv_parsing import parse_csv_statement
from debt_snowball.domain.exceptions import DocumentReadError
from debt_snowball.domain.models import (
    UNLINKED_DEBT_ID,
    DocumentProcessingResult,
    DocumentType,
    ExtractedStatementData,
    ProcessedDocument,
    Statement,
    StatementPayment,
    StatementTransaction,
    UploadedDocument,
    ValidationResult,
)
from debt_snowball.domain.pdf_parsing import PdfTextExtractor, calculate_current_balance
from debt_snowball.domain.validation import validate_document
from debt_snowball.infrastructure.database.store import DebtStore
from debt_snowball.infrastructure.observability.metrics import (
    csv_rows_skipped_counter,
    record_statement_ingested,
    record_validation,
)
from debt_snowball.infrastructure.pdf.extractors import get_pdf_extractor
from debt_snowball.utils.date_utils import days_from

ZERO = Decimal("0")
_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_document_id() -> str:
    """doc_<epoch millis>_<9 random base-36 chars>"""
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"doc_{int(time.time() * 1000)}_{suffix}"


def describe_document(file_path: str, debt_id: Optional[str] = None) -> UploadedDocument:
    """Build an upload descriptor for a file on disk; the type comes from its extension"""
    file_name = os.path.basename(file_path)
    extension = os.path.splitext(file_name)[1].lstrip(".").lower()
    return UploadedDocument(
        id=generate_document_id(),
        file_name=file_name,
        file_path=file_path,
        file_type=extension or None,
        file_size=os.path.getsize(file_path),
        upload_date=datetime.now(timezone.utc),
        debt_id=debt_id,
    )


def statement_id_for(document: UploadedDocument) -> str:
    return f"stmt_{document.id}"


def document_summary(processed: ProcessedDocument) -> str:
    """One-line rendering of a processed document"""
    document = processed.document
    parts = [
        f"📄 {document.file_name}",
        f"📊 {(document.file_type or 'unknown').upper()}",
        f"📅 {document.upload_date.date().isoformat()}",
    ]

    if processed.validation_result:
        parts.append("✅ Valid" if processed.validation_result.is_valid else "❌ Invalid")
        detected = processed.validation_result.detected_type
        if detected:
            parts.append(f"🏷️ {detected.value.replace('_', ' ')}")

    if processed.extracted_data:
        parts.append(f"💳 {processed.extracted_data.transaction_count} transactions")

    return " • ".join(parts)


class DocumentIngestionService:
    """Turns uploaded documents into persisted statements"""

    def __init__(
        self,
        store: DebtStore,
        extractor: Optional[PdfTextExtractor] = None,
        config: Settings = settings,
    ):
        self.store = store
        self.extractor = extractor or get_pdf_extractor(config)
        self.config = config

    def read_document_content(self, document: UploadedDocument) -> str:
        try:
            with open(document.file_path, encoding="utf-8") as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise DocumentReadError(f"Cannot read {document.file_name}: {e}") from e

    def process_document(
        self,
        document: UploadedDocument,
        content: Optional[str] = None,
        today: Optional[date] = None,
    ) -> DocumentProcessingResult:
        """
        Validate, extract and persist one uploaded document.

        Flow:
        1. Read CSV content from disk unless it was passed in
        2. Validate the document (PDFs go through the configured extractor)
        3. Extract a statement from the CSV rows or the PDF fields
        4. Persist the statement (add or replace by id)

        Validation and read problems come back as a failed result. Store write
        failures propagate as StorageError.
        """
        today = today or date.today()
        file_type = (document.file_type or "").lower()
        log_context = {"document_id": document.id, "debt_id": document.debt_id, "file_type": file_type}

        # 1. Load content
        if file_type == DocumentType.CSV.value and content is None:
            try:
                content = self.read_document_content(document)
            except DocumentReadError as e:
                logging.warning(f"Document read failed: {e}", extra={**log_context, "step": "read"})
                return DocumentProcessingResult(
                    success=False,
                    document=ProcessedDocument(document=document, processing_error=f"Processing failed: {e}"),
                    error=f"Document processing failed: {e}",
                )

        # 2. Validate
        validation = validate_document(
            document,
            content,
            extractor=self.extractor,
            max_pdf_size_bytes=self.config.max_pdf_size_bytes,
            today=today,
        )
        record_validation(document.file_type, validation.is_valid)
        processed = ProcessedDocument(document=document, validation_result=validation)

        if not validation.is_valid:
            logging.info(
                "Document rejected",
                extra={**log_context, "step": "validate", "outcome": "invalid", "errors": validation.errors},
            )
            processed.processing_error = "Document validation failed"
            return DocumentProcessingResult(
                success=False,
                document=processed,
                error=f"Validation failed: {', '.join(validation.errors)}",
            )

        # 3. Extract
        if file_type == DocumentType.CSV.value:
            statement = self.extract_statement_from_csv(document, content or "", today)
        else:
            statement = self.extract_statement_from_pdf(document, validation, today)

        # 4. Persist
        self.store.add_statement(statement)

        processed.document = replace(document, processed=True)
        processed.extracted_data = statement
        record_statement_ingested(file_type, validation.requires_manual_entry)
        logging.info(
            "Statement ingested",
            extra={
                **log_context,
                "step": "ingest",
                "statement_id": statement.id,
                "transactions": statement.transaction_count,
                "manual_entry": validation.requires_manual_entry,
            },
        )

        return DocumentProcessingResult(success=True, document=processed, statement=statement)

    def extract_statement_from_csv(
        self, document: UploadedDocument, content: str, today: Optional[date] = None
    ) -> Statement:
        today = today or date.today()
        parsed = parse_csv_statement(content)

        for diagnostic in parsed.diagnostics:
            logging.debug(f"Skipping CSV row: {diagnostic}", extra={"document_id": document.id, "step": "csv_extract"})
        if parsed.invalid_rows:
            csv_rows_skipped_counter.inc(parsed.invalid_rows)

        return Statement(
            id=statement_id_for(document),
            debt_id=document.debt_id or UNLINKED_DEBT_ID,
            statement_date=today,
            balance=parsed.balance,
            minimum_payment=ZERO,
            due_date=days_from(today, self.config.statement_due_days),
            interest_charged=ZERO,
            purchases=parsed.purchases,
            payments=parsed.payments,
            imported=datetime.now(timezone.utc),
            file_name=document.file_name,
        )

    def extract_statement_from_pdf(
        self,
        document: UploadedDocument,
        validation: ValidationResult,
        today: Optional[date] = None,
    ) -> Statement:
        """
        Statement from the fields found during validation.

        A manual-entry PDF produces an empty placeholder with a zero balance
        for the user to complete.
        """
        today = today or date.today()
        data = validation.extracted_data or ExtractedStatementData()
        manual_entry = validation.requires_manual_entry
        statement_date = data.statement_date or today

        return Statement(
            id=statement_id_for(document),
            debt_id=document.debt_id or UNLINKED_DEBT_ID,
            statement_date=statement_date,
            balance=ZERO if manual_entry else calculate_current_balance(data),
            minimum_payment=data.minimum_payment or ZERO,
            due_date=data.due_date or days_from(today, self.config.statement_due_days),
            interest_charged=data.interest or ZERO,
            purchases=[] if manual_entry else _pdf_purchases(data, statement_date),
            payments=[] if manual_entry else _pdf_payments(data, statement_date),
            imported=datetime.now(timezone.utc),
            file_name=document.file_name,
            credit_limit=data.credit_limit,
            available_credit=data.available_credit,
            interest_rate=data.interest_rate,
            has_extracted_data=not manual_entry and data.has_balance_data(),
        )


def _pdf_purchases(data: ExtractedStatementData, on: date) -> List[StatementTransaction]:
    # Statement totals, not itemised lines
    purchases: List[StatementTransaction] = []
    if data.purchases and data.purchases > 0:
        purchases.append(StatementTransaction(date=on, amount=data.purchases, description="Purchases", category="general"))
    if data.interest and data.interest > 0:
        purchases.append(
            StatementTransaction(date=on, amount=data.interest, description="Interest Charged", category="fees")
        )
    return purchases


def _pdf_payments(data: ExtractedStatementData, on: date) -> List[StatementPayment]:
    if data.payments and data.payments > 0:
        return [StatementPayment(date=on, amount=data.payments, description="Payment")]
    return []

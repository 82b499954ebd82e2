"""Document validation - gatekeeps uploads before parsing and guesses the account category"""

import logging
from datetime import date
from typing import Optional

from debt_snowball.domain.csv_parsing import (
    ACCEPTED_HEADER_SETS,
    parse_csv_row,
    parse_csv_statement,
    resolve_layout,
    split_lines,
)
from debt_snowball.domain.models import DocumentCategory, DocumentType, UploadedDocument, ValidationResult
from debt_snowball.domain.pdf_parsing import (
    NO_DATA_MESSAGE,
    ManualEntryExtractor,
    PdfTextExtractor,
    parse_credit_card_statement,
    validate_statement_data,
)

MAX_PDF_SIZE_BYTES = 10 * 1024 * 1024
MANUAL_ENTRY_WARNING = "PDF text extraction is not available - manual entry required"

CREDIT_CARD_INDICATORS = (
    "credit card",
    "card ending",
    "payment due",
    "minimum payment",
    "statement balance",
    "available credit",
)

LINE_OF_CREDIT_INDICATORS = (
    "line of credit",
    "credit line",
    "revolving credit",
    "available balance",
    "credit limit",
)


def detect_document_category(text: str) -> DocumentCategory:
    """
    Keyword-score text against credit card and line of credit indicators.

    The higher hit count wins, ties go to credit card, no hits is unknown.
    """
    lowered = text.lower()
    credit_card_score = sum(1 for indicator in CREDIT_CARD_INDICATORS if indicator in lowered)
    line_of_credit_score = sum(1 for indicator in LINE_OF_CREDIT_INDICATORS if indicator in lowered)

    if credit_card_score == 0 and line_of_credit_score == 0:
        return DocumentCategory.UNKNOWN
    if credit_card_score >= line_of_credit_score:
        return DocumentCategory.CREDIT_CARD
    return DocumentCategory.LINE_OF_CREDIT


def _expected_headers_message() -> str:
    expected = " OR ".join(", ".join(header_set) for header_set in ACCEPTED_HEADER_SETS)
    return f"CSV headers not recognized. Expected one of: {expected}"


def _validate_csv(content: str, result: ValidationResult) -> ValidationResult:
    if not content.strip():
        result.errors.append("CSV file is empty")
        return result

    lines = split_lines(content)
    if len(lines) < 2:
        result.errors.append("CSV file must contain at least a header row and one data row")
        return result

    if resolve_layout(parse_csv_row(lines[0])) is None:
        result.errors.append(_expected_headers_message())
        return result

    parsed = parse_csv_statement(content)
    for diagnostic in parsed.diagnostics:
        logging.debug(f"Skipping CSV row: {diagnostic}", extra={"step": "csv_validate"})

    if parsed.valid_rows == 0:
        result.errors.append("No valid data rows found")
    elif parsed.invalid_rows > 0:
        result.warnings.append(f"{parsed.invalid_rows} rows contain errors and will be skipped")

    result.detected_type = detect_document_category(content)
    result.is_valid = not result.errors

    if result.is_valid:
        result.warnings.append(f"Successfully parsed {parsed.valid_rows} transactions")

    return result


def _validate_pdf(
    document: UploadedDocument,
    result: ValidationResult,
    extractor: Optional[PdfTextExtractor],
    max_pdf_size_bytes: int,
    today: Optional[date] = None,
) -> ValidationResult:
    if document.file_size == 0:
        result.errors.append("PDF file appears to be empty")
        return result

    if document.file_size > max_pdf_size_bytes:
        result.errors.append(f"PDF file is too large (max {max_pdf_size_bytes // (1024 * 1024)}MB)")
        return result

    if not document.file_path:
        result.errors.append("PDF file path is missing")
        return result

    pdf_text = (extractor or ManualEntryExtractor()).extract_text(document.file_path)

    if pdf_text.requires_manual_entry:
        result.requires_manual_entry = True
        result.is_valid = True
        result.warnings.append(MANUAL_ENTRY_WARNING)
        return result

    data = parse_credit_card_statement(pdf_text.text, today)
    result.extracted_data = data
    result.detected_type = detect_document_category(pdf_text.text)

    if not data.has_any():
        result.is_valid = True
        result.warnings.append(NO_DATA_MESSAGE)
        return result

    result.errors.extend(validate_statement_data(data))
    result.is_valid = not result.errors
    return result


def validate_document(
    document: Optional[UploadedDocument],
    content: Optional[str] = None,
    extractor: Optional[PdfTextExtractor] = None,
    max_pdf_size_bytes: int = MAX_PDF_SIZE_BYTES,
    today: Optional[date] = None,
) -> ValidationResult:
    """
    Decide whether an uploaded document can be parsed.

    Checks run in order and stop at the first structural failure. CSV
    documents are validated from `content`; PDF documents from their size,
    path and whatever the extractor returns (manual entry when omitted).
    """
    result = ValidationResult()

    if document is None:
        result.errors.append("No document provided")
        return result

    if not document.file_type:
        result.errors.append("Document file type is missing")
        return result

    file_type = document.file_type.lower()
    if file_type == DocumentType.CSV.value:
        return _validate_csv(content or "", result)
    if file_type == DocumentType.PDF.value:
        return _validate_pdf(document, result, extractor, max_pdf_size_bytes, today)

    result.errors.append("Unsupported file type")
    return result


def validation_summary(result: ValidationResult) -> str:
    """One-line rendering of a validation result"""
    parts = ["✅ Document is valid" if result.is_valid else "❌ Document has errors"]

    if result.detected_type and result.detected_type != DocumentCategory.UNKNOWN:
        parts.append(f"📄 Detected type: {result.detected_type.value.replace('_', ' ')}")

    if result.errors:
        parts.append(f"🚨 {len(result.errors)} error(s)")

    if result.warnings:
        parts.append(f"⚠️ {len(result.warnings)} warning(s)")

    return " • ".join(parts)

"""Unit tests for document validation and category detection"""

import pytest
from datetime import date, datetime, timezone
from debt_snowball.domain.models import DocumentCategory, PdfText, UploadedDocument
from debt_snowball.domain.pdf_parsing import NO_DATA_MESSAGE, ManualEntryExtractor
from debt_snowball.domain.validation import (
    MANUAL_ENTRY_WARNING,
    detect_document_category,
    validate_document,
    validation_summary,
)


class StaticTextExtractor:
    """Extractor returning fixed text, as a real PDF backend would"""

    def __init__(self, text: str):
        self.text = text

    def extract_text(self, file_path):
        return PdfText(text=self.text, pages=1, info={"requires_manual_entry": False})


def _document(file_type="csv", file_size=1024, file_path="/tmp/statement"):
    return UploadedDocument(
        id="doc_1",
        file_name=f"statement.{file_type}",
        file_path=file_path,
        file_type=file_type,
        file_size=file_size,
        upload_date=datetime(2024, 6, 15, tzinfo=timezone.utc),
    )


def test_missing_document():
    result = validate_document(None)

    assert not result.is_valid
    assert result.errors == ["No document provided"]


def test_missing_file_type():
    result = validate_document(_document(file_type=None), "Date,Amount,Description")

    assert not result.is_valid
    assert result.errors == ["Document file type is missing"]


def test_unsupported_file_type():
    result = validate_document(_document(file_type="xlsx"))

    assert not result.is_valid
    assert result.errors == ["Unsupported file type"]


def test_csv_valid_reports_transaction_count():
    content = "Date,Amount,Description\n2024-01-01,100.50,Grocery Store\n2024-01-02,-50.00,Payment"

    result = validate_document(_document(), content)

    assert result.is_valid
    assert result.errors == []
    assert "Successfully parsed 2 transactions" in result.warnings


def test_csv_file_type_is_case_insensitive():
    result = validate_document(_document(file_type="CSV"), "Date,Amount,Description\n2024-01-01,1.00,Shop")

    assert result.is_valid


@pytest.mark.parametrize("content", ["", "   \n  "])
def test_csv_empty(content):
    result = validate_document(_document(), content)

    assert not result.is_valid
    assert result.errors == ["CSV file is empty"]


def test_csv_header_only():
    result = validate_document(_document(), "Date,Amount,Description\n\n")

    assert not result.is_valid
    assert "must contain at least a header row and one data row" in result.errors[0]


def test_csv_unrecognized_headers():
    result = validate_document(_document(), "Name,Value,Notes\nfoo,1,bar")

    assert not result.is_valid
    assert "headers not recognized" in result.errors[0]


def test_csv_only_row_invalid():
    result = validate_document(_document(), "Date,Amount,Description\nnot-a-date,10.00,Coffee")

    assert not result.is_valid
    assert result.errors == ["No valid data rows found"]


def test_csv_some_rows_invalid_is_still_valid():
    content = (
        "Date,Amount,Description\n"
        "2024-01-01,10.00,Coffee\n"
        "bad-date,5.00,Snack\n"
        "2024-01-03,abc,Lunch\n"
        "2024-01-04,12.00,Dinner\n"
    )

    result = validate_document(_document(), content)

    assert result.is_valid
    assert "2 rows contain errors and will be skipped" in result.warnings
    assert "Successfully parsed 2 transactions" in result.warnings


def test_pdf_empty():
    result = validate_document(_document(file_type="pdf", file_size=0))

    assert result.errors == ["PDF file appears to be empty"]


def test_pdf_too_large():
    result = validate_document(_document(file_type="pdf", file_size=10 * 1024 * 1024 + 1))

    assert result.errors == ["PDF file is too large (max 10MB)"]


def test_pdf_exactly_max_size_is_accepted():
    result = validate_document(_document(file_type="pdf", file_size=10 * 1024 * 1024))

    assert result.is_valid


def test_pdf_missing_path():
    result = validate_document(_document(file_type="pdf", file_path=""))

    assert result.errors == ["PDF file path is missing"]


def test_pdf_manual_entry_is_valid_with_warning():
    result = validate_document(_document(file_type="pdf"))

    assert result.is_valid
    assert result.requires_manual_entry
    assert result.warnings == [MANUAL_ENTRY_WARNING]
    assert "manual entry required" in result.warnings[0]


def test_pdf_default_extractor_matches_manual_entry_extractor():
    default = validate_document(_document(file_type="pdf"))
    explicit = validate_document(_document(file_type="pdf"), extractor=ManualEntryExtractor())

    assert default == explicit
    assert ManualEntryExtractor().extract_text("/tmp/statement").requires_manual_entry


def test_pdf_text_without_statement_fields_warns():
    result = validate_document(_document(file_type="pdf"), extractor=StaticTextExtractor("Hello world"))

    assert result.is_valid
    assert not result.requires_manual_entry
    assert result.warnings == [NO_DATA_MESSAGE]


def test_pdf_text_with_bad_values_is_invalid():
    text = "Credit Limit: $1,000.00\nAvailable Credit: $1,500.00"

    result = validate_document(_document(file_type="pdf"), extractor=StaticTextExtractor(text))

    assert not result.is_valid
    assert "Available credit cannot exceed credit limit" in result.errors


def test_pdf_text_with_statement_fields():
    text = "Credit Card Statement\nPrevious Balance: $900.00\nMinimum Payment Due: $25.00"

    result = validate_document(
        _document(file_type="pdf"), extractor=StaticTextExtractor(text), today=date(2024, 6, 15)
    )

    assert result.is_valid
    assert result.detected_type == DocumentCategory.CREDIT_CARD
    assert result.extracted_data.previous_balance is not None


@pytest.mark.parametrize(
    "text,expected",
    [
        ("Your credit card statement. Minimum payment: $25", DocumentCategory.CREDIT_CARD),
        ("Revolving credit account - line of credit summary", DocumentCategory.LINE_OF_CREDIT),
        ("Available credit and credit limit", DocumentCategory.CREDIT_CARD),  # tie
        ("Grocery receipt", DocumentCategory.UNKNOWN),
    ],
)
def test_detect_document_category(text, expected):
    assert detect_document_category(text) == expected


def test_validation_summary():
    content = "Date,Amount,Description\n2024-01-01,10.00,Coffee\nbad,1.00,Tea"
    result = validate_document(_document(), content)

    summary = validation_summary(result)

    assert summary.startswith("✅ Document is valid")
    assert "⚠️ 2 warning(s)" in summary
    assert "error(s)" not in summary


def test_validation_summary_invalid():
    summary = validation_summary(validate_document(None))

    assert summary == "❌ Document has errors • 🚨 1 error(s)"

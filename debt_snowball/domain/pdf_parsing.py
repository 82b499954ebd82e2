"""Credit card statement field extraction from PDF text"""

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional, Pattern, Protocol, Sequence

from debt_snowball.domain.models import ExtractedStatementData, PdfText
from debt_snowball.utils.date_utils import is_reasonable_statement_date

MANUAL_ENTRY_PREFIX = "PDF_REQUIRES_MANUAL_ENTRY:"
DEFAULT_PDF_NAME = "statement.pdf"
NO_DATA_MESSAGE = "No recognizable credit card statement data found in PDF"
MAX_REASONABLE_RATE = Decimal("50")

_AMOUNT = r"\$?([\d,]+\.?\d*)"
_DATE = r"(\d{1,2}[/\-]\d{1,2}[/\-]\d{2,4})"


class PdfTextExtractor(Protocol):
    """Anything that turns a PDF path into text or the manual-entry sentinel"""

    def extract_text(self, file_path: Optional[str]) -> PdfText: ...


def _compile(*patterns: str) -> List[Pattern[str]]:
    return [re.compile(p, re.IGNORECASE) for p in patterns]


# Ordered per field, first match wins
AMOUNT_PATTERNS: Dict[str, List[Pattern[str]]] = {
    "previous_balance": _compile(
        rf"PREVIOUS\s+(?:STATEMENT\s+)?BALANCE[:\s]+{_AMOUNT}",
        rf"BEGINNING\s+BALANCE[:\s]+{_AMOUNT}",
        rf"OPENING\s+BALANCE[:\s]+{_AMOUNT}",
    ),
    "interest": _compile(
        rf"INTEREST\s+CHARGED?[:\s]+{_AMOUNT}",
        rf"FINANCE\s+CHARGE[:\s]+{_AMOUNT}",
        rf"INTEREST\s+FEES?[:\s]+{_AMOUNT}",
    ),
    "payments": _compile(
        rf"PAYMENTS?(?:\s+AND\s+OTHER\s+CREDITS?)?[:\s]+{_AMOUNT}",
        rf"PAYMENT\s+RECEIVED[:\s]+{_AMOUNT}",
        rf"CREDITS?[:\s]+{_AMOUNT}",
    ),
    "purchases": _compile(
        rf"PURCHASES?(?:\s+AND\s+ADJUSTMENTS?)?[:\s]+{_AMOUNT}",
        rf"NEW\s+PURCHASES?[:\s]+{_AMOUNT}",
        rf"TRANSACTIONS?[:\s]+{_AMOUNT}",
    ),
    "minimum_payment": _compile(
        rf"MINIMUM\s+PAYMENT\s+DUE[:\s]+{_AMOUNT}",
        rf"MINIMUM\s+PAYMENT[:\s]+{_AMOUNT}",
        rf"MINIMUM\s+DUE[:\s]+{_AMOUNT}",
        rf"PAYMENT\s+DUE[:\s]+{_AMOUNT}",
    ),
    "credit_limit": _compile(
        rf"CREDIT\s+LINE[:\s]+{_AMOUNT}",
        rf"CREDIT\s+LIMIT[:\s]+{_AMOUNT}",
        rf"TOTAL\s+CREDIT\s+LINE[:\s]+{_AMOUNT}",
    ),
    "available_credit": _compile(
        rf"AVAILABLE\s+CREDIT[:\s]+{_AMOUNT}",
        rf"CREDIT\s+AVAILABLE[:\s]+{_AMOUNT}",
    ),
}

RATE_PATTERNS = _compile(
    r"ANNUAL\s+PERCENTAGE\s+RATE\s+FOR\s+PURCHASES[:\s]+([\d.]+)%",
    r"PURCHASE\s+APR[:\s]+([\d.]+)%",
    r"ANNUAL\s+PERCENTAGE\s+RATE[:\s]+([\d.]+)%",
    r"INTEREST\s+RATE[:\s]+([\d.]+)%",
    r"APR[:\s]+([\d.]+)%",
)

DATE_PATTERNS: Dict[str, List[Pattern[str]]] = {
    "statement_date": _compile(
        rf"STATEMENT\s+DATE[:\s]+{_DATE}",
        rf"CLOSING\s+DATE[:\s]+{_DATE}",
        rf"CYCLE\s+ENDING[:\s]+{_DATE}",
    ),
    "due_date": _compile(
        rf"DUE\s+DATE[:\s]+{_DATE}",
        rf"PAYMENT\s+DUE\s+DATE[:\s]+{_DATE}",
        rf"PAYMENT\s+DUE[:\s]+{_DATE}",
    ),
}


def file_name_from_path(file_path: Optional[str]) -> str:
    """Last path component, accepting both slash styles"""
    if not file_path:
        return DEFAULT_PDF_NAME
    return re.split(r"[/\\]", file_path)[-1] or DEFAULT_PDF_NAME


def manual_entry_placeholder(file_path: Optional[str]) -> PdfText:
    """Sentinel returned when no text can be pulled out of a PDF"""
    file_name = file_name_from_path(file_path)
    return PdfText(
        text=f"{MANUAL_ENTRY_PREFIX}{file_name}",
        pages=1,
        info={"filename": file_name, "requires_manual_entry": True},
    )


class ManualEntryExtractor:
    """Never reads the file; every PDF is routed to manual entry"""

    def extract_text(self, file_path: Optional[str]) -> PdfText:
        return manual_entry_placeholder(file_path)


def is_manual_entry_text(text: str) -> bool:
    return text.startswith(MANUAL_ENTRY_PREFIX)


def _decimal(raw: str) -> Optional[Decimal]:
    try:
        value = Decimal(raw.replace(",", ""))
    except InvalidOperation:
        return None
    return value if value.is_finite() else None


def extract_amount(text: str, patterns: Sequence[Pattern[str]]) -> Optional[Decimal]:
    for pattern in patterns:
        match = pattern.search(text)
        if match and match.group(1):
            amount = _decimal(match.group(1))
            if amount is not None:
                return amount
    return None


def parse_statement_date(raw: str) -> Optional[date]:
    """MM/DD/YYYY, MM-DD-YYYY and two-digit-year variants"""
    normalized = raw.strip().replace("-", "/")
    for fmt in ("%m/%d/%Y", "%m/%d/%y"):
        try:
            return datetime.strptime(normalized, fmt).date()
        except ValueError:
            continue
    return None


def extract_date(
    text: str, patterns: Sequence[Pattern[str]], today: Optional[date] = None
) -> Optional[date]:
    """First matching date that also falls inside the statement sanity window"""
    for pattern in patterns:
        match = pattern.search(text)
        if match and match.group(1):
            value = parse_statement_date(match.group(1))
            if value is not None and is_reasonable_statement_date(value, today):
                return value
    return None


def parse_credit_card_statement(text: str, today: Optional[date] = None) -> ExtractedStatementData:
    """
    Locate labelled statement fields in free text.

    The manual-entry sentinel yields an empty record. Numeric fields drop
    currency symbols and thousands separators; dates outside five years back
    to one year ahead are left unset.
    """
    data = ExtractedStatementData()
    if is_manual_entry_text(text):
        return data

    normalized = re.sub(r"\s+", " ", text).upper()

    for field_name, patterns in AMOUNT_PATTERNS.items():
        setattr(data, field_name, extract_amount(normalized, patterns))

    data.interest_rate = extract_amount(normalized, RATE_PATTERNS)

    for field_name, patterns in DATE_PATTERNS.items():
        setattr(data, field_name, extract_date(normalized, patterns, today))

    return data


def validate_statement_data(data: ExtractedStatementData) -> List[str]:
    """Value-sanity errors for fields that were found"""
    errors: List[str] = []

    for field_name in (
        "previous_balance",
        "interest",
        "payments",
        "purchases",
        "minimum_payment",
        "credit_limit",
        "available_credit",
    ):
        value = getattr(data, field_name)
        if value is not None and value < 0:
            errors.append(f"Invalid {field_name}: {value}")

    if data.interest_rate is not None and not 0 <= data.interest_rate <= MAX_REASONABLE_RATE:
        errors.append(f"Interest rate seems unrealistic: {data.interest_rate}%")

    if data.credit_limit is not None and data.available_credit is not None:
        if data.available_credit > data.credit_limit:
            errors.append("Available credit cannot exceed credit limit")

    return errors


def calculate_current_balance(data: ExtractedStatementData) -> Decimal:
    """previous + purchases + interest - payments, missing fields counted as zero"""
    zero = Decimal("0")
    return (
        (data.previous_balance or zero)
        + (data.purchases or zero)
        + (data.interest or zero)
        - (data.payments or zero)
    )


def statement_data_summary(data: ExtractedStatementData) -> str:
    """Multi-line rendering of extracted fields for user review"""
    summary: List[str] = []

    if data.previous_balance is not None:
        summary.append(f"Previous Balance: ${data.previous_balance:.2f}")
    if data.purchases is not None:
        summary.append(f"Purchases: ${data.purchases:.2f}")
    if data.payments is not None:
        summary.append(f"Payments: ${data.payments:.2f}")
    if data.interest is not None:
        summary.append(f"Interest/Fees: ${data.interest:.2f}")
    if data.interest_rate is not None:
        summary.append(f"Interest Rate: {data.interest_rate}%")
    if data.credit_limit is not None:
        summary.append(f"Credit Limit: ${data.credit_limit:.2f}")
    if data.minimum_payment is not None:
        summary.append(f"Minimum Payment: ${data.minimum_payment:.2f}")
    if data.due_date is not None:
        summary.append(f"Due Date: {data.due_date.isoformat()}")

    return "\n".join(summary) if summary else "No statement data extracted"

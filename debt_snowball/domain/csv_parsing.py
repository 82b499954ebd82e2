"""CSV transaction export parsing - header detection, cell parsing and row classification"""

import csv
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Sequence, Tuple, Union

from debt_snowball.domain.models import StatementPayment, StatementTransaction

# Accepted header shapes; a header row matches when every name is found by substring
ACCEPTED_HEADER_SETS: Tuple[Tuple[str, ...], ...] = (
    ("date", "amount", "description"),
    ("transaction_date", "transaction_amount", "description"),
    ("posted_date", "amount", "merchant"),
    ("date", "debit", "credit", "description"),
)

# Ordered candidates for locating a semantic column
DATE_COLUMNS = ("date", "transaction_date", "posted_date")
AMOUNT_COLUMNS = ("amount", "transaction_amount")
DESCRIPTION_COLUMNS = ("description", "merchant", "payee")

# Keyword rules applied to purchase descriptions, first match wins
CATEGORY_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("Food & Dining", ("grocery", "food", "restaurant")),
    ("Transportation", ("gas", "fuel", "auto")),
    ("Shopping", ("store", "retail", "shop")),
    ("Payment", ("payment", "transfer")),
)
DEFAULT_CATEGORY = "Other"

DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%m-%d-%Y",
    "%m/%d/%y",
    "%m-%d-%y",
    "%b %d, %Y",
    "%b %d %Y",
    "%B %d, %Y",
    "%d %b %Y",
)

_CURRENCY_NOISE = re.compile(r"[$,\s]")

StatementEntry = Union[StatementTransaction, StatementPayment]


def split_lines(content: str) -> List[str]:
    """Non-blank lines of the document, line endings removed"""
    return [line for line in content.splitlines() if line.strip()]


def parse_csv_row(line: str) -> List[str]:
    """Split one comma-delimited line, honouring quoted commas and doubled quotes"""
    return next(csv.reader([line]), [])


def normalize_header(header: str) -> str:
    return re.sub(r"\s+", "_", header.strip().lower())


def find_header_set(headers: Sequence[str]) -> Optional[Tuple[str, ...]]:
    """Return the first accepted header shape fully present in the header row"""
    normalized = [normalize_header(h) for h in headers if h.strip()]
    for header_set in ACCEPTED_HEADER_SETS:
        if all(any(required in header for header in normalized) for required in header_set):
            return header_set
    return None


def find_column(headers: Sequence[str], candidates: Sequence[str]) -> Optional[int]:
    """Index of the first header containing a candidate, trying candidates in order"""
    normalized = [normalize_header(h) for h in headers]
    for candidate in candidates:
        for index, header in enumerate(normalized):
            if header and candidate in header:
                return index
    return None


def parse_amount(raw: Optional[str]) -> Optional[Decimal]:
    """Parse a currency cell such as "$1,234.50"; None when unparsable"""
    if raw is None:
        return None
    cleaned = _CURRENCY_NOISE.sub("", raw)
    if not cleaned:
        return None
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return None
    return amount if amount.is_finite() else None


def parse_date(raw: Optional[str]) -> Optional[date]:
    """Parse a calendar date in any of the supported layouts; None when unparsable"""
    if raw is None:
        return None
    value = raw.strip()
    if not value:
        return None
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(value).date()
    except ValueError:
        return None


def categorize_transaction(description: str) -> str:
    desc = description.lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in desc for keyword in keywords):
            return category
    return DEFAULT_CATEGORY


@dataclass
class CsvLayout:
    """Column positions resolved from a recognised header row"""

    header_set: Tuple[str, ...]
    column_count: int
    date_index: Optional[int]
    description_index: Optional[int]
    amount_index: Optional[int] = None
    debit_index: Optional[int] = None
    credit_index: Optional[int] = None

    @property
    def split_amounts(self) -> bool:
        return "debit" in self.header_set


def resolve_layout(headers: Sequence[str]) -> Optional[CsvLayout]:
    header_set = find_header_set(headers)
    if header_set is None:
        return None

    layout = CsvLayout(
        header_set=header_set,
        column_count=len(headers),
        date_index=find_column(headers, DATE_COLUMNS),
        description_index=find_column(headers, DESCRIPTION_COLUMNS),
    )
    if layout.split_amounts:
        layout.debit_index = find_column(headers, ("debit",))
        layout.credit_index = find_column(headers, ("credit",))
    else:
        layout.amount_index = find_column(headers, AMOUNT_COLUMNS)
    return layout


def _cell(values: Sequence[str], index: Optional[int]) -> Optional[str]:
    if index is None:
        return None
    return values[index].strip()


def _signed_amount(values: Sequence[str], layout: CsvLayout) -> Tuple[Optional[Decimal], Optional[str]]:
    """Amount with payments negative, or an error message"""
    if not layout.split_amounts:
        raw = _cell(values, layout.amount_index)
        amount = parse_amount(raw)
        if amount is None:
            return None, f"invalid amount '{raw}'"
        return amount, None

    raw_debit = _cell(values, layout.debit_index) or ""
    raw_credit = _cell(values, layout.credit_index) or ""
    debit = parse_amount(raw_debit)
    credit = parse_amount(raw_credit)
    if (raw_debit and debit is None) or (raw_credit and credit is None):
        return None, f"invalid debit/credit '{raw_debit}'/'{raw_credit}'"
    if debit is None and credit is None:
        return None, "missing debit and credit amounts"
    if credit is not None and credit > 0:
        return -credit, None
    return abs(debit if debit is not None else Decimal("0")), None


def parse_transaction_row(
    values: Sequence[str], layout: CsvLayout
) -> Tuple[Optional[StatementEntry], Optional[str]]:
    """
    Classify one data row as a purchase or a payment.

    Returns (entry, None) on success and (None, reason) when the row has to be
    dropped. Negative signed amounts and positive credits become payments.
    """
    if len(values) != layout.column_count:
        return None, f"expected {layout.column_count} columns, found {len(values)}"

    raw_date = _cell(values, layout.date_index)
    txn_date = parse_date(raw_date)
    if txn_date is None:
        return None, f"invalid date '{raw_date}'"

    amount, error = _signed_amount(values, layout)
    if amount is None:
        return None, error

    description = _cell(values, layout.description_index) or ""
    if amount < 0:
        return StatementPayment(date=txn_date, amount=abs(amount), description=description), None

    return (
        StatementTransaction(
            date=txn_date,
            amount=amount,
            description=description,
            category=categorize_transaction(description),
        ),
        None,
    )


@dataclass
class ParsedCsv:
    """Transactions recovered from a CSV export plus per-row diagnostics"""

    layout: Optional[CsvLayout]
    purchases: List[StatementTransaction] = field(default_factory=list)
    payments: List[StatementPayment] = field(default_factory=list)
    diagnostics: List[str] = field(default_factory=list)
    data_rows: int = 0

    @property
    def valid_rows(self) -> int:
        return len(self.purchases) + len(self.payments)

    @property
    def invalid_rows(self) -> int:
        return self.data_rows - self.valid_rows

    @property
    def balance(self) -> Decimal:
        # Purchases only; payments are tracked separately and not netted out
        return sum((p.amount for p in self.purchases), Decimal("0"))


def parse_csv_statement(content: str) -> ParsedCsv:
    """
    Parse a CSV transaction export.

    The first non-blank line is the header row. Rows with an unparsable date
    or amount, or the wrong number of columns, are skipped and reported in
    `diagnostics` without failing the file.
    """
    lines = split_lines(content)
    if not lines:
        return ParsedCsv(layout=None, diagnostics=["CSV file is empty"])

    rows = list(csv.reader(lines))
    layout = resolve_layout(rows[0])
    if layout is None:
        return ParsedCsv(layout=None, diagnostics=["CSV headers not recognized"])

    parsed = ParsedCsv(layout=layout, data_rows=len(rows) - 1)
    for row_number, values in enumerate(rows[1:], start=1):
        entry, error = parse_transaction_row(values, layout)
        if entry is None:
            parsed.diagnostics.append(f"Row {row_number}: {error}")
        elif isinstance(entry, StatementPayment):
            parsed.payments.append(entry)
        else:
            parsed.purchases.append(entry)

    return parsed

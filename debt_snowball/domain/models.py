"""Domain models - pure Python dataclasses representing debts, statements and payoff plans"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from debt_snowball.domain.exceptions import InvalidDebtError

# Owning debt id of a statement that has not been linked yet
UNLINKED_DEBT_ID = "unknown"


class DebtType(str, Enum):
    CREDIT_CARD = "credit_card"
    AUTO_LOAN = "auto_loan"
    PERSONAL_LOAN = "personal_loan"
    LINE_OF_CREDIT = "line_of_credit"
    STUDENT_LOAN = "student_loan"
    MORTGAGE = "mortgage"
    OTHER = "other"


class DocumentType(str, Enum):
    CSV = "csv"
    PDF = "pdf"


class DocumentCategory(str, Enum):
    """Best-effort guess of what kind of account a document belongs to"""

    CREDIT_CARD = "credit_card"
    LINE_OF_CREDIT = "line_of_credit"
    LOAN = "loan"
    UNKNOWN = "unknown"


class StrategyType(str, Enum):
    SNOWBALL = "snowball"  # Smallest balance first
    AVALANCHE = "avalanche"  # Highest interest first
    CUSTOM = "custom"


class PaymentStrategy(str, Enum):
    """Strategy choice stored in app settings"""

    SNOWBALL = "SNOWBALL"
    AVALANCHE = "AVALANCHE"


def check_debt_invariants(
    balance: Decimal,
    minimum_payment: Decimal,
    interest_rate: Decimal,
    due_day: Optional[int] = None,
) -> None:
    """Raise InvalidDebtError when a debt's numeric fields are out of range"""
    if balance < 0:
        raise InvalidDebtError(f"Balance cannot be negative: {balance}")
    if minimum_payment < 0:
        raise InvalidDebtError(f"Minimum payment cannot be negative: {minimum_payment}")
    if interest_rate < 0 or interest_rate > 100:
        raise InvalidDebtError(f"Interest rate must be between 0 and 100: {interest_rate}")
    if due_day is not None and not 1 <= due_day <= 31:
        raise InvalidDebtError(f"Due day must be between 1 and 31: {due_day}")


@dataclass
class Debt:
    """A liability account tracked by the user"""

    id: str
    name: str
    type: DebtType
    balance: Decimal
    minimum_payment: Decimal
    interest_rate: Decimal  # Annual percentage rate
    last_updated: datetime
    institution: Optional[str] = None
    account_number: Optional[str] = None  # Masked, e.g. last four digits
    due_day: Optional[int] = None  # Day of month

    def __post_init__(self) -> None:
        check_debt_invariants(self.balance, self.minimum_payment, self.interest_rate, self.due_day)


@dataclass
class DebtParams:
    """Creation parameters for a debt whose id is generated by the store"""

    name: str
    type: DebtType
    balance: Decimal
    minimum_payment: Decimal
    interest_rate: Decimal
    institution: Optional[str] = None
    account_number: Optional[str] = None
    due_day: Optional[int] = None


@dataclass
class FullDebtRecord:
    """A complete debt supplied by the caller, id included"""

    debt: Debt


NewDebtRequest = Union[DebtParams, FullDebtRecord]


@dataclass
class DebtUpdate:
    """Partial update: fields left as None keep their stored value"""

    id: str
    name: Optional[str] = None
    type: Optional[DebtType] = None
    balance: Optional[Decimal] = None
    minimum_payment: Optional[Decimal] = None
    interest_rate: Optional[Decimal] = None
    institution: Optional[str] = None
    account_number: Optional[str] = None
    due_day: Optional[int] = None


@dataclass
class StatementTransaction:
    """Purchase line on a statement"""

    date: date
    amount: Decimal
    description: str
    category: Optional[str] = None


@dataclass
class StatementPayment:
    """Payment line on a statement"""

    date: date
    amount: Decimal
    description: str


@dataclass
class Statement:
    """Reconciled snapshot derived from one uploaded document"""

    id: str
    debt_id: str
    statement_date: date
    balance: Decimal
    minimum_payment: Decimal
    due_date: date
    interest_charged: Decimal
    purchases: List[StatementTransaction]
    payments: List[StatementPayment]
    imported: datetime
    file_name: Optional[str] = None
    credit_limit: Optional[Decimal] = None
    available_credit: Optional[Decimal] = None
    interest_rate: Optional[Decimal] = None
    has_extracted_data: bool = True

    @property
    def transaction_count(self) -> int:
        return len(self.purchases) + len(self.payments)


@dataclass
class ExtractedStatementData:
    """Labelled fields located in statement text; unset fields were not found"""

    previous_balance: Optional[Decimal] = None
    interest: Optional[Decimal] = None
    payments: Optional[Decimal] = None
    purchases: Optional[Decimal] = None
    interest_rate: Optional[Decimal] = None
    statement_date: Optional[date] = None
    due_date: Optional[date] = None
    minimum_payment: Optional[Decimal] = None
    credit_limit: Optional[Decimal] = None
    available_credit: Optional[Decimal] = None

    def has_any(self) -> bool:
        return any(value is not None for value in vars(self).values())

    def has_balance_data(self) -> bool:
        """True when any field that feeds a statement balance was found"""
        return any(
            value is not None
            for value in (
                self.previous_balance,
                self.purchases,
                self.payments,
                self.interest,
                self.minimum_payment,
            )
        )


@dataclass
class PdfText:
    """Raw text pulled from a PDF, or the manual-entry sentinel"""

    text: str
    pages: int
    info: Dict[str, Any] = field(default_factory=dict)

    @property
    def requires_manual_entry(self) -> bool:
        return bool(self.info.get("requires_manual_entry"))


@dataclass
class UploadedDocument:
    """Descriptor handed over by the upload collaborator"""

    id: str
    file_name: str
    file_path: str
    file_type: Optional[str]  # Declared type; only "csv" and "pdf" are supported
    file_size: int
    upload_date: datetime
    debt_id: Optional[str] = None
    processed: bool = False


@dataclass
class ValidationResult:
    """Outcome of gatekeeping a document before parsing"""

    is_valid: bool = False
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    detected_type: Optional[DocumentCategory] = None
    extracted_data: Optional[ExtractedStatementData] = None
    requires_manual_entry: bool = False


@dataclass
class ProcessedDocument:
    document: UploadedDocument
    validation_result: Optional[ValidationResult] = None
    extracted_data: Optional[Statement] = None
    processing_error: Optional[str] = None


@dataclass
class DocumentProcessingResult:
    success: bool
    document: Optional[ProcessedDocument] = None
    statement: Optional[Statement] = None
    error: Optional[str] = None


@dataclass
class StatementAnalysis:
    """Financial delta between a statement and the stored debt"""

    new_balance: Decimal
    balance_change: Decimal
    new_minimum_payment: Decimal
    payments_made: Decimal
    purchases_made: Decimal
    interest_charged: Decimal
    should_update_debt: bool


@dataclass
class ReconciliationResult:
    updated: bool
    statement: Optional[Statement] = None
    analysis: Optional[StatementAnalysis] = None
    error: Optional[str] = None
    requires_manual_entry: bool = False


@dataclass
class DebtMatch:
    """Candidate debt for an unlinked statement"""

    debt_id: str
    debt_name: str
    confidence: int
    reasons: List[str]


@dataclass
class BalancePoint:
    date: date
    balance: Decimal


@dataclass
class DebtTrends:
    balance_history: List[BalancePoint]
    average_monthly_payment: Decimal
    average_monthly_spending: Decimal
    payoff_projection: Optional[date] = None


@dataclass
class AmortizationEntry:
    """Single month in a debt's repayment schedule"""

    month: int
    payment_date: date
    payment: Decimal
    interest: Decimal
    principal: Decimal
    remaining_balance: Decimal


@dataclass
class DebtPayoffPlan:
    """Per-debt slice of a payoff strategy; None durations never pay off"""

    debt_id: str
    payoff_order: int
    monthly_payment: Decimal
    payoff_months: Optional[int]
    payoff_date: Optional[date]
    total_interest: Optional[Decimal]
    is_priority: bool
    schedule: List[AmortizationEntry] = field(default_factory=list)


@dataclass
class PayoffStrategy:
    id: str
    name: str
    type: StrategyType
    debts: List[DebtPayoffPlan]
    total_interest_saved: Decimal
    payoff_date: Optional[date]
    monthly_payment: Decimal


@dataclass
class ConsolidationOpportunity:
    id: str
    target_debts: List[str]
    new_loan_amount: Decimal
    new_interest_rate: Decimal
    new_monthly_payment: Decimal
    interest_savings: Decimal
    time_savings: int  # Months saved
    provider: Optional[str] = None
    estimated_fees: Optional[Decimal] = None


@dataclass
class AppSettings:
    """User preferences persisted alongside debts"""

    extra_payment: Decimal
    strategy: PaymentStrategy
    currency: str

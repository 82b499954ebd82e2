"""Pydantic schemas for the JSON export/import snapshot of the local store"""

import datetime as dt
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from debt_snowball.domain.models import (
    AppSettings,
    Debt,
    DebtType,
    PaymentStrategy,
    Statement,
    StatementPayment,
    StatementTransaction,
)

SNAPSHOT_VERSION = "2.0.0"


class DebtSchema(BaseModel):
    """Serialized debt"""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., min_length=1)
    name: str
    type: DebtType
    balance: Decimal = Field(..., ge=0)
    minimum_payment: Decimal = Field(..., ge=0)
    interest_rate: Decimal = Field(..., ge=0, le=100, description="Annual percentage rate")
    last_updated: dt.datetime
    institution: Optional[str] = None
    account_number: Optional[str] = None
    due_day: Optional[int] = Field(None, ge=1, le=31, description="Day of month")

    def to_domain(self) -> Debt:
        return Debt(**self.model_dump())


class TransactionSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date: dt.date
    amount: Decimal
    description: str
    category: Optional[str] = None


class PaymentSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date: dt.date
    amount: Decimal
    description: str


class StatementSchema(BaseModel):
    """Serialized statement with its purchase and payment lines"""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., min_length=1)
    debt_id: str
    statement_date: dt.date
    balance: Decimal
    minimum_payment: Decimal
    due_date: dt.date
    interest_charged: Decimal
    purchases: List[TransactionSchema] = []
    payments: List[PaymentSchema] = []
    imported: dt.datetime
    file_name: Optional[str] = None
    credit_limit: Optional[Decimal] = None
    available_credit: Optional[Decimal] = None
    interest_rate: Optional[Decimal] = None
    has_extracted_data: bool = True

    def to_domain(self) -> Statement:
        fields = self.model_dump(exclude={"purchases", "payments"})
        return Statement(
            **fields,
            purchases=[StatementTransaction(**p.model_dump()) for p in self.purchases],
            payments=[StatementPayment(**p.model_dump()) for p in self.payments],
        )


class SettingsSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    extra_payment: Decimal = Field(..., ge=0)
    strategy: PaymentStrategy
    currency: str = Field(..., min_length=1)

    def to_domain(self) -> AppSettings:
        return AppSettings(**self.model_dump())


class StoreSnapshot(BaseModel):
    """Whole-store export; dates are ISO-8601 strings on disk"""

    version: str = SNAPSHOT_VERSION
    debts: List[DebtSchema] = []
    statements: List[StatementSchema] = []
    settings: SettingsSchema

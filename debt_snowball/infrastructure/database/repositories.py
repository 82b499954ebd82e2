"""Data access layer mapping ORM records to domain dataclasses"""

from typing import List, Optional

from sqlalchemy import literal_column
from sqlalchemy.orm import Session

from debt_snowball.domain.models import (
    AppSettings,
    Debt,
    DebtType,
    PaymentStrategy,
    Statement,
    StatementPayment,
    StatementTransaction,
)
from debt_snowball.infrastructure.database.models import (
    AppSettingsRecord,
    DebtRecord,
    StatementEntryRecord,
    StatementRecord,
)

PURCHASE = "purchase"
PAYMENT = "payment"
SETTINGS_ROW_ID = 1

# SQLite keeps insertion order in rowid; upserts keep their original slot
INSERTION_ORDER = literal_column("rowid")


def debt_from_record(record: DebtRecord) -> Debt:
    return Debt(
        id=record.id,
        name=record.name,
        type=DebtType(record.type),
        balance=record.balance,
        minimum_payment=record.minimum_payment,
        interest_rate=record.interest_rate,
        last_updated=record.last_updated,
        institution=record.institution,
        account_number=record.account_number,
        due_day=record.due_day,
    )


def _copy_debt(debt: Debt, record: DebtRecord) -> DebtRecord:
    record.name = debt.name
    record.type = debt.type.value
    record.balance = debt.balance
    record.minimum_payment = debt.minimum_payment
    record.interest_rate = debt.interest_rate
    record.last_updated = debt.last_updated
    record.institution = debt.institution
    record.account_number = debt.account_number
    record.due_day = debt.due_day
    return record


def statement_from_record(record: StatementRecord) -> Statement:
    purchases = [
        StatementTransaction(date=e.date, amount=e.amount, description=e.description, category=e.category)
        for e in record.entries
        if e.kind == PURCHASE
    ]
    payments = [
        StatementPayment(date=e.date, amount=e.amount, description=e.description)
        for e in record.entries
        if e.kind == PAYMENT
    ]
    return Statement(
        id=record.id,
        debt_id=record.debt_id,
        statement_date=record.statement_date,
        balance=record.balance,
        minimum_payment=record.minimum_payment,
        due_date=record.due_date,
        interest_charged=record.interest_charged,
        purchases=purchases,
        payments=payments,
        imported=record.imported,
        file_name=record.file_name,
        credit_limit=record.credit_limit,
        available_credit=record.available_credit,
        interest_rate=record.interest_rate,
        has_extracted_data=record.has_extracted_data,
    )


def _statement_entries(statement: Statement) -> List[StatementEntryRecord]:
    entries = [
        StatementEntryRecord(
            kind=PURCHASE,
            position=i,
            date=p.date,
            amount=p.amount,
            description=p.description,
            category=p.category,
        )
        for i, p in enumerate(statement.purchases)
    ]
    offset = len(entries)
    entries.extend(
        StatementEntryRecord(
            kind=PAYMENT,
            position=offset + i,
            date=p.date,
            amount=p.amount,
            description=p.description,
        )
        for i, p in enumerate(statement.payments)
    )
    return entries


class DebtRepository:
    """Repository for debts"""

    def __init__(self, db: Session):
        self.db = db

    def list_all(self) -> List[Debt]:
        return [debt_from_record(r) for r in self.db.query(DebtRecord).order_by(INSERTION_ORDER).all()]

    def get(self, debt_id: str) -> Optional[Debt]:
        record = self.db.get(DebtRecord, debt_id)
        return debt_from_record(record) if record else None

    def save(self, debt: Debt) -> Debt:
        """Insert or overwrite a debt"""
        record = self.db.get(DebtRecord, debt.id) or DebtRecord(id=debt.id)
        self.db.add(_copy_debt(debt, record))
        self.db.flush()
        return debt

    def delete(self, debt_id: str) -> bool:
        record = self.db.get(DebtRecord, debt_id)
        if record is None:
            return False
        self.db.delete(record)
        self.db.flush()
        return True


class StatementRepository:
    """Repository for statements and their purchase/payment lines"""

    def __init__(self, db: Session):
        self.db = db

    def list_all(self, debt_id: Optional[str] = None) -> List[Statement]:
        query = self.db.query(StatementRecord)
        if debt_id:
            query = query.filter(StatementRecord.debt_id == debt_id)
        return [statement_from_record(r) for r in query.order_by(INSERTION_ORDER).all()]

    def get(self, statement_id: str) -> Optional[Statement]:
        record = self.db.get(StatementRecord, statement_id)
        return statement_from_record(record) if record else None

    def save(self, statement: Statement) -> Statement:
        """Add a statement, replacing any existing one with the same id"""
        record = self.db.get(StatementRecord, statement.id) or StatementRecord(id=statement.id)
        record.debt_id = statement.debt_id
        record.statement_date = statement.statement_date
        record.balance = statement.balance
        record.minimum_payment = statement.minimum_payment
        record.due_date = statement.due_date
        record.interest_charged = statement.interest_charged
        record.file_name = statement.file_name
        record.imported = statement.imported
        record.credit_limit = statement.credit_limit
        record.available_credit = statement.available_credit
        record.interest_rate = statement.interest_rate
        record.has_extracted_data = statement.has_extracted_data
        record.entries = _statement_entries(statement)
        self.db.add(record)
        self.db.flush()
        return statement

    def delete_for_debt(self, debt_id: str) -> int:
        """Delete every statement owned by a debt; returns how many were removed"""
        records = self.db.query(StatementRecord).filter(StatementRecord.debt_id == debt_id).all()
        for record in records:
            self.db.delete(record)
        self.db.flush()
        return len(records)


class SettingsRepository:
    """Repository for the single app settings row"""

    def __init__(self, db: Session):
        self.db = db

    def get(self) -> Optional[AppSettings]:
        record = self.db.get(AppSettingsRecord, SETTINGS_ROW_ID)
        if record is None:
            return None
        return AppSettings(
            extra_payment=record.extra_payment,
            strategy=PaymentStrategy(record.strategy),
            currency=record.currency,
        )

    def save(self, app_settings: AppSettings) -> AppSettings:
        record = self.db.get(AppSettingsRecord, SETTINGS_ROW_ID) or AppSettingsRecord(id=SETTINGS_ROW_ID)
        record.extra_payment = app_settings.extra_payment
        record.strategy = app_settings.strategy.value
        record.currency = app_settings.currency
        self.db.add(record)
        self.db.flush()
        return app_settings

"""SQLAlchemy ORM models for the local debt store"""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.types import TypeDecorator

Base = declarative_base()


class DecimalText(TypeDecorator):
    """Decimal stored as text so amounts and rates round-trip exactly"""

    impl = String(64)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else Decimal(value)


class UTCDateTime(TypeDecorator):
    """Timestamps stored as naive UTC and returned timezone-aware"""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).replace(tzinfo=None)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return value.replace(tzinfo=timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DebtRecord(Base):
    """Liability account"""

    __tablename__ = "debt"

    id = Column(Text, primary_key=True)
    name = Column(Text, nullable=False)
    type = Column(Text, nullable=False)
    balance = Column(DecimalText, nullable=False)
    minimum_payment = Column(DecimalText, nullable=False)
    interest_rate = Column(DecimalText, nullable=False)
    last_updated = Column(UTCDateTime, nullable=False, default=utcnow)
    institution = Column(Text, nullable=True)
    account_number = Column(Text, nullable=True)
    due_day = Column(Integer, nullable=True)


class StatementRecord(Base):
    """Imported statement; debt_id may be the unlinked placeholder so it is not a foreign key"""

    __tablename__ = "statement"

    id = Column(Text, primary_key=True)
    debt_id = Column(Text, nullable=False, index=True)
    statement_date = Column(Date, nullable=False)
    balance = Column(DecimalText, nullable=False)
    minimum_payment = Column(DecimalText, nullable=False)
    due_date = Column(Date, nullable=False)
    interest_charged = Column(DecimalText, nullable=False)
    file_name = Column(Text, nullable=True)
    imported = Column(UTCDateTime, nullable=False, default=utcnow)
    credit_limit = Column(DecimalText, nullable=True)
    available_credit = Column(DecimalText, nullable=True)
    interest_rate = Column(DecimalText, nullable=True)
    has_extracted_data = Column(Boolean, nullable=False, default=True)

    entries = relationship(
        "StatementEntryRecord",
        back_populates="statement",
        cascade="all, delete-orphan",
        order_by="StatementEntryRecord.position",
    )


class StatementEntryRecord(Base):
    """Purchase or payment line, kept in statement order"""

    __tablename__ = "statement_entry"

    id = Column(Integer, primary_key=True, autoincrement=True)
    statement_id = Column(Text, ForeignKey("statement.id", ondelete="CASCADE"), nullable=False)
    kind = Column(Text, nullable=False)  # "purchase" or "payment"
    position = Column(Integer, nullable=False)
    date = Column(Date, nullable=False)
    amount = Column(DecimalText, nullable=False)
    description = Column(Text, nullable=False, default="")
    category = Column(Text, nullable=True)

    statement = relationship("StatementRecord", back_populates="entries")


class AppSettingsRecord(Base):
    """Single-row user preferences"""

    __tablename__ = "app_settings"

    id = Column(Integer, primary_key=True, default=1)
    extra_payment = Column(DecimalText, nullable=False)
    strategy = Column(Text, nullable=False)
    currency = Column(Text, nullable=False)

"""Pytest fixtures for testing"""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import List

from debt_snowball.config import Settings
from debt_snowball.domain.models import Debt, DebtType, UploadedDocument
from debt_snowball.domain.pdf_parsing import ManualEntryExtractor
from debt_snowball.infrastructure.database.store import DebtStore, create_store
from debt_snowball.services.ingestion import DocumentIngestionService
from debt_snowball.services.reconciliation import StatementReconciler


TODAY = date(2024, 6, 15)

SAMPLE_CSV = (
    "Date,Amount,Description\n"
    "2024-01-01,100.50,Grocery Store\n"
    "2024-01-02,-50.00,Payment\n"
    "2024-01-03,25.75,Gas Station"
)


def make_debt(
    debt_id: str = "debt-1",
    name: str = "Visa",
    balance: str = "1000.00",
    minimum_payment: str = "50.00",
    interest_rate: str = "19.99",
    debt_type: DebtType = DebtType.CREDIT_CARD,
    institution: str = None,
) -> Debt:
    return Debt(
        id=debt_id,
        name=name,
        type=debt_type,
        balance=Decimal(balance),
        minimum_payment=Decimal(minimum_payment),
        interest_rate=Decimal(interest_rate),
        last_updated=datetime(2024, 1, 1, tzinfo=timezone.utc),
        institution=institution,
    )


def make_document(
    file_type: str = "csv",
    file_name: str = "statement.csv",
    file_path: str = "/tmp/statement.csv",
    file_size: int = 1024,
    debt_id: str = None,
    doc_id: str = "doc_1",
) -> UploadedDocument:
    return UploadedDocument(
        id=doc_id,
        file_name=file_name,
        file_path=file_path,
        file_type=file_type,
        file_size=file_size,
        upload_date=datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc),
        debt_id=debt_id,
    )


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings pointing at a throwaway SQLite file"""
    return Settings(database_url=f"sqlite:///{tmp_path / 'test.db'}")


@pytest.fixture
def store(test_settings: Settings) -> DebtStore:
    """Empty store backed by a temporary database"""
    return create_store(config=test_settings)


@pytest.fixture
def ingestion(store: DebtStore, test_settings: Settings) -> DocumentIngestionService:
    return DocumentIngestionService(store, extractor=ManualEntryExtractor(), config=test_settings)


@pytest.fixture
def reconciler(store: DebtStore, ingestion: DocumentIngestionService) -> StatementReconciler:
    return StatementReconciler(store, ingestion)


@pytest.fixture
def sample_debts() -> List[Debt]:
    """Three debts in non-sorted balance order"""
    return [
        make_debt("debt-car", "Car Loan", "5000.00", "150.00", "6.5", DebtType.AUTO_LOAN),
        make_debt("debt-visa", "Visa", "1000.00", "35.00", "19.99"),
        make_debt("debt-loc", "Line of Credit", "2500.00", "75.00", "9.5", DebtType.LINE_OF_CREDIT),
    ]

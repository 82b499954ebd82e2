"""Local debt store - the persistence boundary used by ingestion, reconciliation and strategy"""

import logging
import threading
import uuid
from contextlib import contextmanager
from dataclasses import replace
from decimal import Decimal
from typing import Iterator, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from debt_snowball.config import Settings, settings
from debt_snowball.domain.exceptions import StorageError
from debt_snowball.domain.models import (
    AppSettings,
    Debt,
    DebtParams,
    DebtUpdate,
    FullDebtRecord,
    NewDebtRequest,
    PaymentStrategy,
    Statement,
)
from debt_snowball.infrastructure.database.models import (
    AppSettingsRecord,
    DebtRecord,
    StatementRecord,
    utcnow,
)
from debt_snowball.infrastructure.database.repositories import (
    DebtRepository,
    SettingsRepository,
    StatementRepository,
)
from debt_snowball.infrastructure.database.session import create_db_engine, create_session_factory, init_db
from debt_snowball.schemas import DebtSchema, SettingsSchema, StatementSchema, StoreSnapshot


def generate_debt_id() -> str:
    return uuid.uuid4().hex


def default_app_settings(config: Settings = settings) -> AppSettings:
    return AppSettings(
        extra_payment=Decimal(str(config.default_extra_payment)),
        strategy=PaymentStrategy(config.default_strategy),
        currency=config.default_currency,
    )


class DebtStore:
    """
    Debts, statements and settings persisted in a local SQLite file.

    Reads that fail are logged and fall back to empty results or default
    settings. Writes that fail are rolled back and raised as StorageError.
    Writes are serialised through one lock so read-modify-write cycles do
    not interleave within the process.
    """

    def __init__(self, session_factory: sessionmaker, config: Settings = settings):
        self._session_factory = session_factory
        self._config = config
        self._write_lock = threading.RLock()

    @contextmanager
    def _read(self) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
        finally:
            db.close()

    @contextmanager
    def _write(self, operation: str) -> Iterator[Session]:
        with self._write_lock:
            db = self._session_factory()
            try:
                yield db
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                logging.error(f"Store write failed: {e}", extra={"step": "store_write", "operation": operation})
                raise StorageError(f"Failed to {operation}: {e}") from e
            except Exception:
                db.rollback()
                raise
            finally:
                db.close()

    # Debts

    def get_debts(self) -> List[Debt]:
        try:
            with self._read() as db:
                return DebtRepository(db).list_all()
        except SQLAlchemyError as e:
            logging.error(f"Failed to load debts, returning empty list: {e}", extra={"step": "store_read"})
            return []

    def get_debt(self, debt_id: str) -> Optional[Debt]:
        try:
            with self._read() as db:
                return DebtRepository(db).get(debt_id)
        except SQLAlchemyError as e:
            logging.error(f"Failed to load debt: {e}", extra={"step": "store_read", "debt_id": debt_id})
            return None

    def add_debt(self, request: NewDebtRequest) -> Debt:
        """Create a debt from parameters, or store a caller-supplied record as is"""
        if isinstance(request, FullDebtRecord):
            debt = replace(request.debt, last_updated=utcnow())
        elif isinstance(request, DebtParams):
            debt = Debt(
                id=generate_debt_id(),
                name=request.name,
                type=request.type,
                balance=request.balance,
                minimum_payment=request.minimum_payment,
                interest_rate=request.interest_rate,
                last_updated=utcnow(),
                institution=request.institution,
                account_number=request.account_number,
                due_day=request.due_day,
            )
        else:
            raise TypeError(f"Unsupported debt request: {type(request).__name__}")

        with self._write("add debt") as db:
            return DebtRepository(db).save(debt)

    def update_debt(self, update: DebtUpdate) -> Optional[Debt]:
        """Apply a partial update; returns None when the debt does not exist"""
        with self._write("update debt") as db:
            repo = DebtRepository(db)
            existing = repo.get(update.id)
            if existing is None:
                return None

            changes = {
                name: value
                for name, value in vars(update).items()
                if name != "id" and value is not None
            }
            updated = replace(existing, **changes, last_updated=utcnow())
            return repo.save(updated)

    def delete_debt(self, debt_id: str) -> bool:
        """Delete a debt and every statement it owns"""
        with self._write("delete debt") as db:
            if not DebtRepository(db).delete(debt_id):
                return False
            removed = StatementRepository(db).delete_for_debt(debt_id)
            logging.info(
                "Debt deleted",
                extra={"step": "delete_debt", "debt_id": debt_id, "statements_removed": removed},
            )
            return True

    # Statements

    def get_statements(self, debt_id: Optional[str] = None) -> List[Statement]:
        try:
            with self._read() as db:
                return StatementRepository(db).list_all(debt_id)
        except SQLAlchemyError as e:
            logging.error(f"Failed to load statements, returning empty list: {e}", extra={"step": "store_read"})
            return []

    def get_statement(self, statement_id: str) -> Optional[Statement]:
        try:
            with self._read() as db:
                return StatementRepository(db).get(statement_id)
        except SQLAlchemyError as e:
            logging.error(f"Failed to load statement: {e}", extra={"step": "store_read", "statement_id": statement_id})
            return None

    def add_statement(self, statement: Statement) -> Statement:
        """Add a statement or replace the one with the same id"""
        with self._write("save statement") as db:
            return StatementRepository(db).save(statement)

    # Settings

    def get_settings(self) -> AppSettings:
        try:
            with self._read() as db:
                stored = SettingsRepository(db).get()
        except SQLAlchemyError as e:
            logging.error(f"Failed to load settings, using defaults: {e}", extra={"step": "store_read"})
            stored = None
        return stored or default_app_settings(self._config)

    def update_settings(
        self,
        extra_payment: Optional[Decimal] = None,
        strategy: Optional[PaymentStrategy] = None,
        currency: Optional[str] = None,
    ) -> AppSettings:
        with self._write("update settings") as db:
            repo = SettingsRepository(db)
            current = repo.get() or default_app_settings(self._config)
            updated = AppSettings(
                extra_payment=current.extra_payment if extra_payment is None else extra_payment,
                strategy=strategy or current.strategy,
                currency=currency or current.currency,
            )
            return repo.save(updated)

    # Snapshot

    def export_data(self) -> str:
        """Whole store as a JSON document with ISO-8601 dates"""
        snapshot = StoreSnapshot(
            debts=[DebtSchema.model_validate(d) for d in self.get_debts()],
            statements=[StatementSchema.model_validate(s) for s in self.get_statements()],
            settings=SettingsSchema.model_validate(self.get_settings()),
        )
        return snapshot.model_dump_json(indent=2)

    def import_data(self, json_data: str) -> None:
        """Replace the whole store with a previously exported snapshot"""
        snapshot = StoreSnapshot.model_validate_json(json_data)

        with self._write("import data") as db:
            for model in (StatementRecord, DebtRecord, AppSettingsRecord):
                for record in db.query(model).all():
                    db.delete(record)
            db.flush()

            debts = DebtRepository(db)
            for debt in snapshot.debts:
                debts.save(debt.to_domain())

            statements = StatementRepository(db)
            for statement in snapshot.statements:
                statements.save(statement.to_domain())

            SettingsRepository(db).save(snapshot.settings.to_domain())


def create_store(database_url: Optional[str] = None, config: Settings = settings) -> DebtStore:
    """Store backed by the given database, creating its tables if needed"""
    engine = create_db_engine(database_url or config.database_url)
    init_db(engine)
    return DebtStore(create_session_factory(engine), config)

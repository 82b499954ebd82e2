"""Statement reconciliation - link statements to debts and apply balance deltas"""

import logging
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import List, Optional

from debt_snowball.domain.exceptions import DebtNotFoundError, StatementNotFoundError
from debt_snowball.domain.models import (
    DebtMatch,
    DebtTrends,
    DebtUpdate,
    ReconciliationResult,
    Statement,
    StatementAnalysis,
    UploadedDocument,
)
from debt_snowball.domain.reconciliation import (
    compute_debt_trends,
    compute_statement_analysis,
    rank_debt_matches,
)
from debt_snowball.infrastructure.database.store import DebtStore
from debt_snowball.infrastructure.observability.logging import log_reconciliation
from debt_snowball.infrastructure.observability.metrics import record_reconciliation
from debt_snowball.services.ingestion import DocumentIngestionService

NO_DEBT_ID_ERROR = "No debt ID provided"
ZERO = Decimal("0")


class StatementReconciler:
    """Reconciles statements against the debts they belong to"""

    def __init__(self, store: DebtStore, ingestion: Optional[DocumentIngestionService] = None):
        self.store = store
        self.ingestion = ingestion or DocumentIngestionService(store)

    def analyze_statement(self, statement: Statement, debt_id: str) -> StatementAnalysis:
        """Compare a statement with the stored debt; raises DebtNotFoundError"""
        debt = self.store.get_debt(debt_id)
        if debt is None:
            raise DebtNotFoundError(debt_id)
        return compute_statement_analysis(statement, debt)

    def update_debt_from_statement(self, debt_id: str, analysis: StatementAnalysis) -> None:
        """Persist the statement balance and minimum payment; other debt fields are untouched"""
        balance = analysis.new_balance
        if balance < 0:
            # Credit balance on the statement; a debt cannot go negative
            logging.warning(
                f"Statement balance {balance} is negative, storing 0",
                extra={"debt_id": debt_id, "step": "update_debt"},
            )
            balance = ZERO

        self.store.update_debt(
            DebtUpdate(id=debt_id, balance=balance, minimum_payment=analysis.new_minimum_payment)
        )

    def _reject(self, error: str, statement_id: Optional[str], debt_id: Optional[str]) -> ReconciliationResult:
        record_reconciliation("rejected")
        log_reconciliation(statement_id, debt_id, "rejected", error=error)
        return ReconciliationResult(updated=False, error=error)

    def _reconcile(self, statement: Statement, debt_id: str) -> ReconciliationResult:
        try:
            analysis = self.analyze_statement(statement, debt_id)
        except DebtNotFoundError as e:
            return self._reject(str(e), statement.id, debt_id)

        if analysis.should_update_debt:
            self.update_debt_from_statement(debt_id, analysis)

        outcome = "updated" if analysis.should_update_debt else "unchanged"
        record_reconciliation(outcome)
        log_reconciliation(statement.id, debt_id, outcome, analysis.balance_change)

        return ReconciliationResult(
            updated=analysis.should_update_debt,
            statement=statement,
            analysis=analysis,
        )

    def process_existing_statement(self, statement_id: str, debt_id: Optional[str]) -> ReconciliationResult:
        """
        Link an already imported statement to a debt and reconcile it.

        Flow:
        1. Reject a missing debt id
        2. Look up the debt and the statement
        3. Re-link the statement to the debt and persist it
        4. Analyze and update the debt when the balance changed

        Missing ids come back as result errors. Store write failures
        propagate as StorageError.
        """
        # 1. Debt id
        if not debt_id:
            return self._reject(NO_DEBT_ID_ERROR, statement_id, debt_id)

        # 2. Lookups
        if self.store.get_debt(debt_id) is None:
            return self._reject(str(DebtNotFoundError(debt_id)), statement_id, debt_id)

        statement = self.store.get_statement(statement_id)
        if statement is None:
            return self._reject(str(StatementNotFoundError(statement_id)), statement_id, debt_id)

        # 3. Re-link
        statement = replace(statement, debt_id=debt_id)
        self.store.add_statement(statement)

        # 4. Reconcile
        return self._reconcile(statement, debt_id)

    def process_uploaded_statement(
        self,
        document: UploadedDocument,
        content: Optional[str] = None,
        debt_id: Optional[str] = None,
        today: Optional[date] = None,
    ) -> ReconciliationResult:
        """
        Ingest an uploaded document for a debt and reconcile it immediately.

        A PDF without extractable data is not reconciled: the placeholder
        statement is returned with `requires_manual_entry` set so the user
        can supply the details and link it later.
        """
        debt_id = debt_id or document.debt_id
        if not debt_id:
            return self._reject(NO_DEBT_ID_ERROR, None, debt_id)

        if self.store.get_debt(debt_id) is None:
            return self._reject(str(DebtNotFoundError(debt_id)), None, debt_id)

        result = self.ingestion.process_document(replace(document, debt_id=debt_id), content, today)
        if not result.success or result.statement is None:
            return self._reject(result.error or "Failed to process statement", None, debt_id)

        statement = result.statement
        if not statement.has_extracted_data:
            record_reconciliation("manual_entry")
            log_reconciliation(statement.id, debt_id, "manual_entry")
            return ReconciliationResult(updated=False, statement=statement, requires_manual_entry=True)

        return self._reconcile(statement, debt_id)

    def link_statement_to_debt(self, statement_id: str, debt_id: str) -> bool:
        """Re-link a statement without reconciling; False when the statement does not exist"""
        statement = self.store.get_statement(statement_id)
        if statement is None:
            return False
        self.store.add_statement(replace(statement, debt_id=debt_id))
        return True

    def get_debt_statements(self, debt_id: str) -> List[Statement]:
        return self.store.get_statements(debt_id)

    def get_statement_history(self, debt_id: str, limit: Optional[int] = None) -> List[Statement]:
        """Statements for a debt, newest statement date first"""
        history = sorted(self.store.get_statements(debt_id), key=lambda s: s.statement_date, reverse=True)
        return history[:limit] if limit else history

    def calculate_debt_trends(self, debt_id: str, today: Optional[date] = None) -> DebtTrends:
        return compute_debt_trends(
            self.get_statement_history(debt_id),
            current_debt=self.store.get_debt(debt_id),
            today=today,
        )

    def detect_potential_debt_matches(self, statement: Statement) -> List[DebtMatch]:
        """Debts an unlinked statement probably belongs to, best match first"""
        return rank_debt_matches(statement, self.store.get_debts())

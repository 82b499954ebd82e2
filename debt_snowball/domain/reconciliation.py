"""Statement reconciliation logic - balance deltas, update policy, trends and debt matching"""

import math
from datetime import date
from decimal import Decimal
from typing import List, Optional

from debt_snowball.domain.models import (
    BalancePoint,
    Debt,
    DebtMatch,
    DebtTrends,
    DebtType,
    Statement,
    StatementAnalysis,
)
from debt_snowball.utils.date_utils import add_months

# Sub-cent drift is not a balance change; one cent is
BALANCE_CHANGE_EPSILON = Decimal("0.005")
MATCH_CONFIDENCE_THRESHOLD = 30

ZERO = Decimal("0")


def compute_statement_analysis(statement: Statement, debt: Debt) -> StatementAnalysis:
    """
    Compare a statement with the stored debt.

    The debt should be updated whenever the statement balance differs from
    the stored balance. A statement without a minimum payment keeps the
    stored minimum.
    """
    payments_made = sum((p.amount for p in statement.payments), ZERO)
    purchases_made = sum((p.amount for p in statement.purchases), ZERO)
    balance_change = statement.balance - debt.balance

    return StatementAnalysis(
        new_balance=statement.balance,
        balance_change=balance_change,
        new_minimum_payment=statement.minimum_payment or debt.minimum_payment,
        payments_made=payments_made,
        purchases_made=purchases_made,
        interest_charged=statement.interest_charged,
        should_update_debt=abs(balance_change) > BALANCE_CHANGE_EPSILON,
    )


def format_analysis_summary(analysis: StatementAnalysis) -> str:
    parts: List[str] = []

    if analysis.balance_change > 0:
        parts.append(f"📈 Balance increased by ${analysis.balance_change:.2f}")
    elif analysis.balance_change < 0:
        parts.append(f"📉 Balance decreased by ${abs(analysis.balance_change):.2f}")
    else:
        parts.append("📊 Balance unchanged")

    parts.append(f"💳 Purchases: ${analysis.purchases_made:.2f}")
    parts.append(f"💰 Payments: ${analysis.payments_made:.2f}")

    if analysis.interest_charged > 0:
        parts.append(f"💸 Interest: ${analysis.interest_charged:.2f}")

    if analysis.should_update_debt:
        parts.append("🔄 Debt information updated")

    return " • ".join(parts)


def score_debt_match(statement: Statement, debt: Debt) -> Optional[DebtMatch]:
    """
    Confidence that a statement belongs to a debt.

    Weights: similar balance (within 10%) 30, similar minimum payment
    (within 20%) 20, institution named in the file name 40, credit card
    with purchase activity 10. Only scores above 30 count as a match.
    """
    confidence = 0
    reasons: List[str] = []

    if abs(debt.balance - statement.balance) < debt.balance * Decimal("0.1"):
        confidence += 30
        reasons.append("Similar balance")

    if abs(debt.minimum_payment - statement.minimum_payment) < debt.minimum_payment * Decimal("0.2"):
        confidence += 20
        reasons.append("Similar minimum payment")

    if debt.institution and statement.file_name:
        if debt.institution.lower() in statement.file_name.lower():
            confidence += 40
            reasons.append("Institution name match")

    if debt.type == DebtType.CREDIT_CARD and statement.purchases:
        confidence += 10
        reasons.append("Credit card activity pattern")

    if confidence <= MATCH_CONFIDENCE_THRESHOLD:
        return None

    return DebtMatch(debt_id=debt.id, debt_name=debt.name, confidence=confidence, reasons=reasons)


def rank_debt_matches(statement: Statement, debts: List[Debt]) -> List[DebtMatch]:
    matches = [m for m in (score_debt_match(statement, debt) for debt in debts) if m is not None]
    return sorted(matches, key=lambda m: m.confidence, reverse=True)


def compute_debt_trends(
    statements: List[Statement],
    current_debt: Optional[Debt] = None,
    today: Optional[date] = None,
) -> DebtTrends:
    """
    Balance history and average monthly activity across statements.

    `statements` are expected newest first. A payoff projection is only
    produced when average payments outpace average spending.
    """
    today = today or date.today()

    if not statements:
        history = [BalancePoint(date=today, balance=current_debt.balance)] if current_debt else []
        return DebtTrends(
            balance_history=history,
            average_monthly_payment=ZERO,
            average_monthly_spending=ZERO,
        )

    balance_history = [BalancePoint(date=s.statement_date, balance=s.balance) for s in statements]

    total_payments = sum((p.amount for s in statements for p in s.payments), ZERO)
    total_spending = sum((p.amount for s in statements for p in s.purchases), ZERO)
    average_payment = total_payments / len(statements)
    average_spending = total_spending / len(statements)

    payoff_projection = None
    net_paydown = average_payment - average_spending
    if net_paydown > 0:
        months = max(0, math.ceil(statements[0].balance / net_paydown))
        payoff_projection = add_months(today, months)

    return DebtTrends(
        balance_history=balance_history,
        average_monthly_payment=average_payment,
        average_monthly_spending=average_spending,
        payoff_projection=payoff_projection,
    )

"""Snowball payoff strategy - amortization math and smallest-balance-first ordering"""

import math
import time
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional

from debt_snowball.domain.models import (
    AmortizationEntry,
    ConsolidationOpportunity,
    Debt,
    DebtPayoffPlan,
    PayoffStrategy,
    StrategyType,
)
from debt_snowball.utils.date_utils import add_months_or_none

CENT = Decimal("0.01")
ZERO = Decimal("0")


def _monthly_rate(annual_rate: Decimal) -> Decimal:
    return Decimal(annual_rate) / 100 / 12


def calculate_payoff_months(
    balance: Decimal, monthly_payment: Decimal, annual_rate: Decimal
) -> Optional[int]:
    """
    Months needed to retire a balance at a fixed monthly payment.

    Inverse of the amortization formula:
        months = ceil(-ln(1 - balance*r/payment) / ln(1 + r)),  r = rate/100/12

    A zero balance is already paid off. Returns None when the debt never
    pays off: a non-positive payment, or a payment that does not cover the
    first month's interest.
    """
    if balance <= 0:
        return 0
    if monthly_payment <= 0:
        return None

    monthly_rate = float(_monthly_rate(annual_rate))
    if monthly_rate == 0:
        return math.ceil(balance / monthly_payment)

    ratio = float(balance) * monthly_rate / float(monthly_payment)
    if ratio >= 1:
        return None

    months = -math.log(1 - ratio) / math.log(1 + monthly_rate)
    # Float noise must not push an exact month count up by one
    return math.ceil(round(months, 9))


def calculate_total_interest(
    balance: Decimal, monthly_payment: Decimal, annual_rate: Decimal
) -> Optional[Decimal]:
    """Interest paid over the payoff period: max(0, payment * months - balance)"""
    months = calculate_payoff_months(balance, monthly_payment, annual_rate)
    if months is None:
        return None
    return max(ZERO, monthly_payment * months - balance)


def build_amortization_schedule(
    balance: Decimal,
    monthly_payment: Decimal,
    annual_rate: Decimal,
    start_date: date,
    max_months: int = 600,
) -> List[AmortizationEntry]:
    """
    Month-by-month repayment schedule starting one month after `start_date`.

    Interest accrues on the remaining balance each month, rounded to the
    cent; the final payment covers only what is left. Non-convergent debts
    get an empty schedule.
    """
    if calculate_payoff_months(balance, monthly_payment, annual_rate) is None:
        return []

    monthly_rate = _monthly_rate(annual_rate)
    remaining = balance
    entries: List[AmortizationEntry] = []

    for month in range(1, max_months + 1):
        if remaining <= 0:
            break
        interest = (remaining * monthly_rate).quantize(CENT, rounding=ROUND_HALF_UP)
        payment = min(monthly_payment, remaining + interest)
        principal = payment - interest
        if principal <= 0:
            break
        payment_date = add_months_or_none(start_date, month)
        if payment_date is None:
            break
        remaining -= principal
        entries.append(
            AmortizationEntry(
                month=month,
                payment_date=payment_date,
                payment=payment,
                interest=interest,
                principal=principal,
                remaining_balance=remaining,
            )
        )

    return entries


def _interest_saved(debts: List[Debt], plans: List[DebtPayoffPlan]) -> Decimal:
    """Minimum-only interest minus snowball interest, over debts finite in both"""
    plan_by_debt = {plan.debt_id: plan for plan in plans}
    baseline_total = ZERO
    snowball_total = ZERO

    for debt in debts:
        baseline = calculate_total_interest(debt.balance, debt.minimum_payment, debt.interest_rate)
        snowball = plan_by_debt[debt.id].total_interest
        if baseline is None or snowball is None:
            continue
        baseline_total += baseline
        snowball_total += snowball

    return max(ZERO, baseline_total - snowball_total)


def calculate_snowball_strategy(
    debts: List[Debt],
    extra_payment: Decimal = ZERO,
    start_date: Optional[date] = None,
    max_schedule_months: int = 600,
) -> PayoffStrategy:
    """
    Build a debt snowball plan: smallest balance first.

    Requirements:
    - Debts ordered ascending by balance (stable for ties)
    - The first debt gets its minimum plus the whole extra payment; the
      others pay their minimum
    - Once the first debt's duration is known its minimum rolls into the
      available extra, and later payoff dates count from its payoff date
      rather than from today (sequential model, not a parallel simulation)
    - Overall payoff date is the latest plan date, None if any debt never
      pays off or pays off after date.max

    Example:
        balances [5000, 1000, 2500] → payoff order [1000, 2500, 5000],
        only the 1000 plan is the priority
    """
    start_date = start_date or date.today()
    sorted_debts = sorted(debts, key=lambda d: d.balance)

    total_minimum = sum((d.minimum_payment for d in debts), ZERO)
    monthly_budget = total_minimum + extra_payment

    available_extra = extra_payment
    cursor = start_date
    plans: List[DebtPayoffPlan] = []

    for index, debt in enumerate(sorted_debts):
        monthly_payment = debt.minimum_payment + (available_extra if index == 0 else ZERO)
        months = calculate_payoff_months(debt.balance, monthly_payment, debt.interest_rate)
        # A payoff beyond the last representable date counts as never
        payoff_date = add_months_or_none(cursor, months) if months is not None else None

        plans.append(
            DebtPayoffPlan(
                debt_id=debt.id,
                payoff_order=index + 1,
                monthly_payment=monthly_payment,
                payoff_months=months,
                payoff_date=payoff_date,
                total_interest=calculate_total_interest(debt.balance, monthly_payment, debt.interest_rate),
                is_priority=index == 0,
                schedule=build_amortization_schedule(
                    debt.balance, monthly_payment, debt.interest_rate, cursor, max_schedule_months
                ),
            )
        )

        if index == 0:
            available_extra += debt.minimum_payment
            if payoff_date is not None:
                cursor = payoff_date

    dates = [plan.payoff_date for plan in plans]
    overall_payoff = max(dates) if dates and None not in dates else None

    return PayoffStrategy(
        id=f"snowball-{int(time.time() * 1000)}",
        name="Debt Snowball",
        type=StrategyType.SNOWBALL,
        debts=plans,
        total_interest_saved=_interest_saved(debts, plans),
        payoff_date=overall_payoff,
        monthly_payment=monthly_budget,
    )


def find_consolidation_opportunities(
    debts: List[Debt],
    high_interest_threshold: Decimal = Decimal("15"),
    consolidation_rate: Decimal = Decimal("12"),
    payment_ratio: Decimal = Decimal("0.02"),
    time_savings_months: int = 6,
) -> List[ConsolidationOpportunity]:
    """
    Suggest rolling high-interest debts into one personal loan.

    Thresholds rationale:
    - Only debts above the threshold rate are candidates, and at least two
      are needed
    - The balance-weighted average rate must beat the assumed loan rate
    - New payment is a flat share of the combined balance (rough estimate)
    """
    candidates = [d for d in debts if d.interest_rate > high_interest_threshold]
    if len(candidates) < 2:
        return []

    total_balance = sum((d.balance for d in candidates), ZERO)
    if total_balance <= 0:
        return []

    weighted_rate = sum((d.interest_rate * d.balance for d in candidates), ZERO) / total_balance
    if consolidation_rate >= weighted_rate:
        return []

    return [
        ConsolidationOpportunity(
            id=f"consolidation-{int(time.time() * 1000)}",
            target_debts=[d.id for d in candidates],
            new_loan_amount=total_balance,
            new_interest_rate=consolidation_rate,
            new_monthly_payment=total_balance * payment_ratio,
            interest_savings=(weighted_rate - consolidation_rate) * total_balance / 100,
            time_savings=time_savings_months,
            provider="Personal Loan",
        )
    ]

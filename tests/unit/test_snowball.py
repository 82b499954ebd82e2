"""Unit tests for snowball payoff calculations and consolidation"""

import pytest
from datetime import date
from decimal import Decimal
from debt_snowball.domain.models import StrategyType
from debt_snowball.domain.snowball import (
    build_amortization_schedule,
    calculate_payoff_months,
    calculate_snowball_strategy,
    calculate_total_interest,
    find_consolidation_opportunities,
)
from conftest import make_debt


START = date(2024, 1, 1)


def test_payoff_months_zero_rate():
    assert calculate_payoff_months(Decimal("1200"), Decimal("100"), Decimal("0")) == 12
    assert calculate_payoff_months(Decimal("1250"), Decimal("100"), Decimal("0")) == 13


def test_payoff_months_with_interest():
    # 1000 at 12% APR paying 100/month: -ln(1 - 0.1) / ln(1.01) = 10.59
    assert calculate_payoff_months(Decimal("1000"), Decimal("100"), Decimal("12")) == 11


def test_payoff_months_paid_off_balance():
    assert calculate_payoff_months(Decimal("0"), Decimal("100"), Decimal("20")) == 0


@pytest.mark.parametrize("payment", [Decimal("0"), Decimal("-5")])
def test_payoff_months_non_positive_payment_never_pays_off(payment):
    assert calculate_payoff_months(Decimal("1000"), payment, Decimal("10")) is None


def test_payoff_months_payment_below_interest_never_pays_off():
    # 10000 at 24% accrues 200/month
    assert calculate_payoff_months(Decimal("10000"), Decimal("200"), Decimal("24")) is None
    assert calculate_payoff_months(Decimal("10000"), Decimal("150"), Decimal("24")) is None


def test_payoff_months_monotonic_in_payment():
    payments = [Decimal(p) for p in ("500", "300", "200", "120", "90")]
    months = [calculate_payoff_months(Decimal("5000"), p, Decimal("18")) for p in payments]

    assert months == sorted(months)


def test_payoff_months_monotonic_in_balance():
    balances = [Decimal(b) for b in ("500", "1000", "2500", "4000")]
    months = [calculate_payoff_months(b, Decimal("150"), Decimal("18")) for b in balances]

    assert months == sorted(months)


def test_total_interest():
    assert calculate_total_interest(Decimal("1200"), Decimal("100"), Decimal("0")) == Decimal("0")
    # 11 payments of 100 against 1000
    assert calculate_total_interest(Decimal("1000"), Decimal("100"), Decimal("12")) == Decimal("100")
    assert calculate_total_interest(Decimal("1000"), Decimal("0"), Decimal("12")) is None


def test_amortization_schedule_zero_rate():
    schedule = build_amortization_schedule(Decimal("250"), Decimal("100"), Decimal("0"), START)

    assert [e.payment for e in schedule] == [Decimal("100"), Decimal("100"), Decimal("50")]
    assert schedule[0].payment_date == date(2024, 2, 1)
    assert schedule[-1].remaining_balance == Decimal("0")


def test_amortization_schedule_splits_interest_and_principal():
    schedule = build_amortization_schedule(Decimal("1000"), Decimal("100"), Decimal("12"), START)

    first = schedule[0]
    assert first.interest == Decimal("10.00")
    assert first.principal == Decimal("90.00")
    assert first.remaining_balance == Decimal("910.00")
    assert len(schedule) == 11
    assert schedule[-1].remaining_balance == Decimal("0")


def test_amortization_schedule_non_convergent_is_empty():
    assert build_amortization_schedule(Decimal("10000"), Decimal("100"), Decimal("24"), START) == []


def test_single_debt_zero_rate():
    debt = make_debt(balance="1200", minimum_payment="100", interest_rate="0")

    strategy = calculate_snowball_strategy([debt], extra_payment=Decimal("0"), start_date=START)

    plan = strategy.debts[0]
    assert plan.payoff_months == 12
    assert plan.total_interest == Decimal("0")
    assert plan.payoff_date == date(2025, 1, 1)
    assert strategy.payoff_date == date(2025, 1, 1)
    assert strategy.type == StrategyType.SNOWBALL
    assert strategy.name == "Debt Snowball"


def test_snowball_orders_by_smallest_balance(sample_debts):
    strategy = calculate_snowball_strategy(sample_debts, extra_payment=Decimal("100"), start_date=START)

    assert [p.debt_id for p in strategy.debts] == ["debt-visa", "debt-loc", "debt-car"]
    assert [p.payoff_order for p in strategy.debts] == [1, 2, 3]
    assert [p.is_priority for p in strategy.debts] == [True, False, False]


def test_snowball_ties_keep_input_order():
    debts = [
        make_debt("b", balance="500", minimum_payment="25"),
        make_debt("a", balance="500", minimum_payment="25"),
    ]

    strategy = calculate_snowball_strategy(debts, start_date=START)

    assert [p.debt_id for p in strategy.debts] == ["b", "a"]


def test_snowball_extra_payment_goes_to_first_debt_only(sample_debts):
    strategy = calculate_snowball_strategy(sample_debts, extra_payment=Decimal("100"), start_date=START)

    assert strategy.monthly_payment == Decimal("360.00")
    assert [p.monthly_payment for p in strategy.debts] == [
        Decimal("135.00"),
        Decimal("75.00"),
        Decimal("150.00"),
    ]


def test_snowball_later_debts_start_after_first_payoff():
    debts = [
        make_debt("big", balance="2000", minimum_payment="100", interest_rate="0"),
        make_debt("small", balance="1000", minimum_payment="100", interest_rate="0"),
    ]

    strategy = calculate_snowball_strategy(debts, extra_payment=Decimal("100"), start_date=START)

    small, big = strategy.debts
    assert small.payoff_months == 5
    assert small.payoff_date == date(2024, 6, 1)
    assert big.payoff_months == 20
    assert big.payoff_date == date(2026, 2, 1)
    assert big.schedule[0].payment_date == date(2024, 7, 1)
    assert strategy.payoff_date == date(2026, 2, 1)


def test_snowball_interest_saved_is_non_negative(sample_debts):
    strategy = calculate_snowball_strategy(sample_debts, extra_payment=Decimal("100"), start_date=START)

    assert strategy.total_interest_saved > 0


def test_snowball_non_convergent_debt():
    debts = [
        make_debt("ok", balance="500", minimum_payment="50", interest_rate="0"),
        make_debt("stuck", balance="10000", minimum_payment="10", interest_rate="24"),
    ]

    strategy = calculate_snowball_strategy(debts, start_date=START)

    stuck = strategy.debts[1]
    assert stuck.payoff_months is None
    assert stuck.payoff_date is None
    assert stuck.total_interest is None
    assert stuck.schedule == []
    assert strategy.payoff_date is None
    assert strategy.total_interest_saved == Decimal("0")


def test_snowball_payoff_past_last_representable_date():
    # 100000 months at 1.00/month lands past year 9999
    debts = [
        make_debt("big", name="Mortgage", balance="100000.00", minimum_payment="1.00", interest_rate="0"),
        make_debt("house", balance="200000.00", minimum_payment="2000.00", interest_rate="0"),
    ]

    strategy = calculate_snowball_strategy(debts, extra_payment=Decimal("0"), start_date=START)

    big, house = strategy.debts
    assert big.payoff_months == 100000
    assert big.payoff_date is None
    assert len(big.schedule) == 600
    # The cursor does not advance past an unreachable payoff
    assert house.payoff_date == date(2032, 5, 1)
    assert strategy.payoff_date is None


def test_amortization_schedule_stops_at_last_representable_date():
    schedule = build_amortization_schedule(Decimal("1200"), Decimal("100"), Decimal("0"), date(9999, 6, 1))

    assert len(schedule) == 6
    assert schedule[-1].payment_date == date(9999, 12, 1)


def test_snowball_no_debts():
    strategy = calculate_snowball_strategy([], extra_payment=Decimal("100"), start_date=START)

    assert strategy.debts == []
    assert strategy.payoff_date is None
    assert strategy.monthly_payment == Decimal("100")


def test_consolidation_two_high_interest_debts():
    debts = [
        make_debt("a", balance="1000", interest_rate="20"),
        make_debt("b", balance="3000", interest_rate="25"),
        make_debt("c", balance="9000", interest_rate="5"),
    ]

    opportunities = find_consolidation_opportunities(debts)

    assert len(opportunities) == 1
    opportunity = opportunities[0]
    assert opportunity.target_debts == ["a", "b"]
    assert opportunity.new_loan_amount == Decimal("4000")
    assert opportunity.new_interest_rate == Decimal("12")
    assert opportunity.new_monthly_payment == Decimal("80")
    # (23.75 - 12) * 4000 / 100
    assert opportunity.interest_savings == Decimal("470")
    assert opportunity.time_savings == 6


def test_consolidation_needs_two_candidates():
    debts = [make_debt("a", balance="1000", interest_rate="22"), make_debt("b", balance="3000", interest_rate="15")]

    assert find_consolidation_opportunities(debts) == []


def test_consolidation_requires_rate_above_loan_rate():
    debts = [make_debt("a", balance="1000", interest_rate="16"), make_debt("b", balance="1000", interest_rate="17")]

    assert find_consolidation_opportunities(debts, consolidation_rate=Decimal("18")) == []

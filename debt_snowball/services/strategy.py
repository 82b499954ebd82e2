"""Payoff planning over the debts in the store"""

import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional

from debt_snowball.config import Settings, settings
from debt_snowball.domain.models import ConsolidationOpportunity, PayoffStrategy
from debt_snowball.domain.snowball import calculate_snowball_strategy, find_consolidation_opportunities
from debt_snowball.infrastructure.database.store import DebtStore
from debt_snowball.infrastructure.observability.metrics import strategy_duration_histogram


def _decimal(value: float) -> Decimal:
    return Decimal(str(value))


class PayoffPlanner:
    """Runs the snowball calculator and consolidation heuristic against stored debts"""

    def __init__(self, store: DebtStore, config: Settings = settings):
        self.store = store
        self.config = config

    def calculate_strategy(
        self,
        start_date: Optional[date] = None,
        extra_payment: Optional[Decimal] = None,
    ) -> PayoffStrategy:
        """Snowball plan for every stored debt; the extra payment defaults to the saved setting"""
        debts = self.store.get_debts()
        if extra_payment is None:
            extra_payment = self.store.get_settings().extra_payment

        with strategy_duration_histogram.time():
            strategy = calculate_snowball_strategy(
                debts,
                extra_payment=extra_payment,
                start_date=start_date,
                max_schedule_months=self.config.max_schedule_months,
            )

        logging.info(
            "Payoff strategy calculated",
            extra={
                "step": "strategy",
                "debts": len(debts),
                "monthly_payment": str(strategy.monthly_payment),
                "payoff_date": strategy.payoff_date.isoformat() if strategy.payoff_date else None,
            },
        )
        return strategy

    def consolidation_opportunities(self) -> List[ConsolidationOpportunity]:
        return find_consolidation_opportunities(
            self.store.get_debts(),
            high_interest_threshold=_decimal(self.config.high_interest_threshold),
            consolidation_rate=_decimal(self.config.consolidation_rate),
            payment_ratio=_decimal(self.config.consolidation_payment_ratio),
            time_savings_months=self.config.consolidation_time_savings_months,
        )

"""
Financial calculator (``fleet_kernel.domain.financials``).

Pure functions deriving a trip's profit and its productivity classification.
Every amount that leaves here has been through ``round_money``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from fleet_kernel.db.types import round_money

DEFAULT_PRODUCTIVITY_THRESHOLD = Decimal("30000")
DEFAULT_PROFIT_LABEL = "Profit"
DEFAULT_LOSS_LABEL = "Loss"


def compute_profit(revenue: Decimal, cost: Decimal) -> Decimal:
    """profit = revenue - cost, rounded to money precision."""
    if not isinstance(revenue, Decimal) or not isinstance(cost, Decimal):
        raise TypeError(
            f"revenue and cost must be Decimal, not "
            f"{type(revenue).__name__}/{type(cost).__name__}"
        )
    return round_money(revenue - cost)


@dataclass(frozen=True)
class ProductivityRule:
    """Reporting threshold splitting trips into profit and loss labels.

    The threshold is a reporting convenience configured per deployment
    (``reporting.productivity_threshold``); a trip at exactly the threshold
    counts as profit.
    """

    threshold: Decimal = DEFAULT_PRODUCTIVITY_THRESHOLD
    profit_label: str = DEFAULT_PROFIT_LABEL
    loss_label: str = DEFAULT_LOSS_LABEL

    def classify(self, profit: Decimal) -> str:
        return self.profit_label if profit >= self.threshold else self.loss_label

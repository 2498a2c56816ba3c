"""Domain models describing the trade/dividend events and the views derived from them."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class TransactionType(str, Enum):
    """Direction of a trade."""

    BUY = "BUY"
    SELL = "SELL"


@dataclass(frozen=True)
class Transaction:
    """A single buy or sell of an instrument, immutable once recorded."""

    id: str
    date: str
    ticker: str
    name: str
    type: TransactionType
    quantity: float
    price: float
    fees: float = 0.0
    notes: Optional[str] = None


@dataclass(frozen=True)
class Dividend:
    """A dividend receipt. Negative amounts represent corrections."""

    id: str
    date: str
    ticker: str
    name: str
    amount: float
    notes: Optional[str] = None


@dataclass
class Holding:
    """Current position in one instrument, derived from the transaction log."""

    ticker: str
    name: str
    quantity: float = 0.0
    average_cost: float = 0.0
    total_invested: float = 0.0
    estimated_dividend_per_share: float = 0.0
    estimated_total_dividend: float = 0.0


@dataclass(frozen=True)
class PeriodStats:
    """Dividend and realized gain totals for one period (a year or the whole history)."""

    dividend: float = 0.0
    capital_gain: float = 0.0

    @property
    def total(self) -> float:
        return self.dividend + self.capital_gain


@dataclass(frozen=True)
class YearlyAggregate:
    """One row of the yearly ledger."""

    year: str
    dividend: float
    capital_gain: float
    cumulative_profit: float


@dataclass
class PerformanceLedger:
    """Yearly realized gain and dividend series plus the headline comparisons."""

    yearly: List[YearlyAggregate] = field(default_factory=list)
    current_year: str = ""
    previous_year: str = ""
    current_year_stats: PeriodStats = field(default_factory=PeriodStats)
    previous_year_stats: PeriodStats = field(default_factory=PeriodStats)
    lifetime_stats: PeriodStats = field(default_factory=PeriodStats)

    def for_year(self, year: str) -> PeriodStats:
        """Totals for ``year``; zeros when the year saw no activity."""
        for row in self.yearly:
            if row.year == year:
                return PeriodStats(dividend=row.dividend, capital_gain=row.capital_gain)
        return PeriodStats()


@dataclass(frozen=True)
class PortfolioStats:
    """Headline numbers for the sidebar and dashboard cards."""

    total_invested: float
    total_dividend: float
    holding_count: int
    top_holding: str


@dataclass(frozen=True)
class AllocationSlice:
    ticker: str
    value: float
    weight_pct: float


@dataclass(frozen=True)
class PortfolioHealth:
    """Concentration-based health report over the current holdings."""

    asset_count: int
    trade_count: int
    max_allocation_pct: float
    avg_allocation_pct: float
    efficiency_score: float
    concentration: str
    top_driver: Optional[str]
    warning: Optional[str] = None

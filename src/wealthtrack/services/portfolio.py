"""Snapshot assembly: load the event log once and derive every dashboard view from it."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

from wealthtrack.domain.models.ledger import (
    AllocationSlice,
    Dividend,
    Holding,
    PerformanceLedger,
    PortfolioHealth,
    PortfolioStats,
    Transaction,
)
from wealthtrack.domain.services.calculations import (
    PortfolioHealthAnalyzer,
    allocation,
    compute_holdings,
    compute_performance_ledger,
    dividend_growth_pct,
    estimated_annual_income,
    monthly_average,
    portfolio_stats,
    resolve_year,
)
from wealthtrack.infrastructure.db.sqlite import SQLiteRepository

logger = logging.getLogger(__name__)


@dataclass
class PortfolioSnapshot:
    """Raw inputs plus every view derived from them at one point in time."""

    as_of: date
    transactions: List[Transaction]
    dividends: List[Dividend]
    dividend_estimates: Dict[str, float]
    holdings: List[Holding]
    ledger: PerformanceLedger
    health: PortfolioHealth
    stats: PortfolioStats
    allocation: List[AllocationSlice] = field(default_factory=list)

    @property
    def dividend_growth_pct(self) -> float:
        return dividend_growth_pct(self.ledger.current_year_stats, self.ledger.previous_year_stats)

    @property
    def monthly_average(self) -> float:
        """Current-year dividend plus gain per month, counting the months elapsed so far."""
        months = self.as_of.month if self.ledger.current_year == str(self.as_of.year) else 12
        return monthly_average(self.ledger.current_year_stats, months)

    @property
    def estimated_annual_income(self) -> float:
        return estimated_annual_income(self.holdings)


def build_snapshot(
    transactions: List[Transaction],
    dividends: List[Dividend],
    dividend_estimates: Optional[Dict[str, float]] = None,
    *,
    year: Optional[str] = None,
    today: Optional[date] = None,
    warning_threshold_pct: float = 40.0,
) -> PortfolioSnapshot:
    """Derive holdings, ledger and analytics from in-memory event lists."""
    today = today or date.today()
    estimates = dict(dividend_estimates or {})
    current_year = resolve_year(year, today=today)
    previous_year = str(int(current_year) - 1)

    holdings = sorted(
        compute_holdings(transactions, estimates),
        key=lambda h: h.total_invested,
        reverse=True,
    )
    ledger = compute_performance_ledger(
        transactions, dividends, current_year, previous_year, today=today
    )
    health = PortfolioHealthAnalyzer(warning_threshold_pct).assess(holdings, len(transactions))

    return PortfolioSnapshot(
        as_of=today,
        transactions=list(transactions),
        dividends=list(dividends),
        dividend_estimates=estimates,
        holdings=holdings,
        ledger=ledger,
        health=health,
        stats=portfolio_stats(holdings, dividends),
        allocation=allocation(holdings),
    )


class PortfolioService:
    """Read the stored event log and compute a fresh snapshot on every call."""

    def __init__(self, repository: SQLiteRepository, *, warning_threshold_pct: float = 40.0) -> None:
        self._repository = repository
        self._warning_threshold_pct = warning_threshold_pct

    @property
    def repository(self) -> SQLiteRepository:
        return self._repository

    def snapshot(self, *, year: Optional[str] = None, today: Optional[date] = None) -> PortfolioSnapshot:
        transactions = self._repository.list_transactions()
        dividends = self._repository.list_dividends()
        estimates = self._repository.fetch_dividend_estimates()
        logger.debug(
            "Building snapshot from %d trade(s) and %d dividend(s)",
            len(transactions),
            len(dividends),
        )
        return build_snapshot(
            transactions,
            dividends,
            estimates,
            year=year,
            today=today,
            warning_threshold_pct=self._warning_threshold_pct,
        )

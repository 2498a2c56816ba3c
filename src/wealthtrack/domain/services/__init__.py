"""Convenience re-exports for the accounting engine."""
from __future__ import annotations

from .calculations import (
    HoldingsAggregator,
    PerformanceLedgerCalculator,
    PortfolioHealthAnalyzer,
    compute_holdings,
    compute_performance_ledger,
    dividend_growth_pct,
    monthly_average,
    resolve_year,
    sort_transactions,
    year_of,
)

__all__ = [
    "HoldingsAggregator",
    "PerformanceLedgerCalculator",
    "PortfolioHealthAnalyzer",
    "compute_holdings",
    "compute_performance_ledger",
    "dividend_growth_pct",
    "monthly_average",
    "resolve_year",
    "sort_transactions",
    "year_of",
]

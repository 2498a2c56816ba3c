"""Domain service layer providing the position and realized-gain accounting.

This module implements:
- Holdings aggregation with weighted-average cost
- A yearly performance ledger (realized gains, dividends, cumulative profit)
- Portfolio analytics used by the dashboard (allocation, health report)

Every calculation is a pure function of the event lists it receives and is
recomputed from scratch on each call. The implementations never raise on
structurally valid input: oversells are clamped to the held quantity, sells of
unknown tickers are ignored, and a zero denominator yields ``float('nan')``
the same way the rest of the arithmetic propagates malformed numbers.
"""
from __future__ import annotations

import re
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from wealthtrack.domain.models.ledger import (
    AllocationSlice,
    Dividend,
    Holding,
    PerformanceLedger,
    PeriodStats,
    PortfolioHealth,
    PortfolioStats,
    Transaction,
    TransactionType,
    YearlyAggregate,
)

_YEAR_PATTERN = re.compile(r"(\d{4})")
_FULL_YEAR_PATTERN = re.compile(r"\d{4}")

CONCENTRATION_MODERATE_PCT = 30.0
CONCENTRATION_WARNING_PCT = 40.0


def sort_transactions(transactions: Iterable[Transaction]) -> List[Transaction]:
    """Order trades for folding: ascending date, buys before sells on the same date.

    The sort is stable, so trades sharing a date and direction keep insertion order.
    """
    return sorted(transactions, key=lambda txn: (txn.date, not _is_buy(txn)))


def year_of(date_str: str, *, today: Optional[date] = None) -> str:
    """Return the first four-digit run of ``date_str``; the current year if there is none."""
    match = _YEAR_PATTERN.search(date_str or "")
    if match:
        return match.group(1)
    return str((today or date.today()).year)


def resolve_year(year: Optional[str], *, today: Optional[date] = None) -> str:
    """Return ``year`` when it is a four-digit string, otherwise the current year."""
    year = (year or "").strip()
    if _FULL_YEAR_PATTERN.fullmatch(year):
        return year
    return str((today or date.today()).year)


class HoldingsAggregator:
    """Fold the transaction log into current per-ticker positions."""

    def calculate(
        self,
        transactions: Iterable[Transaction],
        dividend_estimates: Optional[Mapping[str, float]] = None,
    ) -> List[Holding]:
        estimates = dividend_estimates or {}
        positions: Dict[str, Holding] = {}

        for txn in sort_transactions(transactions):
            current = positions.get(txn.ticker)
            if current is None:
                current = Holding(ticker=txn.ticker, name=txn.name or txn.ticker)
                positions[txn.ticker] = current
            elif txn.name:
                current.name = txn.name

            if _is_buy(txn):
                current.total_invested += txn.quantity * txn.price + txn.fees
                current.quantity += txn.quantity
                current.average_cost = _divide(current.total_invested, current.quantity)
            else:
                sold_qty = min(txn.quantity, current.quantity)
                current.quantity -= sold_qty
                if current.quantity > 0:
                    current.total_invested = current.quantity * current.average_cost
                else:
                    # A closed position forgets its cost basis.
                    current.total_invested = 0.0
                    current.average_cost = 0.0

        holdings: List[Holding] = []
        for holding in positions.values():
            if not holding.quantity > 0:
                continue
            rate = estimates.get(holding.ticker) or 0.0
            holding.estimated_dividend_per_share = rate
            holding.estimated_total_dividend = holding.quantity * rate
            holdings.append(holding)
        return holdings


class PerformanceLedgerCalculator:
    """Bucket realized gains and dividends by calendar year."""

    def calculate(
        self,
        transactions: Iterable[Transaction],
        dividends: Iterable[Dividend],
        current_year: Optional[str] = None,
        previous_year: Optional[str] = None,
        *,
        today: Optional[date] = None,
    ) -> PerformanceLedger:
        today = today or date.today()
        current_year = resolve_year(current_year, today=today)
        previous_year = resolve_year(previous_year or str(int(current_year) - 1), today=today)

        transactions = list(transactions)
        dividends = list(dividends)

        years: Dict[str, List[float]] = {}
        for event_date in [t.date for t in transactions] + [d.date for d in dividends]:
            years.setdefault(year_of(event_date, today=today), [0.0, 0.0])

        lifetime_gain = 0.0
        lifetime_dividend = 0.0

        # ticker -> [quantity, total cost]; tracked apart from HoldingsAggregator.
        cost_basis: Dict[str, List[float]] = {}
        for txn in sort_transactions(transactions):
            if _is_buy(txn):
                tracker = cost_basis.setdefault(txn.ticker, [0.0, 0.0])
                tracker[0] += txn.quantity
                tracker[1] += txn.quantity * txn.price + txn.fees
                continue
            if txn.type != TransactionType.SELL:
                continue
            tracker = cost_basis.get(txn.ticker)
            if tracker is None or not tracker[0] > 0:
                continue

            gain, sold_qty, avg_price = _realized_gain(txn, held_qty=tracker[0], total_cost=tracker[1])
            bucket = years.setdefault(year_of(txn.date, today=today), [0.0, 0.0])
            bucket[1] += gain
            lifetime_gain += gain

            tracker[0] -= sold_qty
            tracker[1] = tracker[0] * avg_price

        for dividend in dividends:
            bucket = years.setdefault(year_of(dividend.date, today=today), [0.0, 0.0])
            bucket[0] += dividend.amount
            lifetime_dividend += dividend.amount

        yearly: List[YearlyAggregate] = []
        running_total = 0.0
        for year in sorted(years):
            dividend_total, gain_total = years[year]
            running_total += dividend_total + gain_total
            yearly.append(
                YearlyAggregate(
                    year=year,
                    dividend=dividend_total,
                    capital_gain=gain_total,
                    cumulative_profit=running_total,
                )
            )

        return PerformanceLedger(
            yearly=yearly,
            current_year=current_year,
            previous_year=previous_year,
            current_year_stats=_stats_for(years, current_year),
            previous_year_stats=_stats_for(years, previous_year),
            lifetime_stats=PeriodStats(dividend=lifetime_dividend, capital_gain=lifetime_gain),
        )


class PortfolioHealthAnalyzer:
    """Concentration metrics shown in the portfolio health report."""

    def __init__(self, warning_threshold_pct: float = CONCENTRATION_WARNING_PCT) -> None:
        self._warning_threshold_pct = warning_threshold_pct

    def assess(self, holdings: List[Holding], trade_count: int = 0) -> PortfolioHealth:
        if not holdings:
            return PortfolioHealth(
                asset_count=0,
                trade_count=trade_count,
                max_allocation_pct=0.0,
                avg_allocation_pct=0.0,
                efficiency_score=0.0,
                concentration="Healthy",
                top_driver=None,
            )

        slices = allocation(holdings)
        top = slices[0]
        max_pct = top.weight_pct
        avg_pct = 100.0 / len(holdings)

        warning = None
        if max_pct > self._warning_threshold_pct:
            warning = (
                f"High concentration in {top.ticker}. "
                "Consider diversifying to reduce specific asset risk."
            )

        return PortfolioHealth(
            asset_count=len(holdings),
            trade_count=trade_count,
            max_allocation_pct=max_pct,
            avg_allocation_pct=avg_pct,
            efficiency_score=100.0 - max_pct + avg_pct,
            concentration="Moderate" if max_pct > CONCENTRATION_MODERATE_PCT else "Healthy",
            top_driver=top.ticker,
            warning=warning,
        )


def compute_holdings(
    transactions: Iterable[Transaction],
    dividend_estimates: Optional[Mapping[str, float]] = None,
) -> List[Holding]:
    """Current holdings with weighted-average cost and dividend estimates attached."""
    return HoldingsAggregator().calculate(transactions, dividend_estimates)


def compute_performance_ledger(
    transactions: Iterable[Transaction],
    dividends: Iterable[Dividend],
    current_year: Optional[str] = None,
    previous_year: Optional[str] = None,
    *,
    today: Optional[date] = None,
) -> PerformanceLedger:
    """Yearly realized gain/dividend series with current, previous and lifetime stats."""
    return PerformanceLedgerCalculator().calculate(
        transactions, dividends, current_year, previous_year, today=today
    )


def dividend_growth_pct(current: PeriodStats, previous: PeriodStats) -> float:
    """Year-over-year dividend growth in percent; 0 when last year paid nothing."""
    if previous.dividend > 0:
        return (current.dividend - previous.dividend) / previous.dividend * 100
    return 0.0


def monthly_average(stats: PeriodStats, months_elapsed: Optional[int] = None) -> float:
    """Average monthly dividend plus realized gain over the months elapsed so far."""
    months = months_elapsed if months_elapsed is not None else date.today().month
    return _divide(stats.total, months)


def estimated_annual_income(holdings: Iterable[Holding]) -> float:
    return sum(h.estimated_total_dividend for h in holdings)


def allocation(holdings: Iterable[Holding]) -> List[AllocationSlice]:
    """Share of invested capital per ticker, largest first."""
    holdings = list(holdings)
    total = sum(h.total_invested for h in holdings)
    slices = [
        AllocationSlice(
            ticker=h.ticker,
            value=h.total_invested,
            weight_pct=(h.total_invested / total * 100) if total > 0 else 0.0,
        )
        for h in holdings
    ]
    return sorted(slices, key=lambda s: s.value, reverse=True)


def portfolio_stats(holdings: Iterable[Holding], dividends: Iterable[Dividend]) -> PortfolioStats:
    holdings = list(holdings)
    slices = allocation(holdings)
    return PortfolioStats(
        total_invested=sum(h.total_invested for h in holdings),
        total_dividend=sum(d.amount for d in dividends),
        holding_count=len(holdings),
        top_holding=slices[0].ticker if slices else "",
    )


def _is_buy(txn: Transaction) -> bool:
    return txn.type == TransactionType.BUY


def _realized_gain(txn: Transaction, *, held_qty: float, total_cost: float) -> Tuple[float, float, float]:
    """Return (gain, executed quantity, average price) for a sell against a tracked position.

    Fees are prorated by the executable share of the requested quantity.
    """
    avg_price = total_cost / held_qty
    sold_qty = min(txn.quantity, held_qty)
    net_proceeds = txn.price * sold_qty - txn.fees * _divide(sold_qty, txn.quantity)
    return net_proceeds - avg_price * sold_qty, sold_qty, avg_price


def _stats_for(years: Mapping[str, List[float]], year: str) -> PeriodStats:
    bucket = years.get(year)
    if bucket is None:
        return PeriodStats()
    return PeriodStats(dividend=bucket[0], capital_gain=bucket[1])


def _divide(numerator: float, denominator: float) -> float:
    if denominator == 0:
        return float("nan")
    return numerator / denominator

from __future__ import annotations

import math
from datetime import date

import pytest

from wealthtrack.domain.models.ledger import Dividend, PeriodStats, Transaction, TransactionType
from wealthtrack.domain.services.calculations import (
    compute_holdings,
    compute_performance_ledger,
    dividend_growth_pct,
    monthly_average,
    resolve_year,
    year_of,
)

BUY = TransactionType.BUY
SELL = TransactionType.SELL


def _tx(id: str, date_str: str, ticker: str, side: TransactionType, qty: float, price: float, fees: float = 0.0) -> Transaction:
    return Transaction(id=id, date=date_str, ticker=ticker, name=ticker, type=side, quantity=qty, price=price, fees=fees)


def _div(id: str, date_str: str, ticker: str, amount: float) -> Dividend:
    return Dividend(id=id, date=date_str, ticker=ticker, name=ticker, amount=amount)


def scenario_log():
    return [
        _tx("a", "2023-01-01", "X", BUY, 10, 100, 5),
        _tx("b", "2023-06-01", "X", SELL, 4, 150, 2),
        _tx("c", "2024-02-01", "X", SELL, 10, 120, 0),
    ]


def _yearly(ledger):
    return {row.year: row for row in ledger.yearly}


def test_partial_sell_realizes_gain_against_average_cost():
    ledger = compute_performance_ledger(scenario_log()[:2], [], "2023", "2022")

    assert ledger.current_year_stats.capital_gain == pytest.approx(196)
    assert ledger.lifetime_stats.capital_gain == pytest.approx(196)


def test_clamped_sell_prorates_fee_and_books_gain_in_sell_year():
    log = [
        _tx("a", "2023-01-01", "X", BUY, 10, 100, 5),
        _tx("b", "2023-06-01", "X", SELL, 4, 150, 2),
        # Only 6 held; fee 10 is prorated to 6/10 of itself.
        _tx("c", "2024-02-01", "X", SELL, 10, 120, 10),
    ]
    ledger = compute_performance_ledger(log, [], "2024", "2023")
    yearly = _yearly(ledger)

    assert yearly["2023"].capital_gain == pytest.approx(196)
    assert yearly["2024"].capital_gain == pytest.approx(120 * 6 - 10 * 0.6 - 100.5 * 6)
    assert ledger.previous_year_stats.capital_gain == pytest.approx(196)


def test_scenario_clamped_sell_without_fee():
    ledger = compute_performance_ledger(scenario_log(), [], "2024", "2023")

    assert _yearly(ledger)["2024"].capital_gain == pytest.approx(117)
    assert ledger.lifetime_stats.capital_gain == pytest.approx(196 + 117)
    assert compute_holdings(scenario_log(), {}) == []


def test_dividend_without_trades_counts_toward_year_and_lifetime():
    ledger = compute_performance_ledger([], [_div("d", "2022-03-01", "Y", 50)], "2022", "2021")

    assert _yearly(ledger)["2022"].dividend == 50
    assert ledger.current_year_stats == PeriodStats(dividend=50, capital_gain=0)
    assert ledger.lifetime_stats.dividend == 50
    assert compute_holdings([], {}) == []


def test_sell_of_never_bought_ticker_has_no_gain_but_registers_year():
    ledger = compute_performance_ledger([_tx("z", "2021-05-05", "Z", SELL, 3, 10, 1)], [], "2021", "2020")

    assert [row.year for row in ledger.yearly] == ["2021"]
    assert ledger.yearly[0].capital_gain == 0
    assert ledger.lifetime_stats.capital_gain == 0


def test_every_active_year_is_listed_even_with_zero_totals():
    log = [_tx("a", "2019-01-01", "X", BUY, 1, 10)]
    divs = [_div("d", "2021-01-01", "X", 2)]
    ledger = compute_performance_ledger(log, divs, "2021", "2020")

    assert [row.year for row in ledger.yearly] == ["2019", "2021"]
    assert _yearly(ledger)["2019"].capital_gain == 0
    assert _yearly(ledger)["2019"].dividend == 0


def test_cumulative_profit_runs_in_ascending_year_order():
    log = [
        _tx("a", "2020-01-01", "X", BUY, 10, 10),
        _tx("b", "2022-01-01", "X", SELL, 5, 12),
        _tx("c", "2021-01-01", "X", BUY, 10, 10),
    ]
    divs = [_div("d1", "2021-06-30", "X", 3), _div("d2", "2020-12-31", "X", 1), _div("d3", "2022-07-01", "X", -0.5)]
    ledger = compute_performance_ledger(log, divs, "2022", "2021")

    years = [row.year for row in ledger.yearly]
    assert years == ["2020", "2021", "2022"]
    running = 0.0
    for row in ledger.yearly:
        running += row.dividend + row.capital_gain
        assert row.cumulative_profit == pytest.approx(running)
    assert ledger.yearly[-1].cumulative_profit == pytest.approx(
        sum(r.dividend + r.capital_gain for r in ledger.yearly)
    )
    assert _yearly(ledger)["2022"].capital_gain == pytest.approx(10)
    assert _yearly(ledger)["2022"].dividend == pytest.approx(-0.5)


def test_same_day_sell_after_buy_realizes_gain():
    log = [
        _tx("s", "2023-03-03", "X", SELL, 2, 15, 0),
        _tx("b", "2023-03-03", "X", BUY, 2, 10, 0),
    ]
    ledger = compute_performance_ledger(log, [], "2023", "2022")
    assert ledger.current_year_stats.capital_gain == pytest.approx(10)


def test_missing_years_default_to_zero_stats():
    ledger = compute_performance_ledger([], [_div("d", "2010-01-01", "X", 5)], "2030", "2029")

    assert ledger.current_year_stats == PeriodStats()
    assert ledger.previous_year_stats == PeriodStats()
    assert ledger.for_year("2010").dividend == 5
    assert ledger.for_year("1999") == PeriodStats()


def test_current_and_previous_year_default_to_wall_clock():
    ledger = compute_performance_ledger([], [], today=date(2025, 4, 15))

    assert ledger.current_year == "2025"
    assert ledger.previous_year == "2024"
    assert ledger.yearly == []


def test_year_of_uses_first_four_digit_run():
    today = date(2026, 1, 1)
    assert year_of("2023-01-05", today=today) == "2023"
    assert year_of("05/01/2023", today=today) == "2023"
    assert year_of("n/a", today=today) == "2026"


def test_dividend_growth_falls_back_to_zero_without_prior_dividends():
    assert dividend_growth_pct(PeriodStats(dividend=120), PeriodStats(dividend=100)) == pytest.approx(20)
    assert dividend_growth_pct(PeriodStats(dividend=120), PeriodStats(dividend=0)) == 0
    assert dividend_growth_pct(PeriodStats(dividend=50), PeriodStats(dividend=100)) == pytest.approx(-50)


def test_monthly_average_divides_by_elapsed_months():
    stats = PeriodStats(dividend=300, capital_gain=150)
    assert monthly_average(stats, 3) == pytest.approx(150)
    assert math.isnan(monthly_average(stats, 0))


def test_malformed_year_falls_back_to_current_year():
    today = date(2025, 4, 15)
    assert resolve_year("2023", today=today) == "2023"
    assert resolve_year(" 2023 ", today=today) == "2023"
    assert resolve_year("abc", today=today) == "2025"
    assert resolve_year("20234", today=today) == "2025"
    assert resolve_year(None, today=today) == "2025"

    ledger = compute_performance_ledger([], [], "abc", today=today)
    assert ledger.current_year == "2025"
    assert ledger.previous_year == "2024"

from __future__ import annotations

from wealthtrack.domain.models.ledger import TransactionType
from wealthtrack.domain.services.entries import build_dividend, build_transaction


def test_transactions_round_trip_in_insertion_order(repository):
    first = build_transaction("2024-02-01", "bbb", "sell", 1, 10)
    second = build_transaction("2024-01-01", "aaa", "BUY", 2, 5, 0.5, name="Alpha")
    repository.add_transaction(first)
    repository.add_transaction(second)

    stored = repository.list_transactions()
    assert [t.id for t in stored] == [first.id, second.id]
    assert stored[0].type is TransactionType.SELL
    assert stored[1] == second


def test_upsert_replaces_existing_id(repository):
    txn = build_transaction("2024-01-01", "X", "BUY", 1, 10, id="fixed")
    repository.add_transaction(txn)
    repository.add_transaction(build_transaction("2024-01-01", "X", "BUY", 3, 10, id="fixed"))

    stored = repository.list_transactions()
    assert len(stored) == 1
    assert stored[0].quantity == 3


def test_delete_reports_whether_a_row_was_removed(repository):
    txn = build_transaction("2024-01-01", "X", "BUY", 1, 10)
    div = build_dividend("2024-03-01", "X", 2.5)
    repository.add_transaction(txn)
    repository.add_dividend(div)

    assert repository.delete_transaction(txn.id) is True
    assert repository.delete_transaction(txn.id) is False
    assert repository.delete_dividend(div.id) is True
    assert repository.list_transactions() == []
    assert repository.list_dividends() == []


def test_dividend_estimates_upsert_and_uppercase(repository):
    repository.set_dividend_estimate("abc", 1.2)
    repository.set_dividend_estimate("ABC", 1.5)
    repository.set_dividend_estimate("xyz", 0.3)

    assert repository.fetch_dividend_estimates() == {"ABC": 1.5, "XYZ": 0.3}


def test_reset_clears_everything(repository):
    repository.add_transactions([build_transaction("2024-01-01", "X", "BUY", 1, 1)])
    repository.add_dividends([build_dividend("2024-01-01", "X", 1)])
    repository.set_dividend_estimate("X", 1)

    repository.reset()

    assert repository.list_transactions() == []
    assert repository.list_dividends() == []
    assert repository.fetch_dividend_estimates() == {}

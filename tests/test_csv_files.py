from __future__ import annotations

import io
from datetime import date

import pytest

from wealthtrack.domain.models.ledger import TransactionType
from wealthtrack.domain.services.entries import build_dividend, build_transaction
from wealthtrack.infrastructure.data_providers.csv_files import (
    CsvImportError,
    default_export_name,
    read_dividends_csv,
    read_transactions_csv,
    write_dividends_csv,
    write_transactions_csv,
)


def test_read_transactions_fills_missing_id_and_fees():
    raw = (
        "id,date,ticker,name,type,quantity,price,fees\n"
        "t1,2024-01-02,aapl,Apple,BUY,10,180.5,1.5\n"
        ",2024-02-03,msft,Microsoft,sell,2,400,\n"
    )
    rows = read_transactions_csv(io.StringIO(raw))

    assert rows[0].id == "t1"
    assert rows[0].ticker == "AAPL"
    assert rows[0].fees == 1.5
    assert rows[1].id  # generated
    assert rows[1].type is TransactionType.SELL
    assert rows[1].fees == 0.0


def test_read_transactions_reports_bad_line():
    raw = "id,date,ticker,name,type,quantity,price,fees\n1,2024-01-01,X,X,BUY,ten,1,0\n"
    with pytest.raises(CsvImportError) as excinfo:
        read_transactions_csv(io.StringIO(raw))
    assert excinfo.value.line == 2
    assert "quantity" in str(excinfo.value)


def test_read_transactions_rejects_unknown_type():
    raw = "id,date,ticker,name,type,quantity,price,fees\n1,2024-01-01,X,X,HOLD,1,1,0\n"
    with pytest.raises(CsvImportError):
        read_transactions_csv(io.StringIO(raw))


def test_missing_required_column_is_an_import_error():
    with pytest.raises(CsvImportError):
        read_dividends_csv(io.StringIO("id,date,ticker\n1,2024-01-01,X\n"))


def test_header_only_and_empty_files_yield_nothing():
    assert read_dividends_csv(io.StringIO("id,date,ticker,name,amount\n")) == []
    assert read_transactions_csv(io.StringIO("")) == []


def test_export_then_import_preserves_records(tmp_path):
    txns = [build_transaction("2024-01-01", "X", "BUY", 1.5, 10, 0.25, name="Ex")]
    divs = [build_dividend("2024-06-01", "X", -2.0)]

    tx_path = write_transactions_csv(txns, tmp_path / "out" / "tx.csv")
    div_path = write_dividends_csv(divs, tmp_path / "out" / "div.csv")

    assert tx_path.read_text(encoding="utf-8").splitlines()[0] == "id,date,ticker,name,type,quantity,price,fees"
    assert read_transactions_csv(tx_path) == txns
    assert read_dividends_csv(div_path) == divs


def test_default_export_name():
    assert default_export_name("dividends", date(2024, 5, 1)) == "dividends_2024-05-01.csv"


def test_bad_line_number_counts_blank_lines():
    raw = (
        "id,date,ticker,name,amount\n"
        "d1,2024-01-01,X,X,10\n"
        "\n"
        "\n"
        "d2,2024-02-01,X,X,lots\n"
    )
    with pytest.raises(CsvImportError) as excinfo:
        read_dividends_csv(io.StringIO(raw))
    assert excinfo.value.line == 5


def test_blank_lines_are_skipped():
    raw = "id,date,ticker,name,amount\n\nd1,2024-01-01,x,X,10\n\n"
    rows = read_dividends_csv(io.StringIO(raw))

    assert [(d.id, d.ticker, d.amount) for d in rows] == [("d1", "X", 10.0)]

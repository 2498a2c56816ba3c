"""CSV import/export for the raw trade and dividend collections."""
from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import date
from pathlib import Path
from typing import IO, Iterable, List, Optional, Union

import pandas as pd

from wealthtrack.domain.models.ledger import Dividend, Transaction
from wealthtrack.domain.services.entries import build_dividend, build_transaction

logger = logging.getLogger(__name__)

TRANSACTION_COLUMNS = ["id", "date", "ticker", "name", "type", "quantity", "price", "fees"]
DIVIDEND_COLUMNS = ["id", "date", "ticker", "name", "amount"]
_LINE = "_line"

CsvSource = Union[str, Path, IO[str]]


class CsvImportError(ValueError):
    """Raised when a CSV row cannot be turned into a trade or dividend."""

    def __init__(self, message: str, line: Optional[int] = None) -> None:
        self.line = line
        prefix = f"line {line}: " if line is not None else ""
        super().__init__(f"{prefix}{message}")


def read_transactions_csv(source: CsvSource) -> List[Transaction]:
    """Parse ``id,date,ticker,name,type,quantity,price,fees`` rows.

    A blank id gets a fresh one and a blank fee counts as zero.
    """
    df = _read_frame(source, required=["date", "ticker", "type", "quantity", "price"])
    transactions: List[Transaction] = []
    for row in df.to_dict(orient="records"):
        line = int(row.pop(_LINE))
        try:
            transactions.append(
                build_transaction(
                    date=row["date"],
                    ticker=row["ticker"],
                    side=row["type"],
                    quantity=_number(row["quantity"], "quantity"),
                    price=_number(row["price"], "price"),
                    fees=_number(row.get("fees") or "0", "fees"),
                    name=row.get("name"),
                    id=row.get("id") or None,
                )
            )
        except ValueError as exc:
            raise CsvImportError(str(exc), line=line) from exc
    logger.info("Parsed %d transaction row(s)", len(transactions))
    return transactions


def read_dividends_csv(source: CsvSource) -> List[Dividend]:
    """Parse ``id,date,ticker,name,amount`` rows."""
    df = _read_frame(source, required=["date", "ticker", "amount"])
    dividends: List[Dividend] = []
    for row in df.to_dict(orient="records"):
        line = int(row.pop(_LINE))
        try:
            dividends.append(
                build_dividend(
                    date=row["date"],
                    ticker=row["ticker"],
                    amount=_number(row["amount"], "amount"),
                    name=row.get("name"),
                    id=row.get("id") or None,
                )
            )
        except ValueError as exc:
            raise CsvImportError(str(exc), line=line) from exc
    logger.info("Parsed %d dividend row(s)", len(dividends))
    return dividends


def transactions_frame(transactions: Iterable[Transaction]) -> pd.DataFrame:
    records = [{**asdict(t), "type": t.type.value} for t in transactions]
    return pd.DataFrame(records, columns=TRANSACTION_COLUMNS)


def dividends_frame(dividends: Iterable[Dividend]) -> pd.DataFrame:
    records = [asdict(d) for d in dividends]
    return pd.DataFrame(records, columns=DIVIDEND_COLUMNS)


def write_transactions_csv(transactions: Iterable[Transaction], target: Path) -> Path:
    return _write_frame(transactions_frame(transactions), target)


def write_dividends_csv(dividends: Iterable[Dividend], target: Path) -> Path:
    return _write_frame(dividends_frame(dividends), target)


def default_export_name(kind: str, today: Optional[date] = None) -> str:
    """File name used by exports, e.g. ``transactions_2024-05-01.csv``."""
    return f"{kind}_{(today or date.today()).isoformat()}.csv"


def _read_frame(source: CsvSource, *, required: List[str]) -> pd.DataFrame:
    try:
        df = pd.read_csv(source, dtype=str, keep_default_na=False, skip_blank_lines=False)
    except pd.errors.EmptyDataError:
        return pd.DataFrame(columns=required)
    except pd.errors.ParserError as exc:
        raise CsvImportError(f"malformed CSV: {exc}") from exc

    df.columns = [str(col).strip().lower() for col in df.columns]
    missing = [col for col in required if col not in df.columns]
    if missing:
        raise CsvImportError(f"missing column(s): {', '.join(missing)}")
    df = df.fillna("")
    for col in df.columns:
        df[col] = df[col].astype(str).str.strip()
    # Blank lines stay in the frame until here so row positions map to file lines.
    df[_LINE] = df.index + 2
    return df[(df[list(df.columns[:-1])] != "").any(axis=1)]


def _number(raw: object, label: str) -> float:
    text = str(raw).strip()
    try:
        return float(text)
    except ValueError as exc:
        raise ValueError(f"{label} is not a number: {text!r}") from exc


def _write_frame(df: pd.DataFrame, target: Path) -> Path:
    target.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(target, index=False)
    logger.info("Exported %d row(s) to %s", len(df), target)
    return target

"""SQLite persistence layer for trades, dividends and dividend estimates."""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from wealthtrack.domain.models.ledger import Dividend, Transaction, TransactionType

logger = logging.getLogger(__name__)


class SQLiteRepository:
    """Lightweight gateway for reading and writing the raw event collections.

    Rows carry an autoincrementing ``seq`` so listings come back in insertion
    order, which the folds rely on to break ties between same-day trades.
    """

    def __init__(self, database_uri: str, *, echo: bool = False) -> None:
        self._engine: Engine = create_engine(database_uri, echo=echo, future=True)
        self._ensure_schema()

    @property
    def engine(self) -> Engine:
        return self._engine

    # -----------------
    # Schema management
    # -----------------
    def _ensure_schema(self) -> None:
        """Create core tables if they do not already exist."""
        ddl = [
            """
            CREATE TABLE IF NOT EXISTS transactions (
              seq INTEGER PRIMARY KEY AUTOINCREMENT,
              id TEXT NOT NULL UNIQUE,
              date TEXT NOT NULL,
              ticker TEXT NOT NULL,
              name TEXT,
              type TEXT NOT NULL,
              quantity REAL NOT NULL,
              price REAL NOT NULL,
              fees REAL NOT NULL DEFAULT 0,
              notes TEXT
            );
            """,
            """CREATE INDEX IF NOT EXISTS idx_transactions_ticker ON transactions(ticker);""",
            """
            CREATE TABLE IF NOT EXISTS dividends (
              seq INTEGER PRIMARY KEY AUTOINCREMENT,
              id TEXT NOT NULL UNIQUE,
              date TEXT NOT NULL,
              ticker TEXT NOT NULL,
              name TEXT,
              amount REAL NOT NULL,
              notes TEXT
            );
            """,
            # Estimated annual dividend per share, maintained by hand
            """
            CREATE TABLE IF NOT EXISTS dividend_estimates (
              ticker TEXT PRIMARY KEY,
              rate REAL NOT NULL,
              updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
            );
            """,
        ]
        with self._engine.begin() as conn:
            for statement in ddl:
                conn.execute(text(statement))

    # ----------------
    # Transactions CRUD
    # ----------------
    def add_transaction(self, transaction: Transaction) -> None:
        self.add_transactions([transaction])

    def add_transactions(self, transactions: Iterable[Transaction]) -> int:
        """Append trades, replacing any row that already uses the same id."""
        rows = [_transaction_row(t) for t in transactions]
        if not rows:
            return 0
        stmt = text(
            """
            INSERT INTO transactions (id, date, ticker, name, type, quantity, price, fees, notes)
            VALUES (:id, :date, :ticker, :name, :type, :quantity, :price, :fees, :notes)
            ON CONFLICT(id) DO UPDATE SET
                date=excluded.date,
                ticker=excluded.ticker,
                name=excluded.name,
                type=excluded.type,
                quantity=excluded.quantity,
                price=excluded.price,
                fees=excluded.fees,
                notes=excluded.notes
            """
        )
        with self._engine.begin() as conn:
            conn.execute(stmt, rows)
        logger.debug("Stored %d transaction(s)", len(rows))
        return len(rows)

    def list_transactions(self) -> List[Transaction]:
        query = text(
            """
            SELECT id, date, ticker, name, type, quantity, price, fees, notes
            FROM transactions
            ORDER BY seq ASC
            """
        )
        with self._engine.connect() as conn:
            rows = conn.execute(query).mappings()
            return [_transaction_from_row(row) for row in rows]

    def delete_transaction(self, transaction_id: str) -> bool:
        with self._engine.begin() as conn:
            result = conn.execute(text("DELETE FROM transactions WHERE id = :id"), {"id": transaction_id})
            deleted = result.rowcount
        return deleted > 0

    # -------------
    # Dividends CRUD
    # -------------
    def add_dividend(self, dividend: Dividend) -> None:
        self.add_dividends([dividend])

    def add_dividends(self, dividends: Iterable[Dividend]) -> int:
        rows = [_dividend_row(d) for d in dividends]
        if not rows:
            return 0
        stmt = text(
            """
            INSERT INTO dividends (id, date, ticker, name, amount, notes)
            VALUES (:id, :date, :ticker, :name, :amount, :notes)
            ON CONFLICT(id) DO UPDATE SET
                date=excluded.date,
                ticker=excluded.ticker,
                name=excluded.name,
                amount=excluded.amount,
                notes=excluded.notes
            """
        )
        with self._engine.begin() as conn:
            conn.execute(stmt, rows)
        logger.debug("Stored %d dividend(s)", len(rows))
        return len(rows)

    def list_dividends(self) -> List[Dividend]:
        query = text(
            """
            SELECT id, date, ticker, name, amount, notes
            FROM dividends
            ORDER BY seq ASC
            """
        )
        with self._engine.connect() as conn:
            rows = conn.execute(query).mappings()
            return [_dividend_from_row(row) for row in rows]

    def delete_dividend(self, dividend_id: str) -> bool:
        with self._engine.begin() as conn:
            result = conn.execute(text("DELETE FROM dividends WHERE id = :id"), {"id": dividend_id})
            deleted = result.rowcount
        return deleted > 0

    # ------------------
    # Dividend estimates
    # ------------------
    def set_dividend_estimate(self, ticker: str, rate: float) -> None:
        stmt = text(
            """
            INSERT INTO dividend_estimates (ticker, rate, updated_at)
            VALUES (:ticker, :rate, CURRENT_TIMESTAMP)
            ON CONFLICT(ticker) DO UPDATE SET
              rate=excluded.rate,
              updated_at=CURRENT_TIMESTAMP
            """
        )
        with self._engine.begin() as conn:
            conn.execute(stmt, {"ticker": ticker.strip().upper(), "rate": float(rate)})

    def fetch_dividend_estimates(self) -> Dict[str, float]:
        query = text("SELECT ticker, rate FROM dividend_estimates")
        with self._engine.connect() as conn:
            return {row["ticker"]: float(row["rate"]) for row in conn.execute(query).mappings()}

    def reset(self) -> None:
        """Wipe every stored trade, dividend and estimate."""
        with self._engine.begin() as conn:
            for table in ("transactions", "dividends", "dividend_estimates"):
                conn.execute(text(f"DELETE FROM {table}"))
        logger.info("All portfolio data cleared")


def _transaction_row(transaction: Transaction) -> Dict[str, Any]:
    return {
        "id": transaction.id,
        "date": transaction.date,
        "ticker": transaction.ticker,
        "name": transaction.name,
        "type": TransactionType(transaction.type).value,
        "quantity": transaction.quantity,
        "price": transaction.price,
        "fees": transaction.fees,
        "notes": transaction.notes,
    }


def _transaction_from_row(row: Mapping[str, Any]) -> Transaction:
    return Transaction(
        id=row["id"],
        date=row["date"],
        ticker=row["ticker"],
        name=row["name"] or row["ticker"],
        type=TransactionType(row["type"]),
        quantity=float(row["quantity"]),
        price=float(row["price"]),
        fees=float(row["fees"] or 0.0),
        notes=row["notes"],
    )


def _dividend_row(dividend: Dividend) -> Dict[str, Any]:
    return {
        "id": dividend.id,
        "date": dividend.date,
        "ticker": dividend.ticker,
        "name": dividend.name,
        "amount": dividend.amount,
        "notes": dividend.notes,
    }


def _dividend_from_row(row: Mapping[str, Any]) -> Dividend:
    return Dividend(
        id=row["id"],
        date=row["date"],
        ticker=row["ticker"],
        name=row["name"] or row["ticker"],
        amount=float(row["amount"]),
        notes=row["notes"],
    )

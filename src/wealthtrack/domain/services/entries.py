"""Builders that normalise user input into Transaction and Dividend records."""
from __future__ import annotations

import math
import uuid
from typing import Optional, Union

from wealthtrack.domain.models.ledger import Dividend, Transaction, TransactionType


def new_id() -> str:
    return uuid.uuid4().hex


def build_transaction(
    date: str,
    ticker: str,
    side: Union[str, TransactionType],
    quantity: float,
    price: float,
    fees: Optional[float] = None,
    *,
    name: Optional[str] = None,
    notes: Optional[str] = None,
    id: Optional[str] = None,
) -> Transaction:
    """Normalise raw fields: upper-case ticker, name falls back to ticker, fees default to 0."""
    symbol = ticker.strip().upper()
    return Transaction(
        id=id or new_id(),
        date=date.strip(),
        ticker=symbol,
        name=(name or "").strip() or symbol,
        type=_parse_side(side),
        quantity=float(quantity),
        price=float(price),
        fees=float(fees) if fees is not None else 0.0,
        notes=notes or None,
    )


def build_dividend(
    date: str,
    ticker: str,
    amount: float,
    *,
    name: Optional[str] = None,
    notes: Optional[str] = None,
    id: Optional[str] = None,
) -> Dividend:
    symbol = ticker.strip().upper()
    return Dividend(
        id=id or new_id(),
        date=date.strip(),
        ticker=symbol,
        name=(name or "").strip() or symbol,
        amount=float(amount),
        notes=notes or None,
    )


def validate_transaction(transaction: Transaction) -> None:
    """Reject trades the accounting engine would otherwise fold silently.

    Raises:
        ValueError: when the ticker or date is empty, the quantity is not
            positive, or the price/fees are negative or not finite.
    """
    if not transaction.ticker:
        raise ValueError("Ticker is required.")
    if not transaction.date:
        raise ValueError("Date is required.")
    for label, value in (
        ("quantity", transaction.quantity),
        ("price", transaction.price),
        ("fees", transaction.fees),
    ):
        if not math.isfinite(value):
            raise ValueError(f"{label} must be a finite number, got {value!r}.")
    if transaction.quantity <= 0:
        raise ValueError("quantity must be greater than zero.")
    if transaction.price < 0 or transaction.fees < 0:
        raise ValueError("price and fees must not be negative.")


def _parse_side(side: Union[str, TransactionType]) -> TransactionType:
    if isinstance(side, TransactionType):
        return side
    return TransactionType(str(side).strip().upper())

"""Optional LLM-backed portfolio commentary and ticker lookup."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol

from wealthtrack.config import Config
from wealthtrack.domain.models.ledger import Holding, PerformanceLedger, PortfolioHealth
from wealthtrack.infrastructure.llm.gemini_client import GeminiClient
from wealthtrack.services.llm_clean import clean_llm_output, parse_json_payload

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a pragmatic personal-finance assistant. "
    "Comment only on the figures provided; never invent prices or returns."
)

SKIPPED_NOTE = "(AI advisory skipped: POE_API_KEY is not configured)"
MIN_QUERY_LENGTH = 2
MAX_SUGGESTIONS = 5


class ChatClient(Protocol):
    def generate(self, messages: List[Dict[str, str]], **kwargs: Any) -> str: ...


@dataclass
class Advice:
    text: str
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class TickerSuggestion:
    ticker: str
    name: str
    exchange: str = ""


def build_gemini_client(config: Config) -> Optional[GeminiClient]:
    """Return a client when an API key is configured, otherwise None."""
    try:
        return GeminiClient(
            api_key=config.poe_api_key or "",
            model=config.gemini_model,
            proxy_url=config.proxy_url,
            default_thinking_budget=config.poe_thinking_budget,
        )
    except ValueError:
        logger.debug("Gemini client disabled: no API key")
        return None


class AdvisoryService:
    """Turn the derived portfolio views into a short free-text review."""

    def __init__(self, client: Optional[ChatClient]) -> None:
        self._client = client

    @property
    def enabled(self) -> bool:
        return self._client is not None

    def advise(
        self,
        holdings: List[Holding],
        ledger: PerformanceLedger,
        health: PortfolioHealth,
    ) -> Advice:
        if self._client is None:
            return Advice(text=SKIPPED_NOTE)

        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": build_advice_prompt(holdings, ledger, health)},
        ]
        try:
            raw = self._client.generate(messages)
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Advisory request failed: %s", exc)
            return Advice(text="", error=f"Advisory request failed: {exc}")
        return Advice(text=clean_llm_output(raw))

    def suggest_tickers(self, query: str) -> List[TickerSuggestion]:
        """Ask the model for up to five ticker matches; [] on short queries or bad replies."""
        query = (query or "").strip()
        if len(query) < MIN_QUERY_LENGTH or self._client is None:
            return []

        messages = [
            {
                "role": "system",
                "content": "Reply with a JSON array only, no prose.",
            },
            {
                "role": "user",
                "content": (
                    f"Find the {MAX_SUGGESTIONS} most relevant stock ticker symbols for the "
                    f'search query: "{query}". Include both global and regional stocks if '
                    'applicable. Each item: {"ticker": str, "name": str, "exchange": str}.'
                ),
            },
        ]
        try:
            payload = parse_json_payload(self._client.generate(messages, temperature=0.0))
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Ticker search failed for %r: %s", query, exc)
            return []

        if not isinstance(payload, list):
            return []
        suggestions: List[TickerSuggestion] = []
        for item in payload:
            if not isinstance(item, dict) or not item.get("ticker"):
                continue
            suggestions.append(
                TickerSuggestion(
                    ticker=str(item["ticker"]).strip().upper(),
                    name=str(item.get("name") or item["ticker"]).strip(),
                    exchange=str(item.get("exchange") or "").strip(),
                )
            )
        return suggestions[:MAX_SUGGESTIONS]


def build_advice_prompt(
    holdings: List[Holding],
    ledger: PerformanceLedger,
    health: PortfolioHealth,
) -> str:
    holding_lines = [
        f"- {h.ticker} ({h.name}): {h.quantity:g} units, avg cost {h.average_cost:.2f}, "
        f"invested {h.total_invested:.2f}, est. dividend {h.estimated_total_dividend:.2f}"
        for h in sorted(holdings, key=lambda h: h.total_invested, reverse=True)
    ] or ["- (no open positions)"]
    year_lines = [
        f"- {row.year}: dividends {row.dividend:.2f}, realized gain {row.capital_gain:.2f}, "
        f"cumulative {row.cumulative_profit:.2f}"
        for row in ledger.yearly
    ] or ["- (no activity)"]

    return (
        "Review this personal portfolio and give 3-5 short, actionable observations "
        "about diversification, income and realized performance. Markdown bullet list.\n"
        "Holdings:\n" + "\n".join(holding_lines) + "\n"
        "Yearly results:\n" + "\n".join(year_lines) + "\n"
        f"Lifetime dividends {ledger.lifetime_stats.dividend:.2f}, "
        f"lifetime realized gain {ledger.lifetime_stats.capital_gain:.2f}.\n"
        f"Largest position weight {health.max_allocation_pct:.1f}% "
        f"({health.top_driver or 'n/a'}), concentration {health.concentration}, "
        f"{health.trade_count} trades recorded.\n"
    )

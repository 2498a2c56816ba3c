"""Report rendering helpers using Jinja2 templates."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from wealthtrack.services.portfolio import PortfolioSnapshot

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"


def money(value: float) -> str:
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def signed_pct(value: float) -> str:
    return f"{'+' if value >= 0 else ''}{value:.1f}%"


@dataclass
class ReportRenderer:
    """Render the portfolio dashboard from a snapshot."""

    template_dir: Path = TEMPLATE_DIR
    template_name: str = "dashboard.md.j2"
    _env: Environment = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=False,
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self._env.filters["money"] = money
        self._env.filters["signed_pct"] = signed_pct

    def render(
        self,
        snapshot: PortfolioSnapshot,
        *,
        advice: Optional[str] = None,
        charts: Optional[List[Dict[str, str]]] = None,
    ) -> str:
        """Render the configured template for ``snapshot``."""
        return self.render_template(self.template_name, build_context(snapshot, advice=advice, charts=charts))

    def render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        template = self._env.get_template(template_name)
        return template.render(**context)


def build_context(
    snapshot: PortfolioSnapshot,
    *,
    advice: Optional[str] = None,
    charts: Optional[List[Dict[str, str]]] = None,
) -> Dict[str, Any]:
    ledger = snapshot.ledger
    return {
        "as_of": snapshot.as_of.isoformat(),
        "current_year": ledger.current_year,
        "previous_year": ledger.previous_year,
        "current": ledger.current_year_stats,
        "lifetime": ledger.lifetime_stats,
        "dividend_growth_pct": snapshot.dividend_growth_pct,
        "monthly_average": snapshot.monthly_average,
        "yearly": ledger.yearly,
        "holdings": snapshot.holdings,
        "allocation": {s.ticker: s.weight_pct for s in snapshot.allocation},
        "estimated_income": snapshot.estimated_annual_income,
        "stats": snapshot.stats,
        "health": snapshot.health,
        "advice": advice,
        "charts": charts or [],
    }

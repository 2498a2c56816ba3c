"""Chart builder rendering the yearly growth and allocation charts to PNG."""
from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Dict, List, Tuple

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402

from wealthtrack.domain.models.ledger import AllocationSlice, YearlyAggregate  # noqa: E402

logger = logging.getLogger(__name__)

COLORS = ["#2563eb", "#7c3aed", "#db2777", "#ea580c", "#16a34a", "#ca8a04", "#0891b2"]


def _save_chart(fig, path: Path, errors: List[str], caption: str, charts: List[Dict[str, str]]) -> None:
    try:
        buf = io.BytesIO()
        fig.tight_layout()
        fig.savefig(buf, format="png")
        path.write_bytes(buf.getvalue())
        charts.append({"path": str(path), "caption": caption})
        logger.info("Saved chart to %s", path)
    except Exception as exc:  # pylint: disable=broad-except
        errors.append(f"Chart save failed ({caption}): {exc}")
    finally:
        plt.close(fig)


def build_charts(
    yearly: List[YearlyAggregate],
    slices: List[AllocationSlice],
    output_dir: Path,
) -> Tuple[List[Dict[str, str]], List[str]]:
    """Render whichever charts have data; returns (charts, errors)."""
    output_dir.mkdir(parents=True, exist_ok=True)
    charts: List[Dict[str, str]] = []
    errors: List[str] = []

    if yearly:
        try:
            years = [row.year for row in yearly]
            positions = list(range(len(years)))
            width = 0.38
            fig, ax = plt.subplots(figsize=(7, 3.8))
            ax.bar(
                [p - width / 2 for p in positions],
                [row.capital_gain for row in yearly],
                width=width,
                label="Annual Realized Gain",
                color="#3b82f6",
            )
            ax.bar(
                [p + width / 2 for p in positions],
                [row.dividend for row in yearly],
                width=width,
                label="Annual Dividends",
                color="#10b981",
            )
            ax.plot(
                positions,
                [row.cumulative_profit for row in yearly],
                marker="o",
                linewidth=2.5,
                label="Cumulative Wealth",
                color="#7c3aed",
            )
            ax.axhline(0, color="#cbd5e1", linewidth=0.8)
            ax.set_xticks(positions)
            ax.set_xticklabels(years)
            ax.set_title("Portfolio Growth Evolution")
            ax.grid(True, axis="y", linestyle="--", alpha=0.3)
            ax.legend()
            _save_chart(fig, output_dir / "growth_evolution.png", errors, "Portfolio Growth Evolution", charts)
        except Exception as exc:  # pylint: disable=broad-except
            errors.append(f"Growth chart failed: {exc}")
    else:
        logger.debug("No yearly data, skip growth chart")

    positive = [s for s in slices if s.value > 0]
    if positive:
        try:
            fig, ax = plt.subplots(figsize=(5, 5))
            ax.pie(
                [s.value for s in positive],
                labels=[s.ticker for s in positive],
                colors=[COLORS[i % len(COLORS)] for i in range(len(positive))],
                autopct="%1.1f%%",
                wedgeprops={"width": 0.4},
            )
            ax.set_title("Asset Allocation")
            _save_chart(fig, output_dir / "allocation.png", errors, "Asset Allocation", charts)
        except Exception as exc:  # pylint: disable=broad-except
            errors.append(f"Allocation chart failed: {exc}")
    else:
        logger.debug("No active inventory, skip allocation chart")

    return charts, errors

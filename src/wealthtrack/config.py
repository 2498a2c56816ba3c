"""Runtime settings for the tracker, read from environment variables."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, TypeVar

# Database and rendered reports live here unless overridden per path.
BASE_DIR = Path(os.getenv("WEALTHTRACK_HOME", Path.home() / ".wealthtrack"))

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_WARNING_PCT = 40.0

N = TypeVar("N", int, float)


def _to_bool(value: Optional[str], default: bool = False) -> bool:
    """Parse truthy environment values like '1' or 'true'."""
    if value is None:
        return default
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def _to_number(value: Optional[str], cast: Callable[[str], N], default: Optional[N] = None) -> Optional[N]:
    """Cast an env var with ``cast``; unset or unparsable values give ``default``."""
    if value is None or not str(value).strip():
        return default
    try:
        return cast(str(value).strip())
    except (TypeError, ValueError):
        return default


@dataclass
class Config:
    """Where data lives, how loud logging is, and how to reach the LLM."""

    debug: bool = False
    database_path: Path = BASE_DIR / "data" / "wealthtrack.db"
    sqlite_echo: bool = False
    output_dir: Path = BASE_DIR / "reports"
    poe_api_key: Optional[str] = None
    proxy_url: Optional[str] = None
    gemini_model: str = DEFAULT_MODEL
    poe_thinking_budget: Optional[int] = None
    # Largest single-position weight (% of capital) before the health report warns.
    concentration_warning_pct: float = DEFAULT_WARNING_PCT

    @classmethod
    def from_env(cls) -> "Config":
        """Build a configuration from WEALTHTRACK_* and provider variables, creating directories."""
        warning_pct = _to_number(os.getenv("CONCENTRATION_WARNING_PCT"), float, DEFAULT_WARNING_PCT)
        if not 0 < warning_pct <= 100:
            warning_pct = DEFAULT_WARNING_PCT

        config = cls(
            debug=_to_bool(os.getenv("WEALTHTRACK_DEBUG")),
            database_path=Path(os.getenv("WEALTHTRACK_DB", BASE_DIR / "data" / "wealthtrack.db")),
            sqlite_echo=_to_bool(os.getenv("SQLITE_ECHO")),
            output_dir=Path(os.getenv("OUTPUT_DIR", BASE_DIR / "reports")),
            poe_api_key=os.getenv("POE_API_KEY") or None,
            proxy_url=os.getenv("PROXY_URL") or None,
            gemini_model=os.getenv("GEMINI_MODEL") or DEFAULT_MODEL,
            poe_thinking_budget=_to_number(os.getenv("POE_THINKING_BUDGET"), int),
            concentration_warning_pct=warning_pct,
        )
        config.ensure_directories()
        return config

    @property
    def database_uri(self) -> str:
        return f"sqlite:///{self.database_path}"

    def ensure_directories(self) -> None:
        self.database_path.parent.mkdir(parents=True, exist_ok=True)
        self.output_dir.mkdir(parents=True, exist_ok=True)


def load_settings(debug_override: Optional[bool] = None) -> Config:
    """Read the environment once per CLI invocation; ``--debug`` wins over WEALTHTRACK_DEBUG."""
    config = Config.from_env()
    if debug_override is not None:
        config.debug = debug_override
    return config

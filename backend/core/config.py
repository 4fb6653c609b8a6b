"""
config.py — Environment-driven settings and shared engine instances.

main.py calls load_dotenv() before anything reads these, so values can come
from a .env file next to the backend.
"""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from core.boundaries import DEFAULT_BOUNDARY_FILE, BoundaryTable, load_boundary_table
from core.calculations import CalculationStore
from core.grading import DEFAULT_MAX_MARK


def app_name() -> str:
    return os.getenv("APP_NAME", "BoundaryMetrics")


def default_max_mark() -> int:
    return int(os.getenv("DEFAULT_MAX_MARK", str(DEFAULT_MAX_MARK)))


def boundary_data_file() -> Path:
    return Path(os.getenv("BOUNDARY_DATA_FILE", str(DEFAULT_BOUNDARY_FILE)))


def calculations_file() -> Optional[Path]:
    # Unset or empty keeps the log in memory only.
    raw = os.getenv("CALCULATIONS_FILE", "").strip()
    return Path(raw) if raw else None


def cors_origins() -> List[str]:
    # Comma-separated, e.g. http://localhost:5173,https://app.example.com
    raw = os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000")
    return [o.strip() for o in raw.split(",") if o.strip()]


def log_level() -> int:
    name = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    return getattr(logging, name, logging.INFO)


def reports_dir() -> Path:
    return Path(os.getenv("REPORTS_DIR", str(Path(__file__).resolve().parent.parent / "reports")))


@lru_cache(maxsize=1)
def get_boundary_table() -> BoundaryTable:
    """The process-wide boundary table, loaded on first use."""
    return load_boundary_table(boundary_data_file(), default_max_mark=default_max_mark())


@lru_cache(maxsize=1)
def get_calculation_store() -> CalculationStore:
    return CalculationStore(calculations_file())

"""Core application configuration.

Everything that may need tuning per deployment (storage location, worker
counts, public URLs, date formats) is centralized here as module constants so
it can be adjusted without diving into service logic. Values are read from
environment variables at import time; tests monkeypatch the dicts directly.
"""
from __future__ import annotations

import os
from pathlib import Path

# Public base URL used when building polling links handed back to clients.
API_BASE_URL: str = os.getenv("API_BASE_URL", "http://localhost:8000/api/v1").rstrip("/")

# --------------------------------- Reports -------------------------------- #
REPORT_SETTINGS: dict[str, str | int] = {
	# Flat directory shared by renderers (writers) and fetch endpoints (readers).
	"reports_dir": os.getenv("REPORTS_DIR", str(Path("public") / "reports")),
	# "directory" for durable storage, "memory" for single-process dev/test runs.
	"store_backend": os.getenv("REPORT_STORE_BACKEND", "directory"),
	# Upper bound on concurrent renders; further jobs wait in the executor queue.
	"max_workers": int(os.getenv("REPORT_MAX_WORKERS", "4")),
	# Calendar date format accepted on trigger and embedded in report keys.
	"date_format": "%Y-%m-%d",
	# Generation stamp embedded in file names; lexicographic == temporal order.
	"stamp_format": "%Y%m%d_%H%M%S_%f",
	"extension": ".xlsx",
	# Placeholder used in keys when a date bound is absent.
	"open_bound": "all",
}

REPORT_CONTENT_TYPE: str = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

REPORT_IN_PROGRESS_MESSAGE: str = "Report generation in progress. Please check back in a few moments."

# ------------------------------ Service ------------------------------ #
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE: str = os.getenv("LOG_FILE", "logs/farm_market.log")
CORS_ORIGINS: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")

# ------------------------------ Domain rules ------------------------------ #
DEFAULT_PRICE_UNIT: str = os.getenv("DEFAULT_PRICE_UNIT", "kg")

__all__ = [
	"API_BASE_URL",
	"REPORT_SETTINGS",
	"REPORT_CONTENT_TYPE",
	"REPORT_IN_PROGRESS_MESSAGE",
	"DEFAULT_PRICE_UNIT",
	"LOG_LEVEL",
	"LOG_FILE",
	"CORS_ORIGINS",
]

"""Central Enum definitions shared by DB models, schemas and services."""
from __future__ import annotations
import enum


class UserRole(str, enum.Enum):
    ADMIN = "ADMIN"
    FARMER = "FARMER"
    BUYER = "BUYER"


class ReportType(str, enum.Enum):
    """Report families; the value is the file-name prefix in report storage."""
    PRICE_HISTORY = "price_history"
    HARVESTS = "harvests"


__all__ = [
    "UserRole",
    "ReportType",
]

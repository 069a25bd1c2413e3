"""Report render job payload structure."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from farm_market.models.db.enums import ReportType
from farm_market.services.report_renderer import ReportDataset
from farm_market.utils.time import utc_now


@dataclass(slots=True)
class ReportJob:
    report_type: ReportType
    key: str
    dataset: ReportDataset = field(repr=False)
    requested_at: datetime = field(default_factory=utc_now)
    correlation_id: Optional[str] = None


__all__ = ["ReportJob"]

"""Time-series queries backing the report datasets and history endpoints."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session, selectinload

from farm_market.errors import NotFoundError
from farm_market.models.db import Commodity, Harvest, Price, PriceHistory, Region
from farm_market.models.db.enums import ReportType
from farm_market.services.report_keys import ReportRequest
from farm_market.services.report_renderer import ReportDataset

PRICE_HISTORY_COLUMNS = ("No", "Date", "Price", "Unit", "Commodity", "Region")
HARVEST_COLUMNS = ("No", "Harvest Date", "Quantity", "Unit", "Commodity", "Region", "Farmer")


@dataclass(slots=True)
class PricePoint:
    commodity_id: int
    region_id: int
    price: Decimal
    unit: str
    recorded_at: datetime
    current: bool = False


def _day_start(value: date) -> datetime:
    return datetime.combine(value, time.min)


def _apply_range(query, column, start: Optional[date], end: Optional[date]):
    # end date is inclusive: everything before the following midnight
    if start is not None:
        query = query.filter(column >= _day_start(start))
    if end is not None:
        query = query.filter(column < _day_start(end + timedelta(days=1)))
    return query


def require_commodity_and_region(db: Session, commodity_id: int, region_id: int) -> tuple[Commodity, Region]:
    commodity = db.get(Commodity, commodity_id)
    if commodity is None:
        raise NotFoundError("commodity not found")
    region = db.get(Region, region_id)
    if region is None:
        raise NotFoundError("region not found")
    return commodity, region


def load_price_series(
    db: Session,
    commodity_id: int,
    region_id: int,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> list[PricePoint]:
    """Archived prices in chronological order, then the live price if it falls in range.

    Raises NotFoundError when no live price exists for the pair.
    """
    price = db.query(Price).filter(
        Price.commodity_id == commodity_id,
        Price.region_id == region_id,
    ).first()
    if price is None:
        raise NotFoundError("price not found for commodity and region")

    history_query = db.query(PriceHistory).filter(
        PriceHistory.commodity_id == commodity_id,
        PriceHistory.region_id == region_id,
    )
    history_query = _apply_range(history_query, PriceHistory.recorded_at, start, end)
    archived = history_query.order_by(PriceHistory.recorded_at.asc(), PriceHistory.id.asc()).all()

    series = [
        PricePoint(h.commodity_id, h.region_id, h.price, h.unit, h.recorded_at)
        for h in archived
    ]
    current_in_range = _apply_range(
        db.query(Price.id).filter(Price.id == price.id), Price.updated_at, start, end
    ).first() is not None
    if current_in_range:
        series.append(PricePoint(price.commodity_id, price.region_id, price.price, price.unit, price.updated_at, current=True))
    return series


def price_history_dataset(db: Session, request: ReportRequest) -> ReportDataset:
    commodity, region = require_commodity_and_region(db, request.entity_key_a, request.entity_key_b)
    series = load_price_series(db, commodity.id, region.id, request.start_date, request.end_date)
    rows = [
        (i, point.recorded_at, point.price, point.unit, commodity.name, region.name)
        for i, point in enumerate(series, start=1)
    ]
    return ReportDataset(
        sheet_title="Price History Report",
        columns=PRICE_HISTORY_COLUMNS,
        rows=rows,
    )


def harvest_dataset(db: Session, request: ReportRequest) -> ReportDataset:
    commodity, region = require_commodity_and_region(db, request.entity_key_a, request.entity_key_b)
    query = db.query(Harvest).options(selectinload(Harvest.user)).filter(
        Harvest.commodity_id == commodity.id,
        Harvest.region_id == region.id,
    )
    if request.start_date is not None:
        query = query.filter(Harvest.harvest_date >= request.start_date)
    if request.end_date is not None:
        query = query.filter(Harvest.harvest_date <= request.end_date)
    harvests = query.order_by(Harvest.harvest_date.asc(), Harvest.id.asc()).all()
    rows = [
        (
            i,
            h.harvest_date,
            h.quantity,
            h.unit,
            commodity.name,
            region.name,
            h.user.name if h.user else "",
        )
        for i, h in enumerate(harvests, start=1)
    ]
    return ReportDataset(
        sheet_title="Harvest Report",
        columns=HARVEST_COLUMNS,
        rows=rows,
    )


DATASET_BUILDERS = {
    ReportType.PRICE_HISTORY: price_history_dataset,
    ReportType.HARVESTS: harvest_dataset,
}


__all__ = [
    "PricePoint",
    "PRICE_HISTORY_COLUMNS",
    "HARVEST_COLUMNS",
    "DATASET_BUILDERS",
    "require_commodity_and_region",
    "load_price_series",
    "price_history_dataset",
    "harvest_dataset",
]

"""Supply and demand levels: one live quantity per commodity and region.

Updating a level archives the value it replaces, so the history of a pair is
the archive in chronological order followed by the live value.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from farm_market.config import DEFAULT_PRICE_UNIT
from farm_market.errors import ConflictError, NotFoundError
from farm_market.models.db import Demand, DemandHistory, Supply, SupplyHistory
from farm_market.services.report_datasets import require_commodity_and_region
from farm_market.utils import get_logger, utc_now

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class LevelKind:
    name: str
    model: type
    history_model: type


SUPPLY = LevelKind("supply", Supply, SupplyHistory)
DEMAND = LevelKind("demand", Demand, DemandHistory)


@dataclass(slots=True)
class LevelPoint:
    commodity_id: int
    region_id: int
    quantity: Decimal
    unit: str
    recorded_at: datetime
    current: bool = False


def get_level(db: Session, kind: LevelKind, level_id: int):
    level = db.get(kind.model, level_id)
    if level is None:
        raise NotFoundError(f"{kind.name} not found")
    return level


def find_level(db: Session, kind: LevelKind, commodity_id: int, region_id: int):
    return db.query(kind.model).filter(
        kind.model.commodity_id == commodity_id,
        kind.model.region_id == region_id,
    ).first()


def list_levels(
    db: Session,
    kind: LevelKind,
    *,
    commodity_id: Optional[int] = None,
    region_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 100,
) -> list:
    query = db.query(kind.model)
    if commodity_id is not None:
        query = query.filter(kind.model.commodity_id == commodity_id)
    if region_id is not None:
        query = query.filter(kind.model.region_id == region_id)
    return query.order_by(kind.model.id).offset(skip).limit(limit).all()


def create_level(
    db: Session,
    kind: LevelKind,
    commodity_id: int,
    region_id: int,
    quantity: float,
    unit: Optional[str] = None,
):
    """Create the live level of a pair. Raises NotFoundError or ConflictError."""
    require_commodity_and_region(db, commodity_id, region_id)
    if find_level(db, kind, commodity_id, region_id) is not None:
        raise ConflictError(f"{kind.name.capitalize()} for this commodity and region already exists")

    now = utc_now()
    level = kind.model(
        commodity_id=commodity_id,
        region_id=region_id,
        quantity=quantity,
        unit=unit or DEFAULT_PRICE_UNIT,
        created_at=now,
        updated_at=now,
    )
    db.add(level)
    db.commit()
    db.refresh(level)
    return level


def update_level(db: Session, kind: LevelKind, level_id: int, quantity: float, unit: Optional[str] = None):
    """Replace the live quantity, archiving the previous one in the same transaction."""
    level = get_level(db, kind, level_id)
    try:
        db.add(kind.history_model(
            commodity_id=level.commodity_id,
            region_id=level.region_id,
            quantity=level.quantity,
            unit=level.unit,
            recorded_at=level.updated_at,
        ))
        level.quantity = quantity
        if unit:
            level.unit = unit
        level.updated_at = utc_now()
        db.commit()
    except Exception:
        db.rollback()
        logger.error(f"{kind.name} update rolled back", level_id=level_id, exc_info=True)
        raise
    db.refresh(level)
    return level


def delete_level(db: Session, kind: LevelKind, level_id: int) -> None:
    level = get_level(db, kind, level_id)
    db.delete(level)
    db.commit()


def level_history(db: Session, kind: LevelKind, commodity_id: int, region_id: int) -> list[LevelPoint]:
    """Archived levels oldest first, then the live level.

    Raises NotFoundError when the pair has no live level.
    """
    require_commodity_and_region(db, commodity_id, region_id)
    level = find_level(db, kind, commodity_id, region_id)
    if level is None:
        raise NotFoundError(f"{kind.name} not found for commodity and region")

    history = kind.history_model
    archived = db.query(history).filter(
        history.commodity_id == commodity_id,
        history.region_id == region_id,
    ).order_by(history.recorded_at.asc(), history.id.asc()).all()

    series = [
        LevelPoint(h.commodity_id, h.region_id, h.quantity, h.unit, h.recorded_at)
        for h in archived
    ]
    series.append(LevelPoint(level.commodity_id, level.region_id, level.quantity, level.unit, level.updated_at, current=True))
    return series


__all__ = [
    "LevelKind",
    "LevelPoint",
    "SUPPLY",
    "DEMAND",
    "get_level",
    "find_level",
    "list_levels",
    "create_level",
    "update_level",
    "delete_level",
    "level_history",
]

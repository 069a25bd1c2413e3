"""
Supply endpoints: live supply per commodity and region, and its history.
"""
from typing import List
from fastapi import APIRouter, Depends, status, Query, Request
from sqlalchemy.orm import Session
import time
from farm_market.api.deps import get_db, get_current_user
from farm_market.models.schemas.base import ResponseBase
from farm_market.models.schemas.levels import SupplyCreate, SupplyRead, SupplyUpdate, LevelHistoryEntry
from farm_market.services import market_levels
from farm_market.services.market_levels import SUPPLY
from farm_market.utils import get_logger, log_business_event, log_performance
from farm_market.utils.observability import request_id_of

router = APIRouter()
logger = get_logger(__name__)

@router.post(
    "/",
    response_model=SupplyRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create supply",
    description="Record the available quantity of a commodity in a region (one per pair)"
)
async def create_supply(
    supply_data: SupplyCreate,
    request: Request,
    user=Depends(get_current_user),
    db: Session = Depends(get_db)
) -> SupplyRead:
    start_time = time.time()
    request_id = request_id_of(request)

    logger.info(
        "Supply creation started",
        commodity_id=supply_data.commodity_id,
        region_id=supply_data.region_id,
        user_id=user.id,
        request_id=request_id
    )
    supply = market_levels.create_level(
        db, SUPPLY,
        supply_data.commodity_id,
        supply_data.region_id,
        supply_data.quantity,
        supply_data.unit,
    )

    log_business_event(
        event_type="supply_created",
        details={
            "supply_id": supply.id,
            "commodity_id": supply.commodity_id,
            "region_id": supply.region_id,
            "quantity": float(supply.quantity),
        },
        user_id=user.id,
        request_id=request_id
    )
    log_performance(
        operation="create_supply",
        duration_ms=(time.time() - start_time) * 1000,
        additional_data={"supply_id": supply.id}
    )
    return SupplyRead.model_validate(supply)

@router.get(
    "/",
    response_model=List[SupplyRead],
    summary="List supplies"
)
async def list_supplies(
    user=Depends(get_current_user),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db)
) -> List[SupplyRead]:
    supplies = market_levels.list_levels(db, SUPPLY, skip=skip, limit=limit)
    return [SupplyRead.model_validate(s) for s in supplies]

@router.get(
    "/commodity/{commodity_id}/region/{region_id}",
    response_model=List[LevelHistoryEntry],
    summary="Supply history",
    description="Archived supply levels in chronological order followed by the current level"
)
async def get_supply_history(
    commodity_id: int,
    region_id: int,
    user=Depends(get_current_user),
    db: Session = Depends(get_db)
) -> List[LevelHistoryEntry]:
    series = market_levels.level_history(db, SUPPLY, commodity_id, region_id)
    return [
        LevelHistoryEntry(
            commodity_id=point.commodity_id,
            region_id=point.region_id,
            quantity=float(point.quantity),
            unit=point.unit,
            recorded_at=point.recorded_at,
            current=point.current,
        )
        for point in series
    ]

@router.get(
    "/commodity/{commodity_id}",
    response_model=List[SupplyRead],
    summary="Supplies of a commodity across regions"
)
async def list_supplies_by_commodity(
    commodity_id: int,
    user=Depends(get_current_user),
    db: Session = Depends(get_db)
) -> List[SupplyRead]:
    supplies = market_levels.list_levels(db, SUPPLY, commodity_id=commodity_id, limit=1000)
    return [SupplyRead.model_validate(s) for s in supplies]

@router.get(
    "/region/{region_id}",
    response_model=List[SupplyRead],
    summary="Supplies in a region across commodities"
)
async def list_supplies_by_region(
    region_id: int,
    user=Depends(get_current_user),
    db: Session = Depends(get_db)
) -> List[SupplyRead]:
    supplies = market_levels.list_levels(db, SUPPLY, region_id=region_id, limit=1000)
    return [SupplyRead.model_validate(s) for s in supplies]

@router.get(
    "/{supply_id}",
    response_model=SupplyRead,
    summary="Get supply"
)
async def get_supply(
    supply_id: int,
    user=Depends(get_current_user),
    db: Session = Depends(get_db)
) -> SupplyRead:
    return SupplyRead.model_validate(market_levels.get_level(db, SUPPLY, supply_id))

@router.patch(
    "/{supply_id}",
    response_model=SupplyRead,
    summary="Update supply",
    description="Replace the current quantity; the previous value is archived into supply history"
)
async def update_supply(
    supply_id: int,
    supply_data: SupplyUpdate,
    request: Request,
    user=Depends(get_current_user),
    db: Session = Depends(get_db)
) -> SupplyRead:
    supply = market_levels.update_level(db, SUPPLY, supply_id, supply_data.quantity, supply_data.unit)

    log_business_event(
        event_type="supply_updated",
        details={"supply_id": supply.id, "new_quantity": float(supply.quantity)},
        user_id=user.id,
        request_id=request_id_of(request)
    )
    return SupplyRead.model_validate(supply)

@router.delete(
    "/{supply_id}",
    response_model=ResponseBase,
    summary="Delete supply",
    description="Remove the current supply of a pair; its history is kept"
)
async def delete_supply(
    supply_id: int,
    request: Request,
    user=Depends(get_current_user),
    db: Session = Depends(get_db)
) -> ResponseBase:
    market_levels.delete_level(db, SUPPLY, supply_id)

    log_business_event(
        event_type="supply_deleted",
        details={"supply_id": supply_id},
        user_id=user.id,
        request_id=request_id_of(request)
    )
    return ResponseBase(message=f"Supply {supply_id} deleted")

"""
Demand endpoints: live demand per commodity and region, and its history.
"""
from typing import List
from fastapi import APIRouter, Depends, status, Query, Request
from sqlalchemy.orm import Session
import time
from farm_market.api.deps import get_db, get_current_user
from farm_market.models.schemas.base import ResponseBase
from farm_market.models.schemas.levels import DemandCreate, DemandRead, DemandUpdate, LevelHistoryEntry
from farm_market.services import market_levels
from farm_market.services.market_levels import DEMAND
from farm_market.utils import get_logger, log_business_event, log_performance
from farm_market.utils.observability import request_id_of

router = APIRouter()
logger = get_logger(__name__)

@router.post(
    "/",
    response_model=DemandRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create demand",
    description="Record the requested quantity of a commodity in a region (one per pair)"
)
async def create_demand(
    demand_data: DemandCreate,
    request: Request,
    user=Depends(get_current_user),
    db: Session = Depends(get_db)
) -> DemandRead:
    start_time = time.time()
    request_id = request_id_of(request)

    logger.info(
        "Demand creation started",
        commodity_id=demand_data.commodity_id,
        region_id=demand_data.region_id,
        user_id=user.id,
        request_id=request_id
    )
    demand = market_levels.create_level(
        db, DEMAND,
        demand_data.commodity_id,
        demand_data.region_id,
        demand_data.quantity,
        demand_data.unit,
    )

    log_business_event(
        event_type="demand_created",
        details={
            "demand_id": demand.id,
            "commodity_id": demand.commodity_id,
            "region_id": demand.region_id,
            "quantity": float(demand.quantity),
        },
        user_id=user.id,
        request_id=request_id
    )
    log_performance(
        operation="create_demand",
        duration_ms=(time.time() - start_time) * 1000,
        additional_data={"demand_id": demand.id}
    )
    return DemandRead.model_validate(demand)

@router.get(
    "/",
    response_model=List[DemandRead],
    summary="List demands"
)
async def list_demands(
    user=Depends(get_current_user),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db)
) -> List[DemandRead]:
    demands = market_levels.list_levels(db, DEMAND, skip=skip, limit=limit)
    return [DemandRead.model_validate(s) for s in demands]

@router.get(
    "/commodity/{commodity_id}/region/{region_id}",
    response_model=List[LevelHistoryEntry],
    summary="Demand history",
    description="Archived demand levels in chronological order followed by the current level"
)
async def get_demand_history(
    commodity_id: int,
    region_id: int,
    user=Depends(get_current_user),
    db: Session = Depends(get_db)
) -> List[LevelHistoryEntry]:
    series = market_levels.level_history(db, DEMAND, commodity_id, region_id)
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
    response_model=List[DemandRead],
    summary="Demands of a commodity across regions"
)
async def list_demands_by_commodity(
    commodity_id: int,
    user=Depends(get_current_user),
    db: Session = Depends(get_db)
) -> List[DemandRead]:
    demands = market_levels.list_levels(db, DEMAND, commodity_id=commodity_id, limit=1000)
    return [DemandRead.model_validate(s) for s in demands]

@router.get(
    "/region/{region_id}",
    response_model=List[DemandRead],
    summary="Demands in a region across commodities"
)
async def list_demands_by_region(
    region_id: int,
    user=Depends(get_current_user),
    db: Session = Depends(get_db)
) -> List[DemandRead]:
    demands = market_levels.list_levels(db, DEMAND, region_id=region_id, limit=1000)
    return [DemandRead.model_validate(s) for s in demands]

@router.get(
    "/{demand_id}",
    response_model=DemandRead,
    summary="Get demand"
)
async def get_demand(
    demand_id: int,
    user=Depends(get_current_user),
    db: Session = Depends(get_db)
) -> DemandRead:
    return DemandRead.model_validate(market_levels.get_level(db, DEMAND, demand_id))

@router.patch(
    "/{demand_id}",
    response_model=DemandRead,
    summary="Update demand",
    description="Replace the current quantity; the previous value is archived into demand history"
)
async def update_demand(
    demand_id: int,
    demand_data: DemandUpdate,
    request: Request,
    user=Depends(get_current_user),
    db: Session = Depends(get_db)
) -> DemandRead:
    demand = market_levels.update_level(db, DEMAND, demand_id, demand_data.quantity, demand_data.unit)

    log_business_event(
        event_type="demand_updated",
        details={"demand_id": demand.id, "new_quantity": float(demand.quantity)},
        user_id=user.id,
        request_id=request_id_of(request)
    )
    return DemandRead.model_validate(demand)

@router.delete(
    "/{demand_id}",
    response_model=ResponseBase,
    summary="Delete demand",
    description="Remove the current demand of a pair; its history is kept"
)
async def delete_demand(
    demand_id: int,
    request: Request,
    user=Depends(get_current_user),
    db: Session = Depends(get_db)
) -> ResponseBase:
    market_levels.delete_level(db, DEMAND, demand_id)

    log_business_event(
        event_type="demand_deleted",
        details={"demand_id": demand_id},
        user_id=user.id,
        request_id=request_id_of(request)
    )
    return ResponseBase(message=f"Demand {demand_id} deleted")

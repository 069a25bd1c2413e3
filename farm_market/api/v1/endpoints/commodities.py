"""
Commodity catalogue endpoints.
"""
from typing import List
from fastapi import APIRouter, Depends, status, Query, Request
from sqlalchemy.orm import Session
import time
from farm_market.api.deps import get_db, get_current_user, require_admin
from farm_market.errors import ConflictError, NotFoundError
from farm_market.models.db import Commodity, Price, Supply, Demand, Harvest
from farm_market.models.schemas.catalog import CommodityCreate, CommodityRead, CommodityUpdate
from farm_market.models.schemas.base import ResponseBase
from farm_market.utils import get_logger, log_business_event, log_performance
from farm_market.utils.observability import request_id_of

router = APIRouter()
logger = get_logger(__name__)

def _get_commodity(db: Session, commodity_id: int) -> Commodity:
    commodity = db.get(Commodity, commodity_id)
    if commodity is None:
        raise NotFoundError("commodity not found")
    return commodity

def _ensure_unique_name(db: Session, name: str, exclude_id: int | None = None) -> None:
    query = db.query(Commodity).filter(Commodity.name == name)
    if exclude_id is not None:
        query = query.filter(Commodity.id != exclude_id)
    if query.first():
        raise ConflictError(f"Commodity with name '{name}' already exists")

@router.post(
    "/",
    response_model=CommodityRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create commodity",
    description="Add a commodity to the catalogue (admin only)"
)
async def create_commodity(
    commodity_data: CommodityCreate,
    request: Request,
    admin=Depends(require_admin),
    db: Session = Depends(get_db)
) -> CommodityRead:
    start_time = time.time()
    request_id = request_id_of(request)

    logger.info(
        "Commodity creation started",
        commodity_name=commodity_data.name,
        admin_id=admin.id,
        request_id=request_id
    )
    _ensure_unique_name(db, commodity_data.name)

    commodity = Commodity(name=commodity_data.name, description=commodity_data.description)
    db.add(commodity)
    db.commit()
    db.refresh(commodity)

    log_business_event(
        event_type="commodity_created",
        details={"commodity_id": commodity.id, "commodity_name": commodity.name},
        user_id=admin.id,
        request_id=request_id
    )
    log_performance(
        operation="create_commodity",
        duration_ms=(time.time() - start_time) * 1000,
        additional_data={"commodity_id": commodity.id}
    )
    return CommodityRead.model_validate(commodity)

@router.get(
    "/",
    response_model=List[CommodityRead],
    summary="List commodities"
)
async def list_commodities(
    user=Depends(get_current_user),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db)
) -> List[CommodityRead]:
    commodities = db.query(Commodity).order_by(Commodity.id).offset(skip).limit(limit).all()
    return [CommodityRead.model_validate(c) for c in commodities]

@router.get(
    "/{commodity_id}",
    response_model=CommodityRead,
    summary="Get commodity"
)
async def get_commodity(
    commodity_id: int,
    user=Depends(get_current_user),
    db: Session = Depends(get_db)
) -> CommodityRead:
    return CommodityRead.model_validate(_get_commodity(db, commodity_id))

@router.patch(
    "/{commodity_id}",
    response_model=CommodityRead,
    summary="Update commodity",
    description="Rename or re-describe a commodity (admin only)"
)
async def update_commodity(
    commodity_id: int,
    commodity_data: CommodityUpdate,
    request: Request,
    admin=Depends(require_admin),
    db: Session = Depends(get_db)
) -> CommodityRead:
    request_id = request_id_of(request)
    commodity = _get_commodity(db, commodity_id)

    changes = commodity_data.model_dump(exclude_unset=True)
    if changes.get("name") and changes["name"] != commodity.name:
        _ensure_unique_name(db, changes["name"], exclude_id=commodity.id)
    for field, value in changes.items():
        setattr(commodity, field, value)
    db.commit()
    db.refresh(commodity)

    logger.info(
        "Commodity updated",
        commodity_id=commodity.id,
        updated_fields=list(changes),
        request_id=request_id
    )
    return CommodityRead.model_validate(commodity)

@router.delete(
    "/{commodity_id}",
    response_model=ResponseBase,
    summary="Delete commodity",
    description="Delete a commodity that has no prices, supplies, demands or harvests (admin only)"
)
async def delete_commodity(
    commodity_id: int,
    request: Request,
    admin=Depends(require_admin),
    db: Session = Depends(get_db)
) -> ResponseBase:
    request_id = request_id_of(request)
    commodity = _get_commodity(db, commodity_id)

    in_use = (
        db.query(Price.id).filter(Price.commodity_id == commodity.id).first() is not None
        or db.query(Supply.id).filter(Supply.commodity_id == commodity.id).first() is not None
        or db.query(Demand.id).filter(Demand.commodity_id == commodity.id).first() is not None
        or db.query(Harvest.id).filter(Harvest.commodity_id == commodity.id).first() is not None
    )
    if in_use:
        raise ConflictError("Commodity still has market data")

    db.delete(commodity)
    db.commit()

    log_business_event(
        event_type="commodity_deleted",
        details={"commodity_id": commodity_id},
        user_id=admin.id,
        request_id=request_id
    )
    return ResponseBase(message=f"Commodity {commodity_id} deleted")

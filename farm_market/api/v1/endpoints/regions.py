"""
Region catalogue endpoints.
"""
from typing import List
from fastapi import APIRouter, Depends, status, Query, Request
from sqlalchemy.orm import Session
from farm_market.api.deps import get_db, get_current_user, require_admin
from farm_market.errors import ConflictError, NotFoundError
from farm_market.models.db import Region, Price, Supply, Demand, Harvest
from farm_market.models.schemas.catalog import RegionCreate, RegionRead, RegionUpdate
from farm_market.models.schemas.base import ResponseBase
from farm_market.utils import get_logger, log_business_event
from farm_market.utils.observability import request_id_of

router = APIRouter()
logger = get_logger(__name__)

def _get_region(db: Session, region_id: int) -> Region:
    region = db.get(Region, region_id)
    if region is None:
        raise NotFoundError("region not found")
    return region

def _ensure_unique_name(db: Session, name: str, exclude_id: int | None = None) -> None:
    query = db.query(Region).filter(Region.name == name)
    if exclude_id is not None:
        query = query.filter(Region.id != exclude_id)
    if query.first():
        raise ConflictError(f"Region with name '{name}' already exists")

@router.post(
    "/",
    response_model=RegionRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create region",
    description="Add a region to the catalogue (admin only)"
)
async def create_region(
    region_data: RegionCreate,
    request: Request,
    admin=Depends(require_admin),
    db: Session = Depends(get_db)
) -> RegionRead:
    request_id = request_id_of(request)
    _ensure_unique_name(db, region_data.name)

    region = Region(name=region_data.name, province=region_data.province)
    db.add(region)
    db.commit()
    db.refresh(region)

    log_business_event(
        event_type="region_created",
        details={"region_id": region.id, "region_name": region.name},
        user_id=admin.id,
        request_id=request_id
    )
    return RegionRead.model_validate(region)

@router.get(
    "/",
    response_model=List[RegionRead],
    summary="List regions"
)
async def list_regions(
    user=Depends(get_current_user),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db)
) -> List[RegionRead]:
    regions = db.query(Region).order_by(Region.id).offset(skip).limit(limit).all()
    return [RegionRead.model_validate(r) for r in regions]

@router.get(
    "/{region_id}",
    response_model=RegionRead,
    summary="Get region"
)
async def get_region(
    region_id: int,
    user=Depends(get_current_user),
    db: Session = Depends(get_db)
) -> RegionRead:
    return RegionRead.model_validate(_get_region(db, region_id))

@router.patch(
    "/{region_id}",
    response_model=RegionRead,
    summary="Update region",
    description="Rename a region or change its province (admin only)"
)
async def update_region(
    region_id: int,
    region_data: RegionUpdate,
    request: Request,
    admin=Depends(require_admin),
    db: Session = Depends(get_db)
) -> RegionRead:
    region = _get_region(db, region_id)

    changes = region_data.model_dump(exclude_unset=True)
    if changes.get("name") and changes["name"] != region.name:
        _ensure_unique_name(db, changes["name"], exclude_id=region.id)
    for field, value in changes.items():
        setattr(region, field, value)
    db.commit()
    db.refresh(region)

    logger.info(
        "Region updated",
        region_id=region.id,
        updated_fields=list(changes),
        request_id=request_id_of(request)
    )
    return RegionRead.model_validate(region)

@router.delete(
    "/{region_id}",
    response_model=ResponseBase,
    summary="Delete region",
    description="Delete a region that has no prices, supplies, demands or harvests (admin only)"
)
async def delete_region(
    region_id: int,
    request: Request,
    admin=Depends(require_admin),
    db: Session = Depends(get_db)
) -> ResponseBase:
    region = _get_region(db, region_id)

    in_use = (
        db.query(Price.id).filter(Price.region_id == region.id).first() is not None
        or db.query(Supply.id).filter(Supply.region_id == region.id).first() is not None
        or db.query(Demand.id).filter(Demand.region_id == region.id).first() is not None
        or db.query(Harvest.id).filter(Harvest.region_id == region.id).first() is not None
    )
    if in_use:
        raise ConflictError("Region still has market data")

    db.delete(region)
    db.commit()

    log_business_event(
        event_type="region_deleted",
        details={"region_id": region_id},
        user_id=admin.id,
        request_id=request_id_of(request)
    )
    return ResponseBase(message=f"Region {region_id} deleted")

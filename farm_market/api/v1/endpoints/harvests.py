"""
Harvest endpoints and harvest reports.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session
import time
from farm_market.api.deps import get_db, get_current_user, get_report_coordinator
from farm_market.api.responses import report_file_response
from farm_market.errors import NotFoundError
from farm_market.models.db import Harvest, User
from farm_market.models.db.enums import ReportType, UserRole
from farm_market.models.schemas.base import ResponseBase
from farm_market.models.schemas.market import HarvestCreate, HarvestRead
from farm_market.models.schemas.reports import ReportAcknowledgement
from farm_market.services.report_coordinator import ReportCoordinator
from farm_market.services.report_datasets import require_commodity_and_region
from farm_market.utils import get_logger, log_business_event, log_performance
from farm_market.utils.observability import request_id_of

router = APIRouter()
logger = get_logger(__name__)

@router.post(
    "/",
    response_model=HarvestRead,
    status_code=status.HTTP_201_CREATED,
    summary="Record harvest",
    description="Record a harvest against the calling user"
)
async def create_harvest(
    harvest_data: HarvestCreate,
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> HarvestRead:
    start_time = time.time()
    request_id = request_id_of(request)

    require_commodity_and_region(db, harvest_data.commodity_id, harvest_data.region_id)
    harvest = Harvest(
        commodity_id=harvest_data.commodity_id,
        region_id=harvest_data.region_id,
        user_id=user.id,
        quantity=harvest_data.quantity,
        unit=harvest_data.unit,
        harvest_date=harvest_data.harvest_date,
    )
    db.add(harvest)
    db.commit()
    db.refresh(harvest)

    log_business_event(
        event_type="harvest_recorded",
        details={
            "harvest_id": harvest.id,
            "commodity_id": harvest.commodity_id,
            "region_id": harvest.region_id,
            "quantity": float(harvest.quantity),
        },
        user_id=user.id,
        request_id=request_id
    )
    log_performance(
        operation="create_harvest",
        duration_ms=(time.time() - start_time) * 1000,
        additional_data={"harvest_id": harvest.id}
    )
    return HarvestRead.model_validate(harvest)

@router.get(
    "/",
    response_model=List[HarvestRead],
    summary="List harvests"
)
async def list_harvests(
    user=Depends(get_current_user),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db)
) -> List[HarvestRead]:
    harvests = db.query(Harvest).order_by(Harvest.harvest_date.desc(), Harvest.id.desc()).offset(skip).limit(limit).all()
    return [HarvestRead.model_validate(h) for h in harvests]

@router.post(
    "/commodity/{commodity_id}/region/{region_id}/download",
    response_model=ReportAcknowledgement,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Generate harvest report",
    description="Start rendering an xlsx harvest report; poll download_url for the file"
)
async def generate_harvest_report(
    commodity_id: int,
    region_id: int,
    request: Request,
    start_date: Optional[str] = Query(None, description="YYYY-MM-DD, inclusive"),
    end_date: Optional[str] = Query(None, description="YYYY-MM-DD, inclusive"),
    user=Depends(get_current_user),
    coordinator: ReportCoordinator = Depends(get_report_coordinator),
    db: Session = Depends(get_db)
) -> ReportAcknowledgement:
    start_time = time.time()
    request_id = request_id_of(request)

    ack = coordinator.start_generation(
        db,
        ReportType.HARVESTS,
        commodity_id,
        region_id,
        start_date,
        end_date,
        correlation_id=request_id,
    )

    log_business_event(
        event_type="report_requested",
        details={"report_type": ReportType.HARVESTS.value, "key": ack.key},
        user_id=user.id,
        request_id=request_id
    )
    log_performance(
        operation="trigger_harvest_report",
        duration_ms=(time.time() - start_time) * 1000,
        additional_data={"key": ack.key}
    )
    return ReportAcknowledgement(message=ack.message, download_url=ack.download_url)

@router.get(
    "/commodity/{commodity_id}/region/{region_id}/download/file",
    response_class=StreamingResponse,
    summary="Fetch harvest report",
    description="Newest generated report for these parameters, or 404 while it is not ready"
)
async def download_harvest_report(
    commodity_id: int,
    region_id: int,
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    user=Depends(get_current_user),
    coordinator: ReportCoordinator = Depends(get_report_coordinator)
) -> StreamingResponse:
    report = coordinator.fetch_generated_file(
        ReportType.HARVESTS, commodity_id, region_id, start_date, end_date
    )
    return report_file_response(coordinator.store, report)

@router.get(
    "/commodity/{commodity_id}/region/{region_id}",
    response_model=List[HarvestRead],
    summary="Harvests for a commodity in a region"
)
async def list_harvests_by_commodity_and_region(
    commodity_id: int,
    region_id: int,
    user=Depends(get_current_user),
    db: Session = Depends(get_db)
) -> List[HarvestRead]:
    require_commodity_and_region(db, commodity_id, region_id)
    harvests = db.query(Harvest).filter(
        Harvest.commodity_id == commodity_id,
        Harvest.region_id == region_id,
    ).order_by(Harvest.harvest_date.asc(), Harvest.id.asc()).all()
    return [HarvestRead.model_validate(h) for h in harvests]

@router.get(
    "/{harvest_id}",
    response_model=HarvestRead,
    summary="Get harvest"
)
async def get_harvest(
    harvest_id: int,
    user=Depends(get_current_user),
    db: Session = Depends(get_db)
) -> HarvestRead:
    harvest = db.get(Harvest, harvest_id)
    if harvest is None:
        raise NotFoundError("harvest not found")
    return HarvestRead.model_validate(harvest)

@router.delete(
    "/{harvest_id}",
    response_model=ResponseBase,
    summary="Delete harvest",
    description="Delete a harvest (its owner or an admin)"
)
async def delete_harvest(
    harvest_id: int,
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> ResponseBase:
    request_id = request_id_of(request)
    harvest = db.get(Harvest, harvest_id)
    if harvest is None:
        raise NotFoundError("harvest not found")

    if user.role != UserRole.ADMIN and harvest.user_id != user.id:
        logger.warning(
            "Harvest deletion denied: not owner",
            harvest_id=harvest_id,
            user_id=user.id,
            request_id=request_id
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the owner or an admin can delete this harvest"
        )

    db.delete(harvest)
    db.commit()

    log_business_event(
        event_type="harvest_deleted",
        details={"harvest_id": harvest_id},
        user_id=user.id,
        request_id=request_id
    )
    return ResponseBase(message=f"Harvest {harvest_id} deleted")

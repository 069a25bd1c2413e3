"""
Price endpoints: current prices, price history and price history reports.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, status, Query, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session
import time
from farm_market.api.deps import get_db, get_current_user, require_admin, get_report_coordinator
from farm_market.api.responses import report_file_response
from farm_market.config import DEFAULT_PRICE_UNIT
from farm_market.errors import ConflictError, NotFoundError
from farm_market.models.db import Price, PriceHistory
from farm_market.models.db.enums import ReportType
from farm_market.models.schemas.base import ResponseBase
from farm_market.models.schemas.market import PriceCreate, PriceRead, PriceUpdate, PriceHistoryEntry
from farm_market.models.schemas.reports import ReportAcknowledgement
from farm_market.services.report_coordinator import ReportCoordinator
from farm_market.services.report_datasets import load_price_series, require_commodity_and_region
from farm_market.utils import get_logger, log_business_event, log_performance, utc_now
from farm_market.utils.observability import request_id_of

router = APIRouter()
logger = get_logger(__name__)

def _get_price(db: Session, price_id: int) -> Price:
    price = db.get(Price, price_id)
    if price is None:
        raise NotFoundError("price not found")
    return price

@router.post(
    "/",
    response_model=PriceRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create price",
    description="Set the current price of a commodity in a region (admin only)"
)
async def create_price(
    price_data: PriceCreate,
    request: Request,
    admin=Depends(require_admin),
    db: Session = Depends(get_db)
) -> PriceRead:
    start_time = time.time()
    request_id = request_id_of(request)

    require_commodity_and_region(db, price_data.commodity_id, price_data.region_id)
    existing = db.query(Price).filter(
        Price.commodity_id == price_data.commodity_id,
        Price.region_id == price_data.region_id,
    ).first()
    if existing:
        logger.warning(
            "Price creation failed: pair already priced",
            existing_price_id=existing.id,
            request_id=request_id
        )
        raise ConflictError("Price for this commodity and region already exists")

    now = utc_now()
    price = Price(
        commodity_id=price_data.commodity_id,
        region_id=price_data.region_id,
        price=price_data.price,
        unit=price_data.unit or DEFAULT_PRICE_UNIT,
        created_at=now,
        updated_at=now,
    )
    db.add(price)
    db.commit()
    db.refresh(price)

    log_business_event(
        event_type="price_created",
        details={
            "price_id": price.id,
            "commodity_id": price.commodity_id,
            "region_id": price.region_id,
            "price": float(price.price),
        },
        user_id=admin.id,
        request_id=request_id
    )
    log_performance(
        operation="create_price",
        duration_ms=(time.time() - start_time) * 1000,
        additional_data={"price_id": price.id}
    )
    return PriceRead.model_validate(price)

@router.get(
    "/",
    response_model=List[PriceRead],
    summary="List current prices"
)
async def list_prices(
    user=Depends(get_current_user),
    commodity_id: Optional[int] = Query(None, description="Filter by commodity"),
    region_id: Optional[int] = Query(None, description="Filter by region"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db)
) -> List[PriceRead]:
    query = db.query(Price)
    if commodity_id is not None:
        query = query.filter(Price.commodity_id == commodity_id)
    if region_id is not None:
        query = query.filter(Price.region_id == region_id)
    prices = query.order_by(Price.id).offset(skip).limit(limit).all()
    return [PriceRead.model_validate(p) for p in prices]

@router.get(
    "/history/commodity/{commodity_id}/region/{region_id}",
    response_model=List[PriceHistoryEntry],
    summary="Price history",
    description="Archived prices in chronological order followed by the current price"
)
async def get_price_history(
    commodity_id: int,
    region_id: int,
    user=Depends(get_current_user),
    db: Session = Depends(get_db)
) -> List[PriceHistoryEntry]:
    require_commodity_and_region(db, commodity_id, region_id)
    series = load_price_series(db, commodity_id, region_id)
    return [
        PriceHistoryEntry(
            commodity_id=point.commodity_id,
            region_id=point.region_id,
            price=float(point.price),
            unit=point.unit,
            recorded_at=point.recorded_at,
            current=point.current,
        )
        for point in series
    ]

@router.post(
    "/history/commodity/{commodity_id}/region/{region_id}/download",
    response_model=ReportAcknowledgement,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Generate price history report",
    description="Start rendering an xlsx price history report; poll download_url for the file"
)
async def generate_price_history_report(
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
        ReportType.PRICE_HISTORY,
        commodity_id,
        region_id,
        start_date,
        end_date,
        correlation_id=request_id,
    )

    log_business_event(
        event_type="report_requested",
        details={"report_type": ReportType.PRICE_HISTORY.value, "key": ack.key},
        user_id=user.id,
        request_id=request_id
    )
    log_performance(
        operation="trigger_price_history_report",
        duration_ms=(time.time() - start_time) * 1000,
        additional_data={"key": ack.key}
    )
    return ReportAcknowledgement(message=ack.message, download_url=ack.download_url)

@router.get(
    "/history/commodity/{commodity_id}/region/{region_id}/download/file",
    response_class=StreamingResponse,
    summary="Fetch price history report",
    description="Newest generated report for these parameters, or 404 while it is not ready"
)
async def download_price_history_report(
    commodity_id: int,
    region_id: int,
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    user=Depends(get_current_user),
    coordinator: ReportCoordinator = Depends(get_report_coordinator)
) -> StreamingResponse:
    report = coordinator.fetch_generated_file(
        ReportType.PRICE_HISTORY, commodity_id, region_id, start_date, end_date
    )
    return report_file_response(coordinator.store, report)

@router.get(
    "/commodity/{commodity_id}/region/{region_id}",
    response_model=PriceRead,
    summary="Current price for a commodity in a region"
)
async def get_price_by_commodity_and_region(
    commodity_id: int,
    region_id: int,
    user=Depends(get_current_user),
    db: Session = Depends(get_db)
) -> PriceRead:
    require_commodity_and_region(db, commodity_id, region_id)
    price = db.query(Price).filter(
        Price.commodity_id == commodity_id,
        Price.region_id == region_id,
    ).first()
    if price is None:
        raise NotFoundError("price not found for commodity and region")
    return PriceRead.model_validate(price)

@router.get(
    "/{price_id}",
    response_model=PriceRead,
    summary="Get price"
)
async def get_price(
    price_id: int,
    user=Depends(get_current_user),
    db: Session = Depends(get_db)
) -> PriceRead:
    return PriceRead.model_validate(_get_price(db, price_id))

@router.patch(
    "/{price_id}",
    response_model=PriceRead,
    summary="Update price",
    description="Replace the current price; the previous value is archived into price history (admin only)"
)
async def update_price(
    price_id: int,
    price_data: PriceUpdate,
    request: Request,
    admin=Depends(require_admin),
    db: Session = Depends(get_db)
) -> PriceRead:
    request_id = request_id_of(request)
    price = _get_price(db, price_id)
    previous = float(price.price)

    try:
        db.add(PriceHistory(
            commodity_id=price.commodity_id,
            region_id=price.region_id,
            price=price.price,
            unit=price.unit,
            recorded_at=price.updated_at,
        ))
        price.price = price_data.price
        if price_data.unit:
            price.unit = price_data.unit
        price.updated_at = utc_now()
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(price)

    log_business_event(
        event_type="price_updated",
        details={
            "price_id": price.id,
            "previous_price": previous,
            "new_price": float(price.price),
        },
        user_id=admin.id,
        request_id=request_id
    )
    return PriceRead.model_validate(price)

@router.delete(
    "/{price_id}",
    response_model=ResponseBase,
    summary="Delete price",
    description="Remove the current price of a pair; its history is kept (admin only)"
)
async def delete_price(
    price_id: int,
    request: Request,
    admin=Depends(require_admin),
    db: Session = Depends(get_db)
) -> ResponseBase:
    price = _get_price(db, price_id)
    db.delete(price)
    db.commit()

    log_business_event(
        event_type="price_deleted",
        details={"price_id": price_id},
        user_id=admin.id,
        request_id=request_id_of(request)
    )
    return ResponseBase(message=f"Price {price_id} deleted")

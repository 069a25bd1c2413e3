"""
Pydantic schemas for prices, price history and harvests.
"""
from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict

class PriceCreate(BaseModel):
    commodity_id: int = Field(gt=0)
    region_id: int = Field(gt=0)
    price: float = Field(gt=0)
    unit: Optional[str] = Field(None, min_length=1, max_length=20)

    model_config = ConfigDict(json_schema_extra={
        "example": {"commodity_id": 1, "region_id": 3, "price": 42000, "unit": "kg"}
    })

class PriceUpdate(BaseModel):
    price: float = Field(gt=0)
    unit: Optional[str] = Field(None, min_length=1, max_length=20)

class PriceRead(BaseModel):
    id: int
    commodity_id: int
    region_id: int
    price: float
    unit: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

class PriceHistoryEntry(BaseModel):
    """One point of the price time series; ``current`` marks the live price."""
    commodity_id: int
    region_id: int
    price: float
    unit: str
    recorded_at: datetime
    current: bool = False

class HarvestCreate(BaseModel):
    commodity_id: int = Field(gt=0)
    region_id: int = Field(gt=0)
    quantity: float = Field(gt=0)
    unit: str = Field("kg", min_length=1, max_length=20)
    harvest_date: date

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "commodity_id": 1,
            "region_id": 3,
            "quantity": 1250.5,
            "unit": "kg",
            "harvest_date": "2024-03-14"
        }
    })

class HarvestRead(BaseModel):
    id: int
    commodity_id: int
    region_id: int
    user_id: Optional[int]
    quantity: float
    unit: str
    harvest_date: date
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

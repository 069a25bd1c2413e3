"""
Pydantic schemas for supply and demand levels and their history.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict

class LevelCreate(BaseModel):
    commodity_id: int = Field(gt=0)
    region_id: int = Field(gt=0)
    quantity: float = Field(gt=0)
    unit: Optional[str] = Field(None, min_length=1, max_length=20)

    model_config = ConfigDict(json_schema_extra={
        "example": {"commodity_id": 1, "region_id": 3, "quantity": 5000, "unit": "kg"}
    })

class LevelUpdate(BaseModel):
    quantity: float = Field(gt=0)
    unit: Optional[str] = Field(None, min_length=1, max_length=20)

class LevelRead(BaseModel):
    id: int
    commodity_id: int
    region_id: int
    quantity: float
    unit: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

class LevelHistoryEntry(BaseModel):
    """One point of a supply or demand time series; ``current`` marks the live value."""
    commodity_id: int
    region_id: int
    quantity: float
    unit: str
    recorded_at: datetime
    current: bool = False

# Supply and demand share one shape
SupplyCreate = DemandCreate = LevelCreate
SupplyUpdate = DemandUpdate = LevelUpdate
SupplyRead = DemandRead = LevelRead

"""
Pydantic schemas for the commodity and region catalogues.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict

class CommodityCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)

    model_config = ConfigDict(json_schema_extra={
        "example": {"name": "Red Chili", "description": "Fresh red chili, grade A"}
    })

class CommodityUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)

class CommodityRead(BaseModel):
    id: int
    name: str
    description: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class RegionCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    province: Optional[str] = Field(None, max_length=100)

    model_config = ConfigDict(json_schema_extra={
        "example": {"name": "Bandung", "province": "West Java"}
    })

class RegionUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    province: Optional[str] = Field(None, max_length=100)

class RegionRead(BaseModel):
    id: int
    name: str
    province: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

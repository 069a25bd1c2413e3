"""
Pydantic schemas for user registration and profile reads.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, EmailStr, ConfigDict
from ..db.enums import UserRole

class UserCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    role: UserRole = UserRole.FARMER

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "name": "Siti Rahma",
            "email": "siti@example.com",
            "role": "FARMER"
        }
    })

class UserRead(BaseModel):
    id: int
    name: str
    email: str
    is_active: bool
    role: UserRole
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class UserCreated(UserRead):
    """Returned once on registration; the only response that carries the API key."""
    api_key: Optional[str]

from __future__ import annotations
"""SQLAlchemy model for market regions (a city within a province)."""
from typing import TYPE_CHECKING
from sqlalchemy import Integer, String, DateTime
from sqlalchemy.orm import relationship, Mapped, mapped_column

if TYPE_CHECKING:  # pragma: no cover
    from .prices import Price
    from .harvests import Harvest
from sqlalchemy.sql import func
from farm_market.database import Base

class Region(Base):
    __tablename__ = "regions"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String, unique=True, index=True)
    province: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    created_at: Mapped[DateTime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    prices: Mapped[list["Price"]] = relationship("Price", back_populates="region", cascade="all, delete-orphan")
    harvests: Mapped[list["Harvest"]] = relationship("Harvest", back_populates="region", cascade="all, delete-orphan")

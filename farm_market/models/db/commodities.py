from __future__ import annotations
"""SQLAlchemy model for tradeable commodities (rice, corn, chili...)."""
from typing import TYPE_CHECKING
from sqlalchemy import Integer, String, DateTime, Text
from sqlalchemy.orm import relationship, Mapped, mapped_column

if TYPE_CHECKING:  # pragma: no cover
    from .prices import Price
    from .harvests import Harvest
from sqlalchemy.sql import func
from farm_market.database import Base

class Commodity(Base):
    __tablename__ = "commodities"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String, unique=True, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[DateTime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[DateTime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    prices: Mapped[list["Price"]] = relationship("Price", back_populates="commodity", cascade="all, delete-orphan")
    harvests: Mapped[list["Harvest"]] = relationship("Harvest", back_populates="commodity", cascade="all, delete-orphan")

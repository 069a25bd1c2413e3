from __future__ import annotations
"""SQLAlchemy model for recorded harvests."""
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING
from sqlalchemy import Integer, String, Date, DateTime, Numeric, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship, Mapped, mapped_column

if TYPE_CHECKING:  # pragma: no cover
    from .commodities import Commodity
    from .regions import Region
    from .users import User
from sqlalchemy.sql import func
from farm_market.database import Base

class Harvest(Base):
    __tablename__ = "harvests"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    commodity_id: Mapped[int] = mapped_column(Integer, ForeignKey("commodities.id"), index=True)
    region_id: Mapped[int] = mapped_column(Integer, ForeignKey("regions.id"), index=True)
    user_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    quantity: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    unit: Mapped[str] = mapped_column(String, default="kg")
    harvest_date: Mapped[date] = mapped_column(Date, index=True)
    created_at: Mapped[DateTime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    commodity: Mapped["Commodity"] = relationship("Commodity", back_populates="harvests")
    region: Mapped["Region"] = relationship("Region", back_populates="harvests")
    user: Mapped["User | None"] = relationship("User", back_populates="harvests")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="harvest_quantity_positive"),
    )

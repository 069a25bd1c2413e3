from __future__ import annotations
"""Current demand (requested quantity) for a commodity per region, plus its archived history."""
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from sqlalchemy import Integer, String, DateTime, Numeric, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship, Mapped, mapped_column

if TYPE_CHECKING:  # pragma: no cover
    from .commodities import Commodity
    from .regions import Region
from sqlalchemy.sql import func
from farm_market.database import Base

class Demand(Base):
    __tablename__ = "demands"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    commodity_id: Mapped[int] = mapped_column(Integer, ForeignKey("commodities.id"), index=True)
    region_id: Mapped[int] = mapped_column(Integer, ForeignKey("regions.id"), index=True)
    quantity: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    unit: Mapped[str] = mapped_column(String, default="kg")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    commodity: Mapped["Commodity"] = relationship("Commodity")
    region: Mapped["Region"] = relationship("Region")

    __table_args__ = (
        UniqueConstraint("commodity_id", "region_id", name="uq_demand_commodity_region"),
        CheckConstraint("quantity > 0", name="demand_quantity_positive"),
    )

class DemandHistory(Base):
    __tablename__ = "demand_histories"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    commodity_id: Mapped[int] = mapped_column(Integer, ForeignKey("commodities.id"), index=True)
    region_id: Mapped[int] = mapped_column(Integer, ForeignKey("regions.id"), index=True)
    quantity: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    unit: Mapped[str] = mapped_column(String, default="kg")
    recorded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    archived_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

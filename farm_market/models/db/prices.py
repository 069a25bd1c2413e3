from __future__ import annotations
"""Current commodity price per region, plus its archived history."""
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from sqlalchemy import Integer, String, DateTime, Numeric, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship, Mapped, mapped_column

if TYPE_CHECKING:  # pragma: no cover
    from .commodities import Commodity
    from .regions import Region
from sqlalchemy.sql import func
from farm_market.database import Base

class Price(Base):
    __tablename__ = "prices"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    commodity_id: Mapped[int] = mapped_column(Integer, ForeignKey("commodities.id"), index=True)
    region_id: Mapped[int] = mapped_column(Integer, ForeignKey("regions.id"), index=True)
    price: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    unit: Mapped[str] = mapped_column(String, default="kg")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    # Effective time of the current value; archived into PriceHistory.recorded_at on update.
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    commodity: Mapped["Commodity"] = relationship("Commodity", back_populates="prices")
    region: Mapped["Region"] = relationship("Region", back_populates="prices")

    __table_args__ = (
        UniqueConstraint("commodity_id", "region_id", name="uq_price_commodity_region"),
    )

class PriceHistory(Base):
    __tablename__ = "price_histories"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    commodity_id: Mapped[int] = mapped_column(Integer, ForeignKey("commodities.id"), index=True)
    region_id: Mapped[int] = mapped_column(Integer, ForeignKey("regions.id"), index=True)
    price: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    unit: Mapped[str] = mapped_column(String, default="kg")
    recorded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    archived_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    commodity: Mapped["Commodity"] = relationship("Commodity")
    region: Mapped["Region"] = relationship("Region")

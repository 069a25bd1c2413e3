from .base import ResponseBase, ErrorResponse
from .users import UserCreate, UserRead, UserCreated
from .catalog import (
    CommodityCreate, CommodityUpdate, CommodityRead,
    RegionCreate, RegionUpdate, RegionRead,
)
from .market import (
    PriceCreate, PriceUpdate, PriceRead, PriceHistoryEntry,
    HarvestCreate, HarvestRead,
)
from .levels import (
    LevelCreate, LevelUpdate, LevelRead, LevelHistoryEntry,
    SupplyCreate, SupplyUpdate, SupplyRead,
    DemandCreate, DemandUpdate, DemandRead,
)
from .reports import ReportAcknowledgement

__all__ = [
    # Base
    "ResponseBase",
    "ErrorResponse",

    # Users
    "UserCreate",
    "UserRead",
    "UserCreated",

    # Catalogue
    "CommodityCreate",
    "CommodityUpdate",
    "CommodityRead",
    "RegionCreate",
    "RegionUpdate",
    "RegionRead",

    # Market data
    "PriceCreate",
    "PriceUpdate",
    "PriceRead",
    "PriceHistoryEntry",
    "HarvestCreate",
    "HarvestRead",

    # Supply and demand
    "LevelCreate",
    "LevelUpdate",
    "LevelRead",
    "LevelHistoryEntry",
    "SupplyCreate",
    "SupplyUpdate",
    "SupplyRead",
    "DemandCreate",
    "DemandUpdate",
    "DemandRead",

    # Reports
    "ReportAcknowledgement",
]

from .users import User
from .commodities import Commodity
from .regions import Region
from .prices import Price, PriceHistory
from .supplies import Supply, SupplyHistory
from .demands import Demand, DemandHistory
from .harvests import Harvest
from .enums import UserRole, ReportType

__all__ = [
    "User",
    "Commodity",
    "Region",
    "Price",
    "PriceHistory",
    "Supply",
    "SupplyHistory",
    "Demand",
    "DemandHistory",
    "Harvest",
    "UserRole",
    "ReportType",
]

"""
API v1 router initialization and setup.
"""
from fastapi import APIRouter
from .endpoints import users, commodities, regions, prices, supplies, demands, harvests

api_router = APIRouter()

api_router.include_router(
    users.router,
    prefix="/users",
    tags=["users"]
)

api_router.include_router(
    commodities.router,
    prefix="/commodities",
    tags=["commodities"]
)

api_router.include_router(
    regions.router,
    prefix="/regions",
    tags=["regions"]
)

api_router.include_router(
    prices.router,
    prefix="/prices",
    tags=["prices"]
)

api_router.include_router(
    supplies.router,
    prefix="/supplies",
    tags=["supplies"]
)

api_router.include_router(
    demands.router,
    prefix="/demands",
    tags=["demands"]
)

api_router.include_router(
    harvests.router,
    prefix="/harvests",
    tags=["harvests"]
)

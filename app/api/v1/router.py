"""API v1 router aggregating all endpoints."""

from fastapi import APIRouter

from app.api.v1 import availability, bookings, health

api_router = APIRouter()

# Health check
api_router.include_router(
    health.router,
    prefix="/health",
    tags=["health"],
)

# Availability
api_router.include_router(
    availability.router,
    prefix="/availability",
    tags=["availability"],
)

# Bookings
api_router.include_router(
    bookings.router,
    prefix="/bookings",
    tags=["bookings"],
)

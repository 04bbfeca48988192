"""
API v1 router aggregation.

WHAT: Combine all v1 endpoint routers
WHY: Single place to register all API routes
HOW: Include routers from endpoints with prefixes
"""

from fastapi import APIRouter

from .endpoints import status, master, messenger, calendar

# Create main v1 router
api_router = APIRouter()

# Include endpoint routers
api_router.include_router(
    status.router,
    prefix="/api/v1",
    tags=["status"]
)

api_router.include_router(
    master.router,
    prefix="/api/v1",
    tags=["master"]
)

api_router.include_router(
    messenger.router,
    prefix="/api/v1",
    tags=["messenger"]
)

api_router.include_router(
    calendar.router,
    prefix="/api/v1",
    tags=["calendar"]
)

"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from eventzen.api.routes import events, venues, bookings, payments, notifications

api_router = APIRouter(prefix="/api")
api_router.include_router(events.router)
api_router.include_router(venues.router)
api_router.include_router(bookings.router)
api_router.include_router(payments.router)
api_router.include_router(notifications.router)

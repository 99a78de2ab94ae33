"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from app.api.routes import events, registrations, tickets, check_in

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(events.router)
api_router.include_router(registrations.router)
api_router.include_router(tickets.router)
api_router.include_router(check_in.router)

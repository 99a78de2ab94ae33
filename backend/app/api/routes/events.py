"""
Event endpoints with Redis caching on list operations.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.event import EventCreate, EventResponse, EventListResponse
from app.services.event_service import create_event, get_event, list_events
from app.services.cache_service import get_cached_events, set_cached_events, invalidate_event_cache
from app.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/events", tags=["Events"])


@router.post("/", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(
    event_data: EventCreate,
    db: AsyncSession = Depends(get_db),
):
    """Create an event. Permission checks belong to the admin gateway in front of this service."""
    event = await create_event(db, event_data)
    await invalidate_event_cache()
    return event


@router.get("/", response_model=EventListResponse)
async def list_events_endpoint(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100, alias="pageSize"),
    upcoming_only: bool = Query(False, alias="upcomingOnly"),
    db: AsyncSession = Depends(get_db),
):
    """
    List events with pagination.
    Results are cached in Redis until an event is created or the TTL expires.
    """
    cached = await get_cached_events(page, page_size, upcoming_only)
    if cached:
        logger.info("events_list_cache_hit", page=page)
        cached["cached"] = True
        return EventListResponse.model_validate(cached)

    events, total = await list_events(db, page, page_size, upcoming_only)

    response = EventListResponse(
        events=[EventResponse.model_validate(e) for e in events],
        total=total,
        page=page,
        page_size=page_size,
        cached=False,
    )

    await set_cached_events(page, page_size, upcoming_only, response.model_dump(mode="json"))

    return response


@router.get("/{event_id}", response_model=EventResponse)
async def get_event_endpoint(
    event_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Get a single event by ID."""
    event = await get_event(db, event_id)
    return event

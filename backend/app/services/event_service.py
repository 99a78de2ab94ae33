"""
Event service: the read side used by registration and check-in, plus the
create/list operations of the admin collaborator.
"""

from datetime import datetime, timezone
from sqlalchemy import select, func, case
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.event import Event
from app.schemas.event import EventCreate
from app.services.errors import EventNotFound
from app.core.logging import get_logger

logger = get_logger(__name__)


async def create_event(db: AsyncSession, event_data: EventCreate) -> Event:
    event = Event(
        title=event_data.title,
        description=event_data.description,
        location=event_data.location,
        start_time=event_data.start_time,
        end_time=event_data.end_time,
        capacity=event_data.capacity,
        cost=event_data.cost,
        is_public=event_data.is_public,
        status=event_data.status.value,
    )
    db.add(event)
    await db.commit()

    logger.info("event_created", event_id=event.id, title=event.title, capacity=event.capacity)
    return event


async def get_event(db: AsyncSession, event_id: int) -> Event:
    """Get a single event by ID. Raises EventNotFound."""
    result = await db.execute(select(Event).where(Event.id == event_id))
    event = result.scalar_one_or_none()

    if not event:
        raise EventNotFound(f"Event {event_id} not found")
    return event


async def list_events(
    db: AsyncSession,
    page: int = 1,
    page_size: int = 20,
    upcoming_only: bool = False,
) -> tuple[list[Event], int]:
    """
    List events with pagination.
    Upcoming events come first, soonest first; past events follow, most recent first.
    """
    now = datetime.now(timezone.utc)
    query = select(Event)

    if upcoming_only:
        query = query.where(Event.start_time >= now)

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar()

    is_upcoming = Event.start_time >= now
    events_query = (
        query
        .order_by(
            case((is_upcoming, 0), else_=1),
            case((is_upcoming, Event.start_time), else_=None).asc(),
            Event.start_time.desc(),
        )
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    result = await db.execute(events_query)
    events = list(result.scalars().all())

    return events, total

"""
Events API endpoints for institutional events.

Provides endpoints for:
- Creating events (recurring Care events fan out into occurrences)
- Listing an institution's events in lifecycle order
- Listing the events that apply to a room
- Getting, patching and deleting single events

Design:
- Uses dependency injection for services
- Comprehensive error handling with meaningful HTTP status codes
- All endpoints use GUID format (ins_xxx, evt_xxx) for identifiers
- Events are always addressed through their owning institution
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from care_events.src.db.database import get_db
from care_events.src.models import EventStatus, EventType
from care_events.src.schemas.event import (
    EventCreate,
    EventListParams,
    EventListResponse,
    EventResponse,
    EventUpdate,
)
from care_events.src.services.event_service import EventLifecycleService, EventPage
from care_events.src.services.exceptions import NotFoundError, ValidationError
from care_events.src.utils.logging_config import get_logger, log_fields


logger = get_logger("api")

router = APIRouter(
    prefix="/institutions/{institution_guid}/events",
    tags=["Events"],
)


# ============================================================================
# Dependencies
# ============================================================================


def get_event_service(db: Session = Depends(get_db)) -> EventLifecycleService:
    """Create EventLifecycleService instance with dependencies."""
    return EventLifecycleService(db=db)


def get_list_params(
    take: Optional[int] = Query(default=None, ge=1, description="Page size"),
    skip: int = Query(default=0, ge=0, description="Number of events to skip"),
    type: Optional[EventType] = Query(default=None, description="Filter by event type"),
    status: Optional[EventStatus] = Query(default=None, description="Filter by event status"),
    start_date: Optional[datetime] = Query(
        default=None,
        description="Earliest start time (inclusive)",
    ),
    end_date: Optional[datetime] = Query(
        default=None,
        description="Latest start time (inclusive)",
    ),
    search: Optional[str] = Query(
        default=None,
        max_length=255,
        description="Case-insensitive match on name or location",
    ),
) -> EventListParams:
    """Collect listing query parameters."""
    return EventListParams(
        take=take,
        skip=skip,
        type=type,
        status=status,
        start_date=start_date,
        end_date=end_date,
        search=search,
    )


def _page_response(page: EventPage) -> EventListResponse:
    return EventListResponse(
        items=[
            EventResponse(**EventLifecycleService.build_event_response(event))
            for event in page.items
        ],
        total=page.total,
        take=page.take,
        skip=page.skip,
    )


# ============================================================================
# List Endpoints
# ============================================================================


@router.get(
    "",
    response_model=EventListResponse,
    summary="List events",
    description="List an institution's events, active events first",
)
async def list_events(
    institution_guid: str,
    params: EventListParams = Depends(get_list_params),
    event_service: EventLifecycleService = Depends(get_event_service),
) -> EventListResponse:
    """
    List events with filtering and pagination.

    Upcoming and Ongoing events come first by start time ascending,
    followed by Ended and Cancelled events by start time descending.

    Query Parameters:
        take: Page size (default 10)
        skip: Offset into the ordered result
        type: Event type
        status: Event status (matched after reconciliation)
        start_date / end_date: Inclusive bounds on start time
        search: Case-insensitive match on name or location

    Returns:
        Page of events with the total number of matches

    Example:
        GET /api/institutions/ins_01hgw2bbg.../events?type=Care&take=20
    """
    try:
        page = event_service.list_events(institution_guid, params)

        logger.info(
            "Listed events",
            extra=log_fields(institution_guid=institution_guid, total=page.total),
        )

        return _page_response(page)

    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )

    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    except Exception as e:
        logger.error(f"Error listing events: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list events",
        )


@router.get(
    "/room/{room_id}",
    response_model=EventListResponse,
    summary="List events for a room",
    description="List events that apply to a room, including institution-wide events",
)
async def list_events_by_room(
    institution_guid: str,
    room_id: str,
    params: EventListParams = Depends(get_list_params),
    event_service: EventLifecycleService = Depends(get_event_service),
) -> EventListResponse:
    """
    List the events that apply to a room, ordered by start time.

    Events without rooms apply to every room and are always included.

    Example:
        GET /api/institutions/ins_01hgw2bbg.../events/room/room-101
    """
    try:
        page = event_service.list_events_by_room(institution_guid, room_id, params)
        return _page_response(page)

    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )

    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    except Exception as e:
        logger.error(f"Error listing events for room {room_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list events",
        )


# ============================================================================
# Single Event Endpoints
# ============================================================================


@router.post(
    "",
    response_model=EventResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new event",
    description="Create an event; recurring Care events also create their occurrences",
)
async def create_event(
    institution_guid: str,
    event_data: EventCreate,
    event_service: EventLifecycleService = Depends(get_event_service),
) -> EventResponse:
    """
    Create a new event.

    Request Body:
        name: Display label (required)
        type: Care, Entertainment, Social, Visit or Other (required)
        start_time: Start timestamp (required)
        end_time: End timestamp, after start_time (required)
        location: Defaults to the institution name
        room_ids: Rooms the event applies to (empty = all rooms)
        care_configuration: {"subType", "frequency"}, required for Care events

    Returns:
        The created root event (201 Created)

    Raises:
        400: Rule violation (end before start, care configuration mismatch)
        404: Institution not found
        422: Malformed request body
    """
    try:
        event = event_service.create_event(institution_guid, event_data)

        logger.info("Created event", extra=log_fields(event_guid=event.guid))

        return EventResponse(**event_service.build_event_response(event))

    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )

    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    except Exception as e:
        logger.error(f"Error creating event: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create event",
        )


@router.get(
    "/{event_guid}",
    response_model=EventResponse,
    summary="Get event by GUID",
)
async def get_event(
    institution_guid: str,
    event_guid: str,
    event_service: EventLifecycleService = Depends(get_event_service),
) -> EventResponse:
    """
    Get an event with its status brought up to date.

    Raises:
        404: Event not found in this institution
    """
    try:
        event = event_service.get_event_by_id(event_guid, institution_guid=institution_guid)
        return EventResponse(**event_service.build_event_response(event))

    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )

    except Exception as e:
        logger.error(f"Error getting event {event_guid}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve event",
        )


@router.patch(
    "/{event_guid}",
    response_model=EventResponse,
    summary="Update an event",
)
async def update_event(
    institution_guid: str,
    event_guid: str,
    event_data: EventUpdate,
    event_service: EventLifecycleService = Depends(get_event_service),
) -> EventResponse:
    """
    Patch an event. Only fields present in the body are changed.

    Setting status is limited to cancelling an Upcoming event.

    Raises:
        400: Rule violation
        404: Event not found in this institution
    """
    try:
        event = event_service.update_event(
            event_guid, event_data, institution_guid=institution_guid
        )
        return EventResponse(**event_service.build_event_response(event))

    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )

    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    except Exception as e:
        logger.error(f"Error updating event {event_guid}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update event",
        )


@router.delete(
    "/{event_guid}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an event",
)
async def delete_event(
    institution_guid: str,
    event_guid: str,
    event_service: EventLifecycleService = Depends(get_event_service),
) -> Response:
    """
    Permanently delete a single event.

    Raises:
        404: Event not found in this institution
    """
    try:
        event_service.delete_event(event_guid, institution_guid=institution_guid)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )

    except Exception as e:
        logger.error(f"Error deleting event {event_guid}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete event",
        )

"""FastAPI application — entry point for the meeting scheduler service."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from meeting_scheduler.config import get_settings
from meeting_scheduler.domain.errors import ErrorCode, SchedulingError
from meeting_scheduler.domain.models import (
    Meeting,
    MeetingPage,
    MeetingRequest,
    Participant,
    ParticipantPage,
    ParticipantRequest,
)
from meeting_scheduler.repos.memory import MeetingRepository, ParticipantRepository
from meeting_scheduler.services.booking import (
    DEFAULT_PAGE,
    DEFAULT_PAGE_SIZE,
    MeetingBookingService,
)

settings = get_settings()
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Meeting Scheduler")

# ── Singletons (created at import time for simplicity) ────────────────
participant_repo = ParticipantRepository(timeout=settings.lock_timeout_seconds)
meeting_repo = MeetingRepository(timeout=settings.lock_timeout_seconds)
booking_service = MeetingBookingService(
    meeting_repo=meeting_repo,
    participant_repo=participant_repo,
    settings=settings,
)

_STATUS_BY_CODE = {
    ErrorCode.INVALID_TIME_RANGE: 400,
    ErrorCode.NO_PARTICIPANTS: 400,
    ErrorCode.UNKNOWN_PARTICIPANTS: 400,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.SCHEDULING_CONFLICT: 409,
    ErrorCode.STORE_UNAVAILABLE: 503,
}


@app.exception_handler(SchedulingError)
async def scheduling_error_handler(
    request: Request, exc: SchedulingError
) -> JSONResponse:
    """Render any scheduling failure as its structured rejection body."""
    status_code = _STATUS_BY_CODE[exc.code]
    if exc.is_transient:
        logger.warning(
            "%s %s failed: %s", request.method, request.url.path, exc.message
        )
    return JSONResponse(
        status_code=status_code,
        content=exc.to_rejection().model_dump(mode="json"),
    )


# ── Participants ──────────────────────────────────────────────────────


@app.post("/participants", response_model=Participant, status_code=201)
def create_participant(payload: ParticipantRequest) -> Participant:
    return booking_service.register_participant(payload)


@app.get("/participants", response_model=ParticipantPage)
def list_participants(
    page: int = DEFAULT_PAGE, page_size: int = DEFAULT_PAGE_SIZE
) -> ParticipantPage:
    return booking_service.list_participants(page, page_size)


@app.get("/participants/{participant_id}", response_model=Participant)
def get_participant(participant_id: str) -> Participant:
    return booking_service.get_participant(participant_id)


@app.get("/participants/{participant_id}/meetings", response_model=list[Meeting])
def list_participant_meetings(participant_id: str) -> list[Meeting]:
    """Return a participant's meetings converted to their own timezone."""
    return booking_service.participant_meetings(participant_id)


# ── Meetings ──────────────────────────────────────────────────────────


@app.get("/meetings", response_model=MeetingPage)
def list_meetings(
    page: int = DEFAULT_PAGE, page_size: int = DEFAULT_PAGE_SIZE
) -> MeetingPage:
    return booking_service.list_meetings(page, page_size)


@app.get("/meetings/{meeting_id}", response_model=Meeting)
def get_meeting(meeting_id: str) -> Meeting:
    return booking_service.get_meeting(meeting_id)


@app.post("/meetings", response_model=Meeting, status_code=201)
def create_meeting(payload: MeetingRequest) -> Meeting:
    """Book a meeting, or answer 409 with alternative slots on a conflict."""
    return booking_service.create_meeting(payload)


@app.put("/meetings/{meeting_id}", response_model=Meeting)
def update_meeting(meeting_id: str, payload: MeetingRequest) -> Meeting:
    return booking_service.update_meeting(meeting_id, payload)


@app.delete("/meetings/{meeting_id}", status_code=204)
def delete_meeting(meeting_id: str) -> Response:
    booking_service.delete_meeting(meeting_id)
    return Response(status_code=204)

"""Domain models for the meeting scheduler."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta
from typing import Annotated

from pydantic import (
    BaseModel,
    Field,
    StringConstraints,
    field_validator,
    model_validator,
)

from meeting_scheduler.domain.intervals import overlaps, to_utc
from meeting_scheduler.services.timezones import is_valid_timezone


def _new_id() -> str:
    return str(uuid.uuid4())


# Surrounding whitespace is stripped before the non-empty check.
NonBlankStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


# ---------------------------------------------------------------------------
# Core domain models
# ---------------------------------------------------------------------------


class Participant(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: NonBlankStr
    timezone: str = "UTC"


class Meeting(BaseModel):
    id: str = Field(default_factory=_new_id)
    title: NonBlankStr
    start_time: datetime
    end_time: datetime
    participant_ids: set[str] = Field(min_length=1)

    @model_validator(mode="after")
    def _end_after_start(self) -> Meeting:
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return overlaps(self.start_time, self.end_time, start, end)

    def shares_participant(self, participant_ids: set[str]) -> bool:
        return not self.participant_ids.isdisjoint(participant_ids)


class TimeSlot(BaseModel):
    start_time: datetime
    end_time: datetime

    @property
    def duration(self) -> timedelta:
        return self.end_time - self.start_time

    def as_utc(self) -> TimeSlot:
        return TimeSlot(start_time=to_utc(self.start_time), end_time=to_utc(self.end_time))

    def __str__(self) -> str:
        return f"{self.start_time.isoformat()} - {self.end_time.isoformat()}"


# ---------------------------------------------------------------------------
# Request / Response DTOs
# ---------------------------------------------------------------------------


class MeetingRequest(BaseModel):
    """Caller input for creating or updating a meeting.

    Time ordering and participant resolution are checked by the booking
    service, not here, so that they surface as scheduling errors.
    """

    title: NonBlankStr
    start_time: datetime
    end_time: datetime
    participant_ids: set[str] = Field(default_factory=set)


class ParticipantRequest(BaseModel):
    name: NonBlankStr
    timezone: str = "UTC"

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        if not is_valid_timezone(value):
            raise ValueError(
                f"'{value}' is not a valid timezone identifier. Please use a valid "
                "IANA timezone (e.g., 'America/New_York', 'Europe/London', 'Asia/Tokyo')."
            )
        return value


class Page(BaseModel):
    items: list
    total_count: int
    page: int
    page_size: int


class MeetingPage(Page):
    items: list[Meeting]


class ParticipantPage(Page):
    items: list[Participant]


class BookingRejection(BaseModel):
    code: str
    message: str
    alternatives: list[TimeSlot] = Field(default_factory=list)

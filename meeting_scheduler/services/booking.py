"""Booking service: the single write path for meetings.

Every create or update goes through the same steps:

1. Validate: normalize to UTC, check ``start < end``, check that at least one
   participant was named and that at least one of them exists.
2. Check conflicts for the resolved participants.
3. Persist when clear; otherwise compute alternative slots and raise
   ``SchedulingConflict`` without writing anything.

Steps 2 and 3 run while holding every affected participant's lock, so two
overlapping requests cannot both pass the check before either is written.
Deletes skip all of this.
"""

from __future__ import annotations

import logging

from meeting_scheduler.config import Settings
from meeting_scheduler.domain.errors import (
    InvalidTimeRange,
    NoParticipants,
    NotFound,
    SchedulingConflict,
    UnknownParticipants,
)
from meeting_scheduler.domain.intervals import to_utc
from meeting_scheduler.domain.models import (
    Meeting,
    MeetingPage,
    MeetingRequest,
    Participant,
    ParticipantPage,
    ParticipantRequest,
    TimeSlot,
)
from meeting_scheduler.repos.base import MeetingStore, ParticipantStore
from meeting_scheduler.services.conflicts import ConflictDetector
from meeting_scheduler.services.locks import ParticipantLocks
from meeting_scheduler.services.slots import SlotFinder
from meeting_scheduler.services.timezones import to_local

logger = logging.getLogger(__name__)

MIN_PAGE = 1
MIN_PAGE_SIZE = 1
MAX_PAGE_SIZE = 100
DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10


def clamp_page(page: int, page_size: int) -> tuple[int, int]:
    return max(page, MIN_PAGE), min(max(page_size, MIN_PAGE_SIZE), MAX_PAGE_SIZE)


class MeetingBookingService:
    """Creates, updates and deletes meetings without double-booking anyone."""

    def __init__(
        self,
        meeting_repo: MeetingStore,
        participant_repo: ParticipantStore,
        settings: Settings | None = None,
        locks: ParticipantLocks | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.meeting_repo = meeting_repo
        self.participant_repo = participant_repo
        self.locks = locks or ParticipantLocks(self.settings.lock_timeout_seconds)
        self.conflict_detector = ConflictDetector(meeting_repo)
        self.slot_finder = SlotFinder(
            meeting_repo, max_tail_steps=self.settings.max_tail_steps
        )

    # ------------------------------------------------------------------
    # Meetings: write path
    # ------------------------------------------------------------------

    def create_meeting(
        self, request: MeetingRequest, timeout: float | None = None
    ) -> Meeting:
        slot = self._validated_slot(request)
        participant_ids = self._resolve_participant_ids(request.participant_ids)

        with self.locks.hold(participant_ids, timeout):
            self._ensure_bookable(slot, participant_ids)
            meeting = Meeting(
                title=request.title,
                start_time=slot.start_time,
                end_time=slot.end_time,
                participant_ids=participant_ids,
            )
            stored = self.meeting_repo.insert(meeting)

        logger.info(
            "Booked meeting %s for %d participant(s) at %s",
            stored.id,
            len(participant_ids),
            slot,
        )
        return stored

    def update_meeting(
        self, meeting_id: str, request: MeetingRequest, timeout: float | None = None
    ) -> Meeting:
        slot = self._validated_slot(request)
        existing = self.get_meeting(meeting_id)
        participant_ids = self._resolve_participant_ids(request.participant_ids)

        with self.locks.hold(existing.participant_ids | participant_ids, timeout):
            # Re-read under the locks; it may have been deleted meanwhile.
            current = self.get_meeting(meeting_id)
            self._ensure_bookable(slot, participant_ids, exclude_meeting_id=current.id)
            meeting = Meeting(
                id=current.id,
                title=request.title,
                start_time=slot.start_time,
                end_time=slot.end_time,
                participant_ids=participant_ids,
            )
            stored = self.meeting_repo.replace(meeting)

        logger.info("Rescheduled meeting %s to %s", stored.id, slot)
        return stored

    def delete_meeting(self, meeting_id: str) -> None:
        self.meeting_repo.delete(meeting_id)
        logger.info("Deleted meeting %s", meeting_id)

    # ------------------------------------------------------------------
    # Meetings: reads
    # ------------------------------------------------------------------

    def get_meeting(self, meeting_id: str) -> Meeting:
        meeting = self.meeting_repo.get(meeting_id)
        if meeting is None:
            raise NotFound.for_meeting(meeting_id)
        return meeting

    def list_meetings(
        self, page: int = DEFAULT_PAGE, page_size: int = DEFAULT_PAGE_SIZE
    ) -> MeetingPage:
        page, page_size = clamp_page(page, page_size)
        items, total = self.meeting_repo.list_page(page, page_size)
        return MeetingPage(items=items, total_count=total, page=page, page_size=page_size)

    def participant_meetings(self, participant_id: str) -> list[Meeting]:
        """Return a participant's meetings shown in that participant's timezone."""
        participant = self.get_participant(participant_id)
        return [
            to_local(meeting, participant.timezone)
            for meeting in self.meeting_repo.list_for_participant(participant_id)
        ]

    # ------------------------------------------------------------------
    # Participants
    # ------------------------------------------------------------------

    def register_participant(self, request: ParticipantRequest) -> Participant:
        participant = Participant(name=request.name, timezone=request.timezone)
        self.participant_repo.add(participant)
        logger.info("Registered participant %s (%s)", participant.id, participant.timezone)
        return participant

    def get_participant(self, participant_id: str) -> Participant:
        participant = self.participant_repo.get(participant_id)
        if participant is None:
            raise NotFound.for_participant(participant_id)
        return participant

    def list_participants(
        self, page: int = DEFAULT_PAGE, page_size: int = DEFAULT_PAGE_SIZE
    ) -> ParticipantPage:
        page, page_size = clamp_page(page, page_size)
        items, total = self.participant_repo.list_page(page, page_size)
        return ParticipantPage(
            items=items, total_count=total, page=page, page_size=page_size
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _validated_slot(self, request: MeetingRequest) -> TimeSlot:
        start, end = to_utc(request.start_time), to_utc(request.end_time)
        if start >= end:
            raise InvalidTimeRange()
        return TimeSlot(start_time=start, end_time=end)

    def _resolve_participant_ids(self, participant_ids: set[str]) -> set[str]:
        if not participant_ids:
            raise NoParticipants()
        participants = self.participant_repo.resolve_participants(participant_ids)
        if not participants:
            raise UnknownParticipants()
        return {p.id for p in participants}

    def _ensure_bookable(
        self,
        slot: TimeSlot,
        participant_ids: set[str],
        exclude_meeting_id: str | None = None,
    ) -> None:
        conflicts = self.conflict_detector.find_conflicts(
            slot, participant_ids, exclude_meeting_id=exclude_meeting_id
        )
        if not conflicts:
            return

        alternatives = self.slot_finder.find_alternatives(
            slot,
            participant_ids,
            horizon=self.settings.search_horizon,
            max_results=self.settings.max_alternatives,
            exclude_meeting_id=exclude_meeting_id,
        )
        logger.info(
            "Rejected %s: %d conflicting meeting(s), offering %d alternative(s)",
            slot,
            len(conflicts),
            len(alternatives),
        )
        raise SchedulingConflict(alternatives, [m.id for m in conflicts])

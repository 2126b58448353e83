"""Service for detecting scheduling conflicts between meetings."""

from __future__ import annotations

from collections.abc import Iterable

from meeting_scheduler.domain.errors import InvalidTimeRange, NoParticipants
from meeting_scheduler.domain.intervals import to_utc
from meeting_scheduler.domain.models import Meeting, TimeSlot
from meeting_scheduler.repos.base import MeetingStore


def find_conflicts(
    candidate: TimeSlot,
    participant_ids: set[str],
    existing_meetings: Iterable[Meeting],
) -> list[Meeting]:
    """Return existing meetings that overlap *candidate* for a shared participant.

    Overlap rule: conflict if new_start < existing.end_time AND existing.start_time < new_end.
    Exact boundary touches (end == start) are NOT considered conflicts.
    Results are ordered by start time, then id.
    """
    conflicts = [
        meeting
        for meeting in existing_meetings
        if meeting.shares_participant(participant_ids)
        and meeting.overlaps(candidate.start_time, candidate.end_time)
    ]
    return sorted(conflicts, key=lambda m: (to_utc(m.start_time), m.id))


class ConflictDetector:
    """Read-only conflict lookup against a meeting store."""

    def __init__(self, meeting_repo: MeetingStore) -> None:
        self.meeting_repo = meeting_repo

    def find_conflicts(
        self,
        candidate: TimeSlot,
        participant_ids: Iterable[str],
        exclude_meeting_id: str | None = None,
    ) -> list[Meeting]:
        """Return stored meetings that would double-book any of *participant_ids*.

        An empty result means the candidate is bookable as-is for every
        named participant. *exclude_meeting_id* leaves out the meeting being
        rescheduled so it cannot conflict with its own old interval.
        """
        candidate = candidate.as_utc()
        if candidate.start_time >= candidate.end_time:
            raise InvalidTimeRange()
        wanted = set(participant_ids)
        if not wanted:
            raise NoParticipants()

        # The store may over-approximate; re-check both conditions here.
        stored = self.meeting_repo.query_overlapping(
            wanted, candidate.start_time, candidate.end_time
        )
        return [
            m
            for m in find_conflicts(candidate, wanted, stored)
            if m.id != exclude_meeting_id
        ]

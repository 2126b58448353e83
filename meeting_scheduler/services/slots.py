"""Service for proposing replacement slots when a requested time is taken.

The search looks at the participants' meetings inside a horizon starting at
the rejected start time, offers same-length slots from the gaps between
those meetings, and then continues after the last of them.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, timedelta

from meeting_scheduler.domain.errors import InvalidTimeRange
from meeting_scheduler.domain.intervals import to_utc
from meeting_scheduler.domain.models import Meeting, TimeSlot
from meeting_scheduler.repos.base import MeetingStore

logger = logging.getLogger(__name__)

DEFAULT_HORIZON = timedelta(days=7)
DEFAULT_MAX_RESULTS = 3
DEFAULT_MAX_TAIL_STEPS = 1000


def carve_slots(
    gap_start: datetime,
    gap_end: datetime,
    duration: timedelta,
    limit: int,
) -> list[TimeSlot]:
    """Cut back-to-back slots of *duration* from ``[gap_start, gap_end)``.

    Only slots that fit entirely inside the gap are returned, at most *limit*.
    """
    slots: list[TimeSlot] = []
    cursor = gap_start
    while len(slots) < limit and cursor + duration <= gap_end:
        slots.append(TimeSlot(start_time=cursor, end_time=cursor + duration))
        cursor += duration
    return slots


def _ordered(meetings: Iterable[Meeting]) -> list[Meeting]:
    return sorted(meetings, key=lambda m: (to_utc(m.start_time), m.id))


class SlotFinder:
    def __init__(
        self,
        meeting_repo: MeetingStore,
        max_tail_steps: int = DEFAULT_MAX_TAIL_STEPS,
    ) -> None:
        self.meeting_repo = meeting_repo
        self.max_tail_steps = max_tail_steps

    def find_alternatives(
        self,
        rejected: TimeSlot,
        participant_ids: Iterable[str],
        horizon: timedelta = DEFAULT_HORIZON,
        max_results: int = DEFAULT_MAX_RESULTS,
        exclude_meeting_id: str | None = None,
    ) -> list[TimeSlot]:
        """Return up to *max_results* free slots as long as *rejected*, in UTC.

        When the participants have nothing booked in the horizon the rejected
        slot itself is returned. Output depends only on stored meetings, so
        repeated calls against the same state give the same slots.
        """
        rejected = rejected.as_utc()
        duration = rejected.duration
        if duration <= timedelta(0):
            raise InvalidTimeRange()
        if max_results <= 0:
            return []

        wanted = set(participant_ids)
        window_start = rejected.start_time
        window_end = window_start + horizon
        meetings = _ordered(
            m
            for m in self.meeting_repo.query_overlapping(wanted, window_start, window_end)
            if m.id != exclude_meeting_id
        )

        if not meetings:
            return [TimeSlot(start_time=window_start, end_time=window_start + duration)]

        slots: list[TimeSlot] = []
        # Meetings for different participants can nest, so a gap opens at the
        # latest end seen so far rather than at the previous meeting's end.
        latest_end = to_utc(meetings[0].end_time)
        for current, following in zip(meetings, meetings[1:]):
            latest_end = max(latest_end, to_utc(current.end_time))
            slots.extend(
                carve_slots(
                    latest_end,
                    to_utc(following.start_time),
                    duration,
                    max_results - len(slots),
                )
            )
            if len(slots) >= max_results:
                return slots

        latest_end = max(to_utc(m.end_time) for m in meetings)
        slots.extend(
            self._search_tail(
                latest_end,
                wanted,
                duration,
                max_results - len(slots),
                window_end,
                exclude_meeting_id,
            )
        )
        return slots

    def _search_tail(
        self,
        cursor: datetime,
        participant_ids: set[str],
        duration: timedelta,
        limit: int,
        window_end: datetime,
        exclude_meeting_id: str | None,
    ) -> list[TimeSlot]:
        slots: list[TimeSlot] = []
        steps = 0
        while len(slots) < limit and steps < self.max_tail_steps:
            steps += 1
            slot_end = cursor + duration
            # Anything inside the window was already accounted for.
            if slot_end > window_end:
                blockers = [
                    m
                    for m in self.meeting_repo.query_overlapping(
                        participant_ids, cursor, slot_end
                    )
                    if m.id != exclude_meeting_id
                ]
                if blockers:
                    cursor = max(to_utc(m.end_time) for m in blockers)
                    continue
            slots.append(TimeSlot(start_time=cursor, end_time=slot_end))
            cursor = slot_end

        if len(slots) < limit:
            logger.warning(
                "Tail slot search stopped after %d steps with %d of %d slots",
                steps,
                len(slots),
                limit,
            )
        return slots

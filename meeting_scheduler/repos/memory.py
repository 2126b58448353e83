"""In-memory repositories for participants and meetings."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import datetime

from meeting_scheduler.domain.errors import NotFound, StoreUnavailable
from meeting_scheduler.domain.models import Meeting, Participant

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 5.0


def _page_bounds(page: int, page_size: int) -> tuple[int, int]:
    offset = (page - 1) * page_size
    return offset, offset + page_size


class _GuardedStore:
    """Serializes access to a dict with a re-entrant lock and a timeout."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        self._lock = threading.RLock()
        self._timeout = timeout

    @contextmanager
    def _locked(self) -> Iterator[None]:
        if not self._lock.acquire(timeout=self._timeout):
            logger.warning(
                "%s lock not acquired within %.2fs", type(self).__name__, self._timeout
            )
            raise StoreUnavailable(f"{type(self).__name__} is busy, try again later")
        try:
            yield
        finally:
            self._lock.release()


class ParticipantRepository(_GuardedStore):
    """Dict-backed store for Participant instances, keyed by id."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        super().__init__(timeout)
        self._store: dict[str, Participant] = {}

    def add(self, participant: Participant) -> Participant:
        with self._locked():
            self._store[participant.id] = participant
        return participant

    def get(self, participant_id: str) -> Participant | None:
        with self._locked():
            return self._store.get(participant_id)

    def resolve_participants(self, ids: Iterable[str]) -> list[Participant]:
        with self._locked():
            return [self._store[pid] for pid in sorted(set(ids)) if pid in self._store]

    def list_page(self, page: int, page_size: int) -> tuple[list[Participant], int]:
        with self._locked():
            ordered = sorted(self._store.values(), key=lambda p: (p.name, p.id))
        start, stop = _page_bounds(page, page_size)
        return ordered[start:stop], len(ordered)


class MeetingRepository(_GuardedStore):
    """Dict-backed store for Meeting instances, keyed by id."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        super().__init__(timeout)
        self._store: dict[str, Meeting] = {}

    def insert(self, meeting: Meeting) -> Meeting:
        with self._locked():
            if meeting.id in self._store:
                raise ValueError(f"Meeting with ID {meeting.id} already exists")
            self._store[meeting.id] = meeting
        return meeting

    def replace(self, meeting: Meeting) -> Meeting:
        with self._locked():
            if meeting.id not in self._store:
                raise NotFound.for_meeting(meeting.id)
            self._store[meeting.id] = meeting
        return meeting

    def get(self, meeting_id: str) -> Meeting | None:
        with self._locked():
            return self._store.get(meeting_id)

    def delete(self, meeting_id: str) -> None:
        with self._locked():
            if self._store.pop(meeting_id, None) is None:
                raise NotFound.for_meeting(meeting_id)

    def query_overlapping(
        self, participant_ids: Iterable[str], start: datetime, end: datetime
    ) -> list[Meeting]:
        wanted = set(participant_ids)
        with self._locked():
            return [
                m
                for m in self._store.values()
                if m.shares_participant(wanted) and m.overlaps(start, end)
            ]

    def list_for_participant(self, participant_id: str) -> list[Meeting]:
        with self._locked():
            found = [m for m in self._store.values() if participant_id in m.participant_ids]
        return sorted(found, key=lambda m: (m.start_time, m.id))

    def list_page(self, page: int, page_size: int) -> tuple[list[Meeting], int]:
        with self._locked():
            ordered = sorted(self._store.values(), key=lambda m: (m.start_time, m.id))
        start, stop = _page_bounds(page, page_size)
        return ordered[start:stop], len(ordered)

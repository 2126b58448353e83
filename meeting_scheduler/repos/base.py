"""Store contracts the scheduling core depends on.

Any backend (the in-memory one here, or a relational store) can sit behind
these as long as it honours the same semantics.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Protocol

from meeting_scheduler.domain.models import Meeting, Participant


class ParticipantStore(Protocol):
    def resolve_participants(self, ids: Iterable[str]) -> list[Participant]:
        """Return the participants that exist; unknown ids are simply absent."""
        ...

    def get(self, participant_id: str) -> Participant | None: ...

    def add(self, participant: Participant) -> Participant: ...

    def list_page(self, page: int, page_size: int) -> tuple[list[Participant], int]: ...


class MeetingStore(Protocol):
    def query_overlapping(
        self, participant_ids: Iterable[str], start: datetime, end: datetime
    ) -> list[Meeting]:
        """Return meetings sharing a participant and intersecting ``[start, end)``."""
        ...

    def get(self, meeting_id: str) -> Meeting | None: ...

    def insert(self, meeting: Meeting) -> Meeting: ...

    def replace(self, meeting: Meeting) -> Meeting:
        """Overwrite a stored meeting; raises ``NotFound`` if it is gone."""
        ...

    def delete(self, meeting_id: str) -> None:
        """Remove a meeting; raises ``NotFound`` if it does not exist."""
        ...

    def list_page(self, page: int, page_size: int) -> tuple[list[Meeting], int]: ...

    def list_for_participant(self, participant_id: str) -> list[Meeting]: ...

"""Scheduling error taxonomy.

Every failed booking attempt ends in exactly one of these. Only
``SchedulingConflict`` carries a payload (the alternative slots); the others
carry a human-readable message.
"""

from __future__ import annotations

from enum import StrEnum

from meeting_scheduler.domain.models import BookingRejection, TimeSlot


class ErrorCode(StrEnum):
    INVALID_TIME_RANGE = "invalid_time_range"
    NO_PARTICIPANTS = "no_participants"
    UNKNOWN_PARTICIPANTS = "unknown_participants"
    SCHEDULING_CONFLICT = "scheduling_conflict"
    NOT_FOUND = "not_found"
    STORE_UNAVAILABLE = "store_unavailable"


class SchedulingError(Exception):
    code: ErrorCode

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def is_transient(self) -> bool:
        return self.code == ErrorCode.STORE_UNAVAILABLE

    def to_rejection(self) -> BookingRejection:
        return BookingRejection(code=self.code.value, message=self.message)


class InvalidTimeRange(SchedulingError):
    code = ErrorCode.INVALID_TIME_RANGE

    def __init__(self, message: str = "Start time must be before end time.") -> None:
        super().__init__(message)


class NoParticipants(SchedulingError):
    code = ErrorCode.NO_PARTICIPANTS

    def __init__(
        self, message: str = "At least one participant is required for a meeting."
    ) -> None:
        super().__init__(message)


class UnknownParticipants(SchedulingError):
    code = ErrorCode.UNKNOWN_PARTICIPANTS

    def __init__(
        self, message: str = "At least one valid participant ID is required."
    ) -> None:
        super().__init__(message)


class NotFound(SchedulingError):
    code = ErrorCode.NOT_FOUND

    @classmethod
    def for_meeting(cls, meeting_id: str) -> NotFound:
        return cls(f"Meeting with ID {meeting_id} not found")

    @classmethod
    def for_participant(cls, participant_id: str) -> NotFound:
        return cls(f"Participant with ID {participant_id} not found")


class StoreUnavailable(SchedulingError):
    code = ErrorCode.STORE_UNAVAILABLE


class SchedulingConflict(SchedulingError):
    code = ErrorCode.SCHEDULING_CONFLICT

    def __init__(
        self,
        alternatives: list[TimeSlot],
        conflicting_meeting_ids: list[str] | None = None,
    ) -> None:
        self.alternatives = list(alternatives)
        self.conflicting_meeting_ids = list(conflicting_meeting_ids or [])
        slots = ", ".join(str(slot) for slot in self.alternatives)
        super().__init__(
            "Conflicts with existing meetings. "
            f"Here are the next available slots: {slots}"
        )

    def to_rejection(self) -> BookingRejection:
        return BookingRejection(
            code=self.code.value,
            message=self.message,
            alternatives=self.alternatives,
        )

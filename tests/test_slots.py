"""Tests for the alternative-slot search."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from meeting_scheduler.domain.models import Meeting, TimeSlot
from meeting_scheduler.repos.memory import MeetingRepository
from meeting_scheduler.services.slots import SlotFinder, carve_slots


def _dt(hour: int, minute: int = 0, day: int = 1) -> datetime:
    return datetime(2024, 1, day, hour, minute, tzinfo=timezone.utc)


def _slot(start: datetime, end: datetime) -> TimeSlot:
    return TimeSlot(start_time=start, end_time=end)


@pytest.fixture()
def repo() -> MeetingRepository:
    return MeetingRepository()


@pytest.fixture()
def finder(repo: MeetingRepository) -> SlotFinder:
    return SlotFinder(repo)


def _book(repo: MeetingRepository, start, end, participants=None, **overrides) -> Meeting:
    meeting = Meeting(
        title=overrides.pop("title", "Busy"),
        start_time=start,
        end_time=end,
        participant_ids=participants or {"u1"},
        **overrides,
    )
    return repo.insert(meeting)


def _assert_free(slots: list[TimeSlot], meetings: list[Meeting]) -> None:
    for slot in slots:
        for meeting in meetings:
            assert not meeting.overlaps(slot.start_time, slot.end_time), (slot, meeting)


# ---------------------------------------------------------------------------
# carve_slots
# ---------------------------------------------------------------------------


def test_carve_fills_gap_back_to_back():
    slots = carve_slots(_dt(9), _dt(12), timedelta(hours=1), limit=10)
    assert slots == [
        _slot(_dt(9), _dt(10)),
        _slot(_dt(10), _dt(11)),
        _slot(_dt(11), _dt(12)),
    ]


def test_carve_drops_partial_slot_at_gap_end():
    slots = carve_slots(_dt(9), _dt(11), timedelta(minutes=50), limit=10)
    assert [s.start_time for s in slots] == [_dt(9), _dt(9, 50)]


def test_carve_respects_limit():
    assert len(carve_slots(_dt(9), _dt(17), timedelta(hours=1), limit=2)) == 2


def test_carve_empty_when_gap_too_small():
    assert carve_slots(_dt(9), _dt(9, 30), timedelta(hours=1), limit=3) == []


# ---------------------------------------------------------------------------
# SlotFinder.find_alternatives
# ---------------------------------------------------------------------------


def test_no_meetings_offers_rejected_slot(finder):
    rejected = _slot(_dt(10), _dt(11))
    assert finder.find_alternatives(rejected, {"u1"}) == [rejected]


def test_single_conflict_continues_after_meeting(repo, finder):
    """Existing 10:00-11:00, requested 10:30-11:30: next three hours from 11:00."""
    busy = _book(repo, _dt(10), _dt(11))

    slots = finder.find_alternatives(_slot(_dt(10, 30), _dt(11, 30)), {"u1"})

    assert slots == [
        _slot(_dt(11), _dt(12)),
        _slot(_dt(12), _dt(13)),
        _slot(_dt(13), _dt(14)),
    ]
    _assert_free(slots, [busy])


def test_gap_between_meetings_is_used_first(repo, finder):
    meetings = [
        _book(repo, _dt(10), _dt(11)),
        _book(repo, _dt(13), _dt(14)),
    ]

    slots = finder.find_alternatives(_slot(_dt(10, 30), _dt(11, 30)), {"u1"})

    assert slots == [
        _slot(_dt(11), _dt(12)),
        _slot(_dt(12), _dt(13)),
        _slot(_dt(14), _dt(15)),
    ]
    _assert_free(slots, meetings)


def test_nested_meetings_do_not_produce_overlapping_slots(repo, finder):
    """A long meeting that encloses shorter ones closes the gaps between them."""
    meetings = [
        _book(repo, _dt(9), _dt(17), participants={"u1"}),
        _book(repo, _dt(10), _dt(11), participants={"u2"}),
        _book(repo, _dt(12), _dt(13), participants={"u1"}),
    ]

    slots = finder.find_alternatives(_slot(_dt(10), _dt(11)), {"u1", "u2"})

    assert slots[0] == _slot(_dt(17), _dt(18))
    assert len(slots) == 3
    _assert_free(slots, meetings)


def test_meetings_of_other_participants_are_ignored(repo, finder):
    _book(repo, _dt(10), _dt(11), participants={"u1"})
    _book(repo, _dt(11), _dt(15), participants={"someone-else"})

    slots = finder.find_alternatives(_slot(_dt(10), _dt(11)), {"u1"})

    assert slots[0] == _slot(_dt(11), _dt(12))


def test_results_capped_and_keep_duration(repo, finder):
    meetings = [
        _book(repo, _dt(9), _dt(10)),
        _book(repo, _dt(12), _dt(13)),
        _book(repo, _dt(15), _dt(16)),
    ]
    rejected = _slot(_dt(9, 15), _dt(9, 45))

    slots = finder.find_alternatives(rejected, {"u1"}, max_results=5)

    assert len(slots) == 5
    assert all(s.duration == timedelta(minutes=30) for s in slots)
    assert slots[0] == _slot(_dt(10), _dt(10, 30))
    _assert_free(slots, meetings)


def test_zero_max_results_returns_nothing(repo, finder):
    _book(repo, _dt(10), _dt(11))
    assert finder.find_alternatives(_slot(_dt(10), _dt(11)), {"u1"}, max_results=0) == []


def test_tail_skips_meeting_beyond_horizon(repo, finder):
    """A tail slot reaching past the horizon is checked against later bookings."""
    near = _book(repo, _dt(10), _dt(11))
    far = _book(repo, _dt(13, 45), _dt(16))

    slots = finder.find_alternatives(
        _slot(_dt(10, 30), _dt(11, 30)), {"u1"}, horizon=timedelta(hours=3)
    )

    assert slots == [
        _slot(_dt(11), _dt(12)),
        _slot(_dt(12), _dt(13)),
        _slot(_dt(16), _dt(17)),
    ]
    _assert_free(slots, [near, far])


def test_tail_search_stops_at_step_cap(repo):
    _book(repo, _dt(10), _dt(11))
    _book(repo, _dt(11), _dt(12))
    _book(repo, _dt(12), _dt(13))
    finder = SlotFinder(repo, max_tail_steps=2)

    slots = finder.find_alternatives(
        _slot(_dt(10), _dt(11)), {"u1"}, horizon=timedelta(hours=1)
    )

    assert slots == []


def test_excluded_meeting_is_not_an_obstacle(repo, finder):
    own = _book(repo, _dt(10), _dt(11))
    rejected = _slot(_dt(10, 30), _dt(11, 30))

    slots = finder.find_alternatives(rejected, {"u1"}, exclude_meeting_id=own.id)

    assert slots == [rejected]


def test_slots_are_returned_in_utc(repo, finder):
    _book(repo, _dt(10), _dt(11))
    plus_two = timezone(timedelta(hours=2))
    rejected = _slot(
        datetime(2024, 1, 1, 12, 30, tzinfo=plus_two),
        datetime(2024, 1, 1, 13, 30, tzinfo=plus_two),
    )

    slots = finder.find_alternatives(rejected, {"u1"})

    assert slots[0] == _slot(_dt(11), _dt(12))
    assert all(s.start_time.utcoffset() == timedelta(0) for s in slots)
    assert all(s.end_time.utcoffset() == timedelta(0) for s in slots)


def test_search_is_deterministic(repo, finder):
    _book(repo, _dt(10), _dt(11), title="A")
    _book(repo, _dt(10), _dt(11, 30), title="B")
    _book(repo, _dt(14), _dt(15))
    rejected = _slot(_dt(10), _dt(11))

    first = finder.find_alternatives(rejected, {"u1"})
    second = finder.find_alternatives(rejected, {"u1"})

    assert first == second
    assert first[0] == _slot(_dt(11, 30), _dt(12, 30))

"""Timezone lookups used for display conversion only.

Conflict math never goes through here; stored meetings stay in UTC.
"""

from __future__ import annotations

import os
import re
from datetime import tzinfo
from typing import TYPE_CHECKING

from dateutil import tz

if TYPE_CHECKING:
    from meeting_scheduler.domain.models import Meeting

_ZONE_NAME = re.compile(r"[A-Za-z][A-Za-z0-9_+\-]*(/[A-Za-z0-9_+\-]+)*")


def resolve_timezone(name: str) -> tzinfo | None:
    """Return the tzinfo for an IANA identifier, or None if it is unknown.

    Only zone names from the tz database are accepted: no file paths and no
    POSIX TZ rule strings.
    """
    if not name or not _ZONE_NAME.fullmatch(name) or ".." in name:
        return None
    if os.path.isabs(name):
        return None
    zone = tz.gettz(name)
    if not isinstance(zone, (tz.tzfile, tz.tzutc)):
        return None
    return zone


def is_valid_timezone(name: str) -> bool:
    return resolve_timezone(name) is not None


def to_local(meeting: Meeting, timezone_name: str) -> Meeting:
    """Return a copy of *meeting* with its times expressed in *timezone_name*.

    Unknown identifiers fall back to UTC.
    """
    zone = resolve_timezone(timezone_name) or tz.UTC
    return meeting.model_copy(
        update={
            "start_time": meeting.start_time.astimezone(zone),
            "end_time": meeting.end_time.astimezone(zone),
        }
    )

"""Per-participant locks guarding the check-then-write booking path."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Iterable, Iterator
from contextlib import contextmanager

from meeting_scheduler.domain.errors import StoreUnavailable

logger = logging.getLogger(__name__)


class ParticipantLocks:
    """Hands out one lock per participant id.

    Locks are taken in sorted id order so two bookings sharing participants
    cannot deadlock each other.
    """

    def __init__(self, default_timeout: float = 5.0) -> None:
        self.default_timeout = default_timeout
        self._registry_lock = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def _lock_for(self, participant_id: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(participant_id)
            if lock is None:
                lock = self._locks[participant_id] = threading.Lock()
            return lock

    @contextmanager
    def hold(
        self, participant_ids: Iterable[str], timeout: float | None = None
    ) -> Iterator[None]:
        """Hold every participant's lock for the duration of the block.

        Raises ``StoreUnavailable`` if all locks cannot be taken within
        *timeout* seconds; nothing stays locked in that case.
        """
        timeout = self.default_timeout if timeout is None else timeout
        deadline = time.monotonic() + timeout
        acquired: list[threading.Lock] = []
        try:
            for participant_id in sorted(set(participant_ids)):
                lock = self._lock_for(participant_id)
                remaining = max(0.0, deadline - time.monotonic())
                if not lock.acquire(timeout=remaining):
                    logger.warning(
                        "Timed out after %.2fs waiting for participant %s",
                        timeout,
                        participant_id,
                    )
                    raise StoreUnavailable(
                        "Another booking for these participants is in progress, "
                        "try again later"
                    )
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()

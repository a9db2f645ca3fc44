from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    """Current device time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(timezone.utc)


class Clock:
    """Time source corrected by the offset between device and server clocks.

    All duration math goes through ``now()`` so a drifting device clock does not
    leak into check-in/check-out timestamps.
    """

    def __init__(self, *, device_now: Callable[[], datetime] = utc_now, offset: Optional[timedelta] = None):
        self._device_now = device_now
        self._offset = offset or timedelta(0)
        self._synced = offset is not None

    @property
    def offset(self) -> timedelta:
        return self._offset

    @property
    def is_synced(self) -> bool:
        return self._synced

    def now(self) -> datetime:
        return self._device_now() + self._offset

    def sync(self, server_time: datetime, *, sent_at: datetime, received_at: datetime) -> timedelta:
        """Derive the offset from one server round-trip.

        The server stamped ``server_time`` roughly half-way through the request, so
        at ``received_at`` the server clock reads ``server_time + latency``.
        """
        latency = (received_at - sent_at) / 2
        self._offset = (server_time + latency) - received_at
        self._synced = True
        logger.info("Time synced, offset=%.3fs", self._offset.total_seconds())
        return self._offset

    def reset(self) -> None:
        """Fall back to the raw device clock after a failed sync."""
        self._offset = timedelta(0)
        self._synced = False

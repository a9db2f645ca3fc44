from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence

from .model import WorkLog


class WorkLogRepository(Protocol):
    """Persistence collaborator for work logs.

    Note (DIP): services depend on this interface, never on a concrete store.
    Implementations raise ``PersistenceError`` when the store rejects a call or
    cannot be reached.
    """

    def get_logs(self, org_id: str, month: str) -> Sequence[WorkLog]:
        raise NotImplementedError

    def get_open_work_logs(self, org_id: str, since: datetime) -> Sequence[WorkLog]:
        """Open WORK sessions started after ``since``; used to re-check equipment before commit."""

        raise NotImplementedError

    def batch_upsert_logs(self, logs: Sequence[WorkLog], org_id: str) -> None:
        raise NotImplementedError

    def delete_log(self, log_id: str, org_id: str) -> None:
        raise NotImplementedError

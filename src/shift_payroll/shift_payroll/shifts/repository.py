from __future__ import annotations

from typing import Mapping, Protocol

from .model import SlotMap


class ActiveShiftRepository(Protocol):
    def get_all_active_shifts(self, org_id: str) -> Mapping[str, SlotMap]:
        raise NotImplementedError

    def save_active_shifts(self, user_id: str, slots: SlotMap, org_id: str) -> None:
        raise NotImplementedError

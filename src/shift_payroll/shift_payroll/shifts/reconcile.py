from __future__ import annotations

from typing import Iterable, Mapping

from ..core.constants import SLOTS
from ..worklogs.model import WorkLog, slot_from_log_id
from .model import SlotMap


def clear_closed(maps: Mapping[str, SlotMap], closed: Iterable[WorkLog]) -> tuple[dict[str, SlotMap], set[str]]:
    """Empty every slot that references one of the given closed logs."""
    updated = dict(maps)
    changed: set[str] = set()
    for log in closed:
        if not log.is_closed:
            continue
        current = updated.get(log.user_id)
        if current is None:
            continue
        slot = current.find_slot(log.id)
        if slot is not None:
            updated[log.user_id] = current.with_slot(slot, None)
            changed.add(log.user_id)
    return updated, changed


def release_log(maps: Mapping[str, SlotMap], log_id: str) -> tuple[dict[str, SlotMap], set[str]]:
    """Empty every slot that references the given log id."""
    updated = dict(maps)
    changed: set[str] = set()
    for user_id, slots in maps.items():
        slot = slots.find_slot(log_id)
        if slot is not None:
            updated[user_id] = slots.with_slot(slot, None)
            changed.add(user_id)
    return updated, changed


def reconcile_slot_maps(maps: Mapping[str, SlotMap], logs: Iterable[WorkLog]) -> tuple[dict[str, SlotMap], set[str]]:
    """Re-derive slot maps from a batch of logs.

    Slots pointing at logs the batch shows as closed are cleared; open work logs
    missing from the maps are placed into the slot encoded in their id (slot 1 when
    the id carries none). Running it again on the same batch changes nothing, and
    a closed log is never put back into a slot.
    """
    logs = list(logs)
    updated, changed = clear_closed(maps, logs)
    open_ids = {log.id for log in logs if log.is_open}

    for log in logs:
        if not log.is_open:
            continue
        current = updated.get(log.user_id) or SlotMap()
        if current.find_slot(log.id) is not None:
            continue
        slot = slot_from_log_id(log.id)
        if slot not in SLOTS:
            slot = 1
        occupant = current.get(slot)
        # Two open logs claiming one slot: the most recent check-in keeps it.
        if occupant is not None and occupant.id in open_ids and occupant.check_in and log.check_in:
            if occupant.check_in >= log.check_in:
                continue
        updated[log.user_id] = current.with_slot(slot, log)
        changed.add(log.user_id)

    return updated, changed

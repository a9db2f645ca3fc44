from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Employee, Machine, Organization, PositionConfig


class DirectoryRepository(Protocol):
    """Read access to the organization's reference data.

    Note (DIP): the core only reads these records; administrators edit them
    through the outer application.
    """

    def get_organization(self, org_id: str) -> Optional[Organization]:
        raise NotImplementedError

    def get_users(self, org_id: str) -> Sequence[Employee]:
        raise NotImplementedError

    def get_machines(self, org_id: str) -> Sequence[Machine]:
        raise NotImplementedError

    def get_positions(self, org_id: str) -> Sequence[PositionConfig]:
        raise NotImplementedError

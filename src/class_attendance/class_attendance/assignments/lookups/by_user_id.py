from __future__ import annotations

from typing import Optional

from ..repository import StaffDirectory
from .base import StaffLookup


class ByUserIdLookup(StaffLookup):
    name = "user_id"

    def find(self, directory: StaffDirectory, requested_id: int) -> Optional[int]:
        member = directory.get_by_user_id(requested_id)
        if member is None:
            return None
        return requested_id

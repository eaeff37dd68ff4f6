from __future__ import annotations

from typing import Optional

from ..repository import StaffDirectory
from .base import StaffLookup


class ByRecordIdLookup(StaffLookup):
    """Match on the directory's own row id.

    The linked account id is preferred; an unlinked row keeps the requested id.
    """

    name = "record_id"

    def find(self, directory: StaffDirectory, requested_id: int) -> Optional[int]:
        member = directory.get_by_record_id(requested_id)
        if member is None:
            return None
        if member.user_id > 0:
            return member.user_id
        return requested_id

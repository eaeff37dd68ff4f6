from __future__ import annotations

from typing import Optional, Sequence

from ..repository import StaffDirectory
from .base import StaffLookup
from .by_record_id import ByRecordIdLookup
from .by_user_id import ByUserIdLookup


def default_lookup_chain() -> list[StaffLookup]:
    """Account id first, then directory row id."""

    return [ByUserIdLookup(), ByRecordIdLookup()]


def resolve_through_chain(
    lookups: Sequence[StaffLookup], directory: StaffDirectory, requested_id: int
) -> Optional[int]:
    for lookup in lookups:
        found = lookup.find(directory, requested_id)
        if found is not None:
            return found
    return None

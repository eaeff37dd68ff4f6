from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from ..repository import StaffDirectory


class StaffLookup(ABC):
    """Strategy Pattern: one way of turning a requested id into an account id."""

    name: str = "lookup"

    @abstractmethod
    def find(self, directory: StaffDirectory, requested_id: int) -> Optional[int]:
        """Return the account id to store, or None when this lookup has no match."""

        raise NotImplementedError

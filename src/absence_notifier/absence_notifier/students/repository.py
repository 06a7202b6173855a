from __future__ import annotations

from typing import Protocol, Sequence

from .model import StudentContact


class RosterRepository(Protocol):
    def list_active_students(self, tenant_id: int, *, page_size: int, offset: int) -> Sequence[StudentContact]:
        """One page of the tenant's active roster, ordered by student id."""

        raise NotImplementedError

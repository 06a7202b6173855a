from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..common.validators import is_blank


@dataclass(frozen=True)
class ResolvedContact:
    phone: str
    label: str


@dataclass(frozen=True)
class StudentContact:
    """Roster read-model: one active student with guardian contact numbers."""

    student_id: int
    full_name: str
    roll_number: Optional[str] = None
    class_name: Optional[str] = None
    section_name: Optional[str] = None
    guardian_phone: Optional[str] = None
    parent_phone: Optional[str] = None
    mother_phone: Optional[str] = None
    guardian_name: Optional[str] = None
    parent_name: Optional[str] = None

    @property
    def display(self) -> str:
        klass = "-".join(x for x in (self.class_name, self.section_name) if x) or "?"
        return f"{self.full_name} ({klass}, Roll: {self.roll_number or '-'})"

    def resolve_contact(self) -> Optional[ResolvedContact]:
        """First non-blank number in priority order guardian -> parent -> mother."""
        if not is_blank(self.guardian_phone):
            return ResolvedContact(self.guardian_phone.strip(), self.guardian_name or "Guardian")
        if not is_blank(self.parent_phone):
            return ResolvedContact(self.parent_phone.strip(), self.parent_name or "Parent")
        if not is_blank(self.mother_phone):
            return ResolvedContact(self.mother_phone.strip(), "Mother")
        return None

from typing import List

from callingbird.helper.availability_helper import clone_week, empty_week
from callingbird.models.model import Specialty, StaffDraft, StaffMember


def parse_specialty_string(value: str) -> List[Specialty]:
    """Split a comma separated specialties field into named specialties."""
    return [Specialty(name=name) for name in (part.strip() for part in value.split(",")) if name]


def specialties_to_string(specialties: List[Specialty]) -> str:
    return ", ".join(s.name for s in specialties or [])


def new_staff_form() -> StaffDraft:
    """Blank form used when adding a staff member."""
    return StaffDraft(availability=empty_week())


def staff_to_draft(staff: StaffMember) -> StaffDraft:
    """Editable copy of a staff member; the availability is cloned, not shared."""
    return StaffDraft(
        id=staff.id,
        name=staff.name,
        role=staff.role,
        specialties=specialties_to_string(staff.specialties),
        availability=clone_week(staff.availability),
        google_calendar_id=staff.google_calendar_id,
        google_calendar_summary=staff.google_calendar_summary,
        phorest_staff_id=staff.phorest_staff_id,
    )


def draft_to_staff(draft: StaffDraft, original: StaffMember = None) -> StaffMember:
    """
    Turn a draft back into a staff member. Specialties that keep their name
    keep the id they had on the original.
    """
    known_ids = {s.name: s.id for s in original.specialties} if original else {}
    specialties = [
        Specialty(name=s.name, id=known_ids.get(s.name))
        for s in parse_specialty_string(draft.specialties)
    ]
    return StaffMember(
        id=draft.id or "",
        name=draft.name.strip(),
        role=draft.role.strip(),
        specialties=specialties,
        availability=clone_week(draft.availability),
        google_calendar_id=draft.google_calendar_id,
        google_calendar_summary=draft.google_calendar_summary,
        phorest_staff_id=draft.phorest_staff_id,
    )

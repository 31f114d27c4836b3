from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from callingbird.dto.availability_parser import AvailabilityRecordJson
from callingbird.dto.decoding import decode, unwrap_list
from callingbird.helper.availability_helper import from_records_multi, to_records_multi
from callingbird.models.model import Specialty, StaffMember


class SpecialtyJson(BaseModel):
    """Pydantic model for a staff specialty"""
    id: Optional[int] = None
    name: str


class StaffJson(BaseModel):
    """Pydantic model for a staff member as returned by /scheduling/staff-members"""
    model_config = ConfigDict(populate_by_name=True)

    id: Union[int, str]
    company_id: Optional[Union[int, str]] = Field(default=None, alias="companyId")
    name: str
    role: str = ""
    google_calendar_id: Optional[str] = Field(default=None, alias="googleCalendarId")
    google_calendar_summary: Optional[str] = Field(default=None, alias="googleCalendarSummary")
    phorest_staff_id: Optional[str] = Field(default=None, alias="phorestStaffId")
    specialties: List[SpecialtyJson] = Field(default_factory=list)
    availability: List[AvailabilityRecordJson] = Field(default_factory=list)
    created_at: Optional[str] = Field(default=None, alias="createdAt")
    updated_at: Optional[str] = Field(default=None, alias="updatedAt")


def staff_from_dto(dto: StaffJson) -> StaffMember:
    """
    Convert a decoded staff payload into the editor model, spreading the flat
    availability rows over a full seven-day week.
    """
    return StaffMember(
        id=str(dto.id),
        name=dto.name,
        role=dto.role,
        specialties=[Specialty(id=s.id, name=s.name) for s in dto.specialties],
        availability=from_records_multi([a.to_record() for a in dto.availability]),
        google_calendar_id=dto.google_calendar_id,
        google_calendar_summary=dto.google_calendar_summary,
        phorest_staff_id=dto.phorest_staff_id,
    )


def staff_to_payload(staff: StaffMember, include_id: bool = False) -> Dict[str, Any]:
    """
    Build the POST/PUT body for a staff member.

    Args:
        staff: Staff member to send
        include_id: True for updates, where the id travels in the body

    Returns:
        Dict: JSON body with a full week of availability rows
    """
    specialties = []
    for specialty in staff.specialties:
        entry: Dict[str, Any] = {"name": specialty.name}
        if include_id and isinstance(specialty.id, int) and not isinstance(specialty.id, bool):
            entry["id"] = specialty.id
        specialties.append(entry)

    payload: Dict[str, Any] = {
        "name": staff.name,
        "role": staff.role,
        "specialties": specialties,
        "availability": [record.to_dict() for record in to_records_multi(staff.availability)],
        "googleCalendarId": staff.google_calendar_id,
        "googleCalendarSummary": staff.google_calendar_summary,
        "phorestStaffId": staff.phorest_staff_id,
    }
    if include_id:
        payload = {"id": staff.id, **payload}
    return payload


def parse_staff(raw_data: Any) -> StaffMember:
    return staff_from_dto(decode(StaffJson, raw_data, "staff member"))


def parse_staff_list(raw_data: Any) -> List[StaffMember]:
    rows = unwrap_list(raw_data, None, "staff members")
    return [parse_staff(row) for row in rows]

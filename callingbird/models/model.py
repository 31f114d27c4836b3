# model.py
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from callingbird.constants import DEFAULT_APPOINTMENT_DURATION


@dataclass
class TimeBlock:
    start_time: str  # "HH:MM"
    end_time: str    # "HH:MM"

    def to_dict(self):
        return {"startTime": self.start_time, "endTime": self.end_time}


@dataclass
class DaySchedule:
    is_working: bool = False
    # Kept when is_working is False so re-enabling the day restores prior input
    blocks: List[TimeBlock] = field(default_factory=list)


# Day key ("monday" ... "sunday") -> DaySchedule
WeeklyAvailability = Dict[str, DaySchedule]


@dataclass
class AvailabilityRecord:
    """One staff availability row as transmitted by the backend."""
    day_of_week: int                 # 0=Sunday .. 6=Saturday
    is_active: bool
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    id: Optional[int] = None         # assigned by the backend
    staff_id: int = 0

    def to_dict(self):
        return {
            "id": self.id,
            "staffId": self.staff_id,
            "dayOfWeek": self.day_of_week,
            "isActive": self.is_active,
            "startTime": self.start_time,
            "endTime": self.end_time,
        }


@dataclass
class BusinessHoursRecord:
    """One company operating-hours row as transmitted by the backend."""
    day_of_week: int
    is_open: bool
    open_time: Optional[str] = None
    close_time: Optional[str] = None
    id: Optional[int] = None

    def to_dict(self):
        d = {
            "dayOfWeek": self.day_of_week,
            "isOpen": self.is_open,
            "openTime": self.open_time,
            "closeTime": self.close_time,
        }
        if self.id is not None:
            d["id"] = self.id
        return d


@dataclass
class Specialty:
    name: str
    id: Optional[Union[int, str]] = None


@dataclass
class StaffMember:
    id: str
    name: str
    role: str
    specialties: List[Specialty] = field(default_factory=list)
    availability: WeeklyAvailability = field(default_factory=dict)
    google_calendar_id: Optional[str] = None
    google_calendar_summary: Optional[str] = None
    phorest_staff_id: Optional[str] = None


@dataclass
class StaffDraft:
    """Editable copy of a staff member; specialties are edited as one string."""
    name: str = ""
    role: str = ""
    specialties: str = ""
    availability: WeeklyAvailability = field(default_factory=dict)
    google_calendar_id: Optional[str] = None
    google_calendar_summary: Optional[str] = None
    phorest_staff_id: Optional[str] = None
    id: Optional[str] = None


@dataclass
class AppointmentCategory:
    name: str
    id: Optional[int] = None
    description: Optional[str] = None
    color: Optional[str] = None


@dataclass
class AppointmentType:
    id: str
    name: str
    duration: int
    price: Optional[float] = None
    description: str = ""
    category_id: Optional[int] = None
    category: Optional[AppointmentCategory] = None


@dataclass
class AppointmentTypeForm:
    name: str = ""
    duration: int = DEFAULT_APPOINTMENT_DURATION
    price: Optional[float] = None
    description: str = ""
    category_id: Optional[int] = None
    new_category_name: Optional[str] = None
    id: Optional[str] = None


@dataclass
class AppointmentPreset:
    name: str
    duration: int = DEFAULT_APPOINTMENT_DURATION
    price: Optional[float] = None
    description: str = ""
    category: Optional[str] = None


@dataclass
class GoogleCalendar:
    id: str
    summary: Optional[str] = None
    display_name: Optional[str] = None
    summary_override: Optional[str] = None
    description: Optional[str] = None
    time_zone: Optional[str] = None
    primary: bool = False
    selected: bool = False
    access_role: Optional[str] = None
    background_color: Optional[str] = None

    def display_label(self) -> str:
        return self.display_name or self.summary or self.summary_override or self.id


@dataclass
class CompanySetupStatus:
    needs_setup: bool
    missing_fields: List[str] = field(default_factory=list)


@dataclass
class VoiceSettings:
    welcome_phrase: str
    talking_speed: float
    voice_id: str
    id: Optional[int] = None
    company_id: Optional[int] = None


@dataclass
class ReplyStyle:
    name: str
    description: Optional[str] = None
    id: Optional[int] = None
    company_id: Optional[int] = None


@dataclass
class PhoneNumberEntry:
    number: str
    last_call_sid: Optional[str] = None
    last_seen_at: Optional[str] = None
    total_calls: Optional[int] = None


@dataclass
class CallSummary:
    call_sid: str
    from_number: str
    started_at: Optional[str] = None
    ended_at: Optional[str] = None
    vapi_call_id: Optional[str] = None


@dataclass
class CallMessage:
    role: str
    content: str
    start_time: Optional[float] = None


@dataclass
class CallTranscript:
    call_sid: str
    from_number: str = ""
    vapi_call_id: Optional[str] = None
    started_at: Optional[str] = None
    ended_at: Optional[str] = None
    messages: List[CallMessage] = field(default_factory=list)

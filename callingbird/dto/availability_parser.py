from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from callingbird.dto.decoding import decode, unwrap_list
from callingbird.models.model import AvailabilityRecord, BusinessHoursRecord


class AvailabilityRecordJson(BaseModel):
    """Pydantic model for a staff availability row"""
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[int] = None
    staff_id: int = Field(default=0, alias="staffId")
    day_of_week: int = Field(alias="dayOfWeek")
    is_active: bool = Field(default=False, alias="isActive")
    start_time: Optional[str] = Field(default=None, alias="startTime")
    end_time: Optional[str] = Field(default=None, alias="endTime")

    def to_record(self) -> AvailabilityRecord:
        return AvailabilityRecord(
            id=self.id,
            staff_id=self.staff_id,
            day_of_week=self.day_of_week,
            is_active=self.is_active,
            start_time=self.start_time,
            end_time=self.end_time,
        )


class BusinessHoursJson(BaseModel):
    """Pydantic model for a company operating-hours row"""
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[int] = None
    day_of_week: int = Field(alias="dayOfWeek")
    is_open: bool = Field(default=False, alias="isOpen")
    open_time: Optional[str] = Field(default=None, alias="openTime")
    close_time: Optional[str] = Field(default=None, alias="closeTime")

    def to_record(self) -> BusinessHoursRecord:
        return BusinessHoursRecord(
            id=self.id,
            day_of_week=self.day_of_week,
            is_open=self.is_open,
            open_time=self.open_time,
            close_time=self.close_time,
        )


def parse_availability_records(raw_data: Any) -> List[AvailabilityRecord]:
    """
    Parse a staff availability array.

    Args:
        raw_data: JSON array of availability rows

    Returns:
        List[AvailabilityRecord]: Records in backend order
    """
    rows = unwrap_list(raw_data, None, "availability records")
    return [decode(AvailabilityRecordJson, row, "availability record").to_record() for row in rows]


def parse_business_hours(raw_data: Any) -> List[BusinessHoursRecord]:
    """
    Parse the company hours array returned by GET /company/hours.

    Args:
        raw_data: JSON array of hours rows, or an object wrapping it under "hours"

    Returns:
        List[BusinessHoursRecord]: Records in backend order
    """
    rows = unwrap_list(raw_data, "hours", "business hours")
    return [decode(BusinessHoursJson, row, "business hours").to_record() for row in rows]

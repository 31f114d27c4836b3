from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from callingbird.dto.decoding import decode, unwrap_list
from callingbird.models.model import GoogleCalendar


class GoogleCalendarJson(BaseModel):
    """Pydantic model for a linked Google calendar"""
    model_config = ConfigDict(populate_by_name=True)

    id: Union[str, int]
    summary: Optional[str] = None
    display_name: Optional[str] = Field(default=None, alias="displayName")
    summary_override: Optional[str] = Field(default=None, alias="summaryOverride")
    description: Optional[str] = None
    time_zone: Optional[str] = Field(default=None, alias="timeZone")
    primary: Optional[bool] = False
    selected: Optional[bool] = False
    access_role: Optional[str] = Field(default=None, alias="accessRole")
    background_color: Optional[str] = Field(default=None, alias="backgroundColor")

    def to_calendar(self) -> GoogleCalendar:
        return GoogleCalendar(
            id=str(self.id),
            summary=self.summary,
            display_name=self.display_name,
            summary_override=self.summary_override,
            description=self.description,
            time_zone=self.time_zone,
            primary=bool(self.primary),
            selected=bool(self.selected),
            access_role=self.access_role,
            background_color=self.background_color,
        )


def parse_calendars(raw_data: Any) -> List[GoogleCalendar]:
    """Parse GET /google/calendars, either a bare list or {"calendars": [...]}."""
    rows = unwrap_list(raw_data, "calendars", "Google calendars")
    return [decode(GoogleCalendarJson, row, "Google calendar").to_calendar() for row in rows]

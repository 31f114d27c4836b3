"""
Decoding of call history payloads: phone numbers, call summaries and
transcripts. Each payload has a current shape and one legacy shape; anything
else is rejected with DecodeError.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from callingbird.dto.decoding import decode, decode_first, unwrap_list
from callingbird.errors import DecodeError
from callingbird.models.model import CallMessage, CallSummary, CallTranscript, PhoneNumberEntry
from callingbird.utils.time_utils import timestamp_sort_key


def _float_or_none(value):
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _stripped(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value.strip()


# ======================================
# PHONE NUMBERS
# ======================================

class PhoneNumberJson(BaseModel):
    """Pydantic model for a caller phone number entry"""
    model_config = ConfigDict(populate_by_name=True)

    phone_number: str = Field(alias="phoneNumber", min_length=1)
    last_call_sid: Optional[str] = Field(default=None, alias="lastCallSid")
    last_seen_at: Optional[str] = Field(default=None, alias="lastSeenAt")
    total_calls: Optional[int] = Field(default=None, alias="totalCalls")

    def to_entry(self) -> PhoneNumberEntry:
        return PhoneNumberEntry(
            number=self.phone_number.strip(),
            last_call_sid=_stripped(self.last_call_sid),
            last_seen_at=_stripped(self.last_seen_at),
            total_calls=self.total_calls,
        )


class PhoneNumberJsonV1(BaseModel):
    """Legacy phone number entry shape"""
    model_config = ConfigDict(populate_by_name=True)

    number: str = Field(min_length=1)
    call_sid: Optional[str] = Field(default=None, alias="callSid")
    started_at: Optional[str] = Field(default=None, alias="startedAt")
    count: Optional[int] = None

    def to_entry(self) -> PhoneNumberEntry:
        return PhoneNumberEntry(
            number=self.number.strip(),
            last_call_sid=_stripped(self.call_sid),
            last_seen_at=_stripped(self.started_at),
            total_calls=self.count,
        )


PHONE_NUMBER_SHAPES = (PhoneNumberJson, PhoneNumberJsonV1)


def parse_phone_numbers(raw_data: Any) -> List[PhoneNumberEntry]:
    """
    Parse the caller phone number list, de-duplicated by number.

    Entries may be bare strings or objects. When a number repeats, later
    entries win field by field and earlier values fill their gaps.
    """
    rows = unwrap_list(raw_data, "phoneNumbers", "phone numbers")
    unique: Dict[str, PhoneNumberEntry] = {}

    for row in rows:
        if isinstance(row, str):
            if not row.strip():
                raise DecodeError("Empty phone number entry")
            entry = PhoneNumberEntry(number=row.strip())
        else:
            entry = decode_first(PHONE_NUMBER_SHAPES, row, "phone number").to_entry()

        existing = unique.get(entry.number)
        if existing is None:
            unique[entry.number] = entry
            continue
        unique[entry.number] = PhoneNumberEntry(
            number=entry.number,
            last_call_sid=entry.last_call_sid or existing.last_call_sid,
            last_seen_at=entry.last_seen_at or existing.last_seen_at,
            total_calls=entry.total_calls if entry.total_calls is not None else existing.total_calls,
        )

    return list(unique.values())


# ======================================
# CALL SUMMARIES
# ======================================

class CallSummaryJson(BaseModel):
    """Pydantic model for a call summary"""
    model_config = ConfigDict(populate_by_name=True)

    call_sid: str = Field(alias="callSid", min_length=1)
    from_number: Optional[str] = Field(default=None, alias="fromNumber")
    started_at: Optional[str] = Field(default=None, alias="startedAt")
    ended_at: Optional[str] = Field(default=None, alias="endedAt")
    vapi_call_id: Optional[str] = Field(default=None, alias="vapiCallId")

    def to_summary(self, fallback_number: str) -> CallSummary:
        return CallSummary(
            call_sid=self.call_sid,
            from_number=_stripped(self.from_number) or fallback_number,
            started_at=_stripped(self.started_at),
            ended_at=_stripped(self.ended_at),
            vapi_call_id=_stripped(self.vapi_call_id),
        )


class CallSummaryJsonV1(BaseModel):
    """Legacy call summary shape (Twilio-style field names)"""
    model_config = ConfigDict(populate_by_name=True)

    sid: str = Field(min_length=1)
    from_: Optional[str] = Field(default=None, alias="from")
    start_time: Optional[str] = Field(default=None, alias="startTime")
    end_time: Optional[str] = Field(default=None, alias="endTime")
    vapi_call_id: Optional[str] = None

    def to_summary(self, fallback_number: str) -> CallSummary:
        return CallSummary(
            call_sid=self.sid,
            from_number=_stripped(self.from_) or fallback_number,
            started_at=_stripped(self.start_time),
            ended_at=_stripped(self.end_time),
            vapi_call_id=_stripped(self.vapi_call_id),
        )


CALL_SUMMARY_SHAPES = (CallSummaryJson, CallSummaryJsonV1)


def parse_call_summaries(raw_data: Any, fallback_number: str) -> List[CallSummary]:
    """
    Parse the calls made from one phone number, newest first.

    Args:
        raw_data: Bare list or {"calls": [...]}
        fallback_number: Number used when a call carries no caller number

    Returns:
        List[CallSummary]: Summaries sorted by start time, newest first
    """
    rows = unwrap_list(raw_data, "calls", "calls")
    summaries = [
        decode_first(CALL_SUMMARY_SHAPES, row, "call summary").to_summary(fallback_number)
        for row in rows
    ]
    summaries.sort(key=lambda s: timestamp_sort_key(s.started_at), reverse=True)
    return summaries


# ======================================
# TRANSCRIPTS
# ======================================

class CallMessageJson(BaseModel):
    """Pydantic model for a transcript message"""
    model_config = ConfigDict(populate_by_name=True)

    role: Optional[str] = None
    content: str
    start_time: Optional[float] = Field(default=None, alias="startTime")

    @field_validator("start_time", mode="before")
    @classmethod
    def numeric_start_time(cls, value):
        return _float_or_none(value)

    def text(self) -> str:
        return self.content


class CallMessageJsonV1(BaseModel):
    """Legacy transcript message shape"""
    model_config = ConfigDict(populate_by_name=True)

    role: Optional[str] = None
    message: str
    start_time: Optional[float] = Field(default=None, alias="startTime")

    @field_validator("start_time", mode="before")
    @classmethod
    def numeric_start_time(cls, value):
        return _float_or_none(value)

    def text(self) -> str:
        return self.message


CALL_MESSAGE_SHAPES = (CallMessageJson, CallMessageJsonV1)


class CallTranscriptJson(BaseModel):
    """Pydantic model for a call with its transcript"""
    model_config = ConfigDict(populate_by_name=True)

    call_sid: str = Field(alias="callSid", min_length=1)
    from_number: Optional[str] = Field(default=None, alias="fromNumber")
    vapi_call_id: Optional[str] = Field(default=None, alias="vapiCallId")
    started_at: Optional[str] = Field(default=None, alias="startedAt")
    ended_at: Optional[str] = Field(default=None, alias="endedAt")
    messages: List[Any] = Field(default_factory=list)


def parse_transcript(raw_data: Any) -> CallTranscript:
    """
    Parse a call transcript. Messages without text and without a start time
    are dropped; the rest are ordered by start time, untimed messages last.
    """
    transcript = decode(CallTranscriptJson, raw_data, "call transcript")

    messages: List[CallMessage] = []
    for raw_message in transcript.messages:
        message = decode_first(CALL_MESSAGE_SHAPES, raw_message, "call message")
        content = message.text().strip()
        if not content and message.start_time is None:
            continue
        messages.append(CallMessage(
            role=_stripped(message.role) or "unknown",
            content=content,
            start_time=message.start_time,
        ))

    messages.sort(key=lambda m: (m.start_time is None, m.start_time or 0.0))

    return CallTranscript(
        call_sid=transcript.call_sid,
        from_number=_stripped(transcript.from_number) or "",
        vapi_call_id=_stripped(transcript.vapi_call_id),
        started_at=_stripped(transcript.started_at),
        ended_at=_stripped(transcript.ended_at),
        messages=messages,
    )

from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, StrictStr, field_validator
from pydantic import ValidationError as PydanticValidationError

from callingbird.dto.decoding import decode
from callingbird.models.model import ReplyStyle, VoiceSettings


def _non_blank(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be blank")
    return value


class VoiceSettingsJson(BaseModel):
    """Pydantic model for the voice agent settings"""
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[int] = None
    company_id: Optional[int] = Field(default=None, alias="companyId")
    welcome_phrase: StrictStr = Field(alias="welcomePhrase")
    talking_speed: Union[StrictInt, StrictFloat] = Field(alias="talkingSpeed")
    voice_id: StrictStr = Field(alias="voiceId")

    @field_validator("welcome_phrase")
    @classmethod
    def welcome_phrase_not_blank(cls, value):
        return _non_blank(value)

    def to_settings(self) -> VoiceSettings:
        return VoiceSettings(
            id=self.id,
            company_id=self.company_id,
            welcome_phrase=self.welcome_phrase,
            talking_speed=float(self.talking_speed),
            voice_id=self.voice_id,
        )


class ReplyStyleJson(BaseModel):
    """Pydantic model for the reply style"""
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[int] = None
    company_id: Optional[int] = Field(default=None, alias="companyId")
    name: StrictStr
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value):
        return _non_blank(value)

    def to_reply_style(self) -> ReplyStyle:
        return ReplyStyle(id=self.id, company_id=self.company_id, name=self.name, description=self.description)


def parse_voice_settings(raw_data: Any) -> VoiceSettings:
    return decode(VoiceSettingsJson, raw_data, "voice settings").to_settings()


def parse_reply_style(raw_data: Any) -> ReplyStyle:
    return decode(ReplyStyleJson, raw_data, "reply style").to_reply_style()


def is_valid_voice_settings(raw_data: Any) -> bool:
    try:
        VoiceSettingsJson.model_validate(raw_data)
    except PydanticValidationError:
        return False
    return True


def is_valid_reply_style(raw_data: Any) -> bool:
    try:
        ReplyStyleJson.model_validate(raw_data)
    except PydanticValidationError:
        return False
    return True

import json
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from callingbird.constants import FALLBACK_CATEGORY_NAME
from callingbird.dto.decoding import decode, decode_first, unwrap_list
from callingbird.errors import ValidationError
from callingbird.models.model import AppointmentCategory, AppointmentPreset, AppointmentType, AppointmentTypeForm


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class AppointmentCategoryJson(BaseModel):
    """Pydantic model for an appointment category"""
    id: Optional[int] = None
    name: str
    description: Optional[str] = None
    color: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def blank_id_to_none(cls, value):
        return _blank_to_none(value)

    def to_category(self) -> AppointmentCategory:
        return AppointmentCategory(id=self.id, name=self.name, description=self.description, color=self.color)


class AppointmentCategoryJsonV1(BaseModel):
    """Legacy category shape, labelled instead of named"""
    id: Optional[int] = None
    label: str
    description: Optional[str] = None
    color: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def blank_id_to_none(cls, value):
        return _blank_to_none(value)

    def to_category(self) -> AppointmentCategory:
        return AppointmentCategory(id=self.id, name=self.label, description=self.description, color=self.color)


CATEGORY_SHAPES = (AppointmentCategoryJson, AppointmentCategoryJsonV1)


class AppointmentTypeJson(BaseModel):
    """Pydantic model for an appointment type"""
    model_config = ConfigDict(populate_by_name=True)

    id: Union[int, str]
    name: str
    duration: int
    price: Optional[float] = None
    description: Optional[str] = None
    category_id: Optional[int] = Field(default=None, alias="categoryId")
    category: Optional[Union[AppointmentCategoryJson, AppointmentCategoryJsonV1, str]] = None

    @field_validator("category_id", "price", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        return _blank_to_none(value)

    def to_appointment_type(self) -> AppointmentType:
        category = self.category
        if isinstance(category, str):
            category = AppointmentCategoryJson(id=self.category_id, name=category.strip())
        return _build_appointment_type(
            id=self.id,
            name=self.name,
            duration=self.duration,
            price=self.price,
            description=self.description,
            category_id=self.category_id,
            category=category.to_category() if category is not None else None,
        )


class AppointmentTypeJsonV1(BaseModel):
    """Legacy appointment type shape with service naming"""
    model_config = ConfigDict(populate_by_name=True)

    id: Union[int, str]
    service_name: str = Field(alias="serviceName")
    duration_minutes: int = Field(alias="durationMinutes")
    price: Optional[float] = None
    description: Optional[str] = None
    category_id: Optional[int] = Field(default=None, alias="categoryId")
    category_name: Optional[str] = Field(default=None, alias="categoryName")

    @field_validator("category_id", "price", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        return _blank_to_none(value)

    def to_appointment_type(self) -> AppointmentType:
        category = None
        if self.category_name and self.category_name.strip():
            category = AppointmentCategory(id=self.category_id, name=self.category_name.strip())
        return _build_appointment_type(
            id=self.id,
            name=self.service_name,
            duration=self.duration_minutes,
            price=self.price,
            description=self.description,
            category_id=self.category_id,
            category=category,
        )


APPOINTMENT_TYPE_SHAPES = (AppointmentTypeJson, AppointmentTypeJsonV1)


class AppointmentPresetJson(BaseModel):
    """Pydantic model for an entry of the appointment presets file"""
    name: str
    duration: int = 30
    price: Optional[float] = None
    description: str = ""
    category: Optional[str] = None


def _build_appointment_type(
    id: Union[int, str],
    name: str,
    duration: int,
    price: Optional[float],
    description: Optional[str],
    category_id: Optional[int],
    category: Optional[AppointmentCategory],
) -> AppointmentType:
    if category_id is None and category is not None:
        category_id = category.id
    if category is None and category_id is not None:
        category = AppointmentCategory(id=category_id, name=FALLBACK_CATEGORY_NAME)
    elif category is not None and category.id is None:
        category.id = category_id
    return AppointmentType(
        id=str(id),
        name=name,
        duration=duration,
        price=price,
        description=description or "",
        category_id=category_id,
        category=category,
    )


def parse_appointment_type(raw_data: Any) -> AppointmentType:
    return decode_first(APPOINTMENT_TYPE_SHAPES, raw_data, "appointment type").to_appointment_type()


def parse_appointment_types(raw_data: Any) -> List[AppointmentType]:
    rows = unwrap_list(raw_data, None, "appointment types")
    return [parse_appointment_type(row) for row in rows]


def parse_categories(raw_data: Any) -> List[AppointmentCategory]:
    rows = unwrap_list(raw_data, "categories", "appointment categories")
    return [decode_first(CATEGORY_SHAPES, row, "appointment category").to_category() for row in rows]


def parse_presets(raw_data: Any) -> List[AppointmentPreset]:
    rows = unwrap_list(raw_data, "presets", "appointment presets")
    presets = []
    for row in rows:
        preset = decode(AppointmentPresetJson, row, "appointment preset")
        presets.append(AppointmentPreset(
            name=preset.name,
            duration=preset.duration,
            price=preset.price,
            description=preset.description,
            category=preset.category,
        ))
    return presets


def load_presets(path: str) -> List[AppointmentPreset]:
    """
    Load appointment presets from a JSON file.

    Args:
        path: Path of the presets JSON file

    Returns:
        List[AppointmentPreset]: Presets in file order
    """
    with open(path, "r", encoding="utf-8") as f:
        return parse_presets(json.load(f))


def validate_appointment_form(form: AppointmentTypeForm) -> None:
    if not form.name or not form.name.strip():
        raise ValidationError("Appointment type name is required", field="name")
    if not form.duration or form.duration <= 0:
        raise ValidationError("Appointment type duration must be positive", field="duration")


def appointment_form_to_payload(form: AppointmentTypeForm, include_id: bool = False) -> Dict[str, Any]:
    """
    Build the POST/PUT body for an appointment type. A new category name
    takes precedence over an existing category id.

    Raises:
        ValidationError: missing name or duration, or a missing id on update
    """
    validate_appointment_form(form)
    if include_id and not form.id:
        raise ValidationError("Missing appointment type id", field="id")

    body: Dict[str, Any] = {
        "name": form.name.strip(),
        "duration": form.duration,
        "price": form.price,
        "description": form.description or None,
    }
    if include_id:
        body = {"id": form.id, **body}

    new_category = (form.new_category_name or "").strip()
    if new_category:
        body["newCategoryName"] = new_category
    else:
        body["categoryId"] = form.category_id
    return body

"""
Screen-level editors built on DirtyTracker.

Each editor owns the trackers of one dashboard screen and talks to the
backend through a CallingBirdClient. Backend failures are caught here and
turned into an error message on the editor; caller-side validation errors
are raised before any request is made.
"""
from dataclasses import fields as dataclass_fields
from typing import Any, Callable, Dict, List, Optional

from callingbird.constants import DEFAULT_APPOINTMENT_DURATION
from callingbird.dto.appointment_parser import load_presets, validate_appointment_form
from callingbird.errors import CallingBirdError, DecodeError, ValidationError
from callingbird.helper.availability_helper import (
    apply_availability_template,
    availability_equals,
    availability_warnings,
    clone_week,
    default_time_block,
    normalize_blocks,
)
from callingbird.helper.staff_helper import draft_to_staff, new_staff_form, staff_to_draft
from callingbird.models.model import (
    AppointmentCategory,
    AppointmentPreset,
    AppointmentType,
    AppointmentTypeForm,
    DaySchedule,
    GoogleCalendar,
    StaffDraft,
    StaffMember,
    TimeBlock,
    WeeklyAvailability,
)
from callingbird.tracker.dirty_tracker import DirtyTracker, FormDefaultsTracker
from callingbird.utils.logging_config import get_tracker_logger

logger = get_tracker_logger()

AVAILABILITY = "availability"
HOURS = "hours"


def _trimmed_equals(a: Optional[str], b: Optional[str]) -> bool:
    return (a or "").strip() == (b or "").strip()


def _draft_values(draft: StaffDraft) -> Dict[str, Any]:
    return {f.name: getattr(draft, f.name) for f in dataclass_fields(StaffDraft)}


def _with_day(week: WeeklyAvailability, day: str, change: Callable[[DaySchedule], DaySchedule]) -> WeeklyAvailability:
    """Return a cloned week where one day has been replaced by change(day)."""
    if day not in week:
        raise ValidationError(f"Unknown day: {day}", field=AVAILABILITY)
    result = clone_week(week)
    result[day] = change(result[day])
    return result


def set_day_working(week: WeeklyAvailability, day: str, is_working: bool) -> WeeklyAvailability:
    return _with_day(week, day, lambda entry: DaySchedule(
        is_working=is_working,
        blocks=normalize_blocks(entry.blocks),
    ))


def set_block_time(
    week: WeeklyAvailability,
    day: str,
    block_index: int,
    field: str,
    value: str
) -> WeeklyAvailability:
    """
    Return a week with one time of one block changed.

    Args:
        field: "start_time" or "end_time"
    """
    if field not in ("start_time", "end_time"):
        raise ValidationError(f"Unknown time block field: {field}", field=AVAILABILITY)

    def change(entry: DaySchedule) -> DaySchedule:
        blocks = normalize_blocks(entry.blocks)
        if not 0 <= block_index < len(blocks):
            raise ValidationError(f"No time block {block_index} on {day}", field=AVAILABILITY)
        updated = TimeBlock(start_time=blocks[block_index].start_time, end_time=blocks[block_index].end_time)
        setattr(updated, field, value)
        blocks[block_index] = updated
        return DaySchedule(is_working=entry.is_working, blocks=blocks)

    return _with_day(week, day, change)


def add_block(week: WeeklyAvailability, day: str) -> WeeklyAvailability:
    """Append a default block to a day and mark it as a working day."""
    return _with_day(week, day, lambda entry: DaySchedule(
        is_working=True,
        blocks=normalize_blocks(entry.blocks) + [default_time_block()],
    ))


def remove_block(week: WeeklyAvailability, day: str, block_index: int) -> WeeklyAvailability:
    """Remove one block; the last remaining block of a day is kept."""
    def change(entry: DaySchedule) -> DaySchedule:
        blocks = normalize_blocks(entry.blocks)
        if len(blocks) == 1:
            return entry
        return DaySchedule(
            is_working=entry.is_working,
            blocks=[block for index, block in enumerate(blocks) if index != block_index],
        )

    return _with_day(week, day, change)


def _new_staff_defaults() -> Dict[str, Any]:
    return _draft_values(new_staff_form())


_STAFF_COMPARATORS = {
    "name": _trimmed_equals,
    "role": _trimmed_equals,
    "specialties": _trimmed_equals,
    AVAILABILITY: availability_equals,
}
_STAFF_CLONERS = {AVAILABILITY: clone_week}


class StaffEditor:
    """
    Staff screen: the list of staff members, the "add staff member" form and
    at most one open edit draft.

    Args:
        client: CallingBirdClient used for all backend calls
        on_dirty_change: Called with (name, is_dirty) when the new-staff form
            or the edit draft changes dirty state
    """

    NEW_FORM = "new-staff"

    def __init__(self, client, on_dirty_change: Optional[Callable[[str, bool], None]] = None):
        self.client = client
        self.staff_members: List[StaffMember] = []
        self.calendars: List[GoogleCalendar] = []
        self.error: Optional[str] = None
        self.last_saved_availability: Optional[WeeklyAvailability] = None
        self._on_dirty_change = on_dirty_change

        self.new_form = FormDefaultsTracker(
            self.NEW_FORM,
            _new_staff_defaults,
            comparators=_STAFF_COMPARATORS,
            cloners=_STAFF_CLONERS,
            on_dirty_change=on_dirty_change,
        )
        self.draft: Optional[DirtyTracker] = None
        self._editing: Optional[StaffMember] = None

    @property
    def has_unsaved_changes(self) -> bool:
        return self.new_form.is_dirty or (self.draft is not None and self.draft.is_dirty)

    def load(self) -> bool:
        """
        Fetch staff members and Google calendars. Calendars are optional; a
        failure there is logged and leaves the list empty.

        Returns:
            bool: False when the staff list could not be loaded
        """
        try:
            self.staff_members = self.client.get_staff_members()
        except CallingBirdError as e:
            self.error = str(e)
            logger.error(f"Failed to load staff members: {e}")
            return False

        try:
            self.calendars = self.client.get_google_calendars()
        except CallingBirdError as e:
            logger.warning(f"Failed to load Google calendars: {e}")
            self.calendars = []

        self.error = None
        return True

    # ======================================
    # NEW STAFF FORM
    # ======================================

    def set_new_field(self, name: str, value: Any) -> bool:
        return self.new_form.set_field(name, value)

    def _edit_new_availability(self, change: Callable[[WeeklyAvailability], WeeklyAvailability]) -> bool:
        return self.new_form.set_field(AVAILABILITY, change(self.new_form.get(AVAILABILITY)))

    def set_new_day_working(self, day: str, is_working: bool) -> bool:
        return self._edit_new_availability(lambda week: set_day_working(week, day, is_working))

    def set_new_block_time(self, day: str, block_index: int, field: str, value: str) -> bool:
        return self._edit_new_availability(lambda week: set_block_time(week, day, block_index, field, value))

    def add_new_block(self, day: str) -> bool:
        return self._edit_new_availability(lambda week: add_block(week, day))

    def remove_new_block(self, day: str, block_index: int) -> bool:
        return self._edit_new_availability(lambda week: remove_block(week, day, block_index))

    def apply_template(self, template: str) -> bool:
        """Apply a quick schedule template; "copy" uses the last saved week."""
        week = apply_availability_template(
            self.new_form.get(AVAILABILITY),
            template,
            last_saved=self.last_saved_availability,
        )
        return self.new_form.set_field(AVAILABILITY, week)

    def new_form_warnings(self) -> Dict[str, List[str]]:
        return availability_warnings(self.new_form.get(AVAILABILITY))

    def add_staff_member(self) -> Optional[StaffMember]:
        """
        Create a staff member from the form.

        Returns:
            StaffMember: The created member, or None when the backend call failed

        Raises:
            ValidationError: missing name or role, or invalid time blocks
        """
        values = self.new_form.values
        if not (values["name"] or "").strip():
            raise ValidationError("Name is required", field="name")
        if not (values["role"] or "").strip():
            raise ValidationError("Role is required", field="role")
        if self.new_form_warnings():
            raise ValidationError("Fix overlapping or invalid time blocks first", field=AVAILABILITY)

        staff = draft_to_staff(StaffDraft(**values))
        self.new_form.begin_save()
        try:
            created = self.client.add_staff_member(staff)
        except CallingBirdError as e:
            self.error = str(e)
            self.new_form.save_failed(e)
            return None
        except Exception as e:
            self.new_form.save_failed(e)
            raise

        self.staff_members.append(created)
        self.last_saved_availability = clone_week(created.availability)
        self.new_form.save_succeeded()
        self.error = None
        return created

    # ======================================
    # EDIT DRAFT
    # ======================================

    def open_edit(self, staff_id: str) -> DirtyTracker:
        """Start editing a staff member on a deep copy of its data."""
        staff = self._find(staff_id)
        self.draft = DirtyTracker(
            f"staff-draft:{staff_id}",
            comparators=_STAFF_COMPARATORS,
            cloners=_STAFF_CLONERS,
            on_dirty_change=self._on_dirty_change,
        )
        self._editing = staff
        self.draft.begin_load()
        self.draft.finish_load(_draft_values(staff_to_draft(staff)))
        return self.draft

    def cancel_edit(self) -> None:
        if self.draft is not None and self.draft.is_dirty:
            self.draft.reset()
        self.draft = None
        self._editing = None

    def set_draft_field(self, name: str, value: Any) -> bool:
        return self._require_draft().set_field(name, value)

    def set_draft_day_working(self, day: str, is_working: bool) -> bool:
        draft = self._require_draft()
        return draft.set_field(AVAILABILITY, set_day_working(draft.get(AVAILABILITY), day, is_working))

    def set_draft_block_time(self, day: str, block_index: int, field: str, value: str) -> bool:
        draft = self._require_draft()
        week = set_block_time(draft.get(AVAILABILITY), day, block_index, field, value)
        return draft.set_field(AVAILABILITY, week)

    def save_draft(self) -> Optional[StaffMember]:
        """
        Save the open draft. On success the list entry is replaced and the
        draft is closed; on failure the draft stays open with its edits.
        """
        draft = self._require_draft()
        staff = draft_to_staff(StaffDraft(**draft.values), original=self._editing)

        draft.begin_save()
        try:
            updated = self.client.update_staff_member(staff)
        except CallingBirdError as e:
            self.error = str(e)
            draft.save_failed(e)
            return None
        except Exception as e:
            draft.save_failed(e)
            raise

        draft.save_succeeded(_draft_values(staff_to_draft(updated)))
        self.staff_members = [updated if s.id == updated.id else s for s in self.staff_members]
        self.draft = None
        self._editing = None
        self.error = None
        return updated

    def delete_staff_member(self, staff_id: str) -> bool:
        try:
            self.client.delete_staff_member(staff_id)
        except CallingBirdError as e:
            self.error = str(e)
            return False
        self.staff_members = [s for s in self.staff_members if s.id != staff_id]
        return True

    def _find(self, staff_id: str) -> StaffMember:
        for staff in self.staff_members:
            if staff.id == staff_id:
                return staff
        raise ValidationError(f"Unknown staff member: {staff_id}", field="id")

    def _require_draft(self) -> DirtyTracker:
        if self.draft is None:
            raise ValidationError("No staff member is being edited")
        return self.draft


def _new_appointment_defaults() -> Dict[str, Any]:
    return {
        "name": "",
        "duration": DEFAULT_APPOINTMENT_DURATION,
        "price": None,
        "description": "",
        "category_id": None,
        "new_category_name": None,
    }


class AppointmentTypeEditor:
    """
    Appointment types screen: the list of types, the "add appointment type"
    form and one-click presets.
    """

    NEW_FORM = "new-appointment-type"

    def __init__(self, client, on_dirty_change: Optional[Callable[[str, bool], None]] = None):
        self.client = client
        self.appointment_types: List[AppointmentType] = []
        self.categories: List[AppointmentCategory] = []
        self.presets: List[AppointmentPreset] = []
        self.last_applied_preset: Optional[AppointmentPreset] = None
        self.error: Optional[str] = None

        self.new_form = FormDefaultsTracker(
            self.NEW_FORM,
            _new_appointment_defaults,
            comparators={
                "name": _trimmed_equals,
                "description": _trimmed_equals,
                "new_category_name": _trimmed_equals,
            },
            on_dirty_change=on_dirty_change,
        )

    @property
    def has_unsaved_changes(self) -> bool:
        return self.new_form.is_dirty

    def load(self, presets_path: Optional[str] = None) -> bool:
        """
        Fetch appointment types and categories, and read presets from a file
        when a path is given. Categories and presets are optional.
        """
        try:
            self.appointment_types = self.client.get_appointment_types()
        except CallingBirdError as e:
            self.error = str(e)
            logger.error(f"Failed to load appointment types: {e}")
            return False

        try:
            self.categories = self.client.get_appointment_categories()
        except CallingBirdError as e:
            logger.warning(f"Failed to load appointment categories: {e}")
            self.categories = []

        if presets_path:
            try:
                self.presets = load_presets(presets_path)
            except (OSError, ValueError, DecodeError) as e:
                logger.warning(f"Failed to load appointment presets from {presets_path}: {e}")
                self.presets = []

        self.error = None
        return True

    def set_field(self, name: str, value: Any) -> bool:
        return self.new_form.set_field(name, value)

    def form(self) -> AppointmentTypeForm:
        return AppointmentTypeForm(**self.new_form.values)

    def add_appointment_type(self) -> Optional[AppointmentType]:
        """
        Create an appointment type from the form.

        Raises:
            ValidationError: missing name or non-positive duration
        """
        form = self.form()
        validate_appointment_form(form)

        self.new_form.begin_save()
        try:
            created = self.client.add_appointment_type(form)
        except CallingBirdError as e:
            self.error = str(e)
            self.new_form.save_failed(e)
            return None
        except Exception as e:
            self.new_form.save_failed(e)
            raise

        self.appointment_types.append(created)
        self.new_form.save_succeeded()
        self.error = None
        return created

    def apply_preset(
        self,
        preset: AppointmentPreset,
        duration: Optional[int] = None,
        price: Optional[float] = None
    ) -> Optional[AppointmentType]:
        """
        Prefill the form from a preset and create it right away. The preset
        category is matched case-insensitively against the known categories;
        an unknown category is sent as a new category name.
        """
        category_id = None
        new_category_name = None
        category_name = (preset.category or "").strip()
        if category_name:
            match = next(
                (c for c in self.categories if (c.name or "").strip().lower() == category_name.lower()),
                None,
            )
            if match is not None and match.id is not None:
                category_id = match.id
            else:
                new_category_name = category_name

        self.new_form.update(
            name=preset.name,
            duration=duration if duration is not None else preset.duration,
            price=price,
            description=preset.description or "",
            category_id=category_id,
            new_category_name=new_category_name,
        )
        self.last_applied_preset = preset
        return self.add_appointment_type()

    def clear_applied_preset(self) -> None:
        self.last_applied_preset = None
        self.new_form.clear()

    def delete_appointment_type(self, appointment_type_id: str) -> bool:
        try:
            self.client.delete_appointment_type(appointment_type_id)
        except CallingBirdError as e:
            self.error = str(e)
            return False
        self.appointment_types = [t for t in self.appointment_types if t.id != appointment_type_id]
        return True


class CompanyHoursEditor:
    """
    Company operating hours screen. Saving sends one request per day and
    keeps going when a day fails; failed days are listed in failed_days.
    """

    def __init__(self, client, on_dirty_change: Optional[Callable[[str, bool], None]] = None):
        self.client = client
        self.error: Optional[str] = None
        self.failed_days: List[str] = []
        self.tracker = DirtyTracker(
            "company-hours",
            comparators={HOURS: availability_equals},
            cloners={HOURS: clone_week},
            on_dirty_change=on_dirty_change,
        )

    @property
    def hours(self) -> WeeklyAvailability:
        return self.tracker.get(HOURS)

    def load(self) -> bool:
        self.tracker.begin_load()
        try:
            week = self.client.get_company_hours()
        except CallingBirdError as e:
            self.error = str(e)
            self.tracker.fail_load(e)
            return False
        self.tracker.finish_load({HOURS: week})
        self.error = None
        return True

    def set_day_open(self, day: str, is_open: bool) -> bool:
        return self.tracker.set_field(HOURS, set_day_working(self.hours, day, is_open))

    def set_day_time(self, day: str, field: str, value: str) -> bool:
        return self.tracker.set_field(HOURS, set_block_time(self.hours, day, 0, field, value))

    def save(self, create: bool = False) -> bool:
        """
        Save all days. The tracker only returns to pristine when every day
        was stored.
        """
        self.tracker.begin_save()
        try:
            results = self.client.save_company_hours(self.hours, create=create)
        except CallingBirdError as e:
            self.error = str(e)
            self.tracker.save_failed(e)
            return False
        except Exception as e:
            self.tracker.save_failed(e)
            raise

        self.failed_days = [day for day, ok in results.items() if not ok]

        if self.failed_days:
            self.error = f"Saving hours failed for: {', '.join(self.failed_days)}"
            self.tracker.save_failed(CallingBirdError(self.error))
            return False

        self.tracker.save_succeeded()
        self.error = None
        return True

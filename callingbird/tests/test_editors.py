import json
from unittest.mock import Mock

import pytest

from callingbird.errors import NetworkError, ValidationError
from callingbird.helper.availability_helper import apply_availability_template, empty_week, working_days
from callingbird.models.model import (
    AppointmentCategory,
    AppointmentPreset,
    AppointmentType,
    DaySchedule,
    Specialty,
    StaffMember,
    TimeBlock,
)
from callingbird.tracker.dirty_tracker import DirtyState, UnsavedChangesGuard
from callingbird.tracker.editors import (
    AppointmentTypeEditor,
    CompanyHoursEditor,
    StaffEditor,
    add_block,
    remove_block,
    set_block_time,
)


def make_staff(staff_id="1", name="Anna"):
    return StaffMember(
        id=staff_id,
        name=name,
        role="Kapper",
        specialties=[Specialty(name="Knippen", id=4)],
        availability=apply_availability_template(empty_week(), "weekday"),
    )


# ======================================
# WEEK EDITING HELPERS
# ======================================

def test_week_helpers_return_new_weeks():
    week = empty_week()
    changed = set_block_time(week, "monday", 0, "end_time", "12:00")
    assert changed["monday"].blocks == [TimeBlock("09:00", "12:00")]
    assert week["monday"].blocks == [TimeBlock("09:00", "17:00")]

    two_blocks = add_block(changed, "monday")
    assert two_blocks["monday"].is_working is True
    assert len(two_blocks["monday"].blocks) == 2

    assert remove_block(two_blocks, "monday", 0)["monday"].blocks == [TimeBlock("09:00", "17:00")]
    assert remove_block(changed, "monday", 0)["monday"].blocks == [TimeBlock("09:00", "12:00")]


def test_week_helpers_validate_input():
    with pytest.raises(ValidationError):
        set_block_time(empty_week(), "monday", 3, "end_time", "12:00")
    with pytest.raises(ValidationError):
        set_block_time(empty_week(), "monday", 0, "colour", "red")
    with pytest.raises(ValidationError):
        add_block(empty_week(), "someday")


# ======================================
# STAFF EDITOR
# ======================================

def test_new_staff_form_tracks_edits():
    observer = Mock()
    editor = StaffEditor(Mock(), on_dirty_change=observer)

    assert not editor.has_unsaved_changes
    editor.set_new_field("name", "  ")
    assert not editor.has_unsaved_changes
    editor.set_new_day_working("tuesday", True)
    assert editor.has_unsaved_changes
    observer.assert_called_once_with("new-staff", True)


def test_add_staff_member_clears_form_and_remembers_week():
    client = Mock()
    client.add_staff_member.side_effect = lambda staff: StaffMember(
        id="9", name=staff.name, role=staff.role, availability=staff.availability,
    )
    editor = StaffEditor(client)
    editor.set_new_field("name", " Bert ")
    editor.set_new_field("role", "Barbier")
    editor.apply_template("weekend")

    created = editor.add_staff_member()

    sent = client.add_staff_member.call_args.args[0]
    assert sent.name == "Bert"
    assert working_days(sent.availability) == ["saturday", "sunday"]
    assert created in editor.staff_members
    assert not editor.has_unsaved_changes
    assert editor.new_form.get("name") == ""

    editor.apply_template("copy")
    assert working_days(editor.new_form.get("availability")) == ["saturday", "sunday"]


def test_add_staff_member_requires_name_and_role():
    client = Mock()
    editor = StaffEditor(client)
    editor.set_new_field("name", "Bert")
    with pytest.raises(ValidationError):
        editor.add_staff_member()
    client.add_staff_member.assert_not_called()


def test_add_staff_member_refuses_invalid_blocks():
    editor = StaffEditor(Mock())
    editor.set_new_field("name", "Bert")
    editor.set_new_field("role", "Barbier")
    editor.add_new_block("monday")
    with pytest.raises(ValidationError):
        editor.add_staff_member()


def test_add_staff_member_failure_keeps_form():
    client = Mock()
    client.add_staff_member.side_effect = NetworkError("POST failed", status=500)
    editor = StaffEditor(client)
    editor.set_new_field("name", "Bert")
    editor.set_new_field("role", "Barbier")

    assert editor.add_staff_member() is None

    assert editor.error == "POST failed"
    assert editor.new_form.get("name") == "Bert"
    assert editor.new_form.state is DirtyState.ERROR
    assert editor.has_unsaved_changes


def test_copy_template_without_saved_week():
    with pytest.raises(ValidationError):
        StaffEditor(Mock()).apply_template("copy")


def test_load_tolerates_calendar_failure():
    client = Mock()
    client.get_staff_members.return_value = [make_staff()]
    client.get_google_calendars.side_effect = NetworkError("no calendars", status=403)
    editor = StaffEditor(client)

    assert editor.load()
    assert editor.calendars == []
    assert len(editor.staff_members) == 1


def test_load_reports_staff_failure():
    client = Mock()
    client.get_staff_members.side_effect = NetworkError("offline")
    editor = StaffEditor(client)
    assert not editor.load()
    assert editor.error == "offline"


def test_edit_draft_does_not_touch_original():
    client = Mock()
    client.get_staff_members.return_value = [make_staff()]
    client.get_google_calendars.return_value = []
    editor = StaffEditor(client)
    editor.load()

    editor.open_edit("1")
    editor.set_draft_day_working("monday", False)
    assert editor.draft.is_dirty

    editor.cancel_edit()
    assert editor.staff_members[0].availability["monday"].is_working is True
    assert editor.draft is None


def test_save_draft_replaces_member_and_keeps_specialty_ids():
    original = make_staff()
    client = Mock()
    client.get_staff_members.return_value = [original]
    client.get_google_calendars.return_value = []
    client.update_staff_member.side_effect = lambda staff: staff
    editor = StaffEditor(client)
    editor.load()

    editor.open_edit("1")
    editor.set_draft_field("name", "Anna Peeters")
    editor.set_draft_block_time("friday", 0, "end_time", "13:00")
    updated = editor.save_draft()

    sent = client.update_staff_member.call_args.args[0]
    assert sent.specialties == [Specialty(name="Knippen", id=4)]
    assert sent.availability["friday"].blocks == [TimeBlock("09:00", "13:00")]
    assert editor.staff_members == [updated]
    assert editor.draft is None


def test_failed_draft_save_keeps_draft_open():
    client = Mock()
    client.get_staff_members.return_value = [make_staff()]
    client.get_google_calendars.return_value = []
    client.update_staff_member.side_effect = NetworkError("PUT failed", status=502)
    editor = StaffEditor(client)
    editor.load()
    editor.open_edit("1")
    editor.set_draft_field("role", "Stylist")

    assert editor.save_draft() is None

    assert editor.draft is not None
    assert editor.draft.is_dirty
    assert editor.draft.get("role") == "Stylist"
    assert editor.staff_members[0].role == "Kapper"


def test_delete_staff_member():
    client = Mock()
    client.get_staff_members.return_value = [make_staff("1"), make_staff("2", "Bert")]
    client.get_google_calendars.return_value = []
    editor = StaffEditor(client)
    editor.load()

    assert editor.delete_staff_member("1")
    assert [s.id for s in editor.staff_members] == ["2"]

    client.delete_staff_member.side_effect = NetworkError("gone", status=404)
    assert not editor.delete_staff_member("2")
    assert editor.error == "gone"


# ======================================
# APPOINTMENT TYPE EDITOR
# ======================================

def test_new_appointment_form_dirty_only_on_real_changes():
    editor = AppointmentTypeEditor(Mock())
    editor.set_field("description", "   ")
    assert not editor.has_unsaved_changes
    editor.set_field("duration", 45)
    assert editor.has_unsaved_changes


def test_apply_preset_matches_existing_category():
    client = Mock()
    client.add_appointment_type.side_effect = lambda form: AppointmentType(
        id="11", name=form.name, duration=form.duration, category_id=form.category_id,
    )
    editor = AppointmentTypeEditor(client)
    editor.categories = [AppointmentCategory(name="Haar", id=2)]

    created = editor.apply_preset(AppointmentPreset(name="Knippen", duration=30, category="haar "), price=25.0)

    form = client.add_appointment_type.call_args.args[0]
    assert form.category_id == 2
    assert form.new_category_name is None
    assert form.price == 25.0
    assert created.id == "11"
    assert editor.last_applied_preset.name == "Knippen"
    assert not editor.has_unsaved_changes


def test_apply_preset_with_unknown_category_sends_new_name():
    client = Mock()
    client.add_appointment_type.side_effect = NetworkError("POST failed", status=500)
    editor = AppointmentTypeEditor(client)

    assert editor.apply_preset(AppointmentPreset(name="Massage", duration=60, category="Wellness")) is None

    form = client.add_appointment_type.call_args.args[0]
    assert form.new_category_name == "Wellness"
    assert form.category_id is None
    assert editor.new_form.get("name") == "Massage"
    assert editor.has_unsaved_changes

    editor.clear_applied_preset()
    assert editor.last_applied_preset is None
    assert not editor.has_unsaved_changes


def test_add_appointment_type_validates_form():
    client = Mock()
    editor = AppointmentTypeEditor(client)
    with pytest.raises(ValidationError):
        editor.add_appointment_type()
    client.add_appointment_type.assert_not_called()


def test_appointment_editor_load_reads_presets(tmp_path):
    path = tmp_path / "presets.json"
    path.write_text(json.dumps([{"name": "Knippen", "duration": 30, "category": "Haar"}]))
    client = Mock()
    client.get_appointment_types.return_value = []
    client.get_appointment_categories.side_effect = NetworkError("no categories", status=500)
    editor = AppointmentTypeEditor(client)

    assert editor.load(presets_path=str(path))
    assert [p.name for p in editor.presets] == ["Knippen"]
    assert editor.categories == []

    assert editor.load(presets_path=str(tmp_path / "missing.json"))
    assert editor.presets == []


# ======================================
# COMPANY HOURS EDITOR
# ======================================

def test_company_hours_editor_save_success():
    client = Mock()
    client.get_company_hours.return_value = empty_week()
    client.save_company_hours.side_effect = lambda week, create=False: {day: True for day in week}
    editor = CompanyHoursEditor(client)

    assert editor.load()
    editor.set_day_open("monday", True)
    editor.set_day_time("monday", "start_time", "08:00")
    assert editor.tracker.is_dirty

    assert editor.save()
    saved_week = client.save_company_hours.call_args.args[0]
    assert saved_week["monday"] == DaySchedule(is_working=True, blocks=[TimeBlock("08:00", "17:00")])
    assert not editor.tracker.is_dirty


def test_company_hours_editor_partial_failure_stays_dirty():
    client = Mock()
    client.get_company_hours.return_value = empty_week()
    client.save_company_hours.side_effect = lambda week, create=False: {
        day: day != "tuesday" for day in week
    }
    editor = CompanyHoursEditor(client)
    editor.load()
    editor.set_day_open("tuesday", True)

    assert not editor.save()

    assert editor.failed_days == ["tuesday"]
    assert editor.tracker.state is DirtyState.ERROR
    assert editor.tracker.is_dirty
    assert editor.hours["tuesday"].is_working is True


def test_company_hours_editor_load_failure():
    client = Mock()
    client.get_company_hours.side_effect = NetworkError("offline")
    editor = CompanyHoursEditor(client)
    assert not editor.load()
    assert editor.tracker.state is DirtyState.ERROR
    assert editor.error == "offline"


def test_guard_blocks_leaving_after_partial_hours_failure():
    client = Mock()
    client.get_company_hours.return_value = empty_week()
    client.save_company_hours.side_effect = lambda week, create=False: {
        day: day != "tuesday" for day in week
    }
    editor = CompanyHoursEditor(client)
    editor.load()
    guard = UnsavedChangesGuard()
    guard.register(editor.tracker)
    editor.set_day_open("tuesday", True)

    assert not guard.proceed(save_fn=editor.save)
    assert guard.dirty_screens() == ["company-hours"]


def test_unexpected_hours_error_does_not_leave_save_in_progress():
    client = Mock()
    client.get_company_hours.return_value = empty_week()
    client.save_company_hours.side_effect = OSError("token file unreadable")
    editor = CompanyHoursEditor(client)
    editor.load()
    editor.set_day_open("monday", True)

    with pytest.raises(OSError):
        editor.save()

    assert editor.tracker.state is DirtyState.ERROR
    assert not editor.tracker.is_saving
    assert editor.tracker.is_dirty

    client.save_company_hours.side_effect = lambda week, create=False: {day: True for day in week}
    assert editor.save()
    assert not editor.tracker.is_dirty


def test_hours_backend_error_is_reported():
    client = Mock()
    client.get_company_hours.return_value = empty_week()
    client.save_company_hours.side_effect = NetworkError("offline")
    editor = CompanyHoursEditor(client)
    editor.load()
    editor.set_day_open("monday", True)

    assert not editor.save()
    assert editor.error == "offline"
    assert editor.tracker.state is DirtyState.ERROR


def test_unexpected_errors_release_staff_and_appointment_saves():
    client = Mock()
    client.get_staff_members.return_value = [make_staff()]
    client.get_google_calendars.return_value = []
    client.add_staff_member.side_effect = OSError("disk")
    client.update_staff_member.side_effect = OSError("disk")
    client.add_appointment_type.side_effect = OSError("disk")
    staff_editor = StaffEditor(client)
    staff_editor.load()
    staff_editor.set_new_field("name", "Bert")
    staff_editor.set_new_field("role", "Barbier")
    staff_editor.open_edit("1")
    staff_editor.set_draft_field("role", "Stylist")
    appointment_editor = AppointmentTypeEditor(client)
    appointment_editor.set_field("name", "Knippen")

    with pytest.raises(OSError):
        staff_editor.add_staff_member()
    with pytest.raises(OSError):
        staff_editor.save_draft()
    with pytest.raises(OSError):
        appointment_editor.add_appointment_type()

    for tracker in (staff_editor.new_form, staff_editor.draft, appointment_editor.new_form):
        assert tracker.state is DirtyState.ERROR
        assert not tracker.is_saving

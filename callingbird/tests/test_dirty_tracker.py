from unittest.mock import Mock

import pytest

from callingbird.errors import CallingBirdError, NetworkError
from callingbird.helper.availability_helper import availability_equals, clone_week, empty_week
from callingbird.tracker.dirty_tracker import DirtyState, DirtyTracker, FormDefaultsTracker, UnsavedChangesGuard


def loaded_tracker(observer=None, **values):
    tracker = DirtyTracker(
        "profile",
        comparators={"availability": availability_equals},
        cloners={"availability": clone_week},
        on_dirty_change=observer,
    )
    tracker.begin_load()
    tracker.finish_load(values or {"name": "Salon", "availability": empty_week()})
    return tracker


# ======================================
# LOADING
# ======================================

def test_lifecycle_states():
    tracker = DirtyTracker("profile")
    assert tracker.state is DirtyState.UNINITIALIZED
    tracker.begin_load()
    assert tracker.state is DirtyState.LOADING
    tracker.finish_load({"name": "Salon"})
    assert tracker.state is DirtyState.PRISTINE
    assert tracker.is_armed
    assert not tracker.is_dirty


def test_writes_before_initial_load_do_not_mark_dirty():
    observer = Mock()
    tracker = DirtyTracker("profile", on_dirty_change=observer)
    tracker.begin_load()
    tracker.set_field("name", "Salon")
    tracker.finish_load(tracker.values)

    assert not tracker.is_dirty
    observer.assert_not_called()


def test_failed_load_goes_to_error():
    tracker = DirtyTracker("profile")
    tracker.begin_load()
    error = NetworkError("GET /company/details failed")
    tracker.fail_load(error)
    assert tracker.state is DirtyState.ERROR
    assert tracker.error is error
    assert not tracker.is_armed


# ======================================
# EDITING
# ======================================

def test_edit_marks_dirty_and_reverting_marks_pristine():
    observer = Mock()
    tracker = loaded_tracker(observer)

    assert tracker.set_field("name", "Salon Anna")
    assert tracker.is_dirty
    assert tracker.state is DirtyState.DIRTY

    tracker.set_field("name", "Salon")
    assert not tracker.is_dirty
    assert tracker.state is DirtyState.PRISTINE
    assert [c.args for c in observer.call_args_list] == [("profile", True), ("profile", False)]


def test_no_op_write_is_ignored():
    observer = Mock()
    tracker = loaded_tracker(observer)

    assert not tracker.set_field("name", "Salon")
    assert not tracker.set_field("availability", empty_week())

    assert not tracker.is_dirty
    observer.assert_not_called()


def test_availability_changes_use_comparator():
    tracker = loaded_tracker()
    week = empty_week()
    week["monday"].is_working = True
    tracker.set_field("availability", week)
    assert tracker.is_dirty


def test_pristine_snapshot_is_not_shared_with_values():
    tracker = loaded_tracker()
    tracker.get("availability")["monday"].is_working = True
    assert tracker.pristine_values["availability"]["monday"].is_working is False


def test_reset_discards_edits():
    tracker = loaded_tracker()
    tracker.set_field("name", "Other")
    tracker.reset()
    assert tracker.get("name") == "Salon"
    assert not tracker.is_dirty


def test_update_reports_whether_anything_changed():
    tracker = loaded_tracker()
    assert not tracker.update(name="Salon")
    assert tracker.update(name="Salon", city="Gent")
    assert tracker.is_dirty


# ======================================
# SAVING
# ======================================

def test_successful_save_reconciles_server_values():
    tracker = loaded_tracker()
    tracker.set_field("name", "salon anna")

    assert tracker.save(lambda values: {"name": "Salon Anna"})

    assert tracker.state is DirtyState.PRISTINE
    assert not tracker.is_dirty
    assert tracker.get("name") == "Salon Anna"
    assert tracker.pristine_values["name"] == "Salon Anna"


def test_writes_during_save_do_not_flip_dirty():
    observer = Mock()
    tracker = loaded_tracker(observer)
    tracker.begin_save()
    tracker.set_field("name", "Reconciled")
    assert not tracker.is_dirty
    tracker.save_succeeded()
    assert tracker.get("name") == "Reconciled"
    observer.assert_not_called()


def test_failed_save_keeps_edits_and_dirty_flag():
    tracker = loaded_tracker()
    tracker.set_field("name", "Salon Anna")

    def failing_save(values):
        raise NetworkError("PUT /company/details returned 500", status=500)

    assert not tracker.save(failing_save)

    assert tracker.state is DirtyState.ERROR
    assert tracker.is_dirty
    assert tracker.get("name") == "Salon Anna"
    assert isinstance(tracker.error, NetworkError)


def test_edits_after_failed_save_are_tracked_again():
    tracker = loaded_tracker()
    tracker.set_field("name", "Salon Anna")
    tracker.begin_save()
    tracker.save_failed(CallingBirdError("boom"))

    tracker.set_field("name", "Salon")

    assert not tracker.is_dirty
    assert tracker.state is DirtyState.PRISTINE


def test_edits_during_a_failed_save_mark_dirty():
    observer = Mock()
    tracker = loaded_tracker(observer)
    tracker.begin_save()
    tracker.set_field("name", "Salon Anna")

    tracker.save_failed(CallingBirdError("boom"))

    assert tracker.state is DirtyState.ERROR
    assert tracker.is_dirty
    observer.assert_called_once_with("profile", True)


def test_unexpected_error_during_save_propagates():
    tracker = loaded_tracker()

    def broken_save(values):
        raise RuntimeError("bug")

    with pytest.raises(RuntimeError):
        tracker.save(broken_save)
    assert tracker.state is DirtyState.ERROR
    assert not tracker.is_saving


def test_save_before_load_is_rejected():
    with pytest.raises(CallingBirdError):
        DirtyTracker("profile").begin_save()


# ======================================
# FORM DEFAULTS
# ======================================

def make_form():
    return FormDefaultsTracker("new-staff", lambda: {"name": "", "availability": empty_week()},
                               comparators={"availability": availability_equals})


def test_form_defaults_tracker_starts_pristine():
    form = make_form()
    assert form.state is DirtyState.PRISTINE
    assert not form.is_dirty
    form.set_field("name", "Anna")
    assert form.is_dirty


def test_form_clear_and_successful_save_return_to_defaults():
    form = make_form()
    form.set_field("name", "Anna")
    form.clear()
    assert form.get("name") == ""
    assert not form.is_dirty

    form.set_field("name", "Bert")
    assert form.save(lambda values: None)
    assert form.get("name") == ""
    assert not form.is_dirty


# ======================================
# UNSAVED CHANGES GUARD
# ======================================

def test_guard_aggregates_trackers():
    on_change = Mock()
    guard = UnsavedChangesGuard(on_change=on_change)
    profile = loaded_tracker()
    hours = loaded_tracker()
    hours.name = "hours"
    guard.register(profile)
    guard.register(hours)

    assert not guard.has_unsaved_changes
    hours.set_field("name", "changed")
    assert guard.has_unsaved_changes
    assert guard.dirty_screens() == ["hours"]
    on_change.assert_called_once_with(True)


def test_guard_proceeds_when_clean():
    guard = UnsavedChangesGuard()
    guard.register(loaded_tracker())
    assert guard.proceed()


def test_guard_saves_dirty_screens_before_proceeding():
    guard = UnsavedChangesGuard()
    tracker = loaded_tracker()
    save_fn = Mock(return_value=None)
    guard.register(tracker, save_fn=save_fn)
    tracker.set_field("name", "New")

    assert guard.proceed()
    save_fn.assert_called_once()
    assert not guard.has_unsaved_changes


def test_guard_blocks_when_save_fails():
    guard = UnsavedChangesGuard()
    tracker = loaded_tracker()
    guard.register(tracker, save_fn=Mock(side_effect=NetworkError("offline")))
    tracker.set_field("name", "New")

    assert not guard.proceed()
    assert tracker.is_dirty


def test_guard_blocks_dirty_screen_without_save_function():
    guard = UnsavedChangesGuard()
    tracker = loaded_tracker()
    guard.register(tracker)
    tracker.set_field("name", "New")
    assert not guard.proceed()


def test_guard_with_explicit_save_fn():
    guard = UnsavedChangesGuard()
    tracker = loaded_tracker()
    guard.register(tracker)
    tracker.set_field("name", "New")

    assert not guard.proceed(save_fn=Mock(side_effect=CallingBirdError("nope")))
    assert guard.proceed(save_fn=lambda: tracker.save(lambda values: None))


def test_guard_blocks_when_save_fn_leaves_screens_dirty():
    guard = UnsavedChangesGuard()
    tracker = loaded_tracker()
    guard.register(tracker)
    tracker.set_field("name", "New")

    assert not guard.proceed(save_fn=lambda: None)
    assert not guard.proceed(save_fn=lambda: False)
    assert guard.has_unsaved_changes

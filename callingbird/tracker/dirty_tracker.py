"""
Change tracking for editable screens.

A DirtyTracker holds the current values of a screen next to a pristine
snapshot taken after the initial load or the last successful save. The
screen is dirty while any field differs from the snapshot. Writes before
the initial load completes and writes made while a save is in flight are
applied without flipping the dirty flag.
"""
import copy
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from callingbird.errors import CallingBirdError
from callingbird.utils.logging_config import get_tracker_logger, log_tracker_transition

logger = get_tracker_logger()

Comparator = Callable[[Any, Any], bool]
DirtyObserver = Callable[[str, bool], None]

_MISSING = object()


class DirtyState(Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    PRISTINE = "pristine"
    DIRTY = "dirty"
    SAVING = "saving"
    ERROR = "error"


def _default_equals(a: Any, b: Any) -> bool:
    return a == b


class DirtyTracker:
    """
    Tracks unsaved edits of one screen or form.

    Args:
        name: Screen name, used in logs and by UnsavedChangesGuard
        fields: Initial values before the first load
        comparators: Optional equality function per field, e.g. availability_equals
        cloners: Optional copy function per field, used for the pristine snapshot
        on_dirty_change: Called with (name, is_dirty) whenever the dirty flag flips
    """

    def __init__(
        self,
        name: str,
        fields: Optional[Dict[str, Any]] = None,
        comparators: Optional[Dict[str, Comparator]] = None,
        cloners: Optional[Dict[str, Callable[[Any], Any]]] = None,
        on_dirty_change: Optional[DirtyObserver] = None
    ):
        self.name = name
        self._comparators = dict(comparators or {})
        self._cloners = dict(cloners or {})
        self._observers: List[DirtyObserver] = []
        if on_dirty_change is not None:
            self._observers.append(on_dirty_change)

        self._values: Dict[str, Any] = dict(fields or {})
        self._pristine: Dict[str, Any] = self._snapshot(self._values)
        self._state = DirtyState.UNINITIALIZED
        self._dirty = False
        self._armed = False
        self._saving = False
        self.error: Optional[Exception] = None

    # ======================================
    # INSPECTION
    # ======================================

    @property
    def state(self) -> DirtyState:
        return self._state

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    @property
    def is_armed(self) -> bool:
        """True once the initial load has completed."""
        return self._armed

    @property
    def is_saving(self) -> bool:
        return self._saving

    @property
    def values(self) -> Dict[str, Any]:
        return dict(self._values)

    @property
    def pristine_values(self) -> Dict[str, Any]:
        return self._snapshot(self._pristine)

    def get(self, name: str, default: Any = None) -> Any:
        return self._values.get(name, default)

    def subscribe(self, observer: DirtyObserver) -> None:
        self._observers.append(observer)

    # ======================================
    # LOADING
    # ======================================

    def begin_load(self) -> None:
        self._armed = False
        self._transition(DirtyState.LOADING, dirty=False)

    def finish_load(self, values: Dict[str, Any]) -> None:
        """Apply loaded values, take the pristine snapshot and start tracking edits."""
        self._values = dict(values)
        self._pristine = self._snapshot(self._values)
        self._armed = True
        self.error = None
        self._transition(DirtyState.PRISTINE, dirty=False)

    def fail_load(self, error: Exception) -> None:
        self._armed = False
        self.error = error
        self._transition(DirtyState.ERROR, dirty=False)

    # ======================================
    # EDITING
    # ======================================

    def set_field(self, name: str, value: Any) -> bool:
        """
        Write one field.

        Returns:
            bool: False when the write was a no-op and was ignored
        """
        old = self._values.get(name, _MISSING)
        if old is not _MISSING and self._equals(name, old, value):
            return False

        self._values[name] = value
        if self._armed and not self._saving:
            self._refresh()
        return True

    def update(self, **values: Any) -> bool:
        changed = False
        for name, value in values.items():
            changed = self.set_field(name, value) or changed
        return changed

    def reset(self) -> None:
        """Discard edits and return to the pristine snapshot."""
        self._values = self._snapshot(self._pristine)
        if self._armed:
            self.error = None
            self._transition(DirtyState.PRISTINE, dirty=False)

    # ======================================
    # SAVING
    # ======================================

    def begin_save(self) -> None:
        if not self._armed:
            raise CallingBirdError(f"Cannot save {self.name} before it has loaded")
        if self._saving:
            raise CallingBirdError(f"A save of {self.name} is already in progress")
        self._saving = True
        self._transition(DirtyState.SAVING, dirty=self._dirty)

    def save_succeeded(self, values: Optional[Dict[str, Any]] = None) -> None:
        """
        Complete a save. Values returned by the backend replace the current
        ones before the new snapshot is taken.
        """
        if values is not None:
            self._values.update(values)
        self._pristine = self._snapshot(self._values)
        self._saving = False
        self.error = None
        self._transition(DirtyState.PRISTINE, dirty=False)

    def save_failed(self, error: Exception) -> None:
        """Record a failed save. The edits are kept and the screen stays dirty."""
        self._saving = False
        self.error = error
        self._transition(DirtyState.ERROR, dirty=self._differs_from_pristine())

    def save(self, save_fn: Callable[[Dict[str, Any]], Optional[Dict[str, Any]]]) -> bool:
        """
        Run a full save with save_fn, which receives the current values and
        may return reconciled values.

        Returns:
            bool: True when the save succeeded
        """
        self.begin_save()
        try:
            result = save_fn(self.values)
        except CallingBirdError as e:
            logger.warning(f"Saving {self.name} failed: {e}")
            self.save_failed(e)
            return False
        except Exception as e:
            self.save_failed(e)
            raise
        self.save_succeeded(result if isinstance(result, dict) else None)
        return True

    # ======================================
    # INTERNALS
    # ======================================

    def _equals(self, name: str, a: Any, b: Any) -> bool:
        return self._comparators.get(name, _default_equals)(a, b)

    def _snapshot(self, values: Dict[str, Any]) -> Dict[str, Any]:
        return {
            name: self._cloners.get(name, copy.deepcopy)(value)
            for name, value in values.items()
        }

    def _differs_from_pristine(self) -> bool:
        names = set(self._values) | set(self._pristine)
        for name in names:
            if name not in self._values or name not in self._pristine:
                return True
            if not self._equals(name, self._values[name], self._pristine[name]):
                return True
        return False

    def _refresh(self) -> None:
        dirty = self._differs_from_pristine()
        self._transition(DirtyState.DIRTY if dirty else DirtyState.PRISTINE, dirty=dirty)

    def _transition(self, new_state: DirtyState, dirty: bool) -> None:
        old_state = self._state
        was_dirty = self._dirty
        self._state = new_state
        self._dirty = dirty

        if old_state != new_state or was_dirty != dirty:
            log_tracker_transition(logger, self.name, old_state.value, new_state.value, dirty)
        if was_dirty != dirty:
            for observer in list(self._observers):
                observer(self.name, dirty)


class FormDefaultsTracker(DirtyTracker):
    """
    Tracker for an "add new" form. The pristine snapshot is the form's
    defaults, so the form is dirty as soon as anything differs from them.
    A successful save clears the form back to its defaults.

    Args:
        name: Form name
        defaults_factory: Returns a fresh dict of default values on every call
    """

    def __init__(
        self,
        name: str,
        defaults_factory: Callable[[], Dict[str, Any]],
        comparators: Optional[Dict[str, Comparator]] = None,
        cloners: Optional[Dict[str, Callable[[Any], Any]]] = None,
        on_dirty_change: Optional[DirtyObserver] = None
    ):
        super().__init__(
            name,
            fields=defaults_factory(),
            comparators=comparators,
            cloners=cloners,
            on_dirty_change=on_dirty_change,
        )
        self._defaults_factory = defaults_factory
        self.finish_load(defaults_factory())

    def clear(self) -> None:
        self._values = self._defaults_factory()
        self._pristine = self._snapshot(self._values)
        self.error = None
        self._transition(DirtyState.PRISTINE, dirty=False)

    def save_succeeded(self, values: Optional[Dict[str, Any]] = None) -> None:
        self._saving = False
        self.clear()


class UnsavedChangesGuard:
    """
    Parent-level coordinator answering "are there unsaved changes anywhere".

    Trackers register under their name, optionally with the function that
    saves them. Leaving a step is allowed only when nothing is dirty or every
    dirty screen saved successfully.
    """

    def __init__(self, on_change: Optional[Callable[[bool], None]] = None):
        self._trackers: Dict[str, DirtyTracker] = {}
        self._save_fns: Dict[str, Callable] = {}
        self._on_change = on_change
        self._last_reported = False

    def register(self, tracker: DirtyTracker, save_fn: Optional[Callable] = None) -> None:
        self._trackers[tracker.name] = tracker
        if save_fn is not None:
            self._save_fns[tracker.name] = save_fn
        tracker.subscribe(self._tracker_changed)
        self._tracker_changed(tracker.name, tracker.is_dirty)

    def unregister(self, name: str) -> None:
        self._trackers.pop(name, None)
        self._save_fns.pop(name, None)
        self._tracker_changed(name, False)

    @property
    def has_unsaved_changes(self) -> bool:
        return any(tracker.is_dirty for tracker in self._trackers.values())

    def dirty_screens(self) -> List[str]:
        return [name for name, tracker in self._trackers.items() if tracker.is_dirty]

    def proceed(self, save_fn: Optional[Callable[[], Any]] = None) -> bool:
        """
        Try to leave the current step.

        Args:
            save_fn: Saves everything at once; when omitted each dirty screen
                is saved with the function it was registered with

        Returns:
            bool: False when a save failed, a dirty screen cannot be saved or
                anything is still dirty after saving
        """
        if not self.has_unsaved_changes:
            return True

        if save_fn is not None:
            try:
                result = save_fn()
            except CallingBirdError as e:
                logger.warning(f"Saving before leaving failed: {e}")
                return False
            if result is False:
                logger.info("Blocked: saving before leaving reported a failure")
                return False
            if self.has_unsaved_changes:
                logger.info(f"Blocked: still unsaved after saving: {', '.join(self.dirty_screens())}")
                return False
            return True

        for name in self.dirty_screens():
            tracker_save = self._save_fns.get(name)
            if tracker_save is None:
                logger.info(f"Blocked: {name} has unsaved changes and no save function")
                return False
            if not self._trackers[name].save(tracker_save):
                return False
        return True

    def _tracker_changed(self, name: str, is_dirty: bool) -> None:
        current = self.has_unsaved_changes
        if current != self._last_reported:
            self._last_reported = current
            if self._on_change is not None:
                self._on_change(current)

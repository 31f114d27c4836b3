"""
Conversion between the day-keyed WeeklyAvailability used by editors and the
flat AvailabilityRecord list persisted by the scheduling backend.

Day numbers here follow the staff scheduling convention: the index of the day
key in STAFF_DAY_KEYS (Sunday=0). Company operating hours use their own table,
see business_hours_helper.
"""
from typing import Dict, Iterable, List, Optional

from callingbird.constants import (
    DAY_ORDER,
    DEFAULT_END_TIME,
    DEFAULT_START_TIME,
    STAFF_DAY_KEYS,
    WEEKDAY_TEMPLATE_DAYS,
    WEEKEND_TEMPLATE_DAYS,
    WEEKEND_TEMPLATE_END,
    WEEKEND_TEMPLATE_START,
)
from callingbird.errors import MappingError, ValidationError
from callingbird.models.model import AvailabilityRecord, DaySchedule, TimeBlock, WeeklyAvailability
from callingbird.utils.logging_config import get_availability_logger
from callingbird.utils.time_utils import try_parse_time

logger = get_availability_logger()

TEMPLATE_WEEKDAY = "weekday"
TEMPLATE_WEEKEND = "weekend"
TEMPLATE_COPY = "copy"
TEMPLATE_CLEAR = "clear"


# ======================================
# DAY LOOKUPS
# ======================================

def day_index_from_key(key: str) -> int:
    """
    Map a day key to its staff scheduling day number.

    Raises:
        MappingError: if key is not one of the seven day keys
    """
    if key not in STAFF_DAY_KEYS:
        raise MappingError(key, "STAFF_DAY_KEYS")
    return STAFF_DAY_KEYS.index(key)


def key_from_day_index(index: int) -> str:
    """
    Map a staff scheduling day number (0-6) to its day key.

    Raises:
        MappingError: for anything outside 0-6; values are never wrapped
    """
    if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(STAFF_DAY_KEYS):
        raise MappingError(index, "STAFF_DAY_KEYS")
    return STAFF_DAY_KEYS[index]


def is_valid_day_index(index) -> bool:
    return not isinstance(index, bool) and isinstance(index, int) and 0 <= index < len(STAFF_DAY_KEYS)


# ======================================
# BLOCKS AND WEEKS
# ======================================

def default_time_block() -> TimeBlock:
    return TimeBlock(start_time=DEFAULT_START_TIME, end_time=DEFAULT_END_TIME)


def normalize_blocks(blocks: Optional[List[TimeBlock]]) -> List[TimeBlock]:
    """Return the blocks, or a single default 09:00-17:00 block when there are none."""
    if blocks:
        return blocks
    return [default_time_block()]


def empty_week() -> WeeklyAvailability:
    """
    Build the canonical empty week: every day off with one default block.
    Each call returns a new, independently mutable structure.
    """
    return {
        day: DaySchedule(is_working=False, blocks=[default_time_block()])
        for day in DAY_ORDER
    }


def clone_week(week: WeeklyAvailability) -> WeeklyAvailability:
    """Structural copy of a week, so drafts never share blocks with the original."""
    return {
        day: DaySchedule(
            is_working=schedule.is_working,
            blocks=[TimeBlock(start_time=b.start_time, end_time=b.end_time) for b in schedule.blocks],
        )
        for day, schedule in week.items()
    }


def _ordered_days(week: WeeklyAvailability) -> List[str]:
    return [day for day in STAFF_DAY_KEYS if day in week]


# ======================================
# RECORDS -> WEEK
# ======================================

def from_records(records: Iterable[AvailabilityRecord]) -> WeeklyAvailability:
    """
    Build a full week from backend records, one block per day.

    Days missing from the records keep their empty_week() defaults, records
    with an unknown day number are skipped, and when several records share a
    day the last one wins.

    Args:
        records: Availability records in backend order

    Returns:
        WeeklyAvailability: All seven days populated
    """
    week = empty_week()

    for record in records:
        if not is_valid_day_index(record.day_of_week):
            logger.debug(f"Skipping availability record with day_of_week={record.day_of_week!r}")
            continue

        key = key_from_day_index(record.day_of_week)
        week[key] = DaySchedule(
            is_working=bool(record.is_active),
            blocks=[TimeBlock(
                start_time=DEFAULT_START_TIME if record.start_time is None else record.start_time,
                end_time=DEFAULT_END_TIME if record.end_time is None else record.end_time,
            )],
        )

    return week


def from_records_multi(records: Iterable[AvailabilityRecord]) -> WeeklyAvailability:
    """
    Build a full week from backend records, keeping every active block.

    Active records append their block to the day in input order; the first
    active record of a day replaces the default placeholder block. Inactive
    records only clear the working flag.
    """
    week = empty_week()
    seen_active = set()

    for record in records:
        if not is_valid_day_index(record.day_of_week):
            logger.debug(f"Skipping availability record with day_of_week={record.day_of_week!r}")
            continue

        key = key_from_day_index(record.day_of_week)
        entry = week[key]

        if not record.is_active:
            entry.is_working = False
            continue

        block = TimeBlock(
            start_time=DEFAULT_START_TIME if record.start_time is None else record.start_time,
            end_time=DEFAULT_END_TIME if record.end_time is None else record.end_time,
        )
        entry.is_working = True
        if key in seen_active:
            entry.blocks.append(block)
        else:
            entry.blocks = [block]
            seen_active.add(key)

    return week


# ======================================
# WEEK -> RECORDS
# ======================================

def to_records(week: WeeklyAvailability) -> List[AvailabilityRecord]:
    """
    Emit exactly one record per day present in the week, in day-number order.

    The first block of a day supplies its times. Record ids are always None;
    the backend reconciles identity on write.
    """
    records: List[AvailabilityRecord] = []

    for key in _ordered_days(week):
        schedule = week[key]
        block = normalize_blocks(schedule.blocks)[0]
        records.append(AvailabilityRecord(
            id=None,
            day_of_week=day_index_from_key(key),
            is_active=schedule.is_working,
            start_time=block.start_time,
            end_time=block.end_time,
        ))

    return records


def to_records_multi(week: WeeklyAvailability) -> List[AvailabilityRecord]:
    """
    Emit one record per block of every working day, and a single inactive
    record with null times for every day off.
    """
    records: List[AvailabilityRecord] = []

    for key in _ordered_days(week):
        schedule = week[key]
        day_of_week = day_index_from_key(key)

        if not schedule.is_working or not schedule.blocks:
            records.append(AvailabilityRecord(
                id=None,
                day_of_week=day_of_week,
                is_active=False,
                start_time=None,
                end_time=None,
            ))
            continue

        for block in schedule.blocks:
            records.append(AvailabilityRecord(
                id=None,
                day_of_week=day_of_week,
                is_active=True,
                start_time=block.start_time,
                end_time=block.end_time,
            ))

    return records


# ======================================
# COMPARISON AND SUMMARIES
# ======================================

def availability_equals(a: WeeklyAvailability, b: WeeklyAvailability) -> bool:
    """
    Two weeks are equal when every day has the same working flag and the same
    blocks in the same order. Days absent from both weeks are ignored.
    """
    for day in DAY_ORDER:
        day_a = a.get(day)
        day_b = b.get(day)
        if day_a is None and day_b is None:
            continue
        if day_a is None or day_b is None:
            return False
        if day_a.is_working != day_b.is_working:
            return False

        blocks_a = normalize_blocks(day_a.blocks)
        blocks_b = normalize_blocks(day_b.blocks)
        if len(blocks_a) != len(blocks_b):
            return False
        for block_a, block_b in zip(blocks_a, blocks_b):
            if block_a.start_time != block_b.start_time or block_a.end_time != block_b.end_time:
                return False

    return True


def availability_is_default(week: WeeklyAvailability) -> bool:
    return availability_equals(week, empty_week())


def is_active_from_availability(week: WeeklyAvailability) -> bool:
    """A staff member counts as active when at least one day is a working day."""
    return any(schedule.is_working for schedule in week.values())


def working_days(week: WeeklyAvailability) -> List[str]:
    return [day for day in DAY_ORDER if day in week and week[day].is_working]


# ======================================
# TEMPLATES
# ======================================

def apply_availability_template(
    week: WeeklyAvailability,
    template: str,
    last_saved: Optional[WeeklyAvailability] = None
) -> WeeklyAvailability:
    """
    Produce a new week from one of the quick schedule templates.

    Args:
        week: Current week, left untouched
        template: "weekday", "weekend", "copy" or "clear"
        last_saved: Week to copy for the "copy" template

    Returns:
        WeeklyAvailability: A fresh week

    Raises:
        ValidationError: "copy" without a saved week, or an unknown template
    """
    if template == TEMPLATE_COPY:
        if last_saved is None:
            raise ValidationError("No previously saved week to copy", field="availability")
        return clone_week(last_saved)

    if template == TEMPLATE_CLEAR:
        return empty_week()

    if template == TEMPLATE_WEEKDAY:
        target_days, start, end = WEEKDAY_TEMPLATE_DAYS, DEFAULT_START_TIME, DEFAULT_END_TIME
    elif template == TEMPLATE_WEEKEND:
        target_days, start, end = WEEKEND_TEMPLATE_DAYS, WEEKEND_TEMPLATE_START, WEEKEND_TEMPLATE_END
    else:
        raise ValidationError(f"Unknown availability template: {template}", field="availability")

    result = clone_week(week)
    for day in DAY_ORDER:
        if day in target_days:
            result[day] = DaySchedule(is_working=True, blocks=[TimeBlock(start_time=start, end_time=end)])
        else:
            result[day] = DaySchedule(is_working=False, blocks=[default_time_block()])
    return result


# ======================================
# ADVISORY VALIDATION
# ======================================

def validate_blocks(blocks: List[TimeBlock]) -> List[str]:
    """
    Collect advisory messages for a day's blocks: missing times, end not
    after start, and overlapping blocks. Nothing here is enforced by the
    mappers.
    """
    errors: List[str] = []

    for block in blocks:
        start = try_parse_time(block.start_time)
        end = try_parse_time(block.end_time)
        if start is None or end is None:
            errors.append("Fill in both a start and an end time.")
            continue
        if end <= start:
            errors.append("End time must be after start time.")

    parsed = []
    for block in blocks:
        start = try_parse_time(block.start_time)
        end = try_parse_time(block.end_time)
        if start is not None and end is not None:
            parsed.append((start, end))
    parsed.sort(key=lambda pair: pair[0])

    for current, following in zip(parsed, parsed[1:]):
        if current[1] > following[0]:
            errors.append("Time blocks overlap.")

    return errors


def availability_warnings(week: WeeklyAvailability) -> Dict[str, List[str]]:
    """Advisory messages per working day; days without problems are omitted."""
    warnings: Dict[str, List[str]] = {}
    for day in DAY_ORDER:
        schedule = week.get(day)
        if schedule is None or not schedule.is_working:
            continue
        errors = validate_blocks(normalize_blocks(schedule.blocks))
        if errors:
            warnings[day] = errors
    return warnings

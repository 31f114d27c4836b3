"""
Company operating hours use an explicit day map (Monday=1 ... Sunday=0) that
is maintained separately from the staff scheduling day table.
"""
from typing import Iterable, List

from callingbird.constants import COMPANY_HOURS_DAY_MAP, DAY_ORDER, DEFAULT_END_TIME, DEFAULT_START_TIME
from callingbird.errors import MappingError
from callingbird.helper.availability_helper import empty_week, normalize_blocks
from callingbird.models.model import BusinessHoursRecord, DaySchedule, TimeBlock, WeeklyAvailability
from callingbird.utils.logging_config import get_availability_logger

logger = get_availability_logger()

_DAY_BY_NUMBER = {number: day for day, number in COMPANY_HOURS_DAY_MAP.items()}


def hours_day_number(key: str) -> int:
    if key not in COMPANY_HOURS_DAY_MAP:
        raise MappingError(key, "COMPANY_HOURS_DAY_MAP")
    return COMPANY_HOURS_DAY_MAP[key]


def hours_day_key(number: int) -> str:
    if isinstance(number, bool) or number not in _DAY_BY_NUMBER:
        raise MappingError(number, "COMPANY_HOURS_DAY_MAP")
    return _DAY_BY_NUMBER[number]


def hours_to_records(week: WeeklyAvailability) -> List[BusinessHoursRecord]:
    """
    Convert an operating-hours week into one record per day, Monday first.

    Args:
        week: Operating hours keyed by day

    Returns:
        List[BusinessHoursRecord]: Records for every day present in the week
    """
    records: List[BusinessHoursRecord] = []
    for day in DAY_ORDER:
        if day not in week:
            continue
        schedule = week[day]
        block = normalize_blocks(schedule.blocks)[0]
        records.append(BusinessHoursRecord(
            day_of_week=hours_day_number(day),
            is_open=schedule.is_working,
            open_time=block.start_time,
            close_time=block.end_time,
        ))
    return records


def hours_from_records(records: Iterable[BusinessHoursRecord]) -> WeeklyAvailability:
    """
    Build a full operating-hours week. Unknown day numbers are skipped and
    the last record for a day wins.
    """
    week = empty_week()
    for record in records:
        if isinstance(record.day_of_week, bool) or record.day_of_week not in _DAY_BY_NUMBER:
            logger.debug(f"Skipping hours record with day_of_week={record.day_of_week!r}")
            continue
        week[hours_day_key(record.day_of_week)] = DaySchedule(
            is_working=bool(record.is_open),
            blocks=[TimeBlock(
                start_time=DEFAULT_START_TIME if record.open_time is None else record.open_time,
                end_time=DEFAULT_END_TIME if record.close_time is None else record.close_time,
            )],
        )
    return week


def has_business_hours(records: Iterable[BusinessHoursRecord]) -> bool:
    return any(record.is_open for record in records)

from typing import List

from app.models.calendar import day_index
from app.models.schedule_settings import ScheduleSettings
from app.models.timetable_data import TimetableData


class InvalidTimetableInput(ValueError):
    """Raised when input data violates the engine's contract"""


def validate_settings(settings: ScheduleSettings) -> List[str]:
    errors = []
    total = settings.total_periods_per_day

    if not isinstance(total, int) or total < 1:
        errors.append(f"total_periods_per_day must be a positive integer, got {total!r}")
        return errors

    if not 1 <= settings.lunch_period <= total:
        errors.append(f"lunch_period must be between 1 and {total}, got {settings.lunch_period}")

    for period in settings.break_periods:
        if not 1 <= period <= total:
            errors.append(f"break period {period} is outside 1..{total}")

    if settings.max_teacher_periods_per_week < 1:
        errors.append(
            f"max_teacher_periods_per_week must be at least 1, got {settings.max_teacher_periods_per_week}"
        )

    if not settings.teaching_periods():
        errors.append("no teaching period is left after lunch and breaks")

    return errors


def validate_timetable_data(data: TimetableData):
    """
    Checks the input contract before generation starts.

    Raises:
        InvalidTimetableInput: listing every problem found
    """
    errors = validate_settings(data.settings)
    total = data.settings.total_periods_per_day

    if not data.subjects:
        errors.append("subject list is empty")

    seen = set()
    for index, row in enumerate(data.subjects, start=1):
        label = f"Subject row {index} ({row.subject or '?'})"

        missing = [
            name for name in ("department", "year", "section", "subject", "staff")
            if not str(getattr(row, name) or "").strip()
        ]
        if missing:
            errors.append(f"{label}: missing {', '.join(missing)}")
        elif not row.staff_members:
            errors.append(f"{label}: staff has no names")

        if not isinstance(row.periods, int) or row.periods <= 0:
            errors.append(f"{label}: invalid periods value {row.periods!r}")

        if row.preferred_day and day_index(row.preferred_day) is None:
            errors.append(f"{label}: unknown preferred day {row.preferred_day!r}")

        if row.preferred_period is not None and isinstance(total, int) and not 1 <= row.preferred_period <= total:
            errors.append(f"{label}: preferred period {row.preferred_period} is outside 1..{total}")

        if row.key in seen:
            errors.append(f"{label}: duplicate subject {row.key}")
        seen.add(row.key)

    for index, preference in enumerate(data.teacher_preferences, start=1):
        label = f"Teacher preference {index} ({preference.teacher_name or '?'})"
        if not preference.teacher_name:
            errors.append(f"{label}: missing teacher name")
        if day_index(preference.preferred_day) is None:
            errors.append(f"{label}: unknown preferred day {preference.preferred_day!r}")
        if isinstance(total, int) and not 1 <= preference.preferred_period <= total:
            errors.append(f"{label}: preferred period {preference.preferred_period} is outside 1..{total}")

    if errors:
        raise InvalidTimetableInput("; ".join(errors))

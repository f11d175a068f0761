from enum import Enum
from typing import Optional


# Fixed six-day teaching week
DAYS = ['Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday']
DAYS_PER_WEEK = len(DAYS)


class PeriodKind(str, Enum):
    """Classification of a period within a teaching day"""

    LUNCH = "lunch"
    BREAK = "break"
    TEACHING = "teaching"


def day_index(day_name: Optional[str]) -> Optional[int]:
    """
    Maps a day name (case-insensitive) to its index in the week.

    Returns:
        Index 0..5, or None if the name is empty or not a teaching day
    """
    if not day_name:
        return None
    lowered = [day.lower() for day in DAYS]
    name = day_name.strip().lower()
    return lowered.index(name) if name in lowered else None


def day_name(index: int) -> str:
    return DAYS[index]

from dataclasses import dataclass
from typing import List

from app.models.time_slot import TimeSlot


@dataclass()
class ClassTimetable:
    """Weekly grid of one class, indexed [day][period - 1]"""

    class_name: str
    schedule: List[List[TimeSlot]]


@dataclass()
class TeacherTimetable:
    """Weekly grid of one individual staff member, indexed [day][period - 1]"""

    teacher_name: str
    schedule: List[List[TimeSlot]]

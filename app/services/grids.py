from typing import Dict, Iterable, List, Set

from app.models.calendar import DAYS, DAYS_PER_WEEK
from app.models.schedule_settings import ScheduleSettings
from app.models.subject_requirement import SubjectRequirement
from app.models.time_slot import TimeSlot
from app.models.timetable import ClassTimetable, TeacherTimetable

Grid = List[List[TimeSlot]]


def empty_grid(settings: ScheduleSettings) -> Grid:
    """
    Builds an empty weekly grid.

    Returns:
        Grid [day][period - 1] = TimeSlot without subject
    """
    return [
        [TimeSlot(day=DAYS[day], period=period) for period in range(1, settings.total_periods_per_day + 1)]
        for day in range(DAYS_PER_WEEK)
    ]


class ScheduleGrids:
    """
    The two mirrored views of an attempt's assignments: one grid per class
    and one grid per individual staff member.

    Every assignment goes through `assign`, which writes the same fact into
    the class grid and into the grid of each staff member of the subject.
    """

    def __init__(self, class_names: Iterable[str], teacher_names: Iterable[str], settings: ScheduleSettings):
        self.settings = settings
        self.class_grids: Dict[str, Grid] = {name: empty_grid(settings) for name in class_names}
        self.teacher_grids: Dict[str, Grid] = {name: empty_grid(settings) for name in teacher_names}

    def class_slot(self, class_name: str, day: int, period: int) -> TimeSlot:
        return self.class_grids[class_name][day][period - 1]

    def teacher_slot(self, teacher: str, day: int, period: int) -> TimeSlot:
        return self.teacher_grids[teacher][day][period - 1]

    def assign(self, day: int, period: int, requirement: SubjectRequirement):
        """Writes the subject into the class grid and every staff member's grid"""
        class_name = requirement.class_name
        slot = self.class_slot(class_name, day, period)
        if not slot.is_free:
            raise RuntimeError(f"{class_name} already has {slot.subject} on {slot.day}, period {period}")

        self.class_grids[class_name][day][period - 1] = TimeSlot(
            day=DAYS[day],
            period=period,
            subject=requirement.subject,
            staff=requirement.staff,
            class_name=class_name
        )

        for teacher in requirement.staff_members:
            self.teacher_grids[teacher][day][period - 1] = TimeSlot(
                day=DAYS[day],
                period=period,
                subject=requirement.subject,
                staff=requirement.staff,
                class_name=class_name
            )

    def class_day_load(self, class_name: str, day: int) -> int:
        """Number of periods already filled for the class on a day"""
        return sum(1 for slot in self.class_grids[class_name][day] if not slot.is_free)

    def teacher_day_load(self, teacher: str, day: int) -> int:
        return sum(1 for slot in self.teacher_grids[teacher][day] if not slot.is_free)

    def class_day_subjects(self, class_name: str, day: int) -> Set[str]:
        return {slot.subject for slot in self.class_grids[class_name][day] if not slot.is_free}

    def class_timetables(self) -> List[ClassTimetable]:
        return [
            ClassTimetable(class_name=name, schedule=self.class_grids[name])
            for name in sorted(self.class_grids)
        ]

    def teacher_timetables(self) -> List[TeacherTimetable]:
        return [
            TeacherTimetable(teacher_name=name, schedule=self.teacher_grids[name])
            for name in sorted(self.teacher_grids)
        ]

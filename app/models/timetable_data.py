from dataclasses import dataclass, field
from typing import List
from app.models.subject_requirement import SubjectRequirement
from app.models.teacher_preference import TeacherPreference
from app.models.schedule_settings import ScheduleSettings


@dataclass()
class TimetableData:
    """
    Container for all data required by the allocation engine.

    Attributes:
        subjects: Subject rows to schedule (SUBJECTS table)
                  One row per subject taught to one class
        teacher_preferences: Preferred day/period of teachers (TEACHER_PREFERENCES table)
                             Optionally scoped to a single class
        settings: Global schedule parameters (SCHEDULE_SETTINGS table)
                  Periods per day, lunch, breaks and workload cap
    """

    subjects: List[SubjectRequirement]
    teacher_preferences: List[TeacherPreference] = field(default_factory=list)
    settings: ScheduleSettings = field(default_factory=ScheduleSettings)

    @property
    def class_names(self) -> List[str]:
        """Unique class identifiers in input order"""
        return list(dict.fromkeys(row.class_name for row in self.subjects))

    @property
    def teacher_names(self) -> List[str]:
        """Unique individual staff members in input order"""
        names = []
        for row in self.subjects:
            for teacher in row.staff_members:
                if teacher not in names:
                    names.append(teacher)
        return names

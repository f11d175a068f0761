from dataclasses import dataclass, field
from typing import List, Optional

from app.models.calendar import DAYS_PER_WEEK
from app.models.schedule_settings import ScheduleSettings
from app.models.teacher_preference import TeacherPreference
from app.models.timetable_data import TimetableData
from app.services.grids import ScheduleGrids
from app.services.ledger import AllocationLedger
from app.services.oracle import SlotOracle


@dataclass()
class AttemptState:
    """
    Everything one allocation attempt owns and mutates.

    A new state is built for every attempt so no placement leaks from one
    attempt into the next; the driver keeps the best state by reference.

    Attributes:
        settings: Schedule parameters (read-only)
        ledger: Allocated/required counters, workload, period usage, library map
        grids: Class and teacher grids
        oracle: Availability checks over grids and ledger
        teacher_preferences: Preferred slots of teachers
        day_order: Order in which allocators visit the days
        allow_relaxed: Whether allocators may bypass the weekly cap as a last resort
    """
    settings: ScheduleSettings
    ledger: AllocationLedger
    grids: ScheduleGrids
    oracle: SlotOracle
    teacher_preferences: List[TeacherPreference] = field(default_factory=list)
    day_order: List[int] = field(default_factory=lambda: list(range(DAYS_PER_WEEK)))
    allow_relaxed: bool = True

    @classmethod
    def fresh(cls, data: TimetableData, day_order: Optional[List[int]] = None,
              allow_relaxed: bool = True) -> "AttemptState":
        """Builds empty grids and a zeroed ledger sized to the input's classes and teachers"""
        settings = data.settings
        ledger = AllocationLedger(data.subjects, settings)
        grids = ScheduleGrids(data.class_names, data.teacher_names, settings)
        return cls(
            settings=settings,
            ledger=ledger,
            grids=grids,
            oracle=SlotOracle(settings, grids, ledger),
            teacher_preferences=list(data.teacher_preferences),
            day_order=list(day_order) if day_order is not None else list(range(DAYS_PER_WEEK)),
            allow_relaxed=allow_relaxed
        )

from typing import Iterable

from app.models.schedule_settings import ScheduleSettings
from app.services.grids import ScheduleGrids
from app.services.ledger import AllocationLedger


class SlotOracle:
    """Decides whether a subject may be placed at a given day/period"""

    def __init__(self, settings: ScheduleSettings, grids: ScheduleGrids, ledger: AllocationLedger):
        self.settings = settings
        self.grids = grids
        self.ledger = ledger

    def is_available(self, day: int, period: int, class_name: str,
                     staff: Iterable[str], strict: bool = True) -> bool:
        """
        Checks if the slot is free for the class and all staff members.

        Args:
            day: Day index (0..5)
            period: Period number (1-based)
            class_name: Class identifier
            staff: Individual staff members who would be booked together
            strict: Also require every staff member to be under the weekly cap.
                    The relaxed variant (False) is a last-resort fallback.

        Returns:
            True if the subject can be placed there
        """
        if not self.settings.is_teaching_period(period):
            return False

        if not self.grids.class_slot(class_name, day, period).is_free:
            return False

        cap = self.settings.max_teacher_periods_per_week
        for teacher in staff:
            if not self.grids.teacher_slot(teacher, day, period).is_free:
                return False
            if strict and self.ledger.workload(teacher) >= cap:
                return False

        return True

    def has_capacity(self, staff: Iterable[str], periods: int) -> bool:
        return self.ledger.has_capacity(staff, periods)

    def is_library_free(self, day: int, period: int) -> bool:
        return self.ledger.library_occupant(day, period) is None

import logging
from typing import Dict, Iterable, List, Optional, Set, Tuple

from app.models.schedule_settings import ScheduleSettings
from app.models.subject_allocation import SubjectAllocation
from app.models.subject_requirement import AllocationKey, SubjectRequirement

logger = logging.getLogger(__name__)


class AllocationLedger:
    """
    Bookkeeping of one allocation attempt.

    Tracks, per subject/class, allocated against required periods and the
    period numbers already used on any day; per staff member, the weekly
    workload; and, globally, which class holds the library at each slot.
    """

    def __init__(self, requirements: Iterable[SubjectRequirement], settings: ScheduleSettings):
        self.settings = settings
        self.allocations: Dict[AllocationKey, SubjectAllocation] = {}
        self.teacher_workload: Dict[str, int] = {}
        self.period_usage: Dict[AllocationKey, Set[int]] = {}
        self.library_occupancy: Dict[Tuple[int, int], str] = {}
        self.relaxed_placements = 0

        for row in requirements:
            self.allocations[row.key] = SubjectAllocation(
                subject=row.subject,
                class_name=row.class_name,
                required_periods=row.periods
            )
            self.period_usage[row.key] = set()
            for teacher in row.staff_members:
                self.teacher_workload.setdefault(teacher, 0)

    def allocation(self, requirement: SubjectRequirement) -> SubjectAllocation:
        return self.allocations[requirement.key]

    def remaining(self, requirement: SubjectRequirement) -> int:
        return self.allocations[requirement.key].remaining

    def used_periods(self, requirement: SubjectRequirement) -> Set[int]:
        return self.period_usage[requirement.key]

    def workload(self, teacher: str) -> int:
        return self.teacher_workload.get(teacher, 0)

    def has_capacity(self, staff: Iterable[str], periods: int = 1) -> bool:
        """True if every staff member can take `periods` more without passing the cap"""
        cap = self.settings.max_teacher_periods_per_week
        return all(self.workload(teacher) + periods <= cap for teacher in staff)

    def record(self, requirement: SubjectRequirement, day: int, period: int, relaxed: bool = False):
        """
        Records one placed period for the requirement.

        Args:
            requirement: Subject row the period belongs to
            day: Day index (0..5)
            period: Period number (1-based)
            relaxed: Whether the placement bypassed the weekly cap
        """
        allocation = self.allocations[requirement.key]
        if allocation.is_complete:
            raise RuntimeError(
                f"{allocation.subject_key} is already fully allocated "
                f"({allocation.allocated_periods}/{allocation.required_periods})"
            )
        allocation.allocated_periods += 1
        self.period_usage[requirement.key].add(period)

        cap = self.settings.max_teacher_periods_per_week
        for teacher in requirement.staff_members:
            self.teacher_workload[teacher] = self.workload(teacher) + 1
            if self.teacher_workload[teacher] == cap + 1:
                logger.warning(
                    f"Weekly cap exceeded for {teacher}: "
                    f"{self.teacher_workload[teacher]}/{cap} periods"
                )

        if relaxed:
            self.relaxed_placements += 1

    def library_occupant(self, day: int, period: int) -> Optional[str]:
        return self.library_occupancy.get((day, period))

    def occupy_library(self, day: int, period: int, class_name: str):
        occupant = self.library_occupant(day, period)
        if occupant is not None and occupant != class_name:
            raise RuntimeError(f"Library already held by {occupant} at day {day}, period {period}")
        self.library_occupancy[(day, period)] = class_name

    def is_complete(self) -> bool:
        return all(allocation.is_complete for allocation in self.allocations.values())

    def score(self) -> float:
        """Mean fraction of required periods placed over all ledger entries"""
        if not self.allocations:
            return 0.0
        total = sum(
            min(allocation.allocated_periods / allocation.required_periods, 1.0)
            for allocation in self.allocations.values()
        )
        return total / len(self.allocations)

    def cap_exceeded(self) -> Dict[str, int]:
        cap = self.settings.max_teacher_periods_per_week
        return {
            teacher: workload
            for teacher, workload in self.teacher_workload.items()
            if workload > cap
        }

    def shortfalls(self) -> List[SubjectAllocation]:
        return [allocation for allocation in self.allocations.values() if not allocation.is_complete]

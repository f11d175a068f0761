from dataclasses import dataclass, field
from typing import List

from app.models.calendar import PeriodKind


@dataclass()
class ScheduleSettings:
    """
    Global parameters of the weekly schedule.

    Periods are numbered 1..total_periods_per_day. Lunch and break periods
    never hold a subject.

    Attributes:
        total_periods_per_day: Number of periods in each day
        lunch_period: Period reserved for lunch
        break_periods: Periods reserved for short breaks
        max_teacher_periods_per_week: Weekly workload cap per staff member
    """
    total_periods_per_day: int = 10
    lunch_period: int = 6
    break_periods: List[int] = field(default_factory=lambda: [3, 9])
    max_teacher_periods_per_week: int = 25

    def period_kind(self, period: int) -> PeriodKind:
        if period == self.lunch_period:
            return PeriodKind.LUNCH
        if period in self.break_periods:
            return PeriodKind.BREAK
        return PeriodKind.TEACHING

    def is_teaching_period(self, period: int) -> bool:
        return self.period_kind(period) == PeriodKind.TEACHING

    def teaching_periods(self) -> List[int]:
        """Teaching periods of a day in ascending order"""
        return [
            period for period in range(1, self.total_periods_per_day + 1)
            if self.is_teaching_period(period)
        ]

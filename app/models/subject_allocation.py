from dataclasses import dataclass

from app.models.subject_requirement import AllocationKey


@dataclass()
class SubjectAllocation:
    """
    Ledger entry tracking allocated against required periods of a subject
    for one class.

    Attributes:
        subject: Subject name
        class_name: Class identifier (department-year-section)
        required_periods: Periods required per week
        allocated_periods: Periods placed so far in the current attempt
    """
    subject: str
    class_name: str
    required_periods: int
    allocated_periods: int = 0

    @property
    def key(self) -> AllocationKey:
        return AllocationKey(self.subject, self.class_name)

    @property
    def subject_key(self) -> str:
        return str(self.key)

    @property
    def remaining(self) -> int:
        return max(self.required_periods - self.allocated_periods, 0)

    @property
    def shortfall(self) -> int:
        return self.remaining

    @property
    def excess(self) -> int:
        return max(self.allocated_periods - self.required_periods, 0)

    @property
    def is_complete(self) -> bool:
        return self.allocated_periods >= self.required_periods

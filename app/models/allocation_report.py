from dataclasses import dataclass, field
from typing import Dict, List

from app.models.subject_allocation import SubjectAllocation


@dataclass()
class Shortfall:
    """A subject/class that ended the run with fewer periods than required"""

    subject_key: str
    subject: str
    class_name: str
    deficit: int


@dataclass()
class AllocationReport:
    """
    Outcome of a generation run, taken from the best attempt.

    Attributes:
        allocations: Ledger entries of every subject/class, in input order
        total_required: Sum of required periods
        total_allocated: Sum of allocated periods
        success_rate: total_allocated / total_required, in percent
        shortfalls: Subjects left short, with their deficit
        over_allocated: Subject keys holding more periods than required
        cap_exceeded: Teachers whose workload passed the weekly cap -> workload
        relaxed_placements: Periods placed by bypassing the weekly cap
        attempts: Number of attempts run
        score: Mean fraction of required periods placed (0.0 - 1.0)
    """
    allocations: List[SubjectAllocation]
    total_required: int
    total_allocated: int
    success_rate: float
    shortfalls: List[Shortfall] = field(default_factory=list)
    over_allocated: List[str] = field(default_factory=list)
    cap_exceeded: Dict[str, int] = field(default_factory=dict)
    relaxed_placements: int = 0
    attempts: int = 0
    score: float = 0.0

    @property
    def is_complete(self) -> bool:
        return not self.shortfalls

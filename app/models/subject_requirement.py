import re
from dataclasses import dataclass
from typing import List, NamedTuple, Optional


STAFF_SEPARATORS = re.compile(r"[,+]")


class AllocationKey(NamedTuple):
    """Composite key of one subject taught to one class"""

    subject: str
    class_name: str

    def __str__(self) -> str:
        return f"{self.subject}-{self.class_name}"


def split_staff(staff: str) -> List[str]:
    """
    Splits a staff field into individual names.

    Names may be separated by comma or '+'. Blank entries and repeated
    names are dropped; order is preserved.
    """
    members = []
    for name in STAFF_SEPARATORS.split(staff or ""):
        name = name.strip()
        if name and name not in members:
            members.append(name)
    return members


@dataclass(frozen=True)
class SubjectRequirement:
    """
    One row of allocation input: a subject a class must be taught each week.

    Attributes:
        department: Department of the class (e.g., "CS")
        year: Year of study (e.g., "2")
        section: Section within the year (e.g., "A")
        subject: Subject name (e.g., "Mathematics", "Physics Lab")
        periods: Periods required per week
        staff: Staff field as entered, possibly several names joined by ',' or '+'
        preferred_day: Optional preferred day name (Monday..Saturday)
        preferred_period: Optional preferred period number (1-based)
    """
    department: str
    year: str
    section: str
    subject: str
    periods: int
    staff: str
    preferred_day: Optional[str] = None
    preferred_period: Optional[int] = None

    @property
    def class_name(self) -> str:
        return f"{self.department}-{self.year}-{self.section}"

    @property
    def key(self) -> AllocationKey:
        return AllocationKey(self.subject, self.class_name)

    @property
    def staff_members(self) -> List[str]:
        return split_staff(self.staff)

from dataclasses import dataclass
from typing import Optional


@dataclass()
class TimeSlot:
    """
    One cell of a weekly grid.

    Attributes:
        day: Day name (Monday..Saturday)
        period: Period number (1-based)
        subject: Subject taught in this slot, if any
        staff: Staff field of the subject as entered (joined names for labs)
        class_name: Class attending the subject
    """
    day: str
    period: int
    subject: Optional[str] = None
    staff: Optional[str] = None
    class_name: Optional[str] = None

    @property
    def is_free(self) -> bool:
        return self.subject is None

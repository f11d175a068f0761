from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class TeacherPreference:
    """
    A teacher's preferred slot, optionally scoped to one class.

    Attributes:
        teacher_name: Name of the staff member
        preferred_day: Preferred day name (Monday..Saturday)
        preferred_period: Preferred period number (1-based)
        department: Optional department of the class the preference applies to
        year: Optional year of the class
        section: Optional section of the class
    """
    teacher_name: str
    preferred_day: str
    preferred_period: int
    department: Optional[str] = None
    year: Optional[str] = None
    section: Optional[str] = None

    @property
    def class_name(self) -> Optional[str]:
        if self.department and self.year and self.section:
            return f"{self.department}-{self.year}-{self.section}"
        return None

    def applies_to(self, teacher_name: str, class_name: str) -> bool:
        """True if this preference concerns the teacher in the given class"""
        if self.teacher_name != teacher_name:
            return False
        return self.class_name is None or self.class_name == class_name

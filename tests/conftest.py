import pytest

from app.models.generator_config import GeneratorConfig
from app.models.schedule_settings import ScheduleSettings
from app.models.subject_requirement import SubjectRequirement
from app.models.timetable_data import TimetableData
from app.services.attempt import AttemptState


def _row(subject, periods, staff, department="CS", year="2", section="A", **kwargs):
    return SubjectRequirement(
        department=department,
        year=year,
        section=section,
        subject=subject,
        periods=periods,
        staff=staff,
        **kwargs
    )


@pytest.fixture
def make_row():
    """Factory of subject rows; the class defaults to CS-2-A"""
    return _row


@pytest.fixture
def settings():
    return ScheduleSettings(
        total_periods_per_day=10,
        lunch_period=6,
        break_periods=[3, 9],
        max_teacher_periods_per_week=25
    )


@pytest.fixture
def make_state():
    """Factory of a fresh attempt state over the given rows"""
    def factory(rows, settings=None, teacher_preferences=None, allow_relaxed=True):
        data = TimetableData(
            subjects=list(rows),
            teacher_preferences=list(teacher_preferences or []),
            settings=settings or ScheduleSettings()
        )
        return AttemptState.fresh(data, allow_relaxed=allow_relaxed)
    return factory


@pytest.fixture
def deterministic():
    return GeneratorConfig(randomize=False)


@pytest.fixture
def institution():
    """Three classes sharing teachers, with labs, library and games"""
    rows = []
    for section, lab_staff in (("A", "Dr. Iyer, Mr. Khan"), ("B", "Dr. Iyer + Ms. Das")):
        rows += [
            _row("Mathematics", 5, "Dr. Rao", section=section),
            _row("Physics", 4, "Dr. Sen", section=section),
            _row("English", 3, "Ms. Paul", section=section),
            _row("Physics Lab", 3, lab_staff, section=section),
            _row("Programming Practical", 2, "Mr. Khan", section=section),
            _row("Library", 1, "Mrs. Bose", section=section),
            _row("Games", 2, "Mr. Roy", section=section),
        ]
    rows += [
        _row("Circuits", 5, "Dr. Menon", department="EEE", year="1", section="B"),
        _row("Mathematics", 4, "Dr. Rao", department="EEE", year="1", section="B"),
        _row("Electrical Workshop", 3, "Mr. Nair", department="EEE", year="1", section="B"),
        _row("Library", 1, "Mrs. Bose", department="EEE", year="1", section="B"),
        _row("Sports", 2, "Mr. Roy", department="EEE", year="1", section="B"),
    ]
    return TimetableData(
        subjects=rows,
        settings=ScheduleSettings(
            total_periods_per_day=8,
            lunch_period=5,
            break_periods=[3],
            max_teacher_periods_per_week=20
        )
    )

import pytest

from app.models.schedule_settings import ScheduleSettings
from app.models.teacher_preference import TeacherPreference
from app.services.allocators import (
    GamesAllocator,
    LabAllocator,
    LibraryAllocator,
    RegularAllocator,
    SubjectCategory,
    allocator_for,
    classify_subject,
    late_periods,
)


def placed_cells(state, class_name, subject):
    grid = state.grids.class_grids[class_name]
    return [
        (day_idx, slot.period)
        for day_idx, day in enumerate(grid)
        for slot in day
        if slot.subject == subject
    ]


@pytest.mark.parametrize("subject, category", [
    ("Physics Lab", SubjectCategory.LAB),
    ("CHEMISTRY PRACTICAL", SubjectCategory.LAB),
    ("Mechanical Workshop", SubjectCategory.LAB),
    ("Library", SubjectCategory.LIBRARY),
    ("Games", SubjectCategory.GAMES),
    ("Sports", SubjectCategory.GAMES),
    ("Physical Education", SubjectCategory.GAMES),
    ("Mathematics", SubjectCategory.REGULAR),
])
def test_classify_subject(subject, category):
    assert classify_subject(subject) == category


def test_allocator_dispatch():
    assert isinstance(allocator_for("Data Structures and Python Lab"), LabAllocator)
    assert isinstance(allocator_for("library"), LibraryAllocator)
    assert isinstance(allocator_for("Games"), GamesAllocator)
    assert isinstance(allocator_for("English"), RegularAllocator)


def test_late_periods_skip_non_teaching_periods(settings):
    assert late_periods(settings, 0.3) == [10, 8]
    assert late_periods(ScheduleSettings(total_periods_per_day=7, lunch_period=4, break_periods=[2]), 0.4) == [7, 6, 5]


class TestLabAllocator:

    def test_block_spans_a_break_on_one_day(self, make_row, make_state):
        settings = ScheduleSettings(total_periods_per_day=8, lunch_period=5, break_periods=[2])
        lab = make_row("Physics Lab", 3, "Dr. A, Dr. B")
        state = make_state([lab], settings)

        result = LabAllocator().try_place(lab, state)

        assert result.complete
        assert result.slots == [(0, 1), (0, 3), (0, 4)]
        for teacher in ("Dr. A", "Dr. B"):
            assert state.grids.teacher_slot(teacher, 0, 3).subject == "Physics Lab"
            assert state.ledger.workload(teacher) == 3
        assert state.grids.class_slot("CS-2-A", 0, 3).staff == "Dr. A, Dr. B"

    def test_lunch_breaks_the_run(self, make_row, make_state):
        settings = ScheduleSettings(total_periods_per_day=6, lunch_period=3, break_periods=[])
        lab = make_row("Physics Lab", 3, "Dr. A")
        state = make_state([lab], settings)

        result = LabAllocator().try_place(lab, state)

        assert result.slots == [(0, 4), (0, 5), (0, 6)]

    def test_no_fitting_day_leaves_whole_lab_short(self, make_row, make_state):
        settings = ScheduleSettings(total_periods_per_day=7, lunch_period=4, break_periods=[2, 6])
        lab = make_row("Physics Lab", 3, "Dr. A, Dr. B")
        state = make_state([lab], settings)

        result = LabAllocator().try_place(lab, state)

        assert result.placed == 0
        assert result.remaining == 3
        assert placed_cells(state, "CS-2-A", "Physics Lab") == []

    def test_one_lab_subject_per_day(self, make_row, make_state):
        settings = ScheduleSettings(total_periods_per_day=8, lunch_period=5, break_periods=[])
        chemistry = make_row("Chemistry Lab", 3, "Dr. C")
        physics = make_row("Physics Lab", 3, "Dr. P")
        state = make_state([chemistry, physics], settings)

        LabAllocator().try_place(chemistry, state)
        result = LabAllocator().try_place(physics, state)

        assert {day for day, _ in placed_cells(state, "CS-2-A", "Chemistry Lab")} == {0}
        assert result.slots == [(1, 1), (1, 2), (1, 3)]

    def test_busy_co_teacher_moves_the_block(self, make_row, make_state):
        settings = ScheduleSettings(total_periods_per_day=4, lunch_period=4, break_periods=[])
        lab = make_row("Physics Lab", 3, "Dr. A + Dr. B")
        other = make_row("Physics", 1, "Dr. B", section="B")
        state = make_state([lab, other], settings)
        state.grids.assign(0, 2, other)

        result = LabAllocator().try_place(lab, state)

        assert result.slots == [(1, 1), (1, 2), (1, 3)]

    def test_single_period_lab(self, make_row, make_state):
        lab = make_row("Workshop", 1, "Mr. W")
        state = make_state([lab])

        result = LabAllocator().try_place(lab, state)

        assert result.slots == [(0, 1)]

    def test_cap_blocks_strict_block_and_relaxed_path_is_flagged(self, make_row, make_state):
        settings = ScheduleSettings(total_periods_per_day=6, lunch_period=6, break_periods=[],
                                    max_teacher_periods_per_week=2)
        lab = make_row("Physics Lab", 3, "Dr. A")

        strict_state = make_state([lab], settings, allow_relaxed=False)
        assert LabAllocator().try_place(lab, strict_state).remaining == 3

        relaxed_state = make_state([lab], settings, allow_relaxed=True)
        result = LabAllocator().try_place(lab, relaxed_state)
        assert result.complete
        assert result.relaxed == 1
        assert relaxed_state.ledger.cap_exceeded() == {"Dr. A": 3}


class TestLibraryAllocator:

    def test_prefers_late_periods(self, make_row, make_state, settings):
        library = make_row("Library", 2, "Mrs. L")
        state = make_state([library], settings)

        result = LibraryAllocator().try_place(library, state)

        assert result.complete
        assert all(period in (8, 10) for _, period in result.slots)
        # second period goes to another day
        assert result.slots[0][0] != result.slots[1][0]

    def test_library_is_held_by_one_class_at_a_time(self, make_row, make_state):
        settings = ScheduleSettings(total_periods_per_day=2, lunch_period=1, break_periods=[])
        first = make_row("Library", 6, "Mrs. L", section="A")
        second = make_row("Library", 6, "Mr. M", section="B")
        state = make_state([first, second], settings)

        first_result = LibraryAllocator().try_place(first, state)
        second_result = LibraryAllocator().try_place(second, state)

        assert first_result.complete
        assert second_result.placed == 0
        assert second_result.remaining == 6
        assert set(state.ledger.library_occupancy.values()) == {"CS-2-A"}

    def test_falls_back_to_any_teaching_slot(self, make_row, make_state):
        settings = ScheduleSettings(total_periods_per_day=3, lunch_period=2, break_periods=[])
        library = make_row("Library", 7, "Mrs. L")
        state = make_state([library], settings)

        result = LibraryAllocator().try_place(library, state)

        assert result.complete
        assert sum(1 for _, period in result.slots if period == 1) == 1


class TestGamesAllocator:

    def test_last_period_on_different_days(self, make_row, make_state):
        settings = ScheduleSettings(total_periods_per_day=7, lunch_period=4, break_periods=[2])
        games = make_row("Games", 2, "Mr. G", department="EEE", year="1", section="B")
        state = make_state([games], settings)

        result = GamesAllocator().try_place(games, state)

        assert result.slots == [(0, 7), (1, 7)]

    def test_late_window_when_last_period_is_taken(self, make_row, make_state):
        settings = ScheduleSettings(total_periods_per_day=7, lunch_period=4, break_periods=[])
        games = make_row("Games", 1, "Mr. G")
        physics = make_row("Physics", 6, "Dr. P")
        state = make_state([games, physics], settings)
        for day in range(6):
            state.grids.assign(day, 7, physics)

        result = GamesAllocator().try_place(games, state)

        assert result.slots == [(0, 6)]


class TestRegularAllocator:

    def test_no_period_of_day_repeats(self, make_row, make_state, settings):
        maths = make_row("Mathematics", 5, "Dr. R")
        state = make_state([maths], settings)

        result = RegularAllocator().try_place(maths, state)

        periods = [period for _, period in result.slots]
        assert result.complete
        assert len(set(periods)) == 5

    def test_subject_preference_is_honoured_first(self, make_row, make_state, settings):
        maths = make_row("Mathematics", 2, "Dr. R", preferred_day="Thursday", preferred_period=4)
        state = make_state([maths], settings)

        result = RegularAllocator().try_place(maths, state)

        assert result.slots[0] == (3, 4)

    def test_teacher_preference_for_other_class_is_ignored(self, make_row, make_state, settings):
        maths = make_row("Mathematics", 1, "Dr. R")
        preference = TeacherPreference("Dr. R", "Friday", 2, department="EEE", year="1", section="B")
        state = make_state([maths], settings, teacher_preferences=[preference])

        result = RegularAllocator().try_place(maths, state)

        assert result.slots == [(0, 1)]

    def test_teacher_preference_applies(self, make_row, make_state, settings):
        maths = make_row("Mathematics", 1, "Dr. R")
        preference = TeacherPreference("Dr. R", "Friday", 2)
        state = make_state([maths], settings, teacher_preferences=[preference])

        result = RegularAllocator().try_place(maths, state)

        assert result.slots == [(4, 2)]

    def test_repeats_period_when_no_fresh_period_is_left(self, make_row, make_state):
        settings = ScheduleSettings(total_periods_per_day=3, lunch_period=3, break_periods=[])
        maths = make_row("Mathematics", 4, "Dr. R")
        state = make_state([maths], settings)

        result = RegularAllocator().try_place(maths, state)

        assert result.complete
        assert {period for _, period in result.slots} == {1, 2}

    def test_relaxed_fallback_exceeds_cap_only_when_allowed(self, make_row, make_state):
        settings = ScheduleSettings(total_periods_per_day=4, lunch_period=4, break_periods=[],
                                    max_teacher_periods_per_week=2)
        maths = make_row("Mathematics", 3, "Dr. R")

        strict_state = make_state([maths], settings, allow_relaxed=False)
        strict = RegularAllocator().try_place(maths, strict_state)
        assert strict.placed == 2
        assert strict.remaining == 1

        relaxed_state = make_state([maths], settings, allow_relaxed=True)
        relaxed = RegularAllocator().try_place(maths, relaxed_state)
        assert relaxed.complete
        assert relaxed.relaxed == 1
        assert relaxed_state.ledger.relaxed_placements == 1

from collections import defaultdict

from app.models.calendar import PeriodKind
from app.models.subject_requirement import split_staff


def _empty_space_cost(timetables, settings):
    """
    Counts free teaching periods lying between two filled periods of the same day.
    :param timetables: list of (name, schedule) pairs, schedule[day][period - 1] = TimeSlot
    :param settings: ScheduleSettings
    :return: total cost, maximum per day, average cost
    """
    # total empty space of all grids for the whole week
    cost = 0
    # max empty space in one day for some grid
    max_empty = 0

    for name, schedule in timetables:
        for day in schedule:
            filled = [slot.period for slot in day if not slot.is_free]
            if len(filled) < 2:
                continue

            empty = sum(
                1 for period in range(filled[0] + 1, filled[-1])
                if settings.is_teaching_period(period) and day[period - 1].is_free
            )
            cost += empty
            if max_empty < empty:
                max_empty = empty

    # Avoid division by zero when there are no grids
    if len(timetables) == 0:
        return 0, 0, 0.0

    return cost, max_empty, cost / len(timetables)


def empty_space_classes_cost(class_timetables, settings):
    """
    Calculates total empty space of all classes for week, maximum empty space in day and average empty space for
    whole week per class.
    :param class_timetables: list of ClassTimetable
    :param settings: ScheduleSettings
    :return: total cost, maximum per day, average cost
    """
    return _empty_space_cost([(t.class_name, t.schedule) for t in class_timetables], settings)


def empty_space_teachers_cost(teacher_timetables, settings):
    """
    Calculates total empty space of all teachers for week, maximum empty space in day and average empty space for
    whole week per teacher.
    :param teacher_timetables: list of TeacherTimetable
    :param settings: ScheduleSettings
    :return: total cost, maximum per day, average cost
    """
    return _empty_space_cost([(t.teacher_name, t.schedule) for t in teacher_timetables], settings)


def hard_constraints_cost(class_timetables, teacher_timetables, settings):
    """
    Calculates the total cost of hard constraints:
    - No subject is placed in a lunch or break period
    - Each teacher teaches at most one class at a time
    - Class and teacher grids mirror each other
    - A lab is placed on a single day as one run (break periods may lie inside it)
    - A class has at most one distinct lab subject per day

    For everything that doesn't satisfy these constraints, one is added to the cost.

    :param class_timetables: list of ClassTimetable
    :param teacher_timetables: list of TeacherTimetable
    :param settings: ScheduleSettings
    :return: total_cost, cost_calendar, cost_teacher, cost_mirror, cost_lab
    """
    from app.services.allocators import SubjectCategory, classify_subject

    teacher_grids = {t.teacher_name: t.schedule for t in teacher_timetables}

    cost_calendar = 0
    cost_teacher = 0
    cost_mirror = 0
    cost_lab = 0

    # (day, period) -> teacher -> number of class cells booking that teacher
    bookings = defaultdict(lambda: defaultdict(int))
    # (subject, class) -> day -> periods
    lab_cells = defaultdict(lambda: defaultdict(list))

    for timetable in class_timetables:
        for day_idx, day in enumerate(timetable.schedule):
            labs_today = set()
            for slot in day:
                if slot.is_free:
                    continue

                if settings.period_kind(slot.period) != PeriodKind.TEACHING:
                    cost_calendar += 1

                for teacher in split_staff(slot.staff):
                    bookings[(day_idx, slot.period)][teacher] += 1
                    grid = teacher_grids.get(teacher)
                    mirrored = grid[day_idx][slot.period - 1] if grid else None
                    if (mirrored is None or mirrored.subject != slot.subject
                            or mirrored.class_name != timetable.class_name):
                        cost_mirror += 1

                if classify_subject(slot.subject) == SubjectCategory.LAB:
                    labs_today.add(slot.subject)
                    lab_cells[(slot.subject, timetable.class_name)][day_idx].append(slot.period)

            if len(labs_today) > 1:
                cost_lab += len(labs_today) - 1

    class_grids = {t.class_name: t.schedule for t in class_timetables}
    for timetable in teacher_timetables:
        for day_idx, day in enumerate(timetable.schedule):
            for slot in day:
                if slot.is_free:
                    continue
                grid = class_grids.get(slot.class_name)
                mirrored = grid[day_idx][slot.period - 1] if grid else None
                if (mirrored is None or mirrored.subject != slot.subject
                        or timetable.teacher_name not in split_staff(mirrored.staff)):
                    cost_mirror += 1

    for teachers in bookings.values():
        for count in teachers.values():
            if count > 1:
                cost_teacher += count - 1

    for days in lab_cells.values():
        if len(days) > 1:
            cost_lab += len(days) - 1
        for periods in days.values():
            periods.sort()
            for a, b in zip(periods, periods[1:]):
                # only break periods may separate two periods of one lab run
                if any(settings.period_kind(p) != PeriodKind.BREAK for p in range(a + 1, b)):
                    cost_lab += 1

    total_cost = cost_calendar + cost_teacher + cost_mirror + cost_lab
    return total_cost, cost_calendar, cost_teacher, cost_mirror, cost_lab


def check_hard_constraints(class_timetables, teacher_timetables, settings):
    """
    Checks if all hard constraints are satisfied and returns the number of violations.
    :return: overlaps: Total number of violations
    """
    total, _, _, _, _ = hard_constraints_cost(class_timetables, teacher_timetables, settings)
    return total

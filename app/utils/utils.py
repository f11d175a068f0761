from typing import List

from app.models.calendar import PeriodKind
from app.models.schedule_settings import ScheduleSettings
from app.models.time_slot import TimeSlot
from app.utils.costs import (
    check_hard_constraints,
    empty_space_classes_cost,
    empty_space_teachers_cost,
)


def format_timetable(schedule: List[List[TimeSlot]], title: str = '',
                     settings: ScheduleSettings = None, width: int = 12) -> str:
    """
    Renders a weekly grid as text, one row per day.

    Args:
        schedule: Grid [day][period - 1] = TimeSlot
        title: Heading line (class or teacher name)
        settings: Used to label lunch and break periods, if given
        width: Column width

    Returns:
        The rendered grid
    """
    lines = []
    if title:
        lines.append(title)

    periods = len(schedule[0]) if schedule else 0
    header = '{:10s} '.format('') + ''.join('P{:<{w}s}'.format(str(p), w=width - 1) for p in range(1, periods + 1))
    lines.append(header)

    for day in schedule:
        cells = []
        for slot in day:
            if not slot.is_free:
                text = slot.subject
            elif settings is not None and settings.period_kind(slot.period) == PeriodKind.LUNCH:
                text = 'LUNCH'
            elif settings is not None and settings.period_kind(slot.period) == PeriodKind.BREAK:
                text = 'BREAK'
            else:
                text = '-'
            cells.append('{:{w}s}'.format(text[:width - 1], w=width))
        lines.append('{:10s} '.format(day[0].day if day else '') + ''.join(cells))

    return '\n'.join(lines)


def show_timetable(schedule: List[List[TimeSlot]], title: str = '', settings: ScheduleSettings = None):
    """
    Displays a weekly grid.

    Args:
        schedule: Grid [day][period - 1] = TimeSlot
        title: Class or teacher name
        settings: Schedule settings, to label lunch and break periods
    """
    print(format_timetable(schedule, title, settings))
    print()


def show_statistics(result, settings: ScheduleSettings):
    """
    Displays statistics about the generated timetables.

    Args:
        result: GenerationResult
        settings: Schedule settings used for the run
    """
    report = result.report
    cost_hard = check_hard_constraints(result.class_timetables, result.teacher_timetables, settings)
    if cost_hard == 0:
        print('✓ Hard constraints satisfied: 100.00%')
    else:
        print(f'✗ Hard constraints NOT satisfied, cost: {cost_hard}')

    print(f'Periods allocated: {report.total_allocated}/{report.total_required} '
          f'({report.success_rate:.1f}%) after {report.attempts} attempt(s)')
    for shortfall in report.shortfalls:
        print(f'  - {shortfall.subject_key}: {shortfall.deficit} periods short')
    for teacher, workload in report.cap_exceeded.items():
        print(f'  ! {teacher}: {workload} periods (cap {settings.max_teacher_periods_per_week})')
    print()

    empty_classes, max_empty_class, average_empty_classes = empty_space_classes_cost(
        result.class_timetables, settings)
    print(f'Empty spaces CLASSES (total): {empty_classes}')
    print(f'Maximum empty space CLASS (per day): {max_empty_class}')
    print(f'Average empty space CLASSES (per week): {average_empty_classes:.02f}\n')

    empty_teachers, max_empty_teacher, average_empty_teachers = empty_space_teachers_cost(
        result.teacher_timetables, settings)
    print(f'Empty spaces TEACHERS (total): {empty_teachers}')
    print(f'Maximum empty space TEACHER (per day): {max_empty_teacher}')
    print(f'Average empty space TEACHERS (per week): {average_empty_teachers:.02f}\n')

import io
from typing import List, Optional, Tuple

import pandas as pd

from app.models.subject_requirement import SubjectRequirement
from app.models.timetable import ClassTimetable, TeacherTimetable
from app.utils.validation import InvalidTimetableInput

REQUIRED_COLUMNS = ['department', 'year', 'section', 'subject', 'periods', 'staff']
CLASS_EXPORT_COLUMNS = ['Type', 'Name', 'Day', 'Period', 'Subject', 'Staff']
TEACHER_EXPORT_COLUMNS = ['Type', 'Name', 'Day', 'Period', 'Subject', 'Class']


def _optional(values: dict, *names: str) -> Optional[str]:
    for name in names:
        if values.get(name):
            return values[name]
    return None


def parse_subject_csv(content: str) -> List[SubjectRequirement]:
    """
    Parses subject rows from CSV text.

    Headers are case-insensitive. Required: department, year, section,
    subject, periods, staff. Optional: preferredday (or preferred_day) and
    preferredperiod (or preferred_period). Staff names containing commas must
    be quoted, or joined with '+'.

    Args:
        content: CSV text

    Returns:
        Subject rows in file order

    Raises:
        InvalidTimetableInput: on a missing column, an empty file or an invalid row
    """
    try:
        df = pd.read_csv(io.StringIO(content), dtype=str, keep_default_na=False, skipinitialspace=True)
    except pd.errors.EmptyDataError:
        raise InvalidTimetableInput('CSV file must contain at least a header row and one data row')
    except pd.errors.ParserError as e:
        raise InvalidTimetableInput(f'Invalid CSV format: {e}')

    df.columns = [str(column).strip().lower() for column in df.columns]

    missing_columns = [column for column in REQUIRED_COLUMNS if column not in df.columns]
    if missing_columns:
        raise InvalidTimetableInput(f"Missing required columns: {', '.join(missing_columns)}")

    if df.empty:
        raise InvalidTimetableInput('CSV file must contain at least a header row and one data row')

    subjects = []
    # Row numbers count the header as row 1
    for row_number, record in enumerate(df.to_dict('records'), start=2):
        values = {key: str(value).strip() for key, value in record.items()}

        try:
            periods = int(values['periods'])
        except ValueError:
            periods = 0
        if periods <= 0:
            raise InvalidTimetableInput(f"Error in row {row_number}: Invalid periods value: {values['periods']}")

        if not all(values[column] for column in REQUIRED_COLUMNS):
            raise InvalidTimetableInput(f'Error in row {row_number}: Missing required field values')

        preferred_period = _optional(values, 'preferredperiod', 'preferred_period')
        if preferred_period is not None:
            try:
                preferred_period = int(preferred_period)
            except ValueError:
                raise InvalidTimetableInput(
                    f'Error in row {row_number}: Invalid preferred period value: {preferred_period}')

        subjects.append(SubjectRequirement(
            department=values['department'],
            year=values['year'],
            section=values['section'],
            subject=values['subject'],
            periods=periods,
            staff=values['staff'],
            preferred_day=_optional(values, 'preferredday', 'preferred_day'),
            preferred_period=preferred_period
        ))

    return subjects


def timetables_to_csv(class_timetables: List[ClassTimetable],
                      teacher_timetables: List[TeacherTimetable]) -> Tuple[str, str]:
    """
    Exports the filled cells of all grids as two CSV documents.

    Returns:
        (class CSV, teacher CSV)
    """
    class_rows = [
        {'Type': 'Class', 'Name': timetable.class_name, 'Day': slot.day, 'Period': slot.period,
         'Subject': slot.subject, 'Staff': slot.staff}
        for timetable in class_timetables
        for day in timetable.schedule
        for slot in day
        if not slot.is_free
    ]
    teacher_rows = [
        {'Type': 'Teacher', 'Name': timetable.teacher_name, 'Day': slot.day, 'Period': slot.period,
         'Subject': slot.subject, 'Class': slot.class_name}
        for timetable in teacher_timetables
        for day in timetable.schedule
        for slot in day
        if not slot.is_free
    ]

    class_csv = pd.DataFrame(class_rows, columns=CLASS_EXPORT_COLUMNS).to_csv(index=False, lineterminator='\n')
    teacher_csv = pd.DataFrame(teacher_rows, columns=TEACHER_EXPORT_COLUMNS).to_csv(index=False, lineterminator='\n')
    return class_csv, teacher_csv

import pytest

from app.utils.csv_io import parse_subject_csv, timetables_to_csv
from app.utils.validation import InvalidTimetableInput

HEADER = "department,year,section,subject,periods,staff"


def test_parses_rows_in_file_order():
    content = "\n".join([
        HEADER + ",preferredDay,preferredPeriod",
        'CS,2,A,Physics Lab,3,"Dr. A, Dr. B",,',
        "CS,2,A,Mathematics,5,Dr. Rao,Monday,1",
    ])

    rows = parse_subject_csv(content)

    assert [row.subject for row in rows] == ["Physics Lab", "Mathematics"]
    assert rows[0].staff_members == ["Dr. A", "Dr. B"]
    assert rows[0].preferred_day is None
    assert rows[0].preferred_period is None
    assert rows[1].periods == 5
    assert rows[1].preferred_day == "Monday"
    assert rows[1].preferred_period == 1


def test_headers_are_case_insensitive_and_values_trimmed():
    rows = parse_subject_csv("Department, Year ,SECTION,Subject,Periods,Staff\nEEE , 1,B,Games,2,Dr. A + Dr. B\n")

    assert rows[0].class_name == "EEE-1-B"
    assert rows[0].staff_members == ["Dr. A", "Dr. B"]


def test_missing_column():
    with pytest.raises(InvalidTimetableInput, match="Missing required columns: staff"):
        parse_subject_csv("department,year,section,subject,periods\nCS,2,A,Physics,3\n")


@pytest.mark.parametrize("content", ["", HEADER + "\n"])
def test_needs_header_and_a_data_row(content):
    with pytest.raises(InvalidTimetableInput, match="at least a header row and one data row"):
        parse_subject_csv(content)


def test_invalid_periods_names_the_row():
    content = HEADER + "\nCS,2,A,Physics,3,Dr. A\nCS,2,A,English,three,Ms. B\n"
    with pytest.raises(InvalidTimetableInput, match="Error in row 3: Invalid periods value: three"):
        parse_subject_csv(content)


def test_missing_field_value():
    with pytest.raises(InvalidTimetableInput, match="Error in row 2: Missing required field values"):
        parse_subject_csv(HEADER + "\nCS,2,A,Physics,3,\n")


def test_invalid_preferred_period():
    with pytest.raises(InvalidTimetableInput, match="Invalid preferred period value: first"):
        parse_subject_csv(HEADER + ",preferred_period\nCS,2,A,Physics,3,Dr. A,first\n")


def test_exports_filled_cells(make_row, make_state):
    lab = make_row("Physics Lab", 2, "Dr. A, Dr. B")
    state = make_state([lab])
    state.grids.assign(0, 1, lab)

    class_csv, teacher_csv = timetables_to_csv(state.grids.class_timetables(), state.grids.teacher_timetables())

    assert class_csv == (
        "Type,Name,Day,Period,Subject,Staff\n"
        'Class,CS-2-A,Monday,1,Physics Lab,"Dr. A, Dr. B"\n'
    )
    assert teacher_csv == (
        "Type,Name,Day,Period,Subject,Class\n"
        "Teacher,Dr. A,Monday,1,Physics Lab,CS-2-A\n"
        "Teacher,Dr. B,Monday,1,Physics Lab,CS-2-A\n"
    )


def test_export_of_empty_grids_keeps_headers(make_row, make_state):
    state = make_state([make_row("Physics", 1, "Dr. A")])

    class_csv, teacher_csv = timetables_to_csv(state.grids.class_timetables(), state.grids.teacher_timetables())

    assert class_csv == "Type,Name,Day,Period,Subject,Staff\n"
    assert teacher_csv == "Type,Name,Day,Period,Subject,Class\n"

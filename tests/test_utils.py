from app.models.generator_config import GeneratorConfig
from app.models.schedule_settings import ScheduleSettings
from app.models.timetable_data import TimetableData
from app.services.generator import generate_timetables
from app.utils.utils import format_timetable


def test_format_labels_lunch_and_breaks(make_row, make_state):
    settings = ScheduleSettings(total_periods_per_day=4, lunch_period=3, break_periods=[2])
    row = make_row("Physics", 1, "Dr. A")
    state = make_state([row], settings)
    state.grids.assign(0, 1, row)

    text = format_timetable(state.grids.class_grids["CS-2-A"], "CS-2-A", settings)
    lines = text.split("\n")

    assert lines[0] == "CS-2-A"
    assert len(lines) == 2 + 6
    assert lines[2].startswith("Monday")
    assert "Physics" in lines[2]
    assert "BREAK" in lines[2] and "LUNCH" in lines[2]
    assert "Physics" not in lines[3]


def test_verbose_generation_prints_grids_and_statistics(make_row, capsys):
    data = TimetableData(subjects=[make_row("Mathematics", 2, "Dr. R")])

    generate_timetables(data, GeneratorConfig(randomize=False, verbose=True))

    out = capsys.readouterr().out
    assert "CS-2-A" in out
    assert "Hard constraints satisfied" in out
    assert "Periods allocated: 2/2" in out

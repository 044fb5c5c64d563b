from app.chapterdesk.timeslots import TIME_OPTIONS, generate_time_options, hour_label


def test_hour_labels():
    assert hour_label(0) == "12 AM"
    assert hour_label(7) == "7 AM"
    assert hour_label(12) == "12 PM"
    assert hour_label(20) == "8 PM"


def test_business_hours_in_quarter_hours():
    assert list(TIME_OPTIONS)[0] == "7 AM"
    assert list(TIME_OPTIONS)[-1] == "8 PM"
    assert TIME_OPTIONS["7 AM"] == ["07:00", "07:15", "07:30", "07:45"]
    assert sum(len(v) for v in TIME_OPTIONS.values()) == 14 * 4


def test_custom_step():
    grouped = generate_time_options(9, 10, 30)
    assert grouped == {"9 AM": ["09:00", "09:30"]}

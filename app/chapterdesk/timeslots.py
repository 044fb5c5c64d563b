from __future__ import annotations


def hour_label(hour: int) -> str:
    if hour == 0:
        return "12 AM"
    if hour < 12:
        return f"{hour} AM"
    if hour == 12:
        return "12 PM"
    return f"{hour - 12} PM"


def generate_time_options(start_hour: int = 7, end_hour: int = 21, step_minutes: int = 15) -> dict[str, list[str]]:
    """Business-hours time slots ("07:00", "07:15", ...) grouped by hour label."""
    grouped: dict[str, list[str]] = {}
    for hour in range(start_hour, end_hour):
        grouped[hour_label(hour)] = [f"{hour:02d}:{minute:02d}" for minute in range(0, 60, step_minutes)]
    return grouped


TIME_OPTIONS = generate_time_options()

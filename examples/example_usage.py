"""Example: drive the calendar service layer without Flask.

Controllers are thin; the expansion, exception and aggregation rules live in
the services, so a script can render a month the same way the API does.
"""

import importlib
import logging
from datetime import date

from config import get_settings_module

from src.campus_calendar.campus_calendar.calendar.presenter import page_dict
from src.campus_calendar.campus_calendar.container import build_container
from src.campus_calendar.campus_calendar.core.enums import CalendarView, Role


def main():
    logging.basicConfig(level=logging.INFO)
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG)

    page = container.calendar_service.page(
        current_role=Role.CAMPUS_ADMIN,
        view=CalendarView.MONTH,
        anchor=date(2026, 3, 1),
    )
    body = page_dict(page)
    for week in body["grid"]["weeks"]:
        print(" ".join(f"{cell['date'][-2:]}:{len(cell['events'])}" for cell in week))
    print("warnings:", body["warnings"])

    occurrences = container.schedule_pattern_service.generate_occurrences(
        current_role=Role.CAMPUS_ADMIN,
        pattern_id=1,
        range_start=date(2026, 2, 1),
        range_end=date(2026, 3, 31),
    )
    for o in occurrences:
        print(o.date, o.start.time(), "rescheduled" if o.is_rescheduled else "")


if __name__ == "__main__":
    main()

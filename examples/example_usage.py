"""Example: drive the attendance services directly, without Flask.

Controllers stay thin; the rules live in the services.
"""

import importlib

from config import get_settings_module

from src.course_attendance.course_attendance.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(
        db_config=settings.DB_CONFIG,
        default_academic_year=settings.DEFAULT_ACADEMIC_YEAR,
    )

    result = container.session_service.take_attendance(
        1,
        date="2024-09-02",
        start_time="09:00",
        end_time="10:00",
        entries=[
            {"studentId": 1, "status": "present"},
            {"studentId": 2, "status": "absent", "remarks": "medical"},
        ],
    )
    print(result.to_dict())
    print(container.attendance_service.get_summary(1).to_dict())


if __name__ == "__main__":
    main()

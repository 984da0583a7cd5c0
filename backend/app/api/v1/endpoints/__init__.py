# API endpoints
from . import health, departments, courses, subjects, students, faculty, leaves, notices, transport, fees, events

__all__ = [
    "health", "departments", "courses", "subjects", "students", "faculty",
    "leaves", "notices", "transport", "fees", "events",
]

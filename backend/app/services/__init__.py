from app.services.event_bus import EventBus, event_bus
from app.services.lifecycle import LifecycleService

# Academic catalogue and people
from app.services.academic_service import DepartmentService, CourseService, SubjectService
from app.services.people_service import StudentService, FacultyService

# Workflows
from app.services.leave_service import LeaveService
from app.services.notice_service import NoticeService

# Campus services
from app.services.campus_service import TransportService, FeeService

__all__ = [
    # Core services
    "EventBus",
    "event_bus",
    "LifecycleService",
    # Catalogue and people
    "DepartmentService",
    "CourseService",
    "SubjectService",
    "StudentService",
    "FacultyService",
    # Workflows
    "LeaveService",
    "NoticeService",
    # Campus services
    "TransportService",
    "FeeService",
]

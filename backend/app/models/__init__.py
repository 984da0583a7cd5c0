# Re-export all models for convenient imports
from app.models.academics import Department, Course, Subject, faculty_subjects
from app.models.people import Student, Faculty, FacultyAuditLog
from app.models.leave import LeaveRequest
from app.models.notice import Notice, NoticeRead
from app.models.campus_services import TransportRoute, Fee

__all__ = [
    # Academics
    "Department",
    "Course",
    "Subject",
    "faculty_subjects",
    # People
    "Student",
    "Faculty",
    "FacultyAuditLog",
    # Workflows
    "LeaveRequest",
    "Notice",
    "NoticeRead",
    # Campus services
    "TransportRoute",
    "Fee",
]

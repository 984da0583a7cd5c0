from fastapi import APIRouter
from app.api.v1.endpoints import (
    health, departments, courses, subjects, students, faculty,
    leaves, notices, transport, fees, events,
)

api_router = APIRouter()

api_router.include_router(health.router)

# Academic catalogue
api_router.include_router(departments.router, prefix="/departments", tags=["Departments"])
api_router.include_router(courses.router, prefix="/courses", tags=["Courses"])
api_router.include_router(subjects.router, prefix="/subjects", tags=["Subjects"])

# People
api_router.include_router(students.router, prefix="/students", tags=["Students"])
api_router.include_router(faculty.router, prefix="/faculty", tags=["Faculty"])

# Workflows
api_router.include_router(leaves.router, prefix="/leaves", tags=["Leave Requests"])
api_router.include_router(notices.router, prefix="/notices", tags=["Notices"])
api_router.include_router(events.router, prefix="/events", tags=["Events"])

# Campus services
api_router.include_router(transport.router, prefix="/transport", tags=["Transport"])
api_router.include_router(fees.router, prefix="/fees", tags=["Fees"])

# Pydantic schemas
from app.schemas.academics import (
    DepartmentCreate,
    DepartmentUpdate,
    DepartmentResponse,
    CourseCreate,
    CourseUpdate,
    CourseResponse,
    SubjectCreate,
    SubjectUpdate,
    SubjectFacultyAssign,
    SubjectResponse,
)
from app.schemas.people import (
    StudentCreate,
    StudentUpdate,
    StudentResponse,
    FacultyCreate,
    FacultyUpdate,
    FacultyResponse,
    PasswordReset,
)
from app.schemas.workflow import (
    LeaveApply,
    LeaveReview,
    LeaveResponse,
    LeaveStats,
    AdminLeaveStats,
    LeaveAnalytics,
    NoticeCreate,
    NoticeUpdate,
    NoticeResponse,
    NoticeListResponse,
    NoticeFeedItem,
    NoticeFeedResponse,
    NoticeReadResponse,
    EventPublish,
)
from app.schemas.campus_services import (
    TransportRouteCreate,
    TransportRouteUpdate,
    TransportRouteResponse,
    FeeCreate,
    FeeUpdate,
    FeeResponse,
)

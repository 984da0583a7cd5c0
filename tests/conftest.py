"""
CampusDesk console - Test Configuration and Fixtures
"""
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from faker import Faker

from campusdesk.api_client import CampusAPIClient
from campusdesk.domain import Role
from campusdesk.outbox import EventOutbox
from campusdesk.session import Session

fake = Faker()


DEPARTMENTS = [
    {'id': 'd-cse', 'name': 'Computer Science', 'code': 'CSE', 'status': 'active'},
    {'id': 'd-mech', 'name': 'Mechanical Engineering', 'code': 'MECH', 'status': 'active'},
    {'id': 'd-tex', 'name': 'Textiles', 'code': 'TEX', 'status': 'inactive'},
]

COURSES = [
    {'id': 'c-btech', 'name': 'B.Tech CSE', 'code': 'BTECH-CSE', 'department_id': 'd-cse',
     'duration_value': 4, 'duration_unit': 'year', 'total_semesters': 8, 'status': 'active'},
    {'id': 'c-dip', 'name': 'Diploma CSE', 'code': 'DIP-CSE', 'department_id': 'd-cse',
     'duration_value': 3, 'duration_unit': 'semester', 'total_semesters': 3, 'status': 'active'},
    {'id': 'c-old', 'name': 'Old CSE', 'code': 'OLD-CSE', 'department_id': 'd-cse',
     'duration_value': 2, 'duration_unit': 'year', 'total_semesters': 4, 'status': 'inactive'},
    {'id': 'c-mtech', 'name': 'M.Tech Mechanical', 'code': 'MTECH-ME', 'department_id': 'd-mech',
     'duration_value': 2, 'duration_unit': 'year', 'total_semesters': 4, 'status': 'active'},
]

SUBJECTS = [
    {'id': 's-ds', 'name': 'Data Structures', 'code': 'CS201', 'department_id': 'd-cse',
     'course_id': 'c-btech', 'semester': 3, 'status': 'active'},
    {'id': 's-os', 'name': 'Operating Systems', 'code': 'CS301', 'department_id': 'd-cse',
     'course_id': 'c-btech', 'semester': 5, 'status': 'active'},
    {'id': 's-thermo', 'name': 'Thermodynamics', 'code': 'ME101', 'department_id': 'd-mech',
     'course_id': 'c-mtech', 'semester': 1, 'status': 'active'},
]


def _by(collection, **filters):
    return [
        dict(item) for item in collection
        if all(value is None or item.get(key) == value for key, value in filters.items())
    ]


@pytest.fixture
def api() -> MagicMock:
    """CampusAPIClient double; coroutine methods come back as AsyncMocks"""
    mock = MagicMock(spec=CampusAPIClient)
    mock.list_departments.side_effect = lambda status=None: _by(DEPARTMENTS, status=status)
    mock.list_courses.side_effect = lambda department_id=None, status=None: _by(
        COURSES, department_id=department_id, status=status
    )
    mock.list_subjects.side_effect = lambda course_id=None, department_id=None, status=None, semester=None: _by(
        SUBJECTS, course_id=course_id, department_id=department_id, status=status
    )
    mock.list_entities.return_value = []
    mock.emit_event.return_value = {'success': True}
    return mock


@pytest.fixture
def outbox() -> EventOutbox:
    return EventOutbox()


@pytest.fixture
def published(outbox: EventOutbox) -> list:
    """Every event the outbox hands to subscribers"""
    events = []
    outbox.subscribe('*', events.append)
    return events


@pytest.fixture
def make_ctx(api: MagicMock, outbox: EventOutbox):
    """Session context factory for a given role"""
    def _make(role: Role = Role.ADMIN, user_id: str = None):
        session = Session(user_id=user_id or fake.uuid4(), role=role, name=fake.name())
        return SimpleNamespace(api=api, outbox=outbox, session=session)
    return _make


@pytest.fixture
def admin_ctx(make_ctx):
    return make_ctx(Role.ADMIN)

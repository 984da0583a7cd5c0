"""
CampusDesk API - Test Configuration and Fixtures
"""
import os
from typing import AsyncGenerator
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool
from faker import Faker

# Set testing environment
os.environ['TESTING'] = 'true'
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///./test.db'
os.environ['BCRYPT_ROUNDS'] = '4'

from campusdesk.domain import DurationUnit, EntityStatus, Role, SubjectType
from app.main import app
from app.core.database import Base, get_db, enable_sqlite_foreign_keys
from app.core.security import get_password_hash
from app.models import Course, Department, Faculty, Student, Subject
from app.services.event_bus import event_bus

fake = Faker()

# Test database setup
TEST_DATABASE_URL = 'sqlite+aiosqlite:///./test.db'
test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
event.listen(test_engine.sync_engine, "connect", enable_sqlite_foreign_keys)
TestSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False
)


@pytest.fixture(scope='function')
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test"""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database override"""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def clean_event_bus():
    """Every test starts with an empty bus"""
    event_bus.reset()
    yield
    event_bus.reset()


# ==========================================
# Actor headers
# ==========================================

@pytest.fixture
def admin_headers() -> dict:
    return {'X-User-Id': fake.uuid4(), 'X-User-Role': Role.ADMIN.value}


@pytest.fixture
def faculty_headers(faculty: Faculty) -> dict:
    return {'X-User-Id': str(faculty.id), 'X-User-Role': Role.FACULTY.value}


@pytest.fixture
def student_headers(student: Student) -> dict:
    return {'X-User-Id': str(student.id), 'X-User-Role': Role.STUDENT.value}


# ==========================================
# Catalogue and people factories
# ==========================================

@pytest.fixture
async def department(db_session: AsyncSession) -> Department:
    """Computer Science department"""
    dept = Department(name='Computer Science', code='CSE', status=EntityStatus.ACTIVE)
    db_session.add(dept)
    await db_session.commit()
    await db_session.refresh(dept)
    return dept


@pytest.fixture
async def other_department(db_session: AsyncSession) -> Department:
    dept = Department(name='Mechanical Engineering', code='MECH', status=EntityStatus.ACTIVE)
    db_session.add(dept)
    await db_session.commit()
    await db_session.refresh(dept)
    return dept


@pytest.fixture
async def course(db_session: AsyncSession, department: Department) -> Course:
    """Four year course: eight semesters"""
    item = Course(
        name='B.Tech Computer Science',
        code='BTECH-CSE',
        department_id=department.id,
        duration_value=4,
        duration_unit=DurationUnit.YEAR,
        status=EntityStatus.ACTIVE,
    )
    db_session.add(item)
    await db_session.commit()
    await db_session.refresh(item)
    return item


@pytest.fixture
async def subject(db_session: AsyncSession, course: Course) -> Subject:
    item = Subject(
        name='Data Structures',
        code='CS201',
        course=course,
        semester=3,
        credits=4,
        type=SubjectType.THEORY,
        status=EntityStatus.ACTIVE,
    )
    db_session.add(item)
    await db_session.commit()
    return item


@pytest.fixture
async def student(db_session: AsyncSession, course: Course) -> Student:
    item = Student(
        name=fake.name(),
        email=fake.unique.email().lower(),
        roll_no='21CSE001',
        department_id=course.department_id,
        course_id=course.id,
        year=2,
        semester=3,
        section='A',
        hashed_password=get_password_hash('student123'),
        status=EntityStatus.ACTIVE,
    )
    db_session.add(item)
    await db_session.commit()
    await db_session.refresh(item)
    return item


@pytest.fixture
async def faculty(db_session: AsyncSession, department: Department) -> Faculty:
    item = Faculty(
        name=fake.name(),
        email=fake.unique.email().lower(),
        employee_id='FAC001',
        department_id=department.id,
        designation='Assistant Professor',
        hashed_password=get_password_hash('faculty123'),
        status=EntityStatus.ACTIVE,
        subjects=[],
    )
    db_session.add(item)
    await db_session.commit()
    return item

"""
Seed Campus Data

Creates a small catalogue so the console has something to cascade through:
- CSE department with B.Tech (4 years) and a 3-semester diploma
- MECH department with B.Tech (4 years)
- A handful of subjects, one faculty member and one student per department

Accounts use the password demo123.

Run with: python seed_campus_data.py
"""
import asyncio

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from campusdesk.domain import DurationUnit, SubjectType
from app.core.database import get_session_local, init_db
from app.core.security import get_password_hash
from app.models import Course, Department, Faculty, Student, Subject


DEPARTMENTS = [
    {"code": "CSE", "name": "Computer Science and Engineering"},
    {"code": "MECH", "name": "Mechanical Engineering"},
]

COURSES = [
    {"code": "BTECH-CSE", "department": "CSE", "name": "B.Tech Computer Science",
     "duration_value": 4, "duration_unit": DurationUnit.YEAR},
    {"code": "DIP-CSE", "department": "CSE", "name": "Diploma in Programming",
     "duration_value": 3, "duration_unit": DurationUnit.SEMESTER},
    {"code": "BTECH-MECH", "department": "MECH", "name": "B.Tech Mechanical",
     "duration_value": 4, "duration_unit": DurationUnit.YEAR},
]

SUBJECTS = [
    {"code": "CS201", "course": "BTECH-CSE", "name": "Data Structures", "semester": 3, "credits": 4},
    {"code": "CS301", "course": "BTECH-CSE", "name": "Operating Systems", "semester": 5, "credits": 4},
    {"code": "CS302", "course": "BTECH-CSE", "name": "Networks Lab", "semester": 5, "credits": 2,
     "type": SubjectType.PRACTICAL},
    {"code": "DP101", "course": "DIP-CSE", "name": "Programming Basics", "semester": 1, "credits": 3},
    {"code": "ME201", "course": "BTECH-MECH", "name": "Thermodynamics", "semester": 3, "credits": 4},
]

FACULTY = [
    {"employee_id": "FAC-CSE-01", "department": "CSE", "name": "Anita Rao",
     "email": "anita.rao@college.edu", "designation": "Associate Professor"},
    {"employee_id": "FAC-ME-01", "department": "MECH", "name": "Vikram Shetty",
     "email": "vikram.shetty@college.edu"},
]

STUDENTS = [
    {"roll_no": "21CS001", "department": "CSE", "course": "BTECH-CSE", "name": "Priya Nair",
     "email": "priya.nair@college.edu", "year": 3, "semester": 5},
    {"roll_no": "21ME001", "department": "MECH", "course": "BTECH-MECH", "name": "Rahul Verma",
     "email": "rahul.verma@college.edu", "year": 2, "semester": 3},
]

DEMO_PASSWORD = "demo123"


async def get_or_create(db: AsyncSession, model, lookup: dict, values: dict):
    """Return (record, created) for the row matching lookup"""
    filters = [getattr(model, key) == value for key, value in lookup.items()]
    result = await db.execute(select(model).where(*filters))
    record = result.scalar_one_or_none()
    if record is not None:
        return record, False

    record = model(**lookup, **values)
    db.add(record)
    await db.flush()
    return record, True


async def seed_campus_data():
    """Create the demo catalogue, skipping rows that already exist"""
    print("=" * 50)
    print("Seeding Campus Data...")
    print("=" * 50)

    await init_db()

    session_factory = get_session_local()
    async with session_factory() as db:
        created = 0
        departments = {}
        courses = {}

        for data in DEPARTMENTS:
            department, is_new = await get_or_create(db, Department, {"code": data["code"]}, {"name": data["name"]})
            departments[data["code"]] = department
            created += is_new

        for data in COURSES:
            values = {k: v for k, v in data.items() if k not in ("code", "department")}
            values["department_id"] = departments[data["department"]].id
            course, is_new = await get_or_create(db, Course, {"code": data["code"]}, values)
            courses[data["code"]] = course
            created += is_new

        for data in SUBJECTS:
            values = {k: v for k, v in data.items() if k not in ("code", "course")}
            values["course_id"] = courses[data["course"]].id
            _, is_new = await get_or_create(db, Subject, {"code": data["code"]}, values)
            created += is_new

        hashed = get_password_hash(DEMO_PASSWORD)
        for data in FACULTY:
            values = {k: v for k, v in data.items() if k not in ("employee_id", "department")}
            values["department_id"] = departments[data["department"]].id
            values["hashed_password"] = hashed
            faculty, is_new = await get_or_create(db, Faculty, {"employee_id": data["employee_id"]}, values)
            created += is_new
            if is_new:
                print(f"  Faculty: {faculty.email} ({faculty.id})")

        for data in STUDENTS:
            values = {k: v for k, v in data.items() if k not in ("roll_no", "department", "course")}
            values["department_id"] = departments[data["department"]].id
            values["course_id"] = courses[data["course"]].id
            values["hashed_password"] = hashed
            student, is_new = await get_or_create(db, Student, {"roll_no": data["roll_no"]}, values)
            created += is_new
            if is_new:
                print(f"  Student: {student.email} ({student.id})")

        await db.commit()

    print("=" * 50)
    print(f"Done! Created {created} records")
    print("=" * 50)
    print("\nTry the console:")
    print("  campusdesk departments list")
    print("  campusdesk --role student --user-id <student id> notices feed")


if __name__ == "__main__":
    asyncio.run(seed_campus_data())

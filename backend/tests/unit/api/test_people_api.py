"""
Unit tests for student and faculty endpoints
"""
import pytest
from httpx import AsyncClient
from faker import Faker

from app.core.security import verify_password
from app.models import Course, Department, Faculty, Student, Subject

fake = Faker()

API = '/api/v1'


def student_payload(course: Course, **overrides) -> dict:
    payload = {
        'name': fake.name(),
        'email': fake.unique.email(),
        'roll_no': 'cse042',
        'department_id': course.department_id,
        'course_id': course.id,
        'year': 2,
    }
    payload.update(overrides)
    return payload


class TestStudents:
    """Student enrolment and account endpoints"""

    @pytest.mark.asyncio
    async def test_enrol_student_defaults(self, client: AsyncClient, admin_headers: dict, course: Course):
        response = await client.post(f'{API}/students', json=student_payload(course), headers=admin_headers)

        assert response.status_code == 201
        data = response.json()
        assert data['roll_no'] == 'CSE042'
        assert data['semester'] == 3
        assert data['section'] == 'A'
        assert 'hashed_password' not in data

    @pytest.mark.asyncio
    async def test_course_must_belong_to_department(self, client: AsyncClient, admin_headers: dict,
                                                    course: Course, other_department: Department):
        response = await client.post(
            f'{API}/students',
            json=student_payload(course, department_id=other_department.id),
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()['error']['message'] == 'Selected course does not belong to the department'

    @pytest.mark.asyncio
    async def test_semester_bounded_by_course(self, client: AsyncClient, admin_headers: dict, course: Course):
        response = await client.post(
            f'{API}/students',
            json=student_payload(course, semester=10),
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()['error']['details']['field'] == 'semester'

    @pytest.mark.asyncio
    async def test_duplicate_email(self, client: AsyncClient, admin_headers: dict, student: Student,
                                   course: Course):
        response = await client.post(
            f'{API}/students',
            json=student_payload(course, email=student.email.upper()),
            headers=admin_headers,
        )

        assert response.status_code == 409
        assert response.json()['error']['details']['field'] == 'email'

    @pytest.mark.asyncio
    async def test_invalid_email(self, client: AsyncClient, admin_headers: dict, course: Course):
        response = await client.post(
            f'{API}/students',
            json=student_payload(course, email='not-an-email'),
            headers=admin_headers,
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_search_students(self, client: AsyncClient, student: Student):
        response = await client.get(f'{API}/students', params={'search': '21cse'})
        assert [item['id'] for item in response.json()] == [student.id]

        response = await client.get(f'{API}/students', params={'search': 'nobody-matches'})
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_promote_student_moves_semester(self, client: AsyncClient, admin_headers: dict,
                                                  student: Student):
        response = await client.put(f'{API}/students/{student.id}', json={'year': 3}, headers=admin_headers)

        assert response.status_code == 200
        assert response.json()['year'] == 3
        assert response.json()['semester'] == 5

    @pytest.mark.asyncio
    async def test_reset_password(self, client: AsyncClient, admin_headers: dict, student: Student):
        response = await client.post(
            f'{API}/students/{student.id}/reset-password',
            json={'password': 'fresh-pass', 'confirm_password': 'fresh-pass'},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()['success'] is True
        assert verify_password('fresh-pass', student.hashed_password)

    @pytest.mark.asyncio
    async def test_reset_password_mismatch(self, client: AsyncClient, admin_headers: dict, student: Student):
        response = await client.post(
            f'{API}/students/{student.id}/reset-password',
            json={'password': 'fresh-pass', 'confirm_password': 'other-pass'},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()['error']['message'] == 'Passwords do not match'

    @pytest.mark.asyncio
    async def test_reset_password_too_short(self, client: AsyncClient, admin_headers: dict, student: Student):
        response = await client.post(
            f'{API}/students/{student.id}/reset-password',
            json={'password': 'abc'},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()['error']['message'] == 'Password must be at least 6 characters'

    @pytest.mark.asyncio
    async def test_deactivate_then_delete_student(self, client: AsyncClient, admin_headers: dict,
                                                  student: Student):
        response = await client.patch(f'{API}/students/{student.id}/deactivate', headers=admin_headers)
        assert response.json()['status'] == 'inactive'

        response = await client.get(f'{API}/students', params={'status': 'active'})
        assert response.json() == []

        response = await client.delete(f'{API}/students/{student.id}', headers=admin_headers)
        assert response.status_code == 200
        assert response.json()['message'] == 'Student deleted'


class TestFaculty:
    """Faculty accounts, subject assignment and audit log"""

    @pytest.mark.asyncio
    async def test_create_faculty_with_subjects(self, client: AsyncClient, admin_headers: dict,
                                                department: Department, subject: Subject):
        response = await client.post(
            f'{API}/faculty',
            json={
                'name': fake.name(),
                'email': fake.unique.email(),
                'employee_id': 'fac077',
                'department_id': department.id,
                'subject_ids': [subject.id],
            },
            headers=admin_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data['employee_id'] == 'FAC077'
        assert data['subject_ids'] == [subject.id]
        assert data['designation'] == 'Assistant Professor'

    @pytest.mark.asyncio
    async def test_subjects_must_match_department(self, client: AsyncClient, admin_headers: dict,
                                                  other_department: Department, subject: Subject):
        response = await client.post(
            f'{API}/faculty',
            json={
                'name': fake.name(),
                'email': fake.unique.email(),
                'employee_id': 'FAC078',
                'department_id': other_department.id,
                'subject_ids': [subject.id],
            },
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()['error']['details']['field'] == 'subject_ids'

    @pytest.mark.asyncio
    async def test_unknown_subject(self, client: AsyncClient, admin_headers: dict, department: Department):
        response = await client.post(
            f'{API}/faculty',
            json={
                'name': fake.name(),
                'email': fake.unique.email(),
                'employee_id': 'FAC079',
                'department_id': department.id,
                'subject_ids': [fake.uuid4()],
            },
            headers=admin_headers,
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_subject_change_is_audited(self, client: AsyncClient, admin_headers: dict,
                                             faculty: Faculty, subject: Subject):
        response = await client.put(
            f'{API}/faculty/{faculty.id}',
            json={'subject_ids': [subject.id]},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()['subject_ids'] == [subject.id]

        response = await client.get(f'{API}/faculty/{faculty.id}/audit-log')
        entries = response.json()
        assert len(entries) == 1
        assert entries[0]['field'] == 'subject_ids'
        assert entries[0]['old_value'] == []
        assert entries[0]['new_value'] == [subject.id]
        assert entries[0]['changed_by_id'] == admin_headers['X-User-Id']

    @pytest.mark.asyncio
    async def test_department_change_clears_subjects(self, client: AsyncClient, admin_headers: dict,
                                                     faculty: Faculty, subject: Subject,
                                                     other_department: Department):
        await client.put(f'{API}/faculty/{faculty.id}', json={'subject_ids': [subject.id]}, headers=admin_headers)

        response = await client.put(
            f'{API}/faculty/{faculty.id}',
            json={'department_id': other_department.id},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()['department_id'] == other_department.id
        assert response.json()['subject_ids'] == []

        response = await client.get(f'{API}/faculty/{faculty.id}/audit-log')
        fields = sorted(entry['field'] for entry in response.json())
        assert fields == ['department_id', 'subject_ids', 'subject_ids']

    @pytest.mark.asyncio
    async def test_unchanged_update_writes_no_audit(self, client: AsyncClient, admin_headers: dict,
                                                    faculty: Faculty):
        await client.put(f'{API}/faculty/{faculty.id}', json={'designation': 'Professor'}, headers=admin_headers)

        response = await client.get(f'{API}/faculty/{faculty.id}/audit-log')
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_delete_blocked_while_teaching(self, client: AsyncClient, admin_headers: dict,
                                                 faculty: Faculty, subject: Subject):
        await client.patch(
            f'{API}/subjects/{subject.id}/assign-faculty',
            json={'faculty_id': faculty.id},
            headers=admin_headers,
        )

        response = await client.delete(f'{API}/faculty/{faculty.id}', headers=admin_headers)

        assert response.status_code == 409
        assert response.json()['error']['details']['dependencies']['subjects'] == 1
        assert response.json()['error']['details']['suggestion'].startswith('Deactivate the faculty')

    @pytest.mark.asyncio
    async def test_reset_faculty_password(self, client: AsyncClient, admin_headers: dict, faculty: Faculty):
        response = await client.post(
            f'{API}/faculty/{faculty.id}/reset-password',
            json={'password': 'teach-123'},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert verify_password('teach-123', faculty.hashed_password)

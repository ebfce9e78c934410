import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from backend.auth.dependencies import get_token_service
from backend.database import Base, get_db
from backend.main import app
from backend.models.attendance import Attendance
from backend.models.user import UserRole


@pytest.fixture
def session_factory():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def client(session_factory, token_service):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_token_service] = lambda: token_service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(token_service):
    def _auth_headers(role: UserRole, user_id: int = 1) -> dict[str, str]:
        token = token_service.issue(user_id, f'{role.value}@school.edu', role)
        return {'Authorization': f'Bearer {token}'}

    return _auth_headers


STUDENT_BODY = {'full_name': 'Ann Lee', 'gender': 'female', 'birth_date': '2005-03-14'}
FROM_USER_BODY = {'user_id': 1, 'gender': 'female', 'birth_date': '2005-03-14'}
ATTENDANCE_BODY = {'student_id': 1, 'subject_id': 1, 'visit_day': '2026-09-01', 'visited': True}


@pytest.mark.parametrize(
    ('method', 'path', 'body'),
    [
        ('get', '/students', None),
        ('post', '/students', STUDENT_BODY),
        ('post', '/students/from-user', FROM_USER_BODY),
        ('post', '/attendance/subject', ATTENDANCE_BODY),
        ('get', '/attendanceBySubjectId/1', None),
        ('get', '/api/users', None),
    ],
)
def test_student_role_is_forbidden_on_staff_routes(client, auth_headers, method: str, path: str, body) -> None:
    response = client.request(method, path, json=body, headers=auth_headers(UserRole.STUDENT))

    assert response.status_code == 403
    assert response.json() == {'detail': 'Insufficient role privileges'}


@pytest.mark.parametrize(
    ('method', 'path', 'body'),
    [
        ('post', '/students', STUDENT_BODY),
        ('post', '/students/from-user', FROM_USER_BODY),
        ('get', '/api/users', None),
    ],
)
def test_teacher_role_is_forbidden_on_admin_routes(client, auth_headers, method: str, path: str, body) -> None:
    response = client.request(method, path, json=body, headers=auth_headers(UserRole.TEACHER))

    assert response.status_code == 403


@pytest.mark.parametrize(
    'path',
    [
        '/api/users/me',
        '/students',
        '/student/1',
        '/groups',
        '/subjects',
        '/all_class_schedule',
        '/schedule/group/1',
        '/attendanceByStudentId/1',
        '/attendanceBySubjectId/1',
    ],
)
def test_routes_require_a_bearer_token(client, path: str) -> None:
    response = client.get(path)

    assert response.status_code == 401
    assert response.headers['WWW-Authenticate'] == 'Bearer'


def test_tampered_token_is_rejected(client, auth_headers) -> None:
    headers = auth_headers(UserRole.ADMIN)
    headers['Authorization'] += 'x'

    response = client.get('/students', headers=headers)

    assert response.status_code == 401


def test_staff_can_reach_teacher_routes(client, auth_headers) -> None:
    for role in (UserRole.TEACHER, UserRole.ADMIN):
        assert client.get('/students', headers=auth_headers(role)).status_code == 200
        assert client.get('/attendanceBySubjectId/1', headers=auth_headers(role)).status_code == 200


def test_non_numeric_student_id_is_a_bad_request(client, auth_headers) -> None:
    response = client.get('/student/abc', headers=auth_headers(UserRole.ADMIN))

    assert response.status_code == 400
    assert 'student_id' in response.json()['detail']


def test_attendance_with_zero_student_id_is_rejected_without_writing(client, auth_headers, session_factory) -> None:
    response = client.post(
        '/attendance/subject',
        json={**ATTENDANCE_BODY, 'student_id': 0},
        headers=auth_headers(UserRole.TEACHER),
    )

    assert response.status_code == 400
    assert 'student_id must be a positive integer' in response.json()['detail']
    with session_factory() as db:
        assert db.scalar(select(func.count()).select_from(Attendance)) == 0


def test_linked_user_id_is_reported_after_creating_from_user(client, auth_headers) -> None:
    registered = client.post(
        '/api/auth/register',
        json={'email': 'ann@school.edu', 'password': 'secret1', 'full_name': 'Ann Lee'},
    )
    user_id = registered.json()['user']['id']
    admin = auth_headers(UserRole.ADMIN, user_id=99)

    created = client.post('/students/from-user', json={**FROM_USER_BODY, 'user_id': user_id}, headers=admin)
    listed = client.get('/students', headers=admin)
    fetched = client.get(f"/student/{created.json()['id']}", headers=admin)

    assert created.status_code == 201
    assert created.json()['user_id'] == user_id
    assert [row['user_id'] for row in listed.json()] == [user_id]
    assert fetched.json()['user_id'] == user_id

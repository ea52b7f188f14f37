from datetime import datetime, timedelta, timezone

import jwt
import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from careerguide.auth import jwt_handler
from careerguide.core import config
from careerguide.models.counselor import Counselor
from careerguide.models.user import User
from careerguide.routes.auth_routes import LoginRequest, RegisterRequest, login, register

COUNSELOR_SIGNUP = {
    'email': ' New.Counselor@Example.com ',
    'password': 'hunter22',
    'role': 'counselor',
    'name': 'New Counselor',
    'phone': '555-0400',
    'specialization': 'Law',
    'experience': 0,
    'availability': [
        {'day': 'Tuesday', 'start': '10:00', 'end': '12:00'},
        {'day': 'Tuesday', 'start': '11:00', 'end': '09:00'},
    ],
}


def test_register_request_maps_user_role_to_student() -> None:
    request = RegisterRequest(email='A@B.COM', password='hunter22', role='user', full_name='A B')

    assert request.role == 'student'
    assert request.email == 'a@b.com'


@pytest.mark.parametrize(
    'overrides',
    [
        {'specialization': 'Astrology'},
        {'experience': -1},
        {'availability': []},
        {'phone': '  '},
    ],
)
def test_register_request_rejects_incomplete_counselor(overrides) -> None:
    with pytest.raises(ValidationError):
        RegisterRequest(**{**COUNSELOR_SIGNUP, **overrides})


def test_register_request_rejects_short_password() -> None:
    with pytest.raises(ValidationError):
        RegisterRequest(email='a@b.com', password='123', full_name='A B')


def test_register_counselor_keeps_availability_verbatim(db_session) -> None:
    result = register(RegisterRequest(**COUNSELOR_SIGNUP), db=db_session)

    counselor = db_session.query(Counselor).filter(Counselor.email == 'new.counselor@example.com').one()
    assert result['success'] is True
    assert counselor.experience == 0
    assert counselor.availability == COUNSELOR_SIGNUP['availability']
    assert counselor.hashed_password != 'hunter22'


def test_register_rejects_email_used_by_other_role(db_session, student) -> None:
    with pytest.raises(HTTPException) as exception_info:
        register(
            RegisterRequest(**{**COUNSELOR_SIGNUP, 'email': student.email}),
            db=db_session,
        )

    assert exception_info.value.status_code == 409


def test_login_with_wrong_password_is_unauthorized(db_session, student) -> None:
    with pytest.raises(HTTPException) as exception_info:
        login(LoginRequest(email=student.email, password='wrong-password'), db=db_session)

    assert exception_info.value.status_code == 401
    assert exception_info.value.detail == 'Invalid email or password.'


def test_login_as_counselor_does_not_match_student_account(db_session, student) -> None:
    with pytest.raises(HTTPException) as exception_info:
        login(LoginRequest(email=student.email, password='secret123', loginAs='counselor'), db=db_session)

    assert exception_info.value.status_code == 401


def test_login_returns_token_with_role(db_session, counselor) -> None:
    result = login(
        LoginRequest(email=' CASEY@example.com ', password='secret123', loginAs='counselor'),
        db=db_session,
    )

    payload = jwt_handler.decode_access_token(result['token'])
    assert result['role'] == 'counselor'
    assert result['counselor']['availability_labels'] == ['Mon 09:00-12:00', 'Wed 13:00-17:00']
    assert payload['sub'] == str(counselor.id)
    assert payload['role'] == 'counselor'


def test_register_then_login_over_http(client) -> None:
    response = client.post(
        '/auth/register',
        json={'email': 'pat@example.com', 'password': 'hunter22', 'role': 'user', 'full_name': 'Pat Doe'},
    )
    assert response.status_code == 201
    assert response.json() == {'success': True, 'message': 'Registration successful. You can now log in.'}

    response = client.post('/auth/login', json={'email': 'pat@example.com', 'password': 'hunter22', 'loginAs': 'user'})

    body = response.json()
    assert response.status_code == 200
    assert body['success'] is True
    assert body['role'] == 'student'
    assert body['user']['full_name'] == 'Pat Doe'


def test_register_validation_error_is_bad_request(client) -> None:
    response = client.post('/auth/register', json={'email': 'pat@example.com', 'password': 'hunter22'})

    assert response.status_code == 400
    assert response.json() == {'success': False, 'error': 'Full name is required.'}


def test_malformed_json_is_bad_request(client) -> None:
    response = client.post('/auth/login', content=b'{not json', headers={'Content-Type': 'application/json'})

    assert response.status_code == 400
    assert response.json() == {'success': False, 'error': 'Invalid JSON input.'}


def test_profile_requires_bearer_token(client) -> None:
    response = client.get('/auth/profile')

    assert response.status_code == 401
    assert response.json()['success'] is False


def test_profile_rejects_expired_token(client, student) -> None:
    expired = jwt.encode(
        {
            'sub': str(student.id),
            'role': 'student',
            'exp': datetime.now(timezone.utc) - timedelta(minutes=5),
        },
        config.JWT_SECRET_KEY,
        algorithm=config.JWT_ALGORITHM,
    )

    response = client.get('/auth/profile', headers={'Authorization': f'Bearer {expired}'})

    assert response.status_code == 401
    assert response.json() == {'success': False, 'error': 'Token expired.'}


def test_profile_returns_own_account(client, student, student_headers) -> None:
    response = client.get('/auth/profile', headers=student_headers)

    assert response.status_code == 200
    assert response.json()['user']['email'] == student.email


def test_update_profile_changes_student_fields(client, db_session, student, student_headers) -> None:
    response = client.put('/auth/profile', json={'location': 'Nashville'}, headers=student_headers)

    assert response.status_code == 200
    assert response.json()['user']['location'] == 'Nashville'
    assert db_session.get(User, student.id).full_name == 'Sam Student'


def test_update_profile_is_student_only(client, counselor_headers) -> None:
    response = client.put('/auth/profile', json={'phone': '1'}, headers=counselor_headers)

    assert response.status_code == 403

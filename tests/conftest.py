import os

os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ.setdefault('BCRYPT_ROUNDS', '4')
os.environ.setdefault('JWT_SECRET_KEY', 'test-secret')

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from careerguide.auth import jwt_handler  # noqa: E402
from careerguide.auth.passwords import hash_password  # noqa: E402
from careerguide.database import Base, get_db  # noqa: E402
from careerguide.main import app  # noqa: E402
from careerguide.models.counselor import Counselor  # noqa: E402
from careerguide.models.user import User  # noqa: E402

TEST_PASSWORD = 'secret123'


@pytest.fixture
def db_session():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def student(db_session) -> User:
    user = User(
        email='student@example.com',
        hashed_password=hash_password(TEST_PASSWORD),
        full_name='Sam Student',
        phone='555-0100',
        location='Memphis',
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def counselor(db_session) -> Counselor:
    record = Counselor(
        name='Casey Counselor',
        email='casey@example.com',
        hashed_password=hash_password(TEST_PASSWORD),
        phone='555-0200',
        specialization='Technology',
        experience=8,
        bio='Software career coach.',
        rating=4.5,
        availability=[
            {'day': 'Monday', 'start': '09:00', 'end': '12:00'},
            {'day': 'Wednesday', 'start': '13:00', 'end': '17:00'},
        ],
    )
    db_session.add(record)
    db_session.commit()
    db_session.refresh(record)
    return record


@pytest.fixture
def other_counselor(db_session) -> Counselor:
    record = Counselor(
        name='Morgan Mentor',
        email='morgan@example.com',
        hashed_password=hash_password(TEST_PASSWORD),
        phone='555-0300',
        specialization='Healthcare',
        experience=3,
        availability=[{'day': 'Friday', 'start': '10:00', 'end': '11:00'}],
    )
    db_session.add(record)
    db_session.commit()
    db_session.refresh(record)
    return record


def bearer(account_id: int, role: str) -> dict:
    return {'Authorization': f'Bearer {jwt_handler.create_access_token(str(account_id), role)}'}


@pytest.fixture
def student_headers(student) -> dict:
    return bearer(student.id, 'student')


@pytest.fixture
def counselor_headers(counselor) -> dict:
    return bearer(counselor.id, 'counselor')


@pytest.fixture
def other_counselor_headers(other_counselor) -> dict:
    return bearer(other_counselor.id, 'counselor')

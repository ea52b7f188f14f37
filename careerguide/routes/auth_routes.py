import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator, model_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from careerguide.auth import jwt_handler
from careerguide.auth.dependencies import (
    COUNSELOR_ROLE,
    STUDENT_ROLE,
    Identity,
    get_current_identity,
    require_student,
)
from careerguide.auth.passwords import hash_password, verify_password
from careerguide.core.errors import database_error
from careerguide.database import get_db
from careerguide.models.counselor import Counselor
from careerguide.models.user import User
from careerguide.services.directory import SPECIALIZATIONS, availability_labels

router = APIRouter(tags=['auth'])

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_BYTES = 72
ROLE_ALIASES = {'user': STUDENT_ROLE, STUDENT_ROLE: STUDENT_ROLE, COUNSELOR_ROLE: COUNSELOR_ROLE}
LOGIN_FAILED_DETAIL = 'Invalid email or password.'


def normalize_email(value: str) -> str:
    normalized = (value or '').strip().lower()
    if not normalized or '@' not in normalized:
        raise ValueError('A valid email is required.')
    return normalized


def normalize_role(value: str | None) -> str:
    role = ROLE_ALIASES.get((value or 'user').strip().lower())
    if role is None:
        raise ValueError('Role must be either user or counselor.')
    return role


class AvailabilitySlot(BaseModel):
    day: str
    start: str
    end: str


class RegisterRequest(BaseModel):
    email: str
    password: str
    role: str = STUDENT_ROLE
    full_name: str | None = None
    name: str | None = None
    phone: str | None = None
    location: str | None = None
    specialization: str | None = None
    experience: int | None = None
    bio: str | None = None
    availability: list[AvailabilitySlot] | None = None

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        return normalize_email(value)

    @field_validator('role')
    @classmethod
    def validate_role(cls, value: str) -> str:
        return normalize_role(value)

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        if len(value) < MIN_PASSWORD_LENGTH:
            raise ValueError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters.')
        if len(value.encode()) > MAX_PASSWORD_BYTES:
            raise ValueError(f'Password must be at most {MAX_PASSWORD_BYTES} bytes.')
        return value

    @model_validator(mode='after')
    def validate_role_fields(self) -> 'RegisterRequest':
        if self.role == STUDENT_ROLE:
            if not (self.full_name or '').strip():
                raise ValueError('Full name is required.')
            return self

        if not (self.name or self.full_name or '').strip():
            raise ValueError('Name is required.')
        if not (self.phone or '').strip() or not self.specialization or self.experience is None:
            raise ValueError('Please fill in all counselor fields (phone, specialization, experience, availability)')
        if self.specialization not in SPECIALIZATIONS:
            raise ValueError(f"Specialization must be one of: {', '.join(SPECIALIZATIONS)}")
        if self.experience < 0:
            raise ValueError('Experience must be a non-negative number of years.')
        if not self.availability:
            raise ValueError('Please select at least one availability slot')
        return self


class LoginRequest(BaseModel):
    email: str
    password: str
    loginAs: str = STUDENT_ROLE

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator('loginAs')
    @classmethod
    def validate_login_as(cls, value: str) -> str:
        return normalize_role(value)


class ProfileUpdateRequest(BaseModel):
    full_name: str | None = None
    phone: str | None = None
    location: str | None = None


class UserResponse(BaseModel):
    id: int
    email: str
    full_name: str | None = None
    phone: str | None = None
    location: str | None = None
    role: str = STUDENT_ROLE

    class Config:
        from_attributes = True


class CounselorResponse(BaseModel):
    id: int
    name: str
    email: str
    phone: str | None = None
    specialization: str | None = None
    experience: int | None = None
    bio: str | None = None
    rating: float | None = None
    availability: list[dict] = []
    availability_labels: list[str] = []
    role: str = COUNSELOR_ROLE

    @classmethod
    def from_counselor(cls, counselor: Counselor) -> 'CounselorResponse':
        return cls(
            id=counselor.id,
            name=counselor.name,
            email=counselor.email,
            phone=counselor.phone,
            specialization=counselor.specialization,
            experience=counselor.experience,
            bio=counselor.bio,
            rating=counselor.rating,
            availability=counselor.availability or [],
            availability_labels=availability_labels(counselor.availability),
        )


def account_payload(role: str, account: User | Counselor) -> dict:
    if role == COUNSELOR_ROLE:
        return {'counselor': CounselorResponse.from_counselor(account).model_dump()}
    return {'user': UserResponse.model_validate(account).model_dump()}


def email_taken(email: str, db: Session) -> bool:
    return (
        db.query(User.id).filter(User.email == email).first() is not None
        or db.query(Counselor.id).filter(Counselor.email == email).first() is not None
    )


@router.post('/register', status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, db: Session = Depends(get_db)):
    try:
        if email_taken(data.email, db):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail='An account with this email already exists.',
            )

        if data.role == COUNSELOR_ROLE:
            account = Counselor(
                name=(data.name or data.full_name).strip(),
                email=data.email,
                hashed_password=hash_password(data.password),
                phone=data.phone.strip(),
                specialization=data.specialization,
                experience=data.experience,
                bio=data.bio,
                availability=[slot.model_dump() for slot in data.availability],
            )
        else:
            account = User(
                email=data.email,
                hashed_password=hash_password(data.password),
                full_name=data.full_name.strip(),
                phone=data.phone,
                location=data.location,
            )

        db.add(account)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_error(exc) from exc

    logger.info('Registered %s account %s', data.role, data.email)
    return {'success': True, 'message': 'Registration successful. You can now log in.'}


@router.post('/login')
def login(data: LoginRequest, db: Session = Depends(get_db)):
    model = Counselor if data.loginAs == COUNSELOR_ROLE else User

    try:
        account = db.query(model).filter(model.email == data.email).first()
    except SQLAlchemyError as exc:
        raise database_error(exc) from exc

    if account is None or not verify_password(data.password, account.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=LOGIN_FAILED_DETAIL)

    token = jwt_handler.create_access_token(subject=str(account.id), role=data.loginAs)
    return {
        'success': True,
        'token': token,
        'role': data.loginAs,
        'message': 'Login successful!',
        **account_payload(data.loginAs, account),
    }


@router.get('/profile')
def get_profile(identity: Identity = Depends(get_current_identity)):
    return {'success': True, 'role': identity.role, **account_payload(identity.role, identity.account)}


@router.put('/profile')
def update_profile(
    data: ProfileUpdateRequest,
    current_user: User = Depends(require_student),
    db: Session = Depends(get_db),
):
    updates = data.model_dump(exclude_unset=True)
    if 'full_name' in updates and not (updates['full_name'] or '').strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Full name cannot be empty.')

    try:
        user = db.merge(current_user)
        for field, value in updates.items():
            setattr(user, field, value.strip() if isinstance(value, str) else value)
        db.commit()
        db.refresh(user)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_error(exc) from exc

    return {'success': True, 'message': 'Profile updated successfully.', **account_payload(STUDENT_ROLE, user)}

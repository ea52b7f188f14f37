from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from careerguide.auth.dependencies import COUNSELOR_ROLE, Identity, get_current_identity, require_counselor, require_student
from careerguide.core.errors import database_error
from careerguide.database import ensure_message_schema, get_db
from careerguide.models.counselor import Counselor
from careerguide.models.user import User
from careerguide.services import messaging

router = APIRouter(tags=['messages'])

MAX_MESSAGE_LENGTH = 5000


def _clean_text(value: str) -> str:
    normalized = (value or '').strip()
    if not normalized:
        raise ValueError('Message cannot be empty.')
    if len(normalized) > MAX_MESSAGE_LENGTH:
        raise ValueError(f'Messages must be {MAX_MESSAGE_LENGTH} characters or fewer.')
    return normalized


class SendMessageRequest(BaseModel):
    user_id: int
    counselor_id: int
    message: str

    @field_validator('message')
    @classmethod
    def validate_message(cls, value: str) -> str:
        return _clean_text(value)


class SendCounselorMessageRequest(BaseModel):
    user_id: int
    message: str

    @field_validator('message')
    @classmethod
    def validate_message(cls, value: str) -> str:
        return _clean_text(value)


class MessageResponse(BaseModel):
    id: int
    user_id: int
    counselor_id: int
    message: str
    reply: str | None = None
    status: str
    timestamp: datetime | None = None
    replied_at: datetime | None = None

    class Config:
        from_attributes = True


class InboxMessageResponse(MessageResponse):
    student_name: str | None = None
    student_email: str | None = None


def ensure_database_ready() -> None:
    try:
        ensure_message_schema()
    except SQLAlchemyError as exc:
        raise database_error(exc) from exc


@router.get('')
def get_messages(
    user_id: int = Query(...),
    counselor_id: int = Query(...),
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    own_id = counselor_id if identity.role == COUNSELOR_ROLE else user_id
    if own_id != identity.id:
        # Threads that are not the caller's are reported as missing.
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Conversation not found.')

    ensure_database_ready()

    try:
        rows = messaging.list_thread(db, user_id, counselor_id)
    except SQLAlchemyError as exc:
        raise database_error(exc) from exc

    return {
        'success': True,
        'messages': [MessageResponse.model_validate(row).model_dump(mode='json') for row in rows],
    }


@router.get('/inbox')
def get_inbox(
    current_counselor: Counselor = Depends(require_counselor),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        rows = messaging.list_inbox(db, current_counselor.id)
    except SQLAlchemyError as exc:
        raise database_error(exc) from exc

    return {
        'success': True,
        'messages': [
            InboxMessageResponse(
                **MessageResponse.model_validate(row).model_dump(),
                student_name=student_name,
                student_email=student_email,
            ).model_dump(mode='json')
            for row, student_name, student_email in rows
        ],
    }


@router.post('', status_code=status.HTTP_201_CREATED)
def send_message(
    data: SendMessageRequest,
    current_user: User = Depends(require_student),
    db: Session = Depends(get_db),
):
    if data.user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='User not found.')

    ensure_database_ready()

    try:
        counselor = db.query(Counselor.id).filter(Counselor.id == data.counselor_id).first()
        if counselor is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Counselor not found.')

        message = messaging.append_student_message(db, data.user_id, data.counselor_id, data.message)
        db.commit()
        db.refresh(message)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_error(exc) from exc

    return {
        'success': True,
        'message': 'Message sent successfully.',
        'message_id': message.id,
        'timestamp': message.timestamp.strftime('%Y-%m-%d %H:%M:%S'),
    }


@router.post('/counselor')
def send_counselor_message(
    data: SendCounselorMessageRequest,
    current_counselor: Counselor = Depends(require_counselor),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        student = db.query(User.id).filter(User.id == data.user_id).first()
        if student is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='User not found.')

        message, replied = messaging.record_counselor_message(db, data.user_id, current_counselor.id, data.message)
        db.commit()
        db.refresh(message)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_error(exc) from exc

    return {
        'success': True,
        'message': 'Reply sent successfully.' if replied else 'Message sent successfully.',
        'message_id': message.id,
        'timestamp': datetime.now().strftime('%Y-%m-%d %H:%M:%S'),
    }

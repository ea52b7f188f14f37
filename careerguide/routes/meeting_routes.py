import logging
from datetime import date, datetime, time

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from careerguide.auth.dependencies import require_counselor, require_student
from careerguide.core.errors import database_error
from careerguide.database import ensure_meeting_schema, get_db
from careerguide.models.counselor import Counselor
from careerguide.models.meeting import ScheduledMeeting
from careerguide.models.notification import Notification
from careerguide.models.user import User
from careerguide.services.meeting_lifecycle import (
    ACTION_PAST_TENSE,
    MEETING_ACTIONS,
    STATUS_SCHEDULED,
    InvalidMeetingDatetime,
    available_actions,
    classify_meeting,
    effective_status,
    meeting_start,
    parse_meeting_datetime,
    plan_action,
)

router = APIRouter(tags=['meetings'])

logger = logging.getLogger(__name__)

MAX_PURPOSE_LENGTH = 1000


class ScheduleMeetingRequest(BaseModel):
    counselor_id: int
    schedule_date: datetime
    purpose: str
    is_virtual_meet: bool = False
    meeting_platform: str | None = None
    meeting_link: str | None = None

    @field_validator('schedule_date', mode='before')
    @classmethod
    def validate_schedule_date(cls, value):
        if isinstance(value, datetime):
            return value
        try:
            return parse_meeting_datetime(value)
        except InvalidMeetingDatetime as exc:
            raise ValueError(str(exc)) from exc

    @field_validator('purpose')
    @classmethod
    def validate_purpose(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Purpose is required.')
        if len(normalized) > MAX_PURPOSE_LENGTH:
            raise ValueError(f'Purpose must be {MAX_PURPOSE_LENGTH} characters or fewer.')
        return normalized

    @field_validator('meeting_platform', 'meeting_link')
    @classmethod
    def blank_to_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None


class MeetingActionRequest(BaseModel):
    meeting_id: int | None = None
    action: str | None = None
    new_datetime: str | None = None
    reason: str | None = None


class MeetingResponse(BaseModel):
    id: int
    user_email: str | None = None
    counselor_email: str | None = None
    schedule_date: date | None = None
    schedule_time: time | None = None
    purpose: str | None = None
    status: str
    is_virtual_meet: bool = False
    meeting_platform: str | None = None
    meeting_link: str | None = None
    created_at: datetime | None = None
    view: str | None = None
    actions: list[str] = []
    student_name: str | None = None
    student_email: str | None = None
    counselor_name: str | None = None


def ensure_database_ready() -> None:
    try:
        ensure_meeting_schema()
    except SQLAlchemyError as exc:
        raise database_error(exc) from exc


def serialize_meeting(meeting: ScheduledMeeting, now: datetime, **extra) -> dict:
    current_status = effective_status(meeting.status)
    return MeetingResponse(
        id=meeting.id,
        user_email=meeting.user_email,
        counselor_email=meeting.counselor_email,
        schedule_date=meeting.schedule_date,
        schedule_time=meeting.schedule_time,
        purpose=meeting.purpose,
        status=current_status,
        is_virtual_meet=bool(meeting.is_virtual_meet),
        meeting_platform=meeting.meeting_platform,
        meeting_link=meeting.meeting_link,
        created_at=meeting.created_at,
        view=classify_meeting(current_status, meeting_start(meeting.schedule_date, meeting.schedule_time), now),
        actions=list(available_actions(current_status)),
        **extra,
    ).model_dump(mode='json')


@router.post('', status_code=status.HTTP_201_CREATED)
def schedule_meeting(
    data: ScheduleMeetingRequest,
    current_user: User = Depends(require_student),
    db: Session = Depends(get_db),
):
    if data.is_virtual_meet and (not data.meeting_platform or not data.meeting_link):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='A meeting platform and link are required for virtual meetings.',
        )

    ensure_database_ready()

    try:
        counselor = db.query(Counselor).filter(Counselor.id == data.counselor_id).first()
        if counselor is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Counselor not found.')

        meeting = ScheduledMeeting(
            user_email=current_user.email,
            counselor_email=counselor.email,
            schedule_date=data.schedule_date.date(),
            schedule_time=data.schedule_date.time().replace(microsecond=0),
            purpose=data.purpose,
            status=STATUS_SCHEDULED,
            is_virtual_meet=data.is_virtual_meet,
            meeting_platform=data.meeting_platform if data.is_virtual_meet else None,
            meeting_link=data.meeting_link if data.is_virtual_meet else None,
        )
        db.add(meeting)
        db.commit()
        db.refresh(meeting)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_error(exc) from exc

    logger.info('Meeting %s scheduled by %s with %s', meeting.id, meeting.user_email, meeting.counselor_email)
    return {
        'success': True,
        'message': 'Meeting scheduled successfully!',
        'meeting': serialize_meeting(meeting, datetime.now(), counselor_name=counselor.name),
    }


@router.get('/counselor')
def get_counselor_meetings(
    current_counselor: Counselor = Depends(require_counselor),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        rows = db.query(ScheduledMeeting, User.full_name).outerjoin(
            User, ScheduledMeeting.user_email == User.email,
        ).filter(
            ScheduledMeeting.counselor_email == current_counselor.email,
        ).order_by(
            ScheduledMeeting.schedule_date.desc(),
            ScheduledMeeting.schedule_time.desc(),
        ).all()
    except SQLAlchemyError as exc:
        raise database_error(exc) from exc

    now = datetime.now()
    return {
        'success': True,
        'meetings': [
            serialize_meeting(meeting, now, student_name=student_name, student_email=meeting.user_email)
            for meeting, student_name in rows
        ],
    }


@router.get('/mine')
def get_my_meetings(
    current_user: User = Depends(require_student),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        rows = db.query(ScheduledMeeting, Counselor.name).outerjoin(
            Counselor, ScheduledMeeting.counselor_email == Counselor.email,
        ).filter(
            ScheduledMeeting.user_email == current_user.email,
        ).order_by(
            ScheduledMeeting.schedule_date.desc(),
            ScheduledMeeting.schedule_time.desc(),
        ).all()
    except SQLAlchemyError as exc:
        raise database_error(exc) from exc

    now = datetime.now()
    return {
        'success': True,
        'meetings': [serialize_meeting(meeting, now, counselor_name=counselor_name) for meeting, counselor_name in rows],
    }


@router.post('/actions')
def meeting_action(
    data: MeetingActionRequest,
    current_counselor: Counselor = Depends(require_counselor),
    db: Session = Depends(get_db),
):
    if not data.meeting_id or not data.action:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Meeting ID and action are required.')

    if data.action not in MEETING_ACTIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid action. Must be one of: {', '.join(MEETING_ACTIONS)}",
        )

    ensure_database_ready()

    try:
        # Not found and not owned are reported the same way.
        meeting = db.query(ScheduledMeeting).filter(
            ScheduledMeeting.id == data.meeting_id,
            ScheduledMeeting.counselor_email == current_counselor.email,
        ).first()
        if meeting is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Meeting not found or you don't have permission to modify it.",
            )

        try:
            outcome = plan_action(
                data.action,
                meeting.schedule_date,
                meeting.schedule_time,
                new_datetime=data.new_datetime,
                reason=data.reason,
            )
        except InvalidMeetingDatetime as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

        meeting.status = outcome.status
        meeting.schedule_date = outcome.schedule_date
        meeting.schedule_time = outcome.schedule_time

        student = db.query(User.id).filter(User.email == meeting.user_email).first()
        if student is not None:
            db.add(
                Notification(
                    user_id=student.id,
                    sender_id=current_counselor.id,
                    type=outcome.notification_type,
                    message=outcome.notification_message,
                    related_id=meeting.id,
                    is_read=False,
                )
            )
        else:
            logger.warning('No student account for %s; meeting %s notification skipped', meeting.user_email, meeting.id)

        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_error(exc) from exc

    logger.info('Counselor %s performed %s on meeting %s', current_counselor.id, data.action, data.meeting_id)
    return {
        'success': True,
        'message': f'Meeting {ACTION_PAST_TENSE[data.action]} successfully!',
        'meeting_id': data.meeting_id,
        'action': data.action,
        'status': outcome.status,
    }

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from careerguide.auth.dependencies import require_student
from careerguide.core.errors import database_error
from careerguide.database import get_db
from careerguide.models.notification import Notification
from careerguide.models.user import User

router = APIRouter(tags=['notifications'])


class NotificationResponse(BaseModel):
    id: int
    user_id: int
    sender_id: int | None = None
    type: str | None = None
    message: str | None = None
    related_id: int | None = None
    is_read: bool = False
    created_at: datetime | None = None

    class Config:
        from_attributes = True


@router.get('')
def list_notifications(
    current_user: User = Depends(require_student),
    db: Session = Depends(get_db),
):
    try:
        notifications = db.query(Notification).filter(
            Notification.user_id == current_user.id,
        ).order_by(Notification.created_at.desc(), Notification.id.desc()).all()
    except SQLAlchemyError as exc:
        raise database_error(exc) from exc

    return {
        'success': True,
        'notifications': [
            NotificationResponse.model_validate(notification).model_dump(mode='json')
            for notification in notifications
        ],
        'unread_count': sum(1 for notification in notifications if not notification.is_read),
    }


@router.post('/{notification_id}/read')
def mark_notification_read(
    notification_id: int,
    current_user: User = Depends(require_student),
    db: Session = Depends(get_db),
):
    try:
        notification = db.query(Notification).filter(
            Notification.id == notification_id,
            Notification.user_id == current_user.id,
        ).first()
        if notification is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Notification not found.')

        notification.is_read = True
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_error(exc) from exc

    return {'success': True, 'message': 'Notification marked as read.'}

"""Message thread rules.

A thread between one student and one counselor is a sequence of ``Message``
rows. Each row holds the student's text in ``message`` and at most one
counselor answer in ``reply``. A counselor message overwrites the reply of
the newest row of the thread, so a second counselor message sent before the
student writes again replaces the first one. When the thread has no rows
yet, the counselor's text is stored in ``message`` of a fresh row and
renders as if the student had sent it.
"""

from datetime import datetime

from sqlalchemy.orm import Session

from careerguide.models.message import Message
from careerguide.models.user import User

STATUS_SENT = 'sent'
STATUS_REPLIED = 'replied'

SENDER_STUDENT = 'student'
SENDER_COUNSELOR = 'counselor'


def thread_query(db: Session, user_id: int, counselor_id: int):
    return db.query(Message).filter(
        Message.user_id == user_id,
        Message.counselor_id == counselor_id,
    )


def list_thread(db: Session, user_id: int, counselor_id: int) -> list[Message]:
    return thread_query(db, user_id, counselor_id).order_by(Message.timestamp.asc(), Message.id.asc()).all()


def latest_message(db: Session, user_id: int, counselor_id: int) -> Message | None:
    return thread_query(db, user_id, counselor_id).order_by(Message.timestamp.desc(), Message.id.desc()).first()


def append_student_message(db: Session, user_id: int, counselor_id: int, text: str) -> Message:
    message = Message(
        user_id=user_id,
        counselor_id=counselor_id,
        message=text,
        reply=None,
        status=STATUS_SENT,
        timestamp=datetime.now(),
    )
    db.add(message)
    db.flush()
    return message


def record_counselor_message(db: Session, user_id: int, counselor_id: int, text: str) -> tuple[Message, bool]:
    """Attach a counselor message to the thread.

    Returns the affected row and whether an existing row was updated.
    """
    existing = latest_message(db, user_id, counselor_id)
    if existing is not None:
        existing.reply = text
        existing.status = STATUS_REPLIED
        existing.replied_at = datetime.now()
        db.flush()
        return existing, True

    message = Message(
        user_id=user_id,
        counselor_id=counselor_id,
        message=text,
        status=STATUS_SENT,
        timestamp=datetime.now(),
    )
    db.add(message)
    db.flush()
    return message, False


def _value(row, key: str):
    if isinstance(row, dict):
        return row.get(key)
    return getattr(row, key, None)


def thread_bubbles(rows) -> list[dict]:
    """Flatten thread rows into chat bubbles, one or two per row."""
    bubbles = []
    for row in rows:
        bubbles.append({
            'message_id': _value(row, 'id'),
            'sender': SENDER_STUDENT,
            'text': _value(row, 'message'),
            'timestamp': _value(row, 'timestamp'),
        })
        if _value(row, 'reply'):
            bubbles.append({
                'message_id': _value(row, 'id'),
                'sender': SENDER_COUNSELOR,
                'text': _value(row, 'reply'),
                'timestamp': _value(row, 'replied_at') or _value(row, 'timestamp'),
            })
    return bubbles


def list_inbox(db: Session, counselor_id: int) -> list[tuple[Message, str | None, str | None]]:
    """Every row addressed to a counselor, with the student's name and email."""
    return db.query(Message, User.full_name, User.email).outerjoin(
        User, Message.user_id == User.id,
    ).filter(
        Message.counselor_id == counselor_id,
    ).order_by(Message.timestamp.asc(), Message.id.asc()).all()


def group_inbox(rows) -> list[dict]:
    """Collapse inbox rows into one entry per student.

    Rows must arrive oldest first; the last row seen for a student becomes its
    ``last_message``. Students keep the order of their first row.
    """
    students = {}
    for row in rows:
        user_id = _value(row, 'user_id')
        entry = students.get(user_id)
        if entry is None:
            entry = students[user_id] = {
                'id': user_id,
                'name': _value(row, 'student_name') or f'Student {user_id}',
                'email': _value(row, 'student_email') or '',
            }
        entry['last_message'] = row
    return list(students.values())

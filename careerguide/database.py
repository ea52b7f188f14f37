import logging
from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from careerguide.core import config


logger = logging.getLogger(__name__)

DATABASE_URL = config.DATABASE_URL

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, echo=config.DATABASE_ECHO, connect_args=connect_args)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_meeting_schema_checked = False
_message_schema_checked = False


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_meeting_schema() -> None:
    global _meeting_schema_checked

    if _meeting_schema_checked:
        return

    with _schema_lock:
        if _meeting_schema_checked:
            return

        inspector = inspect(engine)

        if 'scheduled_meetings' not in inspector.get_table_names():
            _meeting_schema_checked = True
            return

        existing_columns = {column['name'] for column in inspector.get_columns('scheduled_meetings')}
        migration_steps = [
            ('status', "ALTER TABLE scheduled_meetings ADD COLUMN status VARCHAR(20) DEFAULT 'scheduled'"),
            ('is_virtual_meet', 'ALTER TABLE scheduled_meetings ADD COLUMN is_virtual_meet BOOLEAN DEFAULT FALSE'),
            ('meeting_platform', 'ALTER TABLE scheduled_meetings ADD COLUMN meeting_platform VARCHAR(50)'),
            ('meeting_link', 'ALTER TABLE scheduled_meetings ADD COLUMN meeting_link VARCHAR(500)'),
        ]

        with engine.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    logger.info('Adding scheduled_meetings.%s', column_name)
                    connection.execute(text(statement))
            connection.execute(
                text(
                    'CREATE INDEX IF NOT EXISTS idx_meetings_counselor_date '
                    'ON scheduled_meetings(counselor_email, schedule_date)'
                )
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_meetings_user_email ON scheduled_meetings(user_email)')
            )

        _meeting_schema_checked = True


def ensure_message_schema() -> None:
    global _message_schema_checked

    if _message_schema_checked:
        return

    with _schema_lock:
        if _message_schema_checked:
            return

        inspector = inspect(engine)

        if 'messages' not in inspector.get_table_names():
            _message_schema_checked = True
            return

        existing_columns = {column['name'] for column in inspector.get_columns('messages')}
        migration_steps = [
            ('reply', 'ALTER TABLE messages ADD COLUMN reply TEXT'),
            ('status', "ALTER TABLE messages ADD COLUMN status VARCHAR(20) DEFAULT 'sent'"),
            ('replied_at', 'ALTER TABLE messages ADD COLUMN replied_at TIMESTAMP'),
        ]

        with engine.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    logger.info('Adding messages.%s', column_name)
                    connection.execute(text(statement))
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_messages_thread ON messages(user_id, counselor_id, timestamp)')
            )

        _message_schema_checked = True

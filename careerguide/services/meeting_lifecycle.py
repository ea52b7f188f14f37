"""Meeting lifecycle rules shared by the API and the client.

A meeting is created by a student with status ``scheduled``. The assigned
counselor then moves it with one of the actions in ``MEETING_ACTIONS``:

    scheduled   -> accepted | rescheduled | cancelled | declined
    accepted    -> rescheduled | cancelled
    rescheduled -> rescheduled | cancelled

``completed`` is never set by an action; it only exists on rows written by
other tooling. The server does not enforce the transition table above, so
``accept`` on an accepted meeting or ``decline`` on an accepted meeting both
succeed. ``available_actions`` reflects what the counselor screens offer.

Tab placement (``classify_meeting``) is computed from the wall clock and the
status, never stored. A rescheduled meeting whose new time has already passed
belongs to no tab; this matches the behaviour of the mobile app and is kept
on purpose so both sides agree.
"""

from dataclasses import dataclass
from datetime import date, datetime, time

STATUS_SCHEDULED = 'scheduled'
STATUS_ACCEPTED = 'accepted'
STATUS_COMPLETED = 'completed'
STATUS_CANCELLED = 'cancelled'
STATUS_RESCHEDULED = 'rescheduled'
STATUS_DECLINED = 'declined'

MEETING_STATUSES = (
    STATUS_SCHEDULED,
    STATUS_ACCEPTED,
    STATUS_COMPLETED,
    STATUS_CANCELLED,
    STATUS_RESCHEDULED,
    STATUS_DECLINED,
)
TERMINAL_STATUSES = frozenset({STATUS_COMPLETED, STATUS_CANCELLED, STATUS_DECLINED})
ACTIVE_STATUSES = frozenset({STATUS_SCHEDULED, STATUS_ACCEPTED, STATUS_RESCHEDULED})

ACTION_ACCEPT = 'accept'
ACTION_RESCHEDULE = 'reschedule'
ACTION_CANCEL = 'cancel'
ACTION_DECLINE = 'decline'

MEETING_ACTIONS = (ACTION_ACCEPT, ACTION_RESCHEDULE, ACTION_CANCEL, ACTION_DECLINE)

ACTION_RESULT_STATUS = {
    ACTION_ACCEPT: STATUS_ACCEPTED,
    ACTION_RESCHEDULE: STATUS_RESCHEDULED,
    ACTION_CANCEL: STATUS_CANCELLED,
    ACTION_DECLINE: STATUS_DECLINED,
}

ACTION_PAST_TENSE = {
    ACTION_ACCEPT: 'accepted',
    ACTION_RESCHEDULE: 'rescheduled',
    ACTION_CANCEL: 'cancelled',
    ACTION_DECLINE: 'declined',
}

UI_ACTIONS = {
    STATUS_SCHEDULED: (ACTION_ACCEPT, ACTION_RESCHEDULE, ACTION_DECLINE),
    STATUS_ACCEPTED: (ACTION_RESCHEDULE, ACTION_CANCEL),
    STATUS_RESCHEDULED: (ACTION_RESCHEDULE, ACTION_CANCEL),
}

VIEW_UPCOMING = 'upcoming'
VIEW_PAST = 'past'
VIEW_DECLINED = 'declined'
MEETING_VIEWS = (VIEW_UPCOMING, VIEW_PAST, VIEW_DECLINED)

DATETIME_FORMAT = '%Y-%m-%d %H:%M:%S'
NOTIFICATION_DATETIME_FORMAT = '%Y-%m-%d %H:%M'


class InvalidMeetingDatetime(ValueError):
    """Raised when a meeting date/time string is not ``YYYY-MM-DD HH:mm:ss``."""


@dataclass(frozen=True)
class ActionOutcome:
    status: str
    notification_type: str
    notification_message: str
    schedule_date: date
    schedule_time: time | None


def parse_meeting_datetime(value: str) -> datetime:
    try:
        return datetime.strptime(value.strip(), DATETIME_FORMAT)
    except (AttributeError, ValueError) as exc:
        raise InvalidMeetingDatetime('Invalid date/time format. Expected YYYY-MM-DD HH:mm:ss') from exc


def effective_status(status: str | None) -> str:
    # Rows written before the status column existed carry NULL.
    return status or STATUS_SCHEDULED


def meeting_start(schedule_date: date | None, schedule_time: time | None) -> datetime | None:
    if schedule_date is None:
        return None
    return datetime.combine(schedule_date, schedule_time or time(0, 0))


def classify_meeting(status: str | None, starts_at: datetime | None, now: datetime) -> str | None:
    """Return the tab a meeting is listed under, or ``None`` for no tab.

    upcoming: starts in the future and is scheduled, accepted or rescheduled.
    past: started already and is neither declined nor rescheduled, or is
    completed or cancelled regardless of time.
    declined: status is declined.
    """
    status = effective_status(status)

    if status == STATUS_DECLINED:
        return VIEW_DECLINED

    # A meeting without a date is neither in the future nor elapsed.
    is_future = starts_at is not None and starts_at > now
    is_elapsed = starts_at is not None and starts_at <= now

    if is_future and status in ACTIVE_STATUSES:
        return VIEW_UPCOMING

    if status in (STATUS_COMPLETED, STATUS_CANCELLED):
        return VIEW_PAST
    if is_elapsed and status != STATUS_RESCHEDULED:
        return VIEW_PAST

    return None


def partition_meetings(meetings, now: datetime, start_of=None) -> dict[str, list]:
    """Group meetings into the upcoming/past/declined tabs.

    ``start_of`` maps a meeting to its start datetime; by default it reads
    ``schedule_date``/``schedule_time`` from attributes or dict keys.
    """
    start_of = start_of or _default_start_of
    tabs: dict[str, list] = {view: [] for view in MEETING_VIEWS}

    for meeting in meetings:
        view = classify_meeting(_read(meeting, 'status'), start_of(meeting), now)
        if view is not None:
            tabs[view].append(meeting)

    return tabs


def available_actions(status: str | None) -> tuple[str, ...]:
    return UI_ACTIONS.get(effective_status(status), ())


def plan_action(
    action: str,
    schedule_date: date,
    schedule_time: time | None,
    new_datetime: str | None = None,
    reason: str | None = None,
) -> ActionOutcome:
    """Work out the new status, schedule and student notification for an action.

    Raises ``ValueError`` for an unknown action and ``InvalidMeetingDatetime``
    when a reschedule has no usable ``new_datetime``.
    """
    if action not in MEETING_ACTIONS:
        raise ValueError(f"Invalid action. Must be one of: {', '.join(MEETING_ACTIONS)}")

    reason = reason.strip() if isinstance(reason, str) else None

    if action == ACTION_ACCEPT:
        current = meeting_start(schedule_date, schedule_time)
        when = current.strftime(NOTIFICATION_DATETIME_FORMAT) if current else 'the requested time'
        message = f'Your meeting request has been accepted by the counselor for {when}'
    elif action == ACTION_RESCHEDULE:
        if not new_datetime:
            raise InvalidMeetingDatetime('New date/time is required for rescheduling.')
        rescheduled_to = parse_meeting_datetime(new_datetime)
        schedule_date = rescheduled_to.date()
        schedule_time = rescheduled_to.time()
        message = f'Your meeting has been rescheduled to {rescheduled_to.strftime(NOTIFICATION_DATETIME_FORMAT)}'
    elif action == ACTION_CANCEL:
        message = 'Your meeting has been cancelled by the counselor.'
    else:
        message = 'Your meeting request has been declined by the counselor.'

    if reason and action != ACTION_ACCEPT:
        separator = ' ' if message.endswith('.') else '. '
        message = f'{message}{separator}Reason: {reason}'

    return ActionOutcome(
        status=ACTION_RESULT_STATUS[action],
        notification_type=f'meeting_{action}',
        notification_message=message,
        schedule_date=schedule_date,
        schedule_time=schedule_time,
    )


def _read(meeting, key):
    if isinstance(meeting, dict):
        return meeting.get(key)
    return getattr(meeting, key, None)


def _coerce_date(value) -> date | None:
    if value is None or isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


def _coerce_time(value) -> time | None:
    if value is None or isinstance(value, time):
        return value
    return time.fromisoformat(str(value))


def _default_start_of(meeting) -> datetime | None:
    return meeting_start(_coerce_date(_read(meeting, 'schedule_date')), _coerce_time(_read(meeting, 'schedule_time')))

"""HTTP client for the CareerGuide API.

Every request carries the stored bearer token. A 401 from any endpoint drops
the stored token so the caller is sent back to login.
"""

import logging
from datetime import datetime

import httpx

from careerguide.client.session_store import SessionStore
from careerguide.services.directory import filter_counselors
from careerguide.services.meeting_lifecycle import (
    ACTION_ACCEPT,
    ACTION_CANCEL,
    ACTION_DECLINE,
    ACTION_RESCHEDULE,
    DATETIME_FORMAT,
    partition_meetings,
)
from careerguide.services.messaging import group_inbox, thread_bubbles

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = 'http://localhost:8000'
DEFAULT_TIMEOUT_SECONDS = 10.0

LOGIN_FAILED_MESSAGE = 'Incorrect email or password.'
AI_FALLBACK_REPLY = (
    "I couldn't reach the career assistant right now. I can help with resume writing, "
    'interview preparation, career planning and skill development; please try again shortly.'
)


class ApiError(Exception):
    def __init__(self, status_code: int | None, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f'HTTP {response.status_code}'
    if isinstance(body, dict):
        return str(body.get('error') or body.get('message') or body.get('detail') or f'HTTP {response.status_code}')
    return f'HTTP {response.status_code}'


class CareerGuideClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        session: SessionStore | None = None,
        http_client: httpx.Client | None = None,
        timeout: float | None = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.session = session or SessionStore()
        self._http = http_client or httpx.Client(base_url=base_url, timeout=timeout)

    def close(self) -> None:
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def _request(self, method: str, url: str, **kwargs) -> dict:
        headers = dict(kwargs.pop('headers', None) or {})
        if self.session.token:
            headers['Authorization'] = f'Bearer {self.session.token}'

        try:
            response = self._http.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning('Request %s %s failed: %s', method, url, exc)
            raise ApiError(None, str(exc) or 'Network error') from exc

        if response.status_code == httpx.codes.UNAUTHORIZED:
            self.session.clear_token()

        if response.is_error:
            raise ApiError(response.status_code, _error_message(response))

        return response.json()

    # Auth

    def login(self, email: str, password: str, login_as: str = 'user', remember_me: bool = False) -> dict:
        try:
            data = self._request('POST', '/auth/login', json={'email': email, 'password': password, 'loginAs': login_as})
        except ApiError as exc:
            if exc.status_code == httpx.codes.UNAUTHORIZED:
                raise ApiError(exc.status_code, LOGIN_FAILED_MESSAGE) from exc
            raise

        self.session.save(
            token=data['token'],
            role=data['role'],
            user=data.get('user') or data.get('counselor'),
            remember_me=remember_me,
        )
        return data

    def register(self, **fields) -> dict:
        return self._request('POST', '/auth/register', json=fields)

    def logout(self) -> None:
        self.session.clear()

    def get_profile(self) -> dict:
        return self._request('GET', '/auth/profile')

    def update_profile(self, **fields) -> dict:
        data = self._request('PUT', '/auth/profile', json=fields)
        if data.get('user'):
            self.session.set_user(data['user'])
        return data

    # Counselors

    def list_counselors(self, search: str | None = None, specialty: str | None = None) -> list[dict]:
        data = self._request('GET', '/counselors')
        return filter_counselors(data.get('counselors', []), search=search, specialty=specialty)

    def get_counselor(self, counselor_id: int) -> dict:
        return self._request('GET', f'/counselors/{counselor_id}')['counselor']

    # Messaging

    def get_messages(self, user_id: int, counselor_id: int) -> list[dict]:
        data = self._request('GET', '/messages', params={'user_id': user_id, 'counselor_id': counselor_id})
        return data.get('messages', [])

    def get_thread(self, user_id: int, counselor_id: int) -> list[dict]:
        return thread_bubbles(self.get_messages(user_id, counselor_id))

    def send_message(self, user_id: int, counselor_id: int, message: str) -> dict:
        return self._request(
            'POST',
            '/messages',
            json={'user_id': user_id, 'counselor_id': counselor_id, 'message': message},
        )

    def send_counselor_message(self, user_id: int, message: str) -> dict:
        return self._request('POST', '/messages/counselor', json={'user_id': user_id, 'message': message})

    def get_inbox(self) -> list[dict]:
        return self._request('GET', '/messages/inbox').get('messages', [])

    def get_inbox_students(self) -> list[dict]:
        return group_inbox(self.get_inbox())

    # Meetings

    def schedule_meeting(
        self,
        counselor_id: int,
        when: datetime,
        purpose: str,
        is_virtual_meet: bool = False,
        meeting_platform: str | None = None,
        meeting_link: str | None = None,
    ) -> dict:
        return self._request(
            'POST',
            '/meetings',
            json={
                'counselor_id': counselor_id,
                'schedule_date': when.replace(second=0, microsecond=0).strftime(DATETIME_FORMAT),
                'purpose': purpose,
                'is_virtual_meet': is_virtual_meet,
                'meeting_platform': meeting_platform if is_virtual_meet else None,
                'meeting_link': meeting_link if is_virtual_meet else None,
            },
        )

    def get_counselor_meetings(self) -> list[dict]:
        return self._request('GET', '/meetings/counselor').get('meetings', [])

    def get_my_meetings(self) -> list[dict]:
        return self._request('GET', '/meetings/mine').get('meetings', [])

    @staticmethod
    def partition_meetings(meetings: list[dict], now: datetime | None = None) -> dict[str, list[dict]]:
        return partition_meetings(meetings, now or datetime.now())

    def _meeting_action(self, meeting_id: int, action: str, **extra) -> dict:
        return self._request('POST', '/meetings/actions', json={'meeting_id': meeting_id, 'action': action, **extra})

    def accept_meeting(self, meeting_id: int) -> dict:
        return self._meeting_action(meeting_id, ACTION_ACCEPT)

    def reschedule_meeting(self, meeting_id: int, new_datetime: datetime, reason: str | None = None) -> dict:
        return self._meeting_action(
            meeting_id,
            ACTION_RESCHEDULE,
            new_datetime=new_datetime.replace(second=0, microsecond=0).strftime(DATETIME_FORMAT),
            reason=reason,
        )

    def cancel_meeting(self, meeting_id: int, reason: str | None = None) -> dict:
        return self._meeting_action(meeting_id, ACTION_CANCEL, reason=reason)

    def decline_meeting(self, meeting_id: int, reason: str | None = None) -> dict:
        return self._meeting_action(meeting_id, ACTION_DECLINE, reason=reason)

    # Notifications

    def get_notifications(self) -> dict:
        return self._request('GET', '/notifications')

    def mark_notification_read(self, notification_id: int) -> dict:
        return self._request('POST', f'/notifications/{notification_id}/read')

    # AI chat

    def ask_ai(self, message: str) -> str:
        try:
            data = self._request('POST', '/ai/ask', json={'message': message}, timeout=None)
        except ApiError as exc:
            logger.info('AI chat unavailable (%s); using fallback reply', exc.message)
            return AI_FALLBACK_REPLY
        return data.get('response') or AI_FALLBACK_REPLY

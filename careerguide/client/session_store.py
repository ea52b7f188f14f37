"""On-disk session for API clients: token, role, profile and "remember me"."""

import json
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_SESSION_PATH = Path.home() / '.careerguide' / 'session.json'
SESSION_FILE_MODE = 0o600

TOKEN_KEY = 'token'
ROLE_KEY = 'role'
USER_KEY = 'user'
REMEMBER_ME_KEY = 'remember_me'


class SessionStore:
    def __init__(self, path: str | Path | None = None):
        self.path = Path(path) if path else DEFAULT_SESSION_PATH
        self._data: dict = self._read()

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding='utf-8'))
        except (OSError, ValueError):
            logger.warning('Ignoring unreadable session file %s', self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # The file holds a bearer token; keep it readable by the owner only.
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, SESSION_FILE_MODE)
        with os.fdopen(fd, 'w', encoding='utf-8') as handle:
            handle.write(json.dumps(self._data))
        os.chmod(self.path, SESSION_FILE_MODE)

    @property
    def token(self) -> str | None:
        return self._data.get(TOKEN_KEY)

    @property
    def role(self) -> str | None:
        return self._data.get(ROLE_KEY)

    @property
    def user(self) -> dict | None:
        return self._data.get(USER_KEY)

    @property
    def remember_me(self) -> bool:
        return bool(self._data.get(REMEMBER_ME_KEY, False))

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def save(self, token: str, role: str, user: dict | None, remember_me: bool = False) -> None:
        self._data = {
            TOKEN_KEY: token,
            ROLE_KEY: role,
            USER_KEY: user,
            REMEMBER_ME_KEY: remember_me,
        }
        self._write()

    def set_user(self, user: dict) -> None:
        self._data[USER_KEY] = user
        self._write()

    def restore(self) -> bool:
        """Re-read the file at start-up; sessions saved without remember_me are dropped."""
        self._data = self._read()
        if self.token and not self.remember_me:
            self.clear()
        return self.is_authenticated

    def clear_token(self) -> None:
        self._data.pop(TOKEN_KEY, None)
        self._write()

    def clear(self) -> None:
        self._data = {}
        if self.path.exists():
            self.path.unlink()

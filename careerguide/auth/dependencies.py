from dataclasses import dataclass

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from careerguide.auth import jwt_handler
from careerguide.database import get_db
from careerguide.models.counselor import Counselor
from careerguide.models.user import User

security = HTTPBearer(auto_error=False)

STUDENT_ROLE = "student"
COUNSELOR_ROLE = "counselor"


@dataclass
class Identity:
    role: str
    account: User | Counselor

    @property
    def id(self) -> int:
        return self.account.id

    @property
    def email(self) -> str:
        return self.account.email


def get_current_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> Identity:
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authorization token missing.")

    try:
        payload = jwt_handler.decode_access_token(credentials.credentials)
    except jwt.ExpiredSignatureError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired.") from exc
    except jwt.InvalidTokenError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token.") from exc

    subject = payload.get("sub")
    role = payload.get("role")
    if not subject or not str(subject).isdigit() or role not in (STUDENT_ROLE, COUNSELOR_ROLE):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token subject.")

    model = Counselor if role == COUNSELOR_ROLE else User
    account = db.query(model).filter(model.id == int(subject)).first()
    if account is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Account not found.")
    return Identity(role=role, account=account)


def require_student(identity: Identity = Depends(get_current_identity)) -> User:
    if identity.role != STUDENT_ROLE:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Student access required.")
    return identity.account


def require_counselor(identity: Identity = Depends(get_current_identity)) -> Counselor:
    if identity.role != COUNSELOR_ROLE:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Counselor access required.")
    return identity.account

"""
Bearer-token authentication for API users.
Tokens are HS256 JWTs whose ``sub`` is the user id.
"""
from datetime import datetime, timedelta, timezone

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from homexrei.core.config import settings
from homexrei.core.errors import AuthenticationError
from homexrei.db.session import get_db
from homexrei.models.user import User

ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24

security = HTTPBearer(auto_error=False)


def create_access_token(user_id: str, expires_delta: timedelta | None = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    return jwt.encode({"sub": user_id, "exp": expire}, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> str | None:
    """User id from a valid token, else None."""
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    return payload.get("sub")


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    if credentials is None:
        raise AuthenticationError()
    user_id = decode_token(credentials.credentials)
    if not user_id:
        raise AuthenticationError("Could not validate credentials")
    user = db.query(User).filter(User.id == user_id).one_or_none()
    if user is None:
        raise AuthenticationError("Could not validate credentials")
    return user

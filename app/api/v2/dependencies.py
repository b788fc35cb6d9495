import logging
from typing import Generator, Iterable

from fastapi import Depends, HTTPException, Request, status
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy.orm import Session

from app.core import security
from app.db import session as db_session
from app.models.user.user_model import User

log = logging.getLogger(__name__)

_TOKEN_PREFIXES = ("bearer ", "token ")


def get_db() -> Generator[Session, None, None]:
    """One SQLAlchemy session per request.

    FastAPI caches dependencies for the duration of a request, so the route
    handler and ``get_current_user`` receive the same session and the
    authenticated ``User`` stays attached to it.
    """
    db = db_session.SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _bare_token(raw: str | None) -> str | None:
    """Strip quotes and an optional ``Bearer``/``Token`` prefix."""
    if not raw:
        return None
    token = raw.strip().strip('"').strip("'")
    lowered = token.lower()
    for prefix in _TOKEN_PREFIXES:
        if lowered.startswith(prefix):
            token = token[len(prefix) :]
            break
    return token.strip() or None


def decode_user_from_token(token: str | None, db: Session) -> User:
    unauthorized = HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    token = _bare_token(token)
    if not token:
        raise unauthorized

    try:
        payload = jwt.decode(token, security.SECRET_KEY, algorithms=[security.ALGORITHM])
        user_id = int(payload.get("sub"))
    except ExpiredSignatureError:
        log.warning("Token rejected: expired.")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="token_expired")
    except (JWTError, ValueError, TypeError):
        log.warning("Token rejected: invalid signature or 'sub'.")
        raise unauthorized

    user = db.get(User, user_id)
    if user is None:
        log.warning("Token rejected: user %s not found.", user_id)
        raise unauthorized
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="inactive_user")
    return user


def _token_candidates(request: Request) -> Iterable[str]:
    header = request.headers.get("Authorization")
    if header:
        yield header
    cookie = request.cookies.get("access_token")
    if cookie:
        yield cookie


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """Authenticate with the ``Authorization`` header, then the ``access_token`` cookie."""
    rejected: HTTPException | None = None
    for candidate in _token_candidates(request):
        try:
            return decode_user_from_token(candidate, db)
        except HTTPException as exc:
            if exc.status_code != status.HTTP_401_UNAUTHORIZED:
                raise
            rejected = exc

    if rejected is not None:
        raise rejected
    return decode_user_from_token(None, db)

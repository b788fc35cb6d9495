# Fichier: app/core/security.py
"""JWT helpers.

Sign-in is handled by the identity provider; the API only verifies bearer
tokens whose ``sub`` is the local user id.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Union

from jose import jwt

from app.core.config import settings

SECRET_KEY = settings.SECRET_KEY
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = settings.ACCESS_TOKEN_EXPIRE_MINUTES


def create_access_token(subject: Union[str, Any], expires_delta: timedelta | None = None) -> str:
    """Crée un token d'accès JWT pour ``subject`` (l'id utilisateur)."""
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {"exp": expire, "sub": str(subject)}
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)

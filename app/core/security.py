from datetime import datetime, timedelta, timezone
from jose import jwt

from app.core.config import settings

def create_jwt(payload: dict, secret: str | None = None, expires_delta: timedelta = timedelta(hours=1)) -> str:
    now = datetime.now(timezone.utc)
    data = payload.copy()
    data.update({"iat": int(now.timestamp()), "exp": int((now + expires_delta).timestamp())})
    return jwt.encode(data, secret or settings.ACTOR_JWT_SECRET, algorithm=settings.ACTOR_JWT_ALGORITHM)

def decode_jwt(token: str, secret: str | None = None) -> dict:
    return jwt.decode(token, secret or settings.ACTOR_JWT_SECRET, algorithms=[settings.ACTOR_JWT_ALGORITHM])

from jose import JWTError, jwt
from datetime import datetime, timedelta, timezone
from typing import Optional

from marketplace.core.config import Settings


# ✅ Create JWT access token; "sub" carries the user id
def create_access_token(data: dict, settings: Settings, expires_minutes: Optional[int] = None) -> str:
    to_encode = data.copy()
    minutes = expires_minutes if expires_minutes is not None else settings.ACCESS_TOKEN_EXPIRE_MINUTES
    expire = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


# ✅ Decode and verify a token, returning its claims or None when invalid
def decode_access_token(token: str, settings: Settings) -> Optional[dict]:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
    if not payload.get("sub"):
        return None
    return payload

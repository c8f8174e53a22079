"""Auth - bearer token verification.

Accounts, passwords and login live in the external auth service; this backend
only verifies the HS256 JWT it issues (`sub` = user id) and loads the user's
score record.
"""

from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt

from domain.records import UserRecord
from domain.repository import RecordStore
from .deps import get_store
from .settings import JWT_ALGORITHM, SECRET_KEY

ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=JWT_ALGORITHM)
    return encoded_jwt


def get_current_user(token: str = Depends(oauth2_scheme), store: RecordStore = Depends(get_store)) -> UserRecord:
    """Decode the JWT and return the current user"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[JWT_ALGORITHM])
        user_id: str = payload.get("sub")
        if user_id is None:
            raise credentials_exception
    except JWTError:
        raise credentials_exception

    user = store.get_user(str(user_id))
    if user is None or not user.is_active:
        raise credentials_exception
    return user


def get_user_id_from_authorization_header(authorization: Optional[str]) -> Optional[str]:
    """Extract `user_id` from an Authorization header (Bearer token).

    For endpoints that allow anonymous access but personalize the response
    when a token is present.

    - Returns `None` when the header is missing or invalid.
    - Never raises, so the anonymous flow keeps working.
    """
    if not authorization:
        return None

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None

    token = parts[1]
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError:
        return None
    sub = payload.get("sub")
    return str(sub) if sub is not None else None


__all__ = [
    "get_current_user",
    "get_user_id_from_authorization_header",
    "create_access_token",
]

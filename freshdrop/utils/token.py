import hmac
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlmodel import Session

from freshdrop.config import settings
from freshdrop.database import get_session
from freshdrop.models.profile import Profile, ProfileRole

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token")


@dataclass
class Principal:
    """Caller identity: a signed-in profile or the internal service key."""

    user: Optional[Profile] = None
    is_service: bool = False

    @property
    def is_admin(self) -> bool:
        return self.is_service or (
            self.user is not None and self.user.role == ProfileRole.admin
        )


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()

    expire = datetime.utcnow() + (
        expires_delta
        if expires_delta
        else timedelta(minutes=settings.access_token_expire_minutes)
    )

    to_encode.update({"exp": expire})

    encoded_jwt = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.algorithm
    )
    return encoded_jwt


def decode_access_token(token: str):
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.algorithm],
        )
        return payload
    except JWTError:
        return None


def is_service_token(token: str) -> bool:
    key = settings.service_role_key
    return bool(key) and hmac.compare_digest(token.encode(), key.encode())


def get_current_principal(
    token: str = Depends(oauth2_scheme),
    session: Session = Depends(get_session)
) -> Principal:
    if is_service_token(token):
        return Principal(is_service=True)

    payload = decode_access_token(token)

    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = payload.get("sub") or payload.get("user_id")

    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload"
        )

    user = session.get(Profile, str(user_id))

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )

    return Principal(user=user)


def get_current_user(principal: Principal = Depends(get_current_principal)) -> Profile:
    if principal.user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="A user token is required"
        )
    return principal.user

"""Admin authentication

Admin tokens are issued by the back office login, which lives outside
this service. Here they are only verified.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from bakery.config import settings

ADMIN_ROLE = "admin"

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AdminUser:
    email: str


def create_access_token(email: str) -> str:
    """Create JWT access token for an admin"""
    expire = datetime.utcnow() + timedelta(minutes=settings.access_token_expire_minutes)
    payload = {
        "sub": email,
        "role": ADMIN_ROLE,
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


async def get_current_admin(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
) -> AdminUser:
    """Get the authenticated admin from the bearer token"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception

    try:
        payload = jwt.decode(
            credentials.credentials, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm]
        )
    except JWTError:
        raise credentials_exception

    email = payload.get("sub")
    if not email or payload.get("type") != "access" or payload.get("role") != ADMIN_ROLE:
        raise credentials_exception

    return AdminUser(email=email)

from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
import jwt
from jwt.exceptions import PyJWTError
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.config import settings
from app.core.redis import redis_client
from app.db.models import User
from app.db.session import get_session

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login")

async def get_current_user(
    token: str = Depends(oauth2_scheme),
    session: AsyncSession = Depends(get_session)
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        user_id = UUID(payload.get("sub"))
        tenant_id = UUID(payload.get("tenant_id"))
    except (PyJWTError, TypeError, ValueError):
        raise credentials_exception

    # Logged out or expired sessions are gone from Redis
    token_data = await redis_client.get_session(token)
    if token_data is None or token_data.get("user_id") != str(user_id):
        raise credentials_exception

    user = await session.get(User, user_id)
    if user is None or not user.is_active or user.tenant_id != tenant_id:
        raise credentials_exception
    return user

async def get_current_tenant_id(current_user: User = Depends(get_current_user)) -> UUID:
    """The clinic every request is scoped to. Request bodies never choose it."""
    return current_user.tenant_id

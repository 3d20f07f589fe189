import uuid
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.security import decode_access_token
from app.config import settings
from app.core.exceptions import ForbiddenError, NotFoundError
from app.database import get_db
from app.models.enums import Role
from app.models.user import User

# Bearer tokens come from the gym's identity service; this API only verifies them
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login")


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    db: Annotated[AsyncSession, Depends(get_db)]
) -> User:
    try:
        token_data = decode_access_token(token)
    except JWTError:
        raise _credentials_exception()
    if token_data.sub is None or token_data.type != "access":
        raise _credentials_exception()

    user = (await db.execute(select(User).where(User.email == token_data.sub))).scalar_one_or_none()
    if user is None:
        raise _credentials_exception()
    return user


async def get_current_active_user(
    current_user: Annotated[User, Depends(get_current_user)]
) -> User:
    if not current_user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Inactive account")
    return current_user


class RoleChecker:
    def __init__(self, *allowed_roles: Role):
        self.allowed_roles = frozenset(allowed_roles)

    def __call__(self, user: Annotated[User, Depends(get_current_active_user)]) -> User:
        if user.role not in self.allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Operation not permitted"
            )
        return user


# Admins can act wherever trainers or clients can
get_current_trainer = RoleChecker(Role.TRAINER, Role.ADMIN)
get_current_client = RoleChecker(Role.CLIENT, Role.ADMIN)


async def get_assigned_client(
    client_id: uuid.UUID,
    current_user: Annotated[User, Depends(get_current_trainer)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """The client named in the path, visible to their assigned trainer or an admin."""
    client = await db.get(User, client_id)
    if not client or client.role != Role.CLIENT:
        raise NotFoundError("Client not found", field="client_id")
    if current_user.role != Role.ADMIN and client.assigned_trainer_id != current_user.id:
        raise ForbiddenError("Client is not assigned to this trainer")
    return client

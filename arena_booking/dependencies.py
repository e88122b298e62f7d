import logging
from datetime import UTC, datetime, timedelta
from typing import Annotated

import jwt
from fastapi import Cookie, Depends, HTTPException, Query, status

from arena_booking.config import JWT_ALGORITHM, JWT_EXPIRY_DAYS, JWT_SECRET
from arena_booking.models import PaginationMeta, UserInfo

logger = logging.getLogger(__name__)


# ── Pagination ─────────────────────────────────────────────────────────────


class PaginationParams:
    def __init__(
        self,
        page: Annotated[int, Query(ge=1, description="Page number (1-indexed)")] = 1,
        page_size: Annotated[int, Query(ge=1, le=100, description="Items per page")] = 20,
    ):
        self.page = page
        self.page_size = page_size

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


def paginate(items: list, pagination: PaginationParams, response_cls: type, **extra):
    total = len(items)
    start = pagination.offset
    end = start + pagination.page_size
    return response_cls(
        items=items[start:end],
        meta=PaginationMeta(
            page=pagination.page,
            page_size=pagination.page_size,
            total_items=total,
            total_pages=max(1, -(-total // pagination.page_size)),
        ),
        **extra,
    )


# ── JWT / Session ──────────────────────────────────────────────────────────
# Tokens are minted by the identity service: sub = user id, role = admin|user.


def create_jwt(user_id: str, role: str = "user", email: str | None = None) -> str:
    now = datetime.now(UTC)
    payload = {
        "sub": user_id,
        "role": role,
        "iat": now,
        "exp": now + timedelta(days=JWT_EXPIRY_DAYS),
    }
    if email:
        payload["email"] = email
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def _decode_session(session: str) -> UserInfo:
    try:
        payload = jwt.decode(session, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session expired. Please log in again.",
        ) from None
    except jwt.PyJWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid session. Please log in again.",
        ) from None

    user_id: str | None = payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload.",
        )

    return UserInfo(
        id=user_id,
        role=payload.get("role", "user"),
        email=payload.get("email"),
    )


async def get_current_user(
    session: Annotated[str | None, Cookie()] = None,
) -> UserInfo:
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required.",
        )
    return _decode_session(session)


async def get_optional_user(
    session: Annotated[str | None, Cookie()] = None,
) -> UserInfo | None:
    """The caller if a session cookie is present; None for guests."""
    if session is None:
        return None
    return _decode_session(session)


async def require_admin(user: Annotated[UserInfo, Depends(get_current_user)]) -> UserInfo:
    if not user.is_admin:
        logger.warning("User %s attempted an admin action", user.id)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator access required.",
        )
    return user


CurrentUser = Annotated[UserInfo, Depends(get_current_user)]
OptionalUser = Annotated[UserInfo | None, Depends(get_optional_user)]
AdminUser = Annotated[UserInfo, Depends(require_admin)]

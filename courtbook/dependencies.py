import logging
from datetime import UTC, datetime
from typing import Annotated, TypeVar

import jwt
from fastapi import Cookie, Depends, HTTPException, Query, status

from courtbook.config import JWT_ALGORITHM, JWT_ISSUER, JWT_SECRET
from courtbook.models import PaginationMeta, UserInfo

logger = logging.getLogger(__name__)

ListResponse = TypeVar("ListResponse")


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


def paginate(
    items: list, pagination: PaginationParams, response_cls: type[ListResponse]
) -> ListResponse:
    """Slice an already filtered and ordered list into one page."""
    total = len(items)
    start = pagination.offset
    return response_cls(
        items=items[start : start + pagination.page_size],
        meta=PaginationMeta(
            page=pagination.page,
            page_size=pagination.page_size,
            total_items=total,
            total_pages=max(1, -(-total // pagination.page_size)),
        ),
    )


# ── Staff session ──────────────────────────────────────────────────────────
# The club's login service issues the "session" cookie; this API only
# verifies it.  Tokens must name the staff member ("sub") and expire.


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def decode_session(token: str) -> UserInfo:
    required = ["sub", "exp"]
    if JWT_ISSUER:
        required.append("iss")
    try:
        payload = jwt.decode(
            token,
            JWT_SECRET,
            algorithms=[JWT_ALGORITHM],
            issuer=JWT_ISSUER,
            options={"require": required},
        )
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Session expired. Please log in again.") from None
    except jwt.PyJWTError as exc:
        logger.info("Rejected staff session: %s", exc)
        raise _unauthorized("Invalid session. Please log in again.") from None

    email = payload["sub"]
    if not isinstance(email, str) or not email:
        raise _unauthorized("Invalid token payload.")
    return UserInfo(
        email=email,
        created_at=datetime.fromtimestamp(payload.get("iat", 0), tz=UTC),
    )


async def get_current_user(
    session: Annotated[str | None, Cookie()] = None,
) -> UserInfo:
    if session is None:
        raise _unauthorized("Authentication required. Staff session cookie missing.")
    return decode_session(session)


CurrentUser = Annotated[UserInfo, Depends(get_current_user)]

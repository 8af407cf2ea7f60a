"""
Session introspection. Sessions themselves are issued by the club's login service.
"""

from fastapi import APIRouter

from courtbook.dependencies import CurrentUser
from courtbook.models import UserInfo

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.get(
    "/me",
    response_model=UserInfo,
    operation_id="getMe",
    summary="Get current authenticated user info",
)
async def get_me(current_user: CurrentUser) -> UserInfo:
    return current_user

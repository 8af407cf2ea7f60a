"""
Open challenge endpoints.

Posting and accepting a challenge are public; withdrawing one is for staff.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status

from courtbook.dependencies import CurrentUser, PaginationParams, paginate
from courtbook.models import (
    ChallengeCreate,
    ChallengeListResponse,
    ChallengeMatch,
    ChallengeMatchResult,
    ChallengeStatus,
    ChallengeView,
    Site,
)
from courtbook.rate_limit import PUBLIC_WRITE, limiter
from courtbook.services import challenges

router = APIRouter(prefix="/api/challenges", tags=["challenges"])


@router.get(
    "",
    response_model=ChallengeListResponse,
    operation_id="listChallenges",
    summary="Open challenges, or matched challenges from today on",
)
async def list_challenges(
    pagination: PaginationParams = Depends(PaginationParams),
    challenge_status: ChallengeStatus = Query(ChallengeStatus.OPEN, alias="status"),
    site: Site | None = Query(None),
) -> ChallengeListResponse:
    if challenge_status == ChallengeStatus.OPEN:
        found = await challenges.list_open(site)
    else:
        found = await challenges.list_upcoming(site)
    return paginate(found, pagination, ChallengeListResponse)


@router.post(
    "",
    response_model=ChallengeView,
    status_code=status.HTTP_201_CREATED,
    operation_id="createChallenge",
    summary="Post an open challenge",
)
@limiter.limit(PUBLIC_WRITE)
async def create_challenge(request: Request, body: ChallengeCreate) -> ChallengeView:
    return await challenges.create_challenge(body)


@router.get(
    "/{challenge_id}",
    response_model=ChallengeView,
    operation_id="getChallenge",
    summary="Get one challenge",
)
async def get_challenge(challenge_id: UUID) -> ChallengeView:
    return await challenges.get_challenge(challenge_id)


@router.post(
    "/{challenge_id}/match",
    response_model=ChallengeMatchResult,
    status_code=status.HTTP_201_CREATED,
    operation_id="matchChallenge",
    summary="Accept a challenge and book the game",
)
@limiter.limit(PUBLIC_WRITE)
async def match_challenge(
    request: Request, challenge_id: UUID, body: ChallengeMatch
) -> ChallengeMatchResult:
    return await challenges.match_challenge(challenge_id, body)


@router.delete(
    "/{challenge_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    operation_id="deleteChallenge",
    summary="Withdraw an open challenge",
)
async def delete_challenge(challenge_id: UUID, current_user: CurrentUser) -> None:
    await challenges.delete_challenge(challenge_id)

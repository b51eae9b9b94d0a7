"""
Wishlist API endpoints.

Usage:
    1. GET    /wishlist                          - All slots plus next reveal countdown
    2. PUT    /wishlist/slots/{n}                - Put a contact in slot n
    3. DELETE /wishlist/slots/{n}                - Empty slot n (starts a one month cooldown)
    4. GET    /wishlist/matches                  - Revealed matches
    5. GET    /wishlist/matches/icebreakers      - Canned opening messages
    6. POST   /wishlist/matches/{id}/icebreaker  - Record an icebreaker for a match
    7. GET    /wishlist/schedule                 - Next processing time
    8. POST   /wishlist/matches/process          - Manual processing trigger (X-Cron-Secret)
"""

from datetime import UTC, datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, status

from app.auth.verify import auth_dependency, cron_secret_dependency
from app.config import settings
from app.features.wishlist.domain import WishlistError
from app.features.wishlist.jobs import match_processing_job
from app.features.wishlist.services import ICEBREAKER_TEMPLATES, wishlist_service
from app.infrastructure.observability.logging import get_logger

from .errors import to_http_error
from .schemas import (
    AddContactRequest,
    IcebreakerRequest,
    IcebreakerResponse,
    IcebreakerTemplatesResponse,
    MatchListResponse,
    MatchResponse,
    ProcessingSummaryResponse,
    ScheduleResponse,
    SlotResponse,
    WishlistEntryResponse,
    WishlistResponse,
)

router = APIRouter(prefix="/wishlist", tags=["wishlist"])
logger = get_logger(__name__)

SlotNumber = Annotated[
    int, Path(ge=1, le=settings.WISHLIST_SLOT_COUNT, description="Slot number, 1-based")
]


def _require_user_id(claims: dict) -> str:
    user_id = claims.get("sub")
    if not user_id:
        logger.error("No user ID in JWT claims")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token: missing user ID"
        )
    return user_id


async def _schedule_response(now: datetime) -> ScheduleResponse:
    next_at = await wishlist_service.next_processing_at(now)
    remaining = await wishlist_service.time_until_next_processing(now)
    return ScheduleResponse.build(next_at, remaining)


@router.get("", response_model=WishlistResponse)
async def get_wishlist(claims: dict = Depends(auth_dependency)):
    """
    Get every slot of the caller's wishlist.

    Open and filled slots come first by number, locked slots follow by
    soonest unlock.
    """
    user_id = _require_user_id(claims)
    now = datetime.now(UTC)

    slots = await wishlist_service.list_wishlist(user_id, now)
    return WishlistResponse(
        slots=[SlotResponse.from_domain(view) for view in slots],
        schedule=await _schedule_response(now),
    )


@router.put(
    "/slots/{slot_number}",
    response_model=WishlistEntryResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_to_slot(
    request: AddContactRequest,
    slot_number: SlotNumber,
    claims: dict = Depends(auth_dependency),
):
    """
    Put a contact in a slot.

    Raises:
        409: slot locked or filled, contact already listed, or already matched
        422: identifier does not normalize
        404: caller has no profile yet
    """
    user_id = _require_user_id(claims)

    try:
        entry = await wishlist_service.add_to_slot(
            user_id,
            slot_number,
            request.contact_name,
            request.identifier_type,
            request.identifier,
            datetime.now(UTC),
        )
    except WishlistError as e:
        logger.info("Add to slot rejected", user_id=user_id, slot_number=slot_number, code=e.code)
        raise to_http_error(e) from e

    return WishlistEntryResponse.from_domain(entry)


@router.delete("/slots/{slot_number}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_from_slot(slot_number: SlotNumber, claims: dict = Depends(auth_dependency)):
    user_id = _require_user_id(claims)

    try:
        await wishlist_service.remove_from_slot(user_id, slot_number, datetime.now(UTC))
    except WishlistError as e:
        raise to_http_error(e) from e


@router.get("/matches", response_model=MatchListResponse)
async def list_matches(claims: dict = Depends(auth_dependency)):
    user_id = _require_user_id(claims)
    matches = await wishlist_service.list_matches(user_id)
    return MatchListResponse(matches=[MatchResponse.from_domain(view) for view in matches])


@router.get("/matches/icebreakers", response_model=IcebreakerTemplatesResponse)
async def icebreaker_templates(claims: dict = Depends(auth_dependency)):
    _require_user_id(claims)
    return IcebreakerTemplatesResponse(templates=list(ICEBREAKER_TEMPLATES))


@router.post(
    "/matches/process",
    response_model=ProcessingSummaryResponse,
    dependencies=[Depends(cron_secret_dependency)],
)
async def process_matches():
    """Run match processing now. Called by an external scheduler."""
    result = await match_processing_job.run_once()

    if result.get("error") == "Already running":
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Processing already running")
    if not result["success"]:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"code": "processing_error", "errors": result["errors"]},
        )

    return ProcessingSummaryResponse(
        revealed_count=result["revealed_count"],
        invalidated_count=result["invalidated_count"],
        skipped_count=result["skipped_count"],
        failed_count=result["failed_count"],
    )


@router.post(
    "/matches/{match_id}/icebreaker",
    response_model=IcebreakerResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_icebreaker(
    match_id: UUID,
    request: IcebreakerRequest,
    claims: dict = Depends(auth_dependency),
):
    """Record an icebreaker for a revealed match. Nothing is delivered."""
    user_id = _require_user_id(claims)

    try:
        intent = await wishlist_service.send_icebreaker(user_id, str(match_id), request.message)
    except WishlistError as e:
        raise to_http_error(e) from e

    return IcebreakerResponse.from_domain(intent)


@router.get("/schedule", response_model=ScheduleResponse)
async def get_schedule(claims: dict = Depends(auth_dependency)):
    _require_user_id(claims)
    return await _schedule_response(datetime.now(UTC))

"""
Request and response models for the wishlist API.

Domain records are converted here so routes stay free of formatting logic.
"""

from datetime import datetime, timedelta

from pydantic import BaseModel, Field

from app.features.wishlist.domain import (
    Contact,
    IcebreakerIntent,
    IdentifierType,
    LockReason,
    MatchView,
    SlotStatus,
    SlotView,
    WishlistEntry,
)
from app.features.wishlist.domain.countdown import format_countdown


class AddContactRequest(BaseModel):
    """Body for PUT /wishlist/slots/{slot_number}."""

    contact_name: str = Field(..., min_length=1, max_length=100)
    identifier_type: IdentifierType
    identifier: str = Field(..., min_length=1, max_length=64, description="Phone number or handle")


class IcebreakerRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=500)


class ContactResponse(BaseModel):
    id: str
    name: str
    identifier_type: IdentifierType
    identifier: str

    @classmethod
    def from_domain(cls, contact: Contact) -> "ContactResponse":
        return cls(
            id=contact.id,
            name=contact.name,
            identifier_type=contact.identifier_type,
            identifier=contact.identifier,
        )


class SlotResponse(BaseModel):
    slot_number: int
    status: SlotStatus
    contact: ContactResponse | None = None
    is_matched: bool = False
    available_at: datetime | None = None
    lock_reason: LockReason | None = None
    remaining_seconds: int | None = None
    remaining_display: str | None = None

    @classmethod
    def from_domain(cls, view: SlotView) -> "SlotResponse":
        response = cls(
            slot_number=view.slot_number,
            status=view.status,
            contact=ContactResponse.from_domain(view.contact) if view.contact else None,
            is_matched=view.is_matched,
            available_at=view.available_at,
            lock_reason=view.lock_reason,
        )
        if view.remaining is not None:
            response.remaining_seconds = int(view.remaining.total_seconds())
            response.remaining_display = format_countdown(view.remaining)
        return response


class ScheduleResponse(BaseModel):
    next_processing_at: datetime
    remaining_seconds: int
    remaining_display: str

    @classmethod
    def build(cls, next_processing_at: datetime, remaining: timedelta) -> "ScheduleResponse":
        return cls(
            next_processing_at=next_processing_at,
            remaining_seconds=int(remaining.total_seconds()),
            remaining_display=format_countdown(remaining),
        )


class WishlistResponse(BaseModel):
    slots: list[SlotResponse]
    schedule: ScheduleResponse


class WishlistEntryResponse(BaseModel):
    slot_number: int
    contact_id: str
    created_at: datetime

    @classmethod
    def from_domain(cls, entry: WishlistEntry) -> "WishlistEntryResponse":
        return cls(
            slot_number=entry.slot_number,
            contact_id=entry.contact_id,
            created_at=entry.created_at,
        )


class MatchResponse(BaseModel):
    match_id: str
    contact: ContactResponse
    revealed_at: datetime | None

    @classmethod
    def from_domain(cls, view: MatchView) -> "MatchResponse":
        return cls(
            match_id=view.match_id,
            contact=ContactResponse.from_domain(view.contact),
            revealed_at=view.revealed_at,
        )


class MatchListResponse(BaseModel):
    matches: list[MatchResponse]


class IcebreakerTemplatesResponse(BaseModel):
    templates: list[str]


class IcebreakerResponse(BaseModel):
    id: str
    match_id: str
    message: str
    created_at: datetime
    delivered: bool = Field(False, description="Icebreakers are recorded, never sent")

    @classmethod
    def from_domain(cls, intent: IcebreakerIntent) -> "IcebreakerResponse":
        return cls(
            id=intent.id,
            match_id=intent.match_id,
            message=intent.message,
            created_at=intent.created_at,
        )


class ProcessingSummaryResponse(BaseModel):
    revealed_count: int
    invalidated_count: int
    skipped_count: int
    failed_count: int

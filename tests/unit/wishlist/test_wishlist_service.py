from datetime import UTC, datetime

import pytest

from app.features.wishlist.domain import (
    IdentifierType,
    InvalidContactName,
    InvalidIdentifier,
    InvalidSlot,
    ProfileNotFound,
    SlotStatus,
    SlotUnavailable,
)

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)
OWNER = "owner-1"


@pytest.fixture
def owner(store):
    return store.add_user(OWNER, "5551234567", handle="me_myself")


@pytest.mark.asyncio
async def test_add_to_slot_creates_contact_and_entry(wishlist, store, owner):
    entry = await wishlist.service.add_to_slot(OWNER, 2, "  Jo  ", "handle", "@Jo.Smith", NOW)

    contact = store.state.contacts[entry.contact_id]
    assert contact.name == "Jo"
    assert contact.identifier_type is IdentifierType.HANDLE
    assert contact.instagram_handle == "jo.smith"
    assert entry.slot_number == 2


@pytest.mark.asyncio
async def test_same_identifier_reuses_contact(wishlist, store, owner):
    first = await wishlist.service.add_to_slot(OWNER, 1, "Jo", "phone", "555-222-3333", NOW)
    await wishlist.service.remove_from_slot(OWNER, 1, NOW)

    second = await wishlist.service.add_to_slot(OWNER, 2, "Joanna", "phone", "+1 555 222 3333", NOW)

    assert second.contact_id == first.contact_id
    assert len(store.state.contacts) == 1
    assert store.state.contacts[first.contact_id].name == "Jo"


@pytest.mark.asyncio
@pytest.mark.parametrize("kind, raw", [("phone", "555 123 4567"), ("handle", "@Me_Myself")])
async def test_cannot_add_yourself(wishlist, store, owner, kind, raw):
    with pytest.raises(InvalidIdentifier):
        await wishlist.service.add_to_slot(OWNER, 1, "Me", kind, raw, NOW)

    assert store.state.entries == {}


@pytest.mark.asyncio
async def test_bad_input_is_rejected_before_any_write(wishlist, store, owner):
    with pytest.raises(InvalidIdentifier):
        await wishlist.service.add_to_slot(OWNER, 1, "Jo", "phone", "12345", NOW)
    with pytest.raises(InvalidIdentifier):
        await wishlist.service.add_to_slot(OWNER, 1, "Jo", "email", "jo@example.com", NOW)
    with pytest.raises(InvalidSlot):
        await wishlist.service.add_to_slot(OWNER, 12, "Jo", "phone", "5552223333", NOW)
    with pytest.raises(InvalidContactName):
        await wishlist.service.add_to_slot(OWNER, 1, "   ", "phone", "5552223333", NOW)

    assert store.state.contacts == {}


@pytest.mark.asyncio
async def test_failed_fill_rolls_back_new_contact(wishlist, store, owner):
    await wishlist.service.add_to_slot(OWNER, 1, "Jo", "phone", "5552223333", NOW)

    with pytest.raises(SlotUnavailable):
        await wishlist.service.add_to_slot(OWNER, 1, "Max", "phone", "5554445555", NOW)

    assert [c.name for c in store.state.contacts.values()] == ["Jo"]


@pytest.mark.asyncio
async def test_unknown_owner(wishlist):
    with pytest.raises(ProfileNotFound):
        await wishlist.service.add_to_slot("nobody", 1, "Jo", "phone", "5552223333", NOW)


@pytest.mark.asyncio
async def test_list_wishlist_returns_every_slot(wishlist, owner):
    await wishlist.service.add_to_slot(OWNER, 5, "Jo", "phone", "5552223333", NOW)

    views = await wishlist.service.list_wishlist(OWNER, NOW)

    assert len(views) == 10
    filled = [v for v in views if v.status is SlotStatus.FILLED]
    assert [v.slot_number for v in filled] == [5]
    assert filled[0].is_matched is False

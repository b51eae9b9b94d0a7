"""
In-memory stand-ins for the wishlist repositories.

The fakes keep the same method signatures as the SQL repositories and honour
the same uniqueness rules, so services run unchanged on top of them. The
transaction factory snapshots state and restores it when the block raises.
"""

import copy
import uuid
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from types import SimpleNamespace

import pytest

from app.features.wishlist.domain import (
    Contact,
    IcebreakerIntent,
    IdentifierType,
    Match,
    ScheduleState,
    SlotAvailability,
    UserIdentity,
    WishlistEntry,
)
from app.features.wishlist.services import (
    ContactRegistry,
    MatchEngine,
    MatchScheduler,
    SlotLedger,
    WishlistService,
)

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)  # a Monday

SCHEDULE_CONFIG = {"weekday": 3, "hour": 17, "minute": 0, "timezone": "America/New_York"}


def _new_id() -> str:
    return str(uuid.uuid4())


class InMemoryState:
    def __init__(self):
        self.users: dict[str, UserIdentity] = {}
        self.contacts: dict[str, Contact] = {}
        self.entries: dict[tuple[str, int], WishlistEntry] = {}
        self.availability: dict[tuple[str, int], object] = {}
        self.matches: dict[str, Match] = {}
        self.schedule: list[ScheduleState] = []
        self.icebreakers: list[IcebreakerIntent] = []


class FakeIdentityRepository:
    def __init__(self, store):
        self._store = store

    async def get_user(self, user_id, *, connection=None):
        return self._store.state.users.get(user_id)

    async def lock_user(self, user_id, *, connection=None):
        return self._store.state.users.get(user_id)

    async def find_by_phone(self, phone, *, connection=None):
        return next((u for u in self._store.state.users.values() if u.phone == phone), None)

    async def find_by_handle(self, handle, *, connection=None):
        return next(
            (u for u in self._store.state.users.values() if u.instagram_handle == handle), None
        )

    async def create_user(self, user_id, phone, created_at, *, connection=None):
        existing = self._store.state.users.get(user_id)
        if existing:
            return existing, False
        user = UserIdentity(
            user_id=user_id,
            phone=phone,
            instagram_handle=None,
            handle_prompt_skipped=False,
            created_at=created_at,
        )
        self._store.state.users[user_id] = user
        return user, True

    async def set_handle(self, user_id, handle, *, connection=None):
        user = self._store.state.users.get(user_id)
        if user:
            user.instagram_handle = handle
        return user

    async def set_handle_prompt_skipped(self, user_id, skipped, *, connection=None):
        user = self._store.state.users.get(user_id)
        if not user:
            return False
        user.handle_prompt_skipped = skipped
        return True


class FakeContactRepository:
    def __init__(self, store):
        self._store = store

    async def find_by_identifier(self, owner_id, identifier_type, identifier, *, connection=None):
        for contact in self._store.state.contacts.values():
            if (
                contact.owner_id == owner_id
                and contact.identifier_type is identifier_type
                and contact.identifier == identifier
            ):
                return contact
        return None

    async def create(self, owner_id, name, identifier_type, identifier, *, connection=None):
        if await self.find_by_identifier(owner_id, identifier_type, identifier):
            return None
        contact = Contact(
            id=_new_id(),
            owner_id=owner_id,
            name=name,
            identifier_type=identifier_type,
            phone=identifier if identifier_type is IdentifierType.PHONE else None,
            instagram_handle=identifier if identifier_type is IdentifierType.HANDLE else None,
            created_at=NOW,
        )
        self._store.state.contacts[contact.id] = contact
        return contact

    async def get_many(self, contact_ids, *, connection=None):
        contacts = self._store.state.contacts
        return {cid: contacts[cid] for cid in contact_ids if cid in contacts}

    async def find_representing(self, owner_id, phone, handle, *, connection=None):
        self._store.calls.append(("find_representing", owner_id))
        found = []
        for contact in self._store.state.contacts.values():
            if contact.owner_id != owner_id:
                continue
            if contact.identifier_type is IdentifierType.PHONE and phone and contact.phone == phone:
                found.append(contact)
            elif (
                contact.identifier_type is IdentifierType.HANDLE
                and handle
                and contact.instagram_handle == handle
            ):
                found.append(contact)
        return found


class FakeSlotRepository:
    def __init__(self, store):
        self._store = store

    async def get_entry(self, owner_id, slot_number, *, connection=None):
        return self._store.state.entries.get((owner_id, slot_number))

    async def get_entry_for_contact(self, owner_id, contact_id, *, connection=None):
        for (owner, _), entry in self._store.state.entries.items():
            if owner == owner_id and entry.contact_id == contact_id:
                return entry
        return None

    async def entry_exists(self, owner_id, contact_id, *, connection=None):
        return await self.get_entry_for_contact(owner_id, contact_id) is not None

    async def list_entries(self, owner_id, *, connection=None):
        entries = [e for (owner, _), e in self._store.state.entries.items() if owner == owner_id]
        return sorted(entries, key=lambda e: e.slot_number)

    async def insert_entry(self, owner_id, slot_number, contact_id, created_at, *, connection=None):
        if (owner_id, slot_number) in self._store.state.entries:
            return None
        if await self.get_entry_for_contact(owner_id, contact_id):
            return None
        entry = WishlistEntry(
            id=_new_id(),
            owner_id=owner_id,
            slot_number=slot_number,
            contact_id=contact_id,
            created_at=created_at,
        )
        self._store.state.entries[(owner_id, slot_number)] = entry
        return entry

    async def delete_entry(self, owner_id, slot_number, *, connection=None):
        return self._store.state.entries.pop((owner_id, slot_number), None)

    async def get_availability(self, owner_id, slot_number, *, connection=None):
        return self._store.state.availability.get((owner_id, slot_number))

    async def list_availability(self, owner_id, *, connection=None):
        return {
            slot: held
            for (owner, slot), held in self._store.state.availability.items()
            if owner == owner_id
        }

    async def set_availability(self, owner_id, slot_number, available_at, reason, *, connection=None):
        self._store.state.availability[(owner_id, slot_number)] = SlotAvailability(
            slot_number=slot_number, available_at=available_at, reason=reason
        )

    async def seed_availability(self, owner_id, rows, *, connection=None):
        created = 0
        for row in rows:
            key = (owner_id, row.slot_number)
            if key not in self._store.state.availability:
                self._store.state.availability[key] = row
                created += 1
        return created


class FakeMatchRepository:
    def __init__(self, store):
        self._store = store

    async def get(self, match_id, *, connection=None):
        return self._store.state.matches.get(match_id)

    async def find_for_pair(self, user_a, user_b, *, connection=None):
        pair = {user_a, user_b}
        for match in self._store.state.matches.values():
            if {match.user1_id, match.user2_id} == pair:
                return match
        return None

    async def lock_pair(self, user_a, user_b, *, connection=None):
        self._store.calls.append(("lock_pair", tuple(sorted((user_a, user_b)))))

    async def create(self, user1_id, contact1_id, user2_id, contact2_id, created_at, *, connection=None):
        if await self.find_for_pair(user1_id, user2_id):
            return None
        match = Match(
            id=_new_id(),
            user1_id=user1_id,
            user2_id=user2_id,
            contact1_id=contact1_id,
            contact2_id=contact2_id,
            is_revealed=False,
            created_at=created_at,
        )
        self._store.state.matches[match.id] = match
        return match

    async def delete_unrevealed_for_contact(self, owner_id, contact_id, *, connection=None):
        doomed = [
            m.id
            for m in self._store.state.matches.values()
            if not m.is_revealed
            and (
                (m.user1_id == owner_id and m.contact1_id == contact_id)
                or (m.user2_id == owner_id and m.contact2_id == contact_id)
            )
        ]
        for match_id in doomed:
            del self._store.state.matches[match_id]
        return len(doomed)

    async def list_unrevealed(self, *, connection=None):
        return [copy.copy(m) for m in self._store.state.matches.values() if not m.is_revealed]

    async def lock_unrevealed(self, match_id, *, connection=None):
        match = self._store.state.matches.get(match_id)
        if match is None or match.is_revealed:
            return None
        return match

    async def mark_revealed(self, match_id, revealed_at, *, connection=None):
        match = self._store.state.matches.get(match_id)
        if match is None or match.is_revealed:
            return False
        match.is_revealed = True
        match.revealed_at = revealed_at
        return True

    async def delete_unrevealed(self, match_id, *, connection=None):
        match = self._store.state.matches.get(match_id)
        if match is None or match.is_revealed:
            return False
        del self._store.state.matches[match_id]
        return True

    async def list_revealed_for_user(self, user_id, *, connection=None):
        return [m for m in self._store.state.matches.values() if m.is_revealed and m.involves(user_id)]

    async def is_revealed_for_contact(self, user_id, contact_id, *, connection=None):
        for match in await self.list_revealed_for_user(user_id):
            if match.side_of(user_id)[1] == contact_id:
                return True
        return False

    async def record_icebreaker(self, match_id, sender_id, message, *, connection=None):
        intent = IcebreakerIntent(
            id=_new_id(), match_id=match_id, sender_id=sender_id, message=message, created_at=NOW
        )
        self._store.state.icebreakers.append(intent)
        return intent


class FakeScheduleRepository:
    def __init__(self, store):
        self._store = store

    async def get_latest(self, *, connection=None):
        return self._store.state.schedule[-1] if self._store.state.schedule else None

    async def save(self, last_processed_at, next_processing_at, *, connection=None):
        state = ScheduleState(
            last_processed_at=last_processed_at, next_processing_at=next_processing_at
        )
        if self._store.state.schedule:
            self._store.state.schedule[-1] = state
        else:
            self._store.state.schedule.append(state)
        return state


class InMemoryStore:
    def __init__(self):
        self.state = InMemoryState()
        self.calls: list[tuple] = []
        self.identities = FakeIdentityRepository(self)
        self.contacts = FakeContactRepository(self)
        self.slots = FakeSlotRepository(self)
        self.matches = FakeMatchRepository(self)
        self.schedule = FakeScheduleRepository(self)

    @asynccontextmanager
    async def _transaction(self):
        snapshot = copy.deepcopy(self.state)
        try:
            yield object()
        except BaseException:
            self.state = snapshot
            raise

    async def transaction(self):
        return self._transaction()

    def add_user(self, user_id: str, phone: str, handle: str | None = None) -> UserIdentity:
        user = UserIdentity(
            user_id=user_id,
            phone=phone,
            instagram_handle=handle,
            handle_prompt_skipped=False,
            created_at=NOW,
        )
        self.state.users[user_id] = user
        return user


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def wishlist(store):
    registry = ContactRegistry(
        contacts=store.contacts, identities=store.identities, country_code="1"
    )
    engine = MatchEngine(
        matches=store.matches,
        slots=store.slots,
        contacts=store.contacts,
        identities=store.identities,
        registry=registry,
        transaction=store.transaction,
    )
    ledger = SlotLedger(
        slots=store.slots,
        identities=store.identities,
        matches=store.matches,
        contacts=store.contacts,
        registry=registry,
        engine=engine,
        transaction=store.transaction,
        slot_count=10,
        cooldown_months=1,
        stagger_days=0,
    )
    scheduler = MatchScheduler(schedule=store.schedule, config=SCHEDULE_CONFIG)
    service = WishlistService(
        registry=registry,
        ledger=ledger,
        engine=engine,
        scheduler=scheduler,
        identities=store.identities,
        transaction=store.transaction,
    )
    return SimpleNamespace(
        registry=registry,
        engine=engine,
        ledger=ledger,
        scheduler=scheduler,
        service=service,
    )

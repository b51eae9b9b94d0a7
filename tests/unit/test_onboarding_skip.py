from contextlib import asynccontextmanager
from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest

from app.features.wishlist.domain import HandleAlreadyLinked, ProfileNotFound, UserIdentity
from app.models.domain.user_domain import UserProfile
from app.services.onboarding_service import (
    OnboardingServiceError,
    link_handle,
    skip_handle_prompt,
)


def _build_profile(
    *,
    instagram_handle: str | None = None,
    handle_prompt_skipped: bool = False,
    handle_prompt_snoozed: bool = False,
) -> UserProfile:
    return UserProfile(
        user_id="user-123",
        phone="5551234567",
        instagram_handle=instagram_handle,
        created_at=datetime.now(UTC),
        handle_prompt_skipped=handle_prompt_skipped,
        handle_prompt_snoozed=handle_prompt_snoozed,
    )


def _identity(user_id: str, handle: str | None = None) -> UserIdentity:
    return UserIdentity(
        user_id=user_id,
        phone="5551234567",
        instagram_handle=handle,
        handle_prompt_skipped=False,
        created_at=datetime.now(UTC),
    )


@pytest.fixture
def fake_transaction(monkeypatch):
    @asynccontextmanager
    async def _tx():
        yield object()

    async def _factory():
        return _tx()

    monkeypatch.setattr("app.services.onboarding_service.get_db_transaction", _factory)


def test_profile_prompts_until_handle_or_skip():
    assert _build_profile().should_prompt_handle is True
    assert _build_profile(instagram_handle="me").should_prompt_handle is False
    assert _build_profile(handle_prompt_skipped=True).should_prompt_handle is False
    assert _build_profile(handle_prompt_snoozed=True).should_prompt_handle is False


@pytest.mark.asyncio
async def test_skip_for_session_sets_redis_key(monkeypatch, fake_redis):
    """A session skip stores a TTL key scoped to the auth session."""
    snoozed = _build_profile(handle_prompt_snoozed=True)
    monkeypatch.setattr("app.services.onboarding_service.redis_store", fake_redis)
    monkeypatch.setattr(
        "app.services.onboarding_service.get_user_profile", AsyncMock(return_value=snoozed)
    )
    persist_mock = AsyncMock(return_value=True)
    monkeypatch.setattr(
        "app.services.onboarding_service.IdentityRepository.set_handle_prompt_skipped",
        persist_mock,
    )

    result = await skip_handle_prompt("user-123", permanent=False, session_id="session-1")

    assert result == snoozed
    assert fake_redis.store == {"handle_prompt_snooze:user-123:session-1": "1"}
    assert fake_redis.ttls["handle_prompt_snooze:user-123:session-1"] == 43200
    persist_mock.assert_not_awaited()


@pytest.mark.asyncio
async def test_skip_permanently_sets_flag(monkeypatch, fake_redis):
    skipped = _build_profile(handle_prompt_skipped=True)
    monkeypatch.setattr("app.services.onboarding_service.redis_store", fake_redis)
    monkeypatch.setattr(
        "app.services.onboarding_service.get_user_profile", AsyncMock(return_value=skipped)
    )
    persist_mock = AsyncMock(return_value=True)
    monkeypatch.setattr(
        "app.services.onboarding_service.IdentityRepository.set_handle_prompt_skipped",
        persist_mock,
    )

    result = await skip_handle_prompt("user-123", permanent=True)

    assert result.should_prompt_handle is False
    persist_mock.assert_awaited_once_with("user-123", True)
    assert fake_redis.store == {}


@pytest.mark.asyncio
async def test_skip_permanently_unknown_user(monkeypatch):
    monkeypatch.setattr(
        "app.services.onboarding_service.IdentityRepository.set_handle_prompt_skipped",
        AsyncMock(return_value=False),
    )

    with pytest.raises(ProfileNotFound):
        await skip_handle_prompt("user-123", permanent=True)


@pytest.mark.asyncio
async def test_skip_for_session_redis_failure(monkeypatch):
    failing = AsyncMock()
    failing.set_with_ttl = AsyncMock(return_value=False)
    monkeypatch.setattr("app.services.onboarding_service.redis_store", failing)

    with pytest.raises(OnboardingServiceError):
        await skip_handle_prompt("user-123", permanent=False, session_id="session-1")


@pytest.mark.asyncio
async def test_link_handle_normalizes(monkeypatch, fake_transaction):
    linked = _build_profile(instagram_handle="jo.smith")
    set_handle_mock = AsyncMock(return_value=_identity("user-123", "jo.smith"))
    monkeypatch.setattr(
        "app.services.onboarding_service.IdentityRepository.lock_user",
        AsyncMock(return_value=_identity("user-123")),
    )
    monkeypatch.setattr(
        "app.services.onboarding_service.IdentityRepository.find_by_handle",
        AsyncMock(return_value=None),
    )
    monkeypatch.setattr(
        "app.services.onboarding_service.IdentityRepository.set_handle", set_handle_mock
    )
    monkeypatch.setattr(
        "app.services.onboarding_service.get_user_profile", AsyncMock(return_value=linked)
    )

    result = await link_handle("user-123", "@Jo.Smith", session_id="session-1")

    assert result == linked
    assert set_handle_mock.await_args.args == ("user-123", "jo.smith")


@pytest.mark.asyncio
async def test_link_handle_owned_by_someone_else(monkeypatch, fake_transaction):
    monkeypatch.setattr(
        "app.services.onboarding_service.IdentityRepository.lock_user",
        AsyncMock(return_value=_identity("user-123")),
    )
    monkeypatch.setattr(
        "app.services.onboarding_service.IdentityRepository.find_by_handle",
        AsyncMock(return_value=_identity("user-999", "jo.smith")),
    )

    with pytest.raises(HandleAlreadyLinked):
        await link_handle("user-123", "jo.smith")

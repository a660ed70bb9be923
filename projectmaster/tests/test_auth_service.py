import logging

import pytest

from projectmaster.common.enums import Role
from projectmaster.common.exceptions import ConflictError, UnauthorizedError
from projectmaster.common.security import decode_token
from projectmaster.core.auth.schemas import AuthSession
from projectmaster.core.auth.service import end_session, ensure_profile, start_session
from projectmaster.core.sync.normalize import to_row


@pytest.mark.asyncio
async def test_existing_profile_is_returned(backend, owner):
    await backend.upsert("users", to_row(owner))
    user = await ensure_profile(backend, AuthSession(user_id=owner.id, email=owner.email))
    assert user == owner


@pytest.mark.asyncio
async def test_missing_profile_is_created_with_least_privilege(backend, caplog):
    caplog.set_level(logging.WARNING)
    session = AuthSession(user_id="u-new", email="new.hire@test.com", metadata={"full_name": "New Hire"})

    user = await ensure_profile(backend, session)

    assert user.role == Role.CONTRACTOR
    assert user.name == "New Hire"
    assert user.username == "new.hire"
    assert (await backend.get_row("users", "u-new"))["role"] == "contractor"
    assert "created one with role 'contractor'" in caplog.text


@pytest.mark.asyncio
async def test_start_and_end_session(backend, adapter, store, owner):
    await backend.upsert("users", to_row(owner))

    user = await start_session(store, adapter, backend, AuthSession(user_id=owner.id, email=owner.email))
    assert store.state.current_user == user
    assert adapter.active
    assert store.state.find_user(owner.id) == owner

    await end_session(store, adapter)
    assert store.state.current_user is None
    assert not adapter.active
    assert backend.subscriber_count() == 0


@pytest.mark.asyncio
async def test_local_provider_sign_in(auth_provider):
    credential = await auth_provider.create_user("crew@test.com", "hunter22", {"role": "contractor"})
    session = await auth_provider.sign_in("Crew@Test.com", "hunter22")
    assert session.user_id == credential.user_id
    assert decode_token(session.access_token)["sub"] == credential.user_id

    with pytest.raises(UnauthorizedError):
        await auth_provider.sign_in("crew@test.com", "wrong")
    with pytest.raises(ConflictError):
        await auth_provider.create_user("crew@test.com", "again123", {})

    await auth_provider.delete_user(credential.user_id)
    with pytest.raises(UnauthorizedError):
        await auth_provider.sign_in("crew@test.com", "hunter22")

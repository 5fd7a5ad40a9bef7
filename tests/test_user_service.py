"""Credential store tests: UserService against a real database."""

import pytest
from sqlalchemy import inspect, select

from taskhub.auth.dependencies import Principal
from taskhub.db.models import Task
from taskhub.errors import (
    DuplicateIdentity,
    Forbidden,
    NoFieldsToUpdate,
    NotFoundOrUnauthorized,
    SelfDeletionForbidden,
)
from taskhub.services.task_service import TaskService
from taskhub.services.user_service import UserChanges, UserService


@pytest.mark.asyncio
async def test_create_stores_only_a_hash(session_factory):
    async with session_factory() as db:
        user = await UserService(db).create("carol", "carol@example.com", "Passw0rd1")
        assert user.id is not None
        assert user.role == "user"

    async with session_factory() as db:
        found = await UserService(db).find_by_email("carol@example.com")
        assert found.password_hash != "Passw0rd1"
        assert found.password_hash.startswith("$2b$")
        assert UserService.verify_password("Passw0rd1", found.password_hash)


@pytest.mark.asyncio
async def test_only_email_lookup_loads_the_hash(session_factory, alice):
    async with session_factory() as db:
        by_id = await UserService(db).find_by_id(alice.id)
        assert "password_hash" in inspect(by_id).unloaded

    async with session_factory() as db:
        by_name = await UserService(db).find_by_username("alice")
        assert "password_hash" in inspect(by_name).unloaded

    async with session_factory() as db:
        by_email = await UserService(db).find_by_email(alice.email)
        assert "password_hash" not in inspect(by_email).unloaded


@pytest.mark.asyncio
async def test_duplicate_username_rejected(session_factory, alice):
    async with session_factory() as db:
        with pytest.raises(DuplicateIdentity) as exc_info:
            await UserService(db).create("alice", "other@example.com", "Passw0rd1")
    assert exc_info.value.field == "username"


@pytest.mark.asyncio
async def test_duplicate_email_rejected(session_factory, alice):
    async with session_factory() as db:
        with pytest.raises(DuplicateIdentity) as exc_info:
            await UserService(db).create("alice2", alice.email, "Passw0rd1")
    assert exc_info.value.field == "email"


@pytest.mark.asyncio
async def test_authenticate(session_factory, alice):
    async with session_factory() as db:
        svc = UserService(db)
        assert (await svc.authenticate(alice.email, alice.password)).id == alice.id
        assert await svc.authenticate(alice.email, "wrong-password") is None
        assert await svc.authenticate("nobody@example.com", alice.password) is None


@pytest.mark.asyncio
async def test_update_with_no_fields_touches_nothing(session_factory, alice):
    async with session_factory() as db:
        with pytest.raises(NoFieldsToUpdate):
            await UserService(db).update(alice.id, UserChanges())


@pytest.mark.asyncio
async def test_update_applies_allowed_fields(session_factory, alice):
    async with session_factory() as db:
        user = await UserService(db).update(
            alice.id, UserChanges(username="alice_w", role="admin")
        )
    assert user.username == "alice_w"
    assert user.email == alice.email
    assert user.role == "admin"


@pytest.mark.asyncio
async def test_update_to_taken_email_rejected(session_factory, alice, bob):
    async with session_factory() as db:
        with pytest.raises(DuplicateIdentity):
            await UserService(db).update(alice.id, UserChanges(email=bob.email))


@pytest.mark.asyncio
async def test_update_missing_user_returns_none(session_factory):
    async with session_factory() as db:
        assert await UserService(db).update(9999, UserChanges(username="ghost")) is None


@pytest.mark.asyncio
async def test_self_profile_cannot_change_role(session_factory, alice):
    principal = Principal(id=alice.id, role="user")
    async with session_factory() as db:
        with pytest.raises(Forbidden):
            await UserService(db).update_user(
                principal, alice.id, UserChanges(role="admin"), self_profile=True
            )


@pytest.mark.asyncio
async def test_user_cannot_read_another_profile(session_factory, alice, bob):
    principal = Principal(id=alice.id, role="user")
    async with session_factory() as db:
        with pytest.raises(NotFoundOrUnauthorized):
            await UserService(db).get_user(principal, bob.id, self_profile=True)


@pytest.mark.asyncio
async def test_admin_cannot_delete_self(session_factory, admin):
    principal = Principal(id=admin.id, role="admin")
    async with session_factory() as db:
        with pytest.raises(SelfDeletionForbidden):
            await UserService(db).delete_user(principal, admin.id)
        assert await UserService(db).find_by_id(admin.id) is not None


@pytest.mark.asyncio
async def test_delete_cascades_to_tasks(session_factory, alice, bob):
    owner = Principal(id=alice.id, role="user")
    async with session_factory() as db:
        tasks = TaskService(db)
        await tasks.create_task(owner, title="one")
        await tasks.create_task(owner, title="two")
        await tasks.create_task(Principal(id=bob.id, role="user"), title="bob's")

    async with session_factory() as db:
        assert await UserService(db).delete(alice.id) is True
        assert await UserService(db).delete(alice.id) is False

    async with session_factory() as db:
        remaining = (await db.execute(select(Task))).scalars().all()
    assert [t.title for t in remaining] == ["bob's"]

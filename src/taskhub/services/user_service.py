"""User service: the credential store plus admin user management.

Only find_by_email() loads the password hash; every other lookup leaves
the deferred column unloaded, so the hash cannot leak into responses by
accident.

Updates go through UserChanges, an explicit set of the three mutable
fields. Anything else in a request never reaches this layer.
"""

import functools
from dataclasses import dataclass, fields
from typing import Optional

import structlog
from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import undefer

from taskhub.auth import password as passwords
from taskhub.auth.dependencies import Principal
from taskhub.auth.policy import (
    Operation,
    can_access_user,
    can_change_role,
    can_delete_user,
    can_self_delete,
)
from taskhub.db.models import User
from taskhub.errors import (
    DuplicateIdentity,
    Forbidden,
    NoFieldsToUpdate,
    NotFoundOrUnauthorized,
    SelfDeletionForbidden,
)

logger = structlog.get_logger()


@dataclass(frozen=True)
class UserChanges:
    """Fields a user update may touch. None means "leave as is"."""

    username: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None

    def values(self) -> dict:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }


@functools.lru_cache(maxsize=1)
def _dummy_hash() -> str:
    # Verified against when the email is unknown so both login failures cost the same
    return passwords.hash_password("taskhub-timing-equalizer")


class UserService:
    """Business logic for accounts and credentials."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Credential store ───────────────────────────────

    async def create(
        self,
        username: str,
        email: str,
        password: str,
        role: str = "user",
    ) -> User:
        """Register a new account. Raises DuplicateIdentity on conflicts."""
        if await self.find_by_username(username):
            raise DuplicateIdentity("username")
        if await self.find_by_email(email):
            raise DuplicateIdentity("email")

        user = User(
            username=username,
            email=email,
            password_hash=passwords.hash_password(password),
            role=role,
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration
            await self.db.rollback()
            raise DuplicateIdentity("username or email")

        logger.info("user.created", user_id=user.id, role=role)
        return user

    async def find_by_email(self, email: str) -> Optional[User]:
        """Lookup used for login: the only one that loads the password hash."""
        result = await self.db.execute(
            select(User).options(undefer(User.password_hash)).where(User.email == email)
        )
        return result.scalars().first()

    async def find_by_username(self, username: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.username == username))
        return result.scalars().first()

    async def find_by_id(self, user_id: int) -> Optional[User]:
        return await self.db.get(User, user_id, populate_existing=True)

    @staticmethod
    def verify_password(password: str, password_hash: str) -> bool:
        return passwords.verify_password(password, password_hash)

    async def authenticate(self, email: str, password: str) -> Optional[User]:
        """Return the user for valid credentials, None otherwise.

        Unknown email and wrong password are indistinguishable to the caller.
        """
        user = await self.find_by_email(email)
        if user is None:
            self.verify_password(password, _dummy_hash())
            return None
        if not self.verify_password(password, user.password_hash):
            return None
        return user

    async def update(self, user_id: int, changes: UserChanges) -> Optional[User]:
        """Apply changes in a single UPDATE. Returns None if the user is gone."""
        values = changes.values()
        if not values:
            raise NoFieldsToUpdate()

        await self._ensure_unique(user_id, changes)

        try:
            result = await self.db.execute(
                update(User).where(User.id == user_id).values(**values)
            )
            if result.rowcount == 0:
                await self.db.rollback()
                return None
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateIdentity("username or email")

        logger.info("user.updated", user_id=user_id, fields=sorted(values))
        return await self.find_by_id(user_id)

    async def delete(self, user_id: int) -> bool:
        """Delete a user. Their tasks go with them (ON DELETE CASCADE)."""
        result = await self.db.execute(delete(User).where(User.id == user_id))
        await self.db.commit()
        deleted = result.rowcount > 0
        if deleted:
            logger.info("user.deleted", user_id=user_id)
        return deleted

    async def list_users(
        self,
        role: Optional[str] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> list[User]:
        query = (
            select(User)
            .order_by(User.created_at.desc(), User.id.desc())
            .limit(limit)
            .offset(offset)
        )
        if role:
            query = query.where(User.role == role)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def count_users(self, role: Optional[str] = None) -> int:
        query = select(func.count()).select_from(User)
        if role:
            query = query.where(User.role == role)
        return (await self.db.execute(query)).scalar_one()

    async def _ensure_unique(self, user_id: int, changes: UserChanges) -> None:
        clauses = []
        if changes.username is not None:
            clauses.append(User.username == changes.username)
        if changes.email is not None:
            clauses.append(User.email == changes.email)
        if not clauses:
            return

        result = await self.db.execute(
            select(User).where(or_(*clauses), User.id != user_id)
        )
        clash = result.scalars().first()
        if clash is None:
            return
        if changes.username is not None and clash.username == changes.username:
            raise DuplicateIdentity("username")
        raise DuplicateIdentity("email")

    # ─── Policy-checked operations ──────────────────────

    async def get_user(
        self, principal: Principal, user_id: int, self_profile: bool = False
    ) -> User:
        if not can_access_user(principal, user_id, Operation.READ, self_profile):
            raise NotFoundOrUnauthorized("user", user_id, "denied")
        user = await self.find_by_id(user_id)
        if user is None:
            raise NotFoundOrUnauthorized("user", user_id)
        return user

    async def update_user(
        self,
        principal: Principal,
        user_id: int,
        changes: UserChanges,
        self_profile: bool = False,
    ) -> User:
        if not can_access_user(principal, user_id, Operation.UPDATE, self_profile):
            raise NotFoundOrUnauthorized("user", user_id, "denied")
        if changes.role is not None and not can_change_role(principal, self_profile):
            raise Forbidden("Role can only be changed by an admin")

        user = await self.update(user_id, changes)
        if user is None:
            raise NotFoundOrUnauthorized("user", user_id)
        return user

    async def delete_user(self, principal: Principal, user_id: int) -> None:
        if not can_self_delete(principal, user_id):
            raise SelfDeletionForbidden()
        if not can_delete_user(principal, user_id):
            raise NotFoundOrUnauthorized("user", user_id, "denied")
        if not await self.delete(user_id):
            raise NotFoundOrUnauthorized("user", user_id)

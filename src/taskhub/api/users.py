"""User administration API: admin only.

The whole router sits behind require_admin (403 for everyone else). A
missing user id is 404. Admins cannot delete their own account.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.auth.dependencies import Principal, require_admin
from taskhub.db.engine import get_db
from taskhub.errors import (
    DuplicateIdentity,
    NoFieldsToUpdate,
    NotFoundOrUnauthorized,
    SelfDeletionForbidden,
)
from taskhub.schemas.common import MAX_ID, Pagination
from taskhub.schemas.user import Role, UserList, UserRead, UserUpdate
from taskhub.services.user_service import UserService

router = APIRouter(prefix="/users")


def _user_svc(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


@router.get("", response_model=UserList)
async def list_users(
    role: Optional[Role] = Query(None, description="Filter by role"),
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    svc: UserService = Depends(_user_svc),
):
    """List all users, newest first."""
    users = await svc.list_users(role=role, limit=limit, offset=offset)
    total = await svc.count_users(role=role)
    return UserList(
        users=[UserRead.model_validate(u) for u in users],
        pagination=Pagination.of(total, limit, offset),
    )


@router.get("/{user_id}", response_model=UserRead)
async def get_user(
    user_id: int = Path(..., ge=1, le=MAX_ID),
    principal: Principal = Depends(require_admin),
    svc: UserService = Depends(_user_svc),
):
    try:
        return await svc.get_user(principal, user_id)
    except NotFoundOrUnauthorized as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("/{user_id}", response_model=UserRead)
async def update_user(
    body: UserUpdate,
    user_id: int = Path(..., ge=1, le=MAX_ID),
    principal: Principal = Depends(require_admin),
    svc: UserService = Depends(_user_svc),
):
    """Update username, email and/or role of any user."""
    try:
        return await svc.update_user(principal, user_id, body.to_changes())
    except (DuplicateIdentity, NoFieldsToUpdate) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFoundOrUnauthorized as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/{user_id}")
async def delete_user(
    user_id: int = Path(..., ge=1, le=MAX_ID),
    principal: Principal = Depends(require_admin),
    svc: UserService = Depends(_user_svc),
):
    """Delete a user and, through the cascade, all of their tasks."""
    try:
        await svc.delete_user(principal, user_id)
    except SelfDeletionForbidden as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFoundOrUnauthorized as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"deleted": True}

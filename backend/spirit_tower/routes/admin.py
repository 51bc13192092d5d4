# backend/spirit_tower/routes/admin.py
"""
Admin API Routes

Back-office endpoints for reviewing extracted characters:
- List users, optionally filtered by review status
- Approve / reject / mark dead (any UserStatus transition)
- Delete a user outright

Admin authentication is handled outside this service.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_session
from ..models import User, UserStatus
from ..queries import get_user_or_404

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


# ============================================================================
# Request Models
# ============================================================================

class StatusUpdateRequest(BaseModel):
    """New review status for a user."""
    status: str


# ============================================================================
# User Review Endpoints
# ============================================================================

@router.get("/users")
async def list_users(
    status_filter: Optional[str] = Query(None, alias="status"),
    session: AsyncSession = Depends(get_session),
):
    """
    List all users, oldest first.

    Query param `status` restricts the list to one UserStatus.
    """
    query = select(User).order_by(User.id)
    if status_filter is not None:
        query = query.where(User.status == _parse_status(status_filter).value)

    result = await session.execute(query)
    users = result.scalars().all()
    return {"success": True, "users": [u.to_dict() for u in users]}


@router.post("/users/{user_id}/status")
async def set_user_status(
    user_id: int,
    request: StatusUpdateRequest,
    session: AsyncSession = Depends(get_session),
):
    """Move a user to a new review status (e.g. pending -> approved)."""
    new_status = _parse_status(request.status)
    user = await get_user_or_404(session, user_id)

    old_status = user.status
    user.status = new_status.value
    await session.commit()
    logger.info("User %s status %s -> %s", user.name, old_status, new_status.value)

    return {"success": True, "user": user.to_dict()}


@router.delete("/users/{user_id}")
async def delete_user(user_id: int, session: AsyncSession = Depends(get_session)):
    """
    Permanently delete a user and their character sheet.
    """
    user = await get_user_or_404(session, user_id)
    await session.delete(user)
    await session.commit()
    logger.info("Admin deleted user %s (id=%s)", user.name, user_id)

    return {"success": True, "user_id": user_id}


def _parse_status(value: str) -> UserStatus:
    try:
        return UserStatus(value)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown status: {value}"
        )

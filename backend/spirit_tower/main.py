# backend/spirit_tower/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .db import engine, get_session
from .engine.extractor import NO_SPIRIT, SPIRIT_ROLES, Ability, Rank, Role, SpiritKind
from .models import Base, User, UserStatus
from .queries import get_user_by_name, get_user_or_404
from .routes import admin

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    - Create tables (single SQLite file, no migrations).
    - Release pooled connections on shutdown.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database ready")

    yield

    await engine.dispose()
    logger.info("Database connections closed")


app = FastAPI(lifespan=lifespan)
app.include_router(admin.router)


# ---------- HTTP Endpoints ----------

@app.get("/")
async def root():
    return {"message": "Welcome to the Tower"}


# ---------- User Endpoints ----------

class InitUserRequest(BaseModel):
    """Register a name before extraction."""
    name: str = Field(..., min_length=1, max_length=32)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be blank")
        return v


class CreateCharacterRequest(BaseModel):
    """
    Finished extractor sheet.

    Field aliases match the camelCase wire format the extractor sends.
    """
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1, max_length=32)
    role: Role
    mental_rank: Rank = Field(..., alias="mentalRank")
    physical_rank: Rank = Field(..., alias="physicalRank")
    gold: int = Field(..., ge=100, le=10000)
    ability: Ability
    spirit_name: str = Field(..., min_length=1, max_length=64, alias="spiritName")
    spirit_type: SpiritKind = Field(..., alias="spiritType")

    @field_validator("name", "spirit_name")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Value cannot be blank")
        return v

    @model_validator(mode="after")
    def check_role_rules(self) -> "CreateCharacterRequest":
        if self.role is Role.CIVILIAN and self.mental_rank is not Rank.NONE:
            raise ValueError("Civilians have no mental rank")
        if self.role is Role.GHOST and self.physical_rank is not Rank.NONE:
            raise ValueError("Ghosts have no physical rank")

        if self.role in SPIRIT_ROLES:
            if Rank.NONE in (self.mental_rank, self.physical_rank):
                raise ValueError(f"{self.role.value} must have both ranks")
            if self.spirit_type is SpiritKind.NONE:
                raise ValueError(f"{self.role.value} must have a spirit")
        elif self.spirit_type is not SpiritKind.NONE or self.spirit_name != NO_SPIRIT.name:
            raise ValueError(f"{self.role.value} cannot have a spirit")
        return self


@app.post("/api/users/init")
async def init_user(
    request: InitUserRequest,
    session: AsyncSession = Depends(get_session),
):
    """
    Create a blank user for a new name. Calling it again for an existing
    name returns the stored user unchanged.
    """
    user = await get_user_by_name(session, request.name)
    if user is None:
        user = User(name=request.name)
        session.add(user)
        await session.commit()
        logger.info("Initialized user %s (id=%s)", user.name, user.id)

    return {"success": True, "user": user.to_dict()}


@app.get("/api/users/{name}")
async def get_user(name: str, session: AsyncSession = Depends(get_session)):
    user = await get_user_by_name(session, name)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return {"success": True, "user": user.to_dict()}


@app.post("/api/users")
async def create_character(
    request: CreateCharacterRequest,
    session: AsyncSession = Depends(get_session),
):
    """
    Store an extracted character sheet and queue it for review.

    Fills in the blank user left by /api/users/init, or creates the user if
    the name was never initialized. A name can only be given one sheet.
    """
    user = await get_user_by_name(session, request.name)
    if user is None:
        user = User(name=request.name)
        session.add(user)
    elif user.has_character:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Character already created for this name"
        )

    user.role = request.role.value
    user.mental_rank = request.mental_rank.value
    user.physical_rank = request.physical_rank.value
    user.gold = request.gold
    user.ability = request.ability.value
    user.spirit_name = request.spirit_name
    user.spirit_type = request.spirit_type.value
    user.status = UserStatus.PENDING.value

    try:
        await session.commit()
    except IntegrityError:
        # Another request created this name between the lookup and the insert
        await session.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Character already created for this name"
        )

    logger.info("Character created for %s: %s", user.name, user.role)

    return {"success": True, "user": user.to_dict()}


@app.delete("/api/users/{user_id}")
async def delete_user(user_id: int, session: AsyncSession = Depends(get_session)):
    """
    Delete a user. Used when a rejected player starts over.

    This is a permanent action and cannot be undone.
    """
    user = await get_user_or_404(session, user_id)
    await session.delete(user)
    await session.commit()
    logger.info("Deleted user %s (id=%s)", user.name, user_id)

    return {"success": True, "user_id": user_id}

# backend/spirit_tower/models.py
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import DateTime, Integer, MetaData, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# Naming convention for constraints
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s"
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=convention)


class UserStatus(str, Enum):
    """Review / life-cycle state of a character."""

    PENDING = "pending"  # Awaiting admin review
    APPROVED = "approved"
    REJECTED = "rejected"
    DEAD = "dead"
    GHOST = "ghost"
    PENDING_DEATH = "pending_death"
    PENDING_GHOST = "pending_ghost"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """
    A player and their extracted character sheet.

    A user row is created blank by /api/users/init and filled in once the
    extractor submits a sheet. Sheet columns stay NULL until then.
    """
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, unique=True, nullable=False)

    # Extracted sheet
    role: Mapped[str | None] = mapped_column(String, nullable=True)  # "Sentinel", "Guide", "Civilian", "Ghost"
    mental_rank: Mapped[str | None] = mapped_column(String, nullable=True)  # "None", "D" .. "SSS"
    physical_rank: Mapped[str | None] = mapped_column(String, nullable=True)
    gold: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    ability: Mapped[str | None] = mapped_column(String, nullable=True)
    spirit_name: Mapped[str | None] = mapped_column(String, nullable=True)
    spirit_type: Mapped[str | None] = mapped_column(String, nullable=True)  # "Animal", "Plant", "None", "Custom"

    status: Mapped[str] = mapped_column(
        String, nullable=False, default=UserStatus.PENDING.value, server_default=UserStatus.PENDING.value
    )
    profile_text: Mapped[str] = mapped_column(Text, nullable=False, default="", server_default="")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)

    @property
    def has_character(self) -> bool:
        return self.role is not None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "role": self.role,
            "mentalRank": self.mental_rank,
            "physicalRank": self.physical_rank,
            "gold": self.gold,
            "ability": self.ability,
            "spiritName": self.spirit_name,
            "spiritType": self.spirit_type,
            "status": self.status,
            "profileText": self.profile_text,
        }

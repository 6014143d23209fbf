from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import JSON, Column, DateTime, UniqueConstraint
from sqlalchemy.types import TypeDecorator
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware datetime column that always round-trips as UTC.

    SQLite keeps no offset, so values come back naive and get UTC reattached.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError("naive datetime given for a UTC column")
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class Role(str, Enum):
    RESTAURANT = "restaurant"
    NGO = "ngo"

    @property
    def can_donate(self) -> bool:
        return self is Role.RESTAURANT

    @property
    def can_claim(self) -> bool:
        return self is Role.NGO

    @property
    def can_rate(self) -> bool:
        return self is Role.NGO


class FoodStatus(str, Enum):
    AVAILABLE = "available"
    CLAIMED = "claimed"
    COMPLETED = "completed"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        return self in (FoodStatus.COMPLETED, FoodStatus.EXPIRED)


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=60)
    email: str = Field(index=True, unique=True)
    password_hash: str
    address: str
    description: str
    role: Role

    # running mean of received ratings
    rating: float = 0.0
    rating_count: int = 0

    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)


class Food(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    donor_id: int = Field(foreign_key="user.id", index=True)
    receiver_id: Optional[int] = Field(
        default=None, foreign_key="user.id", index=True
    )

    title: str = Field(max_length=100)
    description: str
    photo: str
    status: FoodStatus = Field(default=FoodStatus.AVAILABLE, index=True)
    guidelines_accepted: bool = False
    ngo_details: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime, index=True)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)


class Rating(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("food_id", "rater_id", name="uq_rating_food_rater"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    food_id: int = Field(foreign_key="food.id")
    rater_id: int = Field(foreign_key="user.id")
    rated_id: int = Field(foreign_key="user.id", index=True)

    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = Field(default=None, max_length=200)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)


class ChatMessage(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    sender_id: int = Field(foreign_key="user.id", index=True)
    recipient_id: int = Field(foreign_key="user.id", index=True)
    food_item_id: Optional[int] = Field(default=None, foreign_key="food.id")

    content: str
    timestamp: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime, index=True)
    read: bool = False

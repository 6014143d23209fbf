from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from models import FoodStatus, Role


class APIModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# --- users ---

class UserCreate(APIModel):
    name: str = Field(min_length=1, max_length=60)
    email: EmailStr
    password: str = Field(min_length=6)
    address: str = Field(min_length=1)
    description: str = Field(min_length=1)
    role: Role


class LoginData(APIModel):
    email: EmailStr
    password: str


class UserRead(APIModel):
    id: int
    name: str
    email: EmailStr
    role: Role
    address: str
    description: str
    rating: float
    rating_count: int
    created_at: datetime


class UserProfile(APIModel):
    id: int
    name: str
    role: Role
    description: str
    rating: float
    rating_count: int


class NgoRead(APIModel):
    id: int
    name: str
    email: EmailStr
    role: Role
    created_at: datetime


class LoginResult(APIModel):
    message: str
    role: Role


# --- food ---

class NgoDetails(APIModel):
    name: str = Field(min_length=1)
    phone: Optional[str] = None
    pickup_time: Optional[str] = None
    notes: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None


class FoodCreate(APIModel):
    title: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1)
    photo: str = Field(min_length=1, description="URL or storage key of the photo")
    guidelines_accepted: bool = False


class FoodStatusUpdate(APIModel):
    status: FoodStatus
    ngo_details: Optional[NgoDetails] = None


class ClaimRequest(APIModel):
    food_id: int
    ngo_details: Optional[NgoDetails] = None


class DonorSummary(APIModel):
    id: int
    name: str
    address: str
    rating: float
    rating_count: int


class ClaimedBy(APIModel):
    id: int
    name: str
    email: str


class FoodRead(APIModel):
    id: int
    title: str
    description: str
    photo: str
    donor_id: int
    receiver_id: Optional[int] = None
    status: FoodStatus
    guidelines_accepted: bool
    ngo_details: Optional[NgoDetails] = None
    created_at: datetime
    updated_at: datetime

    is_expired: bool = False
    donor: Optional[DonorSummary] = None
    claimed_by: Optional[ClaimedBy] = None


class ClaimResult(APIModel):
    message: str
    food: FoodRead


# --- ratings ---

class RatingCreate(APIModel):
    food_id: int
    rated_id: int
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = Field(default=None, max_length=200)


class Rater(APIModel):
    id: int
    name: str


class RatingRead(APIModel):
    id: int
    food_id: int
    rater_id: int
    rated_id: int
    rating: int
    comment: Optional[str] = None
    created_at: datetime

    rater: Optional[Rater] = None


# --- chat ---

class ChatCreate(APIModel):
    recipient_id: int
    content: str = Field(min_length=1)
    food_item_id: Optional[int] = None


class ChatParticipant(APIModel):
    id: int
    name: str
    role: Role


class FoodBrief(APIModel):
    id: int
    title: str


class ChatRead(APIModel):
    id: int
    sender_id: int
    recipient_id: int
    content: str
    food_item_id: Optional[int] = None
    timestamp: datetime
    read: bool

    sender: Optional[ChatParticipant] = None
    recipient: Optional[ChatParticipant] = None
    food_item: Optional[FoodBrief] = None

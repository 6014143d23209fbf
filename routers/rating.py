from typing import List, Optional

from fastapi import APIRouter, Query

from db import SessionDep
from errors import ValidationError
from lifecycle import LifecycleDep
from ratings import list_for_user
from schemas import RatingCreate, RatingRead
from .auth import CurrentUserDep

router = APIRouter(tags=["rating"])


@router.get("", response_model=List[RatingRead])
def list_ratings(
    session: SessionDep,
    rated_id: Optional[int] = Query(None, alias="ratedId"),
):
    """
    Ratings received by a user, newest first.
    """
    if rated_id is None:
        raise ValidationError("ratedId is required")
    return list_for_user(session, rated_id)


@router.post("", response_model=RatingRead, status_code=201)
def create_rating(rating_in: RatingCreate, lifecycle: LifecycleDep, current: CurrentUserDep):
    """
    Rate the restaurant behind a completed donation. Only the NGO that
    received it may rate, once.
    """
    rating = lifecycle.rate(current, rating_in)
    return RatingRead.model_validate(rating)

from typing import List, Optional

from fastapi import APIRouter, Query

from errors import ValidationError
from lifecycle import LifecycleDep
from models import FoodStatus, Role
from schemas import ClaimRequest, ClaimResult, FoodCreate, FoodRead, FoodStatusUpdate
from .auth import CurrentUserDep, NgoDep

router = APIRouter(tags=["food"])


@router.post("", response_model=FoodRead, status_code=201)
def create_food(food_in: FoodCreate, lifecycle: LifecycleDep, current: CurrentUserDep):
    """
    List a new food donation. Restaurants only; guidelines must be accepted.
    """
    food = lifecycle.create(current, food_in)
    return lifecycle.get(food.id)


@router.get("", response_model=List[FoodRead])
def list_food(
    lifecycle: LifecycleDep,
    status: Optional[FoodStatus] = None,
    user_id: Optional[int] = Query(None, alias="userId"),
    user_role: Optional[Role] = Query(None, alias="userRole"),
):
    """
    List donations, optionally filtered by status and by the donor or
    claiming NGO. Listings past their TTL are reported as expired.
    """
    return lifecycle.list(status=status, user_id=user_id, user_role=user_role)


@router.post("/claim", response_model=ClaimResult)
def claim_food(claim: ClaimRequest, lifecycle: LifecycleDep, current: NgoDep):
    food = lifecycle.claim(current, claim.food_id, claim.ngo_details)
    return ClaimResult(message="Food claimed successfully", food=lifecycle.get(food.id))


@router.get("/{food_id}", response_model=FoodRead)
def get_food(food_id: int, lifecycle: LifecycleDep):
    return lifecycle.get(food_id)


@router.patch("/{food_id}", response_model=FoodRead)
def update_food_status(
    food_id: int,
    update: FoodStatusUpdate,
    lifecycle: LifecycleDep,
    current: CurrentUserDep,
):
    """
    Claim (NGO) or complete (donor or receiving NGO) a donation.
    """
    if update.status == FoodStatus.CLAIMED:
        lifecycle.claim(current, food_id, update.ngo_details)
    elif update.status == FoodStatus.COMPLETED:
        lifecycle.complete(current, food_id)
    else:
        raise ValidationError("Invalid status update")
    return lifecycle.get(food_id)

from typing import List

from fastapi import APIRouter
from sqlmodel import select

from db import SessionDep
from errors import NotFoundError
from models import Role, User
from schemas import NgoRead, UserProfile
from .auth import RestaurantDep

router = APIRouter(tags=["users"])


@router.get("/ngos", response_model=List[NgoRead])
def list_ngos(session: SessionDep, current: RestaurantDep):
    """
    List NGOs a restaurant can reach out to.
    """
    return session.exec(
        select(User).where(User.role == Role.NGO).order_by(User.name)
    ).all()


@router.get("/{user_id}", response_model=UserProfile)
def get_user(user_id: int, session: SessionDep):
    """
    Public profile of a user, including their rating aggregate.
    """
    user = session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user

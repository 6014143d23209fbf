"""
Food donation lifecycle.

    available --claim (ngo)--------------> claimed --complete (donor|receiver)--> completed
        \\
         `--TTL elapsed (derived on read, persisted by sweep_expired)--> expired

completed and expired are terminal. Every transition is a conditional UPDATE
guarded on the expected current status, so two racing requests can't both win.
"""
import logging
from datetime import datetime, timedelta
from typing import Annotated, Dict, Iterable, List, Optional

from fastapi import Depends, Request
from sqlalchemy import and_, or_, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from db import SessionDep
from errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from models import Food, FoodStatus, Rating, Role, User, utcnow
from ratings import apply_rating_to_user
from schemas import (
    ClaimedBy,
    DonorSummary,
    FoodCreate,
    FoodRead,
    NgoDetails,
    RatingCreate,
)

logger = logging.getLogger(__name__)


class FoodLifecycle:
    def __init__(self, session: Session, ttl: timedelta):
        self.session = session
        self.ttl = ttl

    # --------------------------
    # derived state
    # --------------------------

    def is_expired(self, food: Food, now: Optional[datetime] = None) -> bool:
        now = now or utcnow()
        return now - food.created_at >= self.ttl

    def effective_status(self, food: Food, now: Optional[datetime] = None) -> FoodStatus:
        if food.status == FoodStatus.AVAILABLE and self.is_expired(food, now):
            return FoodStatus.EXPIRED
        return food.status

    def _status_clause(self, status: FoodStatus, now: datetime):
        cutoff = now - self.ttl
        stale = and_(Food.status == FoodStatus.AVAILABLE, Food.created_at <= cutoff)
        if status == FoodStatus.AVAILABLE:
            return and_(Food.status == FoodStatus.AVAILABLE, Food.created_at > cutoff)
        if status == FoodStatus.EXPIRED:
            return or_(Food.status == FoodStatus.EXPIRED, stale)
        return Food.status == status

    # --------------------------
    # reads
    # --------------------------

    def get_or_404(self, food_id: int) -> Food:
        food = self.session.get(Food, food_id)
        if food is None:
            raise NotFoundError("Food donation not found")
        return food

    def get(self, food_id: int, now: Optional[datetime] = None) -> FoodRead:
        return self.to_reads([self.get_or_404(food_id)], now)[0]

    def list(
        self,
        status: Optional[FoodStatus] = None,
        user_id: Optional[int] = None,
        user_role: Optional[Role] = None,
        now: Optional[datetime] = None,
    ) -> List[FoodRead]:
        """
        List listings newest first, reporting the effective status.

        With ``user_id``, an NGO asking for claimed/completed listings is
        matched as receiver; every other combination matches the donor.
        Nothing is written here.
        """
        now = now or utcnow()
        query = select(Food)

        if status is not None:
            query = query.where(self._status_clause(status, now))

        if user_id is not None:
            as_receiver = (
                user_role is not None
                and user_role.can_claim
                and status in (FoodStatus.CLAIMED, FoodStatus.COMPLETED)
            )
            if as_receiver:
                query = query.where(Food.receiver_id == user_id)
            else:
                query = query.where(Food.donor_id == user_id)

        query = query.order_by(Food.created_at.desc(), Food.id.desc())
        foods = self.session.exec(query).all()
        logger.debug(f"Found {len(foods)} food items (status={status}, user_id={user_id})")
        return self.to_reads(foods, now)

    def to_reads(self, foods: Iterable[Food], now: Optional[datetime] = None) -> List[FoodRead]:
        now = now or utcnow()
        foods = list(foods)
        user_ids = {f.donor_id for f in foods} | {f.receiver_id for f in foods if f.receiver_id}
        users: Dict[int, User] = {}
        if user_ids:
            rows = self.session.exec(select(User).where(User.id.in_(user_ids))).all()
            users = {u.id: u for u in rows}

        reads = []
        for food in foods:
            read = FoodRead.model_validate(food)
            read.status = self.effective_status(food, now)
            read.is_expired = self.is_expired(food, now)

            donor = users.get(food.donor_id)
            if donor is not None:
                read.donor = DonorSummary.model_validate(donor)

            receiver = users.get(food.receiver_id) if food.receiver_id else None
            if receiver is not None and read.status in (FoodStatus.CLAIMED, FoodStatus.COMPLETED):
                read.claimed_by = ClaimedBy(id=receiver.id, name=receiver.name, email=receiver.email)

            reads.append(read)
        return reads

    # --------------------------
    # transitions
    # --------------------------

    def create(self, donor: User, data: FoodCreate) -> Food:
        if not donor.role.can_donate:
            raise AuthorizationError("Only restaurants can create food donations")
        if not data.guidelines_accepted:
            raise ValidationError("You must accept the guidelines to proceed")

        food = Food(
            donor_id=donor.id,
            title=data.title,
            description=data.description,
            photo=data.photo,
            guidelines_accepted=True,
            status=FoodStatus.AVAILABLE,
        )
        self.session.add(food)
        self.session.commit()
        self.session.refresh(food)
        logger.info(f"Food {food.id} listed by restaurant {donor.id}")
        return food

    def claim(
        self,
        actor: User,
        food_id: int,
        ngo_details: Optional[NgoDetails],
        now: Optional[datetime] = None,
    ) -> Food:
        if not actor.role.can_claim:
            raise AuthorizationError("Only NGOs can claim food donations")
        if ngo_details is None or not ngo_details.name:
            raise ValidationError("NGO name is required")

        food = self.get_or_404(food_id)
        now = now or utcnow()

        stmt = (
            update(Food)
            .where(
                Food.id == food_id,
                Food.status == FoodStatus.AVAILABLE,
                Food.created_at > now - self.ttl,
            )
            .values(
                status=FoodStatus.CLAIMED,
                receiver_id=actor.id,
                ngo_details=ngo_details.model_dump(by_alias=True, exclude_none=True),
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        result = self.session.exec(stmt)  # type: ignore[call-overload]
        if result.rowcount == 0:
            self.session.rollback()
            logger.warning(f"NGO {actor.id} tried to claim food {food_id} which is not available")
            raise ConflictError("This food item is no longer available")

        self.session.commit()
        self.session.refresh(food)
        logger.info(f"Food {food_id} claimed by NGO {actor.id}")
        return food

    def complete(self, actor: User, food_id: int, now: Optional[datetime] = None) -> Food:
        food = self.get_or_404(food_id)

        if actor.id not in (food.donor_id, food.receiver_id):
            raise AuthorizationError(
                "Only the receiving NGO or donating restaurant can mark this as completed"
            )
        if food.status != FoodStatus.CLAIMED:
            raise ValidationError("Only claimed food can be marked as completed")

        stmt = (
            update(Food)
            .where(Food.id == food_id, Food.status == FoodStatus.CLAIMED)
            .values(status=FoodStatus.COMPLETED, updated_at=now or utcnow())
            .execution_options(synchronize_session=False)
        )
        result = self.session.exec(stmt)  # type: ignore[call-overload]
        if result.rowcount == 0:
            self.session.rollback()
            raise ValidationError("Only claimed food can be marked as completed")

        self.session.commit()
        self.session.refresh(food)
        logger.info(f"Food {food_id} completed by user {actor.id}")
        return food

    def prior_rating(self, food_id: int, rater_id: int) -> Optional[Rating]:
        return self.session.exec(
            select(Rating).where(Rating.food_id == food_id, Rating.rater_id == rater_id)
        ).first()

    def rate(self, actor: User, data: RatingCreate) -> Rating:
        food = self.get_or_404(data.food_id)

        if food.status != FoodStatus.COMPLETED:
            raise ValidationError("You can only rate completed food donations")
        if not actor.role.can_rate or food.receiver_id != actor.id:
            raise AuthorizationError("Only the receiving NGO can rate the restaurant")
        if food.donor_id != data.rated_id:
            raise ValidationError("Invalid ratedId")

        if self.prior_rating(food.id, actor.id) is not None:
            raise ConflictError("You have already rated this food donation")

        rating = Rating(
            food_id=food.id,
            rater_id=actor.id,
            rated_id=food.donor_id,
            rating=data.rating,
            comment=data.comment,
        )
        try:
            self.session.add(rating)
            apply_rating_to_user(self.session, food.donor_id, data.rating)
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise ConflictError("You have already rated this food donation")

        self.session.refresh(rating)
        logger.info(f"NGO {actor.id} rated restaurant {food.donor_id} {data.rating}/5 for food {food.id}")
        return rating

    def sweep_expired(self, now: Optional[datetime] = None) -> int:
        """Persist available -> expired for every listing past its TTL."""
        now = now or utcnow()
        stmt = (
            update(Food)
            .where(Food.status == FoodStatus.AVAILABLE, Food.created_at <= now - self.ttl)
            .values(status=FoodStatus.EXPIRED, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        result = self.session.exec(stmt)  # type: ignore[call-overload]
        self.session.commit()
        if result.rowcount:
            logger.info(f"Marked {result.rowcount} stale food listings as expired")
        return result.rowcount


def get_lifecycle(request: Request, session: SessionDep) -> FoodLifecycle:
    hours = request.app.state.settings.FOOD_TTL_HOURS
    return FoodLifecycle(session, timedelta(hours=hours))


LifecycleDep = Annotated[FoodLifecycle, Depends(get_lifecycle)]

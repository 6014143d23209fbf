"""Running-mean rating aggregate and rating lookups."""
from typing import List, Tuple

from sqlalchemy import update
from sqlmodel import Session, select

from models import Rating, User
from schemas import Rater, RatingRead


def fold_rating(avg, count, sample) -> Tuple:
    """
    Fold one new sample into a running mean.

    Works on plain numbers and on SQL column expressions, so the same
    formula drives both the in-memory contract and the atomic UPDATE.
    Starting from (0, 0) the first sample becomes the mean.
    """
    new_count = count + 1
    return (avg * count + sample) / new_count, new_count


def apply_rating_to_user(session: Session, user_id: int, sample: int) -> None:
    """
    Fold ``sample`` into the user's aggregate with a single UPDATE.

    The row's current values are read by the database inside the statement,
    so two concurrent ratings of the same user cannot overwrite each other.
    Caller commits.
    """
    new_avg, new_count = fold_rating(User.rating, User.rating_count, float(sample))
    stmt = (
        update(User)
        .where(User.id == user_id)
        .values(rating=new_avg, rating_count=new_count)
        .execution_options(synchronize_session=False)
    )
    session.exec(stmt)  # type: ignore[call-overload]


def list_for_user(session: Session, rated_id: int) -> List[RatingRead]:
    stmt = (
        select(Rating, User.name)
        .join(User, User.id == Rating.rater_id)
        .where(Rating.rated_id == rated_id)
        .order_by(Rating.created_at.desc(), Rating.id.desc())
    )
    rows = session.exec(stmt).all()
    formatted = []
    for rating, rater_name in rows:
        read = RatingRead.model_validate(rating)
        read.rater = Rater(id=rating.rater_id, name=rater_name)
        formatted.append(read)
    return formatted

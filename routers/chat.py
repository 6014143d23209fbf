import logging
from typing import Dict, Iterable, List

from fastapi import APIRouter
from sqlalchemy import and_, or_
from sqlmodel import Session, select

from db import SessionDep
from errors import NotFoundError
from models import ChatMessage, Food, User
from schemas import ChatCreate, ChatParticipant, ChatRead, FoodBrief
from .auth import CurrentUserDep

logger = logging.getLogger(__name__)

router = APIRouter(tags=["chat"])


def _load_chat_rows(session: Session, messages: Iterable[ChatMessage]) -> List[ChatRead]:
    messages = list(messages)
    user_ids = {m.sender_id for m in messages} | {m.recipient_id for m in messages}
    food_ids = {m.food_item_id for m in messages if m.food_item_id}

    users: Dict[int, User] = {}
    if user_ids:
        users = {u.id: u for u in session.exec(select(User).where(User.id.in_(user_ids))).all()}
    foods: Dict[int, Food] = {}
    if food_ids:
        foods = {f.id: f for f in session.exec(select(Food).where(Food.id.in_(food_ids))).all()}

    formatted = []
    for message in messages:
        read = ChatRead.model_validate(message)
        sender = users.get(message.sender_id)
        recipient = users.get(message.recipient_id)
        if sender is not None:
            read.sender = ChatParticipant.model_validate(sender)
        if recipient is not None:
            read.recipient = ChatParticipant.model_validate(recipient)
        food = foods.get(message.food_item_id) if message.food_item_id else None
        if food is not None:
            read.food_item = FoodBrief(id=food.id, title=food.title)
        formatted.append(read)
    return formatted


@router.get("", response_model=List[ChatRead])
def inbox(session: SessionDep, current: CurrentUserDep):
    """
    Every message the current user sent or received, newest first.
    """
    stmt = (
        select(ChatMessage)
        .where(or_(ChatMessage.sender_id == current.id, ChatMessage.recipient_id == current.id))
        .order_by(ChatMessage.timestamp.desc(), ChatMessage.id.desc())
    )
    return _load_chat_rows(session, session.exec(stmt).all())


@router.get("/{user_id}", response_model=List[ChatRead])
def thread(user_id: int, session: SessionDep, current: CurrentUserDep):
    """
    The conversation between the current user and ``user_id``, oldest first.
    """
    stmt = (
        select(ChatMessage)
        .where(
            or_(
                and_(ChatMessage.sender_id == current.id, ChatMessage.recipient_id == user_id),
                and_(ChatMessage.sender_id == user_id, ChatMessage.recipient_id == current.id),
            )
        )
        .order_by(ChatMessage.timestamp.asc(), ChatMessage.id.asc())
    )
    return _load_chat_rows(session, session.exec(stmt).all())


@router.post("", response_model=ChatRead, status_code=201)
def send_message(message_in: ChatCreate, session: SessionDep, current: CurrentUserDep):
    if session.get(User, message_in.recipient_id) is None:
        raise NotFoundError("Recipient not found")
    if message_in.food_item_id is not None and session.get(Food, message_in.food_item_id) is None:
        raise NotFoundError("Food donation not found")

    message = ChatMessage(
        sender_id=current.id,
        recipient_id=message_in.recipient_id,
        content=message_in.content,
        food_item_id=message_in.food_item_id,
    )
    session.add(message)
    session.commit()
    session.refresh(message)
    logger.info(f"User {current.id} sent message {message.id} to {message.recipient_id}")
    return _load_chat_rows(session, [message])[0]

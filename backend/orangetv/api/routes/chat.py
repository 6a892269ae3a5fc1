# backend/orangetv/api/routes/chat.py
from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from orangetv.core.config import settings
from orangetv.core.errors import InvalidInput, NotFound, PermissionDenied, ServiceError
from orangetv.core.security import CurrentSession, get_current_user
from orangetv.crud import accounts as accounts_crud
from orangetv.crud import social as social_crud
from orangetv.crud.admin_config import get_admin_config
from orangetv.db.session import get_db
from orangetv.security.verifier import is_owner
from orangetv.schemas.social import (
    ConversationIn,
    ConversationOut,
    ConversationUpdateIn,
    FriendAddIn,
    FriendOut,
    FriendRequestIn,
    FriendRequestOut,
    FriendRequestRespondIn,
    MessageIn,
    MessageOut,
    StatusOut,
)

logger = logging.getLogger(__name__)


def require_chat_enabled(db: Session = Depends(get_db)) -> None:
    """Dependency: reject chat calls when the site has chat switched off."""
    try:
        config = get_admin_config(db)
    except ServiceError as exc:
        logger.warning("Failed to read chat switch, assuming enabled: %s", exc)
        return
    if config is not None and not config.site.enable_chat:
        raise PermissionDenied("Chat is disabled")


router = APIRouter(prefix="/api/chat", tags=["chat"], dependencies=[Depends(require_chat_enabled)])


def _get_own_conversation(db: Session, conversation_id: str, username: str) -> social_crud.ConversationRecord:
    conversation = social_crud.get_conversation(db, conversation_id)
    # non-members get the same answer as for a missing conversation
    if conversation is None or not social_crud.is_participant(conversation, username):
        raise NotFound("Conversation not found")
    return conversation


def _ensure_user_exists(db: Session, username: str) -> None:
    if not accounts_crud.user_exists(db, username):
        raise NotFound("User not found")


def _ensure_users_exist(db: Session, usernames: List[str]) -> None:
    # the owner identity comes from settings and may have no account row yet
    for username in usernames:
        if not is_owner(username):
            _ensure_user_exists(db, username)


# ---- friends ----

@router.get("/friends", response_model=List[FriendOut])
def list_friends(
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_user),
):
    return [FriendOut.model_validate(f) for f in social_crud.get_friends(db, session.username)]


@router.post("/friends", response_model=FriendOut)
def add_friend(
    payload: FriendAddIn,
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_user),
):
    _ensure_user_exists(db, payload.username)
    record = social_crud.add_friend(db, session.username, payload.username)
    return FriendOut.model_validate(record)


@router.delete("/friends/{username}", response_model=StatusOut)
def remove_friend(
    username: str,
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_user),
):
    if not social_crud.remove_friend(db, session.username, username):
        raise NotFound("Friend not found")
    return StatusOut()


# ---- friend requests ----

@router.get("/friend-requests", response_model=List[FriendRequestOut])
def list_friend_requests(
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_user),
):
    return [FriendRequestOut.model_validate(r) for r in social_crud.get_friend_requests(db, session.username)]


@router.post("/friend-requests", response_model=FriendRequestOut)
def send_friend_request(
    payload: FriendRequestIn,
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_user),
):
    _ensure_user_exists(db, payload.to_user)
    if social_crud.are_friends(db, session.username, payload.to_user):
        raise InvalidInput("Already friends")

    record = social_crud.create_friend_request(db, session.username, payload.to_user, payload.message)
    return FriendRequestOut.model_validate(record)


@router.put("/friend-requests/{request_id}", response_model=FriendRequestOut)
def respond_friend_request(
    request_id: str,
    payload: FriendRequestRespondIn,
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_user),
):
    request = social_crud.get_friend_request(db, request_id)
    if request is None or request.to_user != session.username:
        raise NotFound("Friend request not found")
    if request.status != "pending":
        raise InvalidInput("Friend request already handled")

    if payload.status == "accepted":
        record = social_crud.accept_friend_request(db, request_id)
    else:
        social_crud.update_friend_request(db, request_id, payload.status)
        record = social_crud.get_friend_request(db, request_id)
    return FriendRequestOut.model_validate(record)


@router.delete("/friend-requests/{request_id}", response_model=StatusOut)
def delete_friend_request(
    request_id: str,
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_user),
):
    request = social_crud.get_friend_request(db, request_id)
    if request is None or session.username not in (request.from_user, request.to_user):
        raise NotFound("Friend request not found")
    social_crud.delete_friend_request(db, request_id)
    return StatusOut()


# ---- conversations ----

@router.get("/conversations", response_model=List[ConversationOut])
def list_conversations(
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_user),
):
    return [ConversationOut.model_validate(c) for c in social_crud.get_conversations(db, session.username)]


@router.post("/conversations", response_model=ConversationOut)
def create_conversation(
    payload: ConversationIn,
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_user),
):
    participants = list(payload.participants)
    if session.username not in participants:
        participants.insert(0, session.username)
    _ensure_users_exist(db, participants)

    record = social_crud.create_conversation(db, payload.name, participants, payload.type)
    return ConversationOut.model_validate(record)


@router.get("/conversations/{conversation_id}", response_model=ConversationOut)
def get_conversation(
    conversation_id: str,
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_user),
):
    return ConversationOut.model_validate(_get_own_conversation(db, conversation_id, session.username))


@router.put("/conversations/{conversation_id}", response_model=ConversationOut)
def update_conversation(
    conversation_id: str,
    payload: ConversationUpdateIn,
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_user),
):
    _get_own_conversation(db, conversation_id, session.username)
    if payload.participants is not None:
        _ensure_users_exist(db, payload.participants)
    record = social_crud.update_conversation(
        db,
        conversation_id,
        name=payload.name,
        participants=payload.participants,
        type=payload.type,
    )
    return ConversationOut.model_validate(record)


@router.delete("/conversations/{conversation_id}", response_model=StatusOut)
def delete_conversation(
    conversation_id: str,
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_user),
):
    _get_own_conversation(db, conversation_id, session.username)
    social_crud.delete_conversation(db, conversation_id)
    return StatusOut()


# ---- messages ----

@router.get("/conversations/{conversation_id}/messages", response_model=List[MessageOut])
def list_messages(
    conversation_id: str,
    limit: int = Query(default=settings.MESSAGE_PAGE_SIZE, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_user),
):
    _get_own_conversation(db, conversation_id, session.username)
    messages = social_crud.get_messages(db, conversation_id, limit=limit, offset=offset)
    return [MessageOut.model_validate(m) for m in messages]


@router.post("/conversations/{conversation_id}/messages", response_model=MessageOut)
def send_message(
    conversation_id: str,
    payload: MessageIn,
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_user),
):
    _get_own_conversation(db, conversation_id, session.username)
    record = social_crud.save_message(
        db,
        conversation_id,
        sender_id=session.username,
        content=payload.content,
        message_type=payload.message_type,
    )
    return MessageOut.model_validate(record)


@router.post("/messages/{message_id}/read", response_model=StatusOut)
def mark_message_read(
    message_id: str,
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_user),
):
    message = social_crud.get_message(db, message_id)
    if message is None:
        raise NotFound("Message not found")
    _get_own_conversation(db, message.conversation_id, session.username)

    social_crud.mark_message_read(db, message_id)
    return StatusOut()


# ---- search ----

@router.get("/search", response_model=List[str])
def search_users(
    q: str = Query(min_length=1, max_length=64),
    db: Session = Depends(get_db),
    session: CurrentSession = Depends(get_current_user),
):
    results = social_crud.search_users(db, q, limit=settings.SEARCH_RESULT_LIMIT)
    return [u for u in results if u != session.username]

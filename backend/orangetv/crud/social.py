# backend/orangetv/crud/social.py
"""
Social graph storage: friends, friend requests, conversations, messages and
user search.

Friend edges are undirected and stored once per pair in canonical order
(smaller username first). Conversation participants are a JSON array; a user
sees a conversation iff their name is an element of it.

Reads that feed list views (friends, requests, conversations, messages,
search) are best-effort and degrade to an empty result on storage failure.
Writes propagate StorageFailure.
"""
from __future__ import annotations

import json
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from sqlalchemy import delete, insert, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from orangetv.core.errors import InvalidInput, NotFound, StorageFailure
from orangetv.crud.accounts import participant_pattern
from orangetv.db.batch import AtomicBatch
from orangetv.models import Account, Conversation, FriendEdge, FriendRequest, Message

logger = logging.getLogger(__name__)

REQUEST_STATUSES = ("pending", "accepted", "rejected")
SEARCH_LIMIT = 20


def now_ms() -> int:
    return int(time.time() * 1000)


def new_id() -> str:
    return uuid.uuid4().hex


# ---- typed records ----

@dataclass(frozen=True)
class FriendRecord:
    username: str
    added_at: int


@dataclass(frozen=True)
class FriendRequestRecord:
    id: str
    from_user: str
    to_user: str
    message: Optional[str]
    status: str
    created_at: int
    updated_at: int


@dataclass(frozen=True)
class ConversationRecord:
    id: str
    name: str
    participants: List[str] = field(default_factory=list)
    type: str = "private"
    created_at: int = 0
    updated_at: int = 0


@dataclass(frozen=True)
class MessageRecord:
    id: str
    conversation_id: str
    sender_id: str
    sender_name: str
    content: str
    message_type: str
    timestamp: int
    is_read: bool


def _request_record(row: FriendRequest) -> FriendRequestRecord:
    return FriendRequestRecord(
        id=row.id,
        from_user=row.from_user,
        to_user=row.to_user,
        message=row.message,
        status=row.status,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def serialize_participants(participants: Iterable[str]) -> str:
    unique = list(dict.fromkeys(p for p in participants if p))
    return json.dumps(unique, ensure_ascii=False)


def deserialize_participants(raw: str) -> List[str]:
    try:
        value = json.loads(raw)
    except ValueError:
        logger.warning("Unreadable participant list: %r", raw)
        return []
    if not isinstance(value, list):
        return []
    return [p for p in value if isinstance(p, str)]


def _conversation_record(row: Conversation) -> ConversationRecord:
    return ConversationRecord(
        id=row.id,
        name=row.name,
        participants=deserialize_participants(row.participants),
        type=row.type,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _message_record(row: Message) -> MessageRecord:
    return MessageRecord(
        id=row.id,
        conversation_id=row.conversation_id,
        sender_id=row.sender_id,
        sender_name=row.sender_name,
        content=row.content,
        message_type=row.message_type,
        timestamp=row.timestamp,
        is_read=bool(row.is_read),
    )


def _membership(username: str):
    return Conversation.participants.contains(participant_pattern(username), autoescape=True)


def _write(db: Session, what: str, stmt) -> int:
    try:
        result = db.execute(stmt)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to %s: %s", what, exc)
        raise StorageFailure(f"Failed to {what}") from exc
    return result.rowcount


# ---- friends ----

def canonical_pair(a: str, b: str) -> tuple[str, str]:
    return (a, b) if a <= b else (b, a)


def add_friend(db: Session, username: str, friend: str, added_at: int | None = None) -> FriendRecord:
    if username == friend:
        raise InvalidInput("Cannot add yourself as a friend")

    user1, user2 = canonical_pair(username, friend)
    added_at = added_at or now_ms()
    try:
        existing = db.get(FriendEdge, (user1, user2))
        if existing is None:
            db.add(FriendEdge(user1=user1, user2=user2, status="accepted", added_at=added_at))
        else:
            existing.status = "accepted"
            existing.added_at = added_at
        db.commit()
    except IntegrityError:
        # a concurrent add for the same pair won; the edge exists either way
        db.rollback()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to add friend: %s", exc)
        raise StorageFailure("Failed to add friend") from exc

    return FriendRecord(username=friend, added_at=added_at)


def remove_friend(db: Session, username: str, friend: str) -> bool:
    user1, user2 = canonical_pair(username, friend)
    stmt = delete(FriendEdge).where(FriendEdge.user1 == user1, FriendEdge.user2 == user2)
    return _write(db, "remove friend", stmt) > 0


def are_friends(db: Session, a: str, b: str) -> bool:
    user1, user2 = canonical_pair(a, b)
    try:
        row = db.get(FriendEdge, (user1, user2))
    except SQLAlchemyError as exc:
        logger.warning("Failed to check friendship: %s", exc)
        return False
    return row is not None and row.status == "accepted"


def get_friends(db: Session, username: str) -> List[FriendRecord]:
    stmt = (
        select(FriendEdge)
        .where(
            or_(FriendEdge.user1 == username, FriendEdge.user2 == username),
            FriendEdge.status == "accepted",
        )
        .order_by(FriendEdge.added_at.asc())
    )
    try:
        rows = db.execute(stmt).scalars().all()
    except SQLAlchemyError as exc:
        logger.warning("Failed to get friends: %s", exc)
        return []

    return [
        FriendRecord(username=row.user2 if row.user1 == username else row.user1, added_at=row.added_at)
        for row in rows
    ]


# ---- friend requests ----

def create_friend_request(
    db: Session, from_user: str, to_user: str, message: str | None = None
) -> FriendRequestRecord:
    if from_user == to_user:
        raise InvalidInput("Cannot send a friend request to yourself")

    ts = now_ms()
    row = FriendRequest(
        id=new_id(),
        from_user=from_user,
        to_user=to_user,
        message=message,
        status="pending",
        created_at=ts,
        updated_at=ts,
    )
    try:
        db.add(row)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to create friend request: %s", exc)
        raise StorageFailure("Failed to create friend request") from exc
    return _request_record(row)


def get_friend_request(db: Session, request_id: str) -> FriendRequestRecord | None:
    try:
        row = db.get(FriendRequest, request_id)
    except SQLAlchemyError as exc:
        logger.error("Failed to get friend request: %s", exc)
        raise StorageFailure("Failed to load friend request") from exc
    return _request_record(row) if row is not None else None


def get_friend_requests(db: Session, username: str) -> List[FriendRequestRecord]:
    """Requests sent or received by username, newest first."""
    stmt = (
        select(FriendRequest)
        .where(or_(FriendRequest.to_user == username, FriendRequest.from_user == username))
        .order_by(FriendRequest.created_at.desc())
    )
    try:
        rows = db.execute(stmt).scalars().all()
    except SQLAlchemyError as exc:
        logger.warning("Failed to get friend requests: %s", exc)
        return []
    return [_request_record(r) for r in rows]


def _status_update(request_id: str, status: str):
    if status not in REQUEST_STATUSES:
        raise InvalidInput(f"Invalid friend request status: {status}")
    return (
        update(FriendRequest)
        .where(FriendRequest.id == request_id)
        .values(status=status, updated_at=now_ms())
    )


def update_friend_request(db: Session, request_id: str, status: str) -> None:
    if _write(db, "update friend request", _status_update(request_id, status)) == 0:
        raise NotFound("Friend request not found")


def accept_friend_request(db: Session, request_id: str) -> FriendRequestRecord:
    """Mark the request accepted and create the friend edge, atomically."""
    request = get_friend_request(db, request_id)
    if request is None:
        raise NotFound("Friend request not found")

    user1, user2 = canonical_pair(request.from_user, request.to_user)
    batch = AtomicBatch(db, "accept friend request")
    batch.add(_status_update(request_id, "accepted"), required=True)
    batch.add(delete(FriendEdge).where(FriendEdge.user1 == user1, FriendEdge.user2 == user2))
    batch.add(insert(FriendEdge).values(user1=user1, user2=user2, status="accepted", added_at=now_ms()))
    try:
        batch.apply()
    except IntegrityError as exc:
        raise StorageFailure("Failed to accept friend request") from exc

    return get_friend_request(db, request_id)


def delete_friend_request(db: Session, request_id: str) -> bool:
    stmt = delete(FriendRequest).where(FriendRequest.id == request_id)
    return _write(db, "delete friend request", stmt) > 0


# ---- conversations ----

def create_conversation(
    db: Session,
    name: str,
    participants: Iterable[str],
    type: str = "private",
) -> ConversationRecord:
    serialized = serialize_participants(participants)
    if not deserialize_participants(serialized):
        raise InvalidInput("A conversation needs at least one participant")

    ts = now_ms()
    row = Conversation(
        id=new_id(),
        name=name,
        participants=serialized,
        type=type,
        created_at=ts,
        updated_at=ts,
    )
    try:
        db.add(row)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to create conversation: %s", exc)
        raise StorageFailure("Failed to create conversation") from exc
    return _conversation_record(row)


def get_conversation(db: Session, conversation_id: str) -> ConversationRecord | None:
    try:
        row = db.get(Conversation, conversation_id)
    except SQLAlchemyError as exc:
        logger.error("Failed to get conversation: %s", exc)
        raise StorageFailure("Failed to load conversation") from exc
    return _conversation_record(row) if row is not None else None


def get_conversations(db: Session, username: str) -> List[ConversationRecord]:
    stmt = select(Conversation).where(_membership(username)).order_by(Conversation.updated_at.desc())
    try:
        rows = db.execute(stmt).scalars().all()
    except SQLAlchemyError as exc:
        logger.warning("Failed to get conversations: %s", exc)
        return []

    records = [_conversation_record(r) for r in rows]
    return [r for r in records if username in r.participants]


def update_conversation(
    db: Session,
    conversation_id: str,
    name: str | None = None,
    participants: Iterable[str] | None = None,
    type: str | None = None,
) -> ConversationRecord:
    values: dict = {"updated_at": now_ms()}
    if name is not None:
        values["name"] = name
    if participants is not None:
        serialized = serialize_participants(participants)
        if not deserialize_participants(serialized):
            raise InvalidInput("A conversation needs at least one participant")
        values["participants"] = serialized
    if type is not None:
        values["type"] = type

    stmt = update(Conversation).where(Conversation.id == conversation_id).values(**values)
    if _write(db, "update conversation", stmt) == 0:
        raise NotFound("Conversation not found")
    return get_conversation(db, conversation_id)


def delete_conversation(db: Session, conversation_id: str) -> bool:
    """Delete the conversation and all of its messages as one unit."""
    batch = AtomicBatch(db, "delete conversation")
    batch.add(delete(Message).where(Message.conversation_id == conversation_id))
    batch.add(delete(Conversation).where(Conversation.id == conversation_id))
    try:
        counts = batch.apply()
    except IntegrityError as exc:
        raise StorageFailure("Failed to delete conversation") from exc
    return counts[1] > 0


def is_participant(conversation: ConversationRecord, username: str) -> bool:
    return username in conversation.participants


# ---- messages ----

def save_message(
    db: Session,
    conversation_id: str,
    sender_id: str,
    content: str,
    sender_name: str | None = None,
    message_type: str = "text",
    timestamp: int | None = None,
) -> MessageRecord:
    """
    Append a message and bump the conversation's updated_at in one unit.
    Raises: NotFound if the conversation does not exist, StorageFailure
    """
    if get_conversation(db, conversation_id) is None:
        raise NotFound("Conversation not found")

    record = MessageRecord(
        id=new_id(),
        conversation_id=conversation_id,
        sender_id=sender_id,
        sender_name=sender_name or sender_id,
        content=content,
        message_type=message_type,
        timestamp=timestamp or now_ms(),
        is_read=False,
    )

    batch = AtomicBatch(db, "save message")
    batch.add(
        update(Conversation)
        .where(Conversation.id == conversation_id)
        .values(updated_at=record.timestamp),
        required=True,
    )
    batch.add(
        insert(Message).values(
            id=record.id,
            conversation_id=record.conversation_id,
            sender_id=record.sender_id,
            sender_name=record.sender_name,
            content=record.content,
            message_type=record.message_type,
            timestamp=record.timestamp,
            is_read=False,
        )
    )
    try:
        batch.apply()
    except NotFound:
        raise NotFound("Conversation not found")
    except IntegrityError as exc:
        raise StorageFailure("Failed to save message") from exc
    return record


def get_messages(db: Session, conversation_id: str, limit: int = 50, offset: int = 0) -> List[MessageRecord]:
    """Page newest-first at the storage boundary, returned oldest-first."""
    stmt = (
        select(Message)
        .where(Message.conversation_id == conversation_id)
        .order_by(Message.timestamp.desc(), Message.id.desc())
        .limit(limit)
        .offset(offset)
    )
    try:
        rows = db.execute(stmt).scalars().all()
    except SQLAlchemyError as exc:
        logger.warning("Failed to get messages: %s", exc)
        return []
    return [_message_record(r) for r in reversed(rows)]


def get_message(db: Session, message_id: str) -> MessageRecord | None:
    try:
        row = db.get(Message, message_id)
    except SQLAlchemyError as exc:
        logger.error("Failed to get message: %s", exc)
        raise StorageFailure("Failed to load message") from exc
    return _message_record(row) if row is not None else None


def mark_message_read(db: Session, message_id: str) -> None:
    stmt = update(Message).where(Message.id == message_id).values(is_read=True)
    if _write(db, "mark message as read", stmt) == 0:
        raise NotFound("Message not found")


# ---- user search ----

def search_users(db: Session, query: str, limit: int = SEARCH_LIMIT) -> List[str]:
    """Usernames containing query, at most `limit` of them, storage order."""
    limit = min(limit, SEARCH_LIMIT)
    stmt = (
        select(Account.username)
        .where(Account.username.contains(query, autoescape=True))
        .limit(limit)
    )
    try:
        return list(db.execute(stmt).scalars())
    except SQLAlchemyError as exc:
        logger.warning("Failed to search users: %s", exc)
        return []

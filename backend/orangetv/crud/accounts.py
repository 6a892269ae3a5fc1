# backend/orangetv/crud/accounts.py
"""
Account lifecycle: registration, credential change, avatar, and the purge
that removes an account together with every row it owns.
"""
from __future__ import annotations

import json
import logging

from sqlalchemy import delete, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from orangetv.core.errors import DuplicateHandle, NotFound, StorageFailure
from orangetv.core.security import hash_password, verify_password
from orangetv.db.batch import AtomicBatch
from orangetv.models import (
    Account,
    Conversation,
    DeviceBinding,
    Favorite,
    FriendEdge,
    FriendRequest,
    Message,
    PlayRecord,
    SearchHistory,
    SkipConfig,
)

logger = logging.getLogger(__name__)


def participant_pattern(username: str) -> str:
    """The exact token a username occupies in a serialized participant list."""
    return json.dumps(username, ensure_ascii=False)


def get_account(db: Session, username: str) -> Account | None:
    try:
        return db.get(Account, username)
    except SQLAlchemyError as exc:
        logger.error("Failed to get account %r: %s", username, exc)
        raise StorageFailure("Failed to load account") from exc


def user_exists(db: Session, username: str) -> bool:
    try:
        stmt = select(Account.username).where(Account.username == username)
        return db.execute(stmt).first() is not None
    except SQLAlchemyError as exc:
        logger.error("Failed to check user existence: %s", exc)
        raise StorageFailure("Failed to check user") from exc


def register(db: Session, username: str, password: str) -> Account:
    """
    Create an account. The primary key on username is the backstop against
    concurrent registrations of the same handle.
    Raises: DuplicateHandle, StorageFailure
    """
    if user_exists(db, username):
        raise DuplicateHandle()

    account = Account(username=username, password_hash=hash_password(password))
    try:
        db.add(account)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateHandle()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to register user %r: %s", username, exc)
        raise StorageFailure("Failed to register user") from exc

    logger.info("Registered user %r", username)
    return account


def verify_credential(db: Session, username: str, password: str) -> bool:
    account = get_account(db, username)
    if account is None:
        return False
    return verify_password(password, account.password_hash)


def change_password(db: Session, username: str, new_password: str) -> None:
    stmt = (
        update(Account)
        .where(Account.username == username)
        .values(password_hash=hash_password(new_password))
    )
    try:
        result = db.execute(stmt)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to change password for %r: %s", username, exc)
        raise StorageFailure("Failed to change password") from exc

    if result.rowcount == 0:
        raise NotFound("User not found")


def list_usernames(db: Session) -> list[str]:
    try:
        return list(db.execute(select(Account.username).order_by(Account.created_at.asc())).scalars())
    except SQLAlchemyError as exc:
        logger.error("Failed to list users: %s", exc)
        raise StorageFailure("Failed to list users") from exc


# ---- avatar ----

def get_avatar(db: Session, username: str) -> str | None:
    """Best-effort: a storage failure reads as "no avatar"."""
    try:
        stmt = select(Account.avatar).where(Account.username == username)
        return db.execute(stmt).scalar_one_or_none()
    except SQLAlchemyError as exc:
        logger.warning("Failed to get avatar for %r: %s", username, exc)
        return None


def _write_avatar(db: Session, username: str, avatar: str | None) -> None:
    try:
        result = db.execute(update(Account).where(Account.username == username).values(avatar=avatar))
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to update avatar for %r: %s", username, exc)
        raise StorageFailure("Failed to update avatar") from exc

    if result.rowcount == 0:
        raise NotFound("User not found")


def set_avatar(db: Session, username: str, avatar: str) -> None:
    _write_avatar(db, username, avatar)


def delete_avatar(db: Session, username: str) -> None:
    _write_avatar(db, username, None)


# ---- purge ----

def purge(db: Session, username: str) -> None:
    """
    Delete the account and everything that references it, as one atomic
    batch. Conversations the user takes part in are deleted for every
    participant, together with all of their messages.
    Raises: StorageFailure (nothing is deleted in that case)
    """
    member_conversations = select(Conversation.id).where(
        Conversation.participants.contains(participant_pattern(username), autoescape=True)
    )

    batch = AtomicBatch(db, f"delete user {username!r} and all associated data")
    batch.add(delete(Account).where(Account.username == username))
    batch.add(delete(PlayRecord).where(PlayRecord.username == username))
    batch.add(delete(Favorite).where(Favorite.username == username))
    batch.add(delete(SearchHistory).where(SearchHistory.username == username))
    batch.add(delete(SkipConfig).where(SkipConfig.username == username))
    batch.add(delete(DeviceBinding).where(DeviceBinding.username == username))
    # messages before their conversations
    batch.add(delete(Message).where(Message.conversation_id.in_(member_conversations)))
    batch.add(delete(Conversation).where(Conversation.id.in_(member_conversations)))
    batch.add(delete(Message).where(Message.sender_id == username))
    batch.add(delete(FriendEdge).where(or_(FriendEdge.user1 == username, FriendEdge.user2 == username)))
    batch.add(delete(FriendRequest).where(or_(FriendRequest.from_user == username, FriendRequest.to_user == username)))

    try:
        batch.apply()
    except IntegrityError as exc:
        raise StorageFailure("Failed to delete user") from exc

    logger.info("Purged user %r", username)

"""
Account lifecycle tests: registration, password change, avatar writes and
the all-or-nothing purge.
"""
import pytest
from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError

from orangetv.core.errors import DuplicateHandle, NotFound
from orangetv.crud import accounts, media, social
from orangetv.crud.bindings import bind, get_machine_code
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
from orangetv.schemas.media import FavoriteIn, PlayRecordIn, SkipConfigIn


def _count(db, model, *where):
    stmt = select(func.count()).select_from(model)
    if where:
        stmt = stmt.where(*where)
    return db.execute(stmt).scalar_one()


class TestRegister:

    def test_register_and_verify(self, db):
        accounts.register(db, "alice", "s3cret")

        assert accounts.user_exists(db, "alice")
        assert accounts.verify_credential(db, "alice", "s3cret")
        assert not accounts.verify_credential(db, "alice", "wrong")
        assert not accounts.verify_credential(db, "nobody", "s3cret")

    def test_password_is_hashed(self, db):
        accounts.register(db, "alice", "s3cret")
        stored = accounts.get_account(db, "alice").password_hash

        assert stored != "s3cret"
        assert stored.startswith("$argon2")

    def test_duplicate(self, db):
        accounts.register(db, "alice", "one")
        with pytest.raises(DuplicateHandle):
            accounts.register(db, "alice", "two")
        assert accounts.verify_credential(db, "alice", "one")

    def test_change_password(self, db):
        accounts.register(db, "alice", "old")
        accounts.change_password(db, "alice", "new")

        assert accounts.verify_credential(db, "alice", "new")
        assert not accounts.verify_credential(db, "alice", "old")

    def test_change_password_unknown_user(self, db):
        with pytest.raises(NotFound):
            accounts.change_password(db, "nobody", "new")

    def test_list_usernames(self, db):
        accounts.register(db, "alice", "pw")
        accounts.register(db, "bob", "pw")
        assert sorted(accounts.list_usernames(db)) == ["alice", "bob"]


class TestAvatar:

    def test_set_get_delete(self, db):
        accounts.register(db, "alice", "pw")

        accounts.set_avatar(db, "alice", "https://example.com/a.png")
        assert accounts.get_avatar(db, "alice") == "https://example.com/a.png"

        accounts.delete_avatar(db, "alice")
        assert accounts.get_avatar(db, "alice") is None

    def test_unknown_user(self, db):
        assert accounts.get_avatar(db, "nobody") is None
        with pytest.raises(NotFound):
            accounts.set_avatar(db, "nobody", "https://example.com/a.png")


@pytest.fixture
def populated(db):
    """alice with data in every table, plus unrelated data for bob and carol."""
    for name in ("alice", "bob", "carol"):
        accounts.register(db, name, "pw")

    record = PlayRecordIn(
        title="Show", source_name="src", index=1, total_episodes=10,
        play_time=30, total_time=1200, save_time=1000,
    )
    favorite = FavoriteIn(title="Show", source_name="src", total_episodes=10, save_time=1000)
    for name in ("alice", "bob"):
        media.set_play_record(db, name, "src+1", record)
        media.set_favorite(db, name, "src+1", favorite)
        media.add_search_history(db, name, "show")
        media.set_skip_config(db, name, "src", "1", SkipConfigIn(enable=True, intro_time=5, outro_time=10))

    bind(db, "alice", "ALICE-PC")
    bind(db, "bob", "BOB-PC")

    social.add_friend(db, "alice", "bob")
    social.add_friend(db, "bob", "carol")
    social.create_friend_request(db, "carol", "alice")
    social.create_friend_request(db, "alice", "bob")

    shared = social.create_conversation(db, "a+b", ["alice", "bob"])
    social.save_message(db, shared.id, "alice", "hi bob")
    social.save_message(db, shared.id, "bob", "hi alice")

    others = social.create_conversation(db, "b+c", ["bob", "carol"])
    social.save_message(db, others.id, "bob", "hi carol")
    # a message authored by alice in a conversation she is not part of
    social.save_message(db, others.id, "alice", "stray")

    return {"shared": shared.id, "others": others.id}


class TestPurge:

    def test_removes_everything_owned(self, db, populated):
        accounts.purge(db, "alice")

        assert not accounts.user_exists(db, "alice")
        for model in (PlayRecord, Favorite, SearchHistory, SkipConfig, DeviceBinding):
            assert _count(db, model, model.username == "alice") == 0
        assert _count(db, Message, Message.sender_id == "alice") == 0
        assert _count(db, FriendEdge, (FriendEdge.user1 == "alice") | (FriendEdge.user2 == "alice")) == 0
        assert _count(db, FriendRequest, (FriendRequest.from_user == "alice") | (FriendRequest.to_user == "alice")) == 0

    def test_removes_shared_conversations_for_everyone(self, db, populated):
        accounts.purge(db, "alice")

        assert social.get_conversation(db, populated["shared"]) is None
        assert social.get_conversations(db, "bob") == [social.get_conversation(db, populated["others"])]

    def test_leaves_no_orphaned_messages(self, db, populated):
        accounts.purge(db, "alice")

        orphans = select(func.count()).select_from(Message).where(
            Message.conversation_id.not_in(select(Conversation.id))
        )
        assert db.execute(orphans).scalar_one() == 0
        assert [m.content for m in social.get_messages(db, populated["others"])] == ["hi carol"]

    def test_leaves_other_users_alone(self, db, populated):
        accounts.purge(db, "alice")

        assert accounts.user_exists(db, "bob")
        assert get_machine_code(db, "bob") == "BOB-PC"
        assert list(media.get_play_records(db, "bob")) == ["src+1"]
        assert social.are_friends(db, "bob", "carol")
        assert _count(db, Account) == 2

    def test_is_idempotent(self, db, populated):
        accounts.purge(db, "alice")
        accounts.purge(db, "alice")
        assert not accounts.user_exists(db, "alice")


class TestAtomicBatch:

    def test_constraint_failure_rolls_back_earlier_statements(self, db):
        accounts.register(db, "alice", "pw")
        accounts.register(db, "bob", "pw")

        batch = AtomicBatch(db, "test batch")
        batch.add(delete(Account).where(Account.username == "alice"))
        batch.add(insert(Account).values(username="bob", password_hash="x"))

        with pytest.raises(IntegrityError):
            batch.apply()

        assert accounts.user_exists(db, "alice")

    def test_required_statement_without_rows(self, db):
        accounts.register(db, "alice", "pw")

        batch = AtomicBatch(db, "test batch")
        batch.add(delete(Account).where(Account.username == "alice"))
        batch.add(update(Account).where(Account.username == "nobody").values(avatar="x"), required=True)

        with pytest.raises(NotFound):
            batch.apply()
        assert accounts.user_exists(db, "alice")

    def test_returns_row_counts(self, db):
        accounts.register(db, "alice", "pw")
        accounts.register(db, "bob", "pw")

        batch = AtomicBatch(db, "test batch")
        batch.add(update(Account).values(avatar="x"))
        batch.add(delete(Account).where(Account.username == "nobody"))

        assert len(batch) == 2
        assert batch.apply() == [2, 0]

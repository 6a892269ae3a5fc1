"""
HTTP tests for login, registration, device binding routes and purge.
"""
import json
from urllib.parse import quote, unquote

import pytest
from sqlalchemy import delete, func, select

from orangetv.core.config import settings
from orangetv.crud.admin_config import set_admin_config
from orangetv.models import Account, Conversation, DeviceBinding, FriendRequest, SearchHistory
from orangetv.schemas.config import AdminConfig

from conftest import OWNER, OWNER_PASSWORD, login, register


def _replace_cookie(client, value):
    client.cookies.clear()
    client.cookies.set("auth", value)


@pytest.fixture
def alice(client):
    assert register(client, "alice", "alice-pw").status_code == 201
    return client


class TestLogin:

    def test_success_sets_cookie(self, alice):
        resp = login(alice, "alice", "alice-pw")

        assert resp.status_code == 200
        assert resp.json() == {"ok": True, "username": "alice", "machineCodeBound": False}
        claims = json.loads(unquote(alice.cookies.get("auth")))
        assert claims["username"] == "alice"
        assert claims["role"] == "user"
        assert "password" not in claims

    def test_cookie_attributes(self, alice):
        resp = login(alice, "alice", "alice-pw")
        header = resp.headers["set-cookie"].lower()

        assert "path=/" in header
        assert "samesite=lax" in header
        assert "httponly" not in header
        assert "expires=" in header

    def test_wrong_password(self, alice):
        resp = login(alice, "alice", "nope")

        assert resp.status_code == 401
        assert resp.json() == {"error": "Invalid username or password"}

    def test_unknown_user(self, client):
        resp = login(client, "nobody", "nope")
        assert resp.status_code == 401
        assert resp.json() == {"error": "Invalid username or password"}

    @pytest.mark.parametrize("body", [
        {"password": "x"},
        {"username": "alice"},
        {"username": "alice", "password": ""},
        {"username": "alice", "password": 42},
        {"username": "alice", "password": "pw", "machineCode": "bad code!"},
    ])
    def test_invalid_input(self, alice, body):
        resp = alice.post("/api/login", json=body)
        assert resp.status_code == 400
        assert "error" in resp.json()

    def test_banned(self, alice, db):
        set_admin_config(db, AdminConfig.model_validate({"UserConfig": {"Users": [{"username": "alice", "banned": True}]}}))

        resp = login(alice, "alice", "alice-pw")
        assert resp.status_code == 401

    def test_throttled_after_repeated_failures(self, alice):
        for _ in range(settings.LOGIN_MAX_ATTEMPTS):
            assert login(alice, "alice", "nope").status_code == 401

        resp = login(alice, "alice", "alice-pw")
        assert resp.status_code == 429
        assert "error" in resp.json()

    def test_owner(self, client):
        resp = login(client, OWNER, OWNER_PASSWORD)

        assert resp.status_code == 200
        assert json.loads(unquote(client.cookies.get("auth")))["role"] == "owner"

    def test_owner_wrong_password(self, client):
        assert login(client, OWNER, "nope").status_code == 401

    def test_logout(self, alice):
        login(alice, "alice", "alice-pw")
        resp = alice.post("/api/logout")

        assert resp.status_code == 200
        assert alice.cookies.get("auth") is None


class TestDeviceBindingFlow:

    def test_bind_then_require_code(self, alice):
        resp = login(alice, "alice", "alice-pw", machine_code="ABC123")
        assert resp.json()["machineCodeBound"] is False

        resp = alice.post("/api/machine-code", json={"machineCode": "ABC123", "deviceInfo": "laptop"})
        assert resp.status_code == 200
        assert resp.json()["machineCode"] == "ABC123"

        resp = login(alice, "alice", "alice-pw")
        assert resp.status_code == 403
        assert resp.json()["requireMachineCode"] is True

        resp = login(alice, "alice", "alice-pw", machine_code="abc123")
        assert resp.status_code == 200
        assert resp.json()["machineCodeBound"] is True

        resp = login(alice, "alice", "alice-pw", machine_code="XYZ999")
        assert resp.status_code == 403
        assert resp.json()["machineCodeMismatch"] is True

    def test_code_taken(self, alice, make_client):
        login(alice, "alice", "alice-pw")
        alice.post("/api/machine-code", json={"machineCode": "ABC123"})

        bob = make_client()
        register(bob, "bob", "bob-pw")
        resp = login(bob, "bob", "bob-pw", machine_code="ABC123")

        assert resp.status_code == 409
        assert resp.json()["machineCodeTaken"] is True
        assert resp.json()["owner"] == "alice"

    def test_explicit_bind_conflict(self, alice, make_client):
        login(alice, "alice", "alice-pw")
        alice.post("/api/machine-code", json={"machineCode": "ABC123"})

        bob = make_client()
        register(bob, "bob", "bob-pw")
        login(bob, "bob", "bob-pw")
        resp = bob.post("/api/machine-code", json={"machineCode": "abc123"})

        assert resp.status_code == 409
        assert resp.json()["owner"] == "alice"
        assert alice.get("/api/machine-code").json() == {"machineCode": "ABC123", "isBound": True}

    def test_get_and_unbind(self, alice):
        login(alice, "alice", "alice-pw")
        assert alice.get("/api/machine-code").json() == {"machineCode": None, "isBound": False}

        alice.post("/api/machine-code", json={"machineCode": "ABC123"})
        assert alice.delete("/api/machine-code").status_code == 200
        assert alice.get("/api/machine-code").json()["isBound"] is False
        assert login(alice, "alice", "alice-pw").status_code == 200

    def test_admin_listing(self, alice, make_client):
        login(alice, "alice", "alice-pw")
        alice.post("/api/machine-code", json={"machineCode": "ABC123", "deviceInfo": "laptop"})
        assert alice.get("/api/admin/machine-codes").status_code == 403

        owner = make_client()
        login(owner, OWNER, OWNER_PASSWORD)
        listed = owner.get("/api/admin/machine-codes").json()

        assert [(b["username"], b["machineCode"], b["deviceInfo"]) for b in listed] == [("alice", "ABC123", "laptop")]
        assert owner.delete("/api/admin/machine-codes/alice").status_code == 200
        assert owner.get("/api/admin/machine-codes").json() == []


class TestSession:

    def test_no_cookie(self, client):
        resp = client.get("/api/machine-code")
        assert resp.status_code == 401

    def test_forged_username(self, alice):
        login(alice, "alice", "alice-pw")
        claims = json.loads(unquote(alice.cookies.get("auth")))
        claims["username"] = "bob"
        _replace_cookie(alice, quote(json.dumps(claims), safe=""))

        assert alice.get("/api/machine-code").status_code == 401

    def test_garbage_cookie(self, client):
        client.cookies.set("auth", "garbage")
        assert client.get("/api/machine-code").status_code == 401

    def test_role_resolved_server_side(self, alice):
        login(alice, "alice", "alice-pw")
        claims = json.loads(unquote(alice.cookies.get("auth")))
        claims["role"] = "owner"
        _replace_cookie(alice, quote(json.dumps(claims), safe=""))

        assert alice.get("/api/admin/machine-codes").status_code == 403

    def test_purged_account_cookie_rejected(self, alice, make_client, db):
        bob = make_client()
        register(bob, "bob", "bob-pw")
        login(alice, "alice", "alice-pw")

        owner = make_client()
        login(owner, OWNER, OWNER_PASSWORD)
        assert owner.delete("/api/users/alice").status_code == 200

        assert alice.get("/api/machine-code").status_code == 401
        assert alice.post("/api/machine-code", json={"machineCode": "ABCD-1234"}).status_code == 401
        assert alice.post("/api/chat/friend-requests", json={"to_user": "bob"}).status_code == 401
        assert alice.post("/api/chat/conversations", json={"participants": ["bob"]}).status_code == 401
        assert alice.post("/api/searchhistory", json={"keyword": "show"}).status_code == 401

        for model in (DeviceBinding, FriendRequest, Conversation, SearchHistory):
            assert db.scalar(select(func.count()).select_from(model)) == 0

    def test_banned_after_login(self, alice, db):
        login(alice, "alice", "alice-pw")
        assert alice.get("/api/machine-code").status_code == 200

        set_admin_config(db, AdminConfig.model_validate({"UserConfig": {"Users": [{"username": "alice", "banned": True}]}}))

        resp = alice.get("/api/machine-code")
        assert resp.status_code == 401
        assert resp.json() == {"error": "Account is banned"}

    def test_owner_session_without_account_row(self, client, db):
        login(client, OWNER, OWNER_PASSWORD)
        db.execute(delete(Account).where(Account.username == OWNER))
        db.commit()

        assert client.get("/api/admin/machine-codes").status_code == 200


class TestAccountRoutes:

    def test_register_duplicate(self, alice):
        resp = register(alice, "alice")
        assert resp.status_code == 409
        assert resp.json() == {"error": "Username already exists"}

    def test_register_invalid_username(self, client):
        assert register(client, "a!").status_code == 400

    def test_register_owner_handle(self, client):
        assert register(client, OWNER).status_code == 403

    def test_change_password(self, alice):
        login(alice, "alice", "alice-pw")
        resp = alice.post("/api/change-password", json={"newPassword": "new-pw"})

        assert resp.status_code == 200
        assert login(alice, "alice", "alice-pw").status_code == 401
        assert login(alice, "alice", "new-pw").status_code == 200

    def test_owner_cannot_change_password(self, client):
        login(client, OWNER, OWNER_PASSWORD)
        assert client.post("/api/change-password", json={"newPassword": "x"}).status_code == 403

    def test_delete_self(self, alice):
        login(alice, "alice", "alice-pw")
        resp = alice.delete("/api/users/alice")

        assert resp.status_code == 200
        assert alice.cookies.get("auth") is None
        assert login(alice, "alice", "alice-pw").status_code == 401

    def test_delete_other_needs_privilege(self, alice, make_client):
        bob = make_client()
        register(bob, "bob", "bob-pw")
        login(bob, "bob", "bob-pw")
        assert bob.delete("/api/users/alice").status_code == 403

        owner = make_client()
        login(owner, OWNER, OWNER_PASSWORD)
        assert owner.delete("/api/users/alice").status_code == 200
        assert login(alice, "alice", "alice-pw").status_code == 401

    def test_owner_not_deletable(self, client):
        login(client, OWNER, OWNER_PASSWORD)
        assert client.delete(f"/api/users/{OWNER}").status_code == 403


class TestSharedPasswordMode:

    @pytest.fixture(autouse=True)
    def shared_mode(self, monkeypatch):
        monkeypatch.setattr(settings, "STORAGE_TYPE", "localstorage")

    def test_login(self, client):
        resp = client.post("/api/login", json={"password": OWNER_PASSWORD})

        assert resp.status_code == 200
        claims = json.loads(unquote(client.cookies.get("auth")))
        assert claims == {"role": "user", "password": OWNER_PASSWORD}

    def test_wrong_password(self, client):
        resp = client.post("/api/login", json={"password": "nope"})
        assert resp.status_code == 401

    def test_open_access_clears_cookie(self, client, monkeypatch):
        monkeypatch.setattr(settings, "PASSWORD", "")
        resp = client.post("/api/login")

        assert resp.status_code == 200
        assert resp.json()["ok"] is True
        header = resp.headers["set-cookie"].lower()
        assert header.startswith("auth=")
        assert "max-age=0" in header

    def test_register_disabled(self, client):
        assert register(client, "alice").status_code == 403

"""
HTTP tests for /api/avatar and /api/config.
"""
import base64

import pytest

from orangetv.core.config import settings
from orangetv.crud.admin_config import set_admin_config
from orangetv.models import AdminConfigRow
from orangetv.schemas.config import AdminConfig

from conftest import OWNER, OWNER_PASSWORD, login, register

PNG = "data:image/png;base64," + base64.b64encode(b"\x89PNG\r\n\x1a\n" + b"\x00" * 64).decode()


@pytest.fixture
def alice(client):
    register(client, "alice", "alice-pw")
    login(client, "alice", "alice-pw")
    return client


@pytest.fixture
def bob(make_client):
    c = make_client()
    register(c, "bob", "bob-pw")
    login(c, "bob", "bob-pw")
    return c


class TestAvatar:

    def test_requires_login(self, client):
        assert client.get("/api/avatar").status_code == 401
        assert client.post("/api/avatar", json={"avatar": PNG}).status_code == 401

    def test_upload_and_read(self, alice):
        resp = alice.post("/api/avatar", json={"avatar": PNG})

        assert resp.status_code == 200
        assert resp.json()["success"] is True
        assert alice.get("/api/avatar").json() == {"avatar": PNG}

    def test_none_by_default(self, alice):
        assert alice.get("/api/avatar").json() == {"avatar": None}

    def test_url(self, alice):
        assert alice.post("/api/avatar", json={"avatar": "https://example.com/me.png"}).status_code == 200
        assert alice.get("/api/avatar").json()["avatar"] == "https://example.com/me.png"

    @pytest.mark.parametrize("avatar", [
        "ftp://example.com/me.png",
        "just text",
        "data:image/png;base64,",
        "data:image/png;base64,@@@not-base64@@@",
        "https://",
    ])
    def test_rejects_bad_formats(self, alice, avatar):
        resp = alice.post("/api/avatar", json={"avatar": avatar})
        assert resp.status_code == 400
        assert "error" in resp.json()

    def test_rejects_oversized(self, alice, monkeypatch):
        monkeypatch.setattr(settings, "AVATAR_MAX_BYTES", 16)
        assert alice.post("/api/avatar", json={"avatar": PNG}).status_code == 400

    def test_other_users_avatar_is_readable(self, alice, bob):
        bob.post("/api/avatar", json={"avatar": PNG})
        assert alice.get("/api/avatar", params={"user": "bob"}).json() == {"avatar": PNG}

    def test_cannot_edit_other_user(self, alice, bob):
        resp = alice.post("/api/avatar", json={"avatar": PNG, "targetUser": "bob"})
        assert resp.status_code == 403
        assert alice.delete("/api/avatar", params={"user": "bob"}).status_code == 403

    def test_privileged_can_edit_other_user(self, alice, make_client):
        owner = make_client()
        login(owner, OWNER, OWNER_PASSWORD)

        assert owner.post("/api/avatar", json={"avatar": PNG, "targetUser": "alice"}).status_code == 200
        assert alice.get("/api/avatar").json() == {"avatar": PNG}
        assert owner.delete("/api/avatar", params={"user": "alice"}).status_code == 200
        assert alice.get("/api/avatar").json() == {"avatar": None}

    def test_admin_from_config(self, alice, bob, db):
        set_admin_config(db, AdminConfig.model_validate({"UserConfig": {"Users": [{"username": "bob", "role": "admin"}]}}))
        assert bob.post("/api/avatar", json={"avatar": PNG, "targetUser": "alice"}).status_code == 200

    def test_unknown_target(self, make_client):
        owner = make_client()
        login(owner, OWNER, OWNER_PASSWORD)
        resp = owner.post("/api/avatar", json={"avatar": PNG, "targetUser": "nobody"})
        assert resp.status_code == 404


class TestPublicConfig:

    def test_defaults(self, client):
        assert client.get("/api/config").json() == {"EnableChat": True}

    def test_from_admin_config(self, client, db):
        set_admin_config(db, AdminConfig.model_validate({"SiteConfig": {"EnableChat": False, "SiteName": "x"}}))
        assert client.get("/api/config").json() == {"EnableChat": False}

    def test_corrupt_config_degrades(self, client, db):
        db.add(AdminConfigRow(id=1, config="{not json"))
        db.commit()

        resp = client.get("/api/config")
        assert resp.status_code == 200
        assert resp.json() == {"EnableChat": True}


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}

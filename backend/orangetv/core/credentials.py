"""
Session credential codec.

The credential is a percent-encoded JSON object:

    {"role": ..., "username": ..., "signature": ..., "timestamp": ...}

`username`, `signature` (hex HMAC-SHA256 of the username keyed with the
server secret) and `timestamp` (epoch milliseconds) are only present when a
username is known. In shared-password mode there is no username and the
credential carries the shared secret itself as `password`.

The codec does not enforce expiry; the cookie lifetime does.
"""
from __future__ import annotations

import hashlib
import hmac
import json
import time
from dataclasses import dataclass
from urllib.parse import quote, unquote

from orangetv.core.errors import MalformedCredential, Unauthorized

ROLES = ("owner", "admin", "user")


@dataclass(frozen=True)
class SessionClaims:
    role: str
    username: str | None = None
    password: str | None = None
    signature: str | None = None
    timestamp: int | None = None


class CredentialCodec:
    def __init__(self, secret: str):
        self.secret = secret

    def sign(self, username: str) -> str:
        if not self.secret:
            raise RuntimeError("Session signing secret is not configured")
        return hmac.new(
            self.secret.encode("utf-8"),
            username.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

    def issue(
        self,
        role: str = "user",
        username: str | None = None,
        include_secret: bool = False,
        shared_secret: str | None = None,
    ) -> str:
        if role not in ROLES:
            raise ValueError(f"Unknown role: {role}")

        data: dict = {"role": role}
        if include_secret and shared_secret:
            data["password"] = shared_secret
        if username:
            data["username"] = username
            data["signature"] = self.sign(username)
            data["timestamp"] = int(time.time() * 1000)

        return quote(json.dumps(data, separators=(",", ":")), safe="")

    def decode(self, token: str) -> SessionClaims:
        """Decode without checking authenticity."""
        if not token or not isinstance(token, str):
            raise MalformedCredential()
        try:
            data = json.loads(unquote(token, errors="strict"))
        except (ValueError, UnicodeDecodeError):
            raise MalformedCredential()
        if not isinstance(data, dict):
            raise MalformedCredential()

        role = data.get("role", "user")
        username = data.get("username")
        password = data.get("password")
        signature = data.get("signature")
        timestamp = data.get("timestamp")

        if role not in ROLES:
            raise MalformedCredential()
        for value in (username, password, signature):
            if value is not None and not isinstance(value, str):
                raise MalformedCredential()
        if timestamp is not None and (isinstance(timestamp, bool) or not isinstance(timestamp, int)):
            raise MalformedCredential()

        return SessionClaims(
            role=role,
            username=username or None,
            password=password,
            signature=signature,
            timestamp=timestamp,
        )

    def parse(self, token: str) -> SessionClaims:
        """
        Decode and verify a credential.

        Raises:
            MalformedCredential: token cannot be decoded
            Unauthorized: signature or shared secret does not match
        """
        claims = self.decode(token)

        if claims.username:
            if not claims.signature or not self.secret:
                raise Unauthorized("Invalid session credential")
            expected = self.sign(claims.username)
            if not hmac.compare_digest(claims.signature.encode("utf-8"), expected.encode("utf-8")):
                raise Unauthorized("Invalid session credential")
            return claims

        # Handle-less credential: only valid if it carries the shared secret
        if not self.secret or claims.password is None:
            raise Unauthorized("Invalid session credential")
        if not hmac.compare_digest(claims.password.encode("utf-8"), self.secret.encode("utf-8")):
            raise Unauthorized("Invalid session credential")
        return claims

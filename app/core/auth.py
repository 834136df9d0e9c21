from __future__ import annotations

import base64
import hashlib
import hmac
import json
import secrets
import time
from dataclasses import dataclass

from fastapi import HTTPException, Request, status

from app.core.config import settings

PBKDF2_ROUNDS = 120_000


@dataclass
class SessionUser:
    user_id: int
    username: str
    name: str


def _b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64url_decode(token: str) -> bytes:
    padding = "=" * (-len(token) % 4)
    return base64.urlsafe_b64decode((token + padding).encode("ascii"))


def _sign(payload_b64: str) -> str:
    return hmac.new(settings.auth_secret.encode("utf-8"), payload_b64.encode("utf-8"), hashlib.sha256).hexdigest()


def hash_password(password: str, salt: str | None = None) -> tuple[str, str]:
    if not password:
        raise ValueError("Password cannot be empty")
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), PBKDF2_ROUNDS)
    return digest.hex(), salt


def verify_password(password: str, expected_hash: str, salt: str) -> bool:
    try:
        calculated, _ = hash_password(password, salt=salt)
    except ValueError:
        return False
    return hmac.compare_digest(calculated, expected_hash)


def create_session_token(*, user_id: int, username: str, name: str, now: int | None = None) -> str:
    issued = int(time.time()) if now is None else now
    payload = {
        "uid": user_id,
        "usr": username,
        "nam": name,
        "iat": issued,
        "exp": issued + int(settings.auth_session_hours * 3600),
    }
    payload_b64 = _b64url_encode(json.dumps(payload, separators=(",", ":")).encode("utf-8"))
    return payload_b64 + "." + _sign(payload_b64)


def parse_session_token(token: str | None) -> SessionUser | None:
    if not token or "." not in token:
        return None
    payload_b64, sig = token.split(".", 1)
    if not hmac.compare_digest(sig.encode("utf-8"), _sign(payload_b64).encode("utf-8")):
        return None
    try:
        payload = json.loads(_b64url_decode(payload_b64).decode("utf-8"))
    except (ValueError, UnicodeDecodeError):
        return None
    if not isinstance(payload, dict):
        return None
    try:
        exp = int(payload.get("exp", 0))
        uid = int(payload.get("uid"))
    except (TypeError, ValueError):
        return None
    if exp <= int(time.time()):
        return None
    usr = str(payload.get("usr", "")).strip()
    if not usr:
        return None
    return SessionUser(user_id=uid, username=usr, name=str(payload.get("nam", "")))


def token_from_request(request: Request) -> str | None:
    header = request.headers.get("authorization") or ""
    if header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return request.cookies.get(settings.auth_cookie_name)


def get_current_user(request: Request) -> SessionUser:
    user = getattr(request.state, "user", None)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return user

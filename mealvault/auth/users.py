from __future__ import annotations

from typing import Any

import bcrypt

_users: dict[str, dict[str, Any]] = {}


def _hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode(), bcrypt.gensalt()).decode()


def _verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode(), hashed.encode())


def register_user(username: str, password: str, user_id: str) -> None:
    """Add or replace a login mapped to a store ``user_id``."""
    _users[username] = {"password_hash": _hash_password(password), "user_id": user_id}


def _seed_users() -> None:
    """Pre-seed demo logins matching the sample dataset on import."""
    register_user("somchai", "somchai123", "U0001")
    register_user("malee", "malee123", "U0002")
    register_user("newbie", "newbie123", "U0003")


def authenticate(username: str, password: str) -> dict[str, Any] | None:
    """Verify credentials. Returns ``{username, user_id}`` or ``None``."""
    record = _users.get(username)
    if record and _verify_password(password, record["password_hash"]):
        return {"username": username, "user_id": record["user_id"]}
    return None


_seed_users()

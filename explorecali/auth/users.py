from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

import bcrypt

ROLE_USER = "user"
ROLE_ADMIN = "admin"

READ = "read"
WRITE = "write"

# Reads are open to every role, writes to admins only
ROLE_ACCESS: dict[str, frozenset[str]] = {
    ROLE_USER: frozenset({READ}),
    ROLE_ADMIN: frozenset({READ, WRITE}),
}

DEMO_ACCOUNTS: tuple[tuple[str, str, str], ...] = (
    ("user", "password", ROLE_USER),
    ("admin", "admin123", ROLE_ADMIN),
)


def can(role: str | None, access: str) -> bool:
    return access in ROLE_ACCESS.get(role or "", frozenset())


@dataclass(frozen=True)
class Account:
    username: str
    password_hash: bytes
    role: str

    def to_session(self) -> dict[str, Any]:
        return {"username": self.username, "role": self.role}


class UserStore:
    """In-memory accounts, hashed with bcrypt when the store is built."""

    def __init__(self, accounts: Iterable[tuple[str, str, str]] = DEMO_ACCOUNTS) -> None:
        self._accounts: dict[str, Account] = {}
        for username, password, role in accounts:
            if role not in ROLE_ACCESS:
                raise ValueError(f"Unknown role {role!r} for {username!r}")
            self._accounts[username] = Account(
                username=username,
                password_hash=bcrypt.hashpw(password.encode(), bcrypt.gensalt()),
                role=role,
            )

    def authenticate(self, username: str, password: str) -> dict[str, Any] | None:
        """Verify credentials. Returns ``{username, role}`` or ``None``."""
        account = self._accounts.get(username)
        if account and bcrypt.checkpw(password.encode(), account.password_hash):
            return account.to_session()
        return None

from __future__ import annotations

import hashlib
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

UserHasher = Callable[[str], str]


@dataclass(frozen=True)
class UserIdentity:
    """Identity of the signed-in user, I{e.g.} C{"user:default/jane"}."""

    user_entity_ref: str


class IdentityProvider(Protocol):
    """Resolves the identity of the current user."""

    async def get_identity(self) -> UserIdentity: ...


class StaticIdentityProvider:
    """Identity provider returning a fixed identity."""

    def __init__(self, user_entity_ref: str) -> None:
        self._identity = UserIdentity(user_entity_ref)

    async def get_identity(self) -> UserIdentity:
        return self._identity


def hash_user_ref(value: str) -> str:
    """One-way hash of a user reference; hex encoded SHA-256 digest.

    Keeps personally identifiable information out of the analytics
    backend while still grouping hits of the same user.
    """
    return hashlib.sha256(value.encode("utf-8")).hexdigest()

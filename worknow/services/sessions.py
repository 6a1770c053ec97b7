"""Redis-backed session records keyed by ``session:{id}``."""

from __future__ import annotations

from typing import Any

from worknow.services.cache_store import CacheStore

SESSION_PREFIX = "session:"
SESSION_TTL_SECONDS = 86400


def session_key(session_id: str) -> str:
    return f"{SESSION_PREFIX}{session_id}"


class SessionStore:
    """Session payloads with a fixed TTL.

    No renewal, rotation or write protection: the last writer wins.
    """

    def __init__(self, store: CacheStore, *, ttl_seconds: int = SESSION_TTL_SECONDS) -> None:
        self.store = store
        self.ttl_seconds = ttl_seconds

    async def set_session(self, session_id: str, payload: Any) -> bool:
        return await self.store.set(session_key(session_id), payload, self.ttl_seconds)

    async def get_session(self, session_id: str) -> Any:
        return await self.store.get(session_key(session_id))

    async def delete_session(self, session_id: str) -> bool:
        return await self.store.delete(session_key(session_id))

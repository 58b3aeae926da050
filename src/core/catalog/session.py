"""
In-memory session store for catalog conversations.
Built on aiogram FSM storage, with one lock per active conversation.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from aiogram.fsm.storage.base import BaseStorage, StorageKey
from aiogram.fsm.storage.memory import MemoryStorage

from src.core.catalog.models import Draft, Session
from src.core.catalog.states import resolve_state


class UnknownStepError(Exception):
    """Stored step name does not belong to CatalogStates."""

    def __init__(self, step: str):
        super().__init__(f"Unknown step: {step}")
        self.step = step


class SessionStore:
    """Per-conversation step and draft. No expiry: a session lives until deleted."""

    def __init__(self, storage: Optional[BaseStorage] = None, bot_id: int = 0):
        self.storage = storage or MemoryStorage()
        self.bot_id = bot_id
        self._locks: dict[int, asyncio.Lock] = {}
        # Holders and waiters per lock; the lock is dropped when this reaches zero
        self._lock_users: dict[int, int] = {}

    def _key(self, conversation_id: int) -> StorageKey:
        return StorageKey(bot_id=self.bot_id, chat_id=conversation_id, user_id=conversation_id)

    def _memory_records(self) -> Optional[dict]:
        """Backing dict of a MemoryStorage, None for other storages."""
        if isinstance(self.storage, MemoryStorage):
            return self.storage.storage
        return None

    async def get(self, conversation_id: int) -> Optional[Session]:
        """
        Load the session of a conversation.

        Returns:
            Session, or None when the conversation is idle

        Raises:
            UnknownStepError: if the stored step is not a CatalogStates member
        """
        key = self._key(conversation_id)
        records = self._memory_records()
        if records is not None and key not in records:
            return None

        name = await self.storage.get_state(key)
        if name is None:
            return None

        step = resolve_state(name)
        if step is None:
            raise UnknownStepError(name)

        data = await self.storage.get_data(key)
        return Session(step=step, draft=Draft.from_dict(data))

    async def set(self, conversation_id: int, session: Session) -> None:
        key = self._key(conversation_id)
        await self.storage.set_state(key, session.step)
        await self.storage.set_data(key, session.draft.to_dict())

    async def delete(self, conversation_id: int) -> None:
        key = self._key(conversation_id)
        records = self._memory_records()
        if records is not None:
            records.pop(key, None)
            return
        await self.storage.set_state(key, None)
        await self.storage.set_data(key, {})

    @asynccontextmanager
    async def lock(self, conversation_id: int) -> AsyncGenerator[None, None]:
        """Serialize work on one conversation. Other conversations are not blocked."""
        lock = self._locks.setdefault(conversation_id, asyncio.Lock())
        self._lock_users[conversation_id] = self._lock_users.get(conversation_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[conversation_id] -= 1
            if not self._lock_users[conversation_id]:
                del self._lock_users[conversation_id]
                del self._locks[conversation_id]

    async def close(self) -> None:
        await self.storage.close()
        self._locks.clear()
        self._lock_users.clear()

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        self.users = 0


class DocumentLockRegistry:
    """
    One ``asyncio.Lock`` per document id, so operations on a document run one at a time.

    Entries are reference counted and dropped when their last user leaves, so
    the registry only holds ids that are currently being worked on.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, _Entry] = {}

    @asynccontextmanager
    async def lock_for(self, document_id: str) -> AsyncIterator[None]:
        entry = self._entries.get(document_id)
        if entry is None:
            entry = self._entries[document_id] = _Entry()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                del self._entries[document_id]

    def __len__(self) -> int:
        return len(self._entries)

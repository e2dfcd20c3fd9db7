"""Per-identity serialisation of message handling."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field


@dataclass
class _Entry:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class IdentityLocks:
    """
    One asyncio.Lock per identity, created on demand.

    Messages from the same identity are processed one at a time;
    different identities never wait on each other. An entry is dropped
    as soon as nobody holds or waits on it, so the map only ever holds
    identities with a message in flight.
    """

    def __init__(self) -> None:
        self._entries: dict[str, _Entry] = {}

    @asynccontextmanager
    async def hold(self, identity: str) -> AsyncIterator[None]:
        entry = self._entries.setdefault(identity, _Entry())
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                self._entries.pop(identity, None)

    def __len__(self) -> int:
        return len(self._entries)

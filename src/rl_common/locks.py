"""Per-user serialization of balance-affecting operations.

The in-process asyncio.Lock orders concurrent requests for the same user;
the row lock taken by LedgerRepository.lock_user (SELECT ... FOR UPDATE)
does the same across worker processes. Both are held until commit.

A lock lives only while someone holds or waits for it, so ids that never
resolve to a user don't accumulate.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class UserLocks:
    def __init__(self) -> None:
        self._locks: dict[int, asyncio.Lock] = {}
        self._users: dict[int, int] = {}  # holders + waiters per user

    @asynccontextmanager
    async def for_user(self, user_id: int) -> AsyncIterator[None]:
        lock = self._locks.setdefault(user_id, asyncio.Lock())
        self._users[user_id] = self._users.get(user_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[user_id] -= 1
            if self._users[user_id] == 0:
                del self._users[user_id]
                del self._locks[user_id]

    def __len__(self) -> int:
        return len(self._locks)


_user_locks: UserLocks | None = None


def get_user_locks() -> UserLocks:
    global _user_locks  # noqa: PLW0603
    if _user_locks is None:
        _user_locks = UserLocks()
    return _user_locks

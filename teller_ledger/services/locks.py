"""
Per-account request serialization.

Every balance check is read-then-decide-then-write. Two requests
debiting the same account must not interleave between the read
and the commit, or both can pass the balance check. The action
dispatcher holds one lock per account number (or identity key)
from before the first read until after commit.

Locks are taken in sorted order so two transfers in opposite
directions between the same pair of accounts cannot deadlock.
Across processes, the SELECT ... FOR UPDATE on the account rows
gives the same guarantee on PostgreSQL.
"""

import threading
from contextlib import ExitStack, contextmanager


class AccountLockRegistry:
    """
    One lock per key, kept only while some request holds or waits
    for it. Entries are reference-counted and dropped when the
    last user leaves, so unknown account numbers do not pile up.
    """

    def __init__(self):
        self._guard = threading.Lock()
        # key -> [lock, number of requests holding or waiting]
        self._locks: dict[str, list] = {}

    def _checkout(self, key: str) -> threading.Lock:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = [threading.Lock(), 0]
            entry[1] += 1
            return entry[0]

    def _checkin(self, key: str) -> None:
        with self._guard:
            entry = self._locks[key]
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[key]

    def active_keys(self) -> list[str]:
        with self._guard:
            return sorted(self._locks)

    @contextmanager
    def hold(self, *keys: str):
        """Acquire the locks for all keys, in sorted order, for the block."""
        with ExitStack() as stack:
            for key in sorted(set(keys)):
                lock = self._checkout(key)
                # Unwinds after the lock itself is released
                stack.callback(self._checkin, key)
                stack.enter_context(lock)
            yield


# Shared by every request handled in this process
account_locks = AccountLockRegistry()

"""Per-scope write locks for fixture and standings rewrites."""

from __future__ import annotations

import threading
import weakref
from contextlib import contextmanager
from typing import Iterator, Tuple


class _ScopeLock:
    """Holder so the registry can reference the RLock weakly."""

    def __init__(self) -> None:
        self.lock = threading.RLock()


_registry_lock = threading.Lock()
# Entries vanish once no writer holds a reference
_scope_locks: 'weakref.WeakValueDictionary[Tuple[str, str], _ScopeLock]' = weakref.WeakValueDictionary()


def _lock_for(kind: str, scope_id: str) -> _ScopeLock:
    key = (kind, str(scope_id))
    with _registry_lock:
        holder = _scope_locks.get(key)
        if holder is None:
            holder = _ScopeLock()
            _scope_locks[key] = holder
        return holder


@contextmanager
def scope_lock(kind: str, scope_id: str) -> Iterator[None]:
    """
    Serialize writers of one scope ('division' or 'cup') within this process.

    Fixture regeneration and standings recalculation for the same scope take
    the same lock. The lock is re-entrant so a regeneration may recalculate
    the table it just reset. Cross-process exclusion comes from the
    ``SELECT ... FOR UPDATE`` the services issue on the scope row.
    """
    holder = _lock_for(kind, scope_id)
    with holder.lock:
        yield


__all__ = ['scope_lock']

"""
Hash-consing cache.

One slot per distinct content (structural ``__eq__`` / ``__hash__``), shared by every owner
through an opaque ``CacheRef``.  Slots live in a slab (a list indexed by the ref) and carry a
usage count:

  cache(content)   -> (ref, inserted); an equal entry is reused and its count incremented,
                      otherwise the content is stored with count 1
  reg / dereg      +1 / -1 on the count; count 0 makes the slot *eligible* for reclamation
  rehash(ref)      re-bucket a slot after its content was mutated (only while nobody else
                   can observe the content)

Reclamation is deferred: unused slots are reclaimed, lowest activity first, only when the
number of live slots exceeds ``max_size`` (or on ``clean(force=True)``).  A reclaimed index
goes to a free list and is reused with a bumped generation, so a stale ref is detected instead
of silently reading someone else's content.

Every public operation runs under one re-entrant lock.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, Generic, List, Optional, Tuple, TypeVar

from .config import load_config
from .errors import CacheError, StaleReferenceError

_logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, order=True)
class CacheRef:
    index: int
    generation: int

    def __str__(self) -> str:
        return f"#{self.index}.{self.generation}"


@dataclass
class _Slot(Generic[T]):
    content: T
    usage: int
    key_hash: int
    generation: int
    activity: float = 0.0


class Cache(Generic[T]):
    """
    Args:
        max_size: live-slot threshold above which unused slots are reclaimed
                  (default from ``EXACTPOLY_CACHE_MAX_SIZE``)
        activity_increment: added to a slot's activity by ``strengthen_activity``
        on_reclaim: called with the content of every reclaimed slot and of every discarded
                    duplicate, so the owner can release what the content holds
        logger: injected logger (module logger by default)
    """

    def __init__(
        self,
        max_size: Optional[int] = None,
        *,
        activity_increment: float = 1.0,
        on_reclaim: Optional[Callable[[T], None]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        if max_size is None:
            max_size = load_config().cache_max_size
        if not isinstance(max_size, int) or max_size < 1:
            raise ValueError(f"max_size must be int >= 1, got {max_size!r}")
        self._max_size = max_size
        self._activity_increment = float(activity_increment)
        self._on_reclaim = on_reclaim
        self._log = logger if logger is not None else _logger
        self._slots: List[Optional[_Slot[T]]] = []
        self._generations: List[int] = []
        self._free: List[int] = []
        self._buckets: Dict[int, List[int]] = {}
        self._unused: Dict[int, None] = {}  # insertion-ordered set
        self._live = 0
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # internals (lock held)
    # ------------------------------------------------------------------

    def _slot(self, ref: CacheRef) -> _Slot[T]:
        if not isinstance(ref, CacheRef):
            raise CacheError(f"expected CacheRef, got {type(ref).__name__}")
        if ref.index < 0 or ref.index >= len(self._slots):
            raise StaleReferenceError(f"{ref} is out of range")
        slot = self._slots[ref.index]
        if slot is None or slot.generation != ref.generation:
            raise StaleReferenceError(f"{ref} refers to a reclaimed slot")
        return slot

    def _find(self, content: T, key_hash: int) -> Optional[int]:
        for idx in self._buckets.get(key_hash, ()):
            slot = self._slots[idx]
            if slot is not None and slot.content == content:
                return idx
        return None

    def _ref(self, idx: int) -> CacheRef:
        return CacheRef(idx, self._generations[idx])

    def _reclaim(self, idx: int) -> None:
        slot = self._slots[idx]
        if slot is None:
            return
        bucket = self._buckets.get(slot.key_hash, [])
        if idx in bucket:
            bucket.remove(idx)
            if not bucket:
                del self._buckets[slot.key_hash]
        self._slots[idx] = None
        self._generations[idx] += 1
        self._free.append(idx)
        self._live -= 1
        self._unused.pop(idx, None)
        self._log.debug("cache: reclaimed slot %s", idx)
        if self._on_reclaim is not None:
            self._on_reclaim(slot.content)

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------

    def cache(self, content: T, update: Optional[Callable[[T, T], None]] = None) -> Tuple[CacheRef, bool]:
        """
        Store ``content`` or reuse the slot holding equal content.

        Returns (ref, inserted).  The caller owns one registration on ``ref`` either way.
        On reuse, ``update(existing, content)`` runs first (if given) and ``content`` is then
        discarded.
        """
        with self._lock:
            key_hash = hash(content)
            idx = self._find(content, key_hash)
            if idx is not None:
                slot = self._slots[idx]
                if update is not None:
                    update(slot.content, content)
                slot.usage += 1
                self._unused.pop(idx, None)
                if self._on_reclaim is not None and slot.content is not content:
                    self._on_reclaim(content)
                return self._ref(idx), False

            if self._free:
                idx = self._free.pop()
                self._slots[idx] = _Slot(content, 1, key_hash, self._generations[idx])
            else:
                idx = len(self._slots)
                self._generations.append(0)
                self._slots.append(_Slot(content, 1, key_hash, 0))
            self._buckets.setdefault(key_hash, []).append(idx)
            self._live += 1
            ref = self._ref(idx)
            if self._live > self._max_size:
                self.clean()
            return ref, True

    def lookup(self, content: T) -> Optional[CacheRef]:
        """Ref of the slot holding content equal to ``content``, without registering."""
        with self._lock:
            idx = self._find(content, hash(content))
            return None if idx is None else self._ref(idx)

    def get(self, ref: CacheRef) -> T:
        with self._lock:
            return self._slot(ref).content

    __getitem__ = get

    def reg(self, ref: CacheRef) -> None:
        with self._lock:
            slot = self._slot(ref)
            slot.usage += 1
            self._unused.pop(ref.index, None)

    def dereg(self, ref: CacheRef) -> None:
        with self._lock:
            slot = self._slot(ref)
            if slot.usage <= 0:
                raise CacheError(f"dereg of {ref} whose usage count is already 0")
            slot.usage -= 1
            if slot.usage == 0:
                self._unused[ref.index] = None
                if self._live > self._max_size:
                    self.clean()

    def usage_count(self, ref: CacheRef) -> int:
        with self._lock:
            return self._slot(ref).usage

    def rehash(self, ref: CacheRef) -> None:
        """
        Move a slot to the bucket of its content's current hash.

        Legal only while the mutated content is not visible to any other consumer; colliding
        with another slot's equal content is a contract violation.
        """
        with self._lock:
            slot = self._slot(ref)
            new_hash = hash(slot.content)
            other = self._find(slot.content, new_hash)
            if other is not None and other != ref.index:
                raise CacheError(f"rehash of {ref} collides with slot {other}")
            bucket = self._buckets.get(slot.key_hash, [])
            if ref.index in bucket:
                bucket.remove(ref.index)
                if not bucket:
                    del self._buckets[slot.key_hash]
            slot.key_hash = new_hash
            self._buckets.setdefault(new_hash, []).append(ref.index)

    def strengthen_activity(self, ref: CacheRef) -> None:
        """Usage hint: slots with higher activity are reclaimed last."""
        with self._lock:
            self._slot(ref).activity += self._activity_increment

    def clean(self, force: bool = False) -> int:
        """Reclaim unused slots (all of them if ``force``); returns how many were reclaimed."""
        reclaimed = 0
        with self._lock:
            while self._unused and (force or self._live > self._max_size):
                idx = min(self._unused, key=lambda i: self._slots[i].activity)
                # reclaiming may release owned refs and grow ``_unused``; the loop picks those up
                self._reclaim(idx)
                reclaimed += 1
        if reclaimed:
            self._log.debug("cache: clean reclaimed %s slot(s), %s live", reclaimed, self._live)
        return reclaimed

    def __len__(self) -> int:
        with self._lock:
            return self._live

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                "live": self._live,
                "unused": len(self._unused),
                "free": len(self._free),
                "buckets": len(self._buckets),
                "max_size": self._max_size,
            }

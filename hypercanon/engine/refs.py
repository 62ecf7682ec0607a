"""Cycle-safe references and containers.

A ``SafeSet`` holds ``HashReference`` wrappers instead of raw values, so that
containers which (transitively) contain themselves can still be hashed,
compared and printed. Each reference carries a reentrancy flag: when hashing
a value requires hashing the same reference again further down the call
stack, the inner call returns a fixed stand-in instead of recursing.

Thread Safety:
    Reference ids come from an ``IdAllocator`` guarded by a lock. The nesting
    depth, depth limit and "already rendered" markers are thread-local, so
    independent containers can be hashed from different threads. A single
    container must not be mutated concurrently.
"""

from __future__ import annotations

import logging
import threading
import weakref
from collections.abc import Callable, Generator, Iterable, Iterator
from contextlib import contextmanager
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

# Hash used when the referent is gone or its own hash failed.
FALLBACK_HASH = 0x5AFE
# Stand-in returned on reentry and beyond the depth limit.
REENTRANT_HASH = 0x2EE7
EMPTY_SET_HASH = 0xE3B7
# Salt for folding a member-hash sum into a machine-size hash.
_FOLD_SALT = 0x5AFE5E7


class IdAllocator:
    """Monotonically increasing id source shared by references."""

    def __init__(self, start: int = 0) -> None:
        self._next = start
        self._lock = threading.Lock()

    def allocate(self) -> int:
        with self._lock:
            value = self._next
            self._next += 1
            return value

    @property
    def issued(self) -> int:
        """Next id that will be handed out."""
        with self._lock:
            return self._next


DEFAULT_ALLOCATOR = IdAllocator()

_hashing = threading.local()
_rendering = threading.local()


def _depth() -> int:
    return getattr(_hashing, "depth", 0)


def _limit() -> int | None:
    return getattr(_hashing, "limit", None)


@contextmanager
def bounded_hashing(max_depth: int | None) -> Generator[None, None, None]:
    """Limit how deeply reference hashes may nest on this thread.

    Past the limit a reference hashes to ``REENTRANT_HASH`` without looking
    at its referent. ``None`` removes the limit. The previous limit is
    restored on exit, so scopes nest.

    Raises:
        ValueError: If max_depth is negative
    """
    if max_depth is not None and max_depth < 0:
        raise ValueError(f"max_depth must be >= 0 or None, got: {max_depth}")
    previous = _limit()
    _hashing.limit = max_depth
    try:
        yield
    finally:
        _hashing.limit = previous


class HashReference(Generic[T]):
    """A non-owning, reentrancy-guarded handle on a value.

    Attributes:
        id: Unique creation-ordered id from the allocator

    Equality holds when both computed hashes match and the referents compare
    equal, so two references to equal atoms are interchangeable even though
    their ids differ.
    """

    __slots__ = ("id", "_ref", "_hashing", "__weakref__")

    def __init__(self, value: T | None, *, allocator: IdAllocator | None = None) -> None:
        self.id = (allocator or DEFAULT_ALLOCATOR).allocate()
        self._hashing = False
        if value is None:
            self._ref: Callable[[], T | None] = _none
        else:
            try:
                self._ref = weakref.ref(value)
            except TypeError:
                # int, str, tuple and friends: immutable atoms, hold directly
                self._ref = _Strong(value)

    @property
    def value(self) -> T | None:
        """The referent, or None if it is no longer alive."""
        return self._ref()

    @property
    def is_hashing(self) -> bool:
        return self._hashing

    def __hash__(self) -> int:
        if self._hashing:
            return REENTRANT_HASH
        value = self._ref()
        if value is None:
            return FALLBACK_HASH
        limit = _limit()
        depth = _depth()
        if limit is not None and depth >= limit:
            return REENTRANT_HASH

        self._hashing = True
        _hashing.depth = depth + 1
        try:
            return hash(value)
        except Exception:
            logger.warning(
                "Hash of %s (reference %d) failed, using fallback",
                type(value).__name__,
                self.id,
                exc_info=True,
            )
            return FALLBACK_HASH
        finally:
            _hashing.depth = depth
            self._hashing = False

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HashReference):
            return NotImplemented
        if self is other:
            return True
        return self.value == other.value and hash(self) == hash(other)

    def __repr__(self) -> str:
        return f"HashReference(id={self.id}, value={self.value!r})"


class _Strong:
    __slots__ = ("value",)

    def __init__(self, value: Any) -> None:
        self.value = value

    def __call__(self) -> Any:
        return self.value


def _none() -> None:
    return None


@contextmanager
def _render_scope() -> Generator[set[int], None, None]:
    """Share one "already rendered" id set across a top-level render."""
    seen: set[int] | None = getattr(_rendering, "seen", None)
    if seen is not None:
        yield seen
        return
    seen = set()
    _rendering.seen = seen
    try:
        yield seen
    finally:
        _rendering.seen = None


class SafeSet(Generic[T]):
    """A set of values stored behind ``HashReference`` wrappers.

    Supports the usual set operations, iterates over the referents (``None``
    for collected ones) and can contain itself, directly or through other
    containers, without hashing or printing forever.

    Membership is checked by scanning the held references: referents may be
    mutable (other containers), so their hash is not a stable key.

    Example:
        a = SafeSet()
        b = SafeSet(a)
        a.add(b)
        hash(a), repr(a)  # both terminate
    """

    __slots__ = ("_refs", "_allocator", "__weakref__")

    def __init__(self, *values: T, allocator: IdAllocator | None = None) -> None:
        self._refs: dict[int, HashReference[T]] = {}
        self._allocator = allocator
        self.update(values)

    @classmethod
    def from_iterable(
        cls, values: Iterable[T], *, allocator: IdAllocator | None = None
    ) -> SafeSet[T]:
        result: SafeSet[T] = cls(allocator=allocator)
        result.update(values)
        return result

    def _wrap(self, value: T | None) -> HashReference[T]:
        return HashReference(value, allocator=self._allocator)

    def _find(self, probe: HashReference[T]) -> HashReference[T] | None:
        for ref in self._refs.values():
            if ref == probe:
                return ref
        return None

    # ========== Mutation ==========

    def add(self, value: T | None) -> bool:
        """Add a value. Returns True if the set changed."""
        ref = self._wrap(value)
        if self._find(ref) is not None:
            return False
        self._refs[ref.id] = ref
        return True

    def update(self, values: Iterable[T | None]) -> bool:
        """Add every value. Returns True if the set changed."""
        changed = False
        for value in values:
            changed = self.add(value) or changed
        return changed

    def discard(self, value: T | None) -> bool:
        """Remove a value if present. Returns True if it was removed."""
        found = self._find(self._wrap(value))
        if found is None:
            return False
        del self._refs[found.id]
        return True

    def remove(self, value: T | None) -> None:
        """Remove a value.

        Raises:
            KeyError: If the value is not in the set
        """
        if not self.discard(value):
            raise KeyError(value)

    def difference_update(self, values: Iterable[T | None]) -> bool:
        """Remove every given value. Returns True if the set changed."""
        changed = False
        for value in values:
            changed = self.discard(value) or changed
        return changed

    def intersection_update(self, values: Iterable[T | None]) -> bool:
        """Keep only values also present in ``values``. Returns True if changed."""
        keep = [self._wrap(v) for v in values]
        drop = [ref_id for ref_id, ref in self._refs.items() if ref not in keep]
        for ref_id in drop:
            del self._refs[ref_id]
        return bool(drop)

    def clear(self) -> None:
        self._refs.clear()

    # ========== Queries ==========

    def __contains__(self, value: object) -> bool:
        return self._find(self._wrap(value)) is not None  # type: ignore[arg-type]

    def issuperset(self, values: Iterable[T | None]) -> bool:
        return all(value in self for value in values)

    def __len__(self) -> int:
        return len(self._refs)

    def is_empty(self) -> bool:
        return not self._refs

    def __bool__(self) -> bool:
        return bool(self._refs)

    def __iter__(self) -> Iterator[T | None]:
        for ref in list(self._refs.values()):
            yield ref.value

    def references(self) -> list[HashReference[T]]:
        """The wrappers currently held, in insertion order."""
        return list(self._refs.values())

    def map(self, fn: Callable[[T], R]) -> SafeSet[R]:
        """Apply ``fn`` to every available value, collecting into a new SafeSet."""
        return SafeSet.from_iterable(
            (fn(value) for value in self if value is not None), allocator=self._allocator
        )

    # ========== Hashing & rendering ==========

    def __hash__(self) -> int:
        if not self._refs:
            return EMPTY_SET_HASH
        total = sum(hash(ref) for ref in list(self._refs.values()))
        return hash((_FOLD_SALT, total))

    # Containers are mutable and may contain themselves: only identity is safe.
    __eq__ = object.__eq__

    def __repr__(self) -> str:
        with _render_scope() as seen:
            parts = []
            for ref in list(self._refs.values()):
                if ref.id in seen:
                    parts.append(f"<<<{ref.id}>>>")
                else:
                    seen.add(ref.id)
                    parts.append(repr(ref.value))
            return "{" + ", ".join(parts) + "}"

    __str__ = __repr__


def safe_set_of(*values: T) -> SafeSet[T]:
    """Build a SafeSet from positional values."""
    return SafeSet(*values)

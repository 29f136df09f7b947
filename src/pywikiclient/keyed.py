"""Keyed collections used by entity snapshots.

Two families are provided: mutable builders, whose key is computed from each
item by :meth:`key_for_item`, and frozen views obtained from
:meth:`UnorderedKeyedCollection.freeze` (or the multi-valued counterpart).
A frozen view owns a private copy of the items, so later changes to the
builder it was made from are never visible through it.
"""

from abc import ABC, abstractmethod
from collections.abc import Collection, Hashable, Iterable, Iterator
from typing import Any, ClassVar, Generic, NoReturn, Self, TypeVar, final

from .errors import CollectionReadOnlyError, DuplicateKeyError

__all__ = (
    "UnorderedKeyedCollection",
    "UnorderedKeyedMultiCollection",
    "FrozenKeyedCollection",
    "FrozenKeyedMultiCollection",
)

_K = TypeVar("_K", bound=Hashable)
_V = TypeVar("_V")


class UnorderedKeyedCollection(ABC, Collection[_V], Generic[_K, _V]):
    """Single-valued collection indexed by a key computed from each item.

    Adding an item whose key is already present raises
    :class:`DuplicateKeyError`; use :meth:`set` to replace it instead.
    """

    __slots__: ClassVar = ("_items",)

    def __init__(self, items: Iterable[_V] = ()):
        self._items: dict[_K, _V] = {}
        for item in items:
            self.add(item)

    @abstractmethod
    def key_for_item(self, item: _V) -> _K: ...

    @property
    def is_read_only(self) -> bool:
        return False

    def __len__(self):
        return len(self._items)

    def __iter__(self) -> Iterator[_V]:
        return iter(self._items.values())

    def __contains__(self, item: object):
        try:
            key = self.key_for_item(item)  # type: ignore[arg-type]
        except (AttributeError, TypeError):
            return False
        return key in self._items and self._items[key] == item

    def __getitem__(self, key: _K) -> _V:
        return self._items[key]

    def __eq__(self, other: object):
        if isinstance(other, FrozenKeyedCollection):
            return other == self
        if not isinstance(other, UnorderedKeyedCollection):
            return NotImplemented
        return type(self) is type(other) and self._items == other._items

    def __repr__(self):
        return f"{type(self).__name__}({list(self._items.values())!r})"

    def contains_key(self, key: _K) -> bool:
        return key in self._items

    def get(self, key: _K, default: Any = None) -> _V | Any:
        return self._items.get(key, default)

    def keys(self):
        return self._items.keys()

    def add(self, item: _V) -> None:
        key = self.key_for_item(item)
        if key in self._items:
            raise DuplicateKeyError(key)
        self._items[key] = item

    def set(self, item: _V) -> None:
        """Add `item`, replacing any item that has the same key."""
        self._items[self.key_for_item(item)] = item

    def remove(self, item: _V) -> None:
        key = self.key_for_item(item)
        if self._items.get(key) != item:
            raise KeyError(key)
        del self._items[key]

    def pop(self, key: _K, *default: Any) -> _V | Any:
        return self._items.pop(key, *default)

    def clear(self) -> None:
        self._items.clear()

    def copy(self) -> Self:
        return type(self)(self)

    def freeze(self) -> "FrozenKeyedCollection[_K, _V]":
        return FrozenKeyedCollection(self.copy())


class UnorderedKeyedMultiCollection(ABC, Collection[_V], Generic[_K, _V]):
    """Multi-valued collection indexed by a key computed from each item.

    Values sharing one key keep their insertion order. Looking up a key
    returns a tuple, which is empty when nothing has that key.
    """

    __slots__: ClassVar = ("_items", "_count")

    def __init__(self, items: Iterable[_V] = ()):
        self._items: dict[_K, list[_V]] = {}
        self._count = 0
        for item in items:
            self.add(item)

    @abstractmethod
    def key_for_item(self, item: _V) -> _K: ...

    @property
    def is_read_only(self) -> bool:
        return False

    def __len__(self):
        return self._count

    def __iter__(self) -> Iterator[_V]:
        for values in self._items.values():
            yield from values

    def __contains__(self, item: object):
        try:
            key = self.key_for_item(item)  # type: ignore[arg-type]
        except (AttributeError, TypeError):
            return False
        return item in self._items.get(key, ())

    def __getitem__(self, key: _K) -> tuple[_V, ...]:
        return tuple(self._items.get(key, ()))

    def __eq__(self, other: object):
        if isinstance(other, FrozenKeyedMultiCollection):
            return other == self
        if not isinstance(other, UnorderedKeyedMultiCollection):
            return NotImplemented
        return type(self) is type(other) and self._items == other._items

    def __repr__(self):
        return f"{type(self).__name__}({list(self)!r})"

    def contains_key(self, key: _K) -> bool:
        return key in self._items

    def keys(self):
        return self._items.keys()

    def add(self, item: _V) -> None:
        self._items.setdefault(self.key_for_item(item), []).append(item)
        self._count += 1

    def remove(self, item: _V) -> None:
        key = self.key_for_item(item)
        values = self._items.get(key)
        if not values or item not in values:
            raise KeyError(key)
        values.remove(item)
        if not values:
            del self._items[key]
        self._count -= 1

    def remove_key(self, key: _K) -> tuple[_V, ...]:
        """Remove every item with `key` and return them."""
        values = self._items.pop(key, [])
        self._count -= len(values)
        return tuple(values)

    def clear(self) -> None:
        self._items.clear()
        self._count = 0

    def copy(self) -> Self:
        return type(self)(self)

    def freeze(self) -> "FrozenKeyedMultiCollection[_K, _V]":
        return FrozenKeyedMultiCollection(self.copy())


def _read_only(*_args: object, **_kwargs: object) -> NoReturn:
    raise CollectionReadOnlyError("collection is read-only")


@final
class FrozenKeyedCollection(Collection[_V], Generic[_K, _V]):
    """Read-only view produced by :meth:`UnorderedKeyedCollection.freeze`."""

    __slots__: ClassVar = ("_inner",)

    add = set = remove = pop = clear = _read_only

    def __init__(self, inner: UnorderedKeyedCollection[_K, _V]):
        self._inner = inner

    @property
    def is_read_only(self) -> bool:
        return True

    def __len__(self):
        return len(self._inner)

    def __iter__(self) -> Iterator[_V]:
        return iter(self._inner)

    def __contains__(self, item: object):
        return item in self._inner

    def __getitem__(self, key: _K) -> _V:
        return self._inner[key]

    def __eq__(self, other: object):
        if isinstance(other, FrozenKeyedCollection):
            return self._inner == other._inner
        if isinstance(other, UnorderedKeyedCollection):
            return self._inner == other
        return NotImplemented

    def __hash__(self):
        return hash(frozenset(self._inner.keys()))

    def __repr__(self):
        return f"{type(self).__name__}({list(self._inner)!r})"

    def contains_key(self, key: _K) -> bool:
        return self._inner.contains_key(key)

    def get(self, key: _K, default: Any = None) -> _V | Any:
        return self._inner.get(key, default)

    def keys(self):
        return self._inner.keys()

    def thaw(self) -> UnorderedKeyedCollection[_K, _V]:
        """Return a mutable copy of the items."""
        return self._inner.copy()


@final
class FrozenKeyedMultiCollection(Collection[_V], Generic[_K, _V]):
    """Read-only view produced by :meth:`UnorderedKeyedMultiCollection.freeze`."""

    __slots__: ClassVar = ("_inner",)

    add = remove = remove_key = clear = _read_only

    def __init__(self, inner: UnorderedKeyedMultiCollection[_K, _V]):
        self._inner = inner

    @property
    def is_read_only(self) -> bool:
        return True

    def __len__(self):
        return len(self._inner)

    def __iter__(self) -> Iterator[_V]:
        return iter(self._inner)

    def __contains__(self, item: object):
        return item in self._inner

    def __getitem__(self, key: _K) -> tuple[_V, ...]:
        return self._inner[key]

    def __eq__(self, other: object):
        if isinstance(other, FrozenKeyedMultiCollection):
            return self._inner == other._inner
        if isinstance(other, UnorderedKeyedMultiCollection):
            return self._inner == other
        return NotImplemented

    def __hash__(self):
        return hash(frozenset(self._inner.keys()))

    def __repr__(self):
        return f"{type(self).__name__}({list(self._inner)!r})"

    def contains_key(self, key: _K) -> bool:
        return self._inner.contains_key(key)

    def keys(self):
        return self._inner.keys()

    def thaw(self) -> UnorderedKeyedMultiCollection[_K, _V]:
        """Return a mutable copy of the items."""
        return self._inner.copy()

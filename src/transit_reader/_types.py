"""
Value types produced by the Transit reader.

Plain Transit data decodes to native Python values (None, bool, int, float,
str, bytes, list, dict). The classes here cover the semantic types Python has
no native spelling for, plus the Tag marker used during dispatch.
"""

from collections.abc import Hashable
from collections.abc import Iterator
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from typing import TypeAlias

# Recursive alias for everything read() can hand back; handler objects are Any
DecodedValue: TypeAlias = (
    str
    | int
    | float
    | bool
    | bytes
    | None
    | list["DecodedValue"]
    | dict[Any, "DecodedValue"]
    | Any
)


@dataclass(frozen=True, slots=True)
class Tag:
    """
    Marks a string of the form ``~#name`` during composite dispatch.

    Tags are dispatch keys only and are consumed by the decoder when the
    enclosing array or map is resolved.
    """

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class Keyword:
    """Transit keyword, written ``~:name``."""

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class Symbol:
    """Transit symbol, written ``~$name``."""

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class URI:
    """Transit URI, written ``~rhttp://...``."""

    value: str

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Link:
    """Hypermedia link decoded from the ``link`` tag."""

    href: URI
    rel: str
    name: str | None = None
    prompt: str | None = None
    render: str | None = None


@dataclass(frozen=True)
class TaggedValue:
    """
    Fallback for tags with no registered handler.

    Keeps the tag and its decoded representation so nothing in the stream is
    lost when reading data written by a newer or foreign schema.
    """

    tag: str
    rep: Any


class FrozenDict(Mapping[Any, Any]):
    """Immutable, hashable mapping used where a dict must act as a key."""

    __slots__ = ("_data", "_hash")

    def __init__(self, items: Mapping[Any, Any] | None = None) -> None:
        self._data: dict[Any, Any] = dict(items) if items else {}
        self._hash: int | None = None

    def __getitem__(self, key: Any) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[Any]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __hash__(self) -> int:
        if self._hash is None:
            self._hash = hash(frozenset(self._data.items()))
        return self._hash

    def __repr__(self) -> str:
        return f"FrozenDict({self._data!r})"


def freeze(value: Any) -> Hashable:
    """
    Converts a decoded value into a hashable equivalent.

    Lists become tuples, dicts become FrozenDicts and sets become frozensets,
    recursively. Used for map keys and set members.
    """
    if isinstance(value, list | tuple):
        return tuple(freeze(item) for item in value)
    if isinstance(value, dict):
        return FrozenDict({freeze(k): freeze(v) for k, v in value.items()})
    if isinstance(value, set):
        return frozenset(freeze(item) for item in value)
    if isinstance(value, TaggedValue):
        return TaggedValue(value.tag, freeze(value.rep))
    return value  # type: ignore[no-any-return]


__all__ = [
    "URI",
    "DecodedValue",
    "FrozenDict",
    "Keyword",
    "Link",
    "Symbol",
    "Tag",
    "TaggedValue",
    "freeze",
]

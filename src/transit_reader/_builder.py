"""
Event sink that builds decoded values from tokenizer callbacks.

Tokenizers report containers and scalars as they see them. The builder
decodes each element at the moment it is appended, because how an element
must be decoded depends on what came before it: the head of an array may be
a tag or the map-as-array marker, and the element after the marker is the
first map key. Containers are resolved bottom-up as they are attached.
"""

import logging
from collections.abc import Callable
from typing import Any
from typing import TypeAlias

from ._constants import MAP_AS_ARRAY
from ._decoder import Decoder
from ._errors import TokenizerSyntaxError
from ._types import freeze

logger = logging.getLogger(__name__)

Sink: TypeAlias = Callable[[Any], None]


class _Array(list[Any]):
    """Array under construction. Only the builder creates these."""

    __slots__ = ()


class _Hash(dict[Any, Any]):
    """Map under construction. Only the builder creates these."""

    __slots__ = ()


class StructureBuilder:
    """
    Receives parse events and delivers decoded top-level values to a sink.

    The event names follow the usual SAX-style JSON callback contract:
    array_start/array_append, hash_start/hash_set, add_value for each
    completed top-level value, and error for malformed input.
    """

    def __init__(self, decoder: Decoder, sink: Sink) -> None:
        self.decoder = decoder
        self.sink = sink

    def array_start(self) -> list[Any]:
        return _Array()

    def hash_start(self) -> dict[Any, Any]:
        return _Hash()

    def array_append(self, array: list[Any], value: Any) -> None:
        index = len(array)
        if index == 0:
            as_map_key = True
        else:
            # Only the first key of a map-as-array is decoded as a key
            as_map_key = index == 1 and array[0] == MAP_AS_ARRAY
        array.append(self.decode(value, as_map_key))

    def hash_set(self, hash_: dict[Any, Any], key: Any, value: Any) -> None:
        self.hash_store(hash_, self.hash_key(key), value)

    def hash_key(self, key: Any) -> Any:
        """
        Decodes a map key on its own.

        Tokenizers call this before reading the key's value, so the key
        takes its cache code ahead of anything cached inside the value.
        """
        return freeze(self.decode(key, True))

    def hash_store(self, hash_: dict[Any, Any], key: Any, value: Any) -> None:
        """Attaches value under a key already returned by hash_key."""
        hash_[key] = self.decode(value, False)

    def add_value(self, value: Any) -> None:
        """Delivers one completed top-level value."""
        self.sink(self.decode(value, False))

    def decode(self, value: Any, as_map_key: bool) -> Any:
        """
        Decodes a scalar token, or resolves a container this builder built.

        Containers reach this point fully populated, so resolution happens
        innermost first.
        """
        if isinstance(value, _Array):
            return self.decoder.resolve_composite(list(value))
        if isinstance(value, _Hash):
            return self.decoder.resolve_composite(dict(value))
        return self.decoder.decode_scalar(value, as_map_key)

    def error(
        self,
        message: str,
        line: int | None = None,
        column: int | None = None,
        pos: int | None = None,
    ) -> None:
        logger.debug(
            "Syntax error: %s (line=%s, column=%s, pos=%s)",
            message,
            line,
            column,
            pos,
        )
        raise TokenizerSyntaxError(message, line, column, pos)


__all__ = ["Sink", "StructureBuilder"]

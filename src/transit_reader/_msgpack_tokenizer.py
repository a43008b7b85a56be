"""
MessagePack tokenizer driving a StructureBuilder.

msgpack's Unpacker reads one top-level object at a time from the stream; each
object is then walked depth-first and reported with the same events the JSON
tokenizer produces, so one decoder serves both syntaxes.
"""

import io
from typing import Any
from typing import NoReturn

import msgpack
from msgpack.exceptions import OutOfData

from ._builder import StructureBuilder
from ._constants import DEFAULT_CHUNK_SIZE
from ._errors import TokenizerSyntaxError
from ._profile import ProfileContext


class _Pairs(list[tuple[Any, Any]]):
    """A MessagePack map as its ordered key/value pairs."""

    __slots__ = ()


class _CountingReader:
    """Wraps a binary stream and counts the bytes handed to the unpacker."""

    def __init__(self, source: Any) -> None:
        self._source = source
        self.bytes_read = 0

    def read(self, size: int = -1) -> bytes:
        chunk = self._source.read(size)
        if isinstance(chunk, str):
            raise TypeError("msgpack input must be binary, not text")
        self.bytes_read += len(chunk)
        return bytes(chunk)


class MsgpackTokenizer:
    """
    Reads MessagePack objects from a binary source and reports them.

    Equivalent documents produce the same event sequence as JSON: maps come
    through hash_start/hash_key/hash_store in stream order, arrays through
    array_start/array_append.
    """

    def __init__(
        self,
        source: Any,
        handler: StructureBuilder,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        if isinstance(source, bytes | bytearray | memoryview):
            source = io.BytesIO(bytes(source))
        elif isinstance(source, str) or not hasattr(source, "read"):
            raise TypeError(
                "msgpack input must be bytes or a binary file-like object, "
                f"not {type(source).__name__}"
            )

        self.handler = handler
        self._reader = _CountingReader(source)
        self._unpacker = msgpack.Unpacker(
            self._reader,
            read_size=chunk_size,
            raw=False,
            use_list=True,
            strict_map_key=False,
            object_pairs_hook=_Pairs,
        )

    def fail(self, msg: str, pos: int) -> NoReturn:
        self.handler.error(msg, None, None, pos)
        raise TokenizerSyntaxError(msg, pos=pos)

    def step(self, required: bool = False) -> bool:
        """
        Unpacks the next top-level object and hands it to the handler.

        Returns False once input is exhausted. With required=True, running
        out of input before an object starts is a syntax error.
        """
        offset = self._unpacker.tell()
        try:
            obj = self._unpacker.unpack()
        except OutOfData:
            if self._reader.bytes_read > offset:
                self.fail("Unexpected end of input", offset)
            if required:
                self.fail("Expecting value", offset)
            return False
        except ValueError as e:
            self.fail(f"Invalid MessagePack data: {e}", offset)

        with ProfileContext("msgpack_walk"):
            self.handler.add_value(self._emit(obj))
        return True

    def _emit(self, obj: Any) -> Any:
        if isinstance(obj, _Pairs):
            hash_ = self.handler.hash_start()
            for key, value in obj:
                decoded_key = self.handler.hash_key(self._emit(key))
                self.handler.hash_store(hash_, decoded_key, self._emit(value))
            return hash_
        if isinstance(obj, list):
            array = self.handler.array_start()
            for item in obj:
                self.handler.array_append(array, self._emit(item))
            return array
        return obj


def msgpack_tokenizer(
    source: Any,
    handler: StructureBuilder,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> MsgpackTokenizer:
    """Builds a MessagePack tokenizer over source that reports to handler."""
    return MsgpackTokenizer(source, handler, chunk_size)


__all__ = ["MsgpackTokenizer", "msgpack_tokenizer"]

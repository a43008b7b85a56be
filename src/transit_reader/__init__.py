"""
Transit reader for Python.

Decodes Transit, a self-describing data format layered on JSON or
MessagePack, into Python values: keywords, symbols, UUIDs, dates, big
integers, sets, maps with composite keys and user-defined types.

    >>> import transit_reader
    >>> transit_reader.loads('["^ ","~:name","Ada","~:born","~m-4165516800000"]')
    {Keyword(name='name'): 'Ada', Keyword(name='born'): datetime.datetime(...)}

Custom types are read with handlers, keyed by tag:

    >>> class PointHandler:
    ...     def from_rep(self, rep):
    ...         return Point(*rep)
    >>> transit_reader.loads('["~#point",[1,2]]', handlers={"point": PointHandler()})
    Point(x=1, y=2)
"""

import logging
from collections import deque
from collections.abc import Callable
from collections.abc import Iterator
from collections.abc import Mapping
from dataclasses import dataclass
from functools import cached_property
from typing import IO
from typing import Any
from typing import TypeAlias

from ._builder import StructureBuilder
from ._cache import RollingCache
from ._constants import DEFAULT_CHUNK_SIZE
from ._constants import FORMATS
from ._constants import MSGPACK
from ._decoder import Decoder
from ._errors import MalformedRepresentation
from ._errors import TokenizerSyntaxError
from ._errors import TransitDecodeError
from ._errors import UnknownCacheCode
from ._handlers import DefaultHandler
from ._handlers import DefaultReadHandler
from ._handlers import HandlerRegistry
from ._handlers import ReadHandler
from ._json_tokenizer import json_tokenizer
from ._msgpack_tokenizer import msgpack_tokenizer
from ._profile import HotPathStats
from ._profile import clear_hot_path_stats
from ._profile import get_hot_path_stats
from ._profile import log_hot_path_stats
from ._types import URI
from ._types import DecodedValue
from ._types import FrozenDict
from ._types import Keyword
from ._types import Link
from ._types import Symbol
from ._types import Tag
from ._types import TaggedValue

__version__ = "0.1.0"

logger = logging.getLogger(__name__)

ValueSink: TypeAlias = Callable[[Any], object]


@dataclass(frozen=True)
class ReadConfig:
    """
    Configures reading with immutable settings.

    handlers are merged over the built-in handlers; default_handler replaces
    the fallback used for unregistered tags.
    """

    handlers: Mapping[str, ReadHandler] | None = None
    default_handler: DefaultReadHandler | None = None
    chunk_size: int = DEFAULT_CHUNK_SIZE

    def __post_init__(self) -> None:
        if self.handlers is not None and not isinstance(self.handlers, Mapping):
            raise TypeError("handlers must be a mapping of tag to handler")
        if not isinstance(self.chunk_size, int) or isinstance(self.chunk_size, bool):
            raise TypeError("chunk_size must be an integer")
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")

    @cached_property
    def registry(self) -> HandlerRegistry:
        """The handler registry for this configuration, shared by its readers."""
        return HandlerRegistry(self.handlers, self.default_handler)


class Reader:
    """
    Reads Transit values from one stream.

    Each reader owns its decoder and rolling cache, so a reader must not be
    shared between threads. Values are read lazily: nothing beyond the value
    being returned is pulled from the source.

        reader = Reader("json", io)
        first = reader.read()
        reader.read(print)          # every remaining value, in order
        for value in reader: ...    # same, as an iterator
    """

    def __init__(
        self,
        format: str,
        source: str | bytes | IO[Any],
        config: ReadConfig | None = None,
        **kwargs: Any,
    ) -> None:
        if format not in FORMATS:
            raise ValueError(
                f"Unknown format {format!r}, expected one of {sorted(FORMATS)}"
            )
        if config is None:
            config = ReadConfig(**kwargs)
        elif kwargs:
            raise TypeError("pass either config or keyword options, not both")

        self.format = format
        self.config = config
        self.decoder = Decoder(config.registry)
        self._pending: deque[Any] = deque()
        self._builder = StructureBuilder(self.decoder, self._pending.append)

        # json_verbose differs only on the writer side
        make_tokenizer = msgpack_tokenizer if format == MSGPACK else json_tokenizer
        self._tokenizer = make_tokenizer(source, self._builder, config.chunk_size)
        self._failed = False

        logger.debug("Opened %s reader on %s", format, type(source).__name__)

    def read(self, sink: ValueSink | None = None) -> Any:
        """
        Reads values from the stream.

        Without a sink, returns the next value; running out of input is a
        TokenizerSyntaxError. With a sink, calls it once per remaining value,
        in stream order, and returns None.
        """
        if sink is None:
            self._step(required=True)
            return self._pending.popleft()

        for value in self:
            sink(value)
        return None

    def __iter__(self) -> Iterator[Any]:
        """Yields the remaining values lazily, in stream order."""
        while self._step(required=False):
            yield self._pending.popleft()

    def _step(self, required: bool) -> bool:
        if self._failed:
            raise TransitDecodeError("Reader failed earlier; open a new Reader")
        try:
            return self._tokenizer.step(required)
        except Exception:
            self._failed = True
            self._pending.clear()
            self.decoder.cache.clear()
            raise


def loads(
    data: str | bytes, format: str = "json", **kwargs: Any
) -> DecodedValue:
    """
    Decodes the first Transit value in data.

    str and bytes are accepted for the JSON formats, bytes for msgpack.
    """
    if not isinstance(data, str | bytes | bytearray):
        raise TypeError(
            f"the Transit data must be str or bytes, not {type(data).__name__}"
        )
    return Reader(format, data, **kwargs).read()


def load(fp: IO[Any], format: str = "json", **kwargs: Any) -> DecodedValue:
    """Decodes the first Transit value read from a file-like object."""
    if not hasattr(fp, "read"):
        raise TypeError("fp must have a read() method")
    return Reader(format, fp, **kwargs).read()


__all__ = [
    "URI",
    "DecodedValue",
    "Decoder",
    "DefaultHandler",
    "DefaultReadHandler",
    "FrozenDict",
    "HandlerRegistry",
    "HotPathStats",
    "Keyword",
    "Link",
    "MalformedRepresentation",
    "ReadConfig",
    "ReadHandler",
    "Reader",
    "RollingCache",
    "StructureBuilder",
    "Symbol",
    "Tag",
    "TaggedValue",
    "TokenizerSyntaxError",
    "TransitDecodeError",
    "UnknownCacheCode",
    "clear_hot_path_stats",
    "get_hot_path_stats",
    "load",
    "loads",
    "log_hot_path_stats",
]

"""
Read handlers: turning a tag plus its decoded representation into a value.

Scalar extensions are keyed by their one-character code (``~i123`` -> "i"),
composite extensions by their tag name (``["~#set", [...]]`` -> "set"). Both
live in the same registry. Tags without a handler go to the default handler,
which wraps them in a TaggedValue instead of failing.
"""

import base64
import binascii
import decimal
import logging
import math
import uuid
from collections.abc import Iterator
from collections.abc import Mapping
from datetime import UTC
from datetime import datetime
from datetime import timedelta
from fractions import Fraction
from typing import Any
from typing import Protocol

from ._errors import MalformedRepresentation
from ._types import URI
from ._types import Keyword
from ._types import Link
from ._types import Symbol
from ._types import TaggedValue
from ._types import freeze

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_UINT64_MASK = (1 << 64) - 1


class ReadHandler(Protocol):
    """Converts the representation of one tag into a domain object."""

    def from_rep(self, rep: Any) -> Any: ...


class DefaultReadHandler(Protocol):
    """Fallback invoked for tags with no registered handler."""

    def from_rep(self, tag: str, rep: Any) -> Any: ...


class DefaultHandler:
    """Wraps unknown tags in a TaggedValue. Never fails."""

    def from_rep(self, tag: str, rep: Any) -> TaggedValue:
        return TaggedValue(tag, rep)


def _require_str(tag: str, rep: Any) -> str:
    if not isinstance(rep, str):
        raise MalformedRepresentation(tag, rep, "expected a string")
    return rep


def _require_list(tag: str, rep: Any, length: int | None = None) -> list[Any]:
    if not isinstance(rep, list | tuple):
        raise MalformedRepresentation(tag, rep, "expected an array")
    if length is not None and len(rep) != length:
        raise MalformedRepresentation(
            tag, rep, f"expected {length} elements, got {len(rep)}"
        )
    return list(rep)


# Scalar handlers


class NullHandler:
    def from_rep(self, rep: Any) -> None:
        return None


class BooleanHandler:
    def from_rep(self, rep: Any) -> bool:
        if rep == "t":
            return True
        if rep == "f":
            return False
        raise MalformedRepresentation("?", rep, "expected 't' or 'f'")


class IntegerHandler:
    """Handles both ``~i`` (64-bit) and ``~n`` (arbitrary precision)."""

    def __init__(self, tag: str) -> None:
        self.tag = tag

    def from_rep(self, rep: Any) -> int:
        if isinstance(rep, int) and not isinstance(rep, bool):
            return rep
        try:
            return int(_require_str(self.tag, rep))
        except ValueError as e:
            raise MalformedRepresentation(self.tag, rep, str(e)) from e


class FloatHandler:
    def from_rep(self, rep: Any) -> float:
        try:
            return float(_require_str("d", rep))
        except ValueError as e:
            raise MalformedRepresentation("d", rep, str(e)) from e


class DecimalHandler:
    def from_rep(self, rep: Any) -> decimal.Decimal:
        try:
            return decimal.Decimal(_require_str("f", rep))
        except decimal.InvalidOperation as e:
            raise MalformedRepresentation("f", rep, "invalid decimal") from e


class SpecialNumberHandler:
    """``~zNaN``, ``~zINF`` and ``~z-INF``."""

    _VALUES = {"NaN": math.nan, "INF": math.inf, "-INF": -math.inf}

    def from_rep(self, rep: Any) -> float:
        try:
            return self._VALUES[rep]
        except (KeyError, TypeError) as e:
            raise MalformedRepresentation("z", rep, "unknown special number") from e


class CharHandler:
    def from_rep(self, rep: Any) -> str:
        return _require_str("c", rep)


class KeywordHandler:
    def from_rep(self, rep: Any) -> Keyword:
        return Keyword(_require_str(":", rep))


class SymbolHandler:
    def from_rep(self, rep: Any) -> Symbol:
        return Symbol(_require_str("$", rep))


class MillisecondTimeHandler:
    """Milliseconds since the epoch, as a string (``~m``) or an integer."""

    def from_rep(self, rep: Any) -> datetime:
        try:
            return _EPOCH + timedelta(milliseconds=int(rep))
        except (TypeError, ValueError, OverflowError) as e:
            raise MalformedRepresentation("m", rep, "expected milliseconds") from e


class VerboseTimeHandler:
    """ISO-8601 instants as written by the verbose JSON writer."""

    def from_rep(self, rep: Any) -> datetime:
        try:
            parsed = datetime.fromisoformat(_require_str("t", rep))
        except ValueError as e:
            raise MalformedRepresentation("t", rep, str(e)) from e
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return parsed


class UUIDHandler:
    """Canonical string form, or two signed 64-bit halves (msgpack writers)."""

    def from_rep(self, rep: Any) -> uuid.UUID:
        if isinstance(rep, str):
            try:
                return uuid.UUID(rep)
            except ValueError as e:
                raise MalformedRepresentation("u", rep, str(e)) from e

        hi, lo = _require_list("u", rep, 2)
        if not (isinstance(hi, int) and isinstance(lo, int)):
            raise MalformedRepresentation("u", rep, "expected two integers")
        return uuid.UUID(int=((hi & _UINT64_MASK) << 64) | (lo & _UINT64_MASK))


class URIHandler:
    def from_rep(self, rep: Any) -> URI:
        return URI(_require_str("r", rep))


class BinaryHandler:
    def from_rep(self, rep: Any) -> bytes:
        if isinstance(rep, bytes):
            return rep
        try:
            return base64.b64decode(_require_str("b", rep), validate=True)
        except binascii.Error as e:
            raise MalformedRepresentation("b", rep, "invalid base64") from e


# Composite handlers


class QuoteHandler:
    """Top-level scalars are wrapped as ``["~#'", value]`` by some writers."""

    def from_rep(self, rep: Any) -> Any:
        return rep


class SetHandler:
    def from_rep(self, rep: Any) -> frozenset[Any]:
        items = _require_list("set", rep)
        try:
            return frozenset(freeze(item) for item in items)
        except TypeError as e:
            raise MalformedRepresentation("set", rep, str(e)) from e


class ListHandler:
    def from_rep(self, rep: Any) -> list[Any]:
        return _require_list("list", rep)


class CMapHandler:
    """Maps with composite keys, as a flat ``[k1, v1, k2, v2, ...]`` array."""

    def from_rep(self, rep: Any) -> dict[Any, Any]:
        items = _require_list("cmap", rep)
        if len(items) % 2:
            raise MalformedRepresentation("cmap", rep, "odd number of elements")
        try:
            return {freeze(k): v for k, v in zip(items[::2], items[1::2])}
        except TypeError as e:
            raise MalformedRepresentation("cmap", rep, str(e)) from e


class RatioHandler:
    def from_rep(self, rep: Any) -> Fraction:
        numerator, denominator = _require_list("ratio", rep, 2)
        try:
            return Fraction(numerator, denominator)
        except (TypeError, ZeroDivisionError) as e:
            raise MalformedRepresentation("ratio", rep, str(e)) from e


class LinkHandler:
    def from_rep(self, rep: Any) -> Link:
        if not isinstance(rep, Mapping):
            raise MalformedRepresentation("link", rep, "expected a map")
        try:
            href = rep["href"]
            rel = rep["rel"]
        except KeyError as e:
            raise MalformedRepresentation("link", rep, f"missing {e}") from e
        return Link(
            href=href if isinstance(href, URI) else URI(str(href)),
            rel=rel,
            name=rep.get("name"),
            prompt=rep.get("prompt"),
            render=rep.get("render"),
        )


def default_read_handlers() -> dict[str, ReadHandler]:
    """Returns a fresh mapping of the built-in handlers."""
    return {
        "_": NullHandler(),
        "?": BooleanHandler(),
        "i": IntegerHandler("i"),
        "n": IntegerHandler("n"),
        "d": FloatHandler(),
        "f": DecimalHandler(),
        "z": SpecialNumberHandler(),
        "c": CharHandler(),
        ":": KeywordHandler(),
        "$": SymbolHandler(),
        "m": MillisecondTimeHandler(),
        "t": VerboseTimeHandler(),
        "u": UUIDHandler(),
        "r": URIHandler(),
        "b": BinaryHandler(),
        "'": QuoteHandler(),
        "set": SetHandler(),
        "list": ListHandler(),
        "cmap": CMapHandler(),
        "ratio": RatioHandler(),
        "link": LinkHandler(),
    }


class HandlerRegistry(Mapping[str, ReadHandler]):
    """
    Immutable tag -> handler mapping plus the default handler.

    Built-in handlers are overlaid with the user's, so a user handler for an
    existing tag replaces the built-in one. Safe to share between readers.
    """

    def __init__(
        self,
        handlers: Mapping[str, ReadHandler] | None = None,
        default_handler: DefaultReadHandler | None = None,
    ) -> None:
        merged = default_read_handlers()
        if handlers:
            for tag, handler in handlers.items():
                if not isinstance(tag, str) or not tag:
                    raise TypeError("handler tags must be non-empty strings")
                if not callable(getattr(handler, "from_rep", None)):
                    raise TypeError(
                        f"handler for {tag!r} must define from_rep(rep)"
                    )
                merged[tag] = handler
        if default_handler is not None and not callable(
            getattr(default_handler, "from_rep", None)
        ):
            raise TypeError("default_handler must define from_rep(tag, rep)")

        self._handlers = merged
        self.default_handler: DefaultReadHandler = (
            default_handler if default_handler is not None else DefaultHandler()
        )

    def __getitem__(self, tag: str) -> ReadHandler:
        return self._handlers[tag]

    def __iter__(self) -> Iterator[str]:
        return iter(self._handlers)

    def __len__(self) -> int:
        return len(self._handlers)

    def from_rep(self, tag: str, rep: Any) -> Any:
        """Dispatches rep to the handler for tag, or to the default handler."""
        handler = self._handlers.get(tag)
        if handler is not None:
            return handler.from_rep(rep)

        logger.debug("No handler for tag %r, using default handler", tag)
        return self.default_handler.from_rep(tag, rep)


__all__ = [
    "DefaultHandler",
    "DefaultReadHandler",
    "HandlerRegistry",
    "ReadHandler",
    "default_read_handlers",
]

"""
Exception taxonomy for Transit reading.

Every failure raised while reading derives from TransitDecodeError, which is a
ValueError so callers that already guard JSON parsing keep working.
"""

from typing import Any


class TransitDecodeError(ValueError):
    """Base class for all failures raised while decoding a Transit stream."""


class TokenizerSyntaxError(TransitDecodeError):
    """
    Handles malformed JSON or MessagePack input with position information.

    Line and column are 1-based and only known for text input; pos is the
    absolute character offset (text) or byte offset (binary).
    """

    def __init__(
        self,
        msg: str,
        lineno: int | None = None,
        colno: int | None = None,
        pos: int | None = None,
    ) -> None:
        if not isinstance(msg, str):
            raise TypeError("msg must be a string")
        if pos is not None and (not isinstance(pos, int) or pos < 0):
            raise ValueError("pos must be a non-negative integer")

        self.msg = msg
        self.lineno = lineno
        self.colno = colno
        self.pos = pos

        if lineno is not None and colno is not None:
            super().__init__(f"{msg} at line {lineno}, column {colno}")
        elif pos is not None:
            super().__init__(f"{msg} at byte {pos}")
        else:
            super().__init__(msg)


class UnknownCacheCode(TransitDecodeError):
    """Raised when a cache code refers to an entry this stream never assigned."""

    def __init__(self, code: str) -> None:
        self.code = code
        super().__init__(f"Unknown cache code: {code!r}")


class MalformedRepresentation(TransitDecodeError):
    """
    Raised when a handler cannot interpret the representation it was given.

    Carries the tag being decoded and the offending representation.
    """

    def __init__(self, tag: str, rep: Any, reason: str = "") -> None:
        self.tag = tag
        self.rep = rep
        detail = f": {reason}" if reason else ""
        super().__init__(
            f"Malformed representation for tag {tag!r}{detail} (got {rep!r})"
        )


__all__ = [
    "MalformedRepresentation",
    "TokenizerSyntaxError",
    "TransitDecodeError",
    "UnknownCacheCode",
]

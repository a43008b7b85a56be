"""
Semantic decoding of Transit scalars and composites.

The Decoder owns the stream's RollingCache. It turns one scalar token into a
typed value, and decides what a finished array or map really stands for: a
plain container, a tagged extension value, or a map written as an array.
"""

from typing import Any

from ._cache import RollingCache
from ._constants import ESC
from ._constants import MAP_AS_ARRAY
from ._constants import RES
from ._constants import SUB
from ._constants import TAG
from ._errors import MalformedRepresentation
from ._handlers import HandlerRegistry
from ._profile import ProfileContext
from ._types import Tag
from ._types import freeze

# Second characters that make "~X..." an escaped plain string
_ESCAPED = frozenset({ESC, SUB, RES})


class Decoder:
    """
    Stateful decoder for a single Transit stream.

    One instance per stream: the cache it owns must never see tokens from
    another stream. The handler registry is read-only and may be shared.
    """

    def __init__(
        self,
        registry: HandlerRegistry | None = None,
        cache: RollingCache | None = None,
    ) -> None:
        self.registry = registry if registry is not None else HandlerRegistry()
        self.cache = cache if cache is not None else RollingCache()

    def decode_scalar(self, token: Any, as_map_key: bool = False) -> Any:
        """
        Decodes one scalar token.

        Strings go through the cache first (codes are resolved, cacheable
        strings recorded) and are then parsed for tags, escapes and scalar
        extensions. Other scalars are returned unchanged.
        """
        if not isinstance(token, str):
            return token

        with ProfileContext("decode_scalar", len(token)):
            return self._parse_string(self.cache.decode(token, as_map_key))

    def _parse_string(self, s: str) -> Any:
        if not s.startswith(ESC) or len(s) < 2:
            return s
        if s.startswith(TAG):
            return Tag(s[2:])

        code = s[1]
        if code in _ESCAPED:
            return s[1:]
        return self.registry.from_rep(code, s[2:])

    def resolve_composite(self, container: Any) -> Any:
        """
        Resolves a fully built array or map into its final value.

        Arrays led by the map-as-array marker become dicts; arrays led by a
        Tag, and one-entry maps keyed by a Tag, are dispatched to the tag's
        handler with the second element (None when missing) as the rep.
        Everything else is returned as is.
        """
        if isinstance(container, list) and container:
            head = container[0]
            if head == MAP_AS_ARRAY:
                # The rebuilt map may itself be a one-entry tagged map
                return self.resolve_composite(self._map_from_pairs(container))
            if isinstance(head, Tag):
                rep = container[1] if len(container) > 1 else None
                return self.dispatch(head, rep)
        elif isinstance(container, dict) and len(container) == 1:
            ((key, value),) = container.items()
            if isinstance(key, Tag):
                return self.dispatch(key, value)
        return container

    def dispatch(self, tag: Tag, rep: Any) -> Any:
        """Hands rep to the handler registered for tag."""
        with ProfileContext("dispatch"):
            return self.registry.from_rep(tag.name, rep)

    @staticmethod
    def _map_from_pairs(container: list[Any]) -> dict[Any, Any]:
        flat = container[1:]
        if len(flat) % 2:
            raise MalformedRepresentation(
                MAP_AS_ARRAY, flat, "odd number of map-as-array elements"
            )
        return {freeze(k): v for k, v in zip(flat[::2], flat[1::2])}


__all__ = ["Decoder"]

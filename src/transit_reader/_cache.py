"""
Rolling string cache shared by a single Transit stream.

Writers replace repeated map keys and tag/keyword/symbol strings with short
codes (``^0``, ``^1``, ... ``^[[``). The reader rebuilds the same table in
first-seen order so it can turn those codes back into strings.
"""

from ._constants import BASE_CHAR_INDEX
from ._constants import CACHE_CODE_DIGITS
from ._constants import CACHEABLE_PREFIXES
from ._constants import MAP_AS_ARRAY
from ._constants import MIN_SIZE_CACHEABLE
from ._constants import SUB
from ._errors import UnknownCacheCode


def code_for(index: int) -> str:
    """Renders a cache index as its code, e.g. 0 -> "^0", 44 -> "^10"."""
    hi, lo = divmod(index, CACHE_CODE_DIGITS)
    if hi == 0:
        return f"{SUB}{chr(lo + BASE_CHAR_INDEX)}"
    return f"{SUB}{chr(hi + BASE_CHAR_INDEX)}{chr(lo + BASE_CHAR_INDEX)}"


def index_for(code: str) -> int:
    """Parses a cache code back into its index."""
    digits = code[1:]
    if not 1 <= len(digits) <= 2:
        raise UnknownCacheCode(code)

    index = 0
    for char in digits:
        digit = ord(char) - BASE_CHAR_INDEX
        if not 0 <= digit < CACHE_CODE_DIGITS:
            raise UnknownCacheCode(code)
        index = index * CACHE_CODE_DIGITS + digit
    return index


class RollingCache:
    """
    Per-stream, append-only table of cacheable strings.

    Every cacheable string is recorded under the next code in the order it is
    seen, repeats included. Nothing is ever evicted; the table lives as long
    as its stream.
    """

    def __init__(self) -> None:
        self._entries: list[str] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, value: object) -> bool:
        return value in self._entries

    @staticmethod
    def is_cache_code(s: str) -> bool:
        """True if s has the cache-code form (the map-as-array marker excluded)."""
        return s[:1] == SUB and s != MAP_AS_ARRAY

    @staticmethod
    def is_cacheable(s: str, as_map_key: bool = False) -> bool:
        """True if s is eligible for caching in this position."""
        return len(s) >= MIN_SIZE_CACHEABLE and (
            as_map_key or s.startswith(CACHEABLE_PREFIXES)
        )

    def decode(self, s: str, as_map_key: bool = False) -> str:
        """
        Resolves a cache code, or records a cacheable string.

        Non-code strings are returned unchanged.
        """
        if self.is_cache_code(s):
            return self.lookup(s)

        if self.is_cacheable(s, as_map_key):
            self._entries.append(s)
        return s

    def lookup(self, code: str) -> str:
        """Returns the string stored under code."""
        index = index_for(code)
        if index >= len(self._entries):
            raise UnknownCacheCode(code)
        return self._entries[index]

    def clear(self) -> None:
        self._entries.clear()


__all__ = ["RollingCache", "code_for", "index_for"]

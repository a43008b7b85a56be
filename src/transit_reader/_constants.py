"""
Transit micro-grammar constants.

Sigils, cache sizing and the format names the reader accepts.
"""

from typing import Final

ESC: Final = "~"
SUB: Final = "^"
RES: Final = "`"
TAG: Final = "~#"

MAP_AS_ARRAY: Final = "^ "

# Strings with these prefixes are cacheable outside map-key position too
CACHEABLE_PREFIXES: Final = ("~#", "~$", "~:")
MIN_SIZE_CACHEABLE: Final = 4

# Cache codes are one or two base-44 digits rendered from "0", so only the
# first MAX_CACHE_ENTRIES entries of a stream can be referenced
CACHE_CODE_DIGITS: Final = 44
BASE_CHAR_INDEX: Final = 48
MAX_CACHE_ENTRIES: Final = CACHE_CODE_DIGITS * CACHE_CODE_DIGITS

JSON: Final = "json"
JSON_VERBOSE: Final = "json_verbose"
MSGPACK: Final = "msgpack"
FORMATS: Final = frozenset({JSON, JSON_VERBOSE, MSGPACK})

DEFAULT_CHUNK_SIZE: Final = 65536

"""
Test data generators for Transit decoding benchmarks.

Creates Transit documents the way a writer would emit them:
- Maps written as arrays with keyword keys
- Repeated keys and tags replaced by cache codes
- Scalar extensions (instants, UUIDs, big integers) and composite tags
- String-heavy content with escape sequences

Each document is built as a Python structure, passed through a write-side
cache in document order, and serialized as JSON text or MessagePack bytes.
"""

import json
import random
import string
import uuid
from typing import Any

import msgpack

from transit_reader import RollingCache
from transit_reader._cache import code_for
from transit_reader._constants import MAP_AS_ARRAY
from transit_reader._constants import MAX_CACHE_ENTRIES

DATA_TYPES = [
    "small_map",
    "cached_records",
    "tagged_values",
    "nested_structure",
    "string_heavy",
]

_ESCAPE_PROBABILITY = 0.3


class _WriteCache:
    """Assigns cache codes to repeated strings, mirroring the reader's table."""

    def __init__(self) -> None:
        self._codes: dict[str, str] = {}

    def __call__(self, s: str, as_map_key: bool) -> str:
        if not RollingCache.is_cacheable(s, as_map_key):
            return s
        if s in self._codes:
            return self._codes[s]
        if len(self._codes) < MAX_CACHE_ENTRIES:
            self._codes[s] = code_for(len(self._codes))
        return s


def _write_cached(node: Any, cache: _WriteCache, as_map_key: bool = False) -> Any:
    """Replaces repeated strings with cache codes, in document order."""
    if isinstance(node, str):
        return cache(node, as_map_key)
    if isinstance(node, list):
        is_map = bool(node) and node[0] == MAP_AS_ARRAY
        return [
            _write_cached(item, cache, i == 0 or (is_map and i == 1))
            for i, item in enumerate(node)
        ]
    return node


def generate_test_data(data_type: str, format: str = "json") -> str | bytes:
    """Generates a Transit document of the given type, as JSON or msgpack."""
    generators = {
        "small_map": _generate_small_map,
        "cached_records": _generate_cached_records,
        "tagged_values": _generate_tagged_values,
        "nested_structure": _generate_nested_structure,
        "string_heavy": _generate_string_heavy,
    }

    if data_type not in generators:
        raise ValueError(f"Unknown data type: {data_type}")

    document = _write_cached(generators[data_type](), _WriteCache())
    if format == "msgpack":
        return msgpack.packb(document)
    return json.dumps(document)


def _map(pairs: dict[str, Any]) -> list[Any]:
    """Writes pairs as a map-as-array with keyword keys."""
    array: list[Any] = [MAP_AS_ARRAY]
    for key, value in pairs.items():
        array.append(f"~:{key}")
        array.append(value)
    return array


def _tagged(tag: str, rep: Any) -> list[Any]:
    return [f"~#{tag}", rep]


def _generate_small_map() -> list[Any]:
    """Generates a small map (< 1KB) with common scalar extensions."""
    return _map(
        {
            "id": 12345,
            "name": "Alice Johnson",
            "email": "alice@example.com",
            "active": True,
            "balance": "~f1234.56",
            "uuid": f"~u{uuid.uuid4()}",
            "created": "~m1705314600000",
            "roles": _tagged("set", ["~:admin", "~:staff"]),
        }
    )


def _generate_cached_records() -> list[Any]:
    """Generates many records sharing keys, so most keys are cache codes."""
    return [
        _map(
            {
                "txn-id": f"txn_{i:06d}",
                "amount": f"~f{random.uniform(1.0, 1000.0):.2f}",
                "currency": f"~:{random.choice(['usd', 'eur', 'gbp', 'jpy'])}",
                "timestamp": f"~m{random.randint(1_600_000_000_000, 1_700_000_000_000)}",
                "status": f"~:{random.choice(['completed', 'pending', 'failed'])}",
            }
        )
        for i in range(300)
    ]


def _generate_tagged_values() -> list[Any]:
    """Generates an array of built-in composite and scalar extensions."""
    values: list[Any] = []
    for i in range(200):
        choice = i % 5
        if choice == 0:
            values.append(_tagged("set", list(range(i % 7 + 1))))
        elif choice == 1:
            values.append(_tagged("ratio", [f"~n{i + 1}", f"~n{i + 2}"]))
        elif choice == 2:
            values.append(_tagged("cmap", [[i, i + 1], "pair", _map({"k": i}), "map"]))
        elif choice == 3:
            values.append(f"~n{random.getrandbits(96)}")
        else:
            values.append(f"~${_random_string(6)}")
    return values


def _generate_nested_structure() -> list[Any]:
    """Generates deeply nested maps."""

    def create_nested_map(depth: int) -> list[Any]:
        if depth <= 0:
            return _map({"value": _random_string(10)})

        return _map(
            {
                "level": depth,
                "data": _random_string(15),
                "items": [create_nested_map(depth - 1) for _ in range(3)],
                "nested": create_nested_map(depth - 1),
            }
        )

    return create_nested_map(6)


def _generate_string_heavy() -> list[Any]:
    """Generates strings full of JSON escapes and Transit escapes."""

    def create_escaped_string() -> str:
        chars = []
        for _ in range(50):
            if random.random() < _ESCAPE_PROBABILITY:
                chars.append(
                    random.choice(['"', "\\", "/", "\b", "\f", "\n", "\r", "\t"])
                )
            else:
                chars.append(
                    random.choice(string.ascii_letters + string.digits + " ")
                )
        return "".join(chars)

    return _map(
        {
            "strings": [create_escaped_string() for _ in range(100)],
            "escaped": [f"~~{_random_string(10)}" for _ in range(50)],
            "mixed-content": [
                _map(
                    {
                        "description": create_escaped_string(),
                        "path": f"C:\\Users\\{_random_string(8)}\\file_{i}.txt",
                    }
                )
                for i in range(20)
            ],
        }
    )


def _random_string(length: int) -> str:
    """Generates a random string of specified length."""
    return "".join(random.choices(string.ascii_letters, k=length))

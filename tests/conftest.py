"""
Pytest configuration and shared fixtures for transit_reader tests.

Provides immutable test case containers, a sample user-defined type with its
read handler, and document fixtures shared by the JSON and msgpack tests.
"""

import math
import uuid
from dataclasses import dataclass
from datetime import UTC
from datetime import datetime
from decimal import Decimal
from fractions import Fraction
from typing import Any

import pytest

import transit_reader
from transit_reader import URI
from transit_reader import Keyword
from transit_reader import Symbol
from transit_reader import TaggedValue


@dataclass(frozen=True)
class TransitTestCase:
    """
    Immutable container for Transit test case data.

    input_data is the JSON text of one document; expected_output is what
    reading it must produce.
    """

    description: str
    input_data: str
    expected_output: Any = None


@dataclass(frozen=True)
class Point:
    """User-defined type used to exercise custom handlers."""

    x: int
    y: int


class PointHandler:
    """Reads ``point`` tags from a two element [x, y] representation."""

    def from_rep(self, rep: Any) -> Point:
        if not isinstance(rep, list) or len(rep) != 2:
            raise transit_reader.MalformedRepresentation(
                "point", rep, "expected [x, y]"
            )
        return Point(*rep)


@pytest.fixture
def point_handlers() -> dict[str, PointHandler]:
    return {"point": PointHandler()}


SAMPLE_UUID = uuid.UUID("5a2cbea3-e8c6-428b-b525-21239370dd55")


def _signed64(n: int) -> int:
    return n - (1 << 64) if n >= 1 << 63 else n


# Two signed 64-bit halves, the way msgpack writers emit UUIDs
SAMPLE_UUID_HALVES = [
    _signed64(SAMPLE_UUID.int >> 64),
    _signed64(SAMPLE_UUID.int & ((1 << 64) - 1)),
]


@pytest.fixture
def scalar_cases() -> list[TransitTestCase]:
    """
    Provides documents whose value is a single scalar extension.

    Covers every built-in one-character handler plus the escapes.
    """
    return [
        TransitTestCase("plain string", '"hello"', "hello"),
        TransitTestCase("quoted null", '["~#\'",null]', None),
        TransitTestCase("quoted integer", '["~#\'",1]', 1),
        TransitTestCase("null", '"~_"', None),
        TransitTestCase("true", '"~?t"', True),
        TransitTestCase("false", '"~?f"', False),
        TransitTestCase("integer", '"~i9007199254740993"', 9007199254740993),
        TransitTestCase(
            "big integer", '"~n12345678901234567890"', 12345678901234567890
        ),
        TransitTestCase("float", '"~d2.5"', 2.5),
        TransitTestCase("decimal", '"~f1.25"', Decimal("1.25")),
        TransitTestCase("infinity", '"~zINF"', math.inf),
        TransitTestCase("negative infinity", '"~z-INF"', -math.inf),
        TransitTestCase("character", '"~cx"', "x"),
        TransitTestCase("keyword", '"~:foo"', Keyword("foo")),
        TransitTestCase("symbol", '"~$bar"', Symbol("bar")),
        TransitTestCase(
            "milliseconds", '"~m0"', datetime(1970, 1, 1, tzinfo=UTC)
        ),
        TransitTestCase(
            "iso instant",
            '"~t2014-03-10T12:00:00.000Z"',
            datetime(2014, 3, 10, 12, tzinfo=UTC),
        ),
        TransitTestCase(
            "uuid", f'"~u{SAMPLE_UUID}"', SAMPLE_UUID
        ),
        TransitTestCase(
            "uri", '"~rhttp://example.com/a"', URI("http://example.com/a")
        ),
        TransitTestCase("binary", '"~baGVsbG8="', b"hello"),
        TransitTestCase("escaped tilde", '"~~hello"', "~hello"),
        TransitTestCase("escaped caret", '"~^hello"', "^hello"),
        TransitTestCase("escaped backtick", '"~`hello"', "`hello"),
        TransitTestCase("lone tilde", '"~"', "~"),
        TransitTestCase("unknown extension", '"~xabc"', TaggedValue("x", "abc")),
    ]


@pytest.fixture
def composite_cases() -> list[TransitTestCase]:
    """
    Provides documents built from arrays and maps.

    Covers plain containers, map-as-array, and the built-in composite tags.
    """
    return [
        TransitTestCase("empty array", "[]", []),
        TransitTestCase("empty map", "{}", {}),
        TransitTestCase("plain array", '[1,"two",3.5,true,null]', [1, "two", 3.5, True, None]),
        TransitTestCase("verbose map", '{"a":1,"b":[1,2]}', {"a": 1, "b": [1, 2]}),
        TransitTestCase("map as array", '["^ ","a",1,"b",2]', {"a": 1, "b": 2}),
        TransitTestCase("empty map as array", '["^ "]', {}),
        TransitTestCase(
            "keyword keys", '["^ ","~:a",1,"~:b",2]', {Keyword("a"): 1, Keyword("b"): 2}
        ),
        TransitTestCase(
            "sentinel away from the head", '["a","^ ","b"]', ["a", "^ ", "b"]
        ),
        TransitTestCase("set", '["~#set",[1,2,3]]', frozenset({1, 2, 3})),
        TransitTestCase("list", '["~#list",[1,2]]', [1, 2]),
        TransitTestCase(
            "ratio", '["~#ratio",["~n1","~n3"]]', Fraction(1, 3)
        ),
        TransitTestCase(
            "composite keys",
            '["~#cmap",[[1,2],"a",["^ ","k",1],"b"]]',
            {(1, 2): "a", transit_reader.FrozenDict({"k": 1}): "b"},
        ),
        TransitTestCase(
            "uuid from halves",
            f'["~#u",{SAMPLE_UUID_HALVES}]'.replace(" ", ""),
            SAMPLE_UUID,
        ),
        TransitTestCase(
            "verbose tagged map", '{"~#set":[1]}', frozenset({1})
        ),
        TransitTestCase(
            "unknown tag", '["~#widget",["^ ","id",7]]', TaggedValue("widget", {"id": 7})
        ),
        TransitTestCase(
            "nested tags",
            '["^ ","~:tags",["~#set",["~:a"]],"~:when","~m1000"]',
            {
                Keyword("tags"): frozenset({Keyword("a")}),
                Keyword("when"): datetime(1970, 1, 1, 0, 0, 1, tzinfo=UTC),
            },
        ),
    ]


@pytest.fixture
def equivalent_documents() -> list[Any]:
    """
    Provides Transit documents as Python structures.

    Each one is serialized with both json and msgpack by the tests so the
    two readers can be compared on identical event sequences.
    """
    return [
        ["^ ", "~:name", "Ada", "~:tags", ["~#set", ["~:math", "~:code"]]],
        [["^ ", "aaaa", 1, "bbbb", 2], ["^ ", "^0", 3, "bbbb", 4]],
        [["~#point", [1, 2]], ["^0", [3, 4]]],
        {"~#list": [1, 2, 3]},
        ["~#cmap", [["^ ", "x", 1], "first", [2], "second"]],
        [{"foobar": 1}, {"^0": 2}, {"^0": {"quux": ["~i1"]}}],
        [{"~:origin": ["~#point", [0, 0]]}, {"^0": ["^1", [1, 1]]}],
        ["~#'", "~zINF"],
    ]

"""
Reader facade tests.

Validates single-value and streaming reads, cache behaviour across a stream,
isolation between streams, configuration and error propagation.
"""

import io
from typing import Any

import pytest

import transit_reader
from transit_reader import Keyword
from transit_reader import ReadConfig
from transit_reader import Reader
from transit_reader import TaggedValue
from transit_reader import TokenizerSyntaxError
from transit_reader import TransitDecodeError
from transit_reader import UnknownCacheCode

from .conftest import Point
from .conftest import PointHandler


def test_map_as_array() -> None:
    """
    Validates the sentinel-led array decodes to a mapping.
    """
    assert transit_reader.loads('["^ ","a",1,"b",2]') == {"a": 1, "b": 2}


def test_extension_dispatch(point_handlers: dict[str, PointHandler]) -> None:
    """
    Validates tagged arrays and one-entry tagged maps dispatch identically.
    """
    assert transit_reader.loads('["~#point",[1,2]]', handlers=point_handlers) == Point(1, 2)
    assert transit_reader.loads('{"~#point":[1,2]}', handlers=point_handlers) == Point(1, 2)


def test_extension_without_handler() -> None:
    """
    Validates an unregistered tag falls back to the default handler.
    """
    assert transit_reader.loads('["~#point",[1,2]]') == TaggedValue("point", [1, 2])
    assert transit_reader.loads('{"~#point":[1,2]}') == TaggedValue("point", [1, 2])


def test_map_key_order_irrelevant() -> None:
    """
    Validates plain maps compare equal regardless of key order.
    """
    assert transit_reader.loads('{"a":1,"b":2}') == transit_reader.loads('{"b":2,"a":1}')


def test_repeated_keys_use_cache() -> None:
    """
    Validates a key cached on first sight resolves from its code later.
    """
    doc = '[{"foobar":1},{"^0":2},{"^0":3}]'
    assert transit_reader.loads(doc) == [{"foobar": 1}, {"foobar": 2}, {"foobar": 3}]


def test_map_as_array_first_key_uses_cache() -> None:
    """
    Validates the first key of a map-as-array feeds the cache.
    """
    doc = '[["^ ","aaaa",1,"bbbb",2],["^ ","^0",3,"bbbb",4]]'
    assert transit_reader.loads(doc) == [
        {"aaaa": 1, "bbbb": 2},
        {"aaaa": 3, "bbbb": 4},
    ]


def test_map_as_array_later_keys_not_cached() -> None:
    """
    Validates keys after the first in a map-as-array take no code.
    """
    with pytest.raises(UnknownCacheCode):
        transit_reader.loads('[["^ ","aaaa",1,"bbbb",2],"^1"]')


def test_repeated_literal_key_takes_new_code() -> None:
    """
    Validates a key written out in full again is cached again.
    """
    doc = '[{"aaaa":1},{"aaaa":2},{"bbbb":3},{"^2":4}]'
    assert transit_reader.loads(doc) == [
        {"aaaa": 1},
        {"aaaa": 2},
        {"bbbb": 3},
        {"bbbb": 4},
    ]


def test_short_tagged_array() -> None:
    """
    Validates a tagged array without a rep reaches the default handler.
    """
    assert transit_reader.loads('["~#foo"]') == TaggedValue("foo", None)


def test_map_as_array_with_tagged_key(
    point_handlers: dict[str, PointHandler],
) -> None:
    """
    Validates a map-as-array with a single tagged entry is an extension value.
    """
    doc = '["^ ","~#point",[1,2]]'
    assert transit_reader.loads(doc, handlers=point_handlers) == Point(1, 2)
    assert transit_reader.loads(doc) == TaggedValue("point", [1, 2])


def test_cached_tags_and_keywords(point_handlers: dict[str, PointHandler]) -> None:
    """
    Validates tags and keywords resolve from the cache to typed values.
    """
    doc = '[["~#point",[1,2]],["^0",[3,4]],"~:abcd","^1"]'
    assert transit_reader.loads(doc, handlers=point_handlers) == [
        Point(1, 2),
        Point(3, 4),
        Keyword("abcd"),
        Keyword("abcd"),
    ]


def test_code_before_referent_fails() -> None:
    """
    Validates a cache code seen before its string is rejected.
    """
    with pytest.raises(UnknownCacheCode):
        transit_reader.loads('[{"^0":1},{"foobar":2}]')


def test_no_cache_leak_between_streams() -> None:
    """
    Validates each reader starts with an empty cache.
    """
    first = Reader("json", '{"foobar":1} {"^0":2}')
    assert list(first) == [{"foobar": 1}, {"foobar": 2}]

    with pytest.raises(UnknownCacheCode):
        Reader("json", '{"^0":2}').read()


def test_independent_streams_agree() -> None:
    """
    Validates identical input decodes to equal values in separate readers.
    """
    doc = '["^ ","~:items",[["~#set",["~:a","~:b"]],"~m1000"],"^0",null]'
    assert Reader("json", doc).read() == Reader("json", doc).read()


def test_streaming_order() -> None:
    """
    Validates the sink sees each top-level value once, in input order, and
    never re-entrantly.
    """
    events: list[Any] = []

    def sink(value: Any) -> None:
        events.append(("enter", value))
        events.append(("exit", value))

    assert Reader("json", '1 "a" true').read(sink) is None
    assert events == [
        ("enter", 1),
        ("exit", 1),
        ("enter", "a"),
        ("exit", "a"),
        ("enter", True),
        ("exit", True),
    ]


def test_cache_spans_top_level_values() -> None:
    """
    Validates the cache persists across values of one stream.
    """
    reader = Reader("json", '["^ ","~:abcd",1]\n["^ ","^0",2]')
    assert reader.read() == {Keyword("abcd"): 1}
    assert reader.read() == {Keyword("abcd"): 2}


def test_read_is_lazy() -> None:
    """
    Validates reading one value leaves later input unread.
    """
    text = "1 " + "[2,3,4] " * 100
    source = io.StringIO(text)
    reader = Reader("json", source, chunk_size=4)

    assert reader.read() == 1
    assert source.tell() < len(text)

    # Iteration resumes where read() stopped
    remaining = list(reader)
    assert remaining == [[2, 3, 4]] * 100


def test_stopping_iteration_early() -> None:
    """
    Validates a consumer may stop iterating at any point.
    """
    reader = Reader("json", "1 2 3 [")
    for value in reader:
        if value == 2:
            break
    assert reader.read() == 3


def test_read_past_end() -> None:
    """
    Validates reading when no value remains is a syntax error.
    """
    reader = Reader("json", " 1 ")
    assert reader.read() == 1
    with pytest.raises(TokenizerSyntaxError, match="Expecting value"):
        reader.read()


def test_reader_unusable_after_error() -> None:
    """
    Validates an error stops delivery for the rest of the stream.
    """
    delivered: list[Any] = []
    reader = Reader("json", '1 ["^5"] 3')

    with pytest.raises(UnknownCacheCode):
        reader.read(delivered.append)
    assert delivered == [1]

    with pytest.raises(TransitDecodeError, match="failed earlier"):
        reader.read()


def test_binary_json_source() -> None:
    """
    Validates JSON may be read from UTF-8 bytes and binary streams.
    """
    data = '["^ ","~:name","Zoë"]'.encode()
    expected = {Keyword("name"): "Zoë"}
    assert transit_reader.loads(data) == expected
    assert transit_reader.load(io.BytesIO(data)) == expected
    # Multi-byte characters split across chunks
    assert Reader("json", io.BytesIO(data), chunk_size=1).read() == expected


def test_json_verbose_format() -> None:
    """
    Validates json_verbose is read by the JSON tokenizer.
    """
    doc = '{"~:a":{"~#set":[1]},"b":"~t2014-03-10T12:00:00Z"}'
    result = transit_reader.loads(doc, format="json_verbose")
    assert result[Keyword("a")] == frozenset({1})
    assert result["b"].year == 2014


def test_shared_config() -> None:
    """
    Validates one configuration and registry serve several readers.
    """
    config = ReadConfig(handlers={"point": PointHandler()})
    first = Reader("json", '["~#point",[1,2]]', config)
    second = Reader("json", '["~#point",[3,4]]', config)

    assert first.decoder.registry is second.decoder.registry
    assert first.decoder.cache is not second.decoder.cache
    assert (first.read(), second.read()) == (Point(1, 2), Point(3, 4))


@pytest.mark.parametrize(
    "kwargs,error",
    [
        ({"handlers": [("point", PointHandler())]}, TypeError),
        ({"chunk_size": 0}, ValueError),
        ({"chunk_size": "big"}, TypeError),
        ({"unknown_option": True}, TypeError),
    ],
)
def test_config_validation(kwargs: dict[str, Any], error: type[Exception]) -> None:
    """
    Validates configuration errors are raised eagerly.
    """
    with pytest.raises(error):
        Reader("json", "1", **kwargs)


def test_config_and_kwargs_exclusive() -> None:
    """
    Validates a config object and keyword options cannot be mixed.
    """
    with pytest.raises(TypeError):
        Reader("json", "1", ReadConfig(), chunk_size=10)


def test_unknown_format() -> None:
    """
    Validates format names are checked.
    """
    with pytest.raises(ValueError, match="Unknown format"):
        Reader("edn", "1")


@pytest.mark.parametrize("invalid_value", [1, 3.14, [], {}, None])
def test_invalid_input_type_rejection(invalid_value: Any) -> None:
    """
    Validates rejection of non-string input types.
    """
    with pytest.raises(TypeError, match="must be str or bytes"):
        transit_reader.loads(invalid_value)


def test_load_requires_read() -> None:
    """
    Validates load() rejects objects without read().
    """
    with pytest.raises(TypeError, match="read"):
        transit_reader.load("not a file")  # type: ignore[arg-type]

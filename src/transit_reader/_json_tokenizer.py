"""
Streaming JSON tokenizer driving a StructureBuilder.

A character-level lexer feeds a recursive descent parser that reports
containers and scalars through builder callbacks instead of materializing
its own tree. Input is pulled in chunks and several top-level values may
follow each other. Reading stops at the end of the current value, give or
take one refill.
"""

import codecs
import io
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import IO
from typing import Any
from typing import TypeAlias
from typing import NoReturn

from ._builder import StructureBuilder
from ._constants import DEFAULT_CHUNK_SIZE
from ._errors import TokenizerSyntaxError
from ._profile import ProfileContext

Position: TypeAlias = int
ErrorCallback: TypeAlias = Callable[[str, int, int, int], None]

_WHITESPACE = " \t\n\r"
_DIGITS = "0123456789"

_ESCAPES = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}

_LITERALS = {
    "true": True,
    "false": False,
    "null": None,
    "NaN": float("nan"),
    "Infinity": float("inf"),
    "-Infinity": float("-inf"),
}


class TokenType(Enum):
    """Kinds of JSON tokens produced by the lexer."""

    BEGIN_OBJECT = "{"
    END_OBJECT = "}"
    BEGIN_ARRAY = "["
    END_ARRAY = "]"
    COMMA = ","
    COLON = ":"
    STRING = "string"
    NUMBER = "number"
    LITERAL = "literal"


_STRUCTURAL = {t.value: t for t in TokenType if len(t.value) == 1}


@dataclass(frozen=True, slots=True)
class JsonToken:
    """A JSON token; start and end are absolute offsets into the stream."""

    type: TokenType
    value: str
    start: Position
    end: Position


class TextChunks:
    """
    Pulls decoded text out of a str, bytes or file-like source.

    Binary sources are decoded incrementally as UTF-8.
    """

    def __init__(self, source: Any, chunk_size: int = DEFAULT_CHUNK_SIZE):
        if isinstance(source, str):
            source = io.StringIO(source)
        elif isinstance(source, bytes | bytearray | memoryview):
            source = io.BytesIO(bytes(source))
        elif not hasattr(source, "read"):
            raise TypeError(
                "source must be str, bytes or a file-like object, "
                f"not {type(source).__name__}"
            )

        self._source: IO[Any] = source
        self._chunk_size = chunk_size
        self._decoder = codecs.getincrementaldecoder("utf-8")()
        self._bytes_read = 0
        self._eof = False

    def read(self, size: int = 0) -> str:
        """Returns the next chunk of at least size units, or "" at end of input."""
        while not self._eof:
            chunk = self._source.read(max(self._chunk_size, size))
            if isinstance(chunk, str):
                if not chunk:
                    self._eof = True
                return chunk

            final = not chunk
            try:
                text = self._decoder.decode(chunk, final=final)
            except UnicodeDecodeError as e:
                pos = self._bytes_read + e.start
                raise TokenizerSyntaxError("Invalid UTF-8 in input", pos=pos) from e
            self._bytes_read += len(chunk)
            if final:
                self._eof = True
            if text:
                return text
        return ""


class JsonLexer:
    """
    Tokenizes JSON text pulled from a TextChunks source.

    Character-by-character scanning over a sliding buffer. Positions are
    absolute offsets into the stream. Text before the previous token is
    dropped whenever more input is pulled, so a long value never piles up in
    the buffer. Line and column are tracked across drops.
    """

    def __init__(self, chunks: TextChunks, on_error: ErrorCallback | None = None):
        self.chunks = chunks
        self.on_error = on_error
        self.text = ""
        self.pos = 0
        self._eof = False
        # Stream offset, line and column of text[0]
        self._base = 0
        self._line = 1
        self._column = 0
        # Errors may still point at the previous token, never before it
        self._keep = 0
        self._token_start = 0

    def _fill(self) -> bool:
        """Appends more input to the buffer; False at end of input."""
        if self._eof:
            return False
        self._discard(min(self._keep, self.pos))
        # At least as much as is still buffered, so copying stays linear
        chunk = self.chunks.read(len(self.text))
        if not chunk:
            self._eof = True
            return False
        self.text += chunk
        return True

    def _discard(self, cut: Position) -> None:
        """Drops buffered text before the absolute position cut."""
        drop = cut - self._base
        if drop <= 0:
            return
        line, column, _ = self.location(cut)
        self._line = line
        self._column = column - 1
        self._base = cut
        self.text = self.text[drop:]

    def _ensure(self, count: int) -> bool:
        """Makes sure count characters are buffered from pos onward."""
        while self._base + len(self.text) - self.pos < count:
            if not self._fill():
                return False
        return True

    def at_end(self) -> bool:
        return not self._ensure(1)

    def peek(self) -> str:
        """Returns current character without advancing."""
        i = self.pos - self._base
        if i < len(self.text):
            return self.text[i]
        if self._ensure(1):
            return self.text[self.pos - self._base]
        return "\0"

    def advance(self) -> str:
        """Returns current character and advances position."""
        char = self.peek()
        if self.pos < self._base + len(self.text):
            self.pos += 1
        return char

    def startswith(self, literal: str) -> bool:
        self._ensure(len(literal))
        return self.text.startswith(literal, self.pos - self._base)

    def slice(self, start: Position, end: Position) -> str:
        """Returns buffered text between two absolute positions."""
        return self.text[start - self._base : end - self._base]

    def location(self, pos: Position) -> tuple[int, int, int]:
        """Returns (line, column, absolute offset) for a stream position."""
        i = pos - self._base
        newlines = self.text.count("\n", 0, i)
        line = self._line + newlines
        if newlines:
            column = i - self.text.rfind("\n", 0, i)
        else:
            column = self._column + i + 1
        return line, column, pos

    def fail(self, msg: str, pos: Position) -> NoReturn:
        line, column, offset = self.location(pos)
        if self.on_error is not None:
            self.on_error(msg, line, column, offset)
        raise TokenizerSyntaxError(msg, line, column, offset)

    def discard_consumed(self) -> None:
        """Drops everything before pos; called between top-level values."""
        self._keep = self._token_start = self.pos
        self._discard(self.pos)

    def skip_whitespace(self) -> None:
        """Skips JSON whitespace."""
        while self.peek() in _WHITESPACE:
            self.pos += 1

    def scan_string(self) -> JsonToken:
        """Scans a JSON string token including quotes."""
        with ProfileContext("scan_string"):
            start = self.pos
            if self.advance() != '"':
                self.fail("Expected string", start)

            while self.pos < self._base + len(self.text) or self._ensure(1):
                char = self.text[self.pos - self._base]
                self.pos += 1
                if char == '"':
                    return JsonToken(
                        TokenType.STRING,
                        self.slice(start, self.pos),
                        start,
                        self.pos,
                    )
                elif char == "\\":
                    # Skip escaped character
                    if self._ensure(1):
                        self.pos += 1
                elif char < " ":
                    self.fail("Invalid control character at", self.pos - 1)

            self.fail("Unterminated string starting at", start)

    def _scan_digits(self) -> None:
        while self.peek() in _DIGITS:
            self.pos += 1

    def scan_number(self) -> JsonToken:
        """Scans a JSON number token, or the -Infinity literal."""
        with ProfileContext("scan_number"):
            start = self.pos

            if self.startswith("-Infinity"):
                self.pos += len("-Infinity")
                return JsonToken(TokenType.LITERAL, "-Infinity", start, self.pos)

            if self.peek() == "-":
                self.advance()

            # Integer part
            if self.peek() == "0":
                self.advance()
                if self.peek() in _DIGITS:
                    self.fail("Leading zeros not allowed", start)
            elif self.peek() in _DIGITS:
                self._scan_digits()
            else:
                self.fail("Invalid number", start)

            # Decimal part
            if self.peek() == ".":
                self.advance()
                if self.peek() not in _DIGITS:
                    self.fail("Invalid decimal number", start)
                self._scan_digits()

            # Exponent part
            if self.peek() in "eE":
                self.advance()
                if self.peek() in "+-":
                    self.advance()
                if self.peek() not in _DIGITS:
                    self.fail("Invalid exponent", start)
                self._scan_digits()

            return JsonToken(
                TokenType.NUMBER, self.slice(start, self.pos), start, self.pos
            )

    def scan_literal(self) -> JsonToken:
        """Scans literal tokens: true, false, null, NaN, Infinity."""
        start = self.pos
        for literal in ("true", "false", "null", "NaN", "Infinity"):
            if self.startswith(literal):
                self.pos += len(literal)
                return JsonToken(TokenType.LITERAL, literal, start, self.pos)
        self.fail("Expecting value", start)

    def next_token(self) -> JsonToken | None:
        """Returns the next token or None if at end."""
        self._keep = self._token_start
        self.skip_whitespace()

        if self.at_end():
            return None

        char = self.peek()
        start = self._token_start = self.pos

        if char in _STRUCTURAL:
            self.advance()
            return JsonToken(_STRUCTURAL[char], char, start, self.pos)
        elif char == '"':
            return self.scan_string()
        elif char in _DIGITS or char == "-":
            return self.scan_number()
        elif char in "tfnIN":
            return self.scan_literal()
        else:
            self.fail("Expecting value", self.pos)


class JsonParser:
    """
    Recursive descent JSON parser reporting to a StructureBuilder.

    Containers are created by the builder and handed back to it element by
    element; nesting follows the call stack.
    """

    def __init__(self, lexer: JsonLexer, handler: StructureBuilder):
        self.lexer = lexer
        self.handler = handler
        self._at_start = True

    def step(self, required: bool = False) -> bool:
        """
        Parses the next top-level value and hands it to the handler.

        Returns False once input is exhausted. With required=True, running
        out of input before a value starts is a syntax error.
        """
        if self._at_start:
            self._at_start = False
            if self.lexer.startswith("\ufeff"):
                self.lexer.fail(
                    "JSON input should not contain BOM (Byte Order Mark)", 0
                )

        token = self.lexer.next_token()
        if token is None:
            if required:
                self.lexer.fail("Expecting value", self.lexer.pos)
            return False

        self.handler.add_value(self.parse_value(token))
        self.lexer.discard_consumed()
        return True

    def expect_token(self) -> JsonToken:
        token = self.lexer.next_token()
        if token is None:
            self.lexer.fail("Expecting value", self.lexer.pos)
        return token

    def parse_value(self, token: JsonToken) -> Any:
        """Parses any JSON value starting at token."""
        if token.type is TokenType.STRING:
            return _parse_string_content(token, self.lexer)
        elif token.type is TokenType.NUMBER:
            return _parse_number_content(token, self.lexer)
        elif token.type is TokenType.LITERAL:
            return _LITERALS[token.value]
        elif token.type is TokenType.BEGIN_OBJECT:
            return self.parse_object()
        elif token.type is TokenType.BEGIN_ARRAY:
            return self.parse_array()
        else:
            self.lexer.fail("Expecting value", token.start)

    def _parse_object_key(self, token: JsonToken | None) -> str:
        """Parses object key and validates it's a proper string token."""
        if token is None or token.type is not TokenType.STRING:
            self.lexer.fail(
                "Expecting property name enclosed in double quotes",
                token.start if token else self.lexer.pos,
            )
        return _parse_string_content(token, self.lexer)

    def parse_object(self) -> Any:
        """Parses a JSON object after its opening brace."""
        with ProfileContext("parse_object"):
            hash_ = self.handler.hash_start()

            token = self.lexer.next_token()
            if token is not None and token.type is TokenType.END_OBJECT:
                return hash_

            while True:
                key = self._parse_object_key(token)

                colon = self.lexer.next_token()
                if colon is None or colon.type is not TokenType.COLON:
                    self.lexer.fail(
                        "Expecting ':' delimiter",
                        colon.start if colon else self.lexer.pos,
                    )

                decoded_key = self.handler.hash_key(key)
                value = self.parse_value(self.expect_token())
                self.handler.hash_store(hash_, decoded_key, value)

                token = self.lexer.next_token()
                if token is None:
                    self.lexer.fail("Expecting ',' delimiter", self.lexer.pos)
                if token.type is TokenType.END_OBJECT:
                    return hash_
                if token.type is not TokenType.COMMA:
                    self.lexer.fail("Expecting ',' delimiter", token.start)

                comma_pos = token.start
                token = self.lexer.next_token()
                if token is not None and token.type is TokenType.END_OBJECT:
                    self.lexer.fail(
                        "Illegal trailing comma before end of object", comma_pos
                    )

    def parse_array(self) -> Any:
        """Parses a JSON array after its opening bracket."""
        with ProfileContext("parse_array"):
            array = self.handler.array_start()

            token = self.lexer.next_token()
            if token is not None and token.type is TokenType.END_ARRAY:
                return array

            while True:
                if token is None:
                    self.lexer.fail("Expecting value", self.lexer.pos)
                self.handler.array_append(array, self.parse_value(token))

                token = self.lexer.next_token()
                if token is None:
                    self.lexer.fail("Expecting ',' delimiter", self.lexer.pos)
                if token.type is TokenType.END_ARRAY:
                    return array
                if token.type is not TokenType.COMMA:
                    self.lexer.fail("Expecting ',' delimiter", token.start)

                comma_pos = token.start
                token = self.lexer.next_token()
                if token is not None and token.type is TokenType.END_ARRAY:
                    self.lexer.fail(
                        "Illegal trailing comma before end of array", comma_pos
                    )


def _process_escape_sequence(
    inner: str, i: int, token: JsonToken, lexer: JsonLexer
) -> tuple[str, int]:
    """Process a single escape sequence and return the character and new position."""
    next_char = inner[i + 1]
    # Position of the backslash in the lexer buffer (skip the opening quote)
    pos = token.start + 1 + i

    if next_char in _ESCAPES:
        return _ESCAPES[next_char], i + 2
    elif next_char == "u":
        code_point = _read_hex4(inner, i + 2, pos, lexer)
        end = i + 6
        # Combine UTF-16 surrogate pairs
        if 0xD800 <= code_point <= 0xDBFF and inner.startswith("\\u", end):
            low = _read_hex4(inner, end + 2, pos, lexer)
            if 0xDC00 <= low <= 0xDFFF:
                code_point = 0x10000 + ((code_point - 0xD800) << 10) + (low - 0xDC00)
                end += 6
        return chr(code_point), end
    else:
        lexer.fail(f"Invalid \\escape: {next_char!r}", pos)


def _read_hex4(inner: str, i: int, pos: Position, lexer: JsonLexer) -> int:
    hex_digits = inner[i : i + 4]
    if len(hex_digits) < 4 or not all(c in "0123456789abcdefABCDEF" for c in hex_digits):
        lexer.fail("Invalid \\uXXXX escape", pos)
    return int(hex_digits, 16)


def _parse_string_content(token: JsonToken, lexer: JsonLexer) -> str:
    """Parses JSON string content, handling escape sequences."""
    with ProfileContext("parse_string", len(token.value)):
        inner = token.value[1:-1]
        if "\\" not in inner:
            return inner

        result = []
        i = 0
        while i < len(inner):
            if inner[i] == "\\" and i + 1 < len(inner):
                char, i = _process_escape_sequence(inner, i, token, lexer)
                result.append(char)
            else:
                result.append(inner[i])
                i += 1

        return "".join(result)


def _parse_number_content(token: JsonToken, lexer: JsonLexer) -> int | float:
    """Parses JSON number content; integers stay exact."""
    with ProfileContext("parse_number", len(token.value)):
        content = token.value
        try:
            if "." in content or "e" in content or "E" in content:
                return float(content)
            return int(content)
        except ValueError as e:
            # Python's int conversion limit
            if "Exceeds the limit" in str(e):
                lexer.fail("Number too large", token.start)
            lexer.fail("Invalid number", token.start)


def json_tokenizer(
    source: Any,
    handler: StructureBuilder,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> JsonParser:
    """Builds a JSON parser over source that reports to handler."""
    lexer = JsonLexer(TextChunks(source, chunk_size), on_error=handler.error)
    return JsonParser(lexer, handler)


__all__ = [
    "JsonLexer",
    "JsonParser",
    "JsonToken",
    "TextChunks",
    "TokenType",
    "json_tokenizer",
]

"""
Streaming JSON Array Reader

Decodes the elements of one named array inside a JSON object one at a time,
without parsing the whole document. Chunk files are shaped {"items": [...]} and
can be large, so the reader keeps only a bounded text buffer in memory: at most
one undecoded element plus one read block.

Positioning is structural rather than a fixed byte offset: the reader consumes
the opening "{", walks the top-level keys (skipping the values of any that are
not the target), consumes the array's "[", then yields elements until the
closing "]". Whitespace and pretty-printing anywhere between tokens is fine.

Usage:
    with open('opportunity.json', encoding='utf-8') as fp:
        for item in iter_array_items(fp, 'items'):
            ...
"""

import json
from json.decoder import WHITESPACE
from typing import Any, Iterator, Optional, TextIO


DEFAULT_READ_SIZE = 64 * 1024

# Upper bound on the text buffered while waiting for one element to complete.
DEFAULT_MAX_ELEMENT_CHARS = 16 * 1024 * 1024

_NUMBER_CHARS = frozenset('0123456789.eE+-')


class JSONStreamError(ValueError):
    """
    Raised when the stream is not a {"<key>": [ ... ]} document.

    Attributes:
        ordinal: 1-based position of the array element being decoded when the
            error occurred, or None if it happened outside the array.
    """

    def __init__(self, message: str, ordinal: Optional[int] = None):
        if ordinal is not None:
            message = f"element {ordinal}: {message}"
        super().__init__(message)
        self.ordinal = ordinal


class JSONArrayStream:
    """Token-level reader over a text stream holding one JSON object."""

    def __init__(
        self,
        fp: TextIO,
        read_size: int = DEFAULT_READ_SIZE,
        max_element_chars: int = DEFAULT_MAX_ELEMENT_CHARS,
    ):
        self._fp = fp
        self._read_size = read_size
        self._max_element_chars = max_element_chars
        self._decoder = json.JSONDecoder()
        self._buf = ''
        self._pos = 0
        self._eof = False
        self._ordinal: Optional[int] = None

    # -------------------------------------------------------------------------
    # Buffer management
    # -------------------------------------------------------------------------

    def _fill(self) -> bool:
        """Read another block into the buffer. Returns False at end of stream."""
        if self._eof:
            return False
        try:
            block = self._fp.read(self._read_size)
        except UnicodeDecodeError as exc:
            raise self._error(f"invalid text encoding: {exc}") from exc
        if not block:
            self._eof = True
            return False
        # Drop consumed text so memory stays proportional to one element.
        self._buf = self._buf[self._pos:] + block
        self._pos = 0
        return True

    def _error(self, message: str) -> JSONStreamError:
        return JSONStreamError(message, self._ordinal)

    def _peek(self) -> str:
        """Skip whitespace and return the next character without consuming it ("" at EOF)."""
        while True:
            self._pos = WHITESPACE.match(self._buf, self._pos).end()
            if self._pos < len(self._buf):
                return self._buf[self._pos]
            if not self._fill():
                return ''

    def _expect(self, token: str) -> None:
        char = self._peek()
        if char != token:
            found = repr(char) if char else 'end of stream'
            raise self._error(f"expected {token!r}, found {found}")
        self._pos += 1

    def _decode_value(self) -> Any:
        """Decode one complete JSON value starting at the next non-whitespace character."""
        if not self._peek():
            raise self._error("unexpected end of stream")
        while True:
            try:
                value, end = self._decoder.raw_decode(self._buf, self._pos)
            except json.JSONDecodeError as exc:
                if self._eof:
                    raise self._error(exc.msg) from exc
                self._grow()
                continue
            if not self._eof and self._may_continue(value, end):
                self._grow()
                continue
            self._pos = end
            return value

    def _may_continue(self, value: Any, end: int) -> bool:
        """True when a decoded value could be the prefix of a longer one cut at the buffer edge."""
        if end == len(self._buf):
            return True
        is_number = isinstance(value, (int, float)) and not isinstance(value, bool)
        return is_number and self._buf[end] in _NUMBER_CHARS

    def _grow(self) -> None:
        if len(self._buf) - self._pos > self._max_element_chars:
            raise self._error(f"value exceeds {self._max_element_chars} characters")
        self._fill()

    # -------------------------------------------------------------------------
    # Structural navigation
    # -------------------------------------------------------------------------

    def seek_array(self, key: str) -> None:
        """Consume tokens up to and including the "[" that opens the array under `key`."""
        self._expect('{')
        while True:
            char = self._peek()
            if char == '}' or not char:
                raise self._error(f"key {key!r} not found")
            name = self._decode_value()
            if not isinstance(name, str):
                raise self._error("object key is not a string")
            self._expect(':')
            if name == key:
                break
            self._decode_value()
            char = self._peek()
            if char == ',':
                self._pos += 1
            elif char != '}':
                found = repr(char) if char else 'end of stream'
                raise self._error(f"expected ',' or '}}', found {found}")
        self._expect('[')

    def iter_items(self) -> Iterator[Any]:
        """Yield array elements in order, consuming the closing "]" last."""
        ordinal = 1
        if self._peek() == ']':
            self._pos += 1
            return
        while True:
            self._ordinal = ordinal
            item = self._decode_value()
            yield item
            ordinal += 1
            self._ordinal = ordinal
            char = self._peek()
            if char == ',':
                self._pos += 1
                continue
            if char == ']':
                self._pos += 1
                self._ordinal = None
                return
            found = repr(char) if char else 'end of stream'
            raise self._error(f"expected ',' or ']', found {found}")


def iter_array_items(fp: TextIO, key: str = 'items', **kwargs: Any) -> Iterator[Any]:
    """
    Iterate the elements of the array stored under `key` in a JSON object stream.

    Raises:
        JSONStreamError: On malformed structure or an undecodable element. The
            exception's `ordinal` names the element being decoded.
    """
    stream = JSONArrayStream(fp, **kwargs)
    stream.seek_array(key)
    yield from stream.iter_items()

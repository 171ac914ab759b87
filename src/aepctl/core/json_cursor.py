#!/usr/bin/env python3
"""
Forward-only JSON tokenizer over a byte stream.

The cursor reads the stream in chunks and yields one Token per call of
next(). Besides the tokens it tracks

    state   a stack of INITIAL, OBJECT (key or '}' expected), OBJECT_VALUE
            (':' and a value expected), ARRAY (value or ']' expected) and
            DONE (outermost container closed)
    path    the object keys currently in scope; array elements do not
            extend the path

The outermost value must be an object or an array. Any sequence a
well-formed document could not produce raises ParseError with the byte
offset of the offending input.
"""

import json
import re
from enum import Enum
from typing import Any, List, NamedTuple, Optional, Tuple

from .context import Context
from .errors import ParseError

CHUNK_SIZE = 16 * 1024

WHITESPACE = frozenset(b' \t\r\n')
NUMBER_BYTES = frozenset(b'+-0123456789.eE')
NUMBER = re.compile(rb'-?(?:0|[1-9][0-9]*)(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?')

QUOTE = ord('"')
BACKSLASH = ord('\\')
COMMA = ord(',')
COLON = ord(':')
LBRACE, RBRACE = ord('{'), ord('}')
LBRACKET, RBRACKET = ord('['), ord(']')

LITERALS = {
    ord('t'): (b'true', True),
    ord('f'): (b'false', False),
    ord('n'): (b'null', None),
}


class TokenKind(Enum):
    OBJECT_OPEN = '{'
    OBJECT_CLOSE = '}'
    ARRAY_OPEN = '['
    ARRAY_CLOSE = ']'
    STRING = 'string'
    NUMBER = 'number'
    BOOLEAN = 'boolean'
    NULL = 'null'


OPEN_KINDS = (TokenKind.OBJECT_OPEN, TokenKind.ARRAY_OPEN)
CLOSE_KINDS = (TokenKind.OBJECT_CLOSE, TokenKind.ARRAY_CLOSE)


class State(Enum):
    INITIAL = 'initial'
    OBJECT = 'object'
    OBJECT_VALUE = 'object-value'
    ARRAY = 'array'
    DONE = 'done'


class Token(NamedTuple):
    kind: TokenKind
    value: Any
    offset: int
    raw: bytes = b''
    key: bool = False


def _kind_of(byte: Optional[int]) -> Optional[TokenKind]:
    if byte is None:
        return None
    if byte == LBRACE:
        return TokenKind.OBJECT_OPEN
    if byte == LBRACKET:
        return TokenKind.ARRAY_OPEN
    if byte == RBRACE:
        return TokenKind.OBJECT_CLOSE
    if byte == RBRACKET:
        return TokenKind.ARRAY_CLOSE
    if byte == QUOTE:
        return TokenKind.STRING
    if byte in (ord('t'), ord('f')):
        return TokenKind.BOOLEAN
    if byte == ord('n'):
        return TokenKind.NULL
    return TokenKind.NUMBER


class JsonCursor:
    """
    Streaming tokenizer with state and path tracking.

    Args:
        stream: object with read(n) returning bytes, b'' at the end
        ctx: checked before every read of the stream
    """

    def __init__(self, stream, ctx: Optional[Context] = None, chunk_size: int = CHUNK_SIZE):
        self._stream = stream
        self._ctx = ctx
        self.chunk_size = chunk_size
        self._buf = bytearray()
        self._pos = 0
        self._base = 0
        self._eof = False
        self._last = 0
        self._stack: List[State] = [State.INITIAL]
        self._path: List[str] = []
        self._after_value = False

    # ------------------------------------------------------------------
    # state

    @property
    def state(self) -> State:
        return self._stack[-1]

    @property
    def path(self) -> Tuple[str, ...]:
        return tuple(self._path)

    @property
    def depth(self) -> int:
        """Number of open containers"""
        return sum(1 for s in self._stack if s in (State.OBJECT, State.ARRAY))

    @property
    def terminated(self) -> bool:
        return self._stack[-1] is State.DONE

    @property
    def offset(self) -> int:
        return self._base + self._pos

    # ------------------------------------------------------------------
    # buffer

    def _fill(self) -> bool:
        if self._eof:
            return False
        if self._ctx is not None:
            self._ctx.check()
        data = self._stream.read(self.chunk_size)
        if not data:
            self._eof = True
            return False
        if self._pos:
            del self._buf[:self._pos]
            self._base += self._pos
            self._pos = 0
        self._buf += data
        return True

    def _byte_at(self, rel: int) -> Optional[int]:
        while self._pos + rel >= len(self._buf):
            if not self._fill():
                return None
        return self._buf[self._pos + rel]

    def _skip_ws(self) -> Optional[int]:
        while True:
            b = self._byte_at(0)
            if b is None or b not in WHITESPACE:
                return b
            self._pos += 1

    def _consume(self, count: int = 1):
        self._last = self._base + self._pos + count - 1
        self._pos += count

    def _eof_error(self, what: str = 'unexpected end of JSON input') -> ParseError:
        return ParseError(what, offset=self._last, expected=self._expected())

    def _error(self, message: str, offset: Optional[int] = None) -> ParseError:
        return ParseError(message, offset=self.offset if offset is None else offset, expected=self._expected())

    def _expected(self) -> str:
        state = self._stack[-1]
        if state is State.INITIAL:
            return "'{' or '['"
        if state is State.OBJECT:
            return "',' or '}'" if self._after_value else "key or '}'"
        if state is State.OBJECT_VALUE:
            return "':' and value"
        if state is State.ARRAY:
            return "',' or ']'" if self._after_value else "value or ']'"
        return 'end of input'

    def _lookahead(self) -> Optional[int]:
        """First significant byte after an optional separator, nothing consumed"""
        b = self._skip_ws()
        if b not in (COMMA, COLON):
            return b
        rel = 1
        while True:
            b = self._byte_at(rel)
            if b is None or b not in WHITESPACE:
                return b
            rel += 1

    # ------------------------------------------------------------------
    # scalars

    def _read_string(self) -> Tuple[bytes, str]:
        start = self.offset
        rel = 1
        while True:
            idx = self._buf.find(b'"', self._pos + rel)
            if idx < 0:
                rel = len(self._buf) - self._pos
                if not self._fill():
                    raise ParseError('unexpected end of JSON input in string', offset=start)
                continue
            j = idx - 1
            backslashes = 0
            while j > self._pos and self._buf[j] == BACKSLASH:
                backslashes += 1
                j -= 1
            if backslashes % 2:
                rel = idx - self._pos + 1
                continue
            raw = bytes(self._buf[self._pos:idx + 1])
            self._consume(idx + 1 - self._pos)
            try:
                return raw, json.loads(raw)
            except ValueError as e:
                raise ParseError(f'invalid string: {e}', offset=start)

    def _read_number(self) -> Tuple[bytes, Any]:
        start = self.offset
        rel = 0
        while True:
            b = self._byte_at(rel)
            if b is None or b not in NUMBER_BYTES:
                break
            rel += 1
        raw = bytes(self._buf[self._pos:self._pos + rel])
        if not raw:
            raise self._error(f"invalid character {chr(self._buf[self._pos])!r}")
        if not NUMBER.fullmatch(raw):
            raise ParseError(f'invalid number {raw.decode("ascii")}', offset=start)
        self._consume(rel)
        if any(c in raw for c in b'.eE'):
            return raw, float(raw)
        return raw, int(raw)

    def _read_literal(self, first: int) -> Tuple[bytes, Any]:
        start = self.offset
        word, value = LITERALS[first]
        for rel in range(len(word)):
            b = self._byte_at(rel)
            if b is None:
                raise self._eof_error()
            if b != word[rel]:
                raise ParseError(f'invalid literal, expected {word.decode("ascii")}', offset=start)
        self._consume(len(word))
        return word, value

    # ------------------------------------------------------------------
    # tokens

    def _finish_value(self):
        if self._stack[-1] is State.OBJECT_VALUE:
            self._stack.pop()
            self._path.pop()
        self._after_value = True

    def _value(self, b: int) -> Token:
        offset = self.offset
        if b == LBRACE:
            self._consume()
            self._stack.append(State.OBJECT)
            self._after_value = False
            return Token(TokenKind.OBJECT_OPEN, None, offset, b'{')
        if b == LBRACKET:
            self._consume()
            self._stack.append(State.ARRAY)
            self._after_value = False
            return Token(TokenKind.ARRAY_OPEN, None, offset, b'[')
        if b == QUOTE:
            raw, value = self._read_string()
            kind = TokenKind.STRING
        elif b in LITERALS:
            raw, value = self._read_literal(b)
            kind = TokenKind.NULL if value is None else TokenKind.BOOLEAN
        elif b in (RBRACE, RBRACKET, COMMA, COLON):
            raise self._error(f"invalid character {chr(b)!r}, expected value")
        else:
            raw, value = self._read_number()
            kind = TokenKind.NUMBER
        self._finish_value()
        return Token(kind, value, offset, raw)

    def _close(self, kind: TokenKind) -> Token:
        offset = self.offset
        self._consume()
        self._stack.pop()
        if self._stack[-1] is not State.DONE:
            self._finish_value()
        return Token(kind, None, offset, kind.value.encode('ascii'))

    def next(self) -> Optional[Token]:
        """Next token, None once the outermost container has been closed"""
        state = self._stack[-1]
        if state is State.DONE:
            b = self._skip_ws()
            if b is not None:
                raise self._error(f"invalid character {chr(b)!r} after top-level value")
            return None
        b = self._skip_ws()
        if b is None:
            raise self._eof_error()

        if state is State.INITIAL:
            if b not in (LBRACE, LBRACKET):
                raise self._error(f"invalid character {chr(b)!r}, expected '{{' or '['")
            self._stack = [State.DONE]
            return self._value(b)

        if state is State.OBJECT:
            if b == RBRACE:
                return self._close(TokenKind.OBJECT_CLOSE)
            if self._after_value:
                if b != COMMA:
                    raise self._error(f"invalid character {chr(b)!r}, expected ',' or '}}'")
                self._consume()
                b = self._skip_ws()
                if b is None:
                    raise self._eof_error()
            if b != QUOTE:
                raise self._error(f"invalid character {chr(b)!r}, expected object key")
            offset = self.offset
            raw, key = self._read_string()
            self._path.append(key)
            self._stack.append(State.OBJECT_VALUE)
            self._after_value = False
            return Token(TokenKind.STRING, key, offset, raw, key=True)

        if state is State.OBJECT_VALUE:
            if b != COLON:
                raise self._error(f"invalid character {chr(b)!r}, expected ':'")
            self._consume()
            b = self._skip_ws()
            if b is None:
                raise self._eof_error()
            return self._value(b)

        # State.ARRAY
        if b == RBRACKET:
            return self._close(TokenKind.ARRAY_CLOSE)
        if self._after_value:
            if b != COMMA:
                raise self._error(f"invalid character {chr(b)!r}, expected ',' or ']'")
            self._consume()
            b = self._skip_ws()
            if b is None:
                raise self._eof_error()
        return self._value(b)

    def next_required(self) -> Token:
        token = self.next()
        if token is None:
            raise self._error('unexpected end of document')
        return token

    def __iter__(self):
        while True:
            token = self.next()
            if token is None:
                return
            yield token

    # ------------------------------------------------------------------
    # navigation

    def peek_kind(self) -> Optional[TokenKind]:
        """Kind of the next token without consuming it, None at the end"""
        if self._stack[-1] is State.DONE:
            return None
        return _kind_of(self._lookahead())

    def more(self) -> bool:
        """True if the current object or array has another element"""
        state = self._stack[-1]
        if state is State.DONE:
            return False
        if state in (State.INITIAL, State.OBJECT_VALUE):
            return True
        b = self._skip_ws()
        return b is not None and b not in (RBRACE, RBRACKET)

    def skip(self):
        """Consume exactly one value; inside an object the key and its value"""
        token = self.next_required()
        if token.key:
            token = self.next_required()
        self._skip_from(token)

    def _skip_from(self, token: Token):
        if token.kind in CLOSE_KINDS:
            raise ParseError(f"unexpected '{token.kind.value}', expected value", offset=token.offset)
        if token.kind not in OPEN_KINDS:
            return
        depth = 1
        while depth:
            token = self.next_required()
            if token.kind in OPEN_KINDS:
                depth += 1
            elif token.kind in CLOSE_KINDS:
                depth -= 1

    def settle(self, depth: int):
        """Consume input until the value started at the passed depth is complete"""
        while self.depth > depth:
            self.next_required()
        if self._stack[-1] is State.OBJECT_VALUE and self.depth == depth:
            self.skip()

    def decode(self) -> Any:
        """Materialize the next value as dict, list or scalar"""
        token = self.next_required()
        if token.key:
            raise ParseError(f"unexpected key {token.value!r}, expected value", offset=token.offset)
        return self._materialize(token)

    def _materialize(self, token: Token) -> Any:
        # containers are tracked on a list, nesting depth is limited by the input only
        result = self._start_value(token)
        open_values = [result] if token.kind in OPEN_KINDS else []
        while open_values:
            parent = open_values[-1]
            token = self.next_required()
            if token.kind in CLOSE_KINDS:
                open_values.pop()
                continue
            if isinstance(parent, dict):
                key = token.value
                token = self.next_required()
                value = parent[key] = self._start_value(token)
            else:
                value = self._start_value(token)
                parent.append(value)
            if token.kind in OPEN_KINDS:
                open_values.append(value)
        return result

    @staticmethod
    def _start_value(token: Token) -> Any:
        if token.kind is TokenKind.OBJECT_OPEN:
            return {}
        if token.kind is TokenKind.ARRAY_OPEN:
            return []
        if token.kind in CLOSE_KINDS:
            raise ParseError(f"unexpected '{token.kind.value}', expected value", offset=token.offset)
        return token.value

#!/usr/bin/env python3
"""
Iterator - path navigation on top of the JSON cursor.

The iterator never materializes more than the value it is asked for:
path() skips over non-matching attributes, range() decodes one element at
a time and hands it to the callback as a Query.
"""

import io
import json
from typing import Any, Callable, Optional

from .context import Context
from .errors import ParseError
from .json_cursor import CHUNK_SIZE, JsonCursor, State, TokenKind
from .query import Query

WILDCARD = '?'


class Iterator:
    def __init__(self, cursor: JsonCursor):
        self.cursor = cursor

    @classmethod
    def from_stream(cls, stream, ctx: Optional[Context] = None, chunk_size: int = CHUNK_SIZE) -> 'Iterator':
        return cls(JsonCursor(stream, ctx, chunk_size))

    @classmethod
    def from_bytes(cls, data: bytes, chunk_size: int = CHUNK_SIZE) -> 'Iterator':
        return cls.from_stream(io.BytesIO(data), chunk_size=chunk_size)

    @classmethod
    def from_value(cls, value: Any) -> 'Iterator':
        """Iterator positioned on an already decoded value"""
        if isinstance(value, (dict, list)):
            return cls.from_bytes(json.dumps(value).encode('utf-8'))
        # scalars are wrapped in an array, the iterator starts on the element
        result = cls.from_bytes(json.dumps([value]).encode('utf-8'))
        result.cursor.next()
        return result

    def _expect(self, *kinds: TokenKind):
        token = self.cursor.next_required()
        if token.key:
            token = self.cursor.next_required()
        if token.kind not in kinds:
            expected = ' or '.join(k.value for k in kinds)
            raise ParseError(f"expected {expected}, found {token.kind.value}", offset=token.offset,
                             expected=expected)
        return token

    def enter(self) -> TokenKind:
        """Consume the opening delimiter of the next object or array"""
        return self._expect(TokenKind.OBJECT_OPEN, TokenKind.ARRAY_OPEN).kind

    def enter_object(self):
        self._expect(TokenKind.OBJECT_OPEN)

    def enter_array(self):
        self._expect(TokenKind.ARRAY_OPEN)

    def exit(self):
        """Skip the remaining elements of the current container and its closing delimiter"""
        while self.cursor.more():
            self.cursor.skip()
        self._expect(TokenKind.OBJECT_CLOSE, TokenKind.ARRAY_CLOSE)

    def path(self, *keys: str) -> bool:
        """
        Walk into nested objects along keys, '?' matches any key.

        Returns True with the cursor positioned on the value of the last key,
        False if a key is missing or a value on the way is not an object.
        """
        for i, key in enumerate(keys):
            if self.cursor.state is not State.OBJECT or i > 0:
                if self.cursor.peek_kind() is not TokenKind.OBJECT_OPEN:
                    return False
                self.enter_object()
            while True:
                token = self.cursor.next_required()
                if token.kind is TokenKind.OBJECT_CLOSE:
                    return False
                if key == WILDCARD or token.value == key:
                    break
                self.cursor.skip()
        return True

    def more(self) -> bool:
        return self.cursor.more()

    def skip(self):
        self.cursor.skip()

    def key(self) -> str:
        """Read the next attribute name of the current object"""
        token = self.cursor.next_required()
        if not token.key:
            raise ParseError("expected object key", offset=token.offset)
        return token.value

    def next(self) -> Query:
        """Decode the next value; inside an object the attribute's value"""
        name = None
        if self.cursor.state is State.OBJECT:
            name = self.key()
        path = self.cursor.path
        json_path = '$' + ''.join(f'.{k}' for k in path)
        return Query(self.cursor.decode(), name=name, json_path=json_path)

    def range(self, func: Callable[[Query], Any]) -> int:
        """
        Call func for each element of the next array or object.

        Elements of an object carry their key as Query.name, elements of an
        array their index. Returns the number of elements.
        """
        kind = self.enter()
        base = '$' + ''.join(f'.{k}' for k in self.cursor.path)
        count = 0
        while self.cursor.more():
            if kind is TokenKind.OBJECT_OPEN:
                name = self.key()
                query = Query(self.cursor.decode(), name=name, json_path=f"{base}.{name}")
            else:
                query = Query(self.cursor.decode(), index=count, json_path=f"{base}[{count}]")
            func(query)
            count += 1
        self.cursor.next_required()
        return count

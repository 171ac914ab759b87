"""
tests/core/test_core_json_cursor.py - core/json_cursor.py
"""

import io
import json

import pytest

from aepctl.core.context import Context
from aepctl.core.errors import CancelledError, ParseError
from aepctl.core.json_cursor import JsonCursor, State, TokenKind

DOCUMENT = b'{"a": [1, 2.5, -3e2, "x\\"y"], "b": {"c": null, "d": true}, "e": [], "f": {}}'


def cursor_of(data: bytes, chunk_size: int = 16 * 1024, ctx=None) -> JsonCursor:
    return JsonCursor(io.BytesIO(data), ctx, chunk_size)


def kinds(data: bytes):
    return [t.kind for t in cursor_of(data)]


class TestTokens:
    """Token stream"""

    def test_document_order(self):
        """Tokens follow the document"""
        tokens = list(cursor_of(b'{"a": [1, true, null], "b": "x"}'))
        assert [t.kind for t in tokens] == [
            TokenKind.OBJECT_OPEN,
            TokenKind.STRING, TokenKind.ARRAY_OPEN, TokenKind.NUMBER, TokenKind.BOOLEAN, TokenKind.NULL,
            TokenKind.ARRAY_CLOSE,
            TokenKind.STRING, TokenKind.STRING,
            TokenKind.OBJECT_CLOSE,
        ]
        assert [t.value for t in tokens if t.key] == ['a', 'b']
        assert tokens[3].value == 1
        assert tokens[8].value == 'x'

    def test_raw_tokens_rebuild_document(self):
        """Raw tokens joined with their separators reproduce the document"""
        data = b'{ "a" : [ 1 , "x" ] , "b" : { } }'
        raw = b''.join(t.raw for t in cursor_of(data))
        assert raw == b'{"a"[1"x"]"b"{}}'
        assert json.loads(data) == cursor_of(data).decode()

    def test_empty_object(self):
        """{} is one token pair"""
        assert kinds(b'{}') == [TokenKind.OBJECT_OPEN, TokenKind.OBJECT_CLOSE]

    def test_empty_array(self):
        """[] is one token pair"""
        assert kinds(b'[ ]') == [TokenKind.ARRAY_OPEN, TokenKind.ARRAY_CLOSE]

    def test_nested_empty_containers(self):
        """Empty containers as values"""
        assert kinds(b'{"a": {}, "b": []}') == [
            TokenKind.OBJECT_OPEN,
            TokenKind.STRING, TokenKind.OBJECT_OPEN, TokenKind.OBJECT_CLOSE,
            TokenKind.STRING, TokenKind.ARRAY_OPEN, TokenKind.ARRAY_CLOSE,
            TokenKind.OBJECT_CLOSE,
        ]

    def test_terminated_after_outermost_close(self):
        """next() returns None once the document is closed"""
        cursor = cursor_of(b'[1]  ')
        assert len(list(cursor)) == 3
        assert cursor.terminated
        assert cursor.state is State.DONE
        assert cursor.next() is None

    def test_one_byte_chunks(self):
        """Chunk boundaries inside strings, numbers and literals"""
        data = '{"name": "caf\\u00e9 \\"x\\"", "n": -12.75e1, "ok": false, "list": [null, "ü"]}'.encode('utf-8')
        assert cursor_of(data, chunk_size=1).decode() == json.loads(data)


class TestPath:
    """Key path tracking"""

    def test_keys_in_scope(self):
        """Array elements do not extend the path"""
        cursor = cursor_of(b'{"a": {"b": [{"c": 1}]}, "d": 2}')
        paths = [cursor.path for t in cursor if t.key]
        assert paths == [('a',), ('a', 'b'), ('a', 'b', 'c'), ('d',)]

    def test_key_popped_after_value(self):
        """Path shrinks when the value is complete"""
        cursor = cursor_of(b'{"a": 1, "b": 2}')
        cursor.next()
        cursor.next()
        assert cursor.path == ('a',)
        cursor.next()
        assert cursor.path == ()


class TestNavigation:
    """skip, decode and more"""

    def test_skip_container(self):
        """skip consumes exactly one value"""
        cursor = cursor_of(b'[{"a": [1, {"b": 2}]}, 3]')
        cursor.next()
        cursor.skip()
        token = cursor.next()
        assert token.kind is TokenKind.NUMBER
        assert token.value == 3

    def test_skip_attribute(self):
        """Inside an object skip consumes key and value"""
        cursor = cursor_of(b'{"a": {"x": [1]}, "b": 2}')
        cursor.next()
        cursor.skip()
        assert cursor.next().value == 'b'

    def test_decode_value(self):
        """decode materializes the next value"""
        cursor = cursor_of(b'{"a": {"b": [1, 2]}, "c": 3}')
        cursor.next()
        cursor.next()
        assert cursor.decode() == {'b': [1, 2]}
        assert cursor.next().value == 'c'
        assert cursor.next().value == 3

    def test_more(self):
        """more is False at the closing delimiter"""
        cursor = cursor_of(b'[1]')
        cursor.next()
        assert cursor.more()
        cursor.next()
        assert not cursor.more()

    def test_peek_kind(self):
        """peek_kind looks past separators without consuming"""
        cursor = cursor_of(b'{"a": [1]}')
        cursor.next()
        cursor.next()
        assert cursor.peek_kind() is TokenKind.ARRAY_OPEN
        assert cursor.next().kind is TokenKind.ARRAY_OPEN


class TestErrors:
    """Malformed input"""

    def test_every_truncation_fails(self):
        """Each proper prefix raises ParseError within the document"""
        for n in range(len(DOCUMENT)):
            with pytest.raises(ParseError) as exc:
                list(cursor_of(DOCUMENT[:n]))
            assert 0 <= exc.value.offset <= len(DOCUMENT)

    def test_truncated_after_comma(self):
        """Offset points at the dangling comma"""
        data = b'{"_embedded":{"results":[{"id":1},'
        with pytest.raises(ParseError) as exc:
            list(cursor_of(data))
        assert exc.value.offset == data.index(b'},') + 1

    def test_imbalanced_close(self):
        """Wrong closing delimiter"""
        with pytest.raises(ParseError) as exc:
            list(cursor_of(b'{"a": 1]'))
        assert exc.value.offset == 7
        assert exc.value.expected == "',' or '}'"

    def test_scalar_document(self):
        """The outermost value must be a container"""
        with pytest.raises(ParseError) as exc:
            cursor_of(b'"x"').next()
        assert exc.value.offset == 0

    def test_invalid_number(self):
        """Malformed numbers"""
        with pytest.raises(ParseError):
            list(cursor_of(b'[1.]'))

    def test_missing_colon(self):
        """Key without colon"""
        with pytest.raises(ParseError):
            list(cursor_of(b'{"a" 1}'))

    @pytest.mark.parametrize('data,offset', [(b'{"a":1} garbage ]]]', 8), (b'[1][2]', 3), (b'{} ,', 3)])
    def test_trailing_data(self, data, offset):
        """Nothing but whitespace may follow the outermost value"""
        with pytest.raises(ParseError) as exc:
            list(cursor_of(data))
        assert exc.value.offset == offset

    def test_trailing_whitespace(self):
        cursor = cursor_of(b'{"a": 1}\r\n ')
        assert cursor.decode() == {'a': 1}
        assert cursor.next() is None

    def test_deep_nesting(self):
        """Depth is not limited by the interpreter stack"""
        depth = 5000
        value = cursor_of(b'[' * depth + b'{"a": 1}' + b']' * depth).decode()
        for _ in range(depth):
            value = value[0]
        assert value == {'a': 1}


class TestCancellation:
    """Context checks"""

    def test_cancelled_before_read(self):
        """A cancelled context stops the cursor"""
        ctx = Context.background()
        ctx.cancel('stop')
        with pytest.raises(CancelledError):
            cursor_of(b'[1]', ctx=ctx).next()

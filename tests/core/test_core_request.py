"""
tests/core/test_core_request.py - core/request.py
"""

import pytest

from aepctl.core.errors import ConfigError
from aepctl.core.request import (
    PageParams,
    RequestSpec,
    decode_query,
    encode_query,
    get_param,
    merge_headers,
    prepare,
)


class StubAuthenticator:
    """Fixed authentication headers, records the mint flag"""

    def __init__(self):
        self.minted = []

    def headers(self, ctx=None, mint=True):
        self.minted.append(mint)
        return {'Authorization': 'Bearer X', 'x-api-key': 'C', 'x-gw-ims-org-id': 'O', 'x-sandbox-name': 'prod'}


class TestQueryEncoding:
    """encode_query / decode_query"""

    def test_sorted_keys(self):
        assert encode_query({'b': ['2'], 'a': ['1']}) == '?a=1&b=2'

    def test_multiple_values(self):
        assert encode_query({'id': ['1', '2']}) == '?id=1&id=2'

    def test_empty_values_dropped(self):
        assert encode_query({'a': [''], 'b': ['x']}) == '?b=x'

    def test_empty_query_has_no_question_mark(self):
        assert encode_query({}) == ''
        assert encode_query({'a': ['']}) == ''

    def test_percent_encoding(self):
        """Keys and values are escaped"""
        assert encode_query({'schema.name': ['_xdm.context.profile'], 'q': ['a b&c=d/é']}) == \
            '?q=a+b%26c%3Dd%2F%C3%A9&schema.name=_xdm.context.profile'

    @pytest.mark.parametrize('query', [
        {'a': ['1']},
        {'z': ['x y'], 'a': ['1', '2'], 'property': ['name~^test']},
        {'orderby': ['-created'], 'continuationToken': ['abc==']},
    ])
    def test_round_trip(self, query):
        """decode(encode(q)) == q"""
        assert decode_query(encode_query(query)) == query

    def test_get_param(self):
        href = '/data/foundation/query/queries?orderby=-created&start=2024-01-01T00%3A00%3A00Z'
        assert get_param(href, 'start') == '2024-01-01T00:00:00Z'
        assert get_param(href, 'orderby') == '-created'
        assert get_param(href, 'missing') == ''
        assert get_param('', 'start') == ''


class TestRequestSpec:
    """Builder helpers"""

    def test_add_queries_drops_empty(self):
        spec = RequestSpec('GET', '/x').add_queries('limit', 10, 'orderby', '', 'name', None)
        assert spec.query == {'limit': ['10']}

    def test_add_queries_needs_pairs(self):
        with pytest.raises(ValueError):
            RequestSpec('GET', '/x').add_queries('limit')

    def test_with_query_copies(self):
        """with_query leaves the receiver untouched"""
        spec = RequestSpec('GET', '/x').add_query('start', '1')
        other = spec.with_query('start', '2')
        assert spec.query == {'start': ['1']}
        assert other.query == {'start': ['2']}
        assert spec.with_query('start', '').query == {}

    def test_set_header_if_absent(self):
        spec = RequestSpec('GET', '/x').set_header('accept', 'text/plain')
        spec.set_header_if_absent('Accept', 'application/json')
        assert spec.headers == {'accept': 'text/plain'}

    def test_values(self):
        spec = RequestSpec('GET', '/x').set_value('name', 'a b')
        assert spec.get_value('name') == 'a b'
        assert spec.get_value_path('name') == 'a%20b'
        assert spec.get_value('missing', 'default') == 'default'


class TestUrlTemplate:
    """{}, {N} and {name} placeholders"""

    def test_positional(self):
        spec = RequestSpec('GET', 'https://h/{}/x/{}', args=('a', 'b'))
        assert spec.expanded_url() == 'https://h/a/x/b'

    def test_indexed(self):
        spec = RequestSpec('GET', 'https://h/{1}/{0}', args=('a', 'b'))
        assert spec.expanded_url() == 'https://h/b/a'

    def test_named_values_escaped(self):
        spec = RequestSpec('GET', 'https://h/schemas/{id}', aux={'id': 'https://ns.adobe.com/t/schemas/1'})
        assert spec.expanded_url() == 'https://h/schemas/https%3A%2F%2Fns.adobe.com%2Ft%2Fschemas%2F1'

    def test_missing_value(self):
        with pytest.raises(ConfigError):
            RequestSpec('GET', 'https://h/{id}').expanded_url()

    def test_missing_argument(self):
        with pytest.raises(ConfigError):
            RequestSpec('GET', 'https://h/{}').expanded_url()

    def test_no_expansion(self):
        """Next links are used verbatim"""
        spec = RequestSpec('GET', 'https://h/{x}?a=1', expand=False)
        assert spec.full_url() == 'https://h/{x}?a=1'

    def test_full_url(self):
        spec = RequestSpec('GET', 'https://h/{name}', aux={'name': 'dev'}).add_query('limit', 5)
        assert spec.full_url() == 'https://h/dev?limit=5'


class TestPageParams:
    def test_apply(self):
        spec = PageParams(order='-created', limit=10, start='x', filter='name~^a').apply(RequestSpec('GET', '/q'))
        assert spec.query == {'orderby': ['-created'], 'limit': ['10'], 'start': ['x'], 'property': ['name~^a']}

    def test_token(self):
        spec = PageParams(start='abc', token=True).apply(RequestSpec('GET', '/q'))
        assert spec.query == {'continuationToken': ['abc']}


class TestPrepare:
    """Headers and Content-Type"""

    def test_auth_headers(self):
        prepared = prepare(RequestSpec('GET', 'https://h/x'), StubAuthenticator())
        assert prepared.headers['Authorization'] == 'Bearer X'
        assert prepared.headers['x-sandbox-name'] == 'prod'

    def test_caller_wins(self):
        spec = RequestSpec('GET', 'https://h/x').set_header('x-sandbox-name', 'dev')
        assert prepare(spec, StubAuthenticator()).headers['x-sandbox-name'] == 'dev'

    @pytest.mark.parametrize('method', ['GET', 'DELETE'])
    def test_no_content_type_without_body(self, method):
        prepared = prepare(RequestSpec(method, 'https://h/x'), StubAuthenticator())
        assert 'Content-Type' not in prepared.headers

    def test_content_type_with_body(self):
        prepared = prepare(RequestSpec('POST', 'https://h/x', body=b'[]'), StubAuthenticator())
        assert prepared.headers['Content-Type'] == 'application/json'
        assert prepared.body == b'[]'

    def test_caller_content_type(self):
        spec = RequestSpec('POST', 'https://h/x', body=b'a=1').set_header('content-type', 'text/plain')
        assert prepare(spec, StubAuthenticator()).headers['Content-Type'] == 'text/plain'

    def test_mint_flag_passed(self):
        auth = StubAuthenticator()
        prepare(RequestSpec('GET', 'https://h/x'), auth, mint=False)
        assert auth.minted == [False]

    def test_merge_headers_case_insensitive(self):
        headers = merge_headers({'Authorization': 'a'}, RequestSpec('GET', '/', headers={'authorization': 'b'}))
        assert headers['AUTHORIZATION'] == 'b'

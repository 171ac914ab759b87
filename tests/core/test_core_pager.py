"""
tests/core/test_core_pager.py - core/pager.py
"""

import pytest

from aepctl.core.errors import CancelledError, ParseError
from aepctl.core.pager import STYLE_URL, Pager, split_path
from aepctl.core.request import RequestSpec

PLATFORM = 'https://platform.adobe.io'


def results(*ids, href=None):
    page = {'_embedded': {'results': [{'id': i} for i in ids]}, '_links': {}}
    if href is not None:
        page['_links'] = {'next': {'href': href}}
    return page


class TestTokenStyle:
    """Paging parameters copied from the next link"""

    def test_two_pages(self, client, fake_session, ctx):
        """Rows 1, 2, 3 in order from exactly two requests"""
        fake_session.queue(results(1, 2, href='/path?continuationToken=abc'))
        fake_session.queue(results(3))
        ids = []
        pager = Pager(client, RequestSpec('GET', '/data/foundation/catalog/dataSets'))
        state = pager.run(ctx, '_embedded.results', on_item=lambda q: ids.append(q.int('id')))
        assert ids == [1, 2, 3]
        assert state.filter == {('_links', 'next', 'href'), ('_embedded', 'results')}
        assert state.calls == 2
        assert fake_session.urls == [
            f'{PLATFORM}/data/foundation/catalog/dataSets',
            f'{PLATFORM}/data/foundation/catalog/dataSets?continuationToken=abc',
        ]

    def test_links_before_payload(self, client, fake_session, ctx):
        """Attribute order does not matter"""
        fake_session.queue({'_links': {'next': {'href': '/p?continuationToken=t'}}, 'results': [{'id': 1}]})
        fake_session.queue({'results': [{'id': 2}]})
        ids = []
        Pager(client, RequestSpec('GET', '/p')).run(ctx, ['results'], on_item=lambda q: ids.append(q.int('id')))
        assert ids == [1, 2]

    def test_several_params(self, client, fake_session, ctx):
        """start and orderby are copied, the first parameter ends the listing"""
        fake_session.queue(results(1, href='/data/foundation/query/queries?orderby=-created&start=2024'))
        fake_session.queue(results(2, href='/data/foundation/query/queries?orderby=-created'))
        spec = RequestSpec('GET', '/data/foundation/query/queries').add_query('limit', 1)
        state = Pager(client, spec, params=('start', 'orderby')).run(ctx, '_embedded.results', on_item=lambda q: None)
        assert state.calls == 2
        assert fake_session.urls[1] == f'{PLATFORM}/data/foundation/query/queries?limit=1&orderby=-created&start=2024'
        assert spec.query == {'limit': ['1']}

    def test_no_next_link(self, client, fake_session, ctx):
        fake_session.queue(results(1))
        state = Pager(client, RequestSpec('GET', '/x')).run(ctx, '_embedded.results', on_item=lambda q: None)
        assert state.calls == 1
        assert state.terminal

    def test_links_only_without_item_handler(self, client, fake_session, ctx):
        """Without on_item only the next link is watched"""
        fake_session.queue(results(1))
        state = Pager(client, RequestSpec('GET', '/x')).run(ctx, '_embedded.results')
        assert state.filter == {('_links', 'next', 'href')}

    def test_single_param_as_string(self, client):
        assert Pager(client, RequestSpec('GET', '/x'), params='start').params == ('start',)


class TestUrlStyle:
    """Next links called verbatim"""

    def test_relative_link_with_base(self, client, fake_session, ctx):
        fake_session.queue({'items': [{'id': 'a'}], '_links': {'next': {'href': '/connections?start=2'}}})
        fake_session.queue({'items': [{'id': 'b'}]})
        ids = []
        pager = Pager(client, RequestSpec('GET', '/data/foundation/flowservice/connections'),
                      style=STYLE_URL, base='/data/foundation/flowservice')
        pager.run(ctx, 'items', on_item=lambda q: ids.append(q.str('id')))
        assert ids == ['a', 'b']
        assert fake_session.urls[1] == f'{PLATFORM}/data/foundation/flowservice/connections?start=2'

    def test_absolute_link(self, client, fake_session, ctx):
        fake_session.queue({'items': [], '_links': {'next': {'href': 'https://other.test/next?page=2'}}})
        fake_session.queue({'items': []})
        Pager(client, RequestSpec('GET', '/x'), style=STYLE_URL, base='/base').run(ctx, 'items')
        assert fake_session.urls[1] == 'https://other.test/next?page=2'

    def test_unknown_style(self, client):
        with pytest.raises(ValueError):
            Pager(client, RequestSpec('GET', '/x'), style='offset')


class TestTermination:
    """Bounded and cancelled listings"""

    def test_max_calls(self, client, fake_session, ctx):
        """A next link pointing to itself stops at max_calls"""
        fake_session.always(results(1, href='/x?continuationToken=same'))
        state = Pager(client, RequestSpec('GET', '/x'), max_calls=3).run(ctx, '_embedded.results')
        assert state.calls == 3
        assert len(fake_session.sent) == 3

    def test_cancel_while_streaming(self, client, fake_session, ctx):
        """Cancelling from the item handler ends the listing"""
        fake_session.always(results(1, 2, href='/x?continuationToken=same'))
        with pytest.raises(CancelledError):
            Pager(client, RequestSpec('GET', '/x')).run(ctx, '_embedded.results', on_item=lambda q: ctx.cancel())
        assert len(fake_session.sent) == 1

    def test_malformed_json_mid_stream(self, client, fake_session, ctx):
        """Truncated page fails at the comma, no second request"""
        fake_session.queue(b'{"_embedded":{"results":[{"id":1},')
        ids = []
        with pytest.raises(ParseError) as exc:
            Pager(client, RequestSpec('GET', '/x')).run(ctx, '_embedded.results',
                                                        on_item=lambda q: ids.append(q.int('id')))
        assert exc.value.offset == 33
        assert len(fake_session.sent) == 1

    def test_dry_run(self, dry_client, fake_session, ctx):
        """Empty stream, nothing sent"""
        items = []
        state = Pager(dry_client, RequestSpec('GET', '/x')).run(ctx, '_embedded.results', on_item=items.append)
        assert state.calls == 1
        assert items == []
        assert fake_session.sent == []


class TestPayloads:
    """Shapes of the payload value"""

    def test_object_payload(self, client, fake_session, ctx):
        """Object payloads are maps of elements"""
        fake_session.queue({'a': {'name': 'x'}, 'b': {'name': 'y'}})
        names = []
        Pager(client, RequestSpec('GET', '/x')).run(ctx, on_item=lambda q: names.append((q.name, q.str('name'))))
        assert names == [('a', 'x'), ('b', 'y')]

    def test_single_document(self, client, fake_session, ctx):
        """iterate_objects=False hands the whole object over"""
        fake_session.queue({'name': 'prod', 'state': 'active'})
        items = []
        Pager(client, RequestSpec('GET', '/x')).run(ctx, on_item=items.append, iterate_objects=False)
        assert [q.str('state') for q in items] == ['active']

    def test_root_array(self, client, fake_session, ctx):
        fake_session.queue([{'code': 'ECID'}, {'code': 'Email'}])
        codes = []
        Pager(client, RequestSpec('GET', '/x')).run(ctx, on_item=lambda q: codes.append(q.str('code')))
        assert codes == ['ECID', 'Email']

    def test_on_page(self, client, fake_session, ctx):
        """Materialized pages carry the raw bytes and the document"""
        fake_session.queue(results(1, href='/x?continuationToken=abc'))
        fake_session.queue(results(2))
        pages, ids = [], []
        Pager(client, RequestSpec('GET', '/x')).run(
            ctx, '_embedded.results', on_item=lambda q: ids.append(q.int('id')),
            on_page=lambda body, document: pages.append((body[:1], document.len('_embedded', 'results'))))
        assert pages == [(b'{', 1), (b'{', 1)]
        assert ids == [1, 2]

    def test_invalid_page(self, client, fake_session, ctx):
        fake_session.queue(b'{"a": ')
        with pytest.raises(ParseError):
            Pager(client, RequestSpec('GET', '/x')).run(ctx, on_page=lambda body, document: None)

    def test_split_path(self):
        assert split_path('_embedded.results') == ('_embedded', 'results')
        assert split_path(['a', 'b']) == ('a', 'b')
        assert split_path(None) == ()

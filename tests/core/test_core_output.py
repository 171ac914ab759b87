"""
tests/core/test_core_output.py - core/output.py
"""

import io
import json

import pytest
import yaml

from aepctl.core.errors import ConfigError
from aepctl.core.output import OutputConf
from aepctl.core.pager import Pager
from aepctl.core.request import RequestSpec
from aepctl.core.table import load_descriptor

DESCRIPTOR = load_descriptor({
    'path': ['_embedded', 'results'],
    'columns': [{'name': 'ID', 'path': 'id'}, {'name': 'NAME', 'path': 'name'}],
})


def two_pages(fake_session):
    fake_session.queue({'_embedded': {'results': [{'id': 1, 'name': 'a'}]},
                        '_links': {'next': {'href': '/x?continuationToken=t'}}})
    fake_session.queue({'_embedded': {'results': [{'id': 2, 'name': 'b'}]}})


class TestParse:
    """The -o/--output flag"""

    @pytest.mark.parametrize('value,mode', [
        (None, 'table'), ('wide', 'wide'), ('csv', 'csv'), ('json', 'json'), ('yaml', 'yaml'), ('raw', 'raw'),
    ])
    def test_modes(self, value, mode):
        assert OutputConf.parse(value).mode == mode

    def test_descriptor_file(self):
        conf = OutputConf.parse("wide='my table.yaml'")
        assert conf.mode == 'wide'
        assert conf.descriptor_file == 'my table.yaml'

    def test_jsonpath_dollar_added(self):
        """The leading $ is optional"""
        assert OutputConf.parse("jsonpath='.name'").expression == '$.name'
        assert OutputConf.parse('jsonpath=$.a[0]').expression == '$.a[0]'

    @pytest.mark.parametrize('value', ['xml', 'jsonpath', 'table=', 'json=x', 'jsonpath=$[[['])
    def test_invalid(self, value):
        with pytest.raises(ConfigError):
            OutputConf.parse(value)

    def test_no_descriptor(self):
        with pytest.raises(ConfigError):
            OutputConf.parse('table').descriptor(None)


class TestPrintPages:
    """Printing listings"""

    def test_table(self, client, fake_session, ctx):
        two_pages(fake_session)
        out = io.StringIO()
        OutputConf.parse('table', out=out).print_pages(ctx, Pager(client, RequestSpec('GET', '/x')), DESCRIPTOR)
        assert out.getvalue() == 'ID   NAME\n1    a\n2    b\n'

    def test_csv_without_headers(self, client, fake_session, ctx):
        two_pages(fake_session)
        out = io.StringIO()
        conf = OutputConf.parse('csv', headers=False, out=out)
        conf.print_pages(ctx, Pager(client, RequestSpec('GET', '/x')), DESCRIPTOR)
        assert out.getvalue() == '1,a\n2,b\n'

    def test_json(self, client, fake_session, ctx):
        """One pretty printed document per page"""
        two_pages(fake_session)
        out = io.StringIO()
        OutputConf.parse('json', out=out).print_pages(ctx, Pager(client, RequestSpec('GET', '/x')))
        text = out.getvalue()
        assert text.count('"_embedded"') == 2
        assert '  "_embedded": {' in text

    def test_yaml(self, client, fake_session, ctx):
        """Pages are separate YAML documents"""
        two_pages(fake_session)
        out = io.StringIO()
        OutputConf.parse('yaml', out=out).print_pages(ctx, Pager(client, RequestSpec('GET', '/x')))
        documents = list(yaml.safe_load_all(out.getvalue()))
        assert [d['_embedded']['results'][0]['id'] for d in documents] == [1, 2]

    def test_raw(self, client, fake_session, ctx):
        """Bytes unchanged"""
        fake_session.queue(b'{"a" :  1}')
        out = io.StringIO()
        OutputConf.parse('raw', out=out).print_pages(ctx, Pager(client, RequestSpec('GET', '/x')))
        assert out.getvalue() == '{"a" :  1}'

    def test_jsonpath(self, client, fake_session, ctx):
        two_pages(fake_session)
        out = io.StringIO()
        conf = OutputConf.parse("jsonpath='$._embedded.results[*].name'", out=out)
        conf.print_pages(ctx, Pager(client, RequestSpec('GET', '/x')))
        assert [json.loads(part) for part in out.getvalue().split('\n') if part] == ['a', 'b']

    def test_dry_run_prints_header(self, dry_client, ctx):
        """Header line only"""
        out = io.StringIO()
        OutputConf.parse('table', out=out).print_pages(ctx, Pager(dry_client, RequestSpec('GET', '/x')), DESCRIPTOR)
        assert out.getvalue() == 'ID   NAME\n'

    def test_dry_run_without_headers(self, dry_client, ctx):
        out = io.StringIO()
        conf = OutputConf.parse('table', headers=False, out=out)
        conf.print_pages(ctx, Pager(dry_client, RequestSpec('GET', '/x')), DESCRIPTOR)
        assert out.getvalue() == ''


class TestPrintValue:
    """Printing decoded values"""

    def test_single_document_row(self):
        out = io.StringIO()
        descriptor = load_descriptor({'columns': [{'name': 'TOKEN', 'path': 'token'}]})
        OutputConf.parse('table', out=out).print_value({'token': 'X'}, descriptor)
        assert out.getvalue() == 'TOKEN\nX\n'

    def test_json(self):
        out = io.StringIO()
        OutputConf.parse('json', out=out).print_value({'token': 'X'})
        assert json.loads(out.getvalue()) == {'token': 'X'}

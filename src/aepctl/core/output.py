#!/usr/bin/env python3
"""
Output configuration - the -o/--output flag and the printers behind it.

    table, wide, csv        rows projected by a TableDescriptor
    table=FILE, wide=FILE   same with a descriptor loaded from FILE
    json                    each page pretty printed
    yaml                    each page as YAML document
    raw                     response bytes unchanged
    jsonpath=EXPR           EXPR evaluated against each page
"""

import json
import sys
from typing import Any, Optional, TextIO

import yaml
from jsonpath_ng import parse as jsonpath_parse
from jsonpath_ng.exceptions import JsonPathLexerError, JsonPathParserError

from .context import Context
from .errors import ConfigError
from .pager import Pager, PageState
from .query import Query
from .table import RowWriter, TableDescriptor, TableRenderer, load_descriptor_file

TABLE = 'table'
WIDE = 'wide'
CSV = 'csv'
JSON = 'json'
YAML = 'yaml'
RAW = 'raw'
JSONPATH = 'jsonpath'

MODES = (TABLE, WIDE, CSV, JSON, YAML, RAW, JSONPATH)
TABULAR = (TABLE, WIDE, CSV)


def remove_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
        return value[1:-1]
    return value


def add_dollar(value: str) -> str:
    return value if value.startswith('$') else '$' + value


def parse_jsonpath(expression: str):
    try:
        return jsonpath_parse(expression)
    except (JsonPathLexerError, JsonPathParserError) as e:
        raise ConfigError(f"Invalid jsonpath expression {expression}", cause=e)


class OutputConf:
    def __init__(self, mode: str = TABLE, descriptor_file: Optional[str] = None,
                 expression: Optional[str] = None, headers: bool = True, out: Optional[TextIO] = None):
        if mode not in MODES:
            raise ConfigError(f"Unknown output format {mode}")
        self.mode = mode
        self.descriptor_file = descriptor_file
        self.expression = expression
        self.headers = headers
        self.out = out or sys.stdout
        self._jsonpath = parse_jsonpath(expression) if mode == JSONPATH else None

    @classmethod
    def parse(cls, value: Optional[str], headers: bool = True, out: Optional[TextIO] = None) -> 'OutputConf':
        """Parse the value of the -o/--output flag"""
        value = (value or TABLE).strip()
        name, sep, argument = value.partition('=')
        if not sep:
            if name == JSONPATH:
                raise ConfigError("jsonpath needs an expression, e.g. jsonpath='$.name'")
            return cls(name, headers=headers, out=out)
        argument = remove_quotes(argument)
        if name in (TABLE, WIDE):
            if not argument:
                raise ConfigError(f"{name}= needs a table descriptor file")
            return cls(name, descriptor_file=argument, headers=headers, out=out)
        if name == JSONPATH:
            return cls(JSONPATH, expression=add_dollar(argument), headers=headers, out=out)
        raise ConfigError(f"Unknown output format {value}")

    @property
    def wide(self) -> bool:
        return self.mode == WIDE

    @property
    def tabular(self) -> bool:
        return self.mode in TABULAR

    def descriptor(self, default: Optional[TableDescriptor]) -> TableDescriptor:
        if self.descriptor_file:
            return load_descriptor_file(self.descriptor_file)
        if default is None:
            raise ConfigError("No table format available for this command, use -o json or -o yaml")
        return default

    # ------------------------------------------------------------------
    # printers

    def print_pages(self, ctx: Context, pager: Pager, descriptor: Optional[TableDescriptor] = None) -> PageState:
        """Run the pager and print every page in the configured format"""
        if self.tabular:
            renderer = self.renderer(self.descriptor(descriptor))
            renderer.header()
            try:
                return pager.run(ctx, renderer.descriptor.path, on_item=renderer.row,
                                 iterate_objects=renderer.descriptor.iterator == 'object')
            finally:
                renderer.finish()
        pages = []

        def on_page(body: bytes, document: Query):
            self.write_document(document.value(), body, first=not pages)
            pages.append(body)

        return pager.run(ctx, on_page=on_page)

    def print_value(self, value: Any, descriptor: Optional[TableDescriptor] = None):
        """Print an already decoded value, e.g. a document not fetched through a pager"""
        if self.tabular:
            renderer = self.renderer(self.descriptor(descriptor))
            target = Query(value).get(*renderer.descriptor.path)
            if target.kind == 'object' and renderer.descriptor.iterator == 'object':
                target.range_attributes(lambda name, q: renderer.row(q))
            elif target.kind == 'array':
                target.range(renderer.row)
            else:
                renderer.row(target)
            renderer.finish()
            return
        self.write_document(value, json.dumps(value).encode('utf-8'))

    def renderer(self, descriptor: TableDescriptor) -> TableRenderer:
        writer = RowWriter(self.out, csv=self.mode == CSV)
        return TableRenderer(descriptor, writer, wide=self.wide, headers=self.headers)

    def write_document(self, value: Any, body: bytes, first: bool = True):
        if self.mode == RAW:
            self.out.write(body.decode('utf-8', errors='replace'))
        elif self.mode == JSON:
            self.out.write(json.dumps(value, indent=2, ensure_ascii=False) + '\n')
        elif self.mode == YAML:
            if not first:
                self.out.write('---\n')
            yaml.safe_dump(value, self.out, default_flow_style=False, sort_keys=False, allow_unicode=True)
        elif self.mode == JSONPATH:
            matches = [match.value for match in self._jsonpath.find(value)]
            result = matches[0] if len(matches) == 1 else matches
            self.out.write(json.dumps(result, indent=2, ensure_ascii=False) + '\n')
        else:
            raise ConfigError(f"Output format {self.mode} cannot print documents")
        if hasattr(self.out, 'flush'):
            self.out.flush()

#!/usr/bin/env python3
"""
Declarative table rendering.

A TableDescriptor is loaded from YAML:

    path: [_embedded, results]     # key path of the payload, optional
    iterator: array                # array or object (object-as-map)
    columns:
      - name: NAME                 # header
        long: DISPLAY NAME         # header in wide mode, optional
        type: str                  # str, num or list
        format: localTime          # optional, see FORMATS
        path: [name]               # value path inside the element
        meta: name                 # name (element key) or path (JSON path)
        mode: wide                 # thin, wide or both (default)
        parameters: [ECID]         # format parameters

Each element streamed by the pager becomes one row. Missing values render
as '-'.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, TextIO, Tuple, Union

import yaml

from .errors import ConfigError
from .query import Query, to_string

MISSING = '-'
RFC822 = '%d %b %y %H:%M %Z'
DEFAULT_FLUSH_ROWS = 100
COLUMN_PADDING = 3

TYPES = ('str', 'num', 'list')
ITERATORS = ('array', 'object')
MODES = ('', 'thin', 'wide')
METAS = ('', 'name', 'path')

STATUS = {
    'live': '● Live',
    'approved': '● Approved',
    'draft': '◯ Draft',
}

STATE = {
    'enabled': '● Enabled',
}


def format_utime(value: Any) -> str:
    """Milliseconds since epoch in local time (RFC822), zero is '-'"""
    try:
        millis = int(value or 0)
    except (TypeError, ValueError):
        return MISSING
    if millis == 0:
        return MISSING
    return datetime.fromtimestamp(millis // 1000, tz=timezone.utc).astimezone().strftime(RFC822)


def format_local_time(value: str, fmt: str = RFC822) -> str:
    """RFC 3339 timestamp in local time, unparsable input is returned unchanged"""
    if not value:
        return MISSING
    try:
        parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        return value
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone().strftime(fmt)


def format_duration(value: Any) -> str:
    """Milliseconds as 1h2m3s, 1.5s or 250ms"""
    try:
        millis = int(value or 0)
    except (TypeError, ValueError):
        return MISSING
    if millis == 0:
        return '0s'
    sign = '-' if millis < 0 else ''
    millis = abs(millis)
    if millis < 1000:
        return f"{sign}{millis}ms"
    hours, rest = divmod(millis, 3600 * 1000)
    minutes, rest = divmod(rest, 60 * 1000)
    seconds = f"{rest / 1000:.3f}".rstrip('0').rstrip('.')
    if hours:
        return f"{sign}{hours}h{minutes}m{seconds}s"
    if minutes:
        return f"{sign}{minutes}m{seconds}s"
    return f"{sign}{seconds}s"


def contains_symbol(value: str, values: List[str]) -> str:
    return '●' if value in values else '◯'


def _as_path(value: Union[None, str, List[Any]], what: str) -> Tuple[Any, ...]:
    if value is None or value == '':
        return ()
    if isinstance(value, str):
        return tuple(p for p in value.split('.') if p)
    if isinstance(value, list):
        return tuple(value)
    raise ConfigError(f"{what} must be a list of keys or a dotted string")


@dataclass(frozen=True)
class Column:
    name: str
    type: str = 'str'
    format: str = ''
    path: Tuple[Any, ...] = ()
    long: str = ''
    meta: str = ''
    mode: str = ''
    parameters: Tuple[str, ...] = ()

    @property
    def is_id(self) -> bool:
        return self.meta == 'name'

    def header(self, wide: bool = False) -> str:
        return self.long if wide and self.long else self.name

    def shown(self, wide: bool = False) -> bool:
        if not self.mode:
            return True
        return self.mode == ('wide' if wide else 'thin')

    def extract(self, element: Query) -> str:
        if self.meta == 'name':
            value = element.name if element.name is not None else to_string(element.index)
        elif self.meta == 'path':
            value = element.json_path
        else:
            value = self._format(element.get(*self.path))
        return (value or MISSING).replace('\t', ' ')

    def _format(self, q: Query) -> str:
        if self.type == 'num':
            if self.format == 'utime':
                return format_utime(q.value())
            if self.format == 'duration':
                return format_duration(q.value()) if not q.is_null() else MISSING
            return q.str()
        if self.type == 'list':
            if self.format == 'contains':
                return contains_symbol(self.parameters[0] if self.parameters else '', q.strings())
            return ','.join(q.strings())
        value = q.str()
        if self.format == 'localTime':
            return format_local_time(value, *self.parameters[:1])
        if self.format == 'status':
            return STATUS.get(value, value)
        if self.format == 'state':
            return STATE.get(value, value)
        return value


FORMATS = {
    'str': ('', 'localTime', 'status', 'state'),
    'num': ('', 'utime', 'duration'),
    'list': ('', 'contains'),
}


@dataclass(frozen=True)
class TableDescriptor:
    columns: Tuple[Column, ...]
    path: Tuple[Any, ...] = ()
    iterator: str = 'array'

    def visible(self, wide: bool = False) -> List[Column]:
        return [c for c in self.columns if c.shown(wide)]

    def headers(self, wide: bool = False) -> List[str]:
        return [c.header(wide) for c in self.visible(wide)]

    def row(self, element: Query, wide: bool = False) -> List[str]:
        return [c.extract(element) for c in self.visible(wide)]


def _column(data: Dict[str, Any], index: int) -> Column:
    if not isinstance(data, dict):
        raise ConfigError(f"Column {index} must be a mapping")
    name = data.get('name')
    if not name:
        raise ConfigError(f"Column {index} has no name")
    col_type = data.get('type') or 'str'
    if col_type not in TYPES:
        raise ConfigError(f"Column {name}: unknown type {col_type}")
    fmt = data.get('format') or ''
    if fmt not in FORMATS[col_type]:
        raise ConfigError(f"Column {name}: unknown format {fmt} for type {col_type}")
    meta = data.get('meta') or ('name' if data.get('is-id') or data.get('id') else '')
    if meta not in METAS:
        raise ConfigError(f"Column {name}: unknown meta {meta}")
    mode = data.get('mode') or ''
    if mode not in MODES:
        raise ConfigError(f"Column {name}: unknown mode {mode}")
    parameters = tuple(str(p) for p in data.get('parameters') or ())
    if fmt == 'contains' and not parameters:
        raise ConfigError(f"Column {name}: format contains needs a parameter")
    return Column(
        name=str(name),
        type=col_type,
        format=fmt,
        path=_as_path(data.get('path'), f"Column {name} path"),
        long=str(data.get('long') or ''),
        meta=meta,
        mode=mode,
        parameters=parameters,
    )


def load_descriptor(source: Union[str, Dict[str, Any]]) -> TableDescriptor:
    """Build a TableDescriptor from YAML text or an already parsed mapping"""
    if isinstance(source, str):
        try:
            source = yaml.safe_load(source)
        except yaml.YAMLError as e:
            raise ConfigError("Invalid table descriptor", cause=e)
    if not isinstance(source, dict):
        raise ConfigError("Table descriptor must be a mapping")
    columns = source.get('columns')
    if not columns or not isinstance(columns, list):
        raise ConfigError("Table descriptor needs at least one column")
    iterator = source.get('iterator') or 'array'
    if iterator not in ITERATORS:
        raise ConfigError(f"Unknown iterator {iterator}")
    return TableDescriptor(
        columns=tuple(_column(c, i) for i, c in enumerate(columns)),
        path=_as_path(source.get('path'), 'Descriptor path'),
        iterator=iterator,
    )


def load_descriptor_file(path: Union[str, Path]) -> TableDescriptor:
    try:
        text = Path(path).expanduser().read_text(encoding='utf-8')
    except OSError as e:
        raise ConfigError(f"Could not read table descriptor {path}", cause=e)
    return load_descriptor(text)


# ============================================================================
# ROW WRITER
# ============================================================================

class RowWriter:
    """
    Write rows as aligned text or CSV.

    Text rows are buffered; column widths are computed over the buffered
    rows when flushing, which happens every flush_rows rows and at the end.
    """

    def __init__(self, out: TextIO, csv: bool = False, flush_rows: int = DEFAULT_FLUSH_ROWS,
                 padding: int = COLUMN_PADDING):
        self.out = out
        self.csv = csv
        self.flush_rows = flush_rows
        self.padding = padding
        self._rows: List[List[str]] = []
        self.written = 0

    def write(self, *values: str):
        row = [to_string(v) for v in values]
        if self.csv:
            self.out.write(','.join(v.replace(',', ';') for v in row) + '\n')
            self.written += 1
            return
        self._rows.append(row)
        if len(self._rows) >= self.flush_rows:
            self.flush()

    def flush(self):
        if self._rows:
            count = max(len(r) for r in self._rows)
            widths = [0] * count
            for row in self._rows:
                for i, value in enumerate(row):
                    widths[i] = max(widths[i], len(value))
            for row in self._rows:
                cells = [value.ljust(widths[i] + self.padding) for i, value in enumerate(row[:-1])]
                cells.append(row[-1] if row else '')
                self.out.write(''.join(cells).rstrip() + '\n')
            self.written += len(self._rows)
            self._rows = []
        if hasattr(self.out, 'flush'):
            self.out.flush()


class RendererState(Enum):
    INITIALIZED = 'initialized'
    HEADERED = 'headered'
    ROWING = 'rowing'
    FLUSHED = 'flushed'


class TableRenderer:
    """Projects streamed elements into rows of a RowWriter"""

    def __init__(self, descriptor: TableDescriptor, writer: RowWriter, wide: bool = False,
                 headers: bool = True):
        self.descriptor = descriptor
        self.writer = writer
        self.wide = wide
        self.headers = headers
        self.state = RendererState.INITIALIZED
        self.rows = 0

    def header(self):
        if self.state is not RendererState.INITIALIZED:
            return
        if self.headers:
            self.writer.write(*self.descriptor.headers(self.wide))
        self.state = RendererState.HEADERED

    def row(self, element: Query):
        self.header()
        values = self.descriptor.row(element, self.wide)
        self.writer.write(*values)
        self.rows += 1
        self.state = RendererState.ROWING

    def finish(self):
        self.header()
        self.writer.flush()
        self.state = RendererState.FLUSHED

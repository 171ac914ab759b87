#!/usr/bin/env python3
"""
Query - typed accessors over a decoded JSON value.

A Query wraps one of null, bool, number, string, list or dict and never
raises on a missing path: accessors return the zero value of their type
instead. Each Query knows its JSON path for diagnostics and, when it was
produced by iterating an object, the key it appeared under.
"""

import json
from typing import Any, Callable, List, Optional, Union

Key = Union[str, int]

KIND_NULL = 'null'
KIND_BOOL = 'bool'
KIND_NUMBER = 'number'
KIND_STRING = 'string'
KIND_ARRAY = 'array'
KIND_OBJECT = 'object'


def kind_of(value: Any) -> str:
    if value is None:
        return KIND_NULL
    if isinstance(value, bool):
        return KIND_BOOL
    if isinstance(value, (int, float)):
        return KIND_NUMBER
    if isinstance(value, str):
        return KIND_STRING
    if isinstance(value, list):
        return KIND_ARRAY
    if isinstance(value, dict):
        return KIND_OBJECT
    raise TypeError(f"Unsupported JSON value {type(value).__name__}")


def to_string(value: Any) -> str:
    """String coercion used by all accessors"""
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float, str)):
        return str(value)
    return json.dumps(value, separators=(',', ':'))


def _append_path(json_path: str, key: Key) -> str:
    if isinstance(key, int):
        return f"{json_path}[{key}]"
    if key.isidentifier():
        return f"{json_path}.{key}"
    return f"{json_path}[{json.dumps(key)}]"


class Query:
    def __init__(self, value: Any = None, name: Optional[str] = None, index: Optional[int] = None,
                 json_path: str = '$'):
        self._value = value
        self.name = name
        self.index = index
        self.json_path = json_path

    def __repr__(self) -> str:
        return f"Query({self.json_path}, {kind_of(self._value)})"

    @property
    def kind(self) -> str:
        return kind_of(self._value)

    def is_null(self) -> bool:
        return self._value is None

    def _walk(self, path) -> 'Query':
        value = self._value
        json_path = self.json_path
        name = self.name
        for key in path:
            if isinstance(value, dict) and isinstance(key, str):
                value = value.get(key)
                name = key
            elif isinstance(value, list) and isinstance(key, int) and -len(value) <= key < len(value):
                value = value[key]
            else:
                value = None
            json_path = _append_path(json_path, key)
            if value is None:
                break
        return Query(value, name=name, json_path=json_path)

    def get(self, *path: Key) -> 'Query':
        return self._walk(path) if path else self

    def path(self, *path: Key) -> 'Query':
        return self.get(*path)

    def exists(self, *path: Key) -> bool:
        return not self._walk(path).is_null()

    def value(self, *path: Key) -> Any:
        return self._walk(path)._value

    def range(self, func: Callable[['Query'], Any], *path: Key) -> int:
        """Call func for each element of the array at path, returns the count"""
        target = self._walk(path)
        if not isinstance(target._value, list):
            return 0
        for i, element in enumerate(target._value):
            func(Query(element, index=i, json_path=_append_path(target.json_path, i)))
        return len(target._value)

    def range_attributes(self, func: Callable[[str, 'Query'], Any], *path: Key) -> int:
        """Call func(name, query) for each attribute of the object at path"""
        target = self._walk(path)
        if not isinstance(target._value, dict):
            return 0
        for name, value in target._value.items():
            func(name, Query(value, name=name, json_path=_append_path(target.json_path, name)))
        return len(target._value)

    def strings(self, *path: Key) -> List[str]:
        value = self._walk(path)._value
        if value is None:
            return []
        if isinstance(value, list):
            return [to_string(v) for v in value]
        return [to_string(value)]

    def concat(self, separator: str, *path: Key) -> str:
        return separator.join(self.strings(*path))

    def len(self, *path: Key) -> int:
        value = self._walk(path)._value
        if isinstance(value, (list, dict, str)):
            return len(value)
        return 0

    def str(self, *path: Key) -> str:
        return to_string(self._walk(path)._value)

    def int(self, *path: Key) -> int:
        value = self._walk(path)._value
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, (int, float)):
            return int(value)
        if isinstance(value, str):
            try:
                return int(float(value))
            except ValueError:
                return 0
        return 0

    def float(self, *path: Key) -> float:
        try:
            return float(self._walk(path)._value)
        except (TypeError, ValueError):
            return 0.0

    def bool(self, *path: Key) -> bool:
        value = self._walk(path)._value
        if isinstance(value, str):
            return value.lower() == 'true'
        return bool(value)

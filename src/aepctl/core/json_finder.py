#!/usr/bin/env python3
"""
Finder - dispatch handlers by key path in a single pass over a document.

Handlers are registered for key paths relative to the object the finder is
started on. While walking the stream the finder keeps the set of prefixes
still reachable from the current object and restores the previous set on
every closing '}'. For each attribute:

    - no registered prefix starts with the key: the value is skipped
    - a prefix ends at the key: the handler runs on the live stream,
      positioned on the value
    - prefixes continue below the key: the finder descends into the value
      if it is an object, otherwise skips it

If a handler's path is also the prefix of a longer one, or several handlers
share a path, the value is decoded once and every handler, as well as the
deeper matching, runs on the decoded value.
"""

from typing import Any, Callable, Dict, List, Sequence, Tuple

from .json_cursor import TokenKind
from .json_iterator import WILDCARD, Iterator

Handler = Callable[[Iterator], Any]
Prefixes = List[Tuple[Tuple[str, ...], List[Handler]]]


def _matches(pattern: str, key: str) -> bool:
    return pattern == WILDCARD or pattern == key


class Finder:
    def __init__(self):
        self._handlers: Dict[Tuple[str, ...], List[Handler]] = {}

    def add(self, path: Sequence[str], handler: Handler) -> 'Finder':
        path = tuple(path)
        if not path:
            raise ValueError("Finder paths need at least one key")
        self._handlers.setdefault(path, []).append(handler)
        return self

    def on(self, *path: str):
        """Decorator form of add()"""
        def decorator(handler: Handler) -> Handler:
            self.add(path, handler)
            return handler
        return decorator

    def find(self, it: Iterator):
        """Walk the object at the iterator's position and dispatch the handlers"""
        self._walk(it, list(self._handlers.items()))

    @staticmethod
    def _walk(it: Iterator, active: Prefixes):
        cursor = it.cursor
        it.enter_object()
        stack: List[Prefixes] = []
        while True:
            token = cursor.next_required()
            if token.kind is TokenKind.OBJECT_CLOSE:
                if not stack:
                    return
                active = stack.pop()
                continue

            key = token.value
            exact: List[Handler] = []
            deeper: Prefixes = []
            for prefix, handlers in active:
                if not _matches(prefix[0], key):
                    continue
                if len(prefix) == 1:
                    exact.extend(handlers)
                else:
                    deeper.append((prefix[1:], handlers))

            if not exact and not deeper:
                cursor.skip()
            elif len(exact) == 1 and not deeper:
                depth = cursor.depth
                exact[0](it)
                cursor.settle(depth)
            elif exact:
                value = cursor.decode()
                for handler in exact:
                    handler(Iterator.from_value(value))
                if deeper and isinstance(value, dict):
                    Finder._walk(Iterator.from_value(value), deeper)
            elif cursor.peek_kind() is TokenKind.OBJECT_OPEN:
                cursor.next_required()
                stack.append(active)
                active = deeper
            else:
                cursor.skip()

#!/usr/bin/env python3
"""
Cancellation context threaded through every call of the request engine.

A Context carries an optional deadline and a cancellation flag. Children
inherit the parent's cancellation and the earliest deadline. Callbacks
registered with on_cancel run once when the context is cancelled, which is
how an open HTTP response gets closed to unblock a pending read.
"""

import threading
import time
from typing import Callable, List, Optional

from .errors import CancelledError


class Context:
    def __init__(self, parent: Optional['Context'] = None, deadline: Optional[float] = None):
        self._parent = parent
        self._lock = threading.Lock()
        self._event = threading.Event()
        self._callbacks: List[Callable[[], None]] = []
        self._reason: Optional[str] = None
        if parent is not None and parent.deadline is not None:
            deadline = parent.deadline if deadline is None else min(deadline, parent.deadline)
        self.deadline = deadline
        if parent is not None:
            self._unregister_parent = parent.on_cancel(lambda: self.cancel(parent.reason))
        else:
            self._unregister_parent = None

    @classmethod
    def background(cls) -> 'Context':
        """Root context without deadline"""
        return cls()

    def with_timeout(self, seconds: Optional[float]) -> 'Context':
        """Child context that expires after the passed number of seconds"""
        if seconds is None or seconds <= 0:
            return Context(self)
        return Context(self, time.monotonic() + seconds)

    def child(self) -> 'Context':
        return Context(self)

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self.deadline is not None and time.monotonic() >= self.deadline:
            self.cancel('deadline exceeded')
            return True
        return False

    def remaining(self) -> Optional[float]:
        """Seconds left until the deadline, None without deadline"""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def cancel(self, reason: Optional[str] = None):
        with self._lock:
            if self._event.is_set():
                return
            self._reason = reason or 'context cancelled'
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def on_cancel(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register a callback, returns a function removing it again"""
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)

                def unregister():
                    with self._lock:
                        if callback in self._callbacks:
                            self._callbacks.remove(callback)
                return unregister
        # already cancelled
        callback()
        return lambda: None

    def release(self):
        """Detach from the parent; call when a child context is no longer used"""
        if self._unregister_parent is not None:
            self._unregister_parent()
            self._unregister_parent = None

    def check(self):
        """Raise CancelledError if the context is done"""
        if self.cancelled:
            raise CancelledError(self._reason or 'context cancelled')

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._event.wait(timeout)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()

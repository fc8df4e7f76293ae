"""Debouncers that batch payloads and hand them to an action after a quiet period."""

from __future__ import annotations

import enum
import json
import threading
import time
from collections.abc import Callable, Sequence
from typing import Any

Action = Callable[[list[bytes]], Any]

DEFAULT_PERIOD = 0.05
DEFAULT_BUFFER_LIMIT = 16384


def _noop(_: list[bytes]) -> None:
    return None


class DebouncerType(enum.Enum):
    DEDUPER = "deduper"
    LIMITER = "limiter"


class _Timer:
    """A resettable one-shot timer served by a single background thread."""

    def __init__(self, callback: Callable[[], None], name: str) -> None:
        self._callback = callback
        self._cond = threading.Condition()
        self._deadline: float | None = None
        self._closed = False
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()

    def reset(self, period: float) -> None:
        with self._cond:
            self._deadline = time.monotonic() + period
            self._cond.notify()

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify()
        if threading.current_thread() is not self._thread:
            self._thread.join()

    def _run(self) -> None:
        while True:
            with self._cond:
                while not self._closed:
                    if self._deadline is None:
                        self._cond.wait()
                        continue
                    remaining = self._deadline - time.monotonic()
                    if remaining <= 0:
                        self._deadline = None
                        break
                    self._cond.wait(remaining)
                if self._closed:
                    return
            self._callback()


class _Debouncer:
    """Shared state of the debouncers; subclasses supply ``_on_timer``."""

    _on_timer: Callable[[], None]

    def __init__(self, action: Action | None, period: float) -> None:
        self.action: Action = action if action is not None else _noop
        self.period = period
        self._lock = threading.Lock()
        self._timer = _Timer(self._on_timer, type(self).__name__)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info: object) -> None:
        self._timer.close()


class Limiter(_Debouncer):
    """Buffers payloads and flushes them when the buffer fills or the period elapses."""

    def __init__(
        self,
        action: Action | None = None,
        period: float = DEFAULT_PERIOD,
        buffer_limit: int = DEFAULT_BUFFER_LIMIT,
        keys: Sequence[str] = (),
    ) -> None:
        self.buffer_limit = buffer_limit
        self.keys = list(keys)
        self._buffer: list[bytes] = []
        self._buffer_offset = 0
        super().__init__(action, period)

    def add(self, payload: bytes | None = None) -> None:
        """Queue ``payload``; a full buffer is flushed before it is added."""
        if payload is None:
            return
        payload = bytes(payload)

        flushed: list[bytes] | None = None
        with self._lock:
            if self._buffer_offset >= self.buffer_limit:
                flushed = self._buffer
                self._buffer = []
                self._buffer_offset = 0

            self._timer.reset(self.period)

            self._buffer.append(payload)
            self._buffer_offset += len(payload)
            action = self.action

        if flushed is not None:
            action(flushed)

    def close(self) -> None:
        """Stop the timer; pending payloads are dropped."""
        self._timer.close()

    def _on_timer(self) -> None:
        with self._lock:
            if self._buffer_offset <= 0:
                return
            flushed = self._buffer
            self._buffer = []
            self._buffer_offset = 0
            action = self.action
        action(flushed)


def _json_string(buf: bytes, key: str) -> str:
    try:
        value = json.loads(buf)
    except (ValueError, UnicodeDecodeError):
        return ""
    if not isinstance(value, dict):
        return ""
    field = value.get(key)
    return field if isinstance(field, str) else ""


class Deduper(_Debouncer):
    """Keeps the latest payload per JSON key and hands all of them over after a quiet period."""

    def __init__(
        self,
        action: Action | None = None,
        period: float = DEFAULT_PERIOD,
        buffer_limit: int = DEFAULT_BUFFER_LIMIT,
        keys: Sequence[str] = (),
    ) -> None:
        self.buffer_limit = buffer_limit
        self.keys = list(keys)
        self._set: dict[str, bytes] = {}
        super().__init__(action, period)

    def add(self, payload: bytes | None = None) -> None:
        """Record ``payload`` under the concatenation of its string fields named by ``keys``."""
        if payload is None:
            return
        payload = bytes(payload)
        key = "".join(_json_string(payload, k) for k in self.keys)

        with self._lock:
            self._set[key] = payload
            self._timer.reset(self.period)

    def close(self) -> None:
        """Stop the timer; pending payloads are dropped."""
        self._timer.close()

    def _on_timer(self) -> None:
        with self._lock:
            payloads = list(self._set.values())
            action = self.action
        action(payloads)


class Factory:
    """Creates debouncers of one type with preset options."""

    def __init__(self, type_: DebouncerType, **options: Any) -> None:
        self.type = DebouncerType(type_)
        self.options = options

    def init(self, **kwargs: Any) -> Limiter | Deduper:
        """Create a debouncer; the factory's preset options win over ``kwargs``."""
        options = {**kwargs, **self.options}
        if self.type is DebouncerType.DEDUPER:
            return Deduper(**options)
        if self.type is DebouncerType.LIMITER:
            return Limiter(**options)
        raise ValueError("invalid debouncer type was specified")
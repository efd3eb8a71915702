# xrplops/transport/reconnect.py
from __future__ import annotations

import logging
import random
import threading
from typing import Callable, NoReturn, Optional, Tuple

from .base import CLOSE_NORMAL, FrameKind, Transport
from .errors import TransportClosed, TransportError, TransportIOError, TransportOpenError


def backoff_delay(attempt: int, base_delay: float = 2.0, max_delay: float = 30.0) -> float:
    """Capped exponential delay with equal jitter for a zero-based attempt."""
    temp = min(max_delay, base_delay * (2**attempt))
    return temp / 2 + random.uniform(0, temp / 2)


class ReconnectingTransport(Transport):
    """
    Redials the wrapped transport after a broken link.

    The first open() is not retried. Once the link has been up, a failed
    send/receive triggers a redial (with backoff) before the failure is
    reported, so the caller still sees every error and the next call runs on
    the fresh link:
      - redial succeeded -> TransportIOError (the link is usable again)
      - redial gave up or was stopped -> TransportClosed
    stop(), send_close() and close() switch reconnection off; stop() also
    cuts short a backoff wait in progress.
    """

    def __init__(
        self,
        factory: Callable[[], Transport],
        *,
        base_delay: float = 2.0,
        max_delay: float = 30.0,
        max_attempts: Optional[int] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._factory = factory
        self._base_delay = float(base_delay)
        self._max_delay = float(max_delay)
        self._max_attempts = max_attempts
        self._log = logger or logging.getLogger(__name__)

        # guards _inner and _redialing; never held while waiting or dialing
        self._cond = threading.Condition()
        self._redialing = False
        self._stop = threading.Event()
        self._inner: Optional[Transport] = None
        self.url = ""
        self.reconnects = 0

    @property
    def inner(self) -> Optional[Transport]:
        return self._inner

    def open(self) -> None:
        inner = self._factory()
        inner.open()
        self.url = inner.url
        self._stop.clear()
        with self._cond:
            self._inner = inner

    def stop(self) -> None:
        self._stop.set()

    def close(self) -> None:
        self._stop.set()
        with self._cond:
            inner, self._inner = self._inner, None
        if inner is not None:
            inner.close()

    def is_open(self) -> bool:
        inner = self._inner
        return inner is not None and inner.is_open()

    def send(self, kind: FrameKind, data: bytes) -> None:
        inner = self._current("write")
        try:
            inner.send(kind, data)
        except TransportIOError as e:
            self._recover(inner, e)

    def receive(self) -> Tuple[FrameKind, bytes]:
        inner = self._current("read")
        try:
            return inner.receive()
        except TransportIOError as e:
            self._recover(inner, e)

    def send_close(self, code: int = CLOSE_NORMAL, reason: str = "", timeout: Optional[float] = None) -> None:
        self._stop.set()
        self._current("close").send_close(code, reason, timeout)

    def _current(self, op: str) -> Transport:
        inner = self._inner
        if inner is None:
            raise TransportClosed(f"{op} on closed transport")
        return inner

    def _recover(self, broken: Transport, err: TransportIOError) -> NoReturn:
        if self._redial(broken):
            raise TransportIOError(f"{err} (reconnected)") from None
        raise TransportClosed(str(err)) from None

    def _redial(self, broken: Transport) -> bool:
        # Reader and writer may both notice the same broken link; only the
        # first one redials, the other waits for its outcome.
        with self._cond:
            while self._redialing:
                self._cond.wait()
            if self._inner is not broken:
                return self._inner is not None
            if self._stop.is_set():
                self._inner = None
                return False
            self._redialing = True

        try:
            fresh = self._dial_until_up(broken)
        finally:
            with self._cond:
                self._redialing = False
                self._cond.notify_all()
        return fresh

    def _dial_until_up(self, broken: Transport) -> bool:
        try:
            broken.close()
        except TransportError:
            pass

        attempt = 0
        while not self._stop.is_set():
            if self._max_attempts is not None and attempt >= self._max_attempts:
                self._log.error("RECONNECT_GAVE_UP url=%s attempts=%d", self.url, attempt)
                break

            delay = backoff_delay(attempt, self._base_delay, self._max_delay)
            self._log.warning("RECONNECT_WAIT url=%s attempt=%d delay_s=%.2f", self.url, attempt + 1, delay)
            if self._stop.wait(delay):
                break

            candidate = self._factory()
            try:
                candidate.open()
            except TransportOpenError as e:
                self._log.warning("RECONNECT_FAILED url=%s err=%s", self.url, e)
                attempt += 1
                continue

            with self._cond:
                if not self._stop.is_set() and self._inner is broken:
                    self._inner = candidate
                    self.reconnects += 1
                    self._log.info("RECONNECTED url=%s reconnects=%d", self.url, self.reconnects)
                    return True
            # stopped or closed while dialing
            candidate.close()
            break

        with self._cond:
            if self._inner is broken:
                self._inner = None
        self._log.info("RECONNECT_STOPPED url=%s attempts=%d", self.url, attempt)
        return False

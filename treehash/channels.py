from __future__ import annotations
from collections import deque
from threading import Condition, Lock
from typing import Deque, Generic, Iterator, TypeVar
from .errors import ChannelClosedError

T = TypeVar("T")


class Channel(Generic[T]):
    """
    Bounded FIFO queue shared by a set of producer threads and a set of
    consumer threads.  Exactly one designated actor calls `close()` once all
    producers are done sending; consumers iterating over the channel then
    receive the remaining buffered values and stop.

    `cancel()` may be called by anyone at any time: blocked senders and
    receivers wake up, `send()` drops its value and returns `False`, and
    iteration stops without draining the buffer.

    Sample usage by a consumer:

    .. code:: python

        for value in channel:
            # Operate on value
    """

    def __init__(self, maxsize: int = 1) -> None:
        if maxsize < 1:
            raise ValueError("maxsize must be positive")
        self.maxsize = maxsize
        self._lock = Lock()
        self._not_empty = Condition(self._lock)
        self._not_full = Condition(self._lock)
        self._queue: Deque[T] = deque()
        self._closed = False
        self._cancelled = False
        #: Number of times the channel has been closed; never more than 1
        self.closures = 0

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    @property
    def cancelled(self) -> bool:
        with self._lock:
            return self._cancelled

    def send(self, value: T) -> bool:
        with self._lock:
            while (
                len(self._queue) >= self.maxsize
                and not self._closed
                and not self._cancelled
            ):
                self._not_full.wait()
            if self._closed:
                raise ChannelClosedError("send on closed channel")
            if self._cancelled:
                return False
            self._queue.append(value)
            self._not_empty.notify()
            return True

    def close(self) -> None:
        with self._lock:
            if self._closed:
                raise ChannelClosedError("close of closed channel")
            self._closed = True
            self.closures += 1
            self._not_empty.notify_all()
            self._not_full.notify_all()

    def cancel(self) -> None:
        with self._lock:
            self._cancelled = True
            self._not_empty.notify_all()
            self._not_full.notify_all()

    def __iter__(self) -> Iterator[T]:
        while True:
            with self._lock:
                while not self._queue and not self._closed and not self._cancelled:
                    self._not_empty.wait()
                if self._cancelled or not self._queue:
                    return
                value = self._queue.popleft()
                self._not_full.notify()
            yield value


class WaitGroup:
    """
    Counter of outstanding actors.  Each actor calls `done()` once when it
    finishes; `wait()` blocks until every actor added has done so.
    """

    def __init__(self, count: int = 0) -> None:
        self._lock = Lock()
        self._cond = Condition(self._lock)
        self._count = 0
        if count:
            self.add(count)

    def add(self, n: int = 1) -> None:
        with self._lock:
            if self._count + n < 0:
                raise ValueError("negative WaitGroup counter")
            self._count += n
            if not self._count:
                self._cond.notify_all()

    def done(self) -> None:
        self.add(-1)

    def wait(self) -> None:
        with self._lock:
            while self._count:
                self._cond.wait()

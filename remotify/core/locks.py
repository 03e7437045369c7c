"""Reader/writer lock guarding one region of the shared state."""
import threading
from contextlib import contextmanager
from typing import Generic, Iterator, TypeVar

T = TypeVar("T")


class ReadWriteLock:
    """Many readers or one writer. Writers wait for active readers to leave;
    new readers wait while a writer is waiting, so polling cannot starve writes.
    Not reentrant."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            self._writer = False
            self._cond.notify_all()


class Guarded(Generic[T]):
    """A value plus the lock that guards it.

        with state.player.read() as player: ...
        with state.data.write() as data: ...

    Never hold a guard across an ``await``.
    """

    def __init__(self, value: T) -> None:
        self._value = value
        self._lock = ReadWriteLock()

    @contextmanager
    def read(self) -> Iterator[T]:
        self._lock.acquire_read()
        try:
            yield self._value
        finally:
            self._lock.release_read()

    @contextmanager
    def write(self) -> Iterator[T]:
        self._lock.acquire_write()
        try:
            yield self._value
        finally:
            self._lock.release_write()

"""
internal concurrency primitives for command nodes.

scope
- ReadWriteLock: a reader/writer exclusion guard with context-managed sides.
  • reading(): any number of concurrent readers, excluded by a writer.
  • writing(): a single writer, excluded by readers and other writers.

re-entrancy
- the writer side is re-entrant for the owning thread (nested registration or
  recursive parsing on the same node never deadlocks).
- a reader inside the writer's own thread passes straight through, so accessors
  can be called from run callbacks and from the parser while the write side is held.
- upgrading a read side into a write side on the same thread is not supported.

notes
- this module is internal; nothing here is re-exported from the package.
"""
import threading
from contextlib import contextmanager


class ReadWriteLock:
    """
    reader/writer guard used by every mutable node.

    usage
        lock = ReadWriteLock()
        with lock.reading():
            ...  # snapshot state
        with lock.writing():
            ...  # mutate state
    """
    __slots__ = ("_condition", "_readers", "_writer", "_depth")

    def __init__(self):
        self._condition = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = None
        self._depth = 0

    @contextmanager
    def reading(self):
        ident = threading.get_ident()
        with self._condition:
            if self._writer == ident:
                owned = True
            else:
                owned = False
                while self._writer is not None:
                    self._condition.wait()
                self._readers += 1
        try:
            yield self
        finally:
            if not owned:
                with self._condition:
                    self._readers -= 1
                    if not self._readers:
                        self._condition.notify_all()

    @contextmanager
    def writing(self):
        ident = threading.get_ident()
        with self._condition:
            if self._writer == ident:
                self._depth += 1
            else:
                while self._writer is not None or self._readers:
                    self._condition.wait()
                self._writer = ident
                self._depth = 1
        try:
            yield self
        finally:
            with self._condition:
                self._depth -= 1
                if not self._depth:
                    self._writer = None
                    self._condition.notify_all()

    @property
    def locked(self):
        """
        whether a writer currently holds the lock (diagnostics only).
        """
        with self._condition:
            return self._writer is not None


__all__ = (
    "ReadWriteLock",
)

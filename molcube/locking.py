import threading

from contextlib import contextmanager


class ReadWriteLock:
    """
    A shared/exclusive lock handed out by a grid to its callers.

    Any number of readers may hold the lock at once; a writer holds it alone.
    Once a writer is waiting, new readers queue behind it so that a steady
    stream of readers cannot starve a thread that is filling the grid.
    The lock is not re-entrant: acquiring it again from a thread that
    already holds it blocks forever.

    Example:
        with grid.lock().exclusive():
            grid.set_data(values)

        with grid.lock().shared():
            v = grid.interpolated_value(point)
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @property
    def readers(self):
        """Number of threads currently holding shared access."""
        return self._readers

    @property
    def writing(self):
        """Whether a thread currently holds exclusive access."""
        return self._writer

    def acquire_read(self):
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_read(self):
        with self._cond:
            if self._readers == 0:
                raise RuntimeError("release_read() called on a lock not held for reading")
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self):
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
                if not self._writers_waiting:
                    self._cond.notify_all()
            self._writer = True

    def release_write(self):
        with self._cond:
            if not self._writer:
                raise RuntimeError("release_write() called on a lock not held for writing")
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def shared(self):
        """Holds shared (read) access for the duration of the block."""
        self.acquire_read()
        try:
            yield self
        finally:
            self.release_read()

    @contextmanager
    def exclusive(self):
        """Holds exclusive (write) access for the duration of the block."""
        self.acquire_write()
        try:
            yield self
        finally:
            self.release_write()

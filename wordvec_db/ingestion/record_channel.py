"""
Bounded single-producer / single-consumer handoff for ingestion.

    ┌──────────────────┐   put (blocks when full)   ┌──────────────┐   get   ┌──────────────────┐
    │ producer thread  │ ─────────────────────────▶ │ queue.Queue  │ ──────▶ │ consumer (caller)│
    │ iterates source  │                            │ maxsize=cap  │         │ encode + store   │
    └──────────────────┘                            └──────────────┘         └──────────────────┘

The producer pushes every item of ``source`` followed by an end marker. If the
source raises, the exception is pushed instead and re-raised in the consumer.
If the consumer stops early it calls ``close()``: the producer sees the stop flag
at its next put attempt, closes the source and exits, and ``close()`` joins it.
"""
import logging
import queue
import threading
from typing import Generic, Iterable, Iterator, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')

_END = object()


class _Failure:
    def __init__(self, error: Exception):
        self.error = error


class RecordChannel(Generic[T]):
    """Iterate ``source`` on a background thread through a bounded queue."""

    def __init__(self, source: Iterable[T], capacity: int = 1024,
                 poll_interval: float = 0.05, join_timeout: float = 5.0):
        if capacity < 1:
            raise ValueError(f"Channel capacity must be >= 1, got {capacity}")
        self._source = source
        self._queue: "queue.Queue" = queue.Queue(maxsize=capacity)
        self._stop = threading.Event()
        self._poll_interval = poll_interval
        self._join_timeout = join_timeout
        self._thread = threading.Thread(target=self._produce, name="wordvec-record-producer", daemon=True)
        self._started = False

    def start(self) -> None:
        if not self._started:
            self._started = True
            self._thread.start()

    def _put(self, item) -> bool:
        """Put with backpressure; False once the consumer has gone away."""
        while not self._stop.is_set():
            try:
                self._queue.put(item, timeout=self._poll_interval)
                return True
            except queue.Full:
                continue
        return False

    def _produce(self) -> None:
        iterator = iter(self._source)
        try:
            for item in iterator:
                if not self._put(item):
                    logger.debug("Consumer closed the channel, producer exiting")
                    return
        except Exception as e:
            self._put(_Failure(e))
            return
        finally:
            close = getattr(iterator, 'close', None)
            if close is not None:
                close()
        self._put(_END)

    def __iter__(self) -> Iterator[T]:
        self.start()
        while True:
            item = self._queue.get()
            if item is _END:
                return
            if isinstance(item, _Failure):
                raise item.error
            yield item

    def close(self) -> None:
        """Stop the producer and wait for its thread to exit."""
        self._stop.set()
        if self._started and self._thread is not threading.current_thread():
            self._thread.join(self._join_timeout)
            if self._thread.is_alive():
                logger.warning(f"Record producer thread did not exit within {self._join_timeout:.1f}s")

    @property
    def producer_alive(self) -> bool:
        return self._thread.is_alive()

    def __enter__(self) -> 'RecordChannel[T]':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

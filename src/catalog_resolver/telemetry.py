"""
Fire-and-forget telemetry for resolution records.

Records go into a bounded queue drained by a daemon worker thread. The
caller never waits on the writer: a full queue drops the record (counted)
and writer failures are logged and discarded.
"""
import json
import logging
import queue
import threading
from typing import Optional, Protocol

logger = logging.getLogger(__name__)

_STOP = object()


class TelemetryWriter(Protocol):
    def write(self, record: dict) -> None:
        ...


class StoreTelemetryWriter:
    """Appends records to the store's resolution_log table."""

    def __init__(self, store):
        self._store = store

    def write(self, record: dict) -> None:
        self._store.record_resolution(record)


class LoggingTelemetryWriter:
    """Writes records as JSON lines to a logger."""

    def __init__(self, log: Optional[logging.Logger] = None, level: int = logging.INFO):
        self._log = log or logging.getLogger("catalog_resolver.telemetry.records")
        self._level = level

    def write(self, record: dict) -> None:
        self._log.log(self._level, json.dumps(record, ensure_ascii=False, sort_keys=True))


class TelemetrySink:
    """
    Bounded asynchronous telemetry queue.

    Usage:
        sink = TelemetrySink(StoreTelemetryWriter(store))
        sink.emit(record.to_dict())
        sink.flush()
        sink.close()
    """

    def __init__(self, writer: TelemetryWriter, max_queue_size: int = 1000, start: bool = True):
        """
        :param writer: Destination for records
        :param max_queue_size: Records buffered before new ones are dropped
        :param start: Start the worker thread immediately
        """
        self._writer = writer
        self._queue: queue.Queue = queue.Queue(maxsize=max_queue_size)
        self._cond = threading.Condition()
        self._pending = 0
        self._dropped = 0
        self._failed = 0
        self._thread: Optional[threading.Thread] = None
        if start:
            self.start()

    @property
    def dropped_count(self) -> int:
        return self._dropped

    @property
    def failed_count(self) -> int:
        return self._failed

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._thread = threading.Thread(target=self._run, name="catalog-telemetry", daemon=True)
        self._thread.start()

    def emit(self, record: dict) -> bool:
        """
        Queue a record without blocking.

        :return: False if the record was dropped
        """
        with self._cond:
            self._pending += 1
        try:
            self._queue.put_nowait(record)
        except queue.Full:
            with self._cond:
                self._pending -= 1
                self._dropped += 1
                self._cond.notify_all()
            logger.warning(f"Telemetry queue full, dropped record ({self._dropped} dropped so far)")
            return False
        return True

    def flush(self, timeout: float = 2.0) -> bool:
        """
        Wait until every queued record has been handled.

        :return: True if the queue drained within the timeout
        """
        with self._cond:
            return self._cond.wait_for(lambda: self._pending == 0, timeout=timeout)

    def close(self, timeout: float = 2.0) -> None:
        if self._thread is None or not self._thread.is_alive():
            return
        self.flush(timeout)
        try:
            self._queue.put(_STOP, timeout=timeout)
        except queue.Full:
            logger.warning("Telemetry worker did not drain before shutdown")
            return
        self._thread.join(timeout)

    def _run(self) -> None:
        while True:
            record = self._queue.get()
            if record is _STOP:
                break
            try:
                self._writer.write(record)
            except Exception as e:
                self._failed += 1
                logger.warning(f"Telemetry write failed: {e}")
            finally:
                with self._cond:
                    self._pending -= 1
                    self._cond.notify_all()

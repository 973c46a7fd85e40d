"""
Ingestion scheduler: run MentionIngestor on a fixed interval in a background thread.

The first run starts immediately, then one every interval_sec. A run that
raises is logged and the loop keeps going. stop() lets the in-flight event
finish, then joins the thread. trigger() runs a manual poll in the caller's
thread; the ingestor serializes it against scheduled runs.
"""

from __future__ import annotations

import threading
import time

from tweetonium.ingestion.pipeline import IngestionReport, MentionIngestor
from tweetonium.logging import get_logger

logger = get_logger(__name__)

DEFAULT_INTERVAL_SEC = 300.0
DEFAULT_JOIN_TIMEOUT_SEC = 30.0


class IngestionScheduler:
    def __init__(self, ingestor: MentionIngestor, interval_sec: float = DEFAULT_INTERVAL_SEC) -> None:
        if interval_sec <= 0:
            raise ValueError("interval_sec must be positive")
        self._ingestor = ingestor
        self._interval_sec = float(interval_sec)
        self._shutdown = threading.Event()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()
        self.runs = 0
        self.last_report: IngestionReport | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        with self._lock:
            if self.running:
                return
            self._shutdown.clear()
            self._ingestor.clear_stop()
            self._thread = threading.Thread(target=self._loop, name="tweetonium-ingest", daemon=True)
            self._thread.start()
        logger.info(
            "ingest_scheduler_started",
            interval_sec=self._interval_sec,
            source=self._ingestor.source_name,
        )

    def stop(self, timeout: float | None = DEFAULT_JOIN_TIMEOUT_SEC) -> None:
        with self._lock:
            thread = self._thread
            self._shutdown.set()
            self._ingestor.request_stop()
        if thread is not None:
            thread.join(timeout=timeout)
            if thread.is_alive():
                logger.warning("ingest_scheduler_stop_timeout", timeout_sec=timeout)
        with self._lock:
            self._thread = None
        logger.info("ingest_scheduler_stopped", runs=self.runs)

    def trigger(self) -> IngestionReport:
        """Run one poll now and return its report."""
        report = self._ingestor.ingest_once()
        self.last_report = report
        return report

    def _loop(self) -> None:
        while not self._shutdown.is_set():
            started = time.monotonic()
            try:
                self.last_report = self._ingestor.ingest_once()
            except Exception as e:
                logger.exception("ingest_scheduled_run_failed", error=str(e))
            self.runs += 1
            remaining = self._interval_sec - (time.monotonic() - started)
            if remaining > 0:
                self._shutdown.wait(remaining)

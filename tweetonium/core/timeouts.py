"""
Per-call deadlines for external collaborators (mention feed, chain adapter).

Calls run on a shared thread pool and the caller waits at most ``timeout``
seconds. A call that overruns raises CallTimeout; the worker thread is left to
finish in the background and its result is discarded.
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Callable, TypeVar

from tweetonium.core.exceptions import CallTimeout
from tweetonium.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_MAX_WORKERS = 8

_executor: ThreadPoolExecutor | None = None
_executor_lock = threading.Lock()


def _get_executor() -> ThreadPoolExecutor:
    global _executor
    with _executor_lock:
        if _executor is None:
            _executor = ThreadPoolExecutor(
                max_workers=DEFAULT_MAX_WORKERS,
                thread_name_prefix="tweetonium-call",
            )
        return _executor


def call_with_timeout(
    fn: Callable[..., T],
    *args: Any,
    timeout: float | None,
    label: str = "call",
    **kwargs: Any,
) -> T:
    """
    Run fn(*args, **kwargs) and return its result, or raise CallTimeout after timeout seconds.

    timeout=None or <= 0 calls fn inline with no deadline. Exceptions raised by
    fn propagate unchanged.
    """
    if timeout is None or timeout <= 0:
        return fn(*args, **kwargs)
    future = _get_executor().submit(fn, *args, **kwargs)
    try:
        return future.result(timeout=timeout)
    except FutureTimeoutError:
        future.cancel()
        logger.warning("external_call_timeout", call=label, timeout_sec=timeout)
        raise CallTimeout(f"{label} timed out after {timeout}s", call=label, timeout_sec=timeout) from None


def shutdown_executor(wait: bool = False) -> None:
    """Release the shared pool (process shutdown / tests)."""
    global _executor
    with _executor_lock:
        if _executor is not None:
            _executor.shutdown(wait=wait, cancel_futures=True)
            _executor = None

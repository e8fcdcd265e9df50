"""
Wait loops over watch streams.

A watch function is any callable ``watch_fn(name, timeout_seconds)`` returning
an iterable of watch events (``{"type": ..., "object": {...}}``), as produced by
``kubernetes.watch.Watch().stream`` over a custom object list call.
"""
import logging
import math
import threading
import time
from typing import Any, Callable, Dict, Iterable, Optional

from ..errors import KnError, WaitCancelledError, WaitTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60
DEFAULT_ERROR_WINDOW = 2.0
POLL_INTERVAL = 0.5

WatchEvent = Dict[str, Any]
WatchFn = Callable[[str, int], Iterable[WatchEvent]]
MessageCallback = Callable[[float, str], None]


def generation_in_sync(obj: Dict[str, Any]) -> bool:
    """True once the controller has observed the latest generation of ``obj``."""
    status = obj.get("status") or {}
    if "observedGeneration" not in status:
        return False
    generation = (obj.get("metadata") or {}).get("generation")
    if generation is None:
        raise KnError(f"no field 'generation' in metadata of {obj.get('kind', 'object')}")
    return generation == status["observedGeneration"]


def _ready_condition(obj: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    for cond in (obj.get("status") or {}).get("conditions") or []:
        if cond.get("type") == "Ready":
            return cond
    return None


class ReadyWaiter:
    """Waits for the ``Ready`` condition of a single resource."""

    def __init__(
        self,
        kind: str,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        poll_interval: float = POLL_INTERVAL,
        error_window: float = DEFAULT_ERROR_WINDOW,
    ):
        self.kind = kind
        self.clock = clock
        self.sleep = sleep
        self.poll_interval = poll_interval
        self.error_window = error_window

    def _timeout_error(self, name: str, timeout: float) -> WaitTimeoutError:
        return WaitTimeoutError(
            f"timeout: {self.kind} '{name}' not ready after {int(timeout)} seconds"
        )

    def _check_cancel(self, cancel: Optional[threading.Event]) -> None:
        if cancel is not None and cancel.is_set():
            raise WaitCancelledError(f"waiting for {self.kind} cancelled")

    def wait(
        self,
        watch_fn: WatchFn,
        name: str,
        timeout: float = DEFAULT_TIMEOUT,
        message_callback: Optional[MessageCallback] = None,
        cancel: Optional[threading.Event] = None,
    ) -> float:
        """
        Blocks until ``name`` reports ``Ready=True`` and returns the elapsed seconds.

        A ``Ready=False`` condition only becomes an error once it has persisted
        for the error window without a later ``True`` or ``Unknown`` event; the
        error text is ``<reason>: <message>``. Raises ``WaitTimeoutError`` when
        the timeout is reached and ``WaitCancelledError`` when ``cancel`` is set.
        """
        start = self.clock()
        deadline = start + timeout
        pending_error: Optional[KnError] = None
        error_since = 0.0

        def expired_error() -> Optional[KnError]:
            if pending_error is not None and self.clock() - error_since >= self.error_window:
                return pending_error
            return None

        while True:
            self._check_cancel(cancel)
            remaining = deadline - self.clock()
            if remaining <= 0:
                err = expired_error()
                if err is not None:
                    raise err
                raise self._timeout_error(name, timeout)

            logger.debug("Watching %s '%s' for %.1fs", self.kind, name, remaining)
            for event in watch_fn(name, max(1, math.ceil(remaining))):
                self._check_cancel(cancel)
                err = expired_error()
                if err is not None:
                    raise err
                if self.clock() >= deadline:
                    break

                obj = event.get("object")
                if not isinstance(obj, dict):
                    continue
                if event.get("type") == "ERROR":
                    logger.debug("Watch for %s '%s' returned an error: %s", self.kind, name, obj.get("message"))
                    break
                if not generation_in_sync(obj):
                    continue
                # ADDED events reflect the initial state at watch start
                if event.get("type") != "MODIFIED":
                    continue

                cond = _ready_condition(obj)
                if cond is None:
                    continue
                status = cond.get("status")
                if status == "True":
                    return self.clock() - start
                if status == "False":
                    if pending_error is None:
                        pending_error = KnError(f"{cond.get('reason', '')}: {cond.get('message', '')}")
                        error_since = self.clock()
                elif status == "Unknown":
                    pending_error = None
                message = cond.get("message")
                if message and message_callback is not None:
                    message_callback(self.clock() - start, message)

            err = expired_error()
            if err is not None:
                raise err
            self.sleep(self.poll_interval)

    def wait_for_event(
        self,
        watch_fn: WatchFn,
        name: str,
        done: Callable[[WatchEvent], bool],
        timeout: float = DEFAULT_TIMEOUT,
        already_done: Optional[Callable[[], bool]] = None,
        cancel: Optional[threading.Event] = None,
    ) -> float:
        """
        Blocks until ``done`` accepts a watch event for ``name``.

        ``already_done`` is consulted before each (re)opened watch so that a
        state reached while no watch was open is not missed.
        """
        start = self.clock()
        deadline = start + timeout
        while True:
            self._check_cancel(cancel)
            if already_done is not None and already_done():
                return self.clock() - start
            remaining = deadline - self.clock()
            if remaining <= 0:
                raise self._timeout_error(name, timeout)
            for event in watch_fn(name, max(1, math.ceil(remaining))):
                self._check_cancel(cancel)
                if done(event):
                    return self.clock() - start
                if self.clock() >= deadline:
                    break
            self.sleep(self.poll_interval)


def is_deleted_event(event: WatchEvent) -> bool:
    return event.get("type") == "DELETED"

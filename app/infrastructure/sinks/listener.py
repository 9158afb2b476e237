"""Background listener task handles.

A ListenerHandle wraps one daemon thread running a sink's interaction
loop. The handle is returned to, and owned by, the sink's cache entry so
that removing the entry cancels the thread deterministically.
"""

import threading
from typing import Callable, Optional

import structlog

logger = structlog.get_logger()


class ListenerHandle:
    """Cancellable handle around a listener thread.

    The loop target receives the handle and must poll ``cancelled`` (or
    wait on ``wait(timeout)``) between blocking receives. Cancellation is
    requested either through ``cancel()`` or by setting the process-wide
    shutdown event given as ``parent``.

    Args:
        name: Thread name, used in logs
        target: Loop function, called with this handle
        parent: Optional process-wide shutdown event
        on_cancel: Optional callback run once on cancel (close connections)
        join_timeout: Seconds to wait for the thread on cancel

    Example:
        handle = ListenerHandle("slack-interactions-C123", loop.run, parent=shutdown)
        handle.start()
        ...
        handle.cancel()
    """

    def __init__(
        self,
        name: str,
        target: Callable[["ListenerHandle"], None],
        parent: Optional[threading.Event] = None,
        on_cancel: Optional[Callable[[], None]] = None,
        join_timeout: float = 5.0,
    ):
        self.name = name
        self._target = target
        self._parent = parent
        self._on_cancel = on_cancel
        self._join_timeout = join_timeout
        self._stop = threading.Event()
        self._cancel_lock = threading.Lock()
        self._cancel_done = False
        self._thread: Optional[threading.Thread] = None

    @property
    def cancelled(self) -> bool:
        """True once cancel() was called or the parent event is set."""
        if self._stop.is_set():
            return True
        return self._parent is not None and self._parent.is_set()

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def wait(self, timeout: float) -> bool:
        """Sleep up to ``timeout`` seconds, waking early on cancellation."""
        if self._stop.wait(timeout):
            return True
        return self.cancelled

    def start(self) -> "ListenerHandle":
        if self._thread is not None:
            raise RuntimeError(f"listener {self.name} already started")
        self._thread = threading.Thread(
            target=self._run,
            daemon=True,
            name=self.name,
        )
        self._thread.start()
        logger.info("listener_started", listener=self.name)
        return self

    def _run(self) -> None:
        try:
            self._target(self)
        except Exception as e:
            logger.error(
                "listener_crashed",
                listener=self.name,
                error=str(e),
                exc_info=True,
            )
        finally:
            logger.info("listener_stopped", listener=self.name)

    def cancel(self, timeout: Optional[float] = None) -> None:
        """Stop the listener and release its connection.

        Idempotent. Returns once the thread has exited or ``timeout``
        (default: join_timeout) elapsed.
        """
        self._stop.set()
        with self._cancel_lock:
            if self._cancel_done:
                return
            self._cancel_done = True

        if self._on_cancel is not None:
            try:
                self._on_cancel()
            except Exception as e:
                logger.warning(
                    "listener_cancel_callback_failed",
                    listener=self.name,
                    error=str(e),
                )

        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self._join_timeout if timeout is None else timeout)
            if thread.is_alive():
                logger.warning("listener_join_timeout", listener=self.name)

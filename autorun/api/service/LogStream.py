"""Relay a log-tailing subprocess as a cancellable sequence of lines."""

import logging
import queue
import subprocess
import threading
from collections.abc import Callable, Iterator
from contextlib import suppress
from typing import Any

from .errors import ExecutionError

logger = logging.getLogger(__name__)

_EOF = object()


class LogStream:
    """Producer/bounded-queue bridge over one log-tailing subprocess.

    A reader thread pushes each output line into a bounded queue; the
    consumer iterates the stream. The stream is closed when the cancel event
    fires or when the subprocess output ends. Both paths go through
    `_close()`, which is the only end-of-stream signal.

    Cancelling terminates the subprocess, is idempotent, and stops the
    iterator at once even if lines are still buffered.
    """

    def __init__(
        self,
        args: list[str],
        *,
        cancel: threading.Event | None = None,
        queue_size: int = 100,
        poll_interval: float = 0.2,
        popen: Callable[..., Any] = subprocess.Popen,
        label: str = "",
    ):
        self.args = list(args)
        self.label = label or args[0]
        self._cancel = cancel if cancel is not None else threading.Event()
        self._queue: queue.Queue = queue.Queue(maxsize=queue_size)
        self._poll = poll_interval
        self._popen = popen
        self._proc: Any = None
        self._closed = threading.Event()
        self._close_lock = threading.Lock()
        self._terminate_lock = threading.Lock()
        self._reader: threading.Thread | None = None

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def start(self) -> "LogStream":
        """Spawn the subprocess and its reader thread.

        Raises:
            ExecutionError: If the subprocess cannot be started
        """
        if self._proc is not None:
            raise RuntimeError("LogStream already started")

        logger.debug("starting log stream %s", self.args)
        try:
            self._proc = self._popen(
                self.args,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
            )
        except OSError as e:
            logger.error("failed to start log stream for %s: %s", self.label, e)
            raise ExecutionError(f"failed to start {self.args[0]}: {e}", output=str(e), command=self.args) from e

        self._reader = threading.Thread(target=self._pump, name=f"logstream-{self.label}", daemon=True)
        self._reader.start()
        threading.Thread(target=self._watch_cancel, name=f"logstream-cancel-{self.label}", daemon=True).start()
        return self

    def cancel(self) -> None:
        """Stop the stream. Safe to call any number of times, before or after it ends."""
        self._cancel.set()
        self._terminate()

    def join(self, timeout: float | None = None) -> None:
        """Wait for the reader thread to finish."""
        if self._reader is not None:
            self._reader.join(timeout)

    def __enter__(self) -> "LogStream":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.cancel()
        return False

    def __iter__(self) -> Iterator[str]:
        return self

    def __next__(self) -> str:
        while True:
            if self._cancel.is_set():
                raise StopIteration
            try:
                item = self._queue.get(timeout=self._poll)
            except queue.Empty:
                if self._closed.is_set() and self._queue.empty():
                    raise StopIteration from None
                continue
            if item is _EOF:
                raise StopIteration
            return item

    def _pump(self) -> None:
        try:
            for raw in self._proc.stdout:
                if self._cancel.is_set():
                    break
                line = raw.rstrip("\r\n")
                while not self._cancel.is_set():
                    try:
                        self._queue.put(line, timeout=self._poll)
                        break
                    except queue.Full:
                        continue
        except (OSError, ValueError) as e:
            # stdout closed underneath us by terminate()
            logger.debug("log stream %s reader stopped: %s", self.label, e)
        finally:
            if self._cancel.is_set():
                self._terminate()
            with suppress(OSError, ValueError):
                self._proc.stdout.close()
            with suppress(OSError):
                self._proc.wait()
            self._close()

    def _watch_cancel(self) -> None:
        # The reader may be blocked on a silent subprocess; this is what
        # turns an external cancel into a terminated process.
        while not self._cancel.wait(self._poll):
            if self._closed.is_set():
                return
        self._terminate()

    def _terminate(self) -> None:
        with self._terminate_lock:
            proc = self._proc
            if proc is None or proc.poll() is not None:
                return
            with suppress(ProcessLookupError, OSError):
                proc.terminate()

    def _close(self) -> None:
        with self._close_lock:
            if self._closed.is_set():
                return
            self._closed.set()
        # A full queue still drains to the closed check in __next__.
        with suppress(queue.Full):
            self._queue.put_nowait(_EOF)
        logger.debug("log stream %s closed (cancelled=%s)", self.label, self._cancel.is_set())

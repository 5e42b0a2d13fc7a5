"""Engine session: owns the subprocess and the thread that reads from it."""

import threading
import time

from loguru import logger

from vgce.uci.line_queue import LineQueue
from vgce.uci.process import ProcessHandle

DEFAULT_POLL_INTERVAL = 0.001  # seconds


class EngineSession:
    """Pumps engine output into a :class:`LineQueue` on a background thread.

    The reader thread is the only producer for the queue. When no complete
    line is buffered it sleeps for ``poll_interval``, which bounds both the
    added latency and the CPU spent polling. If the engine exits, the thread
    drains what is left and stops on its own; nothing is raised.

    Example:
        with EngineSession(EngineProcess.spawn("stockfish")) as session:
            session.start()
            session.send_command("uci")
            line = session.queue.wait_pop(1.0)
    """

    def __init__(
        self,
        process: ProcessHandle,
        *,
        queue: LineQueue | None = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        self._process = process
        self.queue = queue if queue is not None else LineQueue()
        self.poll_interval = poll_interval

        self._running = threading.Event()
        self._reader: threading.Thread | None = None
        self._stop_lock = threading.Lock()
        self._stopped = False

    @property
    def is_running(self) -> bool:
        """Whether the reader thread is still pumping output."""
        return self._running.is_set()

    def process_alive(self) -> bool:
        return self._process.is_running()

    def start(self) -> None:
        """Launch the reader thread."""
        if self._reader is not None:
            raise RuntimeError("Engine session already started")

        self._running.set()
        self._reader = threading.Thread(
            target=self._reader_loop, name="vgce-engine-reader", daemon=True
        )
        self._reader.start()

    def stop(self) -> None:
        """Stop the reader thread, then terminate the engine. Idempotent."""
        with self._stop_lock:
            if self._stopped:
                return
            self._stopped = True

        self._running.clear()
        if self._reader is not None and self._reader is not threading.current_thread():
            self._reader.join()
        self._process.terminate()
        logger.debug("Engine session stopped")

    def send_command(self, command: str) -> bool:
        """Write one command line to the engine.

        No acknowledgement is awaited; callers are responsible for protocol
        ordering.

        Returns:
            False if the write failed (for example on a broken pipe).
        """
        logger.trace(f"UCI send: {command}")
        ok = self._process.write_line(command)
        if not ok:
            logger.debug(f"UCI send failed: {command}")
        return ok

    def _reader_loop(self) -> None:
        try:
            while self._running.is_set():
                line = self._process.read_line()
                if line is not None:
                    self.queue.push(line)
                else:
                    time.sleep(self.poll_interval)

                if not self._process.is_running():
                    self._drain()
                    logger.debug("Engine process exited; reader stopping")
                    break
        except OSError as e:
            logger.warning(f"Engine reader stopped on I/O error: {e}")
        except Exception:
            logger.exception("Engine reader stopped on unexpected error")
        finally:
            self._running.clear()

    def _drain(self) -> None:
        while (line := self._process.read_line()) is not None:
            self.queue.push(line)

    def __enter__(self) -> "EngineSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()

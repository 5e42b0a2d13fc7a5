"""Engine subprocess handle.

The engine runs under a pseudo-terminal via pexpect, which keeps its stdout
line buffered. Reads are non-blocking: :meth:`EngineProcess.read_line` returns
a complete line if one is buffered and None otherwise.
"""

import threading
from pathlib import Path
from typing import Protocol

import pexpect
from loguru import logger

from vgce.errors import SpawnError

READ_CHUNK_SIZE = 4096


class ProcessHandle(Protocol):
    """What an engine session needs from a subprocess."""

    def is_running(self) -> bool: ...

    def write_line(self, line: str) -> bool: ...

    def read_line(self) -> str | None: ...

    def terminate(self) -> None: ...


class EngineProcess:
    """A running engine subprocess.

    Example:
        process = EngineProcess.spawn("stockfish")
        process.write_line("uci")
        line = process.read_line()  # None until a full line has arrived
        process.terminate()
    """

    def __init__(self, child: pexpect.spawn) -> None:
        self._child = child
        self._buffer = ""
        self._eof = False
        self._terminated = False
        # isalive() reaps the child; the reader and writer threads both ask
        self._status_lock = threading.Lock()

    @classmethod
    def spawn(cls, path: str | Path, args: list[str] | None = None) -> "EngineProcess":
        """Start the engine executable.

        Args:
            path: Engine executable, either a path or a name looked up on PATH.
            args: Extra command-line arguments for the engine.

        Returns:
            A handle to the running process.

        Raises:
            SpawnError: If the executable is missing or could not be started.
        """
        command = str(path)
        args = list(args or [])
        logger.debug(f"Starting engine: {command} {' '.join(args)}".rstrip())

        try:
            child = pexpect.spawn(
                command,
                args,
                encoding="utf-8",
                codec_errors="replace",
                echo=False,
                timeout=None,
            )
        except (pexpect.ExceptionPexpect, OSError) as e:
            raise SpawnError(f"Failed to start engine '{command}': {e}") from e

        logger.debug(f"Engine started with pid {child.pid}")
        return cls(child)

    @property
    def pid(self) -> int | None:
        return self._child.pid

    def is_running(self) -> bool:
        if self._terminated:
            return False
        with self._status_lock:
            try:
                return self._child.isalive()
            except pexpect.ExceptionPexpect:
                return False

    def write_line(self, line: str) -> bool:
        """Write one line to the engine's stdin.

        Returns:
            False if the process is gone or the pipe is broken.
        """
        if self._terminated:
            return False
        try:
            self._child.sendline(line)
        except (OSError, ValueError) as e:
            logger.debug(f"Write to engine failed: {e}")
            return False
        return True

    def read_line(self) -> str | None:
        """Return the next complete output line, or None if none is buffered."""
        line = self._take_line()
        if line is not None:
            return line

        if not self._eof and not self._terminated:
            try:
                self._buffer += self._child.read_nonblocking(READ_CHUNK_SIZE, timeout=0)
            except pexpect.TIMEOUT:
                return None
            except (pexpect.EOF, OSError, ValueError):
                self._eof = True

        line = self._take_line()
        if line is None and self._eof and self._buffer:
            # Flush an unterminated last line once the engine has exited
            line, self._buffer = self._buffer.rstrip("\r"), ""
        return line

    def terminate(self) -> None:
        """Kill the engine if it is still running. Safe to call repeatedly."""
        if self._terminated:
            return
        self._terminated = True
        with self._status_lock:
            try:
                if self._child.isalive():
                    self._child.terminate(force=True)
                self._child.close(force=True)
            except (pexpect.ExceptionPexpect, OSError) as e:
                logger.warning(f"Error while terminating engine: {e}")
        logger.debug("Engine process terminated")

    def _take_line(self) -> str | None:
        pos = self._buffer.find("\n")
        if pos == -1:
            return None
        line = self._buffer[:pos].rstrip("\r")
        self._buffer = self._buffer[pos + 1 :]
        return line

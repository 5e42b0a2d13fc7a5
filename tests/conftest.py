"""Pytest configuration and shared fixtures."""

import threading
import time
from collections import deque
from collections.abc import Callable

import pytest

from vgce.core.configs import AppConfig


class FakeEngineProcess:
    """In-memory stand-in for an engine subprocess.

    Commands written to it are recorded; ``responses`` maps a command to the
    lines the "engine" prints in reply. Tests can also push output directly
    with :meth:`emit`.
    """

    def __init__(self, responses: dict[str, list[str]] | None = None) -> None:
        self.responses = responses or {}
        self.commands: list[str] = []
        self.terminate_calls = 0
        self.fail_writes = False
        self._output: deque[str] = deque()
        self._alive = True
        self._lock = threading.Lock()

    def is_running(self) -> bool:
        with self._lock:
            return self._alive

    def write_line(self, line: str) -> bool:
        with self._lock:
            if not self._alive or self.fail_writes:
                return False
            self.commands.append(line)
            self._output.extend(self.responses.get(line, []))
            return True

    def read_line(self) -> str | None:
        with self._lock:
            return self._output.popleft() if self._output else None

    def terminate(self) -> None:
        with self._lock:
            self.terminate_calls += 1
            self._alive = False

    def emit(self, *lines: str) -> None:
        with self._lock:
            self._output.extend(lines)

    def exit(self) -> None:
        """Simulate the engine exiting on its own."""
        with self._lock:
            self._alive = False


UCI_RESPONSES = {
    "uci": ["id name FakeFish 1.0", "id author Tests", "option name Hash type spin", "uciok"],
    "isready": ["readyok"],
}


def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> bool:
    """Poll ``predicate`` until it is true or ``timeout`` seconds pass."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


@pytest.fixture
def fake_process() -> FakeEngineProcess:
    """Fake engine that answers the UCI handshake."""
    return FakeEngineProcess(dict(UCI_RESPONSES))


@pytest.fixture
def app_config(tmp_path) -> AppConfig:
    """Fast-polling configuration that writes nothing outside tmp_path."""
    return AppConfig(
        engine_path=tmp_path / "engine",
        enable_logging=False,
        log_file=tmp_path / "engine.log",
        poll_interval=0.001,
        queue_timeout=0.01,
    )

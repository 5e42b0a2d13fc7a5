"""Analysis orchestrator: drives the UCI conversation and feeds the model.

One dedicated thread runs :meth:`Application.run_loop`:

1. Handshake: ``uci``, then wait for ``uciok`` while picking up ``id name``.
2. Configure: ``isready``, ``setoption`` commands, ``position``.
3. Launch: ``go`` unless the session starts paused.
4. Stream: pop lines, parse them, update GlobalStats and the SearchTree.
5. Shutdown: exit once the shutdown event is set.

That thread is the only consumer of the line queue and the only writer of
the search statistics. The display thread reads the tree and the stats and
calls the command entry points (pause/resume, clear, export).
"""

import threading
import time
from pathlib import Path

from loguru import logger

from vgce.core.configs import AppConfig
from vgce.core.utils.logging import engine_logger
from vgce.model.search_tree import SearchTree
from vgce.uci.parser import parse_line
from vgce.uci.process import EngineProcess
from vgce.uci.session import EngineSession
from vgce.uci.types import GlobalStats

ID_NAME_PREFIX = "id name "
HANDSHAKE_DONE = "uciok"
EXPORT_PREFIX = "vgce_tree_export_"


class Application:
    """Owns the session, the search tree and the shared statistics.

    Example:
        app = Application.from_config(AppConfig(engine_path=Path("stockfish")))
        app.start()
        ...
        print(app.tree.render_outline())
        app.stop()
    """

    def __init__(
        self,
        config: AppConfig,
        session: EngineSession,
        *,
        tree: SearchTree | None = None,
        stats: GlobalStats | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            config: Application configuration.
            session: Engine session; its reader thread is started by :meth:`start`.
            tree: Search tree to feed. A new one is created if omitted.
            stats: Statistics to update. A new one is created if omitted.
        """
        self.config = config
        self.session = session
        self.tree = tree if tree is not None else SearchTree()
        self.stats = stats if stats is not None else GlobalStats()

        self._shutdown = threading.Event()
        self._paused = threading.Event()
        if config.pause_on_start:
            self._paused.set()
        self._command_lock = threading.Lock()
        # Set once the position is sent; pause/resume only talk to the engine after that
        self._configured = False

        self.handshake_complete = threading.Event()
        self.search_start = time.monotonic()
        self._thread: threading.Thread | None = None

    @classmethod
    def from_config(cls, config: AppConfig) -> "Application":
        """Spawn the engine described by ``config`` and wrap it.

        Raises:
            SpawnError: If the engine could not be started. No thread has been
                created at that point.
        """
        process = EngineProcess.spawn(config.engine_path, config.engine_args)
        session = EngineSession(process, poll_interval=config.poll_interval)
        return cls(config, session)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the engine reader and the orchestrator thread."""
        if self._thread is not None:
            raise RuntimeError("Application already started")
        self.session.start()
        self._thread = threading.Thread(target=self.run_loop, name="vgce-orchestrator", daemon=True)
        self._thread.start()

    def shutdown(self) -> None:
        """Ask the orchestrator loop to exit at its next iteration."""
        self._shutdown.set()

    @property
    def is_shutting_down(self) -> bool:
        return self._shutdown.is_set()

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def stop(self) -> None:
        """Shut down the loop, wait for it, then stop the engine session."""
        self.shutdown()
        self.join()
        self.session.stop()

    def run_loop(self) -> None:
        """Handshake, configure, launch and stream until shutdown."""
        if not self._handshake():
            return
        self._configure()
        with self._command_lock:
            self._configured = True
            if self.is_paused:
                logger.info("Starting paused")
            else:
                self._start_search()
        self._stream()
        logger.debug("Orchestrator loop finished")

    # ------------------------------------------------------------------
    # Commands from the display
    # ------------------------------------------------------------------

    @property
    def is_paused(self) -> bool:
        return self._paused.is_set()

    def pause(self) -> None:
        """Stop the search. Tree and statistics are kept."""
        with self._command_lock:
            if self._paused.is_set():
                return
            self._paused.set()
            if self._configured:
                self._send("stop")
        logger.info("Search paused")

    def resume(self) -> None:
        """Restart the search with the configured go command."""
        with self._command_lock:
            if not self._paused.is_set():
                return
            self._paused.clear()
            if self._configured:
                self._start_search()
        logger.info("Search resumed")

    def toggle_pause(self) -> None:
        if self.is_paused:
            self.resume()
        else:
            self.pause()

    def clear_tree(self) -> None:
        """Drop the search tree and zero the search counters."""
        self.tree.clear()
        self.stats.reset_counters()
        logger.info("Search tree cleared")

    def export_text(self) -> str:
        """Export payload: a short header followed by the tree outline."""
        stats = self.stats.snapshot()
        header = [
            "VGCE Tree Export",
            "================",
            "",
            f"Engine: {stats.engine_name}",
            f"Position: {self.config.position}",
            f"Nodes: {stats.nodes}",
            f"Time: {stats.time_ms}ms",
            "",
        ]
        return "\n".join(header) + "\n" + self.tree.render_outline()

    def export_tree(self, directory: str | Path = ".") -> Path:
        """Write the export payload to a new timestamped file.

        Args:
            directory: Directory for the export file.

        Returns:
            Path of the written file.
        """
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"{EXPORT_PREFIX}{time.time_ns()}.txt"
        path.write_text(self.export_text(), encoding="utf-8")
        logger.info(f"Exported search tree to {path}")
        return path

    # ------------------------------------------------------------------
    # Loop stages
    # ------------------------------------------------------------------

    def _handshake(self) -> bool:
        self._send("uci")
        while not self._shutdown.is_set():
            line = self.session.queue.wait_pop(self.config.queue_timeout)
            if line is None:
                if not self.session.is_running and self.session.queue.is_empty():
                    logger.error("Engine exited before completing the UCI handshake")
                    return False
                continue

            self._log_engine_line(line)
            if line.startswith(ID_NAME_PREFIX) and len(line) > len(ID_NAME_PREFIX):
                name = line[len(ID_NAME_PREFIX) :].strip()
                self.stats.set_engine_name(name)
                logger.info(f"Engine: {name}")
            if line.strip() == HANDSHAKE_DONE:
                self.handshake_complete.set()
                return True
        return False

    def _configure(self) -> None:
        self._send("isready")
        for command in self.config.option_commands():
            self._send(command)
        self._send(self.config.position_command)

    def _start_search(self) -> None:
        self.search_start = time.monotonic()
        self._send(self.config.go_command)

    def _stream(self) -> None:
        queue = self.session.queue
        while not self._shutdown.is_set():
            line = queue.wait_pop(self.config.queue_timeout)
            if line is None:
                continue
            self.handle_line(line)

    def handle_line(self, line: str) -> None:
        """Apply one engine output line to the statistics and the tree."""
        self._log_engine_line(line)
        info = parse_line(line)
        if info is None:
            return
        self.stats.apply(info)
        if info.pv:
            self.tree.update(info)

    def _send(self, command: str) -> bool:
        ok = self.session.send_command(command)
        if not ok:
            logger.warning(f"Failed to send '{command}' to the engine")
        return ok

    def _log_engine_line(self, line: str) -> None:
        if self.config.enable_logging:
            engine_logger.trace(line)

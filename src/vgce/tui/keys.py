"""Keyboard controls for the live display."""

import threading
from collections.abc import Callable
from pathlib import Path

import click
from loguru import logger

from vgce.core.application import Application
from vgce.tui.renderer import Renderer

PAGE_SCROLL_LINES = 5

# Escape sequences from click.getchar (POSIX terminals, then Windows)
SCROLL_KEYS = {
    "\x1b[A": -1,
    "\x1bOA": -1,
    "\xe0H": -1,
    "\x1b[B": 1,
    "\x1bOB": 1,
    "\xe0P": 1,
    "\x1b[5~": -PAGE_SCROLL_LINES,
    "\xe0I": -PAGE_SCROLL_LINES,
    "\x1b[6~": PAGE_SCROLL_LINES,
    "\xe0Q": PAGE_SCROLL_LINES,
}
HOME_KEYS = frozenset({"\x1b[H", "\x1b[1~", "\x1bOH", "\xe0G"})
END_KEYS = frozenset({"\x1b[F", "\x1b[4~", "\x1bOF", "\xe0O"})


class KeyReader:
    """Reads single key presses on a daemon thread and dispatches them.

    Space toggles pause, ``c`` clears the tree, ``e`` exports it and ``q``
    (or Ctrl+C / Ctrl+D) quits. Arrow keys scroll the tree view one row,
    Page Up/Down five rows, and Home/End jump to the top or bottom.
    """

    def __init__(
        self,
        app: Application,
        on_quit: Callable[[], None],
        *,
        renderer: Renderer | None = None,
        export_dir: str | Path = ".",
        getchar: Callable[[], str] = click.getchar,
    ) -> None:
        self.app = app
        self.on_quit = on_quit
        self.renderer = renderer
        self.export_dir = Path(export_dir)
        self._getchar = getchar
        self._thread: threading.Thread | None = None
        self._stopped = threading.Event()

    def start(self) -> None:
        self._thread = threading.Thread(target=self._loop, name="vgce-keys", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stopped.set()

    def handle_key(self, key: str) -> bool:
        """Dispatch one key. Returns False once the key asked to quit."""
        if key == " ":
            self.app.toggle_pause()
        elif key in ("c", "C"):
            self.app.clear_tree()
            if self.renderer is not None:
                self.renderer.scroll_home()
        elif key in ("e", "E"):
            try:
                self.app.export_tree(self.export_dir)
            except OSError as e:
                logger.error(f"Export failed: {e}")
        elif self.renderer is not None and key in SCROLL_KEYS:
            self.renderer.scroll(SCROLL_KEYS[key])
        elif self.renderer is not None and key in HOME_KEYS:
            self.renderer.scroll_home()
        elif self.renderer is not None and key in END_KEYS:
            self.renderer.scroll_end()
        elif key in ("q", "Q"):
            self.on_quit()
            return False
        return True

    def _loop(self) -> None:
        while not self._stopped.is_set():
            try:
                key = self._getchar()
            except (KeyboardInterrupt, EOFError):
                self.on_quit()
                return
            if not self.handle_key(key):
                return

"""Rich renderables for the live search view.

The renderer only reads: it takes a consistent copy of the statistics and
walks the search tree under its shared lock, building plain rich objects that
stay valid after the lock is released.
"""

import threading
import time

import chess
from rich.console import Console, ConsoleOptions, Group, RenderableType, RenderResult
from rich.panel import Panel
from rich.segment import Segment
from rich.text import Text
from rich.tree import Tree

from vgce import __version__
from vgce.core.application import Application
from vgce.core.configs import STARTPOS
from vgce.model.search_tree import TreeNode
from vgce.tui.formatting import (
    annotation_style,
    eval_style,
    format_elapsed,
    format_large_number,
    format_score,
    move_annotation,
)

# Visit count above which the transposition marker is shown
VISIT_COUNT_THRESHOLD = 10
# Selective depth beyond depth + this many plies is flagged as quiescence
QSEARCH_DEPTH_THRESHOLD = 3
# Rows used by the header and footer panels and the scroll indicator
RESERVED_ROWS = 10


def starting_ply(position: str) -> tuple[int, bool]:
    """Move number and side to move of the analysed position."""
    if position == STARTPOS:
        return 1, True
    board = chess.Board(position)
    return board.fullmove_number, board.turn == chess.WHITE


class Renderer:
    """Builds the header, tree view and footer for a running Application."""

    def __init__(self, app: Application) -> None:
        self.app = app
        self.config = app.config
        self._first_move, self._white_first = starting_ply(app.config.position)

        # Scroll state is written by the key thread and read while rendering
        self.reserved_rows = RESERVED_ROWS
        self._scroll_lock = threading.Lock()
        self._scroll_offset = 0
        self._max_scroll = 0

    @property
    def scroll_offset(self) -> int:
        with self._scroll_lock:
            return self._scroll_offset

    def scroll(self, lines: int) -> None:
        """Move the tree view by ``lines`` rows (negative scrolls up)."""
        with self._scroll_lock:
            self._scroll_offset = min(max(0, self._scroll_offset + lines), self._max_scroll)

    def scroll_home(self) -> None:
        with self._scroll_lock:
            self._scroll_offset = 0

    def scroll_end(self) -> None:
        with self._scroll_lock:
            self._scroll_offset = self._max_scroll

    def clamp_scroll(self, total_rows: int, visible_rows: int) -> int:
        """Record the current tree height and return the offset to draw from."""
        with self._scroll_lock:
            self._max_scroll = max(0, total_rows - visible_rows)
            self._scroll_offset = min(self._scroll_offset, self._max_scroll)
            return self._scroll_offset

    def render(self) -> RenderableType:
        return Group(self.render_header(), self.render_tree_view(), self.render_footer())

    def __rich__(self) -> RenderableType:
        return self.render()

    def render_header(self) -> Panel:
        stats = self.app.stats.snapshot()
        tree = self.app.tree

        title = Text.assemble(
            (f" VGCE v{__version__}", "bold bright_cyan"),
            " | ",
            (f"Engine: {stats.engine_name or '...'}", "bright_white"),
        )
        if self.app.is_paused:
            title.append(" [PAUSED]", style="bold bright_yellow")

        line1 = Text.assemble(
            ("Nodes: ", "bright_black"),
            (format_large_number(stats.nodes), "bold"),
            (" | NPS: ", "bright_black"),
            (format_large_number(stats.nps), "bold"),
            (" | Time: ", "bright_black"),
            (format_elapsed(time.monotonic() - self.app.search_start), "bold"),
        )

        line2 = Text.assemble(("Hash: ", "bright_black"), (f"{stats.hashfull // 10}%", "bold"))
        if stats.tbhits > 0:
            line2.append(" | TB Hits: ", style="bright_black")
            line2.append(format_large_number(stats.tbhits), style="bold")
        line2.append(" | Static Eval: ", style="bright_black")
        if stats.static_eval is not None:
            style = eval_style(stats.static_eval.value, self.config.eval_threshold)
            line2.append(format_score(stats.static_eval), style=f"bold {style}".strip())
        else:
            line2.append("N/A", style="bold")
        if stats.wdl is not None and (pct := stats.wdl.percentages()) is not None:
            line2.append(" |", style="bright_black")
            line2.append(f" W:{pct[0]}% D:{pct[1]}% L:{pct[2]}%", style="yellow")

        best_move = tree.best_move()
        line3 = Text.assemble(
            ("Best Move: ", "bright_black"),
            (best_move or "...", "bold bright_green"),
        )
        if stats.current_move:
            line3.append(" | Current: ", style="bright_black")
            line3.append(stats.current_move, style="cyan")
            if stats.current_move_number > 0:
                line3.append(f" (#{stats.current_move_number})", style="dim")
        if self.config.multi_pv > 1:
            line3.append(" | MultiPV: ", style="bright_black")
            line3.append(str(self.config.multi_pv), style="bold")
        line3.append(" | Tree Nodes: ", style="bright_black")
        line3.append(str(tree.total_node_count()), style="bold")
        line3.append(" | Depth: ", style="bright_black")
        line3.append(str(tree.max_depth()), style="bold")

        return Panel(Group(title, line1, line2, line3), border_style="bright_black")

    def render_tree_view(self) -> RenderableType:
        with self.app.tree.read() as root:
            if not root.children:
                if self.app.is_paused:
                    return Text("Search is paused. Press Space to resume.", style="bright_yellow")
                return Text("Waiting for engine output...", style="bright_white")

            view = Tree(Text("Search Tree", style="bold"), guide_style="bright_black")
            for child in root.iter_children():
                self._add_node(view, child, 1, self._first_move, self._white_first)
        return TreeWindow(view, self)

    def render_footer(self) -> Panel:
        controls = Text.assemble(
            (" Controls: ", "bold bright_white"),
            ("Space", "bright_yellow"),
            (" Pause ", "bright_black"),
            ("c", "bright_magenta"),
            (" Clear ", "bright_black"),
            ("e", "bright_green"),
            (" Export ", "bright_black"),
            ("↑↓", "bright_cyan"),
            (" Scroll ", "bright_black"),
            ("q", "bright_red"),
            (" Quit", "bright_black"),
        )
        return Panel(controls, border_style="bright_black")

    def _add_node(
        self,
        parent_view: Tree,
        node: TreeNode,
        depth: int,
        move_number: int,
        white_to_move: bool,
    ) -> None:
        if depth > self.config.pv_depth_limit:
            return

        branch = parent_view.add(self.describe_node(node, move_number, white_to_move))
        next_number = move_number if white_to_move else move_number + 1
        for child in node.iter_children():
            self._add_node(branch, child, depth + 1, next_number, not white_to_move)

    def describe_node(self, node: TreeNode, move_number: int, white_to_move: bool) -> Text:
        """One tree line: ply number, move, annotation, depth/score and markers."""
        label = Text(f"{move_number}." if white_to_move else f"{move_number}..", style="bright_white")

        if node.is_pv_node:
            move_style = "bold bright_green"
        elif node.multipv_index > 1:
            move_style = "bold cyan"
        else:
            move_style = "bold"
        label.append(node.move, style=move_style)

        annotation = move_annotation(node, node.parent)
        if annotation:
            label.append(annotation, style=annotation_style(annotation))

        data = node.data
        if data is not None and data.depth is not None:
            info = f" (d{data.depth}"
            if data.seldepth is not None and data.seldepth > data.depth:
                info += f"/{data.seldepth}"
            label.append(info, style="bright_black")
            if data.score is not None:
                label.append(" ")
                style = eval_style(node.score_cp(), self.config.eval_threshold)
                label.append(format_score(data.score), style=f"bold {style}".strip())
            label.append(")", style="bright_black")

            if data.seldepth is not None and data.seldepth > data.depth + QSEARCH_DEPTH_THRESHOLD:
                label.append(f" [Q+{data.seldepth - data.depth}]", style="dim cyan")

        if node.visit_count > VISIT_COUNT_THRESHOLD:
            label.append(f" [TTÃ{node.visit_count}]", style="dim yellow")
        if node.multipv_index > 1:
            label.append(f" {{PV{node.multipv_index}}}", style="dim cyan")
        return label


class TreeWindow:
    """The rows of a tree view that fit on screen, starting at the scroll offset."""

    def __init__(self, view: RenderableType, renderer: Renderer) -> None:
        self.view = view
        self.renderer = renderer

    def __rich_console__(self, console: Console, options: ConsoleOptions) -> RenderResult:
        rows = console.render_lines(self.view, options.update(height=None), pad=False)
        screen_rows = options.height or options.max_height
        visible = max(1, screen_rows - self.renderer.reserved_rows)
        start = self.renderer.clamp_scroll(len(rows), visible)

        for row in rows[start : start + visible]:
            yield from row
            yield Segment.line()
        if len(rows) > visible:
            end = min(start + visible, len(rows))
            yield Text(f"[{start + 1}-{end} of {len(rows)}]", style="dim")

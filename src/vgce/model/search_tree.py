"""Merged tree of the lines reported by a searching engine.

Engines report their search as a stream of flat principal variations, each
one a move sequence from the root position. :class:`SearchTree` folds that
stream into a prefix tree: reports sharing a prefix share ancestors, a new
continuation forks a new branch, and a path reported again (a transposition
of the same line in the stream) bumps the visit counts along it.

The orchestrator thread is the only writer. Any number of display threads
may read concurrently through the shared side of an :class:`RWLock`; a reader
never observes a half-applied report.
"""

from __future__ import annotations

import weakref
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

from vgce.model.rwlock import RWLock
from vgce.uci.types import InfoSnapshot, Score

ROOT_MOVE = "root"

# Deepest ply written by render_outline
OUTLINE_MAX_DEPTH = 100


@dataclass(eq=False)
class TreeNode:
    """One ply reached through a specific move sequence from the root.

    ``children`` owns the subtree. ``parent`` is a weak back-reference, used
    only to compare a node with its parent for display; it never keeps a node
    alive.
    """

    move: str
    data: InfoSnapshot | None = None
    visit_count: int = 0
    multipv_index: int = 0
    is_pv_node: bool = False
    children: dict[str, TreeNode] = field(default_factory=dict)
    _parent_ref: weakref.ref[TreeNode] | None = field(default=None, repr=False)

    @property
    def parent(self) -> TreeNode | None:
        if self._parent_ref is None:
            return None
        return self._parent_ref()

    @property
    def is_root(self) -> bool:
        return self._parent_ref is None

    @property
    def score(self) -> Score | None:
        return self.data.score if self.data is not None else None

    def has_score(self) -> bool:
        return self.score is not None

    def score_cp(self) -> int:
        """Score in centipawns (mates folded), 0 when no score is attached."""
        score = self.score
        return score.to_cp() if score is not None else 0

    def iter_children(self) -> Iterator[TreeNode]:
        """Children in lexicographic move order."""
        for move in sorted(self.children):
            yield self.children[move]

    def child(self, move: str) -> TreeNode:
        """Return the child reached by ``move``, creating it if needed."""
        node = self.children.get(move)
        if node is None:
            node = TreeNode(move=move, _parent_ref=weakref.ref(self))
            self.children[move] = node
        return node

    def walk(self) -> Iterator[TreeNode]:
        """Iterate over this node and all descendants, depth first."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(node.children.values())

    def __repr__(self) -> str:
        flag = ", pv" if self.is_pv_node else ""
        return f"TreeNode({self.move}, visits={self.visit_count}, children={len(self.children)}{flag})"


def format_outline_score(score: Score) -> str:
    """Score as two-decimal pawns, or ``M<n>`` for mate."""
    if score.is_mate:
        return f"M{score.value}"
    return f"{score.value / 100:.2f}"


class SearchTree:
    """Concurrent prefix tree over reported principal variations.

    Example:
        tree = SearchTree()
        tree.update(parse_line("info depth 10 multipv 1 pv e2e4 e7e5"))
        tree.best_move()  # "e2e4"
        print(tree.render_outline())
    """

    def __init__(self) -> None:
        self._lock = RWLock()
        self._root = TreeNode(move=ROOT_MOVE)

    def update(self, info: InfoSnapshot) -> None:
        """Merge one report into the tree.

        A main-line report (multipv 1 or no multipv) first clears every
        ``is_pv_node`` flag, then marks its own path. The snapshot is attached
        to the deepest node of the path only; nodes it passes through keep
        whatever snapshot they last received as a terminal node.
        """
        if not info.pv:
            return

        main_line = info.is_main_line
        with self._lock.write_locked():
            if main_line:
                for node in self._root.walk():
                    node.is_pv_node = False

            node = self._root
            for move in info.pv:
                node = node.child(move)
                node.visit_count += 1
                if main_line:
                    node.is_pv_node = True
                if info.multipv is not None:
                    node.multipv_index = info.multipv
            node.data = info

    def clear(self) -> None:
        """Drop the whole tree and start again from an empty root."""
        with self._lock.write_locked():
            self._root = TreeNode(move=ROOT_MOVE)

    @contextmanager
    def read(self) -> Iterator[TreeNode]:
        """Hold the shared lock and yield the root for read-only traversal.

        The tree must not be modified through the yielded nodes, and the
        nodes must not be used after the block exits.
        """
        with self._lock.read_locked():
            yield self._root

    def best_move(self) -> str:
        """First move of the current main line.

        Falls back to the lexicographically smallest root move when no line is
        flagged, and to an empty string when nothing has been reported.
        """
        with self._lock.read_locked():
            children = self._root.children
            if not children:
                return ""
            for move in sorted(children):
                if children[move].is_pv_node:
                    return move
            return min(children)

    def total_node_count(self) -> int:
        """Number of nodes, not counting the root."""
        with self._lock.read_locked():
            return sum(1 for _ in self._root.walk()) - 1

    def max_depth(self) -> int:
        """Length of the longest stored line, in plies."""
        with self._lock.read_locked():
            deepest = 0
            stack = [(self._root, 0)]
            while stack:
                node, depth = stack.pop()
                deepest = max(deepest, depth)
                stack.extend((child, depth + 1) for child in node.children.values())
            return deepest

    def render_outline(self) -> str:
        """Deterministic text dump of the tree.

        Depth first, children in lexicographic order, one line per node::

            Search Tree:
            ├── d2d4 (d10, 0.21)
            └── e2e4 (d12/18, 0.34) [TT×3]
                └── e7e5
        """
        lines = ["Search Tree:"]
        with self._lock.read_locked():
            stack: list[tuple[TreeNode, str, bool, int]] = []
            self._push_children(stack, self._root, "", 1)
            while stack:
                node, prefix, is_last, depth = stack.pop()
                lines.append(prefix + ("└── " if is_last else "├── ") + self._describe(node))
                if depth < OUTLINE_MAX_DEPTH:
                    child_prefix = prefix + ("    " if is_last else "│   ")
                    self._push_children(stack, node, child_prefix, depth + 1)
        return "\n".join(lines) + "\n"

    @staticmethod
    def _push_children(
        stack: list[tuple[TreeNode, str, bool, int]],
        node: TreeNode,
        prefix: str,
        depth: int,
    ) -> None:
        # Pushed in reverse so the smallest move is popped first
        children = list(node.iter_children())
        for index in range(len(children) - 1, -1, -1):
            is_last = index == len(children) - 1
            stack.append((children[index], prefix, is_last, depth))

    @staticmethod
    def _describe(node: TreeNode) -> str:
        text = node.move
        data = node.data
        if data is not None:
            details = []
            if data.depth is not None:
                depth_text = f"d{data.depth}"
                if data.seldepth is not None:
                    depth_text += f"/{data.seldepth}"
                details.append(depth_text)
            if data.score is not None:
                details.append(format_outline_score(data.score))
            if details:
                text += f" ({', '.join(details)})"
        if node.visit_count > 1:
            text += f" [TT×{node.visit_count}]"
        return text

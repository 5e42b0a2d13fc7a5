"""Tests for the search tree model."""

import gc
import threading

from vgce.model.rwlock import RWLock
from vgce.model.search_tree import SearchTree, TreeNode, format_outline_score
from vgce.uci.parser import parse_line
from vgce.uci.types import Score


def report(tree: SearchTree, line: str) -> None:
    info = parse_line(line)
    assert info is not None
    tree.update(info)


class TestSearchTreeUpdate:
    """Tests for merging reports into the tree."""

    def test_shared_prefix_builds_one_branch(self) -> None:
        """Test lines with a common prefix share their ancestors."""
        tree = SearchTree()
        report(tree, "info depth 1 pv e2e4")
        report(tree, "info depth 2 pv e2e4 e7e5")

        with tree.read() as root:
            assert list(root.children) == ["e2e4"]
            e4 = root.children["e2e4"]
            assert e4.visit_count == 2
            assert list(e4.children) == ["e7e5"]
            assert e4.children["e7e5"].visit_count == 1

        assert tree.total_node_count() == 2
        assert tree.max_depth() == 2

    def test_repeated_path_counts_visits(self) -> None:
        """Test the same line reported twice is one node visited twice."""
        tree = SearchTree()
        report(tree, "info pv e2e4")
        report(tree, "info pv e2e4")

        with tree.read() as root:
            assert list(root.children) == ["e2e4"]
            assert root.children["e2e4"].visit_count == 2

    def test_data_attached_to_last_node_only(self) -> None:
        """Test intermediate nodes keep their earlier snapshot."""
        tree = SearchTree()
        report(tree, "info depth 5 score cp 10 pv e2e4")
        report(tree, "info depth 9 score cp 40 pv e2e4 e7e5")

        with tree.read() as root:
            e4 = root.children["e2e4"]
            assert e4.data is not None and e4.data.depth == 5
            assert e4.children["e7e5"].data.depth == 9
            assert e4.children["e7e5"].score == Score.cp(40)

    def test_multipv_flags(self) -> None:
        """Test only the main line is flagged and secondary lines carry their index."""
        tree = SearchTree()
        report(tree, "info depth 10 multipv 1 score cp 30 pv e2e4 e7e5")
        report(tree, "info depth 10 multipv 2 score cp 20 pv d2d4 d7d5")

        with tree.read() as root:
            e4 = root.children["e2e4"]
            d4 = root.children["d2d4"]
            assert e4.is_pv_node and e4.children["e7e5"].is_pv_node
            assert e4.multipv_index == 1
            assert not d4.is_pv_node
            assert d4.multipv_index == 2
            assert d4.children["d7d5"].multipv_index == 2

        assert tree.best_move() == "e2e4"

    def test_new_main_line_clears_old_flags(self) -> None:
        """Test a new best line moves the pv flags."""
        tree = SearchTree()
        report(tree, "info depth 10 pv e2e4 e7e5")
        report(tree, "info depth 11 pv d2d4")

        with tree.read() as root:
            flagged = [node.move for node in root.walk() if node.is_pv_node]
        assert flagged == ["d2d4"]
        assert tree.best_move() == "d2d4"

    def test_empty_pv_is_ignored(self) -> None:
        """Test a report without moves leaves the tree untouched."""
        tree = SearchTree()
        report(tree, "info depth 3 nodes 100")

        assert tree.total_node_count() == 0
        assert tree.max_depth() == 0

    def test_best_move_fallback(self) -> None:
        """Test best move without a flagged line is the smallest root move."""
        tree = SearchTree()
        assert tree.best_move() == ""

        report(tree, "info multipv 3 pv g1f3")
        report(tree, "info multipv 2 pv c2c4")
        assert tree.best_move() == "c2c4"

    def test_clear(self) -> None:
        """Test clear leaves an empty root."""
        tree = SearchTree()
        report(tree, "info depth 4 pv e2e4 e7e5 g1f3")
        tree.clear()

        assert tree.total_node_count() == 0
        assert tree.best_move() == ""
        assert tree.render_outline() == "Search Tree:\n"


class TestTreeNode:
    """Tests for TreeNode."""

    def test_parent_is_weak(self) -> None:
        """Test children see their parent without keeping it alive."""
        root = TreeNode(move="root")
        child = root.child("e2e4")

        assert child.parent is root
        assert root.is_root and not child.is_root
        assert root.child("e2e4") is child

        del root
        gc.collect()
        assert child.parent is None

    def test_iter_children_sorted(self) -> None:
        root = TreeNode(move="root")
        for move in ("g1f3", "e2e4", "d2d4"):
            root.child(move)
        assert [node.move for node in root.iter_children()] == ["d2d4", "e2e4", "g1f3"]

    def test_score_cp_without_data(self) -> None:
        node = TreeNode(move="e2e4")
        assert not node.has_score()
        assert node.score_cp() == 0


class TestRenderOutline:
    """Tests for the text outline used by exports."""

    def test_outline_text(self) -> None:
        """Test the exact outline for a small tree."""
        tree = SearchTree()
        report(tree, "info depth 12 seldepth 18 score cp 34 pv e2e4")
        report(tree, "info depth 12 seldepth 18 score cp 34 pv e2e4 e7e5")
        report(tree, "info depth 10 multipv 2 score cp 21 pv d2d4")

        expected = (
            "Search Tree:\n"
            "├── d2d4 (d10, 0.21)\n"
            "└── e2e4 (d12/18, 0.34) [TT×2]\n"
            "    └── e7e5 (d12/18, 0.34)\n"
        )
        assert tree.render_outline() == expected

    def test_nested_prefixes(self) -> None:
        """Test continuation bars under a non-last sibling."""
        tree = SearchTree()
        report(tree, "info pv a2a3 a7a6")
        report(tree, "info multipv 2 pv b2b3")

        expected = (
            "Search Tree:\n"
            "├── a2a3\n"
            "│   └── a7a6\n"
            "└── b2b3\n"
        )
        assert tree.render_outline() == expected

    def test_outline_is_deterministic(self) -> None:
        """Test insertion order does not change the outline."""
        first, second = SearchTree(), SearchTree()
        report(first, "info multipv 1 pv e2e4")
        report(first, "info multipv 2 pv d2d4")
        report(second, "info multipv 2 pv d2d4")
        report(second, "info multipv 1 pv e2e4")

        assert first.render_outline() == second.render_outline()

    def test_format_outline_score(self) -> None:
        assert format_outline_score(Score.cp(34)) == "0.34"
        assert format_outline_score(Score.cp(-150)) == "-1.50"
        assert format_outline_score(Score.mate(-3)) == "M-3"


class TestConcurrency:
    """Tests for concurrent readers and a single writer."""

    def test_readers_see_consistent_tree(self) -> None:
        """Test readers never observe a partially merged line or fail mid-read."""
        tree = SearchTree()
        reports = 300
        errors: list[str] = []
        done = threading.Event()

        def writer() -> None:
            try:
                for i in range(reports):
                    report(tree, f"info depth {i} multipv {i % 3 + 1} pv m{i % 7} n{i % 5} o{i}")
            finally:
                done.set()

        def check_tree(root: TreeNode) -> None:
            stack = [(root, 0)]
            while stack:
                node, depth = stack.pop()
                if not node.is_root:
                    if node.visit_count < 1:
                        errors.append(f"{node.move} has no visits")
                    if node.parent is None:
                        errors.append(f"{node.move} lost its parent")
                if node.move.startswith("o"):
                    # Every report ends on its o-move, three plies deep
                    if depth != 3 or node.children:
                        errors.append(f"{node.move} at depth {depth}")
                    if node.data is None or node.data.pv[-1] != node.move:
                        errors.append(f"{node.move} has no snapshot")
                stack.extend((child, depth + 1) for child in node.children.values())

        def reader() -> None:
            try:
                while not done.is_set():
                    with tree.read() as root:
                        check_tree(root)
                    tree.render_outline()
                    tree.total_node_count()
            except Exception as e:
                errors.append(repr(e))

        readers = [threading.Thread(target=reader) for _ in range(3)]
        for thread in readers:
            thread.start()
        writer_thread = threading.Thread(target=writer)
        writer_thread.start()

        writer_thread.join(10)
        for thread in readers:
            thread.join(10)

        assert not writer_thread.is_alive()
        assert not any(thread.is_alive() for thread in readers)
        assert not errors
        assert tree.max_depth() == 3
        with tree.read() as root:
            leaves = [node for node in root.walk() if node.move.startswith("o")]
        assert len(leaves) == reports

    def test_rwlock_allows_shared_readers(self) -> None:
        """Test two readers can hold the lock at the same time."""
        lock = RWLock()
        inside = threading.Barrier(2, timeout=2)

        def read() -> None:
            with lock.read_locked():
                inside.wait()

        threads = [threading.Thread(target=read) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(5)

        assert not inside.broken

"""Text formatting helpers for the live display."""

from vgce.model.search_tree import TreeNode
from vgce.uci.types import Score

# Score swing thresholds (centipawns) for move annotations
BLUNDER_THRESHOLD_CP = 200
MISTAKE_THRESHOLD_CP = 100
INACCURACY_THRESHOLD_CP = 50
GOOD_THRESHOLD_CP = 30
BRILLIANT_THRESHOLD_CP = 150


def format_large_number(num: int) -> str:
    """Abbreviate with one truncated decimal: 1234 -> 1.2K, 5_600_000 -> 5.6M."""
    for divisor, suffix in ((1_000_000_000, "B"), (1_000_000, "M"), (1_000, "K")):
        if num >= divisor:
            return f"{num // divisor}.{(num // (divisor // 10)) % 10}{suffix}"
    return str(num)


def format_score(score: Score) -> str:
    """Signed score for the display: ``+0.34`` or ``M+3``."""
    if score.is_mate:
        return f"M{score.value:+d}"
    return f"{score.value / 100:+.2f}"


def format_elapsed(seconds: float) -> str:
    """Human-readable duration: ``4.2s``, ``3m 4s`` or ``1h 2m 3s``."""
    elapsed_ms = max(0, int(seconds * 1000))
    hours = elapsed_ms // 3_600_000
    minutes = (elapsed_ms % 3_600_000) // 60_000
    secs = (elapsed_ms % 60_000) // 1000

    if hours > 0:
        return f"{hours}h {minutes}m {secs}s"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}.{(elapsed_ms % 1000) // 100}s"


def eval_style(cp_score: int, threshold: int) -> str:
    """Rich style for a centipawn score: green/red beyond the threshold."""
    if cp_score > threshold:
        return "bright_green"
    if cp_score < -threshold:
        return "bright_red"
    return ""


def move_annotation(node: TreeNode, parent: TreeNode | None) -> str:
    """Chess-style annotation from the score swing between parent and node.

    Both nodes need a score. A drop of 200cp or more is ``??``, 100cp ``?``,
    50cp ``?!``; a gain of 150cp or more is ``!!`` and of over 30cp ``!``.
    """
    if parent is None or not node.has_score() or not parent.has_score():
        return ""

    delta = parent.score_cp() - node.score_cp()
    if delta >= BLUNDER_THRESHOLD_CP:
        return "??"
    if delta >= MISTAKE_THRESHOLD_CP:
        return "?"
    if delta >= INACCURACY_THRESHOLD_CP:
        return "?!"
    if delta <= -BRILLIANT_THRESHOLD_CP:
        return "!!"
    if delta < -GOOD_THRESHOLD_CP:
        return "!"
    return ""


def annotation_style(annotation: str) -> str:
    if annotation in ("!!", "!"):
        return "bold bright_green"
    if annotation in ("??", "?"):
        return "bold bright_red"
    return "bold yellow"

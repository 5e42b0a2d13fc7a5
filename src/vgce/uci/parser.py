"""Best-effort parser for UCI engine output.

Engines differ in what they print and keep adding fields, so parsing never
fails hard. A line that is not an ``info`` line yields None; a recognised key
with an unparsable value leaves only that field unset and scanning goes on.

Examples:
    >>> parse_line("info depth 12 score cp 34 nodes 5000 pv e2e4 e7e5").depth
    12
    >>> parse_line("bestmove e2e4") is None
    True
"""

import math
import re
from collections.abc import Callable

from vgce.uci.types import WDL, InfoSnapshot, Score

INFO_PREFIX = "info"
INFO_STRING_PREFIX = "info string"
STATIC_EVAL_MARKER = "NNUE evaluation"

_UNSIGNED_RE = re.compile(r"\d+")
_SIGNED_RE = re.compile(r"-?\d+")


def parse_line(line: str) -> InfoSnapshot | None:
    """Parse one line of engine output.

    Args:
        line: A single line as printed by the engine, with or without the
            trailing newline.

    Returns:
        An InfoSnapshot for ``info`` and ``info string`` lines, None for any
        other line.
    """
    line = line.rstrip("\r\n")
    if line == INFO_STRING_PREFIX or line.startswith(INFO_STRING_PREFIX + " "):
        return _parse_info_string(line)
    if line == INFO_PREFIX or line.startswith(INFO_PREFIX + " "):
        return _parse_info_search(line)
    return None


def parse_unsigned(token: str) -> int | None:
    """Parse a non-negative decimal integer, or return None."""
    if _UNSIGNED_RE.fullmatch(token):
        return int(token)
    return None


def parse_signed(token: str) -> int | None:
    """Parse a decimal integer with an optional leading minus, or return None."""
    if _SIGNED_RE.fullmatch(token):
        return int(token)
    return None


def parse_score(kind: str, value: str) -> Score | None:
    """Parse the two tokens following ``score``.

    Returns None for an unknown score type or an unparsable value.
    """
    number = parse_signed(value)
    if number is None:
        return None
    if kind == "cp":
        return Score.cp(number)
    if kind == "mate":
        return Score.mate(number)
    return None


def _set_unsigned(name: str) -> Callable[[InfoSnapshot, list[str]], None]:
    def setter(info: InfoSnapshot, args: list[str]) -> None:
        setattr(info, name, parse_unsigned(args[0]))

    return setter


def _set_score(info: InfoSnapshot, args: list[str]) -> None:
    info.score = parse_score(args[0], args[1])


def _set_currmove(info: InfoSnapshot, args: list[str]) -> None:
    info.currmove = args[0]


def _set_wdl(info: InfoSnapshot, args: list[str]) -> None:
    win, draw, loss = (parse_unsigned(token) for token in args)
    if win is not None and draw is not None and loss is not None:
        info.wdl = WDL(win, draw, loss)


# key -> (number of value tokens, handler)
_FIELDS: dict[str, tuple[int, Callable[[InfoSnapshot, list[str]], None]]] = {
    "depth": (1, _set_unsigned("depth")),
    "seldepth": (1, _set_unsigned("seldepth")),
    "score": (2, _set_score),
    "nodes": (1, _set_unsigned("nodes")),
    "nps": (1, _set_unsigned("nps")),
    "hashfull": (1, _set_unsigned("hashfull")),
    "tbhits": (1, _set_unsigned("tbhits")),
    "time": (1, _set_unsigned("time")),
    "multipv": (1, _set_unsigned("multipv")),
    "currmove": (1, _set_currmove),
    "currmovenumber": (1, _set_unsigned("currmovenumber")),
    "wdl": (3, _set_wdl),
}


def _parse_info_search(line: str) -> InfoSnapshot:
    info = InfoSnapshot(raw=line)
    tokens = line.split(" ")

    i = 1
    while i < len(tokens):
        token = tokens[i]
        if token == "pv":
            # Everything after "pv" is the move sequence
            info.pv = [move for move in tokens[i + 1 :] if move]
            break

        spec = _FIELDS.get(token)
        if spec is not None:
            arity, handler = spec
            if i + arity < len(tokens):
                handler(info, tokens[i + 1 : i + 1 + arity])
                i += arity
        i += 1

    return info


def _parse_info_string(line: str) -> InfoSnapshot:
    info = InfoSnapshot(raw=line)

    pos = line.find(STATIC_EVAL_MARKER)
    if pos == -1:
        return info

    tokens = line[pos + len(STATIC_EVAL_MARKER) :].split()
    if not tokens:
        return info

    try:
        pawns = float(tokens[0])
    except ValueError:
        return info
    if math.isfinite(pawns):
        info.static_eval = Score.cp(round(pawns * 100))
    return info

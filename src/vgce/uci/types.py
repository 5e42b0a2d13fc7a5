"""Data types shared by the UCI parser, the search tree and the display."""

import threading
from dataclasses import dataclass, field, replace
from enum import Enum

# Mate scores are folded to this magnitude when compared with centipawns
MATE_SCORE_CP = 10_000


class ScoreType(Enum):
    """Unit of an engine evaluation."""

    CENTIPAWNS = "cp"
    MATE = "mate"


@dataclass(frozen=True)
class Score:
    """Engine evaluation from the side to move.

    For mate scores, ``value`` is the signed number of moves to mate:
    positive when the side to move mates, negative when it gets mated.
    """

    type: ScoreType
    value: int

    @classmethod
    def cp(cls, value: int) -> "Score":
        return cls(ScoreType.CENTIPAWNS, value)

    @classmethod
    def mate(cls, value: int) -> "Score":
        return cls(ScoreType.MATE, value)

    @property
    def is_mate(self) -> bool:
        return self.type is ScoreType.MATE

    def to_cp(self) -> int:
        """Centipawn value, with mate scores folded to +/-MATE_SCORE_CP."""
        if self.type is ScoreType.CENTIPAWNS:
            return self.value
        return MATE_SCORE_CP if self.value > 0 else -MATE_SCORE_CP


@dataclass(frozen=True)
class WDL:
    """Win/draw/loss counts. Only the proportions are meaningful."""

    win: int
    draw: int
    loss: int

    def percentages(self) -> tuple[int, int, int] | None:
        """Truncated integer percentages, or None if all counts are zero."""
        total = self.win + self.draw + self.loss
        if total <= 0:
            return None
        return (
            int(self.win / total * 100),
            int(self.draw / total * 100),
            int(self.loss / total * 100),
        )


@dataclass
class InfoSnapshot:
    """One parsed ``info`` line.

    Every numeric field is optional: a key missing from the line, or carrying
    an unparsable value, leaves the field as None. ``pv`` is empty when the
    line carried no principal variation.
    """

    depth: int | None = None
    seldepth: int | None = None
    score: Score | None = None
    nodes: int | None = None
    nps: int | None = None
    hashfull: int | None = None
    tbhits: int | None = None
    time: int | None = None
    multipv: int | None = None
    currmove: str | None = None
    currmovenumber: int | None = None
    wdl: WDL | None = None
    static_eval: Score | None = None
    pv: list[str] = field(default_factory=list)
    raw: str = ""

    @property
    def is_main_line(self) -> bool:
        """Whether this report describes the best line (multipv 1 or absent)."""
        return self.multipv is None or self.multipv == 1


@dataclass(frozen=True)
class StatsView:
    """Immutable copy of GlobalStats handed to readers."""

    nodes: int = 0
    nps: int = 0
    hashfull: int = 0
    tbhits: int = 0
    time_ms: int = 0
    static_eval: Score | None = None
    wdl: WDL | None = None
    engine_name: str = ""
    current_multipv: int = 1
    current_move: str = ""
    current_move_number: int = 0


class GlobalStats:
    """Latest engine-wide statistics.

    One instance is created at startup and passed to the orchestrator (sole
    writer) and to the display (reader). All fields are guarded as a unit by
    a single lock; readers take a consistent copy with :meth:`snapshot`.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._view = StatsView()

    def apply(self, info: InfoSnapshot) -> None:
        """Copy every field present in ``info``; absent fields keep their value."""
        updates: dict[str, object] = {}
        if info.nodes is not None:
            updates["nodes"] = info.nodes
        if info.nps is not None:
            updates["nps"] = info.nps
        if info.hashfull is not None:
            updates["hashfull"] = info.hashfull
        if info.tbhits is not None:
            updates["tbhits"] = info.tbhits
        if info.time is not None:
            updates["time_ms"] = info.time
        if info.wdl is not None:
            updates["wdl"] = info.wdl
        if info.static_eval is not None:
            updates["static_eval"] = info.static_eval
        if info.multipv is not None:
            updates["current_multipv"] = info.multipv
        if info.currmove:
            updates["current_move"] = info.currmove
        if info.currmovenumber is not None:
            updates["current_move_number"] = info.currmovenumber

        if not updates:
            return
        with self._lock:
            self._view = replace(self._view, **updates)

    def set_engine_name(self, name: str) -> None:
        with self._lock:
            self._view = replace(self._view, engine_name=name)

    def reset_counters(self) -> None:
        """Zero the search counters, keeping engine name and evaluations."""
        with self._lock:
            self._view = replace(
                self._view, nodes=0, nps=0, hashfull=0, tbhits=0, time_ms=0
            )

    def snapshot(self) -> StatsView:
        with self._lock:
            return self._view

    # Convenience accessors for single fields
    @property
    def engine_name(self) -> str:
        return self.snapshot().engine_name

    @property
    def nodes(self) -> int:
        return self.snapshot().nodes

    @property
    def time_ms(self) -> int:
        return self.snapshot().time_ms

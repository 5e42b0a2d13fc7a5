"""UCI engine communication: parsing, line queue, process and session."""

from vgce.uci.line_queue import LineQueue
from vgce.uci.parser import parse_line
from vgce.uci.process import EngineProcess, ProcessHandle
from vgce.uci.session import EngineSession
from vgce.uci.types import WDL, GlobalStats, InfoSnapshot, Score, ScoreType, StatsView

__all__ = [
    "WDL",
    "EngineProcess",
    "EngineSession",
    "GlobalStats",
    "InfoSnapshot",
    "LineQueue",
    "ProcessHandle",
    "Score",
    "ScoreType",
    "StatsView",
    "parse_line",
]

from .versions import FlagLayout, FLAG_LAYOUTS, detect_major_version, flag_layout_for
from .parser import (
    DbspaceRow,
    ChunkRow,
    MirrorChunkRow,
    SpaceSummary,
    LogPlacement,
    ReservedChunkRecord,
    parse_space_summary,
    parse_log_placement,
    parse_reserved_chunks,
)
from .source import ReportSource, run_report, is_engine_owner

__all__ = [
    "FlagLayout",
    "FLAG_LAYOUTS",
    "detect_major_version",
    "flag_layout_for",
    "DbspaceRow",
    "ChunkRow",
    "MirrorChunkRow",
    "SpaceSummary",
    "LogPlacement",
    "ReservedChunkRecord",
    "parse_space_summary",
    "parse_log_placement",
    "parse_reserved_chunks",
    "ReportSource",
    "run_report",
    "is_engine_owner",
]

"""脚本时间线模块

提供时间戳文本解析、片段校验和时间线编辑功能。
"""

from src.timeline.editor import EditResult, TimelineEditor
from src.timeline.errors import (
    ExportError,
    ParseError,
    TimelineConflictError,
    TimelineError,
    UnsupportedFormatError,
)
from src.timeline.models import (
    Invariant,
    Segment,
    SegmentKind,
    TimelineSummary,
    ValidationResult,
    Violation,
    overlaps,
    sorted_by_start,
    summarize,
    validate_sequence,
)
from src.timeline.parser import TimestampParser

__all__ = [
    "EditResult",
    "TimelineEditor",
    "ExportError",
    "ParseError",
    "TimelineConflictError",
    "TimelineError",
    "UnsupportedFormatError",
    "Invariant",
    "Segment",
    "SegmentKind",
    "TimelineSummary",
    "ValidationResult",
    "Violation",
    "overlaps",
    "sorted_by_start",
    "summarize",
    "validate_sequence",
    "TimestampParser",
]

"""时间线数据模型与不变量校验"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Iterable, List, Optional, Sequence


class SegmentKind(str, Enum):
    """片段类型（仅作标记，不影响时间逻辑）"""

    NARRATION = "narration"
    DIALOGUE = "dialogue"
    DESCRIPTION = "description"


class Invariant(IntEnum):
    """时间线不变量编号"""

    DURATION = 1  # start_time < end_time 且 start_time >= 0
    NON_OVERLAP = 2
    MEDIA_BOUNDS = 3  # end_time <= 视频时长
    ORDERING = 4  # 按 start_time 升序
    UNIQUE_ID = 5
    ADJACENCY = 6  # 合并要求首尾相接
    CONTENT = 7  # 导出时内容不能为空


@dataclass(frozen=True)
class Segment:
    """脚本片段

    不可变；编辑操作通过 dataclasses.replace 生成新实例。
    """

    id: str
    start_time: float
    end_time: float
    content: str = ""
    kind: SegmentKind = SegmentKind.NARRATION
    style: Optional[str] = None
    tags: tuple[str, ...] = ()

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time


@dataclass(frozen=True)
class Violation:
    """一条不变量违规记录"""

    invariant: Invariant
    segment_ids: tuple[str, ...]
    message: str

    def to_dict(self) -> dict:
        return {
            "invariant": int(self.invariant),
            "segment_ids": list(self.segment_ids),
            "message": self.message,
        }


@dataclass
class ValidationResult:
    """校验结果：violations 为空即通过"""

    violations: List[Violation] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.violations

    def __bool__(self) -> bool:
        return self.ok


@dataclass(frozen=True)
class TimelineSummary:
    """时间线统计，各导出格式共用同一份数字"""

    segment_count: int
    start_time: float
    end_time: float
    total_duration: float  # 各片段时长之和
    gap_duration: float  # start_time 到 end_time 之间未被覆盖的时长

    def to_dict(self) -> dict:
        return {
            "segment_count": self.segment_count,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "total_duration": self.total_duration,
            "gap_duration": self.gap_duration,
        }


def has_valid_bounds(seg: Segment) -> bool:
    """起止时间均为有限数，起点非负且严格早于终点。"""
    return (
        math.isfinite(seg.start_time)
        and math.isfinite(seg.end_time)
        and 0 <= seg.start_time < seg.end_time
    )


def overlaps(a: Segment, b: Segment) -> bool:
    """半开区间重叠判断：首尾相接不算重叠。"""
    return a.start_time < b.end_time and b.start_time < a.end_time


def sorted_by_start(segments: Iterable[Segment]) -> List[Segment]:
    """按 start_time 稳定排序，相同起点保持原有先后顺序。"""
    return sorted(segments, key=lambda seg: seg.start_time)


def validate_sequence(
    segments: Sequence[Segment],
    media_duration: Optional[float] = None,
) -> ValidationResult:
    """校验不变量 1-5，从不抛出异常。

    Args:
        segments: 待校验的片段序列（按外部可见顺序）
        media_duration: 已知的视频时长（秒）

    Returns:
        校验结果，每条违规都注明不变量编号与相关片段 id
    """
    violations: List[Violation] = []

    seen: set[str] = set()
    for seg in segments:
        if seg.id in seen:
            violations.append(
                Violation(Invariant.UNIQUE_ID, (seg.id,), f"duplicate segment id {seg.id!r}")
            )
        seen.add(seg.id)

    for seg in segments:
        if not has_valid_bounds(seg):
            violations.append(
                Violation(
                    Invariant.DURATION,
                    (seg.id,),
                    f"segment {seg.id!r} has invalid bounds "
                    f"[{seg.start_time}, {seg.end_time})",
                )
            )
        if media_duration is not None and seg.end_time > media_duration:
            violations.append(
                Violation(
                    Invariant.MEDIA_BOUNDS,
                    (seg.id,),
                    f"segment {seg.id!r} ends at {seg.end_time} "
                    f"beyond media duration {media_duration}",
                )
            )

    for prev, cur in zip(segments, segments[1:]):
        if cur.start_time < prev.start_time:
            violations.append(
                Violation(
                    Invariant.ORDERING,
                    (prev.id, cur.id),
                    f"segment {cur.id!r} starts before preceding segment {prev.id!r}",
                )
            )

    # 排序后只需与“当前结束最晚的片段”比较
    furthest: Optional[Segment] = None
    for seg in sorted_by_start(segments):
        if furthest is not None and overlaps(furthest, seg):
            violations.append(
                Violation(
                    Invariant.NON_OVERLAP,
                    (furthest.id, seg.id),
                    f"segment {seg.id!r} overlaps segment {furthest.id!r}",
                )
            )
        if furthest is None or seg.end_time > furthest.end_time:
            furthest = seg

    return ValidationResult(violations)


def find_gaps(
    segments: Sequence[Segment],
    media_duration: Optional[float] = None,
    threshold: float = 0.0,
) -> List[tuple[float, float]]:
    """检测时间线中的间隙

    Args:
        segments: 片段序列
        media_duration: 视频时长，给出时检测结尾间隙
        threshold: 最小间隙阈值（秒）

    Returns:
        间隙列表 [(start, end), ...]
    """
    if not segments:
        return []

    gaps = []
    sorted_segs = sorted_by_start(segments)

    if sorted_segs[0].start_time > threshold:
        gaps.append((0.0, sorted_segs[0].start_time))

    cursor = sorted_segs[0].end_time
    for seg in sorted_segs[1:]:
        if seg.start_time - cursor > threshold:
            gaps.append((cursor, seg.start_time))
        cursor = max(cursor, seg.end_time)

    if media_duration is not None and media_duration - cursor > threshold:
        gaps.append((cursor, media_duration))

    return gaps


def summarize(segments: Sequence[Segment]) -> TimelineSummary:
    """统计片段数量、起止时间、总时长和间隙时长。"""
    if not segments:
        return TimelineSummary(0, 0.0, 0.0, 0.0, 0.0)

    start = min(seg.start_time for seg in segments)
    end = max(seg.end_time for seg in segments)
    total = sum(seg.duration for seg in segments)
    gap = sum(
        gap_end - gap_start
        for gap_start, gap_end in find_gaps(segments)
        if gap_start >= start
    )
    return TimelineSummary(
        segment_count=len(segments),
        start_time=start,
        end_time=end,
        total_duration=total,
        gap_duration=gap,
    )

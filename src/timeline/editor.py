"""时间线编辑器：片段增删、移动、缩放、拆分与合并。

所有操作接收当前片段序列，返回 EditResult：
- 成功时 segments 为新的、按开始时间排序且通过校验的序列
- 失败时 segments 为原序列（未做任何修改），error 说明违反的不变量
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable, Iterable, List, Optional, Sequence
from uuid import uuid4

import structlog

from src.infra.config.settings import get_settings
from src.timeline.errors import TimelineConflictError
from src.timeline.models import (
    Invariant,
    Segment,
    SegmentKind,
    has_valid_bounds,
    overlaps,
    sorted_by_start,
    validate_sequence,
)

logger = structlog.get_logger(__name__)


@dataclass
class EditResult:
    """编辑操作结果"""

    segments: List[Segment]
    error: Optional[TimelineConflictError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class TimelineEditor:
    """时间线编辑器

    编辑器本身不持有片段序列，调用方负责串行化对同一脚本的并发编辑。
    """

    def __init__(
        self,
        media_duration: Optional[float] = None,
        id_factory: Optional[Callable[[], str]] = None,
        default_segment_duration: Optional[float] = None,
    ) -> None:
        """初始化编辑器

        Args:
            media_duration: 视频时长（秒），None 表示不限制
            id_factory: 新片段 id 生成函数（拆分、追加时使用）
            default_segment_duration: 追加片段的默认时长（秒），默认读配置
        """
        self.media_duration = media_duration
        self._id_factory = id_factory or (lambda: uuid4().hex)
        self._default_duration = (
            default_segment_duration
            if default_segment_duration is not None
            else get_settings().default_segment_duration_s
        )

    def insert(self, segments: Sequence[Segment], new_segment: Segment) -> EditResult:
        """插入新片段，不能与已有片段重叠。"""
        if any(seg.id == new_segment.id for seg in segments):
            return self._reject(
                "insert",
                segments,
                TimelineConflictError(
                    f"segment id {new_segment.id!r} already exists",
                    invariant=Invariant.UNIQUE_ID,
                    segment_ids=[new_segment.id],
                ),
            )

        error = self._check_placement(segments, new_segment)
        if error is not None:
            return self._reject("insert", segments, error)

        return self._commit("insert", segments, [*segments, new_segment], new_segment.id)

    def delete(self, segments: Sequence[Segment], segment_id: str) -> EditResult:
        """删除片段；删除不会破坏剩余片段的不变量。"""
        if self._find(segments, segment_id) is None:
            return self._reject("delete", segments, self._unknown(segment_id))

        remaining = sorted_by_start(seg for seg in segments if seg.id != segment_id)
        logger.info("timeline_editor.delete", segment_id=segment_id, remaining=len(remaining))
        return EditResult(remaining)

    def move(
        self, segments: Sequence[Segment], segment_id: str, new_start: float
    ) -> EditResult:
        """平移片段，保持时长不变。"""
        target = self._find(segments, segment_id)
        if target is None:
            return self._reject("move", segments, self._unknown(segment_id))

        moved = replace(
            target,
            start_time=new_start,
            end_time=new_start + target.duration,
        )
        return self._place("move", segments, moved)

    def resize(
        self,
        segments: Sequence[Segment],
        segment_id: str,
        new_start: float,
        new_end: float,
    ) -> EditResult:
        """调整片段起止时间，不保持时长。"""
        target = self._find(segments, segment_id)
        if target is None:
            return self._reject("resize", segments, self._unknown(segment_id))

        if not new_start < new_end:
            return self._reject(
                "resize",
                segments,
                TimelineConflictError(
                    f"new start {new_start} must be before new end {new_end}",
                    invariant=Invariant.DURATION,
                    segment_ids=[segment_id],
                ),
            )

        resized = replace(target, start_time=new_start, end_time=new_end)
        return self._place("resize", segments, resized)

    def split(
        self,
        segments: Sequence[Segment],
        segment_id: str,
        at_time: float,
        first_content: Optional[str] = None,
        second_content: Optional[str] = None,
    ) -> EditResult:
        """在 at_time 处拆分片段。

        前半段保留原 id，后半段分配新 id；未提供内容时两段都沿用原内容。
        """
        target = self._find(segments, segment_id)
        if target is None:
            return self._reject("split", segments, self._unknown(segment_id))

        if not target.start_time < at_time < target.end_time:
            return self._reject(
                "split",
                segments,
                TimelineConflictError(
                    f"split point {at_time} is outside segment "
                    f"[{target.start_time}, {target.end_time})",
                    invariant=Invariant.DURATION,
                    segment_ids=[segment_id],
                ),
            )

        first = replace(
            target,
            end_time=at_time,
            content=target.content if first_content is None else first_content,
        )
        second = replace(
            target,
            id=self._id_factory(),
            start_time=at_time,
            content=target.content if second_content is None else second_content,
        )
        updated = [seg for seg in segments if seg.id != segment_id] + [first, second]
        return self._commit("split", segments, updated, segment_id)

    def merge(self, segments: Sequence[Segment], id_a: str, id_b: str) -> EditResult:
        """合并两个首尾相接的片段，内容按时间顺序拼接。"""
        seg_a = self._find(segments, id_a)
        seg_b = self._find(segments, id_b)
        if seg_a is None or seg_b is None:
            missing = id_a if seg_a is None else id_b
            return self._reject("merge", segments, self._unknown(missing))

        earlier, later = sorted_by_start([seg_a, seg_b])
        if id_a == id_b or earlier.end_time != later.start_time:
            return self._reject(
                "merge",
                segments,
                TimelineConflictError(
                    f"segments {id_a!r} and {id_b!r} are not adjacent",
                    invariant=Invariant.ADJACENCY,
                    segment_ids=[id_a, id_b],
                ),
            )

        merged = replace(
            earlier,
            end_time=later.end_time,
            content=" ".join(part for part in (earlier.content, later.content) if part),
            tags=tuple(dict.fromkeys([*earlier.tags, *later.tags])),
        )
        updated = [seg for seg in segments if seg.id not in (id_a, id_b)] + [merged]
        return self._commit("merge", segments, updated, merged.id)

    def append(
        self,
        segments: Sequence[Segment],
        content: str = "",
        kind: SegmentKind = SegmentKind.NARRATION,
        duration: Optional[float] = None,
    ) -> EditResult:
        """在时间线末尾追加片段，超出视频时长时截断到视频结尾。"""
        start = max((seg.end_time for seg in segments), default=0.0)
        end = start + (duration if duration is not None else self._default_duration)
        if self.media_duration is not None:
            end = min(end, self.media_duration)

        if not start < end:
            return self._reject(
                "append",
                segments,
                TimelineConflictError(
                    f"no room after {start} within media duration {self.media_duration}",
                    invariant=Invariant.MEDIA_BOUNDS,
                ),
            )

        new_segment = Segment(
            id=self._id_factory(),
            start_time=start,
            end_time=end,
            content=content,
            kind=kind,
        )
        return self._commit("append", segments, [*segments, new_segment], new_segment.id)

    def update(
        self,
        segments: Sequence[Segment],
        segment_id: str,
        *,
        content: Optional[str] = None,
        kind: Optional[SegmentKind] = None,
        style: Optional[str] = None,
        tags: Optional[Iterable[str]] = None,
    ) -> EditResult:
        """修改片段的内容、类型、样式或标签（不涉及时间）。"""
        target = self._find(segments, segment_id)
        if target is None:
            return self._reject("update", segments, self._unknown(segment_id))

        updated_segment = replace(
            target,
            content=target.content if content is None else content,
            kind=target.kind if kind is None else kind,
            style=target.style if style is None else style,
            tags=target.tags if tags is None else tuple(tags),
        )
        updated = [updated_segment if seg.id == segment_id else seg for seg in segments]
        return self._commit("update", segments, updated, segment_id)

    def _place(self, op: str, segments: Sequence[Segment], candidate: Segment) -> EditResult:
        error = self._check_placement(segments, candidate, exclude_id=candidate.id)
        if error is not None:
            return self._reject(op, segments, error)
        updated = [candidate if seg.id == candidate.id else seg for seg in segments]
        return self._commit(op, segments, updated, candidate.id)

    def _check_placement(
        self,
        segments: Sequence[Segment],
        candidate: Segment,
        exclude_id: Optional[str] = None,
    ) -> Optional[TimelineConflictError]:
        """检查候选片段的边界与重叠，重叠时报告按开始时间排序的第一个冲突片段。"""
        if not has_valid_bounds(candidate):
            return TimelineConflictError(
                f"segment {candidate.id!r} has invalid bounds "
                f"[{candidate.start_time}, {candidate.end_time})",
                invariant=Invariant.DURATION,
                segment_ids=[candidate.id],
            )

        if self.media_duration is not None and candidate.end_time > self.media_duration:
            return TimelineConflictError(
                f"segment {candidate.id!r} ends at {candidate.end_time} "
                f"beyond media duration {self.media_duration}",
                invariant=Invariant.MEDIA_BOUNDS,
                segment_ids=[candidate.id],
            )

        for other in sorted_by_start(segments):
            if other.id == exclude_id:
                continue
            if overlaps(other, candidate):
                return TimelineConflictError(
                    f"segment {candidate.id!r} would overlap segment {other.id!r} "
                    f"[{other.start_time}, {other.end_time})",
                    invariant=Invariant.NON_OVERLAP,
                    segment_ids=[candidate.id, other.id],
                )
        return None

    def _commit(
        self,
        op: str,
        original: Sequence[Segment],
        updated: Sequence[Segment],
        segment_id: str,
    ) -> EditResult:
        """整体重新校验后提交；校验失败时原样返回。"""
        ordered = sorted_by_start(updated)
        result = validate_sequence(ordered, self.media_duration)
        if not result.ok:
            violation = result.violations[0]
            return self._reject(
                op,
                original,
                TimelineConflictError(
                    violation.message,
                    invariant=violation.invariant,
                    segment_ids=violation.segment_ids,
                ),
            )

        logger.info(
            f"timeline_editor.{op}",
            segment_id=segment_id,
            segment_count=len(ordered),
        )
        return EditResult(ordered)

    def _reject(
        self,
        op: str,
        segments: Sequence[Segment],
        error: TimelineConflictError,
    ) -> EditResult:
        logger.info(
            "timeline_editor.rejected",
            op=op,
            invariant=int(error.invariant),
            segment_ids=error.segment_ids,
            reason=str(error),
        )
        return EditResult(list(segments), error)

    @staticmethod
    def _find(segments: Sequence[Segment], segment_id: str) -> Optional[Segment]:
        for seg in segments:
            if seg.id == segment_id:
                return seg
        return None

    @staticmethod
    def _unknown(segment_id: str) -> TimelineConflictError:
        return TimelineConflictError(
            f"unknown segment id {segment_id!r}",
            invariant=Invariant.UNIQUE_ID,
            segment_ids=[segment_id],
        )

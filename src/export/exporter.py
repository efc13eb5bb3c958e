"""导出服务

所有格式都从同一份排序后的快照生成，保证时间戳、片段数量和总时长在各格式间一致。
导出结果为字符串，写入磁盘由调用方负责。
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional, Sequence, Union

import structlog

from src.export.draft import render_draft
from src.export.fcpxml import render_fcpxml
from src.export.plain_text import render_plain_text
from src.export.srt import render_srt
from src.infra.config.settings import AppSettings, get_settings
from src.timeline.errors import ExportError, UnsupportedFormatError
from src.timeline.models import (
    Invariant,
    Segment,
    TimelineSummary,
    Violation,
    sorted_by_start,
    summarize,
    validate_sequence,
)

logger = structlog.get_logger(__name__)


class ExportFormat(str, Enum):
    """导出格式"""

    TEXT = "text"
    SRT = "srt"
    DRAFT = "draft"  # 剪映草稿
    FCPXML = "fcpxml"  # Final Cut Pro XML

    @classmethod
    def parse(cls, value: Union[str, "ExportFormat"]) -> "ExportFormat":
        """解析格式名，兼容旧名称；未知格式抛出 UnsupportedFormatError。"""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        key = _FORMAT_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError as exc:
            raise UnsupportedFormatError(value) from exc

    @property
    def file_extension(self) -> str:
        return _FILE_EXTENSIONS[self]


_FORMAT_ALIASES = {
    "plain_text": "text",
    "txt": "text",
    "jianying": "draft",
    "final_cut_pro": "fcpxml",
    "fcp": "fcpxml",
}

_FILE_EXTENSIONS = {
    ExportFormat.TEXT: ".txt",
    ExportFormat.SRT: ".srt",
    ExportFormat.DRAFT: ".json",
    ExportFormat.FCPXML: ".fcpxml",
}


@dataclass(frozen=True)
class ExportOptions:
    """导出选项"""

    include_metadata: bool = False
    draft_version: str = "1.0"
    clock_with_hours: bool = False
    fcpxml_frame_rate: int = 30
    fcpxml_width: int = 1920
    fcpxml_height: int = 1080
    fcpxml_event_name: str = "BlazeCut Generated Script"
    fcpxml_project_name: str = "BlazeCut Script"

    @classmethod
    def from_settings(cls, settings: Optional[AppSettings] = None) -> "ExportOptions":
        settings = settings or get_settings()
        return cls(
            include_metadata=settings.export_include_metadata,
            draft_version=settings.draft_format_version,
            clock_with_hours=settings.export_clock_with_hours,
            fcpxml_frame_rate=settings.fcpxml_frame_rate,
            fcpxml_width=settings.fcpxml_width,
            fcpxml_height=settings.fcpxml_height,
            fcpxml_event_name=settings.fcpxml_event_name,
            fcpxml_project_name=settings.fcpxml_project_name,
        )


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class FormatExporter:
    """多格式导出器

    显式构造后注入使用，clock 可替换以固定草稿中的 exportTime。
    """

    def __init__(
        self,
        options: Optional[ExportOptions] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.options = options or ExportOptions.from_settings()
        self._clock = clock or _utc_now

    def export(
        self,
        segments: Sequence[Segment],
        fmt: Union[str, ExportFormat],
        *,
        media_duration: Optional[float] = None,
        include_metadata: Optional[bool] = None,
    ) -> str:
        """导出为指定格式

        Args:
            segments: 片段序列（不会被修改）
            fmt: 导出格式
            media_duration: 视频时长（秒），给出时校验片段不越界
            include_metadata: 覆盖选项中的 include_metadata（仅草稿格式使用）

        Returns:
            导出的文本内容

        Raises:
            UnsupportedFormatError: 未实现的格式
            ExportError: 时间线不满足导出条件（重叠、越界、内容为空等）
        """
        export_format = ExportFormat.parse(fmt)
        snapshot = self.snapshot(segments, media_duration=media_duration)

        if export_format is ExportFormat.TEXT:
            content = render_plain_text(snapshot, with_hours=self.options.clock_with_hours)
        elif export_format is ExportFormat.SRT:
            content = render_srt(snapshot)
        elif export_format is ExportFormat.DRAFT:
            content = render_draft(
                snapshot,
                version=self.options.draft_version,
                export_time=self._clock(),
                include_metadata=(
                    self.options.include_metadata
                    if include_metadata is None
                    else include_metadata
                ),
            )
        elif export_format is ExportFormat.FCPXML:
            content = render_fcpxml(
                snapshot,
                frame_rate=self.options.fcpxml_frame_rate,
                width=self.options.fcpxml_width,
                height=self.options.fcpxml_height,
                event_name=self.options.fcpxml_event_name,
                project_name=self.options.fcpxml_project_name,
            )
        else:  # pragma: no cover - 枚举已穷尽
            raise UnsupportedFormatError(fmt)

        logger.info(
            "format_exporter.exported",
            format=export_format.value,
            segment_count=len(snapshot),
            size=len(content),
        )
        return content

    def snapshot(
        self,
        segments: Sequence[Segment],
        *,
        media_duration: Optional[float] = None,
    ) -> tuple[Segment, ...]:
        """生成只读快照并检查导出条件。"""
        ordered = tuple(sorted_by_start(segments))
        result = validate_sequence(ordered, media_duration)
        violations = list(result.violations)
        violations.extend(
            Violation(Invariant.CONTENT, (seg.id,), f"segment {seg.id!r} has empty content")
            for seg in ordered
            if not seg.content.strip()
        )
        if violations:
            logger.warning(
                "format_exporter.rejected",
                violations=[v.message for v in violations],
            )
            raise ExportError(violations)
        return ordered

    def summary(self, segments: Sequence[Segment]) -> TimelineSummary:
        """导出统计（与导出内容使用同一份快照）。"""
        return summarize(sorted_by_start(segments))

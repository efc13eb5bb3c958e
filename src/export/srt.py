"""SRT 字幕导出与读取。"""

from __future__ import annotations

from typing import Callable, List, Optional, Sequence
from uuid import uuid4

import structlog

from src.timeline.classifier import KindClassifier, classify_kind
from src.timeline.errors import ParseError
from src.timeline.models import Segment, validate_sequence
from src.timeline.timecode import seconds_to_srt, srt_to_seconds

logger = structlog.get_logger(__name__)


def _subtitle_text(content: str) -> str:
    # SRT 以空行分隔条目，正文内不能出现空行
    return "\n".join(line for line in content.splitlines() if line.strip())


def render_srt(segments: Sequence[Segment]) -> str:
    """生成 SRT 字幕内容。

    SRT 格式：
        1
        00:01:05,000 --> 00:01:10,000
        hi
        (空行)

    序号从 1 开始连续编号，与时间线上的间隙无关。
    """
    blocks = []
    for idx, seg in enumerate(segments, start=1):
        start_time = seconds_to_srt(seg.start_time)
        end_time = seconds_to_srt(seg.end_time)
        blocks.append(f"{idx}\n{start_time} --> {end_time}\n{_subtitle_text(seg.content)}\n")
    return "\n".join(blocks)


def read_srt(
    text: str,
    *,
    media_duration: Optional[float] = None,
    classifier: Optional[KindClassifier] = None,
    id_factory: Optional[Callable[[], str]] = None,
) -> List[Segment]:
    """解析 SRT 字幕内容为片段列表。

    Args:
        text: SRT 文本
        media_duration: 视频时长（秒），用于边界校验
        classifier: 片段类型识别策略
        id_factory: 片段 id 生成函数

    Returns:
        片段列表（保持文件中的顺序）

    Raises:
        ParseError: 时间戳行格式错误或结果违反时间线不变量
    """
    classifier = classifier or classify_kind
    id_factory = id_factory or (lambda: uuid4().hex)

    blocks: List[List[tuple[int, str]]] = []
    current: List[tuple[int, str]] = []
    for line_no, raw_line in enumerate(text.lstrip("\ufeff").splitlines(), start=1):
        if raw_line.strip():
            current.append((line_no, raw_line.strip()))
        elif current:
            blocks.append(current)
            current = []
    if current:
        blocks.append(current)

    segments: List[Segment] = []
    for block in blocks:
        if len(block) < 2:
            line_no, raw = block[0]
            raise ParseError("incomplete SRT block", line_no=line_no, raw_text=raw)

        line_no, time_line = block[1]
        if "-->" not in time_line:
            raise ParseError("missing SRT time range", line_no=line_no, raw_text=time_line)
        start_str, end_str = time_line.split("-->", 1)
        try:
            start_time = srt_to_seconds(start_str)
            end_time = srt_to_seconds(end_str)
        except ParseError as exc:
            raise ParseError(str(exc), line_no=line_no, raw_text=time_line) from exc

        content = " ".join(line for _, line in block[2:])
        segments.append(
            Segment(
                id=id_factory(),
                start_time=start_time,
                end_time=end_time,
                content=content,
                kind=classifier(content),
            )
        )

    result = validate_sequence(segments, media_duration)
    if not result.ok:
        raise ParseError(
            "; ".join(v.message for v in result.violations),
            violations=result.violations,
        )

    logger.info("srt_reader.parsed", segment_count=len(segments))
    return segments

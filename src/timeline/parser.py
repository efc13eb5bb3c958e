"""时间戳文本解析器

将 AI 返回的带时间戳文本解析为有序、不重叠的脚本片段。

输入格式示例::

    [00:00] 开场白，介绍今天的主题
    补充说明会接在上一段后面
    [00:12] 第二段解说
    [1:02:03] 带小时的时间戳
    [00:20 - 00:25] 纯文本导出格式的区间标记
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional
from uuid import uuid4

import structlog

from src.infra.config.settings import get_settings
from src.timeline.classifier import KindClassifier, classify_kind
from src.timeline.errors import ParseError
from src.timeline.models import Segment, SegmentKind, validate_sequence
from src.timeline.timecode import clock_to_seconds

logger = structlog.get_logger(__name__)

_TOKEN = r"[^\[\]:\s\-–~]+(?::[^\[\]:\s\-–~]+){1,2}"
_MARKER_PATTERN = re.compile(
    rf"^\[\s*(?P<start>{_TOKEN})\s*(?:[-–~]\s*(?P<end>{_TOKEN})\s*)?\](?P<text>.*)$"
)


def _new_id() -> str:
    return uuid4().hex


@dataclass
class _PendingSegment:
    """解析过程中的累积器"""

    start_time: float
    line_no: int
    raw_text: str
    explicit_end: Optional[float] = None
    parts: List[str] = field(default_factory=list)

    @property
    def content(self) -> str:
        return " ".join(self.parts)


class TimestampParser:
    """时间戳文本解析器

    显式构造后注入使用，不依赖进程级单例。
    """

    def __init__(
        self,
        classifier: Optional[KindClassifier] = None,
        default_segment_duration: Optional[float] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ) -> None:
        """初始化解析器

        Args:
            classifier: 片段类型识别策略，默认关键词识别
            default_segment_duration: 最后一段在未知视频时长时的默认时长（秒），默认读配置
            id_factory: 片段 id 生成函数
        """
        if default_segment_duration is None:
            default_segment_duration = get_settings().default_segment_duration_s
        if default_segment_duration <= 0:
            raise ValueError("default_segment_duration must be positive")

        self._classifier = classifier or classify_kind
        self._default_duration = default_segment_duration
        self._id_factory = id_factory or _new_id

    def parse(self, text: str, media_duration: Optional[float] = None) -> List[Segment]:
        """解析带时间戳标记的文本

        Args:
            text: AI 返回的原始文本
            media_duration: 已知的视频时长（秒），用于最后一段的结束时间

        Returns:
            按时间排序的片段列表；没有任何标记行时返回空列表

        Raises:
            ParseError: 时间戳格式错误、时间戳不递增或结果违反时间线不变量
        """
        pending: List[_PendingSegment] = []
        current: Optional[_PendingSegment] = None
        previous_start: Optional[float] = None
        dropped = 0

        for line_no, raw_line in enumerate(text.splitlines(), start=1):
            line = raw_line.strip()
            if not line:
                continue

            match = _MARKER_PATTERN.match(line)
            if match is None:
                if current is None:
                    # 没有前置时间戳的文本无法定位
                    dropped += 1
                    logger.debug("timestamp_parser.line_dropped", line_no=line_no)
                    continue
                current.parts.append(line)
                continue

            start_time = self._parse_token(match.group("start"), line_no, line)
            explicit_end = None
            if match.group("end") is not None:
                explicit_end = self._parse_token(match.group("end"), line_no, line)
                if explicit_end <= start_time:
                    raise ParseError(
                        "range end must be after range start",
                        line_no=line_no,
                        raw_text=line,
                    )

            if previous_start is not None and start_time <= previous_start:
                raise ParseError(
                    f"timestamp {match.group('start')} is not after the previous marker",
                    line_no=line_no,
                    raw_text=line,
                )
            previous_start = start_time

            if current is not None:
                self._close(current, pending)

            current = _PendingSegment(
                start_time=start_time,
                line_no=line_no,
                raw_text=line,
                explicit_end=explicit_end,
            )
            trailing = match.group("text").strip()
            if trailing:
                current.parts.append(trailing)

        if current is not None:
            self._close(current, pending)

        segments = self._build_segments(pending, media_duration)
        self._ensure_valid(segments, pending, media_duration)

        logger.info(
            "timestamp_parser.parsed",
            segment_count=len(segments),
            dropped_lines=dropped,
            media_duration=media_duration,
        )
        return segments

    def parse_response(
        self, text: str, media_duration: Optional[float] = None
    ) -> List[Segment]:
        """解析 AI 响应：优先识别 JSON 数组，否则按时间戳标记解析。

        JSON 数组格式: [{"startTime": 0, "endTime": 5, "content": "...", "type": "narration"}]
        """
        items = self._extract_json_array(text)
        if items is None:
            return self.parse(text, media_duration=media_duration)

        segments: List[Segment] = []
        for index, item in enumerate(items):
            content = self._json_text(item, index, "content") or ""
            style = self._json_text(item, index, "style") or self._json_text(
                item, index, "tone"
            )
            try:
                start_time = float(item["startTime"])
                end_time = float(item["endTime"])
            except (KeyError, TypeError, ValueError) as exc:
                raise ParseError(
                    f"JSON item {index} lacks numeric startTime/endTime"
                ) from exc
            segments.append(
                Segment(
                    id=self._id_factory(),
                    start_time=start_time,
                    end_time=end_time,
                    content=content,
                    kind=self._kind_for(item.get("type"), content),
                    style=style,
                )
            )

        result = validate_sequence(segments, media_duration)
        if not result.ok:
            raise ParseError(
                "; ".join(v.message for v in result.violations),
                violations=result.violations,
            )

        logger.info(
            "timestamp_parser.parsed_json",
            segment_count=len(segments),
            media_duration=media_duration,
        )
        return segments

    def _parse_token(self, token: str, line_no: int, line: str) -> float:
        try:
            return clock_to_seconds(token)
        except ParseError as exc:
            raise ParseError(str(exc), line_no=line_no, raw_text=line) from exc

    def _close(self, current: _PendingSegment, pending: List[_PendingSegment]) -> None:
        if not current.parts:
            logger.debug(
                "timestamp_parser.empty_marker_skipped",
                line_no=current.line_no,
            )
            return
        pending.append(current)

    def _build_segments(
        self,
        pending: List[_PendingSegment],
        media_duration: Optional[float],
    ) -> List[Segment]:
        segments: List[Segment] = []
        for index, item in enumerate(pending):
            if index + 1 < len(pending):
                next_start = pending[index + 1].start_time
                end_time = next_start
                if item.explicit_end is not None:
                    if item.explicit_end > next_start:
                        raise ParseError(
                            "range end overlaps the next marker",
                            line_no=item.line_no,
                            raw_text=item.raw_text,
                        )
                    end_time = item.explicit_end
            elif item.explicit_end is not None:
                end_time = item.explicit_end
            elif media_duration is not None:
                end_time = media_duration
            else:
                end_time = item.start_time + self._default_duration

            content = item.content
            segments.append(
                Segment(
                    id=self._id_factory(),
                    start_time=item.start_time,
                    end_time=end_time,
                    content=content,
                    kind=self._classifier(content),
                )
            )
        return segments

    def _ensure_valid(
        self,
        segments: List[Segment],
        pending: List[_PendingSegment],
        media_duration: Optional[float],
    ) -> None:
        result = validate_sequence(segments, media_duration)
        if result.ok:
            return

        origin = {seg.id: item for seg, item in zip(segments, pending)}
        first = origin.get(result.violations[0].segment_ids[0])
        logger.warning(
            "timestamp_parser.invalid_sequence",
            violations=[v.message for v in result.violations],
        )
        raise ParseError(
            "; ".join(v.message for v in result.violations),
            line_no=first.line_no if first else None,
            raw_text=first.raw_text if first else None,
            violations=result.violations,
        )

    @staticmethod
    def _json_text(item: dict, index: int, key: str) -> Optional[str]:
        value = item.get(key)
        if value is None:
            return None
        if not isinstance(value, str):
            raise ParseError(
                f"JSON item {index} has non-string {key!r}: {type(value).__name__}"
            )
        return value.strip() or None

    def _kind_for(self, declared: Any, content: str) -> SegmentKind:
        if isinstance(declared, str):
            try:
                return SegmentKind(declared)
            except ValueError:
                pass
        return self._classifier(content)

    @staticmethod
    def _extract_json_array(text: str) -> Optional[List[dict]]:
        start = text.find("[")
        end = text.rfind("]") + 1
        if start < 0 or end <= start:
            return None
        try:
            parsed = json.loads(text[start:end])
        except json.JSONDecodeError:
            return None
        if not isinstance(parsed, list) or not parsed:
            return None
        if not all(isinstance(item, dict) for item in parsed):
            return None
        return parsed

"""脚本时间线的错误类型。

三类错误在调用方边界都可恢复：
- ParseError: 解析 AI 文本失败，附带出错行号与原文
- TimelineConflictError: 编辑操作违反时间线不变量
- UnsupportedFormatError: 请求了未实现的导出格式
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from src.timeline.models import Invariant, Violation


class TimelineError(Exception):
    """时间线引擎错误基类。"""


class ParseError(TimelineError, ValueError):
    """时间戳文本解析失败。"""

    def __init__(
        self,
        message: str,
        *,
        line_no: int | None = None,
        raw_text: str | None = None,
        violations: Sequence[Violation] = (),
    ) -> None:
        self.line_no = line_no
        self.raw_text = raw_text
        self.violations = list(violations)
        if line_no is not None:
            message = f"line {line_no}: {message} ({raw_text!r})"
        super().__init__(message)


class TimelineConflictError(TimelineError):
    """编辑操作会破坏时间线不变量。"""

    def __init__(
        self,
        message: str,
        *,
        invariant: Invariant,
        segment_ids: Sequence[str] = (),
    ) -> None:
        self.invariant = invariant
        self.segment_ids = list(segment_ids)
        super().__init__(f"[invariant {invariant.value}] {message}")


class ExportError(TimelineConflictError):
    """导出前的时间线检查未通过。"""

    def __init__(self, violations: Sequence[Violation]) -> None:
        self.violations = list(violations)
        first = self.violations[0]
        super().__init__(
            "; ".join(v.message for v in self.violations),
            invariant=first.invariant,
            segment_ids=first.segment_ids,
        )


class UnsupportedFormatError(TimelineError, ValueError):
    """不支持的导出格式。"""

    def __init__(self, fmt: object) -> None:
        self.format = fmt
        super().__init__(f"Unsupported export format: {fmt}")

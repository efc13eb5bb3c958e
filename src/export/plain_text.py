"""纯文本导出：每段一行 `[MM:SS - MM:SS] 内容`，段与段之间空一行。"""

from __future__ import annotations

from typing import Sequence

from src.timeline.models import Segment
from src.timeline.timecode import seconds_to_clock

HOUR = 3600


def render_plain_text(segments: Sequence[Segment], *, with_hours: bool = False) -> str:
    """生成纯文本脚本。

    任一时间达到 1 小时即整份改用 HH:MM:SS，保证导出结果可以被重新解析。

    Example:
        >>> render_plain_text([Segment("1", 0, 10, "Hello")])
        '[00:00 - 00:10] Hello\\n\\n'
    """
    with_hours = with_hours or any(seg.end_time >= HOUR for seg in segments)
    blocks = []
    for seg in segments:
        start = seconds_to_clock(seg.start_time, with_hours=with_hours)
        end = seconds_to_clock(seg.end_time, with_hours=with_hours)
        blocks.append(f"[{start} - {end}] {seg.content}\n\n")
    return "".join(blocks)

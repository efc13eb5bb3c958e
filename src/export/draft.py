"""剪映草稿 JSON 导出。

结构::

    {
      "version": "1.0",
      "exportTime": "2024-05-01T08:00:00.000Z",
      "segments": [
        {"id": "...", "startTime": 0.0, "duration": 10.0, "content": "...", "kind": "narration", "tags": []}
      ]
    }

数值字段单位为秒（浮点数），不是毫秒；kind/tags 仅在 include_metadata 时输出。
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Sequence

from src.timeline.models import Segment


def format_export_time(moment: datetime) -> str:
    """ISO 8601 UTC 时间，毫秒精度，以 Z 结尾。"""
    utc = moment.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_draft(
    segments: Sequence[Segment],
    *,
    version: str,
    export_time: datetime,
    include_metadata: bool = False,
) -> dict[str, Any]:
    """构建草稿字典。"""
    items = []
    for seg in segments:
        start = round(float(seg.start_time), 3)
        end = round(float(seg.end_time), 3)
        item: dict[str, Any] = {
            "id": seg.id,
            "startTime": start,
            # startTime + duration 等于取整后的结束时间
            "duration": round(end - start, 3),
            "content": seg.content,
        }
        if include_metadata:
            item["kind"] = seg.kind.value
            item["tags"] = list(seg.tags)
        items.append(item)

    return {
        "version": version,
        "exportTime": format_export_time(export_time),
        "segments": items,
    }


def render_draft(
    segments: Sequence[Segment],
    *,
    version: str,
    export_time: datetime,
    include_metadata: bool = False,
) -> str:
    draft = build_draft(
        segments,
        version=version,
        export_time=export_time,
        include_metadata=include_metadata,
    )
    return json.dumps(draft, ensure_ascii=False, indent=2)

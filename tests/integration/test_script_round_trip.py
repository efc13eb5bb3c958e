"""解析 -> 编辑 -> 导出 全流程测试。"""

from __future__ import annotations

import json

from src.export.exporter import FormatExporter
from src.timeline.editor import TimelineEditor
from src.timeline.models import overlaps, validate_sequence
from src.timeline.parser import TimestampParser

AI_RESPONSE = """好的，下面是为视频生成的解说文案：

[00:00] 清晨的城市还没有完全醒来，
街道上只有零星的行人。
[00:12] 对白：早上好！今天的行程已经安排好了。
[00:25] 画面描述：镜头缓缓推进，阳光洒在河面上。
[01:05] 最后，我们回到起点，故事也在这里结束。
"""


def test_plain_text_round_trip(parser: TimestampParser, exporter: FormatExporter) -> None:
    """导出的纯文本再次解析后，起止时间和内容保持一致。"""
    segments = parser.parse(AI_RESPONSE, media_duration=80)
    text = exporter.export(segments, "text")
    reparsed = TimestampParser(default_segment_duration=10).parse(text)

    assert [(s.start_time, s.end_time, s.content) for s in reparsed] == [
        (s.start_time, s.end_time, s.content) for s in segments
    ]
    assert [s.kind for s in reparsed] == [s.kind for s in segments]


def test_round_trip_preserves_gaps(parser: TimestampParser, exporter: FormatExporter) -> None:
    segments = parser.parse("[00:00] A\n[00:10] B\n[00:30] C", media_duration=40)
    edited = TimelineEditor(media_duration=40).resize(segments, segments[1].id, 10, 20)
    assert edited.ok

    reparsed = parser.parse(exporter.export(edited.segments, "text"))
    assert [(s.start_time, s.end_time) for s in reparsed] == [(0, 10), (10, 20), (30, 40)]


def test_edit_session_keeps_timeline_valid(
    parser: TimestampParser, exporter: FormatExporter
) -> None:
    segments = parser.parse(AI_RESPONSE, media_duration=80)
    editor = TimelineEditor(media_duration=80)

    split = editor.split(segments, segments[0].id, 6, "清晨的城市还没有完全醒来，", "街道上只有零星的行人。")
    assert split.ok
    merged = editor.merge(split.segments, split.segments[2].id, split.segments[3].id)
    assert merged.ok
    rejected = editor.move(merged.segments, merged.segments[-1].id, 70)
    assert not rejected.ok
    assert rejected.segments == merged.segments

    final = merged.segments
    assert validate_sequence(final, 80).ok
    for i, a in enumerate(final):
        for b in final[i + 1 :]:
            assert not overlaps(a, b)

    srt = exporter.export(final, "srt")
    draft = json.loads(exporter.export(final, "draft"))
    assert srt.count(" --> ") == len(draft["segments"]) == len(final) == 4
    assert srt.endswith("故事也在这里结束。\n")

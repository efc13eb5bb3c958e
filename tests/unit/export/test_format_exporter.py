"""导出服务单元测试。"""

from __future__ import annotations

import json
import math
from typing import Callable

import pytest

from src.export.exporter import ExportFormat, ExportOptions, FormatExporter
from src.timeline.errors import ExportError, UnsupportedFormatError
from src.timeline.models import Invariant, Segment, SegmentKind
from src.timeline.parser import TimestampParser


class TestSrt:
    def test_single_segment_scenario(
        self, exporter: FormatExporter, segment_factory: Callable[..., Segment]
    ) -> None:
        segments = [segment_factory("1", 65, 70, "hi")]
        assert exporter.export(segments, "srt") == "1\n00:01:05,000 --> 00:01:10,000\nhi\n"

    def test_indices_are_contiguous_across_gaps(
        self, exporter: FormatExporter, three_segments: list[Segment]
    ) -> None:
        content = exporter.export(three_segments, ExportFormat.SRT)
        assert content == (
            "1\n00:00:00,000 --> 00:00:10,000\n开场\n"
            "\n"
            "2\n00:00:10,000 --> 00:00:20,000\n中段\n"
            "\n"
            "3\n00:00:30,000 --> 00:00:40,000\n结尾\n"
        )

    def test_exports_in_start_order(
        self, exporter: FormatExporter, segment_factory: Callable[..., Segment]
    ) -> None:
        segments = [segment_factory("late", 5, 6, "B"), segment_factory("early", 1, 2, "A")]
        content = exporter.export(segments, "srt")
        assert content.index("A") < content.index("B")
        assert [s.id for s in segments] == ["late", "early"]


class TestPlainText:
    def test_format(self, exporter: FormatExporter, three_segments: list[Segment]) -> None:
        assert exporter.export(three_segments, "text") == (
            "[00:00 - 00:10] 开场\n\n[00:10 - 00:20] 中段\n\n[00:30 - 00:40] 结尾\n\n"
        )

    def test_clock_with_hours(self, segment_factory: Callable[..., Segment]) -> None:
        exporter = FormatExporter(options=ExportOptions(clock_with_hours=True))
        content = exporter.export([segment_factory("a", 3600, 3605, "x")], "text")
        assert content == "[01:00:00 - 01:00:05] x\n\n"

    def test_switches_to_hours_past_one_hour(
        self,
        exporter: FormatExporter,
        parser: TimestampParser,
        segment_factory: Callable[..., Segment],
    ) -> None:
        segments = [segment_factory("a", 0, 10, "x"), segment_factory("b", 3590, 3725, "y")]
        content = exporter.export(segments, "text")

        assert content == "[00:00:00 - 00:00:10] x\n\n[00:59:50 - 01:02:05] y\n\n"
        reparsed = parser.parse(content)
        assert [(s.start_time, s.end_time, s.content) for s in reparsed] == [
            (0.0, 10.0, "x"),
            (3590.0, 3725.0, "y"),
        ]


class TestDraft:
    def test_schema(self, exporter: FormatExporter, three_segments: list[Segment]) -> None:
        draft = json.loads(exporter.export(three_segments, "draft"))

        assert draft["version"] == "1.0"
        assert draft["exportTime"] == "2024-05-01T08:00:00.000Z"
        assert draft["segments"][2] == {
            "id": "c",
            "startTime": 30.0,
            "duration": 10.0,
            "content": "结尾",
        }

    def test_metadata_flag(self, segment_factory: Callable[..., Segment]) -> None:
        exporter = FormatExporter(options=ExportOptions(include_metadata=True))
        segments = [segment_factory("a", 0, 2.5, "对白", kind=SegmentKind.DIALOGUE, tags=("hook",))]
        item = json.loads(exporter.export(segments, "jianying"))["segments"][0]
        assert item["kind"] == "dialogue"
        assert item["tags"] == ["hook"]
        assert item["duration"] == 2.5

    def test_metadata_override(
        self, exporter: FormatExporter, three_segments: list[Segment]
    ) -> None:
        item = json.loads(
            exporter.export(three_segments, "draft", include_metadata=True)
        )["segments"][0]
        assert item["kind"] == "narration"

    def test_float_artefacts_are_rounded(
        self, exporter: FormatExporter, segment_factory: Callable[..., Segment]
    ) -> None:
        segments = [segment_factory("a", 10.1, 10.3, "x")]
        item = json.loads(exporter.export(segments, "draft"))["segments"][0]
        assert item["duration"] == 0.2

    def test_duration_matches_rounded_end(
        self, exporter: FormatExporter, segment_factory: Callable[..., Segment]
    ) -> None:
        segments = [segment_factory("a", 1.0004, 2.0006, "x")]
        item = json.loads(exporter.export(segments, "draft"))["segments"][0]
        assert item["startTime"] == 1.0
        assert item["duration"] == 1.001


class TestExportContract:
    def test_unsupported_format(self, exporter: FormatExporter, three_segments: list[Segment]) -> None:
        with pytest.raises(UnsupportedFormatError):
            exporter.export(three_segments, "docx")

    def test_format_aliases(self) -> None:
        assert ExportFormat.parse("jianying") is ExportFormat.DRAFT
        assert ExportFormat.parse("FCP") is ExportFormat.FCPXML
        assert ExportFormat.parse("srt").file_extension == ".srt"

    def test_empty_content_is_rejected(
        self, exporter: FormatExporter, segment_factory: Callable[..., Segment]
    ) -> None:
        with pytest.raises(ExportError) as exc_info:
            exporter.export([segment_factory("a", 0, 5, "  ")], "srt")
        assert exc_info.value.invariant is Invariant.CONTENT

    def test_overlapping_sequence_is_rejected(
        self, exporter: FormatExporter, segment_factory: Callable[..., Segment]
    ) -> None:
        segments = [segment_factory("a", 0, 10), segment_factory("b", 5, 15)]
        with pytest.raises(ExportError) as exc_info:
            exporter.export(segments, "text")
        assert exc_info.value.invariant is Invariant.NON_OVERLAP

    @pytest.mark.parametrize("fmt", list(ExportFormat))
    def test_non_finite_times_are_rejected(
        self,
        fmt: ExportFormat,
        exporter: FormatExporter,
        segment_factory: Callable[..., Segment],
    ) -> None:
        with pytest.raises(ExportError) as exc_info:
            exporter.export([segment_factory("a", 0, math.inf, "x")], fmt)
        assert exc_info.value.invariant is Invariant.DURATION

    def test_media_duration_check(
        self, exporter: FormatExporter, three_segments: list[Segment]
    ) -> None:
        with pytest.raises(ExportError):
            exporter.export(three_segments, "srt", media_duration=35)

    @pytest.mark.parametrize("fmt", list(ExportFormat))
    def test_export_is_idempotent(
        self, fmt: ExportFormat, three_segments: list[Segment]
    ) -> None:
        """同一序列导出两次结果一致（草稿的 exportTime 除外）。"""
        exporter = FormatExporter(options=ExportOptions())
        first = exporter.export(three_segments, fmt)
        second = exporter.export(three_segments, fmt)
        if fmt is ExportFormat.DRAFT:
            first_doc, second_doc = json.loads(first), json.loads(second)
            first_doc.pop("exportTime")
            second_doc.pop("exportTime")
            assert first_doc == second_doc
        else:
            assert first == second

    def test_figures_agree_across_formats(
        self, exporter: FormatExporter, three_segments: list[Segment]
    ) -> None:
        draft = json.loads(exporter.export(three_segments, "draft"))
        srt = exporter.export(three_segments, "srt")
        summary = exporter.summary(three_segments)

        assert len(draft["segments"]) == summary.segment_count == srt.count(" --> ")
        assert sum(item["duration"] for item in draft["segments"]) == summary.total_duration

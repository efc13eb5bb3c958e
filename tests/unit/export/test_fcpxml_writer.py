"""FCPXML 导出单元测试。"""

from __future__ import annotations

from typing import Callable
from xml.etree import ElementTree as ET

from src.export.exporter import FormatExporter
from src.export.fcpxml import render_fcpxml
from src.timeline.models import Segment


def _spine(xml: str) -> ET.Element:
    body = xml.split("\n", 2)[2]
    root = ET.fromstring(body)
    spine = root.find("./library/event/project/sequence/spine")
    assert spine is not None
    return spine


def test_document_header(exporter: FormatExporter, three_segments: list[Segment]) -> None:
    xml = exporter.export(three_segments, "fcpxml")
    assert xml.startswith('<?xml version="1.0" encoding="UTF-8"?>\n<!DOCTYPE fcpxml>\n<fcpxml version="1.8">')


def test_titles_and_gaps(three_segments: list[Segment]) -> None:
    spine = _spine(render_fcpxml(three_segments))

    assert [child.tag for child in spine] == ["title", "title", "gap", "title"]
    titles = spine.findall("title")
    assert [t.get("offset") for t in titles] == ["0s", "10s", "30s"]
    assert [t.get("duration") for t in titles] == ["10s", "10s", "10s"]
    assert titles[0].findtext("./text/text-style") == "开场"

    gap = spine.find("gap")
    assert (gap.get("offset"), gap.get("duration")) == ("20s", "10s")


def test_sequence_duration_and_format(three_segments: list[Segment]) -> None:
    body = render_fcpxml(three_segments, frame_rate=25, height=720, width=1280).split("\n", 2)[2]
    root = ET.fromstring(body)
    fmt = root.find("./resources/format")
    assert fmt.get("frameDuration") == "1/25s"
    assert fmt.get("name") == "FFVideoFormat720p25"
    assert root.find("./library/event/project/sequence").get("duration") == "40s"


def test_leading_gap_and_fractional_times(segment_factory: Callable[..., Segment]) -> None:
    spine = _spine(render_fcpxml([segment_factory("a", 1.5, 4, "x")]))
    assert spine[0].tag == "gap"
    assert spine[0].get("duration") == "3/2s"
    assert spine[1].get("duration") == "5/2s"


def test_content_is_escaped(segment_factory: Callable[..., Segment]) -> None:
    xml = render_fcpxml([segment_factory("a", 0, 1, "A & <B>")])
    assert "A &amp; &lt;B&gt;" in xml
    assert _spine(xml)[0].findtext("./text/text-style") == "A & <B>"


def test_sub_frame_segment_takes_one_frame(segment_factory: Callable[..., Segment]) -> None:
    xml = render_fcpxml(
        [segment_factory("a", 0, 0.01, "闪现"), segment_factory("b", 0.01, 2, "正文")],
        frame_rate=30,
    )
    spine = _spine(xml)

    assert [child.tag for child in spine] == ["title", "title"]
    assert spine[0].get("duration") == "1/30s"
    assert spine[1].get("offset") == "1/30s"
    assert spine[1].get("duration") == "59/30s"
    assert "duration=\"0s\"" not in xml.split("<spine>", 1)[1]

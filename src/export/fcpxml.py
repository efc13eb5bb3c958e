"""Final Cut Pro XML (FCPXML 1.8) 导出。

每个片段成为主故事线上的一个 Basic Title，片段之间的空档用 gap 填充，
保证 spine 连续。时间对齐到帧，不足一帧的片段按一帧输出，后续片段顺延。
元素与属性名由第三方剪辑软件的导入格式决定，不能随意改名。
"""

from __future__ import annotations

from typing import Sequence
from xml.etree import ElementTree as ET

from src.timeline.models import Segment
from src.timeline.timecode import seconds_to_fcpxml

FCPXML_VERSION = "1.8"
BASIC_TITLE_UID = (
    ".../Titles.localized/Bumper:Opener.localized/Basic Title.localized/Basic Title.moti"
)
TITLE_NAME_LIMIT = 32


def _frames(seconds: float, frame_rate: int) -> int:
    return max(0, int(round(seconds * frame_rate)))


def _time(frames: int, frame_rate: int) -> str:
    return seconds_to_fcpxml(frames / frame_rate, frame_rate)


def _title_name(content: str) -> str:
    name = " ".join(content.split())
    if len(name) > TITLE_NAME_LIMIT:
        name = name[: TITLE_NAME_LIMIT - 1] + "…"
    return name


def _add_title(
    spine: ET.Element,
    seg: Segment,
    index: int,
    *,
    offset: int,
    duration: int,
    frame_rate: int,
) -> ET.Element:
    title = ET.SubElement(
        spine,
        "title",
        ref="r2",
        name=_title_name(seg.content),
        offset=_time(offset, frame_rate),
        start=_time(offset, frame_rate),
        duration=_time(duration, frame_rate),
    )
    text = ET.SubElement(title, "text")
    style_ref = f"ts{index}"
    text_style = ET.SubElement(text, "text-style", ref=style_ref)
    text_style.text = seg.content
    style_def = ET.SubElement(title, "text-style-def", id=style_ref)
    ET.SubElement(
        style_def,
        "text-style",
        font="Helvetica",
        fontSize="24",
        fontFace="Regular",
        fontColor="1 1 1 1",
        alignment="center",
    )
    return title


def render_fcpxml(
    segments: Sequence[Segment],
    *,
    frame_rate: int = 30,
    width: int = 1920,
    height: int = 1080,
    event_name: str = "BlazeCut Generated Script",
    project_name: str = "BlazeCut Script",
) -> str:
    """生成 FCPXML 文档（片段需已按开始时间排序且互不重叠）。"""
    root = ET.Element("fcpxml", version=FCPXML_VERSION)

    resources = ET.SubElement(root, "resources")
    ET.SubElement(
        resources,
        "format",
        id="r1",
        name=f"FFVideoFormat{height}p{frame_rate}",
        frameDuration=f"1/{frame_rate}s",
        width=str(width),
        height=str(height),
    )
    ET.SubElement(resources, "effect", id="r2", name="Basic Title", uid=BASIC_TITLE_UID)

    library = ET.SubElement(root, "library")
    event = ET.SubElement(library, "event", name=event_name)
    project = ET.SubElement(event, "project", name=project_name)

    sequence = ET.SubElement(
        project,
        "sequence",
        format="r1",
        duration="0s",
        tcStart="0s",
        tcFormat="NDF",
    )
    spine = ET.SubElement(sequence, "spine")

    cursor = 0
    for index, seg in enumerate(segments, start=1):
        start = max(_frames(seg.start_time, frame_rate), cursor)
        # 不足一帧的片段至少占一帧
        end = max(_frames(seg.end_time, frame_rate), start + 1)
        if start > cursor:
            ET.SubElement(
                spine,
                "gap",
                name="Gap",
                offset=_time(cursor, frame_rate),
                start="0s",
                duration=_time(start - cursor, frame_rate),
            )
        _add_title(
            spine,
            seg,
            index,
            offset=start,
            duration=end - start,
            frame_rate=frame_rate,
        )
        cursor = end

    sequence.set("duration", _time(cursor, frame_rate))

    ET.indent(root, space="  ")
    body = ET.tostring(root, encoding="unicode")
    return f'<?xml version="1.0" encoding="UTF-8"?>\n<!DOCTYPE fcpxml>\n{body}\n'

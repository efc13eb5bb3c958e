"""片段类型识别策略。

基于关键词的启发式判断，可能误判；解析器通过构造参数注入，可以整体替换。
"""

from __future__ import annotations

import re
from typing import Callable

from src.timeline.models import SegmentKind

KindClassifier = Callable[[str], SegmentKind]

_DIALOGUE_PATTERN = re.compile(r"(?i)\bdialogues?\b|对白|对话")
_DESCRIPTION_PATTERN = re.compile(r"(?i)\bdescriptions?\b|画面描述|描述")


def classify_kind(text: str) -> SegmentKind:
    """根据文本中的类型关键词推断片段类型，默认为旁白。"""
    if _DIALOGUE_PATTERN.search(text):
        return SegmentKind.DIALOGUE
    if _DESCRIPTION_PATTERN.search(text):
        return SegmentKind.DESCRIPTION
    return SegmentKind.NARRATION


def narration_only(text: str) -> SegmentKind:
    """不做识别，全部视为旁白。"""
    return SegmentKind.NARRATION

#!/usr/bin/env python
"""Pytest fixtures for script timeline project."""
# ruff: noqa: E402

import itertools
import os
import sys
from collections.abc import AsyncGenerator, Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# 测试时不写日志文件
os.environ.setdefault("LOG_TO_FILE", "false")

from src.api.main import app
from src.export.exporter import ExportOptions, FormatExporter
from src.timeline.editor import TimelineEditor
from src.timeline.models import Segment, SegmentKind
from src.timeline.parser import TimestampParser

FIXED_EXPORT_TIME = datetime(2024, 5, 1, 8, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def id_factory() -> Callable[[], str]:
    """按顺序生成 seg-1, seg-2, ... 的 id 工厂。"""
    counter = itertools.count(1)
    return lambda: f"seg-{next(counter)}"


@pytest.fixture
def parser(id_factory: Callable[[], str]) -> TimestampParser:
    return TimestampParser(default_segment_duration=10.0, id_factory=id_factory)


@pytest.fixture
def editor() -> TimelineEditor:
    counter = itertools.count(1)
    return TimelineEditor(
        id_factory=lambda: f"new-{next(counter)}",
        default_segment_duration=10.0,
    )


@pytest.fixture
def exporter() -> FormatExporter:
    return FormatExporter(options=ExportOptions(), clock=lambda: FIXED_EXPORT_TIME)


@pytest.fixture
def segment_factory() -> Callable[..., Segment]:
    """创建 Segment 的工厂函数。"""

    def _create(
        segment_id: str,
        start_time: float,
        end_time: float,
        content: str = "测试解说",
        kind: SegmentKind = SegmentKind.NARRATION,
        **kwargs: Any,
    ) -> Segment:
        return Segment(
            id=segment_id,
            start_time=start_time,
            end_time=end_time,
            content=content,
            kind=kind,
            **kwargs,
        )

    return _create


@pytest.fixture
def three_segments(segment_factory: Callable[..., Segment]) -> list[Segment]:
    """[0,10) [10,20) [30,40)，第二、三段之间有间隙。"""
    return [
        segment_factory("a", 0, 10, "开场"),
        segment_factory("b", 10, 20, "中段"),
        segment_factory("c", 30, 40, "结尾"),
    ]


@pytest.fixture(scope="function")
async def app_client() -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
    app.dependency_overrides.clear()

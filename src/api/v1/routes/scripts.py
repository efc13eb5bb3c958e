from __future__ import annotations

from typing import Annotated, Any, Callable, Literal, Optional, Union

import structlog
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from src.export.exporter import ExportFormat, FormatExporter
from src.timeline.editor import EditResult, TimelineEditor
from src.timeline.errors import (
    ExportError,
    ParseError,
    TimelineConflictError,
    UnsupportedFormatError,
)
from src.timeline.models import Segment, SegmentKind, summarize, validate_sequence
from src.timeline.parser import TimestampParser

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/v1/scripts", tags=["scripts"])


def get_parser() -> TimestampParser:
    return TimestampParser()


def get_exporter() -> FormatExporter:
    return FormatExporter()


EditorFactory = Callable[[Optional[float]], TimelineEditor]


def get_editor_factory() -> EditorFactory:
    """编辑器依赖：按请求携带的视频时长构造编辑器。"""
    return lambda media_duration: TimelineEditor(media_duration=media_duration)


class SegmentPayload(BaseModel):
    id: str = Field(..., min_length=1)
    start_time: float = Field(..., ge=0, allow_inf_nan=False)
    end_time: float = Field(..., allow_inf_nan=False)
    content: str = ""
    kind: SegmentKind = SegmentKind.NARRATION
    style: str | None = None
    tags: list[str] = []

    def to_segment(self) -> Segment:
        return Segment(
            id=self.id,
            start_time=self.start_time,
            end_time=self.end_time,
            content=self.content,
            kind=self.kind,
            style=self.style,
            tags=tuple(self.tags),
        )

    @classmethod
    def from_segment(cls, segment: Segment) -> "SegmentPayload":
        return cls(
            id=segment.id,
            start_time=segment.start_time,
            end_time=segment.end_time,
            content=segment.content,
            kind=segment.kind,
            style=segment.style,
            tags=list(segment.tags),
        )


class ParseRequest(BaseModel):
    text: str
    media_duration: float | None = Field(default=None, gt=0, allow_inf_nan=False)
    mode: Literal["markers", "auto"] = "auto"


class SegmentListResponse(BaseModel):
    segments: list[SegmentPayload]
    summary: dict[str, Any]


class InsertOperation(BaseModel):
    op: Literal["insert"]
    segment: SegmentPayload


class DeleteOperation(BaseModel):
    op: Literal["delete"]
    segment_id: str


class MoveOperation(BaseModel):
    op: Literal["move"]
    segment_id: str
    new_start: float = Field(..., allow_inf_nan=False)


class ResizeOperation(BaseModel):
    op: Literal["resize"]
    segment_id: str
    new_start: float = Field(..., allow_inf_nan=False)
    new_end: float = Field(..., allow_inf_nan=False)


class SplitOperation(BaseModel):
    op: Literal["split"]
    segment_id: str
    at_time: float = Field(..., allow_inf_nan=False)
    first_content: str | None = None
    second_content: str | None = None


class MergeOperation(BaseModel):
    op: Literal["merge"]
    id_a: str
    id_b: str


class AppendOperation(BaseModel):
    op: Literal["append"]
    content: str = ""
    kind: SegmentKind = SegmentKind.NARRATION
    duration: float | None = Field(default=None, gt=0, allow_inf_nan=False)


class UpdateOperation(BaseModel):
    op: Literal["update"]
    segment_id: str
    content: str | None = None
    kind: SegmentKind | None = None
    style: str | None = None
    tags: list[str] | None = None


EditOperation = Annotated[
    Union[
        InsertOperation,
        DeleteOperation,
        MoveOperation,
        ResizeOperation,
        SplitOperation,
        MergeOperation,
        AppendOperation,
        UpdateOperation,
    ],
    Field(discriminator="op"),
]


class EditRequest(BaseModel):
    segments: list[SegmentPayload]
    media_duration: float | None = Field(default=None, gt=0, allow_inf_nan=False)
    operation: EditOperation


class ValidateRequest(BaseModel):
    segments: list[SegmentPayload]
    media_duration: float | None = Field(default=None, gt=0, allow_inf_nan=False)


class ValidateResponse(BaseModel):
    ok: bool
    violations: list[dict[str, Any]]


class ExportRequest(BaseModel):
    segments: list[SegmentPayload]
    format: str
    include_metadata: bool | None = None
    media_duration: float | None = Field(default=None, gt=0, allow_inf_nan=False)


class ExportResponse(BaseModel):
    format: str
    file_extension: str
    content: str
    summary: dict[str, Any]


def _conflict_detail(exc: TimelineConflictError) -> dict[str, Any]:
    return {
        "invariant": int(exc.invariant),
        "segment_ids": exc.segment_ids,
        "message": str(exc),
    }


def _apply(editor: TimelineEditor, segments: list[Segment], operation: Any) -> EditResult:
    if isinstance(operation, InsertOperation):
        return editor.insert(segments, operation.segment.to_segment())
    if isinstance(operation, DeleteOperation):
        return editor.delete(segments, operation.segment_id)
    if isinstance(operation, MoveOperation):
        return editor.move(segments, operation.segment_id, operation.new_start)
    if isinstance(operation, ResizeOperation):
        return editor.resize(
            segments, operation.segment_id, operation.new_start, operation.new_end
        )
    if isinstance(operation, SplitOperation):
        return editor.split(
            segments,
            operation.segment_id,
            operation.at_time,
            first_content=operation.first_content,
            second_content=operation.second_content,
        )
    if isinstance(operation, MergeOperation):
        return editor.merge(segments, operation.id_a, operation.id_b)
    if isinstance(operation, AppendOperation):
        return editor.append(
            segments,
            content=operation.content,
            kind=operation.kind,
            duration=operation.duration,
        )
    return editor.update(
        segments,
        operation.segment_id,
        content=operation.content,
        kind=operation.kind,
        style=operation.style,
        tags=operation.tags,
    )


@router.post("/parse", response_model=SegmentListResponse)
async def parse_script(
    body: ParseRequest,
    parser: Annotated[TimestampParser, Depends(get_parser)],
) -> dict[str, Any]:
    """将 AI 生成的带时间戳文本解析为脚本片段。"""
    try:
        if body.mode == "markers":
            segments = parser.parse(body.text, media_duration=body.media_duration)
        else:
            segments = parser.parse_response(body.text, media_duration=body.media_duration)
    except ParseError as exc:
        raise HTTPException(
            status_code=422,
            detail={
                "line_no": exc.line_no,
                "raw_text": exc.raw_text,
                "message": str(exc),
                "violations": [v.to_dict() for v in exc.violations],
            },
        ) from exc

    return {
        "segments": [SegmentPayload.from_segment(seg) for seg in segments],
        "summary": summarize(segments).to_dict(),
    }


@router.post("/edit", response_model=SegmentListResponse)
async def edit_script(
    body: EditRequest,
    editor_factory: Annotated[EditorFactory, Depends(get_editor_factory)],
) -> dict[str, Any]:
    """对当前片段序列执行一次编辑操作，返回新的序列。"""
    editor = editor_factory(body.media_duration)
    segments = [payload.to_segment() for payload in body.segments]
    result = _apply(editor, segments, body.operation)
    if result.error is not None:
        raise HTTPException(status_code=409, detail=_conflict_detail(result.error))

    return {
        "segments": [SegmentPayload.from_segment(seg) for seg in result.segments],
        "summary": summarize(result.segments).to_dict(),
    }


@router.post("/validate", response_model=ValidateResponse)
async def validate_script(body: ValidateRequest) -> dict[str, Any]:
    segments = [payload.to_segment() for payload in body.segments]
    result = validate_sequence(segments, body.media_duration)
    return {
        "ok": result.ok,
        "violations": [v.to_dict() for v in result.violations],
    }


@router.post("/export", response_model=ExportResponse)
async def export_script(
    body: ExportRequest,
    exporter: Annotated[FormatExporter, Depends(get_exporter)],
) -> dict[str, Any]:
    """导出脚本，返回文本内容（写文件由客户端负责）。"""
    segments = [payload.to_segment() for payload in body.segments]
    try:
        export_format = ExportFormat.parse(body.format)
        content = exporter.export(
            segments,
            export_format,
            media_duration=body.media_duration,
            include_metadata=body.include_metadata,
        )
    except UnsupportedFormatError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ExportError as exc:
        detail = _conflict_detail(exc)
        detail["violations"] = [v.to_dict() for v in exc.violations]
        raise HTTPException(status_code=409, detail=detail) from exc

    return {
        "format": export_format.value,
        "file_extension": export_format.file_extension,
        "content": content,
        "summary": exporter.summary(segments).to_dict(),
    }

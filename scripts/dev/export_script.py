#!/usr/bin/env python
"""本地调试：把 AI 生成的带时间戳文本解析后导出为各格式文件。

用法:
    python scripts/dev/export_script.py narration.txt --media-duration 180 -f srt -f draft
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[2]
if str(REPO_ROOT) not in sys.path:  # pragma: no cover - 路径注入
    sys.path.insert(0, str(REPO_ROOT))

import structlog

from src.export.exporter import ExportFormat, FormatExporter
from src.infra.observability.structured_logging import configure_logging
from src.timeline.errors import ExportError, ParseError, UnsupportedFormatError
from src.timeline.parser import TimestampParser

logger = structlog.get_logger(__name__)


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="解析解说文本并导出")
    ap.add_argument("input", type=Path, help="AI 生成的文本文件")
    ap.add_argument("--media-duration", type=float, default=None, help="视频时长（秒）")
    ap.add_argument(
        "-f",
        "--format",
        action="append",
        dest="formats",
        help="导出格式，可多次指定（text/srt/draft/fcpxml），默认全部",
    )
    ap.add_argument("-o", "--out-dir", type=Path, default=Path("artifacts/exports"))
    ap.add_argument("--metadata", action="store_true", help="剪映草稿附带 kind/tags")
    args = ap.parse_args(argv)

    configure_logging()

    parser = TimestampParser()
    exporter = FormatExporter()

    text = args.input.read_text(encoding="utf-8")
    try:
        segments = parser.parse_response(text, media_duration=args.media_duration)
    except ParseError as exc:
        logger.error("export_script.parse_failed", line_no=exc.line_no, raw_text=exc.raw_text)
        print(f"解析失败: {exc}", file=sys.stderr)
        return 1

    if not segments:
        print("输入中没有任何时间戳标记", file=sys.stderr)
        return 1

    args.out_dir.mkdir(parents=True, exist_ok=True)
    for name in args.formats or [fmt.value for fmt in ExportFormat]:
        try:
            fmt = ExportFormat.parse(name)
            content = exporter.export(
                segments,
                fmt,
                media_duration=args.media_duration,
                include_metadata=args.metadata,
            )
        except (UnsupportedFormatError, ExportError) as exc:
            print(f"导出 {name} 失败: {exc}", file=sys.stderr)
            return 1

        output_path = args.out_dir / f"{args.input.stem}{fmt.file_extension}"
        output_path.write_text(content, encoding="utf-8")
        print(f"✅ {fmt.value}: {output_path}")

    summary = exporter.summary(segments)
    print(
        f"共 {summary.segment_count} 段，"
        f"总时长 {summary.total_duration:.2f} 秒，间隙 {summary.gap_duration:.2f} 秒"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

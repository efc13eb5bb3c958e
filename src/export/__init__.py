"""脚本导出模块

支持纯文本、SRT、剪映草稿和 FCPXML 四种格式。
"""

from src.export.exporter import ExportFormat, ExportOptions, FormatExporter
from src.export.srt import read_srt

__all__ = [
    "ExportFormat",
    "ExportOptions",
    "FormatExporter",
    "read_srt",
]

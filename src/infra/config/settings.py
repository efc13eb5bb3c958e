"""集中化配置管理。"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: Literal["dev", "staging", "prod"] = "dev"

    # 解析配置
    default_segment_duration_s: float = 10.0  # 未知视频时长时最后一段的默认时长（秒）

    # 导出配置
    draft_format_version: str = "1.0"
    export_include_metadata: bool = False  # 剪映草稿是否附带 kind/tags
    export_clock_with_hours: bool = False  # 纯文本导出是否使用 HH:MM:SS

    # FCPXML 配置
    fcpxml_frame_rate: int = 30
    fcpxml_width: int = 1920
    fcpxml_height: int = 1080
    fcpxml_event_name: str = "BlazeCut Generated Script"
    fcpxml_project_name: str = "BlazeCut Script"

    # 日志配置
    log_dir: str = "logs"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_to_file: bool = True


@lru_cache()
def get_settings() -> AppSettings:
    return AppSettings()

"""时间码转换：秒 <-> 显示字符串。

示例:
    65.9 -> "01:05"（MM:SS，截断小数）
    65.0 -> "00:01:05,000"（SRT）
    "1:02:03" -> 3723.0
"""

from __future__ import annotations

import re
from fractions import Fraction

from src.timeline.errors import ParseError

_SRT_PATTERN = re.compile(r"^(\d+):(\d{2}):(\d{2})[,.](\d{3})$")


def seconds_to_clock(seconds: float, with_hours: bool = False) -> str:
    """将秒数格式化为 MM:SS 或 HH:MM:SS（截断而非四舍五入）。

    不带小时时分钟不会按 60 回绕，例如 3725 秒 -> "62:05"。
    """
    total = max(0, int(seconds))
    if with_hours:
        hours, rest = divmod(total, 3600)
        minutes, secs = divmod(rest, 60)
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"

    minutes, secs = divmod(total, 60)
    return f"{minutes:02d}:{secs:02d}"


def seconds_to_srt(seconds: float) -> str:
    """将秒数转换为 SRT 时间戳格式 (HH:MM:SS,mmm)。

    Example:
        >>> seconds_to_srt(1.5)
        '00:00:01,500'
    """
    ms = max(0, int(round(seconds * 1000)))
    hours = ms // 3600000
    ms %= 3600000
    minutes = ms // 60000
    ms %= 60000
    secs = ms // 1000
    milliseconds = ms % 1000

    return f"{hours:02d}:{minutes:02d}:{secs:02d},{milliseconds:03d}"


def clock_to_seconds(text: str) -> float:
    """解析 [H:]MM:SS 为秒数。

    Raises:
        ParseError: 分量非数字、分量个数不对，或分/秒 >= 60
    """
    parts = text.strip().split(":")
    if len(parts) not in (2, 3):
        raise ParseError(f"Malformed timestamp {text!r}: expected [H:]MM:SS")
    if not all(part.isdigit() and part.isascii() for part in parts):
        raise ParseError(f"Malformed timestamp {text!r}: non-numeric component")

    values = [int(part) for part in parts]
    hours = values[0] if len(values) == 3 else 0
    minutes, secs = values[-2], values[-1]
    if minutes >= 60 or secs >= 60:
        raise ParseError(f"Malformed timestamp {text!r}: minutes/seconds must be below 60")

    return float(hours * 3600 + minutes * 60 + secs)


def srt_to_seconds(text: str) -> float:
    """解析 SRT 时间戳 (HH:MM:SS,mmm) 为秒数。"""
    match = _SRT_PATTERN.match(text.strip())
    if match is None:
        raise ParseError(f"Malformed SRT timestamp {text!r}")
    hours, minutes, secs, millis = (int(group) for group in match.groups())
    if minutes >= 60 or secs >= 60:
        raise ParseError(f"Malformed SRT timestamp {text!r}: minutes/seconds must be below 60")
    return (hours * 3600000 + minutes * 60000 + secs * 1000 + millis) / 1000


def seconds_to_fcpxml(seconds: float, frame_rate: int) -> str:
    """转换为 FCPXML 有理数时间（对齐到帧边界），例如 4.5 秒 @30fps -> "9/2s"。"""
    frames = max(0, int(round(seconds * frame_rate)))
    value = Fraction(frames, frame_rate)
    if value.denominator == 1:
        return f"{value.numerator}s"
    return f"{value.numerator}/{value.denominator}s"

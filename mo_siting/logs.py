# logs.py
# 求解の進捗を絵文字つきで表示するコンソールログ
# - ログレベル: 'quiet' / 'info' / 'debug'
# - log_* 関数はレベルを引数で受け取る
# - FriendlyLogger は 1 回の実行ぶんのレベル・開始時刻・幅を保持して log_* に委譲

from __future__ import annotations

import shutil
import time
from typing import Dict, Optional

LEVELS = ("quiet", "info", "debug")


def _term_width(default: int = 100) -> int:
    try:
        return shutil.get_terminal_size((default, 20)).columns
    except Exception:
        return default


def _shown(level: str) -> bool:
    return level in ("info", "debug")


def _bar(char: str, width: Optional[int]) -> str:
    return char * (width or min(_term_width(), 80))


def log_line(level: str, char: str = "─", width: Optional[int] = None):
    if _shown(level):
        print(_bar(char, width))


def log_header(title: str, level: str, width: Optional[int] = None):
    if not _shown(level):
        return
    print(_bar("═", width))
    print(f"🚀 {title}")
    print(_bar("═", width))


def log_step(msg: str, level: str):
    if _shown(level):
        print(f"➤ {msg}")


def log_debug(msg: str, level: str):
    if level == "debug":
        print(f"   · {msg}")


def log_success(msg: str, level: str):
    if _shown(level):
        print(f"✅ {msg}")


def log_warn(msg: str, level: str):
    if _shown(level):
        print(f"⚠️  {msg}")


def log_model(name: str, stats: Dict[str, int], backend: str, level: str):
    """これから解くモデルの規模を 1 行で表示。"""
    log_step(
        f"🧮 {name}: 変数 {stats['variables']}（うち 0/1 変数 {stats['binaries']}）, "
        f"制約 {stats['constraints']} → {backend}",
        level,
    )


def log_done(msg: str, tstart: float, level: str, width: Optional[int] = None):
    if not _shown(level):
        return
    print(f"🏁 {msg}（経過 {time.time() - tstart:.2f}s）")
    print(_bar("═", width))


class FriendlyLogger:
    """レベルと開始時刻を束ねて logger.step(msg) の形で呼べるようにする。"""

    def __init__(
        self, level: str = "info", enabled: bool = True, width: Optional[int] = None
    ):
        level = level.lower()
        if level not in LEVELS:
            raise ValueError(f"unknown log level: {level!r} (expected one of {LEVELS})")
        self.level = level if enabled else "quiet"
        self.start = time.time()
        self.width = min(width or _term_width(), 80)

    def elapsed(self) -> float:
        return time.time() - self.start

    def line(self, char: str = "─"):
        log_line(self.level, char, self.width)

    def header(self, title: str):
        log_header(title, self.level, self.width)

    def step(self, msg: str):
        log_step(msg, self.level)

    def debug(self, msg: str):
        log_debug(msg, self.level)

    def success(self, msg: str):
        log_success(msg, self.level)

    def warn(self, msg: str):
        log_warn(msg, self.level)

    def model(self, name: str, stats: Dict[str, int], backend: str):
        log_model(name, stats, backend, self.level)

    def done(self, msg: str):
        log_done(msg, self.start, self.level, self.width)

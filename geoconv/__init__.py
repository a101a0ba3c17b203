#!/usr/bin/env python3
"""
geoconv メインパッケージ

地球科学ワークフロー向けのメッシュ・ジオメトリ変換ツール群と、
プロジェクト全体で使用される共通ロギング機能を提供します。
"""

import logging
import sys
from pathlib import Path
from typing import Optional

# プロジェクト情報
__version__ = "0.1.0"
__author__ = "geoconv Development Team"


# 設定ファイルの log_format_style で選ぶ書式
_LOG_FORMATS = {
    "simple": "%(levelname)s: %(message)s",
    "detailed": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    "debug": "%(asctime)s [%(levelname)s] %(name)s:%(funcName)s:%(lineno)d: %(message)s"
}


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    format_style: str = "detailed"
) -> logging.Logger:
    """
    変換ツールのログ出力先を設定

    tools.common.setup_from_args() が --log-level / --log-file と
    設定ファイルの log_format_style を渡して1回だけ呼びます。
    読み込み件数・書き出し先・ビニングで捨てた点数などの進捗は
    コンソールに出し、--log-file 指定時は同じ内容をファイルにも残します。
    再度呼ぶと既存のハンドラーを置き換えます。

    Args:
        level: DEBUG / INFO / WARNING / ERROR / CRITICAL
        log_file: 追加の出力ファイル
        format_style: "simple" / "detailed" / "debug"（不明な値は "detailed"）

    Returns:
        ルートロガー

    Raises:
        ValueError: ログレベル名が不正な場合
    """
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f'Invalid log level: {level}')

    formatter = logging.Formatter(
        _LOG_FORMATS.get(format_style, _LOG_FORMATS["detailed"]), datefmt='%H:%M:%S'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file is not None:
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))
    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """geoconv 内のモジュールが __name__ で取得するロガー（ハンドラーは付けない）"""
    return logging.getLogger(name)

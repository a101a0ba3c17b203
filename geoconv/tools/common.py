#!/usr/bin/env python3
"""
ツール共通処理

共通引数（ログ・設定ファイル）の定義と、例外を終了コードに変換する
実行ラッパーを提供します。
"""

import argparse
from pathlib import Path
from typing import Callable, List, Optional

from .. import get_logger, setup_logging
from ..config import GeoconvConfig, load_config
from ..errors import MeshDimensionError

logger = get_logger(__name__)

# 終了コード
EXIT_OK = 0
EXIT_ERROR = 1
EXIT_IO_ERROR = 2
EXIT_DIMENSION_ERROR = 3


def create_common_argument_parser(description: str) -> argparse.ArgumentParser:
    """共通引数パーサーを作成"""
    parser = argparse.ArgumentParser(
        description=description,
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    common_group = parser.add_argument_group('共通オプション')
    common_group.add_argument('--log-level',
                              choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                              default=None,
                              help='ログレベル（未指定なら設定ファイルの値）')
    common_group.add_argument('--log-file', type=Path, default=None,
                              help='ログファイル')
    common_group.add_argument('--config', type=Path, default=None,
                              help='YAML設定ファイル')
    return parser


def setup_from_args(args: argparse.Namespace) -> GeoconvConfig:
    """設定ファイルを読み込み、ログを設定"""
    config = load_config(args.config)
    setup_logging(
        level=args.log_level or config.log_level,
        log_file=args.log_file,
        format_style=config.log_format_style
    )
    return config


def run_tool(
    parser: argparse.ArgumentParser,
    body: Callable[[argparse.Namespace, GeoconvConfig], None],
    argv: Optional[List[str]] = None
) -> int:
    """
    引数を解析してツール本体を実行

    Args:
        parser: ツールの引数パーサー
        body: 本体（引数と設定を受け取る）
        argv: コマンドライン引数（None なら sys.argv）

    Returns:
        終了コード
    """
    args = parser.parse_args(argv)
    try:
        config = setup_from_args(args)
        body(args, config)
    except MeshDimensionError as e:
        logger.error("%s", e)
        return EXIT_DIMENSION_ERROR
    except ValueError as e:
        # GeoconvError も ValueError のサブクラス
        logger.error("%s", e)
        return EXIT_ERROR
    except OSError as e:
        logger.error("%s", e)
        return EXIT_IO_ERROR
    return EXIT_OK

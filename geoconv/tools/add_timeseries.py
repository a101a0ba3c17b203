#!/usr/bin/env python3
"""
add-timeseries - CSV のスカラー配列時系列をメッシュ時系列に追加

使用例:
    add-timeseries -b base.vtu -t output -i saturation.csv
    add-timeseries -t output -i pressure.csv --force
"""

import argparse
from pathlib import Path
from typing import List, Optional

from .. import get_logger
from ..config import GeoconvConfig
from ..timeseries import add_time_series
from .common import create_common_argument_parser, run_tool

logger = get_logger(__name__)


def ask_overwrite(output_name: Path) -> bool:
    """既存ファイルの上書きを y/n で確認"""
    answer = ""
    while answer not in ("y", "n"):
        logger.warning("Output file %s already exists. Overwrite? (y/n)", output_name)
        try:
            answer = input().strip().lower()
        except EOFError:
            return False
    return answer == "y"


def create_argument_parser() -> argparse.ArgumentParser:
    parser = create_common_argument_parser(
        "Adds a scalar array time series from a csv-file to an existing mesh "
        "or a time series of meshes."
    )
    parser.add_argument('-b', '--base', type=Path, default=None,
                        help='全ステップの基にするメッシュ（未指定なら既存の <output><i>.vtu）')
    parser.add_argument('-t', '--output', required=True,
                        help="出力ファイル名の共通部分（'output' なら output0.vtu, output1.vtu, ...）")
    parser.add_argument('-i', '--csv', type=Path, required=True,
                        help='時系列CSV（ステップ間は空行）')
    parser.add_argument('--force', action='store_true',
                        help='既存ファイルを確認せずに上書き')
    return parser


def _run(args: argparse.Namespace, config: GeoconvConfig) -> None:
    written = add_time_series(
        args.csv,
        args.output,
        base_mesh=args.base,
        config=config.timeseries,
        confirm_overwrite=None if args.force else ask_overwrite
    )
    logger.info("Wrote %d time steps", len(written))


def main(argv: Optional[List[str]] = None) -> int:
    """エントリポイント"""
    return run_tool(create_argument_parser(), _run, argv)


if __name__ == "__main__":
    raise SystemExit(main())

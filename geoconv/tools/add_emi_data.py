#!/usr/bin/env python3
"""
add-emi-data - EMI測定値をセル平均として2Dメッシュに追加

使用例:
    add-emi-data -i mesh.vtu -o mesh_emi.vtu --csv survey
"""

import argparse
from pathlib import Path
from typing import List, Optional

from .. import get_logger
from ..config import GeoconvConfig
from ..emi import add_emi_arrays
from ..io import read_mesh, write_mesh
from ..mesh import IndexType
from .common import create_common_argument_parser, run_tool

logger = get_logger(__name__)


def create_argument_parser() -> argparse.ArgumentParser:
    parser = create_common_argument_parser(
        "Add EMI data as a scalar cell array to a 2d mesh."
    )
    parser.add_argument('-i', '--mesh-input-file', type=Path, required=True,
                        help='入力2Dメッシュ')
    parser.add_argument('-o', '--mesh-output-file', type=Path, required=True,
                        help='出力メッシュ')
    parser.add_argument('--csv', required=True,
                        help='EMI ファイル名の共通部分（<base>_<region>_<dipole>.txt）')
    parser.add_argument('--index-type',
                        choices=[t.value for t in IndexType],
                        default=None,
                        help='最近傍ノード探索の空間インデックス（未指定なら設定ファイルの値）')
    return parser


def _run(args: argparse.Namespace, config: GeoconvConfig) -> None:
    if args.index_type is not None:
        config.grid.index_type = args.index_type

    logger.info("Reading mesh %s.", args.mesh_input_file)
    mesh = read_mesh(args.mesh_input_file)

    add_emi_arrays(
        mesh,
        args.csv,
        config=config.emi,
        binning=config.binning,
        grid=config.grid
    )

    logger.info("Writing result...")
    write_mesh(mesh, args.mesh_output_file)


def main(argv: Optional[List[str]] = None) -> int:
    """エントリポイント"""
    return run_tool(create_argument_parser(), _run, argv)


if __name__ == "__main__":
    raise SystemExit(main())

#!/usr/bin/env python3
"""
emi2polydata - EMI測定点を点群ファイルに変換

ダイポールごとに <output>_<dipole>.vtu（点群）と
<output>_<dipole>.txt（測定値を1行1値）を書き出します。

使用例:
    emi2polydata -i survey -o emi_points -s surface.vtu
"""

import argparse
from pathlib import Path
from typing import List, Optional

from .. import get_logger
from ..config import GeoconvConfig
from ..constants import EMI_VALUE_NAME
from ..emi import build_emi_point_set
from ..io import read_mesh, write_point_set, write_values
from ..mesh import SurfaceMapper
from .common import create_common_argument_parser, run_tool

logger = get_logger(__name__)


def create_argument_parser() -> argparse.ArgumentParser:
    parser = create_common_argument_parser(
        "Converts EMI measurement files to point sets, optionally draped on a surface DEM."
    )
    parser.add_argument('-i', '--csv-input-file', required=True,
                        help='EMI ファイル名の共通部分（<base>_<region>_<dipole>.txt）')
    parser.add_argument('-o', '--polydata-output-file', required=True,
                        help='出力ファイル名の共通部分')
    parser.add_argument('-s', '--dem-file', type=Path, default=None,
                        help='点群を写像する地表面メッシュ')
    return parser


def _run(args: argparse.Namespace, config: GeoconvConfig) -> None:
    mapper = None
    if args.dem_file is not None:
        surface = read_mesh(args.dem_file)
        logger.info("Surface mesh read: %d nodes, %d elements.", surface.num_nodes, surface.num_cells)
        mapper = SurfaceMapper(
            surface,
            index_type=config.grid.index_type,
            max_points_per_cell=config.grid.max_points_per_cell,
            tolerance=config.binning.containment_tolerance
        )

    for dipole in config.emi.dipoles:
        point_set = build_emi_point_set(args.csv_input_file, dipole, mapper, config.emi)
        output_base = f"{args.polydata_output_file}_{dipole}"
        write_point_set(
            point_set.points,
            f"{output_base}.vtu",
            point_data={EMI_VALUE_NAME: point_set.values}
        )
        write_values(point_set.values, f"{output_base}.txt")


def main(argv: Optional[List[str]] = None) -> int:
    """エントリポイント"""
    return run_tool(create_argument_parser(), _run, argv)


if __name__ == "__main__":
    raise SystemExit(main())

#!/usr/bin/env python3
"""
ert2mesh - ERT CSV を四角形メッシュに変換

使用例:
    ert2mesh -i hang.txt -o ert.vtu
    ert2mesh -i hang.txt -o ert.vtu --dem surface.vtu
"""

import argparse
from pathlib import Path
from typing import List, Optional

from .. import get_logger
from ..config import GeoconvConfig
from ..ert import correct_elevations, create_ert_mesh, read_ert_profiles
from ..io import read_mesh, write_mesh
from ..mesh import SurfaceMapper
from .common import create_common_argument_parser, run_tool

logger = get_logger(__name__)


def create_argument_parser() -> argparse.ArgumentParser:
    parser = create_common_argument_parser(
        "Converts a CSV file containing ERT data to a quad mesh."
    )
    parser.add_argument('-i', '--csv-input-file', type=Path, required=True,
                        help='ERT CSV ファイル（タブ区切り、ヘッダー付き）')
    parser.add_argument('-o', '--mesh-output-file', type=Path, required=True,
                        help='出力メッシュファイル (.vtu)')
    parser.add_argument('--dem', type=Path, default=None,
                        help='標高補正に使う地表面メッシュ')
    return parser


def _run(args: argparse.Namespace, config: GeoconvConfig) -> None:
    profiles = read_ert_profiles(args.csv_input_file, config.ert)

    if args.dem is not None:
        surface = read_mesh(args.dem)
        mapper = SurfaceMapper(
            surface,
            index_type=config.grid.index_type,
            max_points_per_cell=config.grid.max_points_per_cell,
            tolerance=config.binning.containment_tolerance
        )
        profiles = correct_elevations(profiles, mapper)

    mesh = create_ert_mesh(
        profiles,
        name=config.ert.mesh_name,
        material_array_name=config.ert.material_array_name
    )
    logger.info("Writing result...")
    write_mesh(mesh, args.mesh_output_file)


def main(argv: Optional[List[str]] = None) -> int:
    """エントリポイント"""
    return run_tool(create_argument_parser(), _run, argv)


if __name__ == "__main__":
    raise SystemExit(main())

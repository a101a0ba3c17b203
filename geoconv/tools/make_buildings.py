#!/usr/bin/env python3
"""
make-buildings - 建物平面図を押し出して3Dオブジェクトを作成

使用例:
    make-buildings -i plans.vtu -o buildings.vtu -s 12.5
"""

import argparse
from pathlib import Path
from typing import List, Optional

from .. import get_logger
from ..config import GeoconvConfig
from ..geometry import extrude_buildings
from ..io import read_geometry, write_geometry
from .common import create_common_argument_parser, run_tool

logger = get_logger(__name__)


def create_argument_parser() -> argparse.ArgumentParser:
    parser = create_common_argument_parser(
        "Uses polygons from building plans to create 3d objects."
    )
    parser.add_argument('-i', '--geo-input-file', type=Path, required=True,
                        help='建物平面図（線分・三角形セルのジオメトリ）')
    parser.add_argument('-o', '--geo-output-file', type=Path, required=True,
                        help='出力ジオメトリ')
    parser.add_argument('-s', '--size', type=float, default=None,
                        help='建物の高さ（メートル、未指定なら設定ファイルの値）')
    return parser


def _run(args: argparse.Namespace, config: GeoconvConfig) -> None:
    height = args.size if args.size is not None else config.building.default_height

    logger.info("Reading geometry %s.", args.geo_input_file)
    geometry = read_geometry(args.geo_input_file)

    buildings = extrude_buildings(geometry, height, name=config.building.output_name)
    logger.info("Writing result...")
    write_geometry(buildings, args.geo_output_file)


def main(argv: Optional[List[str]] = None) -> int:
    """エントリポイント"""
    return run_tool(create_argument_parser(), _run, argv)


if __name__ == "__main__":
    raise SystemExit(main())

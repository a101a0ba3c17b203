#!/usr/bin/env python3
"""
EMIデータ処理

EMI測定ファイル（<base>_<region>_<dipole>.txt）の読み込みと、
点群化・メッシュセルへの集約を提供します。
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Sequence

import numpy as np

from . import get_logger
from .config import BinningConfig, EmiConfig, GridConfig
from .errors import EmptyInputError
from .io import PathLike, read_numeric_columns
from .mesh import BinningResult, CellBinner, Mesh, SurfaceMapper

logger = get_logger(__name__)


def emi_file_name(base: PathLike, region: str, dipole: str) -> Path:
    """EMI測定ファイル名を組み立て"""
    return Path(f"{base}_{region}_{dipole}.txt")


def read_emi_samples(
    base: PathLike,
    dipole: str,
    config: Optional[EmiConfig] = None
) -> np.ndarray:
    """
    1つのダイポールの全領域の測定点を読み込み

    Args:
        base: ファイル名の共通部分
        dipole: ダイポール記号 ("H" / "V")
        config: 列番号・領域・区切り文字の設定

    Returns:
        測定点 (N, 3) - (x, y, 値)、領域順に連結

    Raises:
        EmptyInputError: どれかのファイルが存在しないか測定点がない場合
    """
    config = config or EmiConfig()
    columns = (config.x_column, config.y_column, config.value_column)

    chunks = []
    for region in config.regions:
        file_name = emi_file_name(base, region, dipole)
        logger.info("Reading file %s.", file_name)
        if not file_name.is_file():
            raise EmptyInputError(f"Error reading CSV-file {file_name}: file not found")
        samples = read_numeric_columns(file_name, columns, delimiter=config.delimiter)
        if len(samples) == 0:
            raise EmptyInputError(f"Error reading CSV-file {file_name}: no data rows")
        chunks.append(samples)

    return np.vstack(chunks)


@dataclass
class EmiPointSet:
    """1つのダイポールの点群と測定値"""
    dipole: str
    points: np.ndarray         # (N, 3)
    values: np.ndarray         # (N,)
    n_unmapped: int = 0        # 地表面外で標高を補間できなかった点数

    @property
    def name(self) -> str:
        return f"EMI Data {self.dipole}"


def build_emi_point_set(
    base: PathLike,
    dipole: str,
    surface: Optional[SurfaceMapper] = None,
    config: Optional[EmiConfig] = None
) -> EmiPointSet:
    """
    EMI測定点を点群化（地表面があれば標高を補間）

    Args:
        base: ファイル名の共通部分
        dipole: ダイポール記号
        surface: 地表面（None なら z=0）
        config: EMI設定

    Returns:
        点群と測定値
    """
    samples = read_emi_samples(base, dipole, config)
    points = np.column_stack([samples[:, 0], samples[:, 1], np.zeros(len(samples))])

    n_unmapped = 0
    if surface is not None:
        points, n_unmapped = surface.map_points(points)

    logger.info("Read %d values for dipole %s", len(samples), dipole)
    return EmiPointSet(dipole=dipole, points=points, values=samples[:, 2], n_unmapped=n_unmapped)


def add_emi_arrays(
    mesh: Mesh,
    base: PathLike,
    dipoles: Optional[Sequence[str]] = None,
    config: Optional[EmiConfig] = None,
    binning: Optional[BinningConfig] = None,
    grid: Optional[GridConfig] = None
) -> Dict[str, BinningResult]:
    """
    EMI測定値をセル平均としてメッシュに追加

    ダイポールごとに配列 <prefix><dipole>（既定 TM_DD_H / TM_DD_V）を作成します。

    Args:
        mesh: 2Dメッシュ（配列が追加される）
        base: ファイル名の共通部分
        dipoles: 処理するダイポール（None なら設定値）
        config: EMI設定
        binning: 集約設定
        grid: 空間インデックス設定

    Returns:
        ダイポール -> 集約結果
    """
    config = config or EmiConfig()
    binning = binning or BinningConfig()
    grid = grid or GridConfig()

    binner = CellBinner(
        mesh,
        plane_point=binning.plane_point,
        plane_normal=binning.plane_normal,
        index_type=grid.index_type,
        max_points_per_cell=grid.max_points_per_cell,
        tolerance=binning.containment_tolerance
    )

    results: Dict[str, BinningResult] = {}
    for dipole in (dipoles or config.dipoles):
        samples = read_emi_samples(base, dipole, config)
        result = binner.bin(samples)
        array_name = f"{config.array_prefix}{dipole}"
        mesh.add_cell_array(array_name, result.values)
        logger.info(
            "Added cell array %s: %d samples binned, %d dropped",
            array_name, result.n_binned, result.n_dropped
        )
        results[dipole] = result

    return results

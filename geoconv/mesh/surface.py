#!/usr/bin/env python3
"""
サーフェス（DEM）への写像

地表面メッシュ上の標高を (x, y) 位置で補間し、点群やプロファイルを
地表面に沿わせます。セル探索は点-セル集約と同じ最近傍ノード方式です。
"""

from typing import Optional, Tuple, Union
import numpy as np

from .. import get_logger
from ..constants import CONTAINMENT_TOLERANCE, DEFAULT_POINTS_PER_GRID_CELL
from .containment import barycentric_coordinates, locate_in_cell
from .core import Mesh
from .index import IndexType, build_point_index

logger = get_logger(__name__)


class SurfaceMapper:
    """地表面メッシュの標高補間クラス"""

    def __init__(
        self,
        surface: Mesh,
        index_type: Union[IndexType, str] = IndexType.UNIFORM_GRID,
        max_points_per_cell: int = DEFAULT_POINTS_PER_GRID_CELL,
        tolerance: float = CONTAINMENT_TOLERANCE
    ):
        """
        初期化

        Args:
            surface: 地表面メッシュ（ノードの z が標高）
            index_type: 最近傍ノード検索のインデックスタイプ
            max_points_per_cell: 均等グリッドのセルあたり点数
            tolerance: 包含判定の相対許容誤差
        """
        self.surface = surface
        self.tolerance = tolerance
        self.nodes_2d = surface.nodes[:, :2]
        self.index = build_point_index(
            self.nodes_2d, index_type, max_points_per_cell=max_points_per_cell
        )

    def elevation_at(self, x: float, y: float) -> Optional[float]:
        """
        (x, y) 位置の地表面標高を取得

        Returns:
            標高。地表面の外なら None
        """
        query = (float(x), float(y))
        node_id = self.index.nearest_point(query)

        for cell_id in self.surface.node_cells(node_id):
            cell = self.surface.cells[cell_id]
            cell_points = self.nodes_2d[list(cell)]
            tri = locate_in_cell(query, cell_points, self.tolerance)
            if tri is None:
                continue
            weights = barycentric_coordinates(query, *(cell_points[i] for i in tri))
            if weights is None:
                continue
            heights = self.surface.nodes[[cell[i] for i in tri], 2]
            return float(weights @ heights)
        return None

    def map_points(self, points: np.ndarray) -> Tuple[np.ndarray, int]:
        """
        点群の z を地表面標高に置き換え

        Args:
            points: 点群 (N, 3)

        Returns:
            (写像後の点群, 地表面外で z を変更しなかった点数)
        """
        mapped = np.array(points, dtype=np.float64, copy=True)
        n_unmapped = 0
        for i, (x, y) in enumerate(mapped[:, :2]):
            elevation = self.elevation_at(x, y)
            if elevation is None:
                n_unmapped += 1
                continue
            mapped[i, 2] = elevation

        if n_unmapped:
            logger.warning(
                "%d of %d points lie outside surface '%s' and keep their elevation",
                n_unmapped, len(mapped), self.surface.name
            )
        return mapped, n_unmapped

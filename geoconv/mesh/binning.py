#!/usr/bin/env python3
"""
点-セル集約（ビニング）

散在する測定点 (x, y, 値) を平坦化メッシュのセルに割り当て、
セルごとの平均値を計算します。

処理フロー:
1. メッシュを参照平面に平坦化 (projection.py)
2. 平坦化ノードに最近傍点インデックスを構築 (index.py)
3. 測定点ごとに最近傍ノードを検索し、その接続セルを包含判定 (containment.py)
4. 最初に包含したセルに値を加算し、最後に平均化

最近傍ノードに接続したセルしか調べないため厳密な空間結合ではありません。
どのセルにも含まれない測定点は破棄され、件数だけが記録されます。
"""

import time
from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence, Union
import numpy as np

from .. import get_logger
from ..constants import (
    CONTAINMENT_TOLERANCE, DEFAULT_PLANE_POINT, DEFAULT_PLANE_NORMAL,
    DEFAULT_POINTS_PER_GRID_CELL
)
from .containment import point_in_cell
from .core import Mesh
from .index import IndexType, build_point_index
from .projection import PlaneFrame, flatten_mesh

logger = get_logger(__name__)


@dataclass
class CellAccumulator:
    """セルごとの合計値とサンプル数"""
    sums: np.ndarray
    counts: np.ndarray

    @staticmethod
    def empty(num_cells: int) -> 'CellAccumulator':
        """空のアキュムレータを作成"""
        return CellAccumulator(np.zeros(num_cells), np.zeros(num_cells, dtype=np.int64))

    def add(self, cell_id: int, value: float) -> None:
        """セルに値を加算"""
        self.sums[cell_id] += value
        self.counts[cell_id] += 1

    def finalize(self) -> np.ndarray:
        """平均値を計算（サンプルのないセルは 0.0）"""
        means = np.zeros_like(self.sums)
        filled = self.counts > 0
        means[filled] = self.sums[filled] / self.counts[filled]
        return means


@dataclass
class BinningResult:
    """集約結果"""
    values: np.ndarray          # セルごとの平均値 (M,)
    counts: np.ndarray          # セルごとのサンプル数 (M,)
    n_samples: int              # 入力サンプル数
    n_dropped: int              # どのセルにも含まれなかったサンプル数
    stats: Dict[str, float] = field(default_factory=dict)

    @property
    def n_binned(self) -> int:
        """セルに割り当てられたサンプル数"""
        return self.n_samples - self.n_dropped

    def as_dict(self) -> Dict[int, float]:
        """セルID -> 平均値 の辞書"""
        return {cell_id: float(value) for cell_id, value in enumerate(self.values)}


class CellBinner:
    """点-セル集約クラス"""

    def __init__(
        self,
        mesh: Mesh,
        plane_point: Sequence[float] = DEFAULT_PLANE_POINT,
        plane_normal: Sequence[float] = DEFAULT_PLANE_NORMAL,
        index_type: Union[IndexType, str] = IndexType.UNIFORM_GRID,
        max_points_per_cell: int = DEFAULT_POINTS_PER_GRID_CELL,
        tolerance: float = CONTAINMENT_TOLERANCE
    ):
        """
        初期化（平坦化とインデックス構築は一度だけ行う）

        Args:
            mesh: 集約先メッシュ
            plane_point: 参照平面上の点
            plane_normal: 参照平面の法線
            index_type: 最近傍ノード検索のインデックスタイプ
            max_points_per_cell: 均等グリッドのセルあたり点数
            tolerance: 包含判定の相対許容誤差
        """
        start_time = time.perf_counter()

        self.mesh = mesh
        self.tolerance = tolerance
        self.frame = PlaneFrame(plane_point, plane_normal)
        self.flat_mesh = flatten_mesh(mesh, plane_point, plane_normal)
        self.index = build_point_index(
            self.flat_mesh.nodes, index_type, max_points_per_cell=max_points_per_cell
        )
        self.local_nodes = self.frame.to_local(self.flat_mesh.nodes)

        self.stats = {
            'setup_time_ms': (time.perf_counter() - start_time) * 1000,
            'total_passes': 0,
            'last_time_ms': 0.0,
            'last_num_samples': 0,
            'last_num_dropped': 0
        }

    def find_cell(self, position: np.ndarray, local_position: np.ndarray) -> Optional[int]:
        """
        点を含むセルを探す

        Args:
            position: 平面上に投影済みの3D位置
            local_position: 平面内2D座標

        Returns:
            最初に包含したセルID。見つからなければ None
        """
        node_id = self.index.nearest_point(position)
        for cell_id in self.flat_mesh.node_cells(node_id):
            cell_points = self.local_nodes[list(self.flat_mesh.cells[cell_id])]
            if point_in_cell(local_position, cell_points, self.tolerance):
                return cell_id
        return None

    def bin(self, samples: np.ndarray) -> BinningResult:
        """
        測定点をセルに集約

        Args:
            samples: 測定点 (N, 3) - (x, y, 値)

        Returns:
            集約結果
        """
        start_time = time.perf_counter()

        samples = np.asarray(samples, dtype=np.float64)
        if samples.ndim != 2 or samples.shape[1] != 3:
            raise ValueError(f"Samples must be (N, 3) rows of (x, y, value), got {samples.shape}")
        if not np.all(np.isfinite(samples)):
            bad_rows = np.where(~np.all(np.isfinite(samples), axis=1))[0]
            raise ValueError(f"Samples contain non-finite values in rows {bad_rows[:10].tolist()}")

        accumulator = CellAccumulator.empty(self.mesh.num_cells)
        n_samples = len(samples)
        n_dropped = 0

        if n_samples > 0:
            raw_positions = np.column_stack([samples[:, 0], samples[:, 1], np.zeros(n_samples)])
            positions = self.frame.project(raw_positions)
            local_positions = self.frame.to_local(positions)

            for i in range(n_samples):
                cell_id = self.find_cell(positions[i], local_positions[i])
                if cell_id is None:
                    n_dropped += 1
                    continue
                accumulator.add(cell_id, samples[i, 2])
        else:
            logger.warning("No samples given, all cells of '%s' stay at 0.0", self.mesh.name)

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        self._update_stats(elapsed_ms, n_samples, n_dropped)
        if n_dropped:
            logger.info("%d of %d samples are not inside any cell and were dropped", n_dropped, n_samples)

        return BinningResult(
            values=accumulator.finalize(),
            counts=accumulator.counts,
            n_samples=n_samples,
            n_dropped=n_dropped,
            stats={'time_ms': elapsed_ms}
        )

    def _update_stats(self, elapsed_ms: float, num_samples: int, num_dropped: int):
        """パフォーマンス統計更新"""
        self.stats['total_passes'] += 1
        self.stats['last_time_ms'] = elapsed_ms
        self.stats['last_num_samples'] = num_samples
        self.stats['last_num_dropped'] = num_dropped

    def get_performance_stats(self) -> dict:
        """パフォーマンス統計取得"""
        return self.stats.copy()


# 便利関数

def bin_samples(
    mesh: Mesh,
    samples: np.ndarray,
    plane_point: Sequence[float] = DEFAULT_PLANE_POINT,
    plane_normal: Sequence[float] = DEFAULT_PLANE_NORMAL,
    index_type: Union[IndexType, str] = IndexType.UNIFORM_GRID
) -> BinningResult:
    """
    測定点をセルに集約（簡単なインターフェース）

    Args:
        mesh: 集約先メッシュ
        samples: 測定点 (N, 3) - (x, y, 値)
        plane_point: 参照平面上の点
        plane_normal: 参照平面の法線
        index_type: インデックスタイプ

    Returns:
        集約結果
    """
    binner = CellBinner(mesh, plane_point, plane_normal, index_type=index_type)
    return binner.bin(samples)


def bin(mesh: Mesh, samples: np.ndarray) -> Dict[int, float]:  # noqa: A001 - public name of the operation
    """セルID -> 平均値 の辞書を返す集約"""
    return bin_samples(mesh, samples).as_dict()

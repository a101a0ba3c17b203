#!/usr/bin/env python3
"""
空間インデックス

点集合に対する最近傍点検索のためのデータ構造を提供します。
均等グリッド（UniformGrid）とKD-Tree（scipy cKDTree）の2種類があり、
点-セル集約での最近傍ノード検索を高速化します。
"""

import math
import time
from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence, Union
import numpy as np
from scipy.spatial import cKDTree

from .. import get_logger
from ..constants import DEFAULT_POINTS_PER_GRID_CELL, DISTANCE_EPSILON
from ..errors import EmptyInputError

logger = get_logger(__name__)


class IndexType(Enum):
    """インデックスタイプの列挙"""
    UNIFORM_GRID = "grid"      # 均等グリッド
    KDTREE = "kdtree"          # KD-Tree


@dataclass
class BoundingBox:
    """軸並行バウンディングボックス"""
    min_point: np.ndarray      # 最小点 (3,)
    max_point: np.ndarray      # 最大点 (3,)

    @property
    def size(self) -> np.ndarray:
        """サイズを取得"""
        return self.max_point - self.min_point

    def clamp(self, point: np.ndarray) -> np.ndarray:
        """ボックス内の最近接点を取得"""
        return np.clip(point, self.min_point, self.max_point)

    @staticmethod
    def from_points(points: np.ndarray) -> 'BoundingBox':
        """点群からバウンディングボックスを作成"""
        return BoundingBox(np.min(points, axis=0), np.max(points, axis=0))


def _as_points(points: np.ndarray) -> np.ndarray:
    """(N, 2) / (N, 3) を (N, 3) の float 配列に揃える"""
    points = np.asarray(points, dtype=np.float64)
    if points.ndim != 2 or points.shape[1] not in (2, 3):
        raise ValueError(f"Points must be (N, 3), got {points.shape}")
    if points.shape[1] == 2:
        points = np.column_stack([points, np.zeros(len(points))])
    return points


def _as_query(point: Sequence[float]) -> np.ndarray:
    """検索点を (3,) に揃える"""
    query = np.asarray(point, dtype=np.float64).reshape(-1)
    if query.shape[0] == 2:
        query = np.append(query, 0.0)
    if query.shape[0] != 3:
        raise ValueError(f"Query point must have 2 or 3 coordinates, got {query.shape[0]}")
    return query


class UniformGrid:
    """
    均等グリッドによる最近傍点検索

    点集合のバウンディングボックスを軸並行のセルに分割し、
    セルあたりの平均点数が max_points_per_cell 程度になるように
    分割数を決めます。構築後は読み取り専用です。
    """

    def __init__(
        self,
        points: np.ndarray,
        max_points_per_cell: int = DEFAULT_POINTS_PER_GRID_CELL
    ):
        """
        初期化

        Args:
            points: 点群 (N, 3) または (N, 2)
            max_points_per_cell: セルあたりの平均点数の目安

        Raises:
            EmptyInputError: 点が1つもない場合
        """
        start_time = time.perf_counter()

        self.points = _as_points(points)
        if len(self.points) == 0:
            raise EmptyInputError("Cannot build a spatial grid from an empty point set")
        if max_points_per_cell < 1:
            raise ValueError("max_points_per_cell must be >= 1")

        self.max_points_per_cell = max_points_per_cell
        self.bounding_box = BoundingBox.from_points(self.points)
        self.n_steps = self._compute_steps()
        extent = self.bounding_box.size
        self.cell_size = np.where(self.n_steps > 1, extent / self.n_steps, extent)
        # 検索リングの距離下限に使う最小セル幅（分割された軸のみ）
        split = self.n_steps > 1
        self.min_cell_size = float(np.min(self.cell_size[split])) if np.any(split) else 0.0

        # CSR形式でセルごとの点インデックスを保持（セル内は入力順）
        cell_ids = self._linear_ids(self._cell_coordinates(self.points))
        self._order = np.argsort(cell_ids, kind="stable")
        counts = np.bincount(cell_ids, minlength=self.num_cells)
        self._starts = np.concatenate([[0], np.cumsum(counts)])

        self.stats = {
            'build_time_ms': (time.perf_counter() - start_time) * 1000,
            'num_points': len(self.points),
            'num_cells': self.num_cells,
            'total_queries': 0,
            'total_candidates': 0,
            'average_candidates': 0.0
        }
        logger.debug(
            "Uniform grid built: %d points, steps=%s", len(self.points), self.n_steps.tolist()
        )

    @property
    def num_cells(self) -> int:
        """グリッドセル数"""
        return int(np.prod(self.n_steps))

    def _extent_epsilon(self) -> float:
        return DISTANCE_EPSILON * max(1.0, float(np.max(self.bounding_box.size)))

    def _compute_steps(self) -> np.ndarray:
        """各軸の分割数を計算"""
        extent = self.bounding_box.size
        n_steps = np.ones(3, dtype=np.int64)
        target_cells = max(1, math.ceil(len(self.points) / self.max_points_per_cell))

        active = [k for k in range(3) if extent[k] > self._extent_epsilon()]
        # セル幅より薄い軸は分割しない（極端に細長い点群で分割数が膨らまないように）
        while active:
            volume = float(np.prod([extent[k] for k in active]))
            cell_size = (volume / target_cells) ** (1.0 / len(active))
            thin = [k for k in active if extent[k] < cell_size]
            if not thin:
                for k in active:
                    n_steps[k] = max(1, math.ceil(extent[k] / cell_size))
                break
            active = [k for k in active if k not in thin]

        return n_steps

    def _cell_coordinates(self, points: np.ndarray) -> np.ndarray:
        """点を含むセル座標を計算（範囲外はグリッド境界にクランプ）"""
        safe_size = np.where(self.cell_size > 0, self.cell_size, 1.0)
        inside = self.bounding_box.clamp(points)
        coords = np.floor((inside - self.bounding_box.min_point) / safe_size).astype(np.int64)
        return np.clip(coords, 0, self.n_steps - 1)

    def _linear_ids(self, coords: np.ndarray) -> np.ndarray:
        nx, ny, _ = self.n_steps
        return coords[..., 0] + nx * (coords[..., 1] + ny * coords[..., 2])

    def _ring_cells(self, center: np.ndarray, radius: int) -> np.ndarray:
        """中心セルからチェビシェフ距離 radius のセルID（グリッド内のみ）"""
        if radius == 0:
            return self._linear_ids(center[np.newaxis, :])

        ranges = [
            np.arange(max(0, center[k] - radius), min(self.n_steps[k] - 1, center[k] + radius) + 1)
            for k in range(3)
        ]
        grid = np.stack(np.meshgrid(*ranges, indexing="ij"), axis=-1).reshape(-1, 3)
        on_ring = np.max(np.abs(grid - center), axis=1) == radius
        return self._linear_ids(grid[on_ring])

    def _cell_candidates(self, cell_ids: np.ndarray) -> np.ndarray:
        chunks = [self._order[self._starts[c]:self._starts[c + 1]] for c in cell_ids]
        chunks = [c for c in chunks if len(c) > 0]
        if not chunks:
            return np.empty(0, dtype=np.int64)
        return np.concatenate(chunks)

    def nearest_point(self, point: Sequence[float]) -> int:
        """
        最近傍点を検索

        Args:
            point: 検索点 (3,) または (2,)

        Returns:
            最近傍点のインデックス（距離が等しい場合は先に見つかった点）
        """
        query = _as_query(point)
        center = self._cell_coordinates(query[np.newaxis, :])[0]
        max_radius = int(np.max(np.maximum(center, self.n_steps - 1 - center)))

        best_index = -1
        best_distance = np.inf
        n_candidates = 0

        for radius in range(max_radius + 1):
            # リング radius 上の点は少なくとも (radius-1)*最小セル幅 だけ離れている
            if best_index >= 0 and (radius - 1) * self.min_cell_size > best_distance:
                break

            candidates = self._cell_candidates(self._ring_cells(center, radius))
            if len(candidates) == 0:
                continue

            n_candidates += len(candidates)
            distances = np.linalg.norm(self.points[candidates] - query, axis=1)
            local = int(np.argmin(distances))
            if distances[local] < best_distance:
                best_distance = float(distances[local])
                best_index = int(candidates[local])

        self._update_query_stats(n_candidates)
        return best_index

    def nearest_points(self, points: np.ndarray) -> np.ndarray:
        """複数点の最近傍点インデックスを取得"""
        return np.array([self.nearest_point(p) for p in _as_points(points)], dtype=np.int64)

    def _update_query_stats(self, n_candidates: int):
        """クエリ統計を更新"""
        self.stats['total_queries'] += 1
        self.stats['total_candidates'] += n_candidates
        self.stats['average_candidates'] = (
            self.stats['total_candidates'] / self.stats['total_queries']
        )

    def get_performance_stats(self) -> dict:
        """パフォーマンス統計取得"""
        return self.stats.copy()


class KDTreePointIndex:
    """scipy cKDTree による最近傍点検索"""

    def __init__(self, points: np.ndarray):
        start_time = time.perf_counter()

        self.points = _as_points(points)
        if len(self.points) == 0:
            raise EmptyInputError("Cannot build a KD-tree from an empty point set")

        self.kdtree = cKDTree(self.points)
        self.stats = {
            'build_time_ms': (time.perf_counter() - start_time) * 1000,
            'num_points': len(self.points),
            'total_queries': 0
        }

    def nearest_point(self, point: Sequence[float]) -> int:
        """最近傍点のインデックスを取得"""
        _, index = self.kdtree.query(_as_query(point))
        self.stats['total_queries'] += 1
        return int(index)

    def nearest_points(self, points: np.ndarray) -> np.ndarray:
        """複数点の最近傍点インデックスを取得"""
        _, indices = self.kdtree.query(_as_points(points))
        self.stats['total_queries'] += len(indices)
        return np.asarray(indices, dtype=np.int64)

    def get_performance_stats(self) -> dict:
        """パフォーマンス統計取得"""
        return self.stats.copy()


PointIndex = Union[UniformGrid, KDTreePointIndex]


# 便利関数

def build_point_index(
    points: np.ndarray,
    index_type: Union[IndexType, str] = IndexType.UNIFORM_GRID,
    max_points_per_cell: int = DEFAULT_POINTS_PER_GRID_CELL
) -> PointIndex:
    """
    最近傍点インデックスを構築（簡単なインターフェース）

    Args:
        points: 点群 (N, 3)
        index_type: インデックスタイプ（"grid" / "kdtree" も可）
        max_points_per_cell: 均等グリッドのセルあたり点数

    Returns:
        nearest_point() を持つインデックス
    """
    index_type = IndexType(index_type)
    if index_type == IndexType.KDTREE:
        return KDTreePointIndex(points)
    return UniformGrid(points, max_points_per_cell=max_points_per_cell)


def query_nearest_points(index: PointIndex, points: np.ndarray) -> List[int]:
    """複数点の最近傍点インデックスをリストで取得"""
    return [int(i) for i in index.nearest_points(points)]

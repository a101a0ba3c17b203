#!/usr/bin/env python3
"""
ジオメトリオブジェクト

点・ポリライン・サーフェスをまとめた幾何データ構造を提供します。
ポリラインとサーフェスは点配列のインデックスで頂点を参照します。
"""

from dataclasses import dataclass, field
from typing import Tuple
import numpy as np

from ..errors import MeshTopologyError

Polyline = Tuple[int, ...]
Triangle = Tuple[int, int, int]
Surface = Tuple[Triangle, ...]


@dataclass(frozen=True)
class GeometrySet:
    """点・ポリライン・サーフェスの集合"""
    points: np.ndarray                              # 点座標 (N, 3)
    polylines: Tuple[Polyline, ...] = field(default_factory=tuple)
    surfaces: Tuple[Surface, ...] = field(default_factory=tuple)
    name: str = "geometry"

    def __post_init__(self):
        points = np.asarray(self.points, dtype=np.float64).reshape(-1, 3)
        object.__setattr__(self, 'points', points)
        object.__setattr__(self, 'polylines', tuple(tuple(int(i) for i in p) for p in self.polylines))
        object.__setattr__(self, 'surfaces', tuple(
            tuple(tuple(int(i) for i in tri) for tri in sfc) for sfc in self.surfaces
        ))
        self._validate()

    def _validate(self) -> None:
        n_points = len(self.points)
        for line_id, line in enumerate(self.polylines):
            if any(i < 0 or i >= n_points for i in line):
                raise MeshTopologyError(f"Polyline {line_id} references a missing point")
        for sfc_id, sfc in enumerate(self.surfaces):
            for tri in sfc:
                if len(tri) != 3:
                    raise MeshTopologyError(f"Surface {sfc_id} has a non-triangle element {tri}")
                if any(i < 0 or i >= n_points for i in tri):
                    raise MeshTopologyError(f"Surface {sfc_id} references a missing point")

    @property
    def num_points(self) -> int:
        """点数を取得"""
        return len(self.points)

    @property
    def num_triangles(self) -> int:
        """全サーフェスの三角形数を取得"""
        return sum(len(sfc) for sfc in self.surfaces)

#!/usr/bin/env python3
"""
点-ポリゴン包含判定

2D平面上の点が三角形（およびファン分割した多角形セル）の内部または
境界上にあるかを判定します。三角形の巻き順には依存しません。
"""

from typing import List, Optional, Sequence, Tuple
import numpy as np

from ..constants import CONTAINMENT_TOLERANCE
from ..errors import MeshTopologyError

Point2D = Sequence[float]


def _cross(ox: float, oy: float, ax: float, ay: float, bx: float, by: float) -> float:
    """(a - o) × (b - o) の z 成分"""
    return (ax - ox) * (by - oy) - (ay - oy) * (bx - ox)


def point_in_triangle(
    p: Point2D,
    a: Point2D,
    b: Point2D,
    c: Point2D,
    tolerance: float = CONTAINMENT_TOLERANCE
) -> bool:
    """
    点が三角形の内部または境界上にあるか判定

    3辺の外積の符号が互いに矛盾しないかで判定するため、
    時計回り・反時計回りどちらの三角形でも同じ結果になります。

    Args:
        p: 判定する点 (x, y)
        a, b, c: 三角形の頂点 (x, y)
        tolerance: 三角形面積（2倍）に対する相対許容誤差

    Returns:
        内部または境界上なら True（面積0の三角形は常に False）
    """
    px, py = float(p[0]), float(p[1])
    ax, ay = float(a[0]), float(a[1])
    bx, by = float(b[0]), float(b[1])
    cx, cy = float(c[0]), float(c[1])

    area2 = _cross(ax, ay, bx, by, cx, cy)
    if area2 == 0.0:
        return False
    eps = abs(area2) * tolerance

    d1 = _cross(ax, ay, bx, by, px, py)
    d2 = _cross(bx, by, cx, cy, px, py)
    d3 = _cross(cx, cy, ax, ay, px, py)

    has_negative = d1 < -eps or d2 < -eps or d3 < -eps
    has_positive = d1 > eps or d2 > eps or d3 > eps
    return not (has_negative and has_positive)


def barycentric_coordinates(p: Point2D, a: Point2D, b: Point2D, c: Point2D) -> Optional[np.ndarray]:
    """
    三角形に対する重心座標を計算

    Returns:
        (wa, wb, wc)。面積0の三角形では None
    """
    ax, ay = float(a[0]), float(a[1])
    area2 = _cross(ax, ay, float(b[0]), float(b[1]), float(c[0]), float(c[1]))
    if area2 == 0.0:
        return None
    px, py = float(p[0]), float(p[1])
    wa = _cross(px, py, float(b[0]), float(b[1]), float(c[0]), float(c[1])) / area2
    wb = _cross(ax, ay, px, py, float(c[0]), float(c[1])) / area2
    return np.array([wa, wb, 1.0 - wa - wb])


def fan_triangles(cell: Sequence[int]) -> List[Tuple[int, int, int]]:
    """
    多角形セルを先頭頂点を共有する三角形に分割

    Args:
        cell: 頂点（ノードインデックスまたは局所番号）の列

    Returns:
        (v0, vi, vi+1) のリスト
    """
    if len(cell) < 3:
        raise MeshTopologyError(f"A cell needs at least 3 vertices, got {len(cell)}")
    return [(cell[0], cell[i], cell[i + 1]) for i in range(1, len(cell) - 1)]


def locate_in_cell(
    p: Point2D,
    cell_points: np.ndarray,
    tolerance: float = CONTAINMENT_TOLERANCE
) -> Optional[Tuple[int, int, int]]:
    """
    点を含むファン三角形を探す

    Args:
        p: 判定する点 (x, y)
        cell_points: セル頂点の2D座標 (k, 2)
        tolerance: 相対許容誤差

    Returns:
        点を含む三角形の局所頂点番号。含まれなければ None
    """
    for tri in fan_triangles(range(len(cell_points))):
        i, j, k = tri
        if point_in_triangle(p, cell_points[i], cell_points[j], cell_points[k], tolerance):
            return tri
    return None


def point_in_cell(
    p: Point2D,
    cell_points: np.ndarray,
    tolerance: float = CONTAINMENT_TOLERANCE
) -> bool:
    """点が多角形セルの内部または境界上にあるか判定"""
    return locate_in_cell(p, cell_points, tolerance) is not None

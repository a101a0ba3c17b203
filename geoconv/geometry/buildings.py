#!/usr/bin/env python3
"""
建物の押し出し

建物平面図のポリラインとサーフェスを指定高さだけ押し出し、
床・壁・屋根からなる簡易3Dオブジェクトを作成します。
"""

import math
from typing import List

import numpy as np

from .. import get_logger
from ..constants import DEFAULT_GEOMETRY_OUTPUT_NAME
from .objects import GeometrySet, Surface

logger = get_logger(__name__)


def wall_surface(polyline, offset: int) -> Surface:
    """ポリラインの各区間を2枚の三角形で上方の複製点と結ぶ壁面"""
    triangles = []
    for i in range(1, len(polyline)):
        p0, p1 = polyline[i - 1], polyline[i]
        triangles.append((p1, p0, p0 + offset))
        triangles.append((p1, p0 + offset, p1 + offset))
    return tuple(triangles)


def offset_surface(surface: Surface, offset: int) -> Surface:
    """全頂点インデックスを offset だけずらしたサーフェス"""
    return tuple(tuple(i + offset for i in tri) for tri in surface)


def extrude_buildings(
    geometry: GeometrySet,
    height: float,
    name: str = DEFAULT_GEOMETRY_OUTPUT_NAME
) -> GeometrySet:
    """
    平面図を押し出した3Dジオメトリを作成

    点は元の点のあとに height だけ持ち上げた複製を並べます（複製のIDは元ID + 点数）。
    ポリラインはそのまま、サーフェスは「元のサーフェス（床）・ポリラインごとの壁・
    サーフェスごとの屋根」の順に並びます。

    Args:
        geometry: 入力ジオメトリ
        height: 押し出し高さ（メートル）
        name: 出力ジオメトリ名

    Returns:
        新しいジオメトリ（入力は変更しない）
    """
    if not math.isfinite(height) or height < 0:
        raise ValueError(f"Building height must be a finite non-negative number, got {height}")

    n_points = geometry.num_points
    raised = geometry.points.copy()
    raised[:, 2] += height

    surfaces: List[Surface] = list(geometry.surfaces)
    surfaces.extend(wall_surface(line, n_points) for line in geometry.polylines)
    surfaces.extend(offset_surface(sfc, n_points) for sfc in geometry.surfaces)

    result = GeometrySet(
        points=np.vstack([geometry.points, raised]),
        polylines=geometry.polylines,
        surfaces=tuple(surfaces),
        name=name
    )
    logger.debug(
        "Extruded %d polylines and %d surfaces by %.3fm",
        len(geometry.polylines), len(geometry.surfaces), height
    )
    return result

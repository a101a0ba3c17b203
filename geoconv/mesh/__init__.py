"""
geoconv メッシュ処理

このパッケージはポリゴンメッシュと、散在測定点をセルに集約する
ための空間インデックス・包含判定・平坦化を提供します。

処理フロー:
1. メッシュの平面投影 (projection.py)
2. 最近傍ノードインデックス構築 (index.py)
3. 点-三角形包含判定 (containment.py)
4. セルごとの平均値集約 (binning.py)
"""

# メッシュ構造
from .core import Mesh

# 平面投影
from .projection import (
    PlaneFrame,
    flatten,
    flatten_mesh,
    project_points_onto_plane
)

# 空間インデックス
from .index import (
    BoundingBox,
    IndexType,
    KDTreePointIndex,
    UniformGrid,
    build_point_index,
    query_nearest_points
)

# 包含判定
from .containment import (
    barycentric_coordinates,
    fan_triangles,
    locate_in_cell,
    point_in_cell,
    point_in_triangle
)

# 集約
from .binning import (
    BinningResult,
    CellAccumulator,
    CellBinner,
    bin,
    bin_samples
)

# 地表面写像
from .surface import SurfaceMapper

__all__ = [
    'Mesh',

    # 投影
    'PlaneFrame',
    'flatten',
    'flatten_mesh',
    'project_points_onto_plane',

    # インデックス
    'BoundingBox',
    'IndexType',
    'KDTreePointIndex',
    'UniformGrid',
    'build_point_index',
    'query_nearest_points',

    # 包含判定
    'barycentric_coordinates',
    'fan_triangles',
    'locate_in_cell',
    'point_in_cell',
    'point_in_triangle',

    # 集約
    'BinningResult',
    'CellAccumulator',
    'CellBinner',
    'bin',
    'bin_samples',

    # 地表面
    'SurfaceMapper'
]

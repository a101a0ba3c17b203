#!/usr/bin/env python3
"""
共通定数・設定値

アプリケーション全体で使用される定数や閾値を一元管理し、
モジュール間の循環依存を解消します。
"""

from typing import Final, Tuple

# =============================================================================
# 数値精度・許容誤差
# =============================================================================

DISTANCE_EPSILON: Final[float] = 1e-12

# 点-三角形判定の許容誤差（三角形面積に対する相対値）
CONTAINMENT_TOLERANCE: Final[float] = 1e-9

# =============================================================================
# 空間インデックス関連
# =============================================================================

# 均等グリッドのセルあたり平均点数
DEFAULT_POINTS_PER_GRID_CELL: Final[int] = 8

# =============================================================================
# 投影関連
# =============================================================================

DEFAULT_PLANE_POINT: Final[Tuple[float, float, float]] = (0.0, 0.0, 0.0)
DEFAULT_PLANE_NORMAL: Final[Tuple[float, float, float]] = (0.0, 0.0, -1.0)

# =============================================================================
# メッシュ属性名
# =============================================================================

MATERIAL_IDS_NAME: Final[str] = "MaterialIDs"
OBJECT_IDS_NAME: Final[str] = "ObjectIDs"
EMI_ARRAY_PREFIX: Final[str] = "TM_DD_"
EMI_VALUE_NAME: Final[str] = "EMI"

# =============================================================================
# EMI / ERT 入力ファイル
# =============================================================================

EMI_REGIONS: Final[Tuple[str, ...]] = ("A", "B", "C")
EMI_DIPOLES: Final[Tuple[str, ...]] = ("H", "V")
DEFAULT_CSV_DELIMITER: Final[str] = "\t"

ERT_PROFILE_1_COLUMNS: Final[Tuple[str, str, str]] = ("E1", "N1", "H1")
ERT_PROFILE_2_COLUMNS: Final[Tuple[str, str, str]] = ("E2", "N2", "H2")
ERT_DEPTH_COLUMNS: Final[Tuple[str, str]] = ("z1/m", "z2/m")

# =============================================================================
# ジオメトリ関連
# =============================================================================

DEFAULT_BUILDING_HEIGHT: Final[float] = 1.0
DEFAULT_GEOMETRY_OUTPUT_NAME: Final[str] = "output"

# =============================================================================
# 時系列関連
# =============================================================================

TIMESERIES_NAN_VALUE: Final[float] = 0.0
TIMESERIES_DELIMITER: Final[str] = ","

#!/usr/bin/env python3
"""
ERTデータのメッシュ化

2本の平行な測線プロファイル（E1/N1/H1 と E2/N2/H2）と深度区間
（z1, z2）から、1レコードにつき1枚の四角形を持つメッシュを作成します。
地表面メッシュ（DEM）を与えた場合は、プロファイル点の標高を
地表面から補間した値で置き換えます。
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from . import get_logger
from .config import ErtConfig
from .constants import MATERIAL_IDS_NAME
from .errors import EmptyInputError
from .io import PathLike, read_columns
from .mesh import Mesh, SurfaceMapper

logger = get_logger(__name__)


@dataclass
class ErtProfiles:
    """ERT測線データ"""
    profile_1: np.ndarray      # (N, 3) - (E1, N1, H1)
    profile_2: np.ndarray      # (N, 3) - (E2, N2, H2)
    z1: np.ndarray             # 上端深度 (N,)
    z2: np.ndarray             # 下端深度 (N,)

    def __post_init__(self):
        n = len(self.profile_1)
        lengths = {len(self.profile_2), len(self.z1), len(self.z2)}
        if lengths != {n}:
            raise ValueError(
                f"ERT columns differ in length: profiles {n}/{len(self.profile_2)}, "
                f"depths {len(self.z1)}/{len(self.z2)}"
            )

    @property
    def num_records(self) -> int:
        """レコード数"""
        return len(self.profile_1)


def read_ert_profiles(path: PathLike, config: Optional[ErtConfig] = None) -> ErtProfiles:
    """
    ERT CSV を読み込み

    Args:
        path: タブ区切りファイル（1行目がヘッダー）
        config: 列名・区切り文字の設定

    Returns:
        測線データ
    """
    config = config or ErtConfig()
    names = list(config.profile_1_columns) + list(config.profile_2_columns) + list(config.depth_columns)
    columns = read_columns(path, names, delimiter=config.delimiter)

    profiles = ErtProfiles(
        profile_1=np.column_stack([columns[n] for n in config.profile_1_columns]),
        profile_2=np.column_stack([columns[n] for n in config.profile_2_columns]),
        z1=columns[config.depth_columns[0]],
        z2=columns[config.depth_columns[1]]
    )
    if profiles.num_records == 0:
        raise EmptyInputError(f"{path} contains no ERT records")
    logger.info("Read %d ERT records from %s", profiles.num_records, path)
    return profiles


def correct_elevations(profiles: ErtProfiles, surface: SurfaceMapper) -> ErtProfiles:
    """
    プロファイル点の標高を地表面標高で置き換え

    地表面の外にある点は CSV の標高のまま残します。
    """
    profile_1, unmapped_1 = surface.map_points(profiles.profile_1)
    profile_2, unmapped_2 = surface.map_points(profiles.profile_2)
    logger.info(
        "DEM correction applied, %d profile points outside the surface",
        unmapped_1 + unmapped_2
    )
    return ErtProfiles(profile_1, profile_2, profiles.z1, profiles.z2)


def material_ids(z1: np.ndarray) -> np.ndarray:
    """上端深度が変わるたびに1つ増える層番号"""
    z1 = np.asarray(z1)
    changes = np.zeros(len(z1), dtype=np.int64)
    changes[1:] = (z1[1:] != z1[:-1])
    return np.cumsum(changes)


def create_ert_mesh(
    profiles: ErtProfiles,
    name: str = "ERT Mesh",
    material_array_name: str = MATERIAL_IDS_NAME
) -> Mesh:
    """
    ERT測線データから四角形メッシュを作成

    レコード i ごとに新しい4ノード
    (E1, N1, H1-z1), (E1, N1, H1-z2), (E2, N2, H2-z2), (E2, N2, H2-z1)
    とそれらを結ぶ四角形を作成します。

    Args:
        profiles: 測線データ
        name: メッシュ名
        material_array_name: 層番号配列の名前

    Returns:
        四角形メッシュ（層番号配列付き）
    """
    p1, p2 = profiles.profile_1, profiles.profile_2
    z1, z2 = profiles.z1, profiles.z2

    quad_nodes = np.stack([
        np.column_stack([p1[:, 0], p1[:, 1], p1[:, 2] - z1]),
        np.column_stack([p1[:, 0], p1[:, 1], p1[:, 2] - z2]),
        np.column_stack([p2[:, 0], p2[:, 1], p2[:, 2] - z2]),
        np.column_stack([p2[:, 0], p2[:, 1], p2[:, 2] - z1]),
    ], axis=1)
    nodes = quad_nodes.reshape(-1, 3)
    cells = np.arange(len(nodes)).reshape(-1, 4)

    mesh = Mesh(nodes, cells, name=name)
    mesh.add_cell_array(material_array_name, material_ids(z1).astype(np.int32))
    logger.info("ERT mesh created: %d nodes, %d quads", mesh.num_nodes, mesh.num_cells)
    return mesh

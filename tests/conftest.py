#!/usr/bin/env python3
"""
pytest共通設定とフィクスチャ

テスト実行時の共通ロギング設定と、小さなメッシュ・一時ディレクトリの
フィクスチャを提供します。
"""

import pytest
import sys
import os
import tempfile
import numpy as np
from typing import Generator

# geoconvモジュールのパス追加
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from geoconv import setup_logging, get_logger
from geoconv.mesh import Mesh

# =============================================================================
# テストロギング設定
# =============================================================================

@pytest.fixture(scope="session", autouse=True)
def setup_test_logging():
    """テスト全体のロギング設定"""
    setup_logging(level="DEBUG")
    logger = get_logger("test")
    logger.info("=== テストセッション開始 ===")
    yield
    logger.info("=== テストセッション終了 ===")


@pytest.fixture
def test_logger():
    """テスト用ロガー"""
    return get_logger("test")


# =============================================================================
# メッシュ
# =============================================================================

def make_grid_mesh(nx: int, ny: int, spacing: float = 1.0, name: str = "grid") -> Mesh:
    """nx × ny 個の正方形セルからなる z=0 の四角形メッシュ（セルは行優先）"""
    xs = np.arange(nx + 1) * spacing
    ys = np.arange(ny + 1) * spacing
    xx, yy = np.meshgrid(xs, ys)
    nodes = np.column_stack([xx.ravel(), yy.ravel(), np.zeros(xx.size)])

    cells = []
    for j in range(ny):
        for i in range(nx):
            n0 = j * (nx + 1) + i
            cells.append((n0, n0 + 1, n0 + nx + 2, n0 + nx + 1))
    return Mesh(nodes, cells, name=name)


@pytest.fixture
def quad_mesh_2x2() -> Mesh:
    """2×2 の単位正方形メッシュ"""
    return make_grid_mesh(2, 2)


@pytest.fixture
def grid_mesh_factory():
    """任意サイズの四角形メッシュを作成する関数"""
    return make_grid_mesh


# =============================================================================
# ファイル
# =============================================================================

@pytest.fixture
def temp_directory() -> Generator[str, None, None]:
    """一時ディレクトリ"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir

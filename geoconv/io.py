#!/usr/bin/env python3
"""
ファイル入出力アダプタ

メッシュ・ジオメトリの読み書きは meshio、表形式テキストの読み込みは
numpy に委譲し、geoconv の Mesh / GeometrySet との相互変換だけを行います。
"""

from itertools import groupby
from xml.etree.ElementTree import ParseError
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

import meshio
import numpy as np

from . import get_logger
from .constants import DEFAULT_CSV_DELIMITER, OBJECT_IDS_NAME
from .errors import EmptyInputError, MeshDimensionError
from .geometry import GeometrySet
from .mesh import Mesh

logger = get_logger(__name__)

PathLike = Union[str, Path]

# 無視してよい低次元セル
_SKIPPED_CELL_TYPES = ("vertex", "line")


# ---------------------------------------------------------------------------
# Mesh
# ---------------------------------------------------------------------------

def _read_meshio(path: PathLike) -> meshio.Mesh:
    """meshio で読み込み（読めないファイルは OSError）"""
    if not Path(path).is_file():
        raise FileNotFoundError(f"File not found: {path}")
    try:
        return meshio.read(str(path))
    except (meshio.ReadError, ParseError) as e:
        raise OSError(f"Error reading {path}: {e}") from e


def _is_surface_cell_type(cell_type: str) -> bool:
    return cell_type in ("triangle", "quad") or cell_type.startswith("polygon")


def read_mesh(path: PathLike) -> Mesh:
    """
    2Dメッシュを読み込み

    Args:
        path: meshio が読める形式のファイル（VTU など）

    Returns:
        メッシュ（セル属性配列付き）

    Raises:
        OSError: ファイルが存在しない・壊れている場合
        MeshDimensionError: 体積セルなど2D以外のセルを含む場合
    """
    data = _read_meshio(path)

    cells: List[Tuple[int, ...]] = []
    kept_blocks: List[int] = []
    for block_id, block in enumerate(data.cells):
        if block.type in _SKIPPED_CELL_TYPES:
            logger.debug("Skipping %d '%s' cells in %s", len(block.data), block.type, path)
            continue
        if not _is_surface_cell_type(block.type):
            raise MeshDimensionError(
                f"{path}: cell type '{block.type}' is not supported, only 2d meshes can be handled"
            )
        cells.extend(tuple(int(i) for i in cell) for cell in block.data)
        kept_blocks.append(block_id)

    cell_data: Dict[str, np.ndarray] = {}
    for name, arrays in data.cell_data.items():
        blocks = [np.asarray(arrays[i]) for i in kept_blocks]
        if blocks:
            cell_data[name] = np.concatenate(blocks)

    mesh = Mesh(data.points, cells, name=Path(path).stem, cell_data=cell_data)
    logger.info("Mesh read: %d nodes, %d elements.", mesh.num_nodes, mesh.num_cells)
    return mesh


def _cell_blocks(mesh: Mesh) -> List[Tuple[str, int, int]]:
    """セル順を保った (型名, 開始, 終了) ブロックのリスト"""
    blocks = []
    start = 0
    for size, group in groupby(len(cell) for cell in mesh.cells):
        count = len(list(group))
        cell_type = {3: "triangle", 4: "quad"}.get(size, "polygon")
        blocks.append((cell_type, start, start + count))
        start += count
    return blocks


def write_mesh(mesh: Mesh, path: PathLike) -> None:
    """
    メッシュを書き出し

    Args:
        mesh: メッシュ
        path: 出力ファイル（拡張子で形式を判定）
    """
    blocks = _cell_blocks(mesh)
    cells = [
        (cell_type, np.array(mesh.cells[start:end], dtype=np.int64))
        for cell_type, start, end in blocks
    ]
    cell_data = {
        name: [values[start:end] for _, start, end in blocks]
        for name, values in mesh.cell_data.items()
    }

    meshio.Mesh(points=mesh.nodes, cells=cells, cell_data=cell_data).write(str(path))
    logger.info(
        "Mesh written to %s (nodes=%d, cells=%d, arrays=%d)",
        path, mesh.num_nodes, mesh.num_cells, len(mesh.cell_data)
    )


# ---------------------------------------------------------------------------
# Text columns
# ---------------------------------------------------------------------------

def read_header(path: PathLike, delimiter: str = DEFAULT_CSV_DELIMITER) -> List[str]:
    """先頭行の列名を取得"""
    with open(path, 'r', encoding='utf-8') as f:
        header = f.readline()
    if not header.strip():
        raise EmptyInputError(f"{path} has no header line")
    return [name.strip() for name in header.rstrip("\r\n").split(delimiter)]


def read_columns(
    path: PathLike,
    names: Sequence[str],
    delimiter: str = DEFAULT_CSV_DELIMITER
) -> Dict[str, np.ndarray]:
    """
    ヘッダー名で指定した列を読み込み

    Args:
        path: 区切り文字付きテキスト（1行目がヘッダー）
        names: 読み込む列名
        delimiter: 区切り文字

    Returns:
        列名 -> 値配列
    """
    header = read_header(path, delimiter)
    missing = [name for name in names if name not in header]
    if missing:
        raise ValueError(f"{path}: columns {missing} not found, available: {header}")

    indices = [header.index(name) for name in names]
    values = read_numeric_columns(path, indices, delimiter=delimiter)
    return {name: values[:, k] for k, name in enumerate(names)}


def read_numeric_columns(
    path: PathLike,
    columns: Sequence[int],
    delimiter: str = DEFAULT_CSV_DELIMITER,
    skip_header: int = 1
) -> np.ndarray:
    """
    列番号で指定した数値列を読み込み

    Returns:
        (N, len(columns)) の配列（データ行がなければ (0, len(columns))）
    """
    with open(path, 'r', encoding='utf-8') as f:
        data_lines = [line for line in f.readlines()[skip_header:] if line.strip()]
    if not data_lines:
        return np.empty((0, len(columns)))
    return np.loadtxt(data_lines, delimiter=delimiter, usecols=list(columns), ndmin=2)


def write_values(values: Sequence[float], path: PathLike) -> None:
    """1行に1つの値を書き出し"""
    np.savetxt(str(path), np.asarray(values, dtype=np.float64), fmt="%.10g")
    logger.info("Wrote %d values to %s", len(values), path)


# ---------------------------------------------------------------------------
# Point sets
# ---------------------------------------------------------------------------

def write_point_set(
    points: np.ndarray,
    path: PathLike,
    point_data: Optional[Dict[str, np.ndarray]] = None
) -> None:
    """点群を頂点セルとして書き出し"""
    points = np.asarray(points, dtype=np.float64)
    vertices = np.arange(len(points), dtype=np.int64).reshape(-1, 1)
    meshio.Mesh(
        points=points,
        cells=[("vertex", vertices)],
        point_data={name: np.asarray(v) for name, v in (point_data or {}).items()}
    ).write(str(path))
    logger.info("Point set written to %s (%d points)", path, len(points))


# ---------------------------------------------------------------------------
# Geometry (polylines / surfaces)
# ---------------------------------------------------------------------------

def _chain_segments(segments: np.ndarray) -> List[Tuple[int, ...]]:
    """連続する線分をポリラインにつなぐ"""
    polylines: List[List[int]] = []
    for a, b in segments:
        if polylines and polylines[-1][-1] == a:
            polylines[-1].append(int(b))
        else:
            polylines.append([int(a), int(b)])
    return [tuple(line) for line in polylines]


def _group_by_ids(items: np.ndarray, ids: Optional[np.ndarray]) -> List[np.ndarray]:
    """ObjectIDs ごとに要素をまとめる（初出順）"""
    if ids is None:
        return [items]
    ids = np.asarray(ids).reshape(-1)
    order = list(dict.fromkeys(ids.tolist()))
    return [items[ids == object_id] for object_id in order]


def read_geometry(path: PathLike, object_ids_name: str = OBJECT_IDS_NAME) -> GeometrySet:
    """
    線分セル（ポリライン）と三角形セル（サーフェス）からジオメトリを読み込み

    ObjectIDs セル配列があればそれでポリライン・サーフェスを区別し、
    なければ連続した線分を1本のポリライン、三角形ブロックを1つのサーフェスとします。
    """
    data = _read_meshio(path)
    ids_arrays = data.cell_data.get(object_ids_name)

    polylines: List[Tuple[int, ...]] = []
    surfaces: List[Tuple[Tuple[int, int, int], ...]] = []
    for block_id, block in enumerate(data.cells):
        ids = ids_arrays[block_id] if ids_arrays is not None else None
        if block.type == "line":
            for group in _group_by_ids(block.data, ids):
                polylines.extend(_chain_segments(group))
        elif block.type == "triangle":
            for group in _group_by_ids(block.data, ids):
                surfaces.append(tuple(tuple(int(i) for i in tri) for tri in group))
        else:
            logger.warning("Ignoring %d '%s' cells in %s", len(block.data), block.type, path)

    points = np.asarray(data.points, dtype=np.float64)
    if points.shape[1] == 2:
        points = np.column_stack([points, np.zeros(len(points))])

    geometry = GeometrySet(points, tuple(polylines), tuple(surfaces), name=Path(path).stem)
    logger.info(
        "Geometry read: %d points, %d polylines, %d surfaces.",
        geometry.num_points, len(geometry.polylines), len(geometry.surfaces)
    )
    return geometry


def write_geometry(
    geometry: GeometrySet,
    path: PathLike,
    object_ids_name: str = OBJECT_IDS_NAME
) -> None:
    """ジオメトリを線分セル・三角形セルとして書き出し"""
    cells = []
    object_ids = []

    segments = [
        (line[i - 1], line[i], line_id)
        for line_id, line in enumerate(geometry.polylines)
        for i in range(1, len(line))
    ]
    if segments:
        cells.append(("line", np.array([s[:2] for s in segments], dtype=np.int64)))
        object_ids.append(np.array([s[2] for s in segments], dtype=np.int64))

    triangles = [
        (tri, sfc_id)
        for sfc_id, sfc in enumerate(geometry.surfaces)
        for tri in sfc
    ]
    if triangles:
        cells.append(("triangle", np.array([t[0] for t in triangles], dtype=np.int64)))
        object_ids.append(np.array([t[1] for t in triangles], dtype=np.int64))

    meshio.Mesh(
        points=geometry.points,
        cells=cells,
        cell_data={object_ids_name: object_ids} if cells else {}
    ).write(str(path))
    logger.info(
        "Geometry '%s' written to %s (%d points, %d triangles)",
        geometry.name, path, geometry.num_points, geometry.num_triangles
    )

#!/usr/bin/env python3
"""
ポリゴンメッシュ

ノード座標を連続配列で、セルをノードインデックスのタプルで保持する
2Dメッシュ（三角形・四角形・多角形セル）のデータ構造を提供します。
セルIDはセル配列内の位置で、メッシュの生存期間中は変化しません。
"""

from typing import Dict, List, Optional, Sequence, Tuple
import numpy as np

from ..errors import MeshTopologyError

CELL_TYPE_NAMES = {3: "triangle", 4: "quad"}


class Mesh:
    """ノード配列とセル配列を排他的に所有するメッシュ"""

    def __init__(
        self,
        nodes: np.ndarray,
        cells: Sequence[Sequence[int]],
        name: str = "mesh",
        cell_data: Optional[Dict[str, np.ndarray]] = None
    ):
        """
        初期化

        Args:
            nodes: ノード座標 (N, 3)。(N, 2) の場合は z=0 で拡張
            cells: 各セルのノードインデックス列
            name: メッシュ名
            cell_data: セル属性配列（名前 -> 長さ M の配列）

        Raises:
            MeshTopologyError: 存在しないノード参照・頂点数3未満のセル
        """
        nodes = np.asarray(nodes, dtype=np.float64)
        if nodes.ndim != 2 or nodes.shape[1] not in (2, 3):
            raise MeshTopologyError(f"Nodes must be (N, 3), got {nodes.shape}")
        if nodes.shape[1] == 2:
            nodes = np.column_stack([nodes, np.zeros(len(nodes))])

        self.name = name
        self.nodes = nodes
        self.cells: Tuple[Tuple[int, ...], ...] = tuple(
            tuple(int(i) for i in cell) for cell in cells
        )
        self._validate_cells()

        self.cell_data: Dict[str, np.ndarray] = {}
        self._node_cells: Optional[List[Tuple[int, ...]]] = None

        if cell_data:
            for array_name, values in cell_data.items():
                self.add_cell_array(array_name, values)

    def _validate_cells(self) -> None:
        """セルのトポロジーを検証"""
        n_nodes = len(self.nodes)
        for cell_id, cell in enumerate(self.cells):
            if len(cell) < 3:
                raise MeshTopologyError(
                    f"Cell {cell_id} has {len(cell)} nodes, at least 3 are required"
                )
            for node_id in cell:
                if node_id < 0 or node_id >= n_nodes:
                    raise MeshTopologyError(
                        f"Cell {cell_id} references node {node_id}, mesh has {n_nodes} nodes"
                    )

    @property
    def num_nodes(self) -> int:
        """ノード数を取得"""
        return len(self.nodes)

    @property
    def num_cells(self) -> int:
        """セル数を取得"""
        return len(self.cells)

    def cell_type(self, cell_id: int) -> str:
        """セル種別名を取得"""
        return CELL_TYPE_NAMES.get(len(self.cells[cell_id]), "polygon")

    def cell_points(self, cell_id: int) -> np.ndarray:
        """セルを構成するノード座標 (k, 3) を取得"""
        return self.nodes[list(self.cells[cell_id])]

    def node_cells(self, node_id: int) -> Tuple[int, ...]:
        """ノードに接続するセルIDを昇順で取得"""
        if self._node_cells is None:
            self._node_cells = self._build_node_cells()
        return self._node_cells[node_id]

    def _build_node_cells(self) -> List[Tuple[int, ...]]:
        """ノード -> セルの隣接リストを構築"""
        adjacency: List[List[int]] = [[] for _ in range(self.num_nodes)]
        for cell_id, cell in enumerate(self.cells):
            # 同じノードを2回参照するセルでも1回だけ登録
            for node_id in dict.fromkeys(cell):
                adjacency[node_id].append(cell_id)
        return [tuple(cells) for cells in adjacency]

    def add_cell_array(self, name: str, values: Sequence[float]) -> np.ndarray:
        """
        セル属性配列を追加（同名の配列は置き換え）

        Args:
            name: 配列名
            values: セル順の値（長さはセル数と一致すること）

        Returns:
            格納された配列
        """
        array = np.asarray(values)
        if array.shape[0] != self.num_cells:
            raise ValueError(
                f"Cell array '{name}' has {array.shape[0]} values, mesh has {self.num_cells} cells"
            )
        self.cell_data[name] = array
        return array

    def get_cell_array(self, name: str) -> Optional[np.ndarray]:
        """セル属性配列を取得（存在しなければ None）"""
        return self.cell_data.get(name)

    def with_nodes(self, nodes: np.ndarray, name: Optional[str] = None) -> 'Mesh':
        """同じトポロジーで座標だけ差し替えた新しいメッシュを作成"""
        nodes = np.asarray(nodes, dtype=np.float64)
        if nodes.shape != self.nodes.shape:
            raise MeshTopologyError(
                f"Node array shape {nodes.shape} does not match {self.nodes.shape}"
            )
        return Mesh(nodes, self.cells, name=name or self.name)

    def __repr__(self) -> str:
        return f"Mesh(name={self.name!r}, nodes={self.num_nodes}, cells={self.num_cells})"

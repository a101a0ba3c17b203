#!/usr/bin/env python3
"""
スカラー配列時系列

1つのCSVファイルに時間ステップごとの値が空行区切りで並んだデータを、
ステップごとのメッシュ（<output><i>.vtu）にセル配列として追加します。

CSV の各ステップは層数（MaterialIDs の最大値 + 1）行からなり、
各行は「ラベル, 値, 値, ...」の形式で、値は行優先でセルに割り当てられます。
"""

from pathlib import Path
from typing import Callable, List, Optional, Sequence

import numpy as np

from . import get_logger
from .config import TimeSeriesConfig
from .errors import EmptyInputError, OverwriteDeclinedError, TimeSeriesFormatError
from .io import PathLike, read_mesh, write_mesh
from .mesh import Mesh

logger = get_logger(__name__)

# 出力ファイルパスを受け取り、上書きしてよければ True を返す
ConfirmOverwrite = Callable[[Path], bool]


def split_time_steps(lines: Sequence[str]) -> List[List[str]]:
    """空行で区切られたブロックに分割（連続する空行・末尾の空行は無視）"""
    steps: List[List[str]] = []
    current: List[str] = []
    for line in lines:
        line = line.rstrip("\r\n")
        if line.strip():
            current.append(line)
        elif current:
            steps.append(current)
            current = []
    if current:
        steps.append(current)
    return steps


def layer_count(mesh: Mesh, material_array_name: str) -> int:
    """MaterialIDs の最大値 + 1"""
    materials = mesh.get_cell_array(material_array_name)
    if materials is None or len(materials) == 0:
        raise TimeSeriesFormatError(
            f"Mesh '{mesh.name}' has no '{material_array_name}' cell array"
        )
    return int(np.max(materials)) + 1


def _parse_value(field: str, nan_value: float) -> float:
    field = field.strip()
    if field == "NaN":
        return nan_value
    return float(field)


def parse_time_step(
    rows: Sequence[str],
    n_cells: int,
    n_layers: int,
    nan_value: float = 0.0,
    delimiter: str = ","
) -> np.ndarray:
    """
    1ステップ分の行をセル値配列に変換

    Args:
        rows: ステップの行（ラベル列を含む）
        n_cells: メッシュのセル数
        n_layers: 層数
        nan_value: "NaN" の置換値
        delimiter: 区切り文字

    Returns:
        長さ n_cells のセル値配列

    Raises:
        TimeSeriesFormatError: 行数・列数がメッシュと一致しない場合
    """
    if n_layers <= 0 or n_cells % n_layers != 0:
        raise TimeSeriesFormatError(
            f"{n_cells} cells cannot be split into {n_layers} layers"
        )
    if len(rows) != n_layers:
        raise TimeSeriesFormatError(f"Expected {n_layers} rows per time step, got {len(rows)}")

    per_row = n_cells // n_layers
    values = np.empty(n_cells, dtype=np.float64)
    for i, row in enumerate(rows):
        fields = row.split(delimiter)
        if len(fields) != per_row + 1:
            raise TimeSeriesFormatError(
                f"Row {i}: expected {per_row + 1} columns (label + {per_row} values), got {len(fields)}"
            )
        try:
            values[i * per_row:(i + 1) * per_row] = [_parse_value(f, nan_value) for f in fields[1:]]
        except ValueError as e:
            raise TimeSeriesFormatError(f"Row {i}: {e}") from e
    return values


def time_step_file_name(output_base: PathLike, step: int) -> Path:
    """<output><step>.vtu"""
    return Path(f"{output_base}{step}.vtu")


def add_time_series(
    csv_path: PathLike,
    output_base: PathLike,
    base_mesh: Optional[PathLike] = None,
    config: Optional[TimeSeriesConfig] = None,
    confirm_overwrite: Optional[ConfirmOverwrite] = None
) -> List[Path]:
    """
    時系列CSVをステップごとのメッシュに追加して書き出し

    base_mesh を与えた場合は全ステップでそのメッシュを基にし、
    与えない場合は既存の <output><i>.vtu に配列を追加します。
    既存ファイルの上書き確認は最初の1回だけ行います。

    Args:
        csv_path: 時系列CSV（配列名はファイル名の拡張子なし部分）
        output_base: 出力ファイル名の共通部分
        base_mesh: 基になるメッシュ（None なら既存の時系列メッシュ）
        config: 時系列設定
        confirm_overwrite: 上書き確認（None なら常に上書き）

    Returns:
        書き出したファイルのリスト

    Raises:
        OverwriteDeclinedError: 上書きが拒否された場合
    """
    config = config or TimeSeriesConfig()
    csv_path = Path(csv_path)
    array_name = csv_path.stem

    with open(csv_path, 'r', encoding='utf-8') as f:
        steps = split_time_steps(f.readlines())
    if not steps:
        raise EmptyInputError(f"{csv_path} contains no time steps")

    base = read_mesh(base_mesh) if base_mesh is not None else None

    written: List[Path] = []
    overwrite_confirmed = confirm_overwrite is None
    for step, rows in enumerate(steps):
        output_name = time_step_file_name(output_base, step)
        if base is not None:
            mesh = Mesh(base.nodes, base.cells, name=base.name, cell_data=dict(base.cell_data))
        else:
            if not output_name.exists():
                raise FileNotFoundError(
                    f"No base mesh given and no mesh for time step {step} found ({output_name})"
                )
            mesh = read_mesh(output_name)

        n_layers = layer_count(mesh, config.material_array_name)
        values = parse_time_step(rows, mesh.num_cells, n_layers, config.nan_value, config.delimiter)
        mesh.add_cell_array(array_name, values)

        if not overwrite_confirmed and output_name.exists():
            if not confirm_overwrite(output_name):
                raise OverwriteDeclinedError(f"Not overwriting {output_name}")
            overwrite_confirmed = True

        logger.info("Writing result #%d...", step)
        write_mesh(mesh, output_name)
        written.append(output_name)

    return written

#!/usr/bin/env python3
"""
geoconv 設定管理システム

各変換ツールで使用される設定値を統一管理し、
Magic Numberのハードコーディングを解消します。
"""

import yaml
from dataclasses import dataclass, field, fields, asdict, is_dataclass
from typing import Optional, Dict, Any, Tuple
from pathlib import Path

from . import get_logger
from .constants import (
    DEFAULT_POINTS_PER_GRID_CELL, CONTAINMENT_TOLERANCE,
    DEFAULT_PLANE_POINT, DEFAULT_PLANE_NORMAL,
    EMI_REGIONS, EMI_DIPOLES, EMI_ARRAY_PREFIX, DEFAULT_CSV_DELIMITER,
    ERT_PROFILE_1_COLUMNS, ERT_PROFILE_2_COLUMNS, ERT_DEPTH_COLUMNS,
    MATERIAL_IDS_NAME, DEFAULT_BUILDING_HEIGHT, DEFAULT_GEOMETRY_OUTPUT_NAME,
    TIMESERIES_NAN_VALUE, TIMESERIES_DELIMITER
)

logger = get_logger(__name__)


@dataclass
class GridConfig:
    """空間インデックス設定"""
    index_type: str = "grid"             # "grid" または "kdtree"
    max_points_per_cell: int = DEFAULT_POINTS_PER_GRID_CELL


@dataclass
class BinningConfig:
    """点-セル集約設定"""
    plane_point: Tuple[float, float, float] = DEFAULT_PLANE_POINT
    plane_normal: Tuple[float, float, float] = DEFAULT_PLANE_NORMAL
    containment_tolerance: float = CONTAINMENT_TOLERANCE


@dataclass
class EmiConfig:
    """EMIデータ設定"""
    regions: Tuple[str, ...] = EMI_REGIONS
    dipoles: Tuple[str, ...] = EMI_DIPOLES
    delimiter: str = DEFAULT_CSV_DELIMITER
    array_prefix: str = EMI_ARRAY_PREFIX
    # 列番号（0始まり）
    x_column: int = 1
    y_column: int = 2
    value_column: int = 3


@dataclass
class ErtConfig:
    """ERTデータ設定"""
    profile_1_columns: Tuple[str, str, str] = ERT_PROFILE_1_COLUMNS
    profile_2_columns: Tuple[str, str, str] = ERT_PROFILE_2_COLUMNS
    depth_columns: Tuple[str, str] = ERT_DEPTH_COLUMNS
    delimiter: str = DEFAULT_CSV_DELIMITER
    material_array_name: str = MATERIAL_IDS_NAME
    mesh_name: str = "ERT Mesh"


@dataclass
class BuildingConfig:
    """建物押し出し設定"""
    default_height: float = DEFAULT_BUILDING_HEIGHT
    output_name: str = DEFAULT_GEOMETRY_OUTPUT_NAME


@dataclass
class TimeSeriesConfig:
    """スカラー配列時系列設定"""
    nan_value: float = TIMESERIES_NAN_VALUE
    delimiter: str = TIMESERIES_DELIMITER
    material_array_name: str = MATERIAL_IDS_NAME


@dataclass
class GeoconvConfig:
    """プロジェクト全体設定"""
    grid: GridConfig = field(default_factory=GridConfig)
    binning: BinningConfig = field(default_factory=BinningConfig)
    emi: EmiConfig = field(default_factory=EmiConfig)
    ert: ErtConfig = field(default_factory=ErtConfig)
    building: BuildingConfig = field(default_factory=BuildingConfig)
    timeseries: TimeSeriesConfig = field(default_factory=TimeSeriesConfig)

    # ログ設定
    log_level: str = "INFO"
    log_format_style: str = "detailed"


class ConfigManager:
    """設定管理クラス"""

    def __init__(self):
        self._config: Optional[GeoconvConfig] = None
        self._config_file_path: Optional[Path] = None

    def load_config(self, config_file: Optional[Path] = None) -> GeoconvConfig:
        """
        設定ファイルを読み込み

        Args:
            config_file: 設定ファイルパス（Noneの場合はデフォルト位置を探索）

        Returns:
            読み込まれた設定
        """
        if config_file is None:
            default_paths = [
                Path.cwd() / "geoconv.yaml",
                Path.home() / ".geoconv" / "config.yaml"
            ]
            for path in default_paths:
                if path.exists():
                    config_file = path
                    break
        else:
            config_file = Path(config_file)
            if not config_file.exists():
                raise FileNotFoundError(f"Config file not found: {config_file}")

        if config_file is not None and config_file.exists():
            with open(config_file, 'r', encoding='utf-8') as f:
                try:
                    config_dict = yaml.safe_load(f) or {}
                except yaml.YAMLError as e:
                    raise ValueError(f"Config file {config_file} is not valid YAML: {e}") from e

            if not isinstance(config_dict, dict):
                raise ValueError(f"Config file {config_file} must contain a mapping")

            self._config = self._dict_to_config(config_dict)
            self._config_file_path = config_file
            logger.info(f"Configuration loaded from {config_file}")
        else:
            logger.debug("No config file found, using default configuration")
            self._config = GeoconvConfig()

        return self._config

    def save_config(self, config_file: Optional[Path] = None) -> Path:
        """
        設定をファイルに保存

        Args:
            config_file: 保存先ファイルパス

        Returns:
            保存先パス
        """
        if self._config is None:
            self._config = GeoconvConfig()

        if config_file is None:
            config_file = self._config_file_path or Path("geoconv.yaml")
        config_file = Path(config_file)

        config_file.parent.mkdir(parents=True, exist_ok=True)
        with open(config_file, 'w', encoding='utf-8') as f:
            yaml.dump(self._config_to_dict(self._config), f, default_flow_style=False,
                      allow_unicode=True, indent=2)

        logger.info(f"Configuration saved to {config_file}")
        return config_file

    def set_config(self, config: GeoconvConfig) -> None:
        """設定を差し替え"""
        self._config = config

    def _dict_to_config(self, config_dict: Dict[str, Any]) -> GeoconvConfig:
        """辞書を設定オブジェクトに変換"""
        config = GeoconvConfig()

        for key, value in config_dict.items():
            if not hasattr(config, key):
                logger.warning(f"Unknown config key ignored: {key}")
                continue

            section = getattr(config, key)
            if is_dataclass(section):
                if not isinstance(value, dict):
                    raise ValueError(f"Config section '{key}' must be a mapping")
                self._update_section(section, key, value)
            else:
                setattr(config, key, value)

        return config

    @staticmethod
    def _update_section(section: Any, section_name: str, values: Dict[str, Any]) -> None:
        """セクション内の値を上書き（タプル型の既定値はタプルに揃える）"""
        known = {f.name for f in fields(section)}
        for key, value in values.items():
            if key not in known:
                logger.warning(f"Unknown config key ignored: {section_name}.{key}")
                continue
            if isinstance(getattr(section, key), tuple) and isinstance(value, list):
                value = tuple(value)
            setattr(section, key, value)

    @staticmethod
    def _config_to_dict(config: GeoconvConfig) -> Dict[str, Any]:
        """設定オブジェクトを辞書に変換（タプルはYAMLリストとして出力）"""
        def _plain(value: Any) -> Any:
            if isinstance(value, dict):
                return {k: _plain(v) for k, v in value.items()}
            if isinstance(value, tuple):
                return [_plain(v) for v in value]
            return value

        return _plain(asdict(config))


# グローバル設定マネージャー
_config_manager: Optional[ConfigManager] = None

def get_config_manager() -> ConfigManager:
    """グローバル設定マネージャーを取得"""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager

def load_config(config_file: Optional[Path] = None) -> GeoconvConfig:
    """設定を読み込み"""
    return get_config_manager().load_config(config_file)

#!/usr/bin/env python3
"""
例外定義

変換処理で発生する致命的エラーの種類を定義します。
いずれも ValueError のサブクラスなので、呼び出し側は
従来どおり ValueError として扱うこともできます。
"""


class GeoconvError(ValueError):
    """geoconv 共通の基底例外"""


class EmptyInputError(GeoconvError):
    """空の点集合・空の入力ファイル"""


class DegenerateProjectionError(GeoconvError):
    """長さ0（または非有限）の平面法線で投影しようとした"""


class MeshTopologyError(GeoconvError):
    """存在しないノード参照や頂点数不足のセル"""


class MeshDimensionError(GeoconvError):
    """2Dメッシュ以外が渡された"""


class TimeSeriesFormatError(GeoconvError):
    """時系列CSVの列数・行数がメッシュと一致しない"""


class OverwriteDeclinedError(GeoconvError):
    """既存の出力ファイルの上書きが拒否された"""

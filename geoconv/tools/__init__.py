"""
geoconv コマンドラインツール

ert2mesh / emi2polydata / add-emi-data / make-buildings / add-timeseries
の各エントリポイントを提供します。
"""

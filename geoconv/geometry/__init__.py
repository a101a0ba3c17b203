"""
geoconv ジオメトリ処理

点・ポリライン・サーフェスの集合と、建物平面図の押し出しを提供します。
"""

from .objects import GeometrySet, Polyline, Surface, Triangle
from .buildings import extrude_buildings, offset_surface, wall_surface

__all__ = [
    'GeometrySet',
    'Polyline',
    'Surface',
    'Triangle',
    'extrude_buildings',
    'offset_surface',
    'wall_surface'
]

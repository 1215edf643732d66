from .base import BaseFormat
from .ply import PlyPointCloudFormat, PlyTriangleMeshFormat, PlyLineSetFormat, PlyVoxelGridFormat
from .pcd import PcdFormat
from .xyz import XyzFormat, XyznFormat, XyzrgbFormat, PtsFormat
from .obj import ObjFormat
from .off import OffFormat
from .stl import StlFormat
from .image import PngFormat, JpgFormat
from .trajectory import LogTrajectoryFormat, TumTrajectoryFormat
from .feature import FeatureBinFormat
from .json_convertible import JsonConvertibleFormat

__all__ = [
    'BaseFormat',
    'PlyPointCloudFormat',
    'PlyTriangleMeshFormat',
    'PlyLineSetFormat',
    'PlyVoxelGridFormat',
    'PcdFormat',
    'XyzFormat',
    'XyznFormat',
    'XyzrgbFormat',
    'PtsFormat',
    'ObjFormat',
    'OffFormat',
    'StlFormat',
    'PngFormat',
    'JpgFormat',
    'LogTrajectoryFormat',
    'TumTrajectoryFormat',
    'FeatureBinFormat',
    'JsonConvertibleFormat'
]

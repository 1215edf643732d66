"""
Geometry I/O
Copyright (c) 2023 Francesco Fugazzi

This software is released under the MIT License.
For more information about the license, please see the LICENSE file.
"""

__version__ = '0.1'

from .errors import (
    GeomIOError, UnknownFormatError, UnsupportedFormatError, NotFoundError,
    PermissionDeniedError, ParseError, WriteError, ValidationError,
)
from .options import ReadOptions, WriteOptions
from .structures import (
    PointCloud, TriangleMesh, LineSet, VoxelGrid, Image, PinholeCameraIntrinsic,
    PinholeCameraParameters, PinholeCameraTrajectory, PoseGraphNode, PoseGraphEdge,
    PoseGraph, Feature,
)
from .registry import (
    EntityKind, Inferred, INFERRED, Explicit, FormatRegistry, Registries,
    parse_format, infer_format, default_registries,
)
from .facade import (
    read_entity, write_entity,
    read_point_cloud, write_point_cloud,
    read_triangle_mesh, write_triangle_mesh,
    read_line_set, write_line_set,
    read_voxel_grid, write_voxel_grid,
    read_image, write_image,
    read_pinhole_camera_intrinsic, write_pinhole_camera_intrinsic,
    read_pinhole_camera_parameters, write_pinhole_camera_parameters,
    read_pinhole_camera_trajectory, write_pinhole_camera_trajectory,
    read_feature, write_feature,
    read_pose_graph, write_pose_graph,
)
from .converter import Converter

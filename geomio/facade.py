"""
Geometry I/O
Copyright (c) 2023 Francesco Fugazzi

This software is released under the MIT License.
For more information about the license, please see the LICENSE file.
"""

import os
from .errors import GeomIOError
from .formats import JsonConvertibleFormat
from .options import WriteOptions
from .processing import DataProcessor
from .registry import EntityKind, INFERRED, default_registries
from .structures import (
    PointCloud, TriangleMesh, LineSet, VoxelGrid, Image, PinholeCameraIntrinsic,
    PinholeCameraParameters, PinholeCameraTrajectory, PoseGraph, Feature,
)
from .utils import config
from .utils.utility_functions import debug_print, status_print

ENTITY_TYPES = {
    EntityKind.POINT_CLOUD: PointCloud,
    EntityKind.TRIANGLE_MESH: TriangleMesh,
    EntityKind.LINE_SET: LineSet,
    EntityKind.VOXEL_GRID: VoxelGrid,
    EntityKind.IMAGE: Image,
    EntityKind.PINHOLE_CAMERA_TRAJECTORY: PinholeCameraTrajectory,
    EntityKind.POSE_GRAPH: PoseGraph,
    EntityKind.FEATURE: Feature,
}

_intrinsic_codec = JsonConvertibleFormat(PinholeCameraIntrinsic)
_parameters_codec = JsonConvertibleFormat(PinholeCameraParameters)


def read_entity(kind, filename, format='auto', registries=None):
    """
    Resolves the codec for `kind` and reads `filename` with it.

    `format` is 'auto' (infer from the extension), a tag string, or an
    Inferred/Explicit selection. Resolution and codec errors propagate unchanged.
    """
    if registries is None:
        registries = default_registries()
    kind = EntityKind(kind)
    codec = registries[kind].resolve(format, filename)
    return codec.read(os.fspath(filename))


def write_entity(kind, filename, entity, options=None, registries=None):
    """
    Writes `entity` with the codec inferred from the filename extension.

    Returns False instead of raising when resolution or the codec fails, so batch
    callers can continue; the failure detail is reported through status_print.
    """
    if registries is None:
        registries = default_registries()
    kind = EntityKind(kind)
    expected = ENTITY_TYPES[kind]
    if not isinstance(entity, expected):
        status_print(f"Error: write {kind.value} expects {expected.__name__}, got {type(entity).__name__}")
        return False
    if options is None:
        options = WriteOptions()

    try:
        codec = registries[kind].resolve(INFERRED, filename)
        return bool(codec.write(entity, os.fspath(filename), options))
    except (GeomIOError, OSError) as e:
        status_print(f"Error: failed to write {kind.value} to {filename}: {e}")
        return False


def _write_json(codec, filename, entity):
    try:
        return bool(codec.write(entity, os.fspath(filename)))
    except (GeomIOError, OSError) as e:
        status_print(f"Error: failed to write {codec.entity_cls.__name__} to {filename}: {e}")
        return False


# --- PointCloud ---

def read_point_cloud(filename, format='auto', remove_nan_points=True, remove_infinite_points=True,
                     registries=None):
    pcd = read_entity(EntityKind.POINT_CLOUD, filename, format, registries)
    DataProcessor(pcd).remove_non_finite_points(remove_nan_points, remove_infinite_points)
    debug_print(f"[DEBUG] {pcd!r}")
    return pcd

def write_point_cloud(filename, pointcloud, write_ascii=False, compressed=False, registries=None):
    options = WriteOptions(write_ascii=write_ascii, compressed=compressed)
    return write_entity(EntityKind.POINT_CLOUD, filename, pointcloud, options, registries)

# --- TriangleMesh ---

def read_triangle_mesh(filename, format='auto', registries=None):
    return read_entity(EntityKind.TRIANGLE_MESH, filename, format, registries)

def write_triangle_mesh(filename, mesh, write_ascii=False, compressed=False,
                        write_vertex_normals=True, write_vertex_colors=True, registries=None):
    options = WriteOptions(write_ascii=write_ascii, compressed=compressed,
                           write_vertex_normals=write_vertex_normals,
                           write_vertex_colors=write_vertex_colors)
    return write_entity(EntityKind.TRIANGLE_MESH, filename, mesh, options, registries)

# --- LineSet ---

def read_line_set(filename, format='auto', registries=None):
    return read_entity(EntityKind.LINE_SET, filename, format, registries)

def write_line_set(filename, line_set, write_ascii=False, compressed=False, registries=None):
    options = WriteOptions(write_ascii=write_ascii, compressed=compressed)
    return write_entity(EntityKind.LINE_SET, filename, line_set, options, registries)

# --- VoxelGrid ---

def read_voxel_grid(filename, format='auto', registries=None):
    return read_entity(EntityKind.VOXEL_GRID, filename, format, registries)

def write_voxel_grid(filename, voxel_grid, write_ascii=False, compressed=False, registries=None):
    options = WriteOptions(write_ascii=write_ascii, compressed=compressed)
    return write_entity(EntityKind.VOXEL_GRID, filename, voxel_grid, options, registries)

# --- Image ---

def read_image(filename, format='auto', registries=None):
    return read_entity(EntityKind.IMAGE, filename, format, registries)

def write_image(filename, image, quality=config.DEFAULT_IMAGE_QUALITY, registries=None):
    return write_entity(EntityKind.IMAGE, filename, image, WriteOptions(quality=quality), registries)

# --- Camera ---

def read_pinhole_camera_intrinsic(filename):
    return _intrinsic_codec.read(os.fspath(filename))

def write_pinhole_camera_intrinsic(filename, intrinsic):
    return _write_json(_intrinsic_codec, filename, intrinsic)

def read_pinhole_camera_parameters(filename):
    return _parameters_codec.read(os.fspath(filename))

def write_pinhole_camera_parameters(filename, parameters):
    return _write_json(_parameters_codec, filename, parameters)

def read_pinhole_camera_trajectory(filename, format='auto', registries=None):
    return read_entity(EntityKind.PINHOLE_CAMERA_TRAJECTORY, filename, format, registries)

def write_pinhole_camera_trajectory(filename, trajectory, registries=None):
    return write_entity(EntityKind.PINHOLE_CAMERA_TRAJECTORY, filename, trajectory, None, registries)

# --- Registration ---

def read_feature(filename, format='auto', registries=None):
    return read_entity(EntityKind.FEATURE, filename, format, registries)

def write_feature(filename, feature, registries=None):
    return write_entity(EntityKind.FEATURE, filename, feature, None, registries)

def read_pose_graph(filename, format='auto', registries=None):
    return read_entity(EntityKind.POSE_GRAPH, filename, format, registries)

def write_pose_graph(filename, pose_graph, registries=None):
    return write_entity(EntityKind.POSE_GRAPH, filename, pose_graph, None, registries)

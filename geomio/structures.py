"""
Geometry I/O
Copyright (c) 2023 Francesco Fugazzi

This software is released under the MIT License.
For more information about the license, please see the LICENSE file.
"""

import numpy as np
from .errors import ParseError

def _as_rows(values, width, dtype=np.float64):
    """Coerces values to an (N, width) array; None stays None."""
    if values is None:
        return None
    arr = np.asarray(values, dtype=dtype)
    if arr.size == 0:
        return np.zeros((0, width), dtype=dtype)
    return arr.reshape(-1, width)

def _optional(values, count):
    """Treats an empty or wrongly sized attribute array as absent."""
    if values is None or len(values) == 0 or len(values) != count:
        return None
    return values

def _matrix_to_json(matrix):
    # Column-major, matching the layout of existing camera and pose graph files.
    return np.asarray(matrix, dtype=np.float64).flatten(order='F').tolist()

def _matrix_from_json(values, n, key):
    arr = np.asarray(values, dtype=np.float64)
    if arr.size != n * n:
        raise ParseError(f"'{key}' must hold {n * n} values, got {arr.size}")
    return arr.reshape((n, n), order='F')

def _check_class_name(value, expected):
    if not isinstance(value, dict):
        raise ParseError(f"{expected}: expected a JSON object")
    name = value.get('class_name')
    if name is not None and name != expected:
        raise ParseError(f"class_name '{name}' does not match {expected}")

def _require(value, key, owner):
    if key not in value:
        raise ParseError(f"{owner}: missing key '{key}'")
    return value[key]


class PointCloud:
    def __init__(self, points=None, normals=None, colors=None):
        self.points = _as_rows(points, 3) if points is not None else np.zeros((0, 3))
        self.normals = _as_rows(normals, 3)
        self.colors = _as_rows(colors, 3)

    def __len__(self):
        return len(self.points)

    def is_empty(self):
        return len(self.points) == 0

    def has_normals(self):
        return self.normals is not None and len(self.normals) == len(self.points) and len(self.points) > 0

    def has_colors(self):
        return self.colors is not None and len(self.colors) == len(self.points) and len(self.points) > 0

    def __repr__(self):
        return f"PointCloud with {len(self.points)} points."


class TriangleMesh:
    def __init__(self, vertices=None, triangles=None, vertex_normals=None,
                 vertex_colors=None, triangle_normals=None):
        self.vertices = _as_rows(vertices, 3) if vertices is not None else np.zeros((0, 3))
        self.triangles = _as_rows(triangles, 3, np.int32) if triangles is not None else np.zeros((0, 3), np.int32)
        self.vertex_normals = _as_rows(vertex_normals, 3)
        self.vertex_colors = _as_rows(vertex_colors, 3)
        self.triangle_normals = _as_rows(triangle_normals, 3)

    def is_empty(self):
        return len(self.vertices) == 0

    def has_triangles(self):
        return len(self.triangles) > 0

    def has_vertex_normals(self):
        return _optional(self.vertex_normals, len(self.vertices)) is not None and not self.is_empty()

    def has_vertex_colors(self):
        return _optional(self.vertex_colors, len(self.vertices)) is not None and not self.is_empty()

    def has_triangle_normals(self):
        return _optional(self.triangle_normals, len(self.triangles)) is not None and self.has_triangles()

    def __repr__(self):
        return f"TriangleMesh with {len(self.vertices)} points and {len(self.triangles)} triangles."


class LineSet:
    def __init__(self, points=None, lines=None, colors=None):
        self.points = _as_rows(points, 3) if points is not None else np.zeros((0, 3))
        self.lines = _as_rows(lines, 2, np.int32) if lines is not None else np.zeros((0, 2), np.int32)
        self.colors = _as_rows(colors, 3)

    def is_empty(self):
        return len(self.points) == 0

    def has_lines(self):
        return len(self.lines) > 0

    def has_colors(self):
        return _optional(self.colors, len(self.lines)) is not None and self.has_lines()

    def __repr__(self):
        return f"LineSet with {len(self.lines)} lines."


class VoxelGrid:
    def __init__(self, voxel_size=0.0, origin=(0.0, 0.0, 0.0), grid_indices=None, colors=None):
        self.voxel_size = float(voxel_size)
        self.origin = np.asarray(origin, dtype=np.float64).reshape(3)
        self.grid_indices = (_as_rows(grid_indices, 3, np.int32) if grid_indices is not None
                             else np.zeros((0, 3), np.int32))
        self.colors = _as_rows(colors, 3)

    def is_empty(self):
        return len(self.grid_indices) == 0

    def has_colors(self):
        return _optional(self.colors, len(self.grid_indices)) is not None and not self.is_empty()

    def __repr__(self):
        return f"VoxelGrid with {len(self.grid_indices)} voxels."


class Image:
    """Pixel buffer of shape (H, W) or (H, W, C), uint8 or uint16."""

    def __init__(self, data=None):
        self.data = np.zeros((0, 0), dtype=np.uint8) if data is None else np.asarray(data)

    @property
    def height(self):
        return self.data.shape[0] if self.data.ndim >= 2 else 0

    @property
    def width(self):
        return self.data.shape[1] if self.data.ndim >= 2 else 0

    @property
    def num_of_channels(self):
        return 1 if self.data.ndim == 2 else self.data.shape[2]

    @property
    def bytes_per_channel(self):
        return self.data.dtype.itemsize

    def is_empty(self):
        return self.data.size == 0

    def __repr__(self):
        return f"Image of size {self.width}x{self.height}, with {self.num_of_channels} channels."


class PinholeCameraIntrinsic:
    def __init__(self, width=-1, height=-1, intrinsic_matrix=None):
        self.width = int(width)
        self.height = int(height)
        self.intrinsic_matrix = (np.zeros((3, 3)) if intrinsic_matrix is None
                                 else np.asarray(intrinsic_matrix, dtype=np.float64).reshape(3, 3))

    @classmethod
    def prime_sense_default(cls):
        intrinsic = cls()
        intrinsic.set_intrinsics(640, 480, 525.0, 525.0, 319.5, 239.5)
        return intrinsic

    def set_intrinsics(self, width, height, fx, fy, cx, cy):
        self.width = int(width)
        self.height = int(height)
        self.intrinsic_matrix = np.array([[fx, 0.0, cx],
                                          [0.0, fy, cy],
                                          [0.0, 0.0, 1.0]])

    @property
    def fx(self):
        return self.intrinsic_matrix[0, 0]

    @property
    def fy(self):
        return self.intrinsic_matrix[1, 1]

    @property
    def cx(self):
        return self.intrinsic_matrix[0, 2]

    @property
    def cy(self):
        return self.intrinsic_matrix[1, 2]

    def is_valid(self):
        return self.width > 0 and self.height > 0

    def to_json(self):
        return {
            'width': self.width,
            'height': self.height,
            'intrinsic_matrix': _matrix_to_json(self.intrinsic_matrix),
        }

    @classmethod
    def from_json(cls, value):
        if not isinstance(value, dict):
            raise ParseError("PinholeCameraIntrinsic: expected a JSON object")
        owner = 'PinholeCameraIntrinsic'
        return cls(_require(value, 'width', owner), _require(value, 'height', owner),
                   _matrix_from_json(_require(value, 'intrinsic_matrix', owner), 3, 'intrinsic_matrix'))


class PinholeCameraParameters:
    def __init__(self, intrinsic=None, extrinsic=None):
        self.intrinsic = intrinsic if intrinsic is not None else PinholeCameraIntrinsic()
        self.extrinsic = np.eye(4) if extrinsic is None else np.asarray(extrinsic, dtype=np.float64).reshape(4, 4)

    def to_json(self):
        return {
            'class_name': 'PinholeCameraParameters',
            'version_major': 1,
            'version_minor': 0,
            'extrinsic': _matrix_to_json(self.extrinsic),
            'intrinsic': self.intrinsic.to_json(),
        }

    @classmethod
    def from_json(cls, value):
        _check_class_name(value, 'PinholeCameraParameters')
        owner = 'PinholeCameraParameters'
        intrinsic = PinholeCameraIntrinsic.from_json(_require(value, 'intrinsic', owner))
        extrinsic = _matrix_from_json(_require(value, 'extrinsic', owner), 4, 'extrinsic')
        return cls(intrinsic, extrinsic)


class PinholeCameraTrajectory:
    def __init__(self, parameters=None):
        self.parameters = list(parameters) if parameters is not None else []

    def __len__(self):
        return len(self.parameters)

    def is_empty(self):
        return len(self.parameters) == 0

    def to_json(self):
        return {
            'class_name': 'PinholeCameraTrajectory',
            'version_major': 1,
            'version_minor': 0,
            'parameters': [p.to_json() for p in self.parameters],
        }

    @classmethod
    def from_json(cls, value):
        _check_class_name(value, 'PinholeCameraTrajectory')
        params = _require(value, 'parameters', 'PinholeCameraTrajectory')
        return cls([PinholeCameraParameters.from_json(p) for p in params])


class PoseGraphNode:
    def __init__(self, pose=None):
        self.pose = np.eye(4) if pose is None else np.asarray(pose, dtype=np.float64).reshape(4, 4)

    def to_json(self):
        return {
            'class_name': 'PoseGraphNode',
            'version_major': 1,
            'version_minor': 0,
            'pose': _matrix_to_json(self.pose),
        }

    @classmethod
    def from_json(cls, value):
        _check_class_name(value, 'PoseGraphNode')
        return cls(_matrix_from_json(_require(value, 'pose', 'PoseGraphNode'), 4, 'pose'))


class PoseGraphEdge:
    def __init__(self, source_node_id=-1, target_node_id=-1, transformation=None,
                 information=None, uncertain=False, confidence=1.0):
        self.source_node_id = int(source_node_id)
        self.target_node_id = int(target_node_id)
        self.transformation = (np.eye(4) if transformation is None
                               else np.asarray(transformation, dtype=np.float64).reshape(4, 4))
        self.information = (np.eye(6) if information is None
                            else np.asarray(information, dtype=np.float64).reshape(6, 6))
        self.uncertain = bool(uncertain)
        self.confidence = float(confidence)

    def to_json(self):
        return {
            'class_name': 'PoseGraphEdge',
            'version_major': 1,
            'version_minor': 0,
            'source_node_id': self.source_node_id,
            'target_node_id': self.target_node_id,
            'uncertain': self.uncertain,
            'confidence': self.confidence,
            'transformation': _matrix_to_json(self.transformation),
            'information': _matrix_to_json(self.information),
        }

    @classmethod
    def from_json(cls, value):
        _check_class_name(value, 'PoseGraphEdge')
        owner = 'PoseGraphEdge'
        return cls(
            source_node_id=_require(value, 'source_node_id', owner),
            target_node_id=_require(value, 'target_node_id', owner),
            transformation=_matrix_from_json(_require(value, 'transformation', owner), 4, 'transformation'),
            information=_matrix_from_json(_require(value, 'information', owner), 6, 'information'),
            uncertain=value.get('uncertain', False),
            confidence=value.get('confidence', 1.0),
        )


class PoseGraph:
    def __init__(self, nodes=None, edges=None):
        self.nodes = list(nodes) if nodes is not None else []
        self.edges = list(edges) if edges is not None else []

    def is_empty(self):
        return len(self.nodes) == 0

    def to_json(self):
        return {
            'class_name': 'PoseGraph',
            'version_major': 1,
            'version_minor': 0,
            'nodes': [n.to_json() for n in self.nodes],
            'edges': [e.to_json() for e in self.edges],
        }

    @classmethod
    def from_json(cls, value):
        _check_class_name(value, 'PoseGraph')
        nodes = [PoseGraphNode.from_json(n) for n in _require(value, 'nodes', 'PoseGraph')]
        edges = [PoseGraphEdge.from_json(e) for e in value.get('edges', [])]
        for edge in edges:
            for node_id in (edge.source_node_id, edge.target_node_id):
                if not 0 <= node_id < len(nodes):
                    raise ParseError(f"PoseGraph: edge references missing node {node_id}")
        return cls(nodes, edges)


class Feature:
    """Descriptor matrix of shape (dim, num): one column per point."""

    def __init__(self, data=None):
        self.data = np.zeros((0, 0)) if data is None else np.asarray(data, dtype=np.float64)
        if self.data.ndim != 2:
            raise ValueError("Feature data must be a 2D (dim, num) array")

    def dimension(self):
        return self.data.shape[0]

    def num(self):
        return self.data.shape[1]

    def is_empty(self):
        return self.data.size == 0

    def __repr__(self):
        return f"Feature class with dimension = {self.dimension()} and num = {self.num()}"

"""
Geometry I/O
Copyright (c) 2023 Francesco Fugazzi

This software is released under the MIT License.
For more information about the license, please see the LICENSE file.
"""

import numpy as np
from plyfile import PlyData, PlyElement, PlyParseError
from .base import BaseFormat, open_for_read, atomic_write, check_indices
from ..errors import ParseError, WriteError
from ..structures import PointCloud, TriangleMesh, LineSet, VoxelGrid
from ..utils.utility_functions import debug_print

def read_ply(path):
    """Parses a PLY file into a PlyData, mapping plyfile failures to ParseError."""
    with open_for_read(path) as f:
        try:
            return PlyData.read(f, mmap=False)
        except (PlyParseError, ValueError, EOFError, UnicodeDecodeError) as e:
            raise ParseError(f"invalid PLY content: {e}", path) from e

def write_ply(elements, path, text):
    with atomic_write(path) as f:
        PlyData(elements, text=text, byte_order='<').write(f)

def colors_from_ply(data, names=('red', 'green', 'blue')):
    """Returns (N, 3) colors in [0, 1], or None when the element has no color properties."""
    if not all(n in data.dtype.names for n in names):
        return None
    cols = np.column_stack([data[n] for n in names])
    kind = data.dtype[names[0]]
    if kind.kind == 'f':
        return cols.astype(np.float64)
    return cols.astype(np.float64) / float(np.iinfo(kind).max)

def colors_to_u8(colors):
    return np.round(np.clip(colors, 0.0, 1.0) * 255.0).astype(np.uint8)

def xyz_from_ply(data, path, names=('x', 'y', 'z')):
    missing = [n for n in names if n not in data.dtype.names]
    if missing:
        raise ParseError(f"vertex element lacks properties {missing}", path)
    return np.column_stack([data[n] for n in names]).astype(np.float64)

def vertex_element(points, normals=None, colors=None, xyz_type='f8'):
    """Builds the PLY 'vertex' element for positions plus optional normals and colors."""
    dtype = [('x', xyz_type), ('y', xyz_type), ('z', xyz_type)]
    if normals is not None:
        dtype += [('nx', 'f8'), ('ny', 'f8'), ('nz', 'f8')]
    if colors is not None:
        dtype += [('red', 'u1'), ('green', 'u1'), ('blue', 'u1')]

    vertex = np.zeros(len(points), dtype=dtype)
    vertex['x'], vertex['y'], vertex['z'] = points[:, 0], points[:, 1], points[:, 2]
    if normals is not None:
        vertex['nx'], vertex['ny'], vertex['nz'] = normals[:, 0], normals[:, 1], normals[:, 2]
    if colors is not None:
        rgb = colors_to_u8(colors)
        vertex['red'], vertex['green'], vertex['blue'] = rgb[:, 0], rgb[:, 1], rgb[:, 2]
    return PlyElement.describe(vertex, 'vertex')


class PlyPointCloudFormat(BaseFormat):
    extensions = ('ply',)

    def read(self, path: str, **kwargs) -> PointCloud:
        debug_print(f"[DEBUG] Reading PLY point cloud from {path}")
        plydata = read_ply(path)

        if 'vertex' not in plydata:
            raise ParseError("PLY file does not contain 'vertex' element", path)

        vertices = plydata['vertex'].data
        if len(vertices) == 0:
            raise ParseError("PLY file contains no vertices", path)

        names = vertices.dtype.names
        normals = None
        if all(n in names for n in ('nx', 'ny', 'nz')):
            normals = np.column_stack((vertices['nx'], vertices['ny'], vertices['nz'])).astype(np.float64)

        pcd = PointCloud(xyz_from_ply(vertices, path), normals, colors_from_ply(vertices))
        debug_print(f"[DEBUG] Loaded {len(pcd)} points (normals={pcd.has_normals()}, colors={pcd.has_colors()})")
        return pcd

    def write(self, data: PointCloud, path: str, options) -> bool:
        debug_print(f"[DEBUG] Writing PLY point cloud to {path}")
        if data.is_empty():
            raise WriteError("empty point cloud", path)

        el = vertex_element(data.points,
                            data.normals if data.has_normals() else None,
                            data.colors if data.has_colors() else None)
        write_ply([el], path, options.write_ascii)
        debug_print(f"[DEBUG] PLY write completed. {len(data)} points.")
        return True


class PlyTriangleMeshFormat(BaseFormat):
    extensions = ('ply',)

    def read(self, path: str, **kwargs) -> TriangleMesh:
        debug_print(f"[DEBUG] Reading PLY triangle mesh from {path}")
        plydata = read_ply(path)

        if 'vertex' not in plydata or len(plydata['vertex'].data) == 0:
            raise ParseError("PLY file contains no vertices", path)

        vertices = plydata['vertex'].data
        names = vertices.dtype.names
        normals = None
        if all(n in names for n in ('nx', 'ny', 'nz')):
            normals = np.column_stack((vertices['nx'], vertices['ny'], vertices['nz'])).astype(np.float64)

        triangles = np.zeros((0, 3), dtype=np.int32)
        if 'face' in plydata:
            faces = plydata['face'].data
            key = 'vertex_indices' if 'vertex_indices' in faces.dtype.names else 'vertex_index'
            if key not in faces.dtype.names:
                raise ParseError("face element lacks 'vertex_indices'", path)
            triangles = triangulate([np.asarray(f) for f in faces[key]])
            if len(triangles) and (triangles.min() < 0 or triangles.max() >= len(vertices)):
                raise ParseError("face references a vertex index out of range", path)

        mesh = TriangleMesh(xyz_from_ply(vertices, path), triangles, normals, colors_from_ply(vertices))
        debug_print(f"[DEBUG] Loaded mesh with {len(mesh.vertices)} vertices and {len(mesh.triangles)} triangles")
        return mesh

    def write(self, data: TriangleMesh, path: str, options) -> bool:
        debug_print(f"[DEBUG] Writing PLY triangle mesh to {path}")
        if data.is_empty():
            raise WriteError("empty triangle mesh", path)
        check_indices(data.triangles, len(data.vertices), "triangles", path)

        normals = data.vertex_normals if options.write_vertex_normals and data.has_vertex_normals() else None
        colors = data.vertex_colors if options.write_vertex_colors and data.has_vertex_colors() else None
        elements = [vertex_element(data.vertices, normals, colors)]

        face = np.empty(len(data.triangles), dtype=[('vertex_indices', 'O')])
        for i, tri in enumerate(data.triangles):
            face[i] = (np.asarray(tri, dtype=np.int32),)
        elements.append(PlyElement.describe(face, 'face', len_types={'vertex_indices': 'u1'},
                                            val_types={'vertex_indices': 'i4'}))

        write_ply(elements, path, options.write_ascii)
        debug_print(f"[DEBUG] PLY write completed. {len(data.vertices)} vertices, {len(data.triangles)} triangles.")
        return True


class PlyLineSetFormat(BaseFormat):
    extensions = ('ply',)

    def read(self, path: str, **kwargs) -> LineSet:
        debug_print(f"[DEBUG] Reading PLY line set from {path}")
        plydata = read_ply(path)

        if 'vertex' not in plydata or len(plydata['vertex'].data) == 0:
            raise ParseError("PLY file contains no vertices", path)
        points = xyz_from_ply(plydata['vertex'].data, path)

        lines = np.zeros((0, 2), dtype=np.int32)
        colors = None
        if 'edge' in plydata:
            edges = plydata['edge'].data
            if not all(n in edges.dtype.names for n in ('vertex1', 'vertex2')):
                raise ParseError("edge element lacks 'vertex1'/'vertex2'", path)
            lines = np.column_stack((edges['vertex1'], edges['vertex2'])).astype(np.int32)
            if len(lines) and (lines.min() < 0 or lines.max() >= len(points)):
                raise ParseError("edge references a vertex index out of range", path)
            colors = colors_from_ply(edges)

        return LineSet(points, lines, colors)

    def write(self, data: LineSet, path: str, options) -> bool:
        debug_print(f"[DEBUG] Writing PLY line set to {path}")
        if data.is_empty():
            raise WriteError("empty line set", path)
        check_indices(data.lines, len(data.points), "lines", path)

        dtype = [('vertex1', 'i4'), ('vertex2', 'i4')]
        has_colors = data.has_colors()
        if has_colors:
            dtype += [('red', 'u1'), ('green', 'u1'), ('blue', 'u1')]
        edge = np.zeros(len(data.lines), dtype=dtype)
        edge['vertex1'], edge['vertex2'] = data.lines[:, 0], data.lines[:, 1]
        if has_colors:
            rgb = colors_to_u8(data.colors)
            edge['red'], edge['green'], edge['blue'] = rgb[:, 0], rgb[:, 1], rgb[:, 2]

        write_ply([vertex_element(data.points), PlyElement.describe(edge, 'edge')], path, options.write_ascii)
        return True


class PlyVoxelGridFormat(BaseFormat):
    extensions = ('ply',)

    def read(self, path: str, **kwargs) -> VoxelGrid:
        debug_print(f"[DEBUG] Reading PLY voxel grid from {path}")
        plydata = read_ply(path)

        for name in ('origin', 'voxel_size', 'vertex'):
            if name not in plydata or len(plydata[name].data) == 0:
                raise ParseError(f"PLY voxel grid lacks '{name}' element", path)

        origin = xyz_from_ply(plydata['origin'].data, path)[0]
        size_data = plydata['voxel_size'].data
        if 'val' not in size_data.dtype.names:
            raise ParseError("voxel_size element lacks 'val'", path)
        voxels = plydata['vertex'].data

        grid = VoxelGrid(float(size_data['val'][0]), origin,
                         xyz_from_ply(voxels, path).astype(np.int32), colors_from_ply(voxels))
        debug_print(f"[DEBUG] Loaded {len(grid.grid_indices)} voxels of size {grid.voxel_size}")
        return grid

    def write(self, data: VoxelGrid, path: str, options) -> bool:
        debug_print(f"[DEBUG] Writing PLY voxel grid to {path}")
        if data.is_empty():
            raise WriteError("empty voxel grid", path)

        origin = np.array([tuple(data.origin)], dtype=[('x', 'f8'), ('y', 'f8'), ('z', 'f8')])
        size = np.array([(data.voxel_size,)], dtype=[('val', 'f8')])
        elements = [
            PlyElement.describe(origin, 'origin'),
            PlyElement.describe(size, 'voxel_size'),
            vertex_element(data.grid_indices, colors=data.colors if data.has_colors() else None, xyz_type='i4'),
        ]
        write_ply(elements, path, options.write_ascii)
        return True


def triangulate(polygons):
    """Fan-triangulates polygon index lists into an (M, 3) int32 array."""
    tris = []
    for poly in polygons:
        if len(poly) < 3:
            continue
        for k in range(1, len(poly) - 1):
            tris.append((poly[0], poly[k], poly[k + 1]))
    if not tris:
        return np.zeros((0, 3), dtype=np.int32)
    return np.asarray(tris, dtype=np.int32)

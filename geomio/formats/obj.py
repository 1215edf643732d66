"""
Geometry I/O
Copyright (c) 2023 Francesco Fugazzi

This software is released under the MIT License.
For more information about the license, please see the LICENSE file.
"""

import numpy as np
from .base import BaseFormat, open_for_read, atomic_write, check_indices
from .ply import triangulate
from ..errors import ParseError, WriteError
from ..structures import TriangleMesh
from ..utils.utility_functions import debug_print

class ObjFormat(BaseFormat):
    """
    Wavefront OBJ meshes. Reads `v` (optionally with r g b), `vn` and `f`; texture
    coordinates, groups and materials are skipped.
    """
    extensions = ('obj',)

    def read(self, path: str, **kwargs) -> TriangleMesh:
        debug_print(f"[DEBUG] Reading OBJ file from {path}")
        vertices, colors, normals, faces = [], [], [], []

        with open_for_read(path, 'r', encoding='utf-8') as f:
            try:
                for lineno, line in enumerate(f, start=1):
                    tokens = line.split()
                    if not tokens or tokens[0].startswith('#'):
                        continue
                    tag = tokens[0]
                    if tag == 'v':
                        values = self._floats(tokens[1:], lineno, path)
                        if len(values) < 3:
                            raise ParseError(f"line {lineno}: vertex needs 3 coordinates", path)
                        vertices.append(values[:3])
                        colors.append(values[3:6] if len(values) >= 6 else None)
                    elif tag == 'vn':
                        values = self._floats(tokens[1:], lineno, path)
                        if len(values) < 3:
                            raise ParseError(f"line {lineno}: normal needs 3 components", path)
                        normals.append(values[:3])
                    elif tag == 'f':
                        faces.append([self._face_ref(t, len(vertices), len(normals), lineno, path)
                                      for t in tokens[1:]])
            except UnicodeDecodeError as e:
                raise ParseError(f"OBJ file is not valid UTF-8 text: {e}", path) from e

        if not vertices:
            raise ParseError("OBJ file contains no vertices", path)

        n = len(vertices)
        for face in faces:
            for vi, ni in face:
                if not 0 <= vi < n:
                    raise ParseError(f"face references vertex {vi + 1} of {n}", path)

        vertex_colors = None
        if all(c is not None for c in colors):
            vertex_colors = np.asarray(colors, dtype=np.float64)

        vertex_normals = None
        if normals:
            normals = np.asarray(normals, dtype=np.float64)
            refs = [(vi, ni) for face in faces for vi, ni in face if ni is not None]
            if refs:
                vertex_normals = np.zeros((n, 3))
                for vi, ni in refs:
                    if not 0 <= ni < len(normals):
                        raise ParseError(f"face references normal {ni + 1} of {len(normals)}", path)
                    vertex_normals[vi] = normals[ni]
            elif len(normals) == n:
                vertex_normals = normals

        triangles = triangulate([[vi for vi, _ in face] for face in faces])
        debug_print(f"[DEBUG] Loaded OBJ with {n} vertices and {len(triangles)} triangles")
        return TriangleMesh(vertices, triangles, vertex_normals, vertex_colors)

    @staticmethod
    def _floats(tokens, lineno, path):
        try:
            return [float(t) for t in tokens]
        except ValueError as e:
            raise ParseError(f"line {lineno}: {e}", path) from e

    @staticmethod
    def _face_ref(token, num_vertices, num_normals, lineno, path):
        """Returns 0-based (vertex, normal) indices for an `f` token like 3, 3/1, 3//2 or -1."""
        parts = token.split('/')
        try:
            vi = int(parts[0])
            ni = int(parts[2]) if len(parts) > 2 and parts[2] else None
        except ValueError as e:
            raise ParseError(f"line {lineno}: bad face index '{token}'", path) from e
        # Negative indices count back from the most recent element.
        vi = vi - 1 if vi > 0 else num_vertices + vi
        if ni is not None:
            ni = ni - 1 if ni > 0 else num_normals + ni
        return vi, ni

    def write(self, data: TriangleMesh, path: str, options) -> bool:
        debug_print(f"[DEBUG] Writing OBJ file to {path}")
        if data.is_empty():
            raise WriteError("empty triangle mesh", path)
        check_indices(data.triangles, len(data.vertices), "triangles", path)

        write_normals = options.write_vertex_normals and data.has_vertex_normals()
        write_colors = options.write_vertex_colors and data.has_vertex_colors()

        with atomic_write(path, 'w', encoding='utf-8', newline='\n') as f:
            f.write("# Created by geomio\n")
            for i, v in enumerate(data.vertices):
                line = "v %.17g %.17g %.17g" % tuple(v)
                if write_colors:
                    line += " %.17g %.17g %.17g" % tuple(data.vertex_colors[i])
                f.write(line + "\n")
            if write_normals:
                for nrm in data.vertex_normals:
                    f.write("vn %.17g %.17g %.17g\n" % tuple(nrm))
            for tri in data.triangles + 1:
                if write_normals:
                    f.write("f %d//%d %d//%d %d//%d\n" % (tri[0], tri[0], tri[1], tri[1], tri[2], tri[2]))
                else:
                    f.write("f %d %d %d\n" % tuple(tri))

        debug_print(f"[DEBUG] OBJ write completed. {len(data.vertices)} vertices.")
        return True

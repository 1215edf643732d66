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

class OffFormat(BaseFormat):
    """Object File Format meshes: OFF, COFF (vertex colors), NOFF (normals) and CNOFF."""
    extensions = ('off',)

    def read(self, path: str, **kwargs) -> TriangleMesh:
        debug_print(f"[DEBUG] Reading OFF file from {path}")
        with open_for_read(path, 'r', encoding='utf-8') as f:
            try:
                lines = [line.split('#', 1)[0].split() for line in f]
            except UnicodeDecodeError as e:
                raise ParseError(f"OFF file is not valid UTF-8 text: {e}", path) from e
        lines = [tokens for tokens in lines if tokens]
        if not lines:
            raise ParseError("empty OFF file", path)

        keyword = lines[0][0].upper()
        if not keyword.endswith('OFF'):
            raise ParseError(f"missing OFF header, found '{lines[0][0]}'", path)
        has_colors = 'C' in keyword[:-3]
        has_normals = 'N' in keyword[:-3]

        counts = lines[0][1:] if len(lines[0]) > 1 else (lines[1] if len(lines) > 1 else [])
        body = lines[1:] if len(lines[0]) > 1 else lines[2:]
        try:
            num_vertices, num_faces = int(counts[0]), int(counts[1])
        except (IndexError, ValueError) as e:
            raise ParseError("OFF header lacks vertex/face counts", path) from e
        if num_vertices <= 0:
            raise ParseError("OFF file contains no vertices", path)
        if len(body) < num_vertices + num_faces:
            raise ParseError(f"expected {num_vertices} vertices and {num_faces} faces, "
                             f"found {len(body)} data lines", path)

        width = 3 + (3 if has_normals else 0)
        try:
            rows = [[float(t) for t in tokens] for tokens in body[:num_vertices]]
        except ValueError as e:
            raise ParseError(f"non-numeric vertex data: {e}", path) from e
        if any(len(r) < width + (3 if has_colors else 0) for r in rows):
            raise ParseError("vertex line has too few values", path)

        vertices = np.array([r[:3] for r in rows])
        normals = np.array([r[3:6] for r in rows]) if has_normals else None
        colors = None
        if has_colors:
            colors = np.array([r[width:width + 3] for r in rows])
            # Integer components are on the 0-255 scale, floats on 0-1.
            first = body[0][width:width + 3]
            if all(t.lstrip('-').isdigit() for t in first):
                colors = colors / 255.0

        polygons = []
        for lineno, tokens in enumerate(body[num_vertices:num_vertices + num_faces]):
            try:
                k = int(tokens[0])
                poly = [int(t) for t in tokens[1:k + 1]]
            except (IndexError, ValueError) as e:
                raise ParseError(f"malformed face {lineno}", path) from e
            if len(poly) != k or any(not 0 <= i < num_vertices for i in poly):
                raise ParseError(f"face {lineno} has invalid vertex indices", path)
            polygons.append(poly)

        return TriangleMesh(vertices, triangulate(polygons), normals, colors)

    def write(self, data: TriangleMesh, path: str, options) -> bool:
        debug_print(f"[DEBUG] Writing OFF file to {path}")
        if data.is_empty():
            raise WriteError("empty triangle mesh", path)
        check_indices(data.triangles, len(data.vertices), "triangles", path)

        write_normals = options.write_vertex_normals and data.has_vertex_normals()
        write_colors = options.write_vertex_colors and data.has_vertex_colors()
        keyword = ('C' if write_colors else '') + ('N' if write_normals else '') + 'OFF'

        with atomic_write(path, 'w', encoding='utf-8', newline='\n') as f:
            f.write(f"{keyword}\n{len(data.vertices)} {len(data.triangles)} 0\n")
            for i, v in enumerate(data.vertices):
                line = "%.17g %.17g %.17g" % tuple(v)
                if write_normals:
                    line += " %.17g %.17g %.17g" % tuple(data.vertex_normals[i])
                if write_colors:
                    rgb = np.round(np.clip(data.vertex_colors[i], 0.0, 1.0) * 255.0).astype(int)
                    line += " %d %d %d 255" % tuple(rgb)
                f.write(line + "\n")
            for tri in data.triangles:
                f.write("3 %d %d %d\n" % tuple(tri))
        return True

"""
Geometry I/O
Copyright (c) 2023 Francesco Fugazzi

This software is released under the MIT License.
For more information about the license, please see the LICENSE file.
"""

import numpy as np
from .base import BaseFormat, read_bytes, atomic_write, check_indices
from ..errors import ParseError, WriteError
from ..structures import TriangleMesh
from ..utils.utility_functions import debug_print, status_print

class StlFormat(BaseFormat):
    """
    Stereolithography meshes, binary by default and ASCII with `write_ascii`.

    STL stores float32 facets only: every triangle gets its own three vertices,
    facet normals become triangle normals, and vertex normals/colors are dropped.
    """
    extensions = ('stl',)

    HEADER_SIZE = 80
    FACET_DTYPE = np.dtype([('normal', '<f4', (3,)), ('vertices', '<f4', (3, 3)), ('attr', '<u2')])

    def read(self, path: str, **kwargs) -> TriangleMesh:
        debug_print(f"[DEBUG] Reading STL file from {path}")
        raw = read_bytes(path)

        if len(raw) >= self.HEADER_SIZE + 4:
            count = int(np.frombuffer(raw, dtype='<u4', count=1, offset=self.HEADER_SIZE)[0])
            if len(raw) == self.HEADER_SIZE + 4 + count * self.FACET_DTYPE.itemsize:
                return self._read_binary(raw, count, path)
        if raw.lstrip()[:5].lower() == b'solid':
            return self._read_ascii(raw, path)
        raise ParseError("neither a binary STL (size mismatch) nor an ASCII STL ('solid' header)", path)

    def _read_binary(self, raw, count, path):
        if count == 0:
            raise ParseError("STL file contains no facets", path)
        facets = np.frombuffer(raw, dtype=self.FACET_DTYPE, count=count, offset=self.HEADER_SIZE + 4)
        debug_print(f"[DEBUG] Binary STL with {count} facets")
        return self._mesh(facets['vertices'].reshape(-1, 3), facets['normal'])

    def _read_ascii(self, raw, path):
        try:
            tokens = raw.decode('ascii').split()
        except UnicodeDecodeError as e:
            raise ParseError("ASCII STL contains non-ASCII bytes", path) from e

        vertices, normals = [], []
        i = 0
        try:
            while i < len(tokens):
                if tokens[i] == 'normal':
                    normals.append([np.float32(t) for t in tokens[i + 1:i + 4]])
                    i += 4
                elif tokens[i] == 'vertex':
                    vertices.append([np.float32(t) for t in tokens[i + 1:i + 4]])
                    i += 4
                else:
                    i += 1
        except ValueError as e:
            raise ParseError(f"non-numeric value near token {i}: {e}", path) from e

        if not vertices:
            raise ParseError("STL file contains no facets", path)
        if len(vertices) != 3 * len(normals) or any(len(v) != 3 for v in vertices + normals):
            raise ParseError(f"inconsistent facets: {len(normals)} normals for {len(vertices)} vertices", path)
        debug_print(f"[DEBUG] ASCII STL with {len(normals)} facets")
        return self._mesh(np.asarray(vertices, dtype=np.float32), np.asarray(normals, dtype=np.float32))

    @staticmethod
    def _mesh(vertices, normals):
        triangles = np.arange(len(vertices), dtype=np.int32).reshape(-1, 3)
        return TriangleMesh(vertices.astype(np.float64), triangles,
                            triangle_normals=normals.astype(np.float64))

    def write(self, data: TriangleMesh, path: str, options) -> bool:
        debug_print(f"[DEBUG] Writing STL file to {path}")
        if data.is_empty() or not data.has_triangles():
            raise WriteError("STL needs a mesh with triangles", path)
        check_indices(data.triangles, len(data.vertices), "triangles", path)
        if data.has_vertex_colors() and options.write_vertex_colors:
            status_print(f"Warning: STL cannot store vertex colors, {path} is written without them.")

        corners = data.vertices[data.triangles].astype(np.float32)
        if data.has_triangle_normals():
            normals = data.triangle_normals.astype(np.float32)
        else:
            normals = self._facet_normals(corners)

        if options.write_ascii:
            with atomic_write(path, 'w', encoding='ascii', newline='\n') as f:
                f.write("solid geomio\n")
                for nrm, tri in zip(normals, corners):
                    f.write("  facet normal %.9g %.9g %.9g\n    outer loop\n" % tuple(nrm))
                    for v in tri:
                        f.write("      vertex %.9g %.9g %.9g\n" % tuple(v))
                    f.write("    endloop\n  endfacet\n")
                f.write("endsolid geomio\n")
        else:
            facets = np.zeros(len(corners), dtype=self.FACET_DTYPE)
            facets['normal'] = normals
            facets['vertices'] = corners
            header = b'Binary STL written by geomio'.ljust(self.HEADER_SIZE, b' ')
            with atomic_write(path) as f:
                f.write(header)
                f.write(np.uint32(len(facets)).astype('<u4').tobytes())
                f.write(facets.tobytes())

        debug_print(f"[DEBUG] STL write completed. {len(corners)} facets.")
        return True

    @staticmethod
    def _facet_normals(corners):
        normals = np.cross(corners[:, 1] - corners[:, 0], corners[:, 2] - corners[:, 0])
        norms = np.linalg.norm(normals, axis=1, keepdims=True)
        norms[norms == 0] = 1.0
        return (normals / norms).astype(np.float32)

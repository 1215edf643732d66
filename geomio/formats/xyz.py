"""
Geometry I/O
Copyright (c) 2023 Francesco Fugazzi

This software is released under the MIT License.
For more information about the license, please see the LICENSE file.
"""

import numpy as np
import pandas as pd
from .base import BaseFormat, open_for_read, atomic_write
from ..errors import ParseError, WriteError
from ..structures import PointCloud
from ..utils.utility_functions import debug_print

def read_table(path, skiprows=0):
    """Reads a whitespace-delimited numeric table as an (N, C) float64 array."""
    with open_for_read(path, 'r', encoding='utf-8') as f:
        try:
            df = pd.read_csv(f, sep=r'\s+', header=None, skiprows=skiprows, dtype=np.float64,
                             float_precision='round_trip')
        except pd.errors.EmptyDataError as e:
            raise ParseError("file contains no points", path) from e
        except (pd.errors.ParserError, ValueError, UnicodeDecodeError) as e:
            raise ParseError(f"malformed numeric table: {e}", path) from e
    if len(df) == 0:
        raise ParseError("file contains no points", path)
    return df.to_numpy(dtype=np.float64)

def require_columns(table, count, path):
    if table.shape[1] < count:
        raise ParseError(f"expected at least {count} columns per line, found {table.shape[1]}", path)

def write_table(path, table, header=None):
    with atomic_write(path, 'w', encoding='utf-8', newline='\n') as f:
        if header is not None:
            f.write(header + "\n")
        np.savetxt(f, table, fmt='%.17g')


class XyzFormat(BaseFormat):
    """x y z per line."""
    extensions = ('xyz',)

    def read(self, path: str, **kwargs) -> PointCloud:
        debug_print(f"[DEBUG] Reading XYZ file from {path}")
        table = read_table(path)
        require_columns(table, 3, path)
        return PointCloud(table[:, 0:3])

    def write(self, data: PointCloud, path: str, options) -> bool:
        debug_print(f"[DEBUG] Writing XYZ file to {path}")
        if data.is_empty():
            raise WriteError("empty point cloud", path)
        write_table(path, data.points)
        return True


class XyznFormat(BaseFormat):
    """x y z nx ny nz per line."""
    extensions = ('xyzn',)

    def read(self, path: str, **kwargs) -> PointCloud:
        debug_print(f"[DEBUG] Reading XYZN file from {path}")
        table = read_table(path)
        require_columns(table, 6, path)
        return PointCloud(table[:, 0:3], normals=table[:, 3:6])

    def write(self, data: PointCloud, path: str, options) -> bool:
        debug_print(f"[DEBUG] Writing XYZN file to {path}")
        if data.is_empty():
            raise WriteError("empty point cloud", path)
        normals = data.normals if data.has_normals() else np.zeros_like(data.points)
        write_table(path, np.hstack((data.points, normals)))
        return True


class XyzrgbFormat(BaseFormat):
    """x y z r g b per line, colors in [0, 1]."""
    extensions = ('xyzrgb',)

    def read(self, path: str, **kwargs) -> PointCloud:
        debug_print(f"[DEBUG] Reading XYZRGB file from {path}")
        table = read_table(path)
        require_columns(table, 6, path)
        return PointCloud(table[:, 0:3], colors=table[:, 3:6])

    def write(self, data: PointCloud, path: str, options) -> bool:
        debug_print(f"[DEBUG] Writing XYZRGB file to {path}")
        if data.is_empty():
            raise WriteError("empty point cloud", path)
        colors = data.colors if data.has_colors() else np.zeros_like(data.points)
        write_table(path, np.hstack((data.points, colors)))
        return True


class PtsFormat(BaseFormat):
    """
    Point count on the first line, then `x y z`, `x y z i`, `x y z r g b` or
    `x y z i r g b` per line, with 0-255 color components. Intensity is discarded.
    """
    extensions = ('pts',)

    def read(self, path: str, **kwargs) -> PointCloud:
        debug_print(f"[DEBUG] Reading PTS file from {path}")
        with open_for_read(path, 'r', encoding='utf-8') as f:
            try:
                first = f.readline().split()
                expected = int(first[0])
            except (IndexError, ValueError, UnicodeDecodeError) as e:
                raise ParseError("first line must hold the point count", path) from e

        table = read_table(path, skiprows=1)
        if len(table) != expected:
            raise ParseError(f"header announces {expected} points, found {len(table)}", path)
        require_columns(table, 3, path)

        colors = None
        if table.shape[1] >= 7:
            colors = table[:, 4:7] / 255.0
        elif table.shape[1] == 6:
            colors = table[:, 3:6] / 255.0
        return PointCloud(table[:, 0:3], colors=colors)

    def write(self, data: PointCloud, path: str, options) -> bool:
        debug_print(f"[DEBUG] Writing PTS file to {path}")
        if data.is_empty():
            raise WriteError("empty point cloud", path)
        table = data.points
        if data.has_colors():
            table = np.hstack((table, np.round(np.clip(data.colors, 0.0, 1.0) * 255.0)))
        write_table(path, table, header=str(len(data)))
        return True

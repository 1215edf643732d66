"""
Geometry I/O
Copyright (c) 2023 Francesco Fugazzi

This software is released under the MIT License.
For more information about the license, please see the LICENSE file.
"""

from .errors import WriteError
from .utils import config

class ReadOptions:
    """Read-time filters. Only point cloud reads consult these."""

    def __init__(self, remove_nan_points=True, remove_infinite_points=True):
        self.remove_nan_points = remove_nan_points
        self.remove_infinite_points = remove_infinite_points

    def __repr__(self):
        return (f"ReadOptions(remove_nan_points={self.remove_nan_points}, "
                f"remove_infinite_points={self.remove_infinite_points})")


class WriteOptions:
    """
    Write-time encoding options shared by every codec.

    Each codec honours the fields it understands and ignores the rest:
    - write_ascii: text encoding instead of binary (PLY, PCD, STL)
    - compressed: compress the payload (PCD)
    - quality: 0-100 (JPG)
    - write_vertex_normals / write_vertex_colors: emit those attributes (meshes)
    """

    def __init__(self, write_ascii=False, compressed=False, quality=None,
                 write_vertex_normals=True, write_vertex_colors=True):
        self.write_ascii = write_ascii
        self.compressed = compressed
        self.quality = config.DEFAULT_IMAGE_QUALITY if quality is None else quality
        self.write_vertex_normals = write_vertex_normals
        self.write_vertex_colors = write_vertex_colors

    def validate(self):
        if not isinstance(self.quality, int) or not 0 <= self.quality <= 100:
            raise WriteError(f"quality must be an integer in [0, 100], got {self.quality!r}")
        return self

    def __repr__(self):
        return (f"WriteOptions(write_ascii={self.write_ascii}, compressed={self.compressed}, "
                f"quality={self.quality}, write_vertex_normals={self.write_vertex_normals}, "
                f"write_vertex_colors={self.write_vertex_colors})")

"""
Geometry I/O
Copyright (c) 2023 Francesco Fugazzi

This software is released under the MIT License.
For more information about the license, please see the LICENSE file.
"""

import struct
import numpy as np
from .base import BaseFormat, read_bytes, atomic_write
from ..errors import ParseError, WriteError
from ..structures import Feature
from ..utils.utility_functions import debug_print

class FeatureBinFormat(BaseFormat):
    """int32 dim, int32 num, then dim * num float64 values stored feature by feature."""
    extensions = ('bin',)

    HEADER = struct.Struct('<ii')

    def read(self, path: str, **kwargs) -> Feature:
        debug_print(f"[DEBUG] Reading feature file from {path}")
        raw = read_bytes(path)
        if len(raw) < self.HEADER.size:
            raise ParseError("file too short for the feature header", path)

        dim, num = self.HEADER.unpack_from(raw)
        if dim <= 0 or num <= 0:
            raise ParseError(f"invalid feature shape dim={dim}, num={num}", path)

        expected = self.HEADER.size + dim * num * 8
        if len(raw) != expected:
            raise ParseError(f"expected {expected} bytes for {num} features of dim {dim}, "
                             f"found {len(raw)}", path)

        values = np.frombuffer(raw, dtype='<f8', count=dim * num, offset=self.HEADER.size)
        debug_print(f"[DEBUG] Feature Header: dim={dim}, num={num}")
        # Each feature's components are contiguous: column-major over (dim, num).
        return Feature(values.reshape((dim, num), order='F').copy())

    def write(self, data: Feature, path: str, options) -> bool:
        debug_print(f"[DEBUG] Writing feature file to {path}")
        if data.is_empty():
            raise WriteError("empty feature", path)

        with atomic_write(path) as f:
            f.write(self.HEADER.pack(data.dimension(), data.num()))
            f.write(np.asarray(data.data, dtype='<f8').tobytes(order='F'))
        return True

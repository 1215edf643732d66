"""
Geometry I/O
Copyright (c) 2023 Francesco Fugazzi

This software is released under the MIT License.
For more information about the license, please see the LICENSE file.
"""

import numpy as np
from ..structures import PointCloud
from ..utils.utility_functions import debug_print

class DataProcessor:
    """In-place read-time filters for a freshly read PointCloud."""

    def __init__(self, data: PointCloud):
        self.data = data

    def remove_non_finite_points(self, remove_nan=True, remove_infinite=True):
        """
        Drops points whose coordinates contain NaN and/or +-inf.

        Normals and colors are filtered with the same mask, so surviving points keep
        their relative order and their attributes stay index-aligned.
        """
        debug_print("[DEBUG] Executing 'remove_non_finite_points' function...")
        if not (remove_nan or remove_infinite):
            return self.data

        points = self.data.points
        # Attributes that are not one row per point cannot be filtered in lock-step.
        for name in ('normals', 'colors'):
            values = getattr(self.data, name)
            if values is not None and len(values) != len(points):
                debug_print(f"[DEBUG] Dropping {name}: {len(values)} rows for {len(points)} points.")
                setattr(self.data, name, None)

        keep = np.ones(len(points), dtype=bool)
        if remove_nan:
            keep &= ~np.isnan(points).any(axis=1)
        if remove_infinite:
            keep &= ~np.isinf(points).any(axis=1)

        removed = int(len(points) - keep.sum())
        if removed == 0:
            return self.data

        has_normals = self.data.has_normals()
        has_colors = self.data.has_colors()
        self.data.points = points[keep]
        if has_normals:
            self.data.normals = self.data.normals[keep]
        if has_colors:
            self.data.colors = self.data.colors[keep]

        debug_print(f"[DEBUG] Removed {removed} non-finite points, {len(self.data.points)} remain.")
        return self.data

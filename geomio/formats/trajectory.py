"""
Geometry I/O
Copyright (c) 2023 Francesco Fugazzi

This software is released under the MIT License.
For more information about the license, please see the LICENSE file.
"""

import numpy as np
from scipy.spatial.transform import Rotation
from .base import BaseFormat, open_for_read, atomic_write
from ..errors import ParseError, WriteError
from ..structures import PinholeCameraIntrinsic, PinholeCameraParameters, PinholeCameraTrajectory
from ..utils.utility_functions import debug_print

def read_rows(path):
    """Returns the non-empty, non-comment lines of a text file as token lists."""
    with open_for_read(path, 'r', encoding='utf-8') as f:
        try:
            return [line.split() for line in f if line.strip() and not line.lstrip().startswith('#')]
        except UnicodeDecodeError as e:
            raise ParseError(f"file is not valid UTF-8 text: {e}", path) from e

def camera_pose(parameters):
    """Camera-to-world pose, the inverse of the stored world-to-camera extrinsic."""
    return np.linalg.inv(parameters.extrinsic)

def from_pose(pose):
    # These formats carry no intrinsics; frames get the PrimeSense default.
    return PinholeCameraParameters(PinholeCameraIntrinsic.prime_sense_default(), np.linalg.inv(pose))


class LogTrajectoryFormat(BaseFormat):
    """
    Redwood .log trajectories: per frame a metadata line `i i i+1` followed by the
    4x4 camera pose, one row per line.
    """
    extensions = ('log',)

    def read(self, path: str, **kwargs) -> PinholeCameraTrajectory:
        debug_print(f"[DEBUG] Reading LOG trajectory from {path}")
        rows = read_rows(path)
        if not rows:
            raise ParseError("trajectory file contains no frames", path)
        if len(rows) % 5 != 0:
            raise ParseError(f"{len(rows)} lines do not form complete 5-line frames", path)

        parameters = []
        for frame in range(len(rows) // 5):
            block = rows[frame * 5:(frame + 1) * 5]
            if len(block[0]) < 3 or any(len(r) != 4 for r in block[1:]):
                raise ParseError(f"frame {frame}: malformed metadata or pose rows", path)
            try:
                pose = np.array(block[1:], dtype=np.float64)
            except ValueError as e:
                raise ParseError(f"frame {frame}: {e}", path) from e
            try:
                parameters.append(from_pose(pose))
            except np.linalg.LinAlgError as e:
                raise ParseError(f"frame {frame}: singular pose matrix", path) from e

        debug_print(f"[DEBUG] Loaded {len(parameters)} frames")
        return PinholeCameraTrajectory(parameters)

    def write(self, data: PinholeCameraTrajectory, path: str, options) -> bool:
        debug_print(f"[DEBUG] Writing LOG trajectory to {path}")
        if data.is_empty():
            raise WriteError("empty trajectory", path)

        with atomic_write(path, 'w', encoding='utf-8', newline='\n') as f:
            for i, parameters in enumerate(data.parameters):
                f.write(f"{i} {i} {i + 1}\n")
                for row in camera_pose(parameters):
                    f.write("%.17g %.17g %.17g %.17g\n" % tuple(row))
        return True


class TumTrajectoryFormat(BaseFormat):
    """TUM RGB-D trajectories: `timestamp tx ty tz qx qy qz qw` per frame."""
    extensions = ('txt',)

    def read(self, path: str, **kwargs) -> PinholeCameraTrajectory:
        debug_print(f"[DEBUG] Reading TUM trajectory from {path}")
        rows = read_rows(path)
        if not rows:
            raise ParseError("trajectory file contains no frames", path)

        parameters = []
        for lineno, row in enumerate(rows):
            if len(row) != 8:
                raise ParseError(f"line {lineno}: expected 8 values, found {len(row)}", path)
            try:
                values = np.array(row[1:], dtype=np.float64)
                rotation = Rotation.from_quat(values[3:7]).as_matrix()
            except ValueError as e:
                raise ParseError(f"line {lineno}: {e}", path) from e
            pose = np.eye(4)
            pose[:3, :3] = rotation
            pose[:3, 3] = values[0:3]
            parameters.append(from_pose(pose))

        debug_print(f"[DEBUG] Loaded {len(parameters)} frames")
        return PinholeCameraTrajectory(parameters)

    def write(self, data: PinholeCameraTrajectory, path: str, options) -> bool:
        debug_print(f"[DEBUG] Writing TUM trajectory to {path}")
        if data.is_empty():
            raise WriteError("empty trajectory", path)

        with atomic_write(path, 'w', encoding='utf-8', newline='\n') as f:
            f.write("# timestamp tx ty tz qx qy qz qw\n")
            for i, parameters in enumerate(data.parameters):
                pose = camera_pose(parameters)
                quat = Rotation.from_matrix(pose[:3, :3]).as_quat()
                f.write("%d " % i + " ".join('%.17g' % v for v in (*pose[:3, 3], *quat)) + "\n")
        return True

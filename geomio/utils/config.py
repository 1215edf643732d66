"""
Geometry I/O
Copyright (c) 2023 Francesco Fugazzi

This software is released under the MIT License.
For more information about the license, please see the LICENSE file.
"""

import os

# Enables [DEBUG] trace output from debug_print.
DEBUG = os.environ.get("GEOMIO_DEBUG", "").lower() in ("1", "true", "yes")

DEFAULT_IMAGE_QUALITY = 90

# Sensor origin and orientation (tx ty tz qw qx qy qz) written to PCD headers.
PCD_VIEWPOINT = (0, 0, 0, 1, 0, 0, 0)

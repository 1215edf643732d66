"""Pytest configuration and shared fixtures."""

import shutil
import tempfile
from pathlib import Path

import numpy as np
import pytest

from geomio.registry import Registries
from geomio.structures import LineSet, PointCloud, TriangleMesh, VoxelGrid


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def registries():
    """Registries with the built-in codecs, isolated from the process-wide default."""
    return Registries.with_defaults()


@pytest.fixture
def sample_point_cloud():
    """Point cloud with normals and 8-bit representable colors."""
    rng = np.random.default_rng(0)
    num_points = 50
    points = rng.normal(size=(num_points, 3))
    normals = rng.normal(size=(num_points, 3))
    normals /= np.linalg.norm(normals, axis=1, keepdims=True)
    colors = rng.integers(0, 256, size=(num_points, 3)) / 255.0
    return PointCloud(points, normals, colors)


@pytest.fixture
def sample_mesh():
    """Unit square pyramid with per-vertex normals and colors."""
    vertices = np.array([
        [0.0, 0.0, 0.0],
        [1.0, 0.0, 0.0],
        [1.0, 1.0, 0.0],
        [0.0, 1.0, 0.0],
        [0.5, 0.5, 1.0],
    ])
    triangles = np.array([[0, 2, 1], [0, 3, 2], [0, 1, 4], [1, 2, 4], [2, 3, 4], [3, 0, 4]])
    normals = vertices - vertices.mean(axis=0)
    normals /= np.linalg.norm(normals, axis=1, keepdims=True)
    colors = np.array([[255, 0, 0], [0, 255, 0], [0, 0, 255], [255, 255, 0], [51, 102, 153]]) / 255.0
    return TriangleMesh(vertices, triangles, normals, colors)


@pytest.fixture
def sample_line_set():
    points = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [1.0, 1.0, 0.0], [0.0, 1.0, 0.25]])
    lines = np.array([[0, 1], [1, 2], [2, 3]])
    colors = np.array([[255, 0, 0], [0, 255, 0], [0, 0, 255]]) / 255.0
    return LineSet(points, lines, colors)


@pytest.fixture
def sample_voxel_grid():
    indices = np.array([[0, 0, 0], [1, 0, 0], [0, 2, 3], [-1, 4, 1]])
    colors = np.array([[10, 20, 30], [40, 50, 60], [70, 80, 90], [255, 255, 255]]) / 255.0
    return VoxelGrid(0.05, (1.5, -2.0, 0.25), indices, colors)

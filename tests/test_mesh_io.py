"""Tests for triangle mesh, line set and voxel grid codecs."""

import numpy as np
import pytest

import geomio
from geomio.errors import NotFoundError, ParseError
from geomio.structures import TriangleMesh


def assert_same_mesh(actual, expected, normals=True, colors=True):
    np.testing.assert_array_equal(actual.vertices, expected.vertices)
    np.testing.assert_array_equal(actual.triangles, expected.triangles)
    if normals:
        np.testing.assert_array_equal(actual.vertex_normals, expected.vertex_normals)
    else:
        assert not actual.has_vertex_normals()
    if colors:
        np.testing.assert_array_equal(actual.vertex_colors, expected.vertex_colors)
    else:
        assert not actual.has_vertex_colors()


class TestTriangleMeshRoundTrip:
    @pytest.mark.parametrize("write_ascii", [False, True])
    def test_ply(self, temp_dir, sample_mesh, write_ascii):
        path = temp_dir / "mesh.ply"
        assert geomio.write_triangle_mesh(path, sample_mesh, write_ascii=write_ascii)
        assert_same_mesh(geomio.read_triangle_mesh(path), sample_mesh)

    def test_ply_without_attributes(self, temp_dir, sample_mesh):
        path = temp_dir / "bare.ply"
        assert geomio.write_triangle_mesh(path, sample_mesh, write_vertex_normals=False,
                                          write_vertex_colors=False)
        assert_same_mesh(geomio.read_triangle_mesh(path), sample_mesh, normals=False, colors=False)

    def test_obj(self, temp_dir, sample_mesh):
        path = temp_dir / "mesh.obj"
        assert geomio.write_triangle_mesh(path, sample_mesh)
        assert_same_mesh(geomio.read_triangle_mesh(path), sample_mesh)

    def test_obj_without_normals(self, temp_dir, sample_mesh):
        path = temp_dir / "mesh.obj"
        assert geomio.write_triangle_mesh(path, sample_mesh, write_vertex_normals=False)
        assert "vn " not in path.read_text()
        assert_same_mesh(geomio.read_triangle_mesh(path), sample_mesh, normals=False)

    def test_off(self, temp_dir, sample_mesh):
        path = temp_dir / "mesh.off"
        assert geomio.write_triangle_mesh(path, sample_mesh)
        assert path.read_text().splitlines()[0] == "CNOFF"
        assert_same_mesh(geomio.read_triangle_mesh(path), sample_mesh)

    def test_stl_binary_and_ascii_agree(self, temp_dir, sample_mesh):
        binary_path = temp_dir / "binary.stl"
        ascii_path = temp_dir / "ascii.stl"
        assert geomio.write_triangle_mesh(binary_path, sample_mesh)
        assert geomio.write_triangle_mesh(ascii_path, sample_mesh, write_ascii=True)

        from_binary = geomio.read_triangle_mesh(binary_path)
        from_ascii = geomio.read_triangle_mesh(ascii_path)

        # STL stores every facet with its own corners.
        corners = sample_mesh.vertices[sample_mesh.triangles].reshape(-1, 3)
        np.testing.assert_array_equal(from_binary.vertices, corners)
        assert len(from_binary.triangles) == len(sample_mesh.triangles)
        assert from_binary.has_triangle_normals()

        np.testing.assert_array_equal(from_ascii.vertices, from_binary.vertices)
        np.testing.assert_array_equal(from_ascii.triangles, from_binary.triangles)
        np.testing.assert_array_equal(from_ascii.triangle_normals, from_binary.triangle_normals)

    def test_stl_computes_facet_normals(self, temp_dir):
        mesh = TriangleMesh([[0, 0, 0], [1, 0, 0], [0, 1, 0]], [[0, 1, 2]])
        path = temp_dir / "tri.stl"
        assert geomio.write_triangle_mesh(path, mesh)
        np.testing.assert_array_equal(geomio.read_triangle_mesh(path).triangle_normals, [[0, 0, 1]])


class TestTriangleMeshParsing:
    def test_obj_quads_negative_indices_and_texcoords(self, temp_dir):
        path = temp_dir / "quad.obj"
        path.write_text(
            "# quad\n"
            "o square\n"
            "v 0 0 0\nv 1 0 0\nv 1 1 0\nv 0 1 0\n"
            "vt 0 0\nvt 1 0\nvt 1 1\nvt 0 1\n"
            "vn 0 0 1\n"
            "f -4/1/1 -3/2/1 -2/3/1 -1/4/1\n"
        )
        mesh = geomio.read_triangle_mesh(path)

        np.testing.assert_array_equal(mesh.triangles, [[0, 1, 2], [0, 2, 3]])
        np.testing.assert_array_equal(mesh.vertex_normals, np.tile([0.0, 0.0, 1.0], (4, 1)))
        assert not mesh.has_vertex_colors()

    def test_off_counts_on_header_line_with_integer_colors(self, temp_dir):
        path = temp_dir / "quad.off"
        path.write_text(
            "COFF 4 1 0\n"
            "0 0 0 255 0 0 255\n"
            "1 0 0 0 255 0 255\n"
            "1 1 0 0 0 255 255\n"
            "0 1 0 255 255 255 255\n"
            "4 0 1 2 3\n"
        )
        mesh = geomio.read_triangle_mesh(path)

        np.testing.assert_array_equal(mesh.triangles, [[0, 1, 2], [0, 2, 3]])
        np.testing.assert_array_equal(mesh.vertex_colors[0], [1.0, 0.0, 0.0])
        np.testing.assert_array_equal(mesh.vertex_colors[3], [1.0, 1.0, 1.0])

    @pytest.mark.parametrize("name, content", [
        ("bad_index.obj", "v 0 0 0\nv 1 0 0\nv 0 1 0\nf 1 2 7\n"),
        ("no_vertices.obj", "# nothing here\n"),
        ("bad_coord.obj", "v 0 zero 0\n"),
        ("no_header.off", "3 1 0\n0 0 0\n1 0 0\n0 1 0\n3 0 1 2\n"),
        ("short.off", "OFF\n3 1 0\n0 0 0\n1 0 0\n"),
        ("garbage.stl", "this is neither binary nor ascii stl"),
    ])
    def test_malformed(self, temp_dir, name, content):
        path = temp_dir / name
        path.write_text(content)
        with pytest.raises(ParseError):
            geomio.read_triangle_mesh(path)

    def test_ply_face_out_of_range(self, temp_dir):
        path = temp_dir / "bad.ply"
        path.write_text(
            "ply\nformat ascii 1.0\n"
            "element vertex 3\nproperty float x\nproperty float y\nproperty float z\n"
            "element face 1\nproperty list uchar int vertex_indices\n"
            "end_header\n"
            "0 0 0\n1 0 0\n0 1 0\n"
            "3 0 1 9\n"
        )
        with pytest.raises(ParseError):
            geomio.read_triangle_mesh(path)

    def test_missing_file(self, temp_dir):
        with pytest.raises(NotFoundError):
            geomio.read_triangle_mesh(temp_dir / "absent.obj")

    def test_stl_without_triangles_is_not_written(self, temp_dir):
        mesh = TriangleMesh([[0, 0, 0], [1, 0, 0]])
        assert geomio.write_triangle_mesh(temp_dir / "points.stl", mesh) is False

    @pytest.mark.parametrize("ext", ["ply", "obj", "off", "stl"])
    def test_out_of_range_triangle_is_not_written(self, temp_dir, ext):
        mesh = TriangleMesh([[0, 0, 0], [1, 0, 0], [0, 1, 0]], [[0, 1, 5]])
        path = temp_dir / f"bad.{ext}"

        assert geomio.write_triangle_mesh(path, mesh, write_ascii=True) is False
        assert not path.exists()

    def test_negative_triangle_index_is_not_written(self, temp_dir):
        mesh = TriangleMesh([[0, 0, 0], [1, 0, 0], [0, 1, 0]], [[0, -1, 2]])
        assert geomio.write_triangle_mesh(temp_dir / "bad.obj", mesh) is False


class TestLineSet:
    @pytest.mark.parametrize("write_ascii", [False, True])
    def test_ply_round_trip(self, temp_dir, sample_line_set, write_ascii):
        path = temp_dir / "lines.ply"
        assert geomio.write_line_set(path, sample_line_set, write_ascii=write_ascii)
        lines = geomio.read_line_set(path)

        np.testing.assert_array_equal(lines.points, sample_line_set.points)
        np.testing.assert_array_equal(lines.lines, sample_line_set.lines)
        np.testing.assert_array_equal(lines.colors, sample_line_set.colors)

    def test_unsupported_extension(self, temp_dir, sample_line_set):
        assert geomio.write_line_set(temp_dir / "lines.obj", sample_line_set) is False

    def test_out_of_range_line_is_not_written(self, temp_dir, sample_line_set):
        sample_line_set.lines[-1] = [2, 4]
        path = temp_dir / "lines.ply"

        assert geomio.write_line_set(path, sample_line_set) is False
        assert not path.exists()


class TestVoxelGrid:
    @pytest.mark.parametrize("write_ascii", [False, True])
    def test_ply_round_trip(self, temp_dir, sample_voxel_grid, write_ascii):
        path = temp_dir / "voxels.ply"
        assert geomio.write_voxel_grid(path, sample_voxel_grid, write_ascii=write_ascii)
        grid = geomio.read_voxel_grid(path)

        assert grid.voxel_size == sample_voxel_grid.voxel_size
        np.testing.assert_array_equal(grid.origin, sample_voxel_grid.origin)
        np.testing.assert_array_equal(grid.grid_indices, sample_voxel_grid.grid_indices)
        np.testing.assert_array_equal(grid.colors, sample_voxel_grid.colors)

    def test_plain_point_cloud_ply_is_not_a_voxel_grid(self, temp_dir, sample_point_cloud):
        path = temp_dir / "cloud.ply"
        geomio.write_point_cloud(path, sample_point_cloud)
        with pytest.raises(ParseError):
            geomio.read_voxel_grid(path)

"""Tests for point cloud codecs and read-time filtering."""

import gzip
import os

import numpy as np
import pytest

import geomio
from geomio.errors import NotFoundError, ParseError
from geomio.processing import DataProcessor
from geomio.structures import PointCloud


def assert_same_cloud(actual, expected, normals=True, colors=True):
    np.testing.assert_array_equal(actual.points, expected.points)
    if normals:
        np.testing.assert_array_equal(actual.normals, expected.normals)
    else:
        assert not actual.has_normals()
    if colors:
        np.testing.assert_array_equal(actual.colors, expected.colors)
    else:
        assert not actual.has_colors()


class TestNonFiniteFiltering:
    """Test NaN/infinite point removal."""

    def make_cloud(self):
        points = [[0, 0, 0], [np.nan, 0, 0], [np.inf, 0, 0], [1, 1, 1]]
        colors = np.array([[10, 0, 0], [20, 0, 0], [30, 0, 0], [40, 0, 0]]) / 255.0
        normals = [[0, 0, 1], [0, 1, 0], [1, 0, 0], [0, 0, -1]]
        return PointCloud(points, normals, colors)

    def test_removes_nan_and_inf_in_order(self):
        pcd = DataProcessor(self.make_cloud()).remove_non_finite_points()

        np.testing.assert_array_equal(pcd.points, [[0, 0, 0], [1, 1, 1]])
        np.testing.assert_array_equal(pcd.colors, np.array([[10, 0, 0], [40, 0, 0]]) / 255.0)
        np.testing.assert_array_equal(pcd.normals, [[0, 0, 1], [0, 0, -1]])

    def test_nan_only(self):
        pcd = DataProcessor(self.make_cloud()).remove_non_finite_points(remove_nan=True, remove_infinite=False)
        assert len(pcd) == 3
        assert np.isinf(pcd.points[1, 0])

    def test_infinite_only(self):
        pcd = DataProcessor(self.make_cloud()).remove_non_finite_points(remove_nan=False, remove_infinite=True)
        assert len(pcd) == 3
        assert np.isnan(pcd.points[1, 0])

    def test_disabled(self):
        pcd = DataProcessor(self.make_cloud()).remove_non_finite_points(False, False)
        assert len(pcd) == 4

    def test_misaligned_attributes_are_dropped(self):
        pcd = PointCloud([[0, 0, 0], [np.nan, 0, 0], [1, 1, 1]],
                         normals=[[0, 0, 1], [0, 1, 0], [1, 0, 0]],
                         colors=[[1, 0, 0], [0, 1, 0]])
        DataProcessor(pcd).remove_non_finite_points()

        np.testing.assert_array_equal(pcd.points, [[0, 0, 0], [1, 1, 1]])
        np.testing.assert_array_equal(pcd.normals, [[0, 0, 1], [1, 0, 0]])
        assert pcd.colors is None

    def test_applied_on_read(self, temp_dir):
        path = temp_dir / "cloud.xyzrgb"
        path.write_text(
            "0 0 0 0.1 0.1 0.1\n"
            "nan 0 0 0.2 0.2 0.2\n"
            "inf 0 0 0.3 0.3 0.3\n"
            "1 1 1 0.4 0.4 0.4\n"
        )

        pcd = geomio.read_point_cloud(path)
        np.testing.assert_array_equal(pcd.points, [[0, 0, 0], [1, 1, 1]])
        np.testing.assert_array_equal(pcd.colors, [[0.1, 0.1, 0.1], [0.4, 0.4, 0.4]])

        kept = geomio.read_point_cloud(path, remove_nan_points=False, remove_infinite_points=False)
        assert len(kept) == 4


class TestPointCloudRoundTrip:
    """Written clouds read back with every field the format preserves."""

    @pytest.mark.parametrize("ext", ["ply", "pcd"])
    def test_binary_and_ascii_agree(self, temp_dir, sample_point_cloud, ext):
        binary_path = temp_dir / f"binary.{ext}"
        ascii_path = temp_dir / f"ascii.{ext}"

        assert geomio.write_point_cloud(binary_path, sample_point_cloud)
        assert geomio.write_point_cloud(ascii_path, sample_point_cloud, write_ascii=True)

        from_binary = geomio.read_point_cloud(binary_path)
        from_ascii = geomio.read_point_cloud(ascii_path)
        assert_same_cloud(from_binary, sample_point_cloud)
        assert_same_cloud(from_ascii, from_binary)

    def test_ply_ascii_is_text(self, temp_dir, sample_point_cloud):
        path = temp_dir / "cloud.ply"
        geomio.write_point_cloud(path, sample_point_cloud, write_ascii=True)
        assert b"format ascii 1.0" in path.read_bytes()[:200]

    def test_pcd_compressed(self, temp_dir, sample_point_cloud):
        path = temp_dir / "cloud.pcd"
        assert geomio.write_point_cloud(path, sample_point_cloud, compressed=True)
        assert path.read_bytes()[:2] == b"\x1f\x8b"
        assert_same_cloud(geomio.read_point_cloud(path), sample_point_cloud)

    def test_text_formats_keep_full_precision(self, temp_dir):
        pcd = PointCloud([[-0.1321048632913019, 0.1 + 0.2, 1e-300], [np.pi, -np.e, 123456789.12345679]])
        for ext in ("xyz", "xyzn", "xyzrgb", "pts"):
            path = temp_dir / f"cloud.{ext}"
            assert geomio.write_point_cloud(path, pcd)
            np.testing.assert_array_equal(geomio.read_point_cloud(path).points, pcd.points)

    def test_xyz(self, temp_dir, sample_point_cloud):
        path = temp_dir / "cloud.xyz"
        assert geomio.write_point_cloud(path, sample_point_cloud)
        assert_same_cloud(geomio.read_point_cloud(path), sample_point_cloud, normals=False, colors=False)

    def test_xyzn(self, temp_dir, sample_point_cloud):
        path = temp_dir / "cloud.xyzn"
        assert geomio.write_point_cloud(path, sample_point_cloud)
        assert_same_cloud(geomio.read_point_cloud(path), sample_point_cloud, colors=False)

    def test_xyzrgb(self, temp_dir, sample_point_cloud):
        path = temp_dir / "cloud.xyzrgb"
        assert geomio.write_point_cloud(path, sample_point_cloud)
        assert_same_cloud(geomio.read_point_cloud(path), sample_point_cloud, normals=False)

    def test_pts(self, temp_dir, sample_point_cloud):
        path = temp_dir / "cloud.pts"
        assert geomio.write_point_cloud(path, sample_point_cloud)
        assert path.read_text().splitlines()[0] == "50"
        assert_same_cloud(geomio.read_point_cloud(path), sample_point_cloud, normals=False)

    def test_points_only_ply(self, temp_dir):
        pcd = PointCloud([[1.5, 2.5, -3.0], [0.0, 0.0, 0.125]])
        path = temp_dir / "plain.ply"
        assert geomio.write_point_cloud(path, pcd)
        assert_same_cloud(geomio.read_point_cloud(path), pcd, normals=False, colors=False)

    def test_explicit_format_overrides_extension(self, temp_dir, sample_point_cloud):
        path = temp_dir / "cloud.txt"
        path.write_text("1 2 3\n4 5 6\n")
        pcd = geomio.read_point_cloud(path, format="xyz")
        np.testing.assert_array_equal(pcd.points, [[1, 2, 3], [4, 5, 6]])


class TestPcdVariants:
    """Hand-written PCD files as produced by other tools."""

    def test_ascii_float_rgb_and_columns_alias(self, temp_dir):
        packed = np.array([0x00FF8000], dtype=np.uint32).view(np.float32)[0]
        path = temp_dir / "legacy.pcd"
        path.write_text(
            "# .PCD v.5 - Point Cloud Data file format\n"
            "VERSION .5\n"
            "COLUMNS x y z rgb\n"
            "SIZE 4 4 4 4\n"
            "TYPE F F F F\n"
            "COUNT 1 1 1 1\n"
            "WIDTH 1\n"
            "HEIGHT 1\n"
            "DATA ascii\n"
            f"1 2 3 {float(packed)!r}\n"
        )

        pcd = geomio.read_point_cloud(path)
        np.testing.assert_array_equal(pcd.points, [[1, 2, 3]])
        np.testing.assert_allclose(pcd.colors, [[1.0, 128 / 255.0, 0.0]])

    def test_binary_float32(self, temp_dir):
        header = (
            "VERSION 0.7\nFIELDS x y z\nSIZE 4 4 4\nTYPE F F F\nCOUNT 1 1 1\n"
            "WIDTH 2\nHEIGHT 1\nVIEWPOINT 0 0 0 1 0 0 0\nPOINTS 2\nDATA binary\n"
        )
        body = np.array([[1, 2, 3], [4, 5, 6]], dtype="<f4").tobytes()
        path = temp_dir / "f4.pcd"
        path.write_bytes(header.encode("ascii") + body)

        pcd = geomio.read_point_cloud(path)
        np.testing.assert_array_equal(pcd.points, [[1, 2, 3], [4, 5, 6]])

    def test_gzip_detected_by_magic(self, temp_dir):
        text = (
            "VERSION 0.7\nFIELDS x y z\nSIZE 8 8 8\nTYPE F F F\nCOUNT 1 1 1\n"
            "WIDTH 1\nHEIGHT 1\nPOINTS 1\nDATA ascii\n0.5 0.25 0.125\n"
        )
        path = temp_dir / "zipped.pcd"
        path.write_bytes(gzip.compress(text.encode("ascii")))
        np.testing.assert_array_equal(geomio.read_point_cloud(path).points, [[0.5, 0.25, 0.125]])


class TestPointCloudErrors:
    def test_missing_file(self, temp_dir):
        with pytest.raises(NotFoundError):
            geomio.read_point_cloud(temp_dir / "absent.ply")

    @pytest.mark.parametrize("name, content", [
        ("garbage.ply", b"this is not a ply file\n"),
        ("garbage.pcd", b"VERSION 0.7\nFIELDS x y z\n"),
        ("empty.xyz", b""),
        ("words.xyz", b"1 2 three\n"),
        ("short.xyzn", b"1 2 3\n"),
        ("count.pts", b"5\n1 2 3\n"),
    ])
    def test_malformed_content(self, temp_dir, name, content):
        path = temp_dir / name
        path.write_bytes(content)
        with pytest.raises(ParseError):
            geomio.read_point_cloud(path)

    def test_truncated_binary_pcd(self, temp_dir):
        header = (
            "VERSION 0.7\nFIELDS x y z\nSIZE 4 4 4\nTYPE F F F\nCOUNT 1 1 1\n"
            "WIDTH 3\nHEIGHT 1\nPOINTS 3\nDATA binary\n"
        )
        path = temp_dir / "truncated.pcd"
        path.write_bytes(header.encode("ascii") + b"\x00" * 20)
        with pytest.raises(ParseError, match="truncated"):
            geomio.read_point_cloud(path)

    def test_binary_compressed_pcd_rejected(self, temp_dir):
        header = (
            "VERSION 0.7\nFIELDS x y z\nSIZE 4 4 4\nTYPE F F F\nCOUNT 1 1 1\n"
            "WIDTH 1\nHEIGHT 1\nPOINTS 1\nDATA binary_compressed\n"
        )
        path = temp_dir / "lzf.pcd"
        path.write_bytes(header.encode("ascii") + b"\x00" * 8)
        with pytest.raises(ParseError):
            geomio.read_point_cloud(path)

    def test_write_into_missing_directory(self, temp_dir, sample_point_cloud):
        path = temp_dir / "missing" / "cloud.ply"
        assert geomio.write_point_cloud(path, sample_point_cloud) is False
        assert not path.exists()

    def test_write_empty_cloud(self, temp_dir):
        path = temp_dir / "empty.ply"
        assert geomio.write_point_cloud(path, PointCloud()) is False
        assert not path.exists()

    def test_failed_write_keeps_existing_file(self, temp_dir, sample_point_cloud):
        path = temp_dir / "cloud.ply"
        path.write_bytes(b"previous")
        assert geomio.write_point_cloud(path, PointCloud()) is False
        assert path.read_bytes() == b"previous"
        assert sorted(p.name for p in temp_dir.iterdir()) == ["cloud.ply"]

    @pytest.mark.parametrize("size_line, count_line", [
        ("SIZE 4 4 four", "COUNT 1 1 1"),
        ("SIZE 4 4 4", "COUNT 1 x 1"),
    ])
    def test_non_integer_header_values(self, temp_dir, size_line, count_line):
        header = (
            f"VERSION 0.7\nFIELDS x y z\n{size_line}\nTYPE F F F\n{count_line}\n"
            "WIDTH 1\nHEIGHT 1\nPOINTS 1\nDATA binary\n"
        )
        path = temp_dir / "header.pcd"
        path.write_bytes(header.encode("ascii") + b"\x00" * 12)
        with pytest.raises(ParseError, match="must be integers"):
            geomio.read_point_cloud(path)


class TestWrittenFilePermissions:
    @pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
    @pytest.mark.parametrize("ext", ["ply", "pcd", "xyz"])
    def test_mode_matches_plain_open(self, temp_dir, sample_point_cloud, ext):
        reference = temp_dir / "reference.txt"
        with open(reference, "w") as f:
            f.write("x")
        path = temp_dir / f"cloud.{ext}"

        assert geomio.write_point_cloud(path, sample_point_cloud)
        assert path.stat().st_mode & 0o777 == reference.stat().st_mode & 0o777

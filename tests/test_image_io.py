"""Tests for the PNG and JPG image codecs."""

import numpy as np
import pytest

import geomio
from geomio.errors import ParseError
from geomio.structures import Image


@pytest.fixture
def rgb_image():
    rng = np.random.default_rng(1)
    return Image(rng.integers(0, 256, size=(12, 16, 3), dtype=np.uint8))


class TestPng:
    def test_rgb_round_trip(self, temp_dir, rgb_image):
        path = temp_dir / "img.png"
        assert geomio.write_image(path, rgb_image)
        image = geomio.read_image(path)

        np.testing.assert_array_equal(image.data, rgb_image.data)
        assert (image.width, image.height, image.num_of_channels) == (16, 12, 3)

    def test_rgba_round_trip(self, temp_dir):
        data = np.zeros((4, 5, 4), dtype=np.uint8)
        data[..., 3] = 128
        data[1, 2] = (10, 20, 30, 255)
        path = temp_dir / "alpha.png"
        assert geomio.write_image(path, Image(data))
        np.testing.assert_array_equal(geomio.read_image(path).data, data)

    def test_uint16_depth_round_trip(self, temp_dir):
        depth = np.arange(20, dtype=np.uint16).reshape(4, 5) * 3000
        path = temp_dir / "depth.png"
        assert geomio.write_image(path, Image(depth))
        image = geomio.read_image(path)

        assert image.bytes_per_channel == 2
        np.testing.assert_array_equal(image.data, depth)

    def test_unsupported_layout(self, temp_dir):
        data = np.zeros((4, 4, 2), dtype=np.uint8)
        assert geomio.write_image(temp_dir / "two.png", Image(data)) is False


class TestJpg:
    def test_round_trip_is_close(self, temp_dir):
        gradient = np.tile(np.linspace(0, 255, 32).astype(np.uint8), (32, 1))
        data = np.stack([gradient, gradient.T, np.full_like(gradient, 128)], axis=-1)
        path = temp_dir / "img.jpg"
        assert geomio.write_image(path, Image(data), quality=95)

        image = geomio.read_image(path)
        assert image.data.shape == data.shape
        assert np.abs(image.data.astype(int) - data.astype(int)).mean() < 4

    def test_jpeg_alias(self, temp_dir, rgb_image):
        path = temp_dir / "img.JPEG"
        assert geomio.write_image(path, rgb_image)
        assert geomio.read_image(path).data.shape == rgb_image.data.shape

    def test_quality_changes_size(self, temp_dir, rgb_image):
        low, high = temp_dir / "low.jpg", temp_dir / "high.jpg"
        assert geomio.write_image(low, rgb_image, quality=5)
        assert geomio.write_image(high, rgb_image, quality=100)
        assert low.stat().st_size < high.stat().st_size

    @pytest.mark.parametrize("quality", [-1, 101, 50.5])
    def test_invalid_quality(self, temp_dir, rgb_image, quality):
        path = temp_dir / "img.jpg"
        assert geomio.write_image(path, rgb_image, quality=quality) is False
        assert not path.exists()


class TestImageErrors:
    def test_content_must_match_extension(self, temp_dir, rgb_image):
        png = temp_dir / "img.png"
        geomio.write_image(png, rgb_image)
        disguised = temp_dir / "img.jpg"
        disguised.write_bytes(png.read_bytes())

        with pytest.raises(ParseError):
            geomio.read_image(disguised)

    def test_not_an_image(self, temp_dir):
        path = temp_dir / "noise.png"
        path.write_bytes(b"\x00\x01\x02 definitely not a png")
        with pytest.raises(ParseError):
            geomio.read_image(path)

    def test_empty_image_not_written(self, temp_dir):
        assert geomio.write_image(temp_dir / "empty.png", Image()) is False

"""
Geometry I/O
Copyright (c) 2023 Francesco Fugazzi

This software is released under the MIT License.
For more information about the license, please see the LICENSE file.
"""

import numpy as np
from PIL import Image as PILImage, UnidentifiedImageError
from .base import BaseFormat, open_for_read, atomic_write
from ..errors import ParseError, WriteError
from ..structures import Image
from ..utils.utility_functions import debug_print

def load_pixels(path, expected_format):
    """Decodes an image file into a uint8/uint16 array of shape (H, W) or (H, W, C)."""
    with open_for_read(path) as f:
        try:
            with PILImage.open(f) as img:
                img.load()
                found = img.format
                if img.mode in ('I', 'I;16', 'I;16B', 'I;16L'):
                    pixels = np.array(img).astype(np.uint16)
                elif img.mode in ('L', 'RGB', 'RGBA'):
                    pixels = np.array(img)
                elif img.mode in ('P', 'LA', 'PA'):
                    pixels = np.array(img.convert('RGBA' if 'transparency' in img.info or 'A' in img.mode else 'RGB'))
                elif img.mode == '1':
                    pixels = np.array(img.convert('L'))
                else:
                    pixels = np.array(img.convert('RGB'))
        except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
            raise ParseError(f"cannot decode image: {e}", path) from e

    if found != expected_format:
        raise ParseError(f"expected {expected_format} data, found {found}", path)
    if pixels.size == 0:
        raise ParseError("image has no pixels", path)
    return pixels


class PngFormat(BaseFormat):
    """8-bit gray/RGB/RGBA and 16-bit gray PNG images."""
    extensions = ('png',)

    def read(self, path: str, **kwargs) -> Image:
        debug_print(f"[DEBUG] Reading PNG file from {path}")
        return Image(load_pixels(path, 'PNG'))

    def write(self, data: Image, path: str, options) -> bool:
        debug_print(f"[DEBUG] Writing PNG file to {path}")
        if data.is_empty():
            raise WriteError("empty image", path)
        pixels = data.data
        channels = data.num_of_channels

        if pixels.dtype == np.uint16 and channels == 1:
            img = PILImage.fromarray(pixels.astype('<u2'))
        elif pixels.dtype == np.uint8 and channels in (1, 3, 4):
            img = PILImage.fromarray(pixels if pixels.ndim == 2 or channels > 1 else pixels[:, :, 0])
        else:
            raise WriteError(f"PNG cannot hold {channels} channels of {pixels.dtype}", path)

        with atomic_write(path) as f:
            img.save(f, format='PNG')
        return True


class JpgFormat(BaseFormat):
    """8-bit gray/RGB JPEG images. Honours `quality` (0-100)."""
    extensions = ('jpg', 'jpeg')

    def read(self, path: str, **kwargs) -> Image:
        debug_print(f"[DEBUG] Reading JPG file from {path}")
        return Image(load_pixels(path, 'JPEG'))

    def write(self, data: Image, path: str, options) -> bool:
        debug_print(f"[DEBUG] Writing JPG file to {path} (quality={options.quality})")
        options.validate()
        if data.is_empty():
            raise WriteError("empty image", path)
        pixels = data.data
        if pixels.dtype != np.uint8 or data.num_of_channels not in (1, 3):
            raise WriteError(f"JPG cannot hold {data.num_of_channels} channels of {pixels.dtype}", path)
        if pixels.ndim == 3 and pixels.shape[2] == 1:
            pixels = pixels[:, :, 0]

        with atomic_write(path) as f:
            PILImage.fromarray(pixels).save(f, format='JPEG', quality=options.quality)
        return True

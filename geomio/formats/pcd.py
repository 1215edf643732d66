"""
Geometry I/O
Copyright (c) 2023 Francesco Fugazzi

This software is released under the MIT License.
For more information about the license, please see the LICENSE file.
"""

import gzip
import numpy as np
from .base import BaseFormat, read_bytes, atomic_write
from ..errors import ParseError, WriteError
from ..structures import PointCloud
from ..utils import config
from ..utils.utility_functions import debug_print

class PcdFormat(BaseFormat):
    """
    Point Cloud Library PCD files (v0.7).

    Positions and normals are written as F8 so binary and ascii encodings hold the
    same values; colors are packed 0x00RRGGBB into a U4 'rgb' field. With
    `compressed`, the whole file is gzip-wrapped and detected again by its magic on read.
    """
    extensions = ('pcd',)

    GZIP_MAGIC = b'\x1f\x8b'
    NORMAL_FIELDS = ('normal_x', 'normal_y', 'normal_z')

    def read(self, path: str, **kwargs) -> PointCloud:
        debug_print(f"[DEBUG] Reading PCD file from {path}")
        raw = read_bytes(path)

        if raw[:2] == self.GZIP_MAGIC:
            try:
                raw = gzip.decompress(raw)
            except (OSError, EOFError) as e:
                raise ParseError(f"corrupt gzip stream: {e}", path) from e

        header, body = self._parse_header(raw, path)
        fields = header['FIELDS']
        num_points = self._header_int(header, 'POINTS', path)
        if num_points <= 0:
            raise ParseError("PCD file contains no points", path)

        data_kind = header['DATA'][0].lower()
        debug_print(f"[DEBUG] PCD Header: fields={fields}, points={num_points}, data={data_kind}")

        if data_kind == 'ascii':
            columns = self._read_ascii(header, body, num_points, path)
        elif data_kind == 'binary':
            columns = self._read_binary(header, body, num_points, path)
        elif data_kind == 'binary_compressed':
            raise ParseError("binary_compressed PCD data is not supported", path)
        else:
            raise ParseError(f"unknown PCD DATA type '{data_kind}'", path)

        if not all(name in columns for name in ('x', 'y', 'z')):
            raise ParseError("PCD file lacks x/y/z fields", path)

        points = np.column_stack([columns[n] for n in ('x', 'y', 'z')]).astype(np.float64)
        normals = None
        if all(n in columns for n in self.NORMAL_FIELDS):
            normals = np.column_stack([columns[n] for n in self.NORMAL_FIELDS]).astype(np.float64)
        colors = None
        for name in ('rgb', 'rgba'):
            if name in columns:
                packed = columns[name]
                colors = np.column_stack(((packed >> 16) & 0xFF, (packed >> 8) & 0xFF, packed & 0xFF)) / 255.0
                break

        return PointCloud(points, normals, colors)

    def _parse_header(self, raw, path):
        header = {}
        pos = 0
        while True:
            end = raw.find(b'\n', pos)
            if end < 0:
                raise ParseError("PCD header is not terminated by a DATA line", path)
            try:
                line = raw[pos:end].decode('ascii').strip()
            except UnicodeDecodeError as e:
                raise ParseError(f"non-ASCII bytes in PCD header at offset {pos}", path) from e
            pos = end + 1
            if not line or line.startswith('#'):
                continue
            key, _, value = line.partition(' ')
            key = key.upper()
            # COLUMNS is the pre-0.7 spelling of FIELDS.
            header['FIELDS' if key == 'COLUMNS' else key] = value.split()
            if key == 'DATA':
                break

        if 'FIELDS' not in header or not header['DATA']:
            raise ParseError("PCD header lacks FIELDS or DATA", path)
        n = len(header['FIELDS'])
        header.setdefault('SIZE', ['4'] * n)
        header.setdefault('TYPE', ['F'] * n)
        header.setdefault('COUNT', ['1'] * n)
        if 'POINTS' not in header:
            width = self._header_int(header, 'WIDTH', path)
            height = self._header_int(header, 'HEIGHT', path) if 'HEIGHT' in header else 1
            header['POINTS'] = [str(width * height)]
        for key in ('SIZE', 'TYPE', 'COUNT'):
            if len(header[key]) != n:
                raise ParseError(f"PCD {key} has {len(header[key])} entries for {n} fields", path)
        for key in ('SIZE', 'COUNT'):
            if not all(v.isdigit() for v in header[key]):
                raise ParseError(f"PCD {key} must be integers, got {' '.join(header[key])}", path)
        return header, raw[pos:]

    def _header_int(self, header, key, path):
        try:
            return int(header[key][0])
        except (KeyError, IndexError, ValueError) as e:
            raise ParseError(f"PCD header has no valid {key}", path) from e

    def _read_binary(self, header, body, num_points, path):
        dtype_list = []
        for name, size, kind, count in zip(header['FIELDS'], header['SIZE'], header['TYPE'], header['COUNT']):
            kind = kind.upper()
            if kind not in ('F', 'U', 'I'):
                raise ParseError(f"unknown PCD field type '{kind}' for '{name}'", path)
            code = {'F': 'f', 'U': 'u', 'I': 'i'}[kind]
            count = int(count)
            fmt = f'<{code}{int(size)}'
            dtype_list.append((name, fmt) if count == 1 else (name, fmt, (count,)))
        try:
            dtype = np.dtype(dtype_list)
        except (TypeError, ValueError) as e:
            raise ParseError(f"invalid PCD field layout: {e}", path) from e

        expected = dtype.itemsize * num_points
        if len(body) < expected:
            raise ParseError(f"truncated binary data: expected {expected} bytes, found {len(body)}", path)

        records = np.frombuffer(body, dtype=dtype, count=num_points)
        columns = {}
        for name in records.dtype.names:
            col = records[name]
            if name in ('rgb', 'rgba'):
                columns[name] = col.view(np.uint32) if col.dtype.kind == 'f' else col.astype(np.uint32)
            elif col.ndim == 1:
                columns[name] = col
        return columns

    def _read_ascii(self, header, body, num_points, path):
        try:
            values = np.array(body.decode('ascii').split(), dtype=np.float64)
        except (UnicodeDecodeError, ValueError) as e:
            raise ParseError(f"non-numeric ascii PCD data: {e}", path) from e

        counts = [int(c) for c in header['COUNT']]
        width = sum(counts)
        if values.size < width * num_points:
            raise ParseError(f"ascii PCD holds {values.size // width} of {num_points} points", path)
        table = values[:width * num_points].reshape(num_points, width)

        columns = {}
        offset = 0
        for name, kind, count in zip(header['FIELDS'], header['TYPE'], counts):
            if count == 1:
                col = table[:, offset]
                if name in ('rgb', 'rgba'):
                    col = (col.astype(np.float32).view(np.uint32) if kind.upper() == 'F'
                           else col.astype(np.uint32))
                columns[name] = col
            offset += count
        return columns

    def write(self, data: PointCloud, path: str, options) -> bool:
        debug_print(f"[DEBUG] Writing PCD file to {path}")
        if data.is_empty():
            raise WriteError("empty point cloud", path)

        n = len(data)
        fields, sizes, types = ['x', 'y', 'z'], ['8'] * 3, ['F'] * 3
        dtype = [('x', '<f8'), ('y', '<f8'), ('z', '<f8')]
        if data.has_normals():
            fields += list(self.NORMAL_FIELDS)
            sizes += ['8'] * 3
            types += ['F'] * 3
            dtype += [(name, '<f8') for name in self.NORMAL_FIELDS]
        if data.has_colors():
            fields.append('rgb')
            sizes.append('4')
            types.append('U')
            dtype.append(('rgb', '<u4'))

        records = np.zeros(n, dtype=dtype)
        for i, name in enumerate(('x', 'y', 'z')):
            records[name] = data.points[:, i]
        if data.has_normals():
            for i, name in enumerate(self.NORMAL_FIELDS):
                records[name] = data.normals[:, i]
        if data.has_colors():
            rgb = np.round(np.clip(data.colors, 0.0, 1.0) * 255.0).astype(np.uint32)
            records['rgb'] = (rgb[:, 0] << 16) | (rgb[:, 1] << 8) | rgb[:, 2]

        header = "\n".join([
            "# .PCD v0.7 - Point Cloud Data file format",
            "VERSION 0.7",
            "FIELDS " + " ".join(fields),
            "SIZE " + " ".join(sizes),
            "TYPE " + " ".join(types),
            "COUNT " + " ".join(['1'] * len(fields)),
            f"WIDTH {n}",
            "HEIGHT 1",
            "VIEWPOINT " + " ".join(str(v) for v in config.PCD_VIEWPOINT),
            f"POINTS {n}",
            "DATA " + ("ascii" if options.write_ascii else "binary"),
        ]) + "\n"

        if options.write_ascii:
            lines = [" ".join(self._ascii_value(row[name]) for name in fields) for row in records]
            body = ("\n".join(lines) + "\n").encode('ascii')
        else:
            body = records.tobytes()

        payload = header.encode('ascii') + body
        if options.compressed:
            payload = gzip.compress(payload)

        with atomic_write(path) as f:
            f.write(payload)
        debug_print(f"[DEBUG] PCD write completed. {n} points.")
        return True

    @staticmethod
    def _ascii_value(value):
        if np.issubdtype(type(value), np.integer):
            return str(int(value))
        return '%.17g' % value

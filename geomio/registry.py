"""
Geometry I/O
Copyright (c) 2023 Francesco Fugazzi

This software is released under the MIT License.
For more information about the license, please see the LICENSE file.
"""

import os
import threading
from enum import Enum
from .errors import UnknownFormatError, UnsupportedFormatError
from .formats import (
    PlyPointCloudFormat, PlyTriangleMeshFormat, PlyLineSetFormat, PlyVoxelGridFormat,
    PcdFormat, XyzFormat, XyznFormat, XyzrgbFormat, PtsFormat,
    ObjFormat, OffFormat, StlFormat, PngFormat, JpgFormat,
    LogTrajectoryFormat, TumTrajectoryFormat, FeatureBinFormat, JsonConvertibleFormat,
)
from .structures import PinholeCameraTrajectory, PoseGraph
from .utils.utility_functions import debug_print

AUTO = 'auto'

class EntityKind(str, Enum):
    POINT_CLOUD = 'point_cloud'
    TRIANGLE_MESH = 'triangle_mesh'
    LINE_SET = 'line_set'
    VOXEL_GRID = 'voxel_grid'
    IMAGE = 'image'
    PINHOLE_CAMERA_TRAJECTORY = 'pinhole_camera_trajectory'
    POSE_GRAPH = 'pose_graph'
    FEATURE = 'feature'


def normalize_tag(tag):
    """Case-insensitive, dot-insensitive form of a format tag: '.PLY' -> 'ply'."""
    return str(tag).strip().lower().lstrip('.')


class Inferred:
    """Format selection that derives the tag from the filename extension."""

    def __eq__(self, other):
        return isinstance(other, Inferred)

    def __hash__(self):
        return hash(Inferred)

    def __repr__(self):
        return 'INFERRED'


INFERRED = Inferred()


class Explicit:
    """Format selection naming a tag directly, even one spelled 'auto'."""

    def __init__(self, tag):
        self.tag = normalize_tag(tag)

    def __eq__(self, other):
        return isinstance(other, Explicit) and other.tag == self.tag

    def __hash__(self):
        return hash((Explicit, self.tag))

    def __repr__(self):
        return f"Explicit({self.tag!r})"


def parse_format(fmt):
    """Maps the public `format` argument onto INFERRED or Explicit(tag)."""
    if isinstance(fmt, (Inferred, Explicit)):
        return fmt
    if fmt is None or normalize_tag(fmt) == AUTO:
        return INFERRED
    return Explicit(fmt)


def extension_of(filename):
    """
    Text after the last dot of the basename, normalized; '' when there is none.

    A bare '.ply' counts as extension 'ply'.
    """
    base = os.path.basename(os.fspath(filename))
    dot = base.rfind('.')
    return normalize_tag(base[dot + 1:]) if dot >= 0 else ''


def infer_format(filename, registry):
    """
    Canonical tag for `filename` within `registry`.

    Only the final suffix counts ('scan.backup.PLY' -> 'ply'); aliases such as
    'jpeg' resolve to their canonical tag. Raises UnknownFormatError otherwise.
    """
    tag = registry.canonical(extension_of(filename))
    if tag is None:
        raise UnknownFormatError(filename, registry.kind.value)
    return tag


class FormatRegistry:
    """
    Format tag -> codec mapping for one EntityKind.

    Lookups read an immutable snapshot without locking; register/unregister
    publish a new snapshot under a lock, so resolution is safe while codecs are
    being swapped from another thread.
    """

    def __init__(self, kind):
        self.kind = EntityKind(kind)
        self._lock = threading.Lock()
        # (codecs: tag -> codec, aliases: alias -> tag), replaced as a whole.
        self._state = ({}, {})

    def register(self, tag, codec, aliases=()):
        """Registers `codec` for `tag` (and aliases), replacing any previous codec for it."""
        tag = normalize_tag(tag)
        if not tag:
            raise ValueError(f"invalid format tag {tag!r}")
        if not callable(getattr(codec, 'read', None)) or not callable(getattr(codec, 'write', None)):
            raise TypeError(f"codec for '{tag}' must provide read() and write()")

        with self._lock:
            codecs, alias_map = dict(self._state[0]), dict(self._state[1])
            replaced = tag in codecs
            codecs[tag] = codec
            alias_map.pop(tag, None)
            for alias in aliases:
                alias = normalize_tag(alias)
                if alias != tag:
                    alias_map[alias] = tag
            self._state = (codecs, alias_map)

        debug_print(f"[DEBUG] {'Replaced' if replaced else 'Registered'} {self.kind.value} format "
                    f"'{tag}' -> {codec!r}")

    def register_codec(self, codec):
        """Registers a codec under its declared extensions; the first is the tag."""
        self.register(codec.extensions[0], codec, codec.extensions[1:])

    def unregister(self, tag):
        tag = normalize_tag(tag)
        with self._lock:
            codecs, alias_map = dict(self._state[0]), dict(self._state[1])
            codecs.pop(tag, None)
            alias_map = {a: t for a, t in alias_map.items() if t != tag and a != tag}
            self._state = (codecs, alias_map)

    def canonical(self, tag):
        """Registered tag for `tag` or one of its aliases, else None."""
        codecs, alias_map = self._state
        tag = normalize_tag(tag)
        tag = alias_map.get(tag, tag)
        return tag if tag in codecs else None

    def get(self, tag):
        codecs, alias_map = self._state
        tag = normalize_tag(tag)
        return codecs.get(alias_map.get(tag, tag))

    def resolve(self, selection=INFERRED, filename=None):
        """
        Returns the codec for an explicit tag, or for the tag inferred from `filename`.

        Raises:
            UnknownFormatError: inference found no registered tag for the extension.
            UnsupportedFormatError: no codec is registered for the explicit tag.
        """
        selection = parse_format(selection)
        if isinstance(selection, Inferred):
            if filename is None:
                raise UnknownFormatError('<no filename>', self.kind.value)
            tag = infer_format(filename, self)
        else:
            tag = selection.tag

        codec = self.get(tag)
        if codec is None:
            raise UnsupportedFormatError(tag, self.kind.value, self.tags())
        debug_print(f"[DEBUG] Resolved {self.kind.value} format '{tag}' -> {codec!r}")
        return codec

    def tags(self):
        return sorted(self._state[0])

    def __contains__(self, tag):
        return self.canonical(tag) is not None

    def __len__(self):
        return len(self._state[0])

    def __repr__(self):
        return f"FormatRegistry({self.kind.value}: {', '.join(self.tags())})"


class Registries:
    """One FormatRegistry per EntityKind. Pass an instance around to isolate registrations."""

    def __init__(self):
        self._registries = {kind: FormatRegistry(kind) for kind in EntityKind}

    def __getitem__(self, kind):
        return self._registries[EntityKind(kind)]

    def describe(self):
        return {kind.value: registry.tags() for kind, registry in self._registries.items()}

    @classmethod
    def with_defaults(cls):
        registries = cls()
        register_builtin_formats(registries)
        return registries


def register_builtin_formats(registries):
    """Registers every codec shipped with geomio into `registries`."""
    builtins = {
        EntityKind.POINT_CLOUD: [PlyPointCloudFormat(), PcdFormat(), XyzFormat(), XyznFormat(),
                                 XyzrgbFormat(), PtsFormat()],
        EntityKind.TRIANGLE_MESH: [PlyTriangleMeshFormat(), ObjFormat(), OffFormat(), StlFormat()],
        EntityKind.LINE_SET: [PlyLineSetFormat()],
        EntityKind.VOXEL_GRID: [PlyVoxelGridFormat()],
        EntityKind.IMAGE: [PngFormat(), JpgFormat()],
        EntityKind.PINHOLE_CAMERA_TRAJECTORY: [JsonConvertibleFormat(PinholeCameraTrajectory),
                                               LogTrajectoryFormat(), TumTrajectoryFormat()],
        EntityKind.POSE_GRAPH: [JsonConvertibleFormat(PoseGraph)],
        EntityKind.FEATURE: [FeatureBinFormat()],
    }
    for kind, codecs in builtins.items():
        for codec in codecs:
            registries[kind].register_codec(codec)


_default_registries = None
_default_lock = threading.Lock()

def default_registries():
    """Process-wide Registries holding the built-in codecs, created on first use."""
    global _default_registries
    if _default_registries is None:
        with _default_lock:
            if _default_registries is None:
                _default_registries = Registries.with_defaults()
    return _default_registries

"""
Geometry I/O
Copyright (c) 2023 Francesco Fugazzi

This software is released under the MIT License.
For more information about the license, please see the LICENSE file.
"""

import os
import tempfile
import numpy as np
from abc import ABC, abstractmethod
from contextlib import contextmanager
from ..errors import NotFoundError, PermissionDeniedError, WriteError

class BaseFormat(ABC):
    # File extensions handled by this codec. The first one is the canonical format tag.
    extensions = ()

    @abstractmethod
    def read(self, path: str, **kwargs):
        """
        Reads the file and returns a populated entity.

        Args:
            path (str): Path to the file.
            **kwargs: Additional arguments.

        Returns:
            The entity read from the file.

        Raises:
            NotFoundError, PermissionDeniedError: The file cannot be opened.
            ParseError: The content is malformed or holds no data.
        """
        pass

    @abstractmethod
    def write(self, data, path: str, options) -> bool:
        """
        Writes the entity to the file.

        Args:
            data: Entity to serialize.
            path (str): Path to the output file.
            options (WriteOptions): Encoding options; unknown fields are ignored.

        Returns:
            bool: True once the file is in place.

        Raises:
            WriteError: Serialization or I/O failed. No file is left at `path`.
        """
        pass

    def __repr__(self):
        return f"{type(self).__name__}({', '.join(self.extensions)})"


@contextmanager
def open_for_read(path, mode='rb', **kwargs):
    """Opens `path` for reading, mapping OS failures onto the geomio taxonomy."""
    try:
        f = open(path, mode, **kwargs)
    except FileNotFoundError as e:
        raise NotFoundError(path) from e
    except IsADirectoryError as e:
        raise NotFoundError(path) from e
    except PermissionError as e:
        raise PermissionDeniedError(path) from e
    with f:
        yield f


def read_bytes(path):
    with open_for_read(path, 'rb') as f:
        return f.read()


# Temporary files are created 0600; finished outputs get the usual open() permissions.
_UMASK = os.umask(0)
os.umask(_UMASK)
FILE_MODE = 0o666 & ~_UMASK


@contextmanager
def atomic_write(path, mode='wb', **kwargs):
    """
    Yields a file object for a temporary sibling of `path`.

    The temporary file replaces `path` only when the block completes; on any
    exception it is removed and the error surfaces as WriteError.
    """
    directory = os.path.dirname(os.path.abspath(path))
    try:
        tmp = tempfile.NamedTemporaryFile(mode, dir=directory, prefix='.' + os.path.basename(path) + '.',
                                          suffix='.tmp', delete=False, **kwargs)
    except OSError as e:
        raise WriteError(f"cannot create output file: {e.strerror or e}", path) from e

    try:
        with tmp:
            yield tmp
        os.chmod(tmp.name, FILE_MODE)
        os.replace(tmp.name, path)
    except BaseException as e:
        if os.path.exists(tmp.name):
            os.unlink(tmp.name)
        if isinstance(e, WriteError) or not isinstance(e, Exception):
            raise
        raise WriteError(str(e), path) from e


def check_indices(indices, count, what, path):
    """Raises WriteError when `indices` reference anything outside [0, count)."""
    indices = np.asarray(indices)
    if indices.size and (indices.min() < 0 or indices.max() >= count):
        raise WriteError(f"{what} reference vertices outside [0, {count})", path)

"""
Geometry I/O
Copyright (c) 2023 Francesco Fugazzi

This software is released under the MIT License.
For more information about the license, please see the LICENSE file.
"""

class GeomIOError(Exception):
    """Base class for every error raised by geomio."""


class UnknownFormatError(GeomIOError, ValueError):
    """The filename extension does not map to any registered format."""

    def __init__(self, filename, kind=None):
        self.filename = filename
        self.kind = kind
        where = f" for {kind}" if kind else ""
        super().__init__(f"Cannot infer a format{where} from filename '{filename}'")


class UnsupportedFormatError(GeomIOError, ValueError):
    """No codec is registered for the requested format tag."""

    def __init__(self, tag, kind=None, available=None):
        self.tag = tag
        self.kind = kind
        msg = f"Unsupported format: '{tag}'"
        if kind:
            msg += f" for {kind}"
        if available:
            msg += f". Supported: {', '.join(available)}"
        super().__init__(msg)


class NotFoundError(GeomIOError, FileNotFoundError):
    def __init__(self, path):
        self.path = path
        super().__init__(f"File not found: {path}")


class PermissionDeniedError(GeomIOError, PermissionError):
    def __init__(self, path):
        self.path = path
        super().__init__(f"Permission denied: {path}")


class ParseError(GeomIOError, ValueError):
    """The file exists but its content is structurally invalid."""

    def __init__(self, detail, path=None):
        self.detail = detail
        self.path = path
        super().__init__(f"{path}: {detail}" if path else detail)


class WriteError(GeomIOError, OSError):
    def __init__(self, detail, path=None):
        self.detail = detail
        self.path = path
        super().__init__(f"{path}: {detail}" if path else detail)


class ValidationError(GeomIOError, ValueError):
    """Reserved for content-level checks beyond NaN/infinite filtering."""

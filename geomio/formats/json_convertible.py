"""
Geometry I/O
Copyright (c) 2023 Francesco Fugazzi

This software is released under the MIT License.
For more information about the license, please see the LICENSE file.
"""

import json
from .base import BaseFormat, open_for_read, atomic_write
from ..errors import ParseError, WriteError
from ..utils.utility_functions import debug_print

class JsonConvertibleFormat(BaseFormat):
    """
    JSON codec for any entity class exposing `to_json()` and classmethod `from_json(value)`.

    Camera intrinsics and parameters use it directly, outside the format registries;
    trajectories and pose graphs register an instance under their 'json' tag.
    """
    extensions = ('json',)

    def __init__(self, entity_cls):
        self.entity_cls = entity_cls

    def read(self, path: str, **kwargs):
        debug_print(f"[DEBUG] Reading {self.entity_cls.__name__} JSON from {path}")
        with open_for_read(path, 'r', encoding='utf-8') as f:
            try:
                value = json.load(f)
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                raise ParseError(f"invalid JSON: {e}", path) from e

        try:
            entity = self.entity_cls.from_json(value)
        except ParseError as e:
            raise ParseError(e.detail, path) from e
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ParseError(f"cannot convert JSON to {self.entity_cls.__name__}: {e}", path) from e
        if hasattr(entity, 'is_empty') and entity.is_empty():
            raise ParseError(f"JSON holds an empty {self.entity_cls.__name__}", path)
        return entity

    def write(self, data, path: str, options=None) -> bool:
        debug_print(f"[DEBUG] Writing {type(data).__name__} JSON to {path}")
        if not isinstance(data, self.entity_cls):
            raise WriteError(f"expected {self.entity_cls.__name__}, got {type(data).__name__}", path)
        if hasattr(data, 'is_empty') and data.is_empty():
            raise WriteError(f"empty {type(data).__name__}", path)

        with atomic_write(path, 'w', encoding='utf-8', newline='\n') as f:
            json.dump(data.to_json(), f, indent=4)
            f.write("\n")
        return True

    def __repr__(self):
        return f"JsonConvertibleFormat({self.entity_cls.__name__})"

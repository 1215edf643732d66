"""
Geometry I/O
Copyright (c) 2023 Francesco Fugazzi

This software is released under the MIT License.
For more information about the license, please see the LICENSE file.
"""

import os
from tqdm import tqdm
from . import facade
from .options import ReadOptions, WriteOptions
from .processing import DataProcessor
from .registry import EntityKind, default_registries, extension_of
from .utils.utility_functions import debug_print, status_print

class Converter:
    """Reads one file of a given entity kind and writes it back out in another format."""

    def __init__(self, input_path, output_path, kind=EntityKind.POINT_CLOUD, input_format='auto',
                 registries=None):
        self.input_path = input_path
        self.output_path = output_path
        self.kind = EntityKind(kind)
        self.input_format = input_format
        self.registries = registries if registries is not None else default_registries()

        # Early validation of the target so a bad extension fails before any reading.
        target = extension_of(output_path)
        if target not in self.registries[self.kind]:
            supported = ', '.join(self.registries[self.kind].tags())
            raise ValueError(f"Unknown target format '{target}' for {self.kind.value}. Supported: {supported}")

        self.data = None

    def load_source_only(self, read_options=None):
        """Reads the source without converting. Read errors propagate."""
        read_options = read_options or ReadOptions()
        self.data = facade.read_entity(self.kind, self.input_path, self.input_format, self.registries)
        if self.kind is EntityKind.POINT_CLOUD:
            DataProcessor(self.data).remove_non_finite_points(read_options.remove_nan_points,
                                                              read_options.remove_infinite_points)
        return self.data

    def run(self, read_options=None, write_options=None):
        """Performs the conversion and returns the writer's boolean result."""
        debug_print(f"[DEBUG] Starting conversion: {self.input_path} -> {self.output_path} ({self.kind.value})")

        with tqdm(total=100, desc="Converting", leave=False,
                  bar_format='{desc}: {percentage:3.0f}% |{bar}| {n_fmt}/{total_fmt}') as pbar:
            pbar.set_description("Reading Source")
            self.load_source_only(read_options)
            pbar.update(50)

            pbar.set_description("Writing Output")
            ok = facade.write_entity(self.kind, self.output_path, self.data,
                                     write_options or WriteOptions(), self.registries)
            pbar.update(50)

        if ok:
            status_print(f"Conversion completed and saved to {os.path.abspath(self.output_path)}.")
        return ok

"""
Geometry I/O
Copyright (c) 2023 Francesco Fugazzi

This software is released under the MIT License.
For more information about the license, please see the LICENSE file.
"""

import argparse
import os
import sys
from tqdm import tqdm
from . import __version__
from .converter import Converter
from .errors import GeomIOError
from .options import ReadOptions, WriteOptions
from .registry import EntityKind, normalize_tag
from .utils import config
from .utils.argument_actions import AboutAction, ListFormatsAction, QualityAction
from .utils.utility_functions import debug_print, status_print

def build_parser():
    parser = argparse.ArgumentParser(prog="geomio", description="Convert geometry files between formats.")

    # Arguments for input and output
    parser.add_argument("--input", "-i", nargs="+", required=True, help="Path(s) to the source file(s).")
    parser.add_argument("--output", "-o", required=True, help="Output file, or output directory when several inputs are given.")
    parser.add_argument("--kind", "-k", choices=[k.value for k in EntityKind], default=EntityKind.POINT_CLOUD.value, help="Entity kind stored in the input files (default: point_cloud).")
    parser.add_argument("--input_format", default="auto", help="Input format tag; 'auto' infers it from the extension.")
    parser.add_argument("--target_format", "-f", help="Output extension; required when converting several inputs.")
    parser.add_argument("--debug", "-d", action="store_true", help="Enable debug prints.")
    parser.add_argument("--about", action=AboutAction, help="Show copyright and license info")
    parser.add_argument("--list_formats", action=ListFormatsAction, help="List the registered formats per entity kind and exit.")

    # Write options
    parser.add_argument("--write_ascii", action="store_true", help="Write the text variant of the format when one exists.")
    parser.add_argument("--compressed", action="store_true", help="Compress the output when the format supports it.")
    parser.add_argument("--quality", action=QualityAction, default=config.DEFAULT_IMAGE_QUALITY, help="JPEG quality, 0-100.")
    parser.add_argument("--no_vertex_normals", action="store_true", help="Do not write mesh vertex normals.")
    parser.add_argument("--no_vertex_colors", action="store_true", help="Do not write mesh vertex colors.")

    # Read options
    parser.add_argument("--keep_nan", action="store_true", help="Keep points with NaN coordinates.")
    parser.add_argument("--keep_infinite", action="store_true", help="Keep points with infinite coordinates.")
    return parser

def _output_paths(args, parser):
    if len(args.input) == 1:
        return [(args.input[0], args.output)]

    if not args.target_format:
        parser.error("--target_format is required when converting several inputs.")
    if os.path.exists(args.output) and not os.path.isdir(args.output):
        parser.error(f"{args.output} is not a directory.")
    os.makedirs(args.output, exist_ok=True)

    ext = normalize_tag(args.target_format)
    pairs = []
    for path in args.input:
        stem = os.path.splitext(os.path.basename(path))[0]
        pairs.append((path, os.path.join(args.output, f"{stem}.{ext}")))
    return pairs

def main(argv=None):
    print(f"Geometry I/O: {__version__}")

    parser = build_parser()
    args = parser.parse_args(argv)

    config.DEBUG = args.debug

    read_options = ReadOptions(remove_nan_points=not args.keep_nan,
                               remove_infinite_points=not args.keep_infinite)
    write_options = WriteOptions(write_ascii=args.write_ascii, compressed=args.compressed,
                                 quality=args.quality,
                                 write_vertex_normals=not args.no_vertex_normals,
                                 write_vertex_colors=not args.no_vertex_colors)
    debug_print(f"[DEBUG] {read_options!r} {write_options!r}")

    pairs = _output_paths(args, parser)
    failures = 0
    for src, dst in tqdm(pairs, desc="Files", disable=len(pairs) == 1):
        try:
            converter = Converter(src, dst, kind=args.kind, input_format=args.input_format)
            ok = converter.run(read_options, write_options)
        except (GeomIOError, OSError, ValueError) as e:
            status_print(f"Error: {src}: {e}")
            ok = False
        if not ok:
            failures += 1

    if failures:
        status_print(f"{failures} of {len(pairs)} conversion(s) failed.")
        return 1
    return 0

if __name__ == "__main__":
    sys.exit(main())

"""
Geometry I/O
Copyright (c) 2023 Francesco Fugazzi

This software is released under the MIT License.
For more information about the license, please see the LICENSE file.
"""

import argparse
from ..registry import default_registries

class QualityAction(argparse.Action):
    def __call__(self, parser, args, values, option_string=None):
        try:
            quality = int(values)
        except ValueError:
            parser.error("--quality must be an integer.")
        if not 0 <= quality <= 100:
            parser.error("--quality must be between 0 and 100.")
        setattr(args, self.dest, quality)

class ListFormatsAction(argparse.Action):
    def __init__(self, option_strings, dest, nargs=0, **kwargs):
        super().__init__(option_strings, dest, nargs=0, **kwargs)

    def __call__(self, parser, namespace, values, option_string=None):
        for kind, tags in default_registries().describe().items():
            print(f"{kind:<28} {', '.join(tags)}")
        parser.exit()

class AboutAction(argparse.Action):
    def __init__(self, option_strings, dest, nargs=0, **kwargs):
        super().__init__(option_strings, dest, nargs=0, **kwargs)

    def __call__(self, parser, namespace, values, option_string=None):
        copyright_info = """
        Geometry I/O
        Copyright (c) 2023 Francesco Fugazzi

        This software is released under the MIT License.
        For more information about the license, please see the LICENSE file.
        """
        print(copyright_info)
        parser.exit()  # Exit after displaying the information.

"""
diskspec partitioning language.

Parsers for the colon-delimited partitioning operations and the pipeline
that applies them to a disk topology in dependency order.
"""

from diskspec.spec.filesystem import FsChoice, LvmFs, PlainFs, parse_fs
from diskspec.spec.flags import parse_flags
from diskspec.spec.pipeline import DiskArguments, configure_disks
from diskspec.spec.sector import parse_sector

__all__ = [
    "DiskArguments",
    "FsChoice",
    "LvmFs",
    "PlainFs",
    "configure_disks",
    "parse_flags",
    "parse_fs",
    "parse_sector",
]

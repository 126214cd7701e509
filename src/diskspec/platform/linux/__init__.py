"""
diskspec Linux platform probe.

Resolves disks using lsblk; never modifies a device.
"""

from diskspec.platform.linux.parsers import (
    build_disk_from_lsblk,
    parse_lsblk_json,
    parse_partition_table,
)
from diskspec.platform.linux.probe import LinuxProbe

__all__ = [
    "LinuxProbe",
    "build_disk_from_lsblk",
    "parse_lsblk_json",
    "parse_partition_table",
]

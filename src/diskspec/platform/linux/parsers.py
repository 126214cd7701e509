"""
Linux output parsers.

Parsers for lsblk output.
"""

from __future__ import annotations

import json
import re
from typing import Any

from diskspec.core.models import FileSystemType, PartitionInfo, PartitionTable
from diskspec.core.topology import Disk


def parse_lsblk_json(output: str) -> list[dict[str, Any]]:
    """Parse JSON output from lsblk."""
    try:
        data = json.loads(output)
        return data.get("blockdevices", [])
    except json.JSONDecodeError:
        return []


def parse_partition_table(pttype: str | None) -> PartitionTable | None:
    """Parse partition table type."""
    if not pttype:
        return None

    pttype_lower = pttype.lower()
    if pttype_lower == "gpt":
        return PartitionTable.GPT
    elif pttype_lower in ("dos", "mbr", "msdos"):
        return PartitionTable.MSDOS

    return None


def parse_int(value: Any, default: int = 0) -> int:
    """lsblk reports numbers as ints or strings depending on its version."""
    if isinstance(value, int):
        return value
    try:
        return int(value)
    except (ValueError, TypeError):
        return default


def build_disk_from_lsblk(block: dict[str, Any]) -> Disk:
    """Build a Disk from lsblk block device data."""
    device_path = block.get("path", block.get("name", ""))
    if not device_path.startswith("/dev/"):
        device_path = f"/dev/{device_path}"

    sector_size = parse_int(block.get("log-sec"), 512) or 512
    disk = Disk(
        device_path=device_path,
        sectors=parse_int(block.get("size")) // sector_size,
        sector_size=sector_size,
        model=block.get("model", "Unknown").strip() if block.get("model") else "Unknown",
        table=parse_partition_table(block.get("pttype")),
    )

    for child in block.get("children", []):
        partition = build_partition_from_lsblk(child, sector_size)
        if partition:
            disk.partitions.append(partition)

    return disk


def build_partition_from_lsblk(block: dict[str, Any], sector_size: int) -> PartitionInfo | None:
    """Build a PartitionInfo from lsblk child device data."""
    device_path = block.get("path", block.get("name", ""))
    if not device_path.startswith("/dev/"):
        device_path = f"/dev/{device_path}"

    # Skip non-partition types
    block_type = block.get("type", "")
    if block_type not in ("part", "partition", ""):
        return None

    part_num_match = re.search(r"(\d+)$", device_path)
    if not part_num_match:
        return None

    fstype = block.get("fstype")
    start = parse_int(block.get("start"))
    sectors = parse_int(block.get("size")) // sector_size

    return PartitionInfo(
        device_path=device_path,
        number=int(part_num_match.group(1)),
        start_sector=start,
        end_sector=start + max(sectors, 1) - 1,
        filesystem=FileSystemType.from_string(fstype) if fstype else None,
    )

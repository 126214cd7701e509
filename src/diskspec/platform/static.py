"""
Static disk layouts.

Serves disks from a JSON layout file or from prebuilt topology disks,
for planning against hardware that is not attached and for tests.
"""

from __future__ import annotations

import copy
import json
from collections.abc import Iterable
from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator

from diskspec.core.logging import get_logger
from diskspec.core.models import (
    FileSystemType,
    PartitionFlag,
    PartitionInfo,
    PartitionTable,
    PartitionType,
)
from diskspec.core.topology import Disk
from diskspec.platform.base import DiskProbe

logger = get_logger(__name__)


class PartitionLayout(BaseModel):
    """An existing partition in a layout file."""

    number: int = Field(ge=1)
    start_sector: int = Field(ge=0)
    end_sector: int = Field(ge=0)
    part_type: PartitionType = PartitionType.PRIMARY
    filesystem: FileSystemType | None = None
    name: str | None = None
    flags: list[PartitionFlag] = Field(default_factory=list)

    @field_validator("filesystem", mode="before")
    @classmethod
    def parse_filesystem(cls, v: str | FileSystemType | None) -> FileSystemType | None:
        if v is None or isinstance(v, FileSystemType):
            return v
        return FileSystemType.from_string(v)

    @model_validator(mode="after")
    def check_geometry(self) -> PartitionLayout:
        if self.start_sector >= self.end_sector:
            raise ValueError("start_sector must be before end_sector")
        return self


class DiskLayout(BaseModel):
    """A disk in a layout file."""

    device_path: str
    sectors: int = Field(gt=0)
    sector_size: int = Field(default=512, ge=512)
    model: str = "Unknown"
    table: PartitionTable | None = None
    partitions: list[PartitionLayout] = Field(default_factory=list)

    @field_validator("device_path")
    @classmethod
    def add_dev_prefix(cls, v: str) -> str:
        return v if v.startswith("/dev/") else f"/dev/{v}"

    def to_disk(self) -> Disk:
        disk = Disk(
            device_path=self.device_path,
            sectors=self.sectors,
            sector_size=self.sector_size,
            model=self.model,
            table=self.table,
        )
        for part in self.partitions:
            disk.partitions.append(
                PartitionInfo(
                    device_path=disk.partition_path(part.number),
                    number=part.number,
                    start_sector=part.start_sector,
                    end_sector=part.end_sector,
                    part_type=part.part_type,
                    filesystem=part.filesystem,
                    name=part.name,
                    flags=list(part.flags),
                )
            )
        return disk


class LayoutFile(BaseModel):
    """Top-level layout file."""

    disks: list[DiskLayout] = Field(default_factory=list)


class StaticProbe(DiskProbe):
    """Probe over a fixed set of disks."""

    def __init__(self, disks: Iterable[Disk]) -> None:
        self._disks = list(disks)

    @property
    def name(self) -> str:
        return "static"

    def get_disk(self, name: str) -> Disk | None:
        for disk in self._disks:
            if disk.matches(name):
                # Planning mutates the disk; keep the source layout intact.
                return copy.deepcopy(disk)
        logger.debug("Disk not in static layout", disk=name)
        return None


def load_layout(path: Path) -> StaticProbe:
    """Load a JSON layout file into a static probe."""
    with open(path) as f:
        data = json.load(f)
    layout = LayoutFile.model_validate(data)
    logger.info("Loaded disk layout", path=str(path), disks=len(layout.disks))
    return StaticProbe(d.to_disk() for d in layout.disks)

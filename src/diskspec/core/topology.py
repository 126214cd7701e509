"""
diskspec topology model.

In-memory representation of physical disks, their partitions and the
LVM volume groups built on top of them. All mutations happen in memory;
nothing here touches a device.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from diskspec.core.errors import (
    DuplicateLogicalVolume,
    InvalidGeometry,
    LogicalPartitionOnGpt,
    MissingPartitionTable,
    PartitionNotFound,
    PartitionOutOfBounds,
    PrimaryPartitionsExceeded,
    SectorOverlaps,
)
from diskspec.core.logging import get_logger
from diskspec.core.models import (
    LvmEncryption,
    PartitionBuilder,
    PartitionInfo,
    PartitionTable,
    PartitionType,
    Sector,
)

logger = get_logger(__name__)

# Space kept free at both ends of a physical disk for alignment and the
# backup GPT header.
RESERVED_BYTES = 2 * 1024 * 1024
MSDOS_MAX_PRIMARY = 4


@dataclass
class Disk:
    """A physical disk and its partition table."""

    device_path: str
    sectors: int
    sector_size: int = 512
    model: str = "Unknown"
    table: PartitionTable | None = None
    partitions: list[PartitionInfo] = field(default_factory=list)
    relabeled: bool = False

    @property
    def size_bytes(self) -> int:
        return self.sectors * self.sector_size

    @property
    def reserved_sectors(self) -> int:
        return RESERVED_BYTES // self.sector_size

    @property
    def active_partitions(self) -> list[PartitionInfo]:
        """Partitions that are not marked for removal."""
        return [p for p in self.partitions if not p.remove]

    def matches(self, name: str) -> bool:
        return name == self.device_path or f"/dev/{name}" == self.device_path

    def get_partition(self, number: int) -> PartitionInfo | None:
        """Get partition by its number."""
        for p in self.partitions:
            if p.number == number:
                return p
        return None

    def get_sector(self, sector: Sector) -> int:
        """Resolve a sector expression against this disk."""
        return sector.resolve(self.sectors, self.sector_size, self.reserved_sectors)

    def partition_path(self, number: int) -> str:
        if self.device_path[-1:].isdigit():
            return f"{self.device_path}p{number}"
        return f"{self.device_path}{number}"

    def mklabel(self, table: PartitionTable) -> None:
        """Replace the partition table, dropping every existing partition."""
        logger.info(
            "Replacing partition table",
            disk=self.device_path,
            table=table.value,
            dropped=len(self.partitions),
        )
        self.table = table
        self.partitions.clear()
        self.relabeled = True

    def move_partition(self, number: int, start: int) -> None:
        """Move a partition so that it begins at ``start``, keeping its length."""
        partition = self._require(number)
        end = start + (partition.end_sector - partition.start_sector)
        self._check_bounds(start, end)
        self._check_overlap(start, end, exclude=partition)
        logger.debug(
            "Moving partition",
            disk=self.device_path,
            number=number,
            start=start,
            end=end,
        )
        partition.start_sector = start
        partition.end_sector = end

    def resize_partition(self, number: int, end: int) -> None:
        """Resize a partition so that it ends at ``end``."""
        partition = self._require(number)
        self._check_bounds(partition.start_sector, end)
        self._check_overlap(partition.start_sector, end, exclude=partition)
        logger.debug("Resizing partition", disk=self.device_path, number=number, end=end)
        partition.end_sector = end

    def add_partition(self, builder: PartitionBuilder) -> PartitionInfo:
        """Validate a partition request and append it to the disk."""
        if self.table is None:
            raise MissingPartitionTable(self.device_path)

        start, end = builder.start_sector, builder.end_sector
        self._check_bounds(start, end)

        if builder.part_type is PartitionType.LOGICAL and self.table is PartitionTable.GPT:
            raise LogicalPartitionOnGpt(self.device_path)

        if builder.part_type is PartitionType.PRIMARY and self.table is PartitionTable.MSDOS:
            primaries = sum(
                1 for p in self.active_partitions if p.part_type is PartitionType.PRIMARY
            )
            if primaries >= MSDOS_MAX_PRIMARY:
                raise PrimaryPartitionsExceeded(self.device_path)

        self._check_overlap(start, end)

        # Removed partitions keep their number until the plan is committed.
        number = max((p.number for p in self.partitions), default=0) + 1
        partition = builder.build(self.partition_path(number), number)
        self.partitions.append(partition)
        logger.debug(
            "Added partition",
            disk=self.device_path,
            number=number,
            start=start,
            end=end,
            filesystem=builder.filesystem.value,
        )
        return partition

    def _require(self, number: int) -> PartitionInfo:
        partition = self.get_partition(number)
        if partition is None:
            raise PartitionNotFound(self.device_path, number)
        return partition

    def _check_bounds(self, start: int, end: int) -> None:
        if start >= end:
            raise InvalidGeometry(start, end)
        if start < 0 or end >= self.sectors:
            raise PartitionOutOfBounds(self.device_path, start, end, self.sectors)

    def _check_overlap(self, start: int, end: int, exclude: PartitionInfo | None = None) -> None:
        for other in self.active_partitions:
            if other is not exclude and other.overlaps(start, end):
                raise SectorOverlaps(self.device_path, other.number)

    def to_dict(self) -> dict[str, Any]:
        return {
            "device_path": self.device_path,
            "model": self.model,
            "sectors": self.sectors,
            "sector_size": self.sector_size,
            "size_bytes": self.size_bytes,
            "table": self.table.value if self.table else None,
            "relabeled": self.relabeled,
            "partitions": [p.to_dict() for p in self.partitions],
        }


@dataclass
class LogicalDevice:
    """An LVM volume group, exposed as a disk whose partitions are logical volumes."""

    volume_group: str
    sectors: int
    sector_size: int = 512
    physical_volumes: list[str] = field(default_factory=list)
    encryption: list[LvmEncryption] = field(default_factory=list)
    partitions: list[PartitionInfo] = field(default_factory=list)

    @property
    def device_path(self) -> str:
        return f"/dev/mapper/{self.volume_group}"

    @property
    def size_bytes(self) -> int:
        return self.sectors * self.sector_size

    def get_sector(self, sector: Sector) -> int:
        """Resolve a sector expression against the volume group."""
        return sector.resolve(self.sectors, self.sector_size, 0)

    def last_end_sector(self) -> int | None:
        if not self.partitions:
            return None
        return self.partitions[-1].end_sector

    def get_partition_by_name(self, name: str) -> PartitionInfo | None:
        for p in self.partitions:
            if p.name == name:
                return p
        return None

    def add_partition(self, builder: PartitionBuilder) -> PartitionInfo:
        """Append a logical volume to the group."""
        start, end = builder.start_sector, builder.end_sector
        if start >= end:
            raise InvalidGeometry(start, end)
        if end > self.sectors:
            raise PartitionOutOfBounds(self.device_path, start, end, self.sectors)

        name = builder.name or f"lv{len(self.partitions) + 1}"
        if self.get_partition_by_name(name) is not None:
            raise DuplicateLogicalVolume(self.volume_group, name)
        for other in self.partitions:
            if other.overlaps(start, end):
                raise SectorOverlaps(self.device_path, other.number)

        builder.name = name
        partition = builder.build(
            f"/dev/mapper/{self.volume_group}-{name}", len(self.partitions) + 1
        )
        self.partitions.append(partition)
        logger.debug(
            "Added logical volume",
            volume_group=self.volume_group,
            name=name,
            start=start,
            end=end,
        )
        return partition

    def to_dict(self) -> dict[str, Any]:
        return {
            "volume_group": self.volume_group,
            "device_path": self.device_path,
            "sectors": self.sectors,
            "sector_size": self.sector_size,
            "size_bytes": self.size_bytes,
            "physical_volumes": self.physical_volumes,
            "encryption": [e.to_dict() for e in self.encryption],
            "partitions": [p.to_dict() for p in self.partitions],
        }


@dataclass
class Disks:
    """The complete topology: physical disks plus materialized volume groups."""

    physical: list[Disk] = field(default_factory=list)
    logical: dict[str, LogicalDevice] = field(default_factory=dict)

    def add(self, disk: Disk) -> None:
        logger.info("Adding disk to configuration", disk=disk.device_path)
        self.physical.append(disk)

    def find_disk(self, name: str) -> Disk | None:
        """Find disk by device path or kernel name."""
        for disk in self.physical:
            if disk.matches(name):
                return disk
        return None

    def find_logical_disk(self, group: str) -> LogicalDevice | None:
        return self.logical.get(group)

    def pending_volume_groups(self) -> dict[str, list[tuple[Disk, PartitionInfo]]]:
        """LVM-tagged partitions grouped by volume group name."""
        groups: dict[str, list[tuple[Disk, PartitionInfo]]] = {}
        for disk in self.physical:
            for partition in disk.active_partitions:
                if partition.is_lvm and partition.volume_group is not None:
                    groups.setdefault(partition.volume_group.group, []).append(
                        (disk, partition)
                    )
        return groups

    def initialize_volume_groups(self) -> None:
        """Materialize a logical device for every volume group not yet known."""
        for group, members in self.pending_volume_groups().items():
            if group in self.logical:
                continue

            device = LogicalDevice(
                volume_group=group,
                sectors=sum(
                    p.sectors * disk.sector_size // 512 for disk, p in members
                ),
            )
            for _, partition in members:
                encryption = partition.volume_group.encryption if partition.volume_group else None
                if encryption is not None:
                    device.encryption.append(encryption)
                    device.physical_volumes.append(f"/dev/mapper/{encryption.physical_volume}")
                else:
                    device.physical_volumes.append(partition.device_path)

            self.logical[group] = device
            logger.info(
                "Initialized volume group",
                volume_group=group,
                physical_volumes=device.physical_volumes,
                sectors=device.sectors,
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "disks": [d.to_dict() for d in self.physical],
            "volume_groups": [lv.to_dict() for lv in self.logical.values()],
        }


__all__ = [
    "Disk",
    "Disks",
    "LogicalDevice",
    "RESERVED_BYTES",
]

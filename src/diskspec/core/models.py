"""
diskspec data models.

Defines the value types shared by the operation parsers and the
topology model: sector expressions, filesystems, flags, partition
descriptors and partition builders.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from typing import Any


class PartitionTable(Enum):
    """Partition table kind."""

    GPT = "gpt"
    MSDOS = "msdos"


class PartitionType(Enum):
    """Partition role within the partition table."""

    PRIMARY = "primary"
    LOGICAL = "logical"


class PartitionSource(Enum):
    """Whether a partition already exists on disk or is being requested."""

    EXISTING = auto()
    NEW = auto()


class FileSystemType(Enum):
    """File system types."""

    BTRFS = "btrfs"
    EXFAT = "exfat"
    EXT2 = "ext2"
    EXT3 = "ext3"
    EXT4 = "ext4"
    F2FS = "f2fs"
    FAT16 = "fat16"
    FAT32 = "fat32"
    NTFS = "ntfs"
    SWAP = "swap"
    XFS = "xfs"
    LVM = "lvm"
    LUKS = "luks"
    UNKNOWN = "unknown"

    @classmethod
    def from_string(cls, value: str) -> FileSystemType:
        """Create FileSystemType from string value."""
        value_lower = value.lower().strip()
        for fs in cls:
            if fs.value == value_lower:
                return fs
        aliases = {
            "vfat": cls.FAT32,
            "linux-swap": cls.SWAP,
            "lvm2_member": cls.LVM,
            "crypto_luks": cls.LUKS,
        }
        return aliases.get(value_lower, cls.UNKNOWN)

    @property
    def user_selectable(self) -> bool:
        """Whether the type may be requested directly by name."""
        return self not in (FileSystemType.LVM, FileSystemType.LUKS, FileSystemType.UNKNOWN)


class PartitionFlag(Enum):
    """Partition flags, valued by their command-line token."""

    ESP = "esp"
    BOOT = "boot"
    ROOT = "root"
    SWAP = "swap"
    HIDDEN = "hidden"
    RAID = "raid"
    LVM = "lvm"
    LBA = "lba"
    HPSERVICE = "hpservice"
    PALO = "palo"
    PREP = "prep"
    MSFT_RESERVED = "msft_reserved"
    APPLE_TV_RECOVERY = "apple_tv_recovery"
    DIAG = "diag"
    LEGACY_BOOT = "legacy_boot"
    MSFT_DATA = "msft_data"
    IRST = "irst"


class SectorKind(Enum):
    """Shape of a sector expression."""

    START = auto()
    END = auto()
    UNIT = auto()
    UNIT_FROM_END = auto()
    MEGABYTE = auto()
    MEGABYTE_FROM_END = auto()
    PERCENT = auto()


_UNSIGNED = re.compile(r"\+?[0-9]+")


@dataclass(frozen=True)
class Sector:
    """A position on a device, resolved to an absolute sector by the device."""

    kind: SectorKind
    value: int = 0

    @classmethod
    def parse(cls, text: str) -> Sector:
        """
        Parse a generic sector expression.

        Accepts ``start``, ``end``, ``<n>``, ``-<n>``, ``<n>M``, ``-<n>M``
        and ``<n>%``. Raises ValueError for anything else.
        """
        if text.endswith("M"):
            body = text[:-1]
            if body.startswith("-") and _UNSIGNED.fullmatch(body[1:]):
                return cls(SectorKind.MEGABYTE_FROM_END, int(body[1:]))
            if _UNSIGNED.fullmatch(body):
                return cls(SectorKind.MEGABYTE, int(body))
        elif text.endswith("%"):
            body = text[:-1]
            if _UNSIGNED.fullmatch(body) and int(body) <= 100:
                return cls(SectorKind.PERCENT, int(body))
        elif text == "start":
            return cls(SectorKind.START)
        elif text == "end":
            return cls(SectorKind.END)
        elif text.startswith("-"):
            if _UNSIGNED.fullmatch(text[1:]):
                return cls(SectorKind.UNIT_FROM_END, int(text[1:]))
        elif _UNSIGNED.fullmatch(text):
            return cls(SectorKind.UNIT, int(text))

        raise ValueError(f"invalid sector value: {text!r}")

    def resolve(self, sectors: int, sector_size: int, reserved: int) -> int:
        """Resolve to an absolute sector on a device of ``sectors`` sectors."""
        end = max(reserved, sectors - reserved)

        def clamp(value: int) -> int:
            return max(reserved, min(end, value))

        def megabytes(size: int) -> int:
            return (size * 1_000_000) // sector_size

        if self.kind is SectorKind.START:
            return reserved
        if self.kind is SectorKind.END:
            return end
        if self.kind is SectorKind.UNIT:
            return clamp(self.value)
        if self.kind is SectorKind.UNIT_FROM_END:
            return clamp(end - self.value)
        if self.kind is SectorKind.MEGABYTE:
            return clamp(megabytes(self.value))
        if self.kind is SectorKind.MEGABYTE_FROM_END:
            return clamp(end - megabytes(self.value))
        # Percent
        if self.value == 0:
            return reserved
        if self.value == 100:
            return end
        return clamp(((sectors * sector_size) // 100) * self.value // sector_size)

    def __str__(self) -> str:
        if self.kind is SectorKind.START:
            return "start"
        if self.kind is SectorKind.END:
            return "end"
        if self.kind is SectorKind.UNIT:
            return str(self.value)
        if self.kind is SectorKind.UNIT_FROM_END:
            return f"-{self.value}"
        if self.kind is SectorKind.MEGABYTE:
            return f"{self.value}M"
        if self.kind is SectorKind.MEGABYTE_FROM_END:
            return f"-{self.value}M"
        return f"{self.value}%"


@dataclass(frozen=True)
class LvmEncryption:
    """LUKS encryption applied to an LVM physical volume."""

    physical_volume: str
    password: str | None = field(default=None, repr=False)
    keydata: str | None = None

    def to_dict(self) -> dict[str, Any]:
        # Secrets are never serialized.
        return {
            "physical_volume": self.physical_volume,
            "password": self.password is not None,
            "keydata": self.keydata,
        }


@dataclass(frozen=True)
class VolumeGroupAttachment:
    """Membership of a partition in an LVM volume group."""

    group: str
    encryption: LvmEncryption | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "group": self.group,
            "encryption": self.encryption.to_dict() if self.encryption else None,
        }


@dataclass
class PartitionInfo:
    """A partition on a physical disk or a logical volume in a volume group."""

    device_path: str
    number: int
    start_sector: int
    end_sector: int
    part_type: PartitionType = PartitionType.PRIMARY
    filesystem: FileSystemType | None = None
    source: PartitionSource = PartitionSource.EXISTING
    target: FileSystemType | None = None  # Requested format
    name: str | None = None
    mount_point: Path | None = None
    key_id: str | None = None
    flags: list[PartitionFlag] = field(default_factory=list)
    volume_group: VolumeGroupAttachment | None = None
    remove: bool = False

    @property
    def sectors(self) -> int:
        return self.end_sector - self.start_sector + 1

    @property
    def is_lvm(self) -> bool:
        return self.volume_group is not None and self.target is FileSystemType.LVM

    def overlaps(self, start: int, end: int) -> bool:
        return start <= self.end_sector and end >= self.start_sector

    def mark_removed(self) -> None:
        self.remove = True

    def set_mount(self, mount_point: Path) -> None:
        self.mount_point = mount_point

    def set_keydata(self, key_id: str, mount_point: Path) -> None:
        self.key_id = key_id
        self.mount_point = mount_point

    def set_volume_group(self, group: str, encryption: LvmEncryption | None) -> None:
        self.volume_group = VolumeGroupAttachment(group, encryption)

    def format_with(self, filesystem: FileSystemType) -> None:
        self.target = filesystem

    def to_dict(self) -> dict[str, Any]:
        return {
            "device_path": self.device_path,
            "number": self.number,
            "name": self.name,
            "start_sector": self.start_sector,
            "end_sector": self.end_sector,
            "part_type": self.part_type.value,
            "source": self.source.name,
            "filesystem": self.filesystem.value if self.filesystem else None,
            "target": self.target.value if self.target else None,
            "mount_point": str(self.mount_point) if self.mount_point else None,
            "key_id": self.key_id,
            "flags": [f.value for f in self.flags],
            "volume_group": self.volume_group.to_dict() if self.volume_group else None,
            "remove": self.remove,
        }


@dataclass
class PartitionBuilder:
    """Describes a partition to be appended to a disk or volume group."""

    start_sector: int
    end_sector: int
    filesystem: FileSystemType
    part_type: PartitionType = PartitionType.PRIMARY
    name: str | None = None
    mount_point: Path | None = None
    key_id: str | None = None
    flags: list[PartitionFlag] = field(default_factory=list)
    volume_group: VolumeGroupAttachment | None = None

    def logical_volume(self, group: str, encryption: LvmEncryption | None) -> None:
        self.volume_group = VolumeGroupAttachment(group, encryption)

    def build(self, device_path: str, number: int) -> PartitionInfo:
        """Materialize the partition descriptor."""
        return PartitionInfo(
            device_path=device_path,
            number=number,
            start_sector=self.start_sector,
            end_sector=self.end_sector,
            part_type=self.part_type,
            filesystem=None,
            source=PartitionSource.NEW,
            target=self.filesystem,
            name=self.name,
            mount_point=self.mount_point,
            key_id=self.key_id,
            flags=list(self.flags),
            volume_group=self.volume_group,
        )

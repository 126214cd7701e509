"""
Filesystem field parsing.

The filesystem field of an operation is either a plain filesystem name
(``ext4``), an LVM volume group (``lvm=<group>``) or a LUKS-encrypted LVM
physical volume (``enc=<pv>,<group>[,pass=<secret>][,keyfile=<path>]``).
"""

from __future__ import annotations

from dataclasses import dataclass

from diskspec.core.errors import (
    EmptyCredential,
    InvalidField,
    InvalidFilesystem,
    MissingPhysicalVolume,
    MissingVolumeGroup,
)
from diskspec.core.models import FileSystemType, LvmEncryption

ENCRYPTED_PREFIX = "enc="
LVM_PREFIX = "lvm="
PASS_PREFIX = "pass="
KEYFILE_PREFIX = "keyfile="


@dataclass(frozen=True)
class PlainFs:
    """A partition formatted with a regular filesystem."""

    filesystem: FileSystemType


@dataclass(frozen=True)
class LvmFs:
    """A partition used as an LVM physical volume, optionally encrypted."""

    volume_group: str
    encryption: LvmEncryption | None = None


FsChoice = PlainFs | LvmFs


def parse_filesystem_name(token: str) -> FileSystemType:
    """
    Parse a plain filesystem name.

    Names match exactly, with no case folding or aliases. ``lvm`` and
    ``luks`` are only reachable through ``lvm=`` and ``enc=``.
    """
    try:
        fs = FileSystemType(token)
    except ValueError:
        raise InvalidFilesystem(token) from None
    if not fs.user_selectable:
        raise InvalidFilesystem(token)
    return fs


def parse_fs(token: str) -> FsChoice:
    """Classify a filesystem field."""
    if token.startswith(ENCRYPTED_PREFIX):
        return _parse_encrypted(token)
    if token.startswith(LVM_PREFIX):
        group = token[len(LVM_PREFIX):].split(",", 1)[0]
        if not group:
            raise MissingVolumeGroup(token)
        return LvmFs(group)
    return PlainFs(parse_filesystem_name(token))


def _parse_encrypted(token: str) -> LvmFs:
    fields = token[len(ENCRYPTED_PREFIX):].split(",")

    physical_volume = fields[0]
    if not physical_volume:
        raise MissingPhysicalVolume(token)

    if len(fields) < 2 or not fields[1]:
        raise MissingVolumeGroup(token)
    volume_group = fields[1]

    password: str | None = None
    keydata: str | None = None
    for field in fields[2:]:
        if field.startswith(PASS_PREFIX):
            password = field[len(PASS_PREFIX):]
            if not password:
                raise EmptyCredential("password")
        elif field.startswith(KEYFILE_PREFIX):
            keydata = field[len(KEYFILE_PREFIX):]
            if not keydata:
                raise EmptyCredential("keyfile")
        else:
            raise InvalidField(field)

    if password is None and keydata is None:
        return LvmFs(volume_group)
    return LvmFs(volume_group, LvmEncryption(physical_volume, password, keydata))

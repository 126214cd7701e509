"""
diskspec error hierarchy.

Every error renders as a single human-readable line. Parse errors carry
the raw token they failed on; the operation parsers attach the operation
kind and the full operation token before re-raising.
"""

from __future__ import annotations


class DiskSpecError(Exception):
    """Base class for all diskspec errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
        self.operation: str | None = None
        self.source: str | None = None

    def attach(self, operation: str, source: str) -> DiskSpecError:
        """Record the operation kind and token this error was raised for."""
        if self.operation is None:
            self.operation = operation
            self.source = source
        return self

    def __str__(self) -> str:
        if self.operation is None:
            return self.message
        return f"{self.operation} '{self.source}': {self.message}"


# ==================== Syntax Errors ====================


class SpecSyntaxError(DiskSpecError):
    """A token does not follow the operation grammar."""


class TooFewFields(SpecSyntaxError):
    def __init__(self, kind: str, minimum: int, maximum: int | None, found: int) -> None:
        self.kind = kind
        self.minimum = minimum
        self.maximum = maximum
        self.found = found
        super().__init__(
            f"too few fields for {kind} (expected {_field_range(minimum, maximum)}, "
            f"found {found})"
        )


class TooManyFields(SpecSyntaxError):
    def __init__(self, kind: str, minimum: int, maximum: int | None, found: int) -> None:
        self.kind = kind
        self.minimum = minimum
        self.maximum = maximum
        self.found = found
        super().__init__(
            f"too many fields for {kind} (expected {_field_range(minimum, maximum)}, "
            f"found {found})"
        )


class InvalidArgument(SpecSyntaxError):
    """Unrecognized key=value suffix field."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"invalid argument supplied: {field}")


class MountRequiredWithKey(SpecSyntaxError):
    def __init__(self, key_id: str) -> None:
        self.key_id = key_id
        super().__init__(f"mount path must be specified with key '{key_id}'")


class EmptyValue(SpecSyntaxError):
    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"{key} value is empty")


class InvalidSector(SpecSyntaxError):
    def __init__(self, token: str) -> None:
        self.token = token
        super().__init__(f"provided sector unit, '{token}', was invalid")


class InvalidFilesystem(SpecSyntaxError):
    def __init__(self, token: str) -> None:
        self.token = token
        super().__init__(f"provided file system, '{token}', was invalid")


class InvalidPartitionType(SpecSyntaxError):
    def __init__(self, token: str) -> None:
        self.token = token
        super().__init__(
            f"partition type '{token}' must be either 'primary' or 'logical'"
        )


class InvalidTableKind(SpecSyntaxError):
    def __init__(self, token: str) -> None:
        self.token = token
        super().__init__(f"'{token}' is not valid. Value must be either 'gpt' or 'msdos'")


class InvalidPartitionId(SpecSyntaxError):
    def __init__(self, token: str) -> None:
        self.token = token
        super().__init__(f"partition value '{token}' must be a number")


class UnsupportedLogicalFilesystem(SpecSyntaxError):
    def __init__(self, token: str) -> None:
        self.token = token
        super().__init__(f"'{token}': LUKS and LVM on a logical volume are unsupported")


class MissingPhysicalVolume(SpecSyntaxError):
    def __init__(self, token: str) -> None:
        self.token = token
        super().__init__(f"no physical volume was defined in file system field '{token}'")


class MissingVolumeGroup(SpecSyntaxError):
    def __init__(self, token: str) -> None:
        self.token = token
        super().__init__(f"no volume group was defined in file system field '{token}'")


class EmptyCredential(SpecSyntaxError):
    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"provided {key} is empty")


class InvalidField(SpecSyntaxError):
    """Unknown field inside an enc= filesystem field."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"invalid fs field '{field}'")


# ==================== Lookup Errors ====================


class LookupFailure(DiskSpecError):
    """A named disk, partition or volume group does not exist."""


class DiskNotFound(LookupFailure):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"disk '{name}' could not be found")


class PartitionNotFound(LookupFailure):
    def __init__(self, disk: str, number: int) -> None:
        self.disk = disk
        self.number = number
        super().__init__(f"partition '{number}' was not found on '{disk}'")


class VolumeGroupNotFound(LookupFailure):
    def __init__(self, group: str) -> None:
        self.group = group
        super().__init__(f"could not find volume group associated with '{group}'")


# ==================== Platform Errors ====================


class UnsupportedPlatform(DiskSpecError):
    """No disk probe exists for the running operating system."""

    def __init__(self, system: str) -> None:
        self.system = system
        super().__init__(
            f"unsupported platform '{system}': pass --layout to plan against a layout file"
        )


# ==================== Topology Model Errors ====================


class DiskError(DiskSpecError):
    """The topology model rejected a mutation."""


class MissingPartitionTable(DiskError):
    def __init__(self, device: str) -> None:
        self.device = device
        super().__init__(f"{device} has no partition table")


class InvalidGeometry(DiskError):
    def __init__(self, start: int, end: int) -> None:
        self.start = start
        self.end = end
        super().__init__(f"partition start sector {start} is not before end sector {end}")


class PartitionOutOfBounds(DiskError):
    def __init__(self, device: str, start: int, end: int, sectors: int) -> None:
        self.device = device
        self.start = start
        self.end = end
        self.sectors = sectors
        super().__init__(
            f"partition {start}..{end} exceeds the {sectors} sectors of {device}"
        )


class SectorOverlaps(DiskError):
    def __init__(self, device: str, number: int) -> None:
        self.device = device
        self.number = number
        super().__init__(f"partition overlaps partition {number} on {device}")


class PrimaryPartitionsExceeded(DiskError):
    def __init__(self, device: str) -> None:
        self.device = device
        super().__init__(f"{device} already has the maximum of four primary partitions")


class LogicalPartitionOnGpt(DiskError):
    def __init__(self, device: str) -> None:
        self.device = device
        super().__init__(f"logical partitions are not supported on the GPT table of {device}")


class DuplicateLogicalVolume(DiskError):
    def __init__(self, group: str, name: str) -> None:
        self.group = group
        self.name = name
        super().__init__(f"logical volume '{name}' already exists in '{group}'")


def _field_range(minimum: int, maximum: int | None) -> str:
    if maximum is None:
        return f"at least {minimum}"
    if minimum == maximum:
        return str(minimum)
    return f"{minimum} to {maximum}"

"""
diskspec platform probe base.

Defines the interface used to resolve block device names into topology
disks. Probes only read device information; they never write.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from diskspec.core.topology import Disk


class CommandResult:
    """Result of a command execution."""

    def __init__(
        self,
        returncode: int,
        stdout: str,
        stderr: str,
        command: str | list[str],
        duration_seconds: float = 0.0,
    ) -> None:
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.command = command
        self.duration_seconds = duration_seconds

    @property
    def success(self) -> bool:
        return self.returncode == 0

    def __repr__(self) -> str:
        cmd = self.command if isinstance(self.command, str) else " ".join(self.command)
        return f"CommandResult(rc={self.returncode}, cmd='{cmd[:50]}...')"


class DiskProbe(ABC):
    """Resolves disk names to topology disks."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Probe name (e.g., 'linux', 'static')."""

    @abstractmethod
    def get_disk(self, name: str) -> Disk | None:
        """
        Build a topology disk for the named device.
        Returns None if the device cannot be found.
        """

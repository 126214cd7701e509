"""
diskspec platform layer.

Provides the probes that turn block device names into topology disks,
either by inspecting the running Linux system or from a static layout.
"""

from __future__ import annotations

import platform
from typing import TYPE_CHECKING

from diskspec.core.errors import UnsupportedPlatform
from diskspec.platform.base import CommandResult, DiskProbe
from diskspec.platform.static import StaticProbe, load_layout

if TYPE_CHECKING:
    from diskspec.core.config import ProbeConfig


def get_disk_probe(config: ProbeConfig | None = None) -> DiskProbe:
    """Get the appropriate disk probe for the current OS."""
    system = platform.system().lower()

    if system == "linux":
        from diskspec.platform.linux import LinuxProbe

        return LinuxProbe(config)
    raise UnsupportedPlatform(system)


__all__ = [
    "CommandResult",
    "DiskProbe",
    "StaticProbe",
    "get_disk_probe",
    "load_layout",
]

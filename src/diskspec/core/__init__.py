"""
diskspec Core - Models and services.

Contains the topology model, configuration, logging, errors and the
install-phase interface.
"""

from diskspec.core.config import DiskSpecConfig
from diskspec.core.errors import DiskError, DiskSpecError
from diskspec.core.install import DryRunInstaller, InstallConfig, InstallContext, Installer
from diskspec.core.logging import get_logger, setup_logging
from diskspec.core.topology import Disk, Disks, LogicalDevice

__all__ = [
    "DiskSpecConfig",
    "DiskError",
    "DiskSpecError",
    "Disk",
    "Disks",
    "LogicalDevice",
    "DryRunInstaller",
    "InstallConfig",
    "InstallContext",
    "Installer",
    "get_logger",
    "setup_logging",
]

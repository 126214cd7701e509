"""
diskspec - Disk partitioning language for installers.

Parses compact, colon-delimited partitioning operations and applies them,
in dependency order, to an in-memory model of disks and volume groups.
"""

__version__ = "1.0.0"
__author__ = "diskspec Team"

from diskspec.core.config import DiskSpecConfig
from diskspec.spec.pipeline import DiskArguments, configure_disks

__all__ = ["DiskArguments", "DiskSpecConfig", "configure_disks", "__version__"]

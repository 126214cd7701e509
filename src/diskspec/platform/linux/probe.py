"""
Linux disk probe.

Reads block device geometry with lsblk.
"""

from __future__ import annotations

import subprocess
import time
from typing import TYPE_CHECKING

from diskspec.core.config import ProbeConfig
from diskspec.core.logging import get_logger
from diskspec.platform.base import CommandResult, DiskProbe
from diskspec.platform.linux.parsers import build_disk_from_lsblk, parse_lsblk_json

if TYPE_CHECKING:
    from diskspec.core.topology import Disk

logger = get_logger(__name__)

LSBLK_COLUMNS = "NAME,PATH,SIZE,START,TYPE,PTTYPE,FSTYPE,LOG-SEC,MODEL"


class LinuxProbe(DiskProbe):
    """Resolves disks on the running Linux system."""

    def __init__(self, config: ProbeConfig | None = None) -> None:
        self.config = config or ProbeConfig()

    @property
    def name(self) -> str:
        return "linux"

    def run_command(self, command: list[str]) -> CommandResult:
        """Run a read-only system command."""
        logger.debug("Running command", command=command)
        start_time = time.time()
        timeout = self.config.timeout_seconds

        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            return CommandResult(
                returncode=-1,
                stdout="",
                stderr=f"Command timed out after {timeout}s",
                command=command,
                duration_seconds=timeout,
            )
        except OSError as e:
            return CommandResult(
                returncode=-1,
                stdout="",
                stderr=str(e),
                command=command,
                duration_seconds=time.time() - start_time,
            )

        if result.returncode != 0:
            logger.warning(
                "Command failed",
                command=command,
                returncode=result.returncode,
                stderr=result.stderr[:500] if result.stderr else "",
            )

        return CommandResult(
            returncode=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
            command=command,
            duration_seconds=time.time() - start_time,
        )

    def get_disk(self, name: str) -> Disk | None:
        device = name if name.startswith("/dev/") else f"/dev/{name}"
        result = self.run_command(
            [self.config.lsblk, "-J", "-b", "-o", LSBLK_COLUMNS, device]
        )
        if not result.success:
            return None

        blocks = parse_lsblk_json(result.stdout)
        if not blocks:
            return None

        disk = build_disk_from_lsblk(blocks[0])
        logger.debug(
            "Probed disk",
            disk=disk.device_path,
            sectors=disk.sectors,
            partitions=len(disk.partitions),
        )
        return disk

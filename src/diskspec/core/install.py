"""
diskspec install phase.

Defines the interface between a configured disk topology and the
installer that carries it out, with explicit status reporting,
cancellation and partitioning test mode.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

from diskspec.core.logging import OperationLogger, get_logger
from diskspec.core.topology import Disks

logger = get_logger(__name__)


class Step(Enum):
    """Install steps, in execution order."""

    INIT = "Initializing"
    PARTITION = "Partitioning disk"
    EXTRACT = "Extracting filesystem"
    CONFIGURE = "Configuring installation"
    BOOTLOADER = "Installing bootloader"


class InstallConfig(BaseModel):
    """Parameters of the system being installed."""

    squashfs: Path
    hostname: str = Field(min_length=1, max_length=63)
    keyboard: str = Field(min_length=1)
    lang: str = Field(min_length=1)
    remove: Path


@dataclass(frozen=True)
class InstallStatus:
    """Progress of the current step."""

    step: Step
    percent: int


class InstallError(Exception):
    """An install step failed."""

    def __init__(self, step: Step, message: str) -> None:
        super().__init__(f"{step.value}: {message}")
        self.step = step


class InstallCancelled(InstallError):
    """Raised when the install is cancelled."""

    def __init__(self, step: Step) -> None:
        super().__init__(step, "install was cancelled")


class InstallContext:
    """Cancellation and callbacks handed to an installer run."""

    def __init__(self) -> None:
        self._cancelled = threading.Event()
        self._status_callbacks: list[Callable[[InstallStatus], None]] = []
        self._error_callbacks: list[Callable[[InstallError], None]] = []

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        """Request cancellation; observed before each step."""
        self._cancelled.set()

    def check_cancelled(self, step: Step) -> None:
        if self._cancelled.is_set():
            raise InstallCancelled(step)

    def on_status(self, callback: Callable[[InstallStatus], None]) -> None:
        self._status_callbacks.append(callback)

    def on_error(self, callback: Callable[[InstallError], None]) -> None:
        self._error_callbacks.append(callback)

    def report(self, step: Step, percent: int) -> None:
        status = InstallStatus(step, max(0, min(100, percent)))
        for callback in self._status_callbacks:
            callback(status)

    def report_error(self, error: InstallError) -> None:
        for callback in self._error_callbacks:
            callback(error)


class Installer(ABC):
    """Runs the install steps against a configured topology."""

    steps: tuple[Step, ...] = tuple(Step)

    def install(
        self,
        disks: Disks,
        config: InstallConfig,
        context: InstallContext | None = None,
        test_mode: bool = False,
    ) -> None:
        """
        Run every step in order.

        In test mode the run stops once partitioning has been validated.
        Errors are reported to the context's error callbacks and re-raised.
        """
        context = context or InstallContext()

        for step in self.steps:
            try:
                context.check_cancelled(step)
                with OperationLogger(step.value, logger, hostname=config.hostname):
                    context.report(step, 0)
                    self.run_step(step, disks, config, context)
                    context.report(step, 100)
            except InstallError as e:
                context.report_error(e)
                raise

            if test_mode and step is Step.PARTITION:
                logger.info("Partitioning test complete, stopping install")
                return

    @abstractmethod
    def run_step(
        self,
        step: Step,
        disks: Disks,
        config: InstallConfig,
        context: InstallContext,
    ) -> None:
        """Execute one step."""


class DryRunInstaller(Installer):
    """Walks the install steps and logs what each would do, changing nothing."""

    def run_step(
        self,
        step: Step,
        disks: Disks,
        config: InstallConfig,
        context: InstallContext,
    ) -> None:
        if step is Step.INIT:
            logger.info(
                "Would install",
                squashfs=str(config.squashfs),
                hostname=config.hostname,
                keyboard=config.keyboard,
                lang=config.lang,
            )
        elif step is Step.PARTITION:
            self._describe_partitioning(step, disks, context)
        elif step is Step.EXTRACT:
            logger.info("Would extract", squashfs=str(config.squashfs))
        elif step is Step.CONFIGURE:
            logger.info("Would configure", remove=str(config.remove), lang=config.lang)
        else:
            logger.info("Would install bootloader")

    def _describe_partitioning(
        self, step: Step, disks: Disks, context: InstallContext
    ) -> None:
        devices = len(disks.physical) + len(disks.logical)
        for index, disk in enumerate(disks.physical, 1):
            if disk.relabeled and disk.table is not None:
                logger.info(
                    "Would write partition table",
                    disk=disk.device_path,
                    table=disk.table.value,
                )
            for partition in disk.partitions:
                if partition.remove:
                    logger.info("Would remove partition", partition=partition.device_path)
                elif partition.target is not None:
                    logger.info(
                        "Would format partition",
                        partition=partition.device_path,
                        filesystem=partition.target.value,
                        mount=str(partition.mount_point) if partition.mount_point else None,
                    )
            context.report(step, index * 100 // devices)

        for index, device in enumerate(disks.logical.values(), len(disks.physical) + 1):
            logger.info(
                "Would create volume group",
                volume_group=device.volume_group,
                physical_volumes=device.physical_volumes,
                logical_volumes=[p.name for p in device.partitions],
            )
            context.report(step, index * 100 // devices)

"""
Tests for diskspec.core.install module.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from diskspec.core.install import (
    DryRunInstaller,
    InstallCancelled,
    InstallConfig,
    InstallContext,
    InstallError,
    Installer,
    InstallStatus,
    Step,
)
from diskspec.core.topology import Disks
from diskspec.platform.static import StaticProbe
from diskspec.spec.pipeline import DiskArguments, configure_disks


@pytest.fixture
def install_config() -> InstallConfig:
    return InstallConfig(
        squashfs=Path("/cdrom/casper/filesystem.squashfs"),
        hostname="diskspec-test",
        keyboard="us",
        lang="en_US.UTF-8",
        remove=Path("/cdrom/casper/filesystem.manifest-remove"),
    )


@pytest.fixture
def disks(probe: StaticProbe) -> Disks:
    return configure_disks(
        DiskArguments(
            disks=["sda", "sdb"],
            tables=["sdb:gpt"],
            creates=["sdb:primary:start:end:lvm=data"],
            logicals=["data:root:end:ext4:mount=/"],
        ),
        probe,
    )


class RecordingInstaller(Installer):
    """Installer that records the steps it runs."""

    def __init__(self, fail_on: Step | None = None) -> None:
        self.ran: list[Step] = []
        self.fail_on = fail_on

    def run_step(
        self,
        step: Step,
        disks: Disks,
        config: InstallConfig,
        context: InstallContext,
    ) -> None:
        self.ran.append(step)
        if step is self.fail_on:
            raise InstallError(step, "boom")


class TestInstallConfig:
    """Tests for InstallConfig validation."""

    def test_hostname_length(self, install_config: InstallConfig) -> None:
        data = install_config.model_dump()
        data["hostname"] = "h" * 64
        with pytest.raises(ValidationError):
            InstallConfig.model_validate(data)

    def test_empty_lang(self, install_config: InstallConfig) -> None:
        data = install_config.model_dump()
        data["lang"] = ""
        with pytest.raises(ValidationError):
            InstallConfig.model_validate(data)


class TestInstaller:
    """Tests for the install step loop."""

    def test_runs_all_steps(self, disks: Disks, install_config: InstallConfig) -> None:
        installer = RecordingInstaller()
        installer.install(disks, install_config)
        assert installer.ran == list(Step)

    def test_test_mode_stops_after_partitioning(
        self, disks: Disks, install_config: InstallConfig
    ) -> None:
        installer = RecordingInstaller()
        installer.install(disks, install_config, test_mode=True)
        assert installer.ran == [Step.INIT, Step.PARTITION]

    def test_status_callbacks(self, disks: Disks, install_config: InstallConfig) -> None:
        statuses: list[InstallStatus] = []
        context = InstallContext()
        context.on_status(statuses.append)

        RecordingInstaller().install(disks, install_config, context, test_mode=True)

        assert statuses == [
            InstallStatus(Step.INIT, 0),
            InstallStatus(Step.INIT, 100),
            InstallStatus(Step.PARTITION, 0),
            InstallStatus(Step.PARTITION, 100),
        ]

    def test_error_callbacks(self, disks: Disks, install_config: InstallConfig) -> None:
        errors: list[InstallError] = []
        context = InstallContext()
        context.on_error(errors.append)
        installer = RecordingInstaller(fail_on=Step.EXTRACT)

        with pytest.raises(InstallError) as exc_info:
            installer.install(disks, install_config, context)

        assert exc_info.value.step is Step.EXTRACT
        assert errors == [exc_info.value]
        assert installer.ran[-1] is Step.EXTRACT

    def test_cancel_before_start(self, disks: Disks, install_config: InstallConfig) -> None:
        context = InstallContext()
        context.cancel()
        installer = RecordingInstaller()

        with pytest.raises(InstallCancelled):
            installer.install(disks, install_config, context)

        assert installer.ran == []
        assert context.is_cancelled

    def test_cancel_between_steps(self, disks: Disks, install_config: InstallConfig) -> None:
        context = InstallContext()

        def cancel_after_partition(status: InstallStatus) -> None:
            if status.step is Step.PARTITION and status.percent == 100:
                context.cancel()

        context.on_status(cancel_after_partition)
        installer = RecordingInstaller()

        with pytest.raises(InstallCancelled) as exc_info:
            installer.install(disks, install_config, context)

        assert exc_info.value.step is Step.EXTRACT
        assert installer.ran == [Step.INIT, Step.PARTITION]

    def test_percent_is_clamped(self) -> None:
        statuses: list[InstallStatus] = []
        context = InstallContext()
        context.on_status(statuses.append)
        context.report(Step.INIT, 150)
        context.report(Step.INIT, -5)
        assert [s.percent for s in statuses] == [100, 0]


class TestDryRunInstaller:
    """Tests for DryRunInstaller."""

    def test_reports_partition_progress(
        self, disks: Disks, install_config: InstallConfig
    ) -> None:
        statuses: list[InstallStatus] = []
        context = InstallContext()
        context.on_status(statuses.append)

        DryRunInstaller().install(disks, install_config, context)

        partition = [s.percent for s in statuses if s.step is Step.PARTITION]
        # Two disks and one volume group.
        assert partition == [0, 33, 66, 100, 100]
        assert statuses[-1] == InstallStatus(Step.BOOTLOADER, 100)

    def test_leaves_topology_untouched(
        self, disks: Disks, install_config: InstallConfig
    ) -> None:
        before = disks.to_dict()
        DryRunInstaller().install(disks, install_config, test_mode=True)
        assert disks.to_dict() == before

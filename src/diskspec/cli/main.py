"""
diskspec CLI Main Entry Point.

Parses the partitioning operations given on the command line, builds the
disk plan and hands it to the installer.
"""

from __future__ import annotations

import json
import signal
import sys
from pathlib import Path
from typing import NoReturn

import click
import humanize
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskID, TextColumn
from rich.table import Table

from diskspec import __version__
from diskspec.core.config import DiskSpecConfig, load_config
from diskspec.core.errors import DiskSpecError
from diskspec.core.install import (
    DryRunInstaller,
    InstallConfig,
    InstallContext,
    InstallError,
    InstallStatus,
    Step,
)
from diskspec.core.logging import setup_logging
from diskspec.core.models import PartitionSource
from diskspec.core.topology import Disks
from diskspec.platform import DiskProbe, get_disk_probe, load_layout
from diskspec.spec.pipeline import DiskArguments, configure_disks

console = Console()
err_console = Console(stderr=True)


def fail(message: str) -> NoReturn:
    err_console.print(f"[red]diskspec: {escape(message)}[/red]", soft_wrap=True)
    sys.exit(1)


def render_plan(disks: Disks) -> None:
    """Print the configured topology."""
    table = Table(title="Partitioning Plan")
    table.add_column("Device", style="cyan")
    table.add_column("Sectors", style="white")
    table.add_column("Size", style="green")
    table.add_column("Filesystem", style="yellow")
    table.add_column("Mount", style="magenta")
    table.add_column("Flags", style="white")
    table.add_column("Action", style="red")

    for disk in disks.physical:
        table.add_row(
            f"[bold]{escape(disk.device_path)}[/bold]",
            str(disk.sectors),
            humanize.naturalsize(disk.size_bytes, binary=True),
            disk.table.value if disk.table else "-",
            "",
            "",
            "new table" if disk.relabeled else "",
        )
        for p in disk.partitions:
            if p.remove:
                action = "remove"
            elif p.source is PartitionSource.NEW:
                action = "create"
            elif p.target is not None:
                action = "format"
            else:
                action = "keep"
            fs = p.target or p.filesystem
            table.add_row(
                f"  {escape(p.device_path)}",
                f"{p.start_sector}-{p.end_sector}",
                humanize.naturalsize(p.sectors * disk.sector_size, binary=True),
                fs.value if fs else "-",
                escape(str(p.mount_point)) if p.mount_point else "",
                ",".join(f.value for f in p.flags),
                action,
            )

    for device in disks.logical.values():
        table.add_row(
            f"[bold]{escape(device.device_path)}[/bold]",
            str(device.sectors),
            humanize.naturalsize(device.size_bytes, binary=True),
            "lvm",
            "",
            "",
            "new volume group",
        )
        for p in device.partitions:
            table.add_row(
                f"  {escape(p.device_path)}",
                f"{p.start_sector}-{p.end_sector}",
                humanize.naturalsize(p.sectors * device.sector_size, binary=True),
                p.target.value if p.target else "-",
                escape(str(p.mount_point)) if p.mount_point else "",
                ",".join(f.value for f in p.flags),
                "create",
            )

    console.print(table)


def run_install(
    disks: Disks,
    install_config: InstallConfig,
    test_mode: bool,
    quiet: bool,
) -> None:
    """Run the installer with progress output and SIGINT cancellation."""
    context = InstallContext()
    context.on_error(lambda e: err_console.print(f"[red]Error: {escape(str(e))}[/red]"))

    previous = signal.signal(signal.SIGINT, lambda signum, frame: context.cancel())
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            console=console,
            disable=quiet,
        ) as progress:
            tasks: dict[Step, TaskID] = {}

            def update(status: InstallStatus) -> None:
                if status.step not in tasks:
                    tasks[status.step] = progress.add_task(status.step.value, total=100)
                progress.update(tasks[status.step], completed=status.percent)

            context.on_status(update)
            DryRunInstaller().install(disks, install_config, context, test_mode=test_mode)
    finally:
        signal.signal(signal.SIGINT, previous)


@click.command(context_settings={"help_option_names": ["--help"]})
@click.version_option(version=__version__, prog_name="diskspec")
@click.option(
    "-s",
    "--squashfs",
    required=True,
    type=click.Path(path_type=Path),
    help="Define the squashfs image which will be installed",
)
@click.option("-h", "--hostname", required=True, help="Define the hostname of the new system")
@click.option("-k", "--keyboard", required=True, help="Define the keyboard configuration to use")
@click.option("-l", "--lang", required=True, help="Define the locale of the new system")
@click.option(
    "-r",
    "--remove",
    required=True,
    type=click.Path(path_type=Path),
    help="Manifest of packages to remove post-install",
)
@click.option(
    "-b",
    "--block",
    "blocks",
    multiple=True,
    required=True,
    help="A disk that will be manipulated in the installation process",
)
@click.option(
    "-t",
    "--new-table",
    "tables",
    multiple=True,
    help="Write a new partition table to a disk, clobbering it ('disk:gpt|msdos')",
)
@click.option(
    "-n",
    "--new",
    "creates",
    multiple=True,
    help="Create a partition ('disk:type:start:end:fs[:mount=..][:flags=..][:keyid=..]')",
)
@click.option(
    "-u",
    "--use",
    "reuses",
    multiple=True,
    help="Reuse a partition ('disk:id:fs|reuse[:mount=..][:flags=..][:keyid=..]')",
)
@click.option(
    "-d",
    "--delete",
    "deletes",
    multiple=True,
    help="Delete partitions ('disk:id[:id...]')",
)
@click.option(
    "-m",
    "--move",
    "moves",
    multiple=True,
    help="Move and/or resize a partition ('disk:id:start|none:end|none')",
)
@click.option(
    "--logical",
    "logicals",
    multiple=True,
    help="Create a logical volume ('group:name:size:fs[:mount=..][:flags=..]')",
)
@click.option("--test", "test_mode", is_flag=True, help="Only test the partitioning stage")
@click.option(
    "--layout",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Resolve disks from a JSON layout file instead of the running system",
)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file",
)
@click.option("--json", "json_output", is_flag=True, help="Print the plan as JSON")
@click.option("--quiet", "-q", is_flag=True, help="Suppress logging and progress output")
def cli(
    squashfs: Path,
    hostname: str,
    keyboard: str,
    lang: str,
    remove: Path,
    blocks: tuple[str, ...],
    tables: tuple[str, ...],
    creates: tuple[str, ...],
    reuses: tuple[str, ...],
    deletes: tuple[str, ...],
    moves: tuple[str, ...],
    logicals: tuple[str, ...],
    test_mode: bool,
    layout: Path | None,
    config_path: Path | None,
    json_output: bool,
    quiet: bool,
) -> None:
    """
    diskspec - describe disk partitioning for an installer.

    Operations are applied in a fixed order: new tables, deletions, moves,
    reused partitions, new partitions, then logical volumes.
    """
    config = DiskSpecConfig.load(config_path) if config_path else load_config()
    if quiet:
        config.logging.console_enabled = False
    setup_logging(config.logging)

    try:
        install_config = InstallConfig(
            squashfs=squashfs,
            hostname=hostname,
            keyboard=keyboard,
            lang=lang,
            remove=remove,
        )
    except ValidationError as e:
        error = e.errors()[0]
        fail(f"invalid install configuration: {error['loc'][0]}: {error['msg']}")

    try:
        probe: DiskProbe = load_layout(layout) if layout else get_disk_probe(config.probe)
    except DiskSpecError as e:
        fail(str(e))

    arguments = DiskArguments(
        disks=blocks,
        tables=tables,
        deletes=deletes,
        moves=moves,
        reuses=reuses,
        creates=creates,
        logicals=logicals,
    )

    try:
        disks = configure_disks(arguments, probe)
    except DiskSpecError as e:
        fail(f"invalid disk configuration: {e}")

    # Keep stdout parseable in JSON mode.
    status_console = err_console if json_output else console
    if json_output:
        click.echo(json.dumps(disks.to_dict(), indent=2))
    elif not quiet:
        render_plan(disks)

    try:
        run_install(
            disks,
            install_config,
            test_mode or config.installer.test_mode,
            quiet or json_output,
        )
    except InstallError as e:
        status_console.print(f"install failed: {escape(str(e))}", soft_wrap=True)
        sys.exit(1)

    status_console.print("install was successful")


def main() -> None:
    """Main entry point."""
    try:
        cli()
    except KeyboardInterrupt:
        err_console.print("\n[yellow]Operation cancelled[/yellow]")
        sys.exit(130)

"""
Pytest configuration and fixtures for diskspec tests.
"""

import json
import sys
import tempfile
from pathlib import Path
from typing import Generator

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from diskspec.core.models import (  # noqa: E402
    FileSystemType,
    PartitionFlag,
    PartitionInfo,
    PartitionTable,
)
from diskspec.core.topology import Disk  # noqa: E402
from diskspec.platform.static import StaticProbe  # noqa: E402

# 2,000,000 sectors of 512 bytes; the first and last 4096 sectors are reserved.
DISK_SECTORS = 2_000_000


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def blank_disk() -> Disk:
    """A disk without a partition table."""
    return Disk(device_path="/dev/sdb", sectors=DISK_SECTORS, model="Blank Disk")


@pytest.fixture
def gpt_disk() -> Disk:
    """A GPT disk with an ESP and a root partition, free space at the end."""
    disk = Disk(
        device_path="/dev/sda",
        sectors=DISK_SECTORS,
        model="Test Disk",
        table=PartitionTable.GPT,
    )
    disk.partitions = [
        PartitionInfo(
            device_path="/dev/sda1",
            number=1,
            start_sector=4096,
            end_sector=1_052_671,
            filesystem=FileSystemType.FAT32,
            flags=[PartitionFlag.ESP],
        ),
        PartitionInfo(
            device_path="/dev/sda2",
            number=2,
            start_sector=1_052_672,
            end_sector=1_499_999,
            filesystem=FileSystemType.EXT4,
        ),
    ]
    return disk


@pytest.fixture
def probe(gpt_disk: Disk, blank_disk: Disk) -> StaticProbe:
    """Probe serving the GPT disk and the blank disk."""
    return StaticProbe([gpt_disk, blank_disk])


@pytest.fixture
def layout_file(temp_dir: Path) -> Path:
    """A JSON layout file equivalent to the probe fixture."""
    path = temp_dir / "layout.json"
    path.write_text(
        json.dumps(
            {
                "disks": [
                    {
                        "device_path": "/dev/sda",
                        "sectors": DISK_SECTORS,
                        "table": "gpt",
                        "partitions": [
                            {
                                "number": 1,
                                "start_sector": 4096,
                                "end_sector": 1_052_671,
                                "filesystem": "vfat",
                                "flags": ["esp"],
                            },
                            {
                                "number": 2,
                                "start_sector": 1_052_672,
                                "end_sector": 1_499_999,
                                "filesystem": "ext4",
                            },
                        ],
                    },
                    {"device_path": "sdb", "sectors": DISK_SECTORS},
                ]
            }
        )
    )
    return path


@pytest.fixture
def sample_config(temp_dir: Path) -> "DiskSpecConfig":
    """Create a sample configuration for testing."""
    from diskspec.core.config import DiskSpecConfig

    config = DiskSpecConfig()
    config.logging.log_directory = temp_dir / "logs"
    config.logging.console_enabled = False
    return config


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "slow: Slow running tests")

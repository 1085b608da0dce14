"""
Pytest configuration and shared fixtures.

Nothing here touches real devices: lsblk output is canned JSON, and every
external command goes through a fake subprocess.run that keeps its own
mount table.
"""
import json
import logging
import subprocess

import pytest

from grub_uefi_installer.errors import DeviceQueryError
from grub_uefi_installer.lib.block import device_path, leaf_name, parse_lsblk_json
from grub_uefi_installer.logging_utils import ConsoleFormatter

ESP_GUID = "c12a7328-f81f-11d2-ba4b-00a0c93ec93b"
LINUX_GUID = "0fc63daf-8483-4772-8e79-3d69d8477de4"
SWAP_GUID = "0657fd6d-a4ab-43c4-84e5-0933c84b4f4f"
MSR_GUID = "e3c9e316-0b5c-4db8-817d-f92df00215ae"
WIN_DATA_GUID = "ebd0a0a2-b9e5-4433-87c0-68b6b72699c7"

GIB = 1024 ** 3
MIB = 1024 ** 2


def node(name, type_="part", size=None, fstype=None, parttype=None, uuid=None, label=None,
         rm=False, rota=False, mountpoints=None, model=None, pkname=None, majmin="8:0"):
    return {
        "name": name,
        "type": type_,
        "size": size,
        "fstype": fstype,
        "parttype": parttype,
        "uuid": uuid,
        "label": label,
        "rm": rm,
        "rota": rota,
        "mountpoints": mountpoints if mountpoints is not None else [None],
        "model": model,
        "pkname": pkname,
        "maj:min": majmin,
    }


@pytest.fixture
def lsblk_payload():
    """A laptop with a GPT SATA disk, an MBR NVMe disk and a USB stick."""
    devices = [
        node("sda", "disk", 500 * GIB, model="Samsung SSD 860  ", rota=False, majmin="8:0"),
        node("sda1", size=512 * MIB, fstype="vfat", parttype=ESP_GUID, uuid="AAAA-0001",
             label="EFI", pkname="sda", majmin="8:1"),
        node("sda2", size=100 * GIB, fstype="ext4", parttype=LINUX_GUID, uuid="root-uuid",
             label="root", pkname="sda", majmin="8:2", mountpoints=["/"]),
        node("sda3", size=8 * GIB, fstype="swap", parttype=SWAP_GUID, uuid="swap-uuid",
             pkname="sda", majmin="8:3", mountpoints=["[SWAP]"]),
        node("sda4", size=16 * MIB, fstype=None, parttype=MSR_GUID, pkname="sda", majmin="8:4"),
        node("sda5", size=200 * GIB, fstype="ntfs-3g", parttype=WIN_DATA_GUID, label="Windows",
             pkname="sda", majmin="8:5"),
        node("nvme0n1", "disk", 256 * GIB, model="WDC PC SN530", rota="0", majmin="259:0"),
        node("nvme0n1p1", size=300 * MIB, fstype="vfat", parttype="0xef", uuid="BBBB-0002",
             pkname="nvme0n1", majmin="259:1"),
        node("nvme0n1p2", size=4 * MIB, parttype="0xf", pkname="nvme0n1", majmin="259:2"),
        node("nvme0n1p5", size=200 * GIB, fstype="btrfs", parttype="0x83", uuid="btrfs-uuid",
             label="data", pkname="nvme0n1", majmin="259:3"),
        node("sdb", "disk", 16 * GIB, model="USB Flash", rm="1", rota=None, majmin="8:16"),
        node("sdb1", size=4 * GIB, fstype="iso9660", parttype="0x0C", label="LIVE", rm="1",
             pkname="sdb", majmin="8:17"),
        node("sdb2", size=12 * GIB, fstype="ext4", parttype="0x83", label="persist", rm="1",
             pkname="sdb", majmin="8:18"),
    ]
    return json.dumps({"blockdevices": devices})


@pytest.fixture
def records(lsblk_payload):
    return parse_lsblk_json(lsblk_payload)


class FakeCatalog:
    """Answers DeviceCatalog queries from a fixed snapshot."""

    def __init__(self, records):
        self.records = list(records)
        self.queries = []

    def query(self, devices=(), *, include_major=None):
        self.queries.append((tuple(devices), include_major))
        names = {leaf_name(d) for d in devices}
        out = []
        for r in self.records:
            if names and r.name not in names and r.parent not in names:
                continue
            if include_major is not None and r.major != include_major:
                continue
            out.append(r)
        return out

    def find(self, device):
        name = leaf_name(device)
        for r in self.records:
            if r.name == name:
                return r
        raise DeviceQueryError(f"lsblk does not report {device_path(name)}")

    def drive_records(self, drive):
        return self.query([drive])


@pytest.fixture
def catalog(records):
    return FakeCatalog(records)


@pytest.fixture
def make_catalog():
    return FakeCatalog


@pytest.fixture
def block_devices(monkeypatch):
    """Pretend every /dev path given to the resolver is a block device."""
    monkeypatch.setattr(
        "grub_uefi_installer.lib.esp.require_block_device", lambda device: device_path(device)
    )


class FakeSystem:
    """Stand-in for subprocess.run with a tiny mount table.

    `calls` records every command except findmnt queries, in order.
    `fail` is an optional predicate: matching commands exit non-zero.
    """

    def __init__(self):
        self.calls = []
        self.mounted = []
        self.fail = None
        self.lsblk_stdout = '{"blockdevices": []}'
        self.lsblk_rc = 0

    def __call__(self, argv, **kwargs):
        argv = list(argv)
        if argv[0] == "findmnt":
            path = argv[-1]
            if path in self.mounted:
                return subprocess.CompletedProcess(argv, 0, path + "\n", "")
            return subprocess.CompletedProcess(argv, 1, "", "")

        self.calls.append(argv)
        if argv[0] == "lsblk":
            return subprocess.CompletedProcess(argv, self.lsblk_rc, self.lsblk_stdout, "lsblk: boom")
        if self.fail and self.fail(argv):
            return subprocess.CompletedProcess(argv, 32, "", "mount: permission denied")

        if argv[0] == "mount":
            self.mounted.append(argv[-1])
        elif argv[:2] == ["umount", "--recursive"]:
            root = argv[-1].rstrip("/")
            self.mounted = [m for m in self.mounted if m != root and not m.startswith(root + "/")]
        return subprocess.CompletedProcess(argv, 0, "", "")

    def ran(self, program):
        return [c for c in self.calls if c[0] == program]


@pytest.fixture
def fake_system(monkeypatch, tmp_path):
    fs = FakeSystem()
    monkeypatch.setattr("grub_uefi_installer.lib.command.subprocess.run", fs)
    # Runs must not depend on whether the test host booted with UEFI.
    monkeypatch.setattr("grub_uefi_installer.lib.chroot.HOST_EFIVARS", tmp_path / "no-efivars")
    return fs


@pytest.fixture
def host_efivars(fake_system, monkeypatch, tmp_path):
    """Make the host look like it exposes EFI variables."""
    path = tmp_path / "efivars"
    path.mkdir()
    monkeypatch.setattr("grub_uefi_installer.lib.chroot.HOST_EFIVARS", path)
    return path


@pytest.fixture
def root_logger():
    """Undo whatever configure_logging does to the root logger."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for h in list(root.handlers):
        if h not in handlers and (isinstance(h, logging.FileHandler) or isinstance(h.formatter, ConsoleFormatter)):
            root.removeHandler(h)
            h.close()
    root.setLevel(level)
    for attr in ("_grub_uefi_configured", "_grub_uefi_log_path"):
        if hasattr(root, attr):
            delattr(root, attr)

"""
Tests for drive-name resolution and ESP lookup.
"""
import pytest

from grub_uefi_installer.errors import (
    InputError,
    NoDeviceError,
    NoEspFoundError,
    NotEspError,
    NotLinuxError,
    NoSuchDeviceError,
)
from grub_uefi_installer.lib.block import DeviceKind, DeviceRecord
from grub_uefi_installer.lib.esp import drive_of, is_partition_name, resolve_esp, resolve_root


@pytest.mark.parametrize(
    "name,drive",
    [
        ("sda1", "sda"),
        ("sda12", "sda"),
        ("sda", "sda"),
        ("/dev/sdb3", "sdb"),
        ("mmcblk0p3", "mmcblk0"),
        ("mmcblk0", "mmcblk0"),
        ("nvme0n1p2", "nvme0n1"),
        ("nvme0n1", "nvme0n1"),
        ("nvme1n12p10", "nvme1n12"),
        ("loop0p1", "loop0"),
        ("vda2", "vda"),
    ],
)
def test_drive_of(name, drive):
    assert drive_of(name) == drive


@pytest.mark.parametrize("name", ["sda1", "sda12", "mmcblk0p3", "nvme0n1p2", "vdb", "xvda1"])
def test_drive_of_is_idempotent(name):
    assert drive_of(drive_of(name)) == drive_of(name)


def test_drive_of_requires_a_name():
    with pytest.raises(NoDeviceError):
        drive_of("")


def test_is_partition_name():
    assert is_partition_name("sda1")
    assert is_partition_name("nvme0n1p1")
    assert not is_partition_name("sda")
    assert not is_partition_name("nvme0n1")


def rec(name, type_id, fs="vfat", kind=DeviceKind.PARTITION, parent="sda"):
    return DeviceRecord(name=name, kind=kind, part_type_id=type_id, fs_type=fs,
                        parent=None if kind is DeviceKind.DISK else parent)


def test_resolve_esp_scans_drive_for_first_esp(block_devices, make_catalog):
    catalog = make_catalog([
        rec("sda", "", kind=DeviceKind.DISK),
        rec("sda1", "0x83", fs="ext4"),
        rec("sda2", "0xef"),
        rec("sda3", "0xef"),
    ])
    assert resolve_esp(catalog, "sda").name == "sda2"


def test_resolve_esp_without_esp(block_devices, make_catalog):
    catalog = make_catalog([rec("sda", "", kind=DeviceKind.DISK), rec("sda1", "0x83", fs="ext4")])
    with pytest.raises(NoEspFoundError):
        resolve_esp(catalog, "/dev/sda")


def test_resolve_esp_explicit_partition(block_devices, catalog):
    assert resolve_esp(catalog, "/dev/nvme0n1p1").name == "nvme0n1p1"
    assert resolve_esp(catalog, "sda1").path == "/dev/sda1"
    with pytest.raises(NotEspError):
        resolve_esp(catalog, "/dev/sda2")


def test_resolve_esp_on_gpt_drive(block_devices, catalog):
    assert resolve_esp(catalog, "sda").name == "sda1"
    assert resolve_esp(catalog, "nvme0n1").name == "nvme0n1p1"
    with pytest.raises(NoEspFoundError):
        resolve_esp(catalog, "sdb")


def test_resolve_esp_requires_existing_device(catalog):
    with pytest.raises(NoSuchDeviceError):
        resolve_esp(catalog, "/dev/definitely-not-here9")


def test_resolve_root(block_devices, catalog):
    assert resolve_root(catalog, "/dev/sda2").name == "sda2"
    assert resolve_root(catalog, "nvme0n1p5").fs_type == "btrfs"


def test_resolve_root_rejects_drive_and_foreign_partitions(block_devices, catalog):
    with pytest.raises(InputError):
        resolve_root(catalog, "/dev/sda")
    with pytest.raises(NotLinuxError):
        resolve_root(catalog, "/dev/sda1")
    with pytest.raises(NotLinuxError):
        resolve_root(catalog, "/dev/sda3")


def test_resolve_root_force(block_devices, catalog):
    assert resolve_root(catalog, "/dev/sda5", force=True).name == "sda5"

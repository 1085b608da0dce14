"""Partition-type taxonomy and the classification rules built on it.

Type identifiers come from lsblk PARTTYPE: either a legacy MBR code
(``0x83``) or a GPT type GUID. An empty identifier means lsblk could not
tell (no partition table, or not a partition at all); it is a state of its
own, never equal to a known code.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .block import DeviceRecord, TriState

MIB = 1024 * 1024

GPT_ESP = "c12a7328-f81f-11d2-ba4b-00a0c93ec93b"
GPT_LINUX_DATA = "0fc63daf-8483-4772-8e79-3d69d8477de4"
GPT_LINUX_SWAP = "0657fd6d-a4ab-43c4-84e5-0933c84b4f4f"
GPT_LINUX_HOME = "933ac7e1-2eb4-4f13-b844-0e14e2aef915"
GPT_LINUX_ROOT_X86 = "44479540-f297-41b2-9af7-d131d5f0458a"
GPT_LINUX_ROOT_X86_64 = "4f68bce3-e8cd-4db1-96e7-fbcaf984b709"
GPT_WINDOWS_DATA = "ebd0a0a2-b9e5-4433-87c0-68b6b72699c7"
GPT_MS_RESERVED = "e3c9e316-0b5c-4db8-817d-f92df00215ae"
GPT_WINDOWS_RECOVERY = "de94bba4-06d1-4d40-a16a-bfd50179d6ac"

MBR_ESP = "0xef"
MBR_LINUX = "0x83"
MBR_LINUX_SWAP = "0x82"
MBR_EXTENDED = "0xf"
MBR_FAT32_LBA = "0xc"
MBR_WINDOWS_RECOVERY = "0x27"

ESP_TYPES = frozenset({MBR_ESP, GPT_ESP})

LINUX_ROOT_TYPES = frozenset(
    {
        MBR_LINUX,
        MBR_LINUX_SWAP,
        GPT_LINUX_DATA,
        GPT_LINUX_SWAP,
        GPT_LINUX_HOME,
        GPT_LINUX_ROOT_X86,
        GPT_LINUX_ROOT_X86_64,
    }
)

# Neither accepted nor rejected by type; the filesystem decides.
PASS_THROUGH_TYPES = frozenset({"", GPT_WINDOWS_DATA})

BOOT_RECORD_TYPES = frozenset({MBR_EXTENDED})

LISTING_EXCLUDED_TYPES = frozenset(
    {
        MBR_FAT32_LBA,
        MBR_WINDOWS_RECOVERY,
        MBR_ESP,
        GPT_ESP,
        GPT_MS_RESERVED,
        GPT_WINDOWS_RECOVERY,
    }
)

ROOT_FILESYSTEMS = frozenset(
    {"btrfs", "ext2", "ext3", "ext4", "jfs", "nilfs2", "reiser4", "reiserfs", "ufs", "xfs"}
)

SIMPLE_FS_NAMES = {
    "ntfs-3g": "NTFS",
    "vfat": "Fat32",
    "hfsplus": "HPFS",
}


def is_esp_type(part_type_id: str) -> bool:
    return part_type_id in ESP_TYPES


def linux_type_gate(record: DeviceRecord) -> bool:
    return record.part_type_id in LINUX_ROOT_TYPES or record.part_type_id in PASS_THROUGH_TYPES


def linux_fs_gate(record: DeviceRecord) -> bool:
    return record.fs_type in ROOT_FILESYSTEMS


def classify_as_linux_root(record: DeviceRecord) -> bool:
    """Both gates must agree: a Linux-compatible type and a root filesystem."""

    return linux_type_gate(record) and linux_fs_gate(record)


def simplify_fs(fs_type: str) -> str:
    return SIMPLE_FS_NAMES.get(fs_type, fs_type)


class ListingVerdict(Enum):
    INCLUDE = "include"
    SKIP = "skip"


@dataclass(frozen=True)
class ListingOptions:
    min_size_mib: Optional[int] = None
    exclude_uuid: Optional[str] = None
    only_swap: bool = False
    exclude_swap: bool = False
    exclude_efi: bool = False
    exclude_removable: bool = False
    full: bool = False
    simplify: bool = False
    tab: bool = False
    header: bool = False
    major: Optional[int] = None
    prefix: str = ""


def size_mib(record: DeviceRecord) -> int:
    return (record.size_bytes or 0) // MIB


def _too_small(record: DeviceRecord, options: ListingOptions) -> bool:
    return options.min_size_mib is not None and size_mib(record) <= options.min_size_mib


def _other_major(record: DeviceRecord, options: ListingOptions) -> bool:
    return options.major is not None and record.major != options.major


def classify_for_listing(record: DeviceRecord, options: ListingOptions) -> ListingVerdict:
    skip = ListingVerdict.SKIP

    if not record.is_partition:
        return skip
    if record.part_type_id in BOOT_RECORD_TYPES:
        return skip
    # With exclude_efi off an empty type is just "no identifier", never a reason.
    if options.exclude_efi and record.part_type_id and record.part_type_id in LISTING_EXCLUDED_TYPES:
        return skip
    if record.fs_type == "iso9660":
        return skip
    if options.only_swap and record.fs_type != "swap":
        return skip
    if options.exclude_swap and record.fs_type == "swap":
        return skip
    if options.exclude_removable and record.removable is TriState.YES:
        return skip
    if options.exclude_uuid and record.uuid == options.exclude_uuid:
        return skip
    if _other_major(record, options) or _too_small(record, options):
        return skip
    return ListingVerdict.INCLUDE


def classify_drive_for_listing(record: DeviceRecord, options: ListingOptions) -> ListingVerdict:
    if not record.is_disk:
        return ListingVerdict.SKIP
    if options.exclude_removable and record.removable is TriState.YES:
        return ListingVerdict.SKIP
    if _other_major(record, options) or _too_small(record, options):
        return ListingVerdict.SKIP
    return ListingVerdict.INCLUDE

from __future__ import annotations

import logging
import re

from ..errors import (
    InputError,
    NoDeviceError,
    NoEspFoundError,
    NotEspError,
    NotLinuxError,
)
from .block import DeviceCatalog, DeviceRecord, device_path, leaf_name, require_block_device
from .partition_types import classify_as_linux_root, is_esp_type

logger = logging.getLogger(__name__)

# Controllers whose drive names end in a digit put a "p" before the partition number.
_P_SUFFIX_RE = re.compile(r"^((?:mmcblk|nvme\d+n|loop|md|nbd)\d+)(?:p\d+)?$")
_TRAILING_DIGITS_RE = re.compile(r"\d{1,2}$")


def drive_of(device: str) -> str:
    """Return the drive (leaf name) that owns device.

    >>> drive_of("mmcblk0p3"), drive_of("/dev/sda12"), drive_of("nvme0n1p2")
    ('mmcblk0', 'sda', 'nvme0n1')
    """

    name = leaf_name(device or "")
    if not name:
        raise NoDeviceError("No device given")

    m = _P_SUFFIX_RE.match(name)
    if m:
        return m.group(1)
    return _TRAILING_DIGITS_RE.sub("", name)


def is_partition_name(device: str) -> bool:
    return drive_of(device) != leaf_name(device)


def resolve_esp(catalog: DeviceCatalog, device: str) -> DeviceRecord:
    """Validate an explicit ESP partition, or find the first ESP on a drive."""

    require_block_device(device)
    name = leaf_name(device)

    if is_partition_name(name):
        rec = catalog.find(name)
        if not is_esp_type(rec.part_type_id):
            raise NotEspError(
                f"{device_path(name)} is not an EFI System Partition (type {rec.part_type_id or 'unknown'})"
            )
        logger.info("Using ESP %s", rec.path)
        return rec

    for rec in catalog.drive_records(name):
        if rec.is_partition and is_esp_type(rec.part_type_id):
            logger.info("Found ESP %s on drive %s", rec.path, device_path(name))
            return rec
    raise NoEspFoundError(f"No EFI System Partition found on {device_path(name)}")


def resolve_root(catalog: DeviceCatalog, device: str, *, force: bool = False) -> DeviceRecord:
    require_block_device(device)
    name = leaf_name(device)
    if not is_partition_name(name):
        raise InputError(f"{device_path(name)} is a drive; give the root partition instead")

    rec = catalog.find(name)
    if not classify_as_linux_root(rec):
        msg = (
            f"{rec.path} is not recognized as a Linux root partition "
            f"(type {rec.part_type_id or 'none'}, filesystem {rec.fs_type or 'none'})"
        )
        if not force:
            raise NotLinuxError(msg)
        logger.warning("%s; continuing because of --force", msg)
    return rec

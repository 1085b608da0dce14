from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from ..errors import NotUefiError

logger = logging.getLogger(__name__)

EFI_SYSFS = Path("/sys/firmware/efi")


def detect_firmware(efi_sysfs: Path = EFI_SYSFS) -> str:
    """Detect firmware type for the *currently running* environment.

    Returns: 'efi' or 'bios'.
    """

    if efi_sysfs.exists():
        return "efi"
    return "bios"


def require_uefi(efi_sysfs: Path = EFI_SYSFS) -> None:
    if detect_firmware(efi_sysfs) != "efi":
        raise NotUefiError(
            "This system was not booted in UEFI mode (no /sys/firmware/efi); "
            "reboot the live medium in UEFI mode"
        )


def efi_platform_bits(efi_sysfs: Path = EFI_SYSFS) -> Optional[int]:
    """Bit width of the firmware, which can differ from the kernel (32-bit UEFI tablets)."""

    try:
        txt = (efi_sysfs / "fw_platform_size").read_text(encoding="utf-8").strip()
    except OSError:
        return None
    try:
        bits = int(txt)
    except ValueError:
        logger.warning("Unexpected fw_platform_size %r", txt)
        return None
    return bits if bits in (32, 64) else None

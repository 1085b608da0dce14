from __future__ import annotations

import logging
import platform
from typing import Dict, Optional, Tuple

from ..errors import InputError, UnsupportedArchError
from .firmware import efi_platform_bits

logger = logging.getLogger(__name__)

GRUB_EFI_TARGETS: Dict[str, str] = {
    "x86_64": "x86_64-efi",
    "i386": "i386-efi",
    "arm64": "arm64-efi",
    "arm": "arm-efi",
    "ia64": "ia64-efi",
    "riscv64": "riscv64-efi",
    "loongarch64": "loongarch64-efi",
}

# family -> {bits: grub arch}
_FAMILIES: Dict[str, Dict[int, str]] = {
    "x86": {64: "x86_64", 32: "i386"},
    "arm": {64: "arm64", 32: "arm"},
    "ia64": {64: "ia64"},
    "riscv64": {64: "riscv64"},
    "loongarch64": {64: "loongarch64"},
}


def normalize_arch(machine: str) -> str:
    m = machine.lower()
    return {
        "x86_64": "x86_64",
        "amd64": "x86_64",
        "x64": "x86_64",
        "i386": "i386",
        "i486": "i386",
        "i586": "i386",
        "i686": "i386",
        "ia32": "i386",
        "x86": "i386",
        "aarch64": "arm64",
        "arm64": "arm64",
        "armv7l": "arm",
        "armv6l": "arm",
        "armhf": "arm",
        "arm": "arm",
    }.get(m, m)


def host_family(machine: str) -> Tuple[str, int]:
    """Map the running kernel's machine string to (family, native bits)."""

    arch = normalize_arch(machine)
    for family, by_bits in _FAMILIES.items():
        for bits, name in by_bits.items():
            if name == arch:
                return family, bits
    raise UnsupportedArchError(f"Unsupported platform architecture: {machine!r}")


def select_grub_target(
    arch: Optional[str] = None,
    bits: Optional[int] = None,
    *,
    machine: Optional[str] = None,
    firmware_bits: Optional[int] = None,
) -> str:
    """Pick the grub-install --target value.

    An explicit arch wins. Otherwise the host family is combined with the
    requested bit width, then with the firmware's own width (a 64-bit kernel
    can sit on 32-bit UEFI), then with the kernel's.
    """

    if arch and bits:
        raise InputError("Give either an architecture or a bit width, not both")

    if arch:
        name = normalize_arch(arch)
        if name not in GRUB_EFI_TARGETS:
            raise InputError(
                f"Unknown architecture {arch!r}; expected one of: {', '.join(sorted(GRUB_EFI_TARGETS))}"
            )
        return GRUB_EFI_TARGETS[name]

    machine = machine or platform.machine()
    family, native_bits = host_family(machine)
    by_bits = _FAMILIES[family]

    if bits:
        if bits not in by_bits:
            raise InputError(f"{bits}-bit EFI is not available for {machine}")
        chosen = by_bits[bits]
    else:
        fw = firmware_bits if firmware_bits is not None else efi_platform_bits()
        chosen = by_bits.get(fw or native_bits, by_bits[native_bits])

    logger.info("GRUB target: %s (machine=%s)", GRUB_EFI_TARGETS[chosen], machine)
    return GRUB_EFI_TARGETS[chosen]

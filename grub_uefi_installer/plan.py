from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Optional

DEFAULT_MOUNTPOINT = "/mnt/grub-uefi-installer"
DEFAULT_EFI_DIR = "boot/efi"
DEFAULT_BOOTLOADER_ID = "GRUB"
DEFAULT_GRUB_MKCONFIG = "grub-mkconfig"
DEFAULT_GRUB_CFG = "/boot/grub/grub.cfg"


class MountState(IntEnum):
    IDLE = 0
    ROOT_MOUNTED = 1
    SYSTEM_BINDS_MOUNTED = 2
    ESP_MOUNTED = 3
    INSTALL_RAN = 4
    UNMOUNTED = 5


@dataclass(frozen=True)
class MountEntry:
    target: str
    source: str
    is_bind: bool = False


@dataclass(frozen=True)
class InstallRequest:
    root_device: str
    esp_device: str
    grub_target: str
    mountpoint: str = DEFAULT_MOUNTPOINT
    efi_dir: str = DEFAULT_EFI_DIR
    bootloader_id: str = DEFAULT_BOOTLOADER_ID
    platform_dir: Optional[str] = None
    grub_mkconfig: str = DEFAULT_GRUB_MKCONFIG
    grub_cfg: str = DEFAULT_GRUB_CFG
    force: bool = False
    dry_run: bool = False
    no_clean: bool = False

    @property
    def efi_directory(self) -> str:
        """ESP location as seen from inside the chroot."""
        return "/" + self.efi_dir.strip("/")


@dataclass
class InstallContext:
    request: InstallRequest
    state: MountState = MountState.IDLE
    plan: List[MountEntry] = field(default_factory=list)

    def target(self, rel: str) -> str:
        return os.path.join(self.request.mountpoint, rel.strip("/"))

    def record(self, target: str, source: str, *, is_bind: bool = False) -> None:
        self.plan.append(MountEntry(target=target, source=source, is_bind=is_bind))

    @property
    def holds_mounts(self) -> bool:
        return MountState.ROOT_MOUNTED <= self.state < MountState.UNMOUNTED

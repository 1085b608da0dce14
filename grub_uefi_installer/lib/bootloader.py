from __future__ import annotations

import logging
from typing import List, Optional

from .chroot import chroot_cmd

logger = logging.getLogger(__name__)


def grub_install_argv(
    *,
    target: str,
    efi_directory: str,
    bootloader_id: str,
    platform_dir: Optional[str] = None,
    force: bool = False,
) -> List[str]:
    argv = [
        "grub-install",
        f"--target={target}",
        f"--efi-directory={efi_directory}",
        f"--bootloader-id={bootloader_id}",
    ]
    if platform_dir:
        argv.append(f"--directory={platform_dir}")
    if force:
        argv.append("--force")
    return argv


def install_grub_efi(
    *,
    target_root: str,
    target: str,
    efi_directory: str,
    bootloader_id: str,
    platform_dir: Optional[str] = None,
    force: bool = False,
    dry_run: bool = False,
) -> None:
    """Run grub-install inside target_root; the ESP must already be mounted there."""

    chroot_cmd(
        target_root,
        grub_install_argv(
            target=target,
            efi_directory=efi_directory,
            bootloader_id=bootloader_id,
            platform_dir=platform_dir,
            force=force,
        ),
        dry_run=dry_run,
    )
    logger.info("GRUB EFI installed (target=%s, id=%s)", target, bootloader_id)


def generate_grub_config(
    *,
    target_root: str,
    mkconfig: str = "grub-mkconfig",
    output: str = "/boot/grub/grub.cfg",
    dry_run: bool = False,
) -> None:
    chroot_cmd(target_root, [mkconfig, "-o", output], dry_run=dry_run)
    logger.info("Wrote GRUB config: %s", output)

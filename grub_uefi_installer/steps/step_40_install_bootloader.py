from __future__ import annotations

import logging

from ..lib.bootloader import generate_grub_config, install_grub_efi
from ..plan import InstallContext, MountState

logger = logging.getLogger(__name__)


class InstallBootloaderStep:
    step_id = "40_install_bootloader"
    reaches = MountState.INSTALL_RAN

    def run(self, ctx: InstallContext) -> None:
        req = ctx.request

        install_grub_efi(
            target_root=req.mountpoint,
            target=req.grub_target,
            efi_directory=req.efi_directory,
            bootloader_id=req.bootloader_id,
            platform_dir=req.platform_dir,
            force=req.force,
            dry_run=req.dry_run,
        )
        generate_grub_config(
            target_root=req.mountpoint,
            mkconfig=req.grub_mkconfig,
            output=req.grub_cfg,
            dry_run=req.dry_run,
        )

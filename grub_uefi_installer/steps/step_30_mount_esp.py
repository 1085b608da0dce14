from __future__ import annotations

import logging

from ..lib.chroot import make_dir, mount_device
from ..plan import InstallContext, MountState

logger = logging.getLogger(__name__)


class MountEspStep:
    step_id = "30_mount_esp"
    reaches = MountState.ESP_MOUNTED

    def run(self, ctx: InstallContext) -> None:
        req = ctx.request
        efi_dir = ctx.target(req.efi_dir)
        make_dir(efi_dir, dry_run=req.dry_run)
        mount_device(req.esp_device, efi_dir, dry_run=req.dry_run)
        ctx.record(efi_dir, req.esp_device)
        logger.info("Mounted ESP %s at %s", req.esp_device, efi_dir)

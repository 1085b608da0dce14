from __future__ import annotations

import logging

from ..lib.chroot import mount_chroot_binds, mount_efivars
from ..plan import InstallContext, MountState

logger = logging.getLogger(__name__)


class BindSystemStep:
    step_id = "20_bind_system"
    reaches = MountState.SYSTEM_BINDS_MOUNTED

    def run(self, ctx: InstallContext) -> None:
        req = ctx.request
        binds = mount_chroot_binds(req.mountpoint, dry_run=req.dry_run)
        for src, dst in binds:
            ctx.record(dst, src, is_bind=True)
        logger.info("Bound %s into %s", " ".join(src for src, _ in binds), req.mountpoint)

        efivars = mount_efivars(req.mountpoint, dry_run=req.dry_run)
        if efivars:
            ctx.record(efivars, "efivarfs")
            logger.info("Mounted efivarfs at %s", efivars)

from __future__ import annotations

import logging

from ..lib.chroot import make_dir, mount_device
from ..plan import InstallContext, MountState

logger = logging.getLogger(__name__)


class MountRootStep:
    step_id = "10_mount_root"
    reaches = MountState.ROOT_MOUNTED

    def run(self, ctx: InstallContext) -> None:
        req = ctx.request
        make_dir(req.mountpoint, dry_run=req.dry_run)
        mount_device(req.root_device, req.mountpoint, dry_run=req.dry_run)
        ctx.record(req.mountpoint, req.root_device)
        logger.info("Mounted root %s at %s", req.root_device, req.mountpoint)

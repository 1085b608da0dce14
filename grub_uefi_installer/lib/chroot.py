from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .command import run_cmd

logger = logging.getLogger(__name__)

# Order matters only for readability of the trace; all three are torn down
# together by the recursive unmount of the root.
SYSTEM_BINDS: Tuple[str, ...] = ("/sys", "/proc", "/dev")

# A plain bind of /sys does not carry this submount; grub-install needs it to
# write the boot entry.
EFIVARS = "/sys/firmware/efi/efivars"
HOST_EFIVARS = Path(EFIVARS)


def chroot_cmd(target_root: str, argv: Sequence[str], *, dry_run: bool = False) -> None:
    """Run a command inside target root."""

    run_cmd(["chroot", target_root, *argv], dry_run=dry_run)


def make_dir(path: str, *, dry_run: bool = False) -> None:
    run_cmd(["mkdir", "-p", path], dry_run=dry_run)


def mount_device(device: str, target: str, *, dry_run: bool = False) -> None:
    run_cmd(["mount", device, target], dry_run=dry_run)


def bind_target(target_root: str, src: str) -> str:
    return os.path.join(target_root, src.lstrip("/"))


def mount_chroot_binds(target_root: str, *, dry_run: bool = False) -> List[Tuple[str, str]]:
    """Bind the host's /sys, /proc and /dev into target root.

    Returns the (source, target) pairs in the order they were mounted.
    """

    done = []
    for src in SYSTEM_BINDS:
        dst = bind_target(target_root, src)
        make_dir(dst, dry_run=dry_run)
        run_cmd(["mount", "--bind", src, dst], dry_run=dry_run)
        done.append((src, dst))
    return done


def mount_efivars(
    target_root: str, *, host_efivars: Optional[Path] = None, dry_run: bool = False
) -> Optional[str]:
    """Mount efivarfs inside target root when the host has it.

    Returns the target path, or None when the host has no EFI variables.
    """

    host = host_efivars or HOST_EFIVARS
    if not host.is_dir():
        logger.debug("Host has no %s, skipping efivarfs", host)
        return None
    dst = bind_target(target_root, EFIVARS)
    run_cmd(["mount", "-t", "efivarfs", "efivarfs", dst], dry_run=dry_run)
    return dst


def umount_recursive(target_root: str, *, dry_run: bool = False) -> None:
    run_cmd(["umount", "--recursive", target_root], dry_run=dry_run)


def is_mounted(path: str) -> bool:
    """True when path is a mountpoint in the current mount table."""

    r = run_cmd(["findmnt", "--noheadings", "--output", "TARGET", "--mountpoint", path], check=False)
    return r.returncode == 0 and bool(r.stdout.strip())

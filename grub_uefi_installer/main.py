from __future__ import annotations

import argparse
import logging
import os
from typing import List, Optional

from .config import InstallerConfig, find_config
from .errors import InputError, InstallerError, PrivilegeError
from .lib.block import DeviceCatalog, device_path
from .lib.esp import drive_of, resolve_esp, resolve_root
from .lib.firmware import require_uefi
from .lib.hwdetect import GRUB_EFI_TARGETS, select_grub_target
from .lib.listing import format_drives, format_partitions
from .lib.partition_types import ListingOptions
from .logging_utils import configure_logging, level_for
from .orchestrator import InstallResult, MountOrchestrator, clean_only
from .plan import InstallRequest
from .style import OutputStyle, detect_style

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="grub-uefi-installer",
        description="Install GRUB in UEFI mode onto a Linux root partition, or list candidate devices.",
    )
    p.add_argument("--no-color", action="store_true", help="Disable colored diagnostics")
    sub = p.add_subparsers(dest="command", required=True)

    inst = sub.add_parser("install", help="Install GRUB onto a root partition")
    inst.add_argument("partition", nargs="?", help="Linux root partition (e.g. /dev/sda2)")
    inst.add_argument("-e", "--esp", help="EFI System Partition, or a drive to search for one")
    inst.add_argument("-a", "--arch", help=f"GRUB EFI architecture ({', '.join(sorted(GRUB_EFI_TARGETS))})")
    inst.add_argument("-b", "--bits", type=int, choices=(32, 64), help="EFI bit width")
    inst.add_argument("-d", "--directory", help="Directory holding GRUB platform files")
    inst.add_argument("-m", "--mountpoint", help="Scratch mountpoint")
    inst.add_argument("-i", "--id", dest="bootloader_id", help="Bootloader id (EFI directory and boot entry name)")
    inst.add_argument("-f", "--force", action="store_true", help="Accept a root partition not recognized as Linux")
    inst.add_argument("-p", "--pretend", action="store_true", help="Print what would be done, change nothing")
    inst.add_argument("-q", "--quiet", action="store_true", help="Only report warnings and errors")
    inst.add_argument("-v", "--verbose", action="store_true", help="Report every command output")
    inst.add_argument("-n", "--no-clean", action="store_true", help="Leave everything mounted afterwards")
    inst.add_argument("-c", "--clean-only", action="store_true", help="Only unmount the scratch mountpoint")
    inst.add_argument("--config", default=None, help="Path to a YAML config file")
    inst.add_argument("--log", default=None, help="Path to the log file")
    inst.set_defaults(func=cmd_install)

    ls = sub.add_parser("list", help="List drives or partitions")
    ls.add_argument("what", choices=("drives", "partitions"), help="What to list")
    ls.add_argument("devices", nargs="*", help="Restrict to these devices")
    ls.add_argument("-s", "--min-size", type=int, default=None, metavar="MIB", help="Only sizes above MIB")
    ls.add_argument("-u", "--exclude-uuid", default=None, metavar="UUID", help="Skip the partition with this UUID")
    ls.add_argument("-w", "--swap", action="store_true", help="Only swap partitions")
    ls.add_argument("-W", "--no-swap", action="store_true", help="Exclude swap partitions")
    ls.add_argument("-E", "--no-efi", action="store_true", help="Exclude EFI, reserved and recovery partitions")
    ls.add_argument("-r", "--no-removable", action="store_true", help="Exclude removable devices")
    ls.add_argument("-F", "--full", action="store_true", help="Show all drive fields")
    ls.add_argument("-S", "--simplify", action="store_true", help="Simplify filesystem names")
    ls.add_argument("-t", "--tab", action="store_true", help="Tab-delimited output")
    ls.add_argument("-H", "--header", action="store_true", help="Print a header row")
    ls.add_argument("-M", "--major", type=int, default=None, help="Only this major device number")
    ls.add_argument("-P", "--prefix", default="", help="Prefix for device names (e.g. /dev/)")
    ls.add_argument("-q", "--quiet", action="store_true", help=argparse.SUPPRESS)
    ls.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    ls.set_defaults(func=cmd_list)
    return p


def require_privileges(pretend: bool) -> None:
    if pretend:
        return
    if os.geteuid() != 0:
        raise PrivilegeError("Root privileges are required (or use --pretend)")


def validate_install_args(args: argparse.Namespace) -> None:
    if args.arch and args.bits:
        raise InputError("Give either --arch or --bits, not both")
    if args.clean_only and args.partition:
        raise InputError("--clean-only does not take a partition")
    if not args.clean_only and not args.partition:
        raise InputError("Missing root partition argument")


def build_request(args: argparse.Namespace, cfg: InstallerConfig, catalog: DeviceCatalog) -> InstallRequest:
    require_uefi()
    grub_target = select_grub_target(args.arch, args.bits)

    root = resolve_root(catalog, args.partition, force=args.force)
    esp = resolve_esp(catalog, args.esp or drive_of(root.name))

    return InstallRequest(
        root_device=root.path,
        esp_device=esp.path,
        grub_target=grub_target,
        mountpoint=args.mountpoint or cfg.mountpoint,
        efi_dir=cfg.efi_dir,
        bootloader_id=args.bootloader_id or cfg.bootloader_id,
        platform_dir=args.directory or cfg.platform_dir,
        grub_mkconfig=cfg.grub_mkconfig,
        grub_cfg=cfg.grub_cfg,
        force=args.force,
        dry_run=args.pretend,
        no_clean=args.no_clean,
    )


def run_install(
    args: argparse.Namespace,
    cfg: InstallerConfig,
    catalog: Optional[DeviceCatalog] = None,
) -> Optional[InstallResult]:
    """Run the install (or clean-only) command; returns None for clean-only."""

    validate_install_args(args)
    require_privileges(args.pretend)
    mountpoint = args.mountpoint or cfg.mountpoint

    if args.clean_only:
        if not clean_only(mountpoint, dry_run=args.pretend):
            raise InstallerError(f"Could not unmount {mountpoint}")
        return None

    request = build_request(args, cfg, catalog or DeviceCatalog())
    logger.info(
        "Installing %s: root=%s esp=%s id=%s",
        request.grub_target,
        request.root_device,
        request.esp_device,
        request.bootloader_id,
    )
    return MountOrchestrator(request).run()


def cmd_install(args: argparse.Namespace, style: OutputStyle) -> int:
    cfg = find_config(args.config)
    configure_logging(
        log_path=args.log or cfg.log_path,
        level=level_for(args.quiet, args.verbose),
        style=style,
    )

    result = run_install(args, cfg)
    if result is None:
        logger.info("Clean-up done")
        return 0
    if not result.cleaned:
        logger.error("Bootloader installed but the scratch mountpoint could not be unmounted")
        return 1
    logger.info("GRUB installed for %s", device_path(args.partition))
    return 0


def listing_options(args: argparse.Namespace) -> ListingOptions:
    if args.swap and args.no_swap:
        raise InputError("Give either --swap or --no-swap, not both")
    return ListingOptions(
        min_size_mib=args.min_size,
        exclude_uuid=args.exclude_uuid,
        only_swap=args.swap,
        exclude_swap=args.no_swap,
        exclude_efi=args.no_efi,
        exclude_removable=args.no_removable,
        full=args.full,
        simplify=args.simplify,
        tab=args.tab,
        header=args.header,
        major=args.major,
        prefix=args.prefix,
    )


def run_list(args: argparse.Namespace, style: OutputStyle, catalog: Optional[DeviceCatalog] = None) -> List[str]:
    options = listing_options(args)
    records = (catalog or DeviceCatalog()).query(args.devices, include_major=args.major)
    if args.what == "drives":
        return format_drives(records, options, style)
    return format_partitions(records, options, style)


def cmd_list(args: argparse.Namespace, style: OutputStyle) -> int:
    configure_logging(log_path=None, level=level_for(args.quiet, args.verbose), style=style)
    for line in run_list(args, style):
        print(line)
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    style = detect_style(args.no_color)

    try:
        return args.func(args, style)
    except InstallerError as e:
        logger.error("%s", e)
        return 1
    except KeyboardInterrupt:
        logger.error("Interrupted")
        return 130

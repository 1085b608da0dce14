"""GRUB UEFI installer.

Core design goals:
- Classify block devices by partition type and filesystem
- Find or validate the EFI System Partition on the root's drive
- Mount, chroot and install with guaranteed teardown on every exit path
- Pretend mode that prints every mutating command instead of running it
"""

__all__ = []
__version__ = "0.1.0"

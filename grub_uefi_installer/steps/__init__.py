from .step_10_mount_root import MountRootStep
from .step_20_bind_system import BindSystemStep
from .step_30_mount_esp import MountEspStep
from .step_40_install_bootloader import InstallBootloaderStep

__all__ = [
    "MountRootStep",
    "BindSystemStep",
    "MountEspStep",
    "InstallBootloaderStep",
]

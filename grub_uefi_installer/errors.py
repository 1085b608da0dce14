from __future__ import annotations

from typing import Optional, Sequence


class InstallerError(Exception):
    """Base class for every failure the installer reports to the user."""


# Input


class InputError(InstallerError):
    pass


class NoDeviceError(InputError):
    pass


# Devices


class DeviceError(InstallerError):
    pass


class NoSuchDeviceError(DeviceError):
    pass


class NotABlockDeviceError(DeviceError):
    pass


class NotLinuxError(DeviceError):
    pass


class NotEspError(DeviceError):
    pass


class DeviceQueryError(DeviceError):
    """lsblk failed, produced unusable output, or does not know the device."""


# Host environment


class HostEnvironmentError(InstallerError):
    pass


class NotUefiError(HostEnvironmentError):
    pass


class UnsupportedArchError(HostEnvironmentError):
    pass


class PrivilegeError(HostEnvironmentError):
    pass


# Resolution / state


class ResolutionError(InstallerError):
    pass


class NoEspFoundError(ResolutionError):
    pass


class StateError(InstallerError):
    pass


class AlreadyMountedError(StateError):
    pass


# Operations


class OperationError(InstallerError):
    pass


class CommandError(OperationError):
    def __init__(self, argv: Sequence[str], returncode: int, stderr: Optional[str] = None, message: Optional[str] = None):
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr or ""
        super().__init__(message or f"Command failed ({returncode}): {' '.join(self.argv)}")


class TerminatedError(OperationError):
    def __init__(self, signum: int):
        self.signum = signum
        super().__init__(f"Terminated by signal {signum}")


class ConfigError(InstallerError):
    pass

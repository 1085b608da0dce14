from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from .errors import ConfigError
from .logging_utils import DEFAULT_LOG_PATH
from .plan import (
    DEFAULT_BOOTLOADER_ID,
    DEFAULT_EFI_DIR,
    DEFAULT_GRUB_CFG,
    DEFAULT_GRUB_MKCONFIG,
    DEFAULT_MOUNTPOINT,
)

DEFAULT_CONFIG_PATH = "/etc/grub-uefi-installer.yaml"
SECTIONS = ("install", "grub", "logging")


@dataclass(frozen=True)
class InstallerConfig:
    raw: Dict[str, Any] = field(default_factory=dict)

    def _section(self, name: str) -> Dict[str, Any]:
        return self.raw.get(name) or {}

    @property
    def mountpoint(self) -> str:
        return str(self._section("install").get("mountpoint") or DEFAULT_MOUNTPOINT)

    @property
    def efi_dir(self) -> str:
        return str(self._section("install").get("efi_dir") or DEFAULT_EFI_DIR)

    @property
    def bootloader_id(self) -> str:
        return str(self._section("grub").get("bootloader_id") or DEFAULT_BOOTLOADER_ID)

    @property
    def platform_dir(self) -> Optional[str]:
        v = self._section("grub").get("platform_dir")
        return str(v) if v else None

    @property
    def grub_mkconfig(self) -> str:
        return str(self._section("grub").get("mkconfig") or DEFAULT_GRUB_MKCONFIG)

    @property
    def grub_cfg(self) -> str:
        return str(self._section("grub").get("config_path") or DEFAULT_GRUB_CFG)

    @property
    def log_path(self) -> str:
        return str(self._section("logging").get("path") or DEFAULT_LOG_PATH)


def load_config(path: str) -> InstallerConfig:
    p = Path(path)
    if not p.exists():
        raise ConfigError(f"Config file does not exist: {path}")

    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ConfigError(f"Config must be YAML: {path}")

    try:
        import yaml  # type: ignore
    except Exception as e:
        raise ConfigError("PyYAML is required to read the config file") from e

    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"{path} must contain a mapping/object")
    for name in SECTIONS:
        if not isinstance(raw.get(name) or {}, dict):
            raise ConfigError(f"{path}: section '{name}' must be a mapping/object")

    return InstallerConfig(raw=raw)


def find_config(path_arg: Optional[str], default_path: str = DEFAULT_CONFIG_PATH) -> InstallerConfig:
    """Explicit path (must exist), then the system-wide file if present, else defaults."""

    if path_arg:
        return load_config(path_arg)
    if Path(default_path).exists():
        return load_config(default_path)
    return InstallerConfig()

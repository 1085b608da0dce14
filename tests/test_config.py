"""
Tests for the YAML config file and logging setup.
"""
import logging

import pytest

from grub_uefi_installer.config import InstallerConfig, find_config, load_config
from grub_uefi_installer.errors import ConfigError
from grub_uefi_installer.logging_utils import ConsoleFormatter, configure_logging, level_for
from grub_uefi_installer.plan import DEFAULT_BOOTLOADER_ID, DEFAULT_MOUNTPOINT
from grub_uefi_installer.style import RED, YELLOW, OutputStyle

CONFIG = """\
install:
  mountpoint: /mnt/target
  efi_dir: efi
grub:
  bootloader_id: debian
  platform_dir: /usr/lib/grub/x86_64-efi
  mkconfig: grub2-mkconfig
  config_path: /boot/grub2/grub.cfg
logging:
  path: /tmp/installer.log
"""


def test_defaults():
    cfg = InstallerConfig()
    assert cfg.mountpoint == DEFAULT_MOUNTPOINT
    assert cfg.bootloader_id == DEFAULT_BOOTLOADER_ID
    assert cfg.platform_dir is None
    assert cfg.efi_dir == "boot/efi"


def test_load_config(tmp_path):
    path = tmp_path / "installer.yaml"
    path.write_text(CONFIG)
    cfg = load_config(str(path))

    assert cfg.mountpoint == "/mnt/target"
    assert cfg.efi_dir == "efi"
    assert cfg.bootloader_id == "debian"
    assert cfg.platform_dir == "/usr/lib/grub/x86_64-efi"
    assert cfg.grub_mkconfig == "grub2-mkconfig"
    assert cfg.grub_cfg == "/boot/grub2/grub.cfg"
    assert cfg.log_path == "/tmp/installer.log"


def test_empty_config_uses_defaults(tmp_path):
    path = tmp_path / "empty.yml"
    path.write_text("")
    assert load_config(str(path)).mountpoint == DEFAULT_MOUNTPOINT


@pytest.mark.parametrize(
    "name,content",
    [
        ("config.json", "{}"),
        ("broken.yaml", "install: [unclosed"),
        ("list.yaml", "- a\n- b\n"),
        ("scalar_section.yaml", "install: /mnt/x\n"),
        ("list_section.yaml", "grub:\n  - debian\n"),
    ],
)
def test_bad_config(tmp_path, name, content):
    path = tmp_path / name
    path.write_text(content)
    with pytest.raises(ConfigError):
        load_config(str(path))


def test_missing_config(tmp_path):
    with pytest.raises(ConfigError):
        load_config(str(tmp_path / "nope.yaml"))
    with pytest.raises(ConfigError):
        find_config(str(tmp_path / "nope.yaml"))


def test_find_config_falls_back(tmp_path):
    assert find_config(None, str(tmp_path / "absent.yaml")).raw == {}

    system = tmp_path / "system.yaml"
    system.write_text(CONFIG)
    assert find_config(None, str(system)).bootloader_id == "debian"


def test_level_for():
    assert level_for() == logging.INFO
    assert level_for(quiet=True) == logging.WARNING
    assert level_for(quiet=True, verbose=True) == logging.DEBUG


def test_console_formatter_colors():
    fmt = ConsoleFormatter(OutputStyle(color=True))

    def line(level):
        return fmt.format(logging.LogRecord("x", level, __file__, 1, "msg", None, None))

    assert line(logging.ERROR).startswith(RED)
    assert line(logging.WARNING).startswith(YELLOW)
    assert line(logging.INFO) == "INFO: msg"
    assert ConsoleFormatter(OutputStyle()).format(
        logging.LogRecord("x", logging.ERROR, __file__, 1, "msg", None, None)
    ) == "ERROR: msg"


def test_configure_logging_writes_file(tmp_path, root_logger):
    log = tmp_path / "logs" / "installer.log"
    assert configure_logging(str(log), also_console=False) == str(log)
    # A second call keeps the first setup.
    assert configure_logging(str(tmp_path / "other.log"), also_console=False) == str(log)

    logging.getLogger("grub_uefi_installer.test").info("hello")
    for h in root_logger.handlers:
        h.flush()
    assert "hello" in log.read_text()
    assert not (tmp_path / "other.log").exists()


def test_configure_logging_without_file(root_logger):
    assert configure_logging(None, level=logging.WARNING) is None

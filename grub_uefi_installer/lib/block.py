from __future__ import annotations

import json
import logging
import os
import stat
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from ..errors import DeviceQueryError, NotABlockDeviceError, NoSuchDeviceError
from .command import run_cmd

logger = logging.getLogger(__name__)

SECTOR_SIZE = 512

LSBLK_COLUMNS = (
    "NAME",
    "TYPE",
    "SIZE",
    "FSTYPE",
    "PARTTYPE",
    "UUID",
    "LABEL",
    "RM",
    "ROTA",
    "MOUNTPOINTS",
    "MODEL",
    "PKNAME",
    "MAJ:MIN",
)


class DeviceKind(Enum):
    DISK = "disk"
    PARTITION = "part"
    OTHER = "other"


class TriState(Enum):
    YES = "yes"
    NO = "no"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> "TriState":
        # lsblk emits booleans in recent releases and "0"/"1" in older ones;
        # some USB bridges report nothing at all.
        if value is True or value in (1, "1", "true"):
            return cls.YES
        if value is False or value in (0, "0", "false"):
            return cls.NO
        return cls.UNKNOWN


@dataclass(frozen=True)
class DeviceRecord:
    name: str
    kind: DeviceKind
    size_sectors: Optional[int] = None
    fs_type: str = ""
    part_type_id: str = ""
    uuid: Optional[str] = None
    label: Optional[str] = None
    removable: TriState = TriState.UNKNOWN
    rotational: TriState = TriState.UNKNOWN
    mountpoints: Tuple[str, ...] = ()
    model: str = ""
    parent: Optional[str] = None
    major: Optional[int] = None

    @property
    def path(self) -> str:
        return device_path(self.name)

    @property
    def size_bytes(self) -> Optional[int]:
        if self.size_sectors is None:
            return None
        return self.size_sectors * SECTOR_SIZE

    @property
    def is_disk(self) -> bool:
        return self.kind is DeviceKind.DISK

    @property
    def is_partition(self) -> bool:
        return self.kind is DeviceKind.PARTITION


def device_path(name: str) -> str:
    if name.startswith("/"):
        return name
    return f"/dev/{name}"


def leaf_name(device: str) -> str:
    return os.path.basename(device.rstrip("/"))


def normalize_part_type(value: Any) -> str:
    """Lower-case GUIDs; fold legacy codes to 0x.. without leading zeros."""

    if value is None:
        return ""
    s = str(value).strip().lower()
    if s.startswith("0x"):
        try:
            return hex(int(s, 16))
        except ValueError:
            return s
    return s


def _parse_size(value: Any) -> Optional[int]:
    if value in (None, ""):
        return None
    try:
        return int(value) // SECTOR_SIZE
    except (TypeError, ValueError):
        return None


def _parse_major(value: Any) -> Optional[int]:
    if not value:
        return None
    try:
        return int(str(value).split(":", 1)[0])
    except ValueError:
        return None


def _parse_kind(value: Any) -> DeviceKind:
    if value == "disk":
        return DeviceKind.DISK
    if value == "part":
        return DeviceKind.PARTITION
    return DeviceKind.OTHER


def _record_from_node(node: Dict[str, Any]) -> DeviceRecord:
    mountpoints = node.get("mountpoints")
    if mountpoints is None and node.get("mountpoint"):
        mountpoints = [node["mountpoint"]]
    return DeviceRecord(
        name=str(node.get("name") or ""),
        kind=_parse_kind(node.get("type")),
        size_sectors=_parse_size(node.get("size")),
        fs_type=(node.get("fstype") or "").strip(),
        part_type_id=normalize_part_type(node.get("parttype")),
        uuid=node.get("uuid") or None,
        label=node.get("label") or None,
        removable=TriState.parse(node.get("rm")),
        rotational=TriState.parse(node.get("rota")),
        mountpoints=tuple(m for m in (mountpoints or []) if m),
        model=(node.get("model") or "").strip(),
        parent=node.get("pkname") or None,
        major=_parse_major(node.get("maj:min")),
    )


def parse_lsblk_json(text: str) -> List[DeviceRecord]:
    """Turn `lsblk --json --list` output into records, in lsblk order."""

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise DeviceQueryError(f"lsblk output is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise DeviceQueryError("lsblk output must be a JSON object")

    records: List[DeviceRecord] = []
    seen = set()

    def walk(nodes: Iterable[Dict[str, Any]]) -> None:
        for node in nodes:
            rec = _record_from_node(node)
            # Devices with several parents (md, dm) show up once per parent.
            if rec.name and rec.name not in seen:
                seen.add(rec.name)
                records.append(rec)
            walk(node.get("children") or [])

    walk(data.get("blockdevices") or [])
    return records


class DeviceCatalog:
    """Fresh snapshots of block devices, one lsblk call per query."""

    def __init__(self, lsblk: str = "lsblk"):
        self.lsblk = lsblk

    def query(self, devices: Sequence[str] = (), *, include_major: Optional[int] = None) -> List[DeviceRecord]:
        argv = [self.lsblk, "--json", "--bytes", "--list", "--output", ",".join(LSBLK_COLUMNS)]
        if include_major is not None:
            argv += ["--include", str(include_major)]
        argv += [device_path(d) for d in devices]

        r = run_cmd(argv, check=False)
        if r.returncode != 0:
            raise DeviceQueryError(
                f"lsblk failed (rc={r.returncode}) for {', '.join(devices) or 'all devices'}: {r.stderr.strip()}"
            )
        records = parse_lsblk_json(r.stdout)
        logger.debug("lsblk returned %d record(s)", len(records))
        return records

    def find(self, device: str) -> DeviceRecord:
        name = leaf_name(device)
        for rec in self.query([name]):
            if rec.name == name:
                return rec
        raise DeviceQueryError(f"lsblk does not report {device_path(name)}")

    def drive_records(self, drive: str) -> List[DeviceRecord]:
        return self.query([leaf_name(drive)])


def require_block_device(device: str) -> str:
    """Return the /dev path of device, which must exist and be a block device."""

    path = device_path(device)
    try:
        st = os.stat(path)
    except FileNotFoundError as e:
        raise NoSuchDeviceError(f"{path} does not exist") from e
    if not stat.S_ISBLK(st.st_mode):
        raise NotABlockDeviceError(f"{path} is not a block device")
    return path

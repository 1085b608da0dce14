from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from ..style import OutputStyle
from .block import DeviceRecord, TriState
from .partition_types import (
    BOOT_RECORD_TYPES,
    ListingOptions,
    ListingVerdict,
    classify_drive_for_listing,
    classify_for_listing,
    simplify_fs,
)

logger = logging.getLogger(__name__)

_UNITS = ["B", "K", "M", "G", "T", "P", "E"]

DRIVE_HEADER = ["NAME", "SIZE", "MODEL"]
DRIVE_FULL_HEADER = ["NAME", "SIZE", "ROTA", "RM", "PARTS", "MODEL", "LABELS"]
PARTITION_HEADER = ["NAME", "SIZE", "FSTYPE", "LABEL"]


def human_size(size_bytes: Optional[int]) -> str:
    """lsblk-style size: binary units, one decimal, no trailing .0."""

    if size_bytes is None:
        return "?"
    value = float(size_bytes)
    for unit in _UNITS:
        if value < 1024 or unit == _UNITS[-1]:
            if unit == "B":
                return f"{int(value)}B"
            text = f"{value:.1f}".rstrip("0").rstrip(".")
            return f"{text}{unit}"
        value /= 1024
    return f"{size_bytes}B"


def _tristate(value: TriState) -> str:
    return {TriState.YES: "yes", TriState.NO: "no"}.get(value, "?")


def _render(
    rows: List[List[str]],
    header: Optional[List[str]],
    options: ListingOptions,
    style: OutputStyle,
) -> List[str]:
    if options.tab:
        lines = ["\t".join(header)] if header else []
        lines.extend("\t".join(r) for r in rows)
        return lines

    table = ([header] if header else []) + rows
    if not table:
        return []
    widths = [max(len(r[i]) for r in table) for i in range(len(table[0]))]

    def fmt(row: List[str]) -> str:
        cells = [c.ljust(w) for c, w in zip(row[:-1], widths[:-1])] + [row[-1]]
        return " ".join(cells).rstrip()

    lines = []
    if header:
        lines.append(style.bold(fmt(header)))
    lines.extend(fmt(r) for r in rows)
    return lines


def format_drives(records: Sequence[DeviceRecord], options: ListingOptions, style: OutputStyle) -> List[str]:
    drives = [r for r in records if classify_drive_for_listing(r, options) is ListingVerdict.INCLUDE]
    logger.debug("Listing %d of %d record(s) as drives", len(drives), len(records))

    rows: List[List[str]] = []
    for d in drives:
        name = f"{options.prefix}{d.name}"
        size = human_size(d.size_bytes)
        if not options.full:
            rows.append([name, size, d.model])
            continue

        children = [r for r in records if r.is_partition and r.parent == d.name]
        count = sum(1 for r in children if r.part_type_id not in BOOT_RECORD_TYPES)
        labels = " ".join(f'"{r.label}"' for r in [d, *children] if r.label)
        rows.append(
            [name, size, _tristate(d.rotational), _tristate(d.removable), str(count), d.model, labels]
        )

    header = None
    if options.header:
        header = list(DRIVE_FULL_HEADER if options.full else DRIVE_HEADER)
    return _render(rows, header, options, style)


def format_partitions(records: Sequence[DeviceRecord], options: ListingOptions, style: OutputStyle) -> List[str]:
    parts = [r for r in records if classify_for_listing(r, options) is ListingVerdict.INCLUDE]
    logger.debug("Listing %d of %d record(s) as partitions", len(parts), len(records))

    rows = []
    for p in parts:
        fs = simplify_fs(p.fs_type) if options.simplify else p.fs_type
        rows.append([f"{options.prefix}{p.name}", human_size(p.size_bytes), fs, p.label or ""])

    header = list(PARTITION_HEADER) if options.header else None
    return _render(rows, header, options, style)

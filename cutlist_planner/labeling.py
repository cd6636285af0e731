from __future__ import annotations

import re
import string
from collections import OrderedDict
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Union

from cutlist_planner.models import LayoutResult, Placement, SheetLayout

INSTANCE_SUFFIX = re.compile(r"\s*#\d+\s*$")


@dataclass(frozen=True)
class PartColor:
    fill: str
    stroke: str
    text: str


PALETTE = [
    PartColor("#dbeafe", "#2563eb", "#1e3a5f"),
    PartColor("#dcfce7", "#16a34a", "#14532d"),
    PartColor("#fef3c7", "#d97706", "#78350f"),
    PartColor("#fce7f3", "#db2777", "#831843"),
    PartColor("#e0e7ff", "#4f46e5", "#312e81"),
    PartColor("#fed7aa", "#ea580c", "#7c2d12"),
    PartColor("#ccfbf1", "#0d9488", "#134e4a"),
    PartColor("#fde68a", "#ca8a04", "#713f12"),
    PartColor("#e9d5ff", "#9333ea", "#581c87"),
    PartColor("#fecaca", "#dc2626", "#7f1d1d"),
    PartColor("#cffafe", "#0891b2", "#155e75"),
    PartColor("#d1fae5", "#059669", "#064e3b"),
]


@dataclass
class LegendRow:
    letter: str
    base_part_id: str
    name: str
    qty: int
    length_mm: Decimal
    width_mm: Decimal
    color: PartColor


def base_part_name(name: str) -> str:
    """``"top#35"`` -> ``"top"``; names without an instance suffix are only trimmed."""
    return INSTANCE_SUFFIX.sub("", str(name)).strip()


def index_to_letter(index: int) -> str:
    """Spreadsheet-style column letters: 0 -> A, 25 -> Z, 26 -> AA, 702 -> AAA."""
    letters = ""
    n = index + 1
    while n:
        n, rem = divmod(n - 1, 26)
        letters = string.ascii_uppercase[rem] + letters
    return letters


def _placements(source: Union[LayoutResult, Iterable[SheetLayout]]) -> List[Placement]:
    if isinstance(source, LayoutResult):
        return source.placements
    return [placement for sheet in source for placement in sheet.placements]


def sorted_base_names(source: Union[LayoutResult, Iterable[SheetLayout]]) -> List[str]:
    names = {base_part_name(placement.part_id) for placement in _placements(source)}
    return sorted(names, key=lambda name: (name.casefold(), name))


def build_letter_map(source: Union[LayoutResult, Iterable[SheetLayout]]) -> Dict[str, str]:
    return {name: index_to_letter(i) for i, name in enumerate(sorted_base_names(source))}


def build_color_map(source: Union[LayoutResult, Iterable[SheetLayout]]) -> Dict[str, PartColor]:
    return {name: PALETTE[i % len(PALETTE)] for i, name in enumerate(sorted_base_names(source))}


def build_legend(
    placements: Iterable[Placement],
    letter_map: Dict[str, str],
    color_map: Dict[str, PartColor],
) -> List[LegendRow]:
    grouped: "OrderedDict[str, list]" = OrderedDict()
    for placement in placements:
        base = base_part_name(placement.part_id)
        if base in grouped:
            grouped[base][0] += 1
            continue
        # labels such as "Door #2" are user-facing and kept as written
        display = placement.label if placement.label and placement.label != placement.part_id else base
        grouped[base] = [1, placement, display]
    rows = [
        LegendRow(
            letter=letter_map.get(base, "?"),
            base_part_id=base,
            name=display,
            qty=count,
            length_mm=sample.original_length_mm,
            width_mm=sample.original_width_mm,
            color=color_map.get(base, PALETTE[0]),
        )
        for base, (count, sample, display) in grouped.items()
    ]
    return sorted(rows, key=lambda row: (len(row.letter), row.letter))

"""Expansion of grouped cutlist parts by board type.

``16mm``
    parts as-is on the primary board, 16mm edging.
``32mm-both``
    two layers of the primary board per finished part (``<group>:<id>`` and
    ``<group>:<id>-layer2``), 32mm edging.
``32mm-backer``
    one primary layer plus one ``<group>:<id>-backer`` layer on the backer
    board, 32mm edging.

Expanded ids are prefixed with the group id and made unique across the whole
calculation, so groups sharing a material never collide when packed together.
Labels are kept as written for display.
"""
from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Iterable, List, Optional

from cutlist_planner.models import PartSpec
from cutlist_planner.planner import edgebanding_length
from cutlist_planner.rounding import ZERO

BOARD_16MM = "16mm"
BOARD_32MM_BOTH = "32mm-both"
BOARD_32MM_BACKER = "32mm-backer"
BOARD_TYPES = (BOARD_16MM, BOARD_32MM_BOTH, BOARD_32MM_BACKER)

BOARD_TYPE_LABELS = {
    BOARD_16MM: "16mm Single",
    BOARD_32MM_BOTH: "32mm Both Sides",
    BOARD_32MM_BACKER: "32mm With Backer",
}

UNASSIGNED = "unassigned"
UNASSIGNED_BACKER = "unassigned-backer"


@dataclass
class CutlistGroup:
    id: str
    name: str
    board_type: str
    parts: List[PartSpec] = field(default_factory=list)
    primary_material_id: Optional[str] = None
    primary_material_name: Optional[str] = None
    backer_material_id: Optional[str] = None
    backer_material_name: Optional[str] = None


@dataclass
class MaterialPartSet:
    material_id: Optional[str]
    material_name: Optional[str]
    parts: List[PartSpec]
    is_backer: bool


@dataclass
class BoardCalculation:
    primary_sets: List[MaterialPartSet]
    backer_sets: List[MaterialPartSet]
    edging_16mm_mm: Decimal
    edging_32mm_mm: Decimal
    total_primary_parts: int
    total_backer_parts: int
    groups_processed: int


def board_type_label(board_type: str) -> str:
    return BOARD_TYPE_LABELS[board_type]


def _unique_id(candidate: str, taken: set) -> str:
    part_id = candidate
    n = 2
    while part_id in taken:
        part_id = f"{candidate}-{n}"
        n += 1
    taken.add(part_id)
    return part_id


def expand_groups(groups: Iterable[CutlistGroup]) -> BoardCalculation:
    groups = list(groups)
    primary: "OrderedDict[str, MaterialPartSet]" = OrderedDict()
    backer: "OrderedDict[str, MaterialPartSet]" = OrderedDict()
    edging_16 = ZERO
    edging_32 = ZERO
    total_primary = 0
    total_backer = 0
    taken_ids: set = set()

    for group in groups:
        if group.board_type not in BOARD_TYPES:
            raise ValueError(f"unknown board type '{group.board_type}' in group {group.id}")
        primary_key = group.primary_material_id or UNASSIGNED
        primary_set = primary.setdefault(
            primary_key,
            MaterialPartSet(
                material_id=group.primary_material_id,
                material_name=group.primary_material_name,
                parts=[],
                is_backer=False,
            ),
        )
        for part in group.parts:
            banding = edgebanding_length(part) * part.qty
            base_id = _unique_id(f"{group.id}:{part.id}", taken_ids)
            if group.board_type == BOARD_16MM:
                primary_set.parts.append(
                    replace(part, id=base_id, laminate=False, material_id=group.primary_material_id)
                )
                edging_16 += banding
                total_primary += part.qty
            elif group.board_type == BOARD_32MM_BOTH:
                face = replace(
                    part,
                    id=base_id,
                    laminate=True,
                    lamination_type="same-board",
                    material_id=group.primary_material_id,
                )
                # The second layer is cut from the same board but is banded
                # together with the face, so it carries no edges of its own
                primary_set.parts.append(face)
                primary_set.parts.append(
                    replace(
                        face,
                        id=_unique_id(f"{base_id}-layer2", taken_ids),
                        label=f"{part.label}-layer2",
                        band_edges=None,
                    )
                )
                edging_32 += banding
                total_primary += part.qty * 2
            else:
                primary_set.parts.append(
                    replace(
                        part,
                        id=base_id,
                        laminate=True,
                        lamination_type="with-backer",
                        material_id=group.primary_material_id,
                    )
                )
                backer_id = group.backer_material_id or group.primary_material_id
                backer_set = backer.setdefault(
                    backer_id or UNASSIGNED_BACKER,
                    MaterialPartSet(
                        material_id=backer_id,
                        material_name=group.backer_material_name,
                        parts=[],
                        is_backer=True,
                    ),
                )
                # Backer layers are hidden, so they carry no banding of their own
                backer_set.parts.append(
                    replace(
                        part,
                        id=_unique_id(f"{base_id}-backer", taken_ids),
                        label=f"{part.label}-backer",
                        laminate=True,
                        lamination_type="with-backer",
                        material_id=backer_id,
                        band_edges=None,
                    )
                )
                edging_32 += banding
                total_primary += part.qty
                total_backer += part.qty

    return BoardCalculation(
        primary_sets=[part_set for part_set in primary.values() if part_set.parts],
        backer_sets=list(backer.values()),
        edging_16mm_mm=edging_16,
        edging_32mm_mm=edging_32,
        total_primary_parts=total_primary,
        total_backer_parts=total_backer,
        groups_processed=len(groups),
    )

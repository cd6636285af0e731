from __future__ import annotations

import logging
from collections import OrderedDict
from decimal import Decimal
from typing import Dict, Iterable, Sequence

from cutlist_planner.io import expand_instances
from cutlist_planner.models import (
    GRAIN_VALUES,
    LAMINATION_TYPES,
    LayoutResult,
    LayoutStats,
    PackOptions,
    PartInstance,
    PartSpec,
    RejectedInput,
    SheetLayout,
    StockSheetSpec,
    UnplacedPart,
)
from cutlist_planner.packing import pack_instances
from cutlist_planner.rounding import ZERO

logger = logging.getLogger(__name__)

UNASSIGNED_MATERIAL = "unassigned"
EDGE_16MM = Decimal("16")
EDGE_32MM = Decimal("32")
EDGE_48MM = Decimal("48")


def _dimension_errors(label: str, value: Decimal) -> list[str]:
    if not value.is_finite():
        return [f"{label} must be a finite number"]
    if value <= 0:
        return [f"{label} must be greater than 0"]
    return []


def validate_parts(parts: Iterable[PartSpec]) -> tuple[list[PartSpec], list[RejectedInput]]:
    valid: list[PartSpec] = []
    rejected: list[RejectedInput] = []
    seen_ids: set[str] = set()
    for part in parts:
        reasons = _dimension_errors("length_mm", part.length_mm) + _dimension_errors("width_mm", part.width_mm)
        if part.qty < 1:
            reasons.append("qty must be at least 1")
        if part.grain not in GRAIN_VALUES:
            reasons.append(f"grain '{part.grain}' is not one of {', '.join(GRAIN_VALUES)}")
        if part.lamination_type not in LAMINATION_TYPES:
            reasons.append(f"lamination_type '{part.lamination_type}' is not supported")
        if part.id in seen_ids:
            reasons.append("duplicate part id")
        if reasons:
            logger.warning("Rejected part %s: %s", part.id, "; ".join(reasons))
            rejected.append(RejectedInput(id=part.id, reasons=reasons))
            continue
        seen_ids.add(part.id)
        valid.append(part)
    return valid, rejected


def validate_stock(stock: Iterable[StockSheetSpec]) -> tuple[list[StockSheetSpec], list[RejectedInput]]:
    valid: list[StockSheetSpec] = []
    rejected: list[RejectedInput] = []
    for spec in stock:
        reasons = _dimension_errors("length_mm", spec.length_mm) + _dimension_errors("width_mm", spec.width_mm)
        if not spec.kerf_mm.is_finite() or spec.kerf_mm < 0:
            reasons.append("kerf_mm must be 0 or more")
        if spec.qty is not None and spec.qty < 0:
            reasons.append("qty must be 0 or more")
        if reasons:
            logger.warning("Rejected stock sheet %s: %s", spec.id, "; ".join(reasons))
            rejected.append(RejectedInput(id=spec.id, reasons=reasons))
            continue
        valid.append(spec)
    return valid, rejected


def sort_instances(instances: Iterable[PartInstance]) -> list[PartInstance]:
    # sorted() is stable with reverse=True, so equal keys keep input order
    return sorted(
        instances,
        key=lambda inst: (inst.area_mm2, inst.max_dim_mm),
        reverse=True,
    )


def edge_thickness(part: PartSpec) -> Decimal:
    if part.edge_thickness_mm is not None:
        return part.edge_thickness_mm
    if part.lamination_type == "custom":
        return EDGE_48MM
    if part.is_laminated:
        return EDGE_32MM
    return EDGE_16MM


def edgebanding_length(part: PartSpec) -> Decimal:
    """Banded length of one finished part: top/bottom run along its length, left/right along its width."""
    edges = part.band_edges
    total = ZERO
    if edges.top:
        total += part.length_mm
    if edges.bottom:
        total += part.length_mm
    if edges.left:
        total += part.width_mm
    if edges.right:
        total += part.width_mm
    return total


def compute_stats(sheets: Sequence[SheetLayout], parts_by_id: Dict[str, PartSpec]) -> LayoutStats:
    stats = LayoutStats()
    by_thickness: Dict[Decimal, Decimal] = {}
    for sheet in sheets:
        stats.used_area_mm2 += sheet.used_area_mm2
        stats.waste_area_mm2 += sheet.waste_area_mm2
        for placement in sheet.placements:
            stats.cuts += 2
            stats.cut_length_mm += placement.w + placement.h
            part = parts_by_id.get(placement.part_id)
            if part is None:
                continue
            length = edgebanding_length(part)
            if length == 0:
                continue
            thickness = edge_thickness(part)
            by_thickness[thickness] = by_thickness.get(thickness, ZERO) + length
    stats.edgebanding_by_thickness = dict(sorted(by_thickness.items()))
    stats.edgebanding_16mm_mm = by_thickness.get(EDGE_16MM, ZERO)
    stats.edgebanding_32mm_mm = by_thickness.get(EDGE_32MM, ZERO)
    stats.edgebanding_length_mm = sum(by_thickness.values(), ZERO)
    return stats


def _summarize_unplaced(unplaced: Iterable[tuple[PartInstance, str]]) -> list[UnplacedPart]:
    counts: "OrderedDict[tuple[str, str], int]" = OrderedDict()
    for instance, reason in sorted(unplaced, key=lambda item: item[0].order):
        key = (instance.part.id, reason)
        counts[key] = counts.get(key, 0) + 1
    return [UnplacedPart(part_id=part_id, count=count, reason=reason) for (part_id, reason), count in counts.items()]


def pack(
    parts: Iterable[PartSpec],
    stock: Iterable[StockSheetSpec],
    options: PackOptions | None = None,
) -> LayoutResult:
    """Nest parts onto stock sheets.

    Invalid parts and stock are reported on ``rejected`` / ``rejected_stock``;
    valid instances that no sheet can take are reported on ``unplaced``.
    """
    options = options or PackOptions()
    valid_parts, rejected = validate_parts(parts)
    valid_stock, rejected_stock = validate_stock(stock)
    instances = sort_instances(expand_instances(valid_parts))
    logger.debug("Packing %d instances onto %d stock types", len(instances), len(valid_stock))

    run = pack_instances(instances, valid_stock, options)
    unplaced = _summarize_unplaced(run.unplaced)
    stats = compute_stats(run.sheets, {part.id: part for part in valid_parts})
    if unplaced:
        logger.warning(
            "%d instance(s) could not be placed: %s",
            sum(item.count for item in unplaced),
            ", ".join(f"{item.part_id}x{item.count} ({item.reason})" for item in unplaced),
        )
    logger.info(
        "Packed %d instance(s) onto %d sheet(s), waste %s mm2",
        len(instances) - len(run.unplaced),
        len(run.sheets),
        stats.waste_area_mm2,
    )
    return LayoutResult(
        sheets=run.sheets,
        stats=stats,
        unplaced=unplaced,
        rejected=rejected,
        rejected_stock=rejected_stock,
    )


def material_key(part: PartSpec) -> str:
    return part.material_id or UNASSIGNED_MATERIAL


def pack_by_material(
    parts: Iterable[PartSpec],
    stock: Sequence[StockSheetSpec],
    options: PackOptions | None = None,
) -> Dict[str, LayoutResult]:
    """Pack each material group separately so no sheet mixes materials.

    Stock without a ``material`` serves every group. Stock is validated once;
    rejected sheets are reported on the first group's result only.
    """
    valid_stock, rejected_stock = validate_stock(stock)
    groups: "OrderedDict[str, list[PartSpec]]" = OrderedDict()
    for part in parts:
        groups.setdefault(material_key(part), []).append(part)
    results: Dict[str, LayoutResult] = {}
    for key, group_parts in groups.items():
        group_stock = [spec for spec in valid_stock if spec.material is None or spec.material == key]
        if not group_stock:
            logger.warning("No stock sheets for material %s", key)
        result = pack(group_parts, group_stock, options)
        if key != UNASSIGNED_MATERIAL:
            for sheet in result.sheets:
                sheet.material_label = sheet.material_label or key
        results[key] = result
    if results:
        next(iter(results.values())).rejected_stock = rejected_stock
    return results

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional

import pandas as pd

from cutlist_planner.labeling import base_part_name, build_color_map, build_letter_map
from cutlist_planner.models import FreeRect, LayoutResult, SheetLayout
from cutlist_planner.rounding import DIM_QUANT, ZERO, ceil_decimal, round_pct

HUNDRED = Decimal("100")
MIN_OFFCUT_DIMENSION_MM = Decimal("150")
MIN_OFFCUT_AREA_MM2 = Decimal("100000")

BILLING_AUTO = "auto"
BILLING_FULL = "full"
BILLING_MANUAL = "manual"

CIRCLED = {
    1: "①",
    2: "②",
    3: "③",
    4: "④",
    5: "⑤",
    6: "⑥",
    7: "⑦",
    8: "⑧",
    9: "⑨",
    10: "⑩",
    11: "⑪",
    12: "⑫",
    13: "⑬",
    14: "⑭",
    15: "⑮",
    16: "⑯",
    17: "⑰",
    18: "⑱",
    19: "⑲",
    20: "⑳",
}


@dataclass
class SheetBillingOverride:
    mode: str = BILLING_AUTO
    manual_pct: Decimal = ZERO


def label_sheet(sheet: SheetLayout) -> str:
    suffix = CIRCLED.get(sheet.index, str(sheet.index))
    return f"{sheet.stock_id} {suffix}"


def sheet_utilization_pct(sheet: SheetLayout) -> Decimal:
    if sheet.area_mm2 <= 0:
        return ZERO
    return round_pct(sheet.used_area_mm2 / sheet.area_mm2 * HUNDRED)


def fractional_sheets(result: LayoutResult, sheet_area_mm2: Optional[Decimal] = None) -> Decimal:
    """Used area expressed in sheets, for billing part-sheets.

    Defaults to the area of the first sheet in the result.
    """
    if sheet_area_mm2 is None:
        if not result.sheets:
            return ZERO
        sheet_area_mm2 = result.sheets[0].area_mm2
    if sheet_area_mm2 <= 0:
        return ZERO
    return ceil_decimal(result.stats.used_area_mm2 / sheet_area_mm2, DIM_QUANT)


def _clamp_pct(value) -> Decimal:
    return min(HUNDRED, max(ZERO, Decimal(str(value))))


def billable_sheets(
    result: LayoutResult,
    overrides: Optional[Dict[str, SheetBillingOverride]] = None,
    full_board: bool = False,
) -> Decimal:
    overrides = overrides or {}
    total = ZERO
    for sheet in result.sheets:
        pct = _clamp_pct(sheet.used_area_mm2 / sheet.area_mm2 * HUNDRED) if sheet.area_mm2 > 0 else ZERO
        override = overrides.get(sheet.sheet_id)
        if full_board:
            pct = HUNDRED
        elif override is not None:
            if override.mode == BILLING_FULL:
                pct = HUNDRED
            elif override.mode == BILLING_MANUAL:
                pct = _clamp_pct(override.manual_pct)
        total += pct / HUNDRED
    return ceil_decimal(total, DIM_QUANT)


def usable_offcuts(
    sheet: SheetLayout,
    min_dimension_mm: Decimal = MIN_OFFCUT_DIMENSION_MM,
    min_area_mm2: Decimal = MIN_OFFCUT_AREA_MM2,
) -> List[FreeRect]:
    offcuts = [
        rect
        for rect in sheet.free_regions
        if min(rect.w, rect.h) >= min_dimension_mm and rect.area_mm2 >= min_area_mm2
    ]
    return sorted(offcuts, key=lambda rect: rect.area_mm2, reverse=True)


def build_placement_rows(result: LayoutResult) -> pd.DataFrame:
    letter_map = build_letter_map(result)
    rows = []
    for sheet in result.sheets:
        for placement in sheet.placements:
            rows.append(
                {
                    "sheet_label": label_sheet(sheet),
                    "sheet_id": sheet.sheet_id,
                    "sheet_index": sheet.index,
                    "stock_id": sheet.stock_id,
                    "material_label": sheet.material_label,
                    "part_id": placement.part_id,
                    "instance_id": placement.instance_id,
                    "label": placement.label,
                    "letter": letter_map.get(base_part_name(placement.part_id), ""),
                    "x_mm": placement.x,
                    "y_mm": placement.y,
                    "w_mm": placement.w,
                    "h_mm": placement.h,
                    "length_mm": placement.original_length_mm,
                    "width_mm": placement.original_width_mm,
                    "rot": placement.rot,
                }
            )
    df = pd.DataFrame(rows)
    if df.empty:
        return df
    df = df.sort_values(by=["sheet_index", "y_mm", "x_mm", "instance_id"], kind="mergesort")
    return df.reset_index(drop=True)


def build_summary(result: LayoutResult) -> dict:
    stats = result.stats
    total_area = sum((sheet.area_mm2 for sheet in result.sheets), ZERO)
    used_pct = round_pct(stats.used_area_mm2 / total_area * HUNDRED) if total_area > 0 else ZERO
    color_map = build_color_map(result)
    return {
        "sheets_used": len(result.sheets),
        "fractional_sheets": fractional_sheets(result),
        "used_pct": used_pct,
        "waste_pct": HUNDRED - used_pct if total_area > 0 else ZERO,
        "used_area_mm2": stats.used_area_mm2,
        "waste_area_mm2": stats.waste_area_mm2,
        "edgebanding_16mm_m": stats.edgebanding_16mm_mm / Decimal("1000"),
        "edgebanding_32mm_m": stats.edgebanding_32mm_mm / Decimal("1000"),
        "edgebanding_total_m": stats.edgebanding_length_mm / Decimal("1000"),
        "unplaced_count": sum(item.count for item in result.unplaced),
        "rejected_count": len(result.rejected),
        "part_colors": {name: color.fill for name, color in color_map.items()},
    }

from cutlist_planner.boards import CutlistGroup, expand_groups
from cutlist_planner.config import default_stock, load_stock_specs
from cutlist_planner.io import (
    CutlistInputError,
    expand_instances,
    load_cutlist_csv,
    normalize_part_rows,
    normalize_stock_rows,
)
from cutlist_planner.labeling import base_part_name, build_color_map, build_legend, build_letter_map
from cutlist_planner.models import BandEdges, LayoutResult, PackOptions, PartSpec, StockSheetSpec
from cutlist_planner.planner import pack, pack_by_material, validate_parts, validate_stock
from cutlist_planner.reporting import (
    billable_sheets,
    build_placement_rows,
    build_summary,
    fractional_sheets,
    sheet_utilization_pct,
)

__all__ = [
    "BandEdges",
    "CutlistGroup",
    "CutlistInputError",
    "LayoutResult",
    "PackOptions",
    "PartSpec",
    "StockSheetSpec",
    "base_part_name",
    "billable_sheets",
    "build_color_map",
    "build_legend",
    "build_letter_map",
    "build_placement_rows",
    "build_summary",
    "default_stock",
    "expand_groups",
    "expand_instances",
    "fractional_sheets",
    "load_cutlist_csv",
    "load_stock_specs",
    "normalize_part_rows",
    "normalize_stock_rows",
    "pack",
    "pack_by_material",
    "sheet_utilization_pct",
    "validate_parts",
    "validate_stock",
]

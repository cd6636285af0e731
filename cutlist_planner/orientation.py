from __future__ import annotations

from typing import Iterable, Optional

from cutlist_planner.models import GRAIN_NONE, FreeRect, Orientation, PartSpec, StockSheetSpec


def choose_orientations(part: PartSpec, allow_rotation: bool = True) -> list[Orientation]:
    """Footprints a part may take on a sheet, unrotated first.

    Grain-locked parts keep their length along the sheet length. A square part
    has a single footprint.
    """
    natural = Orientation(w=part.length_mm, h=part.width_mm, rotated=False)
    if not allow_rotation or part.grain != GRAIN_NONE or part.length_mm == part.width_mm:
        return [natural]
    return [natural, Orientation(w=part.width_mm, h=part.length_mm, rotated=True)]


def fits_region(orientation: Orientation, region: FreeRect) -> bool:
    return orientation.w <= region.w and orientation.h <= region.h


def fits_stock(part: PartSpec, stock: StockSheetSpec, allow_rotation: bool = True) -> bool:
    return any(
        orientation.w <= stock.length_mm and orientation.h <= stock.width_mm
        for orientation in choose_orientations(part, allow_rotation)
    )


def smallest_fitting_stock(
    part: PartSpec,
    stock: Iterable[StockSheetSpec],
    allow_rotation: bool = True,
) -> Optional[StockSheetSpec]:
    candidates = [spec for spec in stock if fits_stock(part, spec, allow_rotation)]
    if not candidates:
        return None
    # min() keeps the first of equal areas, so input order breaks ties
    return min(candidates, key=lambda spec: spec.area_mm2)

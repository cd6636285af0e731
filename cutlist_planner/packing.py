"""Guillotine free-rectangle packing of part instances onto stock sheets.

The packer is a greedy heuristic: instances are placed one at a time into the
best-fitting free region of the first open sheet that can hold them, and a new
sheet is opened only when no open sheet can. It is deterministic and usually
reasonable, but it does not search for the minimal-waste layout.
"""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

from cutlist_planner.models import (
    REASON_NO_CAPACITY,
    REASON_TOO_LARGE,
    FreeRect,
    Orientation,
    PackOptions,
    PackRun,
    PartInstance,
    Placement,
    SheetLayout,
    StockSheetSpec,
)
from cutlist_planner.orientation import choose_orientations, fits_region, fits_stock, smallest_fitting_stock
from cutlist_planner.rounding import ZERO

logger = logging.getLogger(__name__)


class SheetPacker:
    def __init__(self, stock: StockSheetSpec, index: int, sheet_no: int):
        self.stock = stock
        self.index = index
        self.sheet_id = f"{stock.id}:{sheet_no}"
        self.kerf = max(stock.kerf_mm, ZERO)
        self.free_regions: List[FreeRect] = [FreeRect(x=ZERO, y=ZERO, w=stock.length_mm, h=stock.width_mm)]
        self.placements: List[Placement] = []

    def _best_fit(self, instance: PartInstance, allow_rotation: bool) -> Optional[tuple]:
        best = None
        for idx, region in enumerate(self.free_regions):
            for orientation in choose_orientations(instance.part, allow_rotation):
                if not fits_region(orientation, region):
                    continue
                leftover = region.area_mm2 - orientation.w * orientation.h
                if best is None or leftover < best[0]:
                    best = (leftover, idx, orientation)
        return best

    def _split(self, region: FreeRect, orientation: Orientation) -> List[FreeRect]:
        # The placed footprint is grown by the kerf on its right and bottom
        # edges only, so a part flush with the sheet edge loses nothing there.
        right = FreeRect(
            x=region.x + orientation.w + self.kerf,
            y=region.y,
            w=region.w - orientation.w - self.kerf,
            h=orientation.h,
        )
        below = FreeRect(
            x=region.x,
            y=region.y + orientation.h + self.kerf,
            w=region.w,
            h=region.h - orientation.h - self.kerf,
        )
        return [rect for rect in (right, below) if rect.w > 0 and rect.h > 0]

    def try_place(self, instance: PartInstance, allow_rotation: bool = True) -> bool:
        best = self._best_fit(instance, allow_rotation)
        if best is None:
            return False
        _, idx, orientation = best
        region = self.free_regions[idx]
        part = instance.part
        self.placements.append(
            Placement(
                part_id=part.id,
                instance_id=instance.uid,
                label=part.label,
                x=region.x,
                y=region.y,
                w=orientation.w,
                h=orientation.h,
                original_length_mm=part.length_mm,
                original_width_mm=part.width_mm,
                rotated=orientation.rotated,
            )
        )
        self.free_regions[idx : idx + 1] = self._split(region, orientation)
        return True

    def finish(self) -> SheetLayout:
        used = sum((placement.area_mm2 for placement in self.placements), ZERO)
        area = self.stock.length_mm * self.stock.width_mm
        return SheetLayout(
            sheet_id=self.sheet_id,
            stock_id=self.stock.id,
            index=self.index,
            stock_length_mm=self.stock.length_mm,
            stock_width_mm=self.stock.width_mm,
            kerf_mm=self.kerf,
            material_label=self.stock.material or "",
            placements=list(self.placements),
            used_area_mm2=used,
            waste_area_mm2=area - used,
            free_regions=list(self.free_regions),
        )


def _select_stock(
    instance: PartInstance,
    stock: Sequence[StockSheetSpec],
    opened: List[int],
    options: PackOptions,
    open_count: int,
) -> tuple[Optional[int], str]:
    part = instance.part
    if not any(fits_stock(part, spec, options.allow_rotation) for spec in stock):
        return None, REASON_TOO_LARGE
    if options.single_sheet_only and open_count >= 1:
        return None, REASON_NO_CAPACITY
    available = [spec for idx, spec in enumerate(stock) if spec.qty is None or opened[idx] < spec.qty]
    chosen = smallest_fitting_stock(part, available, options.allow_rotation)
    if chosen is None:
        return None, REASON_NO_CAPACITY
    return next(idx for idx, spec in enumerate(stock) if spec is chosen), ""


def pack_instances(
    instances: Iterable[PartInstance],
    stock: Sequence[StockSheetSpec],
    options: PackOptions | None = None,
) -> PackRun:
    """Place already sorted instances; sheets that end up empty are dropped."""
    options = options or PackOptions()
    stock = list(stock)
    opened = [0] * len(stock)
    packers: List[SheetPacker] = []
    unplaced: list[tuple[PartInstance, str]] = []
    for instance in instances:
        if any(packer.try_place(instance, options.allow_rotation) for packer in packers):
            continue
        stock_idx, reason = _select_stock(instance, stock, opened, options, len(packers))
        if stock_idx is None:
            logger.debug("No sheet for %s (%s)", instance.uid, reason)
            unplaced.append((instance, reason))
            continue
        opened[stock_idx] += 1
        packer = SheetPacker(stock[stock_idx], index=len(packers) + 1, sheet_no=opened[stock_idx])
        logger.debug("Opened sheet %s for %s", packer.sheet_id, instance.uid)
        packers.append(packer)
        if not packer.try_place(instance, options.allow_rotation):
            unplaced.append((instance, REASON_TOO_LARGE))
    sheets = [packer.finish() for packer in packers if packer.placements]
    for new_index, sheet in enumerate(sheets, start=1):
        sheet.index = new_index
    return PackRun(sheets=sheets, unplaced=unplaced)

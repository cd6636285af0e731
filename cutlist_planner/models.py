from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional

from cutlist_planner.rounding import ZERO, to_decimal

GRAIN_LENGTH = "length"
GRAIN_WIDTH = "width"
GRAIN_NONE = "none"
GRAIN_VALUES = (GRAIN_LENGTH, GRAIN_WIDTH, GRAIN_NONE)
GRAIN_ALIASES = {"any": GRAIN_NONE, "": GRAIN_NONE}

LAMINATION_NONE = "none"
LAMINATION_TYPES = (LAMINATION_NONE, "with-backer", "same-board", "custom")

REASON_TOO_LARGE = "too_large_for_sheet"
REASON_NO_CAPACITY = "insufficient_sheet_capacity"


def normalize_grain(value) -> str:
    text = str(value if value is not None else "").strip().lower()
    return GRAIN_ALIASES.get(text, text)


def _to_int(value, field_name: str) -> int:
    if isinstance(value, bool):
        raise TypeError(f"{field_name} must be an integer")
    if isinstance(value, int):
        return value
    number = to_decimal(value)
    if number != number.to_integral_value():
        raise ValueError(f"{field_name} must be a whole number: {value!r}")
    return int(number)


@dataclass
class BandEdges:
    top: bool = False
    right: bool = False
    bottom: bool = False
    left: bool = False

    @classmethod
    def from_value(cls, value) -> "BandEdges":
        if value is None:
            return cls()
        if isinstance(value, BandEdges):
            return value
        if isinstance(value, dict):
            unknown = set(value) - {"top", "right", "bottom", "left"}
            if unknown:
                raise ValueError(f"unknown band edge keys: {', '.join(sorted(unknown))}")
            return cls(**{key: bool(flag) for key, flag in value.items()})
        raise ValueError(f"band_edges must be a mapping, got {type(value).__name__}")

    def any(self) -> bool:
        return self.top or self.right or self.bottom or self.left


@dataclass
class PartSpec:
    """One part type of the cutlist.

    ``length_mm`` is the grain-aligned dimension and is laid along the sheet
    length (x axis) when the part is not rotated.
    """

    id: str
    length_mm: Decimal
    width_mm: Decimal
    qty: int
    grain: str = GRAIN_NONE
    laminate: bool = False
    material_id: Optional[str] = None
    band_edges: BandEdges = field(default_factory=BandEdges)
    label: str = ""
    lamination_type: str = LAMINATION_NONE
    edge_thickness_mm: Optional[Decimal] = None

    def __post_init__(self):
        self.id = str(self.id)
        self.length_mm = to_decimal(self.length_mm)
        self.width_mm = to_decimal(self.width_mm)
        self.qty = _to_int(self.qty, "qty")
        self.grain = normalize_grain(self.grain)
        self.band_edges = BandEdges.from_value(self.band_edges)
        self.label = str(self.label or self.id)
        self.lamination_type = str(self.lamination_type or LAMINATION_NONE)
        if self.edge_thickness_mm is not None:
            self.edge_thickness_mm = to_decimal(self.edge_thickness_mm)

    @property
    def area_mm2(self) -> Decimal:
        return self.length_mm * self.width_mm

    @property
    def is_laminated(self) -> bool:
        return self.laminate or self.lamination_type != LAMINATION_NONE


@dataclass
class StockSheetSpec:
    id: str
    length_mm: Decimal
    width_mm: Decimal
    qty: Optional[int] = None
    kerf_mm: Decimal = ZERO
    material: Optional[str] = None
    cost: Optional[Decimal] = None

    def __post_init__(self):
        self.id = str(self.id)
        self.length_mm = to_decimal(self.length_mm)
        self.width_mm = to_decimal(self.width_mm)
        if self.qty is not None:
            self.qty = _to_int(self.qty, "qty")
        self.kerf_mm = to_decimal(self.kerf_mm if self.kerf_mm is not None else ZERO)
        if self.cost is not None:
            self.cost = to_decimal(self.cost)

    @property
    def area_mm2(self) -> Decimal:
        return self.length_mm * self.width_mm


@dataclass
class PackOptions:
    allow_rotation: bool = True
    single_sheet_only: bool = False


@dataclass
class PartInstance:
    uid: str
    part: PartSpec
    seq: int
    order: int

    @property
    def area_mm2(self) -> Decimal:
        return self.part.area_mm2

    @property
    def max_dim_mm(self) -> Decimal:
        return max(self.part.length_mm, self.part.width_mm)


@dataclass
class Orientation:
    w: Decimal
    h: Decimal
    rotated: bool


@dataclass
class FreeRect:
    x: Decimal
    y: Decimal
    w: Decimal
    h: Decimal

    @property
    def area_mm2(self) -> Decimal:
        return self.w * self.h


@dataclass
class Placement:
    part_id: str
    instance_id: str
    label: str
    x: Decimal
    y: Decimal
    w: Decimal
    h: Decimal
    original_length_mm: Decimal
    original_width_mm: Decimal
    rotated: bool = False

    @property
    def rot(self) -> int:
        return 90 if self.rotated else 0

    @property
    def area_mm2(self) -> Decimal:
        return self.w * self.h


@dataclass
class SheetLayout:
    sheet_id: str
    stock_id: str
    index: int
    stock_length_mm: Decimal
    stock_width_mm: Decimal
    kerf_mm: Decimal
    material_label: str = ""
    placements: List[Placement] = field(default_factory=list)
    used_area_mm2: Decimal = ZERO
    waste_area_mm2: Decimal = ZERO
    free_regions: List[FreeRect] = field(default_factory=list)

    @property
    def area_mm2(self) -> Decimal:
        return self.stock_length_mm * self.stock_width_mm


@dataclass
class LayoutStats:
    used_area_mm2: Decimal = ZERO
    waste_area_mm2: Decimal = ZERO
    cuts: int = 0
    cut_length_mm: Decimal = ZERO
    edgebanding_length_mm: Decimal = ZERO
    edgebanding_16mm_mm: Decimal = ZERO
    edgebanding_32mm_mm: Decimal = ZERO
    edgebanding_by_thickness: Dict[Decimal, Decimal] = field(default_factory=dict)


@dataclass
class UnplacedPart:
    part_id: str
    count: int
    reason: str = REASON_TOO_LARGE


@dataclass
class RejectedInput:
    id: str
    reasons: List[str] = field(default_factory=list)


@dataclass
class LayoutResult:
    sheets: List[SheetLayout] = field(default_factory=list)
    stats: LayoutStats = field(default_factory=LayoutStats)
    unplaced: List[UnplacedPart] = field(default_factory=list)
    rejected: List[RejectedInput] = field(default_factory=list)
    rejected_stock: List[RejectedInput] = field(default_factory=list)

    @property
    def placements(self) -> List[Placement]:
        return [placement for sheet in self.sheets for placement in sheet.placements]


@dataclass
class PackRun:
    sheets: List[SheetLayout]
    unplaced: List[tuple[PartInstance, str]]

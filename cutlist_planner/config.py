from __future__ import annotations

from decimal import Decimal

import yaml

from cutlist_planner.io import CutlistInputError
from cutlist_planner.models import StockSheetSpec
from cutlist_planner.rounding import to_decimal

DEFAULT_SHEET_LENGTH_MM = Decimal("2750")
DEFAULT_SHEET_WIDTH_MM = Decimal("1830")
DEFAULT_KERF_MM = Decimal("4")

# Common melamine/MDF board size; qty left out means unlimited supply
DEFAULT_STOCK_YAML = """
stock:
  - id: standard
    length_mm: 2750
    width_mm: 1830
    kerf_mm: 4
""".strip()


def _to_decimal(value):
    if value is None:
        return None
    return to_decimal(value)


def load_stock_specs(stock_yaml: str) -> list[StockSheetSpec]:
    try:
        data = yaml.safe_load(stock_yaml) or {}
    except yaml.YAMLError as exc:
        raise CutlistInputError(f"stock YAML could not be parsed: {exc}") from exc
    if not isinstance(data, dict):
        raise CutlistInputError("stock YAML must be a mapping with a 'stock' list")
    specs = []
    for no, item in enumerate(data.get("stock") or [], start=1):
        if not isinstance(item, dict):
            raise CutlistInputError(f"stock entry {no} must be a mapping")
        missing = [key for key in ("id", "length_mm", "width_mm") if item.get(key) is None]
        if missing:
            raise CutlistInputError(f"stock entry {no} is missing: {', '.join(missing)}")
        try:
            specs.append(
                StockSheetSpec(
                    id=item.get("id"),
                    length_mm=_to_decimal(item.get("length_mm")),
                    width_mm=_to_decimal(item.get("width_mm")),
                    qty=item.get("qty"),
                    kerf_mm=_to_decimal(item.get("kerf_mm", DEFAULT_KERF_MM)),
                    material=item.get("material"),
                    cost=_to_decimal(item.get("cost")),
                )
            )
        except Exception as exc:  # noqa: BLE001
            raise CutlistInputError(f"stock entry {no} is invalid: {exc}") from exc
    return specs


def default_stock() -> list[StockSheetSpec]:
    return load_stock_specs(DEFAULT_STOCK_YAML)

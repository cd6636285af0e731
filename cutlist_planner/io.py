from __future__ import annotations

import io
import re
from decimal import Decimal
from typing import Iterable

import pandas as pd

from cutlist_planner.models import BandEdges, PartInstance, PartSpec, StockSheetSpec
from cutlist_planner.rounding import to_decimal

REQUIRED_PART_COLUMNS = ["length_mm", "width_mm"]
REQUIRED_STOCK_COLUMNS = ["id", "length_mm", "width_mm"]

OPTIONAL_PART_COLUMNS = {
    "id": "",
    "label": "",
    "qty": "",
    "grain": "length",
    "laminate": "",
    "material_id": "",
    "material_type": "",
    "edge_length_1": "",
    "edge_length_2": "",
    "edge_width_1": "",
    "edge_width_2": "",
}

MAX_DIM_MM = Decimal("10000")
MAX_QTY = 10000
SHEET_GOODS = "sheet goods"

COLUMN_ALIASES = {
    "no": "id",
    "id": "id",
    "partid": "id",
    "designation": "label",
    "name": "label",
    "label": "label",
    "quantity": "qty",
    "qty": "qty",
    "length": "length_mm",
    "lengthraw": "length_mm",
    "lengthmm": "length_mm",
    "l": "length_mm",
    "width": "width_mm",
    "widthraw": "width_mm",
    "widthmm": "width_mm",
    "w": "width_mm",
    "thickness": "thickness_mm",
    "thicknessraw": "thickness_mm",
    "materialtype": "material_type",
    "materialname": "material_id",
    "material": "material_id",
    "materialid": "material_id",
    "edgelength1": "edge_length_1",
    "edgelength2": "edge_length_2",
    "edgewidth1": "edge_width_1",
    "edgewidth2": "edge_width_2",
    "grain": "grain",
    "laminate": "laminate",
    "kerf": "kerf_mm",
    "kerfmm": "kerf_mm",
    "cost": "cost",
}


class CutlistInputError(ValueError):
    pass


def _normalize_column_name(name: str) -> str:
    return "".join(ch for ch in str(name).strip() if ch.isalnum()).lower()


def _apply_column_aliases(df: pd.DataFrame) -> pd.DataFrame:
    rename_map: dict[str, str] = {}
    taken: set[str] = set()
    for col in df.columns:
        target = COLUMN_ALIASES.get(_normalize_column_name(col))
        # "Length" and "Length - raw" can both appear; the first one wins
        if target and target not in taken:
            rename_map[col] = target
            taken.add(target)
    if rename_map:
        df = df.rename(columns=rename_map)
    return df


def _is_blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and pd.isna(value):
        return True
    return str(value).strip() == ""


def _parse_bool(value, default: bool) -> bool:
    if _is_blank(value):
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in {"1", "true", "yes", "y"}:
        return True
    if text in {"0", "false", "no", "n"}:
        return False
    return default


def detect_delimiter(content: str) -> str:
    first_line = content.split("\n", 1)[0]
    return ";" if first_line.count(";") >= first_line.count(",") else ","


def parse_dimension(value) -> Decimal:
    """Parse spreadsheet dimensions such as ``"1 200,5 mm"`` into a Decimal."""
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        return to_decimal(value)
    text = re.sub(r"\s*mm\s*", "", str(value), flags=re.IGNORECASE).strip()
    if "," in text and "." not in text:
        text = text.replace(",", ".")
    text = re.sub(r"[\s\u00a0\u2009]", "", text)
    if not text:
        raise ValueError("empty dimension")
    return Decimal(text)


def load_cutlist_csv(content: str) -> pd.DataFrame:
    content = content.lstrip("\ufeff")
    data = pd.read_csv(
        io.StringIO(content),
        sep=detect_delimiter(content),
        dtype=str,
        keep_default_na=False,
        skipinitialspace=True,
    )
    data = _apply_column_aliases(data)
    if "material_type" in data.columns:
        mask = data["material_type"].str.strip().str.lower().isin({SHEET_GOODS, ""})
        if mask.any():
            data = data[mask].reset_index(drop=True)
    return data


def ensure_columns(df: pd.DataFrame, required: list[str], optional: dict | None = None) -> pd.DataFrame:
    missing = [col for col in required if col not in df.columns]
    if missing:
        raise CutlistInputError(f"Missing required columns: {', '.join(missing)}")
    df = df.copy()
    for col, default in (optional or {}).items():
        if col not in df.columns:
            df[col] = default
    return df


def _parse_dimension_field(row, field_name: str, row_no: int) -> Decimal:
    raw = row.get(field_name)
    try:
        value = parse_dimension(raw)
    except Exception as exc:  # noqa: BLE001
        raise CutlistInputError(f"{field_name} value '{raw}' is not a number (row {row_no})") from exc
    if not value.is_finite():
        raise CutlistInputError(f"{field_name} is missing or not a finite number (row {row_no})")
    if value <= 0:
        raise CutlistInputError(f"{field_name} must be greater than 0 (row {row_no})")
    if value > MAX_DIM_MM:
        raise CutlistInputError(f"{field_name} exceeds the limit ({MAX_DIM_MM}mm) (row {row_no})")
    return value


def _parse_qty(row, row_no: int, default: int | None = 1) -> int | None:
    raw = row.get("qty")
    if _is_blank(raw):
        return default
    try:
        number = Decimal(str(raw).strip())
        if number != number.to_integral_value():
            raise ValueError("fractional qty")
        qty = int(number)
    except Exception as exc:  # noqa: BLE001
        raise CutlistInputError(f"qty value '{raw}' is not an integer (row {row_no})") from exc
    if qty <= 0:
        raise CutlistInputError(f"qty must be at least 1 (row {row_no})")
    if qty > MAX_QTY:
        raise CutlistInputError(f"qty exceeds the limit ({MAX_QTY}) (row {row_no})")
    return qty


def normalize_part_rows(df: pd.DataFrame) -> list[PartSpec]:
    df = ensure_columns(df, REQUIRED_PART_COLUMNS, OPTIONAL_PART_COLUMNS)
    parts: list[PartSpec] = []
    seen_ids: set[str] = set()
    for idx, row in df.iterrows():
        row_no = idx + 1
        length_mm = _parse_dimension_field(row, "length_mm", row_no)
        width_mm = _parse_dimension_field(row, "width_mm", row_no)
        qty = _parse_qty(row, row_no)

        label = "" if _is_blank(row.get("label")) else str(row["label"]).strip()
        part_id = "" if _is_blank(row.get("id")) else str(row["id"]).strip()
        part_id = part_id or label or f"row{row_no}"
        if part_id in seen_ids:
            part_id = f"{part_id}-{row_no}"
        seen_ids.add(part_id)

        grain = "length" if _is_blank(row.get("grain")) else str(row["grain"]).strip().lower()
        if grain not in {"length", "width", "none", "any"}:
            raise CutlistInputError(f"grain value '{row.get('grain')}' is not supported (row {row_no})")
        material = "" if _is_blank(row.get("material_id")) else str(row["material_id"]).strip()
        parts.append(
            PartSpec(
                id=part_id,
                length_mm=length_mm,
                width_mm=width_mm,
                qty=qty,
                grain=grain,
                laminate=_parse_bool(row.get("laminate"), False),
                material_id=material or None,
                band_edges=BandEdges(
                    top=not _is_blank(row.get("edge_length_1")),
                    bottom=not _is_blank(row.get("edge_length_2")),
                    right=not _is_blank(row.get("edge_width_1")),
                    left=not _is_blank(row.get("edge_width_2")),
                ),
                label=label or part_id,
            )
        )
    return parts


def normalize_stock_rows(df: pd.DataFrame, default_kerf_mm: Decimal = Decimal("0")) -> list[StockSheetSpec]:
    df = ensure_columns(df, REQUIRED_STOCK_COLUMNS, {"qty": "", "kerf_mm": "", "material_id": "", "cost": ""})
    stock: list[StockSheetSpec] = []
    for idx, row in df.iterrows():
        row_no = idx + 1
        kerf_raw = row.get("kerf_mm")
        try:
            kerf_mm = default_kerf_mm if _is_blank(kerf_raw) else parse_dimension(kerf_raw)
        except Exception as exc:  # noqa: BLE001
            raise CutlistInputError(f"kerf_mm value '{kerf_raw}' is not a number (row {row_no})") from exc
        if not kerf_mm.is_finite():
            raise CutlistInputError(f"kerf_mm is not a finite number (row {row_no})")
        if kerf_mm < 0:
            raise CutlistInputError(f"kerf_mm must be 0 or more (row {row_no})")
        cost_raw = row.get("cost")
        try:
            cost = None if _is_blank(cost_raw) else to_decimal(str(cost_raw).strip())
        except Exception as exc:  # noqa: BLE001
            raise CutlistInputError(f"cost value '{cost_raw}' is not a number (row {row_no})") from exc
        material = "" if _is_blank(row.get("material_id")) else str(row["material_id"]).strip()
        stock.append(
            StockSheetSpec(
                id=str(row["id"]).strip(),
                length_mm=_parse_dimension_field(row, "length_mm", row_no),
                width_mm=_parse_dimension_field(row, "width_mm", row_no),
                qty=_parse_qty(row, row_no, default=None),
                kerf_mm=kerf_mm,
                material=material or None,
                cost=cost,
            )
        )
    return stock


def expand_instances(parts: Iterable[PartSpec]) -> list[PartInstance]:
    instances: list[PartInstance] = []
    for part in parts:
        for i in range(1, part.qty + 1):
            instances.append(
                PartInstance(
                    uid=f"{part.id}#{i}",
                    part=part,
                    seq=i,
                    order=len(instances),
                )
            )
    return instances

from decimal import Decimal

import pandas as pd
import pytest

from cutlist_planner.io import (
    CutlistInputError,
    detect_delimiter,
    expand_instances,
    load_cutlist_csv,
    normalize_part_rows,
    normalize_stock_rows,
    parse_dimension,
)

SKETCHUP_EXPORT = (
    "\ufeffNo.;Designation;Quantity;Length - raw;Width - raw;Thickness - raw;Material type;"
    "Material name;Edge Length 1;Edge Length 2;Edge Width 1;Edge Width 2;Tags\n"
    "A;top#35;2;1 200,5 mm;600 mm;16 mm;Sheet Goods;Natural Oak;Oak 1mm;;Oak 1mm;;\n"
    "B;edge;1;5000 mm;22 mm;1 mm;Edge Banding;Oak;;;;;\n"
)


def test_sketchup_export_is_normalized():
    df = load_cutlist_csv(SKETCHUP_EXPORT)
    parts = normalize_part_rows(df)

    assert len(parts) == 1
    part = parts[0]
    assert part.id == "A"
    assert part.label == "top#35"
    assert part.qty == 2
    assert part.length_mm == Decimal("1200.5")
    assert part.width_mm == Decimal("600")
    assert part.material_id == "Natural Oak"
    assert part.grain == "length"
    assert (part.band_edges.top, part.band_edges.bottom) == (True, False)
    assert (part.band_edges.right, part.band_edges.left) == (True, False)


def test_detect_delimiter():
    assert detect_delimiter("a;b;c\n1;2;3") == ";"
    assert detect_delimiter("a,b,c\n1,2,3") == ","


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("720", Decimal("720")),
        ("720 mm", Decimal("720")),
        ("1 164,5", Decimal("1164.5")),
        ("397.25mm", Decimal("397.25")),
        (560, Decimal("560")),
    ],
)
def test_parse_dimension(raw, expected):
    assert parse_dimension(raw) == expected


def test_plain_csv_with_grain_and_duplicate_ids():
    content = "id,length_mm,width_mm,qty,grain\nshelf,764,300,4,any\nshelf,764,280,,width\n"

    parts = normalize_part_rows(load_cutlist_csv(content))

    assert [part.id for part in parts] == ["shelf", "shelf-2"]
    assert parts[0].grain == "none"
    assert parts[1].grain == "width"
    assert parts[1].qty == 1


def test_dataframe_rows_without_optional_columns():
    df = pd.DataFrame([{"length_mm": 700, "width_mm": 400, "qty": 3}])

    parts = normalize_part_rows(df)

    assert parts[0].id == "row1"
    assert parts[0].qty == 3
    assert not parts[0].band_edges.any()


@pytest.mark.parametrize(
    "row, message",
    [
        ({"id": "p", "length_mm": "abc", "width_mm": 400}, "length_mm value 'abc' is not a number (row 1)"),
        ({"id": "p", "length_mm": 0, "width_mm": 400}, "length_mm must be greater than 0"),
        ({"id": "p", "length_mm": 500, "width_mm": 400, "qty": 0}, "qty must be at least 1"),
        ({"id": "p", "length_mm": 500, "width_mm": 400, "qty": "1.5"}, "is not an integer"),
        ({"id": "p", "length_mm": 20000, "width_mm": 400}, "exceeds the limit"),
        ({"id": "p", "length_mm": 500, "width_mm": 400, "grain": "diagonal"}, "grain value 'diagonal'"),
        ({"id": "p", "length_mm": "nan", "width_mm": 400}, "length_mm is missing or not a finite number (row 1)"),
        ({"id": "p", "length_mm": 500, "width_mm": "inf"}, "width_mm is missing or not a finite number (row 1)"),
    ],
)
def test_invalid_part_rows_raise_with_row_number(row, message):
    with pytest.raises(CutlistInputError) as excinfo:
        normalize_part_rows(pd.DataFrame([row]))
    assert message in str(excinfo.value)


def test_missing_required_columns():
    with pytest.raises(CutlistInputError, match="Missing required columns: width_mm"):
        normalize_part_rows(pd.DataFrame([{"length_mm": 700}]))


def test_stock_rows_default_to_unlimited_supply():
    df = pd.DataFrame(
        [
            {"id": "std", "length_mm": 2750, "width_mm": 1830, "kerf_mm": 4},
            {"id": "offcut", "length_mm": 1200, "width_mm": 800, "kerf_mm": "", "qty": 2},
        ]
    )

    stock = normalize_stock_rows(df, default_kerf_mm=Decimal("3"))

    assert stock[0].qty is None
    assert stock[0].kerf_mm == Decimal("4")
    assert stock[1].qty == 2
    assert stock[1].kerf_mm == Decimal("3")


def test_negative_kerf_is_rejected():
    df = pd.DataFrame([{"id": "std", "length_mm": 2750, "width_mm": 1830, "kerf_mm": -1}])

    with pytest.raises(CutlistInputError, match="kerf_mm must be 0 or more"):
        normalize_stock_rows(df)


def test_expand_instances_numbers_each_copy():
    parts = normalize_part_rows(pd.DataFrame([{"id": "door", "length_mm": 715, "width_mm": 397, "qty": 3}]))

    instances = expand_instances(parts)

    assert [inst.uid for inst in instances] == ["door#1", "door#2", "door#3"]
    assert [inst.order for inst in instances] == [0, 1, 2]


def test_missing_dimension_cell_names_the_row():
    df = pd.DataFrame(
        [
            {"id": "a", "length_mm": 500, "width_mm": 400},
            {"id": "b", "length_mm": 500},
        ]
    )

    with pytest.raises(CutlistInputError, match=r"width_mm is missing or not a finite number \(row 2\)"):
        normalize_part_rows(df)


def test_nan_text_in_csv_is_an_input_error():
    with pytest.raises(CutlistInputError, match=r"length_mm is missing or not a finite number \(row 1\)"):
        normalize_part_rows(load_cutlist_csv("id,length_mm,width_mm\na,nan,400\n"))


def test_non_finite_kerf_is_rejected():
    df = pd.DataFrame([{"id": "std", "length_mm": 2750, "width_mm": 1830, "kerf_mm": "nan"}])

    with pytest.raises(CutlistInputError, match=r"kerf_mm is not a finite number \(row 1\)"):
        normalize_stock_rows(df)

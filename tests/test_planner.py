from decimal import Decimal

from cutlist_planner.models import BandEdges, PartSpec, StockSheetSpec
from cutlist_planner.planner import (
    edge_thickness,
    edgebanding_length,
    pack,
    pack_by_material,
    validate_parts,
    validate_stock,
)

ALL_EDGES = {"top": True, "right": True, "bottom": True, "left": True}


def _stock(**overrides) -> StockSheetSpec:
    values = {"id": "standard", "length_mm": 2750, "width_mm": 1830, "kerf_mm": 4}
    values.update(overrides)
    return StockSheetSpec(**values)


def test_edgebanding_length_follows_banded_edges():
    part = PartSpec(id="panel", length_mm=1000, width_mm=500, qty=1, band_edges={"top": True, "left": True})

    assert edgebanding_length(part) == Decimal("1500")
    assert edgebanding_length(PartSpec(id="bare", length_mm=1000, width_mm=500, qty=1)) == 0


def test_edge_thickness_classes():
    assert edge_thickness(PartSpec(id="a", length_mm=1, width_mm=1, qty=1)) == Decimal("16")
    assert edge_thickness(PartSpec(id="b", length_mm=1, width_mm=1, qty=1, laminate=True)) == Decimal("32")
    assert edge_thickness(PartSpec(id="c", length_mm=1, width_mm=1, qty=1, lamination_type="custom")) == Decimal("48")
    assert edge_thickness(PartSpec(id="d", length_mm=1, width_mm=1, qty=1, edge_thickness_mm=22)) == Decimal("22")


def test_stats_split_banding_by_thickness():
    parts = [
        PartSpec(id="carcass", length_mm=1000, width_mm=500, qty=2, band_edges=ALL_EDGES),
        PartSpec(id="worktop", length_mm=1000, width_mm=500, qty=2, band_edges=ALL_EDGES, laminate=True),
    ]

    result = pack(parts, [_stock()])

    assert result.stats.edgebanding_16mm_mm == Decimal("6000")
    assert result.stats.edgebanding_32mm_mm == Decimal("6000")
    assert result.stats.edgebanding_length_mm == Decimal("12000")
    assert result.stats.cuts == 8
    assert result.stats.cut_length_mm == Decimal("6000")
    assert result.stats.used_area_mm2 == Decimal("2000000")
    assert result.stats.used_area_mm2 + result.stats.waste_area_mm2 == Decimal("2750") * Decimal("1830")


def test_validate_parts_collects_reasons():
    parts = [
        PartSpec(id="ok", length_mm=500, width_mm=400, qty=1),
        PartSpec(id="ok", length_mm=500, width_mm=400, qty=1),
        PartSpec(id="bad", length_mm=0, width_mm=400, qty=0, grain="diagonal"),
    ]

    valid, rejected = validate_parts(parts)

    assert [part.id for part in valid] == ["ok"]
    assert [item.id for item in rejected] == ["ok", "bad"]
    assert len(rejected[1].reasons) == 3


def test_validate_stock_rejects_negative_kerf_and_supply():
    valid, rejected = validate_stock([_stock(id="neg", kerf_mm=-1), _stock(id="none", qty=-1), _stock()])

    assert [spec.id for spec in valid] == ["standard"]
    assert [item.id for item in rejected] == ["neg", "none"]


def test_pack_by_material_keeps_materials_apart():
    parts = [
        PartSpec(id="oak-door", length_mm=715, width_mm=397, qty=2, material_id="oak"),
        PartSpec(id="white-side", length_mm=720, width_mm=560, qty=2, material_id="white"),
        PartSpec(id="spare", length_mm=300, width_mm=300, qty=1),
    ]
    stock = [_stock(id="oak-sheet", material="oak"), _stock(id="generic")]

    results = pack_by_material(parts, stock)

    assert list(results) == ["oak", "white", "unassigned"]
    assert [sheet.stock_id for sheet in results["oak"].sheets] == ["oak-sheet"]
    assert [sheet.stock_id for sheet in results["white"].sheets] == ["generic"]
    assert results["white"].sheets[0].material_label == "white"
    assert results["unassigned"].sheets[0].material_label == ""
    for key, result in results.items():
        assert {placement.part_id for placement in result.placements} <= {
            part.id for part in parts if (part.material_id or "unassigned") == key
        }


def test_band_edges_accept_mapping_or_instance():
    edges = BandEdges(top=True)

    assert PartSpec(id="a", length_mm=1, width_mm=1, qty=1, band_edges=edges).band_edges is edges
    assert PartSpec(id="b", length_mm=1, width_mm=1, qty=1, band_edges={"right": 1}).band_edges.right


def test_pack_by_material_reports_bad_stock_once(caplog):
    parts = [
        PartSpec(id="oak-door", length_mm=715, width_mm=397, qty=1, material_id="oak"),
        PartSpec(id="white-side", length_mm=720, width_mm=560, qty=1, material_id="white"),
    ]
    stock = [_stock(id="broken", length_mm=0), _stock(id="generic")]

    with caplog.at_level("WARNING", logger="cutlist_planner.planner"):
        results = pack_by_material(parts, stock)

    assert [item.id for item in results["oak"].rejected_stock] == ["broken"]
    assert results["white"].rejected_stock == []
    assert sum("Rejected stock sheet broken" in message for message in caplog.messages) == 1

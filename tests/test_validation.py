import pytest

from propconf.domain.errors import PersistenceError, ValidationError
from propconf.domain.ports import LocalFile
from propconf.services.properties import record_from_row
from propconf.services.validation import (
    prepare_write_payload,
    validate_brochure,
    verify_round_trip,
)

from fixtures.properties import apartment_row, builder_floor_row, pdf_file


def test_brochure_must_be_pdf():
    with pytest.raises(ValidationError):
        validate_brochure(LocalFile("brochure.docx", "application/msword", b"x"))


def test_brochure_size_limit():
    with pytest.raises(ValidationError, match="less than"):
        validate_brochure(pdf_file(size=2048), max_bytes=1024)
    ok = pdf_file(size=512)
    assert validate_brochure(ok, max_bytes=1024) is ok


def test_apartment_payload_carries_only_apartment_fields():
    payload = prepare_write_payload(record_from_row(apartment_row()))

    assert payload["kind"] == "apartment"
    assert payload["price"] == 5.5
    assert payload["bhk_config"] == ["3BHK", "4BHK"]
    assert payload["image_url"].endswith("cover-1.jpg")
    assert payload["tower_bhk_config"][1]["penthouse"] is True
    assert "building_config" not in payload
    for field in ("facing", "plot_number", "status"):
        assert field not in payload


def test_builder_floor_payload_carries_coerced_tiers():
    payload = prepare_write_payload(record_from_row(builder_floor_row()))

    units = payload["building_config"]
    assert [u["building_number"] for u in units] == [1, 2]
    assert units[1]["price_top"] == 7.0
    assert units[1]["price_mid2"] is None
    assert payload["facing"] == "North"
    assert payload["status"] == "available"
    assert payload["developer"] is None
    for field in ("price", "amenities", "tower_bhk_config"):
        assert field not in payload


def test_round_trip_accepts_matching_row():
    sent = {"project_status": "ready-to-move", "price": 5.5}
    verify_round_trip("apartment", sent, {"id": 1, "project_status": "ready-to-move", "price": "5.5"})


def test_round_trip_flags_dropped_status():
    sent = {"project_status": "ready-to-move", "price": 5.5}
    with pytest.raises(PersistenceError, match="project_status update failed"):
        verify_round_trip("apartment", sent, {"id": 1, "project_status": None, "price": 5.5})


def test_round_trip_flags_builder_floor_price_drift():
    sent = {"status": None, "building_config": [{"price_top": 4.5}]}
    with pytest.raises(PersistenceError, match="price update failed"):
        verify_round_trip(
            "builder_floor",
            sent,
            {"id": 1, "kind": "builder_floor", "status": None, "building_config": '[{"price_top": 9}]'},
        )


def test_round_trip_requires_a_row():
    with pytest.raises(PersistenceError):
        verify_round_trip("apartment", {}, None)

import pytest
from pydantic import ValidationError as SchemaError

from propconf.domain.property import (
    APARTMENT,
    BUILDER_FLOOR,
    BuildingConfig,
    PropertyRecord,
    TowerConfig,
    default_config,
    entity_folder,
    parse_crore,
    is_valid_slug,
    parse_kind,
    slugify,
)


@pytest.mark.parametrize(
    "name, slug",
    [
        ("Godrej Sora!!", "godrej-sora"),
        ("  A B  ", "a-b"),
        ("DLF -- Phase 2 / Floors", "dlf-phase-2-floors"),
        ("", ""),
        (None, ""),
    ],
)
def test_slugify(name, slug):
    assert slugify(name) == slug


def test_parse_kind_accepts_hyphenated_legacy_spelling():
    assert parse_kind("builder-floor") == BUILDER_FLOOR
    assert parse_kind("Apartment") == APARTMENT
    with pytest.raises(ValueError):
        parse_kind("villa")


def test_entity_folder_per_kind():
    assert entity_folder(APARTMENT) == "properties"
    assert entity_folder(BUILDER_FLOOR) == "builder-floors"


def test_default_config_is_numbered_and_blank():
    tower = default_config(APARTMENT, 3)
    assert isinstance(tower, TowerConfig)
    assert tower.tower_number == 3
    assert tower.bhk == ""

    building = default_config(BUILDER_FLOOR)
    assert isinstance(building, BuildingConfig)
    assert building.building_number == 1
    assert building.tier_prices() == []


def test_building_config_coerces_blank_and_numeric_strings():
    b = BuildingConfig(building_number=1, price_top="4.5", price_mid1="", floors_count="4", facing="")
    assert b.price_top == 4.5
    assert b.price_mid1 is None
    assert b.floors_count == 4
    assert b.facing is None


@pytest.mark.parametrize(
    "field, value",
    [
        ("price_top", "-1"),
        ("price_top", "abc"),
        ("floors_count", 0),
        ("facing", "Up"),
        ("roof_rights", "2/3"),
    ],
)
def test_building_config_rejects_bad_values(field, value):
    with pytest.raises(SchemaError):
        BuildingConfig(**{"building_number": 1, field: value})


def test_tower_counts_must_be_non_negative_integers():
    assert TowerConfig(tower_number=1, lifts="3").lifts == 3
    with pytest.raises(SchemaError):
        TowerConfig(tower_number=1, lifts="-1")
    with pytest.raises(SchemaError):
        TowerConfig(tower_number=1, flats_per_floor=2.5)


def test_parse_crore():
    assert parse_crore("5.5 Cr") == 5.5
    assert parse_crore("5.5 crore") == 5.5
    assert parse_crore(7) == 7.0
    assert parse_crore("  ") is None
    with pytest.raises(ValueError):
        parse_crore("1cr2")


@pytest.mark.parametrize("slug", ["godrej-sora", "tower-2", "a"])
def test_valid_slugs(slug):
    assert is_valid_slug(slug)


@pytest.mark.parametrize("slug", ["Godrej-Sora", "a--b", "-a", "a-", "a b", "../x", "sora\n"])
def test_invalid_slugs(slug):
    assert not is_valid_slug(slug)


def test_record_rejects_unsafe_slug():
    with pytest.raises(SchemaError):
        PropertyRecord(kind=APARTMENT, name="Sora", slug="Sora/../x", configs=[{"tower_number": 1}])


def test_record_requires_at_least_one_sub_unit():
    with pytest.raises(SchemaError):
        PropertyRecord(kind=APARTMENT, name="Empty", configs=[])


def test_record_rejects_duplicate_sub_unit_numbers():
    with pytest.raises(SchemaError):
        PropertyRecord(
            kind=BUILDER_FLOOR,
            name="Dupes",
            configs=[{"building_number": 1}, {"building_number": 1}],
        )


def test_record_drops_fields_of_the_other_kind():
    rec = PropertyRecord(
        kind=APARTMENT,
        name="Godrej Sora",
        configs=[{"tower_number": 1}],
        price="5.5 Cr",
        facing="North",
        plot_number="B-12",
    )
    assert rec.slug == "godrej-sora"
    assert rec.price == 5.5
    assert rec.facing is None
    assert rec.plot_number is None

    bf = PropertyRecord(
        kind="builder-floor",
        name="Floors",
        configs=[{"building_number": 1}],
        amenities="Gym, Pool",
        price=3,
        facing="North",
    )
    assert bf.kind == BUILDER_FLOOR
    assert bf.amenities == []
    assert bf.price is None
    assert bf.facing == "North"
    assert isinstance(bf.configs[0], BuildingConfig)


def test_record_splits_comma_lists_and_blanks_text():
    rec = PropertyRecord(
        kind=APARTMENT,
        name="X",
        configs=[{}],
        amenities="Gym, , Pool",
        developer="   ",
    )
    assert rec.amenities == ["Gym", "Pool"]
    assert rec.developer is None

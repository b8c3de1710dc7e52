import pytest

from propconf.domain.metrics import (
    area_range_label,
    as_price,
    bhk_labels,
    lowest_price,
)
from propconf.services.properties import record_from_row, summarize

from fixtures.properties import (
    apartment_row,
    builder_floor_row,
    legacy_apartment_row,
    legacy_builder_floor_row,
)


def test_lowest_price_is_min_over_every_tier():
    assert lowest_price(builder_floor_row()["building_config"]) == 4.5


def test_lowest_price_counts_zero_and_skips_blanks():
    configs = [{"price_top": "", "price_ug": 0}, {"price_top": 2}]
    assert lowest_price(configs) == 0.0


def test_lowest_price_uses_legacy_columns_when_no_building_is_priced():
    configs = [{"building_number": 1, "price_top": None}]
    legacy = {"price_top": "3.2", "price_mid1": "2.9", "price_ug": "n/a"}
    assert lowest_price(configs, fallback=legacy) == 2.9
    assert lowest_price(configs) is None


@pytest.mark.parametrize("value", [None, "", "abc", -1, float("nan"), True])
def test_as_price_treats_junk_as_missing(value):
    assert as_price(value) is None


def test_area_range_label():
    assert area_range_label([{"plot_size": "300 sqyd"}]) == "300 sqyd"
    assert area_range_label([{"plot_size": "100"}, {"plot_size": "200 sq yd"}]) == "100-200 sqyd"
    assert area_range_label([{"plot_size": "150.5"}, {"plot_size": "200"}]) == "150.5-200 sqyd"


def test_area_range_label_skips_stray_dots_before_the_number():
    configs = [{"plot_size": "Plot no. 263 sqyd"}, {"plot_size": "300"}]
    assert area_range_label(configs) == "263-300 sqyd"


def test_area_range_label_falls_back_to_raw_plot_size():
    assert area_range_label([{"plot_size": ""}], "about two kanal") == "about two kanal"
    assert area_range_label([{"plot_size": "corner"}]) is None


def test_bhk_labels_are_deduplicated_in_first_seen_order():
    configs = [{"bhk": "2BHK, 3BHK"}, {"bhk": "3BHK 4BHK"}, {"bhk": ""}]
    assert bhk_labels(configs) == ["2BHK", "3BHK", "4BHK"]


def test_summarize_builder_floor():
    s = summarize(builder_floor_row())
    assert s.lowest_price == 4.5
    assert s.area_range_label == "300-500 sqyd"
    assert s.bhk_labels == []


def test_summarize_legacy_builder_floor():
    s = summarize(legacy_builder_floor_row())
    assert s.lowest_price == 2.9
    assert s.area_range_label == "250 sqyd"


def test_summarize_apartment():
    s = summarize(apartment_row())
    assert s.lowest_price == 5.5
    assert s.area_range_label == "8 acres"
    assert s.bhk_labels == ["3BHK", "4BHK"]


def test_summarize_legacy_apartment():
    s = summarize(legacy_apartment_row())
    assert s.lowest_price == 7.0
    assert s.bhk_labels == ["3BHK", "4BHK"]


@pytest.mark.parametrize("row", [apartment_row(), builder_floor_row(), legacy_builder_floor_row()])
def test_summarize_agrees_for_rows_and_records(row):
    assert summarize(record_from_row(row)) == summarize(row)

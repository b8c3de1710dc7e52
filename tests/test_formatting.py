import pytest

from propconf.services.formatting import (
    accept_area_input,
    format_bhk_input,
    format_price_input,
    format_price_label,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("2, 3", "2BHK, 3BHK"),
        ("2BHK, Studio", "2BHK, Studio"),
        ("2 4", "2BHK, 4BHK"),
        ("", ""),
        (None, ""),
    ],
)
def test_format_bhk_input(raw, expected):
    assert format_bhk_input(raw) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("5.5", "5.5 Cr"),
        ("5.5 cr", "5.5 Cr"),
        ("5.5 Cr", "5.5 Cr"),
        ("12", "12 Cr"),
        ("on request", "on request"),
        ("", ""),
    ],
)
def test_format_price_input(raw, expected):
    assert format_price_input(raw) == expected


@pytest.mark.parametrize("raw", ["", "120", "12.", "100-200", "100 - ", "1.5-2.5"])
def test_area_keystrokes_accepted(raw):
    assert accept_area_input(raw)


@pytest.mark.parametrize("raw", ["abc", "1-2-3", "12a", "--"])
def test_area_keystrokes_rejected(raw):
    assert not accept_area_input(raw)


def test_format_price_label():
    assert format_price_label(2.5) == {"label": "₹ 2.5 Cr onwards", "variant": "default"}
    assert format_price_label(3.0)["label"] == "₹ 3 Cr onwards"
    assert format_price_label("85 Lakh")["label"] == "₹ 85 Lakh onwards"
    assert format_price_label("Assured Best Price") == {
        "label": "₹ Assured Best Price",
        "variant": "assured",
    }
    assert format_price_label(None) is None
    assert format_price_label("") is None


def test_bhk_typed_one_key_at_a_time_keeps_the_separator():
    typed = ""
    for key in "2, 3":
        typed = format_bhk_input(typed + key)
    assert typed == "2BHK, 3BHK"
    assert format_bhk_input("2, ") == "2BHK, "
    assert format_bhk_input("2BHK,") == "2BHK, "


@pytest.mark.parametrize("raw", ["1cr2", "cr5"])
def test_crore_suffix_is_only_stripped_at_the_end(raw):
    assert format_price_input(raw) == raw

import pytest

from qr_composer import normalize_options


def test_defaults_when_only_content_given():
    options = normalize_options({"content": "hello"})
    assert options == {
        "content": "hello",
        "dark_color": "#000000",
        "light_color": "#FFFFFF",
        "size": 512,
        "error_correction": "H",
        "margin": 1,
    }


@pytest.mark.parametrize("raw", [None, "", "abc", "0", "-20", "nan", "inf", "0.5"])
def test_unusable_size_falls_back_to_512(raw):
    assert normalize_options({"content": "x", "size": raw})["size"] == 512


@pytest.mark.parametrize("raw, expected", [("300", 300), (" 128 ", 128), ("256.9", 256), (64, 64)])
def test_size_is_parsed(raw, expected):
    assert normalize_options({"content": "x", "size": raw})["size"] == expected


@pytest.mark.parametrize(
    "raw, expected",
    [("L", "L"), ("m", "M"), ("Q", "Q"), ("h", "H"), ("low", "L"), ("Quartile", "Q")],
)
def test_error_correction_levels(raw, expected):
    assert normalize_options({"content": "x", "errorCorrection": raw})["error_correction"] == expected


@pytest.mark.parametrize("raw", ["Z", "", "HH", 3, None])
def test_invalid_error_correction_falls_back_to_high(raw):
    assert normalize_options({"content": "x", "errorCorrection": raw})["error_correction"] == "H"


def test_colors_accept_hex_forms():
    options = normalize_options({"content": "x", "qrColor": "#1a2b3c", "bgColor": "#fff0"})
    assert options["dark_color"] == "#1a2b3c"
    assert options["light_color"] == "#fff0"


@pytest.mark.parametrize("raw", ["red", "#12345", "123456", "#GGGGGG", ""])
def test_malformed_colors_fall_back(raw):
    options = normalize_options({"content": "x", "qrColor": raw, "bgColor": raw})
    assert options["dark_color"] == "#000000"
    assert options["light_color"] == "#FFFFFF"


def test_non_string_content_is_stringified():
    assert normalize_options({"content": 12345})["content"] == "12345"


def test_size_above_limit_falls_back_to_512():
    assert normalize_options({"content": "x", "size": "8000"})["size"] == 512
    assert normalize_options({"content": "x", "size": "4096"})["size"] == 4096


def test_size_limit_is_configurable():
    assert normalize_options({"content": "x", "size": "1024"}, max_size=1000)["size"] == 512
    assert normalize_options({"content": "x", "size": "1000"}, max_size=1000)["size"] == 1000

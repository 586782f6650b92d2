import pytest

from bridge_monitor.utils import (
    BYTE_ARRAY,
    INTEGER,
    hex_string_reverse,
    parse_amount,
    reverse_bytes,
    strip_0x,
)


class TestReverse:
    def test_reverse_bytes(self):
        assert reverse_bytes(b"\x01\x02\x03") == b"\x03\x02\x01"
        assert reverse_bytes(b"") == b""

    def test_hex_string_reverse(self):
        assert hex_string_reverse("aabbcc") == "ccbbaa"
        assert hex_string_reverse("AABB") == "bbaa"

    @pytest.mark.parametrize("value", ["", "00", "0a1b2c3d", "ffee000102030405"])
    def test_hex_string_reverse_is_involution(self, value):
        assert hex_string_reverse(hex_string_reverse(value)) == value

    @pytest.mark.parametrize("value", ["abc", "zz", "0xaabb", "aa bb", None, 12])
    def test_hex_string_reverse_malformed_is_empty(self, value):
        assert hex_string_reverse(value) == ""

    def test_strip_0x(self):
        assert strip_0x("0xabc") == "abc"
        assert strip_0x("0XABC") == "ABC"
        assert strip_0x("abc") == "abc"


class TestParseAmount:
    def test_decimal(self):
        assert parse_amount("0100", INTEGER) == 100

    def test_reversed_hex(self):
        # 500 == 0x01f4, emitted little-endian
        assert parse_amount("f401", BYTE_ARRAY) == 500
        assert parse_amount("00e1f505", BYTE_ARRAY) == 100000000

    @pytest.mark.parametrize("value,kind", [
        ("", INTEGER),
        ("12a", INTEGER),
        ("-5", INTEGER),
        ("1_000", INTEGER),
        ("", BYTE_ARRAY),
        ("xyz", BYTE_ARRAY),
        ("abc", BYTE_ARRAY),
        (None, BYTE_ARRAY),
        (42, INTEGER),
    ])
    def test_malformed_returns_none(self, value, kind):
        assert parse_amount(value, kind) is None

"""Tests for geo.ip_table: address parsing, range file loading, region lookup."""

import pytest

from errors import MalformedAddress
from geo.ip_table import UNKNOWN_REGION, IpRange, IpRangeTable, parse_ipv4


class TestParseIpv4:
    def test_encodes_big_endian(self):
        assert parse_ipv4("1.2.3.4") == (1 << 24) + (2 << 16) + (3 << 8) + 4

    def test_bounds(self):
        assert parse_ipv4("0.0.0.0") == 0
        assert parse_ipv4("255.255.255.255") == 2**32 - 1

    @pytest.mark.parametrize(
        "address",
        ["", "1.2.3", "1.2.3.4.5", "1.2.3.256", "a.b.c.d", "1.2.-3.4", "1.2.3.", " 1.2.3.4", "1.2.3.4/24"],
    )
    def test_malformed_raises(self, address):
        with pytest.raises(MalformedAddress):
            parse_ipv4(address)

    def test_error_carries_address(self):
        with pytest.raises(MalformedAddress) as exc_info:
            parse_ipv4("10.0.0")
        assert exc_info.value.address == "10.0.0"
        assert "4 octets" in exc_info.value.reason


class TestFromText:
    def test_loads_crlf_and_lf_lines(self):
        table = IpRangeTable.from_text("0,100,A\r\n101,200,B\n")
        assert len(table) == 2

    def test_skips_malformed_lines(self):
        text = "0,100,A\nnot,a,number\n1,2\n5,4,INVERTED\n\n300,400,C,extra\n201,250,D\n"
        table = IpRangeTable.from_text(text)
        assert len(table) == 2
        assert table.resolve(50) == "A"
        assert table.resolve(210) == "D"

    def test_unsorted_input_is_sorted(self):
        table = IpRangeTable.from_text("101,200,B\n0,100,A\n")
        assert table.resolve(0) == "A"
        assert table.resolve(200) == "B"


class TestResolve:
    def test_scenario_two_ranges(self):
        table = IpRangeTable([IpRange(0, 100, "A"), IpRange(101, 200, "B")])
        assert table.resolve(50) == "A"
        assert table.resolve(150) == "B"
        assert table.resolve(300) == UNKNOWN_REGION

    def test_inclusive_bounds(self):
        table = IpRangeTable([IpRange(10, 20, "X")])
        assert table.resolve(10) == "X"
        assert table.resolve(20) == "X"
        assert table.resolve(9) == UNKNOWN_REGION
        assert table.resolve(21) == UNKNOWN_REGION

    def test_gap_between_ranges_is_unknown(self):
        table = IpRangeTable([IpRange(0, 10, "A"), IpRange(20, 30, "B")])
        assert table.resolve(15) == UNKNOWN_REGION

    def test_empty_table(self):
        assert IpRangeTable().resolve(12345) == UNKNOWN_REGION

    def test_every_address_in_range_resolves(self):
        table = IpRangeTable([IpRange(0, 100, "A"), IpRange(101, 200, "B"), IpRange(500, 600, "C")])
        for ip in range(0, 700):
            if ip <= 100:
                expected = "A"
            elif ip <= 200:
                expected = "B"
            elif 500 <= ip <= 600:
                expected = "C"
            else:
                expected = UNKNOWN_REGION
            assert table.resolve(ip) == expected


class TestFromFile:
    def test_missing_file_gives_empty_table(self, tmp_path):
        table = IpRangeTable.from_file(tmp_path / "missing.csv")
        assert len(table) == 0

    def test_reads_file(self, tmp_path):
        path = tmp_path / "ranges.csv"
        path.write_text("37347328,37351423,ES\r\n37459968,37460223,SG\r\n")
        table = IpRangeTable.from_file(path)
        assert table.resolve(37347328) == "ES"
        assert table.resolve(37459970) == "SG"

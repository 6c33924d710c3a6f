import pytest

from p2pool.addresses import (
    MAX_IP_STRING_LENGTH,
    ListenAddress,
    format_addr_string,
    parse_address_list,
    str_to_raw_ip,
)
from p2pool.common import RawIP


def test_parse_mixed_list():
    result = list(parse_address_list("0.0.0.0:37889,[::]:37889"))
    assert result == [
        ListenAddress(False, "0.0.0.0:37889", "0.0.0.0", 37889),
        ListenAddress(True, "[::]:37889", "::", 37889),
    ]


def test_parse_empty_list():
    assert list(parse_address_list("")) == []


def test_parse_skips_entries_without_colon():
    result = list(parse_address_list("nothing,1.2.3.4:80,"))
    assert result == [ListenAddress(False, "1.2.3.4:80", "1.2.3.4", 80)]


@pytest.mark.parametrize("entry", ["1.2.3.4:0", "1.2.3.4:65536", "1.2.3.4:abc", "1.2.3.4:-5"])
def test_parse_rejects_invalid_ports(entry):
    assert list(parse_address_list(entry)) == []


def test_parse_port_bounds_accepted():
    ports = [a.port for a in parse_address_list("1.2.3.4:1,1.2.3.4:65535")]
    assert ports == [1, 65535]


def test_parse_port_reads_leading_digits():
    (entry,) = parse_address_list("1.2.3.4:80abc")
    assert entry.port == 80
    assert entry.address == "1.2.3.4:80abc"


def test_parse_v6_without_brackets():
    (entry,) = parse_address_list("::1:3333")
    assert entry.is_v6
    assert entry.ip == "::1"
    assert entry.port == 3333


def test_str_to_raw_ip_v4_is_mapped():
    raw = str_to_raw_ip(False, "1.2.3.4")
    assert raw.data == bytes(10) + b"\xff\xff" + bytes([1, 2, 3, 4])
    assert raw.is_ipv4_prefix()


def test_str_to_raw_ip_localhost():
    assert str_to_raw_ip(False, "127.0.0.1").is_localhost()
    assert str_to_raw_ip(True, "::1").is_localhost()


def test_str_to_raw_ip_v6():
    raw = str_to_raw_ip(True, "::1")
    assert raw == RawIP(bytes(15) + b"\x01")
    assert not raw.is_ipv4_prefix()


@pytest.mark.parametrize("is_v6, ip", [(False, "::1"), (True, "1.2.3.4"), (False, "300.1.1.1"), (False, "")])
def test_str_to_raw_ip_invalid(is_v6, ip):
    with pytest.raises(ValueError):
        str_to_raw_ip(is_v6, ip)


def test_format_text_addresses():
    assert format_addr_string(False, "1.2.3.4", 18080) == "1.2.3.4:18080"
    assert format_addr_string(True, "::1", 18080) == "[::1]:18080"


def test_format_raw_round_trip_v4():
    raw = str_to_raw_ip(False, "10.20.30.40")
    assert format_addr_string(False, raw, 37889) == "10.20.30.40:37889"


def test_format_raw_round_trip_v6():
    raw = str_to_raw_ip(True, "2001:db8::5")
    assert format_addr_string(True, raw, 37889) == "[2001:db8::5]:37889"


def test_format_too_long_text():
    with pytest.raises(ValueError):
        format_addr_string(False, "a" * (MAX_IP_STRING_LENGTH + 1), 1)


def test_format_at_limit_is_accepted():
    ip = "a" * MAX_IP_STRING_LENGTH
    assert format_addr_string(False, ip, 7) == ip + ":7"
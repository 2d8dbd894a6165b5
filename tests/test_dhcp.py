import pytest

from kuios.dhcp import (
    DHCP_FIXED_SIZE,
    MAGIC_COOKIE,
    XID,
    DhcpError,
    DhcpMessage,
    build_dhcp_discover,
    build_dhcp_request,
    find_option,
)

MAC = bytes((0x02, 0x00, 0x00, 0x00, 0x00, 0x01))


def test_discover_fixed_fields():
    data = build_dhcp_discover(MAC)
    assert data[:4] == bytes((1, 1, 6, 0))
    assert data[4:8] == XID.to_bytes(4, "big")
    assert data[10:12] == b"\x80\x00"
    assert data[28:34] == MAC
    assert data[DHCP_FIXED_SIZE : DHCP_FIXED_SIZE + 4] == MAGIC_COOKIE
    assert data[-1] == 255


def test_discover_options():
    message = DhcpMessage.parse(build_dhcp_discover(MAC))
    assert message.message_type == 1
    assert message.option(55) == bytes((1, 3, 6, 15))
    assert message.option(61) == b"\x01" + MAC
    assert message.option(50) is None


def test_discover_length():
    assert len(build_dhcp_discover(MAC)) == 259


def test_request_options():
    requested = bytes((10, 0, 2, 15))
    server = bytes((10, 0, 2, 2))
    message = DhcpMessage.parse(build_dhcp_request(MAC, requested, server))
    assert message.message_type == 3
    assert message.option(50) == requested
    assert message.option(54) == server
    assert message.chaddr[:6] == MAC


def test_request_rejects_bad_address():
    with pytest.raises(ValueError):
        build_dhcp_request(MAC, b"\x01\x02", bytes(4))


def test_discover_rejects_bad_mac():
    with pytest.raises(ValueError):
        build_dhcp_discover(b"\x01\x02\x03")


def test_find_option_skips_padding():
    options = MAGIC_COOKIE + bytes((0, 0, 53, 1, 5, 255))
    assert find_option(options, 53) == b"\x05"


def test_find_option_stops_at_end_marker():
    options = MAGIC_COOKIE + bytes((255, 53, 1, 5))
    assert find_option(options, 53) is None


def test_find_option_truncated():
    options = MAGIC_COOKIE + bytes((1, 4, 255, 255))
    assert find_option(options, 1) is None


def test_find_option_missing_tag():
    options = MAGIC_COOKIE + bytes((53, 1, 2, 255))
    assert find_option(options, 3) is None


def test_parse_too_short():
    with pytest.raises(DhcpError):
        DhcpMessage.parse(bytes(100))


def test_round_trip():
    message = DhcpMessage(
        op=2,
        yiaddr=bytes((10, 0, 2, 15)),
        siaddr=bytes((10, 0, 2, 2)),
        chaddr=MAC,
        options=MAGIC_COOKIE + bytes((53, 1, 2, 255)),
    )
    parsed = DhcpMessage.parse(message.pack())
    assert parsed == message
    assert parsed.message_type == 2


def test_message_without_type():
    message = DhcpMessage(options=MAGIC_COOKIE + bytes((255,)))
    assert message.message_type is None
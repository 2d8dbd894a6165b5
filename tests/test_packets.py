import pytest

from kuios.packets import (
    ArpFrame,
    IcmpHeader,
    Ipv4Header,
    TcpHeader,
    UdpHeader,
    build_arp_reply,
    build_arp_request,
    build_http_get,
    build_ping,
    build_tcp_ack,
    build_tcp_syn,
    build_udp_packet,
    checksum,
)

SRC_IP = bytes([10, 0, 2, 15])
DEST_IP = bytes([10, 0, 2, 2])
MAC_A = bytes([0x02, 0x00, 0x00, 0x00, 0x00, 0x01])
MAC_B = bytes([0x02, 0x00, 0x00, 0x00, 0x00, 0x02])


def _tcp_verifies(packet: bytes) -> bool:
    ip = Ipv4Header.parse(packet)
    segment = packet[20:]
    pseudo = ip.src_ip + ip.dest_ip + bytes((0, 6)) + len(segment).to_bytes(2, "big")
    return checksum(pseudo + segment) == 0


def test_checksum_worked_example():
    header = bytes.fromhex("450000730000400040110000c0a80001c0a800c7")
    assert checksum(header) == 0xB861


def test_checksum_of_empty_data():
    assert checksum(b"") == 0xFFFF


def test_checksum_pads_odd_byte_as_high_half():
    assert checksum(b"\x12\x34\x56") == checksum(b"\x12\x34\x56\x00")


def test_ipv4_header_round_trip():
    header = Ipv4Header(total_length=40, protocol=6, src_ip=SRC_IP, dest_ip=DEST_IP)
    packed = header.pack()
    assert len(packed) == 20
    assert Ipv4Header.parse(packed) == header


def test_ipv4_with_checksum_verifies():
    header = Ipv4Header(total_length=40, protocol=17, src_ip=SRC_IP, dest_ip=DEST_IP)
    assert checksum(header.with_checksum().pack()) == 0


def test_ipv4_parse_short_data_raises():
    with pytest.raises(ValueError):
        Ipv4Header.parse(b"\x45\x00")


def test_ipv4_rejects_bad_address_length():
    with pytest.raises(ValueError):
        Ipv4Header(total_length=20, protocol=1, src_ip=b"\x01\x02", dest_ip=DEST_IP)


def test_udp_header_round_trip():
    header = UdpHeader(src_port=68, dest_port=67, length=12, checksum=0)
    assert UdpHeader.parse(header.pack()) == header


def test_tcp_header_round_trip():
    header = TcpHeader(1234, 80, 1000, 2000, 0x5010, 1024, 0xABCD, 0)
    packed = header.pack()
    assert len(packed) == 20
    assert TcpHeader.parse(packed) == header


def test_tcp_header_out_of_range_port_raises():
    with pytest.raises(ValueError):
        TcpHeader(70000, 80, 0, 0, 0x5002).pack()


def test_icmp_header_pack():
    packed = IcmpHeader(8, 0, 0, 0x1234, 0).pack()
    assert packed == b"\x08\x00\x00\x00\x12\x34\x00\x00"


def test_build_udp_packet():
    data = b"hello"
    packet = build_udp_packet(SRC_IP, 5000, data, DEST_IP, 53)
    ip = Ipv4Header.parse(packet)
    assert ip.protocol == 17
    assert ip.ttl == 255
    assert ip.total_length == len(packet)
    assert ip.src_ip == SRC_IP
    assert ip.dest_ip == DEST_IP
    assert checksum(packet[:20]) == 0
    udp = UdpHeader.parse(packet[20:])
    assert udp == UdpHeader(5000, 53, 8 + len(data), 0)
    assert packet[28:] == data


def test_udp_to_dhcp_server_uses_zero_source():
    packet = build_udp_packet(SRC_IP, 68, b"x", bytes([255] * 4), 67)
    assert Ipv4Header.parse(packet).src_ip == bytes(4)


def test_build_ping():
    packet = build_ping(SRC_IP, DEST_IP, 0x0102)
    ip = Ipv4Header.parse(packet)
    assert ip.protocol == 1
    assert ip.ttl == 64
    assert ip.total_length == len(packet)
    icmp = packet[20:]
    assert icmp[0] == 8
    assert icmp[1] == 0
    assert icmp[4:6] == b"\x01\x02"
    assert icmp[6:8] == b"\x00\x00"
    assert icmp[8:] == b"abcdefgh"
    assert checksum(icmp) == 0


def test_build_tcp_syn():
    packet = build_tcp_syn(SRC_IP, 40000, DEST_IP, 80, 1000)
    ip = Ipv4Header.parse(packet)
    assert ip.protocol == 6
    assert ip.total_length == len(packet) == 40
    tcp = TcpHeader.parse(packet[20:])
    assert tcp.src_port == 40000
    assert tcp.dest_port == 80
    assert tcp.sequence == 1000
    assert tcp.acknowledgment == 0
    assert tcp.data_offset_reserved_flags == (5 << 12) | 0x02
    assert tcp.window_size == 1024
    assert _tcp_verifies(packet)


def test_build_tcp_ack():
    packet = build_tcp_ack(SRC_IP, 40000, DEST_IP, 80, 1001, 5001)
    tcp = TcpHeader.parse(packet[20:])
    assert tcp.sequence == 1001
    assert tcp.acknowledgment == 5001
    assert tcp.data_offset_reserved_flags == (5 << 12) | 0x10
    assert _tcp_verifies(packet)
    assert checksum(packet[:20]) == 0


def test_build_http_get():
    packet = build_http_get(SRC_IP, 40000, DEST_IP, 80, 1001, 5001)
    tcp = TcpHeader.parse(packet[20:])
    assert tcp.data_offset_reserved_flags == (5 << 12) | 0x18
    payload = packet[40:]
    assert payload.startswith(b"GET / HTTP/1.1\r\n")
    assert payload.endswith(b"\r\n\r\n")
    assert Ipv4Header.parse(packet).total_length == len(packet)
    assert _tcp_verifies(packet)


def test_build_arp_request():
    frame = build_arp_request(MAC_A, SRC_IP, DEST_IP)
    assert len(frame) == 28
    parsed = ArpFrame.parse(frame)
    assert parsed.operation == 1
    assert parsed.hardware_type == 1
    assert parsed.protocol_type == 0x0800
    assert parsed.hardware_size == 6
    assert parsed.protocol_size == 4
    assert parsed.sender_mac == MAC_A
    assert parsed.sender_ip == SRC_IP
    assert parsed.target_mac == bytes(6)
    assert parsed.target_ip == DEST_IP


def test_build_arp_reply():
    frame = build_arp_reply(MAC_A, SRC_IP, MAC_B, DEST_IP)
    parsed = ArpFrame.parse(frame)
    assert parsed.operation == 2
    assert parsed.target_mac == MAC_B
    assert parsed.pack() == frame


def test_arp_parse_short_raises():
    with pytest.raises(ValueError):
        ArpFrame.parse(b"\x00" * 10)


def test_arp_rejects_bad_mac():
    with pytest.raises(ValueError):
        build_arp_request(b"\x02\x00", SRC_IP, DEST_IP)
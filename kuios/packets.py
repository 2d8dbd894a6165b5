"""Wire formats and builders for IPv4, UDP, TCP, ICMP and ARP packets."""

from __future__ import annotations

import struct
from dataclasses import dataclass, replace
from typing import Iterable, Union

AddressLike = Union[bytes, bytearray, Iterable[int]]

IPV4_HEADER = struct.Struct("!BBHHHBBH4s4s")
UDP_HEADER = struct.Struct("!HHHH")
TCP_HEADER = struct.Struct("!HHIIHHHH")
ICMP_HEADER = struct.Struct("!BBHHH")
ARP_FRAME = struct.Struct("!HHBBH6s4s6s4s")

PROTO_ICMP = 1
PROTO_TCP = 6
PROTO_UDP = 17

DEFAULT_TTL = 255
PING_TTL = 64
DHCP_SERVER_PORT = 67

TCP_DATA_OFFSET = 5 << 12
TCP_SYN = 0x02
TCP_ACK = 0x10
TCP_PSH_ACK = 0x18
TCP_WINDOW = 1024

ICMP_ECHO_REQUEST = 8
PING_PAYLOAD = b"abcdefgh"

ARP_HARDWARE_ETHERNET = 0x0001
ARP_PROTOCOL_IPV4 = 0x0800
ARP_REQUEST = 1
ARP_REPLY = 2

HTTP_GET_REQUEST = (
    b"GET / HTTP/1.1\r\n"
    b"Host: example.com\r\n"
    b"User-Agent: BaremetalOS/1.0\r\n"
    b"Connection: close\r\n"
    b"\r\n"
)

_ZERO_IP = bytes(4)
_ZERO_MAC = bytes(6)
_MAX_PACKET = 0xFFFF


def _address(value: AddressLike, size: int, what: str) -> bytes:
    try:
        raw = bytes(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"invalid {what}: {value!r}") from exc
    if len(raw) != size:
        raise ValueError(f"{what} must be {size} bytes, got {len(raw)}")
    return raw


def _pack(layout: struct.Struct, *values: object) -> bytes:
    try:
        return layout.pack(*values)
    except struct.error as exc:
        raise ValueError(f"field out of range: {exc}") from exc


def _unpack(layout: struct.Struct, data: bytes, what: str) -> tuple:
    if len(data) < layout.size:
        raise ValueError(f"{what} needs {layout.size} bytes, got {len(data)}")
    return layout.unpack_from(bytes(data))


def checksum(data: bytes) -> int:
    """Internet checksum of big-endian 16-bit words; an odd last byte is the high half."""
    data = bytes(data)
    if len(data) % 2:
        data += b"\x00"
    total = sum(word for (word,) in struct.iter_unpack("!H", data))
    while total >> 16:
        total = (total & 0xFFFF) + (total >> 16)
    return ~total & 0xFFFF


@dataclass(frozen=True)
class Ipv4Header:
    """A 20-byte IPv4 header without options."""

    total_length: int
    protocol: int
    src_ip: bytes
    dest_ip: bytes
    ttl: int = DEFAULT_TTL
    version_ihl: int = 0x45
    dscp_ecn: int = 0
    identification: int = 0
    flags_fragment_offset: int = 0
    checksum: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "src_ip", _address(self.src_ip, 4, "source IP"))
        object.__setattr__(self, "dest_ip", _address(self.dest_ip, 4, "destination IP"))

    def pack(self) -> bytes:
        return _pack(
            IPV4_HEADER,
            self.version_ihl,
            self.dscp_ecn,
            self.total_length,
            self.identification,
            self.flags_fragment_offset,
            self.ttl,
            self.protocol,
            self.checksum,
            self.src_ip,
            self.dest_ip,
        )

    def with_checksum(self) -> Ipv4Header:
        """A copy whose checksum field covers the header."""
        return replace(self, checksum=checksum(replace(self, checksum=0).pack()))

    @classmethod
    def parse(cls, data: bytes) -> Ipv4Header:
        (
            version_ihl,
            dscp_ecn,
            total_length,
            identification,
            flags_fragment_offset,
            ttl,
            protocol,
            header_checksum,
            src_ip,
            dest_ip,
        ) = _unpack(IPV4_HEADER, data, "IPv4 header")
        return cls(
            total_length=total_length,
            protocol=protocol,
            src_ip=src_ip,
            dest_ip=dest_ip,
            ttl=ttl,
            version_ihl=version_ihl,
            dscp_ecn=dscp_ecn,
            identification=identification,
            flags_fragment_offset=flags_fragment_offset,
            checksum=header_checksum,
        )


@dataclass(frozen=True)
class UdpHeader:
    src_port: int
    dest_port: int
    length: int
    checksum: int = 0

    def pack(self) -> bytes:
        return _pack(UDP_HEADER, self.src_port, self.dest_port, self.length, self.checksum)

    @classmethod
    def parse(cls, data: bytes) -> UdpHeader:
        return cls(*_unpack(UDP_HEADER, data, "UDP header"))


@dataclass(frozen=True)
class TcpHeader:
    """A 20-byte TCP header without options."""

    src_port: int
    dest_port: int
    sequence: int
    acknowledgment: int
    data_offset_reserved_flags: int
    window_size: int = TCP_WINDOW
    checksum: int = 0
    urgent_pointer: int = 0

    def pack(self) -> bytes:
        return _pack(
            TCP_HEADER,
            self.src_port,
            self.dest_port,
            self.sequence,
            self.acknowledgment,
            self.data_offset_reserved_flags,
            self.window_size,
            self.checksum,
            self.urgent_pointer,
        )

    @classmethod
    def parse(cls, data: bytes) -> TcpHeader:
        return cls(*_unpack(TCP_HEADER, data, "TCP header"))


@dataclass(frozen=True)
class IcmpHeader:
    icmp_type: int
    code: int
    checksum: int
    identifier: int
    sequence: int

    def pack(self) -> bytes:
        return _pack(
            ICMP_HEADER,
            self.icmp_type,
            self.code,
            self.checksum,
            self.identifier,
            self.sequence,
        )


@dataclass(frozen=True)
class ArpFrame:
    """An Ethernet/IPv4 ARP message."""

    operation: int
    sender_mac: bytes
    sender_ip: bytes
    target_mac: bytes
    target_ip: bytes
    hardware_type: int = ARP_HARDWARE_ETHERNET
    protocol_type: int = ARP_PROTOCOL_IPV4
    hardware_size: int = 6
    protocol_size: int = 4

    def __post_init__(self) -> None:
        object.__setattr__(self, "sender_mac", _address(self.sender_mac, 6, "sender MAC"))
        object.__setattr__(self, "sender_ip", _address(self.sender_ip, 4, "sender IP"))
        object.__setattr__(self, "target_mac", _address(self.target_mac, 6, "target MAC"))
        object.__setattr__(self, "target_ip", _address(self.target_ip, 4, "target IP"))

    def pack(self) -> bytes:
        return _pack(
            ARP_FRAME,
            self.hardware_type,
            self.protocol_type,
            self.hardware_size,
            self.protocol_size,
            self.operation,
            self.sender_mac,
            self.sender_ip,
            self.target_mac,
            self.target_ip,
        )

    @classmethod
    def parse(cls, data: bytes) -> ArpFrame:
        (
            hardware_type,
            protocol_type,
            hardware_size,
            protocol_size,
            operation,
            sender_mac,
            sender_ip,
            target_mac,
            target_ip,
        ) = _unpack(ARP_FRAME, data, "ARP frame")
        return cls(
            operation=operation,
            sender_mac=sender_mac,
            sender_ip=sender_ip,
            target_mac=target_mac,
            target_ip=target_ip,
            hardware_type=hardware_type,
            protocol_type=protocol_type,
            hardware_size=hardware_size,
            protocol_size=protocol_size,
        )


def _source_ip(src_ip: AddressLike, dest_port: int) -> bytes:
    # DHCP clients have no address yet when talking to the server port.
    return _ZERO_IP if dest_port == DHCP_SERVER_PORT else _address(src_ip, 4, "source IP")


def _ip_packet(
    src_ip: bytes, dest_ip: AddressLike, protocol: int, payload: bytes, ttl: int
) -> bytes:
    total_length = IPV4_HEADER.size + len(payload)
    if total_length > _MAX_PACKET:
        raise ValueError(f"packet too large: {total_length} bytes")
    header = Ipv4Header(
        total_length=total_length,
        protocol=protocol,
        src_ip=src_ip,
        dest_ip=dest_ip,
        ttl=ttl,
    ).with_checksum()
    return header.pack() + payload


def build_udp_packet(
    src_ip: AddressLike,
    src_port: int,
    data: bytes,
    dest_ip: AddressLike,
    dest_port: int,
) -> bytes:
    """An IPv4 datagram carrying a UDP segment; the UDP checksum is left at zero."""
    data = bytes(data)
    udp = UdpHeader(src_port, dest_port, UDP_HEADER.size + len(data)).pack()
    return _ip_packet(
        _source_ip(src_ip, dest_port), dest_ip, PROTO_UDP, udp + data, DEFAULT_TTL
    )


def build_ping(src_ip: AddressLike, dest_ip: AddressLike, identifier: int) -> bytes:
    """An IPv4 datagram carrying an ICMP echo request with sequence number zero."""
    unsigned = IcmpHeader(ICMP_ECHO_REQUEST, 0, 0, identifier, 0).pack() + PING_PAYLOAD
    icmp = (
        replace(
            IcmpHeader(ICMP_ECHO_REQUEST, 0, 0, identifier, 0),
            checksum=checksum(unsigned),
        ).pack()
        + PING_PAYLOAD
    )
    return _ip_packet(_address(src_ip, 4, "source IP"), dest_ip, PROTO_ICMP, icmp, PING_TTL)


def _build_tcp(
    src_ip: AddressLike,
    src_port: int,
    dest_ip: AddressLike,
    dest_port: int,
    seq_number: int,
    ack_number: int,
    flags: int,
    payload: bytes = b"",
) -> bytes:
    source = _source_ip(src_ip, dest_port)
    destination = _address(dest_ip, 4, "destination IP")
    header = TcpHeader(
        src_port=src_port,
        dest_port=dest_port,
        sequence=seq_number,
        acknowledgment=ack_number,
        data_offset_reserved_flags=TCP_DATA_OFFSET | flags,
    )
    segment_length = TCP_HEADER.size + len(payload)
    pseudo = source + destination + bytes((0, PROTO_TCP)) + _pack(
        struct.Struct("!H"), segment_length
    )
    header = replace(header, checksum=checksum(pseudo + header.pack() + payload))
    return _ip_packet(source, destination, PROTO_TCP, header.pack() + payload, DEFAULT_TTL)


def build_tcp_syn(
    src_ip: AddressLike,
    src_port: int,
    dest_ip: AddressLike,
    dest_port: int,
    seq_number: int,
) -> bytes:
    """An IPv4 datagram opening a TCP connection."""
    return _build_tcp(src_ip, src_port, dest_ip, dest_port, seq_number, 0, TCP_SYN)


def build_tcp_ack(
    src_ip: AddressLike,
    src_port: int,
    dest_ip: AddressLike,
    dest_port: int,
    seq_number: int,
    ack_number: int,
) -> bytes:
    """An IPv4 datagram acknowledging TCP data."""
    return _build_tcp(
        src_ip, src_port, dest_ip, dest_port, seq_number, ack_number, TCP_ACK
    )


def build_http_get(
    src_ip: AddressLike,
    src_port: int,
    dest_ip: AddressLike,
    dest_port: int,
    seq_number: int,
    ack_number: int,
) -> bytes:
    """An IPv4 datagram pushing a fixed HTTP GET request over TCP."""
    return _build_tcp(
        src_ip,
        src_port,
        dest_ip,
        dest_port,
        seq_number,
        ack_number,
        TCP_PSH_ACK,
        HTTP_GET_REQUEST,
    )


def build_arp_request(
    sender_mac: AddressLike, sender_ip: AddressLike, target_ip: AddressLike
) -> bytes:
    """An ARP request asking who has ``target_ip``."""
    return ArpFrame(ARP_REQUEST, sender_mac, sender_ip, _ZERO_MAC, target_ip).pack()


def build_arp_reply(
    sender_mac: AddressLike,
    sender_ip: AddressLike,
    target_mac: AddressLike,
    target_ip: AddressLike,
) -> bytes:
    """An ARP reply announcing ``sender_ip`` at ``sender_mac``."""
    return ArpFrame(ARP_REPLY, sender_mac, sender_ip, target_mac, target_ip).pack()
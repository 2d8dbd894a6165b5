"""A small network interface: Ethernet framing, sockets, ARP cache and receive handling."""

from __future__ import annotations

import struct
from collections import OrderedDict, deque
from dataclasses import dataclass, field
from typing import Callable, Deque, Iterable, Optional, Union

from .dhcp import (
    DHCP_ACK,
    DHCP_OFFER,
    OPT_DNS,
    OPT_ROUTER,
    OPT_SUBNET_MASK,
    DhcpError,
    DhcpMessage,
    build_dhcp_discover,
    build_dhcp_request,
)
from .packets import (
    IPV4_HEADER,
    PROTO_TCP,
    PROTO_UDP,
    ArpFrame,
    Ipv4Header,
    TcpHeader,
    UdpHeader,
    build_arp_reply,
    build_arp_request,
    build_ping,
    build_udp_packet,
)

AddressLike = Union[bytes, bytearray, Iterable[int]]

ETH_HEADER = struct.Struct("!6s6sH")
RX_HEADER = struct.Struct("<HH")

ETH_TYPE_IPV4 = 0x0800
ETH_TYPE_ARP = 0x0806
BROADCAST_MAC = b"\xff" * 6
BROADCAST_IP = b"\xff" * 4
DHCP_CLIENT_PORT = 68
DHCP_SERVER_PORT = 67

RX_BUFFER_SIZE = 8192 + 16 + 1500
TX_BUFFER_SIZE = 2048
TX_DESCRIPTORS = 4
RX_OK = 0x01
ARP_CACHE_SIZE = 16
LOCAL_FIRST_OCTETS = frozenset({10, 127, 172, 192})


def _address(value: AddressLike, size: int, what: str) -> bytes:
    try:
        raw = bytes(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"invalid {what}: {value!r}") from exc
    if len(raw) != size:
        raise ValueError(f"{what} must be {size} bytes, got {len(raw)}")
    return raw


@dataclass(frozen=True)
class EthernetHeader:
    dst_mac: bytes
    src_mac: bytes
    eth_type: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "dst_mac", _address(self.dst_mac, 6, "destination MAC"))
        object.__setattr__(self, "src_mac", _address(self.src_mac, 6, "source MAC"))

    def pack(self) -> bytes:
        try:
            return ETH_HEADER.pack(self.dst_mac, self.src_mac, self.eth_type)
        except struct.error as exc:
            raise ValueError(f"field out of range: {exc}") from exc

    @classmethod
    def parse(cls, data: bytes) -> EthernetHeader:
        if len(data) < ETH_HEADER.size:
            raise ValueError(
                f"Ethernet header needs {ETH_HEADER.size} bytes, got {len(data)}"
            )
        return cls(*ETH_HEADER.unpack_from(bytes(data)))


class SocketTable:
    """Ports bound to receive queues of whole Ethernet frames."""

    def __init__(self) -> None:
        self._ports: dict[int, Deque[bytes]] = {}

    def __len__(self) -> int:
        return len(self._ports)

    def __contains__(self, port: object) -> bool:
        return port in self._ports

    def open(self, port: int) -> Deque[bytes]:
        """Bind a port and return its queue; an already bound port keeps its queue."""
        if not 0 < port <= 0xFFFF:
            raise ValueError(f"invalid port: {port}")
        return self._ports.setdefault(port, deque())

    def get(self, port: int) -> Optional[Deque[bytes]]:
        return self._ports.get(port)

    def close(self, port: int) -> None:
        """Unbind a port; unknown ports are ignored."""
        self._ports.pop(port, None)


class ArpCache:
    """IP to MAC mappings learned from ARP traffic, oldest dropped when full."""

    def __init__(self, capacity: int = ARP_CACHE_SIZE) -> None:
        if capacity < 1:
            raise ValueError("an ARP cache needs at least one entry")
        self.capacity = capacity
        self._entries: OrderedDict[bytes, bytes] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def learn(self, ip: AddressLike, mac: AddressLike) -> None:
        key = _address(ip, 4, "IP address")
        value = _address(mac, 6, "MAC address")
        if key in self._entries:
            self._entries.move_to_end(key)
        elif len(self._entries) >= self.capacity:
            self._entries.popitem(last=False)
        self._entries[key] = value

    def find_mac(self, ip: AddressLike) -> Optional[bytes]:
        return self._entries.get(_address(ip, 4, "IP address"))


@dataclass
class NetworkInterface:
    """An Ethernet interface with IPv4 configuration.

    Outgoing frames are appended to ``sent`` and passed to ``transmit`` if given.
    """

    mac: bytes
    ip: bytes = bytes(4)
    subnet: bytes = bytes(4)
    gateway: bytes = bytes(4)
    dns: bytes = bytes(4)
    transmit: Optional[Callable[[bytes], None]] = None
    sockets: SocketTable = field(default_factory=SocketTable)
    arp_cache: ArpCache = field(default_factory=ArpCache)
    sent: list[bytes] = field(default_factory=list, init=False)
    tx_index: int = field(default=0, init=False)

    def __post_init__(self) -> None:
        self.mac = _address(self.mac, 6, "MAC address")
        for name in ("ip", "subnet", "gateway", "dns"):
            setattr(self, name, _address(getattr(self, name), 4, name))

    def send_packet(self, data: bytes, dst_mac: AddressLike, eth_type: int) -> bytes:
        """Frame ``data`` for Ethernet, send it and return the frame."""
        frame = EthernetHeader(dst_mac, self.mac, eth_type).pack() + bytes(data)
        if len(frame) > TX_BUFFER_SIZE:
            raise ValueError(f"frame too large: {len(frame)} bytes")
        self.sent.append(frame)
        if self.transmit is not None:
            self.transmit(frame)
        self.tx_index = (self.tx_index + 1) % TX_DESCRIPTORS
        return frame

    def send_udp(
        self,
        src_port: int,
        data: bytes,
        dest_mac: AddressLike,
        dest_ip: AddressLike,
        dest_port: int,
    ) -> bytes:
        packet = build_udp_packet(self.ip, src_port, data, dest_ip, dest_port)
        return self.send_packet(packet, dest_mac, ETH_TYPE_IPV4)

    def ping(self, dest_ip: AddressLike, identifier: int) -> Optional[bytes]:
        """Send an echo request; returns None when the next hop's MAC is unknown."""
        target = _address(dest_ip, 4, "destination IP")
        hop = target if target[0] in LOCAL_FIRST_OCTETS else self.gateway
        dest_mac = self.arp_cache.find_mac(hop)
        if dest_mac is None:
            return None
        return self.send_packet(
            build_ping(self.ip, target, identifier), dest_mac, ETH_TYPE_IPV4
        )

    def send_arp_request(self, target_ip: AddressLike) -> bytes:
        frame = build_arp_request(self.mac, self.ip, target_ip)
        return self.send_packet(frame, BROADCAST_MAC, ETH_TYPE_ARP)

    def send_arp_reply(self, target_ip: AddressLike, target_mac: AddressLike) -> bytes:
        frame = build_arp_reply(self.mac, self.ip, target_mac, target_ip)
        return self.send_packet(frame, BROADCAST_MAC, ETH_TYPE_ARP)

    def send_dhcp_discover(self) -> bytes:
        return self.send_udp(
            DHCP_CLIENT_PORT,
            build_dhcp_discover(self.mac),
            BROADCAST_MAC,
            BROADCAST_IP,
            DHCP_SERVER_PORT,
        )

    def send_dhcp_request(self, new_ip: AddressLike, server_ip: AddressLike) -> bytes:
        return self.send_udp(
            DHCP_CLIENT_PORT,
            build_dhcp_request(self.mac, new_ip, server_ip),
            BROADCAST_MAC,
            BROADCAST_IP,
            DHCP_SERVER_PORT,
        )

    def handle_dhcp(self, message: DhcpMessage) -> Optional[bytes]:
        """Answer an offer with a request, or take the configuration of an ack.

        Returns the frame sent in reply, if any.
        """
        kind = message.message_type
        if kind is None:
            raise DhcpError("DHCP message has no message type option")
        if kind == DHCP_OFFER:
            return self.send_dhcp_request(message.yiaddr, message.siaddr)
        if kind == DHCP_ACK:
            subnet = self._required(message, OPT_SUBNET_MASK, "subnet mask")
            gateway = self._required(message, OPT_ROUTER, "router")
            dns = self._required(message, OPT_DNS, "DNS server")
            self.subnet = subnet
            self.ip = message.yiaddr
            self.gateway = gateway
            self.dns = dns
        return None

    @staticmethod
    def _required(message: DhcpMessage, tag: int, what: str) -> bytes:
        value = message.option(tag)
        if value is None or len(value) < 4:
            raise DhcpError(f"DHCP acknowledgement lacks a {what}")
        return bytes(value[:4])

    def receive(self, frame: bytes) -> None:
        """Handle one received Ethernet frame.

        ARP messages teach the cache; UDP and TCP frames go to the socket bound
        to their destination port, if any.
        """
        frame = bytes(frame)
        ethernet = EthernetHeader.parse(frame)
        payload = frame[ETH_HEADER.size :]
        if ethernet.eth_type == ETH_TYPE_ARP:
            arp = ArpFrame.parse(payload)
            self.arp_cache.learn(arp.sender_ip, arp.sender_mac)
        elif ethernet.eth_type == ETH_TYPE_IPV4:
            header = Ipv4Header.parse(payload)
            segment = payload[IPV4_HEADER.size :]
            if header.protocol == PROTO_UDP:
                port = UdpHeader.parse(segment).dest_port
            elif header.protocol == PROTO_TCP:
                port = TcpHeader.parse(segment).dest_port
            else:
                return
            queue = self.sockets.get(port)
            if queue is not None:
                queue.append(frame)

    def drain_ring(self, ring: bytes, offset: int) -> int:
        """Handle every received frame in a receive ring from ``offset`` on.

        Each entry is a little-endian status and length followed by the frame,
        padded to four bytes. Returns the offset of the first unhandled entry.
        """
        ring = bytes(ring)
        size = len(ring)
        consumed = 0
        while consumed < size and offset + RX_HEADER.size <= size:
            status, length = RX_HEADER.unpack_from(ring, offset)
            if status != RX_OK:
                break
            start = offset + RX_HEADER.size
            self.receive(ring[start : start + length])
            step = (length + RX_HEADER.size + 3) & ~3
            consumed += step
            offset = (offset + step) % size
        return offset
"""DHCP client messages: building discover and request, parsing replies."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Iterable, Optional, Union

BytesLike = Union[bytes, bytearray, memoryview, Iterable[int]]

DHCP_FIXED = struct.Struct("!BBBBIHH4s4s4s4s16s64s128s")
DHCP_FIXED_SIZE = DHCP_FIXED.size
OPTIONS_SIZE = 312

MAGIC_COOKIE = bytes((0x63, 0x82, 0x53, 0x63))
XID = 0xFE55A
BROADCAST_FLAG = 0x8000

BOOTREQUEST = 1
HTYPE_ETHERNET = 1
HLEN_ETHERNET = 6

OPT_PAD = 0
OPT_SUBNET_MASK = 1
OPT_ROUTER = 3
OPT_DNS = 6
OPT_REQUESTED_IP = 50
OPT_MESSAGE_TYPE = 53
OPT_SERVER_ID = 54
OPT_PARAMETER_LIST = 55
OPT_CLIENT_ID = 61
OPT_END = 255

DHCP_DISCOVER = 1
DHCP_OFFER = 2
DHCP_REQUEST = 3
DHCP_ACK = 5

_REQUESTED_PARAMETERS = bytes(
    (OPT_SUBNET_MASK, OPT_ROUTER, OPT_DNS, 15)
)


class DhcpError(ValueError):
    """Raised for malformed or incomplete DHCP messages."""


def _exact(value: BytesLike, size: int, what: str) -> bytes:
    try:
        raw = bytes(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"invalid {what}: {value!r}") from exc
    if len(raw) != size:
        raise ValueError(f"{what} must be {size} bytes, got {len(raw)}")
    return raw


def _padded(value: BytesLike, size: int, what: str) -> bytes:
    raw = bytes(value)
    if len(raw) > size:
        raise ValueError(f"{what} is longer than {size} bytes")
    return raw.ljust(size, b"\x00")


def find_option(options: BytesLike, tag: int) -> Optional[bytes]:
    """Data of the first option with ``tag`` in an options field that starts with the cookie.

    Pad bytes are skipped; the end marker, a truncated option or the end of the
    data all give None.
    """
    data = bytes(options)
    index = len(MAGIC_COOKIE)
    while index < len(data):
        current = data[index]
        if current == OPT_END:
            return None
        if current == OPT_PAD:
            index += 1
            continue
        if index + 1 >= len(data):
            return None
        start = index + 2
        end = start + data[index + 1]
        if end > len(data):
            return None
        if current == tag:
            return data[start:end]
        index = end
    return None


@dataclass(frozen=True)
class DhcpMessage:
    """A BOOTP/DHCP message with its options field, cookie included."""

    op: int = BOOTREQUEST
    htype: int = HTYPE_ETHERNET
    hlen: int = HLEN_ETHERNET
    hops: int = 0
    xid: int = XID
    secs: int = 0
    flags: int = 0
    ciaddr: bytes = bytes(4)
    yiaddr: bytes = bytes(4)
    siaddr: bytes = bytes(4)
    giaddr: bytes = bytes(4)
    chaddr: bytes = bytes(16)
    sname: bytes = bytes(64)
    file: bytes = bytes(128)
    options: bytes = b""

    def __post_init__(self) -> None:
        for name in ("ciaddr", "yiaddr", "siaddr", "giaddr"):
            object.__setattr__(self, name, _exact(getattr(self, name), 4, name))
        object.__setattr__(self, "chaddr", _padded(self.chaddr, 16, "chaddr"))
        object.__setattr__(self, "sname", _padded(self.sname, 64, "sname"))
        object.__setattr__(self, "file", _padded(self.file, 128, "file"))
        options = bytes(self.options)
        if len(options) > OPTIONS_SIZE:
            raise ValueError(f"options are longer than {OPTIONS_SIZE} bytes")
        object.__setattr__(self, "options", options)

    def pack(self) -> bytes:
        try:
            fixed = DHCP_FIXED.pack(
                self.op,
                self.htype,
                self.hlen,
                self.hops,
                self.xid,
                self.secs,
                self.flags,
                self.ciaddr,
                self.yiaddr,
                self.siaddr,
                self.giaddr,
                self.chaddr,
                self.sname,
                self.file,
            )
        except struct.error as exc:
            raise ValueError(f"field out of range: {exc}") from exc
        return fixed + self.options

    @classmethod
    def parse(cls, data: BytesLike) -> DhcpMessage:
        raw = bytes(data)
        if len(raw) < DHCP_FIXED_SIZE:
            raise DhcpError(
                f"DHCP message needs {DHCP_FIXED_SIZE} bytes, got {len(raw)}"
            )
        fields = DHCP_FIXED.unpack_from(raw)
        options = raw[DHCP_FIXED_SIZE : DHCP_FIXED_SIZE + OPTIONS_SIZE]
        return cls(*fields, options=options)

    def option(self, tag: int) -> Optional[bytes]:
        """Data of an option, or None when the message does not carry it."""
        return find_option(self.options, tag)

    @property
    def message_type(self) -> Optional[int]:
        value = self.option(OPT_MESSAGE_TYPE)
        return value[0] if value else None


def _client_message(mac: BytesLike, body: bytes) -> bytes:
    hardware = _exact(mac, 6, "MAC address")
    message = DhcpMessage(
        op=BOOTREQUEST,
        xid=XID,
        flags=BROADCAST_FLAG,
        chaddr=hardware,
        options=MAGIC_COOKIE + body + bytes((OPT_END,)),
    )
    return message.pack()


def build_dhcp_discover(mac: BytesLike) -> bytes:
    """A DHCPDISCOVER asking for mask, router, DNS and domain name."""
    hardware = _exact(mac, 6, "MAC address")
    body = (
        bytes((OPT_MESSAGE_TYPE, 1, DHCP_DISCOVER))
        + bytes((OPT_PARAMETER_LIST, len(_REQUESTED_PARAMETERS)))
        + _REQUESTED_PARAMETERS
        + bytes((OPT_CLIENT_ID, 7, HTYPE_ETHERNET))
        + hardware
    )
    return _client_message(hardware, body)


def build_dhcp_request(
    mac: BytesLike, requested_ip: BytesLike, server_ip: BytesLike
) -> bytes:
    """A DHCPREQUEST accepting ``requested_ip`` from ``server_ip``."""
    body = (
        bytes((OPT_MESSAGE_TYPE, 1, DHCP_REQUEST))
        + bytes((OPT_REQUESTED_IP, 4))
        + _exact(requested_ip, 4, "requested IP")
        + bytes((OPT_SERVER_ID, 4))
        + _exact(server_ip, 4, "server IP")
    )
    return _client_message(mac, body)
"""Framed packets: a 4-byte header followed by an encoded payload.

Header layout::

    byte 0      version
    byte 1      encoding (top 2 bits) | packet type (low 6 bits)
    bytes 2-3   payload length, big endian
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from ekoserver.payloads import Payload, encode_payload, payload_class
from ekoserver.protocol import (
    ENCODING_OFFSET,
    HEADER_SIZE,
    LENGTH_OFFSET,
    PAYLOAD_MAX_SIZE,
    TYPE_OFFSET,
    VERSION,
    VERSION_OFFSET,
    Encoding,
    PacketType,
)

READ_QUEUE_SIZE = 10


class PacketError(ValueError):
    """A packet could not be framed or decoded.

    ``packets`` holds packets completed by the same push before the error.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.packets: list[Packet] = []


class UnsupportedVersionError(PacketError):
    def __init__(self, message: str = "packet error: unsupported version") -> None:
        super().__init__(message)


class UnsupportedEncodingError(PacketError):
    def __init__(self, message: str = "packet error: unsupported encoding") -> None:
        super().__init__(message)


class UnsupportedTypeError(PacketError):
    def __init__(self, message: str = "packet error: unsupported type") -> None:
        super().__init__(message)


def _length(data: bytes | bytearray) -> int:
    return int.from_bytes(data[LENGTH_OFFSET:HEADER_SIZE], "big")


@dataclass(frozen=True, repr=False)
class Packet:
    """One complete packet, header and payload."""

    data: bytes

    def __post_init__(self) -> None:
        raw = bytes(self.data)
        if len(raw) < HEADER_SIZE:
            raise ValueError(f"packet needs at least {HEADER_SIZE} bytes, got {len(raw)}")
        if len(raw) - HEADER_SIZE != _length(raw):
            raise ValueError("payload length in header does not match the packet size")
        object.__setattr__(self, "data", raw)

    @classmethod
    def from_payload(cls, payload: Payload, encoding: Encoding = Encoding.MSGPACK) -> Packet:
        """Encode ``payload`` and wrap it in a packet."""
        encoding = Encoding(encoding)
        body = encode_payload(payload, encoding)
        if len(body) > PAYLOAD_MAX_SIZE:
            raise ValueError(f"payload of {len(body)} bytes exceeds {PAYLOAD_MAX_SIZE}")
        header = bytes([VERSION, int(payload.TYPE) | int(encoding) << 6])
        return cls(header + len(body).to_bytes(2, "big") + body)

    def version(self) -> int:
        return self.data[VERSION_OFFSET]

    def type(self) -> PacketType:
        """Return the packet type; raises UnsupportedTypeError for unknown values."""
        raw = self.data[TYPE_OFFSET] & 63
        if raw >= PacketType.MAX:
            raise UnsupportedTypeError(f"packet error: unsupported type {raw}")
        return PacketType(raw)

    def encoding(self) -> Encoding:
        return Encoding(self.data[ENCODING_OFFSET] >> 6)

    def payload_length(self) -> int:
        return _length(self.data)

    def payload(self) -> bytes:
        return self.data[HEADER_SIZE:]

    def decode_payload_into(self, payload_cls: type[Payload]) -> Payload:
        """Decode the payload as ``payload_cls``, which must match the packet type."""
        packet_type = self.type()
        if packet_type != payload_cls.TYPE:
            raise PacketError(f"type mismatch: want {packet_type} got {payload_cls.TYPE}")
        encoding = self.encoding()
        if not encoding.is_supported():
            raise UnsupportedEncodingError(f"unsupported encoding: {encoding}")
        return payload_cls.from_wire(self.payload(), encoding)

    def decoded_payload(self) -> Payload:
        """Decode the payload as the class its packet type calls for."""
        return self.decode_payload_into(payload_class(self.type()))

    def log_value(self) -> dict[str, Any]:
        """Summary of the packet for structured logging."""
        try:
            type_name = str(self.type())
        except UnsupportedTypeError:
            type_name = f"UnsupportedPacket({self.data[TYPE_OFFSET] & 63})"
        return {
            "version": self.version(),
            "encoding": str(self.encoding()),
            "type": type_name,
            "payload_length": self.payload_length(),
            "total_bytes": len(self.data),
        }

    def __bytes__(self) -> bytes:
        return self.data

    def __repr__(self) -> str:
        info = self.log_value()
        return (
            f"Packet(v{info['version']} {info['encoding']} {info['type']} "
            f"[{info['payload_length']} bytes...])"
        )


class PacketFramer:
    """Splits a byte stream into packets."""

    def __init__(self) -> None:
        self._buffer = bytearray()

    def push(self, data: bytes) -> list[Packet]:
        """Add received bytes and return the packets they complete.

        Raises a PacketError subclass on a malformed header; packets completed
        before it are on the exception's ``packets``.
        """
        self._buffer += data
        framed: list[Packet] = []
        while True:
            try:
                packet = self._parse()
            except PacketError as exc:
                exc.packets = framed
                raise
            if packet is None:
                return framed
            framed.append(packet)

    def _parse(self) -> Optional[Packet]:
        buf = self._buffer
        if len(buf) < HEADER_SIZE:
            return None
        if buf[VERSION_OFFSET] != VERSION:
            raise UnsupportedVersionError()
        if not Encoding(buf[ENCODING_OFFSET] >> 6).is_supported():
            raise UnsupportedEncodingError()
        if buf[TYPE_OFFSET] & 63 >= PacketType.MAX:
            raise UnsupportedTypeError()
        length = _length(buf)
        if len(buf) - HEADER_SIZE < length:
            return None
        full = HEADER_SIZE + length
        packet = Packet(bytes(buf[:full]))
        del buf[:full]
        return packet
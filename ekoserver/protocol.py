"""Wire protocol constants: header layout, payload encodings and packet types."""

from __future__ import annotations

from enum import IntEnum

VERSION = 2
PACKET_MAX_SIZE = 0xFFFF
HEADER_SIZE = 4
PAYLOAD_MAX_SIZE = PACKET_MAX_SIZE - HEADER_SIZE
VERSION_OFFSET = 0
TYPE_OFFSET = 1
ENCODING_OFFSET = 1
LENGTH_OFFSET = 2


class Encoding(IntEnum):
    """How a packet's payload is serialized (two bits of the header)."""

    JSON = 0
    MSGPACK = 1
    UNUSED1 = 2
    UNUSED2 = 3

    def is_supported(self) -> bool:
        return self in (Encoding.JSON, Encoding.MSGPACK)

    def __str__(self) -> str:
        return {
            Encoding.JSON: "EncodingJson",
            Encoding.MSGPACK: "EncodingMsgPack",
            Encoding.UNUSED1: "EncodingUnused1",
            Encoding.UNUSED2: "EncodingUnused2",
        }[self]


class PacketType(IntEnum):
    """Kind of payload a packet carries (six bits of the header)."""

    ERROR = 0
    TOS_INFO = 1
    ACCEPT_TOS = 2
    GET_NONCE = 3
    NONCE_INFO = 4
    AUTHENTICATE = 5
    USERS_INFO = 6
    GET_USERS = 7
    SET_USER_DATA = 8
    GET_USER_DATA = 9
    CREATE_NETWORK = 10
    UPDATE_NETWORK = 11
    TRANSFER_NETWORK = 12
    DELETE_NETWORK = 13
    NETWORKS_INFO = 14
    CREATE_FREQUENCY = 15
    UPDATE_FREQUENCY = 16
    DELETE_FREQUENCY = 17
    SWAP_FREQUENCIES = 18
    FREQUENCIES_INFO = 19
    SEND_MESSAGE = 20
    EDIT_MESSAGE = 21
    DELETE_MESSAGE = 22
    REQUEST_MESSAGES = 23
    MESSAGES_INFO = 24
    GET_BANNED_MEMBERS = 25
    SET_MEMBER = 26
    MEMBERS_INFO = 27
    TRUST_USER = 28
    TRUST_INFO = 29
    SET_LAST_READ_MESSAGES = 30
    NOTIFICATIONS_INFO = 31
    BLOCK_USER = 32
    BLOCK_INFO = 33
    MAX = 34

    def is_supported(self) -> bool:
        return self < PacketType.MAX

    def __str__(self) -> str:
        if not self.is_supported():
            return f"UnsupportedPacket({int(self)})"
        return "Packet" + "".join(part.capitalize() for part in self.name.split("_"))


if PacketType.MAX > 64:
    raise RuntimeError("packet types exceeded allowed limit of 64 types")
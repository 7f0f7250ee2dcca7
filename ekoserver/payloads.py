"""Request and response payloads exchanged between clients and the server."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Optional

from ekoserver.data.models import (
    Frequency,
    Member,
    Message,
    Network,
    User,
    model_from_wire,
    model_to_wire,
)
from ekoserver.protocol import Encoding, PacketType
from ekoserver.snowflake import ID

MAX_NETWORK_NAME_BYTES = 32
MAX_ICON_BYTES = 16
DEFAULT_FREQUENCY_NAME = "main"
DEFAULT_FREQUENCY_COLOR = "#FFFFFF"
MAX_FREQUENCY_NAME = 32
MAX_USER_DATA_BYTES = 8192
MAX_MESSAGE_BYTES = 2000
MAX_USERNAME_BYTES = 32
MAX_USER_DESCRIPTION_BYTES = 200
MAX_BAN_REASON_BYTES = 64
MAX_USERS_IN_GET_USERS = 64

PERM_NO_ACCESS = 0
PERM_READ = 1
PERM_READ_WRITE = 2
PERM_MAX = 3

PING_EVERYONE = ID(0)
PING_ADMINS = ID(1)


class Payload:
    """Base of all payloads; ``TYPE`` is the packet type that carries it."""

    TYPE: ClassVar[PacketType]

    def to_wire(self, encoding: Encoding = Encoding.MSGPACK) -> bytes:
        """Serialize this payload in the given encoding."""
        return model_to_wire(self, encoding)

    @classmethod
    def from_wire(cls, data: bytes, encoding: Encoding = Encoding.MSGPACK) -> Any:
        """Deserialize a payload of this class; raises ValueError on malformed data."""
        return model_from_wire(cls, data, encoding)


@dataclass
class Error(Payload):
    TYPE = PacketType.ERROR
    error: str = ""


@dataclass
class CreateNetwork(Payload):
    TYPE = PacketType.CREATE_NETWORK
    name: str = ""
    icon: str = ""
    bg_hex_color: str = ""
    fg_hex_color: str = ""
    is_public: bool = False


@dataclass
class UpdateNetwork(CreateNetwork):
    TYPE = PacketType.UPDATE_NETWORK
    network: ID = ID(0)


@dataclass
class TransferNetwork(Payload):
    TYPE = PacketType.TRANSFER_NETWORK
    network: ID = ID(0)
    user: ID = ID(0)


@dataclass
class DeleteNetwork(Payload):
    TYPE = PacketType.DELETE_NETWORK
    network: ID = ID(0)


@dataclass
class SetMember(Payload):
    TYPE = PacketType.SET_MEMBER
    member: Optional[bool] = None
    admin: Optional[bool] = None
    muted: Optional[bool] = None
    banned: Optional[bool] = None
    ban_reason: Optional[str] = None
    network: ID = ID(0)
    user: ID = ID(0)


@dataclass
class FullNetwork(Network):
    """A network together with its frequencies, members and their users."""

    frequencies: list[Frequency] = field(default_factory=list)
    members: list[Member] = field(default_factory=list)
    users: list[User] = field(default_factory=list)


@dataclass
class NetworksInfo(Payload):
    TYPE = PacketType.NETWORKS_INFO
    networks: list[FullNetwork] = field(default_factory=list)
    removed_networks: list[ID] = field(default_factory=list)
    partial: bool = False


@dataclass
class CreateFrequency(Payload):
    TYPE = PacketType.CREATE_FREQUENCY
    name: str = ""
    hex_color: str = ""
    network: ID = ID(0)
    perms: int = 0


@dataclass
class UpdateFrequency(Payload):
    TYPE = PacketType.UPDATE_FREQUENCY
    name: str = ""
    hex_color: str = ""
    frequency: ID = ID(0)
    perms: int = 0


@dataclass
class DeleteFrequency(Payload):
    TYPE = PacketType.DELETE_FREQUENCY
    frequency: ID = ID(0)


@dataclass
class SwapFrequencies(Payload):
    TYPE = PacketType.SWAP_FREQUENCIES
    network: ID = ID(0)
    pos1: int = 0
    pos2: int = 0


@dataclass
class FrequenciesInfo(Payload):
    TYPE = PacketType.FREQUENCIES_INFO
    removed_frequencies: list[ID] = field(default_factory=list)
    frequencies: list[Frequency] = field(default_factory=list)
    network: ID = ID(0)


@dataclass
class SendMessage(Payload):
    TYPE = PacketType.SEND_MESSAGE
    receiver_id: Optional[ID] = None
    frequency_id: Optional[ID] = None
    content: str = ""
    ping: Optional[ID] = None


@dataclass
class EditMessage(Payload):
    TYPE = PacketType.EDIT_MESSAGE
    content: str = ""
    message: ID = ID(0)


@dataclass
class DeleteMessage(Payload):
    TYPE = PacketType.DELETE_MESSAGE
    message: ID = ID(0)


@dataclass
class RequestMessages(Payload):
    TYPE = PacketType.REQUEST_MESSAGES
    receiver_id: Optional[ID] = None
    frequency_id: Optional[ID] = None


@dataclass
class MessagesInfo(Payload):
    TYPE = PacketType.MESSAGES_INFO
    messages: list[Message] = field(default_factory=list)
    removed_messages: list[ID] = field(default_factory=list)


@dataclass
class MembersInfo(Payload):
    TYPE = PacketType.MEMBERS_INFO
    removed_members: list[ID] = field(default_factory=list)
    members: list[Member] = field(default_factory=list)
    users: list[User] = field(default_factory=list)
    network: ID = ID(0)


@dataclass
class SetUserData(Payload):
    TYPE = PacketType.SET_USER_DATA
    data: Optional[str] = None
    user: Optional[User] = None
    nonce: Optional[bytes] = None


@dataclass
class GetUserData(Payload):
    TYPE = PacketType.GET_USER_DATA


@dataclass
class TrustUser(Payload):
    TYPE = PacketType.TRUST_USER
    user: ID = ID(0)
    trust: bool = False


@dataclass
class TrustInfo(Payload):
    TYPE = PacketType.TRUST_INFO
    trusted_users: list[ID] = field(default_factory=list)
    trusted_public_keys: list[bytes] = field(default_factory=list)
    removed_trusted_users: list[ID] = field(default_factory=list)


@dataclass
class GetBannedMembers(Payload):
    TYPE = PacketType.GET_BANNED_MEMBERS
    network: ID = ID(0)


@dataclass
class SetLastReadMessages(Payload):
    TYPE = PacketType.SET_LAST_READ_MESSAGES
    source: list[ID] = field(default_factory=list)
    last_read: list[int] = field(default_factory=list)


@dataclass
class NotificationsInfo(Payload):
    TYPE = PacketType.NOTIFICATIONS_INFO
    source: list[ID] = field(default_factory=list)
    last_read: list[int] = field(default_factory=list)
    pings: list[Optional[int]] = field(default_factory=list)


@dataclass
class BlockUser(Payload):
    TYPE = PacketType.BLOCK_USER
    user: ID = ID(0)
    block: bool = False


@dataclass
class BlockInfo(Payload):
    TYPE = PacketType.BLOCK_INFO
    blocked_users: list[ID] = field(default_factory=list)
    removed_blocked_users: list[ID] = field(default_factory=list)
    blocking_users: list[ID] = field(default_factory=list)
    removed_blocking_users: list[ID] = field(default_factory=list)


@dataclass
class GetUsers(Payload):
    TYPE = PacketType.GET_USERS
    users: list[ID] = field(default_factory=list)


@dataclass
class UsersInfo(Payload):
    TYPE = PacketType.USERS_INFO
    users: list[User] = field(default_factory=list)


@dataclass
class TosInfo(Payload):
    TYPE = PacketType.TOS_INFO
    tos: str = ""
    privacy_policy: str = ""
    hash: str = ""


@dataclass
class AcceptTos(Payload):
    TYPE = PacketType.ACCEPT_TOS
    i_agree_to_the_terms_of_service_and_privacy_policy: bool = False


@dataclass
class GetNonce(Payload):
    TYPE = PacketType.GET_NONCE


@dataclass
class NonceInfo(Payload):
    TYPE = PacketType.NONCE_INFO
    nonce: bytes = b""


@dataclass
class Authenticate(Payload):
    TYPE = PacketType.AUTHENTICATE
    pub_key: bytes = b""
    signature: bytes = b""


_PAYLOAD_CLASSES: dict[PacketType, type[Payload]] = {
    cls.TYPE: cls
    for cls in (
        Error,
        TosInfo,
        AcceptTos,
        GetNonce,
        NonceInfo,
        Authenticate,
        UsersInfo,
        GetUsers,
        SetUserData,
        GetUserData,
        CreateNetwork,
        UpdateNetwork,
        TransferNetwork,
        DeleteNetwork,
        NetworksInfo,
        CreateFrequency,
        UpdateFrequency,
        DeleteFrequency,
        SwapFrequencies,
        FrequenciesInfo,
        SendMessage,
        EditMessage,
        DeleteMessage,
        RequestMessages,
        MessagesInfo,
        GetBannedMembers,
        SetMember,
        MembersInfo,
        TrustUser,
        TrustInfo,
        SetLastReadMessages,
        NotificationsInfo,
        BlockUser,
        BlockInfo,
    )
}

if len(_PAYLOAD_CLASSES) != PacketType.MAX:
    raise RuntimeError("payload classes mismatch the number of packet types")


def payload_class(packet_type: int) -> type[Payload]:
    """Return the payload class carried by ``packet_type``; ValueError if unsupported."""
    try:
        kind = PacketType(packet_type)
    except ValueError:
        raise ValueError(f"unsupported packet type: {packet_type}") from None
    if not kind.is_supported():
        raise ValueError(f"unsupported packet type: {kind}")
    return _PAYLOAD_CLASSES[kind]


def encode_payload(payload: Payload, encoding: Encoding = Encoding.MSGPACK) -> bytes:
    """Serialize ``payload`` in a supported encoding."""
    encoding = Encoding(encoding)
    if not encoding.is_supported():
        raise ValueError(f"unsupported encoding: {encoding}")
    return payload.to_wire(encoding)


def decode_payload(packet_type: int, encoding: Encoding, data: bytes) -> Payload:
    """Deserialize the payload of a packet of ``packet_type``."""
    cls = payload_class(packet_type)
    encoding = Encoding(encoding)
    if not encoding.is_supported():
        raise ValueError(f"unsupported encoding: {encoding}")
    return cls.from_wire(data, encoding)
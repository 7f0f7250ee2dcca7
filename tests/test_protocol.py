import pytest

from ekoserver.protocol import Encoding, PacketType


@pytest.mark.parametrize(
    "number, name",
    [
        (0, "EncodingJson"),
        (1, "EncodingMsgPack"),
        (2, "EncodingUnused1"),
        (3, "EncodingUnused2"),
    ],
)
def test_encoding_names(number, name):
    assert str(Encoding(number)) == name


@pytest.mark.parametrize("number, supported", [(0, True), (1, True), (2, False), (3, False)])
def test_encoding_support(number, supported):
    assert Encoding(number).is_supported() is supported


@pytest.mark.parametrize(
    "number, name",
    [
        (0, "PacketError"),
        (1, "PacketTosInfo"),
        (5, "PacketAuthenticate"),
        (6, "PacketUsersInfo"),
        (7, "PacketGetUsers"),
        (30, "PacketSetLastReadMessages"),
        (31, "PacketNotificationsInfo"),
        (33, "PacketBlockInfo"),
    ],
)
def test_packet_type_names(number, name):
    assert str(PacketType(number)) == name


def test_max_packet_type_is_unsupported():
    packet_max = PacketType(34)
    assert packet_max.is_supported() is False
    assert str(packet_max) == "UnsupportedPacket(34)"


def test_every_type_below_max_supported():
    assert all(PacketType(n).is_supported() for n in range(34))


def test_packet_type_names_unique():
    names = {str(PacketType(n)) for n in range(34)}
    assert len(names) == 34
    assert all(name.startswith("Packet") for name in names)
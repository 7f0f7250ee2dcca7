"""Database row models and their wire encoding in JSON and MessagePack."""

import base64
import binascii
import dataclasses
import json
import re
import types
import typing
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Optional, Union

import msgpack
from msgpack.exceptions import UnpackException

from ekoserver.protocol import Encoding
from ekoserver.snowflake import ID


class NotFound(LookupError):
    """Raised when a query that expects a row finds none."""


@dataclass
class BlockedUser:
    blocking_user_id: ID = ID(0)
    blocked_user_id: ID = ID(0)


@dataclass
class Frequency:
    id: ID = ID(0)
    network_id: ID = ID(0)
    name: str = ""
    hex_color: str = ""
    perms: int = 0
    position: int = 0


@dataclass
class LastReadMessage:
    user_id: ID = ID(0)
    source_id: ID = ID(0)
    last_read: int = 0


@dataclass
class Member:
    user_id: ID = ID(0)
    network_id: ID = ID(0)
    joined_at: str = ""
    is_member: bool = False
    is_admin: bool = False
    is_muted: bool = False
    is_banned: bool = False
    ban_reason: Optional[str] = None


@dataclass
class Message:
    id: ID = ID(0)
    sender_id: ID = ID(0)
    content: str = ""
    edited: bool = False
    frequency_id: Optional[ID] = None
    receiver_id: Optional[ID] = None
    ping: Optional[ID] = None


@dataclass
class Network:
    id: ID = ID(0)
    owner_id: ID = ID(0)
    name: str = ""
    icon: str = ""
    bg_hex_color: str = ""
    fg_hex_color: str = ""
    is_public: bool = False


@dataclass
class TrustedUser:
    trusting_user_id: ID = ID(0)
    trusted_user_id: ID = ID(0)
    trusted_public_key: bytes = b""


@dataclass
class User:
    id: ID = ID(0)
    name: str = ""
    public_key: bytes = b""
    description: str = ""
    is_public_dm: bool = False
    is_deleted: bool = False


@dataclass
class UserData:
    user_id: ID = ID(0)
    data: str = ""


_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1
_ID_PATTERN = re.compile(r"[+-]?[0-9]+")
_ACRONYMS = {"id": "ID", "dm": "DM"}
_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def _wire_name(name: str) -> str:
    return "".join(_ACRONYMS.get(part, part.capitalize()) for part in name.split("_"))


@lru_cache(maxsize=None)
def _fields(cls: type) -> "tuple[tuple[str, str, Any], ...]":
    """Field name, wire name and type for each init field; types must be real objects."""
    return tuple(
        (f.name, _wire_name(f.name), f.type) for f in dataclasses.fields(cls) if f.init
    )


def _unwrap_optional(hint: Any) -> "tuple[bool, Any]":
    if typing.get_origin(hint) in (Union, types.UnionType):
        args = [arg for arg in typing.get_args(hint) if arg is not type(None)]
        if len(args) == 1:
            return True, args[0]
    return False, hint


def _encode(value: Any, hint: Any, as_json: bool) -> Any:
    if value is None:
        return None
    _, hint = _unwrap_optional(hint)
    if hint is ID:
        return str(int(value)) if as_json else int(value)
    if typing.get_origin(hint) is list:
        (item,) = typing.get_args(hint)
        return [_encode(v, item, as_json) for v in value]
    if dataclasses.is_dataclass(hint):
        return _encode_dataclass(value, as_json)
    if hint is bytes:
        raw = bytes(value)
        return base64.b64encode(raw).decode("ascii") if as_json else raw
    return value


def _encode_dataclass(obj: Any, as_json: bool) -> "dict[str, Any]":
    return {
        wire: _encode(getattr(obj, name), hint, as_json)
        for name, wire, hint in _fields(type(obj))
    }


def _decode_id(raw: Any, as_json: bool) -> ID:
    if as_json:
        if not isinstance(raw, str) or not _ID_PATTERN.fullmatch(raw):
            raise ValueError(f"invalid snowflake ID {raw!r}")
        number = int(raw)
    else:
        if isinstance(raw, bool) or not isinstance(raw, int):
            raise ValueError(f"invalid snowflake ID {raw!r}")
        number = raw
    if not _INT64_MIN <= number <= _INT64_MAX:
        raise ValueError(f"snowflake ID out of range: {raw!r}")
    return ID(number)


def _zero(hint: Any) -> Any:
    if hint is bytes:
        return b""
    if hint is str:
        return ""
    if hint is bool:
        return False
    if hint is int or hint is ID:
        return 0
    if typing.get_origin(hint) is list:
        return []
    if dataclasses.is_dataclass(hint):
        return hint()
    return None


def _decode(raw: Any, hint: Any, as_json: bool) -> Any:
    optional, hint = _unwrap_optional(hint)
    if raw is None:
        return None if optional else _zero(hint)
    if hint is ID:
        return _decode_id(raw, as_json)
    if typing.get_origin(hint) is list:
        if not isinstance(raw, list):
            raise ValueError(f"expected a list, got {type(raw).__name__}")
        (item,) = typing.get_args(hint)
        return [_decode(v, item, as_json) for v in raw]
    if dataclasses.is_dataclass(hint):
        return _decode_dataclass(hint, raw, as_json)
    if hint is bytes:
        if as_json:
            if not isinstance(raw, str):
                raise ValueError("expected base64 text for bytes")
            try:
                return base64.b64decode(raw, validate=True)
            except binascii.Error as exc:
                raise ValueError(f"invalid base64: {exc}") from exc
        if isinstance(raw, (bytes, bytearray)):
            return bytes(raw)
        raise ValueError("expected binary data for bytes")
    if hint is bool:
        if not isinstance(raw, bool):
            raise ValueError(f"expected a bool, got {raw!r}")
        return raw
    if hint is int:
        if isinstance(raw, bool) or not isinstance(raw, int):
            raise ValueError(f"expected an integer, got {raw!r}")
        if not _INT64_MIN <= raw <= _INT64_MAX:
            raise ValueError(f"integer out of range: {raw!r}")
        return raw
    if hint is str:
        if not isinstance(raw, str):
            raise ValueError(f"expected a string, got {raw!r}")
        return raw
    return raw


def _decode_dataclass(cls: type, raw: Any, as_json: bool) -> Any:
    if not isinstance(raw, dict):
        raise ValueError(f"expected an object for {cls.__name__}")
    lookup = {key.lower(): val for key, val in raw.items() if isinstance(key, str)}
    kwargs = {
        name: _decode(lookup[wire.lower()], hint, as_json)
        for name, wire, hint in _fields(cls)
        if wire.lower() in lookup
    }
    return cls(**kwargs)


def model_to_wire(obj: Any, encoding: Encoding) -> bytes:
    """Serialize a dataclass instance in the given wire encoding."""
    encoding = Encoding(encoding)
    if encoding is Encoding.JSON:
        text = json.dumps(
            _encode_dataclass(obj, True), separators=(",", ":"), ensure_ascii=False
        )
        for char, escaped in _HTML_ESCAPES.items():
            text = text.replace(char, escaped)
        return text.encode("utf-8")
    if encoding is Encoding.MSGPACK:
        return msgpack.packb(_encode_dataclass(obj, False), use_bin_type=True)
    raise ValueError(f"unsupported encoding: {encoding}")


def model_from_wire(model_cls: type, data: bytes, encoding: Encoding) -> Any:
    """Deserialize an instance of ``model_cls``; raises ValueError on malformed data."""
    encoding = Encoding(encoding)
    if encoding is Encoding.JSON:
        try:
            raw = json.loads(bytes(data))
        except UnicodeDecodeError as exc:
            raise ValueError(f"invalid JSON text: {exc}") from exc
        return _decode_dataclass(model_cls, raw, True)
    if encoding is Encoding.MSGPACK:
        try:
            raw = msgpack.unpackb(bytes(data), raw=False)
        except (UnpackException, ValueError, TypeError) as exc:
            raise ValueError(f"invalid msgpack data: {exc}") from exc
        return _decode_dataclass(model_cls, raw, False)
    raise ValueError(f"unsupported encoding: {encoding}")
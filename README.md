# ekoserver

Building blocks for a chat server whose clients talk to it over a compact
binary protocol.

## What is in the package

- **`ekoserver.snowflake`**: 64-bit snowflake IDs. `Node(n)` generates IDs
  that are unique for node number `n` (0 to `NODE_MAX`). `id_time`, `id_node`
  and `id_step` take an ID apart.
- **`ekoserver.protocol`**: header constants and the `Encoding` (JSON or
  MessagePack) and `PacketType` enumerations.
- **`ekoserver.payloads`**: one dataclass for every request and response
  (`SendMessage`, `MessagesInfo`, `SetMember`, `Authenticate`, …), the limits
  and permission constants, and `encode_payload`, `decode_payload` and
  `payload_class`. IDs travel as strings in JSON and as integers in
  MessagePack; bytes travel as base64 in JSON.
- **`ekoserver.packet`**: `Packet` puts an encoded payload behind a 4-byte
  header (version, encoding, type, length). `PacketFramer.push` takes bytes
  from a stream and returns the whole packets they complete. A malformed
  header raises `UnsupportedVersionError`, `UnsupportedEncodingError` or
  `UnsupportedTypeError`, all subclasses of `PacketError`; packets completed
  earlier in the same push are on the exception's `packets`.
- **`ekoserver.session`**: per-connection `Session` state: terms of service
  acceptance, authentication, a challenge nonce renewed after a minute, and
  a bounded write queue (`write`, `read`, `close_write_queue`). The server
  side is described by the `SessionManager` protocol.
- **`ekoserver.ctxkeys`**: context values (`ContextKey.USER_ID`,
  `ContextKey.IP_ADDR`) bound with `with_value`, and `ContextFilter`, which
  copies them onto log records (`wrap_log_handler` attaches it).
- **`ekoserver.database`**: opens a SQLite database, sets its pragmas and
  creates the schema (`connect_to_database`, `apply_schema`, `db`).
- **`ekoserver.data`**: the row models (`ekoserver.data.models`) and the
  queries for frequencies, networks, members, messages, users, read markers
  (`notifications`) and trust and block lists (`social`). Lookups that find
  no row raise `NotFound`.
- **`ekoserver.helpers`**: `validate_hex_color`, `is_network_admin`,
  `network_propagate`, `network_propagate_with_filter` and `user_propagate`
  (background delivery of a payload to other sessions),
  `split_members_and_users`, and `get_notifications` (read markers with
  unread ping counts).

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Example

```python
from ekoserver.snowflake import Node, id_node
from ekoserver.payloads import Error
from ekoserver.packet import Packet, PacketFramer
from ekoserver.protocol import Encoding

node = Node(1)
message_id = node.generate()
assert id_node(message_id) == 1

pkt = Packet.from_payload(Error(error="hello"), Encoding.MSGPACK)
framer = PacketFramer()
packets = framer.push(bytes(pkt))
assert packets[0].decoded_payload() == Error(error="hello")
```

Opening a database:

```python
from ekoserver.database import connect_to_database
from ekoserver.data.users import create_user, get_user_by_id

conn = connect_to_database("server.db")
create_user(conn, 42, "User042", bytes(32))
print(get_user_by_id(conn, 42).name)
```

## What the package does not do

There is no running server here: no listener, no TLS, no command to start,
and no handlers that turn a request payload into a response (for example,
checking a signature in `Authenticate` or applying the rules for
`SetMember`). The package gives the pieces such a server is built from:
framing, payloads, session state, storage and propagation helpers.
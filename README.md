# sftpwire

`sftpwire` reads and writes the binary packets of the SSH File Transfer
Protocol (secsh-filexfer, version 3). It handles only the wire format. It
does not open sockets and does not speak SSH.

## Installing

```
pip install .
```

To run the test suite:

```
pip install .[test]
pytest
```

## What is in the package

- `sftpwire.codes` has the `Status` codes (`SSH_FX_*`) and the
  `PacketType` values (`SSH_FXP_*`). `status_name()` and
  `packet_type_name()` give names for unknown values too, such as
  `SSH_FX_UNKNOWN(99)`. `StatusError` is an exception that compares equal
  to a `Status` or another `StatusError` with the same code. It also has
  `FileMode`, which holds POSIX mode bits and has `is_dir()`,
  `is_regular()`, `perm()`, `type()` and an `ls -l` style `str()`, along
  with the `MODE_*` constants. The module also defines
  `DEFAULT_MAX_PACKET_LENGTH` (34000), `DEFAULT_MAX_DATA_LENGTH` (32768)
  and `compose_packet`.
- `sftpwire.encoding` has the big-endian `Buffer` that every packet uses,
  with `append_*` and `consume_*` methods. It also has `Attributes` with the
  `ATTR_*` flag constants, `ExtensionPair`, `InitPacket` and
  `VersionPacket`. A decode that runs past the end of the data raises
  `ShortPacketError`.
- `sftpwire.packets` has the request packets: `OpenPacket` (with the
  `OpenFlag` pflags), `ClosePacket`, `ReadPacket`, `WritePacket`,
  `FStatPacket`, `FSetstatPacket`, `ReadDirPacket`, `OpenDirPacket`,
  `LStatPacket`, `SetstatPacket`, `RemovePacket`, `MkdirPacket`,
  `RmdirPacket`, `RealPathPacket`, `StatPacket`, `RenamePacket`,
  `ReadLinkPacket` and `SymlinkPacket`. `SymlinkPacket` writes the target
  path before the link path, in the order that deployed servers use.
- `sftpwire.framing` has the following:
  - `RawPacket`, which keeps the body of any packet as a `Buffer`.
  - `RequestPacket`, which decodes a request body according to its type.
  - `ExtendedPacket` and `ExtendedReplyPacket`.
  - `new_packet_from_type` and `register_extended_packet_type`.
  - `read_packet`, which reads one length-prefixed packet from a binary
    stream. At the end of the stream it raises `EOFError`. It raises
    `ShortPacketError` for a length below 5. It raises `LongPacketError`
    for a length above the maximum, and in that case it reads no body.

## Example

```python
import io

from sftpwire.codes import compose_packet
from sftpwire.framing import RequestPacket
from sftpwire.packets import StatPacket

header, payload = StatPacket(path="foo").marshal_packet(42)
wire = compose_packet(header, payload)

request = RequestPacket()
request.read_from(io.BytesIO(wire), 34000)
assert request.request_id == 42
assert request.request.path == "foo"
```

`marshal_packet(reqid)` returns a header and a payload. You can write them
one after the other to the stream, or join them with `compose_packet`.

## Extended requests

Decoding an `SSH_FXP_EXTENDED` request puts its request-specific data into
a plain `Buffer`, unless a type has been registered for that extension
name. A data type needs only `marshal_binary()` and `unmarshal_binary()`:

```python
import io
from dataclasses import dataclass

from sftpwire.codes import compose_packet
from sftpwire.encoding import Buffer
from sftpwire.framing import ExtendedPacket, RequestPacket, register_extended_packet_type


@dataclass
class SyncRequest:
    handle: str = ""

    def marshal_binary(self) -> bytes:
        buf = Buffer()
        buf.append_string(self.handle)
        return buf.bytes()

    def unmarshal_binary(self, data: bytes) -> None:
        self.handle = Buffer(data).consume_string()


register_extended_packet_type("sync@example.com", SyncRequest)

packet = ExtendedPacket("sync@example.com", SyncRequest("h1"))
wire = compose_packet(*packet.marshal_packet(7))

request = RequestPacket()
request.read_from(io.BytesIO(wire))
assert request.request.data == SyncRequest("h1")
```

If the same extension name is registered twice, `ValueError` is raised.

## What it does not do

- It has no client, server or transport. You have to supply the byte
  stream yourself.
- It has no classes for response bodies such as status, handle, data, name
  or attrs replies. A `RawPacket` gives you the packet type, the request id
  and the undecoded body as a `Buffer`, and you read the fields from it
  yourself.
- It has no built-in types for vendor extensions. You register them
  yourself, as shown above.
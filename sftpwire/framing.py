"""Packet framing: raw and request packets, extended packets and stream reading."""

from __future__ import annotations

import struct
import threading
from dataclasses import dataclass, field
from typing import BinaryIO, Callable, ClassVar, Optional, Protocol

from .codes import DEFAULT_MAX_PACKET_LENGTH, PacketType, compose_packet, packet_type_name
from .encoding import Buffer, LongPacketError, ShortPacketError
from .packets import (
    ClosePacket,
    FSetstatPacket,
    FStatPacket,
    LStatPacket,
    MkdirPacket,
    OpenDirPacket,
    OpenPacket,
    Packet,
    ReadDirPacket,
    ReadLinkPacket,
    ReadPacket,
    RealPathPacket,
    RemovePacket,
    RenamePacket,
    RmdirPacket,
    SetstatPacket,
    StatPacket,
    SymlinkPacket,
    WritePacket,
)


class ExtendedData(Protocol):
    """Request- or reply-specific data of an extended packet."""

    def marshal_binary(self) -> bytes: ...

    def unmarshal_binary(self, data: bytes) -> None: ...


ExtendedDataConstructor = Callable[[], ExtendedData]

_registry_lock = threading.Lock()
_extended_constructors: dict[str, ExtendedDataConstructor] = {}


def register_extended_packet_type(
    extension: str, constructor: ExtendedDataConstructor
) -> None:
    """Register the constructor used to decode data of the given extension.

    Raises ValueError if the extension is already registered.
    """
    with _registry_lock:
        if extension in _extended_constructors:
            raise ValueError(
                f"multiple registration of extended packet type {extension}"
            )
        _extended_constructors[extension] = constructor


def _new_extended_data(extension: str) -> ExtendedData:
    with _registry_lock:
        constructor = _extended_constructors.get(extension)
    if constructor is not None:
        return constructor()
    return Buffer()


@dataclass
class ExtendedPacket(Packet):
    """The SSH_FXP_EXTENDED packet."""

    packet_type: ClassVar[PacketType] = PacketType.EXTENDED

    extended_request: str = ""
    data: Optional[ExtendedData] = None

    def _marshal_body(self, buf: Buffer) -> bytes:
        buf.append_string(self.extended_request)
        if self.data is None:
            return b""
        return self.data.marshal_binary()

    def marshal_packet(self, reqid: int) -> tuple[bytes, bytes]:
        """Encode as header and payload; the data is returned as the payload."""
        buf = Buffer()
        buf.start_packet(self.packet_type, reqid)
        payload = self._marshal_body(buf)
        return buf.packet(payload)

    def unmarshal_packet_body(self, buf: Buffer) -> None:
        """Decode the body, choosing a registered data type if data is unset.

        Unregistered extensions decode their data into a Buffer.
        """
        self.extended_request = buf.consume_string()
        if self.data is None:
            self.data = _new_extended_data(self.extended_request)
        self.data.unmarshal_binary(buf.bytes())


@dataclass
class ExtendedReplyPacket(Packet):
    """The SSH_FXP_EXTENDED_REPLY packet."""

    packet_type: ClassVar[PacketType] = PacketType.EXTENDED_REPLY

    data: Optional[ExtendedData] = None

    def _marshal_body(self, buf: Buffer) -> bytes:
        if self.data is None:
            return b""
        return self.data.marshal_binary()

    def marshal_packet(self, reqid: int) -> tuple[bytes, bytes]:
        """Encode as header and payload; the data is returned as the payload."""
        buf = Buffer()
        buf.start_packet(self.packet_type, reqid)
        payload = self._marshal_body(buf)
        return buf.packet(payload)

    def unmarshal_packet_body(self, buf: Buffer) -> None:
        """Decode the reply data; unset data is decoded into a Buffer."""
        if self.data is None:
            self.data = Buffer()
        self.data.unmarshal_binary(buf.bytes())


_REQUEST_TYPES: dict[PacketType, type[Packet]] = {
    PacketType.OPEN: OpenPacket,
    PacketType.CLOSE: ClosePacket,
    PacketType.READ: ReadPacket,
    PacketType.WRITE: WritePacket,
    PacketType.LSTAT: LStatPacket,
    PacketType.FSTAT: FStatPacket,
    PacketType.SETSTAT: SetstatPacket,
    PacketType.FSETSTAT: FSetstatPacket,
    PacketType.OPENDIR: OpenDirPacket,
    PacketType.READDIR: ReadDirPacket,
    PacketType.REMOVE: RemovePacket,
    PacketType.MKDIR: MkdirPacket,
    PacketType.RMDIR: RmdirPacket,
    PacketType.REALPATH: RealPathPacket,
    PacketType.STAT: StatPacket,
    PacketType.RENAME: RenamePacket,
    PacketType.READLINK: ReadLinkPacket,
    PacketType.SYMLINK: SymlinkPacket,
    PacketType.EXTENDED: ExtendedPacket,
}


def new_packet_from_type(packet_type: int) -> Packet:
    """Return an empty request packet of the given type.

    Raises ValueError for types that are not request packets.
    """
    try:
        cls = _REQUEST_TYPES[PacketType(packet_type)]
    except (ValueError, KeyError):
        raise ValueError(
            f"unexpected request packet type: {packet_type_name(packet_type)}"
        ) from None
    return cls()


def _read_exact(stream: BinaryIO, count: int) -> bytes:
    data = bytearray()
    while len(data) < count:
        chunk = stream.read(count - len(data))
        if not chunk:
            break
        data += chunk
    return bytes(data)


def read_packet(
    stream: BinaryIO, max_packet_length: int = DEFAULT_MAX_PACKET_LENGTH
) -> bytes:
    """Read one uint32 length-prefixed packet and return its body.

    Raises EOFError when the stream ends, ShortPacketError when the length
    is below 5, and LongPacketError when it exceeds max_packet_length
    (in which case no packet data is read).
    """
    header = _read_exact(stream, 4)
    if not header:
        raise EOFError("end of stream")
    if len(header) < 4:
        raise EOFError("unexpected end of stream")

    (length,) = struct.unpack(">I", header)
    if length < 5:
        raise ShortPacketError()
    if length > max_packet_length:
        raise LongPacketError()

    body = _read_exact(stream, length)
    if len(body) < length:
        raise EOFError("unexpected end of stream")
    return body


def _as_packet_type(value: int) -> int:
    try:
        return PacketType(value)
    except ValueError:
        return value


@dataclass
class RawPacket:
    """A packet of any type whose body is kept undecoded."""

    packet_type: int = 0
    request_id: int = 0
    data: Buffer = field(default_factory=Buffer)

    def marshal_packet(self, reqid: int) -> tuple[bytes, bytes]:
        """Encode with the given request id, overriding request_id."""
        buf = Buffer()
        buf.start_packet(self.packet_type, reqid)
        return buf.packet(self.data.bytes())

    def marshal_binary(self) -> bytes:
        return compose_packet(*self.marshal_packet(self.request_id))

    def unmarshal_from(self, buf: Buffer) -> None:
        self.packet_type = _as_packet_type(buf.consume_uint8())
        self.request_id = buf.consume_uint32()
        self.data = Buffer(buf.bytes())

    def unmarshal_binary(self, data: bytes) -> None:
        """Decode a packet whose length prefix has already been stripped."""
        self.unmarshal_from(Buffer(data))

    def read_from(
        self, stream: BinaryIO, max_packet_length: int = DEFAULT_MAX_PACKET_LENGTH
    ) -> None:
        self.unmarshal_from(Buffer(read_packet(stream, max_packet_length)))


@dataclass
class RequestPacket:
    """A request packet whose body is decoded according to its type."""

    request_id: int = 0
    request: Optional[Packet] = None

    @property
    def packet_type(self) -> PacketType:
        if self.request is None:
            raise ValueError("empty request packet")
        return self.request.packet_type

    def marshal_packet(self, reqid: int) -> tuple[bytes, bytes]:
        """Encode with the given request id, overriding request_id."""
        if self.request is None:
            raise ValueError("empty request packet")
        return self.request.marshal_packet(reqid)

    def marshal_binary(self) -> bytes:
        return compose_packet(*self.marshal_packet(self.request_id))

    def unmarshal_from(self, buf: Buffer) -> None:
        request = new_packet_from_type(buf.consume_uint8())
        self.request = request
        self.request_id = buf.consume_uint32()
        request.unmarshal_packet_body(buf)

    def unmarshal_binary(self, data: bytes) -> None:
        """Decode a packet whose length prefix has already been stripped."""
        self.unmarshal_from(Buffer(data))

    def read_from(
        self, stream: BinaryIO, max_packet_length: int = DEFAULT_MAX_PACKET_LENGTH
    ) -> None:
        self.unmarshal_from(Buffer(read_packet(stream, max_packet_length)))
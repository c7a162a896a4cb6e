"""Byte buffer, attributes and handshake packets of the SFTP wire format."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field

from .codes import FileMode, PacketType

ATTR_SIZE = 0x00000001
ATTR_UID_GID = 0x00000002
ATTR_PERMISSIONS = 0x00000004
ATTR_ACMOD_TIME = 0x00000008
ATTR_EXTENDED = 0x80000000


class ShortPacketError(ValueError):
    """Raised when a packet is too short to hold what is being decoded."""

    def __init__(self, message: str = "packet too short") -> None:
        super().__init__(message)


class LongPacketError(ValueError):
    """Raised when a packet is longer than the allowed maximum."""

    def __init__(self, message: str = "packet too long") -> None:
        super().__init__(message)


def _encode_text(value: str | bytes) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8", "surrogateescape")
    return bytes(value)


class Buffer:
    """A growable byte buffer with a read position for decoding."""

    __slots__ = ("_data", "_offset")

    def __init__(self, data: bytes | bytearray = b"") -> None:
        self._data = bytearray(data)
        self._offset = 0

    def __len__(self) -> int:
        return len(self._data) - self._offset

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Buffer):
            return self.bytes() == other.bytes()
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Buffer({self.bytes()!r})"

    def bytes(self) -> bytes:
        """Return the bytes not yet consumed."""
        return bytes(self._data[self._offset:])

    def append_uint8(self, value: int) -> None:
        self._data += struct.pack(">B", value)

    def append_uint32(self, value: int) -> None:
        self._data += struct.pack(">I", value)

    def append_uint64(self, value: int) -> None:
        self._data += struct.pack(">Q", value)

    def append_byte_string(self, value: bytes) -> None:
        """Append a uint32 length followed by the raw bytes."""
        data = bytes(value)
        self.append_uint32(len(data))
        self._data += data

    def append_string(self, value: str | bytes) -> None:
        """Append a uint32 length followed by the encoded string."""
        self.append_byte_string(_encode_text(value))

    def _take(self, count: int) -> bytes:
        if len(self) < count:
            raise ShortPacketError()
        start = self._offset
        self._offset += count
        return bytes(self._data[start:self._offset])

    def consume_uint8(self) -> int:
        return self._take(1)[0]

    def consume_uint32(self) -> int:
        return struct.unpack(">I", self._take(4))[0]

    def consume_uint64(self) -> int:
        return struct.unpack(">Q", self._take(8))[0]

    def consume_byte_string(self) -> bytes:
        length = self.consume_uint32()
        return self._take(length)

    def consume_string(self) -> str:
        return self.consume_byte_string().decode("utf-8", "surrogateescape")

    def start_packet(self, packet_type: int, reqid: int) -> None:
        """Reset the buffer to a packet header with an unset length."""
        self._data = bytearray(4)
        self._offset = 0
        self.append_uint8(int(packet_type))
        self.append_uint32(reqid)

    def packet(self, payload: bytes = b"") -> tuple[bytes, bytes]:
        """Fill in the length prefix and return the header and payload."""
        payload = bytes(payload)
        length = len(self._data) - 4 + len(payload)
        struct.pack_into(">I", self._data, 0, length)
        return bytes(self._data), payload

    def marshal_binary(self) -> bytes:
        return self.bytes()

    def unmarshal_binary(self, data: bytes) -> None:
        self._data = bytearray(data)
        self._offset = 0


@dataclass
class ExtensionPair:
    """An extension name and its data, as exchanged in the handshake."""

    name: str = ""
    data: str = ""

    def encoded_len(self) -> int:
        return 4 + len(_encode_text(self.name)) + 4 + len(_encode_text(self.data))

    def marshal_into(self, buf: Buffer) -> None:
        buf.append_string(self.name)
        buf.append_string(self.data)

    def marshal_binary(self) -> bytes:
        buf = Buffer()
        self.marshal_into(buf)
        return buf.bytes()

    def unmarshal_from(self, buf: Buffer) -> None:
        self.name = buf.consume_string()
        self.data = buf.consume_string()

    def unmarshal_binary(self, data: bytes) -> None:
        self.unmarshal_from(Buffer(data))


@dataclass
class Attributes:
    """File attributes (ATTRS); only fields named by flags are encoded."""

    flags: int = 0
    size: int = 0
    uid: int = 0
    gid: int = 0
    permissions: int = 0
    atime: int = 0
    mtime: int = 0
    extended_attributes: list[ExtensionPair] = field(default_factory=list)

    def encoded_len(self) -> int:
        length = 4
        if self.flags & ATTR_SIZE:
            length += 8
        if self.flags & ATTR_UID_GID:
            length += 8
        if self.flags & ATTR_PERMISSIONS:
            length += 4
        if self.flags & ATTR_ACMOD_TIME:
            length += 8
        if self.flags & ATTR_EXTENDED:
            length += 4 + sum(ext.encoded_len() for ext in self.extended_attributes)
        return length

    def marshal_into(self, buf: Buffer) -> None:
        buf.append_uint32(self.flags)
        if self.flags & ATTR_SIZE:
            buf.append_uint64(self.size)
        if self.flags & ATTR_UID_GID:
            buf.append_uint32(self.uid)
            buf.append_uint32(self.gid)
        if self.flags & ATTR_PERMISSIONS:
            buf.append_uint32(int(self.permissions))
        if self.flags & ATTR_ACMOD_TIME:
            buf.append_uint32(self.atime)
            buf.append_uint32(self.mtime)
        if self.flags & ATTR_EXTENDED:
            buf.append_uint32(len(self.extended_attributes))
            for ext in self.extended_attributes:
                ext.marshal_into(buf)

    def marshal_binary(self) -> bytes:
        buf = Buffer()
        self.marshal_into(buf)
        return buf.bytes()

    def unmarshal_from(self, buf: Buffer) -> None:
        self.flags = buf.consume_uint32()
        if self.flags & ATTR_SIZE:
            self.size = buf.consume_uint64()
        if self.flags & ATTR_UID_GID:
            self.uid = buf.consume_uint32()
            self.gid = buf.consume_uint32()
        if self.flags & ATTR_PERMISSIONS:
            self.permissions = FileMode(buf.consume_uint32())
        if self.flags & ATTR_ACMOD_TIME:
            self.atime = buf.consume_uint32()
            self.mtime = buf.consume_uint32()
        if self.flags & ATTR_EXTENDED:
            count = buf.consume_uint32()
            extensions = []
            for _ in range(count):
                ext = ExtensionPair()
                ext.unmarshal_from(buf)
                extensions.append(ext)
            self.extended_attributes = extensions

    def unmarshal_binary(self, data: bytes) -> None:
        self.unmarshal_from(Buffer(data))


def _marshal_handshake(
    packet_type: PacketType, version: int, extensions: list[ExtensionPair]
) -> bytes:
    body = Buffer()
    body.append_uint8(packet_type)
    body.append_uint32(version)
    for ext in extensions:
        ext.marshal_into(body)
    data = body.bytes()
    return struct.pack(">I", len(data)) + data


def _unmarshal_handshake(data: bytes) -> tuple[int, list[ExtensionPair]]:
    buf = Buffer(data)
    version = buf.consume_uint32()
    extensions = []
    while len(buf) > 0:
        ext = ExtensionPair()
        ext.unmarshal_from(buf)
        extensions.append(ext)
    return version, extensions


@dataclass
class InitPacket:
    """The SSH_FXP_INIT packet."""

    version: int = 0
    extensions: list[ExtensionPair] = field(default_factory=list)

    def marshal_binary(self) -> bytes:
        return _marshal_handshake(PacketType.INIT, self.version, self.extensions)

    def unmarshal_binary(self, data: bytes) -> None:
        """Decode the body; the length and type bytes must already be stripped."""
        self.version, self.extensions = _unmarshal_handshake(data)


@dataclass
class VersionPacket:
    """The SSH_FXP_VERSION packet."""

    version: int = 0
    extensions: list[ExtensionPair] = field(default_factory=list)

    def marshal_binary(self) -> bytes:
        return _marshal_handshake(PacketType.VERSION, self.version, self.extensions)

    def unmarshal_binary(self, data: bytes) -> None:
        """Decode the body; the length and type bytes must already be stripped."""
        self.version, self.extensions = _unmarshal_handshake(data)
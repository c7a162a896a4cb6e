"""Request packets that operate on handles and paths."""

from __future__ import annotations

import abc
import enum
from dataclasses import dataclass, field
from typing import ClassVar

from .codes import PacketType
from .encoding import Attributes, Buffer


class OpenFlag(enum.IntFlag):
    """SSH_FXF_* flags for the pflags field of SSH_FXP_OPEN."""

    READ = 0x01
    WRITE = 0x02
    APPEND = 0x04
    CREATE = 0x08
    TRUNCATE = 0x10
    EXCLUSIVE = 0x20


class Packet(abc.ABC):
    """A generic SFTP request packet with a type, request id and body."""

    packet_type: ClassVar[PacketType]

    def marshal_packet(self, reqid: int) -> tuple[bytes, bytes]:
        """Encode the packet as a header and a payload to follow it."""
        buf = Buffer()
        buf.start_packet(self.packet_type, reqid)
        payload = self._marshal_body(buf)
        return buf.packet(payload)

    @abc.abstractmethod
    def _marshal_body(self, buf: Buffer) -> bytes:
        """Append the body fields to buf and return any trailing payload."""

    @abc.abstractmethod
    def unmarshal_packet_body(self, buf: Buffer) -> None:
        """Decode the body; length, type and request id are already consumed."""


def _read_attrs(buf: Buffer) -> Attributes:
    attrs = Attributes()
    attrs.unmarshal_from(buf)
    return attrs


@dataclass
class _HandlePacket(Packet):
    handle: str = ""

    def _marshal_body(self, buf: Buffer) -> bytes:
        buf.append_string(self.handle)
        return b""

    def unmarshal_packet_body(self, buf: Buffer) -> None:
        self.handle = buf.consume_string()


@dataclass
class _PathPacket(Packet):
    path: str = ""

    def _marshal_body(self, buf: Buffer) -> bytes:
        buf.append_string(self.path)
        return b""

    def unmarshal_packet_body(self, buf: Buffer) -> None:
        self.path = buf.consume_string()


@dataclass
class _PathAttrsPacket(Packet):
    path: str = ""
    attrs: Attributes = field(default_factory=Attributes)

    def _marshal_body(self, buf: Buffer) -> bytes:
        buf.append_string(self.path)
        self.attrs.marshal_into(buf)
        return b""

    def unmarshal_packet_body(self, buf: Buffer) -> None:
        self.path = buf.consume_string()
        self.attrs = _read_attrs(buf)


@dataclass
class ClosePacket(_HandlePacket):
    """The SSH_FXP_CLOSE packet."""

    packet_type: ClassVar[PacketType] = PacketType.CLOSE


@dataclass
class ReadPacket(Packet):
    """The SSH_FXP_READ packet."""

    packet_type: ClassVar[PacketType] = PacketType.READ

    handle: str = ""
    offset: int = 0
    length: int = 0

    def _marshal_body(self, buf: Buffer) -> bytes:
        buf.append_string(self.handle)
        buf.append_uint64(self.offset)
        buf.append_uint32(self.length)
        return b""

    def unmarshal_packet_body(self, buf: Buffer) -> None:
        self.handle = buf.consume_string()
        self.offset = buf.consume_uint64()
        self.length = buf.consume_uint32()


@dataclass
class WritePacket(Packet):
    """The SSH_FXP_WRITE packet; the data travels as the payload."""

    packet_type: ClassVar[PacketType] = PacketType.WRITE

    handle: str = ""
    offset: int = 0
    data: bytes = b""

    def _marshal_body(self, buf: Buffer) -> bytes:
        data = bytes(self.data)
        buf.append_string(self.handle)
        buf.append_uint64(self.offset)
        buf.append_uint32(len(data))
        return data

    def unmarshal_packet_body(self, buf: Buffer) -> None:
        self.handle = buf.consume_string()
        self.offset = buf.consume_uint64()
        self.data = buf.consume_byte_string()


@dataclass
class FStatPacket(_HandlePacket):
    """The SSH_FXP_FSTAT packet."""

    packet_type: ClassVar[PacketType] = PacketType.FSTAT


@dataclass
class FSetstatPacket(Packet):
    """The SSH_FXP_FSETSTAT packet."""

    packet_type: ClassVar[PacketType] = PacketType.FSETSTAT

    handle: str = ""
    attrs: Attributes = field(default_factory=Attributes)

    def _marshal_body(self, buf: Buffer) -> bytes:
        buf.append_string(self.handle)
        self.attrs.marshal_into(buf)
        return b""

    def unmarshal_packet_body(self, buf: Buffer) -> None:
        self.handle = buf.consume_string()
        self.attrs = _read_attrs(buf)


@dataclass
class ReadDirPacket(_HandlePacket):
    """The SSH_FXP_READDIR packet."""

    packet_type: ClassVar[PacketType] = PacketType.READDIR


@dataclass
class OpenPacket(Packet):
    """The SSH_FXP_OPEN packet."""

    packet_type: ClassVar[PacketType] = PacketType.OPEN

    filename: str = ""
    pflags: int = 0
    attrs: Attributes = field(default_factory=Attributes)

    def _marshal_body(self, buf: Buffer) -> bytes:
        buf.append_string(self.filename)
        buf.append_uint32(int(self.pflags))
        self.attrs.marshal_into(buf)
        return b""

    def unmarshal_packet_body(self, buf: Buffer) -> None:
        self.filename = buf.consume_string()
        self.pflags = buf.consume_uint32()
        self.attrs = _read_attrs(buf)


@dataclass
class OpenDirPacket(_PathPacket):
    """The SSH_FXP_OPENDIR packet."""

    packet_type: ClassVar[PacketType] = PacketType.OPENDIR


@dataclass
class LStatPacket(_PathPacket):
    """The SSH_FXP_LSTAT packet."""

    packet_type: ClassVar[PacketType] = PacketType.LSTAT


@dataclass
class SetstatPacket(_PathAttrsPacket):
    """The SSH_FXP_SETSTAT packet."""

    packet_type: ClassVar[PacketType] = PacketType.SETSTAT


@dataclass
class RemovePacket(_PathPacket):
    """The SSH_FXP_REMOVE packet."""

    packet_type: ClassVar[PacketType] = PacketType.REMOVE


@dataclass
class MkdirPacket(_PathAttrsPacket):
    """The SSH_FXP_MKDIR packet."""

    packet_type: ClassVar[PacketType] = PacketType.MKDIR


@dataclass
class RmdirPacket(_PathPacket):
    """The SSH_FXP_RMDIR packet."""

    packet_type: ClassVar[PacketType] = PacketType.RMDIR


@dataclass
class RealPathPacket(_PathPacket):
    """The SSH_FXP_REALPATH packet."""

    packet_type: ClassVar[PacketType] = PacketType.REALPATH


@dataclass
class StatPacket(_PathPacket):
    """The SSH_FXP_STAT packet."""

    packet_type: ClassVar[PacketType] = PacketType.STAT


@dataclass
class RenamePacket(Packet):
    """The SSH_FXP_RENAME packet."""

    packet_type: ClassVar[PacketType] = PacketType.RENAME

    old_path: str = ""
    new_path: str = ""

    def _marshal_body(self, buf: Buffer) -> bytes:
        buf.append_string(self.old_path)
        buf.append_string(self.new_path)
        return b""

    def unmarshal_packet_body(self, buf: Buffer) -> None:
        self.old_path = buf.consume_string()
        self.new_path = buf.consume_string()


@dataclass
class ReadLinkPacket(_PathPacket):
    """The SSH_FXP_READLINK packet."""

    packet_type: ClassVar[PacketType] = PacketType.READLINK


@dataclass
class SymlinkPacket(Packet):
    """The SSH_FXP_SYMLINK packet.

    As deployed by OpenSSH, the target path is sent before the link path.
    """

    packet_type: ClassVar[PacketType] = PacketType.SYMLINK

    link_path: str = ""
    target_path: str = ""

    def _marshal_body(self, buf: Buffer) -> bytes:
        buf.append_string(self.target_path)
        buf.append_string(self.link_path)
        return b""

    def unmarshal_packet_body(self, buf: Buffer) -> None:
        self.target_path = buf.consume_string()
        self.link_path = buf.consume_string()
"""Status codes, packet types, file modes and protocol limits of the SFTP wire format."""

from __future__ import annotations

import enum

DEFAULT_MAX_PACKET_LENGTH = 34000
DEFAULT_MAX_DATA_LENGTH = 32768


class Status(enum.IntEnum):
    """SSH_FX_* status codes carried in SSH_FXP_STATUS replies."""

    OK = 0
    EOF = 1
    NO_SUCH_FILE = 2
    PERMISSION_DENIED = 3
    FAILURE = 4
    BAD_MESSAGE = 5
    NO_CONNECTION = 6
    CONNECTION_LOST = 7
    OP_UNSUPPORTED = 8
    INVALID_HANDLE = 9
    NO_SUCH_PATH = 10
    FILE_ALREADY_EXISTS = 11
    WRITE_PROTECT = 12
    NO_MEDIA = 13
    NO_SPACE_ON_FILESYSTEM = 14
    QUOTA_EXCEEDED = 15
    UNKNOWN_PRINCIPAL = 16
    LOCK_CONFLICT = 17
    DIR_NOT_EMPTY = 18
    NOT_A_DIRECTORY = 19
    INVALID_FILENAME = 20
    LINK_LOOP = 21
    CANNOT_DELETE = 22
    INVALID_PARAMETER = 23
    FILE_IS_A_DIRECTORY = 24
    BYTE_RANGE_LOCK_CONFLICT = 25
    BYTE_RANGE_LOCK_REFUSED = 26
    DELETE_PENDING = 27
    FILE_CORRUPT = 28
    OWNER_INVALID = 29
    GROUP_INVALID = 30
    NO_MATCHING_BYTE_RANGE_LOCK = 31

    def __str__(self) -> str:
        return f"SSH_FX_{self.name}"


def status_name(code: int) -> str:
    """Return the SSH_FX_* name of a status code, including unknown codes."""
    try:
        return str(Status(code))
    except ValueError:
        return f"SSH_FX_UNKNOWN({int(code)})"


class StatusError(Exception):
    """An error that carries an SFTP status code.

    It compares equal to a Status of the same code and to any other
    StatusError with the same code.
    """

    def __init__(self, code: int) -> None:
        try:
            self.code: int = Status(code)
        except ValueError:
            self.code = int(code)
        super().__init__(status_name(code))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, StatusError):
            return self.code == other.code
        if isinstance(other, int):
            return self.code == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(int(self.code))


class PacketType(enum.IntEnum):
    """SSH_FXP_* packet type values."""

    INIT = 1
    VERSION = 2
    OPEN = 3
    CLOSE = 4
    READ = 5
    WRITE = 6
    LSTAT = 7
    FSTAT = 8
    SETSTAT = 9
    FSETSTAT = 10
    OPENDIR = 11
    READDIR = 12
    REMOVE = 13
    MKDIR = 14
    RMDIR = 15
    REALPATH = 16
    STAT = 17
    RENAME = 18
    READLINK = 19
    SYMLINK = 20
    LINK = 21
    BLOCK = 22
    UNBLOCK = 23

    STATUS = 101
    HANDLE = 102
    DATA = 103
    NAME = 104
    ATTRS = 105

    EXTENDED = 200
    EXTENDED_REPLY = 201

    def __str__(self) -> str:
        return f"SSH_FXP_{self.name}"


def packet_type_name(value: int) -> str:
    """Return the SSH_FXP_* name of a packet type, including unknown values."""
    try:
        return str(PacketType(value))
    except ValueError:
        return f"SSH_FXP_UNKNOWN({int(value)})"


_TYPE_CHARS = {
    0x8000: "-",
    0x4000: "d",
    0xA000: "l",
    0x6000: "b",
    0x2000: "c",
    0x1000: "p",
    0xC000: "s",
}


class FileMode(int):
    """POSIX file type and permission bits."""

    def is_dir(self) -> bool:
        return self.type() == MODE_DIR

    def is_regular(self) -> bool:
        return self.type() == MODE_REGULAR

    def perm(self) -> FileMode:
        return FileMode(self & MODE_PERM)

    def type(self) -> FileMode:
        return FileMode(self & MODE_TYPE)

    def __str__(self) -> str:
        chars = [_TYPE_CHARS.get(int(self.type()), "?")]
        chars.extend(
            c if self & (1 << (8 - i)) else "-" for i, c in enumerate("rwxrwxrwx")
        )
        for bit, index, lower, upper in (
            (MODE_SETUID, 3, "s", "S"),
            (MODE_SETGID, 6, "s", "S"),
            (MODE_STICKY, 9, "t", "T"),
        ):
            if self & bit:
                chars[index] = lower if chars[index] == "x" else upper
        return "".join(chars)

    def __repr__(self) -> str:
        return f"FileMode(0o{int(self):o})"


MODE_PERM = FileMode(0o0777)
MODE_USER_READ = FileMode(0o0400)
MODE_USER_WRITE = FileMode(0o0200)
MODE_USER_EXEC = FileMode(0o0100)
MODE_GROUP_READ = FileMode(0o0040)
MODE_GROUP_WRITE = FileMode(0o0020)
MODE_GROUP_EXEC = FileMode(0o0010)
MODE_OTHER_READ = FileMode(0o0004)
MODE_OTHER_WRITE = FileMode(0o0002)
MODE_OTHER_EXEC = FileMode(0o0001)

MODE_SETUID = FileMode(0o4000)
MODE_SETGID = FileMode(0o2000)
MODE_STICKY = FileMode(0o1000)

MODE_TYPE = FileMode(0xF000)
MODE_NAMED_PIPE = FileMode(0x1000)
MODE_CHAR_DEVICE = FileMode(0x2000)
MODE_DIR = FileMode(0x4000)
MODE_DEVICE = FileMode(0x6000)
MODE_REGULAR = FileMode(0x8000)
MODE_SYMLINK = FileMode(0xA000)
MODE_SOCKET = FileMode(0xC000)


def compose_packet(header: bytes, payload: bytes) -> bytes:
    """Join the two parts returned by marshal_packet into one encoded packet."""
    return bytes(header) + bytes(payload)
import io
import uuid

import pytest

from sftpwire.codes import DEFAULT_MAX_PACKET_LENGTH, PacketType, compose_packet
from sftpwire.encoding import Buffer, LongPacketError, ShortPacketError
from sftpwire.framing import (
    ExtendedPacket,
    ExtendedReplyPacket,
    RawPacket,
    RequestPacket,
    new_packet_from_type,
    read_packet,
    register_extended_packet_type,
)
from sftpwire.packets import ClosePacket, StatPacket


class _XorData:
    def __init__(self, value=0):
        self.value = value

    def marshal_binary(self):
        buf = Buffer()
        buf.append_uint8(self.value ^ 0x2A)
        return buf.bytes()

    def unmarshal_binary(self, data):
        self.value = Buffer(data).consume_uint8() ^ 0x2A


EXTENDED_NO_DATA = (
    b"\x00\x00\x00\x14" b"\xc8" b"\x00\x00\x00\x2a" b"\x00\x00\x00\x0bfoo@example"
)
EXTENDED_WITH_DATA = (
    b"\x00\x00\x00\x15"
    b"\xc8"
    b"\x00\x00\x00\x2a"
    b"\x00\x00\x00\x0bfoo@example"
    b"\x27"
)


def test_extended_packet_no_data():
    p = ExtendedPacket(extended_request="foo@example")
    buf = compose_packet(*p.marshal_packet(42))
    assert buf == EXTENDED_NO_DATA

    p = ExtendedPacket()
    p.unmarshal_packet_body(Buffer(buf[9:]))
    assert p.extended_request == "foo@example"
    assert p.data == Buffer(b"")


def test_extended_packet_test_data():
    p = ExtendedPacket(extended_request="foo@example", data=_XorData(13))
    buf = compose_packet(*p.marshal_packet(42))
    assert buf == EXTENDED_WITH_DATA

    p = ExtendedPacket(data=_XorData())
    p.unmarshal_packet_body(Buffer(buf[9:]))
    assert p.extended_request == "foo@example"
    assert isinstance(p.data, _XorData)
    assert p.data.value == 13

    p = ExtendedPacket()
    p.unmarshal_packet_body(Buffer(buf[9:]))
    assert p.extended_request == "foo@example"
    assert isinstance(p.data, Buffer)
    assert p.data.bytes() == b"\x27"


def test_extended_reply_no_data():
    p = ExtendedReplyPacket()
    buf = compose_packet(*p.marshal_packet(42))
    assert buf == b"\x00\x00\x00\x05\xc9\x00\x00\x00\x2a"

    p = ExtendedReplyPacket()
    p.unmarshal_packet_body(Buffer(buf[9:]))
    assert p.data == Buffer(b"")


def test_extended_reply_packet_test_data():
    p = ExtendedReplyPacket(data=_XorData(13))
    buf = compose_packet(*p.marshal_packet(42))
    assert buf == b"\x00\x00\x00\x06\xc9\x00\x00\x00\x2a\x27"

    p = ExtendedReplyPacket(data=_XorData())
    p.unmarshal_packet_body(Buffer(buf[9:]))
    assert isinstance(p.data, _XorData)
    assert p.data.value == 13

    p = ExtendedReplyPacket()
    p.unmarshal_packet_body(Buffer(buf[9:]))
    assert isinstance(p.data, Buffer)
    assert p.data.bytes() == b"\x27"


def test_registered_extension_is_decoded_with_its_constructor():
    name = f"x-{uuid.uuid4().hex}@example.com"
    register_extended_packet_type(name, _XorData)

    encoded = compose_packet(
        *ExtendedPacket(extended_request=name, data=_XorData(7)).marshal_packet(1)
    )
    p = ExtendedPacket()
    p.unmarshal_packet_body(Buffer(encoded[9:]))
    assert isinstance(p.data, _XorData)
    assert p.data.value == 7


def test_duplicate_registration_raises():
    name = f"dup-{uuid.uuid4().hex}@example.com"
    register_extended_packet_type(name, _XorData)
    with pytest.raises(ValueError, match="multiple registration"):
        register_extended_packet_type(name, _XorData)


STATUS_BODY = (
    b"\x00\x00\x00\x01" b"\x00\x00\x00\x03eof" b"\x00\x00\x00\x02en"
)


def test_raw_packet():
    p = RawPacket(packet_type=PacketType.STATUS, request_id=42, data=Buffer(STATUS_BODY))
    buf = p.marshal_binary()
    assert buf == b"\x00\x00\x00\x16" b"\x65" b"\x00\x00\x00\x2a" + STATUS_BODY

    p = RawPacket()
    p.read_from(io.BytesIO(buf), DEFAULT_MAX_PACKET_LENGTH)
    assert p.packet_type == PacketType.STATUS
    assert p.request_id == 42
    assert p.data.bytes() == STATUS_BODY

    assert p.data.consume_uint32() == 1
    assert p.data.consume_string() == "eof"
    assert p.data.consume_string() == "en"


def test_raw_packet_unmarshal_binary_keeps_unknown_type():
    p = RawPacket()
    p.unmarshal_binary(b"\x63\x00\x00\x00\x07abc")
    assert p.packet_type == 99
    assert p.request_id == 7
    assert p.data.bytes() == b"abc"


def test_request_packet():
    p = RequestPacket(request_id=42, request=StatPacket(path="foo"))
    buf = p.marshal_binary()
    assert buf == b"\x00\x00\x00\x0c" b"\x11" b"\x00\x00\x00\x2a" b"\x00\x00\x00\x03foo"

    p = RequestPacket()
    p.read_from(io.BytesIO(buf), DEFAULT_MAX_PACKET_LENGTH)
    assert p.request_id == 42
    assert isinstance(p.request, StatPacket)
    assert p.request.path == "foo"
    assert p.packet_type == PacketType.STAT


def test_request_packet_unmarshal_binary():
    encoded = compose_packet(*ClosePacket(handle="h1").marshal_packet(9))
    p = RequestPacket()
    p.unmarshal_binary(encoded[4:])
    assert p.request == ClosePacket(handle="h1")
    assert p.request_id == 9


def test_empty_request_packet_cannot_marshal():
    with pytest.raises(ValueError, match="empty request packet"):
        RequestPacket().marshal_binary()


def test_request_packet_rejects_response_type():
    p = RequestPacket()
    with pytest.raises(ValueError, match="SSH_FXP_STATUS"):
        p.unmarshal_binary(b"\x65\x00\x00\x00\x01")


@pytest.mark.parametrize(
    "packet_type, cls",
    [(PacketType.OPEN, "OpenPacket"), (PacketType.EXTENDED, "ExtendedPacket")],
)
def test_new_packet_from_type(packet_type, cls):
    assert type(new_packet_from_type(packet_type)).__name__ == cls


def test_new_packet_from_unknown_type():
    with pytest.raises(ValueError, match=r"SSH_FXP_UNKNOWN\(150\)"):
        new_packet_from_type(150)


def test_read_packet_returns_body():
    stream = io.BytesIO(b"\x00\x00\x00\x05\x01\x02\x03\x04\x05extra")
    assert read_packet(stream) == b"\x01\x02\x03\x04\x05"
    assert stream.read() == b"extra"


def test_read_packet_short_length():
    with pytest.raises(ShortPacketError):
        read_packet(io.BytesIO(b"\x00\x00\x00\x04\x01\x02\x03\x04"))


def test_read_packet_long_length():
    with pytest.raises(LongPacketError):
        read_packet(io.BytesIO(b"\x00\x00\x01\x00" + b"\x00" * 256), 100)


def test_read_packet_empty_stream():
    with pytest.raises(EOFError):
        read_packet(io.BytesIO(b""))


def test_read_packet_truncated_body():
    with pytest.raises(EOFError):
        read_packet(io.BytesIO(b"\x00\x00\x00\x09\x01\x02"))
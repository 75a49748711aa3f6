"""Line framing between the byte stream and protocol text."""

from __future__ import annotations

CTCP_MARKER = "\x01"
SENDER_MARKER = ":"
LINE_TERMINATOR = "\r\n"


def decode_line(raw: bytes) -> str:
    """Turn one received line into text.

    Removes the line terminator, every CTCP marker byte and exactly one
    leading sender marker. Never raises: undecodable bytes are replaced.
    """
    line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
    line = line.replace(CTCP_MARKER, "")
    if line.startswith(SENDER_MARKER):
        line = line[1:]
    return line


def encode_line(command: str) -> bytes:
    """Frame an outbound command for the wire."""
    return f"{command}{LINE_TERMINATOR}".encode()


class LineCodec:
    """Namespace for the stateless codec functions."""

    decode = staticmethod(decode_line)
    encode = staticmethod(encode_line)

"""Byte I/O ports for bfvm.

The engine performs all I/O through two capability objects supplied by the
caller:

    ByteSink.write_byte(value)   consume one byte (0..255)
    ByteSource.read_byte()       produce one byte, may block

Ports are owned by the caller. The engine keeps a reference for its whole
lifetime and never closes, replaces or shares them, so a port must stay
usable for as long as the engine that borrowed it is being stepped.

A port that cannot complete raises PortError (EndOfInput when a source is
exhausted). The engine converts that into EngineIOError.
"""

from typing import BinaryIO, Callable, Iterable, Optional, Protocol, runtime_checkable

from .errors import EndOfInput, PortError


@runtime_checkable
class ByteSink(Protocol):
    def write_byte(self, value: int) -> None:
        ...


@runtime_checkable
class ByteSource(Protocol):
    def read_byte(self) -> int:
        ...


class BufferSink:
    """Collects written bytes in memory.

    Attributes:
        writes: Number of write_byte calls
    """

    def __init__(self):
        self._buffer = bytearray()
        self.writes = 0

    def write_byte(self, value: int) -> None:
        self._buffer.append(value)
        self.writes += 1

    def getvalue(self) -> bytes:
        return bytes(self._buffer)

    def text(self, encoding: str = "latin-1") -> str:
        return self._buffer.decode(encoding)


class BytesSource:
    """Produces bytes from a fixed buffer.

    Once the buffer is exhausted, read_byte returns eof if one was given and
    raises EndOfInput otherwise.

    Attributes:
        reads: Number of read_byte calls that produced a value
    """

    def __init__(self, data: Iterable[int] = b"", eof: Optional[int] = None):
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._data = bytes(data)
        self._offset = 0
        self.eof = eof
        self.reads = 0

    def read_byte(self) -> int:
        if self._offset >= len(self._data):
            if self.eof is None:
                raise EndOfInput("input exhausted")
            self.reads += 1
            return self.eof
        value = self._data[self._offset]
        self._offset += 1
        self.reads += 1
        return value

    def remaining(self) -> int:
        return len(self._data) - self._offset


class StreamSink:
    """Writes bytes to a binary stream such as sys.stdout.buffer."""

    def __init__(self, stream: BinaryIO):
        self.stream = stream

    def write_byte(self, value: int) -> None:
        self.stream.write(bytes((value,)))

    def flush(self) -> None:
        self.stream.flush()


class StreamSource:
    """Reads bytes from a binary stream such as sys.stdin.buffer.

    If a paired sink is given, it is flushed before every read so that a
    prompt written by the program is visible before the read blocks.
    End of stream behaves as in BytesSource.
    """

    def __init__(
        self,
        stream: BinaryIO,
        flush_before_read: Optional[StreamSink] = None,
        eof: Optional[int] = None,
    ):
        self.stream = stream
        self.flush_before_read = flush_before_read
        self.eof = eof

    def read_byte(self) -> int:
        if self.flush_before_read is not None:
            self.flush_before_read.flush()
        data = self.stream.read(1)
        if not data:
            if self.eof is None:
                raise EndOfInput("end of input stream")
            return self.eof
        return data[0]


class CallbackSink:
    """Adapts a plain callable taking one byte."""

    def __init__(self, fn: Callable[[int], None]):
        self.fn = fn

    def write_byte(self, value: int) -> None:
        self.fn(value)


class CallbackSource:
    """Adapts a plain zero-argument callable returning one byte."""

    def __init__(self, fn: Callable[[], int]):
        self.fn = fn

    def read_byte(self) -> int:
        return self.fn()


class NullSource:
    """Source for programs run without input; every read fails."""

    def read_byte(self) -> int:
        raise PortError("no input available")


__all__ = [
    "ByteSink",
    "ByteSource",
    "BufferSink",
    "BytesSource",
    "StreamSink",
    "StreamSource",
    "CallbackSink",
    "CallbackSource",
    "NullSource",
]

import io
from typing import IO, Any, Optional

from .codecs import DEFAULT_LEVEL, Codec, make_compressor, make_decompressor

__all__ = ["CompressorIO", "DecompressorIO", "ReadIO", "WriteIO"]

DEFAULT_CHUNK_SIZE = io.DEFAULT_BUFFER_SIZE


class ReadIO(io.RawIOBase):
    """Reads `stream` in chunks of `chunk_size` bytes and passes each chunk
    through `_process_data` before handing it to the caller. The base class
    is a plain pass-through; closing it never closes `stream`."""

    def __init__(
        self,
        stream: IO,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        super().__init__()
        self.stream = stream
        self.ready_buffer = bytearray()
        self.chunk_size = chunk_size
        self._exhausted = False

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False

    def _process_data(self, data: bytes) -> bytes:
        return data

    def _finish(self) -> bytes:
        """Called when `stream` has no more data. Errors raised here are
        raised again by every later read."""
        return b""

    def _fill(self) -> bool:
        """Move one more chunk from `stream` to the ready buffer; returns
        False once `stream` is exhausted."""
        if self._exhausted:
            return False

        read_data = self.stream.read(self.chunk_size)
        if not read_data:
            # only a clean finish marks the stream exhausted
            self.ready_buffer.extend(self._finish())
            self._exhausted = True
            return False

        self.ready_buffer.extend(self._process_data(read_data))
        return True

    def _take(self, size: int) -> bytes:
        if size < 0:
            return_value = self.ready_buffer
            self.ready_buffer = bytearray()
        else:
            return_value = self.ready_buffer[:size]
            self.ready_buffer = self.ready_buffer[size:]
        return bytes(return_value)

    def read(self, size: Optional[int] = -1) -> bytes:
        self._checkClosed()
        size = -1 if size is None else size

        while size < 0 or len(self.ready_buffer) < size:
            if not self._fill():
                break

        return self._take(size)

    def readall(self) -> bytes:
        return self.read(-1)

    def read1(self, size: int = -1) -> bytes:
        self._checkClosed()

        # some chunks decode to nothing (e.g. a bare gzip header)
        while not self.ready_buffer:
            if not self._fill():
                break

        return self._take(size)

    def readinto(self, buffer: Any) -> int:
        data = self.read(len(buffer))
        buffer[: len(data)] = data
        return len(data)

    def readline(self, size: Optional[int] = -1) -> bytes:
        self._checkClosed()
        size = -1 if size is None else size

        while size < 0 or len(self.ready_buffer) < size:
            if b"\n" in self.ready_buffer:
                break
            if not self._fill():
                break

        loc = self.ready_buffer.find(b"\n")
        if loc >= 0 and (size < 0 or loc < size):
            return self._take(loc + 1)
        return self._take(size)


class DecompressorIO(ReadIO):
    """Wraps an incremental decompressor so that it can be used as a
    file-like object over a compressed `stream`. Concatenated streams
    (e.g. multi-member gzip files) are decoded one after the other."""

    def __init__(
        self,
        stream: IO,
        codec: Codec,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        super().__init__(stream=stream, chunk_size=chunk_size)
        self.codec = codec
        self.decoder = make_decompressor(codec)

        # True while the current decoder has seen data but not its end marker
        self._pending = False

    def _process_data(self, data: bytes) -> bytes:
        out = bytearray()

        while data:
            if self.decoder.eof:
                if self.codec is Codec.GZIP:
                    # gzip files can be padded with zeros after the last member
                    data = data.lstrip(b"\x00")
                    if not data:
                        break
                self.decoder = make_decompressor(self.codec)

            out.extend(self.decoder.decompress(data))
            self._pending = not self.decoder.eof
            data = self.decoder.unused_data if self.decoder.eof else b""

        return bytes(out)

    def _finish(self) -> bytes:
        if self._pending:
            raise EOFError(
                f"{self.codec.value} stream ended before the "
                "end-of-stream marker was reached"
            )
        return b""


class WriteIO(io.RawIOBase):
    """Passes every write through `_process_data` and into `stream`; on
    close, whatever `_finish` returns is written last. Closing never closes
    `stream`, it only flushes it."""

    def __init__(self, stream: IO):
        super().__init__()
        self.stream = stream

    def writable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False

    def _process_data(self, data: bytes) -> bytes:
        return data

    def _finish(self) -> bytes:
        return b""

    def write(self, data: Any) -> int:
        self._checkClosed()

        processed_data = self._process_data(data)
        if processed_data:
            self.stream.write(processed_data)

        return memoryview(data).nbytes

    def flush(self) -> None:
        super().flush()
        if not self.stream.closed:
            self.stream.flush()

    def close(self) -> None:
        if self.closed:
            return

        try:
            tail = self._finish()
            if tail:
                self.stream.write(tail)
            self.flush()
        finally:
            super().close()


class CompressorIO(WriteIO):
    """Wraps an incremental compressor so that it can be used as a
    writable file-like object; the compressed stream is completed when
    the object is closed."""

    def __init__(
        self,
        stream: IO,
        codec: Codec,
        level: Optional[int] = DEFAULT_LEVEL,
        encoder: Optional[Any] = None,
    ):
        super().__init__(stream=stream)
        self.codec = codec
        self.encoder = encoder or make_compressor(codec, level)

    def _process_data(self, data: bytes) -> bytes:
        return self.encoder.compress(data)

    def _finish(self) -> bytes:
        return self.encoder.flush()

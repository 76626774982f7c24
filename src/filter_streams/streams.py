"""Compression-transparent byte streams.

`OutputFilterStream` and `InputFilterStream` are facades over a
`StreamChain`: an optional codec stage in front of a file, a descriptor,
or a standard stream. The codec is chosen when the stream is opened, from
an explicit compression tag or from the filename suffix:

    with OutputFilterStream("results.jsonl.gz") as out:
        out.write(b'{"id": 1}\\n')

    with InputFilterStream("results.jsonl.gz") as src:
        for line in src:
            ...

Before any `open`, an output stream writes to standard output and an
input stream reads from standard input.
"""

import io
from dataclasses import dataclass
from logging import Logger, getLogger
from typing import IO, Any, Callable, Iterator, List, Optional, TypeVar

from typing_extensions import Self

from .chain import (
    STDIO_SENTINEL,
    StreamChain,
    TargetType,
    build_input_chain,
    build_output_chain,
)
from .codecs import CODEC_ERRORS, DEFAULT_LEVEL, Codec
from .io_wrappers import DEFAULT_CHUNK_SIZE

__all__ = [
    "FilterStream",
    "InputFilterStream",
    "OutputFilterStream",
    "StreamState",
]

T = TypeVar("T")

LOGGER = getLogger(__file__)

STREAM_ERRORS = (OSError, ValueError) + CODEC_ERRORS


@dataclass
class StreamState:
    """Condition flags of a filter stream once it has been opened."""

    fail: bool = False
    bad: bool = False
    eof: bool = False

    @property
    def good(self) -> bool:
        return not (self.fail or self.bad or self.eof)

    def labels(self) -> List[str]:
        # an unrecoverable failure is also a failure
        return [
            label
            for label, is_set in (
                ("fail", self.fail or self.bad),
                ("bad", self.bad),
                ("eof", self.eof),
            )
            if is_set
        ]

    def __str__(self) -> str:
        return " ".join(self.labels()) if not self.good else "good"


class FilterStream:
    """Owns at most one `StreamChain` and exposes it as a file-like object.

    Opening a new chain replaces the current one (the old chain is flushed
    and released); closing flushes and releases the chain and leaves the
    stream detached until the next open. Errors raised by the chain while
    reading or writing are recorded in `state`; they are re-raised when
    `raise_errors` is True, otherwise the call returns an empty result.
    """

    def __init__(
        self,
        raise_errors: bool = True,
        logger: Optional[Logger] = None,
    ):
        self._chain: Optional[StreamChain] = None
        self.state = StreamState()
        self.raise_errors = raise_errors
        self.logger = logger or LOGGER

    def _attach(self, chain: StreamChain):
        previous, self._chain = self._chain, chain
        self.state = StreamState()
        self.logger.debug("Attached %s", chain)

        if previous is not None:
            try:
                previous.release()
            except STREAM_ERRORS as e:
                # the new chain is in place already; report and move on
                self.logger.warning("Error releasing %s: %s", previous, e)

    def _call(self, default: T, fn: Callable[[IO], T]) -> T:
        """Run `fn` on the head of the chain, recording failures."""
        if self._chain is None:
            self.state.bad = True
            if self.raise_errors:
                raise ValueError("I/O operation on closed stream")
            return default

        try:
            return fn(self._chain.head)
        except STREAM_ERRORS:
            self.state.bad = True
            if self.raise_errors:
                raise
            return default

    @property
    def chain(self) -> Optional[StreamChain]:
        return self._chain

    @property
    def codec(self) -> Optional[Codec]:
        return self._chain.codec if self._chain else None

    @property
    def name(self) -> str:
        return self._chain.name if self._chain else ""

    @property
    def closed(self) -> bool:
        return self._chain is None

    @property
    def good(self) -> bool:
        return self.state.good

    def status(self) -> str:
        """Return "good", or the condition flags that are set, e.g.
        "fail eof" or "fail bad"."""
        return str(self.state)

    def clear(self):
        self.state = StreamState()

    def readable(self) -> bool:
        return False

    def writable(self) -> bool:
        return False

    def seekable(self) -> bool:
        return False

    def isatty(self) -> bool:
        return False

    def fileno(self) -> int:
        if self._chain is None or self._chain.codec_stage is not None:
            raise io.UnsupportedOperation(
                f"{self!r} is not backed by a file descriptor"
            )
        return self._chain.transport.fileno()

    def flush(self):
        self._call(None, lambda head: head.flush())

    def close(self):
        """Flush and release the chain, then detach it. The stream can be
        opened again afterwards."""

        chain, self._chain = self._chain, None

        # nothing is attached anymore, as with a null stream buffer
        self.state.bad = True

        if chain is None:
            return

        self.logger.debug("Closing %s", chain)
        try:
            chain.release()
        except STREAM_ERRORS:
            if self.raise_errors:
                raise

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def __del__(self):
        chain = getattr(self, "_chain", None)
        if chain is None:
            return

        try:
            chain.release()
        except STREAM_ERRORS as e:
            self.logger.warning("Error releasing %s: %s", chain, e)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._chain!r}, {self.status()})"


class OutputFilterStream(FilterStream):
    """A writable byte stream that compresses on the fly when the target
    calls for it. Writes before the first `open` go to standard output."""

    def __init__(
        self,
        target: Optional[TargetType] = None,
        mode: str = "wb",
        compression: Optional[str] = None,
        level: Optional[int] = DEFAULT_LEVEL,
        stdout: Optional[IO] = None,
        raise_errors: bool = True,
        logger: Optional[Logger] = None,
    ):
        """Create a new output stream.

        Args:
            target (Union[str, os.PathLike, int], optional): Path, file
                descriptor, or "-" to open right away. If None, the stream
                stays bound to standard output. Defaults to None.
            mode (str, optional): Mode to open `target` with. Defaults to
                "wb".
            compression (str, optional): Compression tag ("gzip", "gz",
                "bzip2", "bz2", "lzma", "xz" or "none"); None or "" picks
                the codec from the suffix of `target`. Defaults to None.
            level (int, optional): Compression level passed to the codec;
                -1 uses the codec default. Defaults to -1.
            stdout (IO, optional): Binary stream standing in for standard
                output; it is never closed by this object. Defaults to the
                buffer of sys.stdout.
            raise_errors (bool, optional): Whether write errors are raised
                or only recorded in `state`. Defaults to True.
            logger (Logger, optional): Logger to use. Defaults to the module
                logger.
        """
        super().__init__(raise_errors=raise_errors, logger=logger)
        self.stdout = stdout
        self.bytes_written = 0
        self._attach(build_output_chain(STDIO_SENTINEL, stdout=stdout))

        if target is not None:
            self.open(target, mode=mode, compression=compression, level=level)

    def open(
        self,
        target: TargetType,
        mode: str = "wb",
        compression: Optional[str] = None,
        level: Optional[int] = DEFAULT_LEVEL,
    ) -> Self:
        """Open `target` for writing, replacing whatever chain is attached.
        If anything goes wrong the stream is left exactly as it was, unless
        `target` is the file currently being written: that file is finished
        and released first, and a failed open leaves the stream closed.

        Raises:
            UnknownCompressionKind: if `compression` is not recognized.
            FileOpenError: if `target` cannot be opened.
        """
        if self._chain is not None and self._chain.shares_file(target):
            # truncating the file must come after its last bytes are out
            self.close()

        chain = build_output_chain(
            target,
            mode=mode,
            compression=compression,
            level=level,
            stdout=self.stdout,
        )
        self._attach(chain)
        self.bytes_written = 0
        return self

    def writable(self) -> bool:
        return True

    def write(self, data: Any) -> int:
        written = self._call(0, lambda head: head.write(data))
        self.bytes_written += written or 0
        return written

    def writelines(self, lines: Any):
        for line in lines:
            self.write(line)


class InputFilterStream(FilterStream):
    """A readable byte stream that decompresses on the fly when the source
    calls for it. Reads before the first `open` come from standard input."""

    def __init__(
        self,
        source: Optional[TargetType] = None,
        mode: str = "rb",
        compression: Optional[str] = None,
        stdin: Optional[IO] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        raise_errors: bool = True,
        logger: Optional[Logger] = None,
    ):
        """Create a new input stream.

        Args:
            source (Union[str, os.PathLike, int], optional): Path, file
                descriptor, or "-" to open right away. If None, the stream
                stays bound to standard input. Defaults to None.
            mode (str, optional): Mode to open `source` with. Defaults to
                "rb".
            compression (str, optional): Compression tag overriding suffix
                detection; None or "" picks the codec from the suffix of
                `source`. Defaults to None.
            stdin (IO, optional): Binary stream standing in for standard
                input; it is never closed by this object. Defaults to the
                buffer of sys.stdin.
            chunk_size (int, optional): Bytes read from the source at a
                time when decompressing. Defaults to io.DEFAULT_BUFFER_SIZE.
            raise_errors (bool, optional): Whether read errors are raised
                or only recorded in `state`. Defaults to True.
            logger (Logger, optional): Logger to use. Defaults to the module
                logger.
        """
        super().__init__(raise_errors=raise_errors, logger=logger)
        self.stdin = stdin
        self.chunk_size = chunk_size
        self._attach(build_input_chain(STDIO_SENTINEL, stdin=stdin))

        if source is not None:
            self.open(source, mode=mode, compression=compression)

    def open(
        self,
        source: TargetType,
        mode: str = "rb",
        compression: Optional[str] = None,
    ) -> Self:
        """Open `source` for reading, replacing whatever chain is attached.
        If anything goes wrong the stream is left exactly as it was.

        Raises:
            UnknownCompressionKind: if `compression` is not recognized.
            FileOpenError: if `source` cannot be opened.
        """
        chain = build_input_chain(
            source,
            mode=mode,
            compression=compression,
            stdin=self.stdin,
            chunk_size=self.chunk_size,
        )
        self._attach(chain)
        return self

    def readable(self) -> bool:
        return True

    def _mark_read(self, data: bytes, size: int, complete: bool):
        if not complete:
            self.state.eof = True
            if not data and size != 0:
                self.state.fail = True

    def read(self, size: Optional[int] = -1) -> bytes:
        size = -1 if size is None else size
        data = self._call(b"", lambda head: head.read(size))
        self._mark_read(data, size, complete=0 <= size <= len(data))
        return data

    def read1(self, size: int = -1) -> bytes:
        data = self._call(
            b"", lambda head: getattr(head, "read1", head.read)(size)
        )
        self._mark_read(data, size, complete=bool(data) or size == 0)
        return data

    def readinto(self, buffer: Any) -> int:
        data = self.read(len(buffer))
        buffer[: len(data)] = data
        return len(data)

    def readline(self, size: Optional[int] = -1) -> bytes:
        size = -1 if size is None else size
        line = self._call(b"", lambda head: head.readline(size))
        complete = line.endswith(b"\n") or 0 <= size <= len(line)
        self._mark_read(line, size, complete=complete)
        return line

    def readlines(self, hint: int = -1) -> List[bytes]:
        lines: List[bytes] = []
        total = 0
        for line in self:
            lines.append(line)
            total += len(line)
            if 0 < hint <= total:
                break
        return lines

    def __iter__(self) -> Iterator[bytes]:
        return self

    def __next__(self) -> bytes:
        line = self.readline()
        if not line:
            raise StopIteration()
        return line

import io
from contextlib import contextmanager
from typing import IO, Iterator, Literal, Optional, cast

from .codecs import DEFAULT_LEVEL, resolve_codec
from .io_wrappers import (
    DEFAULT_CHUNK_SIZE,
    CompressorIO,
    DecompressorIO,
    ReadIO,
    WriteIO,
)

__all__ = ["compress_stream", "decompress_stream"]


@contextmanager
def decompress_stream(
    stream: IO,
    mode: Literal["r", "rt", "rb"] = "rt",
    encoding: Optional[str] = "utf-8",
    errors: str = "strict",
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    compression: Optional[str] = "gzip",
) -> Iterator[IO]:
    """Decompress an already open binary `stream` while reading from it.
    With no filename to look at, an empty compression tag means none;
    `stream` itself is left open on exit."""

    codec = resolve_codec(compression, filename=None)

    raw: ReadIO
    if codec is None:
        raw = ReadIO(stream=stream, chunk_size=chunk_size)
    else:
        raw = DecompressorIO(stream=stream, codec=codec, chunk_size=chunk_size)

    out: io.IOBase
    if mode == "rb" or mode == "r":
        out = raw
    elif mode == "rt":
        assert encoding is not None, "encoding must be provided for text mode"
        out = io.TextIOWrapper(
            io.BufferedReader(raw), encoding=encoding, errors=errors
        )
    else:
        raise ValueError(f"Unsupported mode: {mode}")

    # cast to IO to satisfy mypy, then yield
    yield cast(IO, out)

    out.close()


@contextmanager
def compress_stream(
    stream: IO,
    mode: Literal["w", "wt", "wb"] = "wt",
    encoding: Optional[str] = "utf-8",
    errors: str = "strict",
    compression: Optional[str] = "gzip",
    level: Optional[int] = DEFAULT_LEVEL,
) -> Iterator[IO]:
    """Compress everything written into an already open binary `stream`.
    The compressed stream is completed on exit; `stream` is flushed but
    left open."""

    codec = resolve_codec(compression, filename=None)

    raw: WriteIO
    if codec is None:
        raw = WriteIO(stream=stream)
    else:
        raw = CompressorIO(stream=stream, codec=codec, level=level)

    out: io.IOBase
    if mode == "wb" or mode == "w":
        out = raw
    elif mode == "wt":
        assert encoding is not None, "encoding must be provided for text mode"
        out = io.TextIOWrapper(
            io.BufferedWriter(raw), encoding=encoding, errors=errors
        )
    else:
        raise ValueError(f"Unsupported mode: {mode}")

    # cast to IO to satisfy mypy, then yield
    yield cast(IO, out)

    # flush and complete the compressed stream
    out.close()

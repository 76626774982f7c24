import os
import sys
from typing import IO, List, Optional, Union

from .codecs import DEFAULT_LEVEL, Codec, make_compressor, resolve_codec
from .errors import FileOpenError
from .io_wrappers import DEFAULT_CHUNK_SIZE, CompressorIO, DecompressorIO

__all__ = [
    "NULL_DEVICE",
    "STDIO_SENTINEL",
    "StreamChain",
    "TargetType",
    "build_input_chain",
    "build_output_chain",
]

STDIO_SENTINEL = "-"
NULL_DEVICE = os.devnull

TargetType = Union[str, "os.PathLike[str]", int]


class StreamChain:
    """An ordered sequence of stages backing one filter stream: an
    optional codec stage in front of exactly one transport stage.

    The chain owns its codec stage; it owns the transport only when it
    opened it (paths and descriptor wrappers). Standard streams are never
    closed, and descriptors are wrapped with `closefd=False` so that
    closing the wrapper leaves them open.
    """

    def __init__(
        self,
        transport: IO,
        codec_stage: Optional[IO] = None,
        codec: Optional[Codec] = None,
        owns_transport: bool = True,
        output: bool = False,
        name: str = "",
    ):
        self.transport = transport
        self.codec_stage = codec_stage
        self.codec = codec
        self.owns_transport = owns_transport
        self.output = output
        self.name = name
        self.released = False

    @property
    def stages(self) -> List[IO]:
        if self.codec_stage is None:
            return [self.transport]
        return [self.codec_stage, self.transport]

    @property
    def head(self) -> IO:
        """The stage reads and writes go to."""
        return self.stages[0]

    def shares_file(self, target: "TargetType") -> bool:
        """Whether the path `target` names the file this chain opened."""
        if not self.owns_transport or isinstance(target, int):
            return False

        path = os.fspath(target)
        if path in ("", STDIO_SENTINEL):
            return False

        try:
            return os.path.samestat(
                os.fstat(self.transport.fileno()), os.stat(path)
            )
        except (OSError, ValueError):
            # missing target, or a transport without a descriptor
            return False

    def release(self):
        """Finish the codec stage (writing any trailer into the transport),
        then close the transport if owned; an output transport that is not
        owned is only flushed. Calling it more than once has no effect."""

        if self.released:
            return
        self.released = True

        try:
            if self.codec_stage is not None:
                self.codec_stage.close()
        finally:
            if self.owns_transport:
                self.transport.close()
            elif self.output and not self.transport.closed:
                self.transport.flush()

    def __repr__(self) -> str:
        codec = self.codec.value if self.codec else "none"
        return (
            f"{type(self).__name__}(name={self.name!r}, codec={codec}, "
            f"owns_transport={self.owns_transport})"
        )


def binary_mode(mode: str) -> str:
    """Stages exchange bytes, so transports are always opened in binary."""
    mode = mode.replace("t", "")
    return mode if "b" in mode else f"{mode}b"


def standard_stream(name: str) -> IO:
    """Binary buffer of sys.stdin or sys.stdout, looked up at call time."""
    stream = getattr(sys, name)
    return getattr(stream, "buffer", stream)


def _open_transport(
    file: Union[str, int], mode: str, display_path: str
) -> IO:
    try:
        # descriptors belong to the caller and stay open
        return open(
            file, binary_mode(mode), closefd=not isinstance(file, int)
        )
    except OSError as e:
        raise FileOpenError(
            display_path, reason=e.strerror, errno=e.errno
        ) from e


def build_output_chain(
    target: TargetType,
    mode: str = "wb",
    compression: Optional[str] = None,
    level: Optional[int] = DEFAULT_LEVEL,
    stdout: Optional[IO] = None,
) -> StreamChain:
    """Assemble [compressor?] -> [sink] for `target`, a path, a file
    descriptor, or "-" for standard output. Either a complete chain is
    returned or an error is raised; nothing is left open on failure.

    Args:
        target (Union[str, os.PathLike, int]): Where to write. An empty
            path discards everything that is written.
        mode (str, optional): Mode used to open a path or descriptor.
            Defaults to "wb".
        compression (str, optional): Compression tag; None or "" infers
            it from the suffix of `target`. Defaults to None.
        level (int, optional): Compression level; -1 uses the codec
            default. Defaults to -1.
        stdout (IO, optional): Binary stream used for "-". Defaults to the
            buffer of sys.stdout.
    """

    if isinstance(target, int):
        codec = resolve_codec(compression, filename=None)
    else:
        path = os.fspath(target) or NULL_DEVICE
        codec = resolve_codec(compression, filename=path)

    # create the encoder before touching the transport: a bad level must
    # not truncate the target file
    encoder = make_compressor(codec, level) if codec is not None else None

    transport: IO
    if isinstance(target, int):
        name = f"<fd {target}>"
        transport = _open_transport(target, mode, display_path=name)
        owns_transport = True
    elif path == STDIO_SENTINEL:
        transport = stdout or standard_stream("stdout")
        owns_transport, name = False, "<stdout>"
    else:
        transport = _open_transport(path, mode, display_path=path)
        owns_transport, name = True, path

    codec_stage = None
    if codec is not None:
        codec_stage = CompressorIO(transport, codec=codec, encoder=encoder)

    return StreamChain(
        transport=transport,
        codec_stage=codec_stage,
        codec=codec,
        owns_transport=owns_transport,
        output=True,
        name=name,
    )


def build_input_chain(
    source: TargetType,
    mode: str = "rb",
    compression: Optional[str] = None,
    stdin: Optional[IO] = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> StreamChain:
    """Assemble [decompressor?] -> [source] for `source`, a path, a file
    descriptor, or "-" for standard input. With no explicit compression
    tag the codec is picked from the suffix alone, and at most one
    decompressor is ever used.

    Args:
        source (Union[str, os.PathLike, int]): What to read. An empty path
            reads as an empty stream.
        mode (str, optional): Mode used to open a path or descriptor.
            Defaults to "rb".
        compression (str, optional): Compression tag overriding the
            suffix; None or "" means suffix detection. Defaults to None.
        stdin (IO, optional): Binary stream used for "-". Defaults to the
            buffer of sys.stdin.
        chunk_size (int, optional): Bytes read from the source at a time
            when decompressing. Defaults to io.DEFAULT_BUFFER_SIZE.
    """

    if isinstance(source, int):
        codec = resolve_codec(compression, filename=None)
    else:
        display_path = os.fspath(source)
        path = display_path or NULL_DEVICE
        codec = resolve_codec(compression, filename=path)

    transport: IO
    if isinstance(source, int):
        name = f"<fd {source}>"
        transport = _open_transport(source, mode, display_path=name)
        owns_transport = True
    elif path == STDIO_SENTINEL:
        transport = stdin or standard_stream("stdin")
        owns_transport, name = False, "<stdin>"
    else:
        transport = _open_transport(path, mode, display_path=display_path)
        owns_transport, name = True, path

    codec_stage = None
    if codec is not None:
        try:
            codec_stage = DecompressorIO(
                transport, codec=codec, chunk_size=chunk_size
            )
        except Exception:
            if owns_transport:
                transport.close()
            raise

    return StreamChain(
        transport=transport,
        codec_stage=codec_stage,
        codec=codec,
        owns_transport=owns_transport,
        name=name,
    )

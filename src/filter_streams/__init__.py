from .chain import (
    NULL_DEVICE,
    STDIO_SENTINEL,
    StreamChain,
    build_input_chain,
    build_output_chain,
)
from .codecs import Codec, resolve_codec
from .compression import compress_stream, decompress_stream
from .errors import FileOpenError, FilterStreamError, UnknownCompressionKind
from .operations import open_file_for_read, open_file_for_write
from .streams import (
    FilterStream,
    InputFilterStream,
    OutputFilterStream,
    StreamState,
)

__version__ = "0.1.0"

__all__ = [
    "build_input_chain",
    "build_output_chain",
    "Codec",
    "compress_stream",
    "decompress_stream",
    "FileOpenError",
    "FilterStream",
    "FilterStreamError",
    "InputFilterStream",
    "NULL_DEVICE",
    "open_file_for_read",
    "open_file_for_write",
    "OutputFilterStream",
    "resolve_codec",
    "STDIO_SENTINEL",
    "StreamChain",
    "StreamState",
    "UnknownCompressionKind",
]

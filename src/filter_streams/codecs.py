import zlib
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple, Type

from necessary import necessary

from .errors import UnknownCompressionKind

# bz2 and lzma are optional modules of a CPython build
with necessary("bz2", soft=True) as BZ2_AVAILABLE:
    if TYPE_CHECKING or BZ2_AVAILABLE:
        import bz2

with necessary("lzma", soft=True) as LZMA_AVAILABLE:
    if TYPE_CHECKING or LZMA_AVAILABLE:
        import lzma


__all__ = [
    "ALIASES",
    "CODEC_ERRORS",
    "Codec",
    "DEFAULT_LEVEL",
    "SUFFIXES",
    "codec_for_suffix",
    "make_compressor",
    "make_decompressor",
    "resolve_codec",
]

DEFAULT_LEVEL = -1
NO_COMPRESSION_TAGS = ("", "none")

# what codec objects raise on bad data; bz2 reports OSError
CODEC_ERRORS: Tuple[Type[Exception], ...] = (zlib.error, EOFError)
if LZMA_AVAILABLE:
    CODEC_ERRORS += (lzma.LZMAError,)

MISSING_MODULE_MESSAGE = (
    "{module_name} is not available in this Python build; "
    "rebuild Python with {module_name} support to use this codec."
)


def _require(module_name: str, available: bool):
    if not available:
        raise ImportError(
            MISSING_MODULE_MESSAGE.format(module_name=module_name)
        )


class Codec(Enum):
    GZIP = "gzip"
    BZIP2 = "bzip2"
    LZMA = "lzma"


# order matters: the first codec whose suffix matches wins
SUFFIXES: Dict[Codec, Tuple[str, ...]] = {
    Codec.GZIP: (".gz", ".gz~"),
    Codec.BZIP2: (".bz2", ".bz2~"),
    Codec.LZMA: (".xz", ".xz~"),
}

ALIASES: Dict[str, Codec] = {
    "gz": Codec.GZIP,
    "gzip": Codec.GZIP,
    "bz2": Codec.BZIP2,
    "bzip2": Codec.BZIP2,
    "lzma": Codec.LZMA,
    "xz": Codec.LZMA,
}


def codec_for_suffix(filename: str) -> Optional[Codec]:
    """Return the codec implied by the suffix of `filename`, if any. A
    trailing `~` (backup files) does not prevent detection."""
    for codec, suffixes in SUFFIXES.items():
        if filename.endswith(suffixes):
            return codec
    return None


def resolve_codec(
    compression: Optional[str] = None, filename: Optional[str] = None
) -> Optional[Codec]:
    """Decide which codec, if any, sits between a transport and the
    consumer of a stream.

    Args:
        compression (str, optional): Compression tag. An empty tag (or None)
            means "auto": the codec is inferred from the suffix of
            `filename`. An explicit tag always wins over the suffix. Use
            "none" to disable compression. Defaults to None.
        filename (str, optional): Name of the file being opened; None when
            opening a file descriptor, in which case only explicit tags
            take effect. Defaults to None.

    Raises:
        UnknownCompressionKind: if `compression` is not a recognized tag.
    """
    tag = compression or ""

    if not tag and filename is not None:
        codec = codec_for_suffix(filename)
        if codec is not None:
            return codec

    if tag in ALIASES:
        return ALIASES[tag]
    elif tag in NO_COMPRESSION_TAGS:
        return None

    raise UnknownCompressionKind(tag)


def make_compressor(
    codec: Codec, level: Optional[int] = DEFAULT_LEVEL
) -> Any:
    """Create an incremental compressor object for `codec`; a level of -1
    (or None) uses the codec's default, anything else is passed through
    as is."""

    use_default = level is None or level == DEFAULT_LEVEL

    if codec is Codec.GZIP:
        return zlib.compressobj(
            zlib.Z_DEFAULT_COMPRESSION if use_default else level,
            zlib.DEFLATED,
            16 + zlib.MAX_WBITS,
        )
    elif codec is Codec.BZIP2:
        _require("bz2", BZ2_AVAILABLE)
        if use_default:
            return bz2.BZ2Compressor()
        return bz2.BZ2Compressor(level)
    elif codec is Codec.LZMA:
        _require("lzma", LZMA_AVAILABLE)
        if use_default:
            return lzma.LZMACompressor(format=lzma.FORMAT_XZ)
        return lzma.LZMACompressor(format=lzma.FORMAT_XZ, preset=level)

    raise ValueError(f"Unsupported codec: {codec}")


def make_decompressor(codec: Codec) -> Any:
    """Create an incremental decompressor object for a single compressed
    stream (or gzip member) encoded with `codec`."""

    if codec is Codec.GZIP:
        return zlib.decompressobj(16 + zlib.MAX_WBITS)
    elif codec is Codec.BZIP2:
        _require("bz2", BZ2_AVAILABLE)
        return bz2.BZ2Decompressor()
    elif codec is Codec.LZMA:
        _require("lzma", LZMA_AVAILABLE)
        # FORMAT_AUTO also accepts legacy .lzma streams
        return lzma.LZMADecompressor()

    raise ValueError(f"Unsupported codec: {codec}")

import io
import os
from contextlib import contextmanager
from logging import Logger, getLogger
from os import remove as remove_local_file
from pathlib import Path
from typing import IO, Generator, Optional, Union, cast

from .chain import STDIO_SENTINEL, TargetType, binary_mode
from .codecs import DEFAULT_LEVEL
from .streams import FilterStream, InputFilterStream, OutputFilterStream

__all__ = ["open_file_for_read", "open_file_for_write"]

LOGGER = getLogger(__file__)


def _is_local_path(path: TargetType) -> bool:
    """True for paths that name an actual file (not a descriptor, not
    standard input/output, and not the null device)."""
    if isinstance(path, int):
        return False
    return os.fspath(path) not in ("", STDIO_SENTINEL)


def _wrap(
    stream: FilterStream, mode: str, encoding: str, errors: str
) -> Union[FilterStream, io.TextIOWrapper]:
    if "b" in mode:
        return stream
    return io.TextIOWrapper(
        cast(io.BufferedIOBase, stream), encoding=encoding, errors=errors
    )


@contextmanager
def open_file_for_read(
    path: TargetType,
    mode: str = "r",
    compression: Optional[str] = None,
    encoding: str = "utf-8",
    errors: str = "strict",
    logger: Optional[Logger] = None,
) -> Generator[IO, None, None]:
    """Get a context manager to read a file, decompressing it if its
    suffix (or `compression`) says so.

    Args:
        path (Union[str, Path, int]): The file to read; "-" reads standard
            input, a file descriptor is read but never closed.
        mode (str, optional): The mode to open the file in. Defaults to "r".
            Only read modes are supported (e.g. 'rb', 'rt', 'r').
        compression (str, optional): Compression tag overriding the suffix
            of `path`. Defaults to None.
        encoding (str, optional): Encoding used in text mode. Defaults to
            "utf-8".
        errors (str, optional): How decoding errors are handled in text
            mode. Defaults to "strict".
        logger (Logger, optional): The logger to use. Defaults to the
            module logger.
    """
    logger = logger or LOGGER

    assert "r" in mode, "Only read mode is supported"

    stream = InputFilterStream(
        path, mode=binary_mode(mode), compression=compression, logger=logger
    )
    f = _wrap(stream, mode=mode, encoding=encoding, errors=errors)
    try:
        yield cast(IO, f)
    finally:
        f.close()


@contextmanager
def open_file_for_write(
    path: TargetType,
    mode: str = "w",
    compression: Optional[str] = None,
    level: Optional[int] = DEFAULT_LEVEL,
    encoding: str = "utf-8",
    errors: str = "strict",
    skip_if_empty: bool = False,
    logger: Optional[Logger] = None,
) -> Generator[IO, None, None]:
    """Get a context manager to write to a file, compressing it if its
    suffix (or `compression`) says so. Missing parent directories are
    created.

    Args:
        path (Union[str, Path, int]): The file to write; "-" writes to
            standard output, a file descriptor is written but never closed.
        mode (str, optional): The mode to open the file in. Defaults to "w".
            Only write/append modes are supported (e.g. 'wb', 'w', 'ab').
        compression (str, optional): Compression tag overriding the suffix
            of `path`. Defaults to None.
        level (int, optional): Compression level; -1 uses the codec
            default. Defaults to -1.
        encoding (str, optional): Encoding used in text mode. Defaults to
            "utf-8".
        errors (str, optional): How encoding errors are handled in text
            mode. Defaults to "strict".
        skip_if_empty (bool, optional): If True and nothing is written, the
            file is removed rather than left behind (compressed or not).
            Defaults to False.
        logger (Logger, optional): The logger to use. Defaults to the
            module logger.
    """
    logger = logger or LOGGER

    assert "w" in mode or "a" in mode, "Only write/append mode is supported"

    if _is_local_path(path):
        # make enclosing directory if it doesn't exist
        Path(path).parent.mkdir(parents=True, exist_ok=True)

    stream = OutputFilterStream(
        path,
        mode=binary_mode(mode),
        compression=compression,
        level=level,
        logger=logger,
    )
    f = _wrap(stream, mode=mode, encoding=encoding, errors=errors)
    try:
        yield cast(IO, f)
    finally:
        f.close()

        if (
            skip_if_empty
            and "w" in mode
            and _is_local_path(path)
            and stream.bytes_written == 0
        ):
            logger.info("Skipping empty file %s", path)
            remove_local_file(path)

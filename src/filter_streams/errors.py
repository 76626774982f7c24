from typing import Optional

__all__ = ["FileOpenError", "FilterStreamError", "UnknownCompressionKind"]


class FilterStreamError(Exception):
    """Base class for errors raised while opening a filter stream."""


class UnknownCompressionKind(FilterStreamError, ValueError):
    """The compression tag is not one of the recognized codec names."""

    def __init__(self, tag: str):
        self.tag = tag
        super().__init__(f"unknown filter compression {tag!r}")


class FileOpenError(FilterStreamError, OSError):
    """The file backing a stream could not be opened."""

    def __init__(
        self,
        path: str,
        reason: Optional[str] = None,
        errno: Optional[int] = None,
    ):
        msg = f"couldn't open file {path}"
        if reason:
            msg = f"{msg}: {reason}"

        # OSError only populates errno/strerror when given (errno, strerror)
        if errno is not None:
            super().__init__(errno, msg)
        else:
            super().__init__(msg)

        self.path = path
        self.reason = reason

    def __str__(self) -> str:
        return self.args[-1]

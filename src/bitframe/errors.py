"""Error kinds and status codes shared by every bit stream operation."""

from __future__ import annotations

from enum import IntEnum


class Status(IntEnum):
    SUCCESS = 1
    BAD_PARAMETER = 0
    MEMORY = -1
    FILE_OPEN = -2
    FILE_READ = -3
    BAD_FILE_TYPE = -4
    SIZE_MISMATCH = -5
    NOT_IMPLEMENTED = -6


STATUS_MESSAGES = {
    Status.SUCCESS: "Completed",
    Status.BAD_PARAMETER: "Invalid parameter combination",
    Status.MEMORY: "Memory allocation failure",
    Status.FILE_OPEN: "Could not open file",
    Status.FILE_READ: "File read failure",
    Status.BAD_FILE_TYPE: "Incorrect file type",
    Status.SIZE_MISMATCH: "File sizes do not match",
    Status.NOT_IMPLEMENTED: "Not yet implemented",
}


class BitframeError(ValueError):
    """Base class for all operation failures."""

    status = Status.BAD_PARAMETER


class BadParameterError(BitframeError):
    status = Status.BAD_PARAMETER


class AllocationError(BitframeError):
    status = Status.MEMORY


class FileOpenError(BitframeError):
    status = Status.FILE_OPEN


class FileReadError(BitframeError):
    """Premature end of stream where a fixed-size read was mandatory, or an I/O failure."""

    status = Status.FILE_READ


class BadFormatError(FileReadError):
    """Raised when a text token cannot be turned into a bit."""


class BadFileTypeError(BitframeError):
    status = Status.BAD_FILE_TYPE


class SizeMismatchError(BitframeError):
    status = Status.SIZE_MISMATCH


def status_of(exc: BaseException | None) -> Status:
    if exc is None:
        return Status.SUCCESS
    if isinstance(exc, BitframeError):
        return exc.status
    if isinstance(exc, MemoryError):
        return Status.MEMORY
    if isinstance(exc, OSError):
        return Status.FILE_READ
    if isinstance(exc, NotImplementedError):
        return Status.NOT_IMPLEMENTED
    return Status.BAD_PARAMETER

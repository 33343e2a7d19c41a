from __future__ import annotations

import io
import os
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator, TextIO, Union

from bitframe.errors import FileOpenError, FileReadError

Source = Union[str, os.PathLike, bytes, bytearray, memoryview, BinaryIO]
Sink = Union[str, os.PathLike, BinaryIO, TextIO]


def _is_path(obj) -> bool:
    return isinstance(obj, (str, os.PathLike))


@contextmanager
def open_input(src: Source) -> Iterator[BinaryIO]:
    """
    Yield a readable binary stream for `src`.
    Paths are opened here and always closed; streams passed in stay open.
    """
    if isinstance(src, (bytes, bytearray, memoryview)):
        yield io.BytesIO(bytes(src))
        return
    if not _is_path(src):
        yield src
        return
    try:
        f = open(Path(src), "rb")
    except OSError as e:
        raise FileOpenError(f"could not open input file {src}: {e}") from e
    with f:
        yield f


@contextmanager
def open_text_input(src: Source) -> Iterator[TextIO]:
    """
    Yield a readable text stream for `src`.
    Binary streams passed in are wrapped for the duration and left open.
    """
    if isinstance(src, (bytes, bytearray, memoryview)):
        yield io.StringIO(bytes(src).decode("ascii", errors="replace"))
        return
    if not _is_path(src):
        if isinstance(src, io.TextIOBase):
            yield src
            return
        wrapper = io.TextIOWrapper(src, encoding="ascii", errors="replace")
        try:
            yield wrapper
        finally:
            wrapper.detach()
        return
    try:
        f = open(Path(src), "r", encoding="ascii", errors="replace")
    except OSError as e:
        raise FileOpenError(f"could not open input file {src}: {e}") from e
    with f:
        yield f


@contextmanager
def open_output(dst: Sink, *, binary: bool = False) -> Iterator[Union[BinaryIO, TextIO]]:
    if not _is_path(dst):
        yield dst
        return
    try:
        f = open(Path(dst), "wb") if binary else open(Path(dst), "w", encoding="ascii", newline="\n")
    except OSError as e:
        raise FileOpenError(f"could not open output file {dst}: {e}") from e
    with f:
        yield f


def read_exact(stream: BinaryIO, n: int) -> bytes:
    """Read up to n bytes, turning low-level failures into FileReadError."""
    try:
        return stream.read(n)
    except (OSError, ValueError) as e:
        raise FileReadError(f"read failed: {e}") from e


def skip_bytes(stream: BinaryIO, n: int) -> int:
    """Advance the stream by up to n bytes without keeping them; returns bytes skipped."""
    if n <= 0:
        return 0
    try:
        if stream.seekable():
            here = stream.tell()
            end = stream.seek(0, io.SEEK_END)
            target = min(here + n, end)
            stream.seek(target)
            return target - here
    except (OSError, ValueError) as e:
        raise FileReadError(f"seek failed: {e}") from e
    skipped = 0
    while skipped < n:
        chunk = read_exact(stream, min(n - skipped, 65536))
        if not chunk:
            break
        skipped += len(chunk)
    return skipped
